from .treks import TREKS, load_catalog

__all__ = ["TREKS", "load_catalog"]
