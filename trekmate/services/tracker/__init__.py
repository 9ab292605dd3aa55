from .service import ConditionsTracker

__all__ = ["ConditionsTracker"]
