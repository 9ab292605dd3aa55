"""Sample trek catalog.

Loaded once per process and never mutated; ``load_catalog`` returns an
immutable tuple of frozen ``Trek`` models in catalog order.
"""

from functools import lru_cache
from typing import Any

from trekmate.models import Trek

TREKS: list[dict[str, Any]] = [
    {
        "id": 1,
        "name": "Everest Base Camp Trek",
        "region": "Himalayas",
        "difficulty": "Hard",
        "durationInDays": 14,
        "costInUSD": 1500,
        "altitudeInMeters": 5364,
        "rating": 4.8,
        "reviews": 342,
        "coordinates": {"lat": 28.0026, "lng": 86.8528, "name": "Everest Base Camp"},
        "bestSeason": "September - November, March - May",
        "description": (
            "The most iconic trekking route in the world. Experience the breathtaking "
            "beauty of the Himalayas as you trek to the base camp of Mount Everest."
        ),
    },
    {
        "id": 2,
        "name": "Kilimanjaro Trek",
        "region": "Africa",
        "difficulty": "Hard",
        "durationInDays": 7,
        "costInUSD": 1200,
        "altitudeInMeters": 5895,
        "rating": 4.7,
        "reviews": 298,
        "coordinates": {"lat": -3.0674, "lng": 37.3556, "name": "Mount Kilimanjaro"},
        "bestSeason": "January - March, June - October",
        "description": (
            "Climb Africa's highest peak and walk through five climate zones, from "
            "rainforest to arctic summit."
        ),
    },
    {
        "id": 3,
        "name": "Inca Trail Trek",
        "region": "South America",
        "difficulty": "Medium",
        "durationInDays": 4,
        "costInUSD": 800,
        "altitudeInMeters": 4215,
        "rating": 4.9,
        "reviews": 521,
        "coordinates": {"lat": -13.1631, "lng": -72.5450, "name": "Machu Picchu"},
        "bestSeason": "May - September",
        "description": (
            "Follow the ancient Inca paths through cloud forest and mountain passes "
            "to the lost city of Machu Picchu."
        ),
    },
    {
        "id": 4,
        "name": "Torres del Paine Trek",
        "region": "South America",
        "difficulty": "Hard",
        "durationInDays": 8,
        "costInUSD": 1100,
        "altitudeInMeters": 1700,
        "rating": 4.8,
        "reviews": 187,
        "coordinates": {"lat": -50.9423, "lng": -73.4068, "name": "Torres del Paine"},
        "bestSeason": "November - March",
        "description": (
            "Granite towers, glaciers and turquoise lakes on the classic W and O "
            "circuits of Patagonia."
        ),
    },
    {
        "id": 5,
        "name": "GR20 Trek - Corsica",
        "region": "Europe",
        "difficulty": "Hard",
        "durationInDays": 16,
        "costInUSD": 900,
        "altitudeInMeters": 2710,
        "rating": 4.6,
        "reviews": 156,
        "coordinates": {"lat": 42.1500, "lng": 9.0500, "name": "Corsica"},
        "bestSeason": "June - September",
        "description": (
            "Europe's toughest long-distance trail, crossing the granite spine of "
            "Corsica from north to south."
        ),
    },
    {
        "id": 6,
        "name": "Annapurna Circuit Trek",
        "region": "Himalayas",
        "difficulty": "Hard",
        "durationInDays": 16,
        "costInUSD": 1300,
        "altitudeInMeters": 5416,
        "rating": 4.8,
        "reviews": 412,
        "coordinates": {"lat": 28.6667, "lng": 84.0167, "name": "Manang"},
        "bestSeason": "October - November, March - April",
        "description": (
            "Circle the Annapurna massif over the Thorong La pass through villages, "
            "gorges and high alpine desert."
        ),
    },
    {
        "id": 7,
        "name": "Mont Blanc Trek",
        "region": "Europe",
        "difficulty": "Medium",
        "durationInDays": 5,
        "costInUSD": 600,
        "altitudeInMeters": 4808,
        "rating": 4.7,
        "reviews": 234,
        "coordinates": {"lat": 45.8326, "lng": 6.8652, "name": "Chamonix"},
        "bestSeason": "June - September",
        "description": (
            "Walk around the highest mountain in Western Europe through France, "
            "Italy and Switzerland."
        ),
    },
    {
        "id": 8,
        "name": "Milford Track Trek",
        "region": "Oceania",
        "difficulty": "Medium",
        "durationInDays": 4,
        "costInUSD": 700,
        "altitudeInMeters": 1073,
        "rating": 4.9,
        "reviews": 389,
        "coordinates": {"lat": -44.9200, "lng": 167.9200, "name": "Fiordland"},
        "bestSeason": "October - April",
        "description": (
            "New Zealand's finest walk, through rainforest, alpine passes and past "
            "Sutherland Falls."
        ),
    },
]


@lru_cache(maxsize=1)
def load_catalog() -> tuple[Trek, ...]:
    """Return the process-wide catalog in catalog order."""
    return tuple(Trek.model_validate(item) for item in TREKS)
