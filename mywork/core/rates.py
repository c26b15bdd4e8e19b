from dataclasses import dataclass
from typing import Literal

Unit = Literal["EA", "LF", "SF"]
CategoryKey = Literal["general", "minimums", "cabinets", "additional"]

CATEGORIES: tuple[CategoryKey, ...] = ("general", "minimums", "cabinets", "additional")
UNITS: tuple[Unit, ...] = ("EA", "LF", "SF")


@dataclass(frozen=True)
class RatePreset:
    label: str
    unit: Unit
    rate: float
    category: CategoryKey

    @property
    def id(self) -> str:
        return f"{self.category}:{self.unit}:{self.label}"


RATES_DATA: dict[CategoryKey, dict[Unit, list[tuple[str, float]]]] = {
    "general": {
        "EA": [
            ("Doors (Per Side)", 18.75),
            ("Prep Stain Doors for Paint (Per Side)", 28.12),
            ("Wood/Brick Fireplace Mantle", 262.5),
            ("Built-In Shelves", 37.5),
            ("Skylights", 37.5),
            ("Window Casing", 37.5),
            ("Furniture (Per Room)", 37.5),
            ("Excessive Furniture (Per Room)", 56.25),
            ("Stair Risers", 18.75),
            ("Stair Treads", 18.75),
            ("Spindles", 7.5),
            ("Excessive Prep: Full Day", 750),
            ("Excessive Prep: Half Day", 375),
            ("Excessive Prep: Quarter Day", 187.5),
            ("Spray Interior Doors (Per Side)", 75),
            ("Paint Stained Casing", 150),
            ("Paint (Gallon)", 75),
            ("Paint (Quart)", 0),
        ],
        "LF": [
            ("Stained Trim", 2.62),
            ("Crown Molding", 1.87),
            ("Prep/Paint Stained Crown", 3),
            ("Wallpaper Border Removal", 3.75),
            ("Install Crown Molding", 3.75),
            ("Install Baseboard (Paint Project Only)", 1.5),
            ("Banister (Cap + Base Only)", 18.75),
            ("Baseboard/Casing Touch-up", 2),
        ],
        "SF": [
            ("Paint Walls, Ceiling, Trim (Standard)", 2.25),
            ("Wallpaper Removal", 2.25),
            ("High Ceiling/Walls", 3.26),
            ("Wood Paneling Add-On", 1.12),
            ("Block/Brick Wall Add-On", 0.49),
            ("Color Change Add-On", 1.12),
            ("Paint Ceiling", 0.8),
        ],
    },
    "minimums": {
        "EA": [
            ("Bath #1 Minimum", 450),
            ("Bath #2 Minimum + Wall Prep", 600),
            ("Bath #3 Minimum + Wall Prep + Wallpaper Removal", 720),
            ("Paint Minimum (Under 400 SF)", 720),
            ("Wallpaper Removal Minimum (Under 400 SF)", 720),
        ],
        "LF": [],
        "SF": [],
    },
    "cabinets": {
        "EA": [
            ("Doors", 80),
            ("Drawers", 30),
            ("Island Surround", 220),
            ("Replace Knobs/Pulls", 15),
            ("Paint Inside Box", 30),
        ],
        "LF": [
            ("Toe Kick", 3),
        ],
        "SF": [],
    },
    "additional": {
        "EA": [
            ("Paint (Gallon)", 75),
            ("Paint (Quart)", 75),
        ],
        "LF": [],
        "SF": [],
    },
}

LINE_ITEM_PRESETS: list[RatePreset] = [
    RatePreset(label=label, unit=unit, rate=float(rate), category=category)
    for category in CATEGORIES
    for unit in UNITS
    for label, rate in RATES_DATA[category].get(unit, [])
]


def presets_for(category: str | None = None) -> list[RatePreset]:
    if category is None:
        return list(LINE_ITEM_PRESETS)
    normalized = category.strip().lower()
    if normalized not in CATEGORIES:
        allowed = ", ".join(CATEGORIES)
        raise ValueError(f"Unknown rate category '{category}'. Available: {allowed}")
    return [preset for preset in LINE_ITEM_PRESETS if preset.category == normalized]
