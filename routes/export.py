"""
Purpose: Tabular export of the route collection.
One row per route, ready for a spreadsheet or a quick look in a notebook.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import pandas as pd

from .models import Route

COLUMNS = [
    "id",
    "name",
    "region",
    "trek_name",
    "difficulty",
    "distance_km",
    "duration_s",
    "duration_days",
    "min_altitude",
    "max_altitude",
    "point_count",
    "is_local",
    "is_active",
    "created_at",
]


def routes_to_frame(routes: Iterable[Route]) -> pd.DataFrame:
    rows = []
    for route in routes:
        rows.append(
            {
                "id": route.id,
                "name": route.name,
                "region": route.region,
                "trek_name": route.trek_name,
                "difficulty": route.difficulty.value if route.difficulty else None,
                "distance_km": round(route.distance_km, 3),
                "duration_s": route.duration_s,
                "duration_days": route.duration_days,
                "min_altitude": route.min_altitude,
                "max_altitude": route.max_altitude,
                "point_count": len(route.geometry),
                "is_local": route.is_local,
                "is_active": route.is_active,
                "created_at": route.created_at.isoformat(),
            }
        )
    return pd.DataFrame(rows, columns=COLUMNS)


def export_routes_csv(routes: Iterable[Route], path: str | Path) -> Path:
    """
    Write the collection to CSV and return the path written.
    """
    path = Path(path)
    routes_to_frame(routes).to_csv(path, index=False)
    return path
