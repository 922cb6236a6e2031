"""
Purpose: Local search/filter over the routes already held in the store.
What it does:
Accepts a pool of routes, drops the ones that fail the filters
and orders the rest (name, distance, altitude or creation time).
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional

from .models import Difficulty, Route

SORT_KEYS: Dict[str, Callable[[Route], object]] = {
    "name": lambda route: route.name.lower(),
    "distance": lambda route: route.distance_m,
    "max_altitude": lambda route: route.max_altitude if route.max_altitude is not None else -1,
    "created_at": lambda route: route.created_at,
}


def matches_text(route: Route, search: str) -> bool:
    needle = search.strip().lower()
    if not needle:
        return True
    haystack = [route.name, route.trek_name or "", route.region or ""]
    return any(needle in text.lower() for text in haystack)


def filter_routes(
    routes: Iterable[Route],
    *,
    search: Optional[str] = None,
    region: Optional[str] = None,
    difficulty: Optional[Difficulty | str] = None,
    min_altitude: Optional[int] = None,
    max_altitude: Optional[int] = None,
    sort_by: str = "name",
    descending: bool = False,
) -> List[Route]:
    """
    Filter and sort routes.

    Altitude filters both look at a route's max_altitude:
    min_altitude keeps routes reaching at least that height,
    max_altitude keeps routes that stay at or below it.
    Routes without a max_altitude fail any altitude filter.
    """
    if sort_by not in SORT_KEYS:
        raise ValueError(f"Unknown sort key {sort_by!r}. Expected one of {sorted(SORT_KEYS)}")

    difficulty = Difficulty.parse(difficulty)
    selected = []

    for route in routes:
        if search and not matches_text(route, search):
            continue

        if region and (route.region or "").lower() != region.strip().lower():
            continue

        if difficulty is not None and route.difficulty != difficulty:
            continue

        if min_altitude is not None:
            if route.max_altitude is None or route.max_altitude < min_altitude:
                continue

        if max_altitude is not None:
            if route.max_altitude is None or route.max_altitude > max_altitude:
                continue

        selected.append(route)

    selected.sort(key=SORT_KEYS[sort_by], reverse=descending)
    return selected
