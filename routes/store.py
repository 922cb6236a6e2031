"""
Purpose: Owns the authoritative collection of routes (server-backed and local).
What it does:
- Keeps routes in insertion order, keyed by id
- Tracks the single selected route

Provides operations:
   - load(routes)
   - select(route_id)
   - upsert(route)
   - remove(route_id)
   - clear()

Invariant: selected_id is either None or the id of a route in the collection.

Rule: Store owns collection state, the persistence coordinator owns the
decision of *how* a change is made (local vs remote).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .models import Route


@dataclass
class RouteCollectionStore:
    """
    In-memory route collection with single selection.
    """
    # dicts keep insertion order, so the id map doubles as the ordered collection
    _routes: Dict[str, Route] = field(default_factory=dict)
    _selected_id: Optional[str] = None

    # --- Public API ---

    def load(self, routes: Iterable[Route]) -> None:
        """
        Replace the whole collection. Selects the first route, or nothing if empty.
        """
        self._routes = {}
        for route in routes:
            self._routes[route.id] = route
        self._selected_id = next(iter(self._routes), None)

    def select(self, route_id: str) -> bool:
        """
        Select a route only if it exists. Unknown ids leave the selection as is.
        """
        if route_id not in self._routes:
            return False
        self._selected_id = route_id
        return True

    def upsert(self, route: Route) -> None:
        """
        Insert a new route at the end, or replace an existing one in its slot.
        """
        # assignment to an existing key keeps its position in the dict
        self._routes[route.id] = route

    def remove(self, route_id: str) -> Optional[Route]:
        """
        Remove a route. Clears the selection only if the removed route was selected.
        """
        removed = self._routes.pop(route_id, None)
        if removed is not None and self._selected_id == route_id:
            self._selected_id = None
        return removed

    def clear(self) -> None:
        self._routes.clear()
        self._selected_id = None

    # --- Read accessors ---

    def get(self, route_id: str) -> Optional[Route]:
        return self._routes.get(route_id)

    def routes(self) -> List[Route]:
        return list(self._routes.values())

    def local_routes(self) -> List[Route]:
        return [route for route in self._routes.values() if route.is_local]

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    @property
    def selected(self) -> Optional[Route]:
        if self._selected_id is None:
            return None
        return self._routes.get(self._selected_id)

    def __len__(self) -> int:
        return len(self._routes)

    def __contains__(self, route_id: object) -> bool:
        return route_id in self._routes
