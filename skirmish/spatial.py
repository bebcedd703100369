"""CollisionGrid: uniform grid over the map for pruning pairwise event checks.

Rebuilt once per sub-step from the live ships, then queried once per ship.
Planets are never bucketed; there are few of them and the detector scans
them exhaustively.
"""

from __future__ import annotations

import math

from .entities import EntityId
from .physics import Vector2D
from .world import GameMap


class CollisionGrid:
    """Uniform grid bucketing ship ids by the cell containing their location."""

    def __init__(self, game_map: GameMap, cell_size: float) -> None:
        self.cell_size = cell_size
        self.width = max(1, int(math.ceil(game_map.width / cell_size)))
        self.height = max(1, int(math.ceil(game_map.height / cell_size)))
        self._cells: list[list[list[EntityId]]] = [
            [[] for _ in range(self.height)] for _ in range(self.width)
        ]
        self.rebuild(game_map)

    def _cell_of(self, x: float, y: float) -> tuple[int, int]:
        """Cell coordinates for a map position, clamped into the grid."""
        cx = min(self.width - 1, max(0, int(math.floor(x / self.cell_size))))
        cy = min(self.height - 1, max(0, int(math.floor(y / self.cell_size))))
        return cx, cy

    def rebuild(self, game_map: GameMap) -> None:
        """Re-bucket every live ship."""
        for column in self._cells:
            for cell in column:
                cell.clear()
        for ship in game_map.all_ships():
            if not ship.is_alive:
                continue
            cx, cy = self._cell_of(ship.location.x, ship.location.y)
            self._cells[cx][cy].append(ship.entity_id)

    def query(self, location: Vector2D, radius: float) -> list[EntityId]:
        """
        Return every bucketed id that could lie within `radius` of `location`.

        The home cell is always included. Each edge of the home cell the
        query circle crosses pulls in the neighbour on that side, and two
        crossed adjoining edges pull in the diagonal neighbour. A radius
        wider than a cell widens the span to every cell the bounding box
        touches. Cells outside the grid are skipped.

        Args:
            location: Centre of the query circle.
            radius: Radius of the query circle.

        Returns:
            Candidate ids (a superset of the true neighbours), home cell
            first, then row-major over the covered span.
        """
        home_x, home_y = self._cell_of(location.x, location.y)
        min_x, min_y = self._cell_of(location.x - radius, location.y - radius)
        max_x, max_y = self._cell_of(location.x + radius, location.y + radius)

        candidates: list[EntityId] = list(self._cells[home_x][home_y])
        for cx in range(min_x, max_x + 1):
            for cy in range(min_y, max_y + 1):
                if cx == home_x and cy == home_y:
                    continue
                candidates.extend(self._cells[cx][cy])
        return candidates

    def __len__(self) -> int:
        return sum(len(cell) for column in self._cells for cell in column)
