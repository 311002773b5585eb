"""Houses placed inside city chunks and the power lines between them."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from operator import attrgetter
from typing import Iterator, Sequence

from taskdesk.avl import AVLTree

GRID_ROWS = 20
GRID_COLS = 20
MAX_CONNECTIONS = 100


@dataclass
class House:
    id: int
    name: str
    owner: str
    grid_x: int
    grid_y: int
    electric_power: int = 0
    internet_speed: int = 0
    location: str = ""


@dataclass
class Connection:
    start_x: int
    start_y: int
    end_x: int
    end_y: int
    active: bool = True
    chunk_x: int = 0
    chunk_y: int = 0


def house_id(chunk_x: int, chunk_y: int, grid_x: int, grid_y: int) -> int:
    """Identifier of the house at a grid cell of the chunk centred at (chunk_x, chunk_y)."""
    return chunk_y * 10000 + chunk_x * 100 + grid_y * 10 + grid_x


def line_points(x1: int, y1: int, x2: int, y2: int) -> list[tuple[int, int]]:
    """Cells of a Bresenham line from (x1, y1) to (x2, y2), both ends included."""
    dx, dy = abs(x2 - x1), abs(y2 - y1)
    sx = 1 if x1 < x2 else -1
    sy = 1 if y1 < y2 else -1
    err = dx - dy
    x, y = x1, y1
    points = [(x, y)]
    while (x, y) != (x2, y2):
        e2 = 2 * err
        if e2 > -dy:
            err -= dy
            x += sx
        if e2 < dx:
            err += dx
            y += sy
        points.append((x, y))
    return points


class DisjointSet:
    """Union-find over the integers ``0..size-1`` with path compression."""

    def __init__(self, size: int) -> None:
        self._parent = list(range(size))

    def find(self, x: int) -> int:
        root = x
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[x] != root:
            self._parent[x], x = root, self._parent[x]
        return root

    def union(self, x: int, y: int) -> bool:
        """Join the sets of x and y; return False if they were already joined."""
        rx, ry = self.find(x), self.find(y)
        if rx == ry:
            return False
        self._parent[ry] = rx
        return True


def kruskal_pairs(points: Sequence[tuple[int, int]]) -> list[tuple[int, int]]:
    """Index pairs of a minimum spanning tree over points, in the order chosen."""
    edges = sorted(
        (
            (math.dist(points[i], points[j]), i, j)
            for i in range(len(points))
            for j in range(i + 1, len(points))
        ),
        key=lambda edge: edge[0],
    )
    sets = DisjointSet(len(points))
    chosen: list[tuple[int, int]] = []
    for _, u, v in edges:
        if len(chosen) >= len(points) - 1:
            break
        if sets.union(u, v):
            chosen.append((u, v))
    return chosen


@dataclass
class Chunk:
    """A block of a city map holding its own grid of houses."""

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0
    valid: bool = False
    connections: list[Connection] = field(default_factory=list)
    house_tree: AVLTree[House] = field(
        default_factory=lambda: AVLTree(attrgetter("id")), repr=False, compare=False
    )

    def add_house(self, house: House) -> bool:
        """Insert a house; return False if its id is already taken."""
        try:
            self.house_tree.insert(house)
        except KeyError:
            return False
        return True

    def house_at(self, grid_x: int, grid_y: int) -> House | None:
        return self.house_tree.find(house_id(self.x, self.y, grid_x, grid_y))

    def houses(self) -> list[House]:
        """All houses in id order."""
        return list(self.house_tree)

    def _is_own(self, connection: Connection) -> bool:
        return (connection.chunk_x, connection.chunk_y) == (self.x, self.y)

    def own_connections(self) -> Iterator[Connection]:
        """Active connections that belong to this chunk."""
        return (c for c in self.connections if c.active and self._is_own(c))

    def clear_own_connections(self) -> None:
        """Deactivate this chunk's connections and drop every inactive one."""
        for connection in self.connections:
            if self._is_own(connection):
                connection.active = False
        self.connections = [c for c in self.connections if c.active]

    def connect_houses(self) -> list[tuple[House, House]]:
        """Replace this chunk's power lines with a minimum spanning tree.

        Returns the connected house pairs in the order they were chosen.
        Raises ValueError when there are fewer than two houses.
        """
        houses = self.houses()
        if len(houses) < 2:
            raise ValueError("Need at least 2 houses to connect!")
        self.clear_own_connections()
        points = [(h.grid_x, h.grid_y) for h in houses]
        pairs = []
        for u, v in kruskal_pairs(points):
            a, b = houses[u], houses[v]
            if len(self.connections) < MAX_CONNECTIONS:
                self.connections.append(
                    Connection(a.grid_x, a.grid_y, b.grid_x, b.grid_y, True, self.x, self.y)
                )
            pairs.append((a, b))
        return pairs

    def copy_to(self, other: Chunk) -> None:
        """Copy connections and houses into other, keeping other's position.

        Connections owned by this chunk are relabelled as owned by other.
        """
        other.connections = [
            replace(c, chunk_x=other.x, chunk_y=other.y) if self._is_own(c) else replace(c)
            for c in self.connections
        ]
        other.house_tree = self.house_tree.copy()

    def contains(self, x: int, y: int) -> bool:
        """Whether a city cell lies in the area of this valid chunk."""
        if not self.valid:
            return False
        left = self.x - self.width // 2
        right = self.x + self.width // 2
        top = self.y - self.height // 2
        bottom = self.y + self.height // 2
        return left <= x < right and top <= y < bottom