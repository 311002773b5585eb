"""The world map: countries drawn as polygons and joined by sea routes."""

from __future__ import annotations

import logging
import math
import random
import sys
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence, TextIO

from taskdesk import terminal
from taskdesk.city import City, sandbox
from taskdesk.houses import DisjointSet

WIDTH = 100
HEIGHT = 30
MAX_COUNTRIES = 5
MAX_VERTICES = 15
COUNTRY_MARGIN = 5
ATTEMPTS_PER_COUNTRY = 300
TOTAL_ATTEMPTS = 3000

OCEAN = "."
LAND = "#"
PATH = "+"
PATH_PARALLEL = "="
WALKABLE = frozenset({LAND, PATH, PATH_PARALLEL})

_MOVES = {"w": (0, -1), "s": (0, 1), "a": (-1, 0), "d": (1, 0)}
_COLOURS = {
    LAND: "\033[32m#\033[0m",
    OCEAN: "\033[34m.\033[0m",
    PATH: "\033[33m+\033[0m",
    PATH_PARALLEL: "\033[35m=\033[0m",
}

_log = logging.getLogger(__name__)

Point = tuple[int, int]


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a < 0) == (b < 0) else -quotient


def _round_half_away(value: float) -> int:
    magnitude = math.floor(abs(value) + 0.5)
    return magnitude if value >= 0 else -magnitude


def _in_world(x: int, y: int) -> bool:
    return 0 <= x < WIDTH and 0 <= y < HEIGHT


def is_inside(x: int, y: int, vertices: Sequence[Point]) -> bool:
    """Even-odd test of whether a cell lies inside a polygon, in integer arithmetic."""
    inside = False
    previous = vertices[-1:] + vertices[:-1] if vertices else []
    for (xi, yi), (xj, yj) in zip(vertices, previous):
        if (yi > y) != (yj > y):
            crossing = _trunc_div((xj - xi) * (y - yi), yj - yi) + xi
            if x < crossing:
                inside = not inside
    return inside


def _bounds(vertices: Sequence[Point]) -> tuple[int, int, int, int]:
    min_x = min([WIDTH] + [vx for vx, _ in vertices])
    max_x = max([0] + [vx for vx, _ in vertices])
    min_y = min([HEIGHT] + [vy for _, vy in vertices])
    max_y = max([0] + [vy for _, vy in vertices])
    return min_x, max_x, min_y, max_y


@dataclass
class Country:
    """A country on the world map together with its city."""

    vertices: list[Point] = field(default_factory=list)
    center_x: int = 0
    center_y: int = 0
    base_radius: int = 0
    valid: bool = False
    name: Optional[str] = None
    city_generated: bool = False
    city_num_chunks: int = 0
    city: Optional[City] = field(default=None, repr=False, compare=False)


class World:
    """A world grid of countries and routes with a player travelling over it."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()
        self.grid: list[list[str]] = []
        self.countries: list[Country] = [Country() for _ in range(MAX_COUNTRIES)]
        self.edges: list[tuple[int, int, float]] = []
        self.player_x = 0
        self.player_y = 0
        self.show_player = False
        self.current_country: Optional[int] = None
        self.on_frame: Optional[Callable[[str], None]] = None
        self.clear()

    def clear(self) -> None:
        """Fill the whole map with ocean."""
        self.grid = [[OCEAN] * WIDTH for _ in range(HEIGHT)]

    def _frame(self) -> None:
        if self.on_frame is not None:
            self.on_frame(self.render())

    def render(self) -> str:
        """The coloured map: land green, ocean blue, routes yellow and magenta."""
        lines = []
        for y, row in enumerate(self.grid):
            parts = []
            for x, cell in enumerate(row):
                if self.show_player and (x, y) == (self.player_x, self.player_y):
                    parts.append("\033[31mP\033[0m")
                else:
                    parts.append(_COLOURS.get(cell, cell))
            lines.append("".join(parts))
        return "\n".join(lines) + "\n"

    def fill_polygon(self, vertices: Sequence[Point], ch: str) -> None:
        """Set every map cell inside the polygon to ``ch``."""
        if not vertices:
            return
        min_x, max_x, min_y, max_y = _bounds(vertices)
        for y in range(max(min_y, 0), min(max_y, HEIGHT - 1) + 1):
            for x in range(max(min_x, 0), min(max_x, WIDTH - 1) + 1):
                if is_inside(x, y, vertices):
                    self.grid[y][x] = ch

    def is_overlapping(self, vertices: Sequence[Point]) -> bool:
        """Whether the polygon would cover or come close to anything already drawn."""
        min_x, max_x, min_y, max_y = _bounds(vertices)
        min_x = max(min_x - COUNTRY_MARGIN, 0)
        min_y = max(min_y - COUNTRY_MARGIN, 0)
        max_x = min(max_x + COUNTRY_MARGIN, WIDTH - 1)
        max_y = min(max_y + COUNTRY_MARGIN, HEIGHT - 1)
        limit = COUNTRY_MARGIN * COUNTRY_MARGIN
        for y in range(min_y, max_y + 1):
            for x in range(min_x, max_x + 1):
                if self.grid[y][x] == OCEAN:
                    continue
                if any((x - vx) ** 2 + (y - vy) ** 2 <= limit for vx, vy in vertices):
                    return True
                if is_inside(x, y, vertices):
                    return True
        return False

    def distribute_centers(self, n: int) -> list[list[int]]:
        """Spread ``n`` country centres over the map: quadrants for 4, a grid otherwise."""
        if n <= 0:
            return []
        if n == 4:
            centers = [
                [WIDTH // 4, HEIGHT // 4],
                [WIDTH * 3 // 4, HEIGHT // 4],
                [WIDTH // 4, HEIGHT * 3 // 4],
                [WIDTH * 3 // 4, HEIGHT * 3 // 4],
            ]
            for center in centers:
                center[0] += self.rng.randrange(11) - 5
                center[1] += self.rng.randrange(11) - 5
                center[0] = min(max(center[0], 10), WIDTH - 10)
                center[1] = min(max(center[1], 5), HEIGHT - 5)
            return centers

        grid_cols = math.ceil(math.sqrt(n))
        grid_rows = math.ceil(n / grid_cols)
        cell_width = (WIDTH - 20) // grid_cols
        cell_height = (HEIGHT - 10) // grid_rows

        centers = []
        for row in range(grid_rows):
            for col in range(grid_cols):
                if len(centers) >= n:
                    return centers
                base_x = 10 + col * cell_width + cell_width // 2
                base_y = 5 + row * cell_height + cell_height // 2
                centers.append(
                    [
                        base_x + self.rng.randrange(cell_width // 2) - cell_width // 4,
                        base_y + self.rng.randrange(cell_height // 2) - cell_height // 4,
                    ]
                )
        return centers

    def smooth_polygon(self, center_x: int, center_y: int) -> list[Point]:
        """A roundish polygon of 6 to 12 vertices around a centre, clipped to the map."""
        n = 6 + self.rng.randrange(7)
        base_radius = 5 + self.rng.randrange(4)
        size_variation = 0.8 + self.rng.randrange(40) / 100.0
        base_radius = int(base_radius * size_variation)

        vertices = []
        for i in range(n):
            angle = i / n * 2 * math.pi
            variation = 0.85 + self.rng.randrange(30) / 100.0
            r = int(base_radius * variation)
            x = int(center_x + r * math.cos(angle))
            y = int(center_y + r * math.sin(angle))
            vertices.append((min(max(x, 0), WIDTH - 1), min(max(y, 0), HEIGHT - 1)))
        return vertices

    def generate_countries(self, desired_count: int) -> int:
        """Place up to ``desired_count`` countries without overlaps; return how many fit.

        Raises ValueError when more than the map can hold are asked for.
        """
        if desired_count > MAX_COUNTRIES:
            raise ValueError(f"At most {MAX_COUNTRIES} countries, got {desired_count}")
        self.countries = [Country() for _ in range(MAX_COUNTRIES)]
        centers = self.distribute_centers(desired_count)

        count = 0
        total_attempts = 0
        while count < desired_count and total_attempts < TOTAL_ATTEMPTS:
            success = False
            for attempt in range(1, ATTEMPTS_PER_COUNTRY + 1):
                total_attempts += 1
                center_x, center_y = centers[count]
                vertices = self.smooth_polygon(center_x, center_y)
                if self.is_overlapping(vertices):
                    if attempt % 50 == 0:
                        center_x += self.rng.randrange(7) - 3
                        center_y += self.rng.randrange(7) - 3
                        center_x = min(max(center_x, 10), WIDTH - 10)
                        center_y = min(max(center_y, 5), HEIGHT - 5)
                        centers[count] = [center_x, center_y]
                    continue
                self.countries[count] = Country(
                    vertices=vertices,
                    center_x=center_x,
                    center_y=center_y,
                    base_radius=5 + self.rng.randrange(4),
                    valid=True,
                )
                self.fill_polygon(vertices, LAND)
                if count % 2 == 0:
                    self._frame()
                success = True
                count += 1
                break
            if not success:
                _log.warning("Could not place country %d", count)
                count += 1

        return sum(1 for c in self.countries[:desired_count] if c.valid)

    def create_edges(self, n: int) -> list[tuple[int, int, float]]:
        """Distances between the centres of every pair of valid countries among the first n."""
        valid = [i for i, c in enumerate(self.countries[:n]) if c.valid]
        self.edges = [
            (
                i,
                j,
                math.dist(
                    (self.countries[i].center_x, self.countries[i].center_y),
                    (self.countries[j].center_x, self.countries[j].center_y),
                ),
            )
            for pos, i in enumerate(valid)
            for j in valid[pos + 1:]
        ]
        return self.edges

    def _trace(self, start_x: int, start_y: int, end_x: int, end_y: int,
               dx: int, dy: int, sx: int, sy: int, ch: str) -> None:
        def mark(x: int, y: int) -> None:
            if _in_world(x, y) and self.grid[y][x] == OCEAN:
                self.grid[y][x] = ch

        err = dx - dy
        x, y = start_x, start_y
        while True:
            mark(x, y)
            if dx > 0 and dy > 0 and x != end_x and y != end_y:
                mark(x + sx, y)
                mark(x, y + sy)
            if (x, y) == (end_x, end_y):
                break
            e2 = 2 * err
            if e2 > -dy:
                err -= dy
                x += sx
            if e2 < dx:
                err += dx
                y += sy

    def draw_double_line(self, x1: int, y1: int, x2: int, y2: int) -> None:
        """Draw a route of ``+`` and a parallel one of ``=`` over ocean cells only."""
        dx, dy = abs(x2 - x1), abs(y2 - y1)
        sx = 1 if x1 < x2 else -1
        sy = 1 if y1 < y2 else -1
        length = math.sqrt(dx * dx + dy * dy)
        if length < 0.0001:
            return
        off_x = _round_half_away(-sy / length)
        off_y = _round_half_away(sx / length)

        self._trace(x1, y1, x2, y2, dx, dy, sx, sy, PATH)
        self._trace(x1 + off_x, y1 + off_y, x2 + off_x, y2 + off_y, dx, dy, sx, sy,
                    PATH_PARALLEL)
        self._frame()

    def connect_countries(self, n: int) -> list[tuple[int, int]]:
        """Join the valid countries by a minimum spanning tree of routes.

        Uses the edges from :meth:`create_edges`; returns the joined index pairs.
        """
        valid = [i for i, c in enumerate(self.countries[:n]) if c.valid]
        if len(valid) <= 1:
            return []
        sets = DisjointSet(MAX_COUNTRIES)
        pairs: list[tuple[int, int]] = []
        for u, v, _ in sorted(self.edges, key=lambda edge: edge[2]):
            if len(pairs) >= len(valid) - 1:
                break
            a, b = self.countries[u], self.countries[v]
            if not (a.valid and b.valid):
                continue
            if sets.union(u, v):
                self.draw_double_line(a.center_x, a.center_y, b.center_x, b.center_y)
                pairs.append((u, v))
        return pairs

    def reset_player(self, n: int) -> None:
        """Put the player at the centre of the first valid country, else on any land."""
        for country in self.countries[:n]:
            if country.valid:
                self.player_x, self.player_y = country.center_x, country.center_y
                return
        for y, row in enumerate(self.grid):
            for x, cell in enumerate(row):
                if cell == LAND:
                    self.player_x, self.player_y = x, y
                    return

    def country_at(self, x: int, y: int, n: int) -> Optional[int]:
        """Index of the first valid country among the first n containing the cell."""
        for i, country in enumerate(self.countries[:n]):
            if country.valid and is_inside(x, y, country.vertices):
                return i
        return None

    def move_player(self, direction: str, n: int) -> Optional[int]:
        """Step in a W/A/S/D direction over land or routes.

        Returns the index of the country the player has just entered, or None.
        Any other key leaves the player in place and counts as entering the
        country underfoot.
        """
        prev_x, prev_y = self.player_x, self.player_y
        dx, dy = _MOVES.get(direction, (0, 0))
        new_x, new_y = prev_x + dx, prev_y + dy
        if not _in_world(new_x, new_y) or self.grid[new_y][new_x] not in WALKABLE:
            return None
        self.player_x, self.player_y = new_x, new_y

        country = self.country_at(new_x, new_y, n)
        if country is None:
            return None
        previous = None
        if (prev_x, prev_y) != (new_x, new_y):
            previous = self.country_at(prev_x, prev_y, n)
        return country if previous != country else None

    def initialize(self, n: int) -> int:
        """Build a fresh world with ``n`` countries, routes and one city each.

        Returns the number of countries placed.
        """
        self.clear()
        valid_count = self.generate_countries(n)
        self.create_edges(n)
        self.connect_countries(n)
        for country in self.countries[:n]:
            if not country.valid:
                continue
            city = City(self.rng)
            city.generate()
            country.city = city
            country.city_generated = True
            country.city_num_chunks = 10 + country.base_radius // 2
        self.reset_player(n)
        self.show_player = True
        self._frame()
        return valid_count

    def _visit_city(self, index: int, read_key: Callable[[], str],
                    read_line: Callable[[str], str], out: TextIO) -> None:
        country = self.countries[index]
        out.write(f"\nEntering {country.name or 'unnamed'} country...\n")
        out.write("Press any key to explore the city...")
        out.flush()
        read_key()
        terminal.clear_screen(out)
        self.current_country = index
        if country.city is None:
            country.city = City(self.rng)
            country.city.generate()
            country.city_generated = True
        out.write(country.city.render())
        sandbox(country.city, read_key, read_line, out)
        terminal.clear_screen(out)
        out.write("Returning to world map...\n")
        out.write(self.render())
        out.flush()

    def explore(
        self,
        n: int,
        read_key: Optional[Callable[[], str]] = None,
        read_line: Optional[Callable[[str], str]] = None,
        out: Optional[TextIO] = None,
    ) -> None:
        """Travel the world until Q, entering each country's city on arrival."""
        read_key = read_key or terminal.getch
        read_line = read_line or terminal.read_line
        out = out or sys.stdout

        out.write("\nExplore the world! Use WASD to move, enter countries to view cities\n")
        out.write("Press Q to quit exploration\n\n")
        out.flush()
        while True:
            key = read_key()
            if key.lower() == "q":
                break
            entered = self.move_player(key, n)
            if entered is not None:
                self._visit_city(entered, read_key, read_line, out)
            out.write(self.render())
            out.flush()