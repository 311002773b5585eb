"""City maps: blocks of land joined by roads, explored on foot."""

from __future__ import annotations

import logging
import math
import random
import sys
from typing import Callable, Optional, TextIO

from taskdesk import terminal
from taskdesk.house_view import placement_loop
from taskdesk.houses import Chunk

CITY_WIDTH = 70
CITY_HEIGHT = 30
MAX_CHUNKS = 25
CHUNK_MARGIN = 5
CHUNK_WIDTH = 4
CHUNK_HEIGHT = 7
PLACEMENT_MARGIN = 3
MAX_PLACEMENT_ATTEMPTS = 500
ATTEMPTS_PER_CHUNK = 50

ROAD = "#"
EMPTY = " "

CONTROLS = (
    "Controls: Use W/A/S/D to move (no Enter needed), "
    "E to enter house placement, Q to quit city.\n"
)

_MOVES = {"w": (0, -1), "s": (0, 1), "a": (-1, 0), "d": (1, 0)}

_log = logging.getLogger(__name__)


def _in_city(x: int, y: int) -> bool:
    return 0 <= x < CITY_WIDTH and 0 <= y < CITY_HEIGHT


class City:
    """A city grid of chunks and roads with a player walking on it."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()
        self.grid: list[list[str]] = []
        self.chunks: list[Chunk] = [Chunk() for _ in range(MAX_CHUNKS)]
        self.player_x = 0
        self.player_y = 0
        self.show_player = False
        self.clear()

    def clear(self) -> None:
        """Empty every cell of the map."""
        self.grid = [[EMPTY] * CITY_WIDTH for _ in range(CITY_HEIGHT)]

    def _area_clear(self, x: int, y: int, width: int, height: int, margin: int) -> bool:
        return all(
            self.grid[j][i] == EMPTY
            for j in range(max(0, y - margin), min(CITY_HEIGHT, y + height + margin))
            for i in range(max(0, x - margin), min(CITY_WIDTH, x + width + margin))
        )

    def is_chunk_overlapping(self, x: int, y: int, width: int, height: int) -> bool:
        """Whether a block would leave the map or come near anything already drawn."""
        if x < 0 or y < 0 or x + width >= CITY_WIDTH or y + height >= CITY_HEIGHT:
            return True
        return not self._area_clear(x, y, width, height, CHUNK_MARGIN)

    def fill_chunk(self, x: int, y: int, width: int, height: int) -> None:
        """Mark a rectangle as land, clipped to the map."""
        for j in range(max(0, y), min(CITY_HEIGHT, y + height)):
            for i in range(max(0, x), min(CITY_WIDTH, x + width)):
                self.grid[j][i] = ROAD

    def _place(self, index: int, x: int, y: int) -> None:
        self.chunks[index] = Chunk(
            x=x + CHUNK_WIDTH // 2,
            y=y + CHUNK_HEIGHT // 2,
            width=CHUNK_WIDTH,
            height=CHUNK_HEIGHT,
            valid=True,
        )
        self.fill_chunk(x, y, CHUNK_WIDTH, CHUNK_HEIGHT)

    def place_chunks(self, count: int) -> int:
        """Place up to ``count`` blocks (clamped to 4..25), one per quadrant first.

        Every chunk is reset beforehand. Returns how many were placed.
        """
        count = max(4, min(count, MAX_CHUNKS))
        self.chunks = [Chunk() for _ in range(MAX_CHUNKS)]

        x_pad = CITY_WIDTH // 8
        y_pad = CITY_HEIGHT // 8
        half_w = CITY_WIDTH // 2
        half_h = CITY_HEIGHT // 2
        quadrants = [
            (x_pad, half_w - x_pad, y_pad, half_h - y_pad),
            (half_w + x_pad, CITY_WIDTH - x_pad, y_pad, half_h - y_pad),
            (x_pad, half_w + x_pad, half_h + y_pad, CITY_HEIGHT - y_pad),
            (half_w + x_pad, CITY_WIDTH - x_pad, half_h + y_pad, CITY_HEIGHT - y_pad),
        ]

        total_attempts = 0
        for q, (x0, x1, y0, y1) in enumerate(quadrants):
            min_x, max_x = x0, x1 - CHUNK_WIDTH
            min_y, max_y = y0, y1 - CHUNK_HEIGHT
            placed = False
            for _ in range(ATTEMPTS_PER_CHUNK):
                if max_x <= min_x or max_y <= min_y:
                    continue
                x = min_x + self.rng.randrange(max_x - min_x + 1)
                y = min_y + self.rng.randrange(max_y - min_y + 1)
                total_attempts += 1
                if self._area_clear(x, y, CHUNK_WIDTH, CHUNK_HEIGHT, PLACEMENT_MARGIN):
                    self._place(q, x, y)
                    placed = True
                    break
            if not placed:
                _log.warning("Could not place chunk in quadrant %d", q + 1)

        safe = 4
        for i in range(4, count):
            if total_attempts >= MAX_PLACEMENT_ATTEMPTS:
                break
            placed = False
            for _ in range(ATTEMPTS_PER_CHUNK):
                x = safe + self.rng.randrange(CITY_WIDTH - 2 * safe - CHUNK_WIDTH)
                y = safe + self.rng.randrange(CITY_HEIGHT - 2 * safe - CHUNK_HEIGHT)
                total_attempts += 1
                if self._area_clear(x, y, CHUNK_WIDTH, CHUNK_HEIGHT, PLACEMENT_MARGIN):
                    self._place(i, x, y)
                    placed = True
                    break
            if not placed:
                _log.warning("Could not place chunk %d", i)

        return sum(1 for c in self.chunks[:count] if c.valid)

    def draw_road(self, x1: int, y1: int, x2: int, y2: int) -> None:
        """Draw a road between two cells, widening diagonal steps so it stays walkable."""
        dx, sx = abs(x2 - x1), (1 if x1 < x2 else -1)
        dy, sy = -abs(y2 - y1), (1 if y1 < y2 else -1)
        err = dx + dy
        x, y = x1, y1
        while True:
            if _in_city(x, y):
                self.grid[y][x] = ROAD
            if (x, y) == (x2, y2):
                break
            e2 = 2 * err
            prev_x, prev_y = x, y
            if e2 >= dy:
                err += dy
                x += sx
            if e2 <= dx:
                err += dx
                y += sy
            if x != prev_x and y != prev_y:
                if _in_city(x, prev_y):
                    self.grid[prev_y][x] = ROAD
                if _in_city(prev_x, y):
                    self.grid[y][prev_x] = ROAD

    def connect_chunks(self, num_chunks: int) -> list[tuple[int, int]]:
        """Join the valid chunks among the first ``num_chunks`` by a minimum spanning tree.

        Roads are drawn for every tree edge. Returns the chunk index pairs
        (parent, child). Raises ValueError for a count outside 1..25.
        """
        if not 0 < num_chunks <= MAX_CHUNKS:
            raise ValueError(f"Invalid number of chunks: {num_chunks}")
        indices = [i for i, c in enumerate(self.chunks[:num_chunks]) if c.valid]
        n = len(indices)
        if n <= 1:
            return []

        points = [(self.chunks[i].x, self.chunks[i].y) for i in indices]
        in_tree = [False] * n
        key = [math.inf] * n
        parent = [-1] * n
        key[0] = 0.0

        for _ in range(n - 1):
            candidates = [v for v in range(n) if not in_tree[v] and key[v] < math.inf]
            best = min(candidates, key=key.__getitem__) if candidates else 0
            in_tree[best] = True
            for v in range(n):
                if v == best:
                    continue
                dist = max(math.dist(points[best], points[v]), 0.0001)
                if not in_tree[v] and dist < key[v]:
                    parent[v] = best
                    key[v] = dist

        pairs = []
        for v in range(1, n):
            a, b = indices[parent[v]], indices[v]
            self.draw_road(self.chunks[a].x, self.chunks[a].y, self.chunks[b].x, self.chunks[b].y)
            pairs.append((a, b))
        return pairs

    def add_cross_roads(self) -> None:
        """Draw one horizontal and one vertical road across the span of the chunks."""
        min_x, max_x = CITY_WIDTH, 0
        min_y, max_y = CITY_HEIGHT, 0
        for c in self.chunks:
            if not c.valid:
                continue
            min_x = min(min_x, c.x - c.width // 2)
            max_x = max(max_x, c.x + c.width // 2)
            min_y = min(min_y, c.y - c.height // 2)
            max_y = max(max_y, c.y + c.height // 2)

        min_x = max(min_x, 3)
        if max_x >= CITY_WIDTH - 3:
            max_x = CITY_WIDTH - 4
        min_y = max(min_y, 3)
        if max_y >= CITY_HEIGHT - 3:
            max_y = CITY_HEIGHT - 4

        mid_y = (min_y + max_y) // 2
        self.draw_road(min_x, mid_y, max_x, mid_y)
        mid_x = (min_x + max_x) // 2
        self.draw_road(mid_x, min_y, mid_x, max_y)

    def reset_player(self) -> None:
        """Put the player on the first land cell away from the edges, else the centre."""
        for y in range(5, CITY_HEIGHT - 5):
            for x in range(5, CITY_WIDTH - 5):
                if self.grid[y][x] == ROAD:
                    self.player_x, self.player_y = x, y
                    return
        self.player_x, self.player_y = CITY_WIDTH // 2, CITY_HEIGHT // 2

    def move_player(self, direction: str) -> bool:
        """Step one cell in a W/A/S/D direction if it is land; return whether it moved."""
        dx, dy = _MOVES.get(direction, (0, 0))
        new_x, new_y = self.player_x + dx, self.player_y + dy
        if not _in_city(new_x, new_y) or self.grid[new_y][new_x] != ROAD:
            return False
        self.player_x, self.player_y = new_x, new_y
        return True

    def chunk_at_player(self) -> Optional[Chunk]:
        """The chunk the player stands on, or None."""
        return next(
            (c for c in self.chunks if c.contains(self.player_x, self.player_y)), None
        )

    def _in_chunk_area(self, x: int, y: int) -> bool:
        return any(
            c.valid
            and c.x - c.width // 2 <= x < c.x + (c.width + 1) // 2
            and c.y - c.height // 2 <= y < c.y + (c.height + 1) // 2
            for c in self.chunks
        )

    def render(self) -> str:
        """The coloured map: blocks in blue, roads in yellow, the player in red."""
        lines = []
        for y, row in enumerate(self.grid):
            parts = []
            for x, cell in enumerate(row):
                if self.show_player and (x, y) == (self.player_x, self.player_y):
                    parts.append("\033[31mP\033[0m")
                elif cell == ROAD:
                    colour = "\033[34m" if self._in_chunk_area(x, y) else "\033[33m"
                    parts.append(colour + "#\033[0m")
                elif cell == EMPTY:
                    parts.append("\033[34m.\033[0m")
                else:
                    parts.append(cell)
            lines.append("".join(parts))
        return "\n".join(lines) + "\n"

    def generate(self) -> int:
        """Build a fresh city of 4 to 6 chunks joined by roads; return the placed count."""
        num_chunks = 4 + self.rng.randrange(3)
        self.clear()
        self.place_chunks(num_chunks)
        self.connect_chunks(num_chunks)
        self.reset_player()
        self.show_player = True
        return sum(1 for c in self.chunks[:num_chunks] if c.valid)

    def copy(self) -> City:
        """An independent copy of the map, chunks, houses and player."""
        clone = City(self.rng)
        clone.grid = [row[:] for row in self.grid]
        clone.chunks = []
        for chunk in self.chunks:
            twin = Chunk(
                x=chunk.x,
                y=chunk.y,
                width=chunk.width,
                height=chunk.height,
                valid=chunk.valid,
            )
            chunk.copy_to(twin)
            clone.chunks.append(twin)
        clone.player_x, clone.player_y = self.player_x, self.player_y
        clone.show_player = self.show_player
        return clone


def sandbox(
    city: City,
    read_key: Optional[Callable[[], str]] = None,
    read_line: Optional[Callable[[str], str]] = None,
    out: Optional[TextIO] = None,
) -> None:
    """Walk around the city until Q; E opens house placement for the chunk underfoot."""
    read_key = read_key or terminal.getch
    read_line = read_line or terminal.read_line
    out = out or sys.stdout

    def redraw() -> None:
        terminal.clear_screen(out)
        out.write(city.render())
        out.write(CONTROLS)
        out.flush()

    out.write("\nWelcome to the city!\n")
    out.write(city.render())
    out.write(CONTROLS)
    out.flush()

    while True:
        key = read_key()
        lower = key.lower()
        if lower == "q":
            break
        if lower in _MOVES:
            city.move_player(lower)
            redraw()
        elif lower == "e":
            chunk = city.chunk_at_player()
            if chunk is None:
                out.write("You are not on a city chunk!\n")
            else:
                out.write("\nEntering house placement for this city chunk!\n")
                placement_loop(chunk, read_key, read_line, out)
            redraw()
        else:
            out.write("Invalid input. Use w/a/s/d to move, e to enter city, q to quit.\n")
            out.flush()