"""Screens for placing houses in a city chunk and animating their power lines."""

from __future__ import annotations

import re
import sys
import time
from typing import Callable, Optional, TextIO

from taskdesk.houses import (
    GRID_COLS,
    GRID_ROWS,
    Chunk,
    House,
    house_id,
    line_points,
)
from taskdesk.terminal import ENTER, clear_screen

COLOR_RESET = "\033[0m"
COLOR_CURSOR = "\033[1;32m"
COLOR_HOUSE = "\033[1;34m"
COLOR_EMPTY = "\033[0;37m"

HEADER = (
    "Use WASD to move, ENTER to place/show, Q to quit, L to list all houses.\n"
    "C to connect houses, X to disconnect.\n\n"
)

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

Pause = Callable[[float], None]
Grid = list[list[str]]


def _in_grid(x: int, y: int, width: int = GRID_COLS, height: int = GRID_ROWS) -> bool:
    return 0 <= x < width and 0 <= y < height


def _house_grid(chunk: Chunk) -> Grid:
    grid = [["."] * GRID_COLS for _ in range(GRID_ROWS)]
    for house in chunk.houses():
        if _in_grid(house.grid_x, house.grid_y):
            grid[house.grid_y][house.grid_x] = "H"
    return grid


def _draw_wire(grid: Grid, x1: int, y1: int, x2: int, y2: int) -> None:
    for x, y in line_points(x1, y1, x2, y2)[1:]:
        if _in_grid(x, y) and grid[y][x] != "H":
            grid[y][x] = "*"


def _frame(grid: Grid) -> str:
    cells = {
        "H": COLOR_HOUSE + "H" + COLOR_RESET + " ",
        "*": COLOR_CURSOR + "*" + COLOR_RESET + " ",
    }
    return "".join("".join(cells.get(c, ". ") for c in row) + "\n" for row in grid)


def _show(out: TextIO, title: str, grid: Grid) -> None:
    clear_screen(out)
    out.write(title + "\n\n")
    out.write(_frame(grid))
    out.flush()


def render_grid(chunk: Chunk, cursor_x: int, cursor_y: int) -> str:
    """The placement screen: help text, houses, drawn power lines and the cursor."""
    grid = _house_grid(chunk)
    occupied = {(h.grid_x, h.grid_y) for h in chunk.houses()}
    for c in chunk.own_connections():
        if (c.start_x, c.start_y) in occupied and (c.end_x, c.end_y) in occupied:
            _draw_wire(grid, c.start_x, c.start_y, c.end_x, c.end_y)

    lines = []
    for y, row in enumerate(grid):
        parts = []
        for x, cell in enumerate(row):
            here = (x, y) == (cursor_x, cursor_y)
            parts.append(COLOR_CURSOR + "[" if here else " ")
            if cell == "H":
                parts.append(COLOR_HOUSE + "H" + COLOR_RESET)
            elif cell == "*":
                parts.append(COLOR_CURSOR + "*" + COLOR_RESET)
            elif here:
                parts.append(COLOR_CURSOR + "X" + COLOR_RESET)
            else:
                parts.append(COLOR_EMPTY + "." + COLOR_RESET)
            parts.append(COLOR_CURSOR + "]" + COLOR_RESET if here else " ")
        lines.append("".join(parts))
    return HEADER + "\n".join(lines) + "\n"


def format_house_details(house: House) -> str:
    """The detail block shown for an existing house."""
    return "\n".join(
        [
            "--- House Detail ---",
            f"Name: {house.name}",
            f"Owner: {house.owner}",
            f"Location: {house.location}",
            f"Electric Power: {house.electric_power} Watt",
            f"Internet Speed: {house.internet_speed} Mbps",
        ]
    )


def format_house_list(chunk: Chunk) -> str:
    """One summary line per house, in id order; empty when there are none."""
    return "\n".join(
        f"Name: {h.name} | Owner: {h.owner} | Location: {h.location} | "
        f"Electric: {h.electric_power}W | Internet: {h.internet_speed}Mbps"
        for h in chunk.houses()
    )


def animate_connect(
    chunk: Chunk, out: Optional[TextIO] = None, pause: Optional[Pause] = None
) -> list[tuple[House, House]]:
    """Connect the chunk's houses with a minimum spanning tree, drawing each line.

    Returns the connected pairs; an empty list when nothing could be connected.
    """
    out = out or sys.stdout
    pause = pause or time.sleep
    if not chunk.valid:
        out.write("Error: Could not find chunk for this house grid.\n")
        return []
    if len(chunk.houses()) < 2:
        out.write("Need at least 2 houses to connect!\n")
        return []

    grid = _house_grid(chunk)
    pairs = chunk.connect_houses()
    _show(out, "Starting to connect houses (Kruskal MST)...", grid)
    pause(1.0)

    for a, b in pairs:
        out.write(f"\nConnecting {a.name} to {b.name}...")
        out.flush()
        pause(0.8)
        path = [
            (x, y)
            for x, y in line_points(a.grid_x, a.grid_y, b.grid_x, b.grid_y)
            if _in_grid(x, y) and grid[y][x] != "H"
        ]
        for x, y in path:
            grid[y][x] = "*"
            _show(out, "Connecting houses with power lines...", grid)
            pause(0.2)
        pause(0.5)

    out.write("\nConnection complete! All houses are connected.\n")
    out.write("The connections will remain visible until disconnected.\n")
    out.write("Press any key to continue...\n")
    out.flush()
    return pairs


def animate_disconnect(
    chunk: Chunk, out: Optional[TextIO] = None, pause: Optional[Pause] = None
) -> int:
    """Remove the chunk's own power lines, newest first, tracing each one back.

    Returns how many connections were removed.
    """
    out = out or sys.stdout
    pause = pause or time.sleep
    if not chunk.valid:
        out.write("Error: Could not find chunk for this house grid.\n")
        return 0
    houses = chunk.houses()
    own = list(chunk.own_connections())
    if len(houses) < 2 or not own:
        out.write("No connections to remove in this city.\n")
        return 0

    grid = _house_grid(chunk)
    for c in own:
        _draw_wire(grid, c.start_x, c.start_y, c.end_x, c.end_y)
    _show(out, "Power grid fully connected. Beginning traceback disconnection...", grid)
    pause(1.0)

    def name_at(x: int, y: int) -> str:
        names = [h.name for h in houses if (h.grid_x, h.grid_y) == (x, y)]
        return names[-1] if names else "Unknown"

    removed = 0
    for c in reversed(own):
        first = name_at(c.start_x, c.start_y)
        second = name_at(c.end_x, c.end_y)
        out.write(f"\nDisconnecting line between {first} and {second}...\n")
        out.flush()
        pause(0.8)
        points = [
            (x, y)
            for x, y in line_points(c.start_x, c.start_y, c.end_x, c.end_y)[1:]
            if _in_grid(x, y) and grid[y][x] == "*"
        ]
        total = len(points)
        for step, (x, y) in enumerate(reversed(points), start=1):
            grid[y][x] = "."
            percent = int(100 * step / total)
            _show(
                out,
                f"Tracing back connection from {first} to {second}... ({percent}%)",
                grid,
            )
            pause(0.15)
        c.active = False
        removed += 1

    chunk.connections = [c for c in chunk.connections if c.active]
    pause(0.5)
    out.write("\nDisconnection traceback complete!\n")
    out.write("Press any key to continue...\n")
    out.flush()
    return removed


def _parse_int(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def placement_loop(
    chunk: Chunk,
    read_key: Optional[Callable[[], str]] = None,
    read_line: Optional[Callable[[str], str]] = None,
    out: Optional[TextIO] = None,
) -> None:
    """Run the interactive house placement screen for one chunk until Q."""
    if read_key is None:
        from taskdesk.terminal import getch as read_key
    if read_line is None:
        from taskdesk.terminal import read_line
    out = out or sys.stdout
    cursor_x = cursor_y = 0

    while True:
        clear_screen(out)
        out.write(render_grid(chunk, cursor_x, cursor_y))
        out.flush()

        key = read_key()
        lower = key.lower()
        if lower == "q":
            break
        if lower == "w":
            cursor_y = max(cursor_y - 1, 0)
        elif lower == "s":
            cursor_y = min(cursor_y + 1, GRID_ROWS - 1)
        elif lower == "a":
            cursor_x = max(cursor_x - 1, 0)
        elif lower == "d":
            cursor_x = min(cursor_x + 1, GRID_COLS - 1)
        elif lower == "l":
            out.write("\n--- All Houses in This City ---\n")
            listing = format_house_list(chunk)
            if listing:
                out.write(listing + "\n")
            out.write("Press any key to continue...\n")
            out.flush()
            read_key()
        elif lower == "c":
            animate_connect(chunk, out, time.sleep)
            read_key()
        elif lower == "x":
            animate_disconnect(chunk, out, time.sleep)
            read_key()
        elif key == ENTER:
            existing = chunk.house_at(cursor_x, cursor_y)
            if existing is not None:
                out.write("\n" + format_house_details(existing) + "\n")
                out.write("Press any key to continue...\n")
                out.flush()
                read_key()
                continue
            name = read_line("Enter house name: ")
            owner = read_line("Enter owner name: ")
            location = read_line("Enter location: ")
            electric = _parse_int(read_line("Enter electric power (Watt): "))
            internet = _parse_int(read_line("Enter internet speed (Mbps): "))
            chunk.add_house(
                House(
                    id=house_id(chunk.x, chunk.y, cursor_x, cursor_y),
                    name=name,
                    owner=owner,
                    grid_x=cursor_x,
                    grid_y=cursor_y,
                    electric_power=electric,
                    internet_speed=internet,
                    location=location,
                )
            )