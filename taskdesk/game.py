"""The assignment game: travel the world map while managing your own tasks."""

from __future__ import annotations

import re
import sys
from os import PathLike
from typing import Callable, Optional, TextIO, Union

from taskdesk import terminal
from taskdesk.accounts import Assignment, AssignmentBook
from taskdesk.city import City, sandbox
from taskdesk.terminal import ESCAPE
from taskdesk.world import World

ASSIGNMENTS_FILE = "assignments.txt"
NUM_COUNTRIES = 5

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

PathType = Union[str, "PathLike[str]"]


def _atoi(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


class AssignmentGame:
    """A worker's session on the world map with their assignments listed below it."""

    def __init__(
        self,
        book: AssignmentBook,
        worker_id: int,
        world: Optional[World] = None,
        read_key: Optional[Callable[[], str]] = None,
        read_line: Optional[Callable[[str], str]] = None,
        out: Optional[TextIO] = None,
        assignments_path: PathType = ASSIGNMENTS_FILE,
    ) -> None:
        self.book = book
        self.worker_id = worker_id
        self.world = world or World()
        self.out = out or sys.stdout
        self.read_key = read_key or terminal.getch
        self.read_line = read_line or (lambda prompt="": terminal.read_line(prompt, self.out))
        self.assignments_path = assignments_path
        self.assignments: list[Assignment] = book.for_user(worker_id)
        self.navigating = True

    def render(self) -> str:
        """The world map followed by the worker's assignments."""
        lines = [
            f"ID: {a.assignment_id} | Title: {a.title} | Status: {a.status.value}"
            for a in self.assignments
        ]
        listing = "".join(line + "\n" for line in lines)
        return (
            "\033[H"
            + self.world.render()
            + "\n\033[1m--- YOUR ASSIGNMENTS ---\033[0m\n"
            + listing
        )

    def _enter_country(self, index: int) -> None:
        country = self.world.countries[index]
        self.out.write(f"\nEntering {country.name or 'unnamed'} country...\n")
        self.out.write("Press any key to explore the city...")
        self.out.flush()
        self.read_key()
        terminal.clear_screen(self.out)
        self.world.current_country = index
        if country.city is None:
            city = City(self.world.rng)
            city.generate()
            country.city = city
            country.city_generated = True
        self.out.write(country.city.render())
        sandbox(country.city, self.read_key, self.read_line, self.out)
        terminal.clear_screen(self.out)
        self.out.write("Returning to world map...\n")
        self.out.write(self.world.render())
        self.out.flush()

    def navigation_step(self) -> bool:
        """Handle one key on the map; return False when the player quits.

        Escape switches to status-update mode.
        """
        self.out.write("\n\033[1m--- CONTROLS ---\033[0m\n")
        self.out.write(
            "WASD - Move player | ESC - Exit navigation mode | Q - Return to menu\n"
        )
        self.out.write("\nAction: ")
        self.out.flush()
        key = self.read_key()
        if key == "q":
            return False
        if key == ESCAPE:
            self.navigating = False
        elif key in ("w", "a", "s", "d"):
            entered = self.world.move_player(key, NUM_COUNTRIES)
            if entered is not None:
                self._enter_country(entered)
        return True

    def update_step(self) -> None:
        """Read an assignment id and update its status; Escape returns to the map."""
        self.out.write("\n\033[1m--- CONTROLS ---\033[0m\n")
        self.out.write(
            "Enter assignment ID to update status, "
            "or press ESC to return to navigation mode\n"
        )
        self.out.write("\nEnter assignment ID (or press ESC to go back): ")
        self.out.flush()
        key = self.read_key()
        if key == ESCAPE:
            terminal.clear_screen(self.out)
            self.navigating = True
            return
        self.out.write(key)
        self.out.flush()
        rest = self.read_line("")
        if self.process_update(_atoi(key + rest)):
            self.navigating = True

    def process_update(self, assignment_id: int) -> bool:
        """Ask for a new status of one of the worker's assignments and save it.

        Returns False when the id is not among the worker's assignments.
        """
        from taskdesk.menus import read_status

        position = next(
            (i for i, a in enumerate(self.assignments) if a.assignment_id == assignment_id),
            None,
        )
        if position is None:
            self.read_line("Invalid assignment ID. Press Enter to continue...")
            return False

        current = self.assignments[position]
        self.out.write(f"Current status: {current.status.value}\n")
        status = read_status(self.read_line, self.out)
        self.assignments[position] = self.book.update_status(assignment_id, status)
        self.out.write("Assignment status updated successfully!\n")
        self.out.write(f"Status updated to: {status.value}\n")
        self.read_line("Press Enter to continue...")
        try:
            self.book.save(self.assignments_path)
        except OSError:
            self.out.write(f"Error opening file for writing: {self.assignments_path}\n")
        terminal.clear_screen(self.out)
        return True

    def run(self) -> None:
        """Build the world and play until the worker returns to the menu."""
        terminal.clear_screen(self.out)
        if self.world.initialize(NUM_COUNTRIES) <= 0:
            self.out.write("Failed to generate countries. Please try again.\n")
            self.out.flush()
            return

        self.assignments = self.book.for_user(self.worker_id)
        if not self.assignments:
            self.out.write("You don't have any assignments yet.\n")
            self.read_line("Press Enter to return...")
            return

        self.navigating = True
        running = True
        while running:
            self.out.write(self.render())
            if self.navigating:
                running = self.navigation_step()
            else:
                self.update_step()

        self.out.write("\n\033[0mReturning to work menu...\n")
        self.out.flush()