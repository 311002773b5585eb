"""The task console: registration, login and the manager and worker menus."""

from __future__ import annotations

import random
import re
import sys
from os import PathLike
from typing import Callable, Optional, TextIO, Union

from taskdesk import terminal
from taskdesk.accounts import (
    Assignment,
    AssignmentBook,
    DuplicateAssignmentError,
    DuplicateUsernameError,
    Role,
    Status,
    User,
    UserDirectory,
    format_assignment,
    generate_random_id,
)
from taskdesk.game import ASSIGNMENTS_FILE, AssignmentGame
from taskdesk.terminal import BACKSPACE, ENTER, ESCAPE
from taskdesk.world import World

CREDENTIALS_FILE = "credentials.txt"
MAX_FIELD = 49

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_HIDDEN_PROMPT = "Enter password: "

PathType = Union[str, "PathLike[str]"]

MANAGER_MENU = (
    "\n===== Manager Menu =====\n"
    "1. Assign Task to Worker\n"
    "2. View All Tasks\n"
    "3. View All Users\n"
    "4. View Workers\n"
    "5. Delete Task\n"
    "6. Save All Data\n"
    "0. Logout (or press q)\n"
)

WORKER_MENU = (
    "\n===== Worker Menu =====\n"
    "1. Start Assignment\n"
    "2. Update Task Status\n"
    "3. View My Tasks\n"
    "0. Logout\n"
)


def _atoi(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def _is_cancel(text: str) -> bool:
    return text in ("q", "Q")


def is_valid_password(password: str) -> bool:
    """A password needs at least one ASCII capital letter and one digit."""
    return any("A" <= c <= "Z" for c in password) and any("0" <= c <= "9" for c in password)


def read_password(
    prompt: str,
    read_key: Optional[Callable[[], str]] = None,
    out: Optional[TextIO] = None,
) -> str:
    """Read a masked password key by key until it satisfies the password rule."""
    read_key = read_key or terminal.getch
    out = out or sys.stdout
    while True:
        out.write(prompt)
        out.flush()
        chars: list[str] = []
        while True:
            key = read_key()
            if key == ENTER:
                break
            if key == BACKSPACE:
                if chars:
                    chars.pop()
                    out.write("\b \b")
            elif key == ESCAPE:
                chars = []
                break
            elif len(chars) < MAX_FIELD:
                chars.append(key)
                out.write("*")
            out.flush()
        out.write("\n")
        entered = "".join(chars)
        if is_valid_password(entered):
            return entered
        out.write(
            "Password must contain at least one uppercase letter and one number. "
            "Please try again.\n"
        )


def read_status(
    read_line: Optional[Callable[[str], str]] = None,
    out: Optional[TextIO] = None,
) -> Status:
    """Ask until one of the three exact status names is entered."""
    out = out or sys.stdout
    read_line = read_line or (lambda prompt="": terminal.read_line(prompt, out))
    valid = {s.value: s for s in Status}
    while True:
        text = read_line("Enter new status (pending, in-progress, completed): ")
        if text in valid:
            return valid[text]
        out.write(
            "Invalid status. Must be exactly 'pending', 'in-progress', or 'completed'.\n"
        )


class TaskConsole:
    """The interactive front end over the user directory and the assignment book."""

    def __init__(
        self,
        users: Optional[UserDirectory] = None,
        book: Optional[AssignmentBook] = None,
        read_line: Optional[Callable[[str], str]] = None,
        read_key: Optional[Callable[[], str]] = None,
        out: Optional[TextIO] = None,
        rng: Optional[random.Random] = None,
        users_path: PathType = CREDENTIALS_FILE,
        assignments_path: PathType = ASSIGNMENTS_FILE,
    ) -> None:
        self.users = users if users is not None else UserDirectory()
        self.book = book if book is not None else AssignmentBook()
        self.out = out or sys.stdout
        self.read_line = read_line or (lambda prompt="": terminal.read_line(prompt, self.out))
        self.read_key = read_key or terminal.getch
        self.rng = rng or random.Random()
        self.users_path = users_path
        self.assignments_path = assignments_path

    def _write(self, text: str) -> None:
        self.out.write(text)
        self.out.flush()

    def _clear(self) -> None:
        terminal.clear_screen(self.out)

    def _save_users(self) -> None:
        try:
            self.users.save(self.users_path)
        except OSError:
            self._write(f"Error opening file for writing: {self.users_path}\n")
            return
        self._write(f"User data saved to {self.users_path} successfully!\n")

    def _save_assignments(self) -> None:
        try:
            self.book.save(self.assignments_path)
        except OSError:
            self._write(f"Error opening file for writing: {self.assignments_path}\n")
            return
        self._write(f"Assignment data saved to {self.assignments_path} successfully!\n")

    def _show_all_assignments(self) -> None:
        if not len(self.book):
            self._write("No assignments found!\n")
            return
        self._write("\n--- All Assignments ---\n")
        for assignment in self.book:
            self._write(format_assignment(assignment) + "\n")

    def _show_user_assignments(self, user_id: int) -> None:
        if not len(self.book):
            self._write("No assignments found!\n")
            return
        self._write(f"\n--- Assignments for User ID: {user_id} ---\n")
        for assignment in self.book.for_user(user_id):
            self._write(format_assignment(assignment) + "\n")

    def register(self) -> Optional[User]:
        """Register a new worker; return it, or None if the username is taken."""
        self._write("\n===== Registration =====\n")
        while True:
            username = self.read_line("Enter username: ")[:MAX_FIELD]
            if username:
                break
            self._write("Username cannot be empty. Please try again.\n")
        entered = read_password(_HIDDEN_PROMPT, self.read_key, self.out)

        if self.users.get(username) is not None:
            self._write("Username already exists. Please choose another.\n")
            return None

        user = User(generate_random_id(self.rng), username, entered, Role.WORKER)
        try:
            self.users.add(user)
        except DuplicateUsernameError:
            self._write("Username already exists. Please choose another.\n")
            return None
        self._write(f"Registration successful! Your User ID is: {user.user_id}\n")
        self._write("You have been registered as a worker.\n")
        return user

    def login(self) -> Optional[User]:
        """Check credentials and run the menu for the user's role.

        Returns the logged-in user, or None when the credentials are wrong.
        """
        self._write("\n===== Login =====\n")
        username = self.read_line("Enter username: ")[:MAX_FIELD]
        entered = read_password(_HIDDEN_PROMPT, self.read_key, self.out)
        user = self.users.get(username)
        if user is None or user.password != entered:
            self._write("Invalid username or password.\n")
            return None
        self._write("Login successful!\n")
        if user.role is Role.MANAGER:
            self.manager_menu(user.user_id)
        else:
            self.worker_menu(user.user_id)
        return user

    def manager_menu(self, manager_id: int) -> None:
        """Run the manager menu until logout."""
        while True:
            self._write(MANAGER_MENU)
            text = self.read_line("Enter your choice: ")
            if len(text) == 1 and text in "qQ0":
                self._write("Logging out...\n")
                return
            if not (len(text) == 1 and "1" <= text <= "6"):
                self._write("Invalid choice. Please try again.\n")
                continue

            choice = int(text)
            if choice == 1:
                self._clear()
                self.assign_task()
                self._save_assignments()
            elif choice == 2:
                self._clear()
                self._show_all_assignments()
            elif choice == 3:
                self._clear()
                self.view_all_users()
            elif choice == 4:
                self._clear()
                self.view_workers()
            elif choice == 5:
                self._clear()
                self._write("\n--- All Available Assignments ---\n")
                self._show_all_assignments()
                answer = self.read_line("Enter Assignment ID to delete (or 'q' to cancel): ")
                if _is_cancel(answer):
                    self._write("Operation cancelled.\n")
                    self._clear()
                    continue
                self.book.delete(_atoi(answer))
                self._write("Assignment deleted successfully (if it existed).\n")
                self._save_assignments()
            elif choice == 6:
                self.save_all()

    def worker_menu(self, worker_id: int) -> None:
        """Run the worker menu until logout."""
        while True:
            self._write(WORKER_MENU)
            text = self.read_line("Enter your choice: ")
            match = _LEADING_INT.match(text)
            choice = int(match.group(1)) if match else -1
            if choice == 1:
                self._clear()
                game = AssignmentGame(
                    self.book,
                    worker_id,
                    World(self.rng),
                    self.read_key,
                    self.read_line,
                    self.out,
                    self.assignments_path,
                )
                game.run()
            elif choice == 2:
                self._clear()
                self.update_task_status(worker_id)
                self._save_assignments()
            elif choice == 3:
                self._clear()
                self._show_user_assignments(worker_id)
            elif choice == 0:
                self._clear()
                self._write("Logging out...\n")
                return
            else:
                self._write("Invalid choice. Please try again.\n")

    def assign_task(self) -> Optional[Assignment]:
        """Create an assignment for a worker; None when cancelled or invalid."""
        self._write("\n===== Assign Task =====\n")
        self._write("Press 'q' at any prompt to cancel this operation.\n")
        self.view_workers()

        answer = self.read_line("Enter Worker's User ID: ")
        if _is_cancel(answer):
            self._write("Operation cancelled.\n")
            return None
        worker_id = _atoi(answer)
        worker = self.users.get_by_id(worker_id)
        if worker is None or worker.role is not Role.WORKER:
            self._write("Invalid worker ID or user is not a worker.\n")
            return None

        title = self.read_line("Enter task title: ")[:99]
        if _is_cancel(title):
            self._write("Operation cancelled.\n")
            return None
        description = self.read_line("Enter task description: ")[:499]
        if _is_cancel(description):
            self._write("Operation cancelled.\n")
            return None

        assignment_id = generate_random_id(self.rng)
        try:
            assignment = self.book.create(assignment_id, worker_id, title, description)
        except DuplicateAssignmentError:
            self._write("Assignment ID already exists!\n")
            return None
        self._write(f"Task assigned successfully! Assignment ID: {assignment_id}\n")
        return assignment

    def update_task_status(self, worker_id: int) -> Optional[Assignment]:
        """Change the status of one of the worker's own assignments."""
        self._show_user_assignments(worker_id)
        answer = self.read_line("\nEnter Assignment ID to update: ")
        match = _LEADING_INT.match(answer)
        assignment = self.book.get(int(match.group(1))) if match else None
        if assignment is None or assignment.user_id != worker_id:
            self._write(
                "Invalid assignment ID or you don't have permission to update this task.\n"
            )
            return None
        self._write(f"Current status: {assignment.status.value}\n")
        status = read_status(self.read_line, self.out)
        updated = self.book.update_status(assignment.assignment_id, status)
        self._write("Assignment status updated successfully!\n")
        self._write("Task status updated successfully!\n")
        return updated

    def view_all_users(self) -> None:
        """List every user in username order."""
        if not len(self.users):
            self._write("No users found!\n")
            return
        self._write("\n--- All Users ---\n")
        for user in self.users:
            self._write(
                f"User ID: {user.user_id}, Username: {user.username}, Role: {user.role.value}\n"
            )

    def view_workers(self) -> None:
        """List the users whose role is worker."""
        if not len(self.users):
            self._write("No users found!\n")
            return
        self._write("\n--- All Workers ---\n")
        for user in self.users.workers():
            self._write(f"Worker ID: {user.user_id}, Username: {user.username}\n")

    def save_all(self) -> None:
        """Write users and assignments to their files."""
        self._save_users()
        self._save_assignments()
        self._write("All data has been saved successfully!\n")