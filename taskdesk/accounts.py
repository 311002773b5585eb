"""Users and assignments, held in balanced trees and stored as text files."""

from __future__ import annotations

import random
import re
from dataclasses import dataclass
from enum import Enum
from operator import attrgetter
from os import PathLike
from typing import Iterator, Optional, Union

from taskdesk.avl import AVLTree

PathType = Union[str, "PathLike[str]"]

_USER_LINE = re.compile(r"\s*([+-]?\d+),([^,]+),([^,]+),([^,\n]+)")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class Role(str, Enum):
    WORKER = "worker"
    MANAGER = "manager"


class Status(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


@dataclass
class User:
    user_id: int
    username: str
    password: str
    role: Role = Role.WORKER


@dataclass
class Assignment:
    assignment_id: int
    user_id: int
    title: str
    description: str
    status: Status = Status.PENDING


class DuplicateUsernameError(ValueError):
    """Raised when a username is already taken."""


class DuplicateAssignmentError(ValueError):
    """Raised when an assignment id is already in use."""


class AssignmentNotFoundError(LookupError):
    """Raised when no assignment has the given id."""


def generate_random_id(rng: Optional[random.Random] = None) -> int:
    """Return a random four-digit id in 1000..9999."""
    return 1000 + (rng or random).randrange(9000)


def format_assignment(assignment: Assignment) -> str:
    """Render an assignment as a framed block of lines."""
    rule = "=" * 34
    return "\n".join(
        [
            rule,
            f"Assignment ID: {assignment.assignment_id}",
            f"Assigned to User ID: {assignment.user_id}",
            f"Title: {assignment.title}",
            f"Description: {assignment.description}",
            f"Status: {assignment.status.value}",
            rule,
        ]
    )


def _atoi(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


class UserDirectory:
    """All registered users, ordered by username."""

    def __init__(self) -> None:
        self._tree: AVLTree[User] = AVLTree(attrgetter("username"))

    def add(self, user: User) -> None:
        try:
            self._tree.insert(user)
        except KeyError:
            raise DuplicateUsernameError(f"Username already exists: {user.username}") from None

    def get(self, username: str) -> Optional[User]:
        return self._tree.find(username)

    def get_by_id(self, user_id: int) -> Optional[User]:
        return next((u for u in self._tree if u.user_id == user_id), None)

    def workers(self) -> list[User]:
        return [u for u in self._tree if u.role is Role.WORKER]

    def __iter__(self) -> Iterator[User]:
        return iter(self._tree)

    def __len__(self) -> int:
        return len(self._tree)

    def save(self, path: PathType) -> None:
        """Write users as ``id,username,password,role`` lines in username order."""
        with open(path, "w", encoding="utf-8") as fh:
            for u in self._tree:
                fh.write(f"{u.user_id},{u.username},{u.password},{u.role.value}\n")

    def load(self, path: PathType) -> None:
        """Replace the contents with the users stored at ``path``.

        Malformed lines and repeated usernames are skipped.
        """
        tree: AVLTree[User] = AVLTree(attrgetter("username"))
        with open(path, encoding="utf-8") as fh:
            for line in fh:
                match = _USER_LINE.match(line.rstrip("\n"))
                if not match:
                    continue
                user_id, username, secret, role_text = match.groups()
                try:
                    role = Role(role_text)
                except ValueError:
                    continue
                try:
                    tree.insert(User(int(user_id), username, secret, role))
                except KeyError:
                    continue
        self._tree = tree


class AssignmentBook:
    """All assignments, ordered by assignment id."""

    def __init__(self) -> None:
        self._tree: AVLTree[Assignment] = AVLTree(attrgetter("assignment_id"))

    def create(self, assignment_id: int, user_id: int, title: str, description: str) -> Assignment:
        assignment = Assignment(assignment_id, user_id, title, description)
        try:
            self._tree.insert(assignment)
        except KeyError:
            raise DuplicateAssignmentError(
                f"Assignment ID already exists: {assignment_id}"
            ) from None
        return assignment

    def get(self, assignment_id: int) -> Optional[Assignment]:
        return self._tree.find(assignment_id)

    def delete(self, assignment_id: int) -> bool:
        """Remove an assignment; return whether it existed."""
        try:
            self._tree.remove(assignment_id)
        except KeyError:
            return False
        return True

    def update_status(self, assignment_id: int, status: Union[Status, str]) -> Assignment:
        new_status = Status(status)
        assignment = self._tree.find(assignment_id)
        if assignment is None:
            raise AssignmentNotFoundError(f"Assignment not found: {assignment_id}")
        assignment.status = new_status
        return assignment

    def for_user(self, user_id: int) -> list[Assignment]:
        return [a for a in self._tree if a.user_id == user_id]

    def __iter__(self) -> Iterator[Assignment]:
        return iter(self._tree)

    def __len__(self) -> int:
        return len(self._tree)

    def save(self, path: PathType) -> None:
        """Write assignments as ``id,user,title,description,status`` lines."""
        with open(path, "w", encoding="utf-8") as fh:
            for a in self._tree:
                fh.write(
                    f"{a.assignment_id},{a.user_id},{a.title},"
                    f"{a.description},{a.status.value}\n"
                )

    def load(self, path: PathType) -> None:
        """Replace the contents with the assignments stored at ``path``.

        Empty fields are skipped as separators; lines with fewer than five
        fields or an unknown status are ignored.
        """
        tree: AVLTree[Assignment] = AVLTree(attrgetter("assignment_id"))
        with open(path, encoding="utf-8") as fh:
            for line in fh:
                fields = [f for f in line.rstrip("\n").split(",") if f]
                if len(fields) < 5:
                    continue
                id_text, user_text, title, description, status_text = fields[:5]
                try:
                    status = Status(status_text)
                except ValueError:
                    continue
                assignment_id = _atoi(id_text)
                try:
                    tree.insert(Assignment(assignment_id, _atoi(user_text), title, description))
                except KeyError:
                    pass
                if status is not Status.PENDING:
                    tree.find(assignment_id).status = status
        self._tree = tree