"""A self-balancing binary search tree keyed by a function of its items."""

from __future__ import annotations

import copy as _copy
from typing import Any, Callable, Generic, Iterator, Optional, TypeVar

T = TypeVar("T")


class _Node(Generic[T]):
    __slots__ = ("item", "left", "right", "height")

    def __init__(self, item: T) -> None:
        self.item = item
        self.left: Optional[_Node[T]] = None
        self.right: Optional[_Node[T]] = None
        self.height = 1


def _height(node: Optional[_Node]) -> int:
    return node.height if node else 0


def _balance(node: Optional[_Node]) -> int:
    return _height(node.left) - _height(node.right) if node else 0


def _update(node: _Node) -> None:
    node.height = 1 + max(_height(node.left), _height(node.right))


def _rotate_right(y: _Node) -> _Node:
    x = y.left
    y.left = x.right
    x.right = y
    _update(y)
    _update(x)
    return x


def _rotate_left(x: _Node) -> _Node:
    y = x.right
    x.right = y.left
    y.left = x
    _update(x)
    _update(y)
    return y


def _rebalance(node: _Node) -> _Node:
    _update(node)
    balance = _balance(node)
    if balance > 1:
        if _balance(node.left) < 0:
            node.left = _rotate_left(node.left)
        return _rotate_right(node)
    if balance < -1:
        if _balance(node.right) > 0:
            node.right = _rotate_right(node.right)
        return _rotate_left(node)
    return node


class AVLTree(Generic[T]):
    """An AVL tree holding items ordered by ``key(item)``; keys are unique."""

    def __init__(self, key: Callable[[T], Any]) -> None:
        self._key = key
        self._root: Optional[_Node[T]] = None
        self._size = 0

    def insert(self, item: T) -> None:
        """Add an item; raise KeyError if its key is already present."""
        self._root = self._insert(self._root, item, self._key(item))
        self._size += 1

    def _insert(self, node: Optional[_Node[T]], item: T, key: Any) -> _Node[T]:
        if node is None:
            return _Node(item)
        node_key = self._key(node.item)
        if key < node_key:
            node.left = self._insert(node.left, item, key)
        elif key > node_key:
            node.right = self._insert(node.right, item, key)
        else:
            raise KeyError(key)
        return _rebalance(node)

    def find(self, key: Any) -> Optional[T]:
        """Return the item with this key, or None."""
        node = self._root
        while node is not None:
            node_key = self._key(node.item)
            if key == node_key:
                return node.item
            node = node.left if key < node_key else node.right
        return None

    def remove(self, key: Any) -> T:
        """Remove and return the item with this key; raise KeyError if absent."""
        removed: list[T] = []
        self._root = self._remove(self._root, key, removed)
        if not removed:
            raise KeyError(key)
        self._size -= 1
        return removed[0]

    def _remove(self, node: Optional[_Node[T]], key: Any, removed: list) -> Optional[_Node[T]]:
        if node is None:
            return None
        node_key = self._key(node.item)
        if key < node_key:
            node.left = self._remove(node.left, key, removed)
        elif key > node_key:
            node.right = self._remove(node.right, key, removed)
        else:
            removed.append(node.item)
            if node.left is None or node.right is None:
                return node.left or node.right
            successor = node.right
            while successor.left is not None:
                successor = successor.left
            node.item = successor.item
            node.right = self._remove(node.right, self._key(successor.item), [])
        return _rebalance(node)

    def copy(self) -> AVLTree[T]:
        """Return an independent tree with the same shape and copied items."""
        clone: AVLTree[T] = AVLTree(self._key)
        clone._root = self._copy_node(self._root)
        clone._size = self._size
        return clone

    @classmethod
    def _copy_node(cls, node: Optional[_Node[T]]) -> Optional[_Node[T]]:
        if node is None:
            return None
        new = _Node(_copy.copy(node.item))
        new.left = cls._copy_node(node.left)
        new.right = cls._copy_node(node.right)
        new.height = node.height
        return new

    def height(self) -> int:
        """Height of the tree; 0 when empty."""
        return _height(self._root)

    def __iter__(self) -> Iterator[T]:
        stack: list[_Node[T]] = []
        node = self._root
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node.item
            node = node.right

    def __len__(self) -> int:
        return self._size

    def __contains__(self, key: Any) -> bool:
        return self.find(key) is not None