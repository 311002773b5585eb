import math
import random
from dataclasses import dataclass

import pytest

from taskdesk.avl import AVLTree


@dataclass
class Item:
    key: int
    label: str = ""


def make_tree(keys):
    tree = AVLTree(key=lambda item: item.key)
    for k in keys:
        tree.insert(Item(k, f"item{k}"))
    return tree


def avl_bound(n):
    return 1.45 * math.log2(n + 2)


def test_sequential_insert_gives_perfect_tree():
    tree = make_tree(range(1, 8))
    assert tree.height() == 3
    assert [i.key for i in tree] == list(range(1, 8))


def test_empty_tree():
    tree = make_tree([])
    assert tree.height() == 0
    assert len(tree) == 0
    assert list(tree) == []
    assert tree.find(1) is None


def test_large_sequential_insert_stays_balanced():
    tree = make_tree(range(1000))
    assert len(tree) == 1000
    assert tree.height() <= avl_bound(1000)


def test_random_insert_sorted_iteration():
    rng = random.Random(7)
    keys = rng.sample(range(10000), 500)
    tree = make_tree(keys)
    assert [i.key for i in tree] == sorted(keys)
    assert tree.height() <= avl_bound(500)


def test_duplicate_insert_raises_and_keeps_original():
    tree = make_tree([5, 3, 8])
    with pytest.raises(KeyError):
        tree.insert(Item(3, "other"))
    assert len(tree) == 3
    assert tree.find(3).label == "item3"


def test_find_and_contains():
    tree = make_tree([10, 20, 30])
    assert tree.find(20).key == 20
    assert 30 in tree
    assert 25 not in tree


def test_remove_returns_item_and_rebalances():
    rng = random.Random(3)
    keys = rng.sample(range(5000), 400)
    tree = make_tree(keys)
    to_remove = keys[:250]
    for k in to_remove:
        assert tree.remove(k).key == k
    remaining = sorted(set(keys) - set(to_remove))
    assert [i.key for i in tree] == remaining
    assert len(tree) == len(remaining)
    assert tree.height() <= avl_bound(len(remaining))


def test_remove_node_with_two_children():
    tree = make_tree([50, 30, 70, 20, 40, 60, 80])
    tree.remove(50)
    assert [i.key for i in tree] == [20, 30, 40, 60, 70, 80]
    assert 50 not in tree


def test_remove_missing_raises():
    tree = make_tree([1, 2])
    with pytest.raises(KeyError):
        tree.remove(9)
    assert len(tree) == 2


def test_remove_all_empties_tree():
    tree = make_tree(range(20))
    for k in range(20):
        tree.remove(k)
    assert len(tree) == 0
    assert tree.height() == 0


def test_copy_is_independent():
    tree = make_tree([4, 2, 6])
    clone = tree.copy()
    clone.insert(Item(9))
    clone.find(2).label = "changed"
    assert [i.key for i in tree] == [2, 4, 6]
    assert tree.find(2).label == "item2"
    assert [i.key for i in clone] == [2, 4, 6, 9]
    assert clone.height() == tree.height() + 1 or clone.height() == tree.height()


def test_string_keys():
    tree = AVLTree(key=str.lower)
    for word in ["pear", "Apple", "fig"]:
        tree.insert(word)
    assert list(tree) == ["Apple", "fig", "pear"]
    assert tree.find("apple") == "Apple"