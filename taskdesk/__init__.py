"""Terminal task desk with a generated world, cities and house power grids."""

__version__ = "0.1.0"

__all__ = [
    "accounts",
    "avl",
    "city",
    "game",
    "house_view",
    "houses",
    "menus",
    "terminal",
    "world",
]