import io
import random

import pytest

from taskdesk.city import City
from taskdesk.houses import DisjointSet
from taskdesk.world import (
    HEIGHT,
    MAX_COUNTRIES,
    WIDTH,
    Country,
    World,
    is_inside,
)

SQUARE = [(20, 5), (30, 5), (30, 15), (20, 15)]


def _square_world():
    world = World(random.Random(3))
    world.countries[0] = Country(vertices=list(SQUARE), center_x=25, center_y=10, valid=True)
    world.fill_polygon(SQUARE, "#")
    world.grid[10][19] = "+"
    world.player_x, world.player_y = 19, 10
    return world


def test_is_inside_square():
    assert is_inside(25, 10, SQUARE) is True
    assert is_inside(35, 10, SQUARE) is False
    assert is_inside(25, 20, SQUARE) is False


def test_is_inside_empty_polygon():
    assert is_inside(0, 0, []) is False


def test_clear_fills_with_ocean():
    world = World(random.Random(1))
    world.grid[0][0] = "#"
    world.clear()
    assert len(world.grid) == HEIGHT
    assert all(len(row) == WIDTH for row in world.grid)
    assert {cell for row in world.grid for cell in row} == {"."}


def test_fill_polygon_matches_is_inside():
    world = World(random.Random(1))
    world.fill_polygon(SQUARE, "#")
    for y in range(HEIGHT):
        for x in range(WIDTH):
            assert (world.grid[y][x] == "#") == is_inside(x, y, SQUARE)


def test_is_overlapping():
    world = World(random.Random(1))
    assert world.is_overlapping(SQUARE) is False
    world.fill_polygon(SQUARE, "#")
    assert world.is_overlapping(SQUARE) is True
    far = [(70, 5), (80, 5), (80, 15), (70, 15)]
    assert world.is_overlapping(far) is False


def test_distribute_centers_four_in_bounds():
    world = World(random.Random(5))
    centers = world.distribute_centers(4)
    assert len(centers) == 4
    for x, y in centers:
        assert 10 <= x <= WIDTH - 10
        assert 5 <= y <= HEIGHT - 5


@pytest.mark.parametrize("n", [1, 2, 3, 5])
def test_distribute_centers_grid(n):
    world = World(random.Random(n))
    centers = world.distribute_centers(n)
    assert len(centers) == n
    for x, y in centers:
        assert 0 <= x < WIDTH
        assert 0 <= y < HEIGHT


def test_distribute_centers_none():
    assert World(random.Random(1)).distribute_centers(0) == []


def test_smooth_polygon_shape():
    world = World(random.Random(9))
    for _ in range(20):
        vertices = world.smooth_polygon(50, 15)
        assert 6 <= len(vertices) <= 12
        for x, y in vertices:
            assert 0 <= x < WIDTH
            assert 0 <= y < HEIGHT
            assert abs(x - 50) <= 10 and abs(y - 15) <= 10


def test_generate_countries_counts_valid():
    world = World(random.Random(11))
    count = world.generate_countries(5)
    valid = [c for c in world.countries if c.valid]
    assert count == len(valid)
    assert 1 <= count <= MAX_COUNTRIES
    for country in valid:
        assert 6 <= len(country.vertices) <= 12
        assert 5 <= country.base_radius <= 8
        assert world.grid[country.center_y][country.center_x] == "#"


def test_generate_countries_too_many():
    with pytest.raises(ValueError):
        World(random.Random(1)).generate_countries(MAX_COUNTRIES + 1)


def test_create_edges_pairs_every_valid_country():
    world = World(random.Random(13))
    count = world.generate_countries(5)
    edges = world.create_edges(5)
    assert len(edges) == count * (count - 1) // 2
    for u, v, weight in edges:
        assert u < v
        assert world.countries[u].valid and world.countries[v].valid
        assert weight >= 0


def test_draw_double_line_short_segment():
    world = World(random.Random(1))
    world.draw_double_line(5, 5, 6, 5)
    assert world.grid[5][5] == "+"
    assert world.grid[5][6] == "+"
    assert world.grid[6][6] == "="
    assert world.grid[6][7] == "="


def test_draw_double_line_same_point_does_nothing():
    world = World(random.Random(1))
    world.draw_double_line(5, 5, 5, 5)
    assert {cell for row in world.grid for cell in row} == {"."}


def test_draw_double_line_keeps_land():
    world = World(random.Random(1))
    world.fill_polygon(SQUARE, "#")
    world.draw_double_line(10, 10, 40, 10)
    assert world.grid[10][25] == "#"
    assert world.grid[10][10] == "+"
    assert world.grid[10][40] == "+"


def test_draw_double_line_reports_frame():
    world = World(random.Random(1))
    frames = []
    world.on_frame = frames.append
    world.draw_double_line(1, 1, 9, 3)
    assert len(frames) == 1
    assert "\033[33m+\033[0m" in frames[0]


def test_connect_countries_spans_valid():
    world = World(random.Random(17))
    count = world.generate_countries(5)
    world.create_edges(5)
    pairs = world.connect_countries(5)
    assert len(pairs) == max(count - 1, 0)
    sets = DisjointSet(MAX_COUNTRIES)
    for u, v in pairs:
        assert sets.union(u, v)
    roots = {sets.find(i) for i, c in enumerate(world.countries) if c.valid}
    assert len(roots) == 1


def test_connect_countries_single_country():
    world = _square_world()
    world.create_edges(5)
    assert world.connect_countries(5) == []


def test_reset_player_at_first_center():
    world = _square_world()
    world.reset_player(5)
    assert (world.player_x, world.player_y) == (25, 10)


def test_reset_player_falls_back_to_land():
    world = World(random.Random(1))
    world.grid[7][42] = "#"
    world.reset_player(5)
    assert (world.player_x, world.player_y) == (42, 7)


def test_country_at():
    world = _square_world()
    assert world.country_at(25, 10, 5) == 0
    assert world.country_at(19, 10, 5) is None


def test_move_player_blocked_by_ocean():
    world = _square_world()
    assert world.move_player("w", 5) is None
    assert (world.player_x, world.player_y) == (19, 10)


def test_move_player_enters_country_once():
    world = _square_world()
    assert world.move_player("d", 5) == 0
    assert (world.player_x, world.player_y) == (20, 10)
    assert world.move_player("d", 5) is None
    assert (world.player_x, world.player_y) == (21, 10)


def test_move_player_other_key_inside_country_enters():
    world = _square_world()
    world.player_x, world.player_y = 25, 10
    assert world.move_player("x", 5) == 0
    assert (world.player_x, world.player_y) == (25, 10)


def test_initialize_generates_cities():
    world = World(random.Random(7))
    count = world.initialize(5)
    valid = [c for c in world.countries if c.valid]
    assert count == len(valid)
    assert world.show_player is True
    first = valid[0]
    assert (world.player_x, world.player_y) == (first.center_x, first.center_y)
    for country in valid:
        assert country.city_generated is True
        assert isinstance(country.city, City)
        assert 12 <= country.city_num_chunks <= 14


def test_render_shows_player():
    world = _square_world()
    world.show_player = True
    text = world.render()
    lines = text.rstrip("\n").split("\n")
    assert len(lines) == HEIGHT
    assert text.count("\033[31mP\033[0m") == 1
    assert "\033[32m#\033[0m" in text


def test_explore_quit_immediately():
    world = _square_world()
    out = io.StringIO()
    world.explore(5, iter(["q"]).__next__, lambda prompt="": "", out)
    assert "Explore the world!" in out.getvalue()
    assert (world.player_x, world.player_y) == (19, 10)


def test_explore_enters_city_and_returns():
    world = _square_world()
    city = City(random.Random(2))
    city.generate()
    world.countries[0].city = city
    out = io.StringIO()
    keys = iter(["d", "k", "q", "q"])
    world.explore(5, keys.__next__, lambda prompt="": "", out)
    text = out.getvalue()
    assert "Entering unnamed country..." in text
    assert "Welcome to the city!" in text
    assert "Returning to world map..." in text
    assert world.current_country == 0
    assert (world.player_x, world.player_y) == (20, 10)