import pytest

from taskdesk.houses import (
    Chunk,
    Connection,
    DisjointSet,
    House,
    house_id,
    kruskal_pairs,
    line_points,
)


def _chunk(x=10, y=12):
    return Chunk(x=x, y=y, width=4, height=7, valid=True)


def _house(chunk, gx, gy, name="home"):
    return House(house_id(chunk.x, chunk.y, gx, gy), name, "owner", gx, gy, 100, 50, "here")


def test_house_id_layout():
    assert house_id(3, 2, 4, 5) == 20354


def test_house_id_distinct_per_cell():
    ids = {house_id(5, 6, gx, gy) for gx in range(10) for gy in range(10)}
    assert len(ids) == 100


@pytest.mark.parametrize(
    "start,end",
    [((0, 0), (5, 3)), ((7, 2), (1, 9)), ((4, 4), (4, 0)), ((0, 0), (0, 0))],
)
def test_line_points_endpoints_and_adjacency(start, end):
    points = line_points(*start, *end)
    assert points[0] == start
    assert points[-1] == end
    for (ax, ay), (bx, by) in zip(points, points[1:]):
        assert max(abs(ax - bx), abs(ay - by)) == 1


def test_line_points_horizontal():
    assert line_points(0, 0, 3, 0) == [(0, 0), (1, 0), (2, 0), (3, 0)]


def test_disjoint_set_union_and_find():
    ds = DisjointSet(4)
    assert ds.union(0, 1) is True
    assert ds.union(1, 0) is False
    assert ds.find(0) == ds.find(1)
    assert ds.find(2) != ds.find(0)
    assert ds.union(2, 3) is True
    assert ds.union(1, 3) is True
    assert len({ds.find(i) for i in range(4)}) == 1


def test_kruskal_pairs_spans_all_points():
    points = [(0, 0), (3, 4), (10, 1), (6, 6), (2, 9)]
    pairs = kruskal_pairs(points)
    assert len(pairs) == len(points) - 1
    ds = DisjointSet(len(points))
    for u, v in pairs:
        assert ds.union(u, v)
    assert len({ds.find(i) for i in range(len(points))}) == 1


def test_kruskal_pairs_collinear_picks_short_edges():
    assert set(kruskal_pairs([(0, 0), (1, 0), (5, 0)])) == {(0, 1), (1, 2)}


def test_kruskal_pairs_single_point():
    assert kruskal_pairs([(1, 1)]) == []


def test_add_house_and_lookup():
    chunk = _chunk()
    house = _house(chunk, 2, 3, "Blue")
    assert chunk.add_house(house) is True
    assert chunk.house_at(2, 3) is house
    assert chunk.house_at(3, 2) is None


def test_add_house_duplicate_rejected():
    chunk = _chunk()
    assert chunk.add_house(_house(chunk, 1, 1, "first"))
    assert chunk.add_house(_house(chunk, 1, 1, "second")) is False
    assert [h.name for h in chunk.houses()] == ["first"]


def test_houses_in_id_order():
    chunk = _chunk()
    for gx, gy in [(5, 5), (0, 0), (3, 1), (9, 2)]:
        chunk.add_house(_house(chunk, gx, gy))
    ids = [h.id for h in chunk.houses()]
    assert ids == sorted(ids)
    assert len(ids) == 4


def test_connect_houses_needs_two():
    chunk = _chunk()
    chunk.add_house(_house(chunk, 0, 0))
    with pytest.raises(ValueError):
        chunk.connect_houses()


def test_connect_houses_builds_spanning_tree():
    chunk = _chunk()
    for gx, gy in [(0, 0), (4, 0), (4, 4), (0, 9)]:
        chunk.add_house(_house(chunk, gx, gy))
    pairs = chunk.connect_houses()
    own = list(chunk.own_connections())
    assert len(pairs) == 3
    assert len(own) == 3
    for conn, (a, b) in zip(own, pairs):
        assert (conn.start_x, conn.start_y) == (a.grid_x, a.grid_y)
        assert (conn.end_x, conn.end_y) == (b.grid_x, b.grid_y)
        assert (conn.chunk_x, conn.chunk_y) == (chunk.x, chunk.y)


def test_connect_houses_twice_replaces_lines():
    chunk = _chunk()
    for gx, gy in [(0, 0), (4, 0), (4, 4)]:
        chunk.add_house(_house(chunk, gx, gy))
    chunk.connect_houses()
    chunk.connect_houses()
    assert len(chunk.connections) == 2


def test_clear_own_connections_keeps_foreign():
    chunk = _chunk()
    foreign = Connection(0, 0, 1, 1, True, 99, 99)
    chunk.connections = [Connection(0, 0, 2, 2, True, chunk.x, chunk.y), foreign]
    chunk.clear_own_connections()
    assert chunk.connections == [foreign]
    assert list(chunk.own_connections()) == []


def test_copy_to_relabels_and_is_independent():
    src = _chunk(10, 12)
    for gx, gy in [(0, 0), (3, 3)]:
        src.add_house(_house(src, gx, gy, "orig"))
    src.connect_houses()
    src.connections.append(Connection(1, 1, 2, 2, True, 50, 50))
    dest = Chunk(x=30, y=40, width=4, height=7, valid=True)
    src.copy_to(dest)
    assert (dest.x, dest.y) == (30, 40)
    assert [(c.chunk_x, c.chunk_y) for c in dest.connections] == [(30, 40), (50, 50)]
    assert [h.id for h in dest.houses()] == [h.id for h in src.houses()]
    src.houses()[0].name = "changed"
    assert dest.houses()[0].name == "orig"
    src.connections[0].active = False
    assert dest.connections[0].active is True


def test_contains_area_and_validity():
    chunk = _chunk(10, 10)
    assert chunk.contains(10, 10) is True
    assert chunk.contains(8, 7) is True
    assert chunk.contains(12, 10) is False
    assert chunk.contains(30, 30) is False
    chunk.valid = False
    assert chunk.contains(10, 10) is False