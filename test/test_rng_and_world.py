"""
Seeded randomness and world generation.
"""

import pytest

from snowhunt.engine.definitions import (
    WorldConfig,
    TERRAIN_SNOW,
    TERRAIN_ICE,
    TERRAIN_TREE,
    classify_terrain,
    validate_world_config,
)
from snowhunt.engine.game_engine import build_session
from snowhunt.engine.rng import SeededRandom, DiceRoller, LCG_MODULUS
from snowhunt.engine.world import TREASURE_EDGE_MARGIN, is_too_close_to_start


def test_seeded_random_sequence_is_fixed():
    rng = SeededRandom(1)
    assert rng.next() == 58598 / LCG_MODULUS
    assert rng.next() == 127215 / LCG_MODULUS


def test_same_seed_same_stream():
    a, b = SeededRandom(777), SeededRandom(777)
    assert [a.random_int(1, 6) for _ in range(50)] == [b.random_int(1, 6) for _ in range(50)]


def test_random_int_stays_in_inclusive_range():
    rng = SeededRandom(5)
    values = {rng.random_int(1, 6) for _ in range(500)}
    assert values == {1, 2, 3, 4, 5, 6}


def test_random_float_range():
    rng = SeededRandom(3)
    assert all(2.5 <= rng.random_float(2.5, 4.0) < 4.0 for _ in range(200))


def test_single_die_uses_same_stream():
    assert DiceRoller(0, clock=lambda: 0).roll_die() == 2
    assert DiceRoller(0, clock=lambda: 0, sides=20).roll_die() == 5


def test_dice_roller_reseeds_from_clock():
    ticks = iter([0, 0, 1000])
    roller = DiceRoller(0, clock=lambda: next(ticks))
    assert roller.roll_pair() == (2, 5)
    assert roller.roll_pair() == (2, 5)
    # a different clock reading gives a fresh stream
    rng = SeededRandom(1000)
    expected = (rng.random_int(1, 6), rng.random_int(1, 6))
    assert roller.roll_pair() == expected


def test_classify_terrain_thresholds():
    assert classify_terrain(0.0) == TERRAIN_SNOW
    assert classify_terrain(0.7) == TERRAIN_SNOW
    assert classify_terrain(0.71) == TERRAIN_ICE
    assert classify_terrain(0.9) == TERRAIN_ICE
    assert classify_terrain(0.95) == TERRAIN_TREE


def test_world_is_deterministic_for_a_seed():
    a = build_session("game-a", ["Alice", "Bob"], 12345, WorldConfig())
    b = build_session("game-b", ["Alice", "Bob"], 12345, WorldConfig())
    da, db = a.to_dict(), b.to_dict()
    for key in ("grid", "treasures", "snowmen", "gifts", "weapons"):
        assert da[key] == db[key]


def test_different_seeds_give_different_grids():
    a = build_session("game-a", ["Alice", "Bob"], 1, WorldConfig())
    b = build_session("game-b", ["Alice", "Bob"], 2, WorldConfig())
    assert a.grid != b.grid


def test_generated_world_layout():
    config = WorldConfig()
    session = build_session("game-x", ["Alice", "Bob", "Carol", "Dave"], 2024, config)

    assert session.grid_size == 40
    assert all(cell in (TERRAIN_SNOW, TERRAIN_ICE, TERRAIN_TREE) for row in session.grid for cell in row)

    assert [t.value for t in session.treasures] == [100, 200, 500, 1000]
    assert [t.index for t in session.treasures] == [0, 1, 2, 3]
    assert sorted(s.treasure_index for s in session.snowmen) == [0, 1, 2, 3]
    assert len(session.gifts) <= config.num_gifts
    assert len(session.weapons) <= 4

    last = config.grid_size - 1 - TREASURE_EDGE_MARGIN
    for t in session.treasures:
        assert TREASURE_EDGE_MARGIN <= t.x <= last
        assert TREASURE_EDGE_MARGIN <= t.y <= last
        assert not is_too_close_to_start(session, t.x, t.y, config.min_item_distance)

    for s in session.snowmen:
        t = session.treasures[s.treasure_index]
        assert not (abs(s.x - t.x) < config.min_item_distance and abs(s.y - t.y) < config.min_item_distance)

    cells = [(t.x, t.y) for t in session.treasures]
    cells += [(s.x, s.y) for s in session.snowmen]
    cells += [(g.x, g.y) for g in session.gifts]
    cells += [(w.x, w.y) for w in session.weapons]
    cells += [p.start_position for p in session.players]
    assert len(cells) == len(set(cells))


def test_players_start_in_corners():
    session = build_session("game-x", ["Alice", "Bob", "Carol"], 3, WorldConfig())
    assert [p.position for p in session.players] == [(0, 0), (39, 0), (0, 39)]
    assert [p.color for p in session.players] == ["#ef4444", "#3b82f6", "#22c55e"]
    assert all(p.coins == 0 and p.clues == [] and p.weapons == [] for p in session.players)


def test_placement_falls_back_when_no_cell_qualifies():
    # every cell is "too close" to a start, so treasures and snowmen use fallback cells
    config = WorldConfig(grid_size=10, min_item_distance=100, num_gifts=0, weapon_counts={})
    session = build_session("game-x", ["Alice", "Bob"], 9, config)
    assert len(session.treasures) == config.num_treasures
    assert len(session.snowmen) == config.num_treasures

    # fixed start cells are clamped into the margin box, taken ones are scanned past
    assert (session.treasures[0].x, session.treasures[0].y) == (7, 7)
    assert (session.treasures[1].x, session.treasures[1].y) == (2, 2)
    assert (session.snowmen[0].x, session.snowmen[0].y) == (5, 5)

    high = config.grid_size - 1 - TREASURE_EDGE_MARGIN
    for t in session.treasures:
        assert TREASURE_EDGE_MARGIN <= t.x <= high and TREASURE_EDGE_MARGIN <= t.y <= high
    for s in session.snowmen:
        assert session.in_bounds(s.x, s.y)

    cells = [(t.x, t.y) for t in session.treasures] + [(s.x, s.y) for s in session.snowmen]
    cells += [p.start_position for p in session.players]
    assert len(set(cells)) == len(cells)


@pytest.mark.parametrize("changes, message", [
    ({"grid_size": 5}, "grid_size"),
    ({"treasure_values": []}, "treasure"),
    ({"weapon_counts": {"AXE": 1}}, "Unknown weapon"),
    ({"duel_stake": -1}, "duel_stake"),
    ({"grid_size": 10, "num_gifts": 100}, "Too many items"),
])
def test_validate_world_config_rejects(changes, message):
    with pytest.raises(ValueError, match=message):
        validate_world_config(WorldConfig(**changes))


def test_validate_world_config_accepts_defaults():
    validate_world_config(WorldConfig())
