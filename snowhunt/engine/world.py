"""
World generation.
Builds the terrain grid and places treasures, snowmen, gifts and weapons from a
SeededRandom, so the same seed always yields the same board.

Placement is two-stage: reject-sample up to a bounded number of attempts, then
fall back. Treasures and snowmen fall back to scanning for the next free cell
(row-major, from a fixed per-index cell) and are always placed; gifts and
weapons are skipped when attempts run out.
"""

from snowhunt.engine.definitions import PLAYER_COLORS, WorldConfig, classify_terrain
from snowhunt.engine.rng import SeededRandom
from snowhunt.engine.state import GameSession, Gift, Player, Snowman, Treasure, WeaponPickup

# Treasures stay this many cells away from every edge.
TREASURE_EDGE_MARGIN = 2


def generate_grid(rng: SeededRandom, size: int) -> list[list[int]]:
    """One draw per cell, row by row. grid[y][x] is the terrain kind."""
    grid = []
    for _y in range(size):
        row = [classify_terrain(rng.next()) for _x in range(size)]
        grid.append(row)
    return grid


def init_players(names: list[str], config: WorldConfig) -> list[Player]:
    """Players start in the corners, in join order."""
    starts = config.start_positions()
    players = []
    for index, name in enumerate(names):
        sx, sy = starts[index]
        players.append(Player(
            id=f"player-{index}",
            name=name,
            color=PLAYER_COLORS[index],
            x=sx,
            y=sy,
            start_x=sx,
            start_y=sy,
        ))
    return players


def is_occupied(session: GameSession, x: int, y: int) -> bool:
    """True if any player or board item sits on (x, y)."""
    if any(p.x == x and p.y == y for p in session.players):
        return True
    if any(t.x == x and t.y == y for t in session.treasures):
        return True
    if any(s.x == x and s.y == y for s in session.snowmen):
        return True
    if any(g.x == x and g.y == y for g in session.gifts):
        return True
    if any(w.x == x and w.y == y for w in session.weapons):
        return True
    return False


def is_too_close_to_start(session: GameSession, x: int, y: int, min_distance: int) -> bool:
    """Manhattan distance to any player's start cell below min_distance."""
    return any(
        abs(x - p.start_x) + abs(y - p.start_y) < min_distance
        for p in session.players
    )


def _scan_free_cell(session: GameSession, start: tuple[int, int], low: int, high: int) -> tuple[int, int] | None:
    """
    First unoccupied cell of the [low, high] square in row-major order, starting
    at start (clamped into the square) and wrapping around.
    """
    if high < low:
        return None
    width = high - low + 1
    sx = max(low, min(high, start[0]))
    sy = max(low, min(high, start[1]))
    first = (sy - low) * width + (sx - low)
    for step in range(width * width):
        offset = (first + step) % (width * width)
        x, y = low + offset % width, low + offset // width
        if not is_occupied(session, x, y):
            return x, y
    return None


def _fallback_cell(session: GameSession, start: tuple[int, int], margin: int, what: str) -> tuple[int, int]:
    size = session.config.grid_size
    cell = _scan_free_cell(session, start, margin, size - 1 - margin)
    if cell is None and margin:
        cell = _scan_free_cell(session, start, 0, size - 1)
    if cell is None:
        raise ValueError(f"No free cell left for {what}")
    return cell


def _random_cell(rng: SeededRandom, span: int, offset: int = 0) -> tuple[int, int]:
    x = int(rng.next() * span) + offset
    y = int(rng.next() * span) + offset
    return x, y


def place_treasures_and_snowmen(session: GameSession, rng: SeededRandom) -> None:
    """
    For each treasure: pick a cell away from the edges, unoccupied and not near a
    start cell. Then pick its snowman: unoccupied and outside the
    min_item_distance box around the treasure.
    """
    config = session.config
    size = config.grid_size
    min_dist = config.min_item_distance
    inner_span = max(1, size - 2 * TREASURE_EDGE_MARGIN)

    for i, value in enumerate(config.treasure_values):
        tx, ty = 0, 0
        placed = False
        for _ in range(config.treasure_max_attempts):
            tx, ty = _random_cell(rng, inner_span, TREASURE_EDGE_MARGIN)
            if not is_occupied(session, tx, ty) and not is_too_close_to_start(session, tx, ty, min_dist):
                placed = True
                break
        if not placed:
            tx, ty = _fallback_cell(session, (10 + i * 5, 10 + i * 5), TREASURE_EDGE_MARGIN, "treasure")
        session.treasures.append(Treasure(x=tx, y=ty, value=value, index=i))

        sx, sy = 0, 0
        placed = False
        for _ in range(config.treasure_max_attempts):
            sx, sy = _random_cell(rng, size)
            too_close = abs(sx - tx) < min_dist and abs(sy - ty) < min_dist
            if not is_occupied(session, sx, sy) and not too_close:
                placed = True
                break
        if not placed:
            sx, sy = _fallback_cell(session, (5 + i * 8, 5 + i * 8), 0, "snowman")
        session.snowmen.append(Snowman(x=sx, y=sy, treasure_index=i))


def _sample_free_cell(session: GameSession, rng: SeededRandom, max_attempts: int) -> tuple[int, int] | None:
    size = session.config.grid_size
    for _ in range(max_attempts):
        x, y = _random_cell(rng, size)
        if not is_occupied(session, x, y):
            return x, y
    return None


def place_gifts(session: GameSession, rng: SeededRandom) -> None:
    """Place up to num_gifts gifts; a gift with no free cell found is dropped."""
    config = session.config
    for _ in range(config.num_gifts):
        cell = _sample_free_cell(session, rng, config.item_max_attempts)
        if cell is not None:
            session.gifts.append(Gift(x=cell[0], y=cell[1]))


def place_weapons(session: GameSession, rng: SeededRandom) -> None:
    """Place weapon pickups kind by kind; lossy like place_gifts."""
    config = session.config
    for kind, count in config.weapon_counts.items():
        for _ in range(count):
            cell = _sample_free_cell(session, rng, config.item_max_attempts)
            if cell is not None:
                session.weapons.append(WeaponPickup(x=cell[0], y=cell[1], kind=kind))


def generate_world(session: GameSession, rng: SeededRandom) -> None:
    """Fill an empty session's board. Players must already be set."""
    session.grid = generate_grid(rng, session.config.grid_size)
    place_treasures_and_snowmen(session, rng)
    place_gifts(session, rng)
    place_weapons(session, rng)
