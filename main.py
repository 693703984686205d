"""
Main entry point for the Snow Hunt game engine.
Plays a short seeded game between simple bots and prints what happens.
"""

import sys

from snowhunt.engine.game_engine import GameEngine
from snowhunt.engine.state import TURN_DUEL, TURN_MOVE, STATUS_FINISHED
from snowhunt.engine.storage import InMemorySessionStore
from snowhunt.engine.utils import print_game_state
from snowhunt.logging_config import configure_logging

MAX_TURNS = 200


def pick_target(session, player):
    """Dig site if a clue is held, else the closest snowman whose clue is missing."""
    for t in session.treasures:
        if t.index in player.clues:
            return (t.x, t.y)
    wanted = [s for s in session.snowmen if s.treasure_index not in player.clues]
    if not wanted:
        return None
    s = min(wanted, key=lambda s: abs(s.x - player.x) + abs(s.y - player.y))
    return (s.x, s.y)


def step_towards(player, target):
    dx, dy = target[0] - player.x, target[1] - player.y
    if abs(dx) >= abs(dy) and dx:
        return "RIGHT" if dx > 0 else "LEFT"
    if dy:
        return "DOWN" if dy > 0 else "UP"
    return None


def play_turn(engine, game_id):
    session = engine.get_session(game_id)
    player = session.current_player
    name = player.name

    rolled = engine.roll_dice(game_id, name)
    print(f"{name} rolls {rolled.payload['dice']} -> {rolled.payload['moves']} moves")

    while session.turn_state == TURN_MOVE and session.moves_remaining > 0:
        target = pick_target(session, player)
        if target is None:
            break
        if player.position == target and any(t.x == target[0] and t.y == target[1] for t in session.treasures):
            dug = engine.dig(game_id, name)
            print(f"  {name} digs: {dug.payload['message']} (coins={dug.payload['coins']})")
            if session.status == STATUS_FINISHED:
                return
            continue
        direction = step_towards(player, target)
        moved = engine.move_player(game_id, name, direction) if direction else None
        if moved is None or not moved.success:
            break
        for event in moved.payload["events"]:
            print(f"  {event['type']}: {event['payload']}")

    if session.turn_state == TURN_DUEL:
        fought = engine.duel_fight(game_id, name)
        if not fought.success:
            print(f"  Duel failed: {fought.error}")
            return
        print(f"  Duel won by {fought.payload['winner']} after {fought.payload['rounds']} round(s), "
              f"{fought.payload['coin_transfer']} coins change hands")
        if session.current_player.name != name:
            return

    engine.end_turn(game_id, name)


def main(seed=42):
    configure_logging("production")
    print("Snow Hunt - seeded demo game")
    print("=" * 60)

    engine = GameEngine(InMemorySessionStore())
    game_id = engine.initialize_game(["Alice", "Bob", "Carol"], seed=seed)
    session = engine.get_session(game_id)
    print_game_state(session, show_board=True)

    for _ in range(MAX_TURNS):
        if session.status == STATUS_FINISHED:
            break
        play_turn(engine, game_id)

    print_game_state(session)
    if session.winners:
        print(f"\nWinner(s): {', '.join(session.winners)}")
    else:
        print(f"\nStopped after {MAX_TURNS} turns")


if __name__ == "__main__":
    main(int(sys.argv[1]) if len(sys.argv) > 1 else 42)
