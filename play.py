import argparse
import asyncio
import logging
from typing import List, Optional

from config import Settings
from game import GameState, GameStatus, GuessResult, InvalidSelection
from pool import InsufficientPool
from session import GameSession

HELP = """Commands:
  [toggle] <n> ...  toggle selection of board positions (1-16)
  guess             submit the four selected items
  clear             clear the selection
  reveal            show every group and its connection
  new               start a new game
  quit              exit"""


def print_board(game: GameState):
    """Print the board as a 4x4 grid."""
    views = game.view()
    print("\n" + "=" * 80)
    for row in range(0, len(views), 4):
        cells = []
        for v in views[row:row + 4]:
            mark = "#" if v.locked else ("*" if v.selected else " ")
            cells.append(f"{mark}{v.position + 1:>2}. {v.label:<14}")
        print("  ".join(cells))
    print("=" * 80)
    print(f"Selected: {', '.join(game.selected_identifiers) or '-'}   Mistakes: {game.mistakes}")


def print_reveal(game: GameState):
    print("\nANSWERS:")
    print("-" * 60)
    for group in game.reveal():
        print(f"Group {group.index + 1}: {group.description}")
        print(f"   {', '.join(m.replace('-', ' ') for m in group.members)}")
        print(f"   (built by {group.rule.value} rule: {group.reason})")


async def generate(session: GameSession, refresh_pool: bool = False) -> Optional[GameState]:
    print("Generating game...")
    try:
        game = await session.new_game(refresh_pool=refresh_pool)
    except InsufficientPool as e:
        print(f"\n❌ Error generating game: {e}")
        print("Try again, or widen the era range with --from-era/--to-era")
        return None
    print("Game ready - find the 4 groups!")
    return game


def handle(game: GameState, command: str) -> Optional[str]:
    """Apply one non-session command; returns a status line."""
    if command == "guess":
        result = game.submit_guess()
        if result is GuessResult.CORRECT:
            if game.status is GameStatus.WON:
                return "Congratulations - you found all groups!"
            return "Correct! Group locked."
        return "Not a correct group."
    if command == "clear":
        game.clear_selection()
        return None
    if command == "reveal":
        print_reveal(game)
        return None

    tokens = command.split()
    if tokens and tokens[0] == "toggle":
        tokens = tokens[1:]
        if not tokens:
            raise ValueError("toggle needs at least one position")
    positions: List[int] = [int(token) - 1 for token in tokens]
    for position in positions:
        game.toggle_select(position)
    return None


async def run(args: argparse.Namespace):
    settings = Settings.from_env(
        from_era=args.from_era,
        to_era=args.to_era,
        seed=args.seed,
        max_samples=args.max_samples,
    )

    async with GameSession(settings) as session:
        game = await generate(session)
        if game is None:
            return

        if args.reveal:
            print_board(game)
            print_reveal(game)
            return

        print(HELP)
        while True:
            print_board(game)
            for entry in game.history[-1:]:
                print(f"Last guess: {entry.describe()}")
            command = input("> ").strip().lower()

            if command in ("quit", "exit", "q"):
                break
            if command == "new":
                game = await generate(session) or game
                continue
            if command in ("help", "?"):
                print(HELP)
                continue

            try:
                status = handle(game, command)
            except (InvalidSelection, IndexError) as e:
                status = str(e)
            except ValueError:
                status = "Unknown command. Type 'help' for a list of commands."
            if status:
                print(status)


def main():
    """Play Connections in the terminal."""
    parser = argparse.ArgumentParser(description="Play a Pokemon Connections puzzle")
    parser.add_argument("--from-era", type=int, default=None,
                        help="First generation in the pool (default: 1)")
    parser.add_argument("--to-era", type=int, default=None,
                        help="Last generation in the pool (default: 7)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for a reproducible board")
    parser.add_argument("--max-samples", type=int, default=None,
                        help="Cap on items examined per grouping strategy")
    parser.add_argument("--reveal", action="store_true",
                        help="Print the board and its solution, then exit")
    parser.add_argument("--verbose", action="store_true",
                        help="Show debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
