"""
Main entry point for Lang-Lines.

Usage:
    python -m langlines.main play
    python -m langlines.main play config.yaml --seed 7 --output results/round1.json --verbose
    python -m langlines.main sort-dict data/es.json
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from .engine import GameConfig, PointerEvent, RoundSession, EngineEvent
from .lexicon import DictionaryIndex, DictionaryLoadError, sort_dictionary

HELP = """Commands:
  trace R,C R,C ...   trace a word through adjacent cells (row,col from 0)
  shuffle             shuffle the remaining tiles
  reload              replace the grid
  show                print the grid
  finish | quit       end the round"""


def load_config(config_path: str) -> GameConfig:
    """Load game configuration from a YAML file."""
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return GameConfig(**data)


def parse_trace(args: List[str]) -> List[PointerEvent]:
    """
    Turn 'R,C' tokens into one gesture: down on the first, moves, then up.

    Raises:
        ValueError: If a token is not a 'row,col' pair
    """
    cells = []
    for token in args:
        try:
            row, col = (int(v) for v in token.split(","))
        except ValueError:
            raise ValueError(f"Expected row,col but got '{token}'") from None
        cells.append((row, col))
    if not cells:
        raise ValueError("trace needs at least one cell")

    events = [PointerEvent.down(*cells[0])]
    events.extend(PointerEvent.move(r, c) for r, c in cells[1:])
    events.append(PointerEvent.up())
    return events


def print_event(event: EngineEvent) -> None:
    if event.kind == "word_matched" and event.score:
        print(f"✓ {event.score.headline()}")
    elif event.kind == "word_rejected" and event.word:
        print(f"✗ {event.word} is not a word")


async def play(config: GameConfig, output: Optional[Path]) -> int:
    session = RoundSession.create(config, index=DictionaryIndex())
    report = await session.engine.load_dictionaries()
    for message in report.failed.values():
        print(f"Warning: {message}", file=sys.stderr)

    session.engine.subscribe(print_event)
    session.start()

    timer = None
    if config.round_seconds:
        timer = asyncio.create_task(session.expire_after())

    print(f"=== Round {config.round_number}: clear {config.round_number} line(s) ===")
    print(HELP)
    print()
    print(session.engine.render())

    while not session.is_complete:
        try:
            line = await asyncio.to_thread(input, "> ")
        except EOFError:
            break
        if session.is_complete:
            break

        parts = line.split()
        if not parts:
            continue
        command, args = parts[0].lower(), parts[1:]

        if command in ("finish", "quit"):
            break
        elif command == "show":
            print(session.engine.render())
        elif command == "shuffle":
            session.engine.shuffle()
            print(session.engine.render())
        elif command == "reload":
            session.engine.reload()
            print(session.engine.render())
        elif command == "trace":
            try:
                events = parse_trace(args)
            except ValueError as e:
                print(f"Error: {e}")
                continue
            for event in events:
                session.engine.push_event(event)
            await session.engine.wait_until_idle()
            print(session.engine.render())
            print(f"Score: {session.score}  Lines cleared: {session.engine.lines_cleared()}")
        else:
            print(HELP)

    if timer:
        timer.cancel()
    result = await session.finish("Player ended round")

    if output:
        session.save_result(output)
        print(f"Results saved to: {output}")

    # Print summary
    print()
    print("=== Round Summary ===")
    print("GOAL MET!" if result.goal_met else "ROUND FAILED")
    print(f"Score: {result.score}")
    print(f"Lines cleared: {result.lines_cleared} / {result.round}")
    print(f"End reason: {result.end_reason}")
    for word in result.found_words:
        print(f"  {word.word} ({word.lang.upper()}) (+{word.score})")
        if word.definition:
            print(f"      {word.definition}")
        if word.translation:
            print(f"      -> {word.translation} ({config.other_language(word.lang).upper()})")
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Play Lang-Lines in the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example config.yaml:
  rows: 8
  cols: 8
  home_lang: en
  learning_lang: es
  round_seconds: 120
  seed: 42
        """
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    play_parser = subparsers.add_parser("play", help="Play one round")
    play_parser.add_argument(
        "config",
        nargs="?",
        help="Path to YAML configuration file (defaults used if omitted)"
    )
    play_parser.add_argument(
        "--seed",
        type=int,
        help="Random seed for the grid"
    )
    play_parser.add_argument(
        "--output", "-o",
        help="Path to save the round result JSON"
    )
    play_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log engine activity to stderr"
    )

    sort_parser = subparsers.add_parser("sort-dict", help="Sort a dictionary file by word")
    sort_parser.add_argument("path", help="Path to a dictionary JSON file")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if getattr(args, "verbose", False) else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "sort-dict":
        try:
            count = sort_dictionary(args.path)
        except DictionaryLoadError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        print(f"Sorted {count} words in {args.path}")
        return 0

    try:
        config = load_config(args.config) if args.config else GameConfig()
        if args.seed is not None:
            config = config.model_copy(update={"seed": args.seed})
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    output = Path(args.output) if args.output else None
    try:
        return asyncio.run(play(config, output))
    except KeyboardInterrupt:
        print("\nRound interrupted by user")
        return 1


if __name__ == "__main__":
    sys.exit(main())
