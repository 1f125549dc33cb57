"""
tilematch CLI - Command-line interface for the engine.

Usage:
    tilematch preview <deck_file>     Print a generated grid for a deck
    tilematch validate                Validate a grid configuration
    tilematch serve                   Run the REST API (needs uvicorn)
"""

import argparse
import json
import logging
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="tilematch - Card-matching study engine",
        prog="tilematch",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Preview command
    preview_parser = subparsers.add_parser("preview", help="Print a grid for a deck")
    preview_parser.add_argument("deck_file", help="JSON file: list of cards or {\"content\": [...]}")
    _add_grid_arguments(preview_parser)
    preview_parser.add_argument("--seed", type=int, help="Random seed")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a grid configuration")
    _add_grid_arguments(validate_parser)

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the REST API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "preview":
        cmd_preview(args)
    elif args.command == "validate":
        cmd_validate(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def _add_grid_arguments(parser):
    parser.add_argument("--rows", type=int, default=3)
    parser.add_argument("--cols", type=int, default=4)
    parser.add_argument(
        "--kind",
        choices=["two_way", "three_way"],
        default="two_way",
        help="Match kind",
    )


def _config_from_args(args):
    from .config import make_config
    from .engine_core.state import MatchKind

    return make_config(MatchKind(args.kind), rows=args.rows, cols=args.cols)


def cmd_preview(args):
    """Print a generated grid for a deck file."""
    import random
    from .engine_core.grid import generate

    try:
        with open(args.deck_file, "r", encoding="utf-8") as f:
            deck = json.load(f)
    except FileNotFoundError:
        print(f"Error: File not found: {args.deck_file}")
        sys.exit(1)
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON in {args.deck_file}: {e}")
        sys.exit(1)

    cards = deck.get("content", []) if isinstance(deck, dict) else deck
    config = _config_from_args(args)
    try:
        tiles = generate(cards, config, rng=random.Random(args.seed))
    except (TypeError, ValueError) as e:
        print(f"Error: Invalid deck in {args.deck_file}: {e}")
        sys.exit(1)

    if not tiles:
        print("No tiles generated (empty deck?)")
        sys.exit(1)

    width = max(len(tile.content) for tile in tiles)
    for row in range(config.rows):
        cells = [
            tile.content.ljust(width)
            for tile in tiles
            if tile.position.row == row
        ]
        print(" | ".join(cells))

    groups = {tile.group_key for tile in tiles}
    print(f"\n{len(tiles)} tiles, {len(groups)} groups")


def cmd_validate(args):
    """Validate a grid configuration."""
    from .config import validate_config

    config = _config_from_args(args)
    result = validate_config(config)

    print(f"Grid: {config.rows}x{config.cols} ({config.total_tiles} tiles), {args.kind}")
    for entry in config.side_configs:
        print(f"  {entry.label}: {entry.count} tiles")

    if result.warnings:
        print("\nWarnings:")
        for w in result.warnings:
            print(f"  - {w}")

    if result.errors:
        print("\nErrors:")
        for e in result.errors:
            print(f"  - {e}")
        sys.exit(1)

    print("\nConfiguration is valid")


def cmd_serve(args):
    """Run the REST API with uvicorn."""
    import uvicorn
    from .api.app import create_app

    uvicorn.run(create_app(), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
