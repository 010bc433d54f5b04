"""CLI entry point: python -m gridsync <game_id> <pseudo> [-c config.yaml]

Commands read from stdin, one per line:
    click R C      select cell (row R, column C)
    key NAME       press a key (ArrowUp, Tab, Backspace, Delete, a letter...)
    X              shorthand for ``key X`` with a single letter
    quit           leave
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from gridsync.client import GameClient
from gridsync.config import ClientConfig, load_config
from gridsync.core.render import TextRenderer


def _apply_command(client: GameClient, line: str) -> bool:
    """Run one stdin command. Returns False when the user asked to quit."""
    parts = line.split()
    if not parts:
        return True
    cmd = parts[0]
    if cmd == "quit":
        return False
    if cmd == "click" and len(parts) == 3:
        try:
            row, col = int(parts[1]), int(parts[2])
        except ValueError:
            print("usage: click ROW COL", file=sys.stderr)
            return True
        client.click(row, col)
    elif cmd == "key" and len(parts) == 2:
        if not client.handle_key(parts[1]):
            print(f"ignored key: {parts[1]}", file=sys.stderr)
    elif len(parts) == 1 and len(cmd) == 1:
        client.handle_key(cmd)
    else:
        print(f"unknown command: {line.strip()}", file=sys.stderr)
    return True


async def _run(game_id: str, pseudo: str, config: ClientConfig) -> int:
    client = GameClient(game_id, config, TextRenderer())
    try:
        if not await client.join(pseudo):
            return 1
        loop = asyncio.get_running_loop()
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line or not _apply_command(client, line):
                break
        return 0
    finally:
        await client.close()


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="gridsync",
        description="Collaborative mots fléchés client",
    )
    parser.add_argument("game_id", help="Game identifier")
    parser.add_argument("pseudo", help="Display name (max 20 characters)")
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to client YAML config file",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override logging level (DEBUG, INFO, WARNING...)",
    )
    args = parser.parse_args()

    load_dotenv()

    if args.config is not None and not args.config.exists():
        print(f"Error: config file not found: {args.config}", file=sys.stderr)
        sys.exit(1)

    config = load_config(args.config)
    logging.basicConfig(
        level=(args.log_level or config.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )

    try:
        sys.exit(asyncio.run(_run(args.game_id, args.pseudo, config)))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
