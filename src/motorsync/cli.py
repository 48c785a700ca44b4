"""Operator console for a motor controller.

Examples::

    motorsync --base-url http://192.168.4.1 watch
    motorsync status
    motorsync power on
    motorsync direction toggle
    motorsync speed 40

The base URL falls back to ``MOTORSYNC_BASE_URL``.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from typing import Any

from motorsync.client import MotorClient
from motorsync.config import MotorConfig
from motorsync.exceptions import MotorConfigError, MotorSyncError
from motorsync.models.state import ConnectionStatus, Direction, MotorState
from motorsync.poller import PollOutcome

_DIRECTIONS = {"forward": Direction.FORWARD, "reverse": Direction.REVERSE}


def _snapshot(state: MotorState, status: ConnectionStatus) -> dict[str, Any]:
    return {
        "state": state.model_dump(mode="json"),
        "status": status.model_dump(mode="json"),
    }


def _format_line(state: MotorState, status: ConnectionStatus) -> str:
    link = "connected" if status.connected else "disconnected"
    seen = status.last_seen.astimezone().strftime("%H:%M:%S") if status.last_seen else "never"
    line = (
        f"[{link}, last seen {seen}] power={'ON' if state.power else 'OFF'}"
        f" direction={state.direction.value} speed={state.speed}%"
    )
    if status.busy:
        line += " (updating)"
    if status.last_error:
        line += f" error: {status.last_error}"
    return line


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="motorsync",
        description="Monitor and control a networked motor controller.",
    )
    parser.add_argument("--base-url", help="Device base URL (default: $MOTORSYNC_BASE_URL)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    watch = sub.add_parser("watch", help="Poll continuously and print every change")
    watch.add_argument("--json", action="store_true", dest="json_mode", help="Emit one JSON object per change")

    sub.add_parser("status", help="Poll once and print the state as JSON")

    power = sub.add_parser("power", help="Switch the motor on or off")
    power.add_argument("value", choices=["on", "off"])

    direction = sub.add_parser("direction", help="Set or toggle the rotation direction")
    direction.add_argument("value", choices=["forward", "reverse", "toggle"])

    speed = sub.add_parser("speed", help="Set the speed percentage")
    speed.add_argument("value", type=int, help="Speed in percent (0-100)")

    return parser


async def _watch(client: MotorClient, json_mode: bool) -> None:
    def _print_change(state: MotorState, status: ConnectionStatus) -> None:
        if json_mode:
            print(json.dumps(_snapshot(state, status)), flush=True)
        else:
            print(_format_line(state, status), flush=True)

    client.subscribe(_print_change)
    client.start_polling()
    await asyncio.Event().wait()


async def _run(args: argparse.Namespace) -> int:
    overrides: dict[str, Any] = {"autostart_polling": False}
    if args.base_url:
        overrides["base_url"] = args.base_url
    config = MotorConfig.from_env(**overrides)

    async with MotorClient(config) as client:
        if args.command == "watch":
            await _watch(client, args.json_mode)
            return 0

        if args.command == "status":
            outcome = await client.refresh()
            print(json.dumps(_snapshot(client.state, client.status), indent=2))
            return 0 if outcome == PollOutcome.SUCCESS else 1

        if args.command == "power":
            state = await client.set_power(args.value == "on")
        elif args.command == "direction":
            if args.value == "toggle":
                # Learn the current direction before flipping it.
                await client.refresh()
                state = await client.toggle_direction()
            else:
                state = await client.set_direction(_DIRECTIONS[args.value])
        elif args.command == "speed":
            if not 0 <= args.value <= 100:
                print(f"speed must be between 0 and 100, got {args.value}", file=sys.stderr)
                return 2
            state = await client.set_speed(args.value)
        else:  # pragma: no cover - argparse rejects unknown commands
            return 2

        print(_format_line(state, client.status))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        return 130
    except MotorConfigError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return 2
    except MotorSyncError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
