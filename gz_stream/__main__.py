"""
Stream one chat message from the command line.

    python -m gz_stream "Ich möchte ein Café in Leipzig eröffnen"
"""

from __future__ import annotations

import asyncio
import json
import sys

from .client import ChatClient, StreamCallbacks
from .config import Configuration
from .logging_utils import configure_logging
from .models import RateLimitInfo


async def run(message: str) -> int:
    config = Configuration()
    configure_logging(config.get_logging_config().get("level", "INFO"))

    state: dict = {"printed": 0, "json": None}

    def echo(full_text: str) -> None:
        # Text deltas inside a JSON block arrive as json events, not text events.
        sys.stdout.write(full_text[state["printed"]:])
        sys.stdout.flush()
        state["printed"] = len(full_text)

    def on_text(_text: str, full_text: str) -> None:
        echo(full_text)

    def on_json(value, is_complete: bool, full_text: str) -> None:
        echo(full_text)
        if is_complete:
            state["json"] = value

    def on_rate_limit(info: RateLimitInfo) -> None:
        print(f"[rate limit] {info.remaining}/{info.limit} left", file=sys.stderr)

    def on_error(error: str) -> None:
        print(f"\n[error] {error}", file=sys.stderr)

    callbacks = StreamCallbacks(
        on_text=on_text,
        on_json=on_json,
        on_rate_limit=on_rate_limit,
        on_error=on_error,
    )

    async with ChatClient.from_configuration(config) as client:
        error = await client.send_message(message, callbacks)

    print()
    if state["json"] is not None:
        print(json.dumps(state["json"], ensure_ascii=False, indent=2))

    return 1 if error else 0


def main() -> None:
    if len(sys.argv) < 2:
        print("usage: python -m gz_stream MESSAGE", file=sys.stderr)
        sys.exit(2)
    sys.exit(asyncio.run(run(" ".join(sys.argv[1:]))))


if __name__ == "__main__":
    main()
