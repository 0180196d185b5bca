from __future__ import annotations

import json
import logging


def log_json(logger: logging.Logger, event: str, level: int = logging.INFO, **fields: object) -> None:
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, separators=(",", ":"), default=str))


def configure_logging(level: str) -> None:
    resolved = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    # basicConfig is a no-op once the host has installed handlers.
    logging.getLogger("bloodbank").setLevel(resolved)
