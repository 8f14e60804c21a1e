"""Run the room server: ``python -m poki_oni [config.json]``."""
from __future__ import annotations

import logging
import sys

import uvicorn

from .app import create_app
from .config import load_config


def main() -> None:
    config = load_config(sys.argv[1] if len(sys.argv) > 1 else None)
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app(config)
    logging.getLogger(__name__).info("Starting server on %s:%d", config.server.ip, config.server.port)
    uvicorn.run(app, host=config.server.ip, port=config.server.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
