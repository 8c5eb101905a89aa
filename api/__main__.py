"""Run the API server: ``python -m api``."""

from __future__ import annotations

import uvicorn

from .config import Settings


def main() -> None:
    config = Settings()
    uvicorn.run("api.app:app", host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
