"""Helpers for running the Mealmerge ASGI application under uvicorn."""

from __future__ import annotations

import os

import uvicorn

APP_PATH = "mealmerge.server.app:app"


def _port_from_env(value: str | None, default: int = 8000) -> int:
    if not value:
        return default
    try:
        port = int(value)
    except ValueError as exc:
        raise SystemExit(f"Invalid MEALMERGE_SERVER_PORT '{value}': {exc}") from exc
    if not 0 < port < 65536:
        raise SystemExit("MEALMERGE_SERVER_PORT must be between 1 and 65535.")
    return port


def serve(host: str, port: int, *, reload: bool = False) -> None:
    """Run the API in the foreground until interrupted."""

    # The app configures logging itself; keep uvicorn from installing its own handlers.
    uvicorn.run(APP_PATH, host=host, port=port, reload=reload, log_config=None)


def main() -> None:
    """Entry point reading host/port from the environment."""

    host = os.environ.get("MEALMERGE_SERVER_HOST", "127.0.0.1")
    port = _port_from_env(os.environ.get("MEALMERGE_SERVER_PORT"))
    serve(host, port, reload=os.environ.get("RELOAD") == "1")


if __name__ == "__main__":
    main()
