"""Run the WhisperDesk API server.

Usage::

    python -m whisperdesk [--host 127.0.0.1] [--port 8000]
"""

import argparse
import logging

import uvicorn

from whisperdesk.core.config import get_settings


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="WhisperDesk transcription session server")
    parser.add_argument("--host", default=settings.app_host, help="Bind address")
    parser.add_argument("--port", type=int, default=settings.app_port, help="Bind port")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    args = parser.parse_args()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )
    uvicorn.run(
        "whisperdesk.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
