"""
Server entrypoint for the placeholder service.

Architectural role:
- Configures process-wide logging from `config.LOG_LEVEL` (`DEBUG=true` forces
  debug output).
- Serves `placeholder_ai.api.http_api:app` with uvicorn on `config.HOST` and
  `config.PORT`.

Side effects:
- Blocks until the server is stopped (Ctrl+C or signal).
"""

import logging

import uvicorn

from placeholder_ai import config


def main():
    """Run the HTTP server until interrupted."""
    level = "DEBUG" if config.DEBUG else config.LOG_LEVEL.upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    logging.getLogger(__name__).info(
        "Serving placeholder API on %s:%s", config.HOST, config.PORT
    )

    uvicorn.run(
        "placeholder_ai.api.http_api:app",
        host=config.HOST,
        port=config.PORT,
        log_level=level.lower(),
    )


if __name__ == "__main__":
    main()
