"""mapant worker CLI."""

import logging
import os
import sys
import traceback

EXIT_CODES = {"success": 0, "validation": 2, "failure": 1}
DEBUG_ENABLED = os.getenv("DEBUG", "").lower() in {"1", "true"}
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger("mapant_worker")


def show_help() -> None:
    """Print CLI help."""
    print(
        """
mapant worker

A worker node for the mapant.fr map generation.

Usage:
  mapant-worker [options]

Options:
  --once             Run a single poll cycle then exit (default: false)
  --help, -h         Show this help and exit

Environment:
  MAPANT_API_WORKER_ID         Worker ID (required)
  MAPANT_API_TOKEN             Worker token (required)
  MAPANT_API_BASE_URL          API base URL (default: https://mapant.fr/api)
  MAPANT_API_TIMEOUT_SECONDS   next-job call timeout (default: 30)
  MAPANT_NO_JOB_RETRY_SECONDS  Delay before polling again when no job is left (default: 120)
  MAPANT_FAILED_JOB_DELAY_SECONDS  Pause before polling again after a failed job (default: 1)
  MAPANT_WORK_DIR              Directory for lidar-files/ and lidar-step/ (default: .)
  MAPANT_CASSINI_USE_DOCKER    Run cassini through docker (default: true)
  MAPANT_CASSINI_DOCKER_IMAGE  cassini image (default: nicorio42/cassini)
  MAPANT_CASSINI_COMMAND       Local cassini binary when docker is disabled (default: cassini)
  MAPANT_LOG_LEVEL             DEBUG, INFO, WARNING or ERROR (default: INFO)
  MAPANT_LOG_FILE              Also append logs to this file

Examples:
  MAPANT_API_WORKER_ID=... MAPANT_API_TOKEN=... mapant-worker
  MAPANT_API_WORKER_ID=... MAPANT_API_TOKEN=... mapant-worker --once
"""
    )


def configure_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Log to stderr, and to ``log_file`` as well when given."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def log_unexpected_error(message: str, error: Exception) -> None:
    """Log an unexpected error with optional stack trace."""
    logger.error(f"{message}: {error}")
    if DEBUG_ENABLED:
        logger.error(f"Stack trace:\n{traceback.format_exc()}")


def main(argv: list[str] | None = None) -> None:
    """Main CLI entrypoint."""
    args = sys.argv[1:] if argv is None else argv
    if "--help" in args or "-h" in args:
        show_help()
        sys.exit(EXIT_CODES["success"])

    unknown = [arg for arg in args if arg != "--once"]
    if unknown:
        print(f"Unknown option: {unknown[0]} (see --help)", file=sys.stderr)
        sys.exit(EXIT_CODES["validation"])

    configure_logging()

    from pydantic import ValidationError

    from .config import WorkerConfig
    from .handlers import register_handlers
    from .registry import HandlerRegistry
    from .worker import Worker

    try:
        config = WorkerConfig()  # type: ignore[call-arg]
    except ValidationError as e:
        logger.error(f"Configuration error:\n{e}")
        sys.exit(EXIT_CODES["validation"])

    try:
        configure_logging(config.log_level, config.log_file)
    except OSError as e:
        logger.error(f"Cannot open log file {config.log_file}: {e}")
        sys.exit(EXIT_CODES["validation"])

    mode = "once" if "--once" in args else "loop"

    try:
        registry = HandlerRegistry()
        register_handlers(registry, config)
        worker = Worker(config, registry)

        if mode == "once":
            logger.info("Running worker once")
            outcome = worker.run_once()
        else:
            logger.info("Running worker in loop mode")
            outcome = worker.run()

    except KeyboardInterrupt:
        logger.info("Worker interrupted")
        sys.exit(EXIT_CODES["success"])
    except Exception as e:
        log_unexpected_error("Worker crashed", e)
        sys.exit(EXIT_CODES["failure"])

    logger.info(f"Worker finished: {outcome.value}")
    sys.exit(EXIT_CODES["failure"] if outcome.stops_worker else EXIT_CODES["success"])


if __name__ == "__main__":
    main()
