"""mazra3 - command line entry point."""

import logging
import sys
from logging.handlers import RotatingFileHandler

from .config import AppConfig


def _setup_logging(config: AppConfig) -> logging.Logger:
    """Configure logging with rotation.

    Logs are written to ~/.mazra3/logs/ with owner-only permissions.
    Uses INFO level by default; set MAZRA3_DEBUG=1 for DEBUG level.
    """
    log_dir = config.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    log_dir.chmod(0o700)

    log_file = log_dir / "mazra3.log"

    log_level = logging.DEBUG if config.debug else logging.INFO

    # 5MB max, keep 3 backups
    handler = RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,  # 5 MB
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(handler)

    return logging.getLogger(__name__)


def main():
    """Entry point for the mazra3 command."""
    from .cli import run_cli

    logger = _setup_logging(AppConfig())
    logger.debug(f"mazra3 invoked with {sys.argv[1:]}")
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
