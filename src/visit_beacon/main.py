"""Main entrypoint for the visit beacon."""

import logging
import logging.handlers
import sys
from typing import List, Optional

from .cli import build_config, build_host, parse_args
from .config import BeaconConfig
from .enums import BeaconStatus
from .host import Host
from .pipeline import BeaconPipeline
from .storage import JsonFileStorage

logger = logging.getLogger(__name__)

EXIT_CODES = {
    BeaconStatus.SENT: 0,
    BeaconStatus.SKIPPED_DUPLICATE: 0,
    BeaconStatus.FAILED: 1,
    BeaconStatus.ABORTED: 2,
}


def configure_logging(cfg: BeaconConfig) -> None:
    """Configure logging based on configuration."""
    log_level = logging.DEBUG if cfg.dev else logging.INFO

    # Configure root logger
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if cfg.log_file:
        cfg.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            cfg.log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        logging.getLogger().addHandler(file_handler)

    # Reduce noise from requests library
    logging.getLogger('requests').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)

    if cfg.dev:
        logger.info("Development mode enabled - verbose logging active")


def main(
    config: Optional[BeaconConfig] = None,
    argv: Optional[List[str]] = None,
    host: Optional[Host] = None,
) -> int:
    """
    Main entrypoint for the beacon.

    Args:
        config: Optional BeaconConfig instance (overrides argv)
        argv: Command line arguments (for testing)
        host: Optional page host (overrides the snapshot from argv)

    Returns:
        Exit code (0 sent or skipped, 1 send failed, 2 aborted)
    """
    try:
        ns = parse_args(argv) if config is None or host is None else None
        cfg = config if config is not None else build_config(ns)
        page = host if host is not None else build_host(ns)
    except (ValueError, OSError) as e:
        logging.basicConfig(level=logging.INFO)
        logger.error(f"Invalid arguments: {e}")
        return 2

    configure_logging(cfg)
    logger.debug(f"Collection URL: {cfg.collection_url}")
    logger.debug(f"Storage: {cfg.storage_path or 'disabled'}")

    storage = JsonFileStorage(cfg.storage_path) if cfg.storage_path else None
    pipeline = BeaconPipeline(cfg, page, storage=storage)

    try:
        outcome = pipeline.run()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130  # Standard exit code for Ctrl+C
    finally:
        pipeline.close()

    logger.debug(f"Beacon finished with status {outcome.status.value}")
    return EXIT_CODES[outcome.status]


def run() -> None:
    """Console script entry point."""
    sys.exit(main(argv=sys.argv[1:]))


if __name__ == "__main__":
    run()
