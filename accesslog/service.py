"""Access log parsing service — watcher mode entry point."""

import argparse
import logging
import os
import signal
import sys
import time

from watchdog.observers import Observer

from accesslog.config import ConfigError, load_config
from accesslog.watcher import FileWatcher, StatsCollector

logger = logging.getLogger(__name__)

_running = True


def _signal_handler(sig, frame):
    global _running
    logger.info("Shutdown signal received, stopping...")
    _running = False


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="access-log-service",
        description="Watch a directory and parse access log files as they arrive.",
    )
    parser.add_argument("--config", help="Path to a YAML config file")
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [ACCESSLOG] %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    logger.info("Config: input_dir=%s, output_dir=%s", config.input_dir, config.output_dir)

    os.makedirs(config.input_dir, exist_ok=True)
    os.makedirs(config.output_dir, exist_ok=True)

    stats = StatsCollector(config.output_dir, max_samples=config.max_malformed_samples)
    watcher = FileWatcher(config.output_dir, stats, max_samples=config.max_malformed_samples)

    # Process any existing .log files before starting the observer
    watcher.process_existing_files(config.input_dir)

    observer = Observer()
    observer.schedule(watcher, config.input_dir, recursive=False)
    observer.start()

    logger.info("Access log service running. Watching: %s", config.input_dir)

    try:
        while _running:
            time.sleep(1)
    except KeyboardInterrupt:
        pass

    logger.info("Shutting down...")
    observer.stop()
    observer.join(timeout=5)
    logger.info("Access log service stopped.")


if __name__ == "__main__":
    main()
