"""CLI command for trimming game data containers."""

import logging
import argparse
from pathlib import Path
import sys
from typing import Optional, Sequence

from .common import ConfigLoader, ConfigurationError, setup_logging
from .config.schema import TrimConfig
from .processing.trimmer import GameDataTrimmer, TrimSummary, format_size

APP_NAME = "iwd-trim"

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_USAGE = 2


def progress_callback(logger: logging.Logger, current: int, total: int, name: str) -> None:
    """Log container progress.
    
    Args:
        logger: Logger instance
        current: Current container number (1-based)
        total: Number of containers in the current directory
        name: Name of current container
    """
    percent = (current / total) * 100 if total > 0 else 0
    logger.debug(f"Container {current}/{total} ({percent:.1f}%): {name}")


def log_summary(logger: logging.Logger, summary: TrimSummary) -> None:
    """Log per-run totals and failures."""
    for failure in summary.failures:
        logger.error(f"Failed: {failure.path}: {failure.error}")
    for failure in summary.directory_failures:
        logger.error(f"Failed to remove directory {failure.path}: {failure.error}")

    prefix = "[dry run] " if summary.dry_run else ""
    logger.info(f"{prefix}Total files removed: {summary.total_files_removed}")
    logger.info(f"{prefix}Total size removed: {format_size(summary.total_bytes_removed)}")


def trim_command(config: TrimConfig, base_dir_override: Optional[Path] = None) -> int:
    """Trim every container under the configured base directory.
    
    Args:
        config: Configuration object
        base_dir_override: Optional override for the base directory
    
    Returns:
        Exit code
    """
    logger = logging.getLogger(__package__ or __name__)

    base_dir = base_dir_override if base_dir_override else Path(config.processing.base_dir)
    if not base_dir.is_dir():
        logger.error(f"Directory '{base_dir}' not found")
        return EXIT_USAGE

    trimmer = GameDataTrimmer(config)
    try:
        summary = trimmer.run(
            base_dir,
            progress_callback=lambda c, t, n: progress_callback(logger, c, t, n)
        )
    except Exception as e:
        logger.exception(f"Trimming failed: {e}")
        return EXIT_FAILURES

    log_summary(logger, summary)
    return EXIT_FAILURES if summary.has_failures else EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Remove images, sounds and videos from game data containers"
    )
    parser.add_argument(
        "base_dir",
        type=Path,
        nargs="?",
        help="Game installation directory (overrides config, default: current directory)"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (TOML)"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would be removed without changing anything"
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail a container if any kept entry cannot be copied"
    )
    parser.add_argument(
        "--replace-mode",
        choices=["atomic", "delete_then_rename"],
        help="How rebuilt containers replace the originals"
    )
    parser.add_argument(
        "--no-verify",
        action="store_true",
        help="Skip re-reading rebuilt containers before replacing originals"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)"
    )
    return parser


def apply_overrides(config: TrimConfig, args: argparse.Namespace) -> TrimConfig:
    """Return a copy of config with command-line flags applied."""
    processing = {}
    if args.dry_run:
        processing["dry_run"] = True
    if args.strict:
        processing["strict"] = True
    if args.no_verify:
        processing["verify_output"] = False
    if args.replace_mode:
        processing["replace_mode"] = args.replace_mode

    update = {"processing": config.processing.model_copy(update=processing)}
    if args.log_level:
        update["logging"] = config.logging.model_copy(update={"level": args.log_level})
    return config.model_copy(update=update)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the trim command."""
    args = build_parser().parse_args(argv)

    loader = ConfigLoader(app_name=APP_NAME, config_class=TrimConfig)
    try:
        config = loader.load(defaults_path=args.config)
    except ConfigurationError as e:
        setup_logging()
        logging.getLogger(__package__ or __name__).error(e.message)
        return EXIT_USAGE

    config = apply_overrides(config, args)

    setup_logging(
        level=config.logging.level,
        format=config.logging.format,
        log_file=Path(config.logging.file) if config.logging.file else None,
    )

    return trim_command(config, base_dir_override=args.base_dir)


if __name__ == "__main__":
    sys.exit(main())
