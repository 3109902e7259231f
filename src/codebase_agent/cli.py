"""
Command-line interface for codebase-agent.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Sequence

import structlog
from pydantic import ValidationError

from .config import Settings
from .errors import AgentError, ConfigurationError

logger = structlog.get_logger()


def configure_logging(level: str = "INFO") -> None:
    """Send structlog and stdlib logging to stdout."""
    logging.basicConfig(
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        force=True,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codebase-agent",
        description="Analyze a codebase with a tool-using LLM agent",
    )
    parser.add_argument("project_path", help="Absolute path to the project directory")
    parser.add_argument("--max-turns", type=int, default=None, help="Maximum model turns")
    parser.add_argument("--log-level", default=None, help="Log level (default: INFO)")
    return parser


def validate_project_path(raw: str) -> Path:
    """Resolve the target directory or raise ConfigurationError."""
    path = Path(raw).expanduser()
    try:
        if not path.is_dir():
            if path.exists():
                raise ConfigurationError("Path must be a directory")
            raise ConfigurationError("Path does not exist or is not accessible")
    except OSError as e:
        raise ConfigurationError(f"Path does not exist or is not accessible: {e}") from e
    return path.resolve()


def run(argv: Sequence[str] | None = None) -> int:
    """Run the CLI and return the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as e:
        configure_logging()
        logger.error("Invalid configuration", error=str(e))
        return 1

    overrides = {}
    if args.max_turns is not None:
        overrides["max_turns"] = args.max_turns
    if args.log_level:
        overrides["log_level"] = args.log_level.upper()
    if overrides:
        settings = settings.model_copy(update=overrides)

    configure_logging(settings.log_level)

    try:
        project_path = validate_project_path(args.project_path)
        settings.require_api_key()
    except ConfigurationError as e:
        logger.error(f"Error: {e}")
        return 1

    from .agent import Agent

    logger.info("Starting codebase analysis", project_path=str(project_path))
    logger.info("This may take a while...")

    try:
        agent = Agent(settings, project_path)
        result = asyncio.run(agent.run())
    except AgentError as e:
        logger.error("Agent execution failed", error=str(e), error_type=type(e).__name__)
        return 1

    print("\n=== ANALYSIS COMPLETE ===")
    print(result)
    return 0


def main() -> None:
    """Main entry point for the CLI."""
    sys.exit(run())


if __name__ == "__main__":
    main()
