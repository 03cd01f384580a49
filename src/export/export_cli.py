#!/usr/bin/env python3
"""
CLI entry point for the sliced scroll export.

Usage:
    es-export pull --host http://localhost:9200 --index logs-* \\
        --query query.json --slice 8 --output docs.jsonl
    es-export pull --config export.yaml --user elastic
    es-export completion bash > /etc/bash_completion.d/es-export
"""

import argparse
import getpass
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import shtab
from dotenv import load_dotenv

from .config import ExportConfig, load_config
from .connectors import ElasticsearchScrollConnector, RetryingConnector
from .core.exceptions import ExportError, SinkError
from .core.logging import configure_logging
from .core.models import ExportResult
from .progress import LoggingProgressTracker, ProgressTracker, RichProgressTracker
from .query_loader import load_query
from .runner import ExportRunner
from .utils.retry import RetryConfig


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="es-export",
        description="Export all documents matching a query using parallel sliced scrolls",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    pull = subparsers.add_parser("pull", help="Export documents into a file, one per line")
    pull.add_argument("--config", type=Path, help="Path to configuration YAML file")
    pull.add_argument("--host", help="Search service URL (default: http://localhost:9200)")
    pull.add_argument("-u", "--user", help="Basic auth user; the password is prompted for")
    pull.add_argument("-i", "--index", help="Index or index pattern to export")
    pull.add_argument("-q", "--query", help="JSON query file, or - for stdin")
    pull.add_argument("-s", "--slice", dest="slices", type=int, help="Number of parallel slices")
    pull.add_argument("-b", "--batch", dest="page_size", type=int, help="Documents per page")
    pull.add_argument("-o", "--output", help="Output file")
    pull.add_argument("--ttl", dest="scroll_ttl", help="Scroll keep-alive (default: 1m)")
    pull.add_argument("--timeout", type=int, help="HTTP timeout in seconds")
    pull.add_argument(
        "--retries",
        dest="max_retries",
        type=int,
        help="Retry the initial search of a slice this many times on connection errors",
    )
    pull.add_argument(
        "--no-clear-scroll",
        dest="clear_scroll",
        action="store_false",
        default=None,
        help="Leave scroll sessions to expire instead of releasing them",
    )
    pull.add_argument(
        "--insecure",
        dest="verify_ssl",
        action="store_false",
        default=None,
        help="Skip TLS certificate verification",
    )
    pull.add_argument(
        "--no-progress",
        dest="progress",
        action="store_false",
        default=None,
        help="Log status changes instead of drawing progress bars",
    )
    pull.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    pull.add_argument("--json-logs", action="store_true", help="Emit JSON-structured logs")
    pull.add_argument("--json", action="store_true", help="Print the run summary as JSON")

    completion_parser = subparsers.add_parser(
        "completion", help="Generate a shell completion script for es-export"
    )
    completion_parser.add_argument("shell", choices=shtab.SUPPORTED_SHELLS, help="Target shell")
    completion_parser.add_argument(
        "output",
        nargs="?",
        type=Path,
        help="File to write the script to (default: stdout)",
    )

    return parser


def resolve_config(args: argparse.Namespace) -> ExportConfig:
    """Merge config file, environment and flags, prompting for a password if needed."""
    config = load_config(args.config).with_overrides(
        host=args.host,
        user=args.user,
        index=args.index,
        query=args.query,
        slices=args.slices,
        page_size=args.page_size,
        output=args.output,
        scroll_ttl=args.scroll_ttl,
        timeout=args.timeout,
        max_retries=args.max_retries,
        clear_scroll=args.clear_scroll,
        verify_ssl=args.verify_ssl,
        progress=args.progress,
    )
    config.validate()

    if config.user and config.password is None:
        config.password = getpass.getpass(f"Enter host password for user {config.user}: ")
    return config


def build_connector_factory(config: ExportConfig):
    """Return a factory producing one connector per worker."""
    def factory():
        connector = ElasticsearchScrollConnector(
            host=config.host,
            user=config.user,
            password=config.password,
            timeout=config.timeout,
            verify_ssl=config.verify_ssl,
        )
        if config.max_retries > 0:
            return RetryingConnector(
                connector, RetryConfig(max_attempts=config.max_retries + 1)
            )
        return connector

    return factory


def build_progress(config: ExportConfig) -> ProgressTracker:
    if config.progress and sys.stderr.isatty():
        return RichProgressTracker(slice_count=config.slices)
    return LoggingProgressTracker(slice_count=config.slices)


def print_summary(result: ExportResult, as_json: bool = False) -> None:
    if as_json:
        print(json.dumps(result.to_dict(), ensure_ascii=True))
        return

    duration = (result.ended_at - result.started_at).total_seconds()
    print(
        f"Export {result.status}: documents_written={result.documents_written}"
        f" slices={len(result.slices)} duration={duration:.2f}s"
    )
    for error in result.errors:
        print(f"  error: {error}")


def pull(args: argparse.Namespace) -> int:
    config = resolve_config(args)
    query = load_query(config.query)

    runner = ExportRunner(
        connector_factory=build_connector_factory(config),
        output_path=Path(config.output),
        config=config.runner_config(),
        progress=build_progress(config),
    )
    result = runner.run(query)
    print_summary(result, as_json=args.json)
    return 0 if result.succeeded else 1


def completion(args: argparse.Namespace) -> int:
    """Write the completion script for the requested shell."""
    script = shtab.complete(build_parser(), shell=args.shell)
    if args.output is None:
        sys.stdout.write(script)
        return 0

    try:
        args.output.write_text(script, encoding="utf-8")
    except OSError as e:
        raise SinkError(f"Cannot write completion script {args.output}: {e}")
    logger.info(f"Wrote {args.shell} completion script to: {args.output}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    load_dotenv()
    args = build_parser().parse_args(argv)

    configure_logging(
        level=logging.DEBUG if getattr(args, "verbose", False) else logging.INFO,
        structured=getattr(args, "json_logs", False),
    )

    try:
        if args.command == "pull":
            return pull(args)
        if args.command == "completion":
            return completion(args)
        return 2
    except ExportError as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 1
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
