"""
Command-line interface for the restarter.

Usage: restarter [options] <command> [args...]

Options must come before the command; everything from the first positional
argument onwards is passed to the child untouched.
"""

import argparse
import asyncio
import logging
import shlex
import signal
import sys
from logging.handlers import RotatingFileHandler

from . import __version__
from .config import Config, config
from .models import HealthCheckKind, SupervisionConfig
from .supervisor import Supervisor, SupervisorError

logger = logging.getLogger(__name__)

EPILOG = """\
Examples:
  restarter --health-check-url http://localhost:3000/health node server.js
  restarter --health-check-command "curl localhost:3000" ./my-server
  restarter --health-check-url http://localhost:3000/health --expected-status-codes 200,201,204 node server.js
"""


def configure_logging(settings: Config = config):
    """Console logging, plus a rotating file when LOG_FILE is set."""
    log_formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(log_formatter)
    handlers = [console_handler]

    if settings.log_file:
        file_handler = RotatingFileHandler(
            settings.log_file,
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
        )
        file_handler.setFormatter(log_formatter)
        handlers.append(file_handler)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        handlers=handlers,
        force=True,
    )


def parse_status_codes(value: str) -> frozenset[int]:
    """Parse a comma-separated list such as "200,201,204"."""
    try:
        codes = frozenset(int(part) for part in value.split(",") if part.strip())
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid status code list: {value!r}")
    if not codes:
        raise argparse.ArgumentTypeError("expected at least one status code")
    return codes


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return number


def build_parser(settings: Config = config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="restarter",
        description="Run a command and restart it when its health check fails.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    probe = parser.add_mutually_exclusive_group()
    probe.add_argument(
        "--health-check-url",
        metavar="URL",
        help="URL to GET for health checks",
    )
    probe.add_argument(
        "--health-check-command",
        metavar="CMD",
        help="command to run for health checks (exit 0 means healthy)",
    )
    parser.add_argument(
        "--expected-status-codes",
        type=parse_status_codes,
        metavar="CODES",
        help="comma-separated list of acceptable HTTP status codes (default: 2xx)",
    )
    parser.add_argument(
        "--check-interval",
        type=positive_int,
        default=settings.check_interval,
        metavar="MS",
        help="health check interval in milliseconds (default: %(default)s)",
    )
    parser.add_argument(
        "--max-retries",
        type=int,
        default=settings.max_retries,
        metavar="N",
        help="maximum consecutive restart attempts, -1 for unlimited (default: %(default)s)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("command", nargs=argparse.REMAINDER, help="command to supervise")
    return parser


def parse_args(argv: list[str], settings: Config = config) -> SupervisionConfig:
    """Turn command-line arguments into a validated SupervisionConfig."""
    parser = build_parser(settings)
    args = parser.parse_args(argv)

    if args.command and args.command[0] == "--":
        args.command = args.command[1:]
    if not args.command:
        parser.error("no command specified")

    health_check_command = None
    if args.health_check_command:
        health_check_command = shlex.split(args.health_check_command)

    try:
        return SupervisionConfig(
            command=args.command,
            health_check_url=args.health_check_url,
            health_check_command=health_check_command,
            expected_status_codes=args.expected_status_codes,
            check_interval=args.check_interval,
            max_retries=args.max_retries,
        )
    except ValueError as e:
        parser.error(str(e))


async def run(supervision: SupervisionConfig, settings: Config = config) -> int:
    """Supervise until stopped (exit 0) or a fatal error (exit 1)."""
    supervisor = Supervisor(supervision, settings)

    loop = asyncio.get_running_loop()
    signals = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, lambda: asyncio.ensure_future(supervisor.stop()))
            signals.append(sig)
        except NotImplementedError:
            # Windows event loops have no signal handler support
            pass

    if supervision.health_check_kind is HealthCheckKind.NONE:
        logger.info("No health check specified, will only monitor process existence")

    try:
        await supervisor.start()
        # The signal handler's stop() may still be killing the child
        await supervisor.stop()
    except SupervisorError as e:
        logger.error(f"Supervision failed: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error while supervising: {e}")
        await supervisor.stop()
        return 1
    finally:
        for sig in signals:
            loop.remove_signal_handler(sig)
    return 0


def main(argv: list[str] = None):
    """Console entry point."""
    configure_logging()
    supervision = parse_args(sys.argv[1:] if argv is None else argv)
    sys.exit(asyncio.run(run(supervision)))


if __name__ == "__main__":
    main()
