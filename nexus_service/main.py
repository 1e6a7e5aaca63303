#!/usr/bin/env python3
"""Entry point for the nexus-service command line tool."""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .app import NexusServiceApp
from .core.config_manager import ConfigManager
from .core.logserver import LogServer, StatusReporter
from .core.nexus_client import NexusClient
from .core.service_manager import ServiceManager
from .exceptions import NexusServiceError, ValidationError
from .utils.constants import APP_NAME, LOG_PREFIX, MAX_PORT

logger = logging.getLogger(__name__)

USAGE = f"""Usage: {APP_NAME} [--config PATH] [-v] <command> [options]

COMMANDS:
    install [--node-id <id> | --wallet <wallet-address>] [--max-difficulty <level>]
        Install and configure the Nexus Network service
        --node-id <id>        Use specific node ID (required if not using wallet)
        --wallet <address>    Use wallet address for registration (required if not using node-id)
        --max-difficulty <l>  Accepted but not applied yet

    start                     Start the Nexus Network service
    stop                      Stop the Nexus Network service
    restart                   Restart the Nexus Network service
    status                    Show service status
    logs [lines]              Show service logs (default: 50 lines)
    remove                    Remove the Nexus Network service

    install-logserver         Install the logserver service
    start-logserver           Start the logserver service
    stop-logserver            Stop the logserver service
    logs-logserver [lines]    Show logserver logs (default: 50 lines)
    remove-logserver          Remove the logserver service

    help                      Show this help message

OPTIONS:
    --config PATH             Settings file (default: $NEXUS_SERVICE_CONFIG or /etc/nexus-service/config.yaml)
    -v, --verbose             Debug logging

EXAMPLES:
    {APP_NAME} install --wallet 0x1234567890abcdef1234567890abcdef12345678
    {APP_NAME} install --node-id 12345
    {APP_NAME} start
    {APP_NAME} logs 100
    {APP_NAME} install-logserver
    {APP_NAME} start-logserver
"""


class ArgumentParser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 and the full usage on errors."""

    def error(self, message):
        sys.stderr.write(f"{LOG_PREFIX} [ERROR] {message}\n\n")
        sys.stderr.write(USAGE)
        self.exit(1)


def positive_int(value: str) -> int:
    """argparse type for a line count."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid line count: {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"line count must be positive: {value!r}")
    return number


def port_number(value: str) -> int:
    """argparse type for a TCP port."""
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}")
    if not 0 <= port <= MAX_PORT:
        raise argparse.ArgumentTypeError(f"port must be between 0 and {MAX_PORT}: {value!r}")
    return port


def build_parser() -> ArgumentParser:
    """Build the command line parser."""
    parser = ArgumentParser(prog=APP_NAME, add_help=False)
    parser.add_argument("-h", "--help", action="store_true")
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {__version__}")
    parser.add_argument("--config", help="Path to the YAML settings file")
    parser.add_argument("-v", "--verbose", action="store_true")

    commands = parser.add_subparsers(dest="command", metavar="<command>")

    install = commands.add_parser("install", add_help=False)
    identity = install.add_mutually_exclusive_group(required=True)
    identity.add_argument("--node-id")
    identity.add_argument("--wallet")
    install.add_argument("--max-difficulty")

    for name in ("start", "stop", "restart", "status", "remove",
                 "install-logserver", "start-logserver", "stop-logserver",
                 "remove-logserver", "help"):
        commands.add_parser(name, add_help=False)

    for name in ("logs", "logs-logserver"):
        logs = commands.add_parser(name, add_help=False)
        logs.add_argument("lines", nargs="?", type=positive_int)

    serve = commands.add_parser("serve-logserver", add_help=False)
    serve.add_argument("--port", type=port_number)
    serve.add_argument("--nexus-bin")

    return parser


def setup_logging(verbose: bool = False, with_timestamps: bool = False):
    """Set up application logging on stderr."""
    if with_timestamps:
        fmt = '[%(asctime)s] %(levelname)s: %(message)s'
    else:
        fmt = f'{LOG_PREFIX} [%(levelname)s] %(message)s'

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=fmt,
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True
    )


def add_file_handler(log_file: str):
    """Also write log records to a file."""
    handler = logging.FileHandler(log_file)
    handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    logging.getLogger().addHandler(handler)


def run_logserver(config_manager: ConfigManager, port: Optional[int], nexus_bin: Optional[str]) -> int:
    """Run the status HTTP server in the foreground (the logserver unit's ExecStart)."""
    port = port if port is not None else config_manager.get_setting("port")
    nexus_bin = nexus_bin or config_manager.get_setting("nexus_bin")

    reporter = StatusReporter(
        ServiceManager(config_manager.get_setting("systemctl_timeout")),
        NexusClient(nexus_bin),
        config_manager.get_setting("service_name"),
        config_manager.get_setting("status_log_lines")
    )
    server = LogServer(reporter, port, retry_delay=config_manager.get_setting("bind_retry_delay"))

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return 0


def dispatch(app: NexusServiceApp, args: argparse.Namespace) -> int:
    """Run one command against the application."""
    command = args.command

    if command == "install":
        app.install_service(node_id=args.node_id, wallet=args.wallet, max_difficulty=args.max_difficulty)
    elif command == "start":
        app.start_service()
    elif command == "stop":
        app.stop_service()
    elif command == "restart":
        app.restart_service()
    elif command == "status":
        ok, text = app.show_status()
        sys.stdout.write(text)
        return 0 if ok else 1
    elif command == "logs":
        sys.stdout.write(app.show_logs(args.lines))
    elif command == "remove":
        app.remove_service()
    elif command == "install-logserver":
        app.install_logserver()
    elif command == "start-logserver":
        app.start_logserver()
    elif command == "stop-logserver":
        app.stop_logserver()
    elif command == "logs-logserver":
        sys.stdout.write(app.show_logserver_logs(args.lines))
    elif command == "remove-logserver":
        app.remove_logserver()

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    if argv is None:
        argv = sys.argv[1:]

    if not argv:
        sys.stderr.write(USAGE)
        return 1

    args = build_parser().parse_args(argv)

    if args.help or args.command == "help":
        sys.stdout.write(USAGE)
        return 0

    if args.command is None:
        sys.stderr.write(USAGE)
        return 1

    setup_logging(args.verbose, with_timestamps=args.command == "serve-logserver")

    config_manager = ConfigManager(args.config)
    config_manager.load_config()

    log_file = config_manager.get_setting("log_file")
    if log_file:
        try:
            add_file_handler(log_file)
        except OSError as e:
            logger.warning(f"Cannot write log file {log_file}: {e}")

    try:
        if args.command == "serve-logserver":
            return run_logserver(config_manager, args.port, args.nexus_bin)
        return dispatch(NexusServiceApp(config_manager), args)

    except ValidationError as e:
        logger.error(str(e))
        if e.hint:
            logger.error(e.hint)
        return 1
    except NexusServiceError as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
