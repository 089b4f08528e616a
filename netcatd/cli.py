"""
Command-line entry point.

Usage:
    netcatd -p 7994 -io 'cat'
    netcatd -b '[::1]' -o 'echo hello %a, I am %p'
    netcatd --systemd -i -o -c /etc/netcatd.yaml 'logger -t netcatd-%p'
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from typing import Any

from . import __version__
from .config import DEFAULT_PORT, ServerConfig, load_config
from .exceptions import NetcatdError
from .log import LogConfig, Logger, LoggerFactory, derive_lg, resolve_level
from .log.exceptions import InvalidLogLevelError
from .net import provision
from .process import CommandTemplate, ProcessLauncher
from .server import INTERRUPTED_STATUS, Acceptor, SignalCoordinator

# Exit status for fatal startup errors and argument errors
FATAL_STATUS = 1


class DefaultsHelpFormatter(argparse.HelpFormatter):
    """Help formatter that appends non-None defaults to the help text."""

    def _get_help_string(self, action: argparse.Action) -> str:
        help_text = action.help or ""
        if action.default is not argparse.SUPPRESS and action.default not in (None, False):
            return help_text + f" (default: {action.default})"
        return help_text


class ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser whose usage errors exit with the fatal status."""

    def error(self, message: str) -> Any:
        self.print_usage(sys.stderr)
        self.exit(FATAL_STATUS, f"{self.prog}: error: {message}\n")


def _log_level(value: str) -> str:
    try:
        resolve_level(value)
    except InvalidLogLevelError as e:
        raise argparse.ArgumentTypeError(str(e)) from e
    return value


def build_parser() -> ArgumentParser:
    """Create the command-line parser."""
    parser = ArgumentParser(
        prog="netcatd",
        description="Launch a program for every connection to a TCP port.",
        epilog="In the program command line, %a is replaced by the peer address "
        "and %p by the pid of the launched process.",
        formatter_class=DefaultsHelpFormatter,
    )

    parser.add_argument(
        "--systemd",
        action="store_true",
        default=None,
        help="use systemd socket activation",
    )
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=None,
        help=f"the port to listen on (default: {DEFAULT_PORT})",
    )
    parser.add_argument(
        "-b", "--bind", default=None, metavar="ADDR", help="bind to address"
    )
    parser.add_argument(
        "-6", "--ipv6", action="store_true", default=None, help="use IPv6"
    )

    passing = parser.add_argument_group("stream passing")
    passing.add_argument(
        "-i",
        "--stdin",
        action="store_true",
        default=None,
        help="pass the standard input stream",
    )
    passing.add_argument(
        "-o",
        "--stdout",
        action="store_true",
        default=None,
        help="pass the standard output stream",
    )
    passing.add_argument(
        "-e",
        "--stderr",
        action="store_true",
        default=None,
        help="pass the standard error stream",
    )

    parser.add_argument(
        "exec",
        nargs="?",
        default=None,
        metavar="EXEC",
        help="the program command line (required unless set in the config file)",
    )

    general = parser.add_argument_group("general")
    general.add_argument(
        "-c", "--config", default=None, metavar="FILE", help="YAML configuration file"
    )
    general.add_argument(
        "-l",
        "--log-level",
        type=_log_level,
        default=None,
        metavar="LEVEL",
        help="log level (default: from config or 'info')",
    )
    general.add_argument(
        "--log-location",
        type=int,
        default=None,
        metavar="DEPTH",
        help="show file locations in logs (depth)",
    )
    general.add_argument(
        "--log-micros",
        action="store_true",
        default=None,
        help="show microseconds timestamps",
    )
    general.add_argument(
        "--no-colors",
        dest="colors",
        action="store_false",
        default=None,
        help="disable colored log output",
    )
    general.add_argument("-q", "--quiet", action="store_true", help="disable logging")
    general.add_argument(
        "--version", action="version", version=f"netcatd {__version__}"
    )
    return parser


def _server_overrides(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "exec": args.exec,
        "bind": args.bind,
        "port": args.port,
        "ipv6": args.ipv6,
        "systemd": args.systemd,
        "stdin": args.stdin,
        "stdout": args.stdout,
        "stderr": args.stderr,
    }


def _log_config(args: argparse.Namespace, config_data: dict[str, Any]) -> LogConfig:
    """Merge the logging section with command-line flags."""
    section = dict(config_data.get("logging") or {})
    overrides = {
        "level": args.log_level,
        "location": args.log_location,
        "micros": args.log_micros,
        "colors": args.colors,
    }
    section.update({k: v for k, v in overrides.items() if v is not None})
    if args.quiet:
        section["level"] = False
    return LogConfig.from_config({"logging": section})


def create_logger(args: argparse.Namespace, config_data: dict[str, Any]) -> Logger:
    """Create the root logger; an unusable logging section falls back to defaults."""
    try:
        return LoggerFactory.create_root(_log_config(args, config_data))
    except InvalidLogLevelError:
        lg = LoggerFactory.create_root(_log_config(args, {}))
        lg.warning("invalid log level in configuration, using default")
        return lg


def run(lg: Logger, config: ServerConfig) -> int:
    """
    Provision the listener and serve until interrupted.

    Raises:
        ConfigError: If the command template or bind address is invalid
        SocketSetupError: If the listening socket cannot be set up
        ActivationError: If socket activation is misconfigured
    """
    template = CommandTemplate.parse(config.exec)
    lg.debug(
        "configured",
        extra={"exec": template, "pass": str(config.passthrough), "systemd": config.systemd},
    )

    with provision(config, derive_lg(lg, "net")) as listener:
        server_lg = derive_lg(lg, "server")
        signals = SignalCoordinator(server_lg)
        launcher = ProcessLauncher(
            derive_lg(lg, "process"), template, child_setup=signals.reset_in_child
        )
        acceptor = Acceptor(server_lg, listener, launcher, config.passthrough, signals)
        return acceptor.serve()


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point.

    Returns:
        int: 1 for fatal startup errors, 2 after an interrupt
    """
    args = build_parser().parse_args(argv)

    try:
        config_data = load_config(args.config)
    except NetcatdError as e:
        lg = create_logger(args, {})
        lg.error("cannot load configuration", extra={"exception": e})
        return FATAL_STATUS

    lg = create_logger(args, config_data)
    lg.info("start", extra={"version": __version__})
    lg.debug("argv", extra={"argv": " ".join(sys.argv if argv is None else argv)})

    try:
        config = ServerConfig.from_config(config_data, overrides=_server_overrides(args))
        return run(lg, config)
    except NetcatdError as e:
        lg.error("startup failed", extra={"exception": e})
        return FATAL_STATUS
    except KeyboardInterrupt:
        # Interrupted before the acceptor installed its handlers
        lg.info("... interrupted by user")
        return INTERRUPTED_STATUS


if __name__ == "__main__":
    sys.exit(main())
