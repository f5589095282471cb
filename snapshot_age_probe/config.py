import argparse
import logging
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from dotenv import load_dotenv

from .classifier import REPLICATION_SUFFIX
from .errors import PreconditionError
from .models import Credentials, Thresholds

logger = logging.getLogger(__name__)

DEFAULT_ENV_PATH = Path.cwd() / ".env"
DEFAULT_PORT = 443
DEFAULT_WARNING_HOURS = 24.0
DEFAULT_ERROR_HOURS = 48.0
# About 114 years; keeps now - hours inside the datetime range.
MAX_THRESHOLD_HOURS = 1_000_000.0


@dataclass
class Config:
    # Endpoint / auth
    server: str
    user: str
    password: str
    port: int

    # Thresholds
    warning_hours: float
    error_hours: float
    replication_suffix: str

    # Mode
    debug: bool

    @property
    def credentials(self) -> Credentials:
        return Credentials(server=self.server, user=self.user, password=self.password, port=self.port)

    @property
    def thresholds(self) -> Thresholds:
        return Thresholds(warning_hours=self.warning_hours, error_hours=self.error_hours)


def _as_float(value: Optional[str], default: float, *, name: str) -> float:
    if value is None or str(value).strip() == "":
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning("Invalid number for %s=%r, using default=%s", name, value, default)
        return default
    # nan/inf and huge values cannot be turned into a timedelta cutoff
    if not math.isfinite(number) or abs(number) > MAX_THRESHOLD_HOURS:
        logger.warning("Out of range number for %s=%r, using default=%s", name, value, default)
        return default
    return number


def _as_int(value: Optional[str], default: int, *, name: str) -> int:
    if value is None or str(value).strip() == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid int for %s=%r, using default=%s", name, value, default)
        return default


def _sanitize_server(server: Optional[str]) -> str:
    host = (server or "").strip()
    return host.replace("https://", "").replace("http://", "").rstrip("/")


class ProbeArgumentParser(argparse.ArgumentParser):
    """Parser that raises instead of printing usage and exiting."""

    def error(self, message):
        raise PreconditionError(f"Invalid parameters: {message}")


def build_parser() -> argparse.ArgumentParser:
    # No -h/--help: every run must end in a sensor document.
    parser = ProbeArgumentParser(
        description="Report VMs carrying old snapshots as a PRTG sensor result",
        allow_abbrev=False,
        add_help=False,
    )

    # Endpoint / auth
    parser.add_argument("--vi-server", "-ViServer", dest="server", help="vCenter / ESXi address")
    parser.add_argument("--user", "-User", dest="user", help="Login user")
    parser.add_argument(
        "--password",
        "-Password",
        dest="password",
        help="Login password; use --password=VALUE (or -Password=VALUE) when it starts with '-'",
    )
    parser.add_argument("--port", dest="port", help="SDK port (default 443)")

    # Thresholds (kept as text, parsed leniently)
    parser.add_argument("--warning-hours", "-WarningHours", dest="warning_hours", help="Warning age in hours (default 24)")
    parser.add_argument("--error-hours", "-ErrorHours", dest="error_hours", help="Error age in hours (default 48)")
    parser.add_argument(
        "--replication-suffix",
        dest="replication_suffix",
        default=REPLICATION_SUFFIX,
        help="VM name suffix exempt from alerting (default _rep)",
    )

    # Flags
    parser.add_argument("--env-file", help="Path to .env file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging on stderr")
    return parser


def load_config(argv: Optional[Sequence[str]] = None) -> Config:
    parser = build_parser()
    args, unknown = parser.parse_known_args(argv)
    if unknown:
        logger.warning("Ignoring unknown arguments: %s", " ".join(unknown))

    # Load Env
    env_path = Path(args.env_file) if args.env_file else DEFAULT_ENV_PATH
    if env_path.exists():
        load_dotenv(env_path)

    server = args.server or os.getenv("VCENTER_HOST")
    user = args.user or os.getenv("VCENTER_USER")
    password = args.password or os.getenv("VCENTER_PASS")

    warning_hours = _as_float(
        args.warning_hours if args.warning_hours is not None else os.getenv("SNAPSHOT_WARNING_HOURS"),
        DEFAULT_WARNING_HOURS,
        name="WarningHours",
    )
    error_hours = _as_float(
        args.error_hours if args.error_hours is not None else os.getenv("SNAPSHOT_ERROR_HOURS"),
        DEFAULT_ERROR_HOURS,
        name="ErrorHours",
    )

    return Config(
        server=_sanitize_server(server),
        user=user or "",
        password=password or "",
        port=_as_int(args.port, DEFAULT_PORT, name="port"),
        warning_hours=warning_hours,
        error_hours=error_hours,
        replication_suffix=args.replication_suffix or "",
        debug=args.debug,
    )


def validate_config(config: Config) -> List[str]:
    """Return a list of issues if required connection parameters are missing."""
    issues: List[str] = []

    if not config.server:
        issues.append("ViServer is not set")
    if not config.user:
        issues.append("User is not set")
    if not config.password:
        issues.append("Password is not set")

    if not issues and config.thresholds.inverted:
        logger.warning(
            "ErrorHours (%s) is lower than WarningHours (%s); every offender will be reported as error",
            config.error_hours,
            config.warning_hours,
        )

    return issues
