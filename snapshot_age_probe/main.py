"""Entry point for the snapshot age probe."""
import logging
import sys
from typing import Optional, Sequence

from . import reporter
from .config import load_config
from .errors import ProbeError
from .runner import SnapshotAuditor


def setup_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def run(argv: Optional[Sequence[str]] = None) -> dict:
    try:
        config = load_config(argv)
    except ProbeError as exc:
        setup_logging(False)
        return reporter.error_report(exc.message)

    setup_logging(config.debug)
    return SnapshotAuditor(config).run()


def main(argv: Optional[Sequence[str]] = None) -> int:
    document = run(argv)
    print(reporter.render(document), flush=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
