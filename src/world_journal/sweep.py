"""Run a single retention sweep, for use from cron."""

import asyncio
import logging

from world_journal.app_logging import configure_logging
from world_journal.containers import build_container


def main() -> None:
    """Purge quarantined images older than the retention window."""
    configure_logging()
    container = build_container()
    report = asyncio.run(container.retention_sweeper.sweep())
    logging.getLogger(__name__).info(
        "Purged %s quarantined image(s), %s failed",
        len(report.purged),
        len(report.failed),
    )


if __name__ == "__main__":
    main()
