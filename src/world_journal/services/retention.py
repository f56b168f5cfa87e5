"""Retention sweep for quarantined images."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from world_journal.domain.waypoints import SweepReport
from world_journal.errors import BlobNotFound, WorldJournalError
from world_journal.services.images import BlobStore

_logger = logging.getLogger(__name__)


@dataclass
class RetentionSweeper:
    """Purges quarantined images older than the retention window."""

    blob_store: BlobStore
    retention: timedelta = timedelta(days=7)

    async def sweep(self, now: datetime | None = None) -> SweepReport:
        """Run a single sweep over the quarantine area."""
        cutoff = (now or datetime.now(tz=UTC)) - self.retention
        report = SweepReport()
        for blob in await self.blob_store.list_quarantined():
            if blob.modified_at >= cutoff:
                report.kept.append(blob.reference)
                continue
            try:
                await self.blob_store.purge(blob.reference)
            except BlobNotFound:
                _logger.warning("Quarantined image already gone: %s", blob.reference)
                report.failed.append(blob.reference)
            except WorldJournalError:
                _logger.exception("Failed to purge image %s", blob.reference)
                report.failed.append(blob.reference)
            else:
                _logger.info("Purged quarantined image %s", blob.reference)
                report.purged.append(blob.reference)
        _logger.info(
            "Retention sweep finished: purged=%s kept=%s failed=%s",
            len(report.purged),
            len(report.kept),
            len(report.failed),
        )
        return report

    async def run_forever(self, interval_seconds: float) -> None:
        """Sweep on a fixed interval until cancelled."""
        while True:
            try:
                await self.sweep()
            except Exception:
                _logger.exception("Retention sweep failed")
            await asyncio.sleep(interval_seconds)
