"""In-memory retry queue for failed notifications.

Holds one RetryRecord per pending redelivery. The queue only stores and
releases records; redelivery itself is done by the notification service
when the sweeper calls it.

The queue is not persisted and does not survive a restart.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from notification_service.utils.timestamps import format_timestamp, utc_now

from .payloads import TemplateName


@dataclass
class RetryRecord:
    """A pending redelivery attempt.

    Attributes:
        recipient: Destination address
        template_name: Template to render on redelivery
        payload: Notification fields, passed through unchanged
        attempt_count: Attempts already made (at least 1)
        enqueued_at: When the record entered the queue (UTC)
    """

    recipient: str
    template_name: TemplateName
    payload: Dict[str, Any] = field(default_factory=dict)
    attempt_count: int = 1
    enqueued_at: datetime = field(default_factory=utc_now)

    def is_ready(self, now: datetime, delay: timedelta) -> bool:
        return now - self.enqueued_at >= delay

    def to_status(self) -> Dict[str, Any]:
        """Monitoring view: ``{to, template, retryCount, addedAt}``."""
        return {
            "to": self.recipient,
            "template": self.template_name.value,
            "retryCount": self.attempt_count,
            "addedAt": format_timestamp(self.enqueued_at),
        }


class RetryQueue:
    """FIFO list of RetryRecords gated by a redelivery delay.

    Mutated only from the event loop thread. drain_ready() swaps the whole
    list out and puts unready records back in one synchronous step, so no
    lock is needed.
    """

    def __init__(
        self,
        delay_seconds: float = 5,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            delay_seconds: Minimum age before a record may be redelivered
            clock: Source of the current UTC time (injectable for tests)
        """
        self.delay = timedelta(seconds=delay_seconds)
        self.clock = clock
        self._records: List[RetryRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    def now(self) -> datetime:
        return self.clock()

    def enqueue(self, record: RetryRecord) -> None:
        """Append a record. No deduplication."""
        self._records.append(record)

    def drain_ready(self, now: Optional[datetime] = None) -> List[RetryRecord]:
        """Remove and return records whose delay has elapsed.

        Records that are not ready stay queued in their original order.
        """
        now = now or self.clock()
        snapshot, self._records = self._records, []

        ready = []
        for record in snapshot:
            if record.is_ready(now, self.delay):
                ready.append(record)
            else:
                self._records.append(record)
        return ready

    def snapshot(self) -> List[RetryRecord]:
        """Copy of the records currently held."""
        return list(self._records)

    def status(self) -> Dict[str, Any]:
        """``{queueLength, items}`` for the monitoring endpoint."""
        records = self.snapshot()
        return {
            "queueLength": len(records),
            "items": [record.to_status() for record in records],
        }

    def clear(self) -> None:
        self._records.clear()
