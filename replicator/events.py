"""Event sink counting records written to the target store."""

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class EventCounters:
    """Point-in-time copy of the sink's counters."""
    records_seeded: int = 0
    events_sent: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class EventSink:
    """
    Counts synchronization events.

    records_seeded counts writes made by full/paginated syncs, events_sent
    counts every record written to the target. Both are reset at the start
    of each full/paginated invocation and only grow otherwise.
    """

    def __init__(self):
        self._records_seeded = 0
        self._events_sent = 0

    @property
    def records_seeded(self) -> int:
        return self._records_seeded

    @property
    def events_sent(self) -> int:
        return self._events_sent

    def reset(self) -> None:
        self._records_seeded = 0
        self._events_sent = 0

    def record_seeded(self, count: int = 1) -> None:
        self._records_seeded += count

    def record_sent(self, count: int = 1) -> None:
        self._events_sent += count

    def snapshot(self) -> EventCounters:
        return EventCounters(
            records_seeded=self._records_seeded,
            events_sent=self._events_sent,
        )
