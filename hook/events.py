"""
Audit Events - off-chain traceability for every hook decision

Each state change (and every borrow check) produces one event. Events
are kept in a capped in-memory stream (newest first) for the status API,
written to the log, and pushed to subscribers such as an indexer.

A subscriber failure is logged and never undoes the operation that
produced the event.
"""

import time
import logging
from dataclasses import dataclass, asdict, field
from typing import Callable, Optional

logger = logging.getLogger("borrowhook.events")

DEFAULT_STREAM_SIZE = 500


@dataclass
class HookEvent:
    """Base event. `name` mirrors the on-chain event name."""
    name: str = field(init=False, default="HookEvent")
    timestamp: float = field(init=False, default_factory=time.time)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class WhitelistAdded(HookEvent):
    account: str
    by: str

    def __post_init__(self):
        self.name = "WhitelistAdded"


@dataclass
class WhitelistRemoved(HookEvent):
    account: str
    by: str

    def __post_init__(self):
        self.name = "WhitelistRemoved"


@dataclass
class WhitelistedWithSignature(HookEvent):
    account: str
    nonce: int      # counter value consumed by the authorization
    signer: str

    def __post_init__(self):
        self.name = "WhitelistedWithSignature"


@dataclass
class BorrowHookInvoked(HookEvent):
    requester: str
    on_behalf_of: str
    asset: str
    amount: int
    rate_mode: int
    allowed: bool

    def __post_init__(self):
        self.name = "BorrowHookInvoked"


@dataclass
class CapabilityGranted(HookEvent):
    capability: str
    account: str
    by: str

    def __post_init__(self):
        self.name = "CapabilityGranted"


@dataclass
class CapabilityRevoked(HookEvent):
    capability: str
    account: str
    by: str

    def __post_init__(self):
        self.name = "CapabilityRevoked"


class EventLog:
    """Capped event stream with subscriber fan-out."""

    def __init__(self, max_size: int = DEFAULT_STREAM_SIZE):
        self.max_size = max_size
        self._stream: list[HookEvent] = []
        self._subscribers: list[Callable[[HookEvent], None]] = []
        self.total_emitted: int = 0

    def subscribe(self, fn: Callable[[HookEvent], None]):
        """Register fn(event), called synchronously for every event."""
        self._subscribers.append(fn)

    def emit(self, event: HookEvent) -> HookEvent:
        self._stream.insert(0, event)
        if len(self._stream) > self.max_size:
            self._stream = self._stream[:self.max_size]
        self.total_emitted += 1

        logger.info(f"{event.name}: {_summary(event)}")

        for fn in self._subscribers:
            try:
                fn(event)
            except Exception as e:
                logger.error(f"Event subscriber failed on {event.name}: {e}")
        return event

    def recent(self, limit: int = 20, name: Optional[str] = None) -> list[HookEvent]:
        events = self._stream
        if name:
            events = [e for e in events if e.name == name]
        return events[:limit]

    def get_events_json(self, limit: int = 20, name: Optional[str] = None) -> list[dict]:
        return [e.to_dict() for e in self.recent(limit, name)]


def _summary(event: HookEvent) -> str:
    data = event.to_dict()
    data.pop("name", None)
    data.pop("timestamp", None)
    return " ".join(f"{k}={v}" for k, v in data.items())
