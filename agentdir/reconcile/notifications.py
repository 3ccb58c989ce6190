"""Fire-and-forget change broadcast for presentation-layer observers."""

from __future__ import annotations

import dataclasses
import datetime as dt
import typing as typ

from agentdir.common.time import utcnow
from agentdir.logging import get_logger, log_exception

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = get_logger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class ChangeEvent:
    """Signal that the directory contents changed.

    Attributes
    ----------
    count
        Number of records added by the change.
    source
        Operation that produced the change, such as ``"write"`` or
        ``"seed"``.
    occurred_at
        When the change was published.

    """

    count: int
    source: str
    occurred_at: dt.datetime = dataclasses.field(default_factory=utcnow)


type ChangeObserver = cabc.Callable[[ChangeEvent], object]


class ChangeNotifier:
    """Synchronous observer registry with no delivery or ordering guarantee.

    Observers are called in subscription order. An observer that raises is
    logged and skipped; the publisher never sees the failure.
    """

    def __init__(self) -> None:
        """Start with no observers."""
        self._observers: list[ChangeObserver] = []

    def subscribe(self, observer: ChangeObserver) -> cabc.Callable[[], None]:
        """Register ``observer`` and return a callable that unsubscribes it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def publish(self, event: ChangeEvent) -> int:
        """Deliver ``event`` to every observer and return how many succeeded."""
        delivered = 0
        for observer in list(self._observers):
            try:
                observer(event)
            except Exception as exc:  # noqa: BLE001 - observers must not break writers
                log_exception(
                    logger,
                    f"Change observer {observer!r} failed for {event.source} event",
                    exc,
                )
                continue
            delivered += 1
        return delivered

    def __len__(self) -> int:
        """Return the number of subscribed observers."""
        return len(self._observers)
