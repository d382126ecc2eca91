"""
Mixin class giving components guarded access to the persistence gateway.

Panels and the review island never call the gateway directly. They go
through ``_persist``, which:
- catches every failure so nothing is raised into the caller's render path
- logs the failure and shows a transient error notice
- discards results that arrive after the component was disposed
- tracks how many calls are in flight, for loading indicators

Example:
   class MyPanel(PersistenceActionsMixin):
       def __init__(self, gateway, notifier):
           PersistenceActionsMixin.__init__(self, gateway, notifier)

       async def delete(self, item):
           outcome = await self._persist(
               "delete feedback", self._gateway.delete(item.id)
           )
           if outcome.ok:
               ...  # mutate local state only after confirmation

Note:
   Components using this mixin should initialize it by calling
   PersistenceActionsMixin.__init__() with a gateway and a notifier.
"""

from dataclasses import dataclass
from typing import Awaitable, Generic, Iterable, List, Optional, TypeVar

from document_feedback.feedback.exceptions import StaleReferenceError
from document_feedback.feedback.interface import FeedbackNotifier, FeedbackObserver
from document_feedback.feedback.models import FeedbackItem
from document_feedback.logging.logger import get_logger
from document_feedback.storage.gateway import FeedbackGateway

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class ActionOutcome(Generic[T]):
    """
    Result of a guarded gateway call.

    Attributes:
        ok: The call succeeded and the component is still live
        value: Whatever the gateway returned
        discarded: The component was disposed before the call finished
    """

    ok: bool
    value: Optional[T] = None
    discarded: bool = False


class PersistenceActionsMixin:
    """Mixin for components that mutate feedback through the gateway."""

    def __init__(
        self,
        gateway: FeedbackGateway,
        notifier: FeedbackNotifier,
        observers: Optional[Iterable[FeedbackObserver]] = None,
    ):
        """
        Initialize the persistence capabilities.

        Args:
            gateway: Storage backend for feedback records
            notifier: Where user-visible notices are sent
            observers: Components to notify after confirmed changes
        """
        self._gateway = gateway
        self._notifier = notifier
        self._observers: List[FeedbackObserver] = list(observers or [])
        self._in_flight = 0
        self._disposed = False

    @property
    def is_loading(self) -> bool:
        """Whether any gateway call is currently in flight."""
        return self._in_flight > 0

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Detach the component; results of in-flight calls will be discarded."""
        self._disposed = True

    def add_observer(self, observer: FeedbackObserver) -> None:
        """Add an observer to be notified of feedback changes."""
        if observer not in self._observers:
            self._observers.append(observer)

    def remove_observer(self, observer: FeedbackObserver) -> None:
        """Remove an observer from the notification list."""
        if observer in self._observers:
            self._observers.remove(observer)

    async def _persist(self, description: str, call: Awaitable[T]) -> ActionOutcome[T]:
        """
        Await a gateway call and report any failure.

        Args:
            description: What the call does, phrased to follow "Failed to"
            call: The gateway coroutine

        Returns:
            The outcome; local state should only change when ``ok`` is true
        """
        self._in_flight += 1
        try:
            value = await call
        except Exception as e:
            logger.error(f"Failed to {description}: {str(e)}")
            if self._disposed:
                return ActionOutcome(ok=False, discarded=True)
            self._notifier.error(f"Failed to {description}")
            return ActionOutcome(ok=False)
        finally:
            self._in_flight -= 1

        if self._disposed:
            logger.info(f"Discarding result of '{description}' for a disposed view")
            return ActionOutcome(ok=False, value=value, discarded=True)

        return ActionOutcome(ok=True, value=value)

    def _report_stale(self, error: StaleReferenceError) -> None:
        """Turn a reference to vanished feedback into a soft notice."""
        logger.info(str(error))
        self._notifier.info("This feedback is no longer available")

    def _notify_created(self, item: FeedbackItem) -> None:
        for observer in self._observers:
            observer.on_feedback_created(item)

    def _notify_updated(self, item: FeedbackItem) -> None:
        for observer in self._observers:
            observer.on_feedback_updated(item)

    def _notify_removed(self, feedback_id: str) -> None:
        for observer in self._observers:
            observer.on_feedback_removed(feedback_id)
