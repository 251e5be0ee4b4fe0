"""Optimistic local state with explicit confirm and rollback.

An ``OptimisticValue`` holds the value a user sees. ``apply`` records the
previous value and shows the new one immediately; the outcome of the
network call then either confirms it (usually with the server's value) or
restores the captured previous value.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar


T = TypeVar("T")


class OptimisticState(str, Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    ROLLED_BACK = "rolled_back"


@dataclass
class Pending(Generic[T]):
    """Handle for one optimistic mutation."""

    previous: T
    version: int


class OptimisticValue(Generic[T]):
    """A locally displayed value reconciled against server responses.

    Mutations still waiting for an answer are kept oldest first. Each one's
    ``previous`` is the value to fall back to if it fails, so settling an
    older mutation hands its outcome to the next newer one instead of
    touching the displayed value. A failed mutation with nothing newer
    pending restores its ``previous``; the server's answer is adopted as
    it arrives unless a newer answer has already been adopted.
    """

    def __init__(self, value: T):
        self.value = value
        self.state = OptimisticState.CONFIRMED
        self._version = 0
        self._outstanding: list[Pending[T]] = []

    def apply(self, new_value: T) -> Pending[T]:
        pending = Pending(previous=self.value, version=self._version + 1)
        self._version = pending.version
        self._outstanding.append(pending)
        self.value = new_value
        self.state = OptimisticState.PENDING
        return pending

    def _position(self, pending: Pending[T]) -> int | None:
        for index, outstanding in enumerate(self._outstanding):
            if outstanding.version == pending.version:
                return index
        return None

    def is_current(self, pending: Pending[T]) -> bool:
        """True when ``pending`` is the newest unsettled mutation."""
        return bool(self._outstanding) and (
            self._outstanding[-1].version == pending.version
        )

    def confirm(self, pending: Pending[T], server_value: T) -> bool:
        """Adopt the server's value.

        Returns False when a newer mutation is still pending (it will
        reconcile again) or when a newer answer was already adopted, in
        which case nothing changes.
        """
        index = self._position(pending)
        if index is None:
            return False
        self.value = server_value
        # Older mutations are superseded by this answer
        del self._outstanding[: index + 1]
        if self._outstanding:
            self._outstanding[0].previous = server_value
            return False
        self.state = OptimisticState.CONFIRMED
        return True

    def rollback(self, pending: Pending[T]) -> bool:
        """Undo a failed mutation.

        Returns True when the displayed value was restored. A failure with a
        newer mutation still pending only moves its fallback down to that
        mutation and returns False.
        """
        index = self._position(pending)
        if index is None:
            return False
        del self._outstanding[index]
        if index < len(self._outstanding):
            self._outstanding[index].previous = pending.previous
            return False
        self.value = pending.previous
        self.state = (
            OptimisticState.PENDING
            if self._outstanding
            else OptimisticState.ROLLED_BACK
        )
        return True
