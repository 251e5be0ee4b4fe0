"""Auto-saving editor state for a submission draft.

The draft keeps the working copy apart from the last saved snapshot.
Dirtiness is equality between the two, so reverting an edit clears it.
Saves are debounced and single-flight: while one save is running, another
``save_now`` returns False without writing.
"""

import asyncio
import copy
from collections.abc import Callable
from typing import Any
from uuid import UUID

import structlog

from kbw_notes.config import get_settings
from kbw_notes.core.errors import NotesError, StorageError, ValidationError

from .api import NotesClient
from .singleflight import SingleFlight


logger = structlog.get_logger(__name__)

# Python name -> wire name
DRAFT_FIELDS = {
    "title": "title",
    "excerpt": "excerpt",
    "content": "content",
    "cover_image_url": "coverImageUrl",
    "tags": "tags",
}

ErrorCallback = Callable[[NotesError], None]


def fields_from_wire(submission: dict) -> dict[str, Any]:
    fields = {name: submission.get(wire) for name, wire in DRAFT_FIELDS.items()}
    fields["tags"] = list(fields["tags"] or [])
    for name in ("title", "excerpt", "content"):
        fields[name] = fields[name] or ""
    return fields


class SubmissionDraft:
    """Working copy of one submission with debounced auto-save."""

    def __init__(
        self,
        api: NotesClient,
        submission: dict,
        autosave_interval: float | None = None,
        on_error: ErrorCallback | None = None,
    ):
        self.api = api
        self.submission_id = UUID(str(submission["id"]))
        self.status = submission.get("status", "draft")
        self.autosave_interval = (
            autosave_interval
            if autosave_interval is not None
            else get_settings().draft_autosave_interval_seconds
        )
        self.on_error = on_error
        self.last_error: NotesError | None = None
        self._saved = fields_from_wire(submission)
        self._working = copy.deepcopy(self._saved)
        self._timer: asyncio.Task | None = None
        self._inflight = SingleFlight()
        self._closed = False

    @classmethod
    async def create(cls, api: NotesClient, **kwargs) -> "SubmissionDraft":
        return cls(api, await api.create_submission(), **kwargs)

    @classmethod
    async def open(
        cls, api: NotesClient, submission_id: UUID, **kwargs
    ) -> "SubmissionDraft":
        return cls(api, await api.get_submission(submission_id), **kwargs)

    async def __aenter__(self) -> "SubmissionDraft":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    # ==========================================================================
    # State
    # ==========================================================================

    @property
    def fields(self) -> dict[str, Any]:
        return copy.deepcopy(self._working)

    @property
    def saved_fields(self) -> dict[str, Any]:
        return copy.deepcopy(self._saved)

    @property
    def is_dirty(self) -> bool:
        return self._working != self._saved

    @property
    def is_saving(self) -> bool:
        return self._inflight.busy()

    @property
    def autosave_pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def set(self, field: str, value: Any) -> None:
        """Edit one field and (re)start the auto-save timer if dirty."""
        if field not in DRAFT_FIELDS:
            raise ValidationError(f"Unknown field: {field}")
        self._working[field] = list(value) if field == "tags" else value
        if self.is_dirty:
            self._schedule()
        else:
            self._cancel_timer()

    def update(self, **fields: Any) -> None:
        for field, value in fields.items():
            self.set(field, value)

    def _changes(self) -> dict[str, Any]:
        return {
            DRAFT_FIELDS[name]: value
            for name, value in self._working.items()
            if self._saved.get(name) != value
        }

    # ==========================================================================
    # Saving
    # ==========================================================================

    def _schedule(self) -> None:
        self._cancel_timer()
        if self._closed:
            return
        self._timer = asyncio.get_running_loop().create_task(self._autosave())

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _autosave(self) -> None:
        await asyncio.sleep(self.autosave_interval)
        # Detach so edits made during the save do not cancel it
        self._timer = None
        if not self.is_dirty:
            return
        try:
            await self.save_now()
        except NotesError as e:
            logger.warning(
                "draft_autosave_failed",
                submission_id=str(self.submission_id),
                code=e.code,
            )

    async def save_now(self) -> bool:
        """Write pending changes.

        Returns:
            True when the draft is saved, False if another save was running

        Raises:
            NotesError: The save failed; the draft stays dirty
        """
        if not self._inflight.acquire():
            return False
        try:
            self._cancel_timer()
            changes = self._changes()
            if not changes:
                return True

            snapshot = copy.deepcopy(self._working)
            try:
                await self.api.update_submission(self.submission_id, changes)
            except NotesError as e:
                self.last_error = e
                if self.on_error is not None:
                    self.on_error(e)
                raise

            self._saved = snapshot
            self.last_error = None
            logger.debug("draft_saved", submission_id=str(self.submission_id))
            # Edits made while the request was in flight
            if self.is_dirty:
                self._schedule()
            return True
        finally:
            self._inflight.release()

    async def publish(self) -> dict:
        """Validate, flush unsaved edits, then publish.

        Raises:
            ValidationError: Title or content is empty
            StorageError: Another save is still running
        """
        missing = [
            name
            for name in ("title", "content")
            if not str(self._working.get(name) or "").strip()
        ]
        if missing:
            raise ValidationError("Title and content are required to publish")

        while self.is_dirty:
            if not await self.save_now():
                raise StorageError("Draft is still saving. Please try again.")

        data = await self.api.publish_submission(self.submission_id)
        self.status = data.get("status", "published")
        self._cancel_timer()
        return data

    def close(self) -> None:
        """Stop auto-save for good. Unsaved edits are not written.

        A save already in flight still completes but schedules nothing.
        """
        self._closed = True
        self._cancel_timer()
