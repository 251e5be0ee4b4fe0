"""Tests for the auto-saving submission draft."""

import asyncio
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from kbw_notes.client.api import NotesClient
from kbw_notes.client.draft import SubmissionDraft, fields_from_wire
from kbw_notes.core.errors import StorageError, ValidationError


SUBMISSION_ID = uuid4()


def wire_submission(**overrides) -> dict:
    submission = {
        "id": str(SUBMISSION_ID),
        "status": "draft",
        "title": "",
        "excerpt": "",
        "content": "",
        "coverImageUrl": None,
        "tags": [],
    }
    submission.update(overrides)
    return submission


@pytest.fixture
def api():
    api = Mock(spec=NotesClient)
    api.create_submission = AsyncMock(return_value=wire_submission())
    api.get_submission = AsyncMock(return_value=wire_submission(title="Saved"))
    api.update_submission = AsyncMock(return_value=wire_submission())
    api.publish_submission = AsyncMock(
        return_value=wire_submission(status="published")
    )
    return api


def make_draft(api, interval: float = 60.0, **kwargs) -> SubmissionDraft:
    return SubmissionDraft(api, wire_submission(), autosave_interval=interval, **kwargs)


class TestFields:
    def test_fields_from_wire_defaults(self) -> None:
        fields = fields_from_wire({"id": "x", "title": None, "tags": None})
        assert fields == {
            "title": "",
            "excerpt": "",
            "content": "",
            "cover_image_url": None,
            "tags": [],
        }

    @pytest.mark.asyncio
    async def test_unknown_field(self, api) -> None:
        draft = make_draft(api)
        with pytest.raises(ValidationError):
            draft.set("status", "published")

    @pytest.mark.asyncio
    async def test_open_loads_saved_copy(self, api) -> None:
        draft = await SubmissionDraft.open(api, SUBMISSION_ID, autosave_interval=1)
        assert draft.fields["title"] == "Saved"
        assert draft.is_dirty is False


class TestDirtiness:
    """Dirty means the working copy differs from the last save."""

    @pytest.mark.asyncio
    async def test_edit_marks_dirty_and_schedules(self, api) -> None:
        draft = make_draft(api)
        draft.set("title", "Hello")
        assert draft.is_dirty is True
        assert draft.autosave_pending is True
        draft.close()

    @pytest.mark.asyncio
    async def test_revert_cancels_autosave(self, api) -> None:
        draft = make_draft(api, interval=0.01)
        draft.set("title", "Hello")
        draft.set("title", "")

        assert draft.is_dirty is False
        assert draft.autosave_pending is False
        await asyncio.sleep(0.05)
        api.update_submission.assert_not_called()

    @pytest.mark.asyncio
    async def test_tags_compared_by_value(self, api) -> None:
        draft = make_draft(api)
        tags = ["python"]
        draft.set("tags", tags)
        tags.append("mutated")
        assert draft.fields["tags"] == ["python"]
        draft.set("tags", [])
        assert draft.is_dirty is False


class TestSaving:
    @pytest.mark.asyncio
    async def test_autosave_writes_changed_fields(self, api) -> None:
        draft = make_draft(api, interval=0.01)
        draft.update(title="Hello", cover_image_url="https://img.example/a.png")

        await asyncio.sleep(0.05)

        api.update_submission.assert_awaited_once_with(
            SUBMISSION_ID,
            {"title": "Hello", "coverImageUrl": "https://img.example/a.png"},
        )
        assert draft.is_dirty is False

    @pytest.mark.asyncio
    async def test_save_now_without_changes(self, api) -> None:
        draft = make_draft(api)
        assert await draft.save_now() is True
        api.update_submission.assert_not_called()

    @pytest.mark.asyncio
    async def test_single_flight(self, api) -> None:
        release = asyncio.Event()

        async def slow_update(submission_id, changes):
            await release.wait()
            return wire_submission()

        api.update_submission.side_effect = slow_update
        draft = make_draft(api)
        draft.set("title", "Hello")

        first = asyncio.create_task(draft.save_now())
        await asyncio.sleep(0)
        assert draft.is_saving is True
        assert await draft.save_now() is False

        release.set()
        assert await first is True
        assert api.update_submission.await_count == 1
        assert draft.is_saving is False

    @pytest.mark.asyncio
    async def test_edit_during_save_stays_dirty(self, api) -> None:
        release = asyncio.Event()

        async def slow_update(submission_id, changes):
            await release.wait()
            return wire_submission()

        api.update_submission.side_effect = slow_update
        draft = make_draft(api)
        draft.set("title", "Hello")

        task = asyncio.create_task(draft.save_now())
        await asyncio.sleep(0)
        draft.set("content", "Body")
        release.set()
        await task

        assert draft.saved_fields["title"] == "Hello"
        assert draft.saved_fields["content"] == ""
        assert draft.is_dirty is True
        assert draft.autosave_pending is True
        draft.close()

    @pytest.mark.asyncio
    async def test_failure_keeps_edits(self, api) -> None:
        on_error = Mock()
        api.update_submission.side_effect = StorageError("Failed to save draft")
        draft = make_draft(api, on_error=on_error)
        draft.set("title", "Hello")

        with pytest.raises(StorageError):
            await draft.save_now()

        assert draft.is_dirty is True
        assert draft.fields["title"] == "Hello"
        assert draft.last_error.message == "Failed to save draft"
        on_error.assert_called_once()

    @pytest.mark.asyncio
    async def test_autosave_failure_reported_not_raised(self, api) -> None:
        on_error = Mock()
        api.update_submission.side_effect = StorageError()
        draft = make_draft(api, interval=0.01, on_error=on_error)
        draft.set("title", "Hello")

        await asyncio.sleep(0.05)

        on_error.assert_called_once()
        assert draft.is_dirty is True

    @pytest.mark.asyncio
    async def test_close_stops_autosave(self, api) -> None:
        async with make_draft(api, interval=0.01) as draft:
            draft.set("title", "Hello")
        await asyncio.sleep(0.05)
        api.update_submission.assert_not_called()

    @pytest.mark.asyncio
    async def test_close_during_save_schedules_nothing(self, api) -> None:
        release = asyncio.Event()

        async def slow_update(submission_id, changes):
            await release.wait()
            return wire_submission()

        api.update_submission.side_effect = slow_update
        draft = make_draft(api, interval=0.01)
        draft.set("title", "Hello")

        task = asyncio.create_task(draft.save_now())
        await asyncio.sleep(0)
        draft.set("content", "Body")
        draft.close()
        release.set()
        await task
        await asyncio.sleep(0.05)

        assert draft.autosave_pending is False
        assert api.update_submission.await_count == 1
        assert draft.is_dirty is True

    @pytest.mark.asyncio
    async def test_set_after_close_schedules_nothing(self, api) -> None:
        draft = make_draft(api, interval=0.01)
        draft.close()
        draft.set("title", "Hello")

        await asyncio.sleep(0.05)

        assert draft.autosave_pending is False
        api.update_submission.assert_not_called()


class TestPublish:
    @pytest.mark.asyncio
    async def test_requires_title_and_content(self, api) -> None:
        draft = make_draft(api)
        draft.set("title", "Only a title")

        with pytest.raises(ValidationError):
            await draft.publish()

        api.update_submission.assert_not_called()
        api.publish_submission.assert_not_called()
        draft.close()

    @pytest.mark.asyncio
    async def test_flushes_before_publishing(self, api) -> None:
        draft = make_draft(api)
        draft.update(title="Title", content="<p>Body</p>")

        await draft.publish()

        names = [call[0] for call in api.method_calls]
        assert names == ["update_submission", "publish_submission"]
        assert draft.status == "published"
        assert draft.is_dirty is False
        assert draft.autosave_pending is False

    @pytest.mark.asyncio
    async def test_refused_while_saving(self, api) -> None:
        release = asyncio.Event()

        async def slow_update(submission_id, changes):
            await release.wait()
            return wire_submission()

        api.update_submission.side_effect = slow_update
        draft = make_draft(api)
        draft.update(title="Title", content="Body")
        task = asyncio.create_task(draft.save_now())
        await asyncio.sleep(0)

        with pytest.raises(StorageError):
            await draft.publish()
        api.publish_submission.assert_not_called()

        release.set()
        await task
