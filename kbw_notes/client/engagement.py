"""Optimistic like and bookmark toggles for a post."""

from dataclasses import dataclass
from uuid import UUID

from kbw_notes.core.errors import AuthenticationRequired
from kbw_notes.engagement.models import EngagementKind

from .api import NotesClient
from .optimistic import OptimisticValue
from .singleflight import SingleFlight


@dataclass(frozen=True)
class ToggleState:
    active: bool
    count: int


class PostEngagement:
    """The viewer's like and bookmark state on one post."""

    def __init__(
        self,
        api: NotesClient,
        post_id: UUID,
        liked: bool = False,
        like_count: int = 0,
        bookmarked: bool = False,
        bookmark_count: int = 0,
        inflight: SingleFlight | None = None,
    ):
        self.api = api
        self.post_id = post_id
        self._states = {
            EngagementKind.LIKE: OptimisticValue(ToggleState(liked, like_count)),
            EngagementKind.BOOKMARK: OptimisticValue(
                ToggleState(bookmarked, bookmark_count)
            ),
        }
        self._inflight = inflight or SingleFlight()

    @classmethod
    async def load(cls, api: NotesClient, post_id: UUID) -> "PostEngagement":
        data = await api.get_engagement(post_id)
        return cls(
            api,
            post_id,
            liked=data["liked"],
            like_count=data["likeCount"],
            bookmarked=data["bookmarked"],
            bookmark_count=data["bookmarkCount"],
        )

    @property
    def liked(self) -> bool:
        return self._states[EngagementKind.LIKE].value.active

    @property
    def like_count(self) -> int:
        return self._states[EngagementKind.LIKE].value.count

    @property
    def bookmarked(self) -> bool:
        return self._states[EngagementKind.BOOKMARK].value.active

    @property
    def bookmark_count(self) -> int:
        return self._states[EngagementKind.BOOKMARK].value.count

    async def toggle_like(self) -> bool | None:
        return await self._toggle(EngagementKind.LIKE)

    async def toggle_bookmark(self) -> bool | None:
        return await self._toggle(EngagementKind.BOOKMARK)

    async def _toggle(self, kind: EngagementKind) -> bool | None:
        """Flip one toggle; returns the server state, or None if one is running.

        Raises:
            AuthenticationRequired: No signed-in session (nothing is sent)
        """
        if not self.api.is_authenticated:
            raise AuthenticationRequired(f"You must be logged in to {kind.value} posts")

        key = (self.post_id, kind)
        if not self._inflight.acquire(key):
            return None
        try:
            state = self._states[kind]
            current = state.value
            delta = -1 if current.active else 1
            pending = state.apply(
                ToggleState(not current.active, max(0, current.count + delta))
            )
            request = (
                self.api.toggle_post_like
                if kind == EngagementKind.LIKE
                else self.api.toggle_post_bookmark
            )
            try:
                result = await request(self.post_id)
            except Exception:
                state.rollback(pending)
                raise
            state.confirm(
                pending, ToggleState(bool(result["active"]), int(result["count"]))
            )
            return state.value.active
        finally:
            self._inflight.release(key)
