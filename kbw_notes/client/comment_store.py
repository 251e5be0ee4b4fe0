"""Client-side comment tree for one post.

Comments are kept in an arena (id -> node plus parent -> child ids); the
nested forest handed to the UI is derived from it on demand, so splicing a
reply or tombstoning a comment never rebuilds anything by hand.
"""

from dataclasses import dataclass, replace
from uuid import UUID

import structlog

from kbw_notes.comments.schemas import CommentResponse, CommentTreeResponse
from kbw_notes.comments.tree import TOMBSTONE, CommentNode, Forest, assemble_forest
from kbw_notes.core.errors import (
    AuthenticationRequired,
    ModerationRejection,
    NotFoundOrForbidden,
    RateLimitError,
)

from .api import NotesClient
from .optimistic import OptimisticValue


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Reaction:
    liked: bool
    count: int


@dataclass(frozen=True)
class ModerationError:
    """Why the last submission did not go through, for display."""

    message: str
    category: str | None = None


def node_from_response(response: CommentResponse) -> CommentNode:
    """Flat node (no replies) from a wire comment."""
    return CommentNode(**response.model_dump(exclude={"replies"}))


class CommentTreeStore:
    """Comments of a post as seen by the current session."""

    def __init__(self, api: NotesClient, post_id: UUID, tombstone: str = TOMBSTONE):
        self.api = api
        self.post_id = post_id
        self.tombstone = tombstone
        self.moderation_error: ModerationError | None = None
        self._nodes: dict[UUID, CommentNode] = {}
        self._children: dict[UUID | None, list[UUID]] = {}
        self._reactions: dict[UUID, OptimisticValue[Reaction]] = {}

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, comment_id: UUID) -> bool:
        return comment_id in self._nodes

    # ==========================================================================
    # Arena
    # ==========================================================================

    def _clear(self) -> None:
        self._nodes.clear()
        self._children.clear()
        self._reactions.clear()

    def _link(self, node: CommentNode) -> None:
        """Add a node under its parent, or as a root if the parent is unknown."""
        if node.id in self._nodes:
            self._nodes[node.id] = node
            return
        parent = node.parent_id if node.parent_id in self._nodes else None
        self._nodes[node.id] = node
        self._children.setdefault(parent, []).append(node.id)
        self._reactions[node.id] = OptimisticValue(
            Reaction(liked=node.liked_by_viewer, count=node.reaction_count)
        )

    def load(self, roots: list[CommentResponse]) -> None:
        """Replace the arena with a server forest (pre-order keeps parents first)."""
        self._clear()
        stack = list(reversed(roots))
        while stack:
            response = stack.pop()
            self._link(node_from_response(response))
            stack.extend(reversed(response.replies))

    def tree(self) -> Forest:
        """The nested forest, with local reaction state applied."""
        nodes = {}
        for comment_id, node in self._nodes.items():
            reaction = self._reactions[comment_id].value
            nodes[comment_id] = replace(
                node, reaction_count=reaction.count, liked_by_viewer=reaction.liked
            )
        return assemble_forest(nodes, self._children)

    def reaction(self, comment_id: UUID) -> Reaction:
        return self._reactions[comment_id].value

    # ==========================================================================
    # Operations
    # ==========================================================================

    async def refresh(self) -> Forest:
        data = await self.api.get_comments(self.post_id)
        self.load(CommentTreeResponse.model_validate(data).comments)
        logger.debug(
            "comment_tree_refreshed", post_id=str(self.post_id), count=len(self)
        )
        return self.tree()

    async def add_comment(self, content: str) -> CommentNode:
        """Submit a top-level comment.

        Raises:
            ModerationRejection: The classifier rejected the text
            RateLimitError: Too many submissions from this client
        """
        return await self._submit(content, None)

    async def add_reply(self, parent_id: UUID, content: str) -> CommentNode:
        """Submit a reply; it is placed under ``parent_id`` once approved."""
        return await self._submit(content, parent_id)

    async def _submit(self, content: str, parent_id: UUID | None) -> CommentNode:
        self.moderation_error = None
        try:
            verdict = await self.api.moderate_comment(self.post_id, content, parent_id)
        except RateLimitError as e:
            self.moderation_error = ModerationError(e.message, e.code)
            raise

        if not verdict.get("approved"):
            rejection = ModerationRejection(
                verdict.get("rejectionReason") or ModerationRejection().message,
                verdict.get("category"),
            )
            self.moderation_error = ModerationError(
                rejection.message, rejection.category
            )
            raise rejection

        # Canonical row, so the local node matches what other readers see
        data = await self.api.get_comment(UUID(str(verdict["commentId"])))
        node = node_from_response(CommentResponse.model_validate(data))
        self._link(node)
        return node

    async def delete_comment(self, comment_id: UUID) -> None:
        """Delete an own comment; it stays in place as a tombstone."""
        await self.api.delete_comment(comment_id)
        node = self._nodes.get(comment_id)
        if node is not None and not node.is_deleted:
            self._nodes[comment_id] = replace(
                node, content=self.tombstone, is_deleted=True
            )

    async def toggle_reaction(self, comment_id: UUID) -> Reaction:
        """Flip the viewer's like, showing the result before the server answers.

        On success the local state follows the server's answer; on failure
        the previous state is restored and the error re-raised.
        """
        if not self.api.is_authenticated:
            raise AuthenticationRequired("You must be logged in to react")
        state = self._reactions.get(comment_id)
        if state is None:
            raise NotFoundOrForbidden("Comment not found")

        current = state.value
        delta = -1 if current.liked else 1
        pending = state.apply(
            Reaction(liked=not current.liked, count=max(0, current.count + delta))
        )
        try:
            result = await self.api.toggle_comment_like(comment_id)
        except Exception:
            state.rollback(pending)
            raise

        state.confirm(
            pending,
            Reaction(liked=bool(result["liked"]), count=int(result["reactionCount"])),
        )
        return state.value

    def clear_moderation_error(self) -> None:
        self.moderation_error = None
