"""Async client for the KBW Notes API with optimistic local state."""

from kbw_notes.client.api import NotesClient, map_error
from kbw_notes.client.comment_store import CommentTreeStore, ModerationError, Reaction
from kbw_notes.client.draft import SubmissionDraft
from kbw_notes.client.engagement import PostEngagement
from kbw_notes.client.optimistic import OptimisticState, OptimisticValue
from kbw_notes.client.session import AuthSession
from kbw_notes.client.singleflight import SingleFlight


__all__ = [
    "AuthSession",
    "CommentTreeStore",
    "ModerationError",
    "NotesClient",
    "OptimisticState",
    "OptimisticValue",
    "PostEngagement",
    "Reaction",
    "SingleFlight",
    "SubmissionDraft",
    "map_error",
]
