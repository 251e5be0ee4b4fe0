"""Post submissions: drafts, publishing and the public feed."""

from .models import Submission, SubmissionStatus
from .service import SubmissionService


__all__ = ["Submission", "SubmissionService", "SubmissionStatus"]
