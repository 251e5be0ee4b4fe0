"""Comment moderation gateway and classifier."""

from .classifier import AnthropicClassifier, Classifier, parse_verdict
from .gateway import ModerationGateway, sanitize_comment
from .schemas import ClassifierVerdict, ModerationCategory, ModerationVerdict


__all__ = [
    "AnthropicClassifier",
    "Classifier",
    "ClassifierVerdict",
    "ModerationCategory",
    "ModerationGateway",
    "ModerationVerdict",
    "parse_verdict",
    "sanitize_comment",
]
