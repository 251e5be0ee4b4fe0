"""Submission content helpers."""

import html
import re
import unicodedata


# Formatting tags allowed through sanitisation (bare, no attributes)
ALLOWED_TAGS = (
    "p",
    "br",
    "b",
    "i",
    "em",
    "strong",
    "code",
    "pre",
    "blockquote",
    "ul",
    "ol",
    "li",
    "h2",
    "h3",
)

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")
MAX_SLUG_LENGTH = 80


def sanitize_html(content: str) -> str:
    """Escape all HTML, then re-enable bare allowed formatting tags.

    Attributes are never allowed, so ``<p onclick=...>`` stays escaped.
    """
    escaped = html.escape(content, quote=False)
    for tag in ALLOWED_TAGS:
        escaped = escaped.replace(f"&lt;{tag}&gt;", f"<{tag}>")
        escaped = escaped.replace(f"&lt;/{tag}&gt;", f"</{tag}>")
    # Self-closing line break
    return escaped.replace("&lt;br/&gt;", "<br/>").replace("&lt;br /&gt;", "<br />")


def slugify(title: str) -> str:
    """URL slug for a title (ASCII, lowercase, hyphen separated)."""
    ascii_title = (
        unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    )
    slug = _NON_SLUG_CHARS.sub("-", ascii_title.lower()).strip("-")
    return slug[:MAX_SLUG_LENGTH].rstrip("-")


def normalize_tags(tags: list[str]) -> list[str]:
    """Trimmed, lowercased, de-duplicated tags in first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags:
        cleaned = tag.strip().lower()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)
