"""Email domain guard.

Sign-up, password sign-in and password reset are restricted to one email
domain. Addresses are normalised before the check so that look-alike input
(fullwidth characters, zero-width joiners, soft hyphens) cannot slip past a
naive comparison:

    >>> guard = IdentityGuard("kbw.vc")
    >>> guard.is_allowed("Alice@KBW.vc")
    True
    >>> guard.is_allowed("alice\\u200b@kbw.vc")
    True
    >>> guard.is_allowed("attacker@evil.com@kbw.vc")
    False
"""

import re
import unicodedata

from kbw_notes.config.settings import get_settings
from kbw_notes.core.errors import ValidationError


# Zero-width and invisible formatting characters used for spoofing
_INVISIBLE_CHARS = re.compile(
    "[\u200b-\u200f\ufeff\u00ad\u034f\u061c\u115f\u1160"
    "\u17b4\u17b5\u180b-\u180d\u2060-\u206f]"
)


def normalize_email(email: str) -> str:
    """Canonical form of an email address (NFKC, lowercase, no invisibles)."""
    normalized = unicodedata.normalize("NFKC", email).lower()
    return _INVISIBLE_CHARS.sub("", normalized).strip()


class IdentityGuard:
    """Decides whether an email address may authenticate."""

    def __init__(self, allowed_domain: str):
        self.allowed_domain = allowed_domain.lower()
        self._pattern = re.compile(
            rf"^[a-z0-9._%+-]+@{re.escape(self.allowed_domain)}$"
        )

    def is_allowed(self, email: str) -> bool:
        normalized = normalize_email(email)

        if not self._pattern.match(normalized):
            return False

        # Exactly one "@" and an exact (not suffix) domain match
        if normalized.count("@") != 1:
            return False
        local_part, domain = normalized.split("@")
        return len(local_part) > 0 and domain == self.allowed_domain

    def require(self, email: str) -> str:
        """Return the normalised email or raise before any backend call.

        Raises:
            ValidationError: If the address is not on the allowed domain
        """
        if not self.is_allowed(email):
            raise ValidationError(f"Only @{self.allowed_domain} emails are allowed")
        return normalize_email(email)


def is_email_allowed(email: str) -> bool:
    """Check an address against the configured domain."""
    return IdentityGuard(get_settings().auth_allowed_email_domain).is_allowed(email)
