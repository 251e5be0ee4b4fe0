"""Identity: email domain guard, accounts and access tokens."""

from kbw_notes.auth.guard import IdentityGuard, is_email_allowed, normalize_email


__all__ = ["IdentityGuard", "is_email_allowed", "normalize_email"]
