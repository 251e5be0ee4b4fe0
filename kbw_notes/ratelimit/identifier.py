"""Client identifier resolution for rate limiting."""

from collections.abc import Mapping


# Shared bucket for clients that cannot be identified
UNKNOWN_CLIENT = "unknown"


def resolve_client_identifier(
    headers: Mapping[str, str],
    client_host: str | None = None,
) -> str:
    """Pick the identifier a request is rate limited under.

    First address of ``X-Forwarded-For``, then ``X-Real-IP``, then the direct
    peer address. Unidentifiable clients all share one bucket.
    """
    forwarded_for = headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    if client_host:
        return client_host

    return UNKNOWN_CLIENT
