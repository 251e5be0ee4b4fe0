"""Test helpers shared across packages."""

from types import FunctionType
from unittest.mock import MagicMock, Mock

from kbw_notes.auth.security import create_access_token


def auth_headers(user_id, email: str = "alice@kbw.vc", name: str = "Alice") -> dict:
    """Bearer header for a signed-in user."""
    token = create_access_token({"sub": str(user_id), "email": email, "name": name})
    return {"Authorization": f"Bearer {token}"}


def rows(*items):
    """Result set stand-in: iterable, with ``one()``."""
    result = MagicMock()
    result.__iter__.side_effect = lambda: iter(items)
    result.one = Mock(return_value=items[0] if items else None)
    return result


def applied(value: bool = True):
    """Result of a lightweight transaction."""
    result = Mock()
    result.was_applied = value
    return result


def cql_router(*routes):
    """``aexecute`` side effect choosing a result by statement text.

    Each route is ``(needle, result)``; the first needle found in the
    prepared statement's CQL wins. A plain function result is called with
    the bound parameters.
    """

    async def aexecute(statement, params=None):
        cql = getattr(statement, "cql", str(statement))
        for needle, result in routes:
            if needle in cql:
                return result(params) if isinstance(result, FunctionType) else result
        raise AssertionError(f"unexpected statement: {cql}")

    return aexecute


def executed(session, needle: str) -> list:
    """Parameters of every ``aexecute`` call whose CQL contains ``needle``."""
    return [
        call.args[1] if len(call.args) > 1 else None
        for call in session.aexecute.call_args_list
        if needle in getattr(call.args[0], "cql", str(call.args[0]))
    ]
