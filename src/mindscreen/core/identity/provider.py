"""Caller identity: who is submitting the assessment."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class IdentityProvider(Protocol):
    """Supplies the authenticated caller's numeric user id.

    ``None`` means the transport does not carry an identity (a trusted local
    client); the ownership check is then skipped.
    """

    def current_user_id(self) -> int | None: ...


class StaticIdentityProvider:
    """Identity fixed at startup (e.g. one server process per signed-in user)."""

    def __init__(self, user_id: int | None = None) -> None:
        self._user_id = user_id

    def current_user_id(self) -> int | None:
        return self._user_id
