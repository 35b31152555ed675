"""Acting users and capability checks."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from litestar import Request

from litestar_courier.exceptions import (
    AuthenticationRequiredError,
    AuthorizationError,
)


@dataclass(frozen=True)
class Actor:
    """An authenticated caller and the roles it holds."""

    user_id: int
    roles: frozenset[str] = field(default_factory=frozenset)

    def has_any_role(self, roles: Iterable[str]) -> bool:
        return not self.roles.isdisjoint(roles)


def require_actor(actor: Actor | None) -> Actor:
    """Return the actor or raise when the request is anonymous."""
    if actor is None:
        raise AuthenticationRequiredError()
    return actor


def require_role(actor: Actor | None, roles: Iterable[str]) -> Actor:
    """Ensure the actor holds at least one of ``roles``."""
    actor = require_actor(actor)
    if not actor.has_any_role(roles):
        raise AuthorizationError()
    return actor


def require_owner(
    actor: Actor | None,
    owner_id: int,
    bypass_roles: Iterable[str] = (),
) -> Actor:
    """Ensure the actor owns a record, unless it holds a bypass role."""
    actor = require_actor(actor)
    if actor.user_id != owner_id and not actor.has_any_role(bypass_roles):
        raise AuthorizationError()
    return actor


class HeaderActorResolver:
    """Resolve the actor from headers set by an upstream auth layer.

    ``X-User-Id`` carries the numeric user id and ``X-User-Roles`` a
    comma separated role list. Requests without a valid user id are
    anonymous.
    """

    user_header = "x-user-id"
    roles_header = "x-user-roles"

    async def resolve(self, request: Request) -> Actor | None:
        raw_id = request.headers.get(self.user_header, "").strip()
        if not raw_id.isdigit():
            return None
        raw_roles = request.headers.get(self.roles_header, "")
        roles = frozenset(
            role.strip() for role in raw_roles.split(",") if role.strip()
        )
        return Actor(user_id=int(raw_id), roles=roles)
