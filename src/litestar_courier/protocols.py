"""Courier protocol extensions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from litestar import Request

    from litestar_courier.actors import Actor

__all__ = [
    "ActorResolver",
]


@runtime_checkable
class ActorResolver(Protocol):
    """Maps an incoming request to the acting user.

    Authentication itself lives outside this package; a resolver only
    reads what the auth layer established.
    """

    async def resolve(self, request: Request) -> Actor | None:
        """Return the actor for ``request`` or ``None`` when anonymous."""
        ...
