"""
SuiviTens Backend — Identity Resolver Interface
=================================================

What:  Abstract contract for turning a bearer token into a user id.
Why:   Session issuance and credential checks belong to an external auth
       service; this API only needs "which user is calling".
How:   BearerIdentityMiddleware calls `resolve()` once per request.
       Implementations plug in through `create_app(identity_resolver=...)`.

Implementations:
    - StaticTokenResolver: fixed token table (from AUTH_TOKENS or tests)
"""

from abc import ABC, abstractmethod
from typing import Dict, Mapping, Optional


class IdentityResolver(ABC):
    """
    Contract:
        - resolve() returns the caller's user id, or None for an unknown,
          expired or malformed token
        - it never raises for a bad token; errors talking to a remote
          issuer may propagate
    """

    @abstractmethod
    async def resolve(self, token: str) -> Optional[str]:
        """
        Args:
            token: The credential after "Bearer ", already stripped.

        Returns:
            The user id the token belongs to, or None.
        """
        ...


class StaticTokenResolver(IdentityResolver):
    """Looks tokens up in an in-memory mapping that never changes after construction."""

    def __init__(self, tokens: Mapping[str, str]):
        self._tokens: Dict[str, str] = dict(tokens)

    async def resolve(self, token: str) -> Optional[str]:
        return self._tokens.get(token)

    def __len__(self) -> int:
        return len(self._tokens)
