"""Token-table authorizer for tests, demos and service-to-service callers."""
import logging
from typing import Dict, Mapping, Optional

from order_core.application.interfaces import Actor, IAuthorizer


logger = logging.getLogger(__name__)


class StaticTokenAuthorizer(IAuthorizer):
    """Resolves opaque tokens from a fixed token -> Actor table."""

    def __init__(self, tokens: Optional[Mapping[str, Actor]] = None):
        self._tokens: Dict[str, Actor] = dict(tokens or {})

    def register(self, token: str, actor: Actor) -> None:
        self._tokens[token] = actor

    def revoke(self, token: str) -> None:
        self._tokens.pop(token, None)

    async def resolve(self, credential: Optional[str]) -> Optional[Actor]:
        if credential is None:
            return None
        actor = self._tokens.get(credential)
        if actor is None:
            logger.warning("Rejected unknown credential")
        return actor
