"""
Socket connection authentication.

The socket is authenticated with the same Django session as the HTTP API.
AuthMiddlewareStack resolves the session cookie into scope["user"]; the
authenticator turns that into an Identity, or None to reject the socket.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from channels.auth import get_user


@dataclass(frozen=True)
class Identity:
    user_id: int


class ConnectionAuthenticator(ABC):
    """Resolves a connection scope to an Identity, or None to reject it."""

    @abstractmethod
    async def authenticate(self, scope) -> Optional[Identity]:
        ...


class SessionConnectionAuthenticator(ConnectionAuthenticator):

    async def authenticate(self, scope) -> Optional[Identity]:
        user = scope.get('user')
        if user is None and 'session' in scope:
            user = await get_user(scope)
        if user is None or not user.is_authenticated:
            return None
        return Identity(user_id=user.pk)
