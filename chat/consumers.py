"""
WebSocket gateway for chat.

One consumer per connection. Lifecycle:

    connecting -> session_validated -> joined -> active -> disconnected

Frames are JSON envelopes {"event": <name>, "data": <payload>} in both
directions. A failing event handler is logged and the event is dropped;
the connection stays open.
"""

import enum
import logging

from channels.generic.websocket import AsyncJsonWebsocketConsumer

from config.logging_filters import set_correlation_id
from config.middleware import new_correlation_id
from core.exceptions import AuthorizationError, MentorshipError, ValidationError

from .authentication import SessionConnectionAuthenticator
from .services import MessageService, user_group

logger = logging.getLogger('chat.consumers')

CLOSE_UNAUTHENTICATED = 4401


class ConnectionState(enum.Enum):
    CONNECTING = 'connecting'
    SESSION_VALIDATED = 'session_validated'
    JOINED = 'joined'
    ACTIVE = 'active'
    DISCONNECTED = 'disconnected'


class ChatConsumer(AsyncJsonWebsocketConsumer):

    authenticator = SessionConnectionAuthenticator()
    service_class = MessageService

    handlers = {
        'join': 'on_join',
        'send_message': 'on_send_message',
        'typing:start': 'on_typing_start',
        'typing:stop': 'on_typing_stop',
        'message:seen': 'on_seen',
    }

    async def connect(self):
        self.state = ConnectionState.CONNECTING
        self.identity = None
        self.room = None
        set_correlation_id(f"ws-{new_correlation_id()}")

        self.identity = await self.authenticator.authenticate(self.scope)
        if self.identity is None:
            logger.info("Rejected unauthenticated socket")
            await self.close(code=CLOSE_UNAUTHENTICATED)
            return

        self.state = ConnectionState.SESSION_VALIDATED
        self.service = self.service_class()
        await self.accept()
        logger.info("Socket connected for user %s", self.identity.user_id)

    async def disconnect(self, code):
        if self.room:
            await self.channel_layer.group_discard(self.room, self.channel_name)
            self.room = None
        self.state = ConnectionState.DISCONNECTED
        if self.identity:
            logger.info("Socket closed for user %s (code %s)", self.identity.user_id, code)

    async def receive(self, text_data=None, bytes_data=None, **kwargs):
        if text_data is None:
            logger.warning("Dropping binary frame")
            return
        try:
            content = await self.decode_json(text_data)
        except ValueError:
            logger.warning("Dropping frame that is not valid JSON")
            return
        await self.receive_json(content, **kwargs)

    async def receive_json(self, content, **kwargs):
        if not isinstance(content, dict):
            logger.warning("Dropping non-object frame")
            return

        event = content.get('event')
        handler_name = self.handlers.get(event)
        if handler_name is None:
            logger.warning("Dropping unknown event %r", event)
            return

        try:
            await getattr(self, handler_name)(content.get('data'))
        except MentorshipError as exc:
            logger.info("Dropped %s from user %s: %s", event, self.identity.user_id, exc.message)
        except Exception:
            logger.exception("Dropped %s from user %s", event, self.identity.user_id)

    # -------------------------------------------------------------------------
    # Client -> server events
    # -------------------------------------------------------------------------

    async def on_join(self, data):
        user_id = data.get('userId', data.get('user_id')) if isinstance(data, dict) else data
        if str(user_id) != str(self.identity.user_id):
            raise AuthorizationError(f"Cannot join room of user {user_id}")

        room = user_group(self.identity.user_id)
        if self.room != room:
            await self.channel_layer.group_add(room, self.channel_name)
            self.room = room
        self.state = ConnectionState.JOINED
        logger.info("User %s joined %s", self.identity.user_id, room)

    async def on_send_message(self, data):
        data = self._payload(data)
        await self.service.send(self.identity.user_id, data.get('receiver_id'), data.get('text'))

    async def on_typing_start(self, data):
        data = self._payload(data)
        await self.service.typing(self.identity.user_id, data.get('receiver_id'), started=True)

    async def on_typing_stop(self, data):
        data = self._payload(data)
        await self.service.typing(self.identity.user_id, data.get('receiver_id'), started=False)

    async def on_seen(self, data):
        data = self._payload(data)
        await self.service.mark_seen(self.identity.user_id, data.get('receiver_id'))

    def _payload(self, data) -> dict:
        """Validate an event payload and the claimed sender."""
        if not isinstance(data, dict):
            raise ValidationError('Expected an object payload')
        claimed = data.get('sender_id')
        if claimed is not None and str(claimed) != str(self.identity.user_id):
            raise AuthorizationError(f"sender_id {claimed} does not match the session user")
        if self.state is ConnectionState.JOINED:
            self.state = ConnectionState.ACTIVE
        return data

    # -------------------------------------------------------------------------
    # Server -> client (channel layer)
    # -------------------------------------------------------------------------

    async def chat_event(self, message):
        await self.send_json({'event': message['event'], 'data': message['data']})
