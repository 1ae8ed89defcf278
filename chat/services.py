"""
Message delivery and read receipts.

MessageService is the single entry point for both transports: the HTTP
send view and the socket send_message handler call the same send(), so
both produce the same stored record and the same pair of events.

Events are delivered through the Channels layer to one group per user
("user.<id>"). Every socket the user has joined is a member of that group.
"""

from typing import Dict, List
import logging

from channels.layers import get_channel_layer
from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.db.models import Count, Q
from django.utils import timezone

from core.exceptions import NotFoundError, PersistenceError
from core.forms import validate

from .forms import CounterpartForm, SendMessageForm
from .models import Message

logger = logging.getLogger('chat.services')

EVENT_RECEIVE = 'receive_message'
EVENT_SENT = 'message_sent'
EVENT_TYPING_START = 'typing:start'
EVENT_TYPING_STOP = 'typing:stop'
EVENT_SEEN = 'message:seen'


def user_group(user_id) -> str:
    """Channels group name for a user's room."""
    return f"user.{user_id}"


class ChannelLayerNotifier:
    """Pushes {"event", "data"} envelopes to a user's room."""

    def __init__(self, channel_layer=None):
        self._channel_layer = channel_layer

    @property
    def channel_layer(self):
        if self._channel_layer is None:
            self._channel_layer = get_channel_layer()
        return self._channel_layer

    async def emit(self, user_id, event: str, data) -> None:
        layer = self.channel_layer
        if layer is None:
            logger.warning("No channel layer configured, dropping %s for user %s", event, user_id)
            return
        try:
            await layer.group_send(user_group(user_id), {
                'type': 'chat.event',
                'event': event,
                'data': data,
            })
        except Exception:
            # The change is already persisted; clients resync through history.
            logger.exception("Failed to deliver %s to user %s", event, user_id)


class MessageService:

    def __init__(self, notifier: ChannelLayerNotifier = None):
        self.notifier = notifier or ChannelLayerNotifier()

    async def send(self, sender_id, receiver_id, text) -> Message:
        """
        Persist a message and notify both rooms.

        Raises ValidationError for a missing receiver or empty text,
        NotFoundError for an unknown receiver and PersistenceError when
        the insert fails.
        """
        data = validate(SendMessageForm({'receiver_id': receiver_id, 'text': text}))
        receiver_id = data['receiver_id']

        User = get_user_model()
        if not await User.objects.filter(pk=receiver_id).aexists():
            raise NotFoundError('Receiver not found')

        try:
            message = await Message.objects.acreate(
                sender_id=sender_id,
                receiver_id=receiver_id,
                text=data['text'],
            )
        except DatabaseError as exc:
            logger.exception("Failed to store message %s -> %s", sender_id, receiver_id)
            raise PersistenceError() from exc

        logger.info("Message %s stored (%s -> %s)", message.pk, sender_id, receiver_id)
        payload = message.to_dict()
        await self.notifier.emit(receiver_id, EVENT_RECEIVE, payload)
        await self.notifier.emit(sender_id, EVENT_SENT, payload)
        return message

    async def typing(self, sender_id, receiver_id, started: bool) -> None:
        """Forward a typing indicator to the receiver's room only."""
        if not receiver_id:
            return
        receiver_id = validate(CounterpartForm({'receiver_id': receiver_id}))['receiver_id']
        event = EVENT_TYPING_START if started else EVENT_TYPING_STOP
        await self.notifier.emit(receiver_id, event, sender_id)

    async def mark_seen(self, reader_id, counterpart_id) -> int:
        """
        Mark every unread counterpart -> reader message as read.

        One conditional UPDATE; rows already read are not touched, so a
        repeated call updates nothing and emits nothing.
        """
        counterpart_id = validate(CounterpartForm({'receiver_id': counterpart_id}))['receiver_id']

        try:
            updated = await Message.objects.filter(
                sender_id=counterpart_id,
                receiver_id=reader_id,
                read_at__isnull=True,
            ).aupdate(read_at=timezone.now())
        except DatabaseError as exc:
            logger.exception("Failed to mark messages seen (%s -> %s)", counterpart_id, reader_id)
            raise PersistenceError() from exc

        if updated:
            logger.info("User %s read %d message(s) from %s", reader_id, updated, counterpart_id)
            await self.notifier.emit(counterpart_id, EVENT_SEEN, {'from': reader_id})
        return updated


# =============================================================================
# READ MODELS (HTTP only)
# =============================================================================

def conversation_list(user) -> List[Dict]:
    """
    One entry per counterpart, built from the latest message exchanged,
    newest conversation first.
    """
    User = get_user_model()
    latest = {}
    messages = (
        Message.objects
        .filter(Q(sender=user) | Q(receiver=user))
        .order_by('-created_at', '-id')
        .values('sender_id', 'receiver_id', 'text', 'created_at')
    )
    for row in messages.iterator():
        other_id = row['receiver_id'] if row['sender_id'] == user.pk else row['sender_id']
        if other_id not in latest:
            latest[other_id] = row

    unread = dict(
        Message.objects
        .filter(receiver=user, read_at__isnull=True)
        .values_list('sender_id')
        .annotate(n=Count('id'))
        .order_by()
    )
    others = User.objects.in_bulk(list(latest))

    conversations = []
    for other_id, row in latest.items():
        other = others.get(other_id)
        if other is None:
            continue
        conversations.append({
            'other_user_id': other_id,
            'name': other.display_name,
            'avatar': other.avatar,
            'role': other.role,
            'last_message': row['text'],
            'last_at': row['created_at'].isoformat(),
            'unread_count': unread.get(other_id, 0),
        })
    return conversations


def message_history(user, other_id) -> List[Dict]:
    """Messages exchanged between two users, oldest first."""
    messages = Message.objects.filter(
        Q(sender=user, receiver_id=other_id) | Q(sender_id=other_id, receiver=user)
    ).order_by('created_at', 'id')
    return [message.to_dict() for message in messages]
