from django.conf import settings
from django.db import models


class Message(models.Model):
    """
    A direct message between two users.

    read_at stays NULL until the receiver reports the conversation as seen;
    only that conditional update ever sets it.
    """

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='messages_sent'
    )
    receiver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='messages_received'
    )
    text = models.TextField()
    read_at = models.DateTimeField(null=True, blank=True, default=None)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at', 'id']
        verbose_name = 'Message'
        verbose_name_plural = 'Messages'
        indexes = [
            models.Index(fields=['sender', 'receiver', 'created_at'], name='message_pair_created_idx'),
            models.Index(fields=['receiver', 'read_at'], name='message_unread_idx'),
        ]

    def __str__(self):
        return f"{self.sender_id} -> {self.receiver_id}: {self.text[:40]}"

    def to_dict(self) -> dict:
        return {
            'id': self.pk,
            'sender_id': self.sender_id,
            'receiver_id': self.receiver_id,
            'text': self.text,
            'read_at': self.read_at.isoformat() if self.read_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
