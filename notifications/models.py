from django.db import models
from django.conf import settings


class Notification(models.Model):
    """
    Something that happened to a user, e.g. a friend request they received.
    """
    FRIEND_REQUEST = 'friend_request'
    FRIEND_ACCEPTED = 'friend_accepted'

    TYPES = (
        (FRIEND_REQUEST, 'Friend request'),
        (FRIEND_ACCEPTED, 'Friend request accepted'),
    )

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications'
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications_sent'
    )
    type = models.CharField(max_length=20, choices=TYPES)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['recipient', 'created_at'], name='notif_recipient_created_idx'),
            models.Index(fields=['recipient', 'is_read'], name='notif_recipient_read_idx'),
        ]

    def __str__(self):
        return f"{self.type}: {self.sender_id} -> {self.recipient_id}"
