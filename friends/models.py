from django.db import models
from django.conf import settings
from incampus.models import TimeStampedModel


class Friend(TimeStampedModel):
    """
    A friend request between two users, and the friendship once accepted.

    ``pair_key`` holds the unordered pair of user ids, so the database
    allows a single row per pair whichever side sent the request.
    """
    PENDING = 'pending'
    ACCEPTED = 'accepted'
    REJECTED = 'rejected'

    STATUSES = (
        (PENDING, 'Pending'),
        (ACCEPTED, 'Accepted'),
        (REJECTED, 'Rejected')
    )

    requester = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='friend_requests_sent'
    )
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='friend_requests_received'
    )
    status = models.CharField(max_length=10, choices=STATUSES, default=PENDING)
    pair_key = models.CharField(max_length=64, unique=True, editable=False)

    class Meta:
        indexes = [
            models.Index(fields=['requester', 'status'], name='friends_requester_status_idx'),
            models.Index(fields=['recipient', 'status'], name='friends_recipient_status_idx'),
        ]

    def __str__(self):
        return f"{self.requester.username} -> {self.recipient.username} ({self.status})"

    @staticmethod
    def make_pair_key(user_a_id, user_b_id):
        low, high = sorted((int(user_a_id), int(user_b_id)))
        return f"{low}:{high}"

    def save(self, *args, **kwargs):
        if self.requester_id and self.recipient_id:
            self.pair_key = self.make_pair_key(self.requester_id, self.recipient_id)
        super().save(*args, **kwargs)

    def peer_of(self, user_id):
        """Return the id of the other party"""
        return self.recipient_id if self.requester_id == user_id else self.requester_id
