import logging
from django.apps import apps
from django.db import DatabaseError, transaction
from .models import Notification

logger = logging.getLogger('incampus')


def get_channel_registry():
    return apps.get_app_config('notifications').registry


def get_notification_service():
    return NotificationService(registry=get_channel_registry())


def build_push_payload(notification):
    """
    Plain-data form of a notification for the channel layer
    """
    sender = notification.sender
    return {
        'id': notification.id,
        'type': notification.type,
        'is_read': notification.is_read,
        'created_at': notification.created_at.isoformat(),
        'sender': {
            'id': sender.id,
            'username': sender.username,
            'name': sender.name,
            'avatar_url': sender.avatar_url,
        },
    }


class NotificationService:
    """
    Records notifications and pushes them to the recipient's live sockets.

    The push happens after the surrounding transaction commits and is
    best-effort; it never fails the operation that triggered it.
    """

    def __init__(self, registry=None):
        self.registry = registry

    def notify(self, recipient, sender, notification_type):
        if recipient.id == sender.id:
            logger.debug(f"Skipping self-notification for user {sender.id}")
            return None

        try:
            with transaction.atomic():
                notification = Notification.objects.create(
                    recipient=recipient,
                    sender=sender,
                    type=notification_type,
                )
        except DatabaseError as e:
            logger.error(f"Error creating {notification_type} notification for user {recipient.id}: {str(e)}")
            return None

        payload = build_push_payload(notification)
        transaction.on_commit(lambda: self.push(recipient.id, payload))
        return notification

    def push(self, user_id, payload):
        if self.registry is None:
            return False
        try:
            delivered = self.registry.publish(user_id, payload)
        except Exception as e:
            # Runs from on_commit; the triggering operation is already committed
            logger.error(f"Realtime notification {payload.get('id')} for user {user_id} failed: {str(e)}")
            return False
        if not delivered:
            logger.info(f"Realtime notification {payload.get('id')} for user {user_id} dropped")
        return delivered
