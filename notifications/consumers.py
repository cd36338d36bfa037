import json
from channels.generic.websocket import AsyncWebsocketConsumer
from django.utils import timezone
from .services import get_channel_registry
import logging

logger = logging.getLogger('incampus')


class NotificationConsumer(AsyncWebsocketConsumer):
    """
    WebSocket consumer delivering a user's notifications in real time
    """
    registry = None

    def get_registry(self):
        return self.registry or get_channel_registry()

    async def connect(self):
        """
        Handle connection - authenticate user and register the channel
        """
        self.user = self.scope.get('user')
        if self.user is None or not self.user.is_authenticated:
            logger.warning("Unauthenticated connection attempt to NotificationConsumer")
            await self.close()
            return

        await self.get_registry().register(self.user.id, self.channel_name)
        self.registered = True

        logger.info(f"User {self.user.id} connected to notifications WebSocket")
        await self.accept()

        await self.send(text_data=json.dumps({
            'type': 'connection_established',
            'message': 'Connected to notifications channel',
            'timestamp': timezone.now().isoformat()
        }))

    async def disconnect(self, close_code):
        if getattr(self, 'registered', False):
            await self.get_registry().unregister(self.user.id, self.channel_name)
            logger.info(f"User {self.user.id} disconnected from notifications WebSocket")

    async def receive(self, text_data=None, bytes_data=None):
        """
        Handle messages from WebSocket
        """
        try:
            data = json.loads(text_data or '')
        except ValueError:
            await self.send(text_data=json.dumps({
                'type': 'error',
                'message': 'Invalid message',
                'timestamp': timezone.now().isoformat()
            }))
            return

        if isinstance(data, dict) and data.get('type') == 'heartbeat':
            await self.send(text_data=json.dumps({
                'type': 'heartbeat_response',
                'timestamp': timezone.now().isoformat()
            }))

    async def notification_event(self, event):
        """
        Forward a published notification to the socket
        """
        await self.send(text_data=json.dumps({
            'type': 'notification',
            'data': event.get('event', {}),
        }))
