"""
Registry of live websocket channels, keyed by user id.

Each connected socket joins the channel-layer group ``user_<id>``;
publishing to a user sends one message to that group. Delivery is
best-effort: nothing is acknowledged or retried, and a failing, full or
slow layer drops the event. A publish never waits longer than
``REALTIME_PUSH_TIMEOUT`` seconds.
"""

import asyncio
import logging
from asgiref.sync import async_to_sync
from channels.exceptions import ChannelFull
from channels.layers import get_channel_layer
from django.conf import settings

logger = logging.getLogger('incampus')


class ChannelRegistry:
    """
    Explicit replacement for a process-wide socket map. One instance is
    created when the notifications app is ready and handed to the views,
    services and consumers that need it.
    """
    group_prefix = 'user'
    event_type = 'notification.event'

    def __init__(self, layer_alias='default', timeout=None):
        self.layer_alias = layer_alias
        self.timeout = timeout

    @property
    def channel_layer(self):
        return get_channel_layer(self.layer_alias)

    @property
    def push_timeout(self):
        if self.timeout is not None:
            return self.timeout
        return settings.REALTIME_PUSH_TIMEOUT

    def group_name(self, user_id):
        return f"{self.group_prefix}_{user_id}"

    async def register(self, user_id, channel_name):
        await self.channel_layer.group_add(self.group_name(user_id), channel_name)
        logger.debug(f"Registered channel {channel_name} for user {user_id}")

    async def unregister(self, user_id, channel_name):
        await self.channel_layer.group_discard(self.group_name(user_id), channel_name)
        logger.debug(f"Unregistered channel {channel_name} for user {user_id}")

    async def apublish(self, user_id, event):
        """
        Send ``event`` to every live channel of ``user_id``.
        Returns False when the event was dropped.
        """
        try:
            layer = self.channel_layer
            if layer is None:
                logger.warning("No channel layer configured; dropping realtime event")
                return False

            await asyncio.wait_for(
                layer.group_send(self.group_name(user_id), {
                    'type': self.event_type,
                    'event': event,
                }),
                timeout=self.push_timeout,
            )
        except ChannelFull:
            logger.warning(f"Channel full for user {user_id}; dropping realtime event")
            return False
        except asyncio.TimeoutError:
            logger.warning(
                f"Realtime push to user {user_id} timed out after {self.push_timeout}s; dropping event"
            )
            return False
        except Exception as e:
            logger.warning(f"Realtime push to user {user_id} failed: {str(e)}")
            return False
        return True

    def publish(self, user_id, event):
        return async_to_sync(self.apublish)(user_id, event)
