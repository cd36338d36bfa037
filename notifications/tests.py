import asyncio
import time
from unittest import mock
from channels.exceptions import ChannelFull, InvalidChannelLayerError
from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from rest_framework.test import APIClient, APITestCase
from rest_framework import status
from incampus.realtime import ChannelRegistry
from users.models import User
from .consumers import NotificationConsumer
from .middleware import JWTAuthMiddleware
from .models import Notification
from .services import NotificationService, build_push_payload, get_channel_registry


def make_user(username, **extra):
    return User.objects.create_user(
        username=username,
        email=f'{username}@example.com',
        password='password123',
        name=username.title(),
        **extra
    )


class NotificationServiceTests(TestCase):
    def setUp(self):
        self.registry = mock.Mock()
        self.registry.publish.return_value = True
        self.service = NotificationService(registry=self.registry)
        self.alice = make_user('alice')
        self.bob = make_user('bob')

    def test_notify_records_and_pushes_after_commit(self):
        with self.captureOnCommitCallbacks(execute=False) as callbacks:
            notification = self.service.notify(self.bob, self.alice, Notification.FRIEND_REQUEST)

        self.assertFalse(notification.is_read)
        self.registry.publish.assert_not_called()
        self.assertEqual(len(callbacks), 1)

        callbacks[0]()
        self.registry.publish.assert_called_once_with(self.bob.id, build_push_payload(notification))

    def test_self_notification_is_skipped(self):
        self.assertIsNone(self.service.notify(self.alice, self.alice, Notification.FRIEND_REQUEST))
        self.assertEqual(Notification.objects.count(), 0)

    def test_database_failure_is_logged_not_raised(self):
        with mock.patch.object(Notification.objects, 'create', side_effect=DatabaseError('disk full')):
            self.assertIsNone(self.service.notify(self.bob, self.alice, Notification.FRIEND_ACCEPTED))

    def test_dropped_push_is_reported(self):
        self.registry.publish.return_value = False
        self.assertFalse(self.service.push(self.bob.id, {'id': 1}))

    def test_push_never_raises(self):
        self.registry.publish.side_effect = RuntimeError('event loop closed')
        self.assertFalse(self.service.push(self.bob.id, {'id': 1}))

    def test_push_without_registry(self):
        self.assertFalse(NotificationService().push(self.bob.id, {'id': 1}))

    def test_push_payload(self):
        notification = Notification.objects.create(
            recipient=self.bob, sender=self.alice, type=Notification.FRIEND_REQUEST
        )
        payload = build_push_payload(notification)
        self.assertEqual(payload['type'], 'friend_request')
        self.assertEqual(payload['sender']['username'], 'alice')
        self.assertFalse(payload['is_read'])

    def test_app_registry_is_shared(self):
        self.assertIsInstance(get_channel_registry(), ChannelRegistry)
        self.assertIs(get_channel_registry(), get_channel_registry())


class ChannelRegistryTests(SimpleTestCase):
    async def test_publish_reaches_registered_channel(self):
        registry = ChannelRegistry()
        layer = get_channel_layer()
        channel = await layer.new_channel()

        await registry.register(7, channel)
        self.assertTrue(await registry.apublish(7, {'id': 3}))

        message = await layer.receive(channel)
        self.assertEqual(message, {'type': 'notification.event', 'event': {'id': 3}})

        await registry.unregister(7, channel)
        await layer.flush()

    async def test_full_channel_drops_event(self):
        registry = ChannelRegistry()
        layer = mock.Mock()
        layer.group_send = mock.AsyncMock(side_effect=ChannelFull())
        with mock.patch.object(ChannelRegistry, 'channel_layer', new_callable=mock.PropertyMock) as channel_layer:
            channel_layer.return_value = layer
            self.assertFalse(await registry.apublish(7, {'id': 3}))

    async def test_slow_layer_is_abandoned_after_timeout(self):
        async def stalled_send(group, message):
            await asyncio.sleep(5)

        registry = ChannelRegistry(timeout=0.05)
        layer = mock.Mock()
        layer.group_send = mock.AsyncMock(side_effect=stalled_send)
        with mock.patch.object(ChannelRegistry, 'channel_layer', new_callable=mock.PropertyMock) as channel_layer:
            channel_layer.return_value = layer
            started = time.monotonic()
            delivered = await registry.apublish(7, {'id': 3})

        self.assertFalse(delivered)
        self.assertLess(time.monotonic() - started, 1)

    async def test_misconfigured_layer_drops_event(self):
        registry = ChannelRegistry()
        with mock.patch.object(ChannelRegistry, 'channel_layer', new_callable=mock.PropertyMock) as channel_layer:
            channel_layer.side_effect = InvalidChannelLayerError('No BACKEND specified for default')
            self.assertFalse(await registry.apublish(7, {'id': 3}))

    async def test_missing_layer_drops_event(self):
        registry = ChannelRegistry()
        with mock.patch.object(ChannelRegistry, 'channel_layer', new_callable=mock.PropertyMock) as channel_layer:
            channel_layer.return_value = None
            self.assertFalse(await registry.apublish(7, {'id': 3}))

    @override_settings(REALTIME_PUSH_TIMEOUT=0.25)
    def test_timeout_comes_from_settings(self):
        self.assertEqual(ChannelRegistry().push_timeout, 0.25)
        self.assertEqual(ChannelRegistry(timeout=2).push_timeout, 2)

    def test_group_name(self):
        self.assertEqual(ChannelRegistry().group_name(12), 'user_12')


class NotificationConsumerTests(SimpleTestCase):
    def communicator(self, user):
        communicator = WebsocketCommunicator(NotificationConsumer.as_asgi(), '/ws/notifications/')
        communicator.scope['user'] = user
        return communicator

    async def test_anonymous_connection_is_rejected(self):
        communicator = self.communicator(AnonymousUser())
        connected, _ = await communicator.connect()
        self.assertFalse(connected)

    async def test_connected_user_receives_notifications(self):
        communicator = self.communicator(User(id=42, username='live'))
        connected, _ = await communicator.connect()
        self.assertTrue(connected)

        greeting = await communicator.receive_json_from()
        self.assertEqual(greeting['type'], 'connection_established')

        delivered = await ChannelRegistry().apublish(42, {'id': 1, 'type': 'friend_request'})
        self.assertTrue(delivered)

        message = await communicator.receive_json_from()
        self.assertEqual(message, {'type': 'notification', 'data': {'id': 1, 'type': 'friend_request'}})

        await communicator.disconnect()

    async def test_every_socket_of_a_user_receives(self):
        first = self.communicator(User(id=43, username='tabs'))
        second = self.communicator(User(id=43, username='tabs'))
        for communicator in (first, second):
            await communicator.connect()
            await communicator.receive_json_from()

        await ChannelRegistry().apublish(43, {'id': 9})

        for communicator in (first, second):
            message = await communicator.receive_json_from()
            self.assertEqual(message['data'], {'id': 9})
            await communicator.disconnect()

    async def test_heartbeat(self):
        communicator = self.communicator(User(id=44, username='beat'))
        await communicator.connect()
        await communicator.receive_json_from()

        await communicator.send_json_to({'type': 'heartbeat'})
        response = await communicator.receive_json_from()
        self.assertEqual(response['type'], 'heartbeat_response')

        await communicator.send_to(text_data='not json')
        response = await communicator.receive_json_from()
        self.assertEqual(response['type'], 'error')

        await communicator.disconnect()


class JWTAuthMiddlewareTests(SimpleTestCase):
    async def run_middleware(self, query_string):
        captured = {}

        async def inner(scope, receive, send):
            captured.update(scope)

        await JWTAuthMiddleware(inner)({'type': 'websocket', 'query_string': query_string}, None, None)
        return captured

    async def test_missing_token_is_anonymous(self):
        scope = await self.run_middleware(b'')
        self.assertFalse(scope['user'].is_authenticated)

    async def test_token_resolves_user(self):
        user = User(id=5, username='socket')
        with mock.patch('notifications.middleware.get_user_for_token', mock.AsyncMock(return_value=user)) as lookup:
            scope = await self.run_middleware(b'token=abc.def.ghi')
        lookup.assert_awaited_once_with('abc.def.ghi')
        self.assertIs(scope['user'], user)


class NotificationAPITests(APITestCase):
    def setUp(self):
        self.user = make_user('reader')
        self.other = make_user('writer')
        self.stranger = make_user('stranger')

        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

        self.list_url = reverse('notifications:notifications-list')
        self.mark_url = reverse('notifications:notifications-mark-as-read')
        self.mark_all_url = reverse('notifications:notifications-mark-all-as-read')

        self.first = Notification.objects.create(
            recipient=self.user, sender=self.other, type=Notification.FRIEND_REQUEST
        )
        self.second = Notification.objects.create(
            recipient=self.user, sender=self.stranger, type=Notification.FRIEND_ACCEPTED, is_read=True
        )
        self.foreign = Notification.objects.create(
            recipient=self.other, sender=self.user, type=Notification.FRIEND_REQUEST
        )

    def test_list_newest_first_with_pagination(self):
        response = self.client.get(self.list_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        data = response.data['data']
        self.assertEqual([n['id'] for n in data['notifications']], [self.second.id, self.first.id])
        self.assertEqual(data['pagination'], {
            'total': 2, 'unread_count': 1, 'page': 1, 'limit': 50, 'pages': 1,
        })

    def test_list_limit_and_page(self):
        response = self.client.get(self.list_url, {'limit': 1, 'page': 2})
        data = response.data['data']
        self.assertEqual([n['id'] for n in data['notifications']], [self.first.id])
        self.assertEqual(data['pagination']['pages'], 2)

    def test_unread_only(self):
        response = self.client.get(self.list_url, {'unread_only': 'true'})
        self.assertEqual([n['id'] for n in response.data['data']['notifications']], [self.first.id])

    def test_mark_as_read_only_touches_own_notifications(self):
        response = self.client.patch(
            self.mark_url, {'notification_ids': [self.first.id, self.foreign.id]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['unread_count'], 0)

        self.foreign.refresh_from_db()
        self.assertFalse(self.foreign.is_read)

    def test_mark_as_read_requires_ids(self):
        response = self.client.patch(self.mark_url, {'notification_ids': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['status'], 'error')

    def test_mark_all_as_read(self):
        response = self.client.patch(self.mark_all_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Notification.objects.filter(recipient=self.user, is_read=False).exists())

    def test_delete_own_notification(self):
        url = reverse('notifications:notifications-detail', args=[self.first.id])
        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Notification.objects.filter(id=self.first.id).exists())

    def test_cannot_delete_someone_elses_notification(self):
        url = reverse('notifications:notifications-detail', args=[self.foreign.id])
        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['message'], 'Not authorized to delete this notification')

    def test_delete_missing_notification(self):
        url = reverse('notifications:notifications-detail', args=[987654])
        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Notification not found')
