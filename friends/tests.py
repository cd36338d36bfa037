import asyncio
import random
import time
from unittest import mock
from channels.exceptions import InvalidChannelLayerError
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from rest_framework.test import APIClient, APITestCase
from rest_framework import status
from incampus.exceptions import (
    AuthorizationError, ConflictError, NotFoundError, ValidationError, DataIntegrityError,
)
from incampus.realtime import ChannelRegistry
from notifications.models import Notification
from notifications.services import NotificationService
from users.models import User
from .models import Friend
from .store import RelationshipStore, ACCEPT, REJECT
from .suggestions import (
    Candidate, SuggestionEngine, RequesterProfile, rank_candidates, score_candidate,
)


def make_user(username, university_id=None, role='student', name=None, **extra):
    return User.objects.create_user(
        username=username,
        email=f'{username}@example.com',
        password='password123',
        university_id=university_id,
        role=role,
        name=name if name is not None else username.title(),
        **extra
    )


class RelationshipStoreTests(TestCase):
    def setUp(self):
        self.store = RelationshipStore()
        self.alice = make_user('alice')
        self.bob = make_user('bob')
        self.carol = make_user('carol')

    def test_create_request_is_pending(self):
        friend_request = self.store.create_request(self.alice, self.bob.id)
        self.assertEqual(friend_request.status, Friend.PENDING)
        self.assertEqual(friend_request.requester, self.alice)
        self.assertEqual(friend_request.recipient, self.bob)

    def test_second_request_fails_in_either_direction(self):
        self.store.create_request(self.alice, self.bob.id)
        with self.assertRaises(ConflictError):
            self.store.create_request(self.alice, self.bob.id)
        with self.assertRaises(ConflictError):
            self.store.create_request(self.bob, self.alice.id)
        self.assertEqual(Friend.objects.count(), 1)

    def test_self_request_fails_even_for_unknown_user(self):
        with self.assertRaises(ConflictError):
            self.store.create_request(self.alice, self.alice.id)
        ghost = User(id=987654)
        with self.assertRaises(ConflictError):
            self.store.create_request(ghost, 987654)

    def test_request_to_unknown_user(self):
        with self.assertRaises(NotFoundError):
            self.store.create_request(self.alice, 987654)

    def test_rejected_pair_cannot_request_again(self):
        friend_request = self.store.create_request(self.alice, self.bob.id)
        self.store.respond(friend_request.id, self.bob, REJECT)
        with self.assertRaises(ConflictError):
            self.store.create_request(self.bob, self.alice.id)

    def test_lost_race_on_pair_constraint_is_a_conflict(self):
        """The unique pair key rejects a duplicate that slipped past the existence check"""
        Friend.objects.create(requester=self.bob, recipient=self.alice)
        unchecked = mock.Mock()
        unchecked.exists.return_value = False
        with mock.patch.object(Friend.objects, 'filter', return_value=unchecked):
            with self.assertRaises(ConflictError):
                self.store.create_request(self.alice, self.bob.id)
        self.assertEqual(Friend.objects.count(), 1)

    def test_accept_by_recipient(self):
        friend_request = self.store.create_request(self.alice, self.bob.id)
        before = friend_request.updated_at
        accepted = self.store.respond(friend_request.id, self.bob, ACCEPT)
        self.assertEqual(accepted.status, Friend.ACCEPTED)
        self.assertGreaterEqual(accepted.updated_at, before)

    def test_only_recipient_can_respond(self):
        friend_request = self.store.create_request(self.alice, self.bob.id)
        with self.assertRaises(AuthorizationError):
            self.store.respond(friend_request.id, self.alice, ACCEPT)
        with self.assertRaises(AuthorizationError):
            self.store.respond(friend_request.id, self.carol, REJECT)

    def test_respond_twice_conflicts(self):
        friend_request = self.store.create_request(self.alice, self.bob.id)
        self.store.respond(friend_request.id, self.bob, REJECT)
        with self.assertRaises(ConflictError):
            self.store.respond(friend_request.id, self.bob, ACCEPT)

    def test_respond_unknown_request(self):
        with self.assertRaises(NotFoundError):
            self.store.respond(987654, self.bob, ACCEPT)

    def test_respond_unknown_decision(self):
        friend_request = self.store.create_request(self.alice, self.bob.id)
        with self.assertRaises(ValidationError):
            self.store.respond(friend_request.id, self.bob, 'maybe')

    def test_cancel_by_requester_deletes(self):
        friend_request = self.store.create_request(self.alice, self.bob.id)
        self.store.cancel(friend_request.id, self.alice)
        self.assertFalse(Friend.objects.filter(id=friend_request.id).exists())

    def test_cancel_by_recipient_is_forbidden(self):
        friend_request = self.store.create_request(self.alice, self.bob.id)
        with self.assertRaises(AuthorizationError):
            self.store.cancel(friend_request.id, self.bob)

    def test_cancel_accepted_request_conflicts(self):
        friend_request = self.store.create_request(self.alice, self.bob.id)
        self.store.respond(friend_request.id, self.bob, ACCEPT)
        with self.assertRaises(ConflictError):
            self.store.cancel(friend_request.id, self.alice)

    def test_unfriend_succeeds_exactly_once(self):
        friend_request = self.store.create_request(self.alice, self.bob.id)
        self.store.respond(friend_request.id, self.bob, ACCEPT)

        # Either party may unfriend
        self.store.unfriend(self.bob, self.alice.id)
        with self.assertRaises(NotFoundError):
            self.store.unfriend(self.alice, self.bob.id)

    def test_unfriend_requires_accepted_edge(self):
        self.store.create_request(self.alice, self.bob.id)
        with self.assertRaises(NotFoundError):
            self.store.unfriend(self.alice, self.bob.id)

    def test_list_accepted_covers_both_directions(self):
        first = self.store.create_request(self.alice, self.bob.id)
        second = self.store.create_request(self.carol, self.alice.id)
        self.store.respond(first.id, self.bob, ACCEPT)
        self.store.respond(second.id, self.alice, ACCEPT)

        self.assertEqual(self.store.list_accepted(self.alice), {self.bob.id, self.carol.id})
        self.assertEqual(self.store.list_accepted(self.bob), {self.alice.id})

    def test_list_pending(self):
        sent = self.store.create_request(self.alice, self.bob.id)
        received = self.store.create_request(self.carol, self.alice.id)

        self.assertEqual(self.store.list_pending(self.alice, as_recipient=True), [received])
        self.assertEqual(self.store.list_pending(self.alice, as_recipient=False), [sent])

    def test_excluded_ids(self):
        dave = make_user('dave')
        accepted = self.store.create_request(self.alice, self.bob.id)
        self.store.respond(accepted.id, self.bob, ACCEPT)
        self.store.create_request(self.carol, self.alice.id)
        rejected = self.store.create_request(self.alice, dave.id)
        self.store.respond(rejected.id, dave, REJECT)

        self.assertEqual(
            self.store.excluded_ids(self.alice),
            {self.alice.id, self.bob.id, self.carol.id}
        )


class FriendNotificationTests(TestCase):
    def setUp(self):
        self.registry = mock.Mock()
        self.registry.publish.return_value = True
        self.store = RelationshipStore(notifier=NotificationService(registry=self.registry))
        self.alice = make_user('alice')
        self.bob = make_user('bob')

    def test_sending_request_notifies_recipient(self):
        with self.captureOnCommitCallbacks(execute=True):
            self.store.create_request(self.alice, self.bob.id)

        notification = Notification.objects.get()
        self.assertEqual(notification.recipient, self.bob)
        self.assertEqual(notification.sender, self.alice)
        self.assertEqual(notification.type, Notification.FRIEND_REQUEST)

        user_id, payload = self.registry.publish.call_args[0]
        self.assertEqual(user_id, self.bob.id)
        self.assertEqual(payload['type'], 'friend_request')
        self.assertEqual(payload['sender']['id'], self.alice.id)

    def test_accepting_notifies_requester(self):
        friend_request = self.store.create_request(self.alice, self.bob.id)
        with self.captureOnCommitCallbacks(execute=True):
            self.store.respond(friend_request.id, self.bob, ACCEPT)

        notification = Notification.objects.get(type=Notification.FRIEND_ACCEPTED)
        self.assertEqual(notification.recipient, self.alice)
        self.assertEqual(notification.sender, self.bob)
        self.assertEqual(self.registry.publish.call_args[0][0], self.alice.id)

    def test_declining_sends_no_notification(self):
        friend_request = self.store.create_request(self.alice, self.bob.id)
        self.store.respond(friend_request.id, self.bob, REJECT)
        self.assertFalse(Notification.objects.filter(type=Notification.FRIEND_ACCEPTED).exists())

    def test_push_failure_does_not_fail_request(self):
        """A broken channel layer drops the push but keeps the request"""
        registry = ChannelRegistry()
        store = RelationshipStore(notifier=NotificationService(registry=registry))
        layer = mock.Mock()
        layer.group_send = mock.AsyncMock(side_effect=RuntimeError('layer down'))

        with mock.patch.object(ChannelRegistry, 'channel_layer', new_callable=mock.PropertyMock) as channel_layer:
            channel_layer.return_value = layer
            with self.captureOnCommitCallbacks(execute=True):
                friend_request = store.create_request(self.alice, self.bob.id)

        layer.group_send.assert_called_once()
        self.assertTrue(Friend.objects.filter(id=friend_request.id).exists())
        self.assertEqual(Notification.objects.count(), 1)


class ScoringTests(SimpleTestCase):
    def setUp(self):
        self.profile = RequesterProfile(course='BCA', batch='2023', role='student')

    def test_full_match(self):
        user = User(id=5, name='Mira', university_id='BWU/BCA/23/9', role='student')
        candidate = score_candidate(self.profile, user)
        self.assertEqual(candidate.priority_score, 6)
        self.assertEqual(
            candidate.matched_attributes,
            ['BCA', 'Same course', 'Same batch (2023)', 'student', 'Same role']
        )

    def test_tie_between_course_and_batch_plus_role(self):
        x = score_candidate(self.profile, User(id=1, name='X', university_id='BWU/BCA/22/1', role='faculty'))
        y = score_candidate(self.profile, User(id=2, name='Y', university_id='BWU/CSE/23/2', role='student'))
        self.assertEqual(x.priority_score, 3)
        self.assertEqual(y.priority_score, 3)
        self.assertEqual(x.matched_attributes, ['BCA', 'Same course', 'faculty'])
        self.assertEqual(y.matched_attributes, ['CSE', 'Same batch (2023)', 'student', 'Same role'])

    def test_empty_attributes_never_match(self):
        profile = RequesterProfile(course='', batch='', role='student')
        candidate = score_candidate(profile, User(id=3, name='Z', university_id='malformed', role='faculty'))
        self.assertEqual(candidate.priority_score, 0)
        self.assertEqual(candidate.matched_attributes, ['faculty'])

    def test_candidate_without_name_is_rejected(self):
        with self.assertRaises(DataIntegrityError):
            score_candidate(self.profile, User(id=4, name='', university_id='BWU/BCA/23/1'))

    def test_unsaved_candidate_is_rejected(self):
        with self.assertRaises(DataIntegrityError):
            score_candidate(self.profile, User(name='Nobody'))


class RankingTests(SimpleTestCase):
    def candidate(self, user_id, score):
        return Candidate(User(id=user_id, name=f'u{user_id}'), [], score)

    def test_priority_group_truncated_by_score_then_id(self):
        candidates = [
            self.candidate(9, 3), self.candidate(4, 3), self.candidate(7, 6),
            self.candidate(2, 1), self.candidate(5, 0),
        ]
        ranked = rank_candidates(candidates, 3, random.Random(0))
        self.assertEqual([c.user.id for c in ranked], [7, 4, 9])

    def test_remainder_fills_up_to_limit(self):
        candidates = [self.candidate(1, 2)] + [self.candidate(i, 0) for i in range(10, 20)]
        ranked = rank_candidates(candidates, 4, random.Random(1))
        self.assertEqual(len(ranked), 4)
        self.assertEqual(ranked[0].user.id, 1)
        self.assertTrue(all(c.priority_score == 0 for c in ranked[1:]))

    def test_fewer_candidates_than_limit(self):
        candidates = [self.candidate(1, 0), self.candidate(2, 1)]
        ranked = rank_candidates(candidates, 10, random.Random(2))
        self.assertEqual([c.user.id for c in ranked], [2, 1])

    def test_empty(self):
        self.assertEqual(rank_candidates([], 10, random.Random(3)), [])


class SuggestionEngineTests(TestCase):
    def setUp(self):
        self.store = RelationshipStore()
        self.engine = SuggestionEngine(store=self.store, rng=random.Random(42))
        self.me = make_user('me', 'BWU/BCA/23/1', 'student')

    def ids(self, candidates):
        return [c.user.id for c in candidates]

    def test_no_candidates(self):
        self.assertEqual(self.engine.suggest(self.me, 10), [])

    def test_documented_tie_ranks_above_zero_scores(self):
        x = make_user('x', 'BWU/BCA/22/2', 'faculty')
        y = make_user('y', 'BWU/CSE/23/3', 'student')
        zeros = [make_user(f'z{i}', 'BWU/MBA/19/%d' % i, 'admin') for i in range(3)]

        result = self.engine.suggest(self.me, 10)

        self.assertEqual(set(self.ids(result[:2])), {x.id, y.id})
        self.assertEqual([c.priority_score for c in result[:2]], [3, 3])
        self.assertEqual(set(self.ids(result[2:])), {z.id for z in zeros})

    def test_excludes_self_friends_and_pending(self):
        friend = make_user('friend', 'BWU/BCA/23/5')
        outgoing = make_user('outgoing', 'BWU/BCA/23/6')
        incoming = make_user('incoming', 'BWU/BCA/23/7')
        declined = make_user('declined', 'BWU/BCA/23/8')
        stranger = make_user('stranger', 'BWU/CSE/20/9')

        accepted = self.store.create_request(self.me, friend.id)
        self.store.respond(accepted.id, friend, ACCEPT)
        self.store.create_request(self.me, outgoing.id)
        self.store.create_request(incoming, self.me.id)
        rejected = self.store.create_request(self.me, declined.id)
        self.store.respond(rejected.id, declined, REJECT)

        result = set(self.ids(self.engine.suggest(self.me, 10)))

        self.assertEqual(result, {declined.id, stranger.id})

    def test_result_bounded_by_limit(self):
        for i in range(8):
            make_user(f'peer{i}', f'BWU/BCA/2{i % 3}/{i}')
        result = self.engine.suggest(self.me, 5)
        self.assertEqual(len(result), 5)
        scores = [c.priority_score for c in result]
        self.assertEqual(scores, sorted(scores, reverse=True))

    def test_result_equals_eligible_count_when_short(self):
        make_user('one', 'BWU/BCA/23/2')
        make_user('two')
        make_user('nameless', 'BWU/BCA/23/3', name='')
        make_user('inactive', 'BWU/BCA/23/4', is_active=False)

        result = self.engine.suggest(self.me, 10)

        self.assertEqual(len(result), 2)

    def test_scores_non_increasing_with_mixed_candidates(self):
        make_user('a', 'BWU/BCA/23/2', 'student')
        make_user('b', 'BWU/CSE/23/3', 'faculty')
        make_user('c', 'BWU/MBA/21/4', 'student')
        make_user('d', 'BWU/MBA/21/5', 'faculty')
        make_user('e', None, 'admin')

        result = self.engine.suggest(self.me, 10)
        scores = [c.priority_score for c in result]

        self.assertEqual(scores, [6, 2, 1, 0, 0])

    def test_priority_overflow_drops_higher_ids(self):
        peers = [make_user(f'p{i}', 'BWU/BCA/23/%d' % (i + 10)) for i in range(4)]
        result = self.engine.suggest(self.me, 2)
        self.assertEqual(self.ids(result), [peers[0].id, peers[1].id])

    def test_repeated_calls_keep_priority_set(self):
        for i in range(3):
            make_user(f'match{i}', 'BWU/BCA/23/%d' % (i + 20))
        for i in range(6):
            make_user(f'other{i}', 'BWU/LAW/18/%d' % i, 'admin')

        first = self.engine.suggest(self.me, 6)
        second = self.engine.suggest(self.me, 6)

        def priority_ids(result):
            return {c.user.id for c in result if c.priority_score > 0}

        self.assertEqual(priority_ids(first), priority_ids(second))
        self.assertEqual(len(first), len(second))

    def test_candidate_cap(self):
        for i in range(5):
            make_user(f'capped{i}')
        engine = SuggestionEngine(store=self.store, rng=random.Random(0), max_candidates=2)
        self.assertEqual(len(engine.suggest(self.me, 10)), 2)

    def test_invalid_limits(self):
        for limit in (0, -1, '5', None, True, 51):
            with self.assertRaises(ValidationError):
                self.engine.suggest(self.me, limit)


class FriendAPITests(APITestCase):
    def setUp(self):
        """Set up test data"""
        self.user1 = make_user('testuser1', 'BWU/BCA/23/1')
        self.user2 = make_user('testuser2', 'BWU/BCA/23/2')
        self.user3 = make_user('testuser3', 'BWU/CSE/22/3', 'faculty')

        self.client = APIClient()
        self.client.force_authenticate(user=self.user1)

        self.send_url = reverse('friends:send-request')
        self.friends_url = reverse('friends:friends-list')
        self.pending_url = reverse('friends:pending-requests')
        self.sent_url = reverse('friends:sent-requests')
        self.suggestions_url = reverse('friends:suggestions')

    def send(self, receiver_id):
        return self.client.post(self.send_url, {'receiverId': receiver_id}, format='json')

    def test_send_friend_request(self):
        response = self.send(self.user2.id)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'success')
        friend_request = response.data['data']['friend_request']
        self.assertEqual(friend_request['status'], 'pending')
        self.assertEqual(friend_request['recipient']['id'], self.user2.id)
        self.assertEqual(Notification.objects.filter(recipient=self.user2).count(), 1)

    @override_settings(REALTIME_PUSH_TIMEOUT=0.05)
    def test_stalled_channel_layer_does_not_hold_response(self):
        async def stalled_send(group, message):
            await asyncio.sleep(2)

        layer = mock.Mock()
        layer.group_send = mock.AsyncMock(side_effect=stalled_send)
        with mock.patch.object(ChannelRegistry, 'channel_layer', new_callable=mock.PropertyMock) as channel_layer:
            channel_layer.return_value = layer
            started = time.monotonic()
            with self.captureOnCommitCallbacks(execute=True):
                response = self.send(self.user2.id)
            elapsed = time.monotonic() - started

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        layer.group_send.assert_called_once()
        self.assertLess(elapsed, 1)

    def test_misconfigured_channel_layer_keeps_request(self):
        with mock.patch.object(ChannelRegistry, 'channel_layer', new_callable=mock.PropertyMock) as channel_layer:
            channel_layer.side_effect = InvalidChannelLayerError('No BACKEND specified for default')
            with self.captureOnCommitCallbacks(execute=True):
                response = self.send(self.user2.id)

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(Friend.objects.filter(requester=self.user1, recipient=self.user2).exists())

    def test_cannot_send_request_to_self(self):
        response = self.send(self.user1.id)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {
            'status': 'error',
            'message': 'You cannot send a friend request to yourself',
        })

    def test_cannot_send_duplicate_request(self):
        Friend.objects.create(requester=self.user2, recipient=self.user1)
        response = self.send(self.user2.id)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Friend request already exists')

    def test_send_to_unknown_user(self):
        response = self.send(987654)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['status'], 'error')

    def test_send_requires_receiver_id(self):
        response = self.client.post(self.send_url, {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('receiverId', response.data['message'])

    def test_accept_friend_request(self):
        friend_request = Friend.objects.create(requester=self.user2, recipient=self.user1)
        url = reverse('friends:accept-request', args=[friend_request.id])
        response = self.client.patch(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['friend_request']['status'], 'accepted')

    def test_cannot_accept_request_sent_to_someone_else(self):
        friend_request = Friend.objects.create(requester=self.user2, recipient=self.user3)
        url = reverse('friends:accept-request', args=[friend_request.id])
        response = self.client.patch(url)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_accept_missing_request(self):
        response = self.client.patch(reverse('friends:accept-request', args=[987654]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_decline_friend_request(self):
        friend_request = Friend.objects.create(requester=self.user2, recipient=self.user1)
        url = reverse('friends:decline-request', args=[friend_request.id])
        response = self.client.patch(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['friend_request']['status'], 'rejected')

    def test_cancel_friend_request(self):
        friend_request = Friend.objects.create(requester=self.user1, recipient=self.user2)
        response = self.client.delete(reverse('friends:cancel-request', args=[friend_request.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Friend.objects.filter(id=friend_request.id).exists())

    def test_cannot_cancel_received_request(self):
        friend_request = Friend.objects.create(requester=self.user2, recipient=self.user1)
        response = self.client.delete(reverse('friends:cancel-request', args=[friend_request.id]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_cannot_cancel_processed_request(self):
        friend_request = Friend.objects.create(requester=self.user1, recipient=self.user2, status='accepted')
        response = self.client.delete(reverse('friends:cancel-request', args=[friend_request.id]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unfriend(self):
        Friend.objects.create(requester=self.user2, recipient=self.user1, status='accepted')
        url = reverse('friends:unfriend', args=[self.user2.id])

        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Friendship not found')

    def test_list_friends_and_requests(self):
        Friend.objects.create(requester=self.user1, recipient=self.user2, status='accepted')
        received = Friend.objects.create(requester=self.user3, recipient=self.user1)

        response = self.client.get(self.friends_url)
        self.assertEqual([f['id'] for f in response.data['data']['friends']], [self.user2.id])

        response = self.client.get(self.pending_url)
        self.assertEqual([r['id'] for r in response.data['data']['pending_requests']], [received.id])

        response = self.client.get(self.sent_url)
        self.assertEqual(response.data['data']['sent_requests'], [])

    def test_suggestions(self):
        response = self.client.get(self.suggestions_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        suggestions = response.data['data']
        self.assertEqual([s['user']['id'] for s in suggestions], [self.user2.id, self.user3.id])
        first = suggestions[0]
        self.assertEqual(first['priority'], 6)
        self.assertEqual(first['relevance'], ['BCA', 'Same course', 'Same batch (2023)', 'student', 'Same role'])
        self.assertEqual(first['mutual_friends'], 0)
        self.assertEqual(first['user']['course'], 'BCA')
        self.assertEqual(first['user']['batch'], '2023')

    def test_suggestions_default_limit(self):
        for i in range(12):
            make_user(f'extra{i}')
        response = self.client.get(self.suggestions_url)
        self.assertEqual(len(response.data['data']), 10)

    def test_suggestions_invalid_limit(self):
        response = self.client.get(self.suggestions_url, {'limit': 'lots'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get(self.suggestions_url, {'limit': '0'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)
        response = self.client.get(self.suggestions_url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
