from django.conf import settings
from rest_framework import viewsets, permissions, status
from incampus.exceptions import ValidationError
from incampus.utils import create_success_response
from notifications.services import get_notification_service
from users.serializers import UserMiniSerializer
from .serializers import FriendRequestSerializer, SendRequestSerializer, CandidateSerializer
from .store import RelationshipStore, ACCEPT, REJECT
from .suggestions import SuggestionEngine
import logging

logger = logging.getLogger('incampus')


class FriendViewSet(viewsets.ViewSet):
    """
    API viewset for friend requests, friendships and suggestions.
    """
    permission_classes = [permissions.IsAuthenticated]

    # Overridable in tests
    store = None
    engine = None

    def get_store(self):
        if self.store is None:
            self.store = RelationshipStore(notifier=get_notification_service())
        return self.store

    def get_engine(self):
        if self.engine is None:
            self.engine = SuggestionEngine(store=self.get_store())
        return self.engine

    def send_request(self, request):
        """
        Send a friend request to another user
        """
        serializer = SendRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        friend_request = self.get_store().create_request(
            request.user, serializer.validated_data['receiver_id']
        )
        return create_success_response(
            {'friend_request': FriendRequestSerializer(friend_request).data},
            status_code=status.HTTP_201_CREATED,
        )

    def accept_request(self, request, pk=None):
        """
        Accept a friend request sent to the current user
        """
        friend_request = self.get_store().respond(pk, request.user, ACCEPT)
        return create_success_response({'friend_request': FriendRequestSerializer(friend_request).data})

    def decline_request(self, request, pk=None):
        """
        Decline a friend request sent to the current user
        """
        friend_request = self.get_store().respond(pk, request.user, REJECT)
        return create_success_response({'friend_request': FriendRequestSerializer(friend_request).data})

    def cancel_request(self, request, pk=None):
        """
        Cancel a friend request the current user sent
        """
        self.get_store().cancel(pk, request.user)
        return create_success_response(message='Friend request cancelled')

    def unfriend(self, request, peer_id=None):
        self.get_store().unfriend(request.user, peer_id)
        return create_success_response(message='Unfriended successfully')

    def friends_list(self, request):
        friends = self.get_store().list_friends(request.user)
        return create_success_response({'friends': UserMiniSerializer(friends, many=True).data})

    def pending_requests(self, request):
        """
        Requests waiting for the current user's answer
        """
        pending = self.get_store().list_pending(request.user, as_recipient=True)
        return create_success_response({'pending_requests': FriendRequestSerializer(pending, many=True).data})

    def sent_requests(self, request):
        """
        Requests the current user sent that are still pending
        """
        sent = self.get_store().list_pending(request.user, as_recipient=False)
        return create_success_response({'sent_requests': FriendRequestSerializer(sent, many=True).data})

    def suggestions(self, request):
        """
        Ranked friend suggestions for the current user
        """
        raw_limit = request.query_params.get('limit')
        if raw_limit is None:
            limit = settings.FRIEND_SUGGESTIONS['DEFAULT_LIMIT']
        else:
            try:
                limit = int(raw_limit)
            except ValueError:
                logger.warning(f"Invalid suggestion limit '{raw_limit}' from user {request.user.id}")
                raise ValidationError('limit must be a positive integer')

        candidates = self.get_engine().suggest(request.user, limit)
        return create_success_response(CandidateSerializer(candidates, many=True).data)
