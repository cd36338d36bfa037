"""
Relationship store: friend requests and friendships between user pairs.

Every operation runs in its own transaction and reports failures with the
typed errors from ``incampus.exceptions``; the API layer turns those into
HTTP responses.
"""

import logging
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone
from incampus.exceptions import (
    AuthorizationError, ConflictError, NotFoundError, ValidationError,
)
from .models import Friend

logger = logging.getLogger('incampus')
User = get_user_model()

ACCEPT = 'accept'
REJECT = 'reject'
DECISIONS = {
    ACCEPT: Friend.ACCEPTED,
    REJECT: Friend.REJECTED,
}


class RelationshipStore:
    """
    Friend-graph operations backed by the ``Friend`` table.

    ``notifier`` is optional; when set it receives ``notify(recipient,
    sender, notification_type)`` calls for sent and accepted requests.
    """

    def __init__(self, notifier=None):
        self.notifier = notifier

    def create_request(self, requester, recipient_id):
        if int(recipient_id) == requester.id:
            raise ConflictError('You cannot send a friend request to yourself')

        recipient = User.objects.filter(pk=recipient_id, is_active=True).first()
        if recipient is None:
            raise NotFoundError('User not found')

        pair_key = Friend.make_pair_key(requester.id, recipient.id)
        if Friend.objects.filter(pair_key=pair_key).exists():
            raise ConflictError('Friend request already exists')

        try:
            with transaction.atomic():
                friend_request = Friend.objects.create(requester=requester, recipient=recipient)
                self._notify(recipient, requester, 'friend_request')
        except IntegrityError:
            # Another request for the same pair committed first
            logger.info(f"Lost race creating friend request for pair {pair_key}")
            raise ConflictError('Friend request already exists')

        logger.info(f"Friend request sent: {requester.id} -> {recipient.id}")
        return friend_request

    def respond(self, relationship_id, acting_user, decision):
        if decision not in DECISIONS:
            raise ValidationError(f"Unknown decision '{decision}'")

        with transaction.atomic():
            friend_request = self._get_locked(relationship_id)

            if friend_request.recipient_id != acting_user.id:
                raise AuthorizationError(f"You are not authorized to {decision} this request")

            if friend_request.status != Friend.PENDING:
                raise ConflictError('This friend request has already been processed')

            friend_request.status = DECISIONS[decision]
            friend_request.updated_at = timezone.now()
            friend_request.save(update_fields=['status', 'updated_at'])

            if decision == ACCEPT:
                self._notify(friend_request.requester, acting_user, 'friend_accepted')

        logger.info(f"Friend request {relationship_id} {friend_request.status} by user {acting_user.id}")
        return friend_request

    def cancel(self, relationship_id, acting_user):
        with transaction.atomic():
            friend_request = self._get_locked(relationship_id)

            if friend_request.requester_id != acting_user.id:
                raise AuthorizationError("Cannot cancel a friend request that you didn't send")

            if friend_request.status != Friend.PENDING:
                raise ConflictError('This friend request has already been processed')

            friend_request.delete()

        logger.info(f"Friend request {relationship_id} cancelled by user {acting_user.id}")

    def unfriend(self, user, peer_id):
        friendship = Friend.objects.filter(
            pair_key=Friend.make_pair_key(user.id, peer_id),
            status=Friend.ACCEPTED,
        ).first()
        if friendship is None:
            raise NotFoundError('Friendship not found')

        friendship.delete()
        logger.info(f"User {user.id} unfriended user {peer_id}")

    def list_accepted(self, user):
        """Ids of every user with an accepted friendship with ``user``"""
        return self._peer_ids(user, Friend.ACCEPTED)

    def list_pending(self, user, as_recipient):
        """Pending requests received by ``user`` (or sent, when as_recipient is False)"""
        side = Q(recipient=user) if as_recipient else Q(requester=user)
        return list(
            Friend.objects.filter(side, status=Friend.PENDING)
            .select_related('requester', 'recipient')
            .order_by('-created_at', '-id')
        )

    def list_friends(self, user):
        return list(User.objects.filter(id__in=self.list_accepted(user)).order_by('name', 'id'))

    def excluded_ids(self, user):
        """
        Users that must never be suggested to ``user``: the user,
        accepted friends and anyone with a pending request either way.
        """
        return {user.id} | self._peer_ids(user, Friend.ACCEPTED) | self._peer_ids(user, Friend.PENDING)

    def _peer_ids(self, user, status):
        rows = Friend.objects.filter(
            Q(requester=user) | Q(recipient=user),
            status=status,
        ).values_list('requester_id', 'recipient_id')
        return {recipient_id if requester_id == user.id else requester_id
                for requester_id, recipient_id in rows}

    def _get_locked(self, relationship_id):
        friend_request = (
            Friend.objects.select_for_update()
            .select_related('requester', 'recipient')
            .filter(pk=relationship_id)
            .first()
        )
        if friend_request is None:
            raise NotFoundError('Friend request not found')
        return friend_request

    def _notify(self, recipient, sender, notification_type):
        if self.notifier is not None:
            self.notifier.notify(recipient, sender, notification_type)
