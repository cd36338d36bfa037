from rest_framework import mixins, viewsets, permissions
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from incampus.exceptions import AuthorizationError, NotFoundError
from incampus.utils import create_success_response
from .models import Notification
from .serializers import NotificationSerializer, MarkAsReadSerializer
import logging

logger = logging.getLogger('incampus')


class NotificationPagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = 'limit'
    max_page_size = 100

    def get_paginated_response(self, data):
        request = self.request
        return create_success_response({
            'notifications': data,
            'pagination': {
                'total': self.page.paginator.count,
                'unread_count': unread_count(request.user),
                'page': self.page.number,
                'limit': self.page.paginator.per_page,
                'pages': self.page.paginator.num_pages,
            },
        })


def unread_count(user):
    return Notification.objects.filter(recipient=user, is_read=False).count()


class NotificationViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """
    API viewset for the current user's notifications.
    """
    serializer_class = NotificationSerializer
    permission_classes = [permissions.IsAuthenticated]
    pagination_class = NotificationPagination

    def get_queryset(self):
        queryset = Notification.objects.filter(
            recipient=self.request.user
        ).select_related('sender')

        if self.request.query_params.get('unread_only', '').lower() == 'true':
            queryset = queryset.filter(is_read=False)
        return queryset

    @action(detail=False, methods=['patch'], url_path='mark-as-read')
    def mark_as_read(self, request):
        """
        Mark specific notifications as read
        """
        serializer = MarkAsReadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        updated = Notification.objects.filter(
            recipient=request.user,
            id__in=serializer.validated_data['notification_ids'],
        ).update(is_read=True)
        logger.info(f"Marked {updated} notifications read for user {request.user.id}")

        return create_success_response(
            {'unread_count': unread_count(request.user)},
            message='Notifications marked as read',
        )

    @action(detail=False, methods=['patch'], url_path='mark-all-as-read')
    def mark_all_as_read(self, request):
        Notification.objects.filter(recipient=request.user, is_read=False).update(is_read=True)
        return create_success_response({'unread_count': 0}, message='All notifications marked as read')

    def destroy(self, request, pk=None):
        notification = Notification.objects.filter(pk=pk).first()
        if notification is None:
            raise NotFoundError('Notification not found')
        if notification.recipient_id != request.user.id:
            raise AuthorizationError('Not authorized to delete this notification')

        notification.delete()
        return create_success_response(message='Notification deleted')
