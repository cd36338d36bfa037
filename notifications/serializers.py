from rest_framework import serializers
from users.serializers import UserMiniSerializer
from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    sender = UserMiniSerializer(read_only=True)

    class Meta:
        model = Notification
        fields = ['id', 'type', 'sender', 'is_read', 'created_at']
        read_only_fields = fields


class MarkAsReadSerializer(serializers.Serializer):
    notification_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        allow_empty=False,
    )
