from rest_framework import serializers
from incampus.serializers import TimeStampedModelSerializer
from users.serializers import UserMiniSerializer
from .models import Friend


class FriendRequestSerializer(TimeStampedModelSerializer):
    """
    Serializer for a friend request with both parties expanded
    """
    requester = UserMiniSerializer(read_only=True)
    recipient = UserMiniSerializer(read_only=True)

    class Meta:
        model = Friend
        fields = ['id', 'requester', 'recipient', 'status'] + TimeStampedModelSerializer.Meta.fields
        read_only_fields = fields


class SendRequestSerializer(serializers.Serializer):
    """
    Input for sending a friend request
    """
    receiverId = serializers.IntegerField(source='receiver_id', min_value=1)


class CandidateSerializer(serializers.Serializer):
    """
    A friend suggestion: the user summary plus its relevance annotation
    """
    user = UserMiniSerializer(read_only=True)
    relevance = serializers.ListField(source='matched_attributes', child=serializers.CharField(), read_only=True)
    priority = serializers.IntegerField(source='priority_score', read_only=True)
    mutual_friends = serializers.SerializerMethodField()

    def get_mutual_friends(self, obj):
        # Reserved for a mutual-friend count
        return 0
