from rest_framework import serializers
import logging

logger = logging.getLogger('incampus')


class BaseSerializer(serializers.ModelSerializer):
    """
    Base serializer with improved error handling.
    Logs validation errors for debugging.
    """

    def is_valid(self, raise_exception=False):
        valid = super().is_valid(raise_exception=False)

        if not valid and self.errors:
            logger.warning(
                f"Validation failed for {self.__class__.__name__}: {self.errors}"
            )

        if not valid and raise_exception:
            raise serializers.ValidationError(self.errors)

        return valid

    def to_representation(self, instance):
        try:
            return super().to_representation(instance)
        except Exception as e:
            logger.error(
                f"Error in {self.__class__.__name__}.to_representation: {str(e)}"
            )
            raise


class TimeStampedModelSerializer(BaseSerializer):
    """
    Base serializer for models with created_at and updated_at fields.
    """
    created_at = serializers.DateTimeField(read_only=True)
    updated_at = serializers.DateTimeField(read_only=True)

    class Meta:
        fields = ['created_at', 'updated_at']
