from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.contrib.auth.password_validation import validate_password
from incampus.serializers import BaseSerializer
from incampus.validators import username_validator, university_id_validator
import logging
import re

logger = logging.getLogger('incampus')
User = get_user_model()

SELF_ASSIGNABLE_ROLES = ('student', 'faculty')


def _username_from_email(email):
    """Derive a free username from the local part of an email address"""
    base = re.sub(r'[^\w.@+-]', '', email.split('@')[0]) or 'user'
    candidate = base
    suffix = 1
    while User.objects.filter(username__iexact=candidate).exists():
        suffix += 1
        candidate = f"{base}{suffix}"
    return candidate


class UserSerializer(BaseSerializer):
    """
    Serializer for the User model
    """
    course = serializers.CharField(read_only=True)
    batch = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'username', 'email', 'name', 'bio', 'role',
            'university_id', 'course', 'batch', 'avatar_url',
            'is_verified', 'date_joined',
        ]
        read_only_fields = ['id', 'email', 'is_verified', 'date_joined']


class UserMiniSerializer(serializers.ModelSerializer):
    """
    Compact user summary embedded in friend and notification payloads
    """
    course = serializers.CharField(read_only=True)
    batch = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'name', 'avatar_url', 'role', 'university_id', 'course', 'batch']
        read_only_fields = fields


class UserRegistrationSerializer(BaseSerializer):
    """
    Serializer for registering new users
    """
    password = serializers.CharField(write_only=True, required=True, style={'input_type': 'password'})
    password_confirm = serializers.CharField(write_only=True, required=True, style={'input_type': 'password'})
    username = serializers.CharField(required=False, max_length=150, validators=[username_validator])
    university_id = serializers.CharField(
        required=True, max_length=64, validators=[university_id_validator]
    )

    class Meta:
        model = User
        fields = [
            'username', 'email', 'password', 'password_confirm',
            'university_id', 'name',
        ]

    def validate_username(self, value):
        """
        Validate that the username is unique (case insensitive).
        """
        if User.objects.filter(username__iexact=value).exists():
            raise serializers.ValidationError("A user with this username already exists.")
        return value

    def validate_email(self, value):
        """
        Validate that the email is unique (case insensitive).
        """
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("A user with this email already exists.")
        return value.lower()

    def validate_university_id(self, value):
        value = value.strip()
        if User.objects.filter(university_id__iexact=value).exists():
            raise serializers.ValidationError("A user with this university ID already exists.")
        return value

    def validate_password(self, value):
        """
        Validate password using Django's password validators.
        """
        try:
            validate_password(value)
        except ValidationError as e:
            logger.warning(f"Password validation failed: {e}")
            raise serializers.ValidationError(e.messages)
        return value

    def validate(self, data):
        if data['password'] != data['password_confirm']:
            raise serializers.ValidationError({"password": "Password fields don't match."})
        return data

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        if not validated_data.get('username'):
            validated_data['username'] = _username_from_email(validated_data['email'])

        user = User(**validated_data)
        user.set_password(password)
        user.save()
        logger.info(f"User created: {user.username}")
        return user


class UserUpdateSerializer(BaseSerializer):
    """
    Serializer for updating user profile
    """
    current_password = serializers.CharField(
        write_only=True, required=False, style={'input_type': 'password'}
    )
    new_password = serializers.CharField(
        write_only=True, required=False, style={'input_type': 'password'}
    )

    class Meta:
        model = User
        fields = [
            'name', 'bio', 'role', 'university_id', 'avatar_url',
            'current_password', 'new_password'
        ]

    def validate_role(self, value):
        if value not in SELF_ASSIGNABLE_ROLES and not self.instance.is_staff:
            raise serializers.ValidationError("You cannot assign yourself this role.")
        return value

    def validate_university_id(self, value):
        if not value:
            return None
        value = value.strip()
        if User.objects.filter(university_id__iexact=value).exclude(id=self.instance.id).exists():
            raise serializers.ValidationError("A user with this university ID already exists.")
        return value

    def validate(self, data):
        # If updating password, current_password is required
        if 'new_password' in data and not data.get('current_password'):
            raise serializers.ValidationError(
                {"current_password": "Current password is required to set a new password."}
            )

        if 'current_password' in data and 'new_password' in data:
            if not self.instance.check_password(data['current_password']):
                raise serializers.ValidationError(
                    {"current_password": "Current password is not correct."}
                )

            try:
                validate_password(data['new_password'], self.instance)
            except ValidationError as e:
                raise serializers.ValidationError({"new_password": e.messages})

        return data

    def update(self, instance, validated_data):
        # Handle password update separately
        current_password = validated_data.pop('current_password', None)
        new_password = validated_data.pop('new_password', None)

        instance = super().update(instance, validated_data)

        if current_password and new_password:
            instance.set_password(new_password)
            instance.save()
            logger.info(f"Password updated for user: {instance.username}")

        return instance


class VerifyOTPSerializer(serializers.Serializer):
    email = serializers.EmailField()
    otp = serializers.CharField(max_length=12)

    def validate_email(self, value):
        return value.lower()


class ResendOTPSerializer(serializers.Serializer):
    email = serializers.EmailField()

    def validate_email(self, value):
        return value.lower()


class VerifiedTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Login serializer that refuses accounts which have not verified their email
    """
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_verified:
            raise AuthenticationFailed('Please verify your email first', code='unverified')
        data['user'] = UserSerializer(self.user).data
        return data
