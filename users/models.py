from datetime import timedelta
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone
from django.utils.crypto import constant_time_compare, get_random_string
from django.conf import settings
from incampus.models import ValidationModelMixin
from incampus.validators import username_validator, university_id_validator
from .identifiers import decompose_university_id
import logging

logger = logging.getLogger('incampus')


class User(AbstractUser, ValidationModelMixin):
    """
    Custom User model that extends Django's AbstractUser
    with campus profile and email verification fields.
    """
    ROLES = (
        ('student', 'Student'),
        ('faculty', 'Faculty'),
        ('admin', 'Admin'),
    )

    username = models.CharField(
        max_length=150,
        unique=True,
        validators=[username_validator],
        error_messages={
            'unique': "A user with that username already exists.",
        },
    )

    # Email is unique and case-insensitive
    email = models.EmailField(
        unique=True,
        error_messages={
            'unique': "A user with that email already exists.",
        },
    )

    name = models.CharField(max_length=150, blank=True)
    bio = models.TextField(max_length=500, blank=True, null=True)
    role = models.CharField(max_length=10, choices=ROLES, default='student')
    university_id = models.CharField(
        max_length=64,
        unique=True,
        blank=True,
        null=True,
        validators=[university_id_validator],
        error_messages={
            'unique': "A user with that university ID already exists.",
        },
    )
    # Avatars live in an external object store; only the URL is kept here
    avatar_url = models.URLField(max_length=500, blank=True, null=True)

    # Email verification
    is_verified = models.BooleanField(default=False)
    otp_code = models.CharField(max_length=12, blank=True, null=True)
    otp_expires_at = models.DateTimeField(null=True, blank=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    class Meta:
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        indexes = [
            models.Index(fields=['role'], name='users_user_role_idx'),
            models.Index(fields=['is_verified'], name='users_user_verified_idx'),
        ]

    def __str__(self):
        return self.username

    def save(self, *args, **kwargs):
        """Override save to normalize email and university ID"""
        if self.email:
            self.email = self.email.lower()
        if self.university_id is not None:
            self.university_id = self.university_id.strip() or None

        super().save(*args, **kwargs)

    @property
    def course(self):
        return decompose_university_id(self.university_id).course

    @property
    def batch(self):
        return decompose_university_id(self.university_id).batch

    @property
    def display_name(self):
        """Name shown to other users; empty when the profile has none"""
        return (self.name or '').strip()

    def generate_otp(self):
        """
        Create a fresh one-time password and store it with its expiry.
        The caller is responsible for delivering it.
        """
        otp = get_random_string(settings.OTP_LENGTH, allowed_chars='0123456789')
        self.otp_code = otp
        self.otp_expires_at = timezone.now() + timedelta(minutes=settings.OTP_EXPIRY_MINUTES)
        self.save(update_fields=['otp_code', 'otp_expires_at'])
        return otp

    def verify_otp(self, otp):
        """Check an OTP without consuming it"""
        if not self.otp_code or not self.otp_expires_at or not otp:
            return False
        if timezone.now() > self.otp_expires_at:
            return False
        return constant_time_compare(self.otp_code, str(otp))

    def mark_verified(self):
        self.is_verified = True
        self.otp_code = None
        self.otp_expires_at = None
        self.save(update_fields=['is_verified', 'otp_code', 'otp_expires_at'])
        logger.info(f"User {self.username} verified their email")
