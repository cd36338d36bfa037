from rest_framework import status, viewsets, generics
from rest_framework.response import Response
from rest_framework.decorators import api_view, permission_classes, action
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.exceptions import TokenError
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q
from .serializers import (
    UserSerializer, UserUpdateSerializer, UserRegistrationSerializer,
    VerifyOTPSerializer, ResendOTPSerializer, VerifiedTokenObtainPairSerializer,
)
from .emails import send_otp_email
from incampus.exceptions import NotFoundError, ValidationError
from incampus.utils import create_error_response, create_success_response
import logging

User = get_user_model()
logger = logging.getLogger('incampus')

SEARCH_RESULT_LIMIT = 20


def _issue_tokens(user):
    refresh = RefreshToken.for_user(user)
    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }


class UserViewSet(viewsets.ReadOnlyModelViewSet):
    """
    API viewset for the user directory.
    """
    queryset = User.objects.filter(is_active=True).order_by('id')
    serializer_class = UserSerializer
    permission_classes = [IsAuthenticated]

    def get_serializer_class(self):
        if self.action == 'update_profile':
            return UserUpdateSerializer
        return UserSerializer

    @action(detail=False, methods=['get'])
    def me(self, request):
        """
        Get the current user's profile
        """
        serializer = UserSerializer(request.user)
        return create_success_response({'user': serializer.data})

    @action(detail=False, methods=['put', 'patch'])
    def update_profile(self, request):
        """
        Update the current user's profile
        """
        serializer = UserUpdateSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        with transaction.atomic():
            user = serializer.save()
        logger.info(f"Profile updated for user {user.username}")
        return create_success_response({'user': UserSerializer(user).data})

    @action(detail=False, methods=['get'])
    def search(self, request):
        """
        Search users by name, username, university ID, role or bio
        """
        query = request.query_params.get('q', '').strip()
        if not query:
            raise ValidationError('Search query is required')

        users = self.get_queryset().filter(
            Q(name__icontains=query) |
            Q(username__icontains=query) |
            Q(university_id__icontains=query) |
            Q(role__icontains=query) |
            Q(bio__icontains=query)
        )[:SEARCH_RESULT_LIMIT]

        return create_success_response({'users': UserSerializer(users, many=True).data})


class AuthTokenObtainPairView(TokenObtainPairView):
    """
    Login with email and password; only verified accounts receive tokens
    """
    serializer_class = VerifiedTokenObtainPairSerializer


class RegistrationView(generics.CreateAPIView):
    """
    API view for user registration. The account stays unverified
    until the emailed OTP is confirmed.
    """
    queryset = User.objects.all()
    serializer_class = UserRegistrationSerializer
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            user = serializer.save()
            otp = user.generate_otp()

        send_otp_email(user, otp)

        return create_success_response(
            {'email': user.email},
            message='User created successfully. Please verify your email.',
            status_code=status.HTTP_201_CREATED,
        )


class VerifyOTPView(generics.GenericAPIView):
    """
    Confirm an emailed OTP and return a token pair
    """
    serializer_class = VerifyOTPSerializer
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = User.objects.filter(email=serializer.validated_data['email']).first()
        if user is None:
            raise NotFoundError('User not found')
        if user.is_verified:
            raise ValidationError('User is already verified')
        if not user.verify_otp(serializer.validated_data['otp']):
            raise ValidationError('Invalid or expired OTP')

        user.mark_verified()

        return create_success_response({
            'user': UserSerializer(user).data,
            'tokens': _issue_tokens(user),
        })


class ResendOTPView(generics.GenericAPIView):
    """
    Issue a new OTP for an unverified account
    """
    serializer_class = ResendOTPSerializer
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data['email']

        user = User.objects.filter(email=email, is_verified=False).first()
        if user is not None:
            send_otp_email(user, user.generate_otp())
        else:
            # Don't reveal whether the account exists
            logger.info(f"OTP resend requested for unknown or verified email: {email}")

        return create_success_response(message='A new code has been sent if the account needs verification')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout_view(request):
    """
    API view to logout a user by invalidating their refresh token
    """
    refresh_token = request.data.get('refresh')
    if not refresh_token:
        return create_error_response("Refresh token is required", status.HTTP_400_BAD_REQUEST)

    try:
        RefreshToken(refresh_token).blacklist()
    except TokenError as e:
        logger.warning(f"Logout with invalid refresh token: {str(e)}")
        return create_error_response(str(e), status.HTTP_400_BAD_REQUEST)

    return create_success_response(message='Logout successful')
