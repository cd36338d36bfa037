from django.urls import path, include
from rest_framework.routers import SimpleRouter
from rest_framework_simplejwt.views import TokenRefreshView
from .views import (
    UserViewSet, AuthTokenObtainPairView, RegistrationView,
    VerifyOTPView, ResendOTPView, logout_view
)

router = SimpleRouter()
router.register(r'', UserViewSet, basename='user')

urlpatterns = [
    # Auth routes
    path('auth/token/', AuthTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('auth/register/', RegistrationView.as_view(), name='register'),
    path('auth/verify-otp/', VerifyOTPView.as_view(), name='verify_otp'),
    path('auth/resend-otp/', ResendOTPView.as_view(), name='resend_otp'),
    path('auth/logout/', logout_view, name='logout'),

    # ViewSet routes (me/, update_profile/, search/, <pk>/)
    path('', include(router.urls)),
]
