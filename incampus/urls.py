"""
URL configuration for the InCampus project.
"""
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView, SpectacularRedocView
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework_simplejwt.views import TokenVerifyView
from .admin import incampus_admin_site
from .utils import create_success_response


@api_view(['GET'])
@permission_classes([AllowAny])
def index(request):
    return create_success_response(message='Welcome to InCampus API')


urlpatterns = [
    path('', index, name='index'),

    path('admin/', incampus_admin_site.urls),

    # API Documentation
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/schema/swagger-ui/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('api/schema/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),

    path('api/token/verify/', TokenVerifyView.as_view(), name='token_verify'),

    # App URLs
    path('api/users/', include('users.urls')),
    path('api/friends/', include('friends.urls')),
    path('api/notifications/', include('notifications.urls')),
]
