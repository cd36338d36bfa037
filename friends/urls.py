from django.urls import path
from .views import FriendViewSet

app_name = 'friends'

urlpatterns = [
    path('send-request/', FriendViewSet.as_view({'post': 'send_request'}), name='send-request'),
    path('accept-request/<int:pk>/', FriendViewSet.as_view({'patch': 'accept_request'}), name='accept-request'),
    path('decline-request/<int:pk>/', FriendViewSet.as_view({'patch': 'decline_request'}), name='decline-request'),
    path('cancel-request/<int:pk>/', FriendViewSet.as_view({'delete': 'cancel_request'}), name='cancel-request'),
    path('unfriend/<int:peer_id>/', FriendViewSet.as_view({'delete': 'unfriend'}), name='unfriend'),
    path('friends-list/', FriendViewSet.as_view({'get': 'friends_list'}), name='friends-list'),
    path('pending-requests/', FriendViewSet.as_view({'get': 'pending_requests'}), name='pending-requests'),
    path('sent-requests/', FriendViewSet.as_view({'get': 'sent_requests'}), name='sent-requests'),
    path('suggestions/', FriendViewSet.as_view({'get': 'suggestions'}), name='suggestions'),
]
