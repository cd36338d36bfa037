from django.contrib import admin
from django.contrib.admin import AdminSite
from django.shortcuts import redirect
from users.models import User
from friends.models import Friend
from notifications.models import Notification


class InCampusAdminSite(AdminSite):
    site_header = 'InCampus Administration'
    site_title = 'InCampus Admin'
    index_title = 'InCampus Dashboard'

    def index(self, request, extra_context=None):
        # Redirect to the Users changelist as the default view
        return redirect(f'{self.name}:users_user_changelist')


incampus_admin_site = InCampusAdminSite(name='incampus_admin')


@admin.register(User, site=incampus_admin_site)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'email', 'name', 'role', 'university_id', 'is_verified', 'date_joined')
    search_fields = ('username', 'email', 'name', 'university_id')
    list_filter = ('role', 'is_verified', 'is_active', 'is_staff')
    exclude = ('password', 'otp_code')


@admin.register(Friend, site=incampus_admin_site)
class FriendAdmin(admin.ModelAdmin):
    list_display = ('requester', 'recipient', 'status', 'created_at')
    list_filter = ('status', 'created_at')


@admin.register(Notification, site=incampus_admin_site)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('recipient', 'sender', 'type', 'is_read', 'created_at')
    list_filter = ('type', 'is_read')
