from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'notifications'

    # Live-connection registry, created once per process
    registry = None

    def ready(self):
        from incampus.realtime import ChannelRegistry
        self.registry = ChannelRegistry()
