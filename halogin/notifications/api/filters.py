import django_filters

from halogin.notifications.models import Notification


class NotificationFilter(django_filters.FilterSet):
    class Meta:
        model = Notification
        fields = ["is_read", "notification_type"]
