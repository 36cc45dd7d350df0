from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import mixins
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet
from rest_framework_simplejwt.token_blacklist.models import OutstandingToken

from halogin.notifications.models import Notification
from halogin.notifications.models import SessionFcmToken
from halogin.users.sessions import session_id_from_request

from .filters import NotificationFilter
from .serializers import FcmTokenSerializer
from .serializers import NotificationSerializer


class NotificationViewSet(
    mixins.ListModelMixin,
    mixins.DestroyModelMixin,
    GenericViewSet,
):
    """Notifications for the authenticated user.

    - list: request.user's notifications, filterable by is_read / type
    - destroy: deletes a notification (recipient only)
    - mark_read / mark_all_read
    - fcm_token: registers or forgets the push token of the current session
    """

    permission_classes = [IsAuthenticated]
    serializer_class = NotificationSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = NotificationFilter

    def get_queryset(self):
        return Notification.objects.filter(recipient=self.request.user)

    @action(detail=True, methods=["post"], url_path="mark-read")
    def mark_read(self, request, pk=None):
        notification = self.get_object()
        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=["is_read"])
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["post"], url_path="mark-all-read")
    def mark_all_read(self, request):
        self.get_queryset().filter(is_read=False).update(is_read=True)
        return Response(status=status.HTTP_204_NO_CONTENT)

    def _current_session(self, request) -> OutstandingToken:
        session_id = session_id_from_request(request)
        session = OutstandingToken.objects.filter(jti=session_id).first() if session_id else None
        if session is None:
            msg = "Push tokens can only be registered for a login session."
            raise ValidationError(msg)
        return session

    @extend_schema(request=FcmTokenSerializer, responses={204: None})
    @action(detail=False, methods=["post", "delete"], url_path="fcm-token")
    def fcm_token(self, request):
        serializer = FcmTokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        token = serializer.validated_data["token"]
        session = self._current_session(request)
        if request.method == "DELETE":
            SessionFcmToken.objects.filter(token=token, session=session).delete()
        else:
            SessionFcmToken.objects.update_or_create(
                token=token,
                defaults={"session": session},
            )
        return Response(status=status.HTTP_204_NO_CONTENT)
