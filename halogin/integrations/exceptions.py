from rest_framework import status
from rest_framework.exceptions import APIException


class UpstreamServiceError(APIException):
    """A third-party API (OAuth provider, Google, Twitch, embeddings) failed."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Upstream service request failed."
    default_code = "upstream_error"
