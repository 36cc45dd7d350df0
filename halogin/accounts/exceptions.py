from rest_framework import status
from rest_framework.exceptions import APIException


class InvalidAuthorizationCode(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Could not get the tokens from the provided code."
    default_code = "invalid_code"
