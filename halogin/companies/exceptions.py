from rest_framework import status
from rest_framework.exceptions import APIException


class NotCompanyAdmin(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You are not an admin of this company"
    default_code = "not_company_admin"


class NoInvitation(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "You don't have any invites from this company"
    default_code = "no_invitation"
