"""Permission classes for the Companies API."""

from rest_framework.permissions import BasePermission

from halogin.companies.exceptions import NotCompanyAdmin
from halogin.companies.services import is_admin


class IsCompanyAdmin(BasePermission):
    """Only admins of the company named by the ``company_id`` URL kwarg."""

    def has_permission(self, request, view):
        company_id = view.kwargs.get("company_id")
        if company_id is None:
            return True
        if not is_admin(company_id, request.user):
            raise NotCompanyAdmin
        return True
