"""
Role based permission classes.

Booking access is decided per object in ``core.services.scheduling``;
these classes only gate whole endpoints by role.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS

from .models import Role

STAFF_ROLES = {Role.ADMIN, Role.ATTENDANT}


def _role(request):
    user = getattr(request, "user", None)
    if not (user and user.is_authenticated):
        return None
    return getattr(user, "role", None)


class StaffReadAdminWrite(BasePermission):
    """Administrators and attendants may read; only administrators may write."""
    message = "Administrator role required."

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        if request.method in SAFE_METHODS:
            return _role(request) in STAFF_ROLES
        return _role(request) == Role.ADMIN
