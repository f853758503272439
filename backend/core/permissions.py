"""Role checks shared by the console views"""
from rest_framework.permissions import BasePermission

from .models import User


def is_admin_user(user):
    """
    Check if user is an admin user.
    Returns True if:
    - User has the 'admin' role, OR
    - User is superuser/staff and has no application role (fallback)
    """
    if not user or not user.is_authenticated:
        return False
    return user.effective_role == User.ROLE_ADMIN


def can_manage(user):
    """Admins, managers and accountants may create, edit and delete records"""
    if not user or not user.is_authenticated:
        return False
    return user.effective_role in User.MANAGING_ROLES


class IsAdminRole(BasePermission):
    message = 'Only administrators can access this resource.'

    def has_permission(self, request, view):
        return is_admin_user(request.user)
