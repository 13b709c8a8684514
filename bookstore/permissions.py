# bookstore/permissions.py
from rest_framework.permissions import BasePermission


def is_admin_user(user):
    return bool(user and user.is_authenticated and getattr(user, "role", "") == "admin")


class IsAdminRole(BasePermission):
    message = "Admin access required"

    def has_permission(self, request, view):
        return is_admin_user(request.user)

