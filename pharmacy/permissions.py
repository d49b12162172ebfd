"""
Custom permission classes for role based access control.

Roles are claims supplied by the identity provider and stored on the user;
these classes only read them.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS

PHARMACY_STAFF_ROLES = {"pharmacist", "admin"}


def _role(request):
    user = getattr(request, "user", None)
    if not (user and user.is_authenticated):
        return None
    return getattr(user, "role", None)


class IsPharmacist(BasePermission):
    """Allow access only to users with the pharmacist role."""
    message = "Forbidden: Pharmacist access required."

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) == "pharmacist"


class IsPharmacyStaff(BasePermission):
    """Pharmacist or administrator."""
    message = "Forbidden: Pharmacy staff access required."

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) in PHARMACY_STAFF_ROLES


class ReadOnlyOrPharmacyStaff(BasePermission):
    """Any authenticated user may read; writes need pharmacy staff."""
    message = "Forbidden: Pharmacy staff access required."

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        role = _role(request)
        if request.method in SAFE_METHODS:
            return role is not None
        return role in PHARMACY_STAFF_ROLES
