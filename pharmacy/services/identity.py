"""
Verified caller identity handed to the ledger engine.

Authentication happens upstream (identity provider + DRF token auth).  The
view layer turns the authenticated user into a :class:`PharmacistIdentity`
once; the services accept that object and never look at the request.
"""
from __future__ import annotations

from dataclasses import dataclass

from rest_framework.exceptions import PermissionDenied

from pharmacy.models import User


@dataclass(frozen=True)
class PharmacistIdentity:
    user_id: str
    username: str
    role: str = User.ROLE_PHARMACIST

    @classmethod
    def from_user(cls, user) -> "PharmacistIdentity":
        if not (user and getattr(user, 'is_authenticated', False)):
            raise PermissionDenied('Forbidden: Pharmacist access required.')
        if getattr(user, 'role', None) != User.ROLE_PHARMACIST:
            raise PermissionDenied('Forbidden: Pharmacist access required.')
        return cls(
            user_id=user.external_id or str(user.pk),
            username=user.get_username(),
            role=user.role,
        )
