"""
Token authentication for API clients.

Identity is issued by the external provider; the clinic backend only
verifies the DRF token mapped to the synced user.  This subclass exists to
provide a stable import path for the project's configuration.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """Token authentication using the ``Token`` keyword."""

    keyword = 'Token'
