"""
Bearer-token authentication for the API.

Access tokens are verified with django-rest-framework-simplejwt against
``JWT_ACCESS_SECRET``.  Refresh tokens are signed with a different secret
and therefore never authenticate a request.  Keeping the class in its own
module gives settings a stable import path and keeps DRF from importing
views while it resolves authentication classes.
"""
from __future__ import annotations

from rest_framework_simplejwt import authentication


class JWTAuthentication(authentication.JWTAuthentication):
    """``Authorization: Bearer <accessToken>``; inactive users are rejected."""

    www_authenticate_realm = 'clinic'
