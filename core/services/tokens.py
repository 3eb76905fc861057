"""
Access/refresh token minting and verification.

Access tokens are simplejwt ``AccessToken`` instances (claims ``id`` and
``role``) signed with ``JWT_ACCESS_SECRET`` so the stock JWT authentication
verifies them.  Refresh tokens only carry ``id`` and are signed through a
separate ``TokenBackend`` keyed with ``JWT_REFRESH_SECRET``.
"""
from __future__ import annotations

import uuid

from django.conf import settings
from rest_framework_simplejwt.backends import TokenBackend
from rest_framework_simplejwt.exceptions import TokenBackendError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken
from rest_framework_simplejwt.utils import aware_utcnow, datetime_to_epoch

from core.exceptions import InvalidToken

REFRESH_TOKEN_TYPE = 'refresh'


def _refresh_backend() -> TokenBackend:
    return TokenBackend(api_settings.ALGORITHM, signing_key=settings.JWT_REFRESH_SECRET)


def issue_access_token(user) -> str:
    token = AccessToken.for_user(user)
    token['role'] = user.role
    return str(token)


def issue_refresh_token(user) -> str:
    now = aware_utcnow()
    payload = {
        'token_type': REFRESH_TOKEN_TYPE,
        'id': user.pk,
        'iat': datetime_to_epoch(now),
        'exp': datetime_to_epoch(now + settings.JWT_REFRESH_LIFETIME),
        'jti': uuid.uuid4().hex,
    }
    return _refresh_backend().encode(payload)


def issue_tokens(user) -> dict:
    return {
        'accessToken': issue_access_token(user),
        'refreshToken': issue_refresh_token(user),
    }


def refresh_token_user_id(raw: str) -> int:
    """Verify a refresh token and return the user id it was issued for."""
    try:
        payload = _refresh_backend().decode(raw, verify=True)
    except TokenBackendError:
        raise InvalidToken('Refresh token is invalid or expired.')
    if payload.get('token_type') != REFRESH_TOKEN_TYPE or payload.get('id') is None:
        raise InvalidToken('Refresh token is invalid or expired.')
    return payload['id']
