"""
Credential checks and token renewal.

Unknown emails and wrong passwords produce the same error so that the
login endpoint cannot be used to discover which accounts exist.
"""
from __future__ import annotations

from django.contrib.auth import get_user_model

from core.exceptions import AccountForbidden, InvalidCredentials
from core.services.tokens import issue_access_token, refresh_token_user_id

User = get_user_model()


def authenticate(email: str, password: str) -> User:
    user = User.objects.filter(email__iexact=(email or '').strip()).first()
    if user is None:
        # Hash anyway so a missing account costs the same as a wrong password.
        User().set_password(password)
        raise InvalidCredentials()
    if not user.check_password(password):
        raise InvalidCredentials()
    if not user.is_active:
        raise AccountForbidden('User is inactive.')
    return user


def renew(refresh_token: str) -> str:
    user_id = refresh_token_user_id(refresh_token)
    user = User.objects.filter(pk=user_id).first()
    if user is None or not user.is_active:
        raise AccountForbidden()
    return issue_access_token(user)
