"""
Authentication views: register, login and token refresh.

Login answers unknown emails and wrong passwords identically.  Token
minting lives in ``core.services.tokens`` and credential checks in
``core.services.auth`` so these views stay thin.
"""
from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from core.exceptions import ClinicError
from core.serializers.auth import LoginSerializer, RefreshSerializer, RegisterSerializer
from core.serializers.users import serialize_user
from core.services.audit import log_action
from core.services.auth import authenticate, renew
from core.services.tokens import issue_tokens
from core.services.users import register_patient

logger = logging.getLogger(__name__)


def _client_ip(request):
    return request.META.get('REMOTE_ADDR')


# ---------------------------------------------------------------------
# Self-service registration (always PATIENT)
# ---------------------------------------------------------------------
@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def register_view(request):
    s = RegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    user = register_patient(name=vd['name'], email=vd['email'], password=vd['password'])
    log_action(user=user, action='register', object_type='user', object_id=user.id,
               detail={'ip': _client_ip(request)})
    return Response({'ok': True, 'message': 'User created.', 'user': serialize_user(user)},
                    status=status.HTTP_201_CREATED)

register_view.cls.throttle_scope = 'register'


# ---------------------------------------------------------------------
# Email/password login
# ---------------------------------------------------------------------
@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def login_view(request):
    """
    Log in with ``email`` and ``password``.

    Returns an access token (``{id, role}``, short lived) and a refresh
    token (``{id}``, long lived) signed with separate secrets.
    """
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    email = s.validated_data['email']

    try:
        user = authenticate(email, s.validated_data['password'])
    except ClinicError as exc:
        # audit the failed attempt, email only
        log_action(user=None, action='login', object_type='user',
                   detail={'result': exc.error_code, 'email': email, 'ip': _client_ip(request)})
        logger.info('login rejected (%s) from %s', exc.error_code, _client_ip(request))
        raise

    log_action(user=user, action='login', object_type='user', object_id=user.id,
               detail={'result': 'ok', 'ip': _client_ip(request)})

    payload: dict[str, object] = {
        'ok': True,
        'message': 'Login successful.',
        **issue_tokens(user),
        'user': {
            'id': user.id,
            'name': user.name,
            'email': user.email,
            'role': user.role,
        },
    }
    return Response(payload, status=200)

login_view.cls.throttle_scope = 'login'


# ---------------------------------------------------------------------
# Refresh
# ---------------------------------------------------------------------
@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def refresh_view(request):
    """Return a new access token for a valid refresh token."""
    s = RefreshSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    access = renew(s.validated_data['refreshToken'])
    return Response({'ok': True, 'message': 'Token renewed.', 'accessToken': access})

refresh_view.cls.throttle_scope = 'login'
