"""
User management endpoints.

Administrators and attendants can list and inspect users; only
administrators create, change or deactivate them.  Deactivation is a soft
delete: the row stays and ``active`` becomes false.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.models import User
from core.permissions import StaffReadAdminWrite
from core.serializers.users import UserCreateSerializer, UserUpdateSerializer, serialize_user
from core.services.audit import log_action
from core.services import users as user_service


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, StaffReadAdminWrite])
def users_list(request):
    if request.method == 'GET':
        qs = User.objects.order_by('-date_joined', '-id')
        role = request.query_params.get('role')
        if role:
            qs = qs.filter(role=role)
        return Response({'ok': True, 'data': [serialize_user(u) for u in qs]})
    s = UserCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = user_service.create_user(**s.validated_data)
    log_action(user=request.user, action='user_create', object_type='user', object_id=user.id,
               detail={'role': user.role})
    return Response({'ok': True, 'message': 'User created.', 'data': serialize_user(user)},
                    status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, StaffReadAdminWrite])
def user_detail(request, pk: int):
    user = user_service.get_user_or_404(pk)
    if request.method == 'GET':
        return Response({'ok': True, 'data': serialize_user(user)})
    if request.method == 'DELETE':
        user_service.deactivate_user(user)
        log_action(user=request.user, action='user_deactivate', object_type='user', object_id=user.id)
        return Response({'ok': True, 'message': 'User deactivated.'})
    s = UserUpdateSerializer(data=request.data, partial=request.method == 'PATCH')
    s.is_valid(raise_exception=True)
    user_service.update_user(user, **s.validated_data)
    log_action(user=request.user, action='user_update', object_type='user', object_id=user.id,
               detail={'fields': sorted(k for k in s.validated_data if k != 'password')})
    return Response({'ok': True, 'message': 'User updated.', 'data': serialize_user(user)})
