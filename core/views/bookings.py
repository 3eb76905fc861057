"""
Shared handlers for the booking resources.

Appointments (``/api/consultas``) and exams (``/api/exames``) expose the
same collection/detail contract; the resource modules bind these handlers
to their :class:`~core.services.scheduling.BookingKind`.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.response import Response

from core.serializers.bookings import (
    BookingListQuerySerializer,
    BookingUpdateSerializer,
    serialize_booking,
)
from core.services import scheduling
from core.services.scheduling import BookingKind

DEFAULT_PAGE_SIZE = 50


def list_bookings(request, kind: BookingKind):
    q = BookingListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = scheduling.bookings_for(kind, request.user, status=q.validated_data.get('status'))
    page = q.validated_data.get('page', 1)
    page_size = q.validated_data.get('pageSize', DEFAULT_PAGE_SIZE)
    total = qs.count()
    start = (page - 1) * page_size
    items = [serialize_booking(b) for b in qs[start:start + page_size]]
    return Response({
        'ok': True,
        'data': items,
        'pagination': {'total': total, 'page': page, 'pageSize': page_size},
    })


def create_booking(request, kind: BookingKind, serializer_class):
    s = serializer_class(data=request.data)
    s.is_valid(raise_exception=True)
    booking = scheduling.create_booking(kind, s.validated_data, request.user)
    return Response(
        {'ok': True, 'message': f'{kind.label.capitalize()} scheduled.', 'data': serialize_booking(booking)},
        status=status.HTTP_201_CREATED,
    )


def booking_detail(request, kind: BookingKind, pk: int):
    if request.method in ('PATCH', 'PUT'):
        # Payload is checked before lookup: a bad status is a 400 for anyone.
        s = BookingUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        if 'status' in s.validated_data and s.validated_data['status'] is not None:
            scheduling.validate_status_transition(s.validated_data['status'])

    booking = scheduling.get_booking(kind, pk, request.user)

    if request.method == 'GET':
        return Response({'ok': True, 'data': serialize_booking(booking)})

    if request.method == 'DELETE':
        scheduling.cancel_booking(kind, booking, request.user)
        return Response({'ok': True, 'message': f'{kind.label.capitalize()} cancelled.',
                         'data': serialize_booking(booking)})

    changes = {k: v for k, v in s.validated_data.items() if k in ('status', 'details')}
    scheduling.update_booking(kind, booking, request.user, **changes)
    return Response({'ok': True, 'message': f'{kind.label.capitalize()} updated.',
                     'data': serialize_booking(booking)})
