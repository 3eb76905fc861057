from django.utils import timezone
from rest_framework import serializers

from core.models import BookingStatus


class BookingCreateSerializer(serializers.Serializer):
    """Shape of a booking request.

    Presence is checked by the scheduling rules so that the order of
    failures stays fixed; only types are enforced here.
    """
    subjectId = serializers.IntegerField(required=False, allow_null=True)
    practitionerId = serializers.IntegerField(required=False, allow_null=True)
    day = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=32)
    time = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=8)
    details = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=5000)


class ExamCreateSerializer(BookingCreateSerializer):
    name = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)


class BookingUpdateSerializer(serializers.Serializer):
    # Free-form so that an unknown status reaches the status rule.
    status = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=32)
    details = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=5000)


class BookingListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=BookingStatus.choices, required=False)
    page = serializers.IntegerField(min_value=1, required=False)
    pageSize = serializers.IntegerField(min_value=1, max_value=200, required=False)


def _person(user) -> dict:
    return {'id': user.id, 'name': user.name, 'email': user.email}


def serialize_booking(booking) -> dict:
    data = {
        'id': booking.id,
        'subjectId': booking.subject_id,
        'practitionerId': booking.practitioner_id,
        'subject': _person(booking.subject),
        'practitioner': _person(booking.practitioner),
        'day': booking.day.isoformat(),
        'time': booking.time,
        'slot': timezone.localtime(booking.slot).isoformat(),
        'details': booking.details,
        'status': booking.status,
        'createdAt': booking.created_at.isoformat() if booking.created_at else None,
        'updatedAt': booking.updated_at.isoformat() if booking.updated_at else None,
    }
    if hasattr(booking, 'name'):
        data['name'] = booking.name
    return data
