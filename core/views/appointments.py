"""
Appointment (consulta) endpoints.

Patients see and book only their own appointments, practitioners see the
ones they attend, administrators and attendants see everything.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from core.serializers.bookings import BookingCreateSerializer
from core.services.scheduling import APPOINTMENT
from core.views import bookings


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def appointments(request):
    if request.method == 'GET':
        return bookings.list_bookings(request, APPOINTMENT)
    return bookings.create_booking(request, APPOINTMENT, BookingCreateSerializer)


@api_view(['GET', 'PATCH', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def appointment_detail(request, pk: int):
    return bookings.booking_detail(request, APPOINTMENT, pk)
