"""
Exam (exame) endpoints.  Same contract as appointments, plus a ``name``.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from core.serializers.bookings import ExamCreateSerializer
from core.services.scheduling import EXAM
from core.views import bookings


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def exams(request):
    if request.method == 'GET':
        return bookings.list_bookings(request, EXAM)
    return bookings.create_booking(request, EXAM, ExamCreateSerializer)


@api_view(['GET', 'PATCH', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def exam_detail(request, pk: int):
    return bookings.booking_detail(request, EXAM, pk)
