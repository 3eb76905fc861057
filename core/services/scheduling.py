"""
Appointment and exam scheduling rules.

Everything a booking request has to pass before it reaches the database
lives here: required fields, who may book for whom, subject and
practitioner checks, the canonical slot instant and the per-practitioner
slot conflict.  The same module decides who may read, change or cancel an
existing booking.

Slots are wall-clock ``day`` + ``HH:MM`` interpreted in the clinic time
zone (``settings.TIME_ZONE``) with seconds zeroed, so the instant used to
store a booking is the instant used to look for conflicts.  The database
backs the conflict rule with a partial unique constraint on
``(practitioner, slot)`` over non-cancelled rows; a violation raised by a
concurrent insert surfaces as :class:`SlotUnavailable` as well.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time as dt_time
from typing import Optional

import bleach
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.utils import timezone
from django.utils.dateparse import parse_date

from core.exceptions import Forbidden, ResourceNotFound, SlotUnavailable, ValidationFailed
from core.models import Appointment, Booking, BookingStatus, Exam, Role
from core.services.audit import log_action

User = get_user_model()
logger = logging.getLogger(__name__)

DAY_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')
TIME_RE = re.compile(r'^([01]?\d|2[0-3]):([0-5]\d)$')

_UNSET = object()


@dataclass(frozen=True)
class BookingKind:
    model: type[Booking]
    label: str
    required: tuple[str, ...]
    requires_active_practitioner: bool


APPOINTMENT = BookingKind(
    model=Appointment,
    label='appointment',
    required=('subjectId', 'practitionerId', 'day', 'time'),
    requires_active_practitioner=True,
)
EXAM = BookingKind(
    model=Exam,
    label='exam',
    required=('name', 'subjectId', 'practitionerId', 'day', 'time'),
    requires_active_practitioner=False,
)


# ---------------------------------------------------------------------
# Slot arithmetic
# ---------------------------------------------------------------------
def parse_day(value) -> date:
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    value = str(value).strip()
    parsed = None
    # fromisoformat also takes compact and week dates on newer interpreters
    if DAY_RE.match(value):
        try:
            parsed = parse_date(value)
        except ValueError:
            parsed = None
    if parsed is None:
        raise ValidationFailed('Invalid day, expected YYYY-MM-DD.')
    return parsed


def parse_time(value) -> dt_time:
    if isinstance(value, dt_time):
        return value.replace(second=0, microsecond=0)
    match = TIME_RE.match(str(value).strip())
    if not match:
        raise ValidationFailed('Invalid time, expected HH:MM.')
    return dt_time(int(match.group(1)), int(match.group(2)))


def compute_slot(day, time) -> datetime:
    """Combine a calendar day and an ``HH:MM`` time into an aware instant."""
    naive = datetime.combine(parse_day(day), parse_time(time))
    return timezone.make_aware(naive, timezone.get_default_timezone())


def slot_blockers(kind: BookingKind, practitioner_id: int, slot: datetime):
    """Bookings that keep ``slot`` occupied for the practitioner."""
    qs = kind.model.objects.filter(practitioner_id=practitioner_id, slot=slot)
    if not settings.BOOKING_CANCELLED_SLOT_BLOCKS:
        qs = qs.exclude(status=BookingStatus.CANCELLED)
    return qs


# ---------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------
def _clean_details(value) -> Optional[str]:
    if value is None:
        return None
    value = bleach.clean(str(value).strip(), strip=True)
    return value or None


def validate_create(kind: BookingKind, data: dict, caller) -> dict:
    """Check a booking request and return model fields ready to insert.

    Checks run in a fixed order and the first failure is raised: missing
    fields, patient booking for someone else, invalid subject, invalid
    practitioner, malformed day/time, occupied slot.
    """
    missing = [f for f in kind.required if data.get(f) in (None, '')]
    if missing:
        raise ValidationFailed(f"Missing required fields: {', '.join(missing)}.")

    subject_id = data['subjectId']
    practitioner_id = data['practitionerId']

    if Role(caller.role) == Role.PATIENT and subject_id != caller.id:
        raise Forbidden('Patients may only book for themselves.')

    subject = User.objects.filter(pk=subject_id, is_active=True).first()
    if subject is None:
        raise ValidationFailed('Invalid or inactive subject.')

    practitioner = User.objects.filter(pk=practitioner_id, role=Role.PRACTITIONER).first()
    if practitioner is None or (kind.requires_active_practitioner and not practitioner.is_active):
        raise ValidationFailed('Invalid or inactive practitioner.')

    day = parse_day(data['day'])
    at = parse_time(data['time'])
    slot = compute_slot(day, at)

    if slot_blockers(kind, practitioner.pk, slot).exists():
        raise SlotUnavailable()

    fields = {
        'subject': subject,
        'practitioner': practitioner,
        'day': day,
        'time': at.strftime('%H:%M'),
        'slot': slot,
        'details': _clean_details(data.get('details')),
    }
    if 'name' in kind.required:
        fields['name'] = bleach.clean(str(data['name']).strip(), strip=True)
    return fields


def create_booking(kind: BookingKind, data: dict, caller) -> Booking:
    fields = validate_create(kind, data, caller)
    try:
        with transaction.atomic():
            booking = kind.model.objects.create(**fields)
    except IntegrityError:
        logger.info('%s slot taken concurrently: practitioner=%s slot=%s',
                    kind.label, fields['practitioner'].pk, fields['slot'].isoformat())
        raise SlotUnavailable()
    logger.info('%s #%s created by user %s', kind.label, booking.pk, caller.pk)
    log_action(user=caller, action=f'{kind.label}_create', object_type=kind.label, object_id=booking.pk,
               detail={'slot': booking.slot.isoformat(), 'practitionerId': booking.practitioner_id})
    return booking


# ---------------------------------------------------------------------
# Access
# ---------------------------------------------------------------------
def authorize_access(booking: Booking, caller) -> None:
    role = Role(caller.role)
    if role in (Role.ADMIN, Role.ATTENDANT):
        return
    if role == Role.PATIENT:
        allowed = booking.subject_id == caller.id
    elif role == Role.PRACTITIONER:
        allowed = booking.practitioner_id == caller.id
    else:
        raise AssertionError(f'unhandled role {role!r}')
    if not allowed:
        raise Forbidden()


def bookings_for(kind: BookingKind, caller, *, status: Optional[str] = None):
    """Bookings visible to ``caller``, earliest slot first."""
    role = Role(caller.role)
    qs = kind.model.objects.select_related('subject', 'practitioner')
    if role == Role.PATIENT:
        qs = qs.filter(subject_id=caller.id)
    elif role == Role.PRACTITIONER:
        qs = qs.filter(practitioner_id=caller.id)
    elif role not in (Role.ADMIN, Role.ATTENDANT):
        raise AssertionError(f'unhandled role {role!r}')
    if status:
        qs = qs.filter(status=status)
    return qs.order_by('slot', 'id')


def get_booking(kind: BookingKind, pk: int, caller) -> Booking:
    booking = kind.model.objects.select_related('subject', 'practitioner').filter(pk=pk).first()
    if booking is None:
        raise ResourceNotFound(f'{kind.label.capitalize()} not found.')
    authorize_access(booking, caller)
    return booking


# ---------------------------------------------------------------------
# Update / cancel
# ---------------------------------------------------------------------
def validate_status_transition(new_status) -> BookingStatus:
    # Any status may follow any other; only the value itself is checked.
    try:
        return BookingStatus(new_status)
    except ValueError:
        raise ValidationFailed('Invalid status.')


def _save(booking: Booking, fields: list[str]) -> None:
    try:
        with transaction.atomic():
            booking.save(update_fields=fields)
    except IntegrityError:
        raise SlotUnavailable()


def update_booking(kind: BookingKind, booking: Booking, caller, *, status=_UNSET, details=_UNSET) -> Booking:
    authorize_access(booking, caller)
    fields = ['updated_at']
    if status is not _UNSET and status is not None:
        new_status = validate_status_transition(status)
        reviving = booking.status == BookingStatus.CANCELLED and new_status != BookingStatus.CANCELLED
        if reviving and kind.model.objects.filter(
            practitioner_id=booking.practitioner_id, slot=booking.slot,
        ).exclude(pk=booking.pk).exclude(status=BookingStatus.CANCELLED).exists():
            raise SlotUnavailable()
        booking.status = new_status
        fields.append('status')
    if details is not _UNSET:
        booking.details = _clean_details(details)
        fields.append('details')
    _save(booking, fields)
    log_action(user=caller, action=f'{kind.label}_update', object_type=kind.label, object_id=booking.pk,
               detail={'fields': fields[1:]})
    return booking


def cancel_booking(kind: BookingKind, booking: Booking, caller) -> Booking:
    authorize_access(booking, caller)
    booking.status = BookingStatus.CANCELLED
    _save(booking, ['status', 'updated_at'])
    logger.info('%s #%s cancelled by user %s', kind.label, booking.pk, caller.pk)
    log_action(user=caller, action=f'{kind.label}_cancel', object_type=kind.label, object_id=booking.pk)
    return booking
