"""
Database models for the clinic backend.

Users carry a closed ``Role``; appointments and exams share the abstract
:class:`Booking` shape and live in separate tables.  Nothing here is ever
physically deleted by the API: users are deactivated and bookings are
cancelled.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models
from django.db.models import Q


class Role(models.TextChoices):
    ADMIN = 'ADMIN', 'Administrator'
    PATIENT = 'PATIENT', 'Patient'
    ATTENDANT = 'ATTENDANT', 'Attendant'
    PRACTITIONER = 'PRACTITIONER', 'Practitioner'


class BookingStatus(models.TextChoices):
    SCHEDULED = 'SCHEDULED', 'Scheduled'
    COMPLETED = 'COMPLETED', 'Completed'
    CANCELLED = 'CANCELLED', 'Cancelled'
    NO_SHOW = 'NO_SHOW', 'No show'


class UserManager(BaseUserManager):
    """Manager for the email-keyed :class:`User`."""
    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError('The email must be set')
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('role', Role.ADMIN)
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        if extra_fields.get('is_staff') is not True or extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_staff=True and is_superuser=True.')
        return self._create_user(email, password, **extra_fields)


class User(AbstractUser):
    """A person known to the clinic.

    The email address is the login identifier.  ``role`` decides what the
    user may book and see; ``is_active`` is cleared instead of deleting the
    row.
    """
    username = None
    first_name = None
    last_name = None

    name = models.CharField(max_length=150)
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=16, choices=Role.choices, default=Role.PATIENT, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['name']

    objects = UserManager()

    def get_full_name(self) -> str:
        return self.name

    def get_short_name(self) -> str:
        return self.name

    def __str__(self) -> str:
        return f"{self.email} ({self.role})"


class Booking(models.Model):
    """A practitioner's time slot reserved for a subject.

    ``day`` and ``time`` are kept as entered; ``slot`` is the aware instant
    they denote in the clinic time zone and is what conflicts are checked
    against.
    """
    subject = models.ForeignKey(User, on_delete=models.PROTECT, related_name='%(class)ss_as_subject')
    practitioner = models.ForeignKey(User, on_delete=models.PROTECT, related_name='%(class)ss_as_practitioner')
    day = models.DateField()
    time = models.CharField(max_length=5)
    slot = models.DateTimeField(db_index=True)
    details = models.TextField(blank=True, null=True)
    status = models.CharField(
        max_length=16, choices=BookingStatus.choices, default=BookingStatus.SCHEDULED, db_index=True
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ['slot', 'id']

    def __str__(self) -> str:
        return f"{self.__class__.__name__} #{self.pk} p={self.practitioner_id} @ {self.slot:%F %H:%M}"


class Appointment(Booking):
    class Meta(Booking.Meta):
        db_table = 'consultas'
        constraints = [
            models.UniqueConstraint(
                fields=['practitioner', 'slot'],
                condition=~Q(status=BookingStatus.CANCELLED),
                name='uq_appointment_active_slot',
            ),
        ]
        indexes = [
            models.Index(fields=['subject', 'slot'], name='consultas_subject_slot_idx'),
        ]


class Exam(Booking):
    name = models.CharField(max_length=255)

    class Meta(Booking.Meta):
        db_table = 'exames'
        constraints = [
            models.UniqueConstraint(
                fields=['practitioner', 'slot'],
                condition=~Q(status=BookingStatus.CANCELLED),
                name='uq_exam_active_slot',
            ),
        ]
        indexes = [
            models.Index(fields=['subject', 'slot'], name='exames_subject_slot_idx'),
        ]


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_created_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.user_id}@{self.created_at:%F %T}"
