"""
Django admin registrations for the core models.

Lets staff inspect users, bookings and the audit trail at ``/admin/``
during development.  Bookings are listed by slot so a practitioner's day
reads top to bottom.
"""

from django.contrib import admin

from .models import Appointment, AuditEvent, Exam, User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('email', 'name', 'role', 'is_active', 'is_staff', 'date_joined')
    list_filter = ('role', 'is_active')
    search_fields = ('email', 'name')
    ordering = ('email',)


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'slot', 'practitioner', 'subject', 'status')
    list_filter = ('status', 'practitioner')
    search_fields = ('subject__name', 'subject__email', 'practitioner__name')
    date_hierarchy = 'slot'


@admin.register(Exam)
class ExamAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'slot', 'practitioner', 'subject', 'status')
    list_filter = ('status', 'practitioner')
    search_fields = ('name', 'subject__name', 'subject__email', 'practitioner__name')
    date_hierarchy = 'slot'


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'user', 'object_type', 'object_id', 'created_at')
    list_filter = ('action', 'object_type')
    search_fields = ('user__email',)
    readonly_fields = ('user', 'action', 'object_type', 'object_id', 'detail', 'created_at')
