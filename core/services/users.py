from typing import Optional

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from core.exceptions import ResourceConflict, ResourceNotFound, ValidationFailed
from core.models import Role

User = get_user_model()


def _check_password(password: str, user=None) -> None:
    try:
        validate_password(password, user=user)
    except ValidationError as e:
        raise ValidationFailed(' '.join(e.messages))


def _ensure_email_free(email: str, *, exclude_id: Optional[int] = None) -> None:
    qs = User.objects.filter(email__iexact=email)
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    if qs.exists():
        raise ResourceConflict('Email already registered.')


def get_user_or_404(user_id) -> User:
    user = User.objects.filter(pk=user_id).first()
    if user is None:
        raise ResourceNotFound('User not found.')
    return user


def create_user(*, name: str, email: str, password: str, role: str = Role.PATIENT) -> User:
    email = User.objects.normalize_email(email.strip())
    _ensure_email_free(email)
    _check_password(password, User(name=name, email=email))
    try:
        with transaction.atomic():
            return User.objects.create_user(email=email, password=password, name=name, role=role, is_active=True)
    except IntegrityError:
        # Lost a race against a concurrent registration with the same email.
        raise ResourceConflict('Email already registered.')


def register_patient(*, name: str, email: str, password: str) -> User:
    """Self-service sign up; the role is always ``PATIENT``."""
    return create_user(name=name, email=email, password=password, role=Role.PATIENT)


def update_user(user: User, *, name=None, email=None, password=None, role=None, active=None) -> User:
    fields = ['updated_at']
    if name:
        user.name = name
        fields.append('name')
    if email:
        email = User.objects.normalize_email(email.strip())
        if email.lower() != user.email.lower():
            _ensure_email_free(email, exclude_id=user.pk)
        user.email = email
        fields.append('email')
    if role:
        user.role = role
        fields.append('role')
    if active is not None:
        user.is_active = active
        fields.append('is_active')
    if password:
        _check_password(password, user)
        user.set_password(password)
        fields.append('password')
    try:
        with transaction.atomic():
            user.save(update_fields=fields)
    except IntegrityError:
        raise ResourceConflict('Email already in use.')
    return user


def deactivate_user(user: User) -> User:
    user.is_active = False
    user.save(update_fields=['is_active', 'updated_at'])
    return user
