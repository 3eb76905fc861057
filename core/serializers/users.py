import bleach
from rest_framework import serializers

from core.models import Role


def _clean_name(v):
    v = bleach.clean((v or '').strip(), strip=True)
    if not v:
        raise serializers.ValidationError('Name is required.')
    return v


class UserCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(trim_whitespace=False, write_only=True)
    role = serializers.ChoiceField(choices=Role.choices)

    def validate_name(self, v):
        return _clean_name(v)


class UserUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150, required=False)
    email = serializers.EmailField(required=False)
    password = serializers.CharField(trim_whitespace=False, write_only=True, required=False, allow_blank=True)
    role = serializers.ChoiceField(choices=Role.choices, required=False)
    active = serializers.BooleanField(required=False)

    def validate_name(self, v):
        return _clean_name(v)


def serialize_user(user) -> dict:
    return {
        'id': user.id,
        'name': user.name,
        'email': user.email,
        'role': user.role,
        'active': user.is_active,
        'createdAt': user.date_joined.isoformat() if user.date_joined else None,
        'updatedAt': user.updated_at.isoformat() if user.updated_at else None,
    }
