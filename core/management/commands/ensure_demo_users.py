# core/management/commands/ensure_demo_users.py
from django.core.management.base import BaseCommand

from core.models import Role, User

DEMO_SET = [
    ("admin@clinica.local", "Admin Demo", Role.ADMIN),
    ("atendente@clinica.local", "Atendente Demo", Role.ATTENDANT),
    ("medico@clinica.local", "Dra. Demo", Role.PRACTITIONER),
    ("paciente@clinica.local", "Paciente Demo", Role.PATIENT),
]


class Command(BaseCommand):
    help = "Ensure one active demo user per role exists with the given password (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default="Clinica#2024", help="password set on every demo user")

    def handle(self, *args, **opts):
        password = opts["password"]
        for email, name, role in DEMO_SET:
            u, created = User.objects.get_or_create(
                email=email,
                defaults={"name": name, "role": role, "is_active": True},
            )
            # reset password, role and active flag on every run
            u.set_password(password)
            u.role = role
            u.is_active = True
            u.save(update_fields=["password", "role", "is_active", "updated_at"])
            self.stdout.write(self.style.SUCCESS(f"{'created' if created else 'ok'}: {email} ({role})"))
        self.stdout.write(self.style.SUCCESS("All demo users ensured."))
