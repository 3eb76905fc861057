import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from core.models import Role, User

PASSWORD = 'Cl1nica!Segura'


def make_user(email, role, *, active=True, name=None):
    return User.objects.create_user(
        email=email,
        password=PASSWORD,
        name=name or email.split('@')[0].title(),
        role=role,
        is_active=active,
    )


@pytest.fixture(autouse=True)
def _isolated_throttles_and_fast_hashes(settings):
    # Throttle counters live in the cache; hashing speed only matters for tests.
    settings.PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def admin(db):
    return make_user('admin@clinic.test', Role.ADMIN)


@pytest.fixture
def attendant(db):
    return make_user('desk@clinic.test', Role.ATTENDANT)


@pytest.fixture
def practitioner(db):
    return make_user('dr.house@clinic.test', Role.PRACTITIONER)


@pytest.fixture
def other_practitioner(db):
    return make_user('dr.grey@clinic.test', Role.PRACTITIONER)


@pytest.fixture
def patient(db):
    return make_user('ana@clinic.test', Role.PATIENT)


@pytest.fixture
def other_patient(db):
    return make_user('bruno@clinic.test', Role.PATIENT)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    """Return an APIClient authenticated as the given user."""
    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return _client


@pytest.fixture
def bearer_client():
    """Log in through the API and return a client carrying the access token."""
    def _client(user, password=PASSWORD):
        client = APIClient()
        r = client.post('/api/auth/login', {'email': user.email, 'password': password}, format='json')
        assert r.status_code == 200, r.data
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['accessToken']}")
        return client
    return _client
