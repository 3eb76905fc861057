from datetime import timedelta

import jwt
import pytest
from django.conf import settings
from django.urls import reverse
from rest_framework.test import APIClient

from core.models import AuditEvent, Role, User
from core.services import tokens

from .conftest import PASSWORD, make_user

pytestmark = pytest.mark.django_db


def login(client, email, password=PASSWORD):
    return client.post(reverse('login_view'), {'email': email, 'password': password}, format='json')


def refresh(client, token):
    return client.post(reverse('refresh_view'), {'refreshToken': token}, format='json')


def test_register_always_creates_patient():
    client = APIClient()
    r = client.post(reverse('register_view'),
                    {'name': 'Carla', 'email': 'carla@clinic.test', 'password': PASSWORD, 'role': 'ADMIN'},
                    format='json')
    assert r.status_code == 201, r.data
    assert r.data['ok'] is True
    assert r.data['user']['role'] == Role.PATIENT
    assert 'password' not in r.data['user']
    assert User.objects.get(email='carla@clinic.test').role == Role.PATIENT
    assert AuditEvent.objects.filter(action='register').exists()


def test_register_duplicate_email_is_conflict(patient):
    r = APIClient().post(reverse('register_view'),
                         {'name': 'Ana', 'email': patient.email.upper(), 'password': PASSWORD}, format='json')
    assert r.status_code == 409
    assert r.data['error']['code'] == 'RESOURCE_CONFLICT'


@pytest.mark.parametrize('payload', [
    {'name': 'Dani', 'email': 'dani@clinic.test', 'password': 'short'},
    {'name': 'Dani', 'email': 'not-an-email', 'password': PASSWORD},
    {'name': '  ', 'email': 'dani@clinic.test', 'password': PASSWORD},
    {'email': 'dani@clinic.test', 'password': PASSWORD},
])
def test_register_rejects_bad_input(payload):
    r = APIClient().post(reverse('register_view'), payload, format='json')
    assert r.status_code == 400
    assert r.data == {'ok': False, 'error': {'code': 'VALIDATION_ERROR', 'message': r.data['error']['message']}}
    assert not User.objects.filter(email='dani@clinic.test').exists()


def test_login_issues_tokens_signed_with_separate_secrets(practitioner):
    r = login(APIClient(), practitioner.email)
    assert r.status_code == 200, r.data
    assert r.data['user'] == {
        'id': practitioner.id, 'name': practitioner.name, 'email': practitioner.email, 'role': Role.PRACTITIONER,
    }

    access = jwt.decode(r.data['accessToken'], settings.JWT_ACCESS_SECRET, algorithms=['HS256'])
    assert str(access['id']) == str(practitioner.id)
    assert access['role'] == Role.PRACTITIONER
    assert access['token_type'] == 'access'

    refresh_claims = jwt.decode(r.data['refreshToken'], settings.JWT_REFRESH_SECRET, algorithms=['HS256'])
    assert refresh_claims['id'] == practitioner.id
    assert 'role' not in refresh_claims

    with pytest.raises(jwt.InvalidSignatureError):
        jwt.decode(r.data['refreshToken'], settings.JWT_ACCESS_SECRET, algorithms=['HS256'])
    with pytest.raises(jwt.InvalidSignatureError):
        jwt.decode(r.data['accessToken'], settings.JWT_REFRESH_SECRET, algorithms=['HS256'])


def test_login_email_is_case_insensitive(patient):
    assert login(APIClient(), patient.email.upper()).status_code == 200


def test_unknown_email_and_wrong_password_look_the_same(patient):
    client = APIClient()
    unknown = login(client, 'nobody@clinic.test')
    wrong = login(client, patient.email, 'not-the-password')
    assert unknown.status_code == wrong.status_code == 401
    assert unknown.data == wrong.data
    assert wrong.data['error']['code'] == 'AUTH_INVALID_CREDENTIALS'
    assert AuditEvent.objects.filter(action='login', user__isnull=True).count() == 2


def test_inactive_user_is_forbidden_only_with_right_password():
    make_user('old@clinic.test', Role.PATIENT, active=False)
    client = APIClient()
    r = login(client, 'old@clinic.test')
    assert r.status_code == 403
    assert r.data['error']['code'] == 'AUTH_FORBIDDEN'
    r = login(client, 'old@clinic.test', 'wrong-password')
    assert r.status_code == 401


def test_login_requires_both_fields():
    r = APIClient().post(reverse('login_view'), {'email': 'a@clinic.test'}, format='json')
    assert r.status_code == 400
    assert r.data['error']['code'] == 'VALIDATION_ERROR'


def test_refresh_returns_fresh_access_token(patient):
    client = APIClient()
    tokens_ = login(client, patient.email).data
    r = refresh(client, tokens_['refreshToken'])
    assert r.status_code == 200, r.data
    claims = jwt.decode(r.data['accessToken'], settings.JWT_ACCESS_SECRET, algorithms=['HS256'])
    assert str(claims['id']) == str(patient.id)
    assert 'refreshToken' not in r.data


def test_refresh_picks_up_role_changes(patient):
    client = APIClient()
    token = login(client, patient.email).data['refreshToken']
    patient.role = Role.ATTENDANT
    patient.save()
    claims = jwt.decode(refresh(client, token).data['accessToken'], settings.JWT_ACCESS_SECRET,
                        algorithms=['HS256'])
    assert claims['role'] == Role.ATTENDANT


def test_refresh_requires_a_token():
    r = refresh(APIClient(), '')
    assert r.status_code == 400
    assert r.data['error']['code'] == 'VALIDATION_ERROR'
    assert r.data['error']['message'] == 'refreshToken: This field may not be blank.'


@pytest.mark.parametrize('token', ['garbage', 'a.b.c'])
def test_refresh_rejects_garbled_tokens(token):
    r = refresh(APIClient(), token)
    assert r.status_code == 401
    assert r.data == {'ok': False, 'error': {'code': 'AUTH_INVALID_TOKEN',
                                             'message': 'Refresh token is invalid or expired.'}}


def test_refresh_rejects_access_token(patient):
    client = APIClient()
    access = login(client, patient.email).data['accessToken']
    r = refresh(client, access)
    assert r.status_code == 401
    assert r.data['error']['code'] == 'AUTH_INVALID_TOKEN'


def test_refresh_rejects_expired_token(settings, patient):
    settings.JWT_REFRESH_LIFETIME = timedelta(seconds=-30)
    expired = tokens.issue_refresh_token(patient)
    r = refresh(APIClient(), expired)
    assert r.status_code == 401
    assert r.data['error']['code'] == 'AUTH_INVALID_TOKEN'


def test_refresh_for_deactivated_user_is_forbidden(patient):
    client = APIClient()
    token = login(client, patient.email).data['refreshToken']
    patient.is_active = False
    patient.save()
    r = refresh(client, token)
    assert r.status_code == 403
    assert r.data['error']['code'] == 'AUTH_FORBIDDEN'


def test_refresh_for_deleted_user_is_forbidden(patient):
    token = tokens.issue_refresh_token(patient)
    patient.delete()
    r = refresh(APIClient(), token)
    assert r.status_code == 403


def test_refresh_token_is_not_a_bearer_token(patient):
    client = APIClient()
    token = login(client, patient.email).data['refreshToken']
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
    r = client.get(reverse('appointments'))
    assert r.status_code == 401
    assert r.data['error']['code'] == 'AUTH_INVALID_TOKEN'


def test_bearer_token_authenticates(bearer_client, patient):
    r = bearer_client(patient).get(reverse('appointments'))
    assert r.status_code == 200
    assert r.data == {'ok': True, 'data': [], 'pagination': {'total': 0, 'page': 1, 'pageSize': 50}}


def test_login_is_throttled(patient):
    client = APIClient()
    codes = [login(client, patient.email, 'wrong').status_code for _ in range(12)]
    assert codes[0] == 401
    assert codes[-1] == 429
    r = login(client, patient.email)
    assert r.data['error']['code'] == 'RATE_LIMITED'


def test_unexpected_errors_do_not_leak(monkeypatch, client_for, admin):
    def boom(*args, **kwargs):
        raise RuntimeError('secret connection string')

    monkeypatch.setattr('core.services.scheduling.bookings_for', boom)
    r = client_for(admin).get(reverse('appointments'))
    assert r.status_code == 500
    assert r.data == {'ok': False, 'error': {'code': 'INTERNAL_SERVER_ERROR',
                                             'message': 'An internal server error occurred.'}}


def test_healthz():
    r = APIClient().get(reverse('healthz'))
    assert r.status_code == 200
    assert r.json() == {'ok': True, 'db': True}


def test_development_jwt_secrets_are_long_enough_for_hs256():
    from clinic import settings as project_settings

    for secret in (project_settings.DEV_JWT_ACCESS_SECRET, project_settings.DEV_JWT_REFRESH_SECRET):
        assert len(secret.encode()) >= 32
    assert project_settings.DEV_JWT_ACCESS_SECRET != project_settings.DEV_JWT_REFRESH_SECRET


def test_field_errors_share_the_api_language(client_for, admin):
    r = client_for(admin).post(reverse('users_list'), {}, format='json')
    assert r.status_code == 400
    assert r.data['error']['message'] == 'name: This field is required.'
