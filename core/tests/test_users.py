import pytest
from django.core.management import call_command
from django.urls import reverse

from core.models import AuditEvent, Role, User

from .conftest import PASSWORD

pytestmark = pytest.mark.django_db


def new_user_payload(**overrides):
    payload = {'name': 'Dra. Helena', 'email': 'helena@clinic.test', 'password': PASSWORD, 'role': Role.PRACTITIONER}
    payload.update(overrides)
    return payload


@pytest.mark.parametrize('who', ['patient', 'practitioner'])
def test_non_staff_cannot_list_users(request, client_for, who):
    r = client_for(request.getfixturevalue(who)).get(reverse('users_list'))
    assert r.status_code == 403
    assert r.data['error']['code'] == 'FORBIDDEN'


def test_attendant_reads_but_cannot_write(client_for, attendant, patient):
    client = client_for(attendant)
    r = client.get(reverse('users_list'))
    assert r.status_code == 200
    assert {u['email'] for u in r.data['data']} == {attendant.email, patient.email}

    assert client.get(reverse('user_detail', args=[patient.id])).status_code == 200
    assert client.post(reverse('users_list'), new_user_payload(), format='json').status_code == 403
    assert client.patch(reverse('user_detail', args=[patient.id]), {'name': 'X'}, format='json').status_code == 403
    assert client.delete(reverse('user_detail', args=[patient.id])).status_code == 403


def test_list_filters_by_role(client_for, admin, practitioner, other_practitioner, patient):
    r = client_for(admin).get(reverse('users_list'), {'role': Role.PRACTITIONER})
    assert sorted(u['id'] for u in r.data['data']) == sorted([practitioner.id, other_practitioner.id])


def test_admin_creates_user_with_any_role(client_for, admin, bearer_client):
    r = client_for(admin).post(reverse('users_list'), new_user_payload(), format='json')
    assert r.status_code == 201, r.data
    body = r.data['data']
    assert body['role'] == Role.PRACTITIONER
    assert body['active'] is True
    assert set(body) == {'id', 'name', 'email', 'role', 'active', 'createdAt', 'updatedAt'}
    assert AuditEvent.objects.filter(action='user_create', object_id=body['id']).exists()

    created = User.objects.get(pk=body['id'])
    assert bearer_client(created).get(reverse('appointments')).status_code == 200


def test_create_rejects_duplicates_and_bad_roles(client_for, admin, patient):
    client = client_for(admin)
    r = client.post(reverse('users_list'), new_user_payload(email=patient.email), format='json')
    assert r.status_code == 409
    r = client.post(reverse('users_list'), new_user_payload(role='SUPERUSER'), format='json')
    assert r.status_code == 400
    assert r.data['error']['message'].startswith('role:')


def test_unknown_user_is_404(client_for, admin):
    r = client_for(admin).get(reverse('user_detail', args=[424242]))
    assert r.status_code == 404
    assert r.data['error']['code'] == 'RESOURCE_NOT_FOUND'


def test_admin_updates_user(client_for, admin, patient, bearer_client):
    r = client_for(admin).patch(reverse('user_detail', args=[patient.id]),
                                {'name': 'Ana Paula', 'role': Role.ATTENDANT, 'password': 'N0va-Senha!'},
                                format='json')
    assert r.status_code == 200, r.data
    assert r.data['data']['name'] == 'Ana Paula'
    assert r.data['data']['role'] == Role.ATTENDANT
    patient.refresh_from_db()
    assert patient.check_password('N0va-Senha!')
    assert bearer_client(patient, 'N0va-Senha!').get(reverse('users_list')).status_code == 200


def test_update_email_collision_is_conflict(client_for, admin, patient, other_patient):
    r = client_for(admin).patch(reverse('user_detail', args=[patient.id]), {'email': other_patient.email},
                                format='json')
    assert r.status_code == 409
    assert r.data['error']['code'] == 'RESOURCE_CONFLICT'


def test_deactivate_is_soft_and_blocks_login(client_for, admin, patient, api_client):
    r = client_for(admin).delete(reverse('user_detail', args=[patient.id]))
    assert r.status_code == 200
    assert User.objects.filter(pk=patient.id, is_active=False).exists()

    r = api_client.post(reverse('login_view'), {'email': patient.email, 'password': PASSWORD}, format='json')
    assert r.status_code == 403
    assert r.data['error']['code'] == 'AUTH_FORBIDDEN'

    r = client_for(admin).patch(reverse('user_detail', args=[patient.id]), {'active': True}, format='json')
    assert r.data['data']['active'] is True


def test_ensure_demo_users_is_idempotent():
    call_command('ensure_demo_users', '--password', PASSWORD)
    call_command('ensure_demo_users', '--password', PASSWORD)
    assert sorted(User.objects.values_list('role', flat=True)) == sorted(Role.values)
