import pytest
from django.contrib.auth.models import AnonymousUser
from django.urls import reverse

from apps.common import capabilities
from apps.common.capabilities import get_capabilities, has_capability
from apps.users.models import Role, User

pytestmark = pytest.mark.django_db


def test_me_returns_sorted_capabilities(api_client, admin_user):
    api_client.force_authenticate(user=admin_user)

    response = api_client.get(reverse("myinfo"))

    assert response.status_code == 200
    assert response.data["role"] == Role.ADMIN
    assert response.data["capabilities"] == sorted(capabilities.ROLE_CAPABILITIES[Role.ADMIN])


def test_me_requires_login(api_client):
    assert api_client.get(reverse("myinfo")).status_code == 401


def test_student_capabilities(student):
    assert has_capability(student, capabilities.REQUEST_DEMO)
    assert not has_capability(student, capabilities.VIEW_ALL_CONTENT)


def test_only_superadmin_pins_and_deletes(admin_user, superadmin):
    for capability in (capabilities.PIN_DEMO_RESOURCE, capabilities.DELETE_PAYMENTS):
        assert not has_capability(admin_user, capability)
        assert has_capability(superadmin, capability)


def test_anonymous_has_no_capabilities():
    assert get_capabilities(AnonymousUser()) == frozenset()
    assert get_capabilities(None) == frozenset()


def test_create_user_without_password_is_unusable():
    user = User.objects.create_user(email="Someone@Example.COM", name="someone")

    assert user.email == "Someone@example.com"
    assert not user.has_usable_password()
    assert user.is_student


def test_create_superuser_sets_role():
    user = User.objects.create_superuser(email="root@example.com", password="pw", name="root")

    assert user.role == Role.SUPERADMIN
    assert user.is_staff and user.is_superuser
