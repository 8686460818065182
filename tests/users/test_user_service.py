from __future__ import annotations

import pytest

from src.pass_registry.pass_registry.core.enums import Role
from src.pass_registry.pass_registry.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from src.pass_registry.pass_registry.users.model import ActingUser
from src.pass_registry.pass_registry.users.service import AuthService, UserService


def test_authenticate_ok(user_repo):
    user_repo.add(username="amna", password="secret1", role=Role.EDITOR, name="Amna Tariq")

    s_user = AuthService(user_repo).authenticate("amna", "secret1")

    assert s_user.name == "Amna Tariq"
    assert s_user.role == Role.EDITOR


@pytest.mark.parametrize("username, password", [("amna", "wrong"), ("nobody", "secret1")])
def test_authenticate_rejects_bad_credentials(user_repo, username, password):
    user_repo.add(username="amna", password="secret1", role=Role.EDITOR)

    with pytest.raises(AuthenticationError) as exc:
        AuthService(user_repo).authenticate(username, password)
    assert str(exc.value) == "Invalid username or password"


def test_authenticate_rejects_inactive_user(user_repo):
    user_repo.add(username="amna", password="secret1", role=Role.EDITOR, is_active=False)
    with pytest.raises(AuthenticationError):
        AuthService(user_repo).authenticate("amna", "secret1")


def test_admin_creates_account(user_repo, admin):
    user_id = UserService(user_repo).create_account(
        actor=admin, name="Omar", username="omar", password="secret1", role=Role.VIEWER
    )

    created = user_repo.get_by_id(user_id)
    assert created.username == "omar"
    assert AuthService(user_repo).authenticate("omar", "secret1").role == Role.VIEWER


def test_only_admin_creates_accounts(user_repo, editor):
    with pytest.raises(AuthorizationError):
        UserService(user_repo).create_account(
            actor=editor, name="Omar", username="omar", password="secret1", role=Role.VIEWER
        )


def test_create_account_rejects_taken_username(user_repo, admin):
    user_repo.add(username="omar", password="secret1", role=Role.VIEWER)
    with pytest.raises(ValidationError):
        UserService(user_repo).create_account(
            actor=admin, name="Omar", username="omar", password="secret1", role=Role.VIEWER
        )


def test_change_role(user_repo):
    boss = user_repo.add(username="boss", password="secret1", role=Role.ADMIN)
    staff = user_repo.add(username="staff", password="secret1", role=Role.VIEWER)
    svc = UserService(user_repo)

    svc.change_role(actor=ActingUser(boss.user_id, Role.ADMIN), user_id=staff.user_id, role=Role.EDITOR)
    assert user_repo.get_by_id(staff.user_id).role == Role.EDITOR

    with pytest.raises(ValidationError):
        svc.change_role(actor=ActingUser(boss.user_id, Role.ADMIN), user_id=boss.user_id, role=Role.VIEWER)
    with pytest.raises(NotFoundError):
        svc.change_role(actor=ActingUser(boss.user_id, Role.ADMIN), user_id=999, role=Role.EDITOR)


def test_can_modify():
    assert ActingUser(1, Role.ADMIN).can_modify(None)
    assert ActingUser(2, Role.EDITOR).can_modify(2)
    assert not ActingUser(2, Role.EDITOR).can_modify(3)
    assert not ActingUser(2, Role.EDITOR).can_modify(None)
