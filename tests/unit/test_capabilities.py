"""Unit tests for role -> capability resolution."""

import pytest

from src.es_common.enums import UserRole
from src.es_gateway.auth.capabilities import Capability, has_capability, resolve_capabilities
from src.es_gateway.user.db_models import UserModel


def test_roles_nest() -> None:
    player = resolve_capabilities(UserRole.PLAYER)
    host = resolve_capabilities(UserRole.HOST)
    admin = resolve_capabilities(UserRole.ADMIN)
    assert player < host < admin
    assert resolve_capabilities(UserRole.SUPERADMIN) == admin
    assert admin == frozenset(Capability)


def test_player_can_only_join() -> None:
    assert resolve_capabilities("PLAYER") == {Capability.JOIN_TOURNAMENT}


@pytest.mark.parametrize("role", ["GUEST", "", "admin"])
def test_unknown_role_has_nothing(role: str) -> None:
    assert resolve_capabilities(role) == frozenset()
    assert not has_capability(role, Capability.JOIN_TOURNAMENT)


@pytest.mark.parametrize(
    "role,capability,expected",
    [
        ("HOST", Capability.HOST_TOURNAMENT, True),
        ("HOST", Capability.RESOLVE_MATCHES, False),
        ("ADMIN", Capability.APPROVE_WITHDRAWALS, True),
        ("PLAYER", Capability.ADJUST_WALLETS, False),
    ],
)
def test_has_capability(role: str, capability: Capability, expected: bool) -> None:
    assert has_capability(role, capability) is expected


def test_user_model_follows_role() -> None:
    user = UserModel(username="h", email="h@example.com", password_hash="x", role="HOST")
    assert user.can(Capability.HOST_TOURNAMENT)
    assert not user.can(Capability.MANAGE_ANY_TOURNAMENT)

    user.role = "SUPERADMIN"
    assert user.capabilities == frozenset(Capability)
