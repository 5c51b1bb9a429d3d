"""Role → capability resolution.

Authorization checks ask "does this user hold capability X", never "is this
user role Y". The role table below is the only place roles are interpreted.
"""

from enum import Enum

from src.es_common.enums import UserRole


class Capability(str, Enum):
    JOIN_TOURNAMENT = "JOIN_TOURNAMENT"
    HOST_TOURNAMENT = "HOST_TOURNAMENT"
    MANAGE_ANY_TOURNAMENT = "MANAGE_ANY_TOURNAMENT"
    RESOLVE_MATCHES = "RESOLVE_MATCHES"
    APPROVE_WITHDRAWALS = "APPROVE_WITHDRAWALS"
    ADJUST_WALLETS = "ADJUST_WALLETS"


_PLAYER = frozenset({Capability.JOIN_TOURNAMENT})
_HOST = _PLAYER | {Capability.HOST_TOURNAMENT}
_ADMIN = _HOST | {
    Capability.MANAGE_ANY_TOURNAMENT,
    Capability.RESOLVE_MATCHES,
    Capability.APPROVE_WITHDRAWALS,
    Capability.ADJUST_WALLETS,
}

_CAPABILITIES_BY_ROLE: dict[UserRole, frozenset[Capability]] = {
    UserRole.PLAYER: _PLAYER,
    UserRole.HOST: _HOST,
    UserRole.ADMIN: _ADMIN,
    UserRole.SUPERADMIN: _ADMIN,
}


def resolve_capabilities(role: UserRole | str) -> frozenset[Capability]:
    """Unknown roles resolve to no capabilities."""
    try:
        return _CAPABILITIES_BY_ROLE[UserRole(role)]
    except ValueError:
        return frozenset()


def has_capability(role: UserRole | str, capability: Capability) -> bool:
    return capability in resolve_capabilities(role)
