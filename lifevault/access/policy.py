"""
Role policy engine.

A pure decision function: (role, action, facts) -> Decision. Every route
goes through `decide` so there is exactly one place that maps roles and
ownership/link facts to ALLOW or a deny reason.

Denied reads on assets and documents come back as NOT_FOUND so a caller
cannot probe which ids exist; denied mutations come back as FORBIDDEN.
Anything not in the table is denied.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from ..core.errors import AuthorizationError, NotFoundError
from ..models.Role import Role


class Action(str, Enum):
    ASSET_CREATE = "asset:create"
    ASSET_READ = "asset:read"
    ASSET_UPDATE = "asset:update"
    ASSET_DELETE = "asset:delete"
    DOCUMENT_UPLOAD = "document:upload"
    DOCUMENT_READ = "document:read"
    DOCUMENT_DELETE = "document:delete"
    LINK_CREATE = "link:create"
    LINK_DELETE = "link:delete"
    LINK_LIST = "link:list"
    NOMINEE_DIRECTORY = "nominee:directory"
    ADMIN_ACCESS = "admin:access"


# Denials on these come back as NOT_FOUND, and so must a missing resource
READ_ACTIONS = frozenset({Action.ASSET_READ, Action.DOCUMENT_READ, Action.LINK_LIST})


class DenyReason(str, Enum):
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class AccessFacts:
    """What the resolver found out about a principal's relation to one resource."""
    is_owner: bool = False
    is_linked_nominee: bool = False


NO_FACTS = AccessFacts()


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: DenyReason | None = None

    def enforce(self, forbidden: str | None = None, not_found: str | None = None) -> None:
        if self.allowed:
            return
        if self.reason is DenyReason.NOT_FOUND:
            raise NotFoundError(not_found)
        raise AuthorizationError(forbidden)


ALLOW = Decision(True)
FORBID = Decision(False, DenyReason.FORBIDDEN)
HIDE = Decision(False, DenyReason.NOT_FOUND)

Rule = Callable[[Role, AccessFacts], Decision]


def _owner_only(role: Role, facts: AccessFacts) -> Decision:
    return ALLOW if role is Role.OWNER and facts.is_owner else FORBID


def _shared_read(role: Role, facts: AccessFacts) -> Decision:
    if role is Role.ADMIN:
        return ALLOW
    if role is Role.OWNER and facts.is_owner:
        return ALLOW
    if role is Role.NOMINEE and facts.is_linked_nominee:
        return ALLOW
    return HIDE


def _owner_or_admin_read(role: Role, facts: AccessFacts) -> Decision:
    if role is Role.ADMIN or (role is Role.OWNER and facts.is_owner):
        return ALLOW
    return HIDE


def _role_in(*roles: Role) -> Rule:
    def rule(role: Role, _facts: AccessFacts) -> Decision:
        return ALLOW if role in roles else FORBID
    return rule


RULES: dict[Action, Rule] = {
    Action.ASSET_CREATE: _role_in(Role.OWNER),
    Action.ASSET_READ: _shared_read,
    Action.ASSET_UPDATE: _owner_only,
    Action.ASSET_DELETE: _owner_only,
    Action.DOCUMENT_UPLOAD: _owner_only,
    Action.DOCUMENT_READ: _shared_read,
    Action.DOCUMENT_DELETE: _owner_only,
    Action.LINK_CREATE: _owner_only,
    Action.LINK_DELETE: _owner_only,
    Action.LINK_LIST: _owner_or_admin_read,
    Action.NOMINEE_DIRECTORY: _role_in(Role.OWNER, Role.ADMIN),
    Action.ADMIN_ACCESS: _role_in(Role.ADMIN),
}


def decide(role: Role | str, action: Action | str, facts: AccessFacts = NO_FACTS) -> Decision:
    try:
        role = Role(role)
        action = Action(action)
    except ValueError:
        return FORBID
    rule = RULES.get(action)
    if rule is None:
        return FORBID
    return rule(role, facts)
