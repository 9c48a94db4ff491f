ADMIN = "admin"
USER = "user"
READ_ONLY = "read-only"

ROLES = (ADMIN, USER, READ_ONLY)
WRITE_ROLES = frozenset({ADMIN, USER})


def is_valid_role(role: str | None) -> bool:
    return role in ROLES


def can_write(role: str | None) -> bool:
    """Whether ``role`` may create, update or delete its own transactions."""
    return role in WRITE_ROLES


def can_manage_users(role: str | None) -> bool:
    return role == ADMIN
