"""Access control — super-admin and admin role sets."""

from mintgate.access.roles import Role, RoleRegistry

__all__ = ["Role", "RoleRegistry"]
