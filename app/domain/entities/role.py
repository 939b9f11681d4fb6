"""Domain entity representing a user role."""

from dataclasses import dataclass

ROLE_ADMIN = "admin"
ROLE_AGENT = "agent"

# Display names used when a role is created on demand.
ROLE_NAMES = {ROLE_ADMIN: "Administrator", ROLE_AGENT: "Agent"}


@dataclass
class Role:
    """Role of a helpdesk user; ``alias`` is the stable identifier."""

    id: int
    name: str
    alias: str


__all__ = ["Role", "ROLE_ADMIN", "ROLE_AGENT", "ROLE_NAMES"]
