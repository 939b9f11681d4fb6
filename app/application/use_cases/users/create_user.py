"""Use case for creating users."""

from sqlalchemy.orm import Session

from app.domain.entities import ROLE_AGENT, ROLE_NAMES, User
from app.infrastructure.repositories import RoleRepository, UserRepository
from app.infrastructure.security import get_password_hash
from app.utils import now_in_app_timezone


def create_user(
    session: Session,
    *,
    name: str,
    email: str,
    password: str,
    role_alias: str = ROLE_AGENT,
) -> User:
    """Create a new user ensuring unique email addresses."""

    repository = UserRepository(session)
    if repository.get_by_email(email):
        msg = "Email address is already registered"
        raise ValueError(msg)

    alias = role_alias.lower()
    if alias not in ROLE_NAMES:
        raise ValueError(f"Unknown role '{role_alias}'")
    role = RoleRepository(session).get_or_create(alias=alias, name=ROLE_NAMES[alias])

    user = User(
        id=None,
        role=role,
        name=name,
        email=email,
        password=get_password_hash(password),
        is_active=True,
        last_login=None,
        created_at=now_in_app_timezone(),
    )
    return repository.create(user)
