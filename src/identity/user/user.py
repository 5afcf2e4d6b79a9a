"""User records as seen by the storefront.

Accounts, passwords and sessions belong to the authentication service. This
context only needs to know that a user exists, where to email them, and
whether they may use the admin surface.
"""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import DateTime, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from shared.db import Base, utcnow
from shared.exceptions import NotFoundError


class UserRole(Enum):
    USER = "user"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    email: Mapped[str] = mapped_column(String(255), unique=True)
    name: Mapped[str] = mapped_column(String(255), default="")
    role: Mapped[str] = mapped_column(String(20), default=UserRole.USER.value)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


class UserDirectory:
    """Read access to users, plus registration for seeding."""

    def __init__(self, session: Session):
        self.session = session

    def find(self, user_id: str) -> User | None:
        return self.session.get(User, user_id)

    def get(self, user_id: str) -> User:
        user = self.find(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def find_by_email(self, email: str) -> User | None:
        return self.session.scalars(select(User).where(User.email == email)).one_or_none()

    def register(self, email: str, name: str = "", role: UserRole = UserRole.USER) -> User:
        user = User(email=email, name=name, role=role.value)
        self.session.add(user)
        self.session.commit()
        return user
