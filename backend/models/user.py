"""User model definitions."""

from sqlalchemy import Boolean, Column, Index, Integer, String, text

from backend.auth.passwords import hash_password, verify_password
from backend.database import Base

ADMIN_ROLE = "admin"
VOTER_ROLE = "voter"
USER_ROLES = (VOTER_ROLE, ADMIN_ROLE)


class User(Base):
    """Represents a registered voter or the single election admin."""
    __tablename__ = "users"
    __table_args__ = (
        Index(
            "uq_users_single_admin",
            "role",
            unique=True,
            sqlite_where=text("role = 'admin'"),
            postgresql_where=text("role = 'admin'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    age = Column(Integer, nullable=False)
    email = Column(String)
    mobile = Column(String)
    address = Column(String, nullable=False)
    aadhar_card_number = Column(String(12), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default=VOTER_ROLE)  # voter/admin
    is_voted = Column(Boolean, nullable=False, default=False)

    @property
    def password(self) -> str | None:
        return self.hashed_password

    @password.setter
    def password(self, value: str) -> None:
        self.hashed_password = hash_password(value)

    def compare_password(self, candidate_password: str) -> bool:
        return verify_password(candidate_password, self.hashed_password)

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE
