import enum

from models.base_model import Base, BaseModel
from sqlalchemy import Column, String, DateTime, Enum


class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class User(BaseModel, Base):
    __tablename__ = "users"
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(Role, name="user_role", values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
        default=Role.USER,
    )
    # set and cleared together by the token service
    refresh_token_hash = Column(String(64), nullable=True)
    refresh_token_expires_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    def __repr__(self):
        return f"<User email={self.email}>"
