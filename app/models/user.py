from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, func
from sqlalchemy.orm import relationship

from app.db.base import AUTH_SCHEMA, Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = {"schema": AUTH_SCHEMA}

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)
    username = Column(String(255), nullable=False)
    # Null for accounts created through an OAuth provider.
    password_hash = Column(Text, nullable=True)
    email_verified = Column(Boolean, nullable=False, server_default="false")
    role = Column(String(32), nullable=False, server_default="USER")
    recovery_code = Column(Text, nullable=True)
    stripe_customer_id = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    sessions = relationship(
        "UserSession",
        back_populates="user",
        cascade="all, delete-orphan",
        foreign_keys="UserSession.user_id",
    )
    memberships = relationship("Membership", back_populates="user", cascade="all, delete-orphan")
