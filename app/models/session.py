from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from app.db.base import AUTH_SCHEMA, ORGANIZATIONS_SCHEMA, Base


class UserSession(Base):
    """An active login. ``id`` is the SHA-256 hex of the client's bearer token."""

    __tablename__ = "sessions"
    __table_args__ = {"schema": AUTH_SCHEMA}

    id = Column(Text, primary_key=True)
    user_id = Column(Integer, ForeignKey(f"{AUTH_SCHEMA}.users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    impersonator_user_id = Column(
        Integer, ForeignKey(f"{AUTH_SCHEMA}.users.id", ondelete="SET NULL"), nullable=True
    )
    active_organization_id = Column(
        Integer,
        ForeignKey(f"{ORGANIZATIONS_SCHEMA}.organizations.id", ondelete="SET NULL"),
        nullable=True,
    )

    user = relationship("User", back_populates="sessions", foreign_keys=[user_id])
