from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from app.db.base import AUTH_SCHEMA, ORGANIZATIONS_SCHEMA, Base


class Membership(Base):
    __tablename__ = "memberships"
    __table_args__ = {"schema": ORGANIZATIONS_SCHEMA}

    organization_id = Column(
        Integer,
        ForeignKey(f"{ORGANIZATIONS_SCHEMA}.organizations.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id = Column(
        Integer,
        ForeignKey(f"{AUTH_SCHEMA}.users.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    role = Column(String(32), nullable=False, server_default="member")
    is_default = Column(Boolean, nullable=False, server_default="false")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    user = relationship("User", back_populates="memberships")
