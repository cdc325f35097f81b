from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from app.db.base import AUTH_SCHEMA, Base


class EmailVerification(Base):
    __tablename__ = "email_verifications"
    __table_args__ = {"schema": AUTH_SCHEMA}

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey(f"{AUTH_SCHEMA}.users.id", ondelete="CASCADE"), nullable=False, index=True)
    identifier = Column(String(255), nullable=False)
    value = Column(Text, nullable=False, unique=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
