from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text, func

from app.db.base import AUTH_SCHEMA, Base


class OtpCode(Base):
    """Hashed six-digit sign-in code."""

    __tablename__ = "otp_codes"
    __table_args__ = {"schema": AUTH_SCHEMA}

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey(f"{AUTH_SCHEMA}.users.id", ondelete="CASCADE"), nullable=False, index=True)
    hashed_code = Column(Text, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
