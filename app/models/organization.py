from sqlalchemy import Column, DateTime, String, Integer, func

from app.db.base import ORGANIZATIONS_SCHEMA, Base


class Organization(Base):
    __tablename__ = "organizations"
    __table_args__ = {"schema": ORGANIZATIONS_SCHEMA}

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
