"""
Declarative base and shared columns for all models.
"""
from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base
from parley.core.utils import new_id, utcnow

Base = declarative_base()


class BaseModel(Base):
    """Abstract model with an opaque id and audit timestamps."""
    __abstract__ = True

    id = Column(String(24), primary_key=True, default=new_id)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
