"""
UserDocument model — one JSON document per user (saved filter groups, leads).
"""
from sqlalchemy import Column, Text, DateTime, JSON
from sqlalchemy.sql import func

from leadboard.database import Base


class UserDocument(Base):
    __tablename__ = 'user_documents'

    user_id = Column(Text, primary_key=True)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
