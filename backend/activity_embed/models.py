from __future__ import annotations
from datetime import datetime
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship
from .db import Base


class User(Base):
	__tablename__ = "users"
	id = Column(Integer, primary_key=True, index=True)
	username = Column(String(128), unique=True, nullable=False, index=True)
	email = Column(String(256), nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

	activities = relationship("Activity", back_populates="owner", cascade="all, delete-orphan")


class Activity(Base):
	__tablename__ = "activities"
	id = Column(Integer, primary_key=True, index=True)
	user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
	title = Column(String(256), nullable=False)
	description = Column(Text, nullable=True)
	# "quiz", "text"; anything else renders as generic data
	content_type = Column(String(32), default="html", nullable=False)
	content_data = Column(JSON, nullable=False)
	slug = Column(String(128), unique=True, nullable=False, index=True)
	is_public = Column(Boolean, default=False, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

	owner = relationship("User", back_populates="activities")
