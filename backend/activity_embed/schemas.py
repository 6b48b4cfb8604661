from __future__ import annotations
import re
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def validate_slug(value: str) -> str:
	if not SLUG_PATTERN.match(value or ""):
		raise ValueError("slug may only contain a-z, 0-9 and single inner hyphens")
	return value


class Question(BaseModel):
	question: str
	options: List[str]
	correct: int
	explanation: Optional[str] = None

	@model_validator(mode="after")
	def _correct_within_options(self) -> "Question":
		if not 0 <= self.correct < len(self.options):
			raise ValueError(f"correct index {self.correct} is outside 0..{len(self.options) - 1}")
		return self


class QuizSettings(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	show_explanations: bool = Field(default=False, alias="showExplanations")
	allow_retry: bool = Field(default=False, alias="allowRetry")
	# Carried for authors; no ordering behaviour is attached to it
	shuffle_questions: bool = Field(default=False, alias="shuffleQuestions")


class QuizContent(BaseModel):
	questions: List[Question] = Field(min_length=1)
	settings: QuizSettings = Field(default_factory=QuizSettings)

	@field_validator("settings", mode="before")
	@classmethod
	def _missing_settings(cls, value: Any) -> Any:
		return {} if value is None else value


class ActivityDefinition(BaseModel):
	"""Resolved activity as served by ``GET /api/embed/{slug}``."""

	model_config = ConfigDict(populate_by_name=True)

	id: int | str | None = None
	title: str
	description: Optional[str] = None
	slug: str
	content_type: Optional[str] = Field(default=None, alias="contentType")
	content_data: Any = Field(default=None, alias="contentData")
	author: Optional[str] = None
	created_at: Optional[datetime] = Field(default=None, alias="createdAt")
	updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")


class ActivityOut(ActivityDefinition):
	is_public: bool = Field(default=False, alias="isPublic")


class ActivityCreate(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	title: str = Field(min_length=1)
	description: Optional[str] = None
	content_type: str = Field(default="html", alias="contentType")
	content_data: Any = Field(alias="contentData")
	slug: str
	is_public: bool = Field(default=False, alias="isPublic")

	@field_validator("slug")
	@classmethod
	def _slug(cls, value: str) -> str:
		return validate_slug(value)

	@field_validator("content_data")
	@classmethod
	def _content_required(cls, value: Any) -> Any:
		if value is None or value == "":
			raise ValueError("contentData is required")
		return value


class ActivityUpdate(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	title: Optional[str] = Field(default=None, min_length=1)
	description: Optional[str] = None
	content_type: Optional[str] = Field(default=None, alias="contentType")
	content_data: Any = Field(default=None, alias="contentData")
	slug: Optional[str] = None
	is_public: Optional[bool] = Field(default=None, alias="isPublic")

	@field_validator("slug")
	@classmethod
	def _slug(cls, value: Optional[str]) -> Optional[str]:
		return None if value is None else validate_slug(value)
