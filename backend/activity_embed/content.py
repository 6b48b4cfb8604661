from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from pydantic import ValidationError

from .errors import InvalidDefinition
from .schemas import ActivityDefinition, QuizContent

logger = logging.getLogger(__name__)


class ContentType(str, Enum):
    QUIZ = "quiz"
    TEXT = "text"
    GENERIC = "generic"

    @classmethod
    def parse(cls, value: Any) -> "ContentType":
        """Map a stored content type onto the closed set; anything unknown is generic."""
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.GENERIC


@dataclass(frozen=True)
class QuizVariant:
    quiz: QuizContent


@dataclass(frozen=True)
class TextVariant:
    content: str


@dataclass(frozen=True)
class GenericVariant:
    data: Any


Variant = Union[QuizVariant, TextVariant, GenericVariant]


def parse_quiz(data: Any) -> QuizContent:
    try:
        return QuizContent.model_validate(data)
    except ValidationError as exc:
        raise InvalidDefinition(f"invalid quiz definition: {exc.error_count()} error(s)") from exc


def dispatch(activity: ActivityDefinition) -> Variant:
    """Pick the single rendering strategy for an activity.

    Both adapters go through here, so the fallback rules are shared: unknown
    content types and quiz payloads that break their invariants render as
    generic data rather than failing.
    """
    kind = ContentType.parse(activity.content_type)
    data = activity.content_data

    if kind is ContentType.QUIZ:
        try:
            return QuizVariant(parse_quiz(data))
        except InvalidDefinition as exc:
            logger.warning("Activity %s degraded to generic rendering: %s", activity.slug, exc)
            return GenericVariant(data)
    if kind is ContentType.TEXT:
        content = data.get("content") if isinstance(data, dict) else None
        return TextVariant(content if isinstance(content, str) else "")
    if kind is ContentType.GENERIC:
        return GenericVariant(data)
    raise AssertionError(f"unhandled content type: {kind!r}")
