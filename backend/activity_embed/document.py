from __future__ import annotations

from typing import Optional

from .content import QuizVariant, dispatch
from .dom import Element
from .escaping import escape_html
from .markup import CONTAINER_CLASS, DEFAULT_CSS, QuizIds, build_activity
from .schemas import ActivityDefinition
from .scoring import browser_script

NOT_FOUND_TITLE = "Activity Not Found"
ERROR_TITLE = "Error Loading Activity"
ERROR_MESSAGE = "There was an error loading this activity. Please try again later."

_PAGE_CSS = """
body { margin: 0; padding: 20px; background: #f8f9fa; }
"""

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{title}</title>
<style>{css}</style>
</head>
<body>
{body}
{script}
</body>
</html>
"""


def _page(title: str, body: str, script: str = "") -> str:
	return _PAGE_TEMPLATE.format(
		title=escape_html(title),
		css=_PAGE_CSS + DEFAULT_CSS,
		body=body,
		script=script,
	)


def render_document(activity: ActivityDefinition, *, trust_text_content: Optional[bool] = None) -> str:
	"""Render a self-contained page for iframe hosting.

	Quiz pages carry an inline script that grades in the browser, so the page
	makes no further requests once loaded.
	"""
	variant = dispatch(activity)
	ids = QuizIds(activity.slug)
	root = Element("div", id=ids.root, classes=[CONTAINER_CLASS, "loaded"])
	root.extend(build_activity(activity, variant, ids, trust_text_content=trust_text_content))

	script = ""
	if isinstance(variant, QuizVariant):
		quiz = variant.quiz
		source = browser_script(quiz.questions, quiz.settings, root_id=ids.root, ids=ids.as_dict())
		script = f"<script>{source}</script>"
	return _page(activity.title, root.to_html(), script)


def _message_page(title: str, message: str) -> str:
	body = Element(
		"div",
		Element("div", Element("h2", title), Element("p", message), classes=["error-state"]),
		classes=[CONTAINER_CLASS, "error"],
	)
	return _page(title, body.to_html())


def render_not_found(slug: str) -> str:
	return _message_page(NOT_FOUND_TITLE, f'The activity "{slug}" could not be found or is not public.')


def render_error() -> str:
	return _message_page(ERROR_TITLE, ERROR_MESSAGE)
