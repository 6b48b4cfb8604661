from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, List, Optional

from .content import GenericVariant, QuizVariant, TextVariant, Variant
from .dom import Element, Node, RawHTML
from .schemas import ActivityDefinition, Question, QuizContent
from .scoring import QuizResult
from .settings import settings

CONTAINER_CLASS = "html-activity-container"
STYLE_ELEMENT_ID = "html-activities-styles"

LOADING_TEXT = "Loading activity..."
ERROR_HEADING = "Error Loading Activity"


@dataclass(frozen=True)
class QuizIds:
    """Element ids and radio group names derived from one instance key."""

    key: str

    @property
    def root(self) -> str:
        return f"activity-{self.key}"

    @property
    def results(self) -> str:
        return f"results-{self.key}"

    @property
    def submit(self) -> str:
        return f"submitBtn-{self.key}"

    @property
    def retry(self) -> str:
        return f"retryBtn-{self.key}"

    def radio_name(self, question_index: int) -> str:
        return f"question-{self.key}-{question_index}"

    def as_dict(self) -> dict[str, str]:
        return {"results": self.results, "submit": self.submit, "retry": self.retry}


def build_header(activity: ActivityDefinition) -> Element:
    header = Element("div", Element("h2", activity.title, classes=["activity-title"]), classes=["activity-header"])
    if activity.description:
        header.append(Element("p", activity.description, classes=["activity-description"]))
    return header


def build_question(question: Question, index: int, ids: QuizIds) -> Element:
    options = Element("div", classes=["options"])
    for o_index, option in enumerate(question.options):
        radio = Element(
            "input",
            attrs={"type": "radio", "name": ids.radio_name(index), "value": str(o_index)},
        )
        options.append(
            Element("label", radio, Element("span", option, classes=["option-text"]), classes=["option"])
        )

    block = Element(
        "div",
        Element("h3", question.question, classes=["question-text"]),
        options,
        classes=["question"],
        attrs={"data-question": str(index)},
    )
    if question.explanation:
        block.append(
            Element(
                "div",
                Element("p", Element("strong", "Explanation:"), " " + question.explanation),
                classes=["explanation"],
                hidden=True,
            )
        )
    return block


def build_quiz(activity: ActivityDefinition, quiz: QuizContent, ids: QuizIds) -> List[Element]:
    questions = Element("div", classes=["quiz-content"])
    for index, question in enumerate(quiz.questions):
        questions.append(build_question(question, index, ids))

    controls = Element(
        "div",
        Element("button", "Submit Quiz", id=ids.submit, classes=["btn", "btn-primary"], attrs={"type": "button"}),
        classes=["controls"],
    )
    if quiz.settings.allow_retry:
        controls.append(
            Element(
                "button",
                "Try Again",
                id=ids.retry,
                classes=["btn", "btn-secondary"],
                attrs={"type": "button"},
                hidden=True,
            )
        )

    results = Element("div", id=ids.results, classes=["results"], hidden=True)
    return [build_header(activity), questions, controls, results]


def build_text(activity: ActivityDefinition, content: str, trusted: bool) -> List[Element]:
    # Author markup is the one field that is not escaped when the policy trusts it
    body: Node = RawHTML(content) if trusted else content
    return [build_header(activity), Element("div", body, classes=["text-content"])]


def build_generic(activity: ActivityDefinition, data: Any) -> List[Element]:
    dump = json.dumps(data, indent=2, ensure_ascii=False, default=str)
    return [build_header(activity), Element("div", Element("pre", dump), classes=["generic-content"])]


def build_activity(
    activity: ActivityDefinition,
    variant: Variant,
    ids: QuizIds,
    *,
    trust_text_content: Optional[bool] = None,
) -> List[Element]:
    if trust_text_content is None:
        trust_text_content = settings.trust_text_content
    if isinstance(variant, QuizVariant):
        return build_quiz(activity, variant.quiz, ids)
    if isinstance(variant, TextVariant):
        return build_text(activity, variant.content, trust_text_content)
    if isinstance(variant, GenericVariant):
        return build_generic(activity, variant.data)
    raise AssertionError(f"unhandled variant: {variant!r}")


def build_results(result: QuizResult) -> List[Node]:
    return [
        Element("h3", "Quiz Results"),
        Element(
            "p",
            "You scored ",
            Element("strong", f"{result.correct_count}/{result.total}"),
            f" ({result.percentage}%)",
        ),
        Element("p", result.message),
    ]


def loading_state() -> Element:
    return Element("div", Element("div", classes=["spinner"]), Element("p", LOADING_TEXT), classes=["loading-state"])


def error_state(message: str) -> Element:
    return Element("div", Element("h3", ERROR_HEADING), Element("p", message), classes=["error-state"])


DEFAULT_CSS = """
.html-activity-container {
  font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif;
  max-width: 800px;
  margin: 0 auto;
  padding: 20px;
  line-height: 1.6;
  background: #f8f9fa;
  border-radius: 10px;
}
.html-activity-container .activity-header { text-align: center; margin-bottom: 30px; }
.html-activity-container .activity-title { color: #333; margin-bottom: 10px; font-size: 2rem; }
.html-activity-container .activity-description { color: #666; font-size: 1.1rem; }
.html-activity-container .question {
  margin-bottom: 30px;
  padding: 20px;
  border: 1px solid #e9ecef;
  border-radius: 8px;
  background: white;
}
.html-activity-container .question-text { color: #495057; margin-bottom: 15px; font-size: 1.2rem; }
.html-activity-container .options { display: flex; flex-direction: column; gap: 10px; }
.html-activity-container .option {
  display: flex;
  align-items: center;
  padding: 10px;
  border: 1px solid #dee2e6;
  border-radius: 5px;
  cursor: pointer;
  transition: all 0.3s ease;
  background: #fafafa;
}
.html-activity-container .option:hover { background: #e9ecef; border-color: #adb5bd; }
.html-activity-container .option input[type="radio"] { margin-right: 10px; }
.html-activity-container .option-text { flex: 1; }
.html-activity-container .explanation {
  margin-top: 15px;
  padding: 15px;
  background: #d1ecf1;
  border: 1px solid #bee5eb;
  border-radius: 5px;
}
.html-activity-container .controls { text-align: center; margin-top: 30px; }
.html-activity-container .btn {
  background: #007bff;
  color: white;
  border: none;
  padding: 12px 24px;
  border-radius: 5px;
  cursor: pointer;
  font-size: 1rem;
  margin: 0 10px;
  transition: background 0.3s ease;
}
.html-activity-container .btn:hover { background: #0056b3; }
.html-activity-container .btn:disabled { background: #6c757d; cursor: not-allowed; }
.html-activity-container .btn-secondary { background: #6c757d; }
.html-activity-container .btn-secondary:hover { background: #545b62; }
.html-activity-container .results {
  margin-top: 20px;
  padding: 20px;
  border-radius: 8px;
  text-align: center;
  font-size: 1.1rem;
}
.html-activity-container .results.good { background: #d4edda; border: 1px solid #c3e6cb; color: #155724; }
.html-activity-container .results.average { background: #fff3cd; border: 1px solid #ffeaa7; color: #856404; }
.html-activity-container .results.poor { background: #f8d7da; border: 1px solid #f5c6cb; color: #721c24; }
.html-activity-container .correct { background: #d4edda !important; border-color: #c3e6cb !important; }
.html-activity-container .incorrect { background: #f8d7da !important; border-color: #f5c6cb !important; }
.html-activity-container .loading-state,
.html-activity-container .error-state { text-align: center; padding: 40px 20px; }
.html-activity-container .spinner {
  width: 40px;
  height: 40px;
  border: 4px solid #f3f3f3;
  border-left: 4px solid #007bff;
  border-radius: 50%;
  animation: spin 1s linear infinite;
  margin: 0 auto 20px;
}
@keyframes spin { 0% { transform: rotate(0deg); } 100% { transform: rotate(360deg); } }
.html-activity-container .text-content,
.html-activity-container .generic-content {
  background: white;
  padding: 30px;
  border-radius: 8px;
  border: 1px solid #e9ecef;
}
.html-activity-container .generic-content pre {
  background: #f8f9fa;
  padding: 15px;
  border-radius: 5px;
  overflow-x: auto;
}
"""
