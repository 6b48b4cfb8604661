"""Quiz grading.

One algorithm, two runtimes: :func:`score` grades in-process for the client
adapter, and :func:`browser_script` emits the same algorithm for the
self-contained server document. Both read the band table and the rounding
rule defined here.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Tuple

from .errors import InvalidDefinition
from .schemas import Question, QuizSettings

CORRECT = "correct"
INCORRECT = "incorrect"


@dataclass(frozen=True)
class Band:
    name: str
    threshold: int
    message: str


# Evaluated in order, first match wins
BANDS: Tuple[Band, ...] = (
    Band("good", 80, "Excellent work!"),
    Band("average", 60, "Good job!"),
    Band("poor", 0, "Keep practicing!"),
)


@dataclass(frozen=True)
class QuestionResult:
    index: int
    selected: Optional[int]
    correct_option: int
    is_correct: bool
    # option index -> "correct" / "incorrect"
    marks: Mapping[int, str]


@dataclass(frozen=True)
class QuizResult:
    per_question: Tuple[QuestionResult, ...]
    correct_count: int
    total: int
    percentage: int
    band: Band

    @property
    def message(self) -> str:
        return self.band.message


def classify(percentage: int) -> Band:
    for band in BANDS:
        if percentage >= band.threshold:
            return band
    return BANDS[-1]


def percentage_of(correct_count: int, total: int) -> int:
    # Round half up over the same float expression the browser evaluates
    return int(math.floor(correct_count / total * 100 + 0.5))


def _grade(index: int, question: Question, selected: Optional[int]) -> QuestionResult:
    if selected is not None and not 0 <= selected < len(question.options):
        selected = None
    if selected is None:
        return QuestionResult(index, None, question.correct, False, {question.correct: CORRECT})
    if selected == question.correct:
        return QuestionResult(index, selected, question.correct, True, {selected: CORRECT})
    return QuestionResult(
        index,
        selected,
        question.correct,
        False,
        {selected: INCORRECT, question.correct: CORRECT},
    )


def score(questions: Sequence[Question], selections: Mapping[int, int]) -> QuizResult:
    """Grade a set of selections against a quiz.

    Unanswered questions count as incorrect and only their correct option is
    marked. The function has no side effects; calling it again with the same
    arguments returns an equal result.
    """
    if not questions:
        raise InvalidDefinition("a quiz needs at least one question")
    per_question = tuple(_grade(i, q, selections.get(i)) for i, q in enumerate(questions))
    correct_count = sum(1 for r in per_question if r.is_correct)
    total = len(per_question)
    percentage = percentage_of(correct_count, total)
    return QuizResult(per_question, correct_count, total, percentage, classify(percentage))


def explanation_visible(question: Question, settings: QuizSettings) -> bool:
    return bool(settings.show_explanations and question.explanation)


def band_table() -> list[dict[str, Any]]:
    return [{"name": b.name, "threshold": b.threshold, "message": b.message} for b in BANDS]


def script_json(value: Any) -> str:
    """JSON that is safe inside an inline <script> element."""
    return (
        json.dumps(value)
        .replace("&", "\\u0026")
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
    )


def script_config(
    questions: Sequence[Question],
    settings: QuizSettings,
    *,
    root_id: str,
    ids: Mapping[str, str],
) -> dict[str, Any]:
    # Only the answer key and flags travel to the browser; question text is already in the markup
    return {
        "root": root_id,
        "ids": dict(ids),
        "questions": [
            {"correct": q.correct, "hasExplanation": bool(q.explanation)} for q in questions
        ],
        "settings": {
            "showExplanations": settings.show_explanations,
            "allowRetry": settings.allow_retry,
        },
        "bands": band_table(),
    }


def browser_script(
    questions: Sequence[Question],
    settings: QuizSettings,
    *,
    root_id: str,
    ids: Mapping[str, str],
) -> str:
    config = script_config(questions, settings, root_id=root_id, ids=ids)
    return _SCRIPT_TEMPLATE.replace("__QUIZ_CONFIG__", script_json(config))


_SCRIPT_TEMPLATE = r"""
(function () {
  "use strict";
  var QUIZ = __QUIZ_CONFIG__;
  var root = document.getElementById(QUIZ.root);
  var submitted = false;

  function byId(id) {
    return document.getElementById(id);
  }

  function classify(percentage) {
    for (var i = 0; i < QUIZ.bands.length; i++) {
      if (percentage >= QUIZ.bands[i].threshold) return QUIZ.bands[i];
    }
    return QUIZ.bands[QUIZ.bands.length - 1];
  }

  function showResults(correctCount, total, percentage, band) {
    var results = byId(QUIZ.ids.results);
    var heading = document.createElement("h3");
    var summary = document.createElement("p");
    var strong = document.createElement("strong");
    var verdict = document.createElement("p");
    heading.textContent = "Quiz Results";
    strong.textContent = correctCount + "/" + total;
    summary.appendChild(document.createTextNode("You scored "));
    summary.appendChild(strong);
    summary.appendChild(document.createTextNode(" (" + percentage + "%)"));
    verdict.textContent = band.message;
    results.textContent = "";
    results.appendChild(heading);
    results.appendChild(summary);
    results.appendChild(verdict);
    results.className = "results " + band.name;
    results.style.display = "block";
  }

  function submitQuiz() {
    if (submitted) return;
    var correctCount = 0;
    var total = QUIZ.questions.length;

    QUIZ.questions.forEach(function (question, qIndex) {
      var block = root.querySelector('[data-question="' + qIndex + '"]');
      var options = block.querySelectorAll(".option");
      var checked = block.querySelector('input[type="radio"]:checked');
      var selected = checked ? parseInt(checked.value, 10) : null;
      if (selected !== null && !(selected >= 0 && selected < options.length)) selected = null;

      if (selected === null) {
        options[question.correct].classList.add("correct");
      } else if (selected === question.correct) {
        correctCount++;
        options[selected].classList.add("correct");
      } else {
        options[selected].classList.add("incorrect");
        options[question.correct].classList.add("correct");
      }

      if (QUIZ.settings.showExplanations && question.hasExplanation) {
        var explanation = block.querySelector(".explanation");
        if (explanation) explanation.style.display = "block";
      }
    });

    var percentage = Math.floor(correctCount / total * 100 + 0.5);
    showResults(correctCount, total, percentage, classify(percentage));

    root.querySelectorAll('input[type="radio"]').forEach(function (input) {
      input.disabled = true;
    });
    byId(QUIZ.ids.submit).style.display = "none";
    var retry = byId(QUIZ.ids.retry);
    if (QUIZ.settings.allowRetry && retry) retry.style.display = "inline-block";
    submitted = true;
  }

  function resetQuiz() {
    if (!submitted || !QUIZ.settings.allowRetry) return;
    submitted = false;
    root.querySelectorAll('input[type="radio"]').forEach(function (input) {
      input.disabled = false;
      input.checked = false;
    });
    root.querySelectorAll(".option").forEach(function (option) {
      option.classList.remove("correct", "incorrect");
    });
    root.querySelectorAll(".explanation").forEach(function (explanation) {
      explanation.style.display = "none";
    });
    var results = byId(QUIZ.ids.results);
    results.textContent = "";
    results.className = "results";
    results.style.display = "none";
    byId(QUIZ.ids.submit).style.display = "inline-block";
    var retry = byId(QUIZ.ids.retry);
    if (retry) retry.style.display = "none";
  }

  byId(QUIZ.ids.submit).addEventListener("click", submitQuiz);
  var retryButton = byId(QUIZ.ids.retry);
  if (retryButton) retryButton.addEventListener("click", resetQuiz);
})();
"""
