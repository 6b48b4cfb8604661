"""Run the quiz script emitted into iframe documents and compare it with score().

The page is rendered by the server adapter, parsed into a tree, and mounted
into a small DOM shim inside V8. The script then runs unchanged.
"""

import json
import random
from html.parser import HTMLParser

import pytest
from py_mini_racer import MiniRacer

from activity_embed.content import dispatch
from activity_embed.document import render_document
from activity_embed.markup import QuizIds
from activity_embed.scoring import explanation_visible, score

from conftest import make_definition, quiz_payload

VOID_TAGS = {"input", "meta", "br", "hr", "img", "link"}

DOM_SHIM = r"""
var byId = {};

function TextNode(text) {
  this.nodeType = 3;
  this.text = text;
}

function El(tag) {
  var self = this;
  this.nodeType = 1;
  this.tagName = tag;
  this.id = null;
  this.attrs = {};
  this.style = {};
  this.children = [];
  this.checked = false;
  this.disabled = false;
  this.listeners = {};
  this._classes = [];
  this.classList = {
    add: function () {
      for (var i = 0; i < arguments.length; i++) {
        if (self._classes.indexOf(arguments[i]) < 0) self._classes.push(arguments[i]);
      }
    },
    remove: function () {
      for (var i = 0; i < arguments.length; i++) {
        var at = self._classes.indexOf(arguments[i]);
        if (at >= 0) self._classes.splice(at, 1);
      }
    },
    contains: function (name) {
      return self._classes.indexOf(name) >= 0;
    }
  };
}

Object.defineProperty(El.prototype, "className", {
  get: function () { return this._classes.join(" "); },
  set: function (value) { this._classes = String(value).split(/\s+/).filter(Boolean); }
});

Object.defineProperty(El.prototype, "textContent", {
  get: function () {
    return this.children.map(function (c) {
      return c.nodeType === 3 ? c.text : c.textContent;
    }).join("");
  },
  set: function (value) {
    this.children = value === "" ? [] : [new TextNode(String(value))];
  }
});

Object.defineProperty(El.prototype, "value", {
  get: function () { return this.getAttribute("value"); }
});

El.prototype.getAttribute = function (name) {
  return Object.prototype.hasOwnProperty.call(this.attrs, name) ? this.attrs[name] : null;
};

El.prototype.appendChild = function (child) {
  this.children.push(child);
  return child;
};

El.prototype.addEventListener = function (type, handler) {
  (this.listeners[type] = this.listeners[type] || []).push(handler);
};

El.prototype.click = function () {
  (this.listeners.click || []).forEach(function (handler) { handler(); });
};

El.prototype.descendants = function (out) {
  out = out || [];
  this.children.forEach(function (c) {
    if (c.nodeType === 1) {
      out.push(c);
      c.descendants(out);
    }
  });
  return out;
};

El.prototype.matches = function (selector) {
  var m = /^([a-z0-9]*)((?:\.[\w-]+)*)((?:\[[\w-]+(?:="[^"]*")?\])*)(:checked)?$/.exec(selector);
  if (!m) throw new Error("unsupported selector " + selector);
  if (m[1] && m[1] !== this.tagName) return false;
  var classes = m[2].split(".").filter(Boolean);
  for (var i = 0; i < classes.length; i++) {
    if (!this.classList.contains(classes[i])) return false;
  }
  var attrPattern = /\[([\w-]+)(?:="([^"]*)")?\]/g;
  var attr;
  while ((attr = attrPattern.exec(m[3])) !== null) {
    var actual = this.getAttribute(attr[1]);
    if (actual === null) return false;
    if (attr[2] !== undefined && actual !== attr[2]) return false;
  }
  if (m[4] && !this.checked) return false;
  return true;
};

El.prototype.querySelectorAll = function (selector) {
  return this.descendants().filter(function (e) { return e.matches(selector); });
};

El.prototype.querySelector = function (selector) {
  return this.querySelectorAll(selector)[0] || null;
};

function build(node) {
  if (typeof node === "string") return new TextNode(node);
  var el = new El(node.tag);
  el.id = node.id;
  if (node.id) byId[node.id] = el;
  el._classes = node.classes.slice();
  el.attrs = node.attrs;
  el.style = node.style;
  el.checked = node.checked;
  el.disabled = node.disabled;
  node.children.forEach(function (c) { el.appendChild(build(c)); });
  return el;
}

var document = {
  getElementById: function (id) { return byId[id] || null; },
  createElement: function (tag) { return new El(tag); },
  createTextNode: function (text) { return new TextNode(text); }
};

function choose(name, value) {
  BODY.querySelectorAll('input[type="radio"]').forEach(function (input) {
    if (input.attrs.name === name) input.checked = input.attrs.value === String(value);
  });
}

function visible(el) {
  return el ? el.style.display !== "none" : null;
}

function snapshot(rootId, ids) {
  var root = byId[rootId];
  var results = byId[ids.results];
  var blocks = root.querySelectorAll("[data-question]");
  var radios = root.querySelectorAll('input[type="radio"]');
  return JSON.stringify({
    resultsClass: results.className,
    resultsVisible: visible(results),
    resultsText: results.children.map(function (c) { return c.textContent; }),
    marks: blocks.map(function (b) {
      return b.querySelectorAll(".option").map(function (o) { return o.className; });
    }),
    explanations: blocks.map(function (b) { return visible(b.querySelector(".explanation")); }),
    disabled: radios.map(function (r) { return r.disabled; }),
    checked: radios.map(function (r) { return r.checked; }),
    submitVisible: visible(byId[ids.submit]),
    retryVisible: visible(byId[ids.retry])
  });
}
"""


class PageTree(HTMLParser):
    """Collects the <body> element tree and the inline script of a page."""

    def __init__(self):
        super().__init__()
        self.body = None
        self.script = ""
        self._stack = []
        self._raw = None

    def handle_starttag(self, tag, attrs):
        if tag in ("script", "style"):
            self._raw = tag
            return
        node = {
            "tag": tag,
            "id": None,
            "classes": [],
            "attrs": {},
            "style": {},
            "checked": False,
            "disabled": False,
            "children": [],
        }
        for name, value in attrs:
            if name == "id":
                node["id"] = value
            elif name == "class":
                node["classes"] = value.split()
            elif name == "style":
                for rule in value.split(";"):
                    if rule.strip():
                        key, _, val = rule.partition(":")
                        node["style"][key.strip()] = val.strip()
            elif name in ("checked", "disabled"):
                node[name] = True
            else:
                node["attrs"][name] = value
        if tag == "body":
            self.body = node
        if self._stack:
            self._stack[-1]["children"].append(node)
        if tag not in VOID_TAGS:
            self._stack.append(node)

    def handle_endtag(self, tag):
        if tag in ("script", "style"):
            self._raw = None
        elif tag not in VOID_TAGS:
            self._stack.pop()

    def handle_data(self, data):
        if self._raw == "script":
            self.script += data
        elif self._raw is None and self._stack:
            self._stack[-1]["children"].append(data)


class MountedQuiz:
    def __init__(self, activity):
        parser = PageTree()
        parser.feed(render_document(activity))
        parser.close()
        assert parser.script, "quiz page carries no script"

        self.quiz = dispatch(activity).quiz
        self.ids = QuizIds(activity.slug)
        self.ctx = MiniRacer()
        self.ctx.eval(DOM_SHIM)
        self.ctx.eval(f"var BODY = build({json.dumps(parser.body)});")
        self.ctx.eval(parser.script)

    def choose(self, selections):
        for q_index, o_index in selections.items():
            self.ctx.eval(f"choose({json.dumps(self.ids.radio_name(q_index))}, {o_index});")

    def click(self, element_id):
        self.ctx.eval(f"document.getElementById({json.dumps(element_id)}).click();")

    def snapshot(self):
        ids = json.dumps(self.ids.as_dict())
        return json.loads(self.ctx.eval(f"snapshot({json.dumps(self.ids.root)}, {ids})"))


def expected_after_submit(quiz, selections):
    result = score(quiz.questions, selections)
    marks = []
    for question, graded in zip(quiz.questions, result.per_question):
        marks.append(
            [
                " ".join(["option"] + ([graded.marks[o]] if o in graded.marks else []))
                for o in range(len(question.options))
            ]
        )
    explanations = [
        explanation_visible(q, quiz.settings) if q.explanation else None for q in quiz.questions
    ]
    return {
        "resultsClass": f"results {result.band.name}",
        "resultsVisible": True,
        "resultsText": [
            "Quiz Results",
            f"You scored {result.correct_count}/{result.total} ({result.percentage}%)",
            result.message,
        ],
        "marks": marks,
        "explanations": explanations,
        "submitVisible": False,
        "retryVisible": True if quiz.settings.allow_retry else None,
    }


def random_case(seed):
    rng = random.Random(seed)
    count = rng.choice([1, 3, 7, 8])
    questions = []
    for i in range(count):
        width = rng.choice([2, 3, 4])
        questions.append(
            {
                "question": f"Q{i}",
                "options": [f"opt {o}" for o in range(width)],
                "correct": rng.randrange(width),
                "explanation": rng.choice([None, "See the notes."]),
            }
        )
    payload = {
        "questions": questions,
        "settings": {
            "showExplanations": rng.random() < 0.5,
            "allowRetry": rng.random() < 0.5,
        },
    }
    selections = {
        i: rng.randrange(len(q["options"])) for i, q in enumerate(questions) if rng.random() < 0.7
    }
    return payload, selections


def check_submission(mounted, selections):
    mounted.choose(selections)
    mounted.click(mounted.ids.submit)
    state = mounted.snapshot()
    expected = expected_after_submit(mounted.quiz, selections)
    for key, value in expected.items():
        assert state[key] == value, key
    assert all(state["disabled"])
    return state


@pytest.mark.parametrize("seed", range(40))
def test_script_grades_like_score(seed):
    payload, selections = random_case(seed)
    mounted = MountedQuiz(make_definition(content_data=payload))
    check_submission(mounted, selections)


@pytest.mark.parametrize(
    "count,right,percentage,band",
    [
        (8, 1, 13, "poor"),
        (8, 5, 63, "average"),
        (7, 4, 57, "poor"),
        (3, 2, 67, "average"),
        (5, 4, 80, "good"),
    ],
)
def test_script_rounds_half_up(count, right, percentage, band):
    payload = quiz_payload(count)
    # quiz_payload answers question i with option i % 4
    selections = {i: (i % 4 if i < right else (i + 1) % 4) for i in range(count)}
    mounted = MountedQuiz(make_definition(content_data=payload))
    state = check_submission(mounted, selections)
    assert state["resultsClass"] == f"results {band}"
    assert f"({percentage}%)" in state["resultsText"][1]


def test_retry_restores_the_untouched_quiz():
    mounted = MountedQuiz(make_definition(content_data=quiz_payload(5, allow_retry=True)))
    before = mounted.snapshot()
    assert before["retryVisible"] is False

    check_submission(mounted, {0: 0, 1: 0, 3: 3})
    mounted.click(mounted.ids.retry)
    assert mounted.snapshot() == before

    # the quiz can be taken again after a reset
    check_submission(mounted, {0: 0, 1: 1, 2: 2, 3: 3, 4: 0})


def test_second_submit_changes_nothing():
    mounted = MountedQuiz(make_definition(content_data=quiz_payload(4, allow_retry=False)))
    first = check_submission(mounted, {0: 1})
    assert first["retryVisible"] is None

    mounted.choose({0: 0})
    mounted.click(mounted.ids.submit)
    after = mounted.snapshot()
    assert after["resultsText"] == first["resultsText"]
    assert after["marks"] == first["marks"]
