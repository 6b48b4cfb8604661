"""Minimal element tree shared by both render paths.

The server serializes it into a document string; the client mounts it into a
page container and mutates it in place. Text nodes and attribute values are
escaped on serialization. :class:`RawHTML` is the only way to emit markup
verbatim.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterator, List, Optional, Union

from .escaping import escape_html

VOID_TAGS = frozenset({"input", "br", "hr", "img", "meta", "link"})


class RawHTML:
    def __init__(self, html: str) -> None:
        self.html = html

    def to_html(self) -> str:
        return self.html

    def __repr__(self) -> str:
        return f"RawHTML({self.html!r})"


Node = Union["Element", RawHTML, str]


class Element:
    def __init__(
        self,
        tag: str,
        *children: Node,
        id: Optional[str] = None,
        classes: Optional[List[str]] = None,
        attrs: Optional[Dict[str, str]] = None,
        hidden: bool = False,
    ) -> None:
        self.tag = tag
        self.id = id
        self.classes: List[str] = list(classes or [])
        self.attrs: Dict[str, str] = dict(attrs or {})
        self.style: Dict[str, str] = {}
        self.children: List[Node] = []
        self.parent: Optional[Element] = None
        self.checked = False
        self.disabled = False
        if hidden:
            self.hide()
        for child in children:
            self.append(child)

    def __repr__(self) -> str:
        ident = f"#{self.id}" if self.id else ""
        cls = "".join(f".{c}" for c in self.classes)
        return f"<Element {self.tag}{ident}{cls}>"

    # tree

    def append(self, child: Node) -> Node:
        if isinstance(child, Element):
            child.parent = self
        self.children.append(child)
        return child

    def extend(self, children: List[Node]) -> None:
        for child in children:
            self.append(child)

    def clear(self) -> None:
        for child in self.children:
            if isinstance(child, Element):
                child.parent = None
        self.children = []

    def replace_children(self, *children: Node) -> None:
        self.clear()
        for child in children:
            self.append(child)

    def iter(self) -> Iterator[Element]:
        yield self
        for child in self.children:
            if isinstance(child, Element):
                yield from child.iter()

    def find_all(self, predicate: Callable[[Element], bool]) -> List[Element]:
        return [el for el in self.iter() if predicate(el)]

    def find(self, predicate: Callable[[Element], bool]) -> Optional[Element]:
        for el in self.iter():
            if predicate(el):
                return el
        return None

    def by_class(self, name: str) -> List[Element]:
        return self.find_all(lambda el: name in el.classes)

    def by_id(self, element_id: str) -> Optional[Element]:
        return self.find(lambda el: el.id == element_id)

    def by_tag(self, tag: str) -> List[Element]:
        return self.find_all(lambda el: el.tag == tag)

    @property
    def text(self) -> str:
        parts = []
        for child in self.children:
            if isinstance(child, Element):
                parts.append(child.text)
            elif isinstance(child, RawHTML):
                parts.append(child.html)
            else:
                parts.append(child)
        return "".join(parts)

    # attributes and state

    def get_attribute(self, name: str) -> Optional[str]:
        return self.attrs.get(name)

    def set_attribute(self, name: str, value: str) -> None:
        self.attrs[name] = value

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def add_class(self, *names: str) -> None:
        for name in names:
            if name not in self.classes:
                self.classes.append(name)

    def remove_class(self, *names: str) -> None:
        self.classes = [c for c in self.classes if c not in names]

    def hide(self) -> None:
        self.style["display"] = "none"

    def show(self, display: str = "block") -> None:
        self.style["display"] = display

    @property
    def hidden(self) -> bool:
        return self.style.get("display") == "none"

    # serialization

    def to_html(self) -> str:
        parts = [f"<{self.tag}"]
        if self.id:
            parts.append(f' id="{escape_html(self.id)}"')
        if self.classes:
            parts.append(f' class="{escape_html(" ".join(self.classes))}"')
        for name, value in self.attrs.items():
            parts.append(f' {name}="{escape_html(value)}"')
        if self.style:
            style = " ".join(f"{k}: {v};" for k, v in self.style.items())
            parts.append(f' style="{escape_html(style)}"')
        if self.checked:
            parts.append(" checked")
        if self.disabled:
            parts.append(" disabled")
        parts.append(">")
        if self.tag in VOID_TAGS:
            return "".join(parts)
        for child in self.children:
            if isinstance(child, (Element, RawHTML)):
                parts.append(child.to_html())
            else:
                parts.append(escape_html(child))
        parts.append(f"</{self.tag}>")
        return "".join(parts)


class Document:
    """A host page: the client adapter only ever touches ``head`` and ``body``."""

    def __init__(self, body: Optional[Element] = None) -> None:
        self.head = Element("head")
        self.body = body if body is not None else Element("body")

    def get_element_by_id(self, element_id: str) -> Optional[Element]:
        return self.head.by_id(element_id) or self.body.by_id(element_id)

    def elements_with_attribute(self, name: str) -> List[Element]:
        return self.body.find_all(lambda el: name in el.attrs)
