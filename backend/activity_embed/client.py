from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union
from urllib.parse import quote

import httpx

from .content import QuizVariant, dispatch
from .dom import Document, Element, RawHTML
from .errors import ActivityNotFound, ContainerMissing, EmbedError, ResolutionFailed
from .markup import (
    CONTAINER_CLASS,
    DEFAULT_CSS,
    STYLE_ELEMENT_ID,
    QuizIds,
    build_activity,
    build_results,
    error_state,
    loading_state,
)
from .schemas import ActivityDefinition, QuizContent
from .scoring import CORRECT, INCORRECT, QuizResult, explanation_visible, score
from .settings import settings

logger = logging.getLogger(__name__)

AUTO_ATTRIBUTE = "data-html-activity"
MODE_ATTRIBUTE = "data-mode"
DEFAULT_IFRAME_WIDTH = "100%"
DEFAULT_IFRAME_HEIGHT = "600px"


class ActivityFetcher:
    """Resolves activity JSON from the embed endpoint.

    A 404 becomes :class:`ActivityNotFound`; every other failure, including
    a body that is not an activity, becomes :class:`ResolutionFailed`.
    """

    def __init__(
        self,
        api_base: Optional[str] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.api_base = (api_base or settings.public_api_base).rstrip("/")
        if timeout is None:
            timeout = settings.embed_fetch_timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def url_for(self, slug: str) -> str:
        return f"{self.api_base}/api/embed/{quote(slug, safe='')}"

    def render_url_for(self, slug: str) -> str:
        return self.url_for(slug) + "/render"

    async def fetch(self, slug: str) -> ActivityDefinition:
        try:
            r = await self._client.get(self.url_for(slug))
        except httpx.RequestError as net_err:
            raise ResolutionFailed(slug, str(net_err)) from net_err
        if r.status_code == 404:
            raise ActivityNotFound(slug)
        try:
            r.raise_for_status()
        except httpx.HTTPStatusError as http_err:
            raise ResolutionFailed(slug, f"HTTP {r.status_code}") from http_err
        try:
            return ActivityDefinition.model_validate(r.json())
        except ValueError as err:
            raise ResolutionFailed(slug, "unexpected response body") from err

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "ActivityFetcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


class RenderState(str, Enum):
    LOADING = "loading"
    LOADED = "loaded"
    SUBMITTED = "submitted"
    ERROR = "error"


IFRAME_STATE = "iframe"
_CONTAINER_STATES = tuple(s.value for s in RenderState) + (IFRAME_STATE,)


@dataclass
class RenderSession:
    instance_id: str
    slug: str
    container: Element
    state: RenderState = RenderState.LOADING
    activity: Optional[ActivityDefinition] = None
    quiz: Optional[QuizContent] = None
    ids: Optional[QuizIds] = None
    selections: Dict[int, int] = field(default_factory=dict)
    result: Optional[QuizResult] = None

    @property
    def submitted(self) -> bool:
        return self.state is RenderState.SUBMITTED

    def reset(self) -> None:
        self.selections.clear()
        self.result = None
        self.state = RenderState.LOADED


def _is_radio(el: Element) -> bool:
    return el.tag == "input" and el.get_attribute("type") == "radio"


class EmbedRenderer:
    """Builds activities directly inside the containers of a host page.

    Every rendered container gets its own :class:`RenderSession`, keyed by a
    generated instance id and owned by this renderer.
    """

    def __init__(
        self,
        document: Document,
        fetcher: ActivityFetcher,
        *,
        trust_text_content: Optional[bool] = None,
    ) -> None:
        self.document = document
        self.fetcher = fetcher
        self.trust_text_content = trust_text_content
        self._sessions: Dict[str, RenderSession] = {}

    # lifecycle

    def session(self, instance_id: str) -> RenderSession:
        try:
            return self._sessions[instance_id]
        except KeyError:
            raise KeyError(f"unknown render instance: {instance_id}") from None

    def sessions(self) -> List[RenderSession]:
        return list(self._sessions.values())

    def destroy(self, instance_id: str) -> None:
        session = self._sessions.pop(instance_id, None)
        if session is None:
            return
        session.container.clear()
        session.container.remove_class(*_CONTAINER_STATES)

    def _resolve_container(self, container: Union[str, Element]) -> Element:
        if isinstance(container, Element):
            return container
        target = self.document.get_element_by_id(container)
        if target is None:
            raise ContainerMissing(container)
        return target

    def _release(self, container: Element) -> None:
        for instance_id, session in list(self._sessions.items()):
            if session.container is container:
                del self._sessions[instance_id]

    def _set_container_state(self, container: Element, state: str) -> None:
        container.remove_class(*_CONTAINER_STATES)
        container.add_class(CONTAINER_CLASS, state)

    def _apply_styles(self) -> None:
        if self.document.get_element_by_id(STYLE_ELEMENT_ID) is None:
            self.document.head.append(Element("style", RawHTML(DEFAULT_CSS), id=STYLE_ELEMENT_ID))

    # rendering

    async def render(self, slug: str, container: Union[str, Element]) -> Optional[str]:
        """Fetch ``slug`` and build it inside ``container``.

        Returns the new instance id, or ``None`` when the container does not
        exist. Resolution failures end in the container's error state.
        """
        try:
            target = self._resolve_container(container)
        except ContainerMissing as exc:
            logger.error("Container not found: %r", exc.container)
            return None

        self._release(target)
        instance_id = uuid.uuid4().hex[:12]
        session = RenderSession(instance_id=instance_id, slug=slug, container=target)
        self._sessions[instance_id] = session
        target.replace_children(loading_state())
        self._set_container_state(target, RenderState.LOADING.value)

        try:
            activity = await self.fetcher.fetch(slug)
        except EmbedError as exc:
            logger.warning("Failed to load activity %s: %s", slug, exc)
            if self._sessions.get(instance_id) is session:
                session.state = RenderState.ERROR
                target.replace_children(error_state(exc.user_message))
                self._set_container_state(target, RenderState.ERROR.value)
            return instance_id

        if self._sessions.get(instance_id) is not session:
            # destroyed or re-rendered while the fetch was in flight
            return instance_id
        self._mount(session, activity)
        return instance_id

    def _mount(self, session: RenderSession, activity: ActivityDefinition) -> None:
        target = session.container
        ids = QuizIds(target.id or session.instance_id)
        variant = dispatch(activity)
        target.replace_children(*build_activity(activity, variant, ids, trust_text_content=self.trust_text_content))
        session.activity = activity
        session.ids = ids
        if isinstance(variant, QuizVariant):
            session.quiz = variant.quiz
        session.state = RenderState.LOADED
        self._set_container_state(target, RenderState.LOADED.value)
        self._apply_styles()

    def render_iframe(
        self,
        slug: str,
        container: Union[str, Element],
        options: Optional[Dict[str, str]] = None,
    ) -> Optional[Element]:
        options = options or {}
        try:
            target = self._resolve_container(container)
        except ContainerMissing as exc:
            logger.error("Container not found: %r", exc.container)
            return None

        self._release(target)
        iframe = Element(
            "iframe",
            attrs={"src": self.fetcher.render_url_for(slug), "frameborder": "0", "allowfullscreen": ""},
        )
        iframe.style["width"] = options.get("width") or DEFAULT_IFRAME_WIDTH
        iframe.style["height"] = options.get("height") or DEFAULT_IFRAME_HEIGHT
        iframe.style["border"] = options.get("border") or "none"
        iframe.style["border-radius"] = "8px"
        target.replace_children(iframe)
        self._set_container_state(target, IFRAME_STATE)
        return iframe

    async def auto_init(self) -> List[Optional[str]]:
        """Render every element marked with ``data-html-activity``.

        Embedded instances load concurrently; the result lists their instance
        ids in document order. Iframe instances have no session.
        """
        jobs = []
        for element in self.document.elements_with_attribute(AUTO_ATTRIBUTE):
            slug = (element.get_attribute(AUTO_ATTRIBUTE) or "").strip()
            if not slug:
                logger.warning("Skipping %r: empty %s", element, AUTO_ATTRIBUTE)
                continue
            mode = element.get_attribute(MODE_ATTRIBUTE) or "embed"
            if mode == "iframe":
                options = {}
                if element.get_attribute("data-width"):
                    options["width"] = element.get_attribute("data-width")
                if element.get_attribute("data-height"):
                    options["height"] = element.get_attribute("data-height")
                self.render_iframe(slug, element, options)
            else:
                jobs.append(self.render(slug, element))
        return list(await asyncio.gather(*jobs))

    # quiz interaction

    def _question_block(self, session: RenderSession, index: int) -> Element:
        block = session.container.find(lambda el: el.get_attribute("data-question") == str(index))
        if block is None:
            raise IndexError(f"question {index} is not rendered")
        return block

    def select(self, instance_id: str, question_index: int, option_index: int) -> bool:
        """Check one option. Ignored unless the quiz is loaded and not yet submitted."""
        session = self.session(instance_id)
        if session.quiz is None or session.state is not RenderState.LOADED:
            return False
        questions = session.quiz.questions
        if not 0 <= question_index < len(questions):
            raise IndexError(f"question index {question_index} out of range")
        if not 0 <= option_index < len(questions[question_index].options):
            raise IndexError(f"option index {option_index} out of range")

        for radio in self._question_block(session, question_index).find_all(_is_radio):
            radio.checked = radio.get_attribute("value") == str(option_index)
        session.selections[question_index] = option_index
        return True

    def submit(self, instance_id: str) -> Optional[QuizResult]:
        """Grade the current selections once.

        A second submit before a retry returns the stored result and leaves
        the container untouched.
        """
        session = self.session(instance_id)
        if session.quiz is None:
            return None
        if session.state is RenderState.SUBMITTED:
            return session.result
        if session.state is not RenderState.LOADED:
            return None

        quiz = session.quiz
        container = session.container
        result = score(quiz.questions, session.selections)
        for graded in result.per_question:
            block = self._question_block(session, graded.index)
            options = block.by_class("option")
            for o_index, mark in graded.marks.items():
                options[o_index].add_class(mark)
            if explanation_visible(quiz.questions[graded.index], quiz.settings):
                for explanation in block.by_class("explanation"):
                    explanation.show()

        results = container.by_id(session.ids.results)
        results.replace_children(*build_results(result))
        results.classes = ["results", result.band.name]
        results.show()

        for radio in container.find_all(_is_radio):
            radio.disabled = True
        container.by_id(session.ids.submit).hide()
        retry = container.by_id(session.ids.retry)
        if quiz.settings.allow_retry and retry is not None:
            retry.show("inline-block")

        session.result = result
        session.state = RenderState.SUBMITTED
        return result

    def retry(self, instance_id: str) -> bool:
        """Clear marks, selections and results and re-arm the quiz.

        Only reachable after a submit, and only when the quiz allows retries.
        """
        session = self.session(instance_id)
        quiz = session.quiz
        if quiz is None or not quiz.settings.allow_retry or session.state is not RenderState.SUBMITTED:
            return False

        container = session.container
        for radio in container.find_all(_is_radio):
            radio.disabled = False
            radio.checked = False
        for option in container.by_class("option"):
            option.remove_class(CORRECT, INCORRECT)
        for explanation in container.by_class("explanation"):
            explanation.hide()

        results = container.by_id(session.ids.results)
        results.clear()
        results.classes = ["results"]
        results.hide()
        container.by_id(session.ids.submit).show("inline-block")
        retry = container.by_id(session.ids.retry)
        if retry is not None:
            retry.hide()

        session.reset()
        return True
