"""Conversation state machine for capturing, reviewing and reflecting on one decision.

The controller is the only writer of the draft, the dialogue log, the state tag
and the memory selection. Each public command checks its precondition and
returns ``False`` (or ``None``) instead of raising when it declines to run.

Two flags make up the whole concurrency discipline:

* ``send_in_flight`` covers every generation call that yields a dialogue turn
  (capture reply + inference, reflection, advisory).
* ``injection_in_flight`` covers the context-injection call. Sends and
  injections exclude each other; a blocked attempt is dropped.

``save`` and ``discard`` bump an epoch counter; results that arrive for an
older epoch are dropped instead of leaking into the fresh session.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from loguru import logger

from thinkly.config.schema import ConversationConfig, SuggestionsConfig
from thinkly.conversation.extractor import FieldExtractor
from thinkly.conversation.prompts import (
    ADVISORY_FAILED,
    ADVISORY_FALLBACK,
    ADVISORY_PLACEHOLDER,
    ADVISORY_SYSTEM,
    INJECTION_SYSTEM,
    OPENING_GREETING,
    REFLECTION_FAILED,
    REFLECTION_FALLBACK,
    REFLECTION_PLACEHOLDER,
    REFLECTION_SYSTEM,
    REPLY_FALLBACK,
    REPLY_SYSTEM,
    SAVED_GREETING,
    SERVICE_DOWN_REPLY,
    advisory_user_prompt,
    injection_fallback,
    injection_user_prompt,
    reflection_user_prompt,
)
from thinkly.conversation.state import (
    ADVISORY_FROM,
    CONFIRM_FROM,
    EDIT_FROM,
    FIELDS_EDITABLE,
    TEXT_LOCKED,
    ConversationState,
)
from thinkly.memory.models import DecisionMemory, DialogueTurn, DraftMemory
from thinkly.memory.suggest import ArchiveView, DateRange, display_order, suggest, visible_indices
from thinkly.providers.base import ServiceUnavailableError
from thinkly.utils.helpers import now_ms

if TYPE_CHECKING:
    from thinkly.memory.store import MemoryStore
    from thinkly.providers.generation import GenerationRoutes


class ConversationController:
    """Drive one decision from free-form capture to a saved memory."""

    def __init__(
        self,
        *,
        store: "MemoryStore",
        routes: "GenerationRoutes",
        config: ConversationConfig | None = None,
        suggestions: SuggestionsConfig | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.store = store
        self._routes = routes
        self._extractor = FieldExtractor(routes.extract)
        self._config = config or ConversationConfig()
        self._suggestions = suggestions or SuggestionsConfig()
        self._clock = clock

        self.state = ConversationState.CAPTURING
        self.draft = DraftMemory()
        self._turns: list[DialogueTurn] = [DialogueTurn("assistant", OPENING_GREETING)]
        self._selected: list[int] = []
        self.suggested: list[int] = []
        self.ordering: list[int] = []

        self._send_in_flight = False
        self._injection_in_flight = False
        self._epoch = 0
        self._last_injected: frozenset[int] = frozenset()
        self._debounce_task: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[None]] = set()

        self.refresh_suggestions()

    # ── Read-only views ──────────────────────────────────────────────

    @property
    def turns(self) -> tuple[DialogueTurn, ...]:
        return tuple(self._turns)

    @property
    def selected(self) -> tuple[int, ...]:
        return tuple(self._selected)

    @property
    def send_in_flight(self) -> bool:
        return self._send_in_flight

    @property
    def injection_in_flight(self) -> bool:
        return self._injection_in_flight

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def user_turn_count(self) -> int:
        return sum(1 for turn in self._turns if turn.speaker == "user")

    def transcript(self) -> str:
        return "\n".join(turn.transcript_line() for turn in self._turns if not turn.placeholder)

    def selected_memories(self) -> list[DecisionMemory]:
        memories = self.store.memories
        return [memories[i] for i in self._selected if 0 <= i < len(memories)]

    def visible(
        self,
        *,
        search: str = "",
        view: ArchiveView = "active",
        date_range: DateRange = "all",
    ) -> list[int]:
        """Display order filtered the way the memory sidebar shows it."""
        return visible_indices(
            self.store.memories,
            self.ordering,
            now_ms=self._clock(),
            search=search,
            view=view,
            date_range=date_range,
        )

    # ── Suggestions ──────────────────────────────────────────────────

    def refresh_suggestions(self) -> list[int]:
        """Recompute suggestions and display order from current draft and store."""
        memories = self.store.memories
        self.suggested = suggest(
            self.draft,
            memories,
            self.store.vectors,
            self._clock(),
            threshold=self._suggestions.threshold,
            limit=self._suggestions.max_results,
            recency_days=self._suggestions.recency_days,
            recency_boost=self._suggestions.recency_boost,
        )
        self.ordering = display_order(len(memories), self._selected, self.suggested)
        return self.suggested

    # ── Free text ────────────────────────────────────────────────────

    async def submit(self, text: str) -> bool:
        """Handle one free-text submission according to the current state."""
        message = text.strip()
        if not message:
            return False
        if self._send_in_flight:
            logger.debug("submit ignored: a reply is already in flight")
            return False
        if self._injection_in_flight:
            logger.debug("submit ignored: context injection in flight")
            return False
        if self.state in TEXT_LOCKED:
            logger.debug("submit ignored in state {}", self.state)
            return False
        if self.state is ConversationState.REFLECTING:
            return await self._reflect(message)
        return await self._capture(message)

    async def _capture(self, message: str) -> bool:
        self._turns.append(DialogueTurn("user", message))
        transcript = self.transcript()
        epoch = self._epoch

        self._send_in_flight = True
        try:
            reply, inferred = await asyncio.gather(
                self._reply(transcript),
                self._extractor.infer(transcript),
            )
        finally:
            self._send_in_flight = False

        if epoch != self._epoch:
            logger.debug("dropping stale capture reply from epoch {}", epoch)
            return False

        if inferred is not None:
            changed = inferred.merge_into(self.draft)
            if changed:
                logger.debug("inferred fields: {}", ", ".join(changed))
        self._turns.append(DialogueTurn("assistant", reply))
        self.refresh_suggestions()
        self._maybe_enter_review()
        return True

    async def _reply(self, transcript: str) -> str:
        try:
            return await self._routes.reply.generate(REPLY_SYSTEM, transcript) or REPLY_FALLBACK
        except ServiceUnavailableError as exc:
            logger.warning("conversation reply failed: {}", exc)
            return SERVICE_DOWN_REPLY

    def _maybe_enter_review(self) -> None:
        if self.state is not ConversationState.CAPTURING:
            return
        if self.user_turn_count < self._config.min_user_turns:
            return
        if not self.draft.is_core_clear:
            return
        self.state = ConversationState.REVIEW
        logger.info("draft is clear enough; entering review")

    async def _reflect(self, message: str) -> bool:
        synthesis = self.draft.synthesis()
        self._turns.append(DialogueTurn("user", message))
        self._turns.append(DialogueTurn("assistant", REFLECTION_PLACEHOLDER, placeholder=True))
        epoch = self._epoch

        self._send_in_flight = True
        try:
            try:
                reply = await self._routes.reflect.generate(
                    REFLECTION_SYSTEM,
                    reflection_user_prompt(synthesis, message),
                )
                reply = reply or REFLECTION_FALLBACK
            except ServiceUnavailableError as exc:
                logger.warning("reflection failed: {}", exc)
                reply = REFLECTION_FAILED
        finally:
            self._send_in_flight = False

        if epoch != self._epoch:
            logger.debug("dropping stale reflection from epoch {}", epoch)
            return False
        self._replace_placeholder(reply)
        return True

    def _replace_placeholder(self, text: str) -> None:
        for index in range(len(self._turns) - 1, -1, -1):
            if self._turns[index].placeholder:
                self._turns[index] = DialogueTurn("assistant", text)
                return
        self._turns.append(DialogueTurn("assistant", text))

    # ── Explicit actions ─────────────────────────────────────────────

    def update_field(self, name: str, value: str) -> bool:
        if self.state not in FIELDS_EDITABLE:
            logger.debug("field {} is read-only in state {}", name, self.state)
            return False
        self.draft.set(name, value)
        self.refresh_suggestions()
        return True

    def edit(self) -> bool:
        if self.state not in EDIT_FROM:
            return False
        self.state = ConversationState.EDITING
        return True

    def confirm(self) -> bool:
        if self.state not in CONFIRM_FROM or not self.draft.can_save:
            return False
        self.state = ConversationState.CONFIRM
        return True

    async def request_advisory(self) -> bool:
        """Ask for trade-offs, risks and one reflective question on the draft."""
        if self.state not in ADVISORY_FROM or not self.draft.can_save:
            return False
        if self._send_in_flight or self._injection_in_flight:
            logger.debug("advisory ignored: another generation call is in flight")
            return False

        prompt = advisory_user_prompt(self.draft.synthesis(), self.selected_memories())
        self._turns.append(DialogueTurn("assistant", ADVISORY_PLACEHOLDER, placeholder=True))
        epoch = self._epoch

        self._send_in_flight = True
        try:
            try:
                advice = await self._routes.advise.generate(ADVISORY_SYSTEM, prompt)
                failed = False
            except ServiceUnavailableError as exc:
                logger.warning("advisory request failed: {}", exc)
                advice, failed = ADVISORY_FAILED, True
        finally:
            self._send_in_flight = False

        if epoch != self._epoch:
            logger.debug("dropping stale advisory from epoch {}", epoch)
            return False
        self._replace_placeholder(advice or ADVISORY_FALLBACK)
        if failed:
            return False
        self.state = ConversationState.REFLECTING
        return True

    async def save(self) -> DecisionMemory | None:
        """Persist the draft as a memory and start a fresh session."""
        if not self.draft.can_save:
            return None
        snapshot = self.draft.copy()
        self._reset_session(SAVED_GREETING)
        memory = await self.store.create(snapshot)
        self.refresh_suggestions()
        return memory

    def discard(self) -> None:
        self._reset_session(OPENING_GREETING)
        self.refresh_suggestions()

    def _reset_session(self, greeting: str) -> None:
        self._epoch += 1
        self._cancel_debounce()
        self.draft.clear()
        self._selected = []
        self._last_injected = frozenset()
        self._turns = [DialogueTurn("assistant", greeting)]
        self.state = ConversationState.CAPTURING

    # ── Memory collection ────────────────────────────────────────────

    def delete_memory(self, memory_id: str) -> bool:
        deleted = self.store.delete(memory_id)
        if deleted:
            # Indices shift after removal.
            self._cancel_debounce()
            self._selected = []
            self._last_injected = frozenset()
        self.refresh_suggestions()
        return deleted

    def archive_memory(self, memory_id: str, archived: bool = True) -> bool:
        changed = self.store.archive(memory_id, archived)
        self.refresh_suggestions()
        return changed

    # ── Selection and context injection ──────────────────────────────

    def select(self, indices: Iterable[int]) -> None:
        """Replace the selection and re-arm the injection debounce."""
        count = len(self.store.memories)
        self._selected = list(dict.fromkeys(i for i in indices if 0 <= i < count))
        self.ordering = display_order(count, self._selected, self.suggested)
        self._schedule_injection()

    def toggle(self, index: int) -> None:
        if index in self._selected:
            self.select(i for i in self._selected if i != index)
        else:
            self.select([*self._selected, index])

    def _cancel_debounce(self) -> None:
        if self._debounce_task is not None:
            self._debounce_task.cancel()
            self._debounce_task = None

    def _schedule_injection(self) -> None:
        self._cancel_debounce()
        task = asyncio.create_task(self._debounced_inject(self._epoch))
        self._debounce_task = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _debounced_inject(self, epoch: int) -> None:
        try:
            await asyncio.sleep(self._config.injection_debounce_ms / 1000.0)
        except asyncio.CancelledError:
            return
        if self._debounce_task is asyncio.current_task():
            # Past the debounce window: later selection changes must not cancel the call.
            self._debounce_task = None
        await self._inject(epoch)

    async def _inject(self, epoch: int) -> bool:
        selection = frozenset(self._selected)
        if not selection or selection == self._last_injected:
            return False
        if epoch != self._epoch:
            return False
        if self._send_in_flight or self._injection_in_flight:
            logger.debug("context injection dropped: generation in flight")
            return False

        memories = self.selected_memories()
        prompt = injection_user_prompt(self.transcript(), memories)

        self._injection_in_flight = True
        try:
            try:
                text = await self._routes.inject.generate(INJECTION_SYSTEM, prompt)
            except ServiceUnavailableError as exc:
                logger.warning("context injection generation failed: {}", exc)
                text = ""
        finally:
            self._injection_in_flight = False

        if epoch != self._epoch:
            logger.debug("dropping stale context injection from epoch {}", epoch)
            return False
        self._turns.append(DialogueTurn("assistant", text or injection_fallback(memories)))
        self._last_injected = selection
        logger.info("injected context from {} past decisions", len(memories))
        return True

    async def drain(self) -> None:
        """Wait for pending debounce and injection tasks to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        self._cancel_debounce()
        await self.drain()
