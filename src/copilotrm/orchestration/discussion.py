"""
copilotrm.orchestration.discussion - Sequential Discussion Coordinator
========================================================================

Interactive consultation for an operator: a short, moderated roundtable
between the specialist personas about one free-text request. Not used for
automated event handling.

Protocol (strictly sequential; every turn sees the whole visible thread):

    ┌───────┬──────────────────────────────┬──────────┬────────────────────────────┐
    │ Round │ Speaker                      │ Kind     │ Who                        │
    ├───────┼──────────────────────────────┼──────────┼────────────────────────────┤
    │ 0     │ Orchestratore                │ brief    │ always                     │
    │ 1     │ agents @mentioned in brief   │ analysis │ up to max_brief_agents,    │
    │       │                              │          │ fallback defaults if none  │
    │ 1     │ agents @mentioned in round 1 │ analysis │ up to max_extra_mentions   │
    │ 2     │ Critico                      │ critique │ always                     │
    │ 3     │ agents @mentioned by critic  │ defense  │ up to max_defenders        │
    │ -     │ Moderatore                   │ synthesis│ NEVER in the thread        │
    └───────┴──────────────────────────────┴──────────┴────────────────────────────┘

The coordinator is a producer: discuss() is an async generator that yields
typed events (typing, message, done, error). The caller forwards them to
whatever transport it uses; collect() drains the generator into a
DiscussionResult.

Failure Model:
    Each language-model call is bounded by DiscussionConfig.llm_timeout_seconds.
    A failure or timeout degrades that single turn to "[<Name> non disponibile]"
    and the protocol continues. A blank operator message yields one error event.

Tracing:
    With ``request.trace`` and a recorder, the discussion is stored as a swarm
    run (event_type "operator.discussion"): one step plus one message per
    visible turn, and a decision message holding the synthesis.

Usage:
    >>> coordinator = DiscussionCoordinator(MockLLMProvider())
    >>> async for event in coordinator.discuss(DiscussionRequest(message="...")):
    ...     print(event.type)
"""

from __future__ import annotations

import asyncio
import re
from typing import AsyncIterator, Literal, Optional, Union
from uuid import uuid4

import structlog
from pydantic import BaseModel, Field

from copilotrm.agents.personas import (
    CRITIC_KEY,
    MODERATOR_KEY,
    ORCHESTRATOR_KEY,
    PersonaDirectory,
    PersonaProfile,
    canonical_display_name,
)
from copilotrm.core.config import DiscussionConfig
from copilotrm.core.enums import (
    DiscussionEventType,
    DiscussionKind,
    SwarmMessageKind,
    SwarmStatus,
    SwarmStepStatus,
)
from copilotrm.core.exceptions import LLMError
from copilotrm.core.models import (
    AssistanceTicket,
    CustomerProfile,
    ManagerObjective,
    ProductOffer,
)
from copilotrm.integrations.llm.base import BaseLLMProvider, LLMMessage
from copilotrm.orchestration.swarm_recorder import SwarmRecorder


logger = structlog.get_logger()

DISCUSSION_EVENT_TYPE = "operator.discussion"

MENTION_PATTERN = re.compile(r"@([A-Za-zÀ-ù]+)")

TRACE_KIND: dict[DiscussionKind, SwarmMessageKind] = {
    DiscussionKind.BRIEF: SwarmMessageKind.OBSERVATION,
    DiscussionKind.ANALYSIS: SwarmMessageKind.PROPOSAL,
    DiscussionKind.CRITIQUE: SwarmMessageKind.OBSERVATION,
    DiscussionKind.DEFENSE: SwarmMessageKind.PROPOSAL,
    DiscussionKind.SYNTHESIS: SwarmMessageKind.DECISION,
}


def extract_mentions(text: str) -> list[str]:
    """Return the roster names @mentioned in ``text``, deduplicated, in order."""
    mentions: list[str] = []
    for raw in MENTION_PATTERN.findall(text):
        name = canonical_display_name(raw)
        if name is not None and name not in mentions:
            mentions.append(name)
    return mentions


def fallback_message(name: str) -> str:
    return f"[{name} non disponibile]"


# =============================================================================
# Request / Message / Event Models
# =============================================================================
class DiscussionRequest(BaseModel):
    """What the operator asks, with the CRM context to discuss it in."""

    message: str
    customer: Optional[CustomerProfile] = None
    open_tickets: list[AssistanceTicket] = Field(default_factory=list)
    objectives: list[ManagerObjective] = Field(default_factory=list)
    offers: list[ProductOffer] = Field(default_factory=list)
    session_id: Optional[str] = None
    trace: bool = False

    @property
    def has_open_tickets(self) -> bool:
        return any(ticket.is_open for ticket in self.open_tickets)


class DiscussionMessage(BaseModel):
    """One visible turn of the thread."""

    agent: str
    agent_role: str
    content: str
    kind: DiscussionKind
    mentions: list[str] = Field(default_factory=list)
    round: int = Field(ge=0)


class TypingEvent(BaseModel):
    type: Literal[DiscussionEventType.TYPING] = DiscussionEventType.TYPING
    agent: str
    agent_role: str


class MessageEvent(BaseModel):
    type: Literal[DiscussionEventType.MESSAGE] = DiscussionEventType.MESSAGE
    msg: DiscussionMessage


class DoneEvent(BaseModel):
    type: Literal[DiscussionEventType.DONE] = DiscussionEventType.DONE
    synthesis: str
    swarm_run_id: Optional[str] = None
    session_id: str
    customer: Optional[CustomerProfile] = None


class ErrorEvent(BaseModel):
    type: Literal[DiscussionEventType.ERROR] = DiscussionEventType.ERROR
    message: str


DiscussionEvent = Union[TypingEvent, MessageEvent, DoneEvent, ErrorEvent]


class DiscussionResult(BaseModel):
    """A drained discussion: the visible thread plus the separate synthesis."""

    messages: list[DiscussionMessage] = Field(default_factory=list)
    synthesis: Optional[str] = None
    swarm_run_id: Optional[str] = None
    session_id: Optional[str] = None
    error: Optional[str] = None


# =============================================================================
# Coordinator
# =============================================================================
class DiscussionCoordinator:
    """Runs the brief → analysis → critique → defense → synthesis protocol.

    Attributes:
        _llm: Language-model collaborator writing every turn.
        _personas: Persona lookups for names, roles and system prompts.
        _config: Round caps, fallback agents, per-turn timeout.
        _recorder: Optional swarm recorder used when a request asks for tracing.
    """

    def __init__(
        self,
        llm: BaseLLMProvider,
        personas: Optional[PersonaDirectory] = None,
        config: Optional[DiscussionConfig] = None,
        recorder: Optional[SwarmRecorder] = None,
    ) -> None:
        self._llm = llm
        self._personas = personas or PersonaDirectory()
        self._config = config or DiscussionConfig()
        self._recorder = recorder
        self._logger = logger.bind(component="discussion_coordinator")

    # =========================================================================
    # Public API
    # =========================================================================

    async def discuss(self, request: DiscussionRequest) -> AsyncIterator[DiscussionEvent]:
        """Run one discussion, yielding its events in order.

        A traced run still open when the generator stops early (the caller
        breaks out, closes it, or a turn raises) is closed as FAILED, or
        COMPLETED when at least one turn succeeded.
        """
        if not request.message.strip():
            yield ErrorEvent(message="Il messaggio dell'operatore è vuoto")
            return

        session_id = request.session_id or f"sess_{uuid4().hex[:12]}"
        thread: list[DiscussionMessage] = []
        outcomes: list[bool] = []
        recorder = self._recorder if request.trace else None
        run_id: Optional[str] = None
        if recorder is not None:
            run_id = (await recorder.open_run(DISCUSSION_EVENT_TYPE)).id

        try:
            self._logger.info(
                "discussion_started",
                session_id=session_id,
                customer_id=request.customer.id if request.customer else None,
                swarm_run_id=run_id,
            )

            async def turn(persona: PersonaProfile, kind: DiscussionKind, round_no: int, task: str):
                prompt = self._user_prompt(request, thread, task)
                content, ok = await self._complete(persona, prompt)
                outcomes.append(ok)
                message = DiscussionMessage(
                    agent=persona.name,
                    agent_role=persona.role,
                    content=content,
                    kind=kind,
                    mentions=extract_mentions(content),
                    round=round_no,
                )
                thread.append(message)
                if recorder is not None and run_id is not None:
                    await self._trace_turn(recorder, run_id, message, ok)
                return message

            # --- Round 0: brief -----------------------------------------------
            orchestrator = self._personas.get(ORCHESTRATOR_KEY)
            yield TypingEvent(agent=orchestrator.name, agent_role=orchestrator.role)
            brief = await turn(
                orchestrator,
                DiscussionKind.BRIEF,
                0,
                "Scrivi il brief per il team e tagga con @NomeAgente "
                "gli specialisti da coinvolgere.",
            )
            yield MessageEvent(msg=brief)

            # --- Round 1: mentioned agents -----------------------------------
            responders = brief.mentions[: self._config.max_brief_agents]
            if not responders:
                responders = self._fallback_agents(request)
                self._logger.debug("discussion_fallback_agents", agents=responders)

            for name in responders:
                persona = self._personas.get_by_display_name(name)
                yield TypingEvent(agent=persona.name, agent_role=persona.role)
                message = await turn(
                    persona,
                    DiscussionKind.ANALYSIS,
                    1,
                    "Dai la tua analisi dal tuo punto di vista. Puoi concordare o dissentire "
                    "con gli interventi precedenti e taggare altri colleghi con @NomeAgente.",
                )
                yield MessageEvent(msg=message)

            # --- Round 1b: agents mentioned by the responders ----------------
            extra: list[str] = []
            for message in thread[1:]:
                for name in message.mentions:
                    if name not in responders and name not in extra:
                        extra.append(name)
            for name in extra[: self._config.max_extra_mentions]:
                persona = self._personas.get_by_display_name(name)
                yield TypingEvent(agent=persona.name, agent_role=persona.role)
                message = await turn(
                    persona,
                    DiscussionKind.ANALYSIS,
                    1,
                    "Un collega ti ha chiamato in causa: rispondi nel merito.",
                )
                yield MessageEvent(msg=message)

            # --- Round 2: critic ----------------------------------------------
            critic = self._personas.get(CRITIC_KEY)
            yield TypingEvent(agent=critic.name, agent_role=critic.role)
            critique = await turn(
                critic,
                DiscussionKind.CRITIQUE,
                2,
                "Rivedi le proposte: segnala lacune e tagga con @NomeAgente chi deve chiarire.",
            )
            yield MessageEvent(msg=critique)

            # --- Round 3: defense ---------------------------------------------
            for name in critique.mentions[: self._config.max_defenders]:
                persona = self._personas.get_by_display_name(name)
                yield TypingEvent(agent=persona.name, agent_role=persona.role)
                message = await turn(
                    persona,
                    DiscussionKind.DEFENSE,
                    3,
                    f"Il Critico ha scritto: \"{critique.content}\". Rispondi alla critica.",
                )
                yield MessageEvent(msg=message)

            # --- Synthesis: returned, never appended to the thread ------------
            moderator = self._personas.get(MODERATOR_KEY)
            yield TypingEvent(agent=moderator.name, agent_role=moderator.role)
            synthesis, ok = await self._complete(
                moderator,
                self._user_prompt(request, thread, "Sintetizza la discussione per l'operatore."),
            )
            outcomes.append(ok)

            if recorder is not None and run_id is not None:
                await self._trace_synthesis(recorder, run_id, moderator, synthesis, outcomes)

            self._logger.info(
                "discussion_completed",
                session_id=session_id,
                turns=len(thread),
                degraded_turns=outcomes.count(False),
            )
            yield DoneEvent(
                synthesis=synthesis,
                swarm_run_id=run_id,
                session_id=session_id,
                customer=request.customer,
            )
        finally:
            if recorder is not None and run_id is not None and recorder.is_open(run_id):
                status = SwarmStatus.COMPLETED if any(outcomes) else SwarmStatus.FAILED
                self._logger.warning(
                    "discussion_trace_interrupted",
                    session_id=session_id,
                    swarm_run_id=run_id,
                    turns=len(thread),
                    status=status.value,
                )
                await recorder.close_run(run_id, status)

    async def collect(self, request: DiscussionRequest) -> DiscussionResult:
        """Drain discuss() into a DiscussionResult."""
        result = DiscussionResult(session_id=request.session_id)
        async for event in self.discuss(request):
            if isinstance(event, MessageEvent):
                result.messages.append(event.msg)
            elif isinstance(event, DoneEvent):
                result.synthesis = event.synthesis
                result.swarm_run_id = event.swarm_run_id
                result.session_id = event.session_id
            elif isinstance(event, ErrorEvent):
                result.error = event.message
        return result

    # =========================================================================
    # Language-Model Calls
    # =========================================================================

    async def _call_llm(self, persona: PersonaProfile, user_prompt: str) -> str:
        """One bounded chat call.

        Raises:
            LLMError: On provider failure, timeout or an empty reply.
        """
        messages = [
            LLMMessage(role="system", content=persona.system_prompt()),
            LLMMessage(role="user", content=user_prompt),
        ]
        try:
            response = await asyncio.wait_for(
                self._llm.chat(messages, tier=persona.model_tier, max_tokens=self._llm.max_tokens),
                timeout=self._config.llm_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise LLMError(
                message=f"Turn of {persona.name} timed out",
                provider=self._llm.provider_name,
                error_code="LLM_TIMEOUT",
                details={"timeout_seconds": self._config.llm_timeout_seconds},
            ) from e
        except Exception as e:
            raise LLMError(
                message=f"Turn of {persona.name} failed: {e}",
                provider=self._llm.provider_name,
                details={"error_type": type(e).__name__},
            ) from e

        content = response.content.strip()
        if not content:
            raise LLMError(
                message=f"Empty reply for {persona.name}",
                provider=self._llm.provider_name,
                error_code="LLM_EMPTY_RESPONSE",
            )
        return content

    async def _complete(self, persona: PersonaProfile, user_prompt: str) -> tuple[str, bool]:
        """Return (text, ok); a failed call yields the fallback text."""
        try:
            return await self._call_llm(persona, user_prompt), True
        except LLMError as e:
            self._logger.warning(
                "discussion_turn_degraded",
                agent=persona.name,
                error_code=e.error_code,
                error=e.message,
            )
            return fallback_message(persona.name), False

    # =========================================================================
    # Prompt Construction
    # =========================================================================

    def _user_prompt(
        self,
        request: DiscussionRequest,
        thread: list[DiscussionMessage],
        task: str,
    ) -> str:
        sections = [f"Richiesta dell'operatore: {request.message.strip()}"]

        context = self._context_block(request)
        if context:
            sections.append(f"Contesto CRM:\n{context}")

        if thread:
            transcript = "\n".join(
                f"**{m.agent}** ({m.agent_role}): {m.content}" for m in thread
            )
            sections.append(f"Interventi precedenti:\n{transcript}")

        sections.append(f"{task} (max {self._config.max_words_per_turn} parole)")
        return "\n\n".join(sections)

    @staticmethod
    def _context_block(request: DiscussionRequest) -> str:
        lines = []
        customer = request.customer
        if customer is not None:
            lines.append(f"- Cliente: {customer.full_name} (id {customer.id})")
            if customer.segments:
                lines.append(f"- Segmenti: {', '.join(customer.segments)}")
            if customer.interests:
                lines.append(f"- Interessi: {', '.join(customer.interests)}")
            lines.append(f"- Saturazione commerciale: {customer.commercial_saturation_score:.0f}/100")
        for ticket in request.open_tickets:
            if ticket.is_open:
                lines.append(f"- Ticket aperto {ticket.id}: {ticket.device_type} {ticket.issue}".rstrip())
        if request.objectives:
            lines.append(f"- Obiettivi attivi: {', '.join(o.name for o in request.objectives)}")
        if request.offers:
            lines.append(f"- Offerte attive: {', '.join(o.title for o in request.offers[:5])}")
        return "\n".join(lines)

    def _fallback_agents(self, request: DiscussionRequest) -> list[str]:
        configured = (
            self._config.agents_with_open_tickets
            if request.has_open_tickets
            else self._config.agents_without_open_tickets
        )
        agents: list[str] = []
        for raw in configured:
            name = canonical_display_name(raw)
            if name is not None and name not in agents:
                agents.append(name)
        return agents

    # =========================================================================
    # Tracing
    # =========================================================================

    @staticmethod
    async def _trace_turn(
        recorder: SwarmRecorder,
        run_id: str,
        message: DiscussionMessage,
        ok: bool,
    ) -> None:
        step = await recorder.record_step(run_id, message.agent)
        await recorder.record_message(
            run_id,
            message.agent,
            TRACE_KIND[message.kind],
            message.content,
        )
        await recorder.finish_step(
            step, SwarmStepStatus.COMPLETED if ok else SwarmStepStatus.FAILED
        )

    @staticmethod
    async def _trace_synthesis(
        recorder: SwarmRecorder,
        run_id: str,
        moderator: PersonaProfile,
        synthesis: str,
        outcomes: list[bool],
    ) -> None:
        await recorder.record_message(
            run_id,
            moderator.name,
            TRACE_KIND[DiscussionKind.SYNTHESIS],
            synthesis,
        )
        status = SwarmStatus.COMPLETED if any(outcomes) else SwarmStatus.FAILED
        await recorder.close_run(run_id, status)
