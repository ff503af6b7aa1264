"""
copilotrm.orchestration.orchestrator - Synchronous Orchestration Pipeline
===========================================================================

The Orchestrator runs one event through the whole ranking pipeline and
returns pure data. It is the synchronous mode: no history is recorded
besides the audit records carried in the output.

Pipeline:

    ┌──────────────────────────────────────────────────────────────────┐
    │                      Orchestrator.run(ctx)                       │
    │                                                                  │
    │  1. validate ctx ──────────────────────────── ContextError       │
    │  2. generate_candidates(event, offers)        (rules.py)         │
    │  3. rank_candidates(candidates, ctx)          (scoring.py)       │
    │  4. derive_handoffs(ranked)                   (handoffs.py)      │
    │  5. materialize(ranked, min_confidence)       (materializer.py)  │
    │  6. registry, front to back: supports(event.type) → execute      │
    │     (a failing agent becomes an agent.error audit record)        │
    │  7. OrchestratorOutput                                           │
    └──────────────────────────────────────────────────────────────────┘

    run_async(ctx) wraps the same pipeline with the optional hooks from
    enrichment.py: providers enrich the context before step 2, evaluators
    review the successful agent results after step 6.

Audit Records (in order):
    event.received, [provider.error per failed provider, providers.run],
    rules.candidates.generated, actions.ranked, handoffs.derived,
    agents.executed, then one agent.notes (or agent.error) per executed
    agent, then one candidate.scored per ranked action, then
    [evaluator.result or evaluator.error per evaluator]. The bracketed
    records appear only in run_async and only when providers or
    evaluators are configured.

Work Items:
    tasks and drafts are the materialized items followed by the items the
    agents produced. Both describe the same case from two angles when a
    ranked candidate and its own agent cover it: an urgent inbound email
    yields the customer-care task and draft materialized from the ranked
    action, then the care desk task and the ready-to-send reply written by
    CustomerCareAgent. Neither list is de-duplicated.

Usage:
    >>> orchestrator = Orchestrator(create_default_registry())
    >>> output = orchestrator.run(ctx)
    >>> output.top_action.title
    'Proposta connectivity gaming (fibra/router/mesh)'
"""

from __future__ import annotations

from typing import Any, Optional, Union

import structlog

from copilotrm.agents.base import BusinessAgent
from copilotrm.agents.registry import AgentRegistry, create_default_registry
from copilotrm.core.config import OrchestratorConfig
from copilotrm.core.enums import AgentName
from copilotrm.core.exceptions import AgentError, ContextError
from copilotrm.core.models import (
    AgentExecutionResult,
    AuditRecord,
    DomainEvent,
    HandoffEdge,
    OrchestratorContext,
    OrchestratorOutput,
    ScoredCandidate,
)
from copilotrm.infrastructure.audit_trail import make_audit_record
from copilotrm.orchestration.enrichment import AgentEvaluator, AgentProvider
from copilotrm.orchestration.handoffs import derive_handoffs
from copilotrm.orchestration.materializer import materialize
from copilotrm.orchestration.rules import generate_candidates
from copilotrm.orchestration.scoring import rank_candidates


logger = structlog.get_logger()

ORCHESTRATOR_ACTOR = AgentName.ORCHESTRATOR.value


def validate_context(ctx: Optional[OrchestratorContext]) -> OrchestratorContext:
    """Fail fast on a context without an event.

    Raises:
        ContextError: If ``ctx`` is None or carries no event.
    """
    if ctx is None or getattr(ctx, "event", None) is None:
        raise ContextError(
            message="OrchestratorContext must carry an event",
            details={"context_type": type(ctx).__name__},
        )
    return ctx


def agent_supports(agent: BusinessAgent, event: DomainEvent) -> bool:
    """Ask ``agent`` whether it reacts to ``event``.

    Raises:
        AgentError: If ``supports()`` raises. The original exception is
            chained as ``__cause__``.
    """
    try:
        return agent.supports(event.type)
    except AgentError:
        raise
    except Exception as e:
        raise AgentError(
            message=f"Agent {agent.name.value} failed to check support for {event.type.value}: {e}",
            agent_name=agent.name.value,
            event_id=event.id,
            error_code="AGENT_SUPPORTS_FAILED",
            details={"original_error": type(e).__name__},
        ) from e


class Orchestrator:
    """Synchronous candidate → ranking → work-item pipeline.

    Attributes:
        _registry: Agents executed after ranking, in registry order.
        _config: Orchestrator settings (actionable confidence threshold).
        _providers: Context providers run by run_async() and the recorder.
        _evaluators: Result evaluators run by run_async() and the recorder.
    """

    def __init__(
        self,
        registry: Optional[AgentRegistry] = None,
        config: Optional[OrchestratorConfig] = None,
        providers: Optional[list[AgentProvider]] = None,
        evaluators: Optional[list[AgentEvaluator]] = None,
    ) -> None:
        self._registry = registry if registry is not None else create_default_registry()
        self._config = config or OrchestratorConfig()
        self._providers = list(providers or [])
        self._evaluators = list(evaluators or [])
        self._logger = logger.bind(component="orchestrator")

    @property
    def registry(self) -> AgentRegistry:
        return self._registry

    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    @property
    def providers(self) -> list[AgentProvider]:
        return list(self._providers)

    @property
    def evaluators(self) -> list[AgentEvaluator]:
        return list(self._evaluators)

    # =========================================================================
    # Pipeline Stages
    # =========================================================================

    def rank(self, ctx: OrchestratorContext) -> list[ScoredCandidate]:
        """Generate and rank the rule candidates for ``ctx``."""
        validate_context(ctx)
        candidates = generate_candidates(ctx.event, ctx.active_offers)
        return rank_candidates(candidates, ctx)

    def run(self, ctx: OrchestratorContext) -> OrchestratorOutput:
        """Run the full synchronous pipeline.

        Providers and evaluators are not consulted here; use run_async().

        Args:
            ctx: The read-only run snapshot.

        Returns:
            Ranked actions, handoffs, materialized plus agent-produced
            tasks and drafts, and the run's audit records.

        Raises:
            ContextError: If ``ctx`` has no event.
        """
        output, _ = self._run(ctx)
        return output

    async def run_async(self, ctx: OrchestratorContext) -> OrchestratorOutput:
        """Providers, then the pipeline on the enriched context, then evaluators.

        With no providers and no evaluators configured the output is the
        same as run(ctx).

        Raises:
            ContextError: If ``ctx`` has no event.
        """
        validate_context(ctx)
        enriched, provider_records = await self.enrich(ctx)
        output, results = self._run(enriched, provider_records)
        evaluator_records = await self.evaluate(enriched, results)
        if not evaluator_records:
            return output
        return output.model_copy(
            update={"audit_records": [*output.audit_records, *evaluator_records]}
        )

    async def enrich(
        self, ctx: OrchestratorContext
    ) -> tuple[OrchestratorContext, list[AuditRecord]]:
        """Run every provider and attach what they return to the context.

        Returns:
            The enriched copy of ``ctx`` and the provider audit records:
            one provider.error per failed provider, then providers.run.
            ``ctx`` itself and no records when no provider is configured.
        """
        if not self._providers:
            return ctx, []

        data = dict(ctx.enriched_data)
        records: list[AuditRecord] = []
        for provider in self._providers:
            try:
                data[provider.name] = await provider.provide(ctx)
            except Exception as e:
                self._logger.warning(
                    "provider_failed",
                    provider=provider.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                records.append(self._audit("provider.error", {"provider": provider.name, "error": str(e)}))
        records.append(
            self._audit("providers.run", {"providers": [p.name for p in self._providers]})
        )
        return ctx.model_copy(update={"enriched_data": data}), records

    async def evaluate(
        self,
        ctx: OrchestratorContext,
        results: list[AgentExecutionResult],
    ) -> list[AuditRecord]:
        """Run every evaluator over the successful agent results."""
        records: list[AuditRecord] = []
        for evaluator in self._evaluators:
            try:
                verdict = await evaluator.evaluate(ctx, results)
            except Exception as e:
                self._logger.warning(
                    "evaluator_failed",
                    evaluator=evaluator.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                records.append(
                    self._audit("evaluator.error", {"evaluator": evaluator.name, "error": str(e)})
                )
                continue
            records.append(
                self._audit(
                    "evaluator.result",
                    {
                        "evaluator": evaluator.name,
                        "should_continue": verdict.should_continue,
                        "notes": list(verdict.notes),
                    },
                )
            )
        return records

    # =========================================================================
    # Internals
    # =========================================================================

    def _run(
        self,
        ctx: OrchestratorContext,
        provider_records: Optional[list[AuditRecord]] = None,
    ) -> tuple[OrchestratorOutput, list[AgentExecutionResult]]:
        validate_context(ctx)
        event = ctx.event
        self._logger.info(
            "orchestration_started",
            event_id=event.id,
            event_type=event.type.value,
            customer_id=event.customer_id,
        )

        audit: list[AuditRecord] = [
            self._audit(
                "event.received",
                {"event_id": event.id, "event_type": event.type.value, "customer_id": event.customer_id},
            )
        ]
        audit.extend(provider_records or [])

        candidates = generate_candidates(event, ctx.active_offers)
        audit.append(self._audit("rules.candidates.generated", {"count": len(candidates)}))

        scored = rank_candidates(candidates, ctx)
        ranked = [s.ranked_action() for s in scored]
        top = scored[0] if scored else None
        audit.append(
            self._audit(
                "actions.ranked",
                {
                    "top_action": top.candidate.title if top else None,
                    "top_score": top.total if top else None,
                    "count": len(ranked),
                },
            )
        )

        handoffs = derive_handoffs(ranked)
        audit.append(
            self._audit(
                "handoffs.derived",
                {"handoffs": [self._edge_payload(edge) for edge in handoffs]},
            )
        )

        tasks, drafts = materialize(ranked, self._config.min_actionable_confidence)

        outcomes = self._execute_agents(ctx)
        failures = [o for o in outcomes if isinstance(o, AgentError)]
        results = [o for o in outcomes if not isinstance(o, AgentError)]
        audit.append(
            self._audit(
                "agents.executed",
                {
                    "agents": [self._outcome_agent(o) for o in outcomes],
                    "failed": [f.agent_name for f in failures],
                },
            )
        )
        for outcome in outcomes:
            if isinstance(outcome, AgentError):
                audit.append(make_audit_record(outcome.agent_name, "agent.error", outcome.to_dict()))
                continue
            tasks.extend(outcome.tasks)
            drafts.extend(outcome.drafts)
            audit.append(make_audit_record(outcome.agent.value, "agent.notes", {"notes": outcome.notes}))

        for action in ranked:
            audit.append(
                self._audit(
                    "candidate.scored",
                    {
                        "action_id": action.id,
                        "title": action.title,
                        "agent": action.agent.value,
                        "score": action.score_breakdown.model_dump() if action.score_breakdown else None,
                    },
                )
            )

        self._logger.info(
            "orchestration_completed",
            event_id=event.id,
            ranked=len(ranked),
            handoffs=len(handoffs),
            tasks=len(tasks),
            drafts=len(drafts),
            failed_agents=len(failures),
        )

        output = OrchestratorOutput(
            ranked_actions=ranked,
            handoffs=handoffs,
            tasks=tasks,
            drafts=drafts,
            audit_records=audit,
        )
        return output, results

    def _execute_agents(
        self, ctx: OrchestratorContext
    ) -> list[Union[AgentExecutionResult, AgentError]]:
        """Run the supporting agents in registry order, isolating failures."""
        outcomes: list[Union[AgentExecutionResult, AgentError]] = []
        for agent in self._registry:
            try:
                if not agent_supports(agent, ctx.event):
                    continue
                outcomes.append(agent.execute(ctx))
            except AgentError as e:
                self._logger.warning(
                    "agent_failed_in_pipeline",
                    agent=agent.name.value,
                    error_code=e.error_code,
                )
                outcomes.append(e)
        return outcomes

    @staticmethod
    def _outcome_agent(outcome: Union[AgentExecutionResult, AgentError]) -> str:
        if isinstance(outcome, AgentError):
            return outcome.agent_name
        return outcome.agent.value

    @staticmethod
    def _audit(record_type: str, payload: dict[str, Any]) -> AuditRecord:
        return make_audit_record(ORCHESTRATOR_ACTOR, record_type, payload)

    @staticmethod
    def _edge_payload(edge: HandoffEdge) -> dict[str, Any]:
        return edge.model_dump(mode="json")

    def __repr__(self) -> str:
        return f"Orchestrator(agents={len(self._registry)}, config={self._config!r})"
