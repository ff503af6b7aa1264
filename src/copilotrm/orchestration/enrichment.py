"""
copilotrm.orchestration.enrichment - Context Providers and Run Evaluators
===========================================================================

Optional hooks around the agent pass of a run:

    ┌───────────────┐  provide(ctx)   ┌─────────────────────┐  evaluate(ctx, results)  ┌───────────────┐
    │ AgentProvider │ ──────────────→ │ agents + ranking    │ ───────────────────────→ │ AgentEvaluator│
    │ (catalogue,   │  enriched_data  │ (pure, no I/O)      │   EvaluationResult       │ (review)      │
    │  news, RAG)   │                 └─────────────────────┘                          └───────────────┘
    └───────────────┘

Providers are where I/O lives: they fetch external data before the pure
pipeline runs, and the orchestrator stores what each returns under
``ctx.enriched_data[provider.name]``. Evaluators read the context and the
successful agent results afterwards and return notes.

A failing provider or evaluator never aborts the run. The orchestrator
turns the failure into a ``provider.error`` / ``evaluator.error`` audit
record and carries on.

Usage:
    >>> class StockProvider(AgentProvider):
    ...     name = "stock"
    ...     async def provide(self, ctx):
    ...         return {"off_pc": await warehouse.count("off_pc")}
    >>> orchestrator = Orchestrator(providers=[StockProvider()])
    >>> output = await orchestrator.run_async(ctx)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from copilotrm.core.models import AgentExecutionResult, EvaluationResult, OrchestratorContext


class AgentProvider(ABC):
    """Fetches external data for a run before the agents execute.

    Attributes:
        name: Key of the returned data in ``ctx.enriched_data``.
    """

    name: str = "provider"

    @abstractmethod
    async def provide(self, ctx: OrchestratorContext) -> Any:
        """Return the data to attach to the context."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class AgentEvaluator(ABC):
    """Reviews the agent results of a run."""

    name: str = "evaluator"

    @abstractmethod
    async def evaluate(
        self,
        ctx: OrchestratorContext,
        results: list[AgentExecutionResult],
    ) -> EvaluationResult:
        """Judge ``results`` (successful agents only, registry order)."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
