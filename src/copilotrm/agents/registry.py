"""
copilotrm.agents.registry - Ordered Agent Registry
====================================================

The AgentRegistry is the explicit roster of specialist agents handed to
the orchestrator, the swarm recorder and the facade by constructor
injection. Registration order IS execution order: the synchronous pipeline
and the traced recorder both walk the registry front to back, asking each
agent ``supports(event_type)``, and step numbers in a swarm run follow
that order.

Default Roster (execution order):

    ┌────┬───────────────┬──────────────────────────────────────────┐
    │ #  │ Agent         │ Reacts to                                │
    ├────┼───────────────┼──────────────────────────────────────────┤
    │ 1  │ assistance    │ assistance.*                             │
    │ 2  │ preventivi    │ ticket outcome                           │
    │ 3  │ telephony     │ ticket outcome, promo                    │
    │ 4  │ energy        │ ticket outcome, promo                    │
    │ 5  │ hardware      │ invoice, ticket outcome                  │
    │ 6  │ customer-care │ inbound email / whatsapp                 │
    │ 7  │ content       │ invoice, promo                           │
    │ 8  │ compliance    │ every event                              │
    └────┴───────────────┴──────────────────────────────────────────┘

Usage:
    >>> registry = create_default_registry()
    >>> [a.name.value for a in registry.supporting(EventType.INVOICE_INGESTED)]
    ['hardware', 'content', 'compliance']
"""

from __future__ import annotations

from typing import Iterator, Optional, Union

import structlog

from copilotrm.agents.base import BusinessAgent
from copilotrm.agents.commercial import EnergyAgent, HardwareAgent, PreventiviAgent, TelephonyAgent
from copilotrm.agents.governance import ComplianceAgent
from copilotrm.agents.marketing import ContentAgent
from copilotrm.agents.service import AssistanceAgent, CustomerCareAgent
from copilotrm.core.enums import AgentName, EventType
from copilotrm.core.exceptions import AgentError


logger = structlog.get_logger()


class AgentRegistry:
    """Ordered collection of BusinessAgents, one per AgentName.

    Attributes:
        _agents: Agents keyed by name; dict insertion order is execution order.
    """

    def __init__(self, agents: Optional[list[BusinessAgent]] = None) -> None:
        self._agents: dict[AgentName, BusinessAgent] = {}
        self._logger = logger.bind(component="agent_registry")
        for agent in agents or []:
            self.register(agent)

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, agent: BusinessAgent) -> None:
        """Append an agent to the roster.

        Raises:
            AgentError: If an agent with the same name is already registered.
        """
        if agent.name in self._agents:
            raise AgentError(
                message=f"Agent '{agent.name.value}' is already registered",
                agent_name=agent.name.value,
                error_code="AGENT_ALREADY_REGISTERED",
            )
        self._agents[agent.name] = agent
        self._logger.debug(
            "agent_registered",
            agent=agent.name.value,
            total_agents=len(self._agents),
        )

    def unregister(self, name: Union[AgentName, str]) -> bool:
        """Remove an agent. Returns False if it was not registered."""
        agent = self.get(name)
        if agent is None:
            return False
        key = agent.name
        del self._agents[key]
        self._logger.debug("agent_unregistered", agent=key.value)
        return True

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, name: Union[AgentName, str]) -> Optional[BusinessAgent]:
        """Look up an agent by name; None for unknown or unregistered names."""
        try:
            key = AgentName(name)
        except ValueError:
            return None
        return self._agents.get(key)

    def supporting(self, event_type: EventType) -> list[BusinessAgent]:
        """Agents whose supports(event_type) is True, in registry order."""
        return [agent for agent in self._agents.values() if agent.supports(event_type)]

    def names(self) -> list[AgentName]:
        return list(self._agents)

    def __contains__(self, name: object) -> bool:
        return self.get(name) is not None  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[BusinessAgent]:
        return iter(list(self._agents.values()))

    def __len__(self) -> int:
        return len(self._agents)

    def __repr__(self) -> str:
        return f"AgentRegistry(agents={[n.value for n in self._agents]!r})"


def create_default_registry() -> AgentRegistry:
    """Build the registry with the eight specialists in execution order."""
    return AgentRegistry(
        [
            AssistanceAgent(),
            PreventiviAgent(),
            TelephonyAgent(),
            EnergyAgent(),
            HardwareAgent(),
            CustomerCareAgent(),
            ContentAgent(),
            ComplianceAgent(),
        ]
    )
