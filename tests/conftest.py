"""
Shared Test Fixtures for CopilotRM
====================================

Reusable pytest fixtures used across the suite, organized by layer:

    1. Configuration fixtures
    2. Domain fixtures (customer, offers, objectives)
    3. Context fixtures (one per ruled event type)
    4. Infrastructure / orchestration fixtures
    5. Integration fixtures (LLM provider)
    6. Facade fixtures

The catalogue is chosen so that the gamer ticket outcome has a clear winner:

    quote (preventivi, off_nb)      ≈ 4.07
    gamer-lag (telephony, off_fibra) ≈ 7.06   ← preferred by the objective
"""

from __future__ import annotations

import pytest

from copilotrm.agents.personas import PersonaDirectory
from copilotrm.agents.registry import create_default_registry
from copilotrm.core.config import CopilotConfig
from copilotrm.core.enums import EventType, OfferCategory
from copilotrm.core.models import (
    AssistanceTicket,
    ConsentState,
    CustomerProfile,
    DomainEvent,
    ManagerObjective,
    OrchestratorContext,
    ProductOffer,
)
from copilotrm.facade import CopilotRM
from copilotrm.infrastructure.audit_trail import InMemoryAuditTrail
from copilotrm.integrations.llm.mock import MockLLMProvider
from copilotrm.orchestration.agent_bus import AgentBus
from copilotrm.orchestration.orchestrator import Orchestrator
from copilotrm.orchestration.swarm_recorder import SwarmRecorder
from copilotrm.orchestration.swarm_store import InMemorySwarmStore


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture
def config():
    """CopilotRM configuration with defaults."""
    return CopilotConfig()


# =============================================================================
# Domain
# =============================================================================

@pytest.fixture
def customer():
    """A gamer customer reachable on WhatsApp only, lightly saturated."""
    return CustomerProfile(
        id="cust_1",
        full_name="Mario Rossi",
        phone="+393331112233",
        email="mario.rossi@example.com",
        segments=["gamer"],
        interests=["gaming", "fibra"],
        consents=ConsentState(whatsapp=True, email=False, telegram=False),
        commercial_saturation_score=20.0,
    )


@pytest.fixture
def offers():
    """Active catalogue, in catalogue order."""
    return [
        ProductOffer(
            id="off_nb",
            category=OfferCategory.HARDWARE,
            title="Notebook Gaming 15",
            margin_pct=18.0,
            stock_qty=4,
            suggested_price=1299.0,
        ),
        ProductOffer(
            id="off_pc",
            category=OfferCategory.HARDWARE,
            title="PC Desktop RTX",
            margin_pct=22.0,
            stock_qty=2,
            suggested_price=1599.0,
        ),
        ProductOffer(
            id="off_fibra",
            category=OfferCategory.CONNECTIVITY,
            title="Fibra 2.5 Gbit + router WiFi 7",
            margin_pct=35.0,
            stock_qty=50,
        ),
        ProductOffer(
            id="off_phone",
            category=OfferCategory.SMARTPHONE,
            title="Samsung Galaxy S24 bundle",
            margin_pct=12.0,
            stock_qty=10,
        ),
        ProductOffer(
            id="off_luce",
            category=OfferCategory.ENERGY,
            title="Luce e Gas Casa Flex",
            margin_pct=10.0,
        ),
    ]


@pytest.fixture
def connectivity_objective():
    """Manager objective preferring the fibre offer."""
    return ManagerObjective(
        id="obj_1",
        name="Spingere connettività",
        preferred_offer_ids=["off_fibra"],
    )


# =============================================================================
# Contexts
# =============================================================================

@pytest.fixture
def ticket_outcome_event():
    """Not-worth-repairing outcome for a gamer customer."""
    return DomainEvent(
        type=EventType.TICKET_OUTCOME,
        customer_id="cust_1",
        payload={
            "ticketId": "T-100",
            "outcome": "not-worth-repairing",
            "inferredSignals": ["gamer"],
        },
    )


@pytest.fixture
def ticket_outcome_ctx(ticket_outcome_event, customer, offers, connectivity_objective):
    return OrchestratorContext(
        event=ticket_outcome_event,
        customer=customer,
        active_objectives=[connectivity_objective],
        active_offers=offers,
    )


@pytest.fixture
def invoice_ctx(offers):
    """Supplier invoice bringing in a graphics card; no customer."""
    return OrchestratorContext(
        event=DomainEvent(
            type=EventType.INVOICE_INGESTED,
            payload={"lines": [{"description": "RTX 3090 1500€", "qty": 2, "unitCost": 1500}]},
        ),
        active_offers=offers,
    )


@pytest.fixture
def promo_ctx(offers):
    """Smartphone promo from the vendor feed; no customer."""
    return OrchestratorContext(
        event=DomainEvent(
            type=EventType.PROMO_INGESTED,
            payload={"title": "Samsung Galaxy S24 promo bundle", "offerId": "off_phone"},
        ),
        active_offers=offers,
    )


@pytest.fixture
def complaint_ctx(customer, offers):
    """Inbound complaint email from a customer without email consent."""
    return OrchestratorContext(
        event=DomainEvent(
            type=EventType.INBOUND_EMAIL,
            customer_id="cust_1",
            payload={
                "subject": "Contratto 4 giorni fa, non ho ricevuto niente",
                "body": "Buongiorno, attendo ancora la consegna.",
                "from": "mario.rossi@example.com",
            },
        ),
        customer=customer,
        active_offers=offers,
    )


@pytest.fixture
def open_ticket():
    return AssistanceTicket(
        id="T-100",
        customer_id="cust_1",
        device_type="notebook",
        issue="scheda madre guasta",
        status="open",
    )


# =============================================================================
# Infrastructure / Orchestration
# =============================================================================

@pytest.fixture
def registry():
    """Default registry with the eight specialists."""
    return create_default_registry()


@pytest.fixture
def orchestrator(registry):
    return Orchestrator(registry)


@pytest.fixture
def swarm_store():
    """Fresh InMemorySwarmStore."""
    return InMemorySwarmStore()


@pytest.fixture
def recorder(swarm_store, orchestrator):
    """SwarmRecorder over a fresh store and the default registry."""
    return SwarmRecorder(swarm_store, orchestrator)


@pytest.fixture
def audit_trail():
    return InMemoryAuditTrail()


@pytest.fixture
def agent_bus():
    """Fresh, not yet connected AgentBus."""
    return AgentBus()


@pytest.fixture
def personas():
    return PersonaDirectory()


# =============================================================================
# LLM Provider
# =============================================================================

@pytest.fixture
def mock_llm_provider():
    """Fresh MockLLMProvider with no queued responses."""
    return MockLLMProvider()


# =============================================================================
# Facade
# =============================================================================

@pytest.fixture
async def copilot(mock_llm_provider):
    """Initialized CopilotRM wired to the mock LLM provider."""
    copilot = CopilotRM(llm_provider=mock_llm_provider)
    await copilot.initialize()
    yield copilot
    await copilot.shutdown()
