"""
CopilotRM Test Suite
====================

Test organization mirrors the source code structure:
    tests/
    ├── test_core/          → copilotrm.core (config, models, state, exceptions)
    ├── test_agents/        → copilotrm.agents (base, registry, specialists, personas)
    ├── test_orchestration/ → copilotrm.orchestration (rules, scoring, swarm, discussion)
    ├── test_infrastructure/→ copilotrm.infrastructure (audit trail)
    ├── test_integrations/  → copilotrm.integrations (LLM provider)
    ├── test_integration/   → End-to-end tests through the facade
    ├── test_facade.py      → CopilotRM facade
    └── conftest.py         → Shared pytest fixtures

Running Tests:
    pytest                          # Run all tests
    pytest tests/test_orchestration/ # Run only orchestration tests
    pytest --cov=copilotrm          # Run with coverage report
"""
