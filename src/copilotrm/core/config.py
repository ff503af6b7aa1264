"""
copilotrm.core.config - Configuration Management
==================================================

Configuration for the CopilotRM engine. Values are resolved with the
following priority (highest first):

    1. Explicit constructor arguments
    2. Environment variables (prefixed with COPILOTRM_)
    3. YAML configuration file (copilotrm.yaml)
    4. Default values defined in the models below

Architecture Context:
    The top-level CopilotConfig is created once and handed to the facade,
    which passes each section to the component that owns it:

        CopilotConfig
            ├── LLMConfig           → LLM provider (discussion turns)
            ├── OrchestratorConfig  → Orchestrator / materializer
            ├── SwarmConfig         → SwarmRecorder, swarm store queries
            └── DiscussionConfig    → DiscussionCoordinator

    Scoring weights are deliberately absent: the ranking formula is fixed.

Usage:
    config = CopilotConfig()
    config = load_config("copilotrm.yaml")
    config = CopilotConfig(discussion=DiscussionConfig(llm_timeout_seconds=5))

Environment Variables:
    COPILOTRM_LOG_LEVEL=DEBUG
    COPILOTRM_LLM__PROVIDER=mock
    COPILOTRM_SWARM__MAX_HANDOFF_DEPTH=1
    COPILOTRM_DISCUSSION__LLM_TIMEOUT_SECONDS=10
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings

from copilotrm.core.exceptions import ConfigurationError


# =============================================================================
# LLM Configuration
# =============================================================================
class LLMConfig(BaseModel):
    """Configuration for the language-model collaborator.

    The engine only uses the model to write discussion turns; ranking and
    handoffs never depend on it.

    Attributes:
        provider: Provider key understood by create_llm_provider().
        model: Model identifier within the provider.
        api_key: Authentication key (None for the mock provider).
        temperature: Sampling temperature.
        max_tokens: Default cap on generated tokens per call.
        api_base_url: Custom endpoint (proxies, self-hosted models).
    """

    provider: str = Field(default="mock", description="LLM provider name")
    model: str = Field(default="mock-model", description="Model identifier")
    api_key: Optional[str] = Field(default=None, description="API key (None for mock)")
    temperature: float = Field(default=0.4, ge=0.0, le=2.0)
    max_tokens: int = Field(default=400, ge=1, le=128000)
    api_base_url: Optional[str] = Field(default=None)


# =============================================================================
# Orchestrator Configuration
# =============================================================================
class OrchestratorConfig(BaseModel):
    """Knobs for the synchronous pipeline.

    Attributes:
        min_actionable_confidence: Ranked candidates below this confidence
            are kept in ranked_actions but not materialized into tasks or
            drafts. 0.0 materializes everything.
    """

    min_actionable_confidence: float = Field(default=0.0, ge=0.0, le=1.0)


# =============================================================================
# Swarm Configuration
# =============================================================================
class SwarmConfig(BaseModel):
    """Knobs for the traced execution mode.

    Attributes:
        max_handoff_depth: How many levels of handoff-triggered agent
            executions a run may chain. 0 records handoffs but never
            executes them.
        list_runs_limit: Default page size for list_runs().
    """

    max_handoff_depth: int = Field(default=2, ge=0, le=10)
    list_runs_limit: int = Field(default=50, ge=1, le=1000)


# =============================================================================
# Discussion Configuration
# =============================================================================
class DiscussionConfig(BaseModel):
    """Knobs for the sequential discussion protocol.

    Attributes:
        llm_timeout_seconds: Upper bound for a single turn. A turn that
            exceeds it degrades to its fallback text.
        max_brief_agents: Cap on agents taken from the brief's mentions.
        max_extra_mentions: Cap on agents invoked because a first-round
            responder mentioned them.
        max_defenders: Cap on agents invoked to answer the critic.
        max_words_per_turn: Length hint inserted in every prompt.
        agents_with_open_tickets: Fallback responders when the brief has
            no mentions and the customer has open tickets.
        agents_without_open_tickets: Fallback responders otherwise.
    """

    llm_timeout_seconds: float = Field(default=20.0, gt=0)
    max_brief_agents: int = Field(default=3, ge=1, le=6)
    max_extra_mentions: int = Field(default=2, ge=0, le=6)
    max_defenders: int = Field(default=2, ge=0, le=6)
    max_words_per_turn: int = Field(default=120, ge=10, le=1000)
    agents_with_open_tickets: list[str] = Field(
        default_factory=lambda: ["Assistenza", "Commerciale"],
    )
    agents_without_open_tickets: list[str] = Field(
        default_factory=lambda: ["Commerciale", "CustomerCare"],
    )


# =============================================================================
# Main Configuration
# =============================================================================
# Environment Variable Mapping:
#   COPILOTRM_LOG_LEVEL                  → config.log_level
#   COPILOTRM_ENVIRONMENT                → config.environment
#   COPILOTRM_LLM__PROVIDER              → config.llm.provider
#   COPILOTRM_SWARM__MAX_HANDOFF_DEPTH   → config.swarm.max_handoff_depth
# =============================================================================
class CopilotConfig(BaseSettings):
    """Top-level configuration for the CopilotRM engine.

    Attributes:
        environment: Deployment environment.
        log_level: Logging level name; structlog output is filtered by the
            host application's logging setup.
        llm: Language-model collaborator settings.
        orchestrator: Synchronous pipeline settings.
        swarm: Traced execution settings.
        discussion: Discussion protocol settings.

    Example:
        >>> config = CopilotConfig(
        ...     environment="dev",
        ...     swarm=SwarmConfig(max_handoff_depth=0),
        ... )
    """

    # -------------------------------------------------------------------------
    # General Settings
    # -------------------------------------------------------------------------
    environment: Literal["dev", "staging", "prod"] = Field(default="dev")
    log_level: str = Field(default="INFO")

    # -------------------------------------------------------------------------
    # Nested Configurations
    # -------------------------------------------------------------------------
    llm: LLMConfig = Field(default_factory=LLMConfig)
    orchestrator: OrchestratorConfig = Field(default_factory=OrchestratorConfig)
    swarm: SwarmConfig = Field(default_factory=SwarmConfig)
    discussion: DiscussionConfig = Field(default_factory=DiscussionConfig)

    model_config = {
        "env_prefix": "COPILOTRM_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
    }


# =============================================================================
# Configuration Loader
# =============================================================================
def load_config(path: Optional[str] = None) -> CopilotConfig:
    """Load configuration from a YAML file and/or environment variables.

    Args:
        path: Path to a YAML file. If None, ``copilotrm.yaml`` in the current
            directory is used when present; otherwise defaults + env vars.

    Returns:
        A fully validated CopilotConfig.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
        ConfigurationError: If the YAML is malformed, its root is not a
            mapping, or a value fails validation.

    Example:
        >>> config = load_config("copilotrm.yaml")
    """
    if path is None:
        default_path = Path("copilotrm.yaml")
        if default_path.exists():
            path = str(default_path)

    yaml_data: dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {path}. "
                f"Create one or rely on COPILOTRM_* environment variables."
            )

        with open(config_path) as f:
            try:
                raw_data = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ConfigurationError(
                    message=f"Malformed YAML in {path}",
                    error_code="CONFIG_YAML_INVALID",
                    details={"path": path, "error": str(exc)},
                ) from exc

        if raw_data is not None and not isinstance(raw_data, dict):
            raise ConfigurationError(
                message=f"Configuration root in {path} must be a mapping",
                error_code="CONFIG_YAML_INVALID",
                details={"path": path, "root_type": type(raw_data).__name__},
            )
        yaml_data = raw_data or {}

    try:
        return CopilotConfig(**yaml_data)
    except ValidationError as exc:
        raise ConfigurationError(
            message="Configuration failed validation",
            error_code="CONFIG_VALIDATION_FAILED",
            details={"path": path, "errors": exc.errors(include_url=False)},
        ) from exc


def get_default_config() -> CopilotConfig:
    """Create a CopilotConfig from defaults and environment variables."""
    return CopilotConfig()
