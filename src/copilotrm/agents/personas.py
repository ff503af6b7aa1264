"""
copilotrm.agents.personas - Persona Profiles for Discussion Agents
====================================================================

Every voice in an operator discussion speaks through a PersonaProfile:
who it is, its tone, goals and limits. The profile is turned into the
system prompt of each language-model call.

Two families of personas live in the directory:

    Specialists (one per business agent)     System personas
    ┌──────────────┬───────────────┐         ┌───────────────┬──────────────┐
    │ Display name │ Persona key   │         │ Key           │ Display name │
    ├──────────────┼───────────────┤         ├───────────────┼──────────────┤
    │ Assistenza   │ assistance    │         │ orchestratore │ Orchestratore│
    │ Commerciale  │ preventivi    │         │ critico       │ Critico      │
    │ Hardware     │ hardware      │         │ moderatore    │ Moderatore   │
    │ Telefonia    │ telephony     │         └───────────────┴──────────────┘
    │ Energia      │ energy        │
    │ CustomerCare │ customer-care │
    └──────────────┴───────────────┘

Display names are what agents write after "@" in the discussion thread;
SPECIALIST_ROSTER maps them to persona keys. Unknown keys resolve to a
generic profile whose role is "custom business agent".

Usage:
    >>> directory = PersonaDirectory()
    >>> directory.resolve_role("telephony")
    'consulente connettività e telefonia'
    >>> directory.upsert("telephony", tone=["tecnico"])
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal, Optional

import structlog
from pydantic import BaseModel, Field

from copilotrm.core.enums import AgentName


logger = structlog.get_logger()

GENERIC_ROLE = "custom business agent"

ORCHESTRATOR_KEY = "orchestratore"
CRITIC_KEY = "critico"
MODERATOR_KEY = "moderatore"


# =============================================================================
# Discussion Roster
# =============================================================================
# Display name → persona key. Only these names are honoured as @mentions;
# anything else a model writes after "@" is ignored.
# =============================================================================
SPECIALIST_ROSTER: dict[str, str] = {
    "Assistenza": AgentName.ASSISTANCE.value,
    "Commerciale": AgentName.PREVENTIVI.value,
    "Hardware": AgentName.HARDWARE.value,
    "Telefonia": AgentName.TELEPHONY.value,
    "Energia": AgentName.ENERGY.value,
    "CustomerCare": AgentName.CUSTOMER_CARE.value,
}


def canonical_display_name(name: str) -> Optional[str]:
    """Return the roster spelling of ``name`` (case-insensitive), or None."""
    lowered = name.lower()
    for display_name in SPECIALIST_ROSTER:
        if display_name.lower() == lowered:
            return display_name
    return None


# =============================================================================
# Persona Profile
# =============================================================================
class PersonaProfile(BaseModel):
    """A discussion persona.

    Attributes:
        key: Directory key (agent name or system persona key).
        name: Display name used in the thread.
        role: Short role description, shown as ``agent_role`` on every turn.
        system_instructions: Extra instructions appended to the system prompt.
        model_tier: Size hint passed to the language model.
    """

    key: str
    name: str
    role: str = GENERIC_ROLE
    tone: list[str] = Field(default_factory=lambda: ["pratico"])
    goals: list[str] = Field(default_factory=lambda: ["supportare le operazioni commerciali"])
    limits: list[str] = Field(default_factory=lambda: ["rispettare policy e consensi"])
    channels: list[str] = Field(default_factory=lambda: ["whatsapp"])
    style: list[str] = Field(default_factory=lambda: ["chiaro"])
    system_instructions: str = ""
    model_tier: Literal["small", "medium", "large"] = "medium"
    enabled: bool = True
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def system_prompt(self) -> str:
        """Render the persona as a language-model system prompt."""
        prompt = (
            f"Sei {self.name}, {self.role}. "
            f"Tono: {', '.join(self.tone)}. "
            f"Obiettivi: {'; '.join(self.goals)}. "
            f"Limiti: {'; '.join(self.limits)}. "
            "Rispondi in italiano. Sii conciso e diretto."
        )
        if self.system_instructions:
            prompt += f"\n\nIstruzioni aggiuntive:\n{self.system_instructions}"
        return prompt


# =============================================================================
# Built-in Profiles
# =============================================================================
def _builtin_profiles() -> list[PersonaProfile]:
    specialists = [
        PersonaProfile(
            key=AgentName.ASSISTANCE.value,
            name="Assistenza",
            role="tecnico del laboratorio riparazioni",
            tone=["tecnico", "rassicurante"],
            goals=["spiegare l'esito della riparazione", "segnalare opportunità emerse dal ticket"],
            limits=["non promette tempi non verificati"],
        ),
        PersonaProfile(
            key=AgentName.PREVENTIVI.value,
            name="Commerciale",
            role="consulente preventivi e sostituzioni",
            tone=["concreto", "orientato alla vendita"],
            goals=["proporre alternative in 3 fasce di prezzo", "rispettare margini e obiettivi"],
            limits=["non applica sconti non autorizzati"],
        ),
        PersonaProfile(
            key=AgentName.HARDWARE.value,
            name="Hardware",
            role="specialista hardware e rete domestica",
            tone=["tecnico", "preciso"],
            goals=["individuare upgrade utili", "valorizzare lo stock disponibile"],
            limits=["propone solo prodotti disponibili"],
        ),
        PersonaProfile(
            key=AgentName.TELEPHONY.value,
            name="Telefonia",
            role="consulente connettività e telefonia",
            tone=["dinamico", "chiaro"],
            goals=["risolvere problemi di rete con offerte adeguate", "promuovere smartphone in promo"],
            limits=["verifica copertura prima di proporre la fibra"],
        ),
        PersonaProfile(
            key=AgentName.ENERGY.value,
            name="Energia",
            role="consulente contratti luce e gas",
            tone=["trasparente", "paziente"],
            goals=["stimare il risparmio in bolletta"],
            limits=["non stima consumi senza dati reali"],
        ),
        PersonaProfile(
            key=AgentName.CUSTOMER_CARE.value,
            name="CustomerCare",
            role="responsabile assistenza post-vendita",
            tone=["empatico", "tempestivo"],
            goals=["risolvere reclami e ritardi", "proteggere la relazione con il cliente"],
            limits=["niente proposte commerciali su clienti con reclami aperti"],
            channels=["email", "whatsapp"],
        ),
        PersonaProfile(
            key=AgentName.CONTENT.value,
            name="Content",
            role="content creator social e blog",
            tone=["creativo", "coinvolgente"],
            goals=["trasformare stock e promo in contenuti"],
            limits=["rispetta il tono del brand"],
            channels=["telegram", "facebook", "instagram", "blog"],
            model_tier="large",
        ),
        PersonaProfile(
            key=AgentName.COMPLIANCE.value,
            name="Compliance",
            role="garante consensi e privacy",
            tone=["rigoroso"],
            goals=["verificare consensi e saturazione commerciale"],
            limits=["non blocca comunicazioni di servizio"],
            channels=["internal"],
            model_tier="large",
        ),
    ]
    system = [
        PersonaProfile(
            key=ORCHESTRATOR_KEY,
            name="Orchestratore",
            role="coordinatore del team di agenti CopilotRM",
            tone=["autorevole", "chiaro", "sintetico"],
            goals=["delegare al giusto agente", "scrivere brief efficaci con @mentions"],
            limits=["non decide da solo le azioni commerciali"],
            channels=["internal"],
            style=["diretto", "strutturato"],
            model_tier="small",
            system_instructions=(
                "Analizza la richiesta e il contesto cliente, poi scrivi un brief taggando "
                "con @NomeAgente i 2-3 agenti più rilevanti tra: "
                + ", ".join(f"@{n}" for n in SPECIALIST_ROSTER)
                + "."
            ),
        ),
        PersonaProfile(
            key=CRITIC_KEY,
            name="Critico",
            role="revisore avversariale del team",
            tone=["critico", "costruttivo", "diretto"],
            goals=["identificare lacune nelle proposte", "prevenire proposte non supportate dai dati"],
            limits=["se le proposte sono solide conferma senza sfidare"],
            channels=["internal"],
            style=["conciso", "preciso"],
            model_tier="small",
            system_instructions=(
                "Identifica informazioni mancanti, proposte premature e contraddizioni con i "
                "dati CRM. Tagga con @NomeAgente gli agenti da sfidare."
            ),
        ),
        PersonaProfile(
            key=MODERATOR_KEY,
            name="Moderatore",
            role="sintetizzatore finale della discussione",
            tone=["equilibrato", "chiaro", "orientato all'azione"],
            goals=["produrre un'azione consigliata chiara per l'operatore"],
            limits=["non aggiunge opinioni proprie", "riflette il consenso del team"],
            channels=["internal"],
            style=["chiaro", "actionable"],
            model_tier="small",
            system_instructions=(
                "Sintetizza la discussione in un'azione consigliata: azione immediata, "
                "proposta commerciale se rilevante, follow-up. Max 100 parole."
            ),
        ),
    ]
    return specialists + system


# =============================================================================
# Persona Directory
# =============================================================================
class PersonaDirectory:
    """In-memory directory of persona profiles, seeded with the built-ins.

    Profiles can be overridden per key with upsert(); unknown keys resolve
    to a generic profile built on the fly (never stored).
    """

    def __init__(self, profiles: Optional[list[PersonaProfile]] = None) -> None:
        self._profiles: dict[str, PersonaProfile] = {}
        for profile in _builtin_profiles():
            self._profiles[profile.key] = profile
        for profile in profiles or []:
            self._profiles[profile.key] = profile
        self._logger = logger.bind(component="persona_directory")

    def find(self, key: str) -> Optional[PersonaProfile]:
        """Return the stored profile for ``key``, or None."""
        return self._profiles.get(key)

    def get(self, key: str) -> PersonaProfile:
        """Return the profile for ``key``, falling back to a generic one."""
        profile = self._profiles.get(key)
        if profile is None:
            return PersonaProfile(key=key, name=key)
        return profile

    def get_by_display_name(self, display_name: str) -> PersonaProfile:
        """Resolve a roster display name ("Telefonia") to its profile."""
        key = SPECIALIST_ROSTER.get(display_name)
        if key is None:
            return PersonaProfile(key=display_name, name=display_name)
        return self.get(key)

    def resolve_role(self, key: str) -> str:
        return self.get(key).role

    def upsert(self, key: str, **patch: Any) -> PersonaProfile:
        """Create or update a profile, keeping unspecified fields.

        Example:
            >>> directory.upsert("critico", system_instructions="Sii breve.")
        """
        current = self._profiles.get(key) or PersonaProfile(key=key, name=key)
        patch["key"] = key
        patch["updated_at"] = datetime.now(timezone.utc)
        updated = PersonaProfile.model_validate({**current.model_dump(), **patch})
        self._profiles[key] = updated
        self._logger.info("persona_upserted", key=key, fields=sorted(patch))
        return updated

    def list(self) -> list[PersonaProfile]:
        """All stored profiles, sorted by key."""
        return [self._profiles[k] for k in sorted(self._profiles)]

    def __len__(self) -> int:
        return len(self._profiles)
