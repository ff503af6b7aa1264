"""
copilotrm.agents.commercial - Commercial Agents
=================================================

Agents that turn service signals and catalogue changes into sales
opportunities.

    - PreventiviAgent:  replacement quotes in three price bands
    - TelephonyAgent:   connectivity cross-sell and smartphone campaigns
    - EnergyAgent:      energy follow-ups and luce/gas campaigns
    - HardwareAgent:    new stock enablement and upgrade proposals
"""

from copilotrm.agents.commercial.energy_agent import EnergyAgent
from copilotrm.agents.commercial.hardware_agent import HardwareAgent
from copilotrm.agents.commercial.preventivi_agent import PreventiviAgent
from copilotrm.agents.commercial.telephony_agent import TelephonyAgent

__all__ = [
    "EnergyAgent",
    "HardwareAgent",
    "PreventiviAgent",
    "TelephonyAgent",
]
