"""
AisAB - Behaviour Module

Raise/maintain/lower state machine for abnormal events.
"""

from aisab.behaviour.behaviour_manager import (
    BehaviourManager,
    Judgment,
    Transition,
    Verdict
)

__all__ = [
    "BehaviourManager",
    "Judgment",
    "Transition",
    "Verdict",
]
