"""
Core module - listing wizard, moderation gate and shared schemas.
"""
from beckah.core.moderation import ModerationGate, ModerationVerdict, get_moderation_gate
from beckah.core.wizard import WizardStep, next_step

__all__ = [
    # Wizard
    "WizardStep",
    "next_step",
    # Moderation
    "ModerationGate",
    "ModerationVerdict",
    "get_moderation_gate",
]
