from followup.domain.models import Account, Contact, Interaction
from followup.domain.rules import ValidationError
from followup.domain.stages import AREAS, Area, Channel, ScoreLabel, Tier, Tone

__all__ = [
    "AREAS",
    "Account",
    "Area",
    "Channel",
    "Contact",
    "Interaction",
    "ScoreLabel",
    "Tier",
    "Tone",
    "ValidationError",
]
