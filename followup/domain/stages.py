from __future__ import annotations

from enum import Enum


class Tier(str, Enum):
    A = "A"
    B = "B"
    C = "C"


class Area(str, Enum):
    MARKETING = "Marketing"
    RND = "R&D"
    PROCUREMENT = "Procurement"
    COMMERCIAL = "Commercial"
    DIRECTORS = "Directors"


# Canonical display and counting order.
AREAS: tuple[Area, ...] = (
    Area.MARKETING,
    Area.RND,
    Area.PROCUREMENT,
    Area.COMMERCIAL,
    Area.DIRECTORS,
)


class Channel(str, Enum):
    CALL = "call"
    WHATSAPP = "whatsapp"
    EMAIL = "email"


class ScoreLabel(str, Enum):
    STRONG = "Strong"
    OK = "Ok"
    RISK = "Risk"


class Tone(str, Enum):
    GOOD = "good"
    NEUTRAL = "neutral"
    WARN = "warn"


class Badge(str, Enum):
    NEVER = "never"
    OK = "ok"
    DUE = "due"
