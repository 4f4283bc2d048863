"""Intimacy scoring: recency decay plus area coverage, and next-contact selection.

Every function here is pure. ``now`` is always passed in by the caller so a
whole worklist is judged against one instant.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from followup.domain import rules
from followup.domain.models import Account, Contact
from followup.domain.stages import AREAS, Area, Badge, ScoreLabel, Tier, Tone

CADENCE_DAYS: dict[Tier, int] = {Tier.A: 7, Tier.B: 14, Tier.C: 30}

RECENCY_MAX = 60
COVERAGE_MAX = 40
PENALTY_PER_DAY = 5

STRONG_THRESHOLD = 80
OK_THRESHOLD = 55

TONES: dict[ScoreLabel, Tone] = {
    ScoreLabel.STRONG: Tone.GOOD,
    ScoreLabel.OK: Tone.NEUTRAL,
    ScoreLabel.RISK: Tone.WARN,
}

_DAY = timedelta(days=1)


@dataclass(frozen=True)
class IntimacyScore:
    total: int
    label: ScoreLabel
    tone: Tone
    recency: int
    coverage: int
    covered_area_count: int
    missing_areas: tuple[Area, ...]
    counts: dict[Area, int]
    cadence: int
    days: int | None


def days_since(timestamp: datetime | None, now: datetime) -> int | None:
    """Whole days elapsed since ``timestamp``; ``None`` means never.

    Future timestamps clamp to 0.
    """
    if timestamp is None:
        return None
    timestamp = rules.parse_datetime(timestamp, "timestamp")
    now = rules.parse_datetime(now, "now")
    elapsed = (now - timestamp) // _DAY
    return max(0, elapsed)


def cadence_days(tier: Tier | str) -> int:
    return CADENCE_DAYS[rules.validate_enum(tier, Tier, "tier")]


def coverage_by_area(contacts: Iterable[Contact]) -> dict[Area, int]:
    counts = {area: 0 for area in AREAS}
    for contact in contacts:
        counts[rules.validate_enum(contact.area, Area, "area")] += 1
    return counts


def missing_areas(counts: Mapping[Area, int]) -> tuple[Area, ...]:
    return tuple(area for area in AREAS if counts.get(area, 0) == 0)


def covered_area_count(counts: Mapping[Area, int]) -> int:
    return sum(1 for area in AREAS if counts.get(area, 0) > 0)


def coverage_score(counts: Mapping[Area, int]) -> int:
    # Breadth only: five contacts in one area count the same as one.
    return round(COVERAGE_MAX * covered_area_count(counts) / len(AREAS))


def recency_score(days: int | None, cadence: int) -> int:
    if days is None:
        return 0
    if days <= cadence:
        return RECENCY_MAX
    return max(0, RECENCY_MAX - (days - cadence) * PENALTY_PER_DAY)


def score_label(total: int) -> ScoreLabel:
    if total >= STRONG_THRESHOLD:
        return ScoreLabel.STRONG
    if total >= OK_THRESHOLD:
        return ScoreLabel.OK
    return ScoreLabel.RISK


def compute_intimacy_score(
    account: Account, contacts: Sequence[Contact], now: datetime
) -> IntimacyScore:
    cadence = cadence_days(account.tier)
    days = days_since(account.last_interaction_at, now)
    recency = recency_score(days, cadence)

    counts = coverage_by_area(contacts)
    coverage = coverage_score(counts)

    total = max(0, min(100, round(recency + coverage)))
    label = score_label(total)
    return IntimacyScore(
        total=total,
        label=label,
        tone=TONES[label],
        recency=recency,
        coverage=coverage,
        covered_area_count=covered_area_count(counts),
        missing_areas=missing_areas(counts),
        counts=counts,
        cadence=cadence,
        days=days,
    )


def pick_recommended_contact(contacts: Sequence[Contact], now: datetime) -> Contact | None:
    """Return the contact most overdue for outreach.

    Never-touched contacts come first, then the oldest touch. Ties go to the
    lowest contact id.
    """
    if not contacts:
        return None

    def overdue_key(contact: Contact) -> tuple[int, int, str]:
        days = days_since(contact.last_touch_at, now)
        if days is None:
            return (0, 0, contact.id)
        return (1, -days, contact.id)

    return min(contacts, key=overdue_key)


def is_due(account: Account, now: datetime) -> bool:
    days = days_since(account.last_interaction_at, now)
    if days is None:
        return True
    return days > cadence_days(account.tier)


def account_badge(account: Account, now: datetime) -> Badge:
    days = days_since(account.last_interaction_at, now)
    if days is None:
        return Badge.NEVER
    return Badge.DUE if is_due(account, now) else Badge.OK
