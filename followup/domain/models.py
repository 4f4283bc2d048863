from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from followup.domain import rules
from followup.domain.stages import Area, Channel, Tier


@dataclass(frozen=True)
class Account:
    id: str
    name: str
    tier: Tier
    country: str | None = None
    value_usd: float | None = None
    last_interaction_at: datetime | None = None
    business_hook: str | None = None
    owner: str | None = None
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", rules.require(self.name, "name"))
        object.__setattr__(self, "tier", rules.validate_enum(self.tier, Tier, "tier"))
        rules.non_negative(self.value_usd, "value_usd")
        object.__setattr__(
            self,
            "last_interaction_at",
            rules.parse_datetime(self.last_interaction_at, "last_interaction_at"),
        )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Account:
        return cls(
            id=row["account_id"],
            name=row["name"],
            tier=row["tier"],
            country=row["country"],
            value_usd=row["value_usd"],
            last_interaction_at=row["last_interaction_at"],
            business_hook=row["business_hook"],
            owner=row["owner"],
            created_at=rules.parse_datetime(row["created_at"], "created_at"),
        )


@dataclass(frozen=True)
class Contact:
    id: str
    account_id: str
    name: str
    area: Area
    email: str | None = None
    preferred_channel: Channel | None = None
    personal_hook: str | None = None
    last_touch_at: datetime | None = None
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        rules.require(self.account_id, "account_id")
        object.__setattr__(self, "name", rules.require(self.name, "name"))
        object.__setattr__(self, "area", rules.validate_enum(self.area, Area, "area"))
        object.__setattr__(
            self,
            "preferred_channel",
            rules.validate_optional_enum(self.preferred_channel, Channel, "preferred_channel"),
        )
        object.__setattr__(
            self, "last_touch_at", rules.parse_datetime(self.last_touch_at, "last_touch_at")
        )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Contact:
        return cls(
            id=row["contact_id"],
            account_id=row["account_id"],
            name=row["name"],
            area=row["area"],
            email=row["email"],
            preferred_channel=row["preferred_channel"],
            personal_hook=row["personal_hook"],
            last_touch_at=row["last_touch_at"],
            created_at=rules.parse_datetime(row["created_at"], "created_at"),
        )


@dataclass(frozen=True)
class Interaction:
    id: str
    account_id: str
    contact_id: str | None
    channel: Channel
    summary: str
    next_step: str
    next_step_date: date
    created_at: datetime
    objection_tag: str | None = None
    target_price: float | None = None
    risk_technical: bool = False
    risk_regulatory: bool = False
    risk_commercial: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "channel", rules.validate_enum(self.channel, Channel, "channel")
        )
        object.__setattr__(
            self, "next_step_date", rules.parse_date(self.next_step_date, "next_step_date")
        )
        object.__setattr__(self, "created_at", rules.parse_datetime(self.created_at, "created_at"))

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Interaction:
        return cls(
            id=row["interaction_id"],
            account_id=row["account_id"],
            contact_id=row["contact_id"],
            channel=row["channel"],
            summary=row["summary"],
            next_step=row["next_step"],
            next_step_date=row["next_step_date"],
            created_at=row["created_at"],
            objection_tag=row["objection_tag"],
            target_price=row["target_price"],
            risk_technical=bool(row["risk_technical"]),
            risk_regulatory=bool(row["risk_regulatory"]),
            risk_commercial=bool(row["risk_commercial"]),
        )
