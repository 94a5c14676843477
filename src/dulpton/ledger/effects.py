"""Store item effects.

The catalog stores effects as free-form JSON keyed by item type. They are
parsed into one of the variants below at the point of purchase. Only a
mining-power boost on a ``mining`` item changes user stats; every other
variant is recorded in the inventory for other features to read and has no
effect on balances here.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Union

from dulpton.db.models import StoreItem, User
from dulpton.ledger.clock import ensure_utc

ITEM_TYPES = frozenset({"mining", "staking", "profile", "learning", "boost"})


@dataclass(frozen=True)
class MiningBoost:
    # Exact, so fractional boosts such as 12.5 floor correctly.
    percent: Decimal


@dataclass(frozen=True)
class EfficiencyBoost:
    percent: int


@dataclass(frozen=True)
class StakingApyBoost:
    bps: int


@dataclass(frozen=True)
class EarningsMultiplier:
    factor: float
    duration_ms: int | None = None


@dataclass(frozen=True)
class Badge:
    name: str


@dataclass(frozen=True)
class UnlockContent:
    content_id: str


@dataclass(frozen=True)
class UnknownEffect:
    payload: dict[str, Any] = field(default_factory=dict)


ItemEffect = Union[
    MiningBoost,
    EfficiencyBoost,
    StakingApyBoost,
    EarningsMultiplier,
    Badge,
    UnlockContent,
    UnknownEffect,
]


def parse_effect(payload: dict[str, Any] | None) -> ItemEffect:
    """Map a stored effect payload to its variant. Unrecognized shapes become ``UnknownEffect``."""
    data = payload or {}
    if data.get("miningPowerBoost"):
        return MiningBoost(percent=Decimal(str(data["miningPowerBoost"])))
    if data.get("miningEfficiencyBoost"):
        return EfficiencyBoost(percent=int(data["miningEfficiencyBoost"]))
    if data.get("stakingApyBoost"):
        return StakingApyBoost(bps=int(data["stakingApyBoost"]))
    if data.get("earningsMultiplier"):
        duration = data.get("duration")
        return EarningsMultiplier(
            factor=float(data["earningsMultiplier"]),
            duration_ms=int(duration) if duration is not None else None,
        )
    if data.get("badge"):
        return Badge(name=str(data["badge"]))
    if data.get("unlockContent"):
        return UnlockContent(content_id=str(data["unlockContent"]))
    return UnknownEffect(payload=dict(data))


def apply_effect(item_type: str, effect: ItemEffect, user: User) -> dict[str, Any]:
    """Durable user changes caused by buying an item with ``effect``.

    Boost percentages compound: each purchase applies to the current power.
    """
    if isinstance(effect, MiningBoost):
        if item_type != "mining":
            return {}
        bonus = math.floor(user.mining_power * effect.percent / 100)
        return {"mining_power": user.mining_power + bonus}
    if isinstance(effect, (EfficiencyBoost, StakingApyBoost, EarningsMultiplier, Badge, UnlockContent)):
        return {}
    if isinstance(effect, UnknownEffect):
        return {}
    msg = f"Unhandled item effect: {effect!r}"
    raise TypeError(msg)


def inventory_expiry(item: StoreItem, now: datetime) -> datetime | None:
    """``now + duration`` for boost items, otherwise no expiry."""
    if item.type != "boost":
        return None
    duration = (item.effect or {}).get("duration")
    if duration is None:
        return None
    return ensure_utc(now) + timedelta(milliseconds=int(duration))  # type: ignore[operator]
