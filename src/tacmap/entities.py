# src/tacmap/entities.py
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from tacmap.geo.coords import Coordinate, RegionBounds


class EntityKind(str, Enum):
    AIRCRAFT = "aircraft"
    GROUND = "ground"
    NAVAL = "naval"
    DEFENSE = "defense"
    BASE = "base"
    RADAR = "radar"
    TARGET = "target"
    THREAT = "threat"
    UNIT = "unit"


class Alliance(str, Enum):
    ALLY = "ally"
    ENEMY = "enemy"
    NEUTRAL = "neutral"


class EntityStatus(str, Enum):
    ACTIVE = "active"
    DAMAGED = "damaged"
    RETURNING = "returning"
    ENGAGING = "engaging"
    RETIRED = "retired"


TRANSIENT_KINDS = (EntityKind.TARGET, EntityKind.THREAT)

# next-status candidates with relative weights; RETIRED is terminal and
# only reachable by transient (target/threat) entities
STATUS_TRANSITIONS: Dict[EntityStatus, Tuple[Tuple[EntityStatus, float], ...]] = {
    EntityStatus.ACTIVE: (
        (EntityStatus.DAMAGED, 1.0),
        (EntityStatus.RETURNING, 1.0),
        (EntityStatus.ENGAGING, 1.0),
    ),
    EntityStatus.DAMAGED: ((EntityStatus.ACTIVE, 4.0), (EntityStatus.RETIRED, 1.0)),
    EntityStatus.RETURNING: ((EntityStatus.ACTIVE, 4.0), (EntityStatus.RETIRED, 1.0)),
    EntityStatus.ENGAGING: ((EntityStatus.ACTIVE, 4.0), (EntityStatus.RETIRED, 1.0)),
    EntityStatus.RETIRED: (),
}


def next_statuses(status: EntityStatus, transient: bool) -> Tuple[Tuple[EntityStatus, float], ...]:
    options = STATUS_TRANSITIONS[status]
    if transient:
        return options
    return tuple(o for o in options if o[0] is not EntityStatus.RETIRED)


@dataclass(frozen=True)
class KindProfile:
    speed_range: Tuple[float, float]
    altitude_range: Optional[Tuple[float, float]]
    step_deg: float          # displacement per moving tick
    mobile: Optional[bool]   # None = coin flip at seeding
    speed_jitter: float = 10.0
    altitude_jitter: float = 500.0


KIND_PROFILES: Dict[EntityKind, KindProfile] = {
    EntityKind.AIRCRAFT: KindProfile((200.0, 800.0), (5000.0, 45000.0), 0.05, True),
    EntityKind.GROUND:   KindProfile((0.0, 80.0), None, 0.01, None),
    EntityKind.UNIT:     KindProfile((0.0, 80.0), None, 0.01, None),
    EntityKind.NAVAL:    KindProfile((0.0, 80.0), None, 0.01, True),
    EntityKind.TARGET:   KindProfile((0.0, 600.0), (0.0, 30000.0), 0.03, True),
    EntityKind.THREAT:   KindProfile((0.0, 600.0), (0.0, 30000.0), 0.03, True),
    EntityKind.DEFENSE:  KindProfile((0.0, 0.0), None, 0.0, False),
    EntityKind.BASE:     KindProfile((0.0, 0.0), None, 0.0, False),
    EntityKind.RADAR:    KindProfile((0.0, 0.0), None, 0.0, False),
}

CALLSIGNS: Dict[EntityKind, Sequence[str]] = {
    EntityKind.AIRCRAFT: ("EAGLE", "FALCON", "HORUS", "ANUBIS", "SPHINX", "PHARAOH", "NILE", "PYRAMID"),
    EntityKind.GROUND:   ("DESERT", "SCORPION", "CHARIOT", "OASIS", "OSIRIS", "SANDS", "DUNE"),
    EntityKind.UNIT:     ("DESERT", "SCORPION", "CHARIOT", "OASIS", "OSIRIS", "SANDS", "DUNE"),
    EntityKind.DEFENSE:  ("SHIELD", "GUARDIAN", "FORTRESS", "BASTION", "RAMSES", "WALL"),
    EntityKind.BASE:     ("FORTRESS", "BASTION", "RAMSES"),
    EntityKind.RADAR:    ("WATCHER", "SENTRY", "BEACON"),
    EntityKind.NAVAL:    ("WAVE", "DELTA", "CURRENT", "TIDE", "SUEZ"),
    EntityKind.TARGET:   ("BANDIT", "BOGEY"),
    EntityKind.THREAT:   ("HOSTILE", "VAMPIRE"),
}

SEED_KINDS = (EntityKind.AIRCRAFT, EntityKind.GROUND, EntityKind.DEFENSE, EntityKind.NAVAL)


class MalformedEntityError(ValueError):
    pass


@dataclass
class TrackedEntity:
    id: str
    kind: EntityKind
    callsign: str
    alliance: Alliance
    position: Coordinate
    heading: float = 0.0
    speed: Optional[float] = None
    altitude: Optional[float] = None
    status: EntityStatus = EntityStatus.ACTIVE
    last_update: float = 0.0
    mobile: bool = False
    transient: bool = False

    @property
    def profile(self) -> KindProfile:
        return KIND_PROFILES[self.kind]

    def copy(self) -> "TrackedEntity":
        return replace(self)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "callsign": self.callsign,
            "alliance": self.alliance.value,
            "lat": self.position.lat,
            "lng": self.position.lng,
            "heading": self.heading,
            "speed": self.speed,
            "altitude": self.altitude,
            "status": self.status.value,
            "last_update": self.last_update,
        }


def validate_entity(e: TrackedEntity) -> TrackedEntity:
    """Coerce enum fields and check numeric ranges; raises MalformedEntityError."""
    if not isinstance(e, TrackedEntity):
        raise MalformedEntityError(f"not a TrackedEntity: {e!r}")
    if not e.id:
        raise MalformedEntityError("entity without id")
    try:
        e.kind = EntityKind(e.kind)
        e.alliance = Alliance(e.alliance)
        e.status = EntityStatus(e.status)
    except ValueError as exc:
        raise MalformedEntityError(f"{e.id}: {exc}") from exc
    if not isinstance(e.position, Coordinate):
        raise MalformedEntityError(f"{e.id}: position must be a Coordinate")
    try:
        heading = float(e.heading)
    except (TypeError, ValueError):
        raise MalformedEntityError(f"{e.id}: heading {e.heading!r}")
    if not math.isfinite(heading):
        raise MalformedEntityError(f"{e.id}: heading {e.heading!r}")
    e.heading = heading % 360.0
    for name in ("speed", "altitude"):
        v = getattr(e, name)
        if v is None:
            continue
        try:
            v = float(v)
        except (TypeError, ValueError):
            raise MalformedEntityError(f"{e.id}: {name} {v!r}")
        if not (math.isfinite(v) and v >= 0.0):
            raise MalformedEntityError(f"{e.id}: {name} {v!r}")
        setattr(e, name, v)
    return e


# ---------------- seeding ----------------

def _pick(rng: np.random.Generator, items: Sequence):
    return items[int(rng.integers(len(items)))]


def make_entity(rng: np.random.Generator, kind: EntityKind, position: Coordinate,
                entity_id: str, alliance: Optional[Alliance] = None,
                now: float = 0.0) -> TrackedEntity:
    prof = KIND_PROFILES[kind]
    mobile = bool(rng.random() < 0.5) if prof.mobile is None else prof.mobile
    lo, hi = prof.speed_range
    speed = float(rng.uniform(lo, hi)) if hi > 0 else None
    altitude = float(rng.uniform(*prof.altitude_range)) if prof.altitude_range else None
    return TrackedEntity(
        id=entity_id,
        kind=kind,
        callsign=f"{_pick(rng, CALLSIGNS[kind])}-{int(rng.integers(100))}",
        alliance=alliance if alliance is not None else _pick(rng, list(Alliance)),
        position=position,
        heading=float(rng.integers(360)),
        speed=speed,
        altitude=altitude,
        last_update=now,
        mobile=mobile,
        transient=kind in TRANSIENT_KINDS,
    )


def seed_entities(rng: np.random.Generator, bounds: RegionBounds, count: int,
                  kinds: Sequence[EntityKind] = SEED_KINDS, now: float = 0.0) -> List[TrackedEntity]:
    """Persistent units spread uniformly over the theatre."""
    out: List[TrackedEntity] = []
    for i in range(max(0, int(count))):
        kind = _pick(rng, kinds)
        out.append(make_entity(rng, kind, bounds.random_point(rng), f"{kind.value}-{i}", now=now))
    return out
