"""
Synthetic communications log: a timer-fed message feed with link status.

Messages arrive with probability p_message per tick while the link is up;
the link itself flips between connected / degraded / lost on its own
(slower) schedule. Only the newest `capacity` messages are kept.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from tacmap.timers import TimerDriver, TimerFactory

logger = logging.getLogger(__name__)


class Priority(str, Enum):
    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"


class LinkStatus(str, Enum):
    CONNECTED = "connected"
    DEGRADED = "degraded"
    LOST = "lost"


@dataclass(frozen=True)
class CommsMessage:
    id: str
    sender: str
    content: str
    timestamp: float
    priority: Priority
    channel: str = "COMMAND"


CHANNELS = ("COMMAND", "TACTICAL", "RECON", "EMERGENCY")

ROUTINE: Sequence[Tuple[str, str, Priority]] = (
    ("COMMAND", "Maintain current heading and altitude.", Priority.NORMAL),
    ("COMMAND", "Weather conditions deteriorating in your sector.", Priority.NORMAL),
    ("COMMAND", "Standby for new mission parameters.", Priority.HIGH),
    ("INTEL", "Hostile aircraft detected in vicinity. Maintain awareness.", Priority.HIGH),
    ("COMMAND", "URGENT: Return to base immediately.", Priority.CRITICAL),
    ("Delta Squad", "Patrol complete in eastern sector, proceeding to checkpoint gamma.", Priority.NORMAL),
    ("Recon Team Alpha", "Visual contact with target convoy, awaiting instructions.", Priority.NORMAL),
    ("Base Command", "Radar shows unidentified craft at vector 045, altitude 28,000.", Priority.NORMAL),
    ("Maj. Hassan", "Fuel at 45%, returning to base.", Priority.NORMAL),
)

EMERGENCY: Sequence[str] = (
    "Taking fire from eastern ridge, requesting air support!",
    "Engine failure detected, initiating emergency protocols.",
    "Radar jamming detected, switching to backup systems.",
    "Multiple bogeys approaching from vector 130, weapons hot!",
)


class CommsLog:
    def __init__(self, rng: np.random.Generator, *,
                 capacity: int = 8,
                 interval_ms: int = 8000,
                 p_message: float = 0.4,
                 p_emergency: float = 0.15,
                 link_every: int = 2,
                 clock: Callable[[], float] = time.time):
        self.rng = rng
        self.capacity = max(1, int(capacity))
        self.p_message = p_message
        self.p_emergency = p_emergency
        self.link_every = max(1, int(link_every))
        self.clock = clock
        self.messages: List[CommsMessage] = []   # newest first
        self.link = LinkStatus.CONNECTED
        self.latency_ms = 12
        self._seq = 0
        self._ticks = 0
        self._driver = TimerDriver("comms", interval_ms, self.tick)

    def post(self, sender: str, content: str, priority: Priority = Priority.NORMAL,
             channel: str = "COMMAND", now: Optional[float] = None) -> CommsMessage:
        now = self.clock() if now is None else now
        self._seq += 1
        msg = CommsMessage(f"msg-{self._seq}", sender, content, now, Priority(priority), channel)
        self.messages.insert(0, msg)
        del self.messages[self.capacity:]
        return msg

    def _update_link(self, now: float) -> None:
        r = self.rng.random()
        if r > 0.9:
            self.link, self.latency_ms = LinkStatus.LOST, 0
            self.post("SYSTEM", "WARNING: Communications link lost. Attempting to re-establish connection.",
                      Priority.CRITICAL, now=now)
            logger.debug("comms link lost")
        elif r > 0.7:
            self.link = LinkStatus.DEGRADED
            self.latency_ms = int(80 + self.rng.random() * 150)
            self.post("SYSTEM", "Warning: Communications link degraded. Packet loss detected.",
                      Priority.HIGH, now=now)
        elif self.link is not LinkStatus.CONNECTED:
            self.link = LinkStatus.CONNECTED
            self.latency_ms = int(8 + self.rng.random() * 20)
            self.post("SYSTEM", "Communications link restored to optimal status.", now=now)
        else:
            self.latency_ms = int(8 + self.rng.random() * 20)

    def tick(self, now: Optional[float] = None) -> Optional[CommsMessage]:
        now = self.clock() if now is None else now
        self._ticks += 1
        if self._ticks % self.link_every == 0:
            self._update_link(now)
        if self.link is LinkStatus.LOST or self.rng.random() >= self.p_message:
            return None
        if self.rng.random() < self.p_emergency:
            content = EMERGENCY[int(self.rng.integers(len(EMERGENCY)))]
            prio = Priority.CRITICAL if self.rng.random() < 0.5 else Priority.HIGH
            return self.post("MAYDAY", content, prio, channel="EMERGENCY", now=now)
        sender, content, prio = ROUTINE[int(self.rng.integers(len(ROUTINE)))]
        channel = CHANNELS[int(self.rng.integers(len(CHANNELS) - 1))]
        return self.post(sender, content, prio, channel=channel, now=now)

    # ---- lifecycle ----
    def start(self, timer_factory: TimerFactory) -> None:
        self._driver.start(timer_factory)

    def stop(self) -> None:
        self._driver.stop()

    @property
    def running(self) -> bool:
        return self._driver.running
