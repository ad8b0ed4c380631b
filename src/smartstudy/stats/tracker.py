# src/smartstudy/stats/tracker.py

"""
Gamification counters (xp, streak, level, focus minutes, badges).

Policies:
- xp and total_focus_minutes only grow.
- streak counts calendar days with at least one completion; consecutive days
  extend it, a gap resets it to 1. The first recorded day keeps a carried-over
  streak (the seed's 3) instead of resetting it.
- level is promoted while xp >= (level + 1) * 100 (the dashboard's "next" threshold).
- badges are appended once, in the order they are earned.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass

from ..core.ports import KeyValueStore
from ..tasks.task_models import UserStats, add_days, default_stats, is_iso_date

logger = logging.getLogger(__name__)

FOCUS_XP_PER_MINUTE = 2
LEVEL_STEP_XP = 100


@dataclass(slots=True, frozen=True)
class Badge:
    id: str
    name: str
    description: str
    condition: Callable[[UserStats], bool]


BADGES: tuple[Badge, ...] = (
    Badge("early_bird", "Early Bird", "Joined the planner.", lambda s: False),
    Badge("deep_work", "Deep Work", "Focus for 300 minutes in total.", lambda s: s.total_focus_minutes >= 300),
    Badge("on_fire", "On Fire", "Complete tasks 7 days in a row.", lambda s: s.streak >= 7),
    Badge("scholar", "Scholar", "Reach level 10.", lambda s: s.level >= 10),
)


@dataclass(slots=True, frozen=True)
class LevelProgress:
    xp: int
    level: int
    next_threshold: int
    percent: int


class StatsTracker:
    def __init__(self, kv: KeyValueStore, key: str = "ssp_stats") -> None:
        self._kv = kv
        self._key = key
        self.stats: UserStats = self.load()
        logger.info("StatsTracker ready key=%s xp=%d level=%d", key, self.stats.xp, self.stats.level)

    def load(self) -> UserStats:
        try:
            raw = self._kv.get(self._key)
            if raw is None:
                return default_stats()
            return UserStats.from_dict(json.loads(raw))
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Persisted stats under %s are malformed (%s); using defaults.", self._key, e)
            return default_stats()

    def save(self) -> None:
        self._kv.set(self._key, json.dumps(self.stats.to_dict(), ensure_ascii=False))

    # ---- mutations ----

    def award_xp(self, amount: int) -> list[str]:
        """Add xp, apply level/badge policies, save. Returns newly earned badge names."""
        if amount < 0:
            raise ValueError("xp award must be non-negative")
        self.stats.xp += int(amount)
        self._promote_level()
        earned = self.evaluate_badges()
        self.save()
        return earned

    def add_focus_minutes(self, minutes: int) -> list[str]:
        if minutes < 0:
            raise ValueError("focus minutes must be non-negative")
        self.stats.total_focus_minutes += int(minutes)
        logger.info("Focus credit: +%d min (total=%d)", minutes, self.stats.total_focus_minutes)
        return self.award_xp(int(minutes) * FOCUS_XP_PER_MINUTE)

    def record_completion(self, day: str) -> list[str]:
        """Streak policy; counts a given calendar day at most once. Returns newly earned badge names."""
        if not is_iso_date(day):
            raise ValueError(f"bad day: {day!r}")

        last = self.stats.last_completion_date
        if last == day:
            return []
        if last is None:
            # No recorded day yet: keep a carried-over streak.
            self.stats.streak = max(self.stats.streak, 1)
        elif add_days(last, 1) == day:
            self.stats.streak += 1
        elif last > day:
            # Completion dated before the last one (clock skew / backfill): leave streak alone.
            return []
        else:
            self.stats.streak = 1
        self.stats.last_completion_date = day
        earned = self.evaluate_badges()
        self.save()
        return earned

    def _promote_level(self) -> None:
        while self.stats.xp >= (self.stats.level + 1) * LEVEL_STEP_XP:
            self.stats.level += 1
            logger.info("Level up -> %d", self.stats.level)

    def evaluate_badges(self) -> list[str]:
        earned: list[str] = []
        for badge in BADGES:
            if badge.name in self.stats.badges:
                continue
            if badge.condition(self.stats):
                self.stats.badges.append(badge.name)
                earned.append(badge.name)
                logger.info("Badge earned: %s", badge.name)
        return earned

    # ---- derived ----

    def level_progress(self) -> LevelProgress:
        s = self.stats
        return LevelProgress(
            xp=s.xp,
            level=s.level,
            next_threshold=(s.level + 1) * LEVEL_STEP_XP,
            percent=s.xp % LEVEL_STEP_XP,
        )
