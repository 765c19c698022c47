# backend/salon/services/scheduling/config.py
"""
Scheduling configuration.
"""

from dataclasses import dataclass
from functools import lru_cache

from .timeutils import SLOT_STEP_MINUTES


@dataclass(frozen=True)
class SchedulingConfig:
    """
    Configuration for the scheduling engine.

    The slot grid itself (SLOT_STEP_MINUTES) is fixed for every location
    and service and is intentionally not part of this object.

    Attributes:
        min_duration_minutes: Shortest service duration a worker may offer
        max_duration_minutes: Longest service duration a worker may offer
        max_range_days: Widest date range accepted by calendar queries
    """
    min_duration_minutes: int = 5
    max_duration_minutes: int = 240
    max_range_days: int = 62

    def __post_init__(self):
        """Validate configuration."""
        if not 0 < self.min_duration_minutes <= self.max_duration_minutes:
            raise ValueError(
                f"invalid duration bounds: {self.min_duration_minutes}..{self.max_duration_minutes}"
            )
        if self.max_range_days < 1:
            raise ValueError(f"max_range_days must be positive, got {self.max_range_days}")

    @property
    def slot_step_minutes(self) -> int:
        return SLOT_STEP_MINUTES

    @property
    def slots_per_day(self) -> int:
        """Number of grid positions in a day (72 for a 20 minute grid)."""
        return (24 * 60) // SLOT_STEP_MINUTES


@lru_cache
def get_scheduling_config() -> SchedulingConfig:
    """Get scheduling configuration (singleton)."""
    return SchedulingConfig()
