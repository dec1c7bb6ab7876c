"""
Time scale bookkeeping.

Converts between aggregation widths, samples per day and rolling window
sizes, so that every aggregation covers the same span of days and starts
the same number of windows per day.

With 5-minute samples, a 28-day window and aggregation widths
[1, 12, 288, 576]:

    agg_steps   steps_per_day   steps_per_window   window_by
    1           288             8064               72
    12          24              672                6
    288         1               28                 1
    576         0.5             14                 1
"""

from dataclasses import dataclass, field
from typing import List

import numpy as np

from timescales.config import DEFAULT_TIMESCALES
from timescales.core._errors import InvalidArgument

MINUTES_PER_DAY = 1440


@dataclass(frozen=True)
class TimescaleParams:
    """Sampling and windowing parameters shared by all stages."""

    sample_minutes: float = DEFAULT_TIMESCALES['sample_minutes']
    window_days: float = DEFAULT_TIMESCALES['window_days']
    agg_steps: List[int] = field(default_factory=lambda: list(DEFAULT_TIMESCALES['agg_steps']))
    window_starts_per_day: float = DEFAULT_TIMESCALES['window_starts_per_day']
    acf_lag_days: float = DEFAULT_TIMESCALES['acf_lag_days']

    def __post_init__(self):
        if self.sample_minutes <= 0:
            raise InvalidArgument(f"sample_minutes must be > 0, got {self.sample_minutes}")
        if self.window_days <= 0:
            raise InvalidArgument(f"window_days must be > 0, got {self.window_days}")
        if self.window_starts_per_day <= 0:
            raise InvalidArgument("window_starts_per_day must be > 0")
        if not self.agg_steps or any(int(a) != a or a < 1 for a in self.agg_steps):
            raise InvalidArgument(f"agg_steps must be positive integers, got {self.agg_steps}")
        object.__setattr__(self, 'agg_steps', [int(a) for a in self.agg_steps])

    @classmethod
    def from_manifest(cls, manifest: dict) -> 'TimescaleParams':
        block = manifest.get('timescales', {}) or {}
        known = {k: block[k] for k in DEFAULT_TIMESCALES if k in block and k in cls.__dataclass_fields__}
        return cls(**known)

    @property
    def samples_per_day(self) -> float:
        return MINUTES_PER_DAY / self.sample_minutes

    def steps_per_day(self, agg: int) -> float:
        """Aggregated samples per day."""
        return self.samples_per_day / agg

    def steps_per_window(self, agg: int) -> int:
        """Aggregated samples in one rolling window."""
        return max(1, int(round(self.steps_per_day(agg) * self.window_days)))

    def window_by(self, agg: int) -> int:
        """Aggregated samples between window starts (at least 1)."""
        return max(1, int(round(self.steps_per_day(agg) / self.window_starts_per_day)))

    @property
    def acf_lag_max(self) -> int:
        """Largest ACF lag, in raw samples."""
        return max(1, int(round(self.samples_per_day * self.acf_lag_days)))

    def table(self) -> List[dict]:
        """One row per aggregation width."""
        return [
            {
                'agg_steps': agg,
                'interval': interval_name(agg, self.sample_minutes),
                'steps_per_day': self.steps_per_day(agg),
                'steps_per_window': self.steps_per_window(agg),
                'window_by': self.window_by(agg),
            }
            for agg in self.agg_steps
        ]


def _fmt(value: float) -> str:
    value = float(np.round(value, 2))
    return str(int(value)) if value.is_integer() else f"{value:g}"


def interval_name(n_samples: float, minutes_per_sample: float = 5) -> str:
    """
    Human-readable length of n_samples samples.

    interval_name(1)   -> '5 min'
    interval_name(12)  -> '1 hr'
    interval_name(288) -> '1 day'
    interval_name(576) -> '2 days'
    interval_name(0.5, minutes_per_sample=1440) -> '12 hr'
    """
    minutes = float(n_samples) * float(minutes_per_sample)
    if minutes <= 0:
        raise InvalidArgument(f"interval must be positive, got {minutes} minutes")

    if minutes < 60:
        return f"{_fmt(minutes)} min"
    if minutes < MINUTES_PER_DAY:
        return f"{_fmt(minutes / 60)} hr"
    days = minutes / MINUTES_PER_DAY
    return f"{_fmt(days)} day" if days == 1 else f"{_fmt(days)} days"
