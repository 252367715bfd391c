from datetime import datetime, timezone
from typing import Union

import numpy as np
import pandas as pd

SECONDS_PER_DAY = 86400.0


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: Union[str, datetime, pd.Timestamp]) -> pd.Timestamp:
    """Coerce a timestamp to a tz-aware UTC ``pd.Timestamp`` (naive values are taken as UTC)."""
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def days_since(created_at, now) -> float:
    # Timestamps after now (clock skew) count as age 0.
    delta = (to_utc(now) - to_utc(created_at)).total_seconds() / SECONDS_PER_DAY
    return max(0.0, delta)


def days_since_series(created_at: pd.Series, now) -> pd.Series:
    created = pd.to_datetime(created_at, utc=True)
    delta = (to_utc(now) - created).dt.total_seconds() / SECONDS_PER_DAY
    return delta.clip(lower=0.0)


def exponential_decay(days, rate: float):
    """e^(-rate * days); works on scalars, arrays and Series."""
    if np.isscalar(days):
        return float(np.exp(-rate * days))
    return np.exp(-rate * days)
