import re
from datetime import datetime

INTERVALS = ("1min", "5min", "15min", "30min", "45min", "1h", "2h", "4h", "1day", "1week", "1month")

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

def _leading_int(token: str) -> int | None:
    m = _LEADING_INT.match(token)
    return int(m.group(1)) if m else None

def interval_to_ms(interval: str) -> int:
    """
    Horizon of an interval token in milliseconds.
    "min" and "h" tokens scale their numeric prefix; day/week/month are fixed
    (a month is 30 days). Anything unrecognised counts as one day.
    """
    # Fixed tokens first: "1month" contains an "h"
    fixed = {"1day": DAY_MS, "1week": 7 * DAY_MS, "1month": 30 * DAY_MS}
    if interval in fixed:
        return fixed[interval]
    if "min" in interval:
        n = _leading_int(interval)
        return n * MINUTE_MS if n is not None else DAY_MS
    if "h" in interval:
        n = _leading_int(interval)
        return n * HOUR_MS if n is not None else DAY_MS
    return DAY_MS

def is_market_hours(now: datetime) -> bool:
    """Weekday between 09:00 and 16:59 local time."""
    return now.weekday() < 5 and 9 <= now.hour <= 16

def round2(value: float) -> float:
    return round(value, 2)

def parse_price(value) -> float | None:
    """Float from a provider/record price string, None when it isn't one."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return None

def accuracy_pct(predicted, actual) -> float | None:
    """100 minus the absolute percentage error of `predicted` against `actual`."""
    p, a = parse_price(predicted), parse_price(actual)
    if p is None or a is None or a <= 0:
        return None
    return round2(100.0 - abs(a - p) / a * 100.0)

def fnv1a_32(s: str) -> int:
    """Deterministic, fast hash for seed generation."""
    h = 0x811c9dc5
    for c in s.encode("utf-8"):
        h ^= c
        h = (h * 0x01000193) & 0xFFFFFFFF
    return h

def seeded_rand(seed: int, n: int = 1) -> list[float]:
    """
    Stateless pseudo-random generator (Mulberry32-like) so
    same seed → same outputs without storing PRNG state.
    """
    out = []
    t = (seed + 0x6D2B79F5) & 0xFFFFFFFF
    for _ in range(n):
        t = (t ^ (t >> 15)) * (t | 1) & 0xFFFFFFFF
        t ^= t + ((t ^ (t >> 7)) * (t | 61) & 0xFFFFFFFF)
        r = ((t ^ (t >> 14)) & 0xFFFFFFFF) / 4294967296.0
        out.append(r)
    return out
