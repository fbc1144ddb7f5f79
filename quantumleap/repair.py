"""
Deterministic post-processing for model output.

Each flow declares a table of RepairRules keyed by output field. A rule only
touches structurally mechanical fields (scores, ranges, dates, series, fixed
texts); analytical free text is never invented here.
"""

from __future__ import annotations

import copy
import hashlib
import logging
import math
import random
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

log = logging.getLogger(__name__)

REFERENCE_DATE = date(2024, 12, 31)
SERIES_LENGTH = 30

# Bounded random-walk parameters for synthesized price series.
MAX_STEP_PCT = 0.05
MAX_WICK_PCT = 0.03

# Returned by a fix to leave the field untouched (absent fields stay absent).
KEEP = object()


@dataclass(frozen=True)
class RepairContext:
    flow: str
    inputs: Mapping[str, Any] = field(default_factory=dict)
    reference_date: date = REFERENCE_DATE

    @property
    def expected_year(self) -> int:
        return self.reference_date.year


Fix = Callable[[Dict[str, Any], RepairContext], Any]


@dataclass(frozen=True)
class RepairRule:
    """
    Fix one field of the artifact.

    scope == ""      -> the field lives on the top-level object
    scope == "picks" -> the field lives on every item of the `picks` list

    `fix(obj, ctx)` returns the new value of `obj[field]`; returning the
    current value leaves the object untouched.
    """

    field: str
    fix: Fix
    scope: str = ""
    name: str = ""

    @property
    def label(self) -> str:
        base = f"{self.scope}[].{self.field}" if self.scope else self.field
        return f"{base}:{self.name}" if self.name else base


def _targets(artifact: Dict[str, Any], scope: str) -> List[Dict[str, Any]]:
    if not scope:
        return [artifact]
    items = artifact.get(scope)
    if not isinstance(items, list):
        return []
    return [it for it in items if isinstance(it, dict)]


def apply_rules(
    artifact: Dict[str, Any],
    rules: Sequence[RepairRule],
    ctx: RepairContext,
) -> Tuple[Dict[str, Any], List[str]]:
    """Apply rules in order on a private copy. Returns (repaired, applied labels)."""
    out = copy.deepcopy(artifact)
    applied: List[str] = []
    for rule in rules:
        changed = False
        for obj in _targets(out, rule.scope):
            before = obj.get(rule.field, KEEP)
            after = rule.fix(obj, ctx)
            if after is KEEP:
                continue
            if before is KEEP or before != after:
                obj[rule.field] = after
                changed = True
        if changed:
            applied.append(rule.label)
    if applied:
        log.debug("Applied repairs", extra={"flow": ctx.flow, "repairs": applied})
    return out, applied


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)


def round_sig(x: float, digits: int = 6) -> float:
    """Round to `digits` significant digits (keeps very small prices usable)."""
    if x == 0 or not math.isfinite(x):
        return x
    return float(f"{x:.{digits}g}")


def _get_path(obj: Mapping[str, Any], path: str) -> Any:
    cur: Any = obj
    for part in path.split("."):
        if not isinstance(cur, Mapping):
            return None
        cur = cur.get(part)
    return cur


# ---------------------------------------------------------------------------
# Derived numeric fields
# ---------------------------------------------------------------------------


def exit_range_from(entry: Any, gain_pct: Any) -> Optional[Dict[str, float]]:
    """
    Exit range = entry range scaled by (1 + gain/100).
    Pure function of its inputs; None when the inputs are unusable.
    """
    if not isinstance(entry, Mapping) or not _is_number(gain_pct):
        return None
    low, high = entry.get("low"), entry.get("high")
    if not _is_number(low) or not _is_number(high):
        return None
    factor = 1 + gain_pct / 100
    return {"low": round_sig(low * factor), "high": round_sig(high * factor)}


def exit_range(*, entry: str = "entryPriceRange", gain: str) -> Fix:
    def fix(obj: Dict[str, Any], ctx: RepairContext) -> Any:
        recomputed = exit_range_from(obj.get(entry), obj.get(gain))
        if recomputed is None:
            return obj.get("exitPriceRange", KEEP)
        return recomputed

    return fix


def mirror(source: str) -> Fix:
    def fix(obj: Dict[str, Any], ctx: RepairContext) -> Any:
        if source not in obj:
            return KEEP
        return obj[source]

    return fix


def unit_score(field_name: str, default: float = 0.5) -> Fix:
    """Missing -> default, then clamp into [0, 1]."""

    def fix(obj: Dict[str, Any], ctx: RepairContext) -> Any:
        raw = obj.get(field_name)
        if raw is None:
            return default
        if not _is_number(raw):
            # Leave it for strict validation to reject.
            return raw
        return max(0.0, min(1.0, float(raw)))

    return fix


def default_value(field_name: str, value: Any) -> Fix:
    def fix(obj: Dict[str, Any], ctx: RepairContext) -> Any:
        current = obj.get(field_name)
        if current is None or (isinstance(current, str) and not current.strip()):
            return copy.deepcopy(value)
        return current

    return fix


def default_text(field_name: str, text: str) -> Fix:
    return default_value(field_name, text)


def empty_list(field_name: str) -> Fix:
    def fix(obj: Dict[str, Any], ctx: RepairContext) -> Any:
        current = obj.get(field_name)
        return [] if current is None else current

    return fix


def pad_list(field_name: str, min_len: int, fillers: Sequence[str]) -> Fix:
    def fix(obj: Dict[str, Any], ctx: RepairContext) -> Any:
        current = obj.get(field_name)
        if current is None:
            current = []
        if not isinstance(current, list):
            return current
        out = list(current)
        for filler in fillers:
            if len(out) >= min_len:
                break
            out.append(filler)
        return out

    return fix


def now_iso() -> Fix:
    def fix(obj: Dict[str, Any], ctx: RepairContext) -> Any:
        return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

    return fix


def ensure_heading(field_name: str, heading: str, fallback_bullets: Sequence[str]) -> Fix:
    """Prefix the heading (plus fallback bullets) when the text lacks it."""

    def fix(obj: Dict[str, Any], ctx: RepairContext) -> Any:
        text = obj.get(field_name)
        if not isinstance(text, str) or not text.strip():
            return obj.get(field_name, KEEP)
        if heading in text:
            return text
        bullets = "".join(f"- {b}\n" for b in fallback_bullets)
        return f"{heading}\n{bullets}{text}"

    return fix


def ensure_stop_loss(field_name: str, line: str) -> Fix:
    def fix(obj: Dict[str, Any], ctx: RepairContext) -> Any:
        text = obj.get(field_name)
        if not isinstance(text, str) or not text.strip():
            return obj.get(field_name, KEEP)
        if "stop loss:" in text.lower():
            return text
        return f"{text}\n{line}"

    return fix


# ---------------------------------------------------------------------------
# Fixed-length price series
# ---------------------------------------------------------------------------


def series_dates(length: int, end: date) -> List[str]:
    """Contiguous daily dates, oldest first, the last one equal to `end`."""
    return [(end - timedelta(days=length - 1 - i)).isoformat() for i in range(length)]


def _series_seed(flow: str, coin: Any, seed_price: float) -> int:
    key = f"{flow}|{coin}|{seed_price!r}"
    return int(hashlib.sha1(key.encode("utf-8")).hexdigest()[:16], 16)


def synthesize_series(
    seed_price: float,
    *,
    length: int = SERIES_LENGTH,
    end: date = REFERENCE_DATE,
    seed: int = 0,
) -> List[Dict[str, Any]]:
    """
    Bounded random walk starting at `seed_price`.

    open  = previous close moved by at most MAX_STEP_PCT
    close = open moved by at most MAX_STEP_PCT
    high  = max(open, close) raised by at most MAX_WICK_PCT
    low   = min(open, close) lowered by at most MAX_WICK_PCT
    """
    if not _is_number(seed_price) or seed_price <= 0:
        seed_price = 1.0
    rng = random.Random(seed)
    prev_close = float(seed_price)
    points: List[Dict[str, Any]] = []
    for day in series_dates(length, end):
        open_ = prev_close * (1 + rng.uniform(-MAX_STEP_PCT, MAX_STEP_PCT))
        close = open_ * (1 + rng.uniform(-MAX_STEP_PCT, MAX_STEP_PCT))
        high = max(open_, close) * (1 + rng.uniform(0, MAX_WICK_PCT))
        low = min(open_, close) * (1 - rng.uniform(0, MAX_WICK_PCT))
        points.append(
            {
                "time": day,
                "open": round_sig(open_),
                "high": round_sig(high),
                "low": round_sig(low),
                "close": round_sig(close),
            }
        )
        prev_close = close
    return points


def normalize_date(raw: Any, *, year: int, fallback: str) -> str:
    """
    Keep dates in `year` as they are. Otherwise keep month/day with `year`
    substituted; unparseable values (or Feb 29 in a common year) get `fallback`.
    """
    if not isinstance(raw, str):
        return fallback
    text = raw.strip()[:10]
    try:
        parsed = date.fromisoformat(text)
    except ValueError:
        try:
            parsed = datetime.fromisoformat(raw.strip().replace("Z", "+00:00")).date()
        except ValueError:
            return fallback
    if parsed.year == year:
        return parsed.isoformat()
    try:
        return parsed.replace(year=year).isoformat()
    except ValueError:
        return fallback


def _valid_point(p: Any) -> bool:
    return isinstance(p, Mapping) and all(
        _is_number(p.get(k)) for k in ("open", "high", "low", "close")
    )


def price_series(
    *,
    seed: str = "entryPriceRange.low",
    coin: str = "coinName",
    length: int = SERIES_LENGTH,
) -> Fix:
    def fix(obj: Dict[str, Any], ctx: RepairContext) -> Any:
        current = obj.get("mockCandlestickData")
        end = ctx.reference_date
        if (
            not isinstance(current, list)
            or len(current) != length
            or not all(_valid_point(p) for p in current)
        ):
            seed_price = _get_path(obj, seed)
            if not _is_number(seed_price) or seed_price <= 0:
                seed_price = 1.0
            return synthesize_series(
                seed_price,
                length=length,
                end=end,
                seed=_series_seed(ctx.flow, obj.get(coin), float(seed_price)),
            )

        fallback = series_dates(length, end)
        out: List[Dict[str, Any]] = []
        for i, p in enumerate(current):
            o, c = float(p["open"]), float(p["close"])
            out.append(
                {
                    "time": normalize_date(
                        p.get("time"), year=ctx.expected_year, fallback=fallback[i]
                    ),
                    "open": o,
                    "high": max(float(p["high"]), o, c),
                    "low": min(float(p["low"]), o, c),
                    "close": c,
                }
            )
        times = [p["time"] for p in out]
        # a daily series needs strictly increasing dates
        if any(a >= b for a, b in zip(times, times[1:])):
            for p, day in zip(out, fallback):
                p["time"] = day
        return out

    return fix
