from datetime import date

from quantumleap.repair import (
    KEEP,
    MAX_STEP_PCT,
    MAX_WICK_PCT,
    REFERENCE_DATE,
    RepairContext,
    RepairRule,
    apply_rules,
    default_text,
    ensure_heading,
    ensure_stop_loss,
    exit_range,
    exit_range_from,
    mirror,
    normalize_date,
    pad_list,
    price_series,
    round_sig,
    series_dates,
    synthesize_series,
    unit_score,
)

CTX = RepairContext(flow="coin_picks")


def _valid_series(n=30, year=2024):
    return [
        {"time": f"{year}-12-{i + 1:02d}", "open": 10.0, "high": 11.0, "low": 9.0, "close": 10.5}
        for i in range(n)
    ]


def test_exit_range_recomputed_and_idempotent():
    pick = {
        "entryPriceRange": {"low": 100.0, "high": 110.0},
        "predictedGainPercentage": 10,
        "exitPriceRange": {"low": 1.0, "high": 2.0},
    }
    rules = [RepairRule("exitPriceRange", exit_range(gain="predictedGainPercentage"))]
    once, applied = apply_rules(pick, rules, CTX)
    assert once["exitPriceRange"] == {"low": 110.0, "high": 121.0}
    assert applied == ["exitPriceRange"]

    twice, applied_again = apply_rules(once, rules, CTX)
    assert twice == once
    assert applied_again == []


def test_exit_range_rounds_to_six_significant_digits():
    out = exit_range_from({"low": 0.0000123456789, "high": 0.00002}, 50)
    assert out == {"low": round_sig(0.0000123456789 * 1.5), "high": 0.00003}


def test_apply_rules_never_mutates_input():
    artifact = {"picks": [{"confidenceMeter": 3}]}
    rules = [RepairRule("confidenceMeter", unit_score("confidenceMeter"), scope="picks")]
    out, applied = apply_rules(artifact, rules, CTX)
    assert artifact["picks"][0]["confidenceMeter"] == 3
    assert out["picks"][0]["confidenceMeter"] == 1.0
    assert applied == ["picks[].confidenceMeter"]


def test_unit_score_default_and_clamp():
    fix = unit_score("s")
    assert fix({}, CTX) == 0.5
    assert fix({"s": -0.2}, CTX) == 0.0
    assert fix({"s": 0.7}, CTX) == 0.7
    # Non-numeric stays for strict validation to reject.
    assert fix({"s": "high"}, CTX) == "high"


def test_mirror_keeps_absent_source_absent():
    fix = mirror("quickFlipSellTargetPercentage")
    assert fix({"quickFlipSellTargetPercentage": 42}, CTX) == 42
    assert fix({}, CTX) is KEEP


def test_default_text_only_fills_blank():
    fix = default_text("disclaimer", "DYOR")
    assert fix({}, CTX) == "DYOR"
    assert fix({"disclaimer": "  "}, CTX) == "DYOR"
    assert fix({"disclaimer": "custom"}, CTX) == "custom"


def test_heading_and_stop_loss_markers():
    heading = ensure_heading("rationale", "### Why This Coin?", ["a", "b"])
    text = heading({"rationale": "Strong volume."}, CTX)
    assert text.startswith("### Why This Coin?\n- a\n- b\n")
    assert text.endswith("Strong volume.")
    assert heading({"rationale": text}, CTX) == text

    stop = ensure_stop_loss("rationale", "Suggested Stop Loss: 5%")
    assert stop({"rationale": "Go."}, CTX) == "Go.\nSuggested Stop Loss: 5%"
    already = "x\nsuggested STOP LOSS: 8%"
    assert stop({"rationale": already}, CTX) == already
    # Missing rationale is left for validation to reject.
    assert stop({}, CTX) is KEEP


def test_pad_list_uses_fillers_up_to_min():
    fix = pad_list("keySignals", 2, ["f1", "f2", "f3"])
    assert fix({"keySignals": ["own"]}, CTX) == ["own", "f1"]
    assert fix({}, CTX) == ["f1", "f2"]
    assert fix({"keySignals": ["a", "b", "c"]}, CTX) == ["a", "b", "c"]


def test_series_dates_are_ascending_and_end_at_reference():
    days = series_dates(30, REFERENCE_DATE)
    assert len(days) == 30
    assert days[0] == "2024-12-02"
    assert days[-1] == "2024-12-31"
    assert days == sorted(days)


def test_synthesized_series_is_bounded_and_deterministic():
    a = synthesize_series(100.0, seed=7)
    b = synthesize_series(100.0, seed=7)
    assert a == b
    assert len(a) == 30
    prev_close = 100.0
    for p in a:
        assert p["high"] >= max(p["open"], p["close"])
        assert p["low"] <= min(p["open"], p["close"])
        # small tolerance for 6-significant-digit rounding
        assert abs(p["open"] / prev_close - 1) <= MAX_STEP_PCT + 1e-4
        assert abs(p["close"] / p["open"] - 1) <= MAX_STEP_PCT + 1e-4
        assert p["high"] / max(p["open"], p["close"]) <= 1 + MAX_WICK_PCT + 1e-4
        prev_close = p["close"]


def test_non_positive_seed_falls_back_to_one():
    s = synthesize_series(-5.0, seed=1)
    assert 0.5 < s[0]["open"] < 1.5


def test_price_series_synthesizes_when_missing_or_wrong_length():
    fix = price_series(coin="coin")
    pick = {"coin": "Solana (SOL)", "entryPriceRange": {"low": 150.0, "high": 160.0}}
    series = fix(pick, CTX)
    assert len(series) == 30
    assert series[-1]["time"] == "2024-12-31"
    assert fix(pick, CTX) == series  # seeded from flow, coin and price

    short = fix({**pick, "mockCandlestickData": _valid_series(5)}, CTX)
    assert len(short) == 30

    malformed = _valid_series()
    malformed[3] = {**malformed[3], "close": "10.5"}
    assert fix({**pick, "mockCandlestickData": malformed}, CTX) != malformed


def test_price_series_keeps_valid_values_and_widens_wicks():
    data = _valid_series()
    data[0] = {"time": "2024-12-01", "open": 10.0, "high": 9.5, "low": 10.2, "close": 9.8}
    out = price_series()({"mockCandlestickData": data}, CTX)
    assert out[0] == {"time": "2024-12-01", "open": 10.0, "high": 10.0, "low": 9.8, "close": 9.8}
    assert out[1:] == data[1:]


def test_normalize_date_substitutes_expected_year():
    assert normalize_date("2023-06-15", year=2024, fallback="F") == "2024-06-15"
    assert normalize_date("2024-06-15", year=2024, fallback="F") == "2024-06-15"
    assert normalize_date("2024-02-29", year=2023, fallback="F") == "F"
    assert normalize_date("yesterday", year=2024, fallback="F") == "F"
    assert normalize_date(None, year=2024, fallback="F") == "F"


def test_price_series_normalizes_wrong_year_dates():
    data = _valid_series(year=2023)
    data[29] = {**data[29], "time": "garbage"}
    ctx = RepairContext(flow="profit_goal", reference_date=date(2024, 12, 31))
    out = price_series()({"mockCandlestickData": data}, ctx)
    assert out[0]["time"] == "2024-12-01"
    assert out[28]["time"] == "2024-12-29"
    assert out[29]["time"] == series_dates(30, ctx.reference_date)[29]


def test_price_series_replaces_repeated_dates_with_daily_sequence():
    data = [{**p, "time": "2023-01-01"} for p in _valid_series()]
    out = price_series()({"mockCandlestickData": data}, CTX)
    assert [p["time"] for p in out] == series_dates(30, REFERENCE_DATE)
    assert [p["close"] for p in out] == [p["close"] for p in data]


def test_price_series_from_entry_range_is_a_contiguous_bounded_month():
    pick = {"coinName": "Dogecoin", "entryPriceRange": {"low": 1.0, "high": 1.05}}
    series = price_series()(pick, CTX)

    assert len(series) == 30
    assert series[-1]["time"] == "2024-12-31"
    days = [date.fromisoformat(p["time"]) for p in series]
    assert all((b - a).days == 1 for a, b in zip(days, days[1:]))

    prev_close = 1.0
    for p in series:
        assert p["low"] <= min(p["open"], p["close"])
        assert p["high"] >= max(p["open"], p["close"])
        assert abs(p["open"] / prev_close - 1) <= MAX_STEP_PCT + 1e-4
        assert abs(p["close"] / p["open"] - 1) <= MAX_STEP_PCT + 1e-4
        assert p["high"] / max(p["open"], p["close"]) <= 1 + MAX_WICK_PCT + 1e-4
        assert 1 - p["low"] / min(p["open"], p["close"]) <= MAX_WICK_PCT + 1e-4
        prev_close = p["close"]
