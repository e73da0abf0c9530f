"""
Tests for mastering/chain: tier selection, chain contents, make-up gain swaps.
Run from project root: python -m pytest tests/test_chain_builder.py -v
"""
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest

from mastering.chain.builder import (
    build_chain,
    makeup_gain_of,
    normalize_tier,
    tier_profile,
    with_makeup_gain,
)
from mastering.chain.presets import (
    BASIC_CHAIN,
    MAKEUP_GAIN_STAGE,
    PREMIUM_CHAIN,
    TIER_CHAINS,
)
from mastering.chain.stages import StageKind


# -----------------------------------------------------------------------------
# Tier selection
# -----------------------------------------------------------------------------

@pytest.mark.parametrize("token,expected", [
    ("free", "basic"),
    ("basic", "basic"),
    ("premium", "premium"),
    ("  Premium ", "premium"),
    ("enterprise", "basic"),
    ("", "basic"),
    (None, "basic"),
])
def test_normalize_tier(token, expected):
    assert normalize_tier(token) == expected


def test_unknown_tier_never_gets_premium():
    assert build_chain("enterprise") == BASIC_CHAIN
    assert build_chain("premium-plus") == BASIC_CHAIN


def test_free_and_basic_share_a_chain():
    assert build_chain("free") is build_chain("basic")
    assert TIER_CHAINS["free"] == TIER_CHAINS["basic"] == "basic"


def test_profiles():
    basic = tier_profile("free")
    premium = tier_profile("premium")
    assert (basic.initial_makeup_gain, basic.gain_multiplier, basic.retry_threshold) == (1.1, 1.0, 0.1)
    assert (premium.initial_makeup_gain, premium.gain_multiplier, premium.retry_threshold) == (2.2, 1.8, 0.2)


# -----------------------------------------------------------------------------
# Chain contents
# -----------------------------------------------------------------------------

def test_basic_chain_order():
    names = [stage.name for stage in build_chain("basic")]
    assert names == [
        "high_pass", "noise_gate", "low_mid_warmth", "vocal_presence", "air",
        "compressor", "makeup_gain", "output_limiter",
    ]


def test_premium_chain_order():
    chain = build_chain("premium")
    assert len(chain) == 21
    assert [stage.name for stage in chain] == [
        "high_pass", "noise_gate", "hum_60hz", "hum_120hz", "de_esser", "noise_floor",
        "sub_bass", "bass", "low_mid_warmth", "mid_cut", "vocal_presence",
        "high_mid_clarity", "air", "ultra_high", "pre_compressor", "main_compressor",
        "stereo_width", "makeup_gain", "limiter", "maximizer", "safety_trim",
    ]


def test_basic_stage_parameters():
    by_name = {stage.name: stage for stage in BASIC_CHAIN}
    hp = by_name["high_pass"]
    assert hp.kind == StageKind.HIGH_PASS and hp.frequency == 40.0
    gate = by_name["noise_gate"]
    assert (gate.threshold_db, gate.ratio, gate.knee_db) == (-65.0, 2.5, 10.0)
    comp = by_name["compressor"]
    assert (comp.threshold_db, comp.ratio, comp.knee_db, comp.attack_s, comp.release_s) == \
        (-25.0, 1.5, 12.0, 0.02, 0.25)
    lim = by_name["output_limiter"]
    assert (lim.threshold_db, lim.ratio, lim.attack_s, lim.release_s) == (-6.0, 10.0, 0.001, 0.01)
    assert by_name["vocal_presence"].gain_db == 1.5


def test_premium_stage_parameters():
    by_name = {stage.name: stage for stage in PREMIUM_CHAIN}
    assert by_name["hum_60hz"].kind == StageKind.NOTCH
    assert by_name["hum_60hz"].frequency == 60.0
    assert by_name["hum_120hz"].frequency == 120.0
    assert by_name["de_esser"].gain_db == -4.0
    assert by_name["stereo_width"].width == 1.2
    assert by_name["maximizer"].ratio == 50.0
    assert by_name["safety_trim"].gain == 0.92


def test_groups_are_contiguous():
    for chain in (BASIC_CHAIN, PREMIUM_CHAIN):
        seen = []
        for stage in chain:
            if not seen or seen[-1] != stage.group:
                assert stage.group not in seen, f"group {stage.group} split in two"
                seen.append(stage.group)


# -----------------------------------------------------------------------------
# Make-up gain
# -----------------------------------------------------------------------------

def test_makeup_gain_of():
    assert makeup_gain_of(build_chain("basic")) == pytest.approx(1.1)
    assert makeup_gain_of(build_chain("premium")) == pytest.approx(2.2)


def test_with_makeup_gain_changes_only_that_stage():
    chain = build_chain("premium")
    corrected = with_makeup_gain(chain, 1.44)
    assert len(corrected) == len(chain)
    for before, after in zip(chain, corrected):
        if before.name == MAKEUP_GAIN_STAGE:
            assert after.gain == pytest.approx(1.44)
        else:
            assert after == before
    # Original untouched
    assert makeup_gain_of(chain) == pytest.approx(2.2)


def test_safety_trim_is_not_the_makeup_stage():
    corrected = with_makeup_gain(build_chain("premium"), 1.0)
    trim = [s for s in corrected if s.name == "safety_trim"][0]
    assert trim.gain == 0.92


def test_chain_without_makeup_raises():
    chain = tuple(s for s in BASIC_CHAIN if s.name != MAKEUP_GAIN_STAGE)
    with pytest.raises(ValueError):
        with_makeup_gain(chain, 1.0)
    with pytest.raises(ValueError):
        makeup_gain_of(chain)


def test_describe_skips_unset_fields():
    d = BASIC_CHAIN[0].describe()
    assert d["kind"] == "highpass"
    assert d["frequency"] == 40.0
    assert "threshold_db" not in d
