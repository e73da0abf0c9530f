"""
Per-tier chain constants. These values are the product's sound; they are
contractual, not tunable defaults.

Groups (progress milestones are reported as each group finishes):
    cleanup   -> rumble/hum/noise-floor removal
    tone      -> EQ
    dynamics  -> compression
    stereo    -> width
    loudness  -> make-up gain, limiting, output trim
"""
from dataclasses import dataclass
from typing import Tuple

from mastering.chain import stages as s
from mastering.chain.stages import StageSpec

MAKEUP_GAIN_STAGE = "makeup_gain"

BASIC = "basic"
PREMIUM = "premium"
FREE = "free"


@dataclass(frozen=True)
class TierProfile:
    """How a chain is corrected after the first render."""
    name: str
    initial_makeup_gain: float
    # Premium targets a louder result: the basic-style optimal gain is scaled by this.
    gain_multiplier: float
    # Re-render only if |optimal - initial| exceeds this.
    retry_threshold: float


BASIC_PROFILE = TierProfile(name=BASIC, initial_makeup_gain=1.1, gain_multiplier=1.0, retry_threshold=0.1)
PREMIUM_PROFILE = TierProfile(name=PREMIUM, initial_makeup_gain=2.2, gain_multiplier=1.8, retry_threshold=0.2)

# -----------------------------------------------------------------------------
# Basic (free + basic)
# -----------------------------------------------------------------------------

BASIC_CHAIN: Tuple[StageSpec, ...] = (
    s.highpass("high_pass", "cleanup", frequency=40.0, q=0.7),
    s.noise_gate("noise_gate", "cleanup", threshold_db=-65.0, ratio=2.5, knee_db=10.0,
                 attack_s=0.01, release_s=0.2),
    s.peaking("low_mid_warmth", "tone", frequency=200.0, gain_db=0.8, q=0.8),
    s.peaking("vocal_presence", "tone", frequency=2500.0, gain_db=1.5, q=1.2),
    s.peaking("air", "tone", frequency=8000.0, gain_db=1.0, q=0.8),
    s.compressor("compressor", "dynamics", threshold_db=-25.0, ratio=1.5, knee_db=12.0,
                 attack_s=0.02, release_s=0.25),
    s.gain(MAKEUP_GAIN_STAGE, "loudness", BASIC_PROFILE.initial_makeup_gain),
    s.limiter("output_limiter", "loudness", threshold_db=-6.0, ratio=10.0, knee_db=2.0,
              attack_s=0.001, release_s=0.01),
)

# -----------------------------------------------------------------------------
# Premium
# -----------------------------------------------------------------------------

PREMIUM_CHAIN: Tuple[StageSpec, ...] = (
    s.highpass("high_pass", "cleanup", frequency=40.0, q=0.7),
    s.noise_gate("noise_gate", "cleanup", threshold_db=-60.0, ratio=3.0, knee_db=8.0,
                 attack_s=0.008, release_s=0.15),
    s.notch("hum_60hz", "cleanup", frequency=60.0, q=30.0),
    s.notch("hum_120hz", "cleanup", frequency=120.0, q=30.0),
    s.peaking("de_esser", "cleanup", frequency=6500.0, gain_db=-4.0, q=2.0),
    s.highpass("noise_floor", "cleanup", frequency=35.0, q=0.5),
    s.highpass("sub_bass", "tone", frequency=30.0, q=0.8),
    s.peaking("bass", "tone", frequency=80.0, gain_db=3.0, q=1.0),
    s.peaking("low_mid_warmth", "tone", frequency=200.0, gain_db=2.0, q=0.8),
    s.peaking("mid_cut", "tone", frequency=500.0, gain_db=-1.5, q=1.5),
    s.peaking("vocal_presence", "tone", frequency=2500.0, gain_db=4.0, q=1.2),
    s.peaking("high_mid_clarity", "tone", frequency=5000.0, gain_db=2.0, q=1.2),
    s.peaking("air", "tone", frequency=12000.0, gain_db=3.0, q=0.8),
    s.peaking("ultra_high", "tone", frequency=16000.0, gain_db=3.0, q=0.8),
    s.compressor("pre_compressor", "dynamics", threshold_db=-30.0, ratio=1.8, knee_db=12.0,
                 attack_s=0.02, release_s=0.3),
    s.compressor("main_compressor", "dynamics", threshold_db=-22.0, ratio=2.5, knee_db=10.0,
                 attack_s=0.015, release_s=0.2),
    s.stereo_widen("stereo_width", "stereo", width=1.2),
    s.gain(MAKEUP_GAIN_STAGE, "loudness", PREMIUM_PROFILE.initial_makeup_gain),
    s.limiter("limiter", "loudness", threshold_db=-0.5, ratio=25.0, knee_db=0.0,
              attack_s=0.0005, release_s=0.008),
    s.limiter("maximizer", "loudness", threshold_db=-0.1, ratio=50.0, knee_db=0.0,
              attack_s=0.0001, release_s=0.005),
    s.gain("safety_trim", "loudness", 0.92),
)

CHAINS = {
    BASIC: BASIC_CHAIN,
    PREMIUM: PREMIUM_CHAIN,
}

PROFILES = {
    BASIC: BASIC_PROFILE,
    PREMIUM: PREMIUM_PROFILE,
}

# Tier token -> chain name. free shares the basic chain.
TIER_CHAINS = {
    FREE: BASIC,
    BASIC: BASIC,
    PREMIUM: PREMIUM,
}

PREVIEW_SECONDS = 60
