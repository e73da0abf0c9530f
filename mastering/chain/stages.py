"""
Stage specs: immutable configuration values for one processing step.
A StageSpec is a closed tagged variant (kind + the fields that kind uses);
build them with the helpers below rather than by hand.
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


class StageKind(str, Enum):
    HIGH_PASS = "highpass"
    LOW_PASS = "lowpass"
    NOTCH = "notch"
    PEAKING = "peaking"
    NOISE_GATE = "noise_gate"
    COMPRESSOR = "compressor"
    LIMITER = "limiter"
    GAIN = "gain"
    STEREO_WIDEN = "stereo_widen"


@dataclass(frozen=True)
class StageSpec:
    kind: StageKind
    name: str
    group: str
    # Filters
    frequency: Optional[float] = None
    q: Optional[float] = None
    gain_db: Optional[float] = None
    # Dynamics
    threshold_db: Optional[float] = None
    knee_db: Optional[float] = None
    ratio: Optional[float] = None
    attack_s: Optional[float] = None
    release_s: Optional[float] = None
    # Gain / width (linear)
    gain: Optional[float] = None
    width: Optional[float] = None

    def with_gain(self, gain: float) -> "StageSpec":
        return replace(self, gain=float(gain))

    def describe(self) -> dict:
        """Non-empty fields, for logs and the /tiers listing."""
        out = {"kind": self.kind.value, "name": self.name, "group": self.group}
        for key in ("frequency", "q", "gain_db", "threshold_db", "knee_db", "ratio",
                    "attack_s", "release_s", "gain", "width"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        return out


# -----------------------------------------------------------------------------
# Constructors
# -----------------------------------------------------------------------------

def highpass(name: str, group: str, frequency: float, q: float = 0.707) -> StageSpec:
    return StageSpec(StageKind.HIGH_PASS, name, group, frequency=frequency, q=q)


def lowpass(name: str, group: str, frequency: float, q: float = 0.707) -> StageSpec:
    return StageSpec(StageKind.LOW_PASS, name, group, frequency=frequency, q=q)


def notch(name: str, group: str, frequency: float, q: float) -> StageSpec:
    return StageSpec(StageKind.NOTCH, name, group, frequency=frequency, q=q)


def peaking(name: str, group: str, frequency: float, gain_db: float, q: float) -> StageSpec:
    return StageSpec(StageKind.PEAKING, name, group, frequency=frequency, gain_db=gain_db, q=q)


def _dynamics(kind: StageKind, name: str, group: str, threshold_db: float, ratio: float,
              knee_db: float, attack_s: float, release_s: float) -> StageSpec:
    return StageSpec(kind, name, group, threshold_db=threshold_db, ratio=ratio,
                     knee_db=knee_db, attack_s=attack_s, release_s=release_s)


def noise_gate(name, group, threshold_db, ratio, knee_db, attack_s, release_s) -> StageSpec:
    """Gentle downward compressor at a very low threshold, not a hard gate."""
    return _dynamics(StageKind.NOISE_GATE, name, group, threshold_db, ratio, knee_db, attack_s, release_s)


def compressor(name, group, threshold_db, ratio, knee_db, attack_s, release_s) -> StageSpec:
    return _dynamics(StageKind.COMPRESSOR, name, group, threshold_db, ratio, knee_db, attack_s, release_s)


def limiter(name, group, threshold_db, ratio, knee_db, attack_s, release_s) -> StageSpec:
    return _dynamics(StageKind.LIMITER, name, group, threshold_db, ratio, knee_db, attack_s, release_s)


def gain(name: str, group: str, value: float) -> StageSpec:
    return StageSpec(StageKind.GAIN, name, group, gain=value)


def stereo_widen(name: str, group: str, width: float) -> StageSpec:
    return StageSpec(StageKind.STEREO_WIDEN, name, group, width=width)
