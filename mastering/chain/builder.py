"""
Chain selection per tier. Unknown tiers fail closed to the basic chain.
"""
import logging
from typing import Optional, Tuple

from mastering.chain.presets import (
    BASIC,
    CHAINS,
    MAKEUP_GAIN_STAGE,
    PROFILES,
    TIER_CHAINS,
    TierProfile,
)
from mastering.chain.stages import StageKind, StageSpec

logger = logging.getLogger("mastering.chain")

Chain = Tuple[StageSpec, ...]


def normalize_tier(tier: Optional[str]) -> str:
    """
    Map a tier token to a chain name ("basic" or "premium").
    Anything unrecognised maps to basic, never premium.
    """
    token = (tier or "").strip().lower() if isinstance(tier, str) else ""
    chain_name = TIER_CHAINS.get(token)
    if chain_name is None:
        logger.warning("Unknown tier %r, using %s chain", tier, BASIC)
        return BASIC
    return chain_name


def build_chain(tier: Optional[str]) -> Chain:
    chain_name = normalize_tier(tier)
    chain = CHAINS[chain_name]
    logger.debug("Selected %s chain (%d stages) for tier %r", chain_name, len(chain), tier)
    return chain


def tier_profile(tier: Optional[str]) -> TierProfile:
    return PROFILES[normalize_tier(tier)]


def makeup_gain_of(chain: Chain) -> float:
    for stage in chain:
        if stage.kind == StageKind.GAIN and stage.name == MAKEUP_GAIN_STAGE:
            return float(stage.gain)
    raise ValueError("Chain has no make-up gain stage")


def with_makeup_gain(chain: Chain, gain: float) -> Chain:
    """Same chain with only the make-up gain stage's value replaced."""
    replaced = False
    out = []
    for stage in chain:
        if stage.kind == StageKind.GAIN and stage.name == MAKEUP_GAIN_STAGE:
            out.append(stage.with_gain(gain))
            replaced = True
        else:
            out.append(stage)
    if not replaced:
        raise ValueError("Chain has no make-up gain stage")
    return tuple(out)
