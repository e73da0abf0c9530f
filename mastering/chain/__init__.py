"""
Tier chains: stage specs, exact presets, selection and offline rendering.
"""
from mastering.chain.builder import build_chain, normalize_tier, with_makeup_gain
from mastering.chain.executor import apply, render, safe_render

__all__ = ["build_chain", "normalize_tier", "with_makeup_gain", "apply", "render", "safe_render"]
