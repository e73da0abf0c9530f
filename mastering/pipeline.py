"""
Mastering pipeline: decode -> render -> analyze -> optional corrected render
-> trim preview -> encode preview and full.

Each call owns its buffers; nothing is shared between calls, so independent
requests can run in parallel. Only decode failures reach the caller; a render
failure ships the unprocessed audio instead.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from mastering.chain.builder import (
    Chain,
    build_chain,
    makeup_gain_of,
    normalize_tier,
    tier_profile,
    with_makeup_gain,
)
from mastering.chain.executor import safe_render
from mastering.chain.presets import PREVIEW_SECONDS, TierProfile
from mastering.core import progress as milestones
from mastering.core.io import AudioIO
from mastering.core.progress import ProgressCallback, ProgressReporter
from mastering.core.types import ProcessingResult, SampleBuffer, VolumeAnalysis
from mastering.export.preview import trim
from mastering.export.wav import encode
from mastering.qc.gain_correction import needs_rerender, optimal_gain
from mastering.qc.loudness import analyze

logger = logging.getLogger("mastering.pipeline")


class MasteringPipeline:
    """
    Stateless apart from configuration; safe to share across threads.
    """

    def __init__(self, preview_seconds: float = PREVIEW_SECONDS):
        self.preview_seconds = preview_seconds

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def master(
        self,
        data: bytes,
        tier: Optional[str] = "basic",
        mime: Optional[str] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> ProcessingResult:
        """Decode encoded audio bytes and master them. Raises DecodeFailure."""
        reporter = ProgressReporter(progress)
        reporter.report(milestones.START)
        buffer = AudioIO.decode(data, mime)
        reporter.report(milestones.DECODED)
        return self._process(buffer, tier, reporter)

    def master_buffer(
        self,
        buffer: SampleBuffer,
        tier: Optional[str] = "basic",
        progress: Optional[ProgressCallback] = None,
    ) -> ProcessingResult:
        """Master an already-decoded buffer."""
        reporter = ProgressReporter(progress)
        reporter.report(milestones.START)
        reporter.report(milestones.DECODED)
        return self._process(buffer, tier, reporter)

    async def master_async(
        self,
        data: bytes,
        tier: Optional[str] = "basic",
        mime: Optional[str] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> ProcessingResult:
        """
        Same contract as master(). Suspends only around decode and the two
        render passes; analysis, trimming and encoding run inline.
        """
        reporter = ProgressReporter(progress)
        reporter.report(milestones.START)
        buffer = await asyncio.to_thread(AudioIO.decode, data, mime)
        reporter.report(milestones.DECODED)

        state = self._plan(buffer, tier)
        first, ok = await asyncio.to_thread(safe_render, buffer, state.chain, self._first_span(reporter))
        self._review(buffer, state, first, ok, reporter)
        if state.corrected_chain is not None:
            state.processed, state.ok = await asyncio.to_thread(
                safe_render, buffer, state.corrected_chain, self._second_span(reporter)
            )
        return self._finish(state, reporter)

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def _process(self, buffer: SampleBuffer, tier: Optional[str], reporter: ProgressReporter) -> ProcessingResult:
        state = self._plan(buffer, tier)
        first, ok = safe_render(buffer, state.chain, self._first_span(reporter))
        self._review(buffer, state, first, ok, reporter)
        if state.corrected_chain is not None:
            state.processed, state.ok = safe_render(buffer, state.corrected_chain, self._second_span(reporter))
        return self._finish(state, reporter)

    def _plan(self, buffer: SampleBuffer, tier: Optional[str]) -> "_RenderState":
        chain_name = normalize_tier(tier)
        chain = build_chain(chain_name)
        logger.info(
            "Mastering %.2f s, %d ch @ %d Hz with %s chain (%d stages)",
            buffer.duration_s, buffer.channels, buffer.sample_rate, chain_name, len(chain),
        )
        return _RenderState(
            chain_name=chain_name,
            profile=tier_profile(chain_name),
            chain=chain,
            applied=makeup_gain_of(chain),
        )

    @staticmethod
    def _first_span(reporter: ProgressReporter):
        return reporter.span(milestones.DECODED, milestones.FIRST_RENDER_END)

    @staticmethod
    def _second_span(reporter: ProgressReporter):
        return reporter.span(milestones.ANALYZED, milestones.RENDERED)

    @staticmethod
    def _review(original: SampleBuffer, state: "_RenderState", first: SampleBuffer, ok: bool,
                reporter: ProgressReporter) -> None:
        """Record the first pass, analyze it and decide on the corrected pass."""
        state.processed, state.ok = first, ok
        reporter.report(milestones.FIRST_RENDER_END)
        state.analysis = analyze(original, first)
        reporter.report(milestones.ANALYZED)

        # At most one corrected pass; a failed first pass is already the unprocessed input
        if not ok:
            return
        corrected = optimal_gain(state.analysis, state.profile)
        if needs_rerender(corrected, state.profile, state.applied):
            state.corrected_chain = with_makeup_gain(state.chain, corrected)
            state.applied = corrected
            state.rerendered = True

    def _finish(self, state: "_RenderState", reporter: ProgressReporter) -> ProcessingResult:
        reporter.report(milestones.RENDERED)
        processed = state.processed
        degraded = not state.ok

        preview = trim(processed, self.preview_seconds)
        reporter.report(milestones.TRIMMED)

        preview_bytes = encode(preview)
        full_bytes = encode(processed)
        reporter.report(milestones.ENCODED)
        logger.info(
            "Encoded preview %d bytes (%d samples), full %d bytes (%d samples)%s",
            len(preview_bytes), preview.length, len(full_bytes), processed.length,
            " [unprocessed fallback]" if degraded else "",
        )

        result = ProcessingResult(
            preview_bytes=preview_bytes,
            full_bytes=full_bytes,
            tier=state.chain_name,
            sample_rate=processed.sample_rate,
            channels=processed.channels,
            full_length=processed.length,
            preview_length=preview.length,
            applied_gain=None if degraded else state.applied,
            rerendered=state.rerendered,
            analysis=state.analysis,
            degraded=degraded,
        )
        reporter.report(milestones.DONE)
        return result


@dataclass
class _RenderState:
    """Per-call bookkeeping between the render passes."""
    chain_name: str
    profile: TierProfile
    chain: Chain
    applied: float
    processed: Optional[SampleBuffer] = None
    ok: bool = True
    analysis: Optional[VolumeAnalysis] = None
    corrected_chain: Optional[Chain] = None
    rerendered: bool = False


def master(data: bytes, tier: Optional[str] = "basic", mime: Optional[str] = None,
           progress: Optional[ProgressCallback] = None) -> ProcessingResult:
    """Module-level convenience for MasteringPipeline().master()."""
    return MasteringPipeline().master(data, tier, mime, progress)
