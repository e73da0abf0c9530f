"""
End-to-end pipeline tests: artifacts, progress, correction pass, fallbacks.
"""
import asyncio
import math

import pytest

import mastering.pipeline as pipeline_module
from conftest import make_buffer
from mastering.chain import stages as s
from mastering.chain.presets import BASIC_CHAIN
from mastering.core import progress as milestones
from mastering.core.io import AudioIO
from mastering.errors import DecodeFailure
from mastering.export.wav import HEADER_BYTES, encode
from mastering.pipeline import MasteringPipeline, master


def _wav(seconds: float, sample_rate: int = 44100, channels: int = 1) -> bytes:
    return encode(make_buffer(seconds=seconds, sample_rate=sample_rate, channels=channels))


@pytest.fixture
def short_wav():
    return _wav(2.0, 22050, channels=2)


class TestArtifacts:
    def test_two_minute_mono_basic(self):
        result = master(_wav(120.0), tier="basic", mime="audio/wav")
        assert result.tier == "basic"
        assert result.sample_rate == 44100
        assert result.channels == 1
        assert result.full_length == 120 * 44100
        assert result.preview_length == 60 * 44100
        assert len(result.full_bytes) == HEADER_BYTES + 120 * 44100 * 2
        assert len(result.preview_bytes) == HEADER_BYTES + 60 * 44100 * 2

    def test_short_track_preview_is_whole_track(self, short_wav):
        result = master(short_wav, tier="premium")
        assert result.preview_length == result.full_length == 2 * 22050
        assert len(result.preview_bytes) == len(result.full_bytes)

    def test_preview_is_prefix_of_full(self):
        pipeline = MasteringPipeline(preview_seconds=1.0)
        result = pipeline.master(_wav(3.0, 8000), tier="basic")
        preview = result.preview_bytes[HEADER_BYTES:]
        full = result.full_bytes[HEADER_BYTES:]
        assert len(preview) == 8000 * 2
        assert full.startswith(preview)

    def test_output_decodes(self, short_wav):
        result = master(short_wav, tier="premium")
        decoded = AudioIO.decode(result.full_bytes)
        assert decoded.channels == 2
        assert decoded.sample_rate == 22050
        assert decoded.length == 2 * 22050
        assert float(decoded.samples.abs().max()) <= 1.0

    def test_deterministic(self, short_wav):
        a = master(short_wav, tier="premium")
        b = master(short_wav, tier="premium")
        assert a.full_bytes == b.full_bytes
        assert a.preview_bytes == b.preview_bytes

    @pytest.mark.parametrize("tier", ["enterprise", None, ""])
    def test_unknown_tier_uses_basic(self, short_wav, tier):
        assert master(short_wav, tier=tier).tier == "basic"

    def test_free_tier_renders_basic_chain(self, short_wav):
        assert master(short_wav, tier="free").full_bytes == master(short_wav, tier="basic").full_bytes

    def test_master_buffer(self):
        buf = make_buffer(seconds=1.0, sample_rate=16000, channels=2)
        result = MasteringPipeline().master_buffer(buf, tier="basic")
        assert result.full_length == 16000
        assert result.analysis is not None


class TestProgress:
    def test_milestones_in_order(self, short_wav):
        seen = []
        master(short_wav, tier="premium", progress=seen.append)
        assert seen[0] == milestones.START
        assert seen[-1] == milestones.DONE
        assert seen == sorted(seen)
        for mark in (milestones.DECODED, milestones.FIRST_RENDER_END, milestones.ANALYZED,
                     milestones.RENDERED, milestones.TRIMMED, milestones.ENCODED):
            assert mark in seen

    def test_progress_is_optional(self, short_wav):
        assert master(short_wav, progress=None).full_bytes


class TestCorrectionPass:
    def _count_renders(self, monkeypatch):
        calls = []
        real = pipeline_module.safe_render

        def counting(buffer, chain, progress=None):
            calls.append(chain)
            return real(buffer, chain, progress)

        monkeypatch.setattr(pipeline_module, "safe_render", counting)
        return calls

    def test_no_rerender_when_gain_close(self, monkeypatch, short_wav):
        calls = self._count_renders(monkeypatch)
        monkeypatch.setattr(pipeline_module, "optimal_gain", lambda analysis, profile: 1.15)
        result = master(short_wav, tier="basic")
        assert len(calls) == 1
        assert result.rerendered is False
        assert result.applied_gain == pytest.approx(1.1)

    def test_single_rerender_when_gain_far(self, monkeypatch, short_wav):
        calls = self._count_renders(monkeypatch)
        monkeypatch.setattr(pipeline_module, "optimal_gain", lambda analysis, profile: 1.6)
        result = master(short_wav, tier="basic")
        assert len(calls) == 2
        assert result.rerendered is True
        assert result.applied_gain == pytest.approx(1.6)
        makeup = [st for st in calls[1] if st.name == "makeup_gain"][0]
        assert makeup.gain == pytest.approx(1.6)
        # Same stages otherwise
        assert [st.name for st in calls[0]] == [st.name for st in calls[1]]

    def test_exactly_one_rerender_at_corrected_gain(self, monkeypatch, short_wav):
        calls = self._count_renders(monkeypatch)
        monkeypatch.setattr(pipeline_module, "optimal_gain", lambda analysis, profile: 1.3)
        result = master(short_wav, tier="basic")
        assert len(calls) == 2
        assert [st.gain for st in calls[0] if st.name == "makeup_gain"] == [pytest.approx(1.1)]
        assert [st.gain for st in calls[1] if st.name == "makeup_gain"] == [pytest.approx(1.3)]
        assert result.applied_gain == pytest.approx(1.3)

    def test_async_path_rerenders_the_same_way(self, monkeypatch, short_wav):
        calls = self._count_renders(monkeypatch)
        monkeypatch.setattr(pipeline_module, "optimal_gain", lambda analysis, profile: 1.3)
        result = asyncio.run(MasteringPipeline().master_async(short_wav, tier="basic"))
        assert len(calls) == 2
        assert result.rerendered is True
        assert result.applied_gain == pytest.approx(1.3)

    def test_premium_uses_full_chain_on_rerender(self, monkeypatch, short_wav):
        calls = self._count_renders(monkeypatch)
        # premium gain with no correction needed: 1.1 * 1.8, more than 0.2 from 2.2
        monkeypatch.setattr(pipeline_module, "optimal_gain", lambda analysis, profile: 1.98)
        result = master(short_wav, tier="premium")
        assert result.applied_gain == pytest.approx(1.98)
        assert len(calls) == 2
        assert len(calls[1]) == 21


class TestFailures:
    def test_garbage_bytes(self):
        with pytest.raises(DecodeFailure) as exc:
            master(b"definitely not audio", mime="audio/wav")
        assert exc.value.unsupported_type is False

    def test_empty_bytes(self):
        with pytest.raises(DecodeFailure):
            master(b"")

    def test_unsupported_mime(self, short_wav):
        with pytest.raises(DecodeFailure) as exc:
            master(short_wav, mime="text/plain")
        assert exc.value.unsupported_type is True

    @pytest.mark.parametrize("mime", ["audio/wav", "audio/x-wav; codecs=1", "application/octet-stream", None])
    def test_accepted_mime(self, short_wav, mime):
        assert master(short_wav, mime=mime).full_bytes

    def test_render_failure_delivers_input(self, monkeypatch):
        broken = BASIC_CHAIN + (s.peaking("broken", "tone", frequency=1000.0, gain_db=math.nan, q=1.0),)
        monkeypatch.setattr(pipeline_module, "build_chain", lambda tier: broken)
        data = _wav(1.0, 8000)
        seen = []
        result = master(data, tier="basic", progress=seen.append)
        assert result.degraded is True
        assert result.applied_gain is None
        assert result.rerendered is False
        # Unprocessed audio, re-encoded
        original = AudioIO.decode(data).samples
        delivered = AudioIO.decode(result.full_bytes).samples
        assert delivered.shape == original.shape
        assert float((delivered - original).abs().max()) <= 2.0 / 32768
        assert seen[-1] == 100


class TestAsync:
    def test_async_matches_sync(self, short_wav):
        sync_result = master(short_wav, tier="premium")
        async_result = asyncio.run(MasteringPipeline().master_async(short_wav, tier="premium"))
        assert async_result.full_bytes == sync_result.full_bytes
        assert async_result.preview_bytes == sync_result.preview_bytes
        assert async_result.applied_gain == sync_result.applied_gain

    def test_async_decode_failure(self):
        with pytest.raises(DecodeFailure):
            asyncio.run(MasteringPipeline().master_async(b"nope", mime="audio/wav"))
