#!/usr/bin/env python3
"""
Master an audio file on disk and write the preview and full WAVs.

Usage:
    python tools/master.py <input> [options]

Options:
    --tier <str>          free | basic | premium (default: basic)
    --output-dir <path>   Output directory (default: renders/<stem>/YYYYMMDD_HHMMSS/)
    --report              Save <stem>.report.json with analysis, gain decision and fingerprint
"""
import sys
import os
import json
import hashlib
import logging
import argparse
import mimetypes
from datetime import datetime
from pathlib import Path
from typing import Dict

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import numpy as np

from mastering import config
from mastering.core.io import AudioIO
from mastering.errors import DecodeFailure
from mastering.pipeline import MasteringPipeline

logger = logging.getLogger("mastering.tools")


def _compute_fingerprint(wav_bytes: bytes) -> Dict:
    """SHA256 plus peak/RMS of the encoded full render."""
    buffer = AudioIO.decode(wav_bytes)
    ch0 = buffer.channel(0).numpy().astype(np.float64)
    return {
        "sha256": hashlib.sha256(wav_bytes).hexdigest(),
        "peak": float(np.max(np.abs(ch0))) if ch0.size else 0.0,
        "rms": float(np.sqrt(np.mean(ch0 ** 2) + 1e-12)),
    }


def get_unique_output_dir(stem: str) -> Path:
    """renders/{stem}/YYYYMMDD_HHMMSS/"""
    now = datetime.now()
    return Path("renders") / stem / now.strftime("%Y%m%d_%H%M%S")


def master_file(input_path: Path, tier: str, output_dir: Path, report: bool = False) -> Dict:
    data = input_path.read_bytes()
    mime, _ = mimetypes.guess_type(str(input_path))

    def on_progress(pct: int) -> None:
        print(f"\r  {pct:3d}%", end="", flush=True)

    result = MasteringPipeline().master(data, tier=tier, mime=mime, progress=on_progress)
    print()

    output_dir.mkdir(parents=True, exist_ok=True)
    stem = input_path.stem
    preview_path = output_dir / f"{stem}_preview.wav"
    full_path = output_dir / f"{stem}_full.wav"
    AudioIO.save(str(preview_path), result.preview_bytes)
    AudioIO.save(str(full_path), result.full_bytes)

    info = {
        "input": str(input_path),
        "tier": result.tier,
        "timestamp": datetime.now().isoformat(),
        "sample_rate": result.sample_rate,
        "channels": result.channels,
        "full_length": result.full_length,
        "preview_length": result.preview_length,
        "applied_gain": result.applied_gain,
        "rerendered": result.rerendered,
        "degraded": result.degraded,
        "analysis": result.analysis.summary() if result.analysis else None,
        "preview_path": str(preview_path),
        "full_path": str(full_path),
    }
    if report:
        info["fingerprint"] = _compute_fingerprint(result.full_bytes)
        json_path = output_dir / f"{stem}.report.json"
        with open(json_path, "w") as f:
            json.dump(info, f, indent=2, default=str)
        info["report_path"] = str(json_path)
    return info


def main():
    parser = argparse.ArgumentParser(description="Master an audio file (preview + full WAV)")
    parser.add_argument("input", type=str, help="Input audio file")
    parser.add_argument("--tier", type=str, default="basic",
                        help="free | basic | premium (unknown values use basic)")
    parser.add_argument("--output-dir", type=str, help="Output directory (default: unique timestamped)")
    parser.add_argument("--report", action="store_true", help="Save a JSON report next to the WAVs")
    args = parser.parse_args()

    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)

    input_path = Path(args.input)
    if not input_path.is_file():
        print(f"Input not found: {input_path}", file=sys.stderr)
        return 1

    output_dir = Path(args.output_dir) if args.output_dir else get_unique_output_dir(input_path.stem)

    try:
        info = master_file(input_path, args.tier, output_dir, report=args.report)
    except DecodeFailure as e:
        print(f"Could not decode {input_path}: {e}", file=sys.stderr)
        return 2

    print(f"Preview: {info['preview_path']}")
    print(f"Full:    {info['full_path']}")
    if info["analysis"]:
        a = info["analysis"]
        print(f"Loudness ratio {a['average_ratio']:.3f}, consistency {a['consistency_score']:.3f}, "
              f"make-up gain {info['applied_gain']} ({'re-rendered' if info['rerendered'] else 'first pass'})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
