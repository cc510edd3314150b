#!/usr/bin/env python3
"""Batch tempo estimation for audio files.

For each file: decode, estimate BPM, map it to a rotation speed and snap
the requested multiplier to the rhythmic grid.

Usage:
    python scripts/analyze.py song.mp3                    # one file
    python scripts/analyze.py music/ --recursive          # whole tree
    python scripts/analyze.py music/ --multiplier 1.4     # snapped speed
    python scripts/analyze.py music/ --output tempos.json
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from tqdm import tqdm

logging.basicConfig(level=logging.WARNING, format="%(name)s %(levelname)s: %(message)s")

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from orbitbeat.analysis.rhythm import snap_multiplier
from orbitbeat.analysis.tempo import TempoEstimator
from orbitbeat.api.upload import ALLOWED_EXTENSIONS


def collect_files(paths: list[str], recursive: bool) -> list[Path]:
    files = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            pattern = "**/*" if recursive else "*"
            files.extend(sorted(
                p for p in path.glob(pattern)
                if p.is_file() and p.suffix.lower() in ALLOWED_EXTENSIONS
            ))
        elif path.is_file():
            files.append(path)
        else:
            print(f"Skipping {raw}: not found", file=sys.stderr)
    return files


def analyze(files: list[Path], multiplier: float) -> list[dict]:
    estimator = TempoEstimator()
    rows = []
    for path in tqdm(files, desc="Analyzing", unit="file"):
        estimate = estimator.analyze_file(str(path))
        snapped = snap_multiplier(multiplier, estimate.bpm)
        rows.append({
            "file": str(path),
            "bpm": estimate.bpm,
            "confidence": estimate.confidence,
            "optimal_speed": estimate.optimal_speed,
            "multiplier": snapped,
            "speed": round(estimate.optimal_speed * snapped, 3),
            "fallback": estimate.is_fallback,
        })
    return rows


def print_table(rows: list[dict]) -> None:
    print(f"{'BPM':>5} {'CONF':>5} {'BASE':>6} {'MULT':>6} {'SPEED':>6}  FILE")
    for row in rows:
        flag = " (fallback)" if row["fallback"] else ""
        print(
            f"{row['bpm']:>5} {row['confidence']:>5.2f} {row['optimal_speed']:>6.2f} "
            f"{row['multiplier']:>6.3f} {row['speed']:>6.3f}  {row['file']}{flag}"
        )


def main():
    parser = argparse.ArgumentParser(description="Estimate tempo and rotation speed")
    parser.add_argument("paths", nargs="+", help="Audio files or directories")
    parser.add_argument("--recursive", "-r", action="store_true", help="Descend into subdirectories")
    parser.add_argument("--multiplier", type=float, default=1.0, help="Speed multiplier to snap (default 1.0)")
    parser.add_argument("--output", "-o", help="Write results as JSON to this path")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log analysis details")
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger("orbitbeat").setLevel(logging.DEBUG)

    files = collect_files(args.paths, args.recursive)
    if not files:
        print("No audio files found", file=sys.stderr)
        sys.exit(1)

    rows = analyze(files, args.multiplier)
    if args.output:
        Path(args.output).write_text(json.dumps(rows, indent=2))
        print(f"Wrote {len(rows)} results to {args.output}")
    else:
        print_table(rows)


if __name__ == "__main__":
    main()
