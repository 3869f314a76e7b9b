# scripts/replay_session.py
import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, List

from gestyx.errors import GestyxError
from gestyx.io.replay import JsonReplayProvider, NullCapture
from gestyx.pipeline.controller import Mode, ModeController
from gestyx.config import LOG_LEVEL, PipelineConfig


class JsonFileSink:
    """Persistence collaborator: writes the saved session payload to disk."""

    def __init__(self, path: str):
        self.path = path

    def save(self, payload: Dict[str, Any]) -> str:
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        return self.path


def write_csv(csv_path: str, timeline: List[Dict[str, Any]]) -> None:
    os.makedirs(os.path.dirname(csv_path) or ".", exist_ok=True)
    with open(csv_path, "w", encoding="utf-8") as f:
        f.write("t,label,value\n")
        for entry in timeline:
            for m in entry["metrics"]:
                f.write(f"{entry['timestamp']:.6f},{m['label']},{m['value']}\n")


def main():
    ap = argparse.ArgumentParser(description="Replay recorded landmarks through a scoring mode")
    ap.add_argument("--input", required=True, help="Keypoint JSON (timestamps/keypoints[/faces/expressions])")
    ap.add_argument("--mode", required=True, choices=[m.value for m in Mode])
    ap.add_argument("--out", default=None, help="Saved session payload JSON path")
    ap.add_argument("--csv", default=None, help="Optional timeline CSV path")
    ap.add_argument("--frame_skip", type=int, default=1, help="Process every Nth frame once stable")
    ap.add_argument("--seed", type=int, default=None, help="Seed for descriptor selection")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else LOG_LEVEL)

    try:
        provider = JsonReplayProvider.from_file(args.input)
    except GestyxError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
    if not len(provider):
        print("No frames in input.", file=sys.stderr)
        sys.exit(2)
    print(f"[Replay] frames={len(provider)} mode={args.mode}")

    sink = JsonFileSink(args.out) if args.out else None
    ctl = ModeController(provider, NullCapture(), sink, PipelineConfig(frame_skip=max(1, args.frame_skip), seed=args.seed))
    try:
        ctl.switch_mode(args.mode)
        first = provider.timestamps[0]
        ctl.start_session(first)
        last = first
        for ts in provider.frames():
            ctl.on_frame_ready(ts)
            last = ts
        rec = ctl.stop_session(save=True, timestamp=last)
    except GestyxError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        ctl.close()

    summary = rec.summary
    print(f"[Session] frames={len(rec.timeline)} duration={rec.duration_seconds:.1f}s "
          f"score={summary.overall_score} rating={summary.rating}")
    for s in summary.strengths:
        print(f"[+] {s}")
    for i in summary.improvements:
        print(f"[-] {i}")
    for k in summary.key_insights:
        print(f"[i] {k}")

    if args.out:
        print(f"[OUT] JSON payload -> {args.out}")
    if args.csv:
        write_csv(args.csv, rec.to_payload()["timeline"])
        print(f"[OUT] CSV -> {args.csv}")

    print("[Done]")


if __name__ == "__main__":
    main()
