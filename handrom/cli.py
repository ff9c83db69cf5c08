"""
command line for recording, summarizing and replaying rom sessions.

to run:
  python -m handrom.cli record --subject P001 --kind WRIST_FLEXION_EXTENSION --out data/P001.h5
  python -m handrom.cli summarize data/P001.h5
  python -m handrom.cli replay data/P001.h5 --speed 2 --seek max
"""

from __future__ import annotations

import argparse
import sys
import time
from typing import List, Optional

from .core.interpretation import (
    interpret_deviation,
    interpret_kapandji,
    interpret_tam,
    interpret_wrist,
)
from .core.results import AssessmentKind, Digit, ResultKind, SessionSummary
from .session.aggregator import summarize_all_digits, summarize_session
from .session.replay import ReplayController
from .session.storage import SessionFormatError, load_session


KIND_CHOICES = [k.value for k in AssessmentKind]
DIGIT_CHOICES = [d.value for d in Digit]


def format_metrics(metrics) -> str:
    """one-line readout of a per-frame result."""
    if metrics is None:
        return "no hand"
    if metrics.kind == ResultKind.JOINT_ANGLES:
        return (f"mcp {metrics.mcp:5.1f}  pip {metrics.pip:5.1f}  dip {metrics.dip:5.1f}  "
                f"tam {metrics.total_active_rom:5.1f}")
    if metrics.kind == ResultKind.KAPANDJI:
        return f"kapandji {metrics.max_score}/10"
    if metrics.kind == ResultKind.WRIST_ANGLES:
        return (f"flexion {metrics.flexion:5.1f}  extension {metrics.extension:5.1f}  "
                f"conf {metrics.confidence:.2f}")
    return (f"deviation {metrics.deviation_angle:+5.1f}  radial {metrics.radial:5.1f}  "
            f"ulnar {metrics.ulnar:5.1f}  conf {metrics.confidence:.2f}")


def print_summary(summary: SessionSummary):
    print(f"[info] session summary ({summary.kind.value}, hand {summary.hand_type}, {summary.frame_count} frames)")
    if summary.kind == AssessmentKind.TAM:
        band = interpret_tam(summary.digit, summary.max_tam)
        print(f"  digit: {summary.digit.value}")
        print(f"  max tam: {summary.max_tam:.1f} @ frame {summary.max_tam_frame}")
        print(f"  min tam: {summary.min_tam:.1f} @ frame {summary.min_tam_frame}")
        print(f"  max mcp / pip / dip: {summary.max_mcp:.1f} / {summary.max_pip:.1f} / {summary.max_dip:.1f} "
              f"@ frames {summary.max_mcp_frame} / {summary.max_pip_frame} / {summary.max_dip_frame}")
    elif summary.kind == AssessmentKind.KAPANDJI:
        band = interpret_kapandji(summary.max_kapandji)
        print(f"  kapandji: {summary.max_kapandji}/10 @ frame {summary.max_kapandji_frame}")
    elif summary.kind == AssessmentKind.WRIST_FLEXION_EXTENSION:
        band = interpret_wrist(summary.max_flexion, summary.max_extension)
        print(f"  max flexion: {summary.max_flexion:.1f} @ frame {summary.max_flexion_frame}")
        print(f"  max extension: {summary.max_extension:.1f} @ frame {summary.max_extension_frame}")
    else:
        band = interpret_deviation(summary.max_radial, summary.max_ulnar)
        print(f"  max radial: {summary.max_radial:.1f} @ frame {summary.max_radial_frame}")
        print(f"  max ulnar: {summary.max_ulnar:.1f} @ frame {summary.max_ulnar_frame}")
    print(f"  mean confidence: {summary.mean_confidence:.2f}")
    print(f"  interpretation: {band.level} ({band.description}, {band.percent_of_normal:.0f}% of normal)")


# ============================================================
# commands
# ============================================================

def cmd_record(args) -> int:
    import cv2

    from .core.tracker import LandmarkTracker
    from .session.recorder import SessionRecorder

    cap = cv2.VideoCapture(args.camera)
    if not cap.isOpened():
        print("[error] failed to open camera")
        return 1
    fps = cap.get(cv2.CAP_PROP_FPS) or args.fps
    print(f"[success] camera opened @ ~{fps:.0f}fps")

    recorder = SessionRecorder(
        args.subject,
        kind=args.kind,
        session_id=args.session,
        assessment_hand_type=args.hand,
        digit=args.digit,
        capture_fps=fps,
    )

    frame_count = 0
    with LandmarkTracker(args.hand_model, args.pose_model) as tracker:
        recorder.start()
        try:
            while True:
                ret, frame = cap.read()
                if not ret or frame is None:
                    break

                ts_ms = int(frame_count * 1000.0 / fps)
                hand, pose = tracker.process(frame, ts_ms)
                recorder.record_frame(hand, pose, timestamp=ts_ms / 1000.0)
                frame_count += 1

                text = format_metrics(recorder.last_metrics if hand is not None else None)
                cv2.putText(frame, text, (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 255, 0), 2)
                cv2.imshow("handrom", frame)
                if cv2.waitKey(1) & 0xFF == ord('q'):
                    break
                if args.max_frames and frame_count >= args.max_frames:
                    break
        except KeyboardInterrupt:
            print("\n[info] interrupted, stopping")
        finally:
            cap.release()
            cv2.destroyAllWindows()

    session = recorder.stop()
    recorder.save(args.out, json_path=args.json)
    print_summary(summarize_session(session.frames, session.kind, args.digit))
    return 0


def cmd_summarize(args) -> int:
    if args.all_digits:
        session = load_session(args.path, kind=args.kind or AssessmentKind.TAM)
        for summary in summarize_all_digits(session.frames).values():
            print_summary(summary)
        return 0
    session = load_session(args.path, kind=args.kind)
    print_summary(summarize_session(session.frames, session.kind, args.digit))
    return 0


def cmd_replay(args) -> int:
    session = load_session(args.path, kind=args.kind)
    player = ReplayController(session, digit=args.digit)
    player.set_speed(args.speed)

    if player.frame_count == 0:
        print("[warn] no frames to replay")
        return 1
    if args.seek is not None:
        if args.seek == "max":
            player.jump_to_max()
        elif args.seek == "min":
            player.jump_to_min()
        else:
            player.seek(int(args.seek))
        print(f"[info] frame {player.current_frame_index}: {format_metrics(player.current_metrics)}")
        return 0

    def on_frame(index, metrics):
        if args.verbose:
            print(f"  frame {index:5d}: {format_metrics(metrics)}")

    print(f"[info] replaying {player.frame_count} frames @ {player.speed}x ({player.tick_interval_ms} ms/tick)")
    sleep = (lambda _s: None) if args.no_wait else time.sleep
    player.run(on_frame, sleep=sleep)
    print_summary(player.summary)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="handrom", description="hand range-of-motion sessions")
    sub = parser.add_subparsers(dest="command", required=True)

    rec = sub.add_parser("record", help="record a session from the webcam")
    rec.add_argument("--subject", type=str, required=True, help="subject identifier")
    rec.add_argument("--session", type=str, default=None, help="session identifier (auto if omitted)")
    rec.add_argument("--kind", choices=KIND_CHOICES, default=AssessmentKind.TAM.value)
    rec.add_argument("--digit", choices=DIGIT_CHOICES, default=Digit.INDEX.value)
    rec.add_argument("--hand", choices=["LEFT", "RIGHT"], default=None,
                     help="assessment hand, only used if laterality cannot be detected")
    rec.add_argument("--out", type=str, required=True, help="output .h5 path")
    rec.add_argument("--json", type=str, default=None, help="also write the json record array")
    rec.add_argument("--camera", type=int, default=0, help="camera index")
    rec.add_argument("--fps", type=float, default=30.0, help="fallback fps if the camera does not report one")
    rec.add_argument("--max-frames", type=int, default=0, help="stop after n frames (0 = until 'q')")
    rec.add_argument("--hand-model", type=str, default="models/hand_landmarker.task")
    rec.add_argument("--pose-model", type=str, default="models/pose_landmarker_full.task")
    rec.set_defaults(func=cmd_record)

    summ = sub.add_parser("summarize", help="print the session summary of a recording")
    summ.add_argument("path", type=str, help=".h5 or .json recording")
    summ.add_argument("--kind", choices=KIND_CHOICES, default=None,
                      help="override the stored assessment kind (required for .json)")
    summ.add_argument("--digit", choices=DIGIT_CHOICES, default=Digit.INDEX.value)
    summ.add_argument("--all-digits", action="store_true", help="TAM summary for every finger")
    summ.set_defaults(func=cmd_summarize)

    rep = sub.add_parser("replay", help="replay a recording frame by frame")
    rep.add_argument("path", type=str, help=".h5 or .json recording")
    rep.add_argument("--kind", choices=KIND_CHOICES, default=None, help="required for .json")
    rep.add_argument("--digit", choices=DIGIT_CHOICES, default=Digit.INDEX.value)
    rep.add_argument("--speed", type=float, default=1.0, help="0.25 - 2.0")
    rep.add_argument("--seek", type=str, default=None, help="frame index, 'max' or 'min'")
    rep.add_argument("--no-wait", action="store_true", help="do not sleep between ticks")
    rep.add_argument("--verbose", action="store_true", help="print every frame")
    rep.set_defaults(func=cmd_replay)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except (SessionFormatError, FileNotFoundError) as e:
        print(f"[error] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
