"""Analyze a recorded training session from a pose frames JSON file.

Runs the movement quality analysis and the shot classifier on the same
frames and prints both results as JSON.

Example:
    python scripts/analyze_session.py session_frames.json --body-index 0 --hand right
"""

import argparse
import json
import logging
from pathlib import Path

from ttclub.analysis.movement_quality import MovementQualityAnalyzer
from ttclub.analysis.shot_classifier import ShotClassifier
from ttclub.pose.frames import load_frames_json

logger = logging.getLogger(__name__)


def main():
    """Main function."""
    parser = argparse.ArgumentParser(description="Analyze pose frames of a training session")
    parser.add_argument("frames", type=Path, help="JSON file with pose frames")
    parser.add_argument(
        "--body-index",
        type=int,
        default=0,
        help="Detected body to analyze (default: 0)",
    )
    parser.add_argument(
        "--hand",
        choices=["left", "right"],
        default=None,
        help="Playing hand from the player profile (default: auto-detect)",
    )
    parser.add_argument(
        "--scale-to-body",
        action="store_true",
        help="Scale shot thresholds by the player's shoulder width",
    )
    parser.add_argument("--output", type=Path, default=None, help="Write JSON here instead of stdout")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    frames = load_frames_json(args.frames)
    logger.info(f"Loaded {len(frames)} frames from {args.frames}")

    movement = MovementQualityAnalyzer(body_index=args.body_index).analyze(frames)
    shots = ShotClassifier(
        body_index=args.body_index,
        scale_to_body=args.scale_to_body or None,
    ).classify(frames, dominant_hand=args.hand)

    result = {
        "movement_quality": movement.to_dict(),
        "shots": shots.to_dict(),
    }
    text = json.dumps(result, indent=2, ensure_ascii=False)

    if args.output is not None:
        args.output.write_text(text, encoding="utf-8")
        logger.info(f"Results written to {args.output}")
    else:
        print(text)


if __name__ == "__main__":
    main()
