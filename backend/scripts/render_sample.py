#!/usr/bin/env python3
"""
Render a looping animation locally, without the queue or a storage backend.

Useful for checking how settings look and how long a loop takes to render.

Usage:
    python backend/scripts/render_sample.py out.gif --frames 120 --size 256
    python backend/scripts/render_sample.py out.gif --settings my_settings.json
    python backend/scripts/render_sample.py frame.png --still 30
"""

import argparse
import json
import sys
import time
from pathlib import Path

# Add backend to Python path
backend_path = Path(__file__).parent.parent
sys.path.insert(0, str(backend_path))

from pydantic import ValidationError

from app.models.layer_settings import LayerSettings
from render_engine.batch_renderer import iter_loop_frames, render_loop_frame
from render_engine.encoder import AnimationEncoder
from render_engine.exceptions import RenderEngineError


def load_settings(path: str | None) -> LayerSettings:
    if path is None:
        return LayerSettings()
    with open(path) as f:
        return LayerSettings.model_validate(json.load(f))


def main() -> int:
    parser = argparse.ArgumentParser(description="Render a looping Gen1 animation to a file.")
    parser.add_argument("output", type=str, help="Output .gif (or .png with --still)")
    parser.add_argument("--settings", type=str, default=None, help="JSON file with layer settings")
    parser.add_argument("--frames", type=int, default=120, help="Frames per loop")
    parser.add_argument("--size", type=int, default=256, help="Canvas width and height")
    parser.add_argument("--delay", type=int, default=33, help="Frame delay in milliseconds")
    parser.add_argument("--still", type=int, default=None, help="Render only this frame index as PNG")
    args = parser.parse_args()

    try:
        settings = load_settings(args.settings)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        print(f"Invalid settings: {e}")
        return 1

    output = Path(args.output)
    started = time.monotonic()

    if args.still is not None:
        frame = render_loop_frame(settings, args.still, args.frames, args.size)
        frame.to_image().save(output, format="PNG")
        print(f"✓ Frame {args.still}/{args.frames} saved to {output}")
        return 0

    try:
        encoder = AnimationEncoder(delay_ms=args.delay)
        for index, frame in enumerate(iter_loop_frames(settings, args.frames, args.size), start=1):
            encoder.add_frame(frame)
            if index % 25 == 0 or index == args.frames:
                print(f"   Rendered {index}/{args.frames} frames", end="\r")
        print()
        output.write_bytes(encoder.finish())
    except RenderEngineError as e:
        print(f"✗ Render failed: {e}")
        return 1

    elapsed = time.monotonic() - started
    print(f"✓ {args.frames} frames at {args.size}x{args.size} saved to {output} in {elapsed:.1f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
