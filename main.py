#!/usr/bin/env python3
"""
posewatch - Camera-based posture and behavior observation

Runs a detection session against a local webcam, shows the mirrored preview
with the keypoint overlay, and prints posture statistics when the session
ends.

Usage:
    python main.py                  # Preview window, press q to stop
    python main.py --headless -d 30 # No window, stop after 30 seconds
    python main.py --no-face        # Disable face landmarks
    python main.py --version        # Show version
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import cv2
from rich.console import Console
from rich.table import Table

console = Console()

WINDOW_NAME = "posewatch"


def setup_logging(verbose: bool = False):
    """Configure logging for the application."""
    formatter = logging.Formatter(
        fmt='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    root_logger.addHandler(console_handler)

    logging.getLogger('posewatch').setLevel(logging.DEBUG if verbose else logging.INFO)


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="posewatch - Camera posture observation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python main.py                          # Preview with overlay
    python main.py --camera 1               # Use the second camera
    python main.py --headless --duration 60 # Record for a minute, no window
    python main.py --timeline out.json      # Save the timeline on exit
        """
    )

    parser.add_argument(
        "--version", "-v",
        action="store_true",
        help="Show version and exit"
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Settings file (JSON)"
    )

    parser.add_argument(
        "--camera", "-c",
        type=int,
        default=None,
        metavar="INDEX",
        help="Camera index to use (default: from settings)"
    )

    parser.add_argument(
        "--duration", "-d",
        type=float,
        default=0.0,
        help="Stop after this many seconds (0 = until q is pressed)"
    )

    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run without a preview window"
    )

    parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Tilt threshold in degrees"
    )

    parser.add_argument("--no-body", action="store_true", help="Disable body tracking")
    parser.add_argument("--no-hands", action="store_true", help="Disable hand tracking")
    parser.add_argument("--no-face", action="store_true", help="Disable face tracking")

    parser.add_argument(
        "--timeline",
        type=Path,
        metavar="PATH",
        help="Write the observation timeline and statistics to a JSON file"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    return parser.parse_args()


def build_settings(args):
    """Load settings and apply command line overrides."""
    from posewatch.config.settings import Settings

    settings = Settings(args.config) if args.config else Settings()
    if args.camera is not None:
        settings.camera.device_index = args.camera
    if args.threshold is not None:
        settings.detection.tilt_threshold = args.threshold
    if args.no_body:
        settings.detection.enable_body = False
    if args.no_hands:
        settings.detection.enable_hand = False
    if args.no_face:
        settings.detection.enable_face = False
    return settings


def print_statistics(session):
    """Print a summary table of the recorded posture."""
    stats = session.statistics

    table = Table(title="Posture Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Observations", str(len(session.timeline)))
    table.add_row("Upright", f"{stats.upright_percentage}%")
    table.add_row("Leaning left", f"{stats.left_tilt_percentage}%")
    table.add_row("Leaning right", f"{stats.right_tilt_percentage}%")
    table.add_row("Slouching", f"{stats.slouching_percentage}%")
    table.add_row("Tilt episodes", str(stats.total_tilt_episodes))
    table.add_row("Avg tilt duration", f"{stats.avg_tilt_duration_ms} ms")
    console.print(table)


def show_preview(session) -> bool:
    """Draw one preview frame. Returns False when the user asks to quit."""
    frame = session.video_surface.frame
    if frame is None:
        return True

    preview = session.overlay_surface.composite(frame, mirror=True)
    posture = session.current_posture
    cv2.putText(
        preview,
        f"{posture.label}  {session.current_tilt_angle:+.1f} deg",
        (10, 30),
        cv2.FONT_HERSHEY_SIMPLEX,
        0.7,
        (255, 255, 255),
        2,
    )
    cv2.imshow(WINDOW_NAME, preview)
    return (cv2.waitKey(1) & 0xFF) != ord("q")


async def run(args) -> int:
    """Run one detection session."""
    from posewatch.core.session import PostureSession

    settings = build_settings(args)

    def on_posture_change(category, angle):
        console.print(f"[bold]{category.label}[/bold] ({angle:+.1f} deg)")

    session = PostureSession(settings, on_posture_change=on_posture_change)

    with console.status("Starting camera and models..."):
        started = await session.start()
    if not started:
        console.print("[red]Could not start posture detection[/red]")
        return 1

    console.print("[green]Detection running[/green]" + ("" if args.headless else " - press q to stop"))

    loop = asyncio.get_running_loop()
    started_at = loop.time()
    frame_interval = settings.detection.frame_interval or 1 / 30

    try:
        while True:
            if args.duration > 0 and loop.time() - started_at >= args.duration:
                break
            if not args.headless and not show_preview(session):
                break
            await asyncio.sleep(frame_interval)
    except KeyboardInterrupt:
        pass
    finally:
        session.stop()
        if not args.headless:
            cv2.destroyAllWindows()

    print_statistics(session)

    if args.timeline:
        data = {
            "timeline": [entry.to_dict() for entry in session.timeline],
            "statistics": session.statistics.to_dict(),
        }
        args.timeline.write_text(json.dumps(data, indent=2))
        console.print(f"Timeline written to {args.timeline}")

    return 0


def main():
    """Main entry point."""
    args = parse_args()

    if args.version:
        from posewatch import __version__
        print(f"posewatch v{__version__}")
        return 0

    setup_logging(args.verbose)

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
