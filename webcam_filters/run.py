#!/usr/bin/env python3
"""Live Webcam Filters.

Sample calls:
    # Preview the default camera with the kaleidoscope filter
    python -m webcam_filters.run --filter kaleidoscope

    # Request 1280x720 from the second camera, pixelate with bigger blocks
    python -m webcam_filters.run --source 1 --width 1280 --height 720 \
        --filter "pixelate:block_size=16"

    # Use a video file as the camera
    python -m webcam_filters.run --source clip.mp4 --filter water_ripple

    # Headless run (no window), 300 frames through the ASCII filter
    python -m webcam_filters.run --source clip.mp4 --filter ascii --no_gui --frames 300
"""

import argparse
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def _parse_filter(filter_str: str) -> tuple[str, dict]:
    """Parse a CLI filter string.

    Format: "<filter_id>[:<param>=<value>,...]"
    Example: "temporal_blend:alpha=0.6"
    """
    tokens = filter_str.split(":", 1)
    filter_id = tokens[0].strip()
    params = {}
    if len(tokens) > 1:
        for kv in tokens[1].split(","):
            kv = kv.strip()
            if not kv:
                continue
            if "=" not in kv:
                logger.warning("Ignoring malformed filter parameter: %s", kv)
                continue
            k, v = kv.split("=", 1)
            params[k.strip()] = v.strip()
    return filter_id, params


def _create_source(args):
    """Build a webcam source for a device index, a file source otherwise."""
    from webcam_filters.core.frame_source import VideoFileSource, WebcamSource

    source = args.source
    if source.isdigit():
        return WebcamSource(int(source), width=args.width, height=args.height, fps=args.capture_fps)
    if source.startswith("/dev/"):
        return WebcamSource(source, width=args.width, height=args.height, fps=args.capture_fps)
    return VideoFileSource(Path(source), loop=not args.no_loop)


def _run_headless(args, source, filter_id, filter_params) -> int:
    """Render without opening a window and report render statistics."""
    from webcam_filters.core.frame_buffer import OffscreenSurface
    from webcam_filters.core.frame_source import FrameSourceError
    from webcam_filters.core.render_loop import BlockingScheduler, RenderLoop

    scheduler = BlockingScheduler(paced=not args.unpaced)
    loop = RenderLoop(
        source=source,
        surface=OffscreenSurface(),
        scheduler=scheduler,
        filter_id=filter_id,
        filter_params=filter_params,
        interval_ms=max(1, int(1000 / args.fps)),
    )
    try:
        loop.start()
        scheduler.run(max_ticks=args.frames)
    except FrameSourceError as e:
        logger.error("Capture failed: %s", e)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    finally:
        loop.dispose()

    stats = loop.stats
    print(
        f"Rendered {stats.frames_presented} frames "
        f"({stats.skipped_ticks} skipped ticks, {stats.fps:.1f} fps) "
        f"at {stats.resolution[0]}x{stats.resolution[1]}"
    )
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Live Webcam Filters",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--source", type=str, default="0",
        help="Camera index, V4L2 device path or video file (default: 0).",
    )
    parser.add_argument(
        "--width", type=int, default=None,
        help="Requested capture width in pixels.",
    )
    parser.add_argument(
        "--height", type=int, default=None,
        help="Requested capture height in pixels.",
    )
    parser.add_argument(
        "--fps", type=float, default=60.0,
        help="Render tick rate (default: 60).",
    )
    parser.add_argument(
        "--capture_fps", type=float, default=30.0,
        help="Frame rate requested from a webcam (default: 30).",
    )
    parser.add_argument(
        "--filter", type=str, default="identity",
        help='Active filter with optional parameters, e.g. "pixelate:block_size=16".',
    )
    parser.add_argument(
        "--list_filters", action="store_true",
        help="Print the available filters and exit.",
    )
    parser.add_argument(
        "--no_loop", action="store_true",
        help="Stop at the end of a video file instead of rewinding.",
    )
    parser.add_argument(
        "--no_gui", action="store_true",
        help="Run headless (no window).",
    )
    parser.add_argument(
        "--frames", type=int, default=None,
        help="Number of ticks to run in headless mode (default: until interrupted).",
    )
    parser.add_argument(
        "--unpaced", action="store_true",
        help="Headless mode: tick as fast as possible instead of at --fps.",
    )
    parser.add_argument(
        "--log_level", type=str, default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO).",
    )

    args = parser.parse_args()
    logging.basicConfig(level=args.log_level, format="%(levelname)s: %(message)s")

    from webcam_filters.filters import FilterRegistry

    if args.list_filters:
        for descriptor in FilterRegistry.get_descriptors():
            print(f"{descriptor.filter_id.value:16s} {descriptor.name}")
        return 0

    if args.fps <= 0 or args.capture_fps <= 0:
        logger.error("--fps and --capture_fps must be positive.")
        return 1

    filter_name, params = _parse_filter(args.filter)
    try:
        descriptor = FilterRegistry.get(filter_name)
        descriptor.create(params)
    except KeyError:
        logger.error("Unknown filter '%s'. Use --list_filters.", filter_name)
        return 1
    except ValueError as e:
        logger.error("Invalid parameters for '%s': %s", filter_name, e)
        return 1
    filter_params = {descriptor.filter_id: params} if params else None

    source = _create_source(args)

    if args.no_gui:
        return _run_headless(args, source, descriptor.filter_id, filter_params)

    from PySide6.QtWidgets import QApplication

    from webcam_filters.ui.preview_window import PreviewWindow

    app = QApplication.instance() or QApplication(sys.argv)
    window = PreviewWindow(
        source=source,
        filter_id=descriptor.filter_id,
        filter_params=filter_params,
        interval_ms=max(1, int(1000 / args.fps)),
    )
    window.show()
    if not window.start():
        return 1
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
