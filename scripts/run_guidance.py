#!/usr/bin/env python3
"""CLI for running live capture guidance against a camera or a video file."""

from __future__ import annotations

import argparse
import asyncio
import logging
import time
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Union

import cv2
import pandas as pd

from woundcapture.camera.sampler import FrameSampler
from woundcapture.camera.source import CameraStream, OpenCVCameraSource
from woundcapture.config import PROFILES, GuidanceConfig, load_config
from woundcapture.detectors.loader import DetectorLoader
from woundcapture.errors import CaptureError, SubmitError
from woundcapture.io_utils import dump_json, ensure_dir, resolve_path, setup_logging, write_bytes
from woundcapture.session.capture import CaptureSession, CaptureStep, SubmitReceipt
from woundcapture.types import Frame, GuidanceResult
from woundcapture.viz.overlay import draw_guidance

LOGGER = logging.getLogger("scripts.run_guidance")

WINDOW_NAME = "woundcapture"


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run live capture guidance on a camera or video")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--device", type=int, default=None, help="Camera device index")
    source.add_argument("--video", type=Path, default=None, help="Video file used instead of a camera")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("configs/guidance.yaml"),
        help="Guidance configuration YAML",
    )
    parser.add_argument(
        "--profile",
        type=str,
        choices=sorted(PROFILES),
        default=None,
        help="Subject profile preset (overrides config)",
    )
    parser.add_argument("--weights", type=str, default=None, help="YOLO weights override")
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Detection interval in seconds (default from config)",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Stop after this many seconds (default: run until capture or quit)",
    )
    parser.add_argument(
        "--display",
        action="store_true",
        help="Show an OpenCV preview window (c = capture, q = quit)",
    )
    parser.add_argument(
        "--auto-capture",
        action="store_true",
        help="Capture and submit as soon as the subject is ready",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("data/captures"),
        help="Directory for captured JPEGs and the session summary",
    )
    parser.add_argument("--notes", type=str, default="", help="Notes submitted with the capture")
    parser.add_argument("--log-csv", type=Path, default=None, help="Per-cycle guidance log (CSV)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def _resolve_camera_device(args: argparse.Namespace, config: GuidanceConfig) -> Union[int, str]:
    if getattr(args, "video", None) is not None:
        return str(args.video)
    if getattr(args, "device", None) is not None:
        return int(args.device)
    return config.session.camera_device


def _resolve_interval(args: argparse.Namespace, config: GuidanceConfig) -> float:
    interval = args.interval if getattr(args, "interval", None) is not None else config.session.interval_s
    if interval <= 0:
        LOGGER.warning("Invalid interval %s requested; defaulting to %.2fs", interval, config.session.interval_s)
        return config.session.interval_s
    return float(interval)


def _apply_overrides(args: argparse.Namespace, config: GuidanceConfig) -> GuidanceConfig:
    """CLI flags win over the config file, which wins over built-in defaults."""
    session = replace(
        config.session,
        interval_s=_resolve_interval(args, config),
        camera_device=_resolve_camera_device(args, config),
    )
    detection = config.detection
    if getattr(args, "weights", None):
        detection = replace(detection, weights=args.weights)
    return replace(config, session=session, detection=detection)


class DirectoryService:
    """Stores submitted captures on disk and acknowledges with the file stem."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def submit(self, image: bytes, notes: str) -> SubmitReceipt:
        artifact_id = datetime.now().strftime("capture_%Y%m%d_%H%M%S_%f")
        try:
            path = write_bytes(self.root / f"{artifact_id}.jpg", image)
            dump_json(self.root / f"{artifact_id}.json", {"image": path.name, "notes": notes})
        except OSError as exc:
            raise SubmitError(f"Unable to store capture: {exc}") from exc
        LOGGER.info("Stored capture %s (%d bytes)", path, len(image))
        return SubmitReceipt(artifact_id=artifact_id)


class PreviewSampler(FrameSampler):
    """Frame sampler that remembers the last frame for the preview window."""

    def __init__(self) -> None:
        super().__init__()
        self.last_frame: Optional[Frame] = None

    def sample(self, stream: CameraStream) -> Optional[Frame]:
        frame = super().sample(stream)
        if frame is not None:
            self.last_frame = frame
        return frame


class GuidanceRecorder:
    """Session listener collecting one row per applied detection cycle."""

    def __init__(self) -> None:
        self.rows: Dict[int, dict] = {}
        self.ready_cycles = 0

    def __call__(self, session: CaptureSession) -> None:
        result: GuidanceResult = session.result
        if result.sequence <= 0 or result.sequence in self.rows:
            return
        row = result.as_row()
        row["timestamp"] = time.time()
        self.rows[result.sequence] = row
        if result.ready:
            self.ready_cycles += 1

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([self.rows[key] for key in sorted(self.rows)])


async def _capture_and_submit(session: CaptureSession, notes: str) -> Optional[str]:
    session.capture()
    if notes:
        session.set_notes(notes)
    session.analyze()
    artifact_id = await session.upload()
    if artifact_id is None:
        LOGGER.error("Submit failed: %s", session.last_error)
    return artifact_id


def _show_preview(session: CaptureSession, sampler: PreviewSampler) -> Optional[str]:
    """Draw the overlay and return the pressed key, if any."""
    frame = sampler.last_frame
    if frame is not None:
        canvas = draw_guidance(
            cv2.cvtColor(frame.rgb(), cv2.COLOR_RGB2BGR),
            session.result,
            model_loading=session.model_loading,
            camera_error=session.camera_error,
        )
        cv2.imshow(WINDOW_NAME, canvas)
    key = cv2.waitKey(1) & 0xFF
    if key == 255:
        return None
    return chr(key)


def _stop_reason(session: CaptureSession, args: argparse.Namespace, started: float) -> Optional[str]:
    """Why the guidance loop should end now, or None to keep going."""
    if session.camera_error is not None:
        return "camera unavailable"
    if session.step is not CaptureStep.CAMERA:
        return f"left camera step ({session.step.value})"
    if args.duration is not None and time.monotonic() - started >= args.duration:
        return f"duration {args.duration:.1f}s elapsed"
    if not session.model_loading and not session.guidance_available and not args.display:
        return f"guidance unavailable: {session.last_error}"
    return None


async def run(args: argparse.Namespace, config: GuidanceConfig) -> dict:
    output_dir = ensure_dir(resolve_path(str(args.output), Path.cwd()))
    sampler = PreviewSampler()
    recorder = GuidanceRecorder()
    session = CaptureSession(
        camera=OpenCVCameraSource(config.session.camera_device),
        loader=DetectorLoader(config),
        service=DirectoryService(output_dir),
        config=config,
        sampler=sampler,
    )
    session.add_listener(recorder)

    artifact_id: Optional[str] = None
    started = time.monotonic()
    async with session:
        if session.camera_error:
            LOGGER.error("%s (%s)", session.camera_error, session.camera_error_reason)
        while True:
            reason = _stop_reason(session, args, started)
            if reason is not None:
                LOGGER.info("Stopping guidance: %s", reason)
                break
            key = _show_preview(session, sampler) if args.display else None
            if key == "q":
                break
            if session.can_capture and (args.auto_capture or key == "c"):
                try:
                    artifact_id = await _capture_and_submit(session, args.notes)
                except CaptureError as exc:
                    LOGGER.warning("Capture skipped: %s", exc)
                else:
                    break
            await asyncio.sleep(0.03)
        snapshot = session.snapshot()

    if args.display:
        cv2.destroyAllWindows()

    summary = {
        "profile": config.profile.name,
        "camera_device": config.session.camera_device,
        "interval_s": config.session.interval_s,
        "elapsed_s": round(time.monotonic() - started, 3),
        "cycles": len(recorder.rows),
        "ready_cycles": recorder.ready_cycles,
        "final_step": snapshot.step,
        "guidance_available": snapshot.guidance_available,
        "camera_error": snapshot.camera_error,
        "last_error": snapshot.last_error,
        "artifact_id": artifact_id,
    }
    if args.log_csv is not None:
        ensure_dir(args.log_csv.parent)
        recorder.to_frame().to_csv(args.log_csv, index=False)
        LOGGER.info("Wrote %d guidance rows to %s", len(recorder.rows), args.log_csv)
    dump_json(output_dir / "session_summary.json", summary)
    return summary


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    config_path: Optional[Path] = args.config
    if not config_path.exists():
        LOGGER.warning("Config %s not found; using built-in defaults", config_path)
        config_path = None
    config = load_config(config_path, profile=args.profile)
    config = _apply_overrides(args, config)
    LOGGER.info(
        "Running guidance device=%s profile=%s weights=%s interval=%.2fs auto_capture=%s",
        config.session.camera_device,
        config.profile.name,
        config.weights,
        config.session.interval_s,
        args.auto_capture,
    )

    summary = asyncio.run(run(args, config))
    LOGGER.info(
        "Session finished step=%s cycles=%d ready=%d artifact=%s",
        summary["final_step"].value,
        summary["cycles"],
        summary["ready_cycles"],
        summary["artifact_id"],
    )
    return 1 if summary["camera_error"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
