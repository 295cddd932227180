"""
Focal pipeline - capture frame(s), find exactly one tag per frame, run the selected mode

Camera handles never outlive a single capture; the only state kept across the
interactive search loop is the captured tags themselves.
"""
import math
import time
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from core.event_broker import event_aware
from core.logger import log_aware, logged, LogLevel
from vision.events import CameraEvents
from vision.image import GrayscaleImage, write_image
from vision.manager import grab_grayscale_frame
from vision.apriltag import (
    CameraIntrinsics, ITagDetector, TagDetection, TagDetectionResult, TagEvents, TagRenderer
)
from .calculator import FocalCalculator, FocalLengthEstimate, DistanceCheck
from .config import Mode, RunConfig
from .console import OperatorConsole
from .events import FocalEvents

ORDINALS = ("first", "second")

NO_TAGS = "No tags found"
MULTIPLE_TAGS = "Multiple tags found"


@dataclass(eq=False)
class CapturedTag:
    index: int
    image: GrayscaleImage
    detection: TagDetection
    reference_distance_m: float


@dataclass
class PipelineOutcome:
    focal: Optional[FocalLengthEstimate] = None
    checks: List[DistanceCheck] = field(default_factory=list)
    guesses: int = 0


def check_tag_counts(frames: Sequence[Sequence[TagDetection]]) -> Optional[Tuple[int, str]]:
    """(1-based frame index, reason) for the first frame that rejects the run, or None.

    Multiple tags on any frame is reported before a frame without tags.
    """
    for index, detections in enumerate(frames, 1):
        if len(detections) > 1:
            return index, MULTIPLE_TAGS
    for index, detections in enumerate(frames, 1):
        if not detections:
            return index, NO_TAGS
    return None


def parse_focal_guess(text: str) -> Optional[float]:
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


@event_aware()
@log_aware("Focal")
class FocalPipeline:
    """Runs one calibrate / validate / search session"""

    def __init__(self, config: RunConfig, detector: ITagDetector,
                 console: Optional[OperatorConsole] = None,
                 frame_source: Optional[Callable[[int], GrayscaleImage]] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 renderer: Optional[TagRenderer] = None):
        self.config = config
        self.detector = detector
        self.console = console or OperatorConsole()
        self.frame_source = frame_source or partial(grab_grayscale_frame,
                                                    resolution=config.capture.resolution)
        self._sleep = sleep
        self.renderer = renderer or TagRenderer()
        self.calculator = FocalCalculator()

    @property
    def mode(self) -> Mode:
        return self.config.mode

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    @logged(LogLevel.INFO)
    def run(self) -> Optional[PipelineOutcome]:
        """None when a frame did not contain exactly one tag"""
        self._bridge_events()
        try:
            captures = self.capture_tags()
            if captures is None:
                return None

            if self.mode is Mode.CALIBRATE:
                return self.calibrate(captures)
            if self.mode is Mode.VALIDATE:
                return self.validate(captures)
            return self.search(captures)
        finally:
            self.stop_all_listening()

    def _bridge_events(self):
        self.listen(CameraEvents.ERROR, self.warning)
        self.listen(CameraEvents.CONNECTED, lambda ok: self.debug(f"Camera connected: {ok}"))
        self.listen(CameraEvents.FRAME_CAPTURED, lambda shape: self.debug(f"Frame captured: {shape}"))
        self.listen(TagEvents.POSE_FAILED, lambda tag_id: self.debug(f"No pose for tag {tag_id}"))

    # ------------------------------------------------------------------
    # Capture and detection
    # ------------------------------------------------------------------

    def _frame_label(self, index: int) -> str:
        return ORDINALS[index - 1] if self.mode.frame_count > 1 else ""

    def capture_frame(self, index: int) -> GrayscaleImage:
        label = self._frame_label(index)
        prompt = f"Press Enter to capture the {label} frame" if label else "Press Enter to capture the frame"

        if not self.console.wait_for_enter(prompt):
            self.debug("Input closed, capturing without waiting")

        if self.config.capture.delay_s > 0:
            self._sleep(self.config.capture.delay_s)

        self.console.say("Capturing frame")
        image = self.frame_source(self.config.capture.camera_index)
        self.console.say("Captured frame")

        path = image.save(self._output_path(index))
        self.info(f"Saved frame {index} ({image.width}x{image.height}) to {path}")
        self.emit(FocalEvents.FRAME_READY, index, path)
        return image

    def _output_path(self, index: int, suffix: str = "") -> Path:
        name = Path(self.config.frame_names[index - 1])
        return self.config.capture.output_dir / f"{name.stem}{suffix}{name.suffix}"

    def capture_tags(self) -> Optional[List[CapturedTag]]:
        """Capture and detect every frame first, then require exactly one tag in each"""
        images = [self.capture_frame(i) for i in range(1, self.mode.frame_count + 1)]
        results = [self.detector.detect(image) for image in images]

        if self.config.capture.annotate:
            for index, (image, result) in enumerate(zip(images, results), 1):
                self._save_annotated(index, image, result)

        rejection = check_tag_counts([result.detections for result in results])
        if rejection is not None:
            index, reason = rejection
            label = self._frame_label(index)
            self.console.say(f"{reason} in {label} image" if label else f"{reason} in image")
            self.emit(FocalEvents.TAG_REJECTED, index, reason)
            return None

        captures = []
        for index, (image, result) in enumerate(zip(images, results), 1):
            detection = result.detections[0]
            self.debug(f"Frame {index}: {detection.family} id {detection.tag_id}")
            captures.append(CapturedTag(
                index=index,
                image=image,
                detection=detection,
                reference_distance_m=self.config.inputs.tag_distances_m[index - 1]
            ))
        return captures

    def _save_annotated(self, index: int, image: GrayscaleImage, result: TagDetectionResult):
        path = write_image(self._output_path(index, "_annotated"), self.renderer.render(image.pixels, result))
        self.debug(f"Saved annotated frame {index} to {path}")

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    def estimate_focal_length(self, tag: CapturedTag) -> FocalLengthEstimate:
        inputs = self.config.inputs
        estimate = self.calculator.focal_length_from_distance(
            tag.detection.corners, inputs.tag_width_m, tag.reference_distance_m, inputs.pixel_pitch_m
        )

        self.console.say(f"Average side length: {estimate.average_side_px:.2f}px")
        self.console.say(f"Focal length: {estimate.focal_length_m:.6f}m ({estimate.focal_length_mm:.3f}mm)")
        self.console.say(f"Focal length: {estimate.focal_length_px:.1f}px")
        self.emit(FocalEvents.FOCAL_ESTIMATED, estimate)
        return estimate

    def check_distance(self, tag: CapturedTag, focal_px: float) -> Optional[DistanceCheck]:
        """Pose with the given focal length, compared against the tag's known distance"""
        suffix = f" {tag.index}" if self.mode.frame_count > 1 else ""
        intrinsics = CameraIntrinsics.for_image(focal_px, tag.image.width, tag.image.height)

        pose = self.detector.estimate_pose(tag.detection, self.config.inputs.tag_width_m, intrinsics)
        if pose is None:
            self.console.say(f"Failed to estimate pose for frame{suffix}" if suffix else "Failed to estimate pose")
            return None

        check = self.calculator.distance_check(pose.translation, tag.reference_distance_m)
        self.console.say(f"Apparent distance{suffix}: {check.apparent_distance_m:.2f}m")
        self.console.say(f"Error{suffix}: {check.error_pct:.1f}%")
        self.emit(FocalEvents.DISTANCE_CHECKED, tag.index, check)
        return check

    def calibrate(self, captures: List[CapturedTag]) -> PipelineOutcome:
        tag = captures[0]
        outcome = PipelineOutcome(focal=self.estimate_focal_length(tag))

        check = self.check_distance(tag, outcome.focal.focal_length_px)
        if check is not None:
            outcome.checks.append(check)
        return outcome

    def validate(self, captures: List[CapturedTag]) -> PipelineOutcome:
        outcome = PipelineOutcome(focal=self.estimate_focal_length(captures[0]))

        check = self.check_distance(captures[1], outcome.focal.focal_length_px)
        if check is not None:
            outcome.checks.append(check)
        return outcome

    def search(self, captures: List[CapturedTag]) -> PipelineOutcome:
        """Evaluate focal length guesses until end of input or a quit command"""
        outcome = PipelineOutcome()

        while True:
            reply = self.console.ask("\nType a guess for focal length px (q to quit)")
            if reply is None:
                self.debug("Input closed, leaving search")
                break
            if self.console.is_quit(reply):
                break

            focal_px = parse_focal_guess(reply)
            if focal_px is None:
                self.console.warn("Failed to read focal length guess")
                continue

            outcome.guesses += 1
            for tag in captures:
                check = self.check_distance(tag, focal_px)
                if check is not None:
                    outcome.checks.append(check)

        return outcome
