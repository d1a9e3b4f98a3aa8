"""
Fire/smoke detection module using pixel color heuristics.

Fire and smoke are recognised by color: flames are red/orange/yellow, smoke
is a low-saturation gray, white or bluish haze. The image is scanned at a
bounded working resolution, every pixel is classified, and per-cell
statistics on a coarse grid localise the flagged areas.
"""
import time
from typing import List, Optional, Tuple

from PIL import Image

from ifire.auxiliary import DetectionContext
from ifire.color_classifier import fire_mask, smoke_mask
from ifire.config import DetectorConfig
from ifire.grid import aggregate, flagged_regions
from ifire.image_handler import PixelSampler, WorkingImage, round_half_up
from ifire.logging_utils import get_logger
from ifire.models import BoundingBox, ColorAnalysis, DetectionResult, DetectionType, Region
from ifire.region_merger import merge_by_policy

logger = get_logger(__name__)

FIRE_OBJECTS = ["Fire", "Flames"]
SMOKE_OBJECTS = ["Smoke"]


def fire_recommendations(confidence: int) -> List[str]:
    return [
        f"🔥 Fire detected with {confidence}% confidence",
        "⚠️ Immediate action required - verify and alert authorities",
        "📞 Contact emergency services (911) if confirmed",
        "🚨 Evacuate area and ensure safety of personnel",
        "📍 Document location and monitor fire spread",
    ]


def smoke_recommendations(confidence: int) -> List[str]:
    return [
        f"💨 Smoke detected with {confidence}% confidence",
        "⚠️ Potential fire hazard - investigate source immediately",
        "🔍 Check for hidden fires or smoldering materials",
        "📞 Contact fire department if smoke persists",
        "👥 Ensure area is evacuated if smoke intensifies",
    ]


def no_fire_recommendations(confidence: int) -> List[str]:
    return [
        "✅ No fire or smoke detected in image",
        "🔍 Image analysis complete - area appears safe",
        f"📊 Confidence: {confidence}%",
        "🔄 Continue monitoring with regular scans",
        "📸 Upload another image to continue surveillance",
    ]


def image_quality(width: int) -> str:
    """Categorise an image by its original width."""
    if width > 1000:
        return "Excellent"
    elif width > 600:
        return "Good"
    else:
        return "Fair"


def affected_area(boxes: List[BoundingBox], image_width: int, image_height: int) -> str:
    """Share of the image covered by the boxes, e.g. ``"12% of image"``."""
    image_area = image_width * image_height
    percent = sum(box.area / image_area * 100 for box in boxes)
    return f"{round_half_up(percent)}% of image"


class FireDetector:
    """
    Color-heuristic fire and smoke detector.

    Pipeline:
    1. Downscale the image to the working resolution
    2. Classify every pixel as fire-like and/or smoke-like
    3. Tally per-cell ratios on a grid and flag dense cells
    4. Merge flagged cells into bounding boxes per class
    5. Turn global percentages into a verdict and confidence
    """

    def __init__(self, config: Optional[DetectorConfig] = None):
        self.config = config or DetectorConfig()
        self.sampler = PixelSampler(self.config.max_dimension)

    def analyze_colors(self, image: Image.Image) -> ColorAnalysis:
        """
        Run color analysis on a decoded image.

        Args:
            image: Decoded PIL image

        Returns:
            ColorAnalysis with scores and merged regions

        Raises:
            DecodeError: If the image has no pixels
            AnalysisUnavailable: If the pixel buffer cannot be produced
        """
        working = self.sampler.sample(image)
        return self.analyze_pixels(working)

    def analyze_pixels(self, working: WorkingImage) -> ColorAnalysis:
        """Run color analysis on an already sampled buffer."""
        cfg = self.config

        fire = fire_mask(working.pixels)
        smoke = smoke_mask(working.pixels)
        stats = aggregate(fire, smoke, cfg.grid_size)

        image_width, image_height = working.original_size
        fire_raw, smoke_raw = flagged_regions(
            stats, image_width, image_height,
            fire_ratio=cfg.fire_cell_ratio,
            smoke_ratio=cfg.smoke_cell_ratio,
        )
        logger.debug("Flagged cells: fire=%s smoke=%s",
                     [(r.grid_x, r.grid_y) for r in fire_raw],
                     [(r.grid_x, r.grid_y) for r in smoke_raw])

        total_pixels = working.pixel_count
        fire_percentage = int(fire.sum()) / total_pixels * 100
        smoke_percentage = int(smoke.sum()) / total_pixels * 100
        fire_score, smoke_score, has_fire, has_smoke = self.score(fire_percentage, smoke_percentage)

        return ColorAnalysis(
            fire_percentage=fire_percentage,
            smoke_percentage=smoke_percentage,
            fire_score=fire_score,
            smoke_score=smoke_score,
            has_fire_colors=has_fire,
            has_smoke_colors=has_smoke,
            fire_regions=merge_by_policy(fire_raw, cfg.merge_policy, cfg.grid_size),
            smoke_regions=merge_by_policy(smoke_raw, cfg.merge_policy, cfg.grid_size),
            working_size=(working.width, working.height),
            cells=stats.cells(),
        )

    def score(self, fire_percentage: float, smoke_percentage: float) -> Tuple[float, float, bool, bool]:
        """
        Convert pixel percentages into scores and color gates.

        Returns:
            Tuple of (fire_score, smoke_score, has_fire_colors, has_smoke_colors)
        """
        cfg = self.config
        return (
            min(fire_percentage * cfg.fire_score_gain, 100.0),
            min(smoke_percentage * cfg.smoke_score_gain, 100.0),
            fire_percentage > cfg.fire_pixel_percent,
            smoke_percentage > cfg.smoke_pixel_percent,
        )

    def classify(self, analysis: ColorAnalysis) -> Tuple[DetectionType, int]:
        """
        Decide the verdict and confidence. Fire takes precedence over smoke.

        Args:
            analysis: Output of analyze_colors

        Returns:
            Tuple of (detection_type, confidence)
        """
        cfg = self.config
        if analysis.has_fire_colors and analysis.fire_score > cfg.fire_score_min:
            return DetectionType.FIRE, min(round_half_up(analysis.fire_score), cfg.fire_confidence_cap)
        if analysis.has_smoke_colors and analysis.smoke_score > cfg.smoke_score_min:
            return DetectionType.SMOKE, min(round_half_up(analysis.smoke_score), cfg.smoke_confidence_cap)
        strongest = round_half_up(max(analysis.fire_score, analysis.smoke_score))
        return DetectionType.NO_FIRE, max(cfg.no_fire_confidence_floor, 100 - strongest)

    def decide(
        self,
        analysis: ColorAnalysis,
        image_width: int,
        image_height: int,
        processing_time: str = "0ms",
        context_labels: Optional[List[str]] = None,
    ) -> DetectionResult:
        """
        Build the DetectionResult for an analysis.

        Args:
            analysis: Output of analyze_colors
            image_width: Original image width
            image_height: Original image height
            processing_time: Preformatted duration, e.g. ``"84ms"``
            context_labels: Labels from the auxiliary detector, if any

        Returns:
            DetectionResult
        """
        detection_type, confidence = self.classify(analysis)

        if detection_type is DetectionType.FIRE:
            boxes = self._boxes("Fire", analysis.fire_regions, analysis.fire_score)
            detected_objects = list(FIRE_OBJECTS)
            recommendations = fire_recommendations(confidence)
        elif detection_type is DetectionType.SMOKE:
            boxes = self._boxes("Smoke", analysis.smoke_regions, analysis.smoke_score)
            detected_objects = list(SMOKE_OBJECTS)
            recommendations = smoke_recommendations(confidence)
        else:
            boxes = []
            detected_objects = []
            recommendations = no_fire_recommendations(confidence)

        fire_detected = detection_type is not DetectionType.NO_FIRE
        area = affected_area(boxes, image_width, image_height) if fire_detected else "0%"

        logger.info("Verdict: %s (confidence %d%%, %d box(es))",
                    detection_type.value, confidence, len(boxes))

        return DetectionResult(
            fire_detected=fire_detected,
            detection_type=detection_type,
            confidence=confidence,
            detected_objects=detected_objects,
            affected_area=area,
            bounding_boxes=boxes,
            processing_time=processing_time,
            image_quality=image_quality(image_width),
            lighting_conditions="Analyzed",
            recommendations=recommendations,
            context_labels=list(context_labels or []),
        )

    def detect(self, image: Image.Image, context: Optional[DetectionContext] = None) -> DetectionResult:
        """
        Detect fire or smoke in an image.

        Args:
            image: Decoded PIL image
            context: Model context; its auxiliary detector is optional

        Returns:
            DetectionResult

        Raises:
            DecodeError: If the image has no pixels
            AnalysisUnavailable: If the pixel buffer cannot be produced
        """
        start_time = time.perf_counter()

        analysis = self.analyze_colors(image)
        logger.debug("Color analysis: fire=%.2f%% smoke=%.2f%% fire_score=%.1f smoke_score=%.1f",
                     analysis.fire_percentage, analysis.smoke_percentage,
                     analysis.fire_score, analysis.smoke_score)

        context_labels: List[str] = []
        if context is not None and context.auxiliary is not None:
            try:
                context_labels = context.detect_labels(image)
            except Exception as e:
                # The auxiliary detector never decides the verdict.
                logger.warning("Auxiliary detector failed, using color analysis only: %s", e)

        elapsed_ms = round_half_up((time.perf_counter() - start_time) * 1000)
        return self.decide(
            analysis,
            image.width,
            image.height,
            processing_time=f"{elapsed_ms}ms",
            context_labels=context_labels,
        )

    def _boxes(self, label: str, regions: List[Region], score: float) -> List[BoundingBox]:
        rounded = round_half_up(score)
        return [
            BoundingBox(label=label, score=rounded, x=r.x, y=r.y, width=r.width, height=r.height)
            for r in regions[:self.config.max_boxes]
        ]
