"""
Data models for the iFire detection dashboard.
"""
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import List, Tuple, Dict, Any, Optional


class DetectionType(str, Enum):
    """Outcome of one detection run."""
    FIRE = "Fire"
    SMOKE = "Smoke"
    NO_FIRE = "No Fire"


@dataclass
class GridCell:
    """Per-cell pixel tallies over the working image."""
    grid_x: int
    grid_y: int
    fire_count: int
    smoke_count: int
    total_count: int

    @property
    def fire_ratio(self) -> float:
        return self.fire_count / self.total_count if self.total_count else 0.0

    @property
    def smoke_ratio(self) -> float:
        return self.smoke_count / self.total_count if self.total_count else 0.0


@dataclass(frozen=True)
class Region:
    """A flagged grid cell expressed in full-resolution pixel space."""
    x: int
    y: int
    width: int
    height: int
    grid_x: int = -1
    grid_y: int = -1

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height


@dataclass(frozen=True)
class BoundingBox:
    """Emitted detection rectangle in full-image pixel coordinates."""
    label: str  # "Fire" or "Smoke"
    score: int  # 0 to 100
    x: int
    y: int
    width: int
    height: int

    @property
    def bbox(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.width, self.height)

    @property
    def area(self) -> int:
        return self.width * self.height


@dataclass
class ColorAnalysis:
    """Aggregate color statistics of one image."""
    fire_percentage: float
    smoke_percentage: float
    fire_score: float
    smoke_score: float
    has_fire_colors: bool
    has_smoke_colors: bool
    fire_regions: List[Region]  # merged
    smoke_regions: List[Region]  # merged
    working_size: Tuple[int, int]  # (width, height)
    cells: List[GridCell] = field(default_factory=list)


@dataclass(frozen=True)
class DetectionResult:
    """Complete detection report for an analyzed image."""
    fire_detected: bool
    detection_type: DetectionType
    confidence: int
    detected_objects: List[str]
    affected_area: str
    bounding_boxes: List[BoundingBox]
    processing_time: str
    image_quality: str
    lighting_conditions: str
    recommendations: List[str]
    context_labels: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['detection_type'] = self.detection_type.value
        return data


@dataclass
class Hotspot:
    """A map record built from a detection result."""
    id: int
    location: str
    confidence: int
    detected_at: datetime
    risk_level: str  # "Low", "Medium" or "High"
    latitude: float
    longitude: float
    region: str = "Sumatra"
    detection_type: Optional[DetectionType] = None


@dataclass(frozen=True)
class RiskPrediction:
    """Output of the fire-risk regression network."""
    risk_score: int
    confidence: int
    uncertainty: int
    risk_level: str  # "Low", "Medium", "High" or "Critical"
    # Percentage share per condition: temperature, humidity, rainfall, vegetation
    feature_importance: Dict[str, int] = field(default_factory=dict)
    confidence_range: Tuple[int, int] = (0, 100)
