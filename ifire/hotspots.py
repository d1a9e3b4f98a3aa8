"""In-memory hotspot registry and location resolution for the dashboard map."""

import random
import time
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Protocol, Tuple

from ifire.models import DetectionResult, DetectionType, Hotspot

RISK_LEVELS = ("High", "Medium", "Low")


class LocationResolver(Protocol):
    """Turns a location name into (latitude, longitude)."""

    def resolve(self, location: str) -> Tuple[float, float]:
        ...


class RandomRegionResolver:
    """Placeholder resolver: a uniform random point inside a fixed box.

    Defaults to a 4x4 degree box centred on Riau, Sumatra.
    """

    def __init__(self, center: Tuple[float, float] = (0.5, 101.0), span: float = 4.0,
                 rng: Optional[random.Random] = None):
        self.center = center
        self.span = span
        self.rng = rng or random.Random()

    def resolve(self, location: str) -> Tuple[float, float]:
        lat = self.center[0] + (self.rng.random() - 0.5) * self.span
        lon = self.center[1] + (self.rng.random() - 0.5) * self.span
        return lat, lon


def risk_level_for(detection_type: DetectionType) -> str:
    if detection_type is DetectionType.FIRE:
        return "High"
    if detection_type is DetectionType.SMOKE:
        return "Medium"
    return "Low"


def parse_coordinates(lat: Optional[str], lon: Optional[str]) -> Optional[Tuple[float, float]]:
    """
    Parse optional user-entered coordinates.

    Returns None when both are blank; raises ValueError when only one is
    given or either is out of range.
    """
    lat = (lat or "").strip()
    lon = (lon or "").strip()
    if not lat and not lon:
        return None
    if not lat or not lon:
        raise ValueError("Provide both latitude and longitude, or neither")
    lat_value, lon_value = float(lat), float(lon)
    if not -90 <= lat_value <= 90:
        raise ValueError(f"Latitude out of range: {lat_value}")
    if not -180 <= lon_value <= 180:
        raise ValueError(f"Longitude out of range: {lon_value}")
    return lat_value, lon_value


def make_hotspot(
    result: DetectionResult,
    location: str,
    coordinates: Optional[Tuple[float, float]] = None,
    resolver: Optional[LocationResolver] = None,
    now: Optional[datetime] = None,
    hotspot_id: Optional[int] = None,
) -> Hotspot:
    """
    Build a hotspot record from a detection result.

    Args:
        result: Detection to record
        location: User-supplied location name (required)
        coordinates: Explicit (lat, lon); resolved from the name when None
        resolver: Location resolver, RandomRegionResolver by default
        now: Detection timestamp, defaults to now
        hotspot_id: Record id, defaults to a millisecond timestamp

    Returns:
        Hotspot
    """
    location = location.strip()
    if not location:
        raise ValueError("Location name is required")

    if coordinates is None:
        coordinates = (resolver or RandomRegionResolver()).resolve(location)
    latitude, longitude = coordinates

    return Hotspot(
        id=hotspot_id if hotspot_id is not None else int(time.time() * 1000),
        location=location,
        confidence=result.confidence,
        detected_at=now or datetime.now(),
        risk_level=risk_level_for(result.detection_type),
        latitude=latitude,
        longitude=longitude,
        detection_type=result.detection_type,
    )


def hotspot_label(hotspot: Hotspot) -> str:
    """Selection label; the id keeps same-named hotspots apart."""
    return f"#{hotspot.id} {hotspot.location} ({hotspot.risk_level})"


def format_detection_time(detected_at: datetime, now: Optional[datetime] = None) -> str:
    """Relative time such as "Just now" or "6 hours ago"."""
    delta = (now or datetime.now()) - detected_at
    if delta < timedelta(minutes=1):
        return "Just now"
    if delta < timedelta(hours=1):
        minutes = int(delta.total_seconds() // 60)
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    if delta < timedelta(days=1):
        hours = int(delta.total_seconds() // 3600)
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    days = delta.days
    return f"{days} day{'s' if days != 1 else ''} ago"


def demo_hotspots(now: Optional[datetime] = None) -> List[Hotspot]:
    """The sample hotspots the dashboard starts with."""
    now = now or datetime.now()
    return [
        Hotspot(id=1, location="Riau Province, Sumatra", confidence=94,
                detected_at=now - timedelta(hours=2), risk_level="High",
                latitude=0.5, longitude=101.0, detection_type=DetectionType.FIRE),
        Hotspot(id=2, location="Jambi Province, Sumatra", confidence=76,
                detected_at=now - timedelta(hours=6), risk_level="Medium",
                latitude=-1.5, longitude=103.0, detection_type=DetectionType.SMOKE),
        Hotspot(id=3, location="North Sumatra", confidence=58,
                detected_at=now - timedelta(hours=12), risk_level="Low",
                latitude=2.0, longitude=99.0),
    ]


class HotspotRegistry:
    """Session-scoped list of hotspots, newest first."""

    def __init__(self, hotspots: Optional[List[Hotspot]] = None):
        self._hotspots: List[Hotspot] = list(hotspots or [])
        self.selected: Optional[Hotspot] = self._hotspots[0] if self._hotspots else None

    def __len__(self) -> int:
        return len(self._hotspots)

    def __iter__(self):
        return iter(self._hotspots)

    @property
    def hotspots(self) -> List[Hotspot]:
        return list(self._hotspots)

    def next_id(self) -> int:
        return max((h.id for h in self._hotspots), default=0) + 1

    def add(self, hotspot: Hotspot, select: bool = True) -> Hotspot:
        if any(h.id == hotspot.id for h in self._hotspots):
            raise ValueError(f"Duplicate hotspot id {hotspot.id}")
        self._hotspots.insert(0, hotspot)
        if select:
            self.selected = hotspot
        return hotspot

    def select(self, hotspot_id: int) -> Hotspot:
        for hotspot in self._hotspots:
            if hotspot.id == hotspot_id:
                self.selected = hotspot
                return hotspot
        raise KeyError(f"No hotspot with id {hotspot_id}")

    def count_by_risk(self) -> Dict[str, int]:
        counts = {level: 0 for level in RISK_LEVELS}
        for hotspot in self._hotspots:
            counts[hotspot.risk_level] = counts.get(hotspot.risk_level, 0) + 1
        return counts

    def map_points(self) -> Dict[str, List[float]]:
        """Columns for ``st.map``."""
        return {
            "lat": [h.latitude for h in self._hotspots],
            "lon": [h.longitude for h in self._hotspots],
        }
