"""Plain-text hotspot report export."""

from datetime import datetime
from typing import Optional, Sequence

from ifire.hotspots import format_detection_time
from ifire.models import Hotspot

RULE = "=" * 80


def report_location_name(location: str) -> str:
    """The part of a location before the first comma."""
    return location.split(",")[0].strip()


def report_filename(location: str, date: datetime) -> str:
    """``iFire_Report_<location>_<DD>_<MM>_<YYYY>.txt``"""
    return f"iFire_Report_{report_location_name(location)}_{date:%d}_{date:%m}_{date:%Y}.txt"


def _type_label(hotspot: Hotspot, missing: str) -> str:
    return hotspot.detection_type.value if hotspot.detection_type is not None else missing


def build_report(selected: Hotspot, hotspots: Sequence[Hotspot], now: Optional[datetime] = None) -> str:
    """
    Render the downloadable report.

    Args:
        selected: Hotspot the report focuses on
        hotspots: Every hotspot of the session
        now: Generation time, defaults to now

    Returns:
        Report text
    """
    now = now or datetime.now()

    def count(level: str) -> int:
        return sum(1 for h in hotspots if h.risk_level == level)

    lines = [
        RULE,
        "                        iFIRE FIRE DETECTION REPORT",
        RULE,
        "",
        f"Report Generated: {now:%Y-%m-%d %H:%M:%S}",
        "",
        "SELECTED HOTSPOT DETAILS",
        "------------------------",
        f"Location: {selected.location}",
        f"Detection Type: {_type_label(selected, 'Unknown')}",
        f"Risk Level: {selected.risk_level}",
        f"Confidence: {selected.confidence}%",
        f"Detection Time: {format_detection_time(selected.detected_at, now)}",
        f"Coordinates: {selected.latitude:.2f}, {selected.longitude:.2f}",
        "",
        "SUMMARY STATISTICS",
        "------------------",
        f"Total Detections: {len(hotspots)}",
        f"High Risk Areas: {count('High')}",
        f"Medium Risk Areas: {count('Medium')}",
        f"Low Risk Areas: {count('Low')}",
        "",
        "ALL HOTSPOTS",
        "------------",
    ]
    lines.extend(
        f"• {h.location} - {_type_label(h, 'N/A')} - Risk: {h.risk_level} ({h.confidence}%)"
        for h in hotspots
    )
    lines.extend([
        "",
        RULE,
        "Powered by iFire AI Detection System",
        RULE,
    ])
    return "\n".join(lines)
