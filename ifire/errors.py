"""
Exception hierarchy for the detection pipeline.
"""


class FireDetectionError(Exception):
    """Base class for all iFire errors."""


class DecodeError(FireDetectionError):
    """The uploaded image could not be decoded."""


class AnalysisUnavailable(FireDetectionError):
    """A pixel buffer for color analysis could not be produced."""


class AuxiliaryDetectorError(FireDetectionError):
    """The auxiliary object detector failed. Never affects the verdict."""


class ModelNotReady(FireDetectionError):
    """The risk-prediction network was used before it was trained."""


class DetectorBusy(FireDetectionError):
    """A detection is already running; the new submission was rejected."""
