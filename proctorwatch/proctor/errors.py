"""Proctoring exceptions"""


class ProctorError(Exception):
    """Base class for proctoring errors"""


class InitializationError(ProctorError):
    """Raised when no detection backend can be brought up"""


class FrameProcessingError(ProctorError):
    """Raised when a single frame cannot be captured or analysed"""
