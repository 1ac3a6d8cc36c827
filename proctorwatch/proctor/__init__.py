"""
Proctorwatch Proctoring Module

Watches a live video stream of a test-taker and detects:
- Face absence
- Looking away from the screen
- Multiple people in frame
- Phones, books and other devices

Violations are de-bounced and cooled down into a timeline, and every
session carries an Integrity Score (0-100) derived from it.
"""

from .errors import InitializationError, ProctorError
from .session import ProctorSession, SessionListener
from .types import Severity, ViolationEvent, ViolationType

__all__ = [
    "InitializationError",
    "ProctorError",
    "ProctorSession",
    "SessionListener",
    "Severity",
    "ViolationEvent",
    "ViolationType",
]
