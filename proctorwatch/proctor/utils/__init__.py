"""Utility modules"""

from .frame_quality import is_frame_ready, is_motion_detected
from .logging import log_proctor_event

__all__ = ["is_frame_ready", "is_motion_detected", "log_proctor_event"]
