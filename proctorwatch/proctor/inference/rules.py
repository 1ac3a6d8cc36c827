"""
Violation Rules - Descriptions, severities and object classification
"""

from typing import Optional, Tuple

from ..types import ObjectResult, Severity, ViolationType

FACE_NOT_VISIBLE_DESCRIPTION = "Candidate's face is not visible for more than {delay:g} seconds"
LOOKING_AWAY_DESCRIPTION = "Candidate looking away from screen for more than {delay:g} seconds"
MULTIPLE_FACES_DESCRIPTION = "Multiple people detected in frame ({count} faces)"

# Checked in order; the first substring hit decides the type
OBJECT_RULES = (
    (("phone",), ViolationType.PHONE_DETECTED, Severity.CRITICAL),
    (("book",), ViolationType.BOOK_DETECTED, Severity.HIGH),
    (("laptop", "tablet"), ViolationType.DEVICE_DETECTED, Severity.HIGH),
)


def normalize_label(label: str) -> str:
    return label.strip().lower()


def classify_object_label(label: str) -> Optional[Tuple[ViolationType, Severity]]:
    """
    Map a detector class name to a violation type and severity.

    Returns:
        (type, severity), or None for labels that are suspicious but not
        a violation on their own (mouse, keyboard, ...)
    """
    key = normalize_label(label)
    for needles, violation_type, severity in OBJECT_RULES:
        if any(needle in key for needle in needles):
            return violation_type, severity
    return None


def describe_object(violation_type: ViolationType, obj: ObjectResult) -> str:
    percent = round(obj.confidence * 100)
    if violation_type == ViolationType.PHONE_DETECTED:
        return f"Mobile phone detected with {percent}% confidence"
    if violation_type == ViolationType.BOOK_DETECTED:
        return f"Book/notes detected with {percent}% confidence"
    return f"Electronic device detected: {obj.object}"
