"""
Proctoring Logger - Logs proctoring events and results
"""

import logging
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


def log_proctor_event(
    session_id: str,
    event_type: str,
    details: Optional[Dict[str, Any]] = None,
    level: str = "info"
):
    """
    Log a proctoring event.

    Args:
        session_id: Proctoring session ID
        event_type: Type of event (session_start, violation, session_end, etc.)
        details: Optional event details
        level: Log level (debug, info, warning, error)
    """
    message = f"[PROCTOR] session={session_id} event={event_type}"

    if details:
        detail_str = " ".join(f"{k}={v}" for k, v in details.items())
        message += f" {detail_str}"

    if level == "debug":
        logger.debug(message)
    elif level == "warning":
        logger.warning(message)
    elif level == "error":
        logger.error(message)
    else:
        logger.info(message)


def log_session_start(session_id: str, candidate_name: str):
    """Log monitoring start"""
    log_proctor_event(
        session_id=session_id,
        event_type="session_start",
        details={"candidate": candidate_name}
    )


def log_session_end(session_id: str, integrity_score: int, violations: int, duration: int):
    """Log monitoring stop"""
    log_proctor_event(
        session_id=session_id,
        event_type="session_end",
        details={
            "integrity_score": integrity_score,
            "violations": violations,
            "duration_seconds": duration
        }
    )


def log_violation_emitted(session_id: str, violation_type: str, severity: str, score: int):
    """Log a violation that made it into the timeline"""
    log_proctor_event(
        session_id=session_id,
        event_type="violation",
        details={
            "type": violation_type,
            "severity": severity,
            "integrity_score": score
        },
        level="warning"
    )


def log_violation_suppressed(session_id: str, key: str, remaining: float):
    """Log a violation dropped by a cooldown"""
    log_proctor_event(
        session_id=session_id,
        event_type="suppressed",
        details={
            "key": key,
            "cooldown_remaining": round(remaining, 2)
        },
        level="debug"
    )
