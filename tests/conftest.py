"""
Pytest Configuration for Proctoring Tests
"""
import os
import sys
import pytest
import numpy as np

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from proctorwatch.config import Settings
from fakes import FakeAdapter, ManualClock


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def adapter():
    return FakeAdapter()


@pytest.fixture
def frame():
    return np.full((48, 64, 3), 120, dtype=np.uint8)


@pytest.fixture
def session(adapter, clock, settings):
    from proctorwatch.proctor.session import ProctorSession
    return ProctorSession(
        candidate_name="Test Candidate",
        adapter=adapter,
        clock=clock,
        settings=settings
    )
