"""Proctorwatch - live exam proctoring service"""

__version__ = "1.0.0"
