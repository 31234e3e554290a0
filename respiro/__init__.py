"""Respiro guided-breathing coach: biofeedback simulation and phase scheduling."""

__version__ = "0.1.0"
