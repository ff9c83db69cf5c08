"""
handrom - hand range-of-motion engine

Turns per-frame MediaPipe hand + pose landmarks into clinical range-of-motion metrics,
live during a recording session and deterministically during replay.

Metrics:
- finger joint angles (MCP / PIP / DIP) and total active motion (TAM)
- kapandji thumb opposition score (1-10)
- elbow-referenced wrist flexion / extension
- wrist radial / ulnar deviation
"""

__version__ = "0.3.0"
__author__ = "Jeevan Karandikar"
__license__ = "MIT"

__all__ = [
    "__version__",
]
