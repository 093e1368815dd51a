"""
FastAPI Habit Backend package.

This module marks the 'src.api' directory as a Python package and exposes
the FastAPI app instance for convenience imports (src.api.app).
"""

__version__ = "0.1.0"

from .main import app  # noqa: E402,F401
