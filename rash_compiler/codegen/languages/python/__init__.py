"""
Python backend: emitter and the FastAPI adapter.
"""

from .emitter import PythonEmitter
from .fastapi import FastAPIAdapter

__all__ = ["FastAPIAdapter", "PythonEmitter"]
