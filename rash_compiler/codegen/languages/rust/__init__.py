"""
Rust backend: emitter and the actix-web adapter.
"""

from .actix import ActixAdapter
from .emitter import RustEmitter

__all__ = ["ActixAdapter", "RustEmitter"]
