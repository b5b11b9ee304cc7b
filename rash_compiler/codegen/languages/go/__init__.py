"""
Go backend: emitter and the gin adapter.
"""

from .emitter import GoEmitter
from .gin import GinAdapter

__all__ = ["GinAdapter", "GoEmitter"]
