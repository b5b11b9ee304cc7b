"""
TypeScript backend: emitter, zod schema conversion and the Express adapter.
"""

from .emitter import TypeScriptEmitter
from .express import ExpressAdapter
from .zod import json_schema_to_zod

__all__ = ["ExpressAdapter", "TypeScriptEmitter", "json_schema_to_zod"]
