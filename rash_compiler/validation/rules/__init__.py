"""Individual validation rules. Each appends to a shared report and never raises."""

from . import cycle_detect, ref_integrity, required_fields, target_compat, version_check

__all__ = [
    "cycle_detect",
    "ref_integrity",
    "required_fields",
    "target_compat",
    "version_check",
]
