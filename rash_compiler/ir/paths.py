"""
Route path parameter syntaxes.

The IR stores paths in the ``:param`` form. Frameworks that expect
``{param}`` convert on the way out; file-based ``[param]`` and ``{param}``
inputs are folded into the canonical form on the way in.
"""

import re

_COLON_PARAM = re.compile(r":(\w+)")
_BRACKET_PARAM = re.compile(r"\[([^\]]+)(?:\]|$)")
_BRACE_PARAM = re.compile(r"\{(\w+)\}")


def colon_to_brace(path: str) -> str:
    """``/users/:id`` -> ``/users/{id}``. A ``:`` not followed by a name stays literal."""
    return _COLON_PARAM.sub(r"{\1}", path)


def bracket_to_colon(path: str) -> str:
    """``/users/[id]`` -> ``/users/:id``. An empty ``[]`` is left untouched."""
    return _BRACKET_PARAM.sub(r":\1", path)


def brace_to_colon(path: str) -> str:
    """``/users/{id}`` -> ``/users/:id``."""
    return _BRACE_PARAM.sub(r":\1", path)


def canonicalize_path(path: str) -> str:
    """Fold bracket and brace parameters into the ``:param`` form."""
    return brace_to_colon(bracket_to_colon(path.strip()))


def path_params(path: str) -> list:
    """Parameter names of a canonical path, in order."""
    return _COLON_PARAM.findall(path)
