"""
rash compiler core.

Validates rash backend specifications, converts them to a language-neutral
intermediate representation and generates projects for TypeScript/Express,
Rust/Actix, Python/FastAPI and Go/Gin.
"""

__version__ = "0.1.0"
