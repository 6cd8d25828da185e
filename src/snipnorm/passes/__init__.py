"""Load-time passes over snippet ASTs."""

__all__ = [
    "zero",
    "dependents",
    "variables",
    "interactive",
]
