"""
Declarative asset resolution and manifest assembly for cluster installs.
"""

__all__ = [
    "asset",
    "assembler",
    "builder",
    "exceptions",
    "manifest",
    "resolver",
    "store",
    "template",
]
