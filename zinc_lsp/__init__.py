"""Header Language Server package.

This package provides:
- A pygls-based Language Server for foreign header files.
- An indexer that preprocesses and translates a buffer without touching disk.

Note: The LSP never expands a program; it reports what an include would import.
"""

__all__ = [
    "server",
    "indexer",
]
