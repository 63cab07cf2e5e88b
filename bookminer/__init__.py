"""Screenshot-to-Anki card authoring tool.

This package focuses on a single in-flight note per session:
- front/back fragments edited in $EDITOR
- tags picked from a persisted tag list
- fields resolved from a cached deck/note type/field mapping
- submission through AnkiConnect

Anything beyond adding one note (browsing, scheduling, syncing) is out of scope.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
