"""Card draft extraction engine.

Turns a photographed textbook page (or a "term, definition" text file) into
editable front/back card drafts:
- OCR lines in reading order
- colored-text detection per line
- highlighted keyword + nearby definition, or delimiter/line-pair fallbacks

Persisting decks and reviewing cards are left to the caller.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
