"""
Answer similarity scoring.
"""

from .similarity import edit_similarity, normalize_text, token_overlap, tokenize

__all__ = [
    "edit_similarity",
    "normalize_text",
    "token_overlap",
    "tokenize",
]
