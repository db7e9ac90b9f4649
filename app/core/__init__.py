# app/core/__init__.py

from app.core.normalizers import normalize, similarity
from app.core.classification import classify_match
from app.core.matching import match_line_item, match_line_items
from app.core.aggregation import summarize, build_persistence_payload

__all__ = [
    "normalize",
    "similarity",
    "classify_match",
    "match_line_item",
    "match_line_items",
    "summarize",
    "build_persistence_payload",
]
