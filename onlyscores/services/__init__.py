"""
Services package exports.
"""
from .scores_service import ScoresQuery, ScoresService

__all__ = ["ScoresQuery", "ScoresService"]
