"""Preparation of extracted content for summarization."""

from .analyzer import AnalysisResult, ContentAnalyzer, ValidationReport, clean_text, readability_score

__all__ = ["AnalysisResult", "ContentAnalyzer", "ValidationReport", "clean_text", "readability_score"]
