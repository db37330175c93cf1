"""
Main-content extraction: strategies, scoring and the strategy chain.
"""

from .chain import StrategyChain, build_default_strategies
from .emergency import EmergencyAssembler
from .metadata import ArticleMetadata, ConfidenceCalculator
from .models import Candidate, ExtractionResult
from .protocols import ExtractionStrategy
from .scorer import CandidateScorer
from .strategies import (
    AggressiveDomainStrategy,
    ClassIdPatternsStrategy,
    HeuristicScoringStrategy,
    SemanticTagsStrategy,
    SiteSpecificSelectorsStrategy,
)
from .validator import SignificanceValidator

__all__ = [
    "AggressiveDomainStrategy",
    "ArticleMetadata",
    "Candidate",
    "CandidateScorer",
    "ClassIdPatternsStrategy",
    "ConfidenceCalculator",
    "EmergencyAssembler",
    "ExtractionResult",
    "ExtractionStrategy",
    "HeuristicScoringStrategy",
    "SemanticTagsStrategy",
    "SignificanceValidator",
    "SiteSpecificSelectorsStrategy",
    "StrategyChain",
    "build_default_strategies",
]
