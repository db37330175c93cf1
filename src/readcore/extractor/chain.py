"""
Ordered, first-accepted-wins chain of content-location strategies.
"""

from __future__ import annotations

import time
from typing import Dict, List, Optional, Sequence

import structlog

from ..config.config import STRATEGY_ORDER, ExtractionSettings
from ..document.tree import DocumentTree
from ..exceptions import EmergencyAssemblyFailure, StrategyError, ValidationFailure
from ..observability.logging import request_context
from ..observability.metrics import increment, observe
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

logger = structlog.get_logger(__name__)


def build_default_strategies(settings: ExtractionSettings) -> List[ExtractionStrategy]:
    """Instantiate the built-in strategies in chain order, minus disabled ones."""
    validator = SignificanceValidator(settings.significance)
    scorer = CandidateScorer(settings.scoring)
    available: Dict[str, ExtractionStrategy] = {
        SiteSpecificSelectorsStrategy.name: SiteSpecificSelectorsStrategy(settings, validator),
        SemanticTagsStrategy.name: SemanticTagsStrategy(settings, validator),
        ClassIdPatternsStrategy.name: ClassIdPatternsStrategy(settings, validator),
        HeuristicScoringStrategy.name: HeuristicScoringStrategy(settings, validator, scorer),
        AggressiveDomainStrategy.name: AggressiveDomainStrategy(settings, validator),
        EmergencyAssembler.name: EmergencyAssembler(settings.emergency),
    }
    return [available[name] for name in STRATEGY_ORDER if name not in settings.disabled_strategies]


class StrategyChain:
    """
    Locates the main readable content of a document.

    Strategies run strictly in order and the first accepted candidate wins.
    Extraction is synchronous, never modifies the input tree and never raises:
    any failure ends in a not-found :class:`ExtractionResult`.
    """

    def __init__(
        self,
        settings: Optional[ExtractionSettings] = None,
        strategies: Optional[Sequence[ExtractionStrategy]] = None,
    ) -> None:
        self.settings = settings or ExtractionSettings()
        self.strategies: List[ExtractionStrategy] = (
            list(strategies) if strategies is not None else build_default_strategies(self.settings)
        )
        self.confidence = ConfidenceCalculator(self.settings.confidence)
        self.logger = logger.bind(component="StrategyChain")

    def extract(self, tree: DocumentTree) -> ExtractionResult:
        with request_context(url=tree.url):
            return self._extract(tree)

    def _extract(self, tree: DocumentTree) -> ExtractionResult:
        start_time = time.perf_counter()
        self.logger.debug("Extraction started", state="idle", nodes=len(tree))
        try:
            candidate = self._run(tree)
            if candidate is None:
                self.logger.info("Extraction chain exhausted", state="exhausted")
                result = ExtractionResult.not_found(url=tree.url)
            else:
                result = self._build_result(tree, candidate)
        except Exception as e:
            self.logger.error(
                "Extraction failed",
                event_type="extraction_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            result = ExtractionResult.not_found(url=tree.url)

        observe("extraction_duration_seconds", time.perf_counter() - start_time)
        if result.is_article:
            outcome = "article"
        elif result.found:
            outcome = "content"
        else:
            outcome = "not_found"
        increment("extractions", labels={"result": outcome})
        self.logger.info(
            "Extraction done",
            state="done",
            strategy=result.strategy,
            is_article=result.is_article,
            confidence=result.confidence,
            word_count=result.word_count,
        )
        return result

    def _run(self, tree: DocumentTree) -> Optional[Candidate]:
        for strategy in self.strategies:
            self.logger.debug("Trying strategy", state="detecting", strategy=strategy.name)
            try:
                candidate = strategy.try_extract(tree)
            except ValidationFailure as e:
                increment("strategy_attempts", labels={"strategy": strategy.name, "outcome": "rejected"})
                self.logger.debug(
                    "Candidate rejected",
                    state="rejected",
                    strategy=strategy.name,
                    text_length=e.text_length,
                    word_count=e.word_count,
                )
                continue
            except EmergencyAssemblyFailure as e:
                increment("strategy_attempts", labels={"strategy": strategy.name, "outcome": "rejected"})
                self.logger.info("Emergency assembly failed", state="rejected", strategy=strategy.name, reason=str(e))
                continue
            except Exception as e:
                error = StrategyError(strategy.name, e)
                increment("strategy_attempts", labels={"strategy": strategy.name, "outcome": "error"})
                self.logger.warning(
                    "Strategy failed",
                    event_type="strategy_failed",
                    strategy=strategy.name,
                    error=str(error),
                    error_type=type(e).__name__,
                )
                continue

            if candidate is None:
                increment("strategy_attempts", labels={"strategy": strategy.name, "outcome": "no_candidate"})
                self.logger.debug("No candidate", state="rejected", strategy=strategy.name)
                continue

            increment("strategy_attempts", labels={"strategy": strategy.name, "outcome": "accepted"})
            self.logger.info(
                "Candidate accepted",
                state="accepted",
                strategy=strategy.name,
                nodes=len(candidate.nodes),
                text_length=candidate.text_length,
                word_count=candidate.word_count,
                score=candidate.score,
            )
            return candidate
        return None

    def _build_result(self, tree: DocumentTree, candidate: Candidate) -> ExtractionResult:
        content = tree.clone(candidate.nodes, container=candidate.container)
        text = content.text
        word_count = len(text.split())
        metadata = ArticleMetadata.from_page(tree, content)
        confidence = self.confidence.calculate(tree, candidate.nodes, content)
        return ExtractionResult(
            is_article=self.confidence.is_article(word_count, confidence),
            confidence=confidence,
            title=metadata.title,
            author=metadata.author,
            publish_date=metadata.publish_date,
            main_content=content,
            word_count=word_count,
            text=text,
            strategy=candidate.strategy,
            url=tree.url,
        )
