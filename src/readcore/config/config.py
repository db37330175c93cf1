"""
Configuration management for ReadCore using Pydantic.

All scoring weights and thresholds are empirically tuned defaults rather than
calibrated constants; they live here so they can be recalibrated without
touching the extraction code.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Setup Logging ---
log = logging.getLogger(__name__)

# --- Strategy names ---

SITE_SPECIFIC = "site_specific_selectors"
SEMANTIC_TAGS = "semantic_tags"
CLASS_ID_PATTERNS = "class_id_patterns"
HEURISTIC_SCORING = "heuristic_scoring"
AGGRESSIVE_DOMAIN = "aggressive_domain"
EMERGENCY = "emergency_assembler"

STRATEGY_ORDER: tuple[str, ...] = (
    SITE_SPECIFIC,
    SEMANTIC_TAGS,
    CLASS_ID_PATTERNS,
    HEURISTIC_SCORING,
    AGGRESSIVE_DOMAIN,
    EMERGENCY,
)

# --- Nested Configuration Models ---


class ScoringWeights(BaseModel):
    """Weights for the heuristic candidate scorer."""

    min_text_length: int = Field(default=50, description="Candidates with less trimmed text score 0.")
    text_density_weight: float = 25.0
    paragraph_weight: float = 3.0
    paragraph_cap: float = 20.0
    word_tiers: List[tuple[int, float]] = Field(
        default_factory=lambda: [(100, 15.0), (300, 10.0), (500, 5.0)],
        description="Cumulative (min_words_exclusive, bonus) tiers.",
    )
    heading_weight: float = 2.0
    heading_cap: float = 10.0
    list_weight: float = 0.5
    list_cap: float = 5.0
    content_hint_pattern: str = r"article|content|post|story|main|entry"
    content_hint_bonus: float = 15.0
    text_hint_pattern: str = r"body|text|paragraph"
    text_hint_bonus: float = 10.0
    platform_hint_pattern: str = r"medium|substack|wordpress"
    platform_hint_bonus: float = 8.0
    selectable_paragraph_bonus: float = 20.0
    story_testid_bonus: float = 15.0
    nav_penalty: float = 5.0
    nav_cap: float = 15.0
    form_penalty: float = 2.0
    form_cap: float = 10.0
    ad_penalty: float = 8.0
    ad_cap: float = 20.0
    social_penalty: float = 3.0
    social_cap: float = 10.0
    link_density_threshold: float = 0.1
    link_density_weight: float = 10.0
    words_per_link_unit: float = 50.0
    position_bonus: float = 5.0
    position_viewport_factor: float = 1.5


class SignificanceConfig(BaseModel):
    """Thresholds for the significance gate."""

    min_text_length: int = 100
    min_words: int = 20
    min_structural_elements: int = 2
    min_structural_words: int = 10
    min_platform_markers: int = 3


class EmergencyConfig(BaseModel):
    """Thresholds for the last-resort assembler."""

    min_element_text_length: int = 50
    min_element_words: int = 10
    min_words_per_link: float = 10.0
    max_elements: int = 20
    min_total_words: int = 50
    deny_pattern: str = r"nav|menu|header|footer|sidebar|ad|advertisement|social|share|comment|popup|modal"


class ConfidenceWeights(BaseModel):
    """Signals combined into the article confidence score."""

    word_tiers: List[tuple[int, float]] = Field(
        default_factory=lambda: [(500, 0.3), (200, 0.2), (100, 0.1)],
        description="(min_words, weight) tiers checked in order; the first tier reached wins.",
    )
    many_paragraphs: int = 5
    many_paragraphs_weight: float = 0.2
    some_paragraphs: int = 2
    some_paragraphs_weight: float = 0.1
    article_context_weight: float = 0.25
    main_context_weight: float = 0.15
    heading_weight: float = 0.1
    density_threshold: float = 0.5
    density_weight: float = 0.2
    clean_content_weight: float = 0.1
    date_marker_weight: float = 0.1
    author_marker_weight: float = 0.1
    article_min_words: int = 100
    article_min_confidence: float = 0.6


class ExtractionSettings(BaseModel):
    """Configuration for the extraction strategy chain."""

    site_selectors: List[str] = Field(
        default_factory=lambda: [
            "article div[data-selectable-paragraph]",
            "div[data-selectable-paragraph]",
            "article section",
            'div[data-testid="storyContent"]',
            'section[data-testid="storyContent"]',
            ".postArticle-content",
            ".section-content",
            "article .postField",
            "article p",
            ".graf",
            '[data-testid="storyContent"] p',
            '[data-testid="storyContent"] div',
        ],
        description="Platform content-container conventions, tried in order.",
    )
    site_min_element_text: int = 10
    site_min_total_text: int = 100
    content_selectors: List[str] = Field(
        default_factory=lambda: [
            # Modern CMS patterns
            ".article-content",
            ".post-content",
            ".entry-content",
            ".content",
            ".main-content",
            ".article-body",
            ".post-body",
            ".entry-body",
            ".story-body",
            ".article-text",
            # Medium and similar platforms
            ".postArticle-content",
            ".postField",
            ".section-content",
            ".graf",
            # News sites
            ".article-wrap",
            ".article-container",
            ".content-wrap",
            ".post-wrap",
            ".entry-wrap",
            ".main-article",
            ".primary-content",
            # WordPress and other CMS
            ".hentry",
            ".post",
            ".entry",
            ".single-post",
            ".content-area",
            # Generic content areas
            "#article",
            "#content",
            "#main-content",
            "#post-content",
            "#story",
            '[role="main"]',
            '[role="article"]',
            ".container .content",
            # Documentation sites
            ".markdown-body",
            ".readme",
            ".wiki-content",
            ".doc-content",
            # Blog platforms
            ".blog-post",
            ".content-body",
        ],
        description="Conventional class/id containers, tried in order.",
    )
    heuristic_selector: str = 'div, section, article, main, [role="main"]'
    heuristic_threshold: float = 20.0
    aggressive_hosts: List[str] = Field(
        default_factory=lambda: [r"(^|\.)medium\.com$"],
        description="Hostname regexes of platforms with irregular markup.",
    )
    aggressive_article_min_text: int = 500
    aggressive_paragraph_selector: str = (
        'p, div[role="paragraph"], [data-testid*="paragraph"], [data-testid*="content"]'
    )
    aggressive_min_paragraphs: int = 5
    aggressive_paragraph_min_text: int = 30
    aggressive_paragraph_total_text: int = 300
    aggressive_scan_selectors: List[str] = Field(
        default_factory=lambda: [
            '[data-testid*="story"]',
            '[data-testid*="content"]',
            '[class*="story"]',
            '[class*="content"]',
            '[class*="article"]',
            '[class*="post"]',
            "main",
            '[role="main"]',
        ]
    )
    aggressive_scan_min_text: int = 500
    aggressive_block_selector: str = "div, section, article, main"
    aggressive_block_min_text: int = 200
    aggressive_deny_pattern: str = r"nav|menu|header|footer|sidebar|ad"
    disabled_strategies: List[str] = Field(
        default_factory=list, description="Strategy names to skip (for recalibration experiments)."
    )
    scoring: ScoringWeights = Field(default_factory=ScoringWeights)
    significance: SignificanceConfig = Field(default_factory=SignificanceConfig)
    emergency: EmergencyConfig = Field(default_factory=EmergencyConfig)
    confidence: ConfidenceWeights = Field(default_factory=ConfidenceWeights)

    @field_validator("disabled_strategies")
    @classmethod
    def validate_disabled_strategies(cls, v: List[str]) -> List[str]:
        """Ensure only known strategies are disabled."""
        unknown = [name for name in v if name not in STRATEGY_ORDER]
        if unknown:
            raise ValueError(f"Unknown strategies {unknown}. Available strategies: {list(STRATEGY_ORDER)}")
        return v


class CacheConfig(BaseModel):
    """Configuration for the artifact cache."""

    capacity: int = Field(default=10, description="Maximum number of cached artifacts.")
    ttl_seconds: float = Field(default=24 * 60 * 60, description="Age after which an artifact is stale.")
    backend: Literal["memory", "sqlite"] = Field(default="memory", description="Durable store implementation.")
    db_path: Path = Field(
        default_factory=lambda: Path.home() / ".readcore" / "artifacts.db",
        description="SQLite database file path for the sqlite backend.",
    )
    wal_mode: bool = Field(default=True, description="Enable Write-Ahead Logging for the sqlite backend.")
    key_prefix: str = Field(default="readcore:artifact", description="Prefix of every durable store key.")
    summarizer_timeout_seconds: float = Field(default=60.0, description="Timeout for one summarizer call.")
    settings_fields: List[str] = Field(
        default_factory=lambda: ["highlight_tiers", "summary_length", "language", "model"],
        description="Summarizer settings that change the generated artifact.",
    )

    @field_validator("capacity")
    @classmethod
    def validate_capacity(cls, v: int) -> int:
        if v < 1:
            raise ValueError("capacity must be at least 1")
        return v

    @field_validator("ttl_seconds", "summarizer_timeout_seconds")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("durations must be positive")
        return v


class AnalyzerConfig(BaseModel):
    """Configuration for preparing extracted text for the summarizer."""

    min_content_length: int = 100
    max_content_length: int = 25000
    min_words: int = 20
    min_unique_word_ratio: float = 0.3
    min_sentences: int = 3
    truncate_boundary_ratio: float = 0.8
    add_structure_markers: bool = True


class MonitoringConfig(BaseModel):
    """Configuration for logging and metrics."""

    log_level: str = Field(default="INFO", description="Logging level (e.g., DEBUG, INFO, WARNING).")
    log_file: str | None = Field(default=None, description="Path to log file. If None, logs to console.")
    log_max_value_length: int = Field(
        default=500, ge=20, description="Longer string fields in log records are truncated to this length."
    )
    metrics_enabled: bool = Field(default=True, description="Record Prometheus metrics.")

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: str | Path | None) -> str | None:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


# --- Main Configuration Class ---


class Config(BaseSettings):
    project_name: str = "ReadCore"
    version: str = "0.1.0"
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    analyzer: AnalyzerConfig = Field(default_factory=AnalyzerConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    model_config = SettingsConfigDict(env_prefix="READCORE_", env_nested_delimiter="__", case_sensitive=False)

    @model_validator(mode="after")
    def check_analyzer_bounds(self) -> "Config":
        if self.analyzer.min_content_length >= self.analyzer.max_content_length:
            raise ValueError("analyzer.min_content_length must be below analyzer.max_content_length")
        return self

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        log.debug("Loading configuration from YAML file: %s", path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found or is not a file: {path}")
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
        if not yaml_data:
            log.warning("Configuration file is empty: %s. Using default settings.", path)
            return cls.model_validate({})
        return cls.model_validate(yaml_data)


CONFIG_FILE_NAMES = ("readcore.yaml", "readcore.yml")


def find_config_file(search_dir: Path | None = None) -> Path | None:
    """First ReadCore config file in ``search_dir``, the working directory by default."""
    directory = search_dir or Path.cwd()
    for name in CONFIG_FILE_NAMES:
        path = directory / name
        if path.is_file():
            return path
    return None
