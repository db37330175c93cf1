from .documents import article_html, main_html, paragraphs, words
from .metric_delta import counter_delta, histogram_observes

__all__ = ["article_html", "counter_delta", "histogram_observes", "main_html", "paragraphs", "words"]
