"""Results feed coercion."""

from paddock.results.feed import ResultsFeedError, parse_event_result

__all__ = ["ResultsFeedError", "parse_event_result"]
