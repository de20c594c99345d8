"""Paddock: pari-mutuel wagering settlement engine."""

import logging

__version__ = "0.1.0"


def configure_logging(level: str = None) -> None:
    """Configure root logging the same way for every entry point."""
    from paddock.config import settings

    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
