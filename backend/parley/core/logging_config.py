"""
Logging setup for the application.
"""
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once at startup."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # SQLAlchemy echo is controlled by DB_ECHO; keep its pool chatter quiet otherwise
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
