import logging
from datetime import datetime, timezone
from typing import Tuple

from sqlalchemy import text

from models import HealthReport

logger = logging.getLogger(__name__)


def check_database(session_factory) -> str:
    try:
        with session_factory() as db:
            db.execute(text("SELECT 1"))
    except Exception as exc:
        logger.warning("Database health check failed: %s", exc)
        return "down"
    return "up"


def check_llm(extractor) -> str:
    try:
        extractor.ping()
    except Exception as exc:
        logger.warning("LLM health check failed: %s", exc)
        return "down"
    return "up"


def check_health(session_factory, extractor) -> Tuple[HealthReport, bool]:
    """Run both probes independently and report per-component state."""
    report = HealthReport(
        backend="up",
        database=check_database(session_factory),
        llm=check_llm(extractor),
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
    return report, report.database == "up" and report.llm == "up"
