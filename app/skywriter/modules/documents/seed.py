from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.skywriter.modules.documents.models import Document
from app.skywriter.modules.documents.service import upsert

logger = logging.getLogger(__name__)

WELCOME_CONTENT = """# Welcome

This is the home page. Edit it, or create new documents at any path.
"""


def seed_if_empty(s: Session) -> bool:
    """Create the root document when the store has no documents. Returns True if it did."""
    count = s.execute(select(func.count()).select_from(Document)).scalar_one()
    if count > 0:
        return False
    upsert(s, {"path": "/", "title": "Home", "content": WELCOME_CONTENT, "published": True})
    logger.info("Seeded root document")
    return True
