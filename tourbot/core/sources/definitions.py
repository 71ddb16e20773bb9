# tourbot/core/sources/definitions.py
"""
DEFINITION STORE - Read-only access to versioned answer templates

Each industry term can have several template versions per locale.
Only rows flagged is_current count, and the highest version wins.
Database failures never escape: they are logged and read as "no data".
"""

import asyncio
import logging
from typing import Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tourbot.core import models

logger = logging.getLogger(__name__)


class DefinitionStore:
    def __init__(self, session_factory: Callable[[], AsyncSession], locale: str = "en-AU"):
        self.session_factory = session_factory
        self.locale = locale

    async def get_definition(self, term_id: str, locale: Optional[str] = None) -> Optional[str]:
        """
        Current answer template for `term_id` in `locale`, or None.
        """
        if not term_id:
            return None

        query = (
            select(models.Answer.answer_template)
            .where(
                models.Answer.term_id == term_id,
                models.Answer.locale == (locale or self.locale),
                models.Answer.is_current.is_(True),
            )
            .order_by(models.Answer.version.desc())
            .limit(1)
        )

        try:
            async with self.session_factory() as session:
                result = await session.execute(query)
                return result.scalars().first()
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as error:
            logger.error(f"Failed to fetch definition for {term_id!r}: {error}")
            return None

    async def list_term_ids(self) -> List[str]:
        """
        Distinct current term ids, lowercased, in term id order.
        """
        query = (
            select(models.Answer.term_id)
            .where(models.Answer.is_current.is_(True))
            .distinct()
            .order_by(models.Answer.term_id)
        )

        try:
            async with self.session_factory() as session:
                result = await session.execute(query)
                term_ids = result.scalars().all()
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as error:
            logger.error(f"Failed to fetch term ids: {error}")
            return []

        # Dedupe again after lowercasing ("Rider" and "rider")
        return list(dict.fromkeys(term_id.lower() for term_id in term_ids if term_id))
