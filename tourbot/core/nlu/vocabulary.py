# tourbot/core/nlu/vocabulary.py
"""
VOCABULARY CACHE - Known industry terms and city names

The parser and the intent classifier match messages against two lists
that live outside the code:
    - term ids: distinct current keys of the definition store
    - cities:   every departure/arrival city in the flight table

Both lists are loaded in the background at startup and can be refreshed
on demand. Until the first load finishes the cache is empty and lookups
simply find nothing.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Iterable, List, Optional

from tourbot.core import schemas

logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[List[str]]]


class VocabularyCache:
    def __init__(
        self,
        term_loader: Optional[Loader] = None,
        city_loader: Optional[Loader] = None,
    ):
        self.term_loader = term_loader
        self.city_loader = city_loader
        self._snapshot = schemas.VocabularySnapshot()

    @property
    def snapshot(self) -> schemas.VocabularySnapshot:
        return self._snapshot

    @property
    def terms(self):
        return self._snapshot.terms

    @property
    def cities(self):
        return self._snapshot.cities

    def is_term(self, value: Optional[str]) -> bool:
        return bool(value) and value in self._snapshot.terms

    def is_city(self, value: Optional[str]) -> bool:
        return bool(value) and value in self._snapshot.cities

    def replace(self, terms: Iterable[str], cities: Iterable[str]) -> schemas.VocabularySnapshot:
        """
        Swap in a complete new snapshot.

        Values are lowercased and deduplicated, order is kept.
        """
        snapshot = schemas.VocabularySnapshot(
            terms=tuple(dict.fromkeys(t.lower() for t in terms if t)),
            cities=tuple(dict.fromkeys(c.lower() for c in cities if c)),
            loaded_at=datetime.now(timezone.utc),
        )
        self._snapshot = snapshot
        return snapshot

    async def _run_loader(self, name: str, loader: Optional[Loader], current):
        if loader is None:
            return list(current)
        try:
            return await loader()
        except Exception as e:
            # Loaders are expected to swallow their own errors; this is the backstop
            logger.error(f"Vocabulary {name} load failed, keeping {len(current)} cached: {e}")
            return list(current)

    async def refresh(self) -> schemas.VocabularySnapshot:
        """Reload both lists concurrently and swap the result in."""
        current = self._snapshot
        terms, cities = await asyncio.gather(
            self._run_loader("terms", self.term_loader, current.terms),
            self._run_loader("cities", self.city_loader, current.cities),
        )
        snapshot = self.replace(terms, cities)
        logger.info(
            f"Loaded {len(snapshot.terms)} industry terms and {len(snapshot.cities)} cities"
        )
        return snapshot

    def status(self) -> schemas.VocabularyStatus:
        snapshot = self._snapshot
        return schemas.VocabularyStatus(
            terms=len(snapshot.terms),
            cities=len(snapshot.cities),
            loaded_at=snapshot.loaded_at,
        )
