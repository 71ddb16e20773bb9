import asyncio

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tourbot.core.database import Base
from tourbot.core.models import Answer
from tourbot.core.sources.definitions import DefinitionStore


def _engine():
    return create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


# Answer store with a few versioned templates
@pytest_asyncio.fixture(scope="function")
async def session_factory():
    engine = _engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        session.add_all(
            [
                Answer(term_id="rider", locale="en-AU", version=1, answer_template="Rider v1"),
                Answer(term_id="rider", locale="en-AU", version=2, answer_template="Rider v2"),
                Answer(
                    term_id="rider",
                    locale="en-AU",
                    version=3,
                    answer_template="Rider draft",
                    is_current=False,
                ),
                Answer(term_id="rider", locale="en-US", version=5, answer_template="US rider"),
                Answer(term_id="Advance", locale="en-AU", version=1, answer_template="Advance"),
                Answer(term_id="advance", locale="en-AU", version=1, answer_template="advance"),
                Answer(
                    term_id="curfew",
                    locale="en-AU",
                    version=1,
                    answer_template="Old curfew",
                    is_current=False,
                ),
            ]
        )
        await session.commit()

    yield factory

    await engine.dispose()


@pytest.mark.asyncio
async def test_highest_current_version(session_factory):
    store = DefinitionStore(session_factory, locale="en-AU")
    assert await store.get_definition("rider") == "Rider v2"


@pytest.mark.asyncio
async def test_locale(session_factory):
    store = DefinitionStore(session_factory, locale="en-AU")
    assert await store.get_definition("rider", "en-US") == "US rider"
    assert await store.get_definition("rider", "fr-FR") is None


@pytest.mark.asyncio
async def test_superseded_only_term_is_missing(session_factory):
    store = DefinitionStore(session_factory)
    assert await store.get_definition("curfew") is None
    assert await store.get_definition("") is None


@pytest.mark.asyncio
async def test_list_term_ids(session_factory):
    """Current ids only, lowercased and deduplicated"""
    store = DefinitionStore(session_factory)
    assert await store.list_term_ids() == ["advance", "rider"]


@pytest.mark.asyncio
async def test_database_errors_read_as_no_data():
    engine = _engine()  # no tables
    store = DefinitionStore(async_sessionmaker(bind=engine, class_=AsyncSession))

    assert await store.get_definition("rider") is None
    assert await store.list_term_ids() == []

    await engine.dispose()


class TimingOutSession:
    async def __aenter__(self):
        raise asyncio.TimeoutError()

    async def __aexit__(self, *exc):
        return False


@pytest.mark.asyncio
async def test_connect_timeout_reads_as_no_data():
    store = DefinitionStore(TimingOutSession)

    assert await store.get_definition("rider") is None
    assert await store.list_term_ids() == []
