"""
Fixtures for store-backed engine tests.

Each test gets a fresh SQLite database file in tmp_path. A file (rather
than :memory:) lets concurrent sessions use separate connections against
the same data, the way they would against a real store.
"""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from config import get_settings
from fluency.db.models import Base
from fluency.engine import ContentCatalog

BEGINNER_SENTENCES = [
    ("b1", "I am happy", "Eu estou feliz"),
    ("b2", "Good morning", "Bom dia"),
    ("b3", "Thank you", "Obrigado"),
    ("b4", "See you later", "Até mais tarde"),
    ("b5", "Where is the bathroom", "Onde fica o banheiro"),
    ("b6", "I like coffee", "Eu gosto de café"),
    ("b7", "What is your name", "Qual é o seu nome"),
    ("b8", "My name is Ana", "Meu nome é Ana"),
    ("b9", "How are you", "Como você está"),
    ("b10", "I am fine", "Eu estou bem"),
    ("b11", "Good night", "Boa noite"),
    ("b12", "Excuse me", "Com licença"),
    ("b13", "I am hungry", "Eu estou com fome"),
    ("b14", "The book is on the table", "O livro está na mesa"),
    ("b15", "It is raining", "Está chovendo"),
]

INTERMEDIATE_SENTENCES = [
    ("i1", "I have been studying English", "Eu tenho estudado inglês"),
    ("i2", "She would rather stay home", "Ela prefere ficar em casa"),
    ("i3", "We are looking forward to it", "Estamos ansiosos por isso"),
]

SAMPLE_CATALOG = {
    "sentences": [
        {"id": sid, "english_text": en, "portuguese_text": pt, "level": "beginner"}
        for sid, en, pt in BEGINNER_SENTENCES
    ]
    + [
        {"id": sid, "english_text": en, "portuguese_text": pt, "level": "intermediate"}
        for sid, en, pt in INTERMEDIATE_SENTENCES
    ],
    "lessons": [
        {"id": "greetings", "title": "Greetings", "level": "beginner", "order_index": 0,
         "sentence_ids": ["b1", "b2", "b3"]},
        {"id": "travel", "title": "Travel", "level": "beginner", "order_index": 1,
         "sentence_ids": ["b4", "b5", "b6"]},
        {"id": "introductions", "title": "Introductions", "level": "beginner", "order_index": 2,
         "sentence_ids": ["b7", "b8", "b9"]},
        {"id": "habits", "title": "Habits", "level": "intermediate", "order_index": 0,
         "sentence_ids": ["i1", "i2"]},
        {"id": "plans", "title": "Plans", "level": "intermediate", "order_index": 1,
         "sentence_ids": ["i3"]},
    ],
}


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Async engine on a fresh SQLite file with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'fluency-test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def catalog(session):
    """Sample lessons and sentences loaded into the store."""
    await ContentCatalog(session).load(SAMPLE_CATALOG)
    return SAMPLE_CATALOG


@pytest.fixture
def settings(monkeypatch):
    """Cached settings; attribute changes are undone after the test."""
    settings = get_settings()

    class Overrides:
        def set(self, **values):
            for name, value in values.items():
                monkeypatch.setattr(settings, name, value)
            return settings

    return Overrides()
