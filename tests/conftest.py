import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from campusbot.core.database import init_db
from campusbot.core.errors import StoreUnavailableError
from campusbot.models.knowledge import KnowledgeCategory as CategoryRow, KnowledgeItem
from campusbot.services.knowledge_store import (
    InMemoryKnowledgeStore,
    KnowledgeCategory,
    KnowledgeEntry,
    KnowledgeStore,
)


# --- Knowledge fixtures ---

GREETING_ANSWER = "안녕하세요! 무엇을 도와드릴까요?"


@pytest.fixture
def sample_categories():
    return [
        KnowledgeCategory(id=1, name="인사"),
        KnowledgeCategory(id=2, name="입학"),
        KnowledgeCategory(id=3, name="폐지된 안내", active=False),
    ]


@pytest.fixture
def sample_entries():
    """
    1: greeting (exact + keyword scenarios)
    2, 3: both carry the keyword 입학, priorities 3 and 7
    4: mixed-case English question
    5: no keywords at all
    6: lives in a disabled category
    """
    return [
        KnowledgeEntry.create(
            id=1, category_id=1, keywords="안녕,hello",
            question="안녕하세요", answer=GREETING_ANSWER, priority=5,
            category_name="인사"
        ),
        KnowledgeEntry.create(
            id=2, category_id=2, keywords="입학",
            question="입학 전형 안내", answer="수시와 정시 전형이 있습니다.", priority=3,
            category_name="입학"
        ),
        KnowledgeEntry.create(
            id=3, category_id=2, keywords="입학,장학금",
            question="입학 장학금 안내", answer="성적 우수 신입생에게 장학금을 지급합니다.", priority=7,
            category_name="입학"
        ),
        KnowledgeEntry.create(
            id=4, category_id=1, keywords="tour",
            question="Campus Tour Info?", answer="Tours run daily.", priority=1,
            category_name="인사"
        ),
        KnowledgeEntry.create(
            id=5, category_id=1, keywords="",
            question="도서관 운영 시간", answer="평일 9시부터 22시까지 운영합니다", priority=0,
            category_name="인사"
        ),
        KnowledgeEntry.create(
            id=6, category_id=3, keywords="폐지",
            question="폐지된 질문", answer="더 이상 제공되지 않는 안내입니다.", priority=9,
            category_name="폐지된 안내"
        ),
    ]


@pytest.fixture
def memory_store(sample_categories, sample_entries):
    return InMemoryKnowledgeStore(sample_categories, sample_entries)


@pytest.fixture
def active_entries(memory_store):
    return memory_store.active_entries()


class UnavailableStore(KnowledgeStore):
    """Store whose backend is always down"""

    def __init__(self):
        self.calls = 0

    def active_entries(self):
        self.calls += 1
        raise StoreUnavailableError("connection refused")

    def entry_by_id(self, entry_id):
        raise StoreUnavailableError("connection refused")


@pytest.fixture
def unavailable_store():
    return UnavailableStore()


# --- Database fixtures ---

@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seeded_db(db_session):
    """Two active categories, one disabled, with entries in each"""
    db_session.add_all([
        CategoryRow(id=1, name="인사", is_active=True),
        CategoryRow(id=2, name="입학", is_active=True),
        CategoryRow(id=3, name="폐지된 안내", is_active=False),
    ])
    db_session.flush()
    db_session.add_all([
        KnowledgeItem(
            id=1, category_id=1, keywords="안녕, Hello,hello",
            question="안녕하세요", answer=GREETING_ANSWER, priority=5
        ),
        KnowledgeItem(
            id=2, category_id=2, keywords="입학",
            question="입학 전형 안내", answer="수시와 정시 전형이 있습니다.", priority=3
        ),
        KnowledgeItem(
            id=3, category_id=2, keywords="입학,장학금",
            question="입학 장학금 안내", answer="성적 우수 신입생에게 장학금을 지급합니다.",
            priority=7, is_active=False
        ),
        KnowledgeItem(
            id=4, category_id=3, keywords="폐지",
            question="폐지된 질문", answer="더 이상 제공되지 않는 안내입니다.", priority=9
        ),
    ])
    db_session.commit()
    return db_session
