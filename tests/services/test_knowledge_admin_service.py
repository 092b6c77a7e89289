import json

from campusbot.core.database import seed_knowledge
from campusbot.services.knowledge_admin_service import KnowledgeAdminService, join_keywords
from campusbot.services.knowledge_store import SqlKnowledgeStore


def test_join_keywords_normalizes():
    assert join_keywords(["Hello", "안녕", "hello"]) == "hello,안녕"
    assert join_keywords(" 입학 , 장학금 ") == "입학,장학금"


class TestKnowledgeAdminService:

    def test_list_categories_hides_inactive_by_default(self, seeded_db):
        admin = KnowledgeAdminService(seeded_db)

        assert [c.name for c in admin.list_categories()] == ["인사", "입학"]
        assert len(admin.list_categories(include_inactive=True)) == 3

    def test_create_category(self, seeded_db):
        category = KnowledgeAdminService(seeded_db).create_category("기숙사", "생활관 안내")

        assert category.id is not None
        assert category.is_active is True

    def test_list_entries_orders_by_category_then_priority(self, seeded_db):
        admin = KnowledgeAdminService(seeded_db)
        admin.create_entry(2, "수시", "수시 일정", "9월에 접수합니다.", priority=8)

        assert [e.question for e in admin.list_entries()] == ["안녕하세요", "수시 일정", "입학 전형 안내"]
        assert [e.id for e in admin.list_entries(category_id=1)] == [1]

    def test_create_entry_is_visible_to_store(self, seeded_db, session_factory):
        item = KnowledgeAdminService(seeded_db).create_entry(
            1, ["Campus", "투어"], "캠퍼스 투어", "매주 금요일에 진행합니다.", priority=2
        )

        assert item.keywords == "campus,투어"
        entry = SqlKnowledgeStore(session_factory).entry_by_id(item.id)
        assert entry.keywords == ("campus", "투어")
        assert entry.active is True

    def test_update_entry(self, seeded_db):
        admin = KnowledgeAdminService(seeded_db)
        item = admin.update_entry(2, answer="전형 일정은 홈페이지를 참고하세요.", keywords=["입학", "전형"])

        assert item.answer == "전형 일정은 홈페이지를 참고하세요."
        assert item.keywords == "입학,전형"
        assert item.question == "입학 전형 안내"

    def test_update_missing_entry(self, seeded_db):
        assert KnowledgeAdminService(seeded_db).update_entry(999, answer="x") is None

    def test_deactivate_entry(self, seeded_db, session_factory):
        admin = KnowledgeAdminService(seeded_db)

        assert admin.deactivate_entry(1) is True
        assert admin.deactivate_entry(999) is False
        assert [e.id for e in SqlKnowledgeStore(session_factory).active_entries()] == [2]


class TestSeedKnowledge:

    def test_seeds_empty_database(self, db_session, tmp_path):
        path = tmp_path / "seed.json"
        path.write_text(json.dumps({
            "categories": [{"id": 1, "name": "인사"}],
            "entries": [
                {"category_id": 1, "keywords": ["안녕", "hello"], "question": "안녕하세요",
                 "answer": "반가워요", "priority": 5}
            ]
        }, ensure_ascii=False), encoding="utf-8")

        assert seed_knowledge(db_session, path) == 1
        [item] = KnowledgeAdminService(db_session).list_entries()
        assert item.keywords == "안녕,hello"

        # second run leaves a populated database alone
        assert seed_knowledge(db_session, path) == 0

    def test_missing_seed_file(self, db_session, tmp_path):
        assert seed_knowledge(db_session, tmp_path / "nope.json") == 0

    def test_bundled_seed_pack_loads(self, db_session, session_factory):
        from campusbot.core.config import settings

        assert seed_knowledge(db_session, settings.DATA_DIR / "knowledge_seed.json") > 0
        entries = SqlKnowledgeStore(session_factory).active_entries()
        assert any(e.question == "안녕하세요" for e in entries)
