import hashlib

import pytest

from campusbot.services.fallback_service import (
    DEFAULT_RESPONSES,
    UNAVAILABLE_RESPONSE,
    FallbackResponder,
)


class TestFallbackResponder:

    def setup_method(self):
        self.responder = FallbackResponder()

    def test_same_message_same_reply(self):
        replies = {self.responder.respond("asdkfjalskdjf") for _ in range(10)}
        assert len(replies) == 1

    def test_reply_comes_from_pool(self):
        for message in ["", "asdkfjalskdjf", "기숙사 식단", "what time is it"]:
            reply = self.responder.respond(message)
            assert reply in DEFAULT_RESPONSES
            assert reply.strip()

    def test_index_is_sha256_of_message(self):
        message = "학식 메뉴"
        digest = hashlib.sha256(message.encode("utf-8")).digest()
        expected = int.from_bytes(digest[:8], "big") % len(DEFAULT_RESPONSES)

        assert self.responder.select_index(message) == expected

    def test_spreads_over_pool(self):
        responder = FallbackResponder(["a", "b", "c"])
        picked = {responder.respond(f"question {i}") for i in range(50)}
        assert picked == {"a", "b", "c"}

    def test_single_entry_pool(self):
        assert FallbackResponder(["only"]).respond("anything") == "only"

    def test_unavailable_response(self):
        assert self.responder.unavailable_response() == UNAVAILABLE_RESPONSE
        assert UNAVAILABLE_RESPONSE not in DEFAULT_RESPONSES

    def test_empty_pool_rejected(self):
        with pytest.raises(ValueError):
            FallbackResponder([])

    def test_blank_reply_rejected(self):
        with pytest.raises(ValueError):
            FallbackResponder(["fine", "  "])
