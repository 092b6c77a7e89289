"""
Fallback Service - canned replies when no knowledge entry matches
Selection is a pure function of the message so replies are reproducible
"""
import hashlib
from typing import Optional, Sequence


DEFAULT_RESPONSES = (
    """죄송합니다. 정확한 답변을 찾지 못했어요. 😅

다음과 같은 주제로 질문해보시는 건 어떨까요?

• **"안녕하세요"** - 인사하기
• **"서울과기대 소개"** - 학교 소개
• **"컴퓨터공학과"** - 전공 정보
• **"입학 정보"** - 입학 안내
• **"취업률"** - 취업 정보
• **"캠퍼스 시설"** - 시설 안내

더 구체적으로 질문해주시면 정확한 답변을 드릴 수 있어요!""",

    """아직 해당 질문에 대한 정보가 준비되어 있지 않아요. 🤔

**대신 이런 질문들을 시도해보세요:**
• "서울과기대에 대해 알려주세요"
• "어떤 전공이 있나요?"
• "입학 정보를 알려주세요"
• "취업률이 어떻게 되나요?"
• "캠퍼스 생활은 어떤가요?"

더 많은 정보가 필요하시면 학교 홈페이지(www.seoultech.ac.kr)를 참고해주세요!""",
)

UNAVAILABLE_RESPONSE = """죄송합니다. 현재 시스템에 일시적인 문제가 있습니다. 😔

**다시 시도해주시거나, 다음과 같이 질문해보세요:**
• "안녕하세요"
• "서울과기대 소개"
• "전공 정보"
• "입학 안내"

시스템이 복구되면 더 정확한 답변을 드릴 수 있습니다."""


class FallbackResponder:
    """
    Picks a "no match" reply by hashing the normalized message.
    Same message, same reply.
    """

    def __init__(
        self,
        responses: Optional[Sequence[str]] = None,
        unavailable: str = UNAVAILABLE_RESPONSE
    ):
        responses = tuple(DEFAULT_RESPONSES if responses is None else responses)
        if not responses:
            raise ValueError("Fallback response pool must not be empty")
        if not all(r and r.strip() for r in responses) or not unavailable.strip():
            raise ValueError("Fallback responses must be non-empty text")
        self.responses = responses
        self.unavailable = unavailable

    def respond(self, normalized_message: str) -> str:
        """Deterministic reply for a message nothing matched"""
        return self.responses[self.select_index(normalized_message)]

    def select_index(self, normalized_message: str) -> int:
        digest = hashlib.sha256((normalized_message or "").encode("utf-8")).digest()
        return int.from_bytes(digest[:8], "big") % len(self.responses)

    def unavailable_response(self) -> str:
        """Reply used while the knowledge store cannot be reached"""
        return self.unavailable
