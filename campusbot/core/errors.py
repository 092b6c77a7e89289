"""
Error taxonomy for the chatbot core
"""


class ChatbotError(Exception):
    """Base class for chatbot core errors"""


class StoreUnavailableError(ChatbotError):
    """
    The knowledge or analytics store could not be reached or timed out.
    Matching treats this as an empty knowledge base.
    """


class MalformedEntryError(ChatbotError):
    """A knowledge entry carries data that cannot be parsed (e.g. keywords)"""

    def __init__(self, message: str, entry_id=None):
        super().__init__(message)
        self.entry_id = entry_id
