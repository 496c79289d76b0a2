import collections
import uuid
from enum import Enum
from typing import List, Optional

from .utils import random_id

DEFAULT_TODO_KEYWORDS = ["TODO"]
DEFAULT_DONE_KEYWORDS = ["DONE"]


class KeywordKind(Enum):
    TODO = 1
    DONE = 2
    # Only known to be a keyword because a priority follows it
    OTHER = 3


Keyword = collections.namedtuple("Keyword", ("name", "kind"))


def other(name: str) -> Keyword:
    return Keyword(name, KeywordKind.OTHER)


class TodoKeywords:
    """
    Recognizes a fixed vocabulary of TODO-like and DONE-like states.
    """

    def __init__(self, todo_keywords: List[str] = None, done_keywords: List[str] = None):
        self.todo_keywords = list(todo_keywords if todo_keywords is not None else DEFAULT_TODO_KEYWORDS)
        self.done_keywords = list(done_keywords if done_keywords is not None else DEFAULT_DONE_KEYWORDS)

    def __repr__(self):
        return "<TodoKeywords: {} | {}>".format(
            " ".join(self.todo_keywords), " ".join(self.done_keywords)
        )

    def from_str(self, token: str) -> Optional[Keyword]:
        if token in self.todo_keywords:
            return Keyword(token, KeywordKind.TODO)
        if token in self.done_keywords:
            return Keyword(token, KeywordKind.DONE)
        return None

    def to_str(self, keyword: Keyword) -> str:
        return keyword.name

    def other(self, token: str) -> Keyword:
        return other(token)

    def is_todo(self, keyword: Optional[Keyword]) -> bool:
        return keyword is not None and keyword.kind == KeywordKind.TODO

    def is_done(self, keyword: Optional[Keyword]) -> bool:
        return keyword is not None and keyword.kind == KeywordKind.DONE


class GenericKeywords:
    """
    Treats any all-uppercase word as a keyword. Useful for tools that move
    nodes around without knowing the document's workflow states.
    """

    def from_str(self, token: str) -> Optional[Keyword]:
        if token and token.isalpha() and token.isupper():
            return other(token)
        return None

    def to_str(self, keyword: Keyword) -> str:
        return keyword.name

    def other(self, token: str) -> Keyword:
        return other(token)


class StringIds:
    def initial(self):
        return None

    def parse(self, token: str) -> Optional[str]:
        return token

    def is_empty(self, value) -> bool:
        return value is None

    def to_str(self, value) -> str:
        return value


class NoIds:
    """
    Accepts every ID and never writes one back, stripping them from output.
    """

    def initial(self):
        return None

    def parse(self, token: str) -> str:
        return token

    def is_empty(self, value) -> bool:
        return True

    def to_str(self, value) -> str:
        raise NotImplementedError("NoIds never renders an ID")


class UuidIds:
    def initial(self) -> Optional[uuid.UUID]:
        return None

    def parse(self, token: str) -> Optional[uuid.UUID]:
        try:
            return uuid.UUID(token)
        except ValueError:
            return None

    def is_empty(self, value) -> bool:
        return value is None

    def to_str(self, value: uuid.UUID) -> str:
        return str(value)


class ForceUuidIds(UuidIds):
    """
    Like `UuidIds`, but every node without an ID gets a fresh random one.
    """

    def initial(self) -> uuid.UUID:
        return uuid.UUID(random_id())


DEFAULT_KEYWORDS = TodoKeywords()
DEFAULT_IDS = StringIds()
