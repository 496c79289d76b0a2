from typing import Any, Optional, Protocol


class KeywordCapability(Protocol):
    def from_str(self, token: str) -> Optional[Any]:
        """Returns the keyword for `token`, or None if it is not a known keyword."""

    def to_str(self, keyword: Any) -> str:
        ...

    def other(self, token: str) -> Any:
        """Builds a keyword for a token that is only known to be one from context."""


class IdCapability(Protocol):
    def initial(self) -> Optional[Any]:
        ...

    def parse(self, token: str) -> Optional[Any]:
        ...

    def is_empty(self, value: Optional[Any]) -> bool:
        ...

    def to_str(self, value: Any) -> str:
        ...
