import uuid
from typing import List

from .errors import InvalidTags


def parse_tags(value: str) -> List[str]:
    """
    Parses a `:tag1:tag2:` string. An empty string holds no tags.
    """
    value = value.strip()
    if value == "":
        return []
    if len(value) < 2 or not (value.startswith(":") and value.endswith(":")):
        raise InvalidTags(value)
    return [tag for tag in value[1:-1].split(":") if tag]


def dump_tags(tags: List[str]) -> str:
    if not tags:
        return ""
    return ":{}:".format(":".join(tags))


def escape_newlines(value: str) -> str:
    return value.replace("\n", "\\n").replace("\r", "\\r")


def random_id() -> str:
    return str(uuid.uuid4())
