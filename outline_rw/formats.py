import os
from enum import Enum

MARKDOWN_EXTENSIONS = (".md", ".markdown")


class Format(Enum):
    ORG = "org"
    MARKDOWN = "markdown"

    @property
    def heading_char(self) -> str:
        return "*" if self == Format.ORG else "#"

    @property
    def properties_opener(self) -> str:
        return ":PROPERTIES:" if self == Format.ORG else "<!--PROPERTIES"

    @property
    def properties_closer(self) -> str:
        return ":END:" if self == Format.ORG else "-->"

    @classmethod
    def from_str(cls, value: str):
        value = value.strip().lower()
        if value in ("md", "markdown"):
            return cls.MARKDOWN
        if value == "org":
            return cls.ORG
        raise ValueError("Unknown format: {}".format(value))

    @classmethod
    def from_path(cls, path: str):
        _, ext = os.path.splitext(path)
        if ext.lower() in MARKDOWN_EXTENSIONS:
            return cls.MARKDOWN
        return cls.ORG
