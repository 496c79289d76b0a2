from __future__ import annotations

import copy
import logging
import re
import tomllib
from enum import Enum
from typing import List, Optional

import tomli_w
import yaml

from .errors import (RootTagsNotStringList, RootTitleNotString,
                     TomlFrontmatterParseFailed, YamlFrontmatterParseFailed)
from .formats import Format
from .utils import dump_tags, escape_newlines, parse_tags

ORG_ATTRIBUTE_RE = re.compile(r"^#\+(?P<key>[^:\s]+):(?P<spacing>\s*)(?P<value>.*)$")
YAML_FENCE = "---"
TOML_FENCE = "+++"
YAML_DOCUMENT_END = "\n...\n"

ORG_TITLE_KEY = "title"
ORG_TAGS_KEY = "filetags"
TITLE_KEY = "title"
TAGS_KEY = "tags"


class AttributesKind(Enum):
    NONE = 0
    ORG = 1
    YAML = 2
    TOML = 3


FENCES = {
    YAML_FENCE: AttributesKind.YAML,
    TOML_FENCE: AttributesKind.TOML,
}


def parse_org_attribute(line: str):
    """
    Returns the `(key, value)` pair of a `#+key: value` line, or None.
    """
    if m := ORG_ATTRIBUTE_RE.match(line):
        key, value = m.group("key"), m.group("value").strip()
        if dump_org_attribute(key, value) != line:
            logging.warning("Spacing of attribute {} will be normalized: {!r}".format(key, line))
        return key, value
    return None


def dump_org_attribute(key: str, value: str) -> str:
    if value:
        return "#+{}: {}".format(key, value)
    return "#+{}:".format(key)


def is_string_list(value) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def yaml_value_to_str(value) -> str:
    if isinstance(value, str):
        return value
    dumped = yaml.safe_dump(value, default_flow_style=True, allow_unicode=True, width=float("inf"))
    if dumped.endswith(YAML_DOCUMENT_END):
        dumped = dumped[: -len(YAML_DOCUMENT_END)]
    return dumped.strip()


def toml_key_to_str(key: str) -> str:
    return tomli_w.dumps({key: True}).rsplit(" = ", 1)[0]


def toml_value_to_str(value) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        pairs = ["{} = {}".format(toml_key_to_str(k), toml_inline_value(v)) for k, v in value.items()]
        return "{ " + ", ".join(pairs) + " }" if pairs else "{}"
    if isinstance(value, list):
        return "[" + ", ".join(toml_inline_value(v) for v in value) + "]"
    return tomli_w.dumps({"value": value}).split(" = ", 1)[1].rstrip("\n")


def toml_inline_value(value) -> str:
    if isinstance(value, str):
        return tomli_w.dumps({"value": value}).split(" = ", 1)[1].rstrip("\n")
    return toml_value_to_str(value)


class Attributes:
    """
    Document-level metadata: `#+key: value` lines in Org, YAML or TOML
    frontmatter in Markdown.

    Exactly one representation is active at a time. The document's title and
    tags are read from and written back to here.
    """

    def __init__(self, kind: AttributesKind = AttributesKind.NONE, values: Optional[dict] = None):
        self.kind = kind
        self.values = values if values is not None else {}
        if kind == AttributesKind.NONE:
            assert not self.values, "Empty attributes cannot hold values"

    def __repr__(self):
        return "<Attributes {}: {}>".format(self.kind.name, self.values)

    def __eq__(self, other):
        if not isinstance(other, Attributes):
            return False
        return self.kind == other.kind and self.values == other.values

    def copy(self) -> Attributes:
        return Attributes(self.kind, copy.deepcopy(self.values))

    ## Reading
    @classmethod
    def from_frontmatter(cls, fence: str, lines: List[str]) -> Attributes:
        kind = FENCES[fence]
        text = "\n".join(lines)

        if kind == AttributesKind.YAML:
            try:
                values = yaml.safe_load(text)
            except yaml.YAMLError as err:
                raise YamlFrontmatterParseFailed(
                    "Invalid YAML frontmatter: {}".format(err), text
                ) from err
            if values is None:
                values = {}
            if not isinstance(values, dict):
                raise YamlFrontmatterParseFailed("YAML frontmatter must be a mapping", text)
            return cls(kind, values)

        try:
            values = tomllib.loads(text)
        except tomllib.TOMLDecodeError as err:
            raise TomlFrontmatterParseFailed(
                "Invalid TOML frontmatter: {}".format(err), text
            ) from err
        return cls(kind, values)

    def add_org_line(self, key: str, value: str):
        if self.kind == AttributesKind.NONE:
            self.kind = AttributesKind.ORG
        assert self.kind == AttributesKind.ORG

        if key in self.values:
            logging.warning("Attribute {} found more than once, keeping the last value".format(key))
        self.values[key] = value

    def _org_key(self, name: str) -> Optional[str]:
        for key in self.values:
            if key.lower() == name:
                return key
        return None

    def title(self) -> Optional[str]:
        if self.kind == AttributesKind.NONE:
            return None
        if self.kind == AttributesKind.ORG:
            key = self._org_key(ORG_TITLE_KEY)
            return self.values[key] if key is not None else None

        title = self.values.get(TITLE_KEY)
        if title is not None and not isinstance(title, str):
            raise RootTitleNotString(title)
        return title

    def tags(self) -> List[str]:
        if self.kind == AttributesKind.NONE:
            return []
        if self.kind == AttributesKind.ORG:
            key = self._org_key(ORG_TAGS_KEY)
            return parse_tags(self.values[key]) if key is not None else []

        tags = self.values.get(TAGS_KEY)
        if tags is None:
            return []
        if not is_string_list(tags):
            raise RootTagsNotStringList(tags)
        return list(tags)

    ## Writing
    def _ensure_kind(self, format: Format, environment: dict):
        if self.kind != AttributesKind.NONE:
            return
        if format == Format.ORG:
            self.kind = AttributesKind.ORG
        else:
            self.kind = markdown_kind(environment)

    def _new_org_key(self, name: str, environment: dict) -> str:
        if environment.get("org-attributes-case") == "upper":
            return name.upper()
        return name

    def _set(self, org_name: str, name: str, value, format: Format, environment: dict):
        if not value:
            if self.kind == AttributesKind.ORG:
                key = self._org_key(org_name)
                if key is not None:
                    del self.values[key]
            elif self.kind != AttributesKind.NONE:
                self.values.pop(name, None)
            return

        self._ensure_kind(format, environment)
        if self.kind == AttributesKind.ORG:
            key = self._org_key(org_name)
            if key is None:
                key = self._new_org_key(org_name, environment)
            self.values[key] = dump_tags(value) if org_name == ORG_TAGS_KEY else value
        else:
            self.values[name] = list(value) if name == TAGS_KEY else value

    def set_title(self, title: Optional[str], format: Format, environment: dict):
        """
        Stores the document title, or removes it when empty.
        """
        self._set(ORG_TITLE_KEY, TITLE_KEY, title, format, environment)

    def set_tags(self, tags: List[str], format: Format, environment: dict):
        self._set(ORG_TAGS_KEY, TAGS_KEY, tags, format, environment)

    ## Converting
    def to_org(self) -> Attributes:
        if self.kind in (AttributesKind.NONE, AttributesKind.ORG):
            return self.copy()

        to_str = yaml_value_to_str if self.kind == AttributesKind.YAML else toml_value_to_str
        values = {}
        for key, value in self.values.items():
            key = to_str(key)
            if key == TAGS_KEY and is_string_list(value):
                values[ORG_TAGS_KEY] = dump_tags(value)
            else:
                values[key] = escape_newlines(to_str(value))
        return Attributes(AttributesKind.ORG, values)

    def to_markdown(self, kind: AttributesKind) -> Attributes:
        if self.kind != AttributesKind.ORG:
            return self.copy()
        if not self.values:
            return Attributes()

        values = {}
        for key, value in self.values.items():
            if key.lower() == ORG_TAGS_KEY:
                values[TAGS_KEY] = parse_tags(value)
            elif key.lower() == ORG_TITLE_KEY:
                values[TITLE_KEY] = value
            else:
                values[key] = value
        return Attributes(kind, values)

    def converted(self, format: Format, environment: dict) -> Attributes:
        if format == Format.ORG:
            return self.to_org()
        return self.to_markdown(markdown_kind(environment))

    def to_str(self, format: Format, environment: dict) -> str:
        """
        Renders the attributes in the representation used by `format`.
        """
        attributes = self.converted(format, environment)
        kind = attributes.kind

        if kind == AttributesKind.NONE:
            return ""
        if kind == AttributesKind.ORG:
            return "\n".join(dump_org_attribute(key, value) for key, value in attributes.values.items())
        if kind == AttributesKind.YAML:
            dumped = ""
            if attributes.values:
                dumped = yaml.safe_dump(
                    attributes.values,
                    sort_keys=False,
                    allow_unicode=True,
                    default_flow_style=None,
                    width=float("inf"),
                )
            return "{fence}\n{}{fence}".format(dumped, fence=YAML_FENCE)
        if kind == AttributesKind.TOML:
            return "{fence}\n{}{fence}".format(tomli_w.dumps(attributes.values), fence=TOML_FENCE)
        raise NotImplementedError("Unhandled attributes kind: {}".format(kind))


def markdown_kind(environment: dict) -> AttributesKind:
    if environment.get("markdown-attributes", "yaml") == "toml":
        return AttributesKind.TOML
    return AttributesKind.YAML
