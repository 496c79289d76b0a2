from __future__ import annotations

import difflib
import logging
import os
import sys
from enum import Enum
from typing import Generator, List, Optional

from .attributes import FENCES, Attributes, parse_org_attribute
from .errors import IncompleteAttributes, IncompleteProperties, ParseError
from .formats import Format
from .headings import dump_heading, parse_heading
from .keywords import DEFAULT_IDS, DEFAULT_KEYWORDS
from .nodes import ID_PROPERTY, Node, Properties
from .types import IdCapability, KeywordCapability

DEBUG_DIFF_CONTEXT = 10

BASE_ENVIRONMENT = {
    # Frontmatter created for Markdown documents that had none: "yaml" or "toml"
    "markdown-attributes": "yaml",
    # Case of `title`/`filetags` keys created in Org documents: "lower" or "upper"
    "org-attributes-case": "lower",
}


class NonReproducibleDocument(Exception):
    """
    Exception thrown when a document would be saved as different contents
    from what it's loaded from.
    """
    pass


class ReaderState(Enum):
    # Before anything but blank lines
    BEGINNING = 1
    # Inside Markdown frontmatter fences
    FRONTMATTER = 2
    ROOT_PROPERTIES = 3
    ROOT_CONTENT = 4
    # Just after a heading
    PLANNING = 5
    PROPERTIES = 6
    BODY = 7


class Document:
    def __init__(self, root: Node = None, attributes: Attributes = None, format: Format = Format.ORG):
        self.root = root if root is not None else Node()
        self.attributes = attributes if attributes is not None else Attributes()
        self.format = format
        self._path = None

    def __repr__(self):
        return "<Document {}: {!r}, {} top nodes>".format(
            self.format.value, self.root.title, len(self.root.children)
        )

    @property
    def path(self):
        return self._path

    @property
    def title(self) -> str:
        return self.root.title

    @property
    def tags(self) -> List[str]:
        return self.root.tags

    ## Querying
    def get_top_nodes(self):
        return self.root.children

    def get_all_nodes(self) -> Generator[Node]:
        return self.root.get_all_nodes()

    def get_node_by_id(self, id) -> Optional[Node]:
        for node in self.get_all_nodes():
            if node.properties.id == id:
                return node
        return None

    ## Rewriting
    def map_ids(self, fn):
        """
        Replaces every ID in the document, the root's included, with `fn(id)`.
        """
        for node in self.root.get_all_nodes(include_self=True):
            node.properties.id = fn(node.properties.id)

    def strip_ids(self):
        self.map_ids(lambda _: None)

    def map_keywords(self, fn):
        for node in self.get_all_nodes():
            node.keyword = fn(node.keyword)

    ## Writing
    def dump(self, format: Format = None, keywords=DEFAULT_KEYWORDS, ids=DEFAULT_IDS, environment=BASE_ENVIRONMENT):
        """
        Yields the document's sections, to be joined with newlines.

        The root title and tags are written into a copy of the attributes, so
        the document itself is left untouched.
        """
        format = format if format is not None else self.format
        attributes = self.attributes.copy()
        attributes.set_title(self.root.title, format, environment)
        attributes.set_tags(self.root.tags, format, environment)

        attributes_str = attributes.to_str(format, environment)
        properties_str = dump_properties(self.root.properties, format, ids)

        # Org keywords follow the root drawer, Markdown frontmatter precedes it
        if format == Format.ORG:
            sections = [properties_str, attributes_str]
        else:
            sections = [attributes_str, properties_str]

        yield from (section for section in sections if section)
        if self.root.body is not None:
            yield self.root.body

        for child in self.root.children:
            yield from dump_node(child, format, keywords, ids)


def dump_property(key: str, value: str, format: Format) -> str:
    prefix = ":" if format == Format.ORG else ""
    if value == "":
        return "{}{}:".format(prefix, key)
    return "{}{}: {}".format(prefix, key, value)


def dump_properties(properties: Properties, format: Format, ids: IdCapability = DEFAULT_IDS) -> str:
    lines = []
    if not ids.is_empty(properties.id):
        lines.append(dump_property(ID_PROPERTY, ids.to_str(properties.id), format))
    for key in sorted(properties):
        lines.append(dump_property(key, properties[key], format))

    if len(lines) == 0:
        return ""
    return "\n".join([format.properties_opener] + lines + [format.properties_closer])


def dump_node(node: Node, format: Format, keywords=DEFAULT_KEYWORDS, ids=DEFAULT_IDS, recursive=True):
    yield dump_heading(node, format, keywords)

    if not node.planning.is_empty():
        yield node.planning.dump()

    properties = dump_properties(node.properties, format, ids)
    if properties:
        yield properties

    # An empty body is still one blank line
    if node.body is not None:
        yield node.body

    if recursive:
        for child in node.children:
            yield from dump_node(child, format, keywords, ids)


def dumps_node(node: Node, format: Format, keywords=DEFAULT_KEYWORDS, ids=DEFAULT_IDS) -> str:
    return "\n".join(dump_node(node, format, keywords, ids))


class OutlineDocReader:
    def __init__(
        self,
        format: Format = Format.ORG,
        keywords: KeywordCapability = DEFAULT_KEYWORDS,
        ids: IdCapability = DEFAULT_IDS,
    ):
        self.format = format
        self.keywords = keywords
        self.ids = ids

        self.root = Node()
        self.root.properties.id = ids.initial()
        self.attributes = Attributes()
        # Open nodes from the root down to the one being read
        self.hierarchy: List[Node] = [self.root]
        self.body: List[str] = []

        self.state = ReaderState.BEGINNING
        self.seen_frontmatter = False
        self.frontmatter_fence = None
        self.frontmatter: List[str] = []

        self.handlers = {
            ReaderState.BEGINNING: self.read_beginning_line,
            ReaderState.FRONTMATTER: self.read_frontmatter_line,
            ReaderState.ROOT_PROPERTIES: self.read_properties_line,
            ReaderState.ROOT_CONTENT: self.read_root_content_line,
            ReaderState.PLANNING: self.read_planning_line,
            ReaderState.PROPERTIES: self.read_properties_line,
            ReaderState.BODY: self.read_body_line,
        }

    @property
    def current(self) -> Node:
        return self.hierarchy[-1]

    def finish_body(self):
        self.current.body = "\n".join(self.body) if len(self.body) > 0 else None
        self.body = []

    def check_closed(self):
        if self.state == ReaderState.FRONTMATTER:
            raise IncompleteAttributes(self.frontmatter_fence)
        if self.state in (ReaderState.ROOT_PROPERTIES, ReaderState.PROPERTIES):
            raise IncompleteProperties(self.format.properties_opener)

    def add_heading(self, node: Node):
        self.check_closed()
        self.finish_body()

        node.properties.id = self.ids.initial()
        # Levels may be skipped, the parent is the closest shallower node
        while self.current.level >= node.level:
            self.hierarchy.pop()
        self.current.add_child(node)
        self.hierarchy.append(node)
        self.state = ReaderState.PLANNING

    ## Line handlers: each returns False when the line must be read again
    ## in the state it just switched to
    def read_beginning_line(self, line: str) -> bool:
        stripped = line.strip()

        if (
            self.format == Format.MARKDOWN
            and not self.seen_frontmatter
            and stripped in FENCES
        ):
            self.frontmatter_fence = stripped
            self.state = ReaderState.FRONTMATTER
        elif stripped == self.format.properties_opener:
            # Blank lines after frontmatter are not kept before a drawer
            self.body = []
            self.state = ReaderState.ROOT_PROPERTIES
        elif stripped:
            self.state = ReaderState.ROOT_CONTENT
            return False
        elif self.seen_frontmatter:
            self.body.append(line)
        return True

    def read_frontmatter_line(self, line: str) -> bool:
        if line.strip() == self.frontmatter_fence:
            self.attributes = Attributes.from_frontmatter(self.frontmatter_fence, self.frontmatter)
            self.seen_frontmatter = True
            self.state = ReaderState.BEGINNING
        else:
            self.frontmatter.append(line)
        return True

    def read_properties_line(self, line: str) -> bool:
        stripped = line.strip()
        if stripped == self.format.properties_closer:
            if self.state == ReaderState.ROOT_PROPERTIES:
                self.state = ReaderState.ROOT_CONTENT
            else:
                self.state = ReaderState.BODY
        elif stripped:
            self.current.properties.add_line(line, self.ids)
        return True

    def read_root_content_line(self, line: str) -> bool:
        if self.format == Format.ORG and (attribute := parse_org_attribute(line)):
            self.attributes.add_org_line(*attribute)
        else:
            self.body.append(line)
        return True

    def read_planning_line(self, line: str) -> bool:
        if line.strip() == self.format.properties_opener:
            self.state = ReaderState.PROPERTIES
        elif not self.current.planning.add_line(line):
            self.state = ReaderState.BODY
            return False
        return True

    def read_body_line(self, line: str) -> bool:
        self.body.append(line)
        return True

    def read_line(self, line: str):
        # Nothing inside frontmatter fences is a heading
        if self.state != ReaderState.FRONTMATTER:
            if (node := parse_heading(line, self.format, self.keywords)) is not None:
                self.add_heading(node)
                return

        while not self.handlers[self.state](line):
            pass

    def read(self, s: str):
        lines = s.split("\n") if s else []
        for lnum, line in enumerate(lines):
            linenum = lnum + 1
            try:
                self.read_line(line)
            except ParseError:
                logging.error("Error line {}: {}".format(linenum, line))
                raise

    def finalize(self) -> Document:
        self.check_closed()
        self.finish_body()

        self.root.title = self.attributes.title() or ""
        self.root.tags = self.attributes.tags()
        return Document(self.root, self.attributes, self.format)


def report_differences(s: str, after_dump: str):
    diff = list(
        difflib.Differ().compare(
            s.splitlines(keepends=True), after_dump.splitlines(keepends=True)
        )
    )

    context_start = None
    context_last_line = None
    for i, line in enumerate(diff + ["  "] * (DEBUG_DIFF_CONTEXT + 1)):
        if not line.startswith(" "):
            if context_start is None:
                context_start = i
            context_last_line = i
        elif context_start is not None:
            if i > (context_last_line + DEBUG_DIFF_CONTEXT):
                start = max(0, context_start - DEBUG_DIFF_CONTEXT)
                end = min(len(diff), context_last_line + DEBUG_DIFF_CONTEXT)
                print(
                    "## Lines {} to {}".format(start + 1, end + 1),
                    file=sys.stderr,
                )
                sys.stderr.writelines(diff[start:end])
                context_start = None
                context_last_line = None


def loads(
    s: str,
    format: Format = Format.ORG,
    keywords: KeywordCapability = DEFAULT_KEYWORDS,
    ids: IdCapability = DEFAULT_IDS,
    environment=BASE_ENVIRONMENT,
    extra_cautious=False,
) -> Document:
    reader = OutlineDocReader(format, keywords, ids)
    reader.read(s)
    doc = reader.finalize()
    if extra_cautious:  # Check that the document is written back unchanged
        after_dump = dumps(doc, format, keywords, ids, environment)
        if after_dump != s:
            report_differences(s, after_dump)
            raise NonReproducibleDocument("Difference found between existing version and dumped")
    return doc


def load(
    f,
    format: Format = None,
    keywords=DEFAULT_KEYWORDS,
    ids=DEFAULT_IDS,
    environment=BASE_ENVIRONMENT,
    extra_cautious=False,
) -> Document:
    name = getattr(f, "name", None)
    if format is None:
        format = Format.from_path(name) if isinstance(name, str) else Format.ORG

    doc = loads(f.read(), format, keywords, ids, environment, extra_cautious)
    if isinstance(name, str):
        doc._path = os.path.abspath(name)
    return doc


def dumps(doc: Document, format: Format = None, keywords=DEFAULT_KEYWORDS, ids=DEFAULT_IDS, environment=BASE_ENVIRONMENT) -> str:
    return "\n".join(doc.dump(format, keywords, ids, environment))


def dump(doc: Document, fp, format: Format = None, keywords=DEFAULT_KEYWORDS, ids=DEFAULT_IDS, environment=BASE_ENVIRONMENT):
    it = doc.dump(format, keywords, ids, environment)

    # Write first section separately
    section = next(it, None)
    if section is None:
        return
    fp.write(section)

    # Write following ones preceded by line jump
    for section in it:
        fp.write("\n" + section)
