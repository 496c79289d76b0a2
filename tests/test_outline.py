import itertools
import os
import unittest

from outline_rw import (Attributes, AttributesKind, Document, ForceUuidIds,
                        Format, GenericKeywords, IdParseFailed,
                        IncompleteAttributes, IncompleteProperties,
                        InvalidChildLevel, InvalidProperty, Node,
                        NonReproducibleDocument, NoIds, PlanningRepeat,
                        RootTagsNotStringList, RootTitleNotString, TodoKeywords,
                        TomlFrontmatterParseFailed, UuidIds,
                        YamlFrontmatterParseFailed, dump, dumps, dumps_node,
                        load, loads)

from utils.assertions import HL, Doc

DIR = os.path.dirname(os.path.abspath(__file__))

CUSTOM_KEYWORDS = TodoKeywords(["TODO", "PROJ"], ["DONE"])

ORG_DOCUMENT = """#+title: Test Document
#+author: Test

Root

* Heading 1
** Heading 1.1
*** TODO [#B] Task 1 <2023-01-01 Sun>
- Some contents
*** PROJ Project 1 :tag1:
**** TODO Task 1.1 :tag1:tag2:
DEADLINE: <2023-01-01 Sun>
* [#A] Heading 2
:PROPERTIES:
:FOO: bar
:END:"""

MD_DOCUMENT = """---
title: Test Document
author: Test
---

Root

# Heading 1
## Heading 1.1
### TODO [#B] Task 1 <2023-01-01 Sun>
- Some contents
### PROJ Project 1 :tag1:
#### TODO Task 1.1 :tag1:tag2:
DEADLINE: <2023-01-01 Sun>
# [#A] Heading 2
<!--PROPERTIES
FOO: bar
-->"""

MD_DOCUMENT_WITH_PROPS = """---
title: Test Document
author: Test
---
<!--PROPERTIES
FOO: bar
-->
Root

# Heading 1
## Heading 1.1
### TODO [#B] Task 1 <2023-01-01 Sun>
- Some contents
### PROJ Project 1 :tag1:
#### TODO Task 1.1 :tag1:tag2:
DEADLINE: <2023-01-01 Sun>
# [#A] Heading 2
<!--PROPERTIES
FOO: bar
-->

Test"""


class TestSerde(unittest.TestCase):
    def test_simple_file_01(self):
        with open(os.path.join(DIR, "01-simple.org")) as f:
            doc = load(f)

        ex = Doc(
            title="01-Simple",
            tags=["test", "simple"],
            body="\nRoot contents.\n",
            children=HL(
                "First level",
                level=1,
                id="01-simple-first-level-id",
                props=[("CREATED", "[2020-01-01 Wed 01:01]")],
                body="First level content\n",
                children=[
                    HL(
                        "Second level",
                        level=2,
                        keyword="TODO",
                        priority="A",
                        tags=["tag"],
                        id="01-simple-second-level-id",
                        body="\nSecond level content\n",
                        children=[
                            HL(
                                "Third level",
                                level=3,
                                keyword="DONE",
                                body="Third level content\n",
                            )
                        ],
                    )
                ],
            ),
        )

        ex.assert_matches(self, doc)
        self.assertEqual(doc.format, Format.ORG)
        self.assertEqual(doc.path, os.path.join(DIR, "01-simple.org"))
        self.assertEqual(doc.attributes.values["description"], "Simple outline file")

    def test_mimic_write_file_01(self):
        """A goal of this library is to be able to update a file without changing parts not directly modified."""
        with open(os.path.join(DIR, "01-simple.org")) as f:
            orig = f.read()
            doc = loads(orig)

        self.assertEqual(dumps(doc), orig)

    def test_tasks_file_02(self):
        with open(os.path.join(DIR, "02-tasks.org")) as f:
            doc = load(f)

        ex = Doc(
            children=[
                HL(
                    "Water the plants",
                    keyword="TODO",
                    priority="B",
                    tags=["home"],
                    timestamps=["<2024-01-06 Sat 10:00-11:00>"],
                    planning=[
                        ("DEADLINE", "<2024-01-03 Wed>"),
                        ("SCHEDULED", "<2024-01-01 Mon 09:00 +1w>"),
                    ],
                    props=[("EFFORT", "0:10")],
                    body="Use the blue can.",
                ),
                HL(
                    "Pay rent",
                    keyword="DONE",
                    planning=[("CLOSED", "[2024-01-01 Mon 12:30]")],
                    body="",
                ),
                HL(
                    "Meeting",
                    timestamps=["<2024-01-08 Mon>--<2024-01-09 Tue>"],
                    children=[HL("Agenda", level=2, body="")],
                ),
            ]
        )

        ex.assert_matches(self, doc)

    def test_mimic_write_file_02(self):
        with open(os.path.join(DIR, "02-tasks.org")) as f:
            orig = f.read()

        self.assertEqual(dumps(loads(orig, extra_cautious=True)), orig)

    def test_markdown_frontmatter_file_03(self):
        with open(os.path.join(DIR, "03-frontmatter.md")) as f:
            doc = load(f)

        ex = Doc(
            title="Project notes",
            tags=["work", "notes"],
            id="project-notes",
            body="Intro paragraph.\n",
            children=[
                HL(
                    "Write the report",
                    keyword="TODO",
                    priority="A",
                    id="report",
                    props=[("OWNER", "me")],
                    planning=[("DEADLINE", "<2024-02-01 Thu>")],
                    body="Draft first.",
                    children=[HL("Collect data", level=2)],
                ),
                HL("Heading without body", body=""),
            ],
        )

        ex.assert_matches(self, doc)
        self.assertEqual(doc.format, Format.MARKDOWN)
        self.assertEqual(doc.attributes.kind, AttributesKind.YAML)
        self.assertEqual(doc.attributes.values["status"], "active")

    def test_mimic_write_file_03(self):
        with open(os.path.join(DIR, "03-frontmatter.md")) as f:
            orig = f.read()

        self.assertEqual(dumps(loads(orig, Format.MARKDOWN)), orig)

    def test_toml_file_04(self):
        with open(os.path.join(DIR, "04-toml.md")) as f:
            orig = f.read()
            doc = loads(orig, Format.MARKDOWN)

        Doc(title="Toml notes", body="", children=HL("Only heading", body="")).assert_matches(self, doc)
        self.assertEqual(doc.attributes.kind, AttributesKind.TOML)
        self.assertEqual(doc.attributes.values["draft"], False)
        self.assertEqual(dumps(doc), orig)

    def test_skipped_levels_file_05(self):
        with open(os.path.join(DIR, "05-skipped-levels.org")) as f:
            orig = f.read()
            doc = loads(orig)

        Doc(
            children=[
                HL(
                    "Top",
                    children=[
                        HL("Deep child", level=3),
                        HL("Middle child", level=2),
                    ],
                ),
                HL("Second top", body=""),
            ]
        ).assert_matches(self, doc)
        self.assertEqual(dumps(doc), orig)

    def test_org_document_round_trip(self):
        doc = loads(ORG_DOCUMENT, Format.ORG, CUSTOM_KEYWORDS)
        self.assertEqual(dumps(doc, keywords=CUSTOM_KEYWORDS), ORG_DOCUMENT)

    def test_markdown_document_round_trip(self):
        doc = loads(MD_DOCUMENT, Format.MARKDOWN, CUSTOM_KEYWORDS)
        self.assertEqual(dumps(doc, keywords=CUSTOM_KEYWORDS), MD_DOCUMENT)

    def test_markdown_document_with_properties_round_trip(self):
        doc = loads(MD_DOCUMENT_WITH_PROPS, Format.MARKDOWN, CUSTOM_KEYWORDS)
        self.assertEqual(doc.root.properties, {"FOO": "bar"})
        self.assertEqual(doc.root.body, "Root\n")
        self.assertEqual(dumps(doc, keywords=CUSTOM_KEYWORDS), MD_DOCUMENT_WITH_PROPS)

    def test_dump_to_file(self):
        class Collector:
            def __init__(self):
                self.chunks = []

            def write(self, chunk):
                self.chunks.append(chunk)

        doc = loads(ORG_DOCUMENT, Format.ORG, CUSTOM_KEYWORDS)
        out = Collector()
        dump(doc, out, keywords=CUSTOM_KEYWORDS)
        self.assertEqual("".join(out.chunks), ORG_DOCUMENT)


class TestSpacing(unittest.TestCase):
    TEMPLATE = """Initial contents.
[BODY]* Pure spacing
[BODY]* Spacing after
Starting text.
[BODY]* Spacing before
[BODY]Ending text.
Final text"""

    def test_blank_lines_are_kept_everywhere(self):
        chunks = self.TEMPLATE.split("[BODY]")
        for spacing in itertools.product(range(4), repeat=len(chunks) - 1):
            text = chunks[0]
            for newlines, chunk in zip(spacing, chunks[1:]):
                text += "\n" * newlines + chunk

            with self.subTest(spacing=spacing):
                self.assertEqual(dumps(loads(text)), text)

    def test_leading_blank_lines_are_dropped(self):
        doc = loads("\nHello, world!")
        self.assertEqual(doc.root.body, "Hello, world!")
        self.assertEqual(dumps(doc), "Hello, world!")

    def test_body_presence(self):
        doc = loads("* A\n* B\n\n* C\ntext")
        a, b, c = doc.get_top_nodes()
        self.assertIsNone(a.body)
        self.assertEqual(b.body, "")
        self.assertEqual(c.body, "text")

    def test_trailing_newline_is_kept(self):
        self.assertEqual(dumps(loads("* A\n")), "* A\n")
        self.assertEqual(dumps(loads("* A")), "* A")

    def test_empty_document(self):
        doc = loads("")
        self.assertIsNone(doc.root.body)
        self.assertEqual(len(doc.get_top_nodes()), 0)
        self.assertEqual(dumps(doc), "")


class TestParsing(unittest.TestCase):
    def test_heading_is_not_taken_from_frontmatter(self):
        doc = loads("---\ntitle: Foo\n# comment: yes\n---\n# Heading", Format.MARKDOWN)
        self.assertEqual(doc.title, "Foo")
        self.assertEqual(doc.attributes.values, {"title": "Foo"})
        self.assertEqual([n.title for n in doc.get_top_nodes()], ["Heading"])

    def test_root_properties_before_org_attributes(self):
        text = ":PROPERTIES:\n:ID: root-id\n:END:\n#+title: Titled\nSome text"
        doc = loads(text)
        self.assertEqual(doc.root.properties.id, "root-id")
        self.assertEqual(doc.title, "Titled")
        self.assertEqual(doc.root.body, "Some text")
        self.assertEqual(dumps(doc), text)

    def test_org_attribute_keys_are_case_insensitive(self):
        doc = loads("#+TITLE: Loud\n#+FILETAGS: :a:b:")
        self.assertEqual(doc.title, "Loud")
        self.assertEqual(doc.tags, ["a", "b"])
        self.assertEqual(dumps(doc), "#+TITLE: Loud\n#+FILETAGS: :a:b:")

    def test_empty_property_value(self):
        text = "* Heading\n:PROPERTIES:\n:EMPTY:\n:END:"
        doc = loads(text)
        self.assertEqual(doc.get_top_nodes()[0].properties, {"EMPTY": ""})
        self.assertEqual(dumps(doc), text)

    def test_properties_are_written_sorted(self):
        doc = loads("* Heading\n:PROPERTIES:\n:ZETA: 1\n:ID: x\n:ALPHA: 2\n:END:")
        self.assertEqual(list(doc.get_top_nodes()[0].properties), ["ZETA", "ALPHA"])
        self.assertEqual(dumps(doc), "* Heading\n:PROPERTIES:\n:ID: x\n:ALPHA: 2\n:ZETA: 1\n:END:")

    def test_planning_stops_at_body(self):
        doc = loads("* Heading\nNote: DEADLINE: <2024-01-01 Mon>")
        node = doc.get_top_nodes()[0]
        self.assertTrue(node.planning.is_empty())
        self.assertEqual(node.body, "Note: DEADLINE: <2024-01-01 Mon>")

    def test_generic_keywords(self):
        doc = loads("* WAITING Reply to mail", keywords=GenericKeywords())
        node = doc.get_top_nodes()[0]
        self.assertEqual(node.keyword.name, "WAITING")
        self.assertEqual(node.title, "Reply to mail")

    def test_get_node_by_id(self):
        with open(os.path.join(DIR, "01-simple.org")) as f:
            doc = load(f)

        node = doc.get_node_by_id("01-simple-second-level-id")
        self.assertEqual(node.title, "Second level")
        self.assertIsNone(doc.get_node_by_id("missing"))

    def test_get_all_nodes_is_depth_first(self):
        with open(os.path.join(DIR, "05-skipped-levels.org")) as f:
            doc = load(f)

        self.assertEqual(
            [node.title for node in doc.get_all_nodes()],
            ["Top", "Deep child", "Middle child", "Second top"],
        )


class TestErrors(unittest.TestCase):
    def test_repeated_planning_keyword(self):
        with self.assertRaises(PlanningRepeat):
            loads("* Heading\nDEADLINE: <2024-01-01 Mon>\nDEADLINE: <2024-01-02 Tue>")

    def test_invalid_property(self):
        with self.assertRaises(InvalidProperty):
            loads("* Heading\n:PROPERTIES:\nnot a property\n:END:")

    def test_unclosed_properties_at_next_heading(self):
        with self.assertRaises(IncompleteProperties):
            loads("* Heading\n:PROPERTIES:\n:FOO: bar\n* Next")

    def test_unclosed_properties_at_end(self):
        with self.assertRaises(IncompleteProperties):
            loads(":PROPERTIES:\n:FOO: bar")

    def test_unclosed_frontmatter(self):
        with self.assertRaises(IncompleteAttributes):
            loads("---\ntitle: Foo\n# Heading", Format.MARKDOWN)

    def test_mismatched_fence_does_not_close_frontmatter(self):
        with self.assertRaises(IncompleteAttributes):
            loads("+++\ntitle = 'Foo'\n---", Format.MARKDOWN)

    def test_invalid_yaml(self):
        with self.assertRaises(YamlFrontmatterParseFailed):
            loads("---\ntitle: [unclosed\n---", Format.MARKDOWN)

    def test_yaml_must_be_a_mapping(self):
        with self.assertRaises(YamlFrontmatterParseFailed):
            loads("---\n- a\n- b\n---", Format.MARKDOWN)

    def test_invalid_toml(self):
        with self.assertRaises(TomlFrontmatterParseFailed):
            loads("+++\ntitle = \n+++", Format.MARKDOWN)

    def test_title_must_be_string(self):
        with self.assertRaises(RootTitleNotString):
            loads("---\ntitle: 3\n---", Format.MARKDOWN)

    def test_tags_must_be_string_list(self):
        with self.assertRaises(RootTagsNotStringList):
            loads("---\ntags: [1, 2]\n---", Format.MARKDOWN)

    def test_invalid_id(self):
        with self.assertRaises(IdParseFailed):
            loads("* Heading\n:PROPERTIES:\n:ID: not-a-uuid\n:END:", ids=UuidIds())

    def test_non_reproducible(self):
        with self.assertRaises(NonReproducibleDocument):
            loads("*  Extra space", extra_cautious=True)

    def test_invalid_child_level(self):
        parent = Node(level=2, title="Parent")
        with self.assertRaises(InvalidChildLevel):
            parent.add_child(Node(level=2, title="Sibling"))


class TestIds(unittest.TestCase):
    def test_uuid_ids(self):
        text = "* Heading\n:PROPERTIES:\n:ID: 6f1a0d7e-2b44-4c1e-9a8e-2b2a3c4d5e6f\n:END:"
        doc = loads(text, ids=UuidIds())
        self.assertEqual(str(doc.get_top_nodes()[0].properties.id), "6f1a0d7e-2b44-4c1e-9a8e-2b2a3c4d5e6f")
        self.assertEqual(dumps(doc, ids=UuidIds()), text)

    def test_forced_ids_are_generated(self):
        doc = loads("* A\n** B", ids=ForceUuidIds())
        ids = [node.properties.id for node in doc.root.get_all_nodes(include_self=True)]
        self.assertEqual(len(ids), 3)
        self.assertEqual(len(set(ids)), 3)
        self.assertTrue(all(id is not None for id in ids))

        dumped = dumps(doc, ids=ForceUuidIds())
        self.assertEqual(dumped.count(":ID: "), 3)

    def test_no_ids_strips_them(self):
        text = "* Heading\n:PROPERTIES:\n:ID: whatever\n:FOO: bar\n:END:"
        doc = loads(text, ids=NoIds())
        self.assertEqual(dumps(doc, ids=NoIds()), "* Heading\n:PROPERTIES:\n:FOO: bar\n:END:")

    def test_map_and_strip_ids(self):
        text = ":PROPERTIES:\n:ID: root\n:END:\n* Heading\n:PROPERTIES:\n:ID: child\n:END:"
        doc = loads(text)

        doc.map_ids(lambda id: id.upper())
        self.assertEqual(doc.root.properties.id, "ROOT")
        self.assertEqual(doc.get_top_nodes()[0].properties.id, "CHILD")

        doc.strip_ids()
        self.assertEqual(dumps(doc), "* Heading")

    def test_map_keywords(self):
        doc = loads("* TODO A\n* B")
        doc.map_keywords(lambda kw: CUSTOM_KEYWORDS.other("NEXT") if kw is not None else kw)
        self.assertEqual(dumps(doc), "* NEXT A\n* B")


class TestConversion(unittest.TestCase):
    def test_org_to_markdown(self):
        doc = loads("#+title: Notes\n#+filetags: :foo:bar:\n#+author: me\n* TODO Task\nBody")
        self.assertEqual(
            dumps(doc, Format.MARKDOWN),
            "---\ntitle: Notes\ntags: [foo, bar]\nauthor: me\n---\n# TODO Task\nBody",
        )

    def test_markdown_to_org(self):
        doc = loads("---\ntitle: Notes\ntags: [foo, bar]\ncount: 3\n---\n# Task", Format.MARKDOWN)
        self.assertEqual(
            dumps(doc, Format.ORG),
            "#+title: Notes\n#+filetags: :foo:bar:\n#+count: 3\n* Task",
        )

    def test_dumps_does_not_modify_document(self):
        doc = loads("#+title: Notes\n* Task")
        doc.root.title = "Renamed"
        self.assertEqual(dumps(doc), "#+title: Renamed\n* Task")
        self.assertEqual(doc.attributes.values, {"title": "Notes"})

    def test_title_creates_frontmatter(self):
        doc = Document(Node(title="New"), format=Format.MARKDOWN)
        self.assertEqual(dumps(doc), "---\ntitle: New\n---")
        self.assertEqual(
            dumps(doc, environment={"markdown-attributes": "toml"}),
            '+++\ntitle = "New"\n+++',
        )

    def test_title_creates_org_attributes(self):
        doc = Document(Node(title="New", tags=["a"]))
        self.assertEqual(dumps(doc), "#+title: New\n#+filetags: :a:")
        self.assertEqual(
            dumps(doc, environment={"org-attributes-case": "upper"}),
            "#+TITLE: New\n#+FILETAGS: :a:",
        )

    def test_removing_title_removes_attribute(self):
        doc = loads("#+title: Notes\n#+author: me")
        doc.root.title = ""
        self.assertEqual(dumps(doc), "#+author: me")

    def test_markdown_properties(self):
        doc = loads("* Heading\n:PROPERTIES:\n:ID: x\n:FOO: bar\n:END:")
        self.assertEqual(
            dumps(doc, Format.MARKDOWN),
            "# Heading\n<!--PROPERTIES\nID: x\nFOO: bar\n-->",
        )

    def test_dumps_node(self):
        doc = loads(ORG_DOCUMENT, Format.ORG, CUSTOM_KEYWORDS)
        node = doc.get_top_nodes()[1]
        self.assertEqual(
            dumps_node(node, Format.MARKDOWN, CUSTOM_KEYWORDS),
            "# [#A] Heading 2\n<!--PROPERTIES\nFOO: bar\n-->",
        )

    def test_attributes_copy_is_independent(self):
        attributes = Attributes(AttributesKind.YAML, {"tags": ["a"]})
        copied = attributes.copy()
        copied.values["tags"].append("b")
        self.assertEqual(attributes.values, {"tags": ["a"]})


if __name__ == "__main__":
    unittest.main()
