# Tests for splitting wikitext into sections
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import unittest

from wikitextbot.section_parser import Section, parse_sections
from wikitextbot.tag_parser import parse_tags


def parse(source: str) -> list[Section]:
    return parse_sections(source, parse_tags(source))


class SectionParserTests(unittest.TestCase):
    def assert_contiguous(self, source, sections):
        self.assertEqual(sections[0].title, "top")
        self.assertEqual(sections[0].level, 1)
        for a, b in zip(sections, sections[1:]):
            self.assertEqual(a.end_index, b.start_index)
        self.assertEqual(sections[-1].end_index, len(source))

    def test_no_headings(self):
        sections = parse("just text")
        self.assertEqual(
            sections,
            [Section("top", "", 1, 0, 0, 9, "just text")],
        )

    def test_nested(self):
        source = "== Intro ==\ntext\n=== Sub ===\nmore"
        sections = parse(source)
        self.assertEqual(
            [(s.title, s.level, s.start_index, s.end_index) for s in sections],
            [
                ("top", 1, 0, 0),
                ("Intro", 2, 0, 33),
                ("Sub", 3, 17, 33),
            ],
        )
        self.assertEqual(sections[1].heading, "== Intro ==")
        self.assertEqual(sections[2].content, "=== Sub ===\nmore")
        self.assertEqual([s.index for s in sections], [0, 1, 2])

    def test_siblings(self):
        source = "lead\n== A ==\nx\n== B ==\ny"
        sections = parse(source)
        self.assertEqual([s.title for s in sections], ["top", "A", "B"])
        self.assertEqual(sections[0].content, "lead\n")
        self.assertEqual(sections[1].content, "== A ==\nx\n")
        self.assert_contiguous(source, sections)

    def test_unbalanced_equals(self):
        sections = parse("=== a ==\n== b ===\n")
        self.assertEqual(
            [(s.title, s.level) for s in sections[1:]],
            [("= a", 2), ("b =", 2)],
        )

    def test_equals_in_title(self):
        sections = parse("== a = b ==\n")
        self.assertEqual(sections[1].title, "a = b")
        self.assertEqual(sections[1].level, 2)

    def test_not_headings(self):
        sections = parse("== a == text\n x == b ==\n")
        self.assertEqual(len(sections), 1)

    def test_trailing_comment(self):
        sections = parse("== a<!-- x --> == <!-- c -->\nbody")
        self.assertEqual(len(sections), 2)
        self.assertEqual(sections[1].title, "a")

    def test_heading_in_comment(self):
        sections = parse("<!--\n== Hidden ==\n-->text")
        self.assertEqual(len(sections), 1)
        sections = parse("<nowiki>\n== Hidden ==\n</nowiki>")
        self.assertEqual(len(sections), 1)

    def test_heading_in_unclosed_comment(self):
        source = "text<!--\n== Hidden =="
        sections = parse(source)
        self.assertEqual([s.title for s in sections], ["top"])
        self.assertEqual(sections[0].end_index, len(source))

    def test_heading_tags(self):
        source = "intro<h2>Foo</h2>\nbar\n<h3>Baz</h3>"
        sections = parse(source)
        self.assertEqual(
            [(s.title, s.level, s.start_index) for s in sections],
            [("top", 1, 0), ("Foo", 2, 5), ("Baz", 3, 22)],
        )
        self.assertEqual(sections[1].heading, "<h2>Foo</h2>")
        self.assertEqual(sections[1].end_index, len(source))

    def test_heading_tag_inside_heading_line(self):
        sections = parse("== <h2>a</h2> ==\n")
        self.assertEqual(len(sections), 2)
        self.assertEqual(sections[1].heading, "== <h2>a</h2> ==")

    def test_level_six(self):
        sections = parse("======= x =======\n")
        self.assertEqual(sections[1].level, 6)
        self.assertEqual(sections[1].title, "= x =")
