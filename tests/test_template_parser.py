# Tests for {{template}} parsing
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import unittest

from wikitextbot.parameter_parser import parse_parameters
from wikitextbot.tag_parser import parse_tags
from wikitextbot.template import ParsedTemplate
from wikitextbot.template_parser import parse_templates


def parse(source: str, **kwargs) -> list[ParsedTemplate]:
    tags = parse_tags(source)
    params = parse_parameters(source, tags)
    return parse_templates(source, tags, params, **kwargs)


def args(t: ParsedTemplate) -> list[tuple[str, str]]:
    return [(arg.name, arg.value) for arg in t.get_args()]


class TemplateParserTests(unittest.TestCase):
    def assert_substrings(self, source, templates):
        for t in templates:
            text = source[t.start_index : t.end_index]
            self.assertEqual(text, t.original_text)
            self.assertTrue(t.original_text.startswith("{{"))
            self.assertTrue(t.original_text.endswith("}}"))

    def test_empty(self):
        self.assertEqual(parse(""), [])
        self.assertEqual(parse("no templates"), [])

    def test_simple(self):
        source = "a {{Foo|x|b = y}} c"
        templates = parse(source)
        self.assertEqual(len(templates), 1)
        t = templates[0]
        self.assertEqual(t.name, "Foo")
        self.assertEqual(args(t), [("1", "x"), ("b", "y")])
        self.assertEqual((t.start_index, t.end_index), (2, 17))
        self.assertEqual(t.nest_level, 0)
        self.assert_substrings(source, templates)

    def test_nested(self):
        source = "{{Outer|{{Inner|x}}}}"
        templates = parse(source)
        self.assertEqual([t.name for t in templates], ["Outer", "Inner"])
        outer, inner = templates
        self.assertEqual(args(outer), [("1", "{{Inner|x}}")])
        self.assertEqual(args(inner), [("1", "x")])
        self.assertEqual(inner.start_index, 8)
        self.assertEqual(inner.end_index, 19)
        self.assertEqual(inner.nest_level, 1)
        self.assert_substrings(source, templates)

    def test_nested_offsets_deep(self):
        source = "xx{{A|b={{B|{{C}}}}}}"
        templates = parse(source)
        self.assertEqual([t.name for t in templates], ["A", "B", "C"])
        self.assertEqual([t.nest_level for t in templates], [0, 1, 2])
        self.assertEqual(args(templates[0]), [("b", "{{B|{{C}}}}")])
        self.assert_substrings(source, templates)

    def test_not_recursive(self):
        templates = parse(
            "{{Outer|{{Inner|x}}}}", recursive_predicate=lambda t: False
        )
        self.assertEqual([t.name for t in templates], ["Outer"])

    def test_nowiki(self):
        templates = parse("<nowiki>{{Fake}}</nowiki>{{Real}}")
        self.assertEqual([t.name for t in templates], ["Real"])

    def test_comment_in_template(self):
        source = "{{Foo<!-- c -->|a=<!-- | -->b}}"
        templates = parse(source)
        self.assertEqual(len(templates), 1)
        t = templates[0]
        self.assertEqual(t.name, "Foo")
        self.assertEqual(t.full_name, "Foo<!-- c -->")
        self.assertEqual(args(t), [("a", "<!-- | -->b")])

    def test_wikilink_pipe(self):
        templates = parse("{{Foo|[[a|b]]|c}}")
        self.assertEqual(args(templates[0]), [("1", "[[a|b]]"), ("2", "c")])

    def test_sibling_parameters_in_argument(self):
        source = "{{T|{{{a|{{{b}}}{{{c}}}}}}|x=1}}"
        templates = parse(source)
        self.assertEqual([t.name for t in templates], ["T"])
        self.assertEqual(
            args(templates[0]),
            [("1", "{{{a|{{{b}}}{{{c}}}}}}"), ("x", "1")],
        )
        self.assertEqual(templates[0].get_arg("x").value, "1")
        self.assert_substrings(source, templates)

    def test_wikilink_at_top_level(self):
        # Links are consumed whole only inside a template
        templates = parse("[[File:x|{{T}}]]")
        self.assertEqual([t.name for t in templates], ["T"])
        self.assertEqual(
            (templates[0].start_index, templates[0].end_index), (9, 14)
        )
        self.assertEqual(templates[0].nest_level, 0)

        source = "{{A|[[File:x|{{T}}]]}}"
        templates = parse(source)
        self.assertEqual([t.name for t in templates], ["A", "T"])
        self.assertEqual(args(templates[0]), [("1", "[[File:x|{{T}}]]")])
        self.assertEqual(templates[1].start_index, 13)
        self.assertEqual(templates[1].nest_level, 1)
        self.assert_substrings(source, templates)

    def test_parameter_in_template(self):
        templates = parse("{{Foo|{{{1|a|b}}}|c}}")
        self.assertEqual(
            args(templates[0]), [("1", "{{{1|a|b}}}"), ("2", "c")]
        )

    def test_parameter_as_name(self):
        templates = parse("{{{{{1}}}|x}}")
        self.assertEqual(len(templates), 1)
        self.assertEqual(templates[0].name, "")
        self.assertEqual(templates[0].full_name, "{{{1}}}")
        self.assertEqual(args(templates[0]), [("1", "x")])

    def test_equals_in_nested_template(self):
        templates = parse("{{Foo|{{Bar|a=b}}}}")
        self.assertEqual(args(templates[0]), [("1", "{{Bar|a=b}}")])
        self.assertEqual(args(templates[1]), [("a", "b")])

    def test_override_at_parse_time(self):
        templates = parse("{{A|1=x|1=y}}")
        t = templates[0]
        self.assertEqual(t.get_arg("1").value, "y")
        self.assertEqual(
            [arg.value for arg in t.get_overridden_args()], ["x"]
        )
        self.assertEqual(t.render(), "{{A|1=y}}")

    def test_unclosed(self):
        warnings = []
        source = "{{A|{{B}}"
        templates = parse(
            source, warn=lambda msg, sortid: warnings.append(sortid)
        )
        self.assertEqual([t.name for t in templates], ["B"])
        self.assertEqual(templates[0].start_index, 4)
        self.assertEqual(warnings, ["template_parser/171"])

    def test_unclosed_without_closing_braces(self):
        warnings = []
        templates = parse(
            "x {{a {{b {{c", warn=lambda msg, sortid: warnings.append(msg)
        )
        self.assertEqual(templates, [])
        self.assertEqual(warnings, ["Unclosed template at 2"])

    def test_invalid_name(self):
        warnings = []
        templates = parse(
            "{{a\nb|x}}{{C}}", warn=lambda msg, sortid: warnings.append(msg)
        )
        self.assertEqual([t.name for t in templates], ["C"])
        self.assertEqual(len(warnings), 1)

    def test_name_predicate(self):
        templates = parse(
            "{{foo}}{{Bar}}{{Template:foo|x}}",
            name_predicate=lambda name: name == "Foo",
        )
        self.assertEqual(len(templates), 2)
        self.assertEqual([t.clean_name for t in templates], ["Foo", "Foo"])

    def test_template_predicate(self):
        templates = parse(
            "{{A}}{{B|x}}",
            template_predicate=lambda t: t.has_arg("1"),
        )
        self.assertEqual([t.name for t in templates], ["B"])

    def test_hierarchy(self):
        templates = parse(
            "{{UserAN|user=Foo|1=Bar}}", hierarchy=[["1", "user"]]
        )
        t = templates[0]
        self.assertEqual(args(t), [("1", "Bar")])

    def test_lang_code(self):
        templates = parse("{{テンプレート:保護}}", lang_code="ja")
        self.assertEqual(templates[0].clean_name, "保護")

    def test_japanese_offsets(self):
        source = "本文{{半保護}}本文"
        templates = parse(source)
        self.assertEqual(
            (templates[0].start_index, templates[0].end_index), (2, 9)
        )
        self.assert_substrings(source, templates)

    def test_multiline(self):
        source = "{{Infobox\n| name = Foo\n| image =\n}}"
        t = parse(source)[0]
        self.assertEqual(t.name, "Infobox")
        self.assertEqual(args(t), [("name", "Foo"), ("image", "")])
        self.assertEqual(str(t), source)
