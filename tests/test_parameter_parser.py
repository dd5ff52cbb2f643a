# Tests for {{{parameter}}} parsing
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import unittest

from wikitextbot.parameter_parser import Parameter, parse_parameters
from wikitextbot.tag_parser import parse_tags


def parse(source: str, warn=None) -> list[Parameter]:
    return parse_parameters(source, parse_tags(source), warn=warn)


class ParameterParserTests(unittest.TestCase):
    def test_simple(self):
        params = parse("{{{1|default}}}")
        self.assertEqual(params, [Parameter("{{{1|default}}}", 0, 15, 0)])

    def test_no_default(self):
        params = parse("a {{{name}}} b")
        self.assertEqual(params, [Parameter("{{{name}}}", 2, 12, 0)])

    def test_nested_parameter(self):
        source = "{{{1|{{{2}}}}}}"
        params = parse(source)
        self.assertEqual(
            [
                (p.text, p.start_index, p.end_index, p.nest_level)
                for p in params
            ],
            [("{{{1|{{{2}}}}}}", 0, 15, 0), ("{{{2}}}", 5, 12, 1)],
        )

    def test_template_in_default(self):
        source = "{{{page|{{PAGENAME}}}}}"
        params = parse(source)
        self.assertEqual(len(params), 1)
        self.assertEqual(params[0].text, source)
        self.assertEqual(params[0].nest_level, 0)

    def test_balanced(self):
        source = "x{{{1|{{{2|{{a}}}}}}}}y {{{3}}}"
        for p in parse(source):
            text = source[p.start_index : p.end_index]
            self.assertEqual(text, p.text)
            self.assertEqual(text.count("{"), text.count("}"))

    def test_unparsable(self):
        warnings = []
        params = parse(
            "{{{1|{{{2}}}", warn=lambda msg, sortid: warnings.append(msg)
        )
        self.assertEqual(params, [])
        self.assertEqual(len(warnings), 1)
        self.assertTrue(warnings[0].startswith("Unparsable parameter"))

    def test_in_nowiki(self):
        self.assertEqual(parse("<nowiki>{{{1}}}</nowiki>"), [])
        self.assertEqual(parse("<!-- {{{1}}} -->"), [])
        self.assertEqual(len(parse("<div>{{{1}}}</div>")), 1)

    def test_custom_tp_tags(self):
        source = "<div>{{{1}}}</div>"
        params = parse_parameters(
            source, parse_tags(source), tp_names=frozenset(["div"])
        )
        self.assertEqual(params, [])

    def test_template_is_not_a_parameter(self):
        self.assertEqual(parse("{{a}} {{b|{{c}}}}"), [])

    def test_sibling_parameters_in_default(self):
        source = "{{{a|{{{b}}}{{{c}}}}}}"
        params = parse(source)
        self.assertEqual(
            [
                (p.text, p.start_index, p.end_index, p.nest_level)
                for p in params
            ],
            [
                ("{{{a|{{{b}}}{{{c}}}}}}", 0, 22, 0),
                ("{{{b}}}", 5, 12, 1),
                ("{{{c}}}", 12, 19, 1),
            ],
        )

    def test_in_unclosed_comment(self):
        self.assertEqual(parse("a<!-- {{{1}}}"), [])
        self.assertEqual(parse("<nowiki>{{{1|x}}}"), [])
