# Tests for page title normalization
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import unittest

from wikitextbot.title import (
    NS_MAIN,
    NS_TEMPLATE,
    Title,
    get_namespace_data,
)


class TitleTests(unittest.TestCase):
    def test_main_namespace(self):
        t = Title.new_from_text("foo bar")
        self.assertEqual(t.namespace, NS_MAIN)
        self.assertEqual(t.main, "Foo bar")
        self.assertEqual(t.prefixed_text, "Foo bar")
        self.assertEqual(t.prefixed_db, "Foo_bar")

    def test_template_namespace(self):
        t = Title.new_from_text("template:foo_bar")
        self.assertEqual(t.namespace, NS_TEMPLATE)
        self.assertEqual(t.main, "Foo bar")
        self.assertEqual(t.prefixed_text, "Template:Foo bar")
        self.assertEqual(str(t), "Template:Foo bar")

    def test_default_namespace(self):
        t = Title.new_from_text("Foo", namespace=NS_TEMPLATE)
        self.assertEqual(t.prefixed_text, "Template:Foo")

    def test_leading_colon(self):
        t = Title.new_from_text(":Foo", namespace=NS_TEMPLATE)
        self.assertEqual(t.namespace, NS_MAIN)
        self.assertEqual(t.main, "Foo")

    def test_alias(self):
        t = Title.new_from_text("Image:Foo.png")
        self.assertEqual(t.namespace, 6)
        self.assertEqual(t.prefixed_text, "File:Foo.png")

    def test_fragment(self):
        t = Title.new_from_text("Foo#Bar_baz")
        self.assertEqual(t.main, "Foo")
        self.assertEqual(t.fragment, "Bar baz")
        self.assertEqual(t.with_fragment(t.main), "Foo#Bar baz")

    def test_whitespace(self):
        t = Title.new_from_text("  foo 　 bar  ")
        self.assertEqual(t.main, "Foo bar")

    def test_invalid(self):
        self.assertIsNone(Title.new_from_text(""))
        self.assertIsNone(Title.new_from_text("Foo[bar]"))
        self.assertIsNone(Title.new_from_text("Foo<bar>"))
        self.assertIsNone(Title.new_from_text("Foo/../bar"))
        self.assertIsNone(Title.new_from_text("Talk:File:Foo"))
        self.assertIsNone(Title.new_from_text("Template:"))
        self.assertIsNone(Title.new_from_text("a" * 256))

    def test_equality(self):
        self.assertEqual(
            Title.new_from_text("foo bar"), Title.new_from_text("Foo_bar")
        )
        self.assertNotEqual(
            Title.new_from_text("Foo"), Title.new_from_text("Talk:Foo")
        )
        self.assertEqual(
            len({Title.new_from_text("a"), Title.new_from_text("A")}), 1
        )

    def test_japanese(self):
        t = Title.new_from_text("利用者:太郎", lang_code="ja")
        self.assertEqual(t.namespace, 2)
        self.assertEqual(t.main, "太郎")
        self.assertEqual(t.prefixed_text, "利用者:太郎")

    def test_japanese_alias(self):
        t = Title.new_from_text("テンプレート:保護", lang_code="ja")
        self.assertEqual(t.namespace, NS_TEMPLATE)
        self.assertEqual(t.prefixed_text, "Template:保護")

    def test_japanese_talk(self):
        t = Title.new_from_text("Template‐ノート:Pp", lang_code="ja")
        self.assertEqual(t.namespace, 11)

    def test_namespace_data(self):
        ns_data = get_namespace_data("en")
        self.assertEqual(ns_data.lookup("template"), NS_TEMPLATE)
        self.assertEqual(ns_data.lookup("Template_talk"), 11)
        self.assertIsNone(ns_data.lookup("Nonexistent"))
        self.assertEqual(ns_data.prefix(NS_MAIN), "")
        self.assertEqual(ns_data.prefix(NS_TEMPLATE), "Template:")
