# Tests for title parsing and normalization
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import unittest

from wikitextsplice import ExistenceRegistry, InvalidTitleError, Site, Title
from wikitextsplice.title import TitleResolver


class TitleTests(unittest.TestCase):
    def setUp(self) -> None:
        self.site = Site(quiet=True)
        self.titles = self.site.titles

    def title(self, text: str, namespace: int = 0) -> Title:
        title = Title.new_from_text(text, namespace, site=self.site)
        self.assertIsNotNone(title, text)
        return title

    def test_main(self):
        t = self.title("foo bar")
        self.assertEqual(t.namespace, 0)
        self.assertEqual(t.get_main(), "Foo_bar")
        self.assertEqual(t.get_main_text(), "Foo bar")
        self.assertEqual(t.get_prefixed_db(), "Foo_bar")
        self.assertEqual(t.get_prefixed_text(), "Foo bar")
        self.assertEqual(str(t), "Foo_bar")

    def test_whitespace(self):
        t = self.title("  foo__bar_ ")
        self.assertEqual(str(t), "Foo_bar")

    def test_namespace(self):
        t = self.title("template:foo")
        self.assertEqual(t.namespace, 10)
        self.assertEqual(str(t), "Template:Foo")
        self.assertEqual(t.get_namespace_prefix(), "Template:")
        t = self.title("Foo", 10)
        self.assertEqual(str(t), "Template:Foo")
        t = self.title("user talk:x")
        self.assertEqual(str(t), "User_talk:X")
        self.assertEqual(t.get_prefixed_text(), "User talk:X")

    def test_alias(self):
        self.assertEqual(str(self.title("Image:X.png")), "File:X.png")
        self.assertEqual(str(self.title("WP:Foo")), "Wikipedia:Foo")

    def test_leading_colon(self):
        t = self.title(":Foo", 10)
        self.assertEqual(t.namespace, 0)
        self.assertTrue(t.had_leading_colon())
        self.assertEqual(t.get_prefixed_db(colon=True), ":Foo")
        self.assertEqual(t.get_prefixed_db(), "Foo")

    def test_fragment(self):
        t = self.title("Foo#a_b")
        self.assertEqual(t.get_fragment(), "a b")
        self.assertEqual(t.get_prefixed_db(fragment=True), "Foo#a b")
        self.assertEqual(str(t), "Foo")

    def test_invalid(self):
        for text in ("", "Foo[bar", "a{b", "Foo|bar", ":",
                     "./a", "a/../b", "x~~~", "%41", "&amp;",
                     "a<b"):
            self.assertIsNone(self.titles.new_from_text(text), text)
        with self.assertRaises(InvalidTitleError):
            self.titles.make("Foo[bar")

    def test_too_long(self):
        self.assertIsNotNone(self.titles.new_from_text("a" * 255))
        self.assertIsNone(self.titles.new_from_text("a" * 256))

    def test_interwiki(self):
        t = self.title("wikt:foo")
        self.assertTrue(t.is_external())
        self.assertEqual(t.get_interwiki(), "wikt:")
        self.assertEqual(t.get_main(), "foo")
        self.assertEqual(str(t), "wikt:foo")
        self.assertTrue(t.is_local())
        self.assertFalse(t.is_trans())

    def test_local_interwiki(self):
        t = self.title("en:foo")
        self.assertFalse(t.is_external())
        self.assertTrue(t.was_local_interwiki())
        self.assertEqual(str(t), "Foo")

    def test_talk_pages(self):
        t = self.title("Foo")
        self.assertFalse(t.is_talk_page())
        self.assertEqual(str(t.get_talk_page()), "Talk:Foo")
        t = self.title("User talk:Foo")
        self.assertTrue(t.is_talk_page())
        self.assertEqual(str(t.get_subject_page()), "User:Foo")
        self.assertIsNone(self.title("Special:Foo").get_talk_page())

    def test_file_names(self):
        t = Title.new_from_file_name("x.png", site=self.site)
        self.assertEqual(str(t), "File:X.png")
        self.assertEqual(t.get_extension(), "png")
        self.assertEqual(t.get_file_name_without_extension(), "X")
        self.assertIsNone(Title.new_from_file_name("x", site=self.site))

    def test_user_input(self):
        t = Title.new_from_user_input("foo[bar]", site=self.site)
        self.assertEqual(str(t), "Foo(bar)")

    def test_make_title(self):
        t = Title.make_title(10, "Foo", "bar", site=self.site)
        self.assertEqual(t.get_prefixed_db(fragment=True), "Template:Foo#bar")
        self.assertIsNone(Title.make_title(12345, "Foo", site=self.site))

    def test_equals(self):
        t = self.title("Foo")
        self.assertTrue(t.equals("foo"))
        self.assertFalse(t.equals("Bar"))
        self.assertIsNone(t.equals("Foo[bar"))
        self.assertEqual(t, self.title("foo"))
        self.assertEqual(len({t, self.title("foo")}), 1)

    def test_case(self):
        self.assertEqual(TitleResolver.uc("ǆa"), "ǅA")
        self.assertEqual(TitleResolver.lc("İ"), "i")
        self.assertEqual(TitleResolver.php_char_to_upper("ß"), "ß")
        self.assertEqual(TitleResolver.normalize_extension("JPEG"), "jpg")
        self.assertEqual(TitleResolver.normalize_extension("pn g"), "")
        self.assertTrue(TitleResolver.is_talk_namespace(3))
        self.assertFalse(TitleResolver.is_talk_namespace(-1))


class ExistenceTests(unittest.TestCase):
    def test_registry(self):
        site = Site(quiet=True)
        t = Title.new_from_text("Foo", site=site)
        self.assertIsNone(t.exists())
        site.existence.set("Foo")
        self.assertTrue(t.exists())
        site.existence.set([t], False)
        self.assertFalse(t.exists())
        site.existence.clear()
        self.assertIsNone(t.exists())

    def test_registry_is_per_site(self):
        registry = ExistenceRegistry()
        site = Site(quiet=True, existence=registry)
        other = Site(quiet=True)
        registry.set("Foo")
        self.assertTrue(Title.new_from_text("Foo", site=site).exists())
        self.assertIsNone(Title.new_from_text("Foo", site=other).exists())
        with self.assertRaises(TypeError):
            registry.get(1)
