# Tests for splitting wikitext into sections
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import unittest

from wikitextsplice import Site, Wikitext


class SectionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.site = Site(quiet=True)

    def sections(self, text: str):
        return Wikitext(text, site=self.site).parse_sections()

    def test_no_headings(self):
        sections = self.sections("just text")
        self.assertEqual(len(sections), 1)
        top = sections[0]
        self.assertEqual((top.title, top.level, top.index), ("top", 1, 0))
        self.assertEqual(top.heading, "")
        self.assertEqual(top.text, "just text")

    def test_nested(self):
        text = "== Foo ==\n=== Bar ===\ntext\n== Baz =="
        sections = self.sections(text)
        self.assertEqual(
            [(s.title, s.level, s.index) for s in sections],
            [("top", 1, 0), ("Foo", 2, 1), ("Bar", 3, 2), ("Baz", 2, 3)],
        )
        top, foo, bar, baz = sections
        self.assertEqual(top.end_index, 0)
        self.assertEqual(foo.heading, "== Foo ==")
        self.assertEqual(foo.end_index, baz.start_index)
        self.assertEqual(bar.end_index, baz.start_index)
        self.assertEqual(bar.text, "=== Bar ===\ntext\n")
        self.assertEqual(baz.text, "== Baz ==")
        self.assertEqual(baz.end_index, len(text))

    def test_closure(self):
        text = ("intro\n= A =\na\n== B ==\nb\n<h3>C</h3>\nc\n== D ==\n"
                "=== E ===\ne\n")
        sections = self.sections(text)
        self.assertEqual([s.title for s in sections],
                         ["top", "A", "B", "C", "D", "E"])
        for section in sections:
            self.assertEqual(text[section.start_index:section.end_index],
                             section.text)
        for i, section in enumerate(sections[1:], 1):
            following = [s for s in sections[i + 1:]
                         if s.level <= section.level]
            if following:
                self.assertEqual(section.end_index, following[0].start_index)
            else:
                self.assertEqual(section.end_index, len(text))

    def test_html_heading(self):
        sections = self.sections("<h2>Foo<!-- c --></h2>\nbar")
        self.assertEqual(len(sections), 2)
        self.assertEqual(sections[1].title, "Foo")
        self.assertEqual(sections[1].level, 2)
        self.assertEqual(sections[1].heading, "<h2>Foo<!-- c --></h2>")

    def test_trailing_text(self):
        sections = self.sections("== A == x\n== B == <!-- c -->\n")
        self.assertEqual([s.title for s in sections], ["top", "B"])

    def test_unbalanced(self):
        sections = self.sections("=== A ==\n")
        self.assertEqual(sections[1].title, "= A")
        self.assertEqual(sections[1].level, 2)

    def test_level_capped(self):
        sections = self.sections("======= x =======\n")
        self.assertEqual(sections[1].level, 6)
        self.assertEqual(sections[1].title, "= x =")

    def test_heading_in_skip_tag(self):
        sections = self.sections("<nowiki>\n== A ==\n</nowiki>\n== B ==\n")
        self.assertEqual([s.title for s in sections], ["top", "B"])

    def test_identify_section(self):
        text = "== Foo ==\n=== Bar ===\ntext\n== Baz =="
        wt = Wikitext(text, site=self.site)
        start = text.index("text")
        section = wt.identify_section(start, start + 4)
        self.assertEqual(section.title, "Bar")
        section = wt.identify_section(0, len(text))
        self.assertIsNone(section)
        section = wt.identify_section(text.index("Baz"), len(text))
        self.assertEqual(section.title, "Baz")

    def test_delete_section(self):
        wt = Wikitext("a\n== X ==\nfoo\n== Y ==\nbar", site=self.site)
        ret = wt.modify_sections(
            lambda s: "" if s.title == "X" else None
        )
        self.assertEqual(ret, "a\n== Y ==\nbar")
        self.assertEqual([s.title for s in wt.parse_sections()],
                         ["top", "Y"])
