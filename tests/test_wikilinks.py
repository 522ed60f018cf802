# Tests for [[wikilink]] parsing and the wikilink object model
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import unittest

from wikitextsplice import (
    FileWikilink,
    InvalidTitleError,
    ParsedFileWikilink,
    ParsedRawWikilink,
    ParsedWikilink,
    RawWikilink,
    Site,
    Wikilink,
    Wikitext,
)


class WikilinkTests(unittest.TestCase):
    def setUp(self) -> None:
        self.site = Site(quiet=True)

    def links(self, text: str, **kwargs):
        return Wikitext(text, site=self.site).parse_wikilinks(**kwargs)

    def test_simple(self):
        links = self.links("a [[Foo|bar]] b")
        self.assertEqual(len(links), 1)
        link = links[0]
        self.assertIsInstance(link, ParsedWikilink)
        self.assertEqual(str(link.title), "Foo")
        self.assertEqual(link.display, "bar")
        self.assertEqual(link.get_display(), "bar")
        self.assertEqual((link.start_index, link.end_index), (2, 13))
        self.assertEqual(str(link), "[[Foo|bar]]")

    def test_no_display(self):
        link = self.links("[[foo bar#baz]]")[0]
        self.assertEqual(link.title.get_prefixed_text(), "Foo bar")
        self.assertEqual(link.title.get_fragment(), "baz")
        self.assertFalse(link.has_display())
        self.assertEqual(link.get_display(), "Foo bar#baz")
        self.assertEqual(str(link), "[[foo bar#baz]]")

    def test_file(self):
        text = "[[File:X.png|thumb|200px|caption with a {{template|a|b}}]]"
        links = self.links(text)
        self.assertEqual(len(links), 1)
        link = links[0]
        self.assertIsInstance(link, ParsedFileWikilink)
        self.assertEqual(link.params,
                         ["thumb", "200px", "caption with a {{template|a|b}}"])
        self.assertEqual(str(link), text)
        link.delete_param(1)
        self.assertEqual(
            str(link), "[[File:X.png|thumb|caption with a {{template|a|b}}]]"
        )

    def test_escaped_file(self):
        link = self.links("[[:File:X.png|x]]")[0]
        self.assertIsInstance(link, ParsedWikilink)
        self.assertTrue(link.title.had_leading_colon())
        self.assertEqual(link.display, "x")

    def test_raw(self):
        text = "[[{{{1}}}]]"
        links = self.links(text)
        self.assertEqual(len(links), 1)
        link = links[0]
        self.assertIsInstance(link, ParsedRawWikilink)
        self.assertEqual(link.raw_title, "{{{1}}}")
        self.assertEqual(str(link), text)
        converted = link.to_wikilink("Foo")
        self.assertIsInstance(converted, ParsedWikilink)
        self.assertEqual(str(converted), "[[Foo]]")
        self.assertEqual(converted.start_index, 0)

    def test_in_template(self):
        wt = Wikitext("{{a|[[B|c]]}}", site=self.site)
        links = wt.parse_wikilinks()
        self.assertEqual(len(links), 1)
        self.assertEqual(str(links[0].title), "B")
        self.assertEqual(links[0].display, "c")
        self.assertEqual(links[0].start_index, 4)

    def test_unclosed(self):
        links = self.links("[[a [[b]]")
        self.assertEqual([str(link.title) for link in links], ["B"])

    def test_extra_brackets(self):
        links = self.links("[[[x]]]")
        self.assertEqual([(str(link.title), link.start_index)
                          for link in links], [("X", 1)])

    def test_set_title(self):
        link = self.links("[[Foo|bar]]")[0]
        self.assertTrue(link.set_title("Baz"))
        self.assertEqual(str(link), "[[Baz|bar]]")
        self.assertFalse(link.set_title("File:X.png"))
        link.set_display(None)
        self.assertEqual(str(link), "[[Baz]]")

    def test_set_display(self):
        link = self.links("[[Foo]]")[0]
        link.set_display("x")
        self.assertEqual(str(link), "[[Foo|x]]")
        self.assertEqual(link.stringify(suppress_display=True), "[[Foo]]")

    def test_skip(self):
        links = self.links("<!-- [[a]] -->[[b]]")
        self.assertEqual([(str(link.title), link.skip) for link in links],
                         [("A", True), ("B", False)])

    def test_title_predicate(self):
        links = self.links("[[a]][[File:B.png]][[c]]",
                           title_predicate=lambda t: t.namespace == 6)
        self.assertEqual(len(links), 1)
        self.assertIsInstance(links[0], ParsedFileWikilink)

    def test_reparse_stringified(self):
        link, file_link = self.links(
            "[[foo bar#baz|Qux]] [[File:X.png|thumb|cap]]"
        )
        link.set_display("new")
        file_link.add_param("200px")
        again = self.links(link.stringify())[0]
        self.assertIsInstance(again, ParsedWikilink)
        self.assertEqual(str(again.title), str(link.title))
        self.assertEqual(again.title.get_fragment(),
                         link.title.get_fragment())
        self.assertEqual(again.get_display(), "new")
        again = self.links(file_link.stringify())[0]
        self.assertIsInstance(again, ParsedFileWikilink)
        self.assertEqual(str(again.title), str(file_link.title))
        self.assertEqual(again.params, ["thumb", "cap", "200px"])

    def test_modify(self):
        wt = Wikitext("[[a|x]] and [[b]]", site=self.site)
        ret = wt.modify_wikilinks(lambda link: link.get_display())
        self.assertEqual(ret, "x and B")


class WikilinkModelTests(unittest.TestCase):
    def setUp(self) -> None:
        self.site = Site(quiet=True)

    def test_wikilink(self):
        self.assertEqual(str(Wikilink("foo", site=self.site)), "[[Foo]]")
        self.assertEqual(str(Wikilink("Foo", "bar", site=self.site)),
                         "[[Foo|bar]]")
        self.assertEqual(str(Wikilink(":File:X.png", site=self.site)),
                         "[[:File:X.png]]")
        with self.assertRaises(InvalidTitleError) as cm:
            Wikilink("File:X.png", site=self.site)
        self.assertEqual(cm.exception.code, "filetitle")
        self.assertIsNone(Wikilink.new("Foo[bar", site=self.site))

    def test_file_wikilink(self):
        link = FileWikilink("File:x.png", ["thumb"], site=self.site)
        self.assertEqual(str(link), "[[File:X.png|thumb]]")
        link.add_param("caption")
        self.assertEqual(str(link), "[[File:X.png|thumb|caption]]")
        with self.assertRaises(InvalidTitleError) as cm:
            FileWikilink("Foo", site=self.site)
        self.assertEqual(cm.exception.code, "notfiletitle")
        with self.assertRaises(InvalidTitleError) as cm:
            FileWikilink(":File:X.png", site=self.site)
        self.assertEqual(cm.exception.code, "leadingcolon")

    def test_conversions(self):
        link = Wikilink("Foo", "bar", site=self.site)
        file_link = link.to_file_wikilink("File:X.png")
        self.assertEqual(str(file_link), "[[File:X.png|bar]]")
        back = file_link.to_wikilink("Foo")
        self.assertEqual(str(back), "[[Foo|bar]]")
        self.assertIsNone(link.to_file_wikilink("Foo"))

    def test_raw_wikilink(self):
        link = RawWikilink("{{{1}}}", "x", site=self.site)
        self.assertEqual(str(link), "[[{{{1}}}|x]]")
        self.assertEqual(link.get_display(), "x")
        link.set_title("{{{2}}}")
        self.assertEqual(str(link), "[[{{{2}}}|x]]")
