# Tests for Wikitext.modify() and the document facade
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import asyncio
import unittest
from unittest.mock import patch

from wikitextsplice import (
    InternalParseError,
    ModificationError,
    Site,
    Wikitext,
    WikitextError,
)
from wikitextsplice.core import splice


class ModifyTests(unittest.TestCase):
    def setUp(self) -> None:
        self.site = Site(quiet=True)

    def wikitext(self, text: str) -> Wikitext:
        return Wikitext(text, site=self.site)

    def test_adjacent(self):
        wt = self.wikitext("{{a}}{{b}}")
        ret = wt.modify_templates(
            lambda t: "{{xx}}" if t.title.get_main() == "A" else "{{yy}}"
        )
        self.assertEqual(ret, "{{xx}}{{yy}}")

    def test_shrink_and_grow(self):
        wt = self.wikitext("x{{a}}y{{b}}z{{c}}")
        ret = wt.modify_templates(
            lambda t: {"A": "", "B": "{{bbbbbb}}", "C": "C"}[t.title.get_main()]
        )
        self.assertEqual(ret, "xy{{bbbbbb}}zC")

    def test_none_keeps(self):
        text = "{{a}} {{b}}"
        wt = self.wikitext(text)
        self.assertEqual(wt.modify_templates(lambda t: None), text)
        self.assertEqual(wt.content, text)

    def test_nested_outer_after_inner(self):
        # The inner template comes after the outer one in document order,
        # so the outer replacement covers it
        wt = self.wikitext("{{a|{{b}}}}!")
        ret = wt.modify_templates(
            lambda t: "{{a|{{c}}}}" if t.nest_level == 0 else None
        )
        self.assertEqual(ret, "{{a|{{c}}}}!")

    def test_inner_changes_extend_outer(self):
        wt = self.wikitext("<div><b>x</b></div>y")
        ret = wt.modify_tags(
            lambda tag: "<b>longer</b>" if tag.name == "b" else None
        )
        self.assertEqual(ret, "<div><b>longer</b></div>y")
        tags = wt.parse_tags()
        self.assertEqual(tags[0].end_index, len("<div><b>longer</b></div>"))

    def test_empty_line_removed(self):
        wt = self.wikitext("a\n<!-- c -->\nb")
        self.assertEqual(wt.modify_tags(lambda tag: ""), "a\nb")
        wt = self.wikitext("a <!-- c -->\nb")
        self.assertEqual(wt.modify_tags(lambda tag: ""), "a \nb")
        wt = self.wikitext("a\n  {{x}}  \nb")
        self.assertEqual(wt.modify_templates(lambda t: ""), "a\n  b")

    def test_cache_reset(self):
        wt = self.wikitext("{{a}}")
        self.assertEqual(len(wt.parse_templates()), 1)
        wt.modify_templates(lambda t: "{{b}}{{c}}")
        self.assertEqual([str(t.title) for t in wt.parse_templates()],
                         ["Template:B", "Template:C"])
        self.assertEqual(wt.length, 10)

    def test_callback_gets_copies(self):
        wt = self.wikitext("{{a|x}}")

        def callback(t):
            t.add_param("y", "z")
            return None

        wt.modify_templates(callback)
        self.assertEqual(wt.parse_templates()[0].param_order, ["1"])

    def test_mutate_and_return(self):
        wt = self.wikitext("a {{foo|x}} b")

        def callback(t):
            t.set_param("y", "z")
            return t.stringify()

        self.assertEqual(wt.modify_templates(callback), "a {{foo|x|y=z}} b")

    def test_batch(self):
        wt = self.wikitext("{{a}}{{b}}")
        ret = wt.modify(
            "templates",
            lambda ts: [None, "[" + ts[1].title.get_main() + "]"],
            batch=True,
        )
        self.assertEqual(ret, "{{a}}[B]")

    def test_batch_length_mismatch(self):
        wt = self.wikitext("{{a}}{{b}}")
        with self.assertRaises(ModificationError) as cm:
            wt.modify("templates", lambda ts: [None], batch=True)
        self.assertEqual(cm.exception.code, "lengthmismatch")
        self.assertEqual(wt.content, "{{a}}{{b}}")

    def test_invalid_kind(self):
        wt = self.wikitext("x")
        with self.assertRaises(ModificationError) as cm:
            wt.modify("nodes", lambda x: None)
        self.assertEqual(cm.exception.code, "invalidtype")

    def test_not_callable(self):
        wt = self.wikitext("x")
        with self.assertRaises(ModificationError) as cm:
            wt.modify("tags", "x")
        self.assertEqual(cm.exception.code, "typemismatch")

    def test_bad_return_type(self):
        text = "{{a}}{{b}}"
        wt = self.wikitext(text)
        results = iter(["ok", 1])
        with self.assertRaises(ModificationError) as cm:
            wt.modify_templates(lambda t: next(results))
        self.assertEqual(cm.exception.code, "typemismatch")
        self.assertEqual(cm.exception.data["modified"], ["str", "int"])
        self.assertEqual(wt.content, text)
        self.assertIsInstance(cm.exception, TypeError)

    def test_callback_exception(self):
        wt = self.wikitext("{{a}}")

        def callback(t):
            raise ValueError("boom")

        with self.assertRaises(ValueError):
            wt.modify_templates(callback)
        self.assertEqual(wt.content, "{{a}}")

    def test_out_of_range(self):
        wt = self.wikitext("{{a}}")
        wt.parse_templates()
        wt._get("templates")[0].end_index = 99
        with self.assertRaises(InternalParseError):
            wt.modify_templates(lambda t: "x")

    def test_every_kind(self):
        text = ("== A ==\n<b>{{{1}}}</b> [[L]] {{T}}\n")
        for kind in ("tags", "parameters", "sections", "templates",
                     "wikilinks"):
            wt = self.wikitext(text)
            wt.modify(kind, lambda obj: "")
            self.assertNotEqual(wt.content, text, kind)

    def test_later_nodes_shift(self):
        wt = self.wikitext("{{a}} {{b}} {{c}}")
        before = [(t.start_index, t.end_index) for t in wt.parse_templates()]
        wt.modify_templates(
            lambda t: "{{aaaa}}" if t.title.get_main() == "A" else None
        )
        after = [(t.start_index, t.end_index) for t in wt.parse_templates()]
        self.assertEqual(after[0], (0, 8))
        for (s0, e0), (s1, e1) in zip(before[1:], after[1:]):
            self.assertEqual((s1 - s0, e1 - e0), (3, 3))
        starts = [s for s, _ in after]
        self.assertEqual(starts, sorted(starts))


class SpliceTests(unittest.TestCase):
    def test_shift_after_replacement(self):
        content, positions = splice(
            "{{a}} {{b}} {{c}}", [[0, 5], [6, 11], [12, 17]],
            ["{{aaaa}}", None, None],
        )
        self.assertEqual(content, "{{aaaa}} {{b}} {{c}}")
        self.assertEqual(positions, [[0, 8], [9, 14], [15, 20]])

    def test_adjacent_range_shifts(self):
        content, positions = splice("{{a}}{{b}}", [[0, 5], [5, 10]],
                                    ["{{aa}}", "{{bb}}"])
        self.assertEqual(content, "{{aa}}{{bb}}")
        self.assertEqual(positions, [[0, 6], [6, 12]])

    def test_enclosing_range_stretches(self):
        content, positions = splice("<b>x</b>!", [[0, 8], [3, 4], [8, 9]],
                                    [None, "yy", None])
        self.assertEqual(content, "<b>yy</b>!")
        self.assertEqual(positions, [[0, 9], [3, 5], [9, 10]])

    def test_shrink(self):
        content, positions = splice("ab{{long}}cd{{x}}",
                                    [[2, 10], [12, 17]], ["", None])
        self.assertEqual(content, "abcd{{x}}")
        self.assertEqual(positions, [[2, 2], [4, 9]])

    def test_out_of_range(self):
        with self.assertRaises(InternalParseError):
            splice("abc", [[1, 9]], ["x"])


class AsyncModifyTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.site = Site(quiet=True)

    async def test_coroutine_callback(self):
        wt = Wikitext("{{a}} {{b}}", site=self.site)
        order = []

        async def callback(t):
            await asyncio.sleep(0)
            order.append(t.title.get_main())
            return t.title.get_main().lower()

        ret = await wt.modify_async("templates", callback)
        self.assertEqual(ret, "a b")
        self.assertEqual(order, ["A", "B"])

    async def test_plain_callback(self):
        wt = Wikitext("[[a]]", site=self.site)
        ret = await wt.modify_async("wikilinks", lambda link: "x")
        self.assertEqual(ret, "x")

    async def test_batch(self):
        wt = Wikitext("{{a}} {{b}}", site=self.site)

        async def callback(ts):
            return ["1", None]

        ret = await wt.modify_async("templates", callback, batch=True)
        self.assertEqual(ret, "1 {{b}}")

    async def test_exception(self):
        wt = Wikitext("{{a}} {{b}}", site=self.site)

        async def callback(t):
            if t.title.get_main() == "B":
                raise RuntimeError("failed")
            return ""

        with self.assertRaises(RuntimeError):
            await wt.modify_async("templates", callback)
        self.assertEqual(wt.content, "{{a}} {{b}}")


class WikitextTests(unittest.TestCase):
    def setUp(self) -> None:
        self.site = Site(quiet=True)

    def test_content_type(self):
        with self.assertRaises(ModificationError):
            Wikitext(None)
        with self.assertRaises(TypeError):
            Wikitext(42)

    def test_lengths(self):
        wt = Wikitext("aé", site=self.site)
        self.assertEqual(wt.length, 2)
        self.assertEqual(wt.byte_length, 3)
        self.assertEqual(len(wt), 2)
        self.assertEqual(str(wt), "aé")

    def test_index_map(self):
        wt = Wikitext("<!-- c -->{{{1}}}{{a}}[[b]]", site=self.site)
        index_map = wt.get_index_map()
        self.assertEqual(list(index_map), [0])
        index_map = wt.get_index_map(parameters=True, templates=True,
                                     wikilinks_fuzzy=True)
        self.assertEqual(sorted(index_map), [0, 10, 17, 22])
        self.assertEqual(index_map[10].type, "parameter")
        self.assertEqual(index_map[17].type, "template")
        self.assertEqual(index_map[22].type, "wikilink_fuzzy")

    def test_skip_predicate(self):
        wt = Wikitext("<pre>abc</pre>", site=self.site)
        is_in_skip_range = wt.get_skip_predicate()
        self.assertTrue(is_in_skip_range(5, 8))
        self.assertFalse(is_in_skip_range(0, 14))

    def test_diagnostics(self):
        wt = Wikitext("<div>x", site=self.site, title="Test")
        wt.parse_tags()
        ret = wt.to_return()
        self.assertEqual(ret["errors"], [])
        self.assertEqual(len(ret["debugs"]), 1)
        self.assertEqual(ret["debugs"][0]["title"], "Test")
        wt.warning("careful", sortid="tests/1")
        self.assertEqual(wt.warnings[0]["msg"], "careful")
        self.assertEqual(wt.warnings[0]["trace"], "")
        wt.error("bad", trace="details", sortid="tests/2")
        self.assertEqual(wt.errors[0]["trace"], "details")
        self.assertEqual(wt.errors[0]["called_from"], "tests/2")

    def test_new_from_title(self):
        with patch("wikitextsplice.core.get_page_content",
                   return_value="{{a}}") as get:
            wt = Wikitext.new_from_title("Foo", site=self.site)
        get.assert_called_once_with("en.wikipedia.org", "Foo")
        self.assertEqual(wt.content, "{{a}}")
        self.assertEqual(wt.title, "Foo")

    def test_new_from_missing_title(self):
        with patch("wikitextsplice.core.get_page_content",
                   return_value=None):
            with self.assertRaises(WikitextError) as cm:
                Wikitext.new_from_title("Foo", "fr.wikipedia.org")
        self.assertEqual(cm.exception.code, "missingtitle")
