# The Wikitext document: parse results, modification and diagnostics
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import copy
import inspect
import re
from typing import (
    Any,
    Awaitable,
    Callable,
    Iterable,
    Optional,
    TypedDict,
    Union,
)

from .api import get_page_content
from .common import byte_length
from .errors import InternalParseError, ModificationError, WikitextError
from .logging_utils import logger
from .parser import (
    DEFAULT_SKIP_TAGS,
    VALID_TAGS,
    AnyTemplate,
    AnyWikilink,
    FuzzyWikilink,
    IndexMap,
    Parameter,
    Section,
    SkipPredicate,
    Tag,
    build_index_map,
    finalize_wikilinks,
    make_skip_predicate,
    scan_parameters,
    scan_sections,
    scan_tags,
    scan_templates,
    scan_wikilinks_fuzzy,
)
from .site import Site, default_site
from .template import ParsedParserFunction

KINDS = ("tags", "parameters", "sections", "templates", "wikilinks")

# A deletion that leaves an empty line also removes the line break
LINE_START_RE = re.compile(r"(^|\n)[^\S\r\n]*$")
BLANK_LINE_RE = re.compile(r"[^\S\r\n]*\n")


def splice(
    content: str,
    positions: list[list[int]],
    replacements: Iterable[Optional[str]],
    kind: str = "range",
) -> tuple[str, list[list[int]]]:
    """Replaces the [start, end) ranges of ``content`` in order, skipping
    None.  After each replacement the ranges that start at or after its
    end are shifted, and ranges that enclose it are stretched.
    ``positions`` is updated in place and returned with the new
    content."""
    for i, text in enumerate(replacements):
        if text is None:
            continue
        start, end = positions[i]
        if not 0 <= start <= end <= len(content):
            raise InternalParseError(
                "outofrange",
                "Range [{}, {}) of {} #{} is outside the content.".format(
                    start, end, kind, i
                ),
                {"length": len(content)},
            )
        leading = content[:start]
        trailing = content[end:]
        removed = 0
        if text == "" and LINE_START_RE.search(leading):
            m = BLANK_LINE_RE.match(trailing)
            if m:
                removed = m.end()
                trailing = trailing[removed:]
        content = leading + text + trailing
        gap = len(text) - removed - (end - start)
        positions[i][1] += gap
        for j, pos in enumerate(positions):
            if j == i:
                continue
            if pos[0] >= end:
                pos[0] += gap
                pos[1] += gap
            elif pos[1] > end:
                pos[1] += gap
    return content, positions


class ErrorMessageData(TypedDict):
    msg: str
    trace: str
    title: str
    called_from: str


class CollatedErrorReturnData(TypedDict):
    errors: list[ErrorMessageData]
    warnings: list[ErrorMessageData]
    debugs: list[ErrorMessageData]


class Wikitext:
    """A wikitext document.  Parse results are computed when first
    requested and kept until the content changes.  All parse_*()
    methods return copies that callers may change freely."""

    __slots__ = (
        "_content",
        "_cache",
        "skip_tags",
        "site",
        "title",
        "errors",
        "warnings",
        "debugs",
    )

    def __init__(
        self,
        content: str,
        skip_tags: Optional[Iterable[str]] = None,
        overwrite_skip_tags: bool = False,
        site: Optional[Site] = None,
        title: Optional[str] = None,
    ) -> None:
        if not isinstance(content, str):
            raise ModificationError(
                "typemismatch",
                "Expected a string for the content, got {}.".format(
                    type(content).__name__
                ),
            )
        self._content = content
        self._cache: dict[str, Optional[list[Any]]] = {}
        self.site = site or default_site()
        self.title = title
        names = [] if overwrite_skip_tags else list(DEFAULT_SKIP_TAGS)
        names.extend(
            name.lower() for name in skip_tags or () if isinstance(name, str)
        )
        self.skip_tags: list[str] = list(dict.fromkeys(names))
        self.errors: list[ErrorMessageData] = []
        self.warnings: list[ErrorMessageData] = []
        self.debugs: list[ErrorMessageData] = []

    @classmethod
    def new_from_title(
        cls, title: str, domain: str = "en.wikipedia.org", **options: Any
    ) -> "Wikitext":
        """Fetches the current content of a page.  Raises WikitextError if
        the page does not exist."""
        content = get_page_content(domain, title)
        if content is None:
            raise WikitextError(
                "missingtitle",
                "The page {!r} does not exist on {}.".format(title, domain),
                {"title": title, "domain": domain},
            )
        options.setdefault("title", title)
        return cls(content, **options)

    @staticmethod
    def get_valid_tags() -> set[str]:
        return set().union(*VALID_TAGS.values())

    @staticmethod
    def is_valid_tag(name: str) -> bool:
        name = str(name).lower()
        return any(name in names for names in VALID_TAGS.values())

    @property
    def content(self) -> str:
        return self._content

    @property
    def length(self) -> int:
        return len(self._content)

    @property
    def byte_length(self) -> int:
        return byte_length(self._content)

    def __len__(self) -> int:
        return len(self._content)

    def __str__(self) -> str:
        return self._content

    def __repr__(self) -> str:
        return "<Wikitext {!r} ({} chars)>".format(self.title, self.length)

    def _set_content(self, content: str) -> None:
        self._content = content
        self._cache.clear()

    # Skip tags

    def add_skip_tags(self, skip_tags: Iterable[str]) -> "Wikitext":
        for name in skip_tags:
            if isinstance(name, str) and name.lower() not in self.skip_tags:
                self.skip_tags.append(name.lower())
        self._cache.clear()
        return self

    def set_skip_tags(self, skip_tags: Iterable[str]) -> "Wikitext":
        self.skip_tags = list(
            dict.fromkeys(
                name.lower() for name in skip_tags if isinstance(name, str)
            )
        )
        self._cache.clear()
        return self

    def remove_skip_tags(self, skip_tags: Iterable[str]) -> "Wikitext":
        names = {name.lower() for name in skip_tags if isinstance(name, str)}
        self.skip_tags = [name for name in self.skip_tags
                          if name not in names]
        self._cache.clear()
        return self

    def get_skip_tags(self) -> list[str]:
        return list(self.skip_tags)

    def get_skip_predicate(self) -> SkipPredicate:
        return make_skip_predicate(self._get("tags"), self.skip_tags)

    def get_index_map(
        self,
        gallery: bool = False,
        parameters: bool = False,
        wikilinks_fuzzy: bool = False,
        templates: bool = False,
    ) -> IndexMap:
        return build_index_map(
            self._get("tags"),
            self.skip_tags,
            gallery=gallery,
            parameters=self._get("parameters") if parameters else None,
            wikilinks_fuzzy=(
                self._get("wikilinks_fuzzy") if wikilinks_fuzzy else None
            ),
            templates=self._get("templates") if templates else None,
        )

    # Parse results

    def _get(self, kind: str) -> list[Any]:
        """Returns the cached (uncopied) parse results of one kind,
        computing them first if needed."""
        ret = self._cache.get(kind)
        if ret is not None:
            return ret
        text = self._content
        if kind == "tags":
            ret = scan_tags(self, text, self.skip_tags)
        elif kind == "parameters":
            ret = scan_parameters(self, text, self.get_skip_predicate())
        elif kind == "sections":
            ret = scan_sections(text, self._get("tags"),
                                self.get_skip_predicate())
        elif kind == "wikilinks_fuzzy":
            # Templates must not be in this index map; scanning them
            # needs the fuzzy links
            ret = scan_wikilinks_fuzzy(
                text, self.get_index_map(parameters=True),
                self.get_skip_predicate()
            )
        elif kind == "templates":
            ret = scan_templates(
                self,
                text,
                self.get_index_map(gallery=True, parameters=True,
                                   wikilinks_fuzzy=True),
                self.get_skip_predicate(),
                self.site,
            )
        elif kind == "wikilinks":
            index_map = self.get_index_map(parameters=True, templates=True)
            fuzzy = scan_wikilinks_fuzzy(text, index_map,
                                         self.get_skip_predicate())
            ret = finalize_wikilinks(self, fuzzy, index_map, self.site)
        else:
            raise ModificationError(
                "invalidtype",
                "{!r} is not a valid expression type.".format(kind),
            )
        self._cache[kind] = ret
        return ret

    def parse_tags(
        self,
        name_predicate: Optional[Callable[[str], bool]] = None,
        tag_predicate: Optional[Callable[[Tag], bool]] = None,
    ) -> list[Tag]:
        tags = copy.deepcopy(self._get("tags"))
        if name_predicate is not None:
            tags = [tag for tag in tags if name_predicate(tag.name)]
        if tag_predicate is not None:
            tags = [tag for tag in tags if tag_predicate(tag)]
        return tags

    def parse_parameters(
        self,
        key_predicate: Optional[Callable[[str], bool]] = None,
        parameter_predicate: Optional[Callable[[Parameter], bool]] = None,
    ) -> list[Parameter]:
        params = copy.deepcopy(self._get("parameters"))
        if key_predicate is not None:
            params = [p for p in params if key_predicate(p.key)]
        if parameter_predicate is not None:
            params = [p for p in params if parameter_predicate(p)]
        return params

    def parse_sections(
        self,
        section_predicate: Optional[Callable[[Section], bool]] = None,
    ) -> list[Section]:
        sections = copy.deepcopy(self._get("sections"))
        if section_predicate is not None:
            sections = [s for s in sections if section_predicate(s)]
        return sections

    def parse_templates(
        self,
        hierarchies: Optional[dict[str, list[list[str]]]] = None,
        title_predicate: Optional[Callable[[Any], bool]] = None,
        template_predicate: Optional[Callable[[AnyTemplate], bool]] = None,
    ) -> list[AnyTemplate]:
        """Returns the templates, parser functions and raw templates in
        document order.  ``hierarchies`` maps prefixed template titles
        (e.g. "Template:Foo") to lists of parameter keys that are aliases,
        in increasing order of precedence.  ``title_predicate`` gets the
        title, or the canonical hook for parser functions."""
        if hierarchies is None:
            templates = copy.deepcopy(self._get("templates"))
        else:
            templates = [t.rebuild(hierarchies) for t in self._get("templates")]
        if title_predicate is not None:
            templates = [
                t for t in templates
                if title_predicate(
                    t.canonical_hook
                    if isinstance(t, ParsedParserFunction)
                    else t.title
                )
            ]
        if template_predicate is not None:
            templates = [t for t in templates if template_predicate(t)]
        return templates

    def parse_wikilinks(
        self,
        title_predicate: Optional[Callable[[Any], bool]] = None,
        wikilink_predicate: Optional[Callable[[AnyWikilink], bool]] = None,
    ) -> list[AnyWikilink]:
        links = copy.deepcopy(self._get("wikilinks"))
        if title_predicate is not None:
            links = [link for link in links if title_predicate(link.title)]
        if wikilink_predicate is not None:
            links = [link for link in links if wikilink_predicate(link)]
        return links

    def _parse_wikilinks_fuzzy(self) -> list[FuzzyWikilink]:
        return copy.deepcopy(self._get("wikilinks_fuzzy"))

    def identify_section(self, start_index: int,
                         end_index: int) -> Optional[Section]:
        """Returns the deepest section containing the range, or None."""
        ret = None
        for section in self._get("sections"):
            if (
                section.start_index <= start_index
                and end_index <= section.end_index
                and (ret is None or ret.level < section.level)
            ):
                ret = section
        return copy.deepcopy(ret)

    # Modification

    def _check_kind(self, kind: str, callback: Any) -> None:
        if kind not in KINDS:
            raise ModificationError(
                "invalidtype",
                "{!r} is not a valid expression type for modify().".format(
                    kind
                ),
            )
        if not callable(callback):
            raise ModificationError(
                "typemismatch", "The modification callback must be callable."
            )

    def _copies(self, kind: str) -> list[Any]:
        return copy.deepcopy(self._get(kind))

    def modify(
        self,
        kind: str,
        callback: Callable[..., Any],
        batch: bool = False,
    ) -> str:
        """Replaces constructs of one kind ("tags", "parameters",
        "sections", "templates" or "wikilinks").  The callback gets a
        copy of each construct and returns its replacement text, or None
        to leave it alone.  With ``batch`` the callback gets the whole
        list and returns a list of the same length.  Returns the new
        content."""
        self._check_kind(kind, callback)
        items = self._copies(kind)
        if batch:
            results = callback(items)
        else:
            results = [callback(item) for item in items]
        return self._apply(kind, results)

    async def modify_async(
        self,
        kind: str,
        callback: Callable[..., Union[Any, Awaitable[Any]]],
        batch: bool = False,
    ) -> str:
        """Like modify(), but the callback may be a coroutine function.
        Callbacks are awaited one at a time; if one raises, nothing is
        changed."""
        self._check_kind(kind, callback)
        items = self._copies(kind)
        if batch:
            results = callback(items)
            if inspect.isawaitable(results):
                results = await results
        else:
            results = []
            for item in items:
                result = callback(item)
                if inspect.isawaitable(result):
                    result = await result
                results.append(result)
        return self._apply(kind, results)

    def _apply(self, kind: str, results: Any) -> str:
        cached = self._get(kind)
        if not isinstance(results, (list, tuple)):
            raise ModificationError(
                "typemismatch",
                "The batch callback must return a list, got {}.".format(
                    type(results).__name__
                ),
            )
        if len(results) != len(cached):
            raise ModificationError(
                "lengthmismatch",
                "Expected {} results, got {}.".format(len(cached),
                                                      len(results)),
            )
        if not all(r is None or isinstance(r, str) for r in results):
            raise ModificationError(
                "typemismatch",
                "The modification callback must return a string or None.",
                {"modified": [type(r).__name__ for r in results]},
            )

        positions = [[obj.start_index, obj.end_index] for obj in cached]
        content, _ = splice(self._content, positions, results, kind)
        self._set_content(content)
        return content

    def modify_tags(self, callback: Callable[[Tag], Optional[str]]) -> str:
        return self.modify("tags", callback)

    def modify_parameters(
        self, callback: Callable[[Parameter], Optional[str]]
    ) -> str:
        return self.modify("parameters", callback)

    def modify_sections(
        self, callback: Callable[[Section], Optional[str]]
    ) -> str:
        return self.modify("sections", callback)

    def modify_templates(
        self, callback: Callable[[AnyTemplate], Optional[str]]
    ) -> str:
        return self.modify("templates", callback)

    def modify_wikilinks(
        self, callback: Callable[[AnyWikilink], Optional[str]]
    ) -> str:
        return self.modify("wikilinks", callback)

    # Diagnostics

    def _fmt_errmsg(self, level: int, msg: str, trace: Optional[str]) -> None:
        if trace:
            msg += "\n" + trace
        logger.log(level, "%s: %s", self.title or "<wikitext>", msg)

    def _message(self, msg: str, trace: Optional[str],
                 sortid: str) -> ErrorMessageData:
        assert isinstance(msg, str)
        assert isinstance(trace, (str, type(None)))
        assert isinstance(sortid, str)
        # sortid is a static string identifying the call site
        return {
            "msg": msg,
            "trace": trace or "",
            "title": self.title or "",
            "called_from": sortid,
        }

    def error(
        self, msg: str, trace: Optional[str] = None, sortid="XYZunsorted"
    ) -> None:
        """Logs an error message.  The error is also saved in
        self.errors."""
        self.errors.append(self._message(msg, trace, sortid))
        self._fmt_errmsg(40, msg, trace)

    def warning(
        self, msg: str, trace: Optional[str] = None, sortid="XYZunsorted"
    ) -> None:
        """Logs a warning message.  The warning is also saved in
        self.warnings."""
        self.warnings.append(self._message(msg, trace, sortid))
        self._fmt_errmsg(30, msg, trace)

    def debug(
        self, msg: str, trace: Optional[str] = None, sortid="XYZunsorted"
    ) -> None:
        """Logs a debug message.  The message is also saved in
        self.debugs."""
        self.debugs.append(self._message(msg, trace, sortid))
        self._fmt_errmsg(10, msg, trace)

    def to_return(self) -> CollatedErrorReturnData:
        """Returns a dictionary with the errors, warnings, and debug
        messages collected so far.  The value is JSON-compatible."""
        return {
            "errors": self.errors,
            "warnings": self.warnings,
            "debugs": self.debugs,
        }
