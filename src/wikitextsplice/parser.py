# Scanners that recover tags, sections, parameters, templates and links
# from wikitext
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org
#
# All scanners take the text and everything they depend on as explicit
# arguments.  Offsets are character offsets into the whole text; a
# nested scan covers the window [start, end) of the same text so that
# the offsets it reports stay valid.

import copy
import re
from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Callable,
    Iterable,
    NamedTuple,
    Optional,
    Union,
)

from .common import clean, remove_comments
from .errors import InvalidHookError, WikitextError
from .template import (
    ParamSlot,
    ParsedParserFunction,
    ParsedTemplate,
    RawTemplate,
    TemplateSource,
)
from .wikilink import (
    LinkSource,
    ParsedFileWikilink,
    ParsedRawWikilink,
    ParsedWikilink,
    is_file_title,
)

if TYPE_CHECKING:
    from .core import Wikitext
    from .site import Site

VALID_TAGS: dict[str, frozenset[str]] = {
    # https://www.mediawiki.org/wiki/Help:HTML_in_wikitext
    "native": frozenset(
        {
            "abbr", "b", "bdi", "bdo", "big", "blockquote", "br",
            "caption", "cite", "code", "data", "dd", "del", "dfn", "div",
            "dl", "dt", "em", "h1", "h2", "h3", "h4", "h5", "h6", "hr", "i",
            "ins", "kbd", "li", "link", "mark", "meta", "ol", "p", "q",
            "rp", "rt", "ruby", "s", "samp", "small", "span", "strong",
            "sub", "sup", "table", "td", "th", "time", "tr", "u", "ul",
            "var", "wbr",
            # Deprecated
            "center", "font", "rb", "rtc", "strike", "tt",
            # Comments
            "!--",
        }
    ),
    # https://www.mediawiki.org/wiki/Parser_extension_tags
    "mediawiki": frozenset(
        {
            "categorytree", "ce", "chem", "charinsert", "gallery", "graph",
            "hiero", "imagemap", "indicator", "inputbox", "langconvert",
            "mapframe", "maplink", "math", "nowiki", "poem", "pre", "ref",
            "references", "score", "section", "source", "syntaxhighlight",
            "templatedata", "timeline", "dynamicpagelist", "languages",
            "rss", "talkpage", "thread", "html", "includeonly",
            "noinclude", "onlyinclude", "translate", "tvar",
        }
    ),
}

DEFAULT_SKIP_TAGS = ("!--", "nowiki", "pre", "syntaxhighlight", "source",
                     "math")

# Tag lexemes; "<foo >", "</foo >", "<foo/>" and "<foo />" are accepted but
# not "< foo>" or "< /foo>"
START_TAG_RE = re.compile(r"<!(--)|<(?!/)([^>\s/]+)(?:\s[^>]*)?/?>")
END_TAG_RE = re.compile(r"(--)>|</([^>\s]+)(?:\s[^>]*)?>")
VOID_TAG_RE = re.compile(
    r"^(?:area|base|br|col|embed|hr|img|input|link|meta|param|track|wbr)$"
)
HTML_HEADING_RE = re.compile(r"^h([1-6])$")
# In the trailing part of a heading line only tabs, spaces, no-break
# spaces and comments may appear
WIKI_HEADING_RE = re.compile(r"^(=+)(.+?)(=+)([^\n]*)\n?$", re.MULTILINE)
HEADING_WHITESPACE_RE = re.compile("[\t \u00a0]+")

PARAMETER_RE = re.compile(r"\{{3}(?!\{)([^|}]*)\|?([^}]*)\}{3}")
LEFT_BRACES_RE = re.compile(r"\{{2,}")
RIGHT_BRACES_RE = re.compile(r"\}{2,}")
LEADING_RIGHT_BRACES_RE = re.compile(r"\}{2,}")
PARAMETER_INNER_RE = re.compile(r"^(\{{3}[^|}]*\|)(.+)\}{3}$", re.DOTALL)

SkipPredicate = Callable[[int, int], bool]


@dataclass
class Tag:
    """An HTML or extension tag.  ``content`` is None for void tags; for
    unclosed tags ``end`` is the closing tag that would close it."""

    name: str
    start: str
    content: Optional[str]
    end: str
    start_index: int
    end_index: int
    nest_level: int
    void: bool
    unclosed: bool
    self_closing: bool
    skip: bool = False

    @property
    def text(self) -> str:
        return self.start + (self.content or "") + (
            "" if self.unclosed else self.end
        )


@dataclass
class Section:
    heading: str
    title: str
    level: int
    index: int
    start_index: int
    end_index: int
    text: str


@dataclass
class Parameter:
    """A {{{key|value}}} template parameter reference."""

    key: str
    value: str
    text: str
    start_index: int
    end_index: int
    nest_level: int
    skip: bool


@dataclass
class FuzzyWikilink:
    """A [[...]] whose title has not been validated yet.  ``right`` is
    everything after the first pipe, or None."""

    title: str
    raw_title: str
    right: Optional[str]
    text: str
    start_index: int
    end_index: int
    skip: bool


class IndexEntry(NamedTuple):
    """A construct that scanners must step over as a whole.  ``inner``
    is the (start, end) range inside it that may hold further
    markup, or None."""

    text: str
    type: str
    inner: Optional[tuple[int, int]]


IndexMap = dict[int, IndexEntry]

AnyTemplate = Union[ParsedTemplate, ParsedParserFunction, RawTemplate]
AnyWikilink = Union[ParsedWikilink, ParsedFileWikilink, ParsedRawWikilink]


def _void_tag(name: str, start: str, start_index: int, nest_level: int,
              self_closing: bool, pseudo_void: bool) -> Tag:
    return Tag(
        name=name,
        start=start,
        content=None,
        end="",
        start_index=start_index,
        end_index=start_index + len(start),
        nest_level=nest_level,
        void=not pseudo_void,
        unclosed=False,
        self_closing=self_closing,
    )


def _tag_name(name: str) -> str:
    return "!--" if name == "--" else name


def scan_tags(ctx: "Wikitext", text: str,
              skip_tags: Iterable[str]) -> list[Tag]:
    """Finds all tags in the text.  Unclosed tags are closed at the point
    where an enclosing tag closes, or at the end of the text."""
    # Open start tags, innermost first: (name, start_index, end_index,
    # self_closing)
    stack: list[tuple[str, int, int, bool]] = []
    tags: list[Tag] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch != "<" and ch != "-":
            i += 1
            continue
        m = START_TAG_RE.match(text, i)
        if m:
            name = (m.group(1) or m.group(2)).lower()
            self_closing = m.group(0).endswith("/>")
            pseudo_void = False
            if not VOID_TAG_RE.match(name):
                pseudo_void = (
                    self_closing and name in VALID_TAGS["mediawiki"]
                )
            if VOID_TAG_RE.match(name) or pseudo_void:
                tags.append(
                    _void_tag(name, m.group(0), i, len(stack), self_closing,
                              pseudo_void)
                )
            else:
                stack.insert(0, (name, i, m.end(), self_closing))
            i = m.end()
            continue
        m = END_TAG_RE.match(text, i)
        if not m:
            i += 1
            continue
        name = (m.group(1) or m.group(2)).lower()
        end_tag = m.group(0)
        if VOID_TAG_RE.match(name):
            if name == "br":
                # MediaWiki turns </br> into <br>
                tags.append(
                    _void_tag(name, end_tag, i, len(stack), False, False)
                )
        elif any(entry[0] == name for entry in stack):
            closed = 0
            for start_name, start_index, start_end, self_closing in stack:
                matched = start_name == name
                end_index = i + len(end_tag) if matched else i
                tag_name = _tag_name(start_name)
                if not matched:
                    ctx.debug(
                        "HTML tag <{}> not properly closed".format(tag_name),
                        trace="started at offset {}, detected at offset {}"
                        .format(start_index, i),
                        sortid="parser/236",
                    )
                tags.append(
                    Tag(
                        name=tag_name,
                        start=text[start_index:start_end],
                        content=text[start_end:i],
                        end=end_tag if matched else "</{}>".format(tag_name),
                        start_index=start_index,
                        end_index=end_index,
                        nest_level=len(stack) - 1 - closed,
                        void=False,
                        unclosed=not matched,
                        self_closing=self_closing,
                    )
                )
                closed += 1
                if matched:
                    break
            del stack[:closed]
        i = m.end()

    for k, (name, start_index, start_end, self_closing) in enumerate(stack):
        tag_name = _tag_name(name)
        ctx.debug(
            "HTML tag <{}> not closed before the end of the text".format(
                tag_name
            ),
            trace="started at offset {}".format(start_index),
            sortid="parser/268",
        )
        tags.append(
            Tag(
                name=tag_name,
                start=text[start_index:start_end],
                content=text[start_end:],
                end="-->" if tag_name == "!--" else "</{}>".format(tag_name),
                start_index=start_index,
                end_index=len(text),
                nest_level=len(stack) - 1 - k,
                void=False,
                unclosed=True,
                self_closing=self_closing,
            )
        )

    tags.sort(key=lambda tag: tag.start_index)
    is_in_skip_range = make_skip_predicate(tags, skip_tags)
    for tag in tags:
        tag.skip = is_in_skip_range(tag.start_index, tag.end_index)
    return tags


def make_skip_predicate(tags: Iterable[Tag],
                        skip_tags: Iterable[str]) -> SkipPredicate:
    """Returns a function telling whether the range [start, end) lies
    strictly inside a tag whose markup is not interpreted."""
    names = set(skip_tags)
    if not names:
        return lambda start, end: False
    ranges: list[tuple[int, int]] = []
    for tag in tags:
        if tag.name not in names:
            continue
        if not any(s < tag.start_index and tag.end_index < e
                   for s, e in ranges):
            ranges.append((tag.start_index, tag.end_index))

    def is_in_skip_range(start: int, end: int) -> bool:
        return any(s < start and end < e for s, e in ranges)

    return is_in_skip_range


def scan_sections(text: str, tags: Iterable[Tag],
                  is_in_skip_range: SkipPredicate) -> list[Section]:
    """Splits the text into sections at <h1>..<h6> tags and ==headings==.
    The first section is always the untitled "top" section."""
    # (heading, title, level, start)
    headings: list[tuple[str, str, int, int]] = []
    for tag in tags:
        m = HTML_HEADING_RE.match(tag.name)
        if m and not is_in_skip_range(tag.start_index, tag.end_index):
            headings.append(
                (
                    tag.text,
                    clean(remove_comments(tag.content or "")),
                    int(m.group(1)),
                    tag.start_index,
                )
            )

    for m in WIKI_HEADING_RE.finditer(text):
        trailing = HEADING_WHITESPACE_RE.sub("", remove_comments(m.group(4)))
        if trailing or is_in_skip_range(m.start(), m.end()):
            continue
        left, right = m.group(1), m.group(3)
        level = min(6, len(left), len(right))
        # "======= x =======" is a level 6 heading titled "= x ="
        title = "=" * (len(left) - level) + m.group(2) + "=" * (
            len(right) - level
        )
        headings.append(
            (m.group(0).strip(), clean(remove_comments(title)), level,
             m.start())
        )

    headings.sort(key=lambda h: h[3])
    headings.insert(0, ("", "top", 1, 0))

    sections = []
    for i, (heading, title, level, start) in enumerate(headings):
        end = len(text)
        if i == 0:
            if len(headings) > 1:
                end = headings[1][3]
        else:
            for h in headings[i + 1:]:
                if h[2] <= level:
                    end = h[3]
                    break
        sections.append(
            Section(
                heading=heading,
                title=title,
                level=level,
                index=i,
                start_index=start,
                end_index=end,
                text=text[start:end],
            )
        )
    return sections


def _count_braces(pattern: re.Pattern[str], text: str) -> int:
    return sum(len(run) for run in pattern.findall(text))


def scan_parameters(ctx: "Wikitext", text: str,
                    is_in_skip_range: SkipPredicate) -> list[Parameter]:
    """Finds {{{parameter}}} references.  A first match may stop at the
    braces of a nested construct, as in {{{1|{{{2|{{X}}}}}}}}; such a
    match is extended until its braces balance."""
    params = []
    nest_level = 0
    pos = 0
    while True:
        m = PARAMETER_RE.search(text, pos)
        if not m:
            break
        key = m.group(1).strip()
        value = m.group(2)
        param_text = m.group(0)
        end = m.end()
        left_count = _count_braces(LEFT_BRACES_RE, param_text)
        right_count = _count_braces(RIGHT_BRACES_RE, param_text)
        valid = True
        if left_count > right_count:
            valid = False
            right_start = m.end() - 3
            right_count -= 3
            p = right_start
            while p < len(text):
                closing = LEADING_RIGHT_BRACES_RE.match(text, p)
                if not closing:
                    p += 1
                    continue
                n = len(closing.group(0))
                if left_count <= right_count + n:
                    end = p + (left_count - right_count)
                    param_text = text[m.start():end]
                    value += re.sub(r"\}{3}$", "", text[right_start:end])
                    valid = True
                    break
                p += n
                right_count += n
        pos = end
        if not valid:
            ctx.debug(
                "unbalanced braces in parameter {!r}".format(param_text),
                trace="at offset {}".format(m.start()),
                sortid="parser/402",
            )
            continue
        params.append(
            Parameter(
                key=key,
                value=value.strip(),
                text=param_text,
                start_index=m.start(),
                end_index=end,
                nest_level=nest_level,
                skip=is_in_skip_range(m.start(), end),
            )
        )
        if "{{{" in param_text[3:]:
            pos = m.start() + 3
            nest_level += 1
        else:
            nest_level = 0
    return params


def build_index_map(
    tags: Iterable[Tag],
    skip_tags: Iterable[str],
    gallery: bool = False,
    parameters: Optional[Iterable[Parameter]] = None,
    wikilinks_fuzzy: Optional[Iterable[FuzzyWikilink]] = None,
    templates: Optional[Iterable[AnyTemplate]] = None,
) -> IndexMap:
    """Maps start offsets of skip tags (and optionally pipe-bearing
    galleries, parameters, fuzzy links and templates) to the text the
    scanners must step over."""
    names = set(skip_tags)
    index_map: IndexMap = {}
    for tag in tags:
        is_gallery = (
            gallery
            and tag.name == "gallery"
            and tag.content is not None
            and "|" in tag.content
        )
        if tag.name in names or is_gallery:
            inner = None
            if tag.content is not None:
                start = tag.start_index + len(tag.start)
                inner = (start, start + len(tag.content))
            index_map[tag.start_index] = IndexEntry(
                tag.text, "gallery" if tag.name == "gallery" else "tag", inner
            )
    for param in parameters or ():
        m = PARAMETER_INNER_RE.match(param.text)
        inner = None
        if m:
            start = param.start_index + len(m.group(1))
            inner = (start, start + len(m.group(2)))
        index_map[param.start_index] = IndexEntry(param.text, "parameter",
                                                  inner)
    for link in wikilinks_fuzzy or ():
        start = link.start_index + 2
        end = link.end_index - 2
        index_map[link.start_index] = IndexEntry(
            link.text, "wikilink_fuzzy", (start, end) if end - start > 1
            else None
        )
    for template in templates or ():
        add_template_index(index_map, template)
    return index_map


def add_template_index(index_map: IndexMap, obj: AnyTemplate) -> None:
    """Adds a template to the index map.  Its inner range is what follows
    the title (or the hook, for parser functions)."""
    if isinstance(obj, ParsedParserFunction):
        start = obj.start_index + 2 + len(obj.raw_hook)
    else:
        start = obj.start_index + 2 + len(obj.raw_title) + 1
    end = obj.end_index - 2
    index_map[obj.start_index] = IndexEntry(
        obj.text, "template", (start, end) if end - start > 1 else None
    )


def scan_wikilinks_fuzzy(
    text: str,
    index_map: IndexMap,
    is_in_skip_range: SkipPredicate,
    start: int = 0,
    end: Optional[int] = None,
) -> list[FuzzyWikilink]:
    """Finds [[...]] constructs without validating their titles.  Links
    inside index map entries are found by scanning the inner range of
    the entry."""
    if end is None:
        end = len(text)
    links = []
    in_link = False
    sealed = False
    link_start = 0
    title = ""
    raw_title = ""
    i = start
    while i < end:
        entry = index_map.get(i)
        if entry is not None:
            if entry.inner is not None and entry.inner[1] <= end:
                s, e = entry.inner
                inner = text[s:e]
                if "[[" in inner and "]]" in inner:
                    links.extend(
                        scan_wikilinks_fuzzy(text, index_map,
                                             is_in_skip_range, s, e)
                    )
            if in_link and not sealed:
                raw_title += entry.text
            i += len(entry.text)
            continue
        if text.startswith("[[", i, end) and not text.startswith(
            "[", i + 2, end
        ):
            # Any "[[" may start a link; an earlier unclosed one is dropped
            in_link = True
            link_start = i
            title = ""
            raw_title = ""
            sealed = False
            i += 2
            continue
        if in_link and text.startswith("]]", i, end):
            link_end = i + 2
            right = None
            if title.endswith("|"):
                # [[title|]] is not a link but a pipe trick; keep None
                right = text[link_start + 2 + len(raw_title):i] or None
                title = title[:-1]
                raw_title = raw_title[:-1]
            links.append(
                FuzzyWikilink(
                    title=title,
                    raw_title=raw_title,
                    right=right,
                    text=text[link_start:link_end],
                    start_index=link_start,
                    end_index=link_end,
                    skip=is_in_skip_range(link_start, link_end),
                )
            )
            in_link = False
            i += 2
            continue
        if in_link and not sealed:
            ch = text[i]
            if ch == "|":
                sealed = True
            title += ch
            raw_title += ch
        i += 1
    links.sort(key=lambda link: link.start_index)
    return links


def add_fragment(
    components: list[ParamSlot],
    fragment: str,
    new: bool = False,
    non_name: bool = False,
    nested: bool = False,
) -> None:
    """Adds text to the title slot (components[0]) or the last parameter
    slot of a double-brace construct.

    In the title slot, ``key`` collects the title and ``value`` the raw
    title; ``non_name`` text (embedded comments, parameters, links)
    goes to ``value`` only.  In parameter slots the first "=" that is
    neither embedded nor inside a nested {{...}} splits key from value.
    ``new`` starts a new slot; its leading "|" is dropped."""
    i = len(components) if new else max(len(components) - 1, 0)
    if i == len(components):
        components.append(ParamSlot())
    slot = components[i]
    if i == 0:
        if not non_name:
            slot.key += fragment
        slot.value += fragment
        return
    eq = fragment.find("=")
    if eq != -1 and not slot.named and not non_name and not nested:
        slot.key = slot.value + fragment[:eq]
        slot.value = fragment[eq + 1:]
        slot.named = True
        return
    if new and not slot.value and fragment.startswith("|"):
        fragment = fragment[1:]
    slot.value += fragment


def title_split(
    raw_title: str, title: str, offset: int, index_map: IndexMap
) -> Optional[tuple[str, str]]:
    """Locates ``title`` inside ``raw_title`` and returns the raw text to
    its left and right.  ``offset`` is where ``raw_title`` starts in the
    text; embedded index map entries are never searched."""
    if raw_title != title:
        n = 0
        while n < len(raw_title):
            entry = index_map.get(offset + n)
            if entry is not None:
                n += len(entry.text)
                continue
            if raw_title.startswith(title, n):
                return raw_title[:n], raw_title[n + len(title):]
            n += 1
        return None
    if not re.match(r"\s", title):
        return "", ""
    return None


def make_template(ctx: "Wikitext", source: TemplateSource,
                  site: "Site") -> AnyTemplate:
    """Classifies a double-brace construct: a parser function if the
    title starts with a function hook, else a template if the title is
    valid, else a raw template."""
    try:
        return ParsedParserFunction(source, site=site)
    except InvalidHookError as e:
        if e.code == "unparsablehook":
            ctx.warning(
                "cannot split {!r} into a hook and its first argument".format(
                    source.raw_title
                ),
                trace=e.info,
                sortid="parser/655",
            )
    try:
        return ParsedTemplate(source, site=site)
    except WikitextError as e:
        ctx.debug(
            "{!r} kept as a raw template: {}".format(source.text, e),
            sortid="parser/664",
        )
    return RawTemplate(source, site=site)


def scan_templates(
    ctx: "Wikitext",
    text: str,
    index_map: IndexMap,
    is_in_skip_range: SkipPredicate,
    site: "Site",
    nest_level: int = 0,
    start: int = 0,
    end: Optional[int] = None,
    check_gallery: bool = True,
) -> list[AnyTemplate]:
    """Finds {{...}} constructs in text[start:end], including nested ones.
    Index map entries are stepped over as a whole; constructs inside
    their inner ranges are found by scanning those ranges at the same
    nesting level."""
    if end is None:
        end = len(text)
    templates: list[AnyTemplate] = []
    depth = 0
    template_start = 0
    components: list[ParamSlot] = []
    i = start
    while i < end:
        entry = index_map.get(i)
        if entry is not None and entry.type != "gallery":
            if depth != 0:
                add_fragment(components, entry.text, non_name=True)
            # At deeper levels the enclosing template's own inner scan
            # has already covered this range
            if (
                nest_level == 0
                and entry.inner is not None
                and entry.inner[1] <= end
            ):
                s, e = entry.inner
                inner = text[s:e]
                if "{{" in inner and "}}" in inner:
                    templates.extend(
                        scan_templates(ctx, text, index_map,
                                       is_in_skip_range, site, nest_level,
                                       s, e, check_gallery=False)
                    )
            i += len(entry.text)
            continue

        if depth == 0:
            if text.startswith("{{", i, end):
                template_start = i
                components = []
                depth = 2
                i += 2
                continue
            i += 1
        elif depth == 2:
            if text.startswith("{{", i, end):
                depth += 2
                add_fragment(components, "{{", nested=True)
                i += 2
            elif text.startswith("}}", i, end):
                template_end = i + 2
                title_slot = components[0] if components else ParamSlot()
                source = TemplateSource(
                    title=title_slot.key,
                    raw_title=title_slot.value,
                    title_split=title_split(
                        title_slot.value, title_slot.key,
                        template_start + 2, index_map
                    ),
                    text=text[template_start:template_end],
                    params=components[1:],
                    start_index=template_start,
                    end_index=template_end,
                    nest_level=nest_level,
                    skip=is_in_skip_range(template_start, template_end),
                )
                templates.append(make_template(ctx, source, site))
                inner = text[template_start + 2:i]
                if "{{" in inner and "}}" in inner:
                    templates.extend(
                        scan_templates(ctx, text, index_map,
                                       is_in_skip_range, site,
                                       nest_level + 1, template_start + 2,
                                       i, check_gallery=False)
                    )
                depth = 0
                i += 2
            else:
                ch = text[i]
                add_fragment(components, ch, new=ch == "|")
                i += 1
        else:
            if text.startswith("{{", i, end):
                fragment = "{{"
                depth += 2
            elif text.startswith("}}", i, end):
                fragment = "}}"
                depth -= 2
            else:
                fragment = text[i]
            add_fragment(components, fragment, nested=True)
            i += len(fragment)

    if check_gallery:
        templates = _reparse_galleries(ctx, text, index_map, templates, site)
    templates.sort(key=lambda t: t.start_index)
    return templates


def _reparse_galleries(
    ctx: "Wikitext",
    text: str,
    index_map: IndexMap,
    templates: list[AnyTemplate],
    site: "Site",
) -> list[AnyTemplate]:
    """Re-splits the parameters of templates that contain a <gallery>
    whose body has pipes.  Pipes inside the gallery separate gallery
    fields, not template parameters."""
    galleries = [
        (s, s + len(entry.text))
        for s, entry in index_map.items()
        if entry.type == "gallery"
    ]
    if not galleries:
        return templates
    index_map = dict(index_map)
    for template in templates:
        add_template_index(index_map, template)

    def in_gallery(index: int) -> bool:
        return any(s <= index < e for s, e in galleries)

    ret = []
    for template in templates:
        if not any(
            template.start_index < s and e < template.end_index
            for s, e in galleries
        ):
            ret.append(template)
            continue
        source = template._source
        j = template.start_index + 2 + len(source.raw_title)
        params_end = template.end_index - 2
        components = [ParamSlot()]
        while j < params_end:
            entry = index_map.get(j)
            if entry is not None and entry.type != "gallery":
                add_fragment(components, entry.text, non_name=True)
                j += len(entry.text)
                continue
            ch = text[j]
            if in_gallery(j):
                add_fragment(components, ch, nested=True)
            else:
                add_fragment(components, ch, new=ch == "|")
            j += 1
        source = copy.deepcopy(source)
        source.params = components[1:]
        ret.append(make_template(ctx, source, site))
    return ret


def file_link_params(link: FuzzyWikilink, index_map: IndexMap) -> list[str]:
    """Splits the right-hand side of a file link at pipes that are not
    inside an embedded skip tag, parameter or template."""
    right = link.right
    if right is None:
        return []
    if "|" not in right:
        return [clean(right)]
    params = []
    buf = ""
    base = link.start_index + 2 + len(link.raw_title) + 1
    i = 0
    while i < len(right):
        real = base + i
        entry = index_map.get(real)
        if entry is not None and real + len(entry.text) + 2 <= link.end_index:
            buf += entry.text
            i += len(entry.text)
            continue
        if right[i] == "|":
            params.append(clean(buf))
            buf = ""
        else:
            buf += right[i]
        i += 1
    params.append(clean(buf))
    return params


def finalize_wikilinks(
    ctx: "Wikitext",
    fuzzy_links: Iterable[FuzzyWikilink],
    index_map: IndexMap,
    site: "Site",
) -> list[AnyWikilink]:
    """Validates fuzzy link titles and builds file links, plain links and
    raw links from them."""
    links: list[AnyWikilink] = []
    for link in fuzzy_links:
        source = LinkSource(
            title=link.title,
            raw_title=link.raw_title,
            title_split=title_split(link.raw_title, link.title,
                                    link.start_index + 2, index_map),
            text=link.text,
            start_index=link.start_index,
            end_index=link.end_index,
            skip=link.skip,
        )
        title = site.titles.new_from_text(link.title)
        if title is not None and is_file_title(site, title):
            source.params = file_link_params(link, index_map)
            links.append(ParsedFileWikilink(source, site=site))
        elif title is not None:
            source.display = link.right
            links.append(ParsedWikilink(source, site=site))
        else:
            ctx.debug(
                "{!r} kept as a raw link: invalid title {!r}".format(
                    link.text, link.title
                ),
                sortid="parser/866",
            )
            source.display = link.right
            links.append(ParsedRawWikilink(source, site=site))
    return links
