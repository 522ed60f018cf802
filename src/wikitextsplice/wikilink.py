# Object model for [[wikilink]] markup
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import copy
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional, Union

from .common import clean
from .errors import InvalidTitleError, WikitextError
from .logging_utils import logger
from .template import ParamList, Parsed, whitespace_split
from .title import Title

if TYPE_CHECKING:
    from .site import Site


def _default_site() -> "Site":
    from .site import default_site

    return default_site()


@dataclass
class LinkSource:
    """What the wikilink scanner recovered for one [[...]] construct.
    ``display`` is set for plain links and ``params`` for file links."""

    title: str
    raw_title: str
    title_split: Optional[tuple[str, str]]
    text: str
    start_index: int
    end_index: int
    skip: bool
    display: Optional[str] = None
    params: Optional[list[str]] = None
    title_changed: bool = False


def validate_link_title(site: "Site", title: Union[str, Title]) -> Title:
    if isinstance(title, str):
        return site.titles.make(title)
    if isinstance(title, Title):
        return site.titles.make(
            title.get_prefixed_db(colon=True, fragment=True)
        )
    raise TypeError(
        "Expected a string or Title for the title, got {!r}".format(title)
    )


def validate_file_title(site: "Site", title: Union[str, Title]) -> Title:
    t = validate_link_title(site, title)
    if t.is_external():
        raise InvalidTitleError("interwiki", "The title is interwiki.")
    if t.had_leading_colon():
        raise InvalidTitleError("leadingcolon",
                                "The title has a leading colon.")
    if t.namespace != site.titles.ns_file:
        raise InvalidTitleError(
            "notfiletitle", "The title does not belong to the File namespace."
        )
    return t


def is_file_title(site: "Site", title: Title) -> bool:
    return title.namespace == site.titles.ns_file and (
        not title.had_leading_colon()
    )


def link_markup(left: str, right: Optional[str]) -> str:
    ret = ["[[", left]
    if right is not None:
        ret.append("|" + right)
    ret.append("]]")
    return "".join(ret)


class WikilinkBase:
    """Title plus optional display text."""

    def __init__(
        self,
        site: "Site",
        title: Union[str, Title],
        display: Optional[str] = None,
    ) -> None:
        self.site = site
        self.title = title
        self.display = clean(display) if isinstance(display, str) else None

    def get_display(self) -> str:
        if self.has_display():
            assert self.display is not None
            return self.display
        if isinstance(self.title, str):
            return clean(self.title)
        return self.title.get_prefixed_text(fragment=True)

    def set_display(self, display: Optional[str]) -> "WikilinkBase":
        if isinstance(display, str) and clean(display):
            self.display = clean(display)
        elif display is None:
            self.display = None
        else:
            raise TypeError(
                "Expected a string or None for the display, got {!r}".format(
                    display
                )
            )
        return self

    def has_display(self) -> bool:
        return bool(self.display)

    def __str__(self) -> str:
        return self.stringify()

    def stringify(self, **kwargs: Any) -> str:
        raise NotImplementedError

    def __repr__(self) -> str:
        return "<{} {!r}>".format(type(self).__name__, str(self.title))


class Wikilink(WikilinkBase):
    """A link to a page other than a file, e.g. [[Foo#bar|baz]] or
    [[:File:X.png]]."""

    title: Title

    def __init__(
        self,
        title: Union[str, Title],
        display: Optional[str] = None,
        site: Optional["Site"] = None,
    ) -> None:
        site = site or _default_site()
        t = validate_link_title(site, title)
        if is_file_title(site, t):
            raise InvalidTitleError(
                "filetitle",
                "The title {!r} is a file title; use FileWikilink.".format(
                    str(t)
                ),
            )
        super().__init__(site, t, display)

    @classmethod
    def new(
        cls,
        title: Union[str, Title],
        display: Optional[str] = None,
        site: Optional["Site"] = None,
    ) -> Optional["Wikilink"]:
        try:
            return cls(title, display, site=site)
        except WikitextError as e:
            logger.debug("Wikilink.new: %s", e)
            return None

    def set_title(self, title: Union[str, Title], verbose: bool = False) -> bool:
        try:
            t = validate_link_title(self.site, title)
            if is_file_title(self.site, t):
                raise InvalidTitleError(
                    "filetitle",
                    "A file title cannot be set; use to_file_wikilink().",
                )
        except WikitextError as e:
            if verbose:
                logger.debug("set_title: %s", e)
            return False
        self.title = t
        return True

    def to_file_wikilink(
        self, title: Union[str, Title], verbose: bool = False
    ) -> Optional["FileWikilink"]:
        try:
            return FileWikilink(
                title, [self.display] if self.display else [], site=self.site
            )
        except WikitextError as e:
            if verbose:
                logger.debug("to_file_wikilink: %s", e)
            return None

    def stringify(self, suppress_display: bool = False) -> str:
        right = None if suppress_display else (self.display or None)
        return link_markup(
            self.title.get_prefixed_text(colon=True, fragment=True), right
        )


class FileWikilink(ParamList):
    """A file link such as [[File:X.png|thumb|caption]].  Everything
    after the title is kept as a list of parameters."""

    def __init__(
        self,
        title: Union[str, Title],
        params: Iterable[str] = (),
        site: Optional["Site"] = None,
    ) -> None:
        self.site = site or _default_site()
        self.title = validate_file_title(self.site, title)
        self.params: list[str] = list(params)

    @classmethod
    def new(
        cls,
        title: Union[str, Title],
        params: Iterable[str] = (),
        site: Optional["Site"] = None,
    ) -> Optional["FileWikilink"]:
        try:
            return cls(title, params, site=site)
        except WikitextError as e:
            logger.debug("FileWikilink.new: %s", e)
            return None

    def set_title(self, title: Union[str, Title], verbose: bool = False) -> bool:
        try:
            t = validate_file_title(self.site, title)
        except WikitextError as e:
            if verbose:
                logger.debug("set_title: %s", e)
            return False
        self.title = t
        return True

    def to_wikilink(
        self, title: Union[str, Title], verbose: bool = False
    ) -> Optional[Wikilink]:
        try:
            return Wikilink(
                title,
                "|".join(self.params) if self.params else None,
                site=self.site,
            )
        except WikitextError as e:
            if verbose:
                logger.debug("to_wikilink: %s", e)
            return None

    def _right(self, sort_key: Optional[Callable[[str], Any]]) -> Optional[str]:
        params = list(self.params)
        if sort_key is not None:
            params.sort(key=sort_key)
        return "|".join(params) if params else None

    def stringify(self, sort_key: Optional[Callable[[str], Any]] = None) -> str:
        return link_markup(
            self.title.get_prefixed_text(interwiki=False),
            self._right(sort_key),
        )

    def __str__(self) -> str:
        return self.stringify()

    def __repr__(self) -> str:
        return "<FileWikilink {!r}>".format(str(self.title))


class RawWikilink(WikilinkBase):
    """A link whose title is not a valid page title, e.g. [[{{{1}}}]]."""

    title: str

    def __init__(
        self,
        title: str,
        display: Optional[str] = None,
        site: Optional["Site"] = None,
    ) -> None:
        super().__init__(site or _default_site(), title, display)

    def set_title(self, title: str) -> "RawWikilink":
        if not isinstance(title, str):
            raise TypeError("Expected a string title, got {!r}".format(title))
        self.title = title
        return self

    def to_wikilink(
        self, title: Union[str, Title], verbose: bool = False
    ) -> Optional[Wikilink]:
        try:
            return Wikilink(title, self.display or None, site=self.site)
        except WikitextError as e:
            if verbose:
                logger.debug("to_wikilink: %s", e)
            return None

    def to_file_wikilink(
        self, title: Union[str, Title], verbose: bool = False
    ) -> Optional[FileWikilink]:
        params = [self.display] if isinstance(self.display, str) else []
        try:
            return FileWikilink(title, params, site=self.site)
        except WikitextError as e:
            if verbose:
                logger.debug("to_file_wikilink: %s", e)
            return None

    def stringify(self, suppress_display: bool = False) -> str:
        right = None if suppress_display else (self.display or None)
        return link_markup(self.title, right)


class ParsedLinkMixin(Parsed):
    """Keeps the raw title and the raw text after it so that a link
    that was not changed stringifies to its source text."""

    _source: LinkSource
    site: "Site"

    def _init_source(self, source: LinkSource) -> None:
        self._source = source
        self._set_position(source)
        self.raw_title = source.raw_title
        self._raw_tail = source.text[2 + len(source.raw_title):-2]
        if source.raw_title == source.title:
            self._title_split: Optional[tuple[str, str]] = whitespace_split(
                source.title
            )
        else:
            self._title_split = source.title_split

    def _title_text(self, canonical: str, raw_title: bool,
                    unchanged: bool) -> str:
        if raw_title:
            if unchanged:
                return self.raw_title
            if self._title_split is not None:
                left, right = self._title_split
                return left + canonical + right
        return canonical

    def _converted(
        self,
        cls: type,
        title: Union[str, Title],
        display: Optional[str],
        params: Optional[list[str]],
        verbose: bool,
    ) -> Any:
        if isinstance(title, Title):
            title = title.get_prefixed_db(colon=True, fragment=True)
        source = copy.deepcopy(self._source)
        source.title = title
        source.title_changed = True
        source.display = display
        source.params = params
        try:
            return cls(source, site=self.site)
        except WikitextError as e:
            if verbose:
                logger.debug("conversion to %s failed: %s", cls.__name__, e)
            return None

    def rebuild(self) -> Any:
        return type(self)(copy.deepcopy(self._source), site=self.site)


class ParsedWikilink(ParsedLinkMixin, Wikilink):
    """A Wikilink recovered by Wikitext.parse_wikilinks()."""

    def __init__(self, source: LinkSource,
                 site: Optional["Site"] = None) -> None:
        Wikilink.__init__(self, source.title, source.display, site=site)
        self._init_source(source)
        self._source_title: Optional[Title] = (
            None if source.title_changed else self.title
        )
        self._display_snapshot = self.display

    def to_file_wikilink(
        self, title: Union[str, Title], verbose: bool = False
    ) -> Optional["ParsedFileWikilink"]:
        params = [self.display] if self.display else []
        return self._converted(ParsedFileWikilink, title, None, params,
                               verbose)

    def stringify(
        self, raw_title: bool = True, suppress_display: bool = False
    ) -> str:
        unchanged = self.title is self._source_title
        if (
            raw_title
            and unchanged
            and not suppress_display
            and self.display == self._display_snapshot
        ):
            return self.text
        title = self._title_text(
            self.title.get_prefixed_text(colon=True, fragment=True),
            raw_title,
            unchanged,
        )
        right = None if suppress_display else (self.display or None)
        return link_markup(title, right)


class ParsedFileWikilink(ParsedLinkMixin, FileWikilink):
    """A FileWikilink recovered by Wikitext.parse_wikilinks()."""

    def __init__(self, source: LinkSource,
                 site: Optional["Site"] = None) -> None:
        FileWikilink.__init__(self, source.title, source.params or [],
                              site=site)
        self._init_source(source)
        self._source_title: Optional[Title] = (
            None if source.title_changed else self.title
        )
        self._param_snapshot = list(self.params)

    def to_wikilink(
        self, title: Union[str, Title], verbose: bool = False
    ) -> Optional[ParsedWikilink]:
        display = "|".join(self.params) if self.params else None
        return self._converted(ParsedWikilink, title, display, None, verbose)

    def stringify(
        self,
        raw_title: bool = True,
        sort_key: Optional[Callable[[str], Any]] = None,
    ) -> str:
        unchanged = self.title is self._source_title
        params_unchanged = (
            sort_key is None and self.params == self._param_snapshot
        )
        title = self._title_text(
            self.title.get_prefixed_text(interwiki=False),
            raw_title,
            unchanged,
        )
        if params_unchanged:
            if raw_title and unchanged:
                return self.text
            return "[[" + title + self._raw_tail + "]]"
        return link_markup(title, self._right(sort_key))


class ParsedRawWikilink(ParsedLinkMixin, RawWikilink):
    """A link whose title failed to validate, with position metadata."""

    def __init__(self, source: LinkSource,
                 site: Optional["Site"] = None) -> None:
        RawWikilink.__init__(self, source.title, source.display, site=site)
        self._init_source(source)
        self._source_title = None if source.title_changed else self.title
        self._display_snapshot = self.display
        # The raw title is the only form a raw link has
        self._title_split = None

    def to_wikilink(
        self, title: Union[str, Title], verbose: bool = False
    ) -> Optional[ParsedWikilink]:
        return self._converted(ParsedWikilink, title, self.display or None,
                               None, verbose)

    def to_file_wikilink(
        self, title: Union[str, Title], verbose: bool = False
    ) -> Optional[ParsedFileWikilink]:
        params = [self.display] if isinstance(self.display, str) else []
        return self._converted(ParsedFileWikilink, title, None, params,
                               verbose)

    def stringify(
        self, raw_title: bool = True, suppress_display: bool = False
    ) -> str:
        unchanged = self.title == self._source_title
        if (
            raw_title
            and unchanged
            and not suppress_display
            and self.display == self._display_snapshot
        ):
            return self.text
        title = self._title_text(self.title, raw_title, unchanged)
        right = None if suppress_display else (self.display or None)
        return link_markup(title, right)
