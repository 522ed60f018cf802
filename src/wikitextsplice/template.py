# Object model for {{template}} and {{#parserfunction:}} markup
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import copy
import re
from dataclasses import dataclass, field, replace
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Iterable,
    NamedTuple,
    Optional,
    Union,
)

from .common import clean
from .errors import InvalidHookError, InvalidTitleError, WikitextError
from .logging_utils import logger
from .title import Title

if TYPE_CHECKING:
    from .site import Site
    from .siteconfig import MagicWordEntry

# Function hooks that are used without a leading hash, as hard-coded in
# MediaWiki's CoreParserFunctions.php.
HOOKS_WITHOUT_HASH = frozenset(
    {
        "ns", "nse", "urlencode", "lcfirst", "ucfirst", "lc", "uc",
        "localurl", "localurle", "fullurl", "fullurle", "canonicalurl",
        "canonicalurle", "formatnum", "grammar", "gender", "plural",
        "formal", "bidi", "numberingroup", "language", "padleft",
        "padright", "anchorencode", "defaultsort", "filepath",
        "pagesincategory", "pagesize", "protectionlevel",
        "protectionexpiry",
        # Parser function forms of magic variables; the first argument
        # is a page title
        "pagename", "pagenamee", "fullpagename", "fullpagenamee",
        "subpagename", "subpagenamee", "rootpagename", "rootpagenamee",
        "basepagename", "basepagenamee", "talkpagename", "talkpagenamee",
        "subjectpagename", "subjectpagenamee", "pageid", "revisionid",
        "revisionday", "revisionday2", "revisionmonth", "revisionmonth1",
        "revisionyear", "revisiontimestamp", "revisionuser",
        "cascadingsources", "namespace", "namespacee", "namespacenumber",
        "talkspace", "talkspacee", "subjectspace", "subjectspacee",
        # The first argument is "raw"
        "numberofarticles", "numberoffiles", "numberofusers",
        "numberofactiveusers", "numberofpages", "numberofadmins",
        "numberofedits",
        # These already contain the hash in their aliases
        "bcp47", "dir", "interwikilink", "interlanguagelink",
    }
)

# Whitespace is not allowed inside a hook: "#if:" but not "# if:"
HOOK_RE = re.compile(r"^#?[^:：\s]+[:：]")
# Behavior switches such as __NOTOC__ are never function hooks
SWITCH_ALIAS_RE = re.compile(r"^[_＿].+[_＿]$")


class VerifiedHook(NamedTuple):
    canonical: str  # e.g. "#if:"
    match: str  # the hook as written, e.g. "#IF:"


class ParserFunctionTable:
    """Maps canonical parser function hooks to the patterns that
    recognize them.  Built once per site from the magic word list and
    the list of function hooks."""

    __slots__ = ("patterns",)

    def __init__(
        self,
        magic_words: Iterable["MagicWordEntry"],
        function_hooks: Iterable[str],
    ) -> None:
        hooks = set(function_hooks)
        self.patterns: dict[str, re.Pattern[str]] = {}
        for word in magic_words:
            name = word["name"]
            if name not in hooks:
                continue
            case_sensitive = word["case_sensitive"]
            no_hash = name in HOOKS_WITHOUT_HASH
            keys = [name]
            for alias in word["aliases"]:
                if alias != name and not SWITCH_ALIAS_RE.match(alias):
                    keys.append(alias)
            alternatives = []
            for key in keys:
                hash_sign = "" if no_hash else "#"
                if key.startswith("#"):
                    hash_sign = "#"
                    key = key[1:]
                if not re.search(r"[:：]$", key):
                    key += ":"
                if case_sensitive:
                    # The first letter is case-insensitive regardless
                    first = key[0].lower() + key[0].upper()
                    alternatives.append(
                        "^{}[{}]{}$".format(
                            re.escape(hash_sign),
                            re.escape(first),
                            re.escape(key[1:]),
                        )
                    )
                else:
                    alternatives.append(
                        "^{}$".format(re.escape(hash_sign + key))
                    )
            canonical = ("" if no_hash else "#") + name + ":"
            self.patterns[canonical] = re.compile(
                "|".join(alternatives),
                0 if case_sensitive else re.IGNORECASE,
            )

    def verify(self, hook: str) -> Optional[VerifiedHook]:
        """Checks whether the text starts with a known function hook.
        Returns the canonical hook and the hook as written, or None."""
        m = HOOK_RE.match(hook.strip())
        if not m:
            return None
        for canonical, pattern in self.patterns.items():
            if pattern.search(m.group(0)):
                return VerifiedHook(canonical, m.group(0))
        return None

    def __len__(self) -> int:
        return len(self.patterns)


def _default_site() -> "Site":
    from .site import default_site

    return default_site()


@dataclass
class ParamSlot:
    """One "|..." slot of a double-brace construct as written in the
    source.  ``named`` is set when an "=" separated key from value."""

    key: str = ""
    value: str = ""
    named: bool = False

    @property
    def text(self) -> str:
        return "|" + (self.key + "=" if self.named else "") + self.value


@dataclass
class TemplateSource:
    """What the template scanner recovered for one {{...}} construct.
    ``title`` is the title slot without embedded expressions,
    ``raw_title`` the slot as written, and ``title_split`` the text
    around ``title`` inside ``raw_title`` when it could be located."""

    title: str
    raw_title: str
    title_split: Optional[tuple[str, str]]
    text: str
    params: list[ParamSlot]
    start_index: int
    end_index: int
    nest_level: int
    skip: bool
    title_changed: bool = False


@dataclass
class TemplateParameter:
    key: str
    value: str
    unnamed: bool = False
    duplicates: list["TemplateParameter"] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "|" + ("" if self.unnamed else self.key + "=") + self.value


def whitespace_split(text: str) -> tuple[str, str]:
    stripped = text.lstrip()
    left = text[: len(text) - len(stripped)]
    stripped = stripped.rstrip()
    return left, text[len(left) + len(stripped):]


class Parsed:
    """Position metadata for objects recovered from a Wikitext.  The
    offsets refer to the buffer the object was parsed from."""

    text: str
    start_index: int
    end_index: int
    skip: bool

    def _set_position(self, source: Any) -> None:
        self.text = source.text
        self.start_index = source.start_index
        self.end_index = source.end_index
        self.skip = source.skip


def validate_template_title(
    site: "Site", title: Union[str, Title], as_hook: bool = False
) -> Union[Title, VerifiedHook]:
    if not isinstance(title, (str, Title)):
        raise TypeError(
            "Expected a string or Title for the title, got {!r}".format(title)
        )
    text = (
        title
        if isinstance(title, str)
        else title.get_prefixed_db(colon=True, fragment=True)
    )
    hook = site.parser_functions.verify(text)
    if hook and as_hook:
        return hook
    if hook:
        raise InvalidHookError(
            "hook",
            "{!r} is a parser function hook.".format(hook.match),
            {"title": text},
        )
    if isinstance(title, str):
        text = clean(title)
        titles = site.titles
        namespace = titles.ns_main if text.startswith(":") else (
            titles.ns_template
        )
        ret = titles.make(text, namespace)
    else:
        ret = site.titles.make(text)
    if not ret.get_main():
        raise InvalidTitleError(
            "emptytitle", "The empty title cannot be transcluded."
        )
    if ret.is_external() and not ret.is_trans():
        raise InvalidTitleError(
            "nontranscludable",
            "The interwiki title {!r} cannot be transcluded.".format(
                str(ret)
            ),
        )
    return ret


class TemplateBase:
    """Keyed parameters shared by Template and RawTemplate."""

    def __init__(
        self,
        site: "Site",
        title: Union[str, Title],
        params: Iterable[tuple[str, str]] = (),
        hierarchies: Optional[Iterable[Iterable[str]]] = None,
    ) -> None:
        self.site = site
        self.title = title
        self.params: dict[str, TemplateParameter] = {}
        self.param_order: list[str] = []
        self.hierarchies: list[list[str]] = [
            list(h) for h in hierarchies or ()
        ]
        for key, value in params:
            self._register_param(
                key or "", value, overwrite=True, append=True,
                list_duplicates=True,
            )

    def add_param(
        self, key: str, value: str, overwrite: bool = True
    ) -> "TemplateBase":
        """Adds a parameter at the end.  An existing parameter with the
        same key (or one in the same hierarchy) is moved to the end
        if ``overwrite`` is true, and kept as is otherwise."""
        return self._register_param(key, value, overwrite, append=True)

    def set_param(
        self, key: str, value: str, overwrite: bool = True
    ) -> "TemplateBase":
        """Like add_param(), but an existing parameter keeps its
        position."""
        return self._register_param(key, value, overwrite, append=False)

    def get_param(
        self, key: str, resolve_hierarchy: bool = False
    ) -> Optional[TemplateParameter]:
        if resolve_hierarchy:
            for hier in self.hierarchies:
                if key in hier:
                    for k in reversed(hier):
                        if k in self.params:
                            return self.params[k]
                    break
        return self.params.get(key)

    def has_param(
        self,
        key: Union[str, re.Pattern[str], Callable[[str, TemplateParameter],
                                                  bool]],
        value: Union[None, str, re.Pattern[str]] = None,
    ) -> bool:
        """Checks whether a parameter exists.  ``key`` may be an exact
        key, a compiled regular expression searched in keys, or a
        predicate called with each key and a copy of its parameter."""
        if callable(key) and not isinstance(key, re.Pattern):
            return any(
                key(k, copy.deepcopy(param))
                for k, param in self.params.items()
            )
        if key == "" or not isinstance(key, (str, re.Pattern)):
            return False
        for k, param in self.params.items():
            if isinstance(key, str):
                if k != key:
                    continue
            elif not key.search(k):
                continue
            if value is None:
                return True
            if isinstance(value, str) and value == param.value:
                return True
            if isinstance(value, re.Pattern) and value.search(param.value):
                return True
        return False

    def delete_param(self, key: str) -> bool:
        if key not in self.params:
            return False
        del self.params[key]
        self.param_order.remove(key)
        return True

    def _find_numeric_key(self) -> str:
        numbers = {int(k) for k in self.params if re.fullmatch(r"[1-9]\d*",
                                                                 k)}
        i = 1
        while i in numbers:
            i += 1
        return str(i)

    def _check_key_override(
        self, key: str
    ) -> Optional[tuple[str, str]]:
        """Returns ("overrides", other) if ``key`` takes precedence over a
        registered key of the same hierarchy, ("overridden", other) if the
        registered key takes precedence, and None otherwise."""
        for hier in self.hierarchies:
            if key in hier:
                break
        else:
            return None
        for other in self.params:
            if other in hier and other != key:
                if hier.index(key) > hier.index(other):
                    return "overrides", other
                return "overridden", other
        return None

    def _register_param(
        self,
        key: str,
        value: str,
        overwrite: bool,
        append: bool,
        list_duplicates: bool = False,
    ) -> "TemplateBase":
        key = key.strip()
        unnamed = key == ""
        if unnamed:
            key = self._find_numeric_key()
        else:
            value = value.strip()
        status = self._check_key_override(key)
        existing = status is not None or key in self.params
        if existing and not overwrite:
            return self
        if status is not None:
            relation, other = status
            if relation == "overrides":
                old = self.params.pop(other)
                if list_duplicates:
                    old.duplicates.append(replace(old, duplicates=[]))
                if append:
                    self.param_order.remove(other)
                    self.param_order.append(key)
                else:
                    self.param_order[self.param_order.index(other)] = key
                self.params[key] = TemplateParameter(
                    key, value, unnamed, old.duplicates
                )
            elif list_duplicates:
                self.params[other].duplicates.append(
                    TemplateParameter(key, value, unnamed)
                )
        elif existing:
            old = self.params[key]
            if list_duplicates:
                old.duplicates.append(replace(old, duplicates=[]))
            if append:
                self.param_order.remove(key)
                self.param_order.append(key)
            self.params[key] = TemplateParameter(
                key, value, unnamed, old.duplicates
            )
        else:
            self.params[key] = TemplateParameter(key, value, unnamed)
            self.param_order.append(key)
        return self

    def _param_state(self) -> list[TemplateParameter]:
        return [copy.deepcopy(self.params[k]) for k in self.param_order]

    def _has_leading_colon(self) -> bool:
        if isinstance(self.title, str):
            return self.title.startswith(":")
        return self.title.had_leading_colon()

    def _stringify(
        self,
        title: str,
        prepend: Optional[str] = None,
        append: Optional[str] = None,
        sort_key: Optional[Callable[[TemplateParameter], Any]] = None,
        br_predicate_title: Optional[Callable[[Any], bool]] = None,
        br_predicate_param: Optional[Callable[[TemplateParameter],
                                              bool]] = None,
        raw_params: Optional[list[str]] = None,
        param_texts: Optional[dict[str, str]] = None,
    ) -> str:
        ret = ["{{"]
        if prepend is not None:
            if self._has_leading_colon():
                prepend = re.sub(r":$", "", prepend)
            ret.append(prepend)
        ret.append(title)
        if append is not None:
            ret.append(append)
        if br_predicate_title is not None and br_predicate_title(self.title):
            ret.append("\n")
        if raw_params is not None:
            ret.extend(raw_params)
        else:
            params = [self.params[k] for k in self.param_order]
            if sort_key is not None:
                params.sort(key=sort_key)
            for param in params:
                if param_texts and param.key in param_texts:
                    ret.append(param_texts[param.key])
                else:
                    ret.append(param.text)
                if br_predicate_param is not None and br_predicate_param(
                    param
                ):
                    ret.append("\n")
        ret.append("}}")
        return "".join(ret)

    def __str__(self) -> str:
        return self.stringify()

    def stringify(self, **kwargs: Any) -> str:
        raise NotImplementedError


class Template(TemplateBase):
    """A transclusion {{Title|params}}.  ``title`` is a Title in the
    Template namespace unless the text began with a colon."""

    title: Title

    def __init__(
        self,
        title: Union[str, Title],
        params: Iterable[Union[tuple[str, str], dict[str, str]]] = (),
        hierarchies: Optional[Iterable[Iterable[str]]] = None,
        site: Optional["Site"] = None,
    ) -> None:
        site = site or _default_site()
        t = validate_template_title(site, title)
        assert isinstance(t, Title)
        pairs = [
            (p["key"], p["value"]) if isinstance(p, dict) else p
            for p in params
        ]
        super().__init__(site, t, pairs, hierarchies)

    @classmethod
    def new(
        cls,
        title: Union[str, Title],
        params: Iterable[Union[tuple[str, str], dict[str, str]]] = (),
        hierarchies: Optional[Iterable[Iterable[str]]] = None,
        site: Optional["Site"] = None,
    ) -> Optional["Template"]:
        """Like the constructor, but returns None on an invalid title."""
        try:
            return cls(title, params, hierarchies, site=site)
        except WikitextError as e:
            logger.debug("Template.new: %s", e)
            return None

    def set_title(self, title: Union[str, Title], verbose: bool = False) -> bool:
        try:
            t = validate_template_title(self.site, title)
        except WikitextError as e:
            if verbose:
                logger.debug("set_title: %s", e)
            return False
        assert isinstance(t, Title)
        self.title = t
        return True

    def _format_title(self) -> str:
        if self.title.namespace == self.site.titles.ns_template:
            return self.title.get_main_text()
        return self.title.get_prefixed_text(colon=True)

    def stringify(
        self,
        prepend: Optional[str] = None,
        append: Optional[str] = None,
        sort_key: Optional[Callable[[TemplateParameter], Any]] = None,
        br_predicate_title: Optional[Callable[[Any], bool]] = None,
        br_predicate_param: Optional[Callable[[TemplateParameter],
                                              bool]] = None,
    ) -> str:
        return self._stringify(
            self._format_title(),
            prepend,
            append,
            sort_key,
            br_predicate_title,
            br_predicate_param,
        )

    def __repr__(self) -> str:
        return "<{} {!r}>".format(type(self).__name__, str(self.title))


class ParsedSourceMixin(Parsed):
    """Raw-text bookkeeping shared by the parsed double-brace types.  An
    object keeps the raw title and parameter text it was parsed from and
    reuses them when stringified until the corresponding fields change."""

    _source: TemplateSource
    _hierarchy_map: Optional[dict[str, list[list[str]]]]
    nest_level: int
    site: "Site"

    def _init_source(
        self,
        source: TemplateSource,
        hierarchies: Optional[dict[str, list[list[str]]]],
    ) -> None:
        self._source = source
        self._hierarchy_map = hierarchies
        self._set_position(source)
        self.nest_level = source.nest_level

    def _load_params(self, source: TemplateSource) -> None:
        """Registers the parsed parameters, remembering for each live key
        the slot text it came from."""
        self._raw_param_text: dict[str, str] = {}
        for slot in source.params:
            key = slot.key.strip() or self._find_numeric_key()
            self._register_param(
                slot.key, slot.value, overwrite=True, append=True,
                list_duplicates=True,
            )
            if key in self.params:
                self._raw_param_text[key] = slot.text

    def _unchanged_param_texts(self) -> dict[str, str]:
        before = {p.key: p for p in self._param_snapshot}
        ret = {}
        for key, text in self._raw_param_text.items():
            old = before.get(key)
            new = self.params.get(key)
            if (
                old is not None
                and new is not None
                and (old.value, old.unnamed) == (new.value, new.unnamed)
            ):
                ret[key] = text
        return ret

    def rebuild(
        self, hierarchies: Optional[dict[str, list[list[str]]]] = None
    ) -> Any:
        """Creates a fresh copy from the parse-time state, applying
        the given parameter hierarchies."""
        return type(self)(
            copy.deepcopy(self._source), hierarchies, site=self.site
        )


def _hierarchies_for(
    hierarchies: Optional[dict[str, list[list[str]]]], key: str
) -> list[list[str]]:
    if hierarchies and key in hierarchies:
        return [list(h) for h in hierarchies[key]]
    return []


class ParsedTemplate(ParsedSourceMixin, Template):
    """A Template recovered from wikitext by Wikitext.parse_templates()."""

    site: "Site"

    def __init__(
        self,
        source: TemplateSource,
        hierarchies: Optional[dict[str, list[list[str]]]] = None,
        site: Optional["Site"] = None,
    ) -> None:
        site = site or _default_site()
        t = validate_template_title(site, source.title)
        assert isinstance(t, Title)
        TemplateBase.__init__(
            self, site, t, (),
            _hierarchies_for(hierarchies, t.get_prefixed_db()),
        )
        self._init_source(source, hierarchies)
        self._load_params(source)
        self.raw_title = source.raw_title
        if source.raw_title == source.title:
            self._title_split: Optional[tuple[str, str]] = whitespace_split(
                source.title
            )
        else:
            self._title_split = source.title_split
        self._source_title: Optional[Title] = (
            None if source.title_changed else t
        )
        self._raw_params = [slot.text for slot in source.params]
        self._param_snapshot = self._param_state()

    def to_parser_function(
        self, title: Union[str, Title], verbose: bool = False
    ) -> Optional["ParsedParserFunction"]:
        return _convert(self, title, ParsedParserFunction, verbose)

    def stringify(
        self,
        raw_title: bool = True,
        prepend: Optional[str] = None,
        append: Optional[str] = None,
        sort_key: Optional[Callable[[TemplateParameter], Any]] = None,
        br_predicate_title: Optional[Callable[[Any], bool]] = None,
        br_predicate_param: Optional[Callable[[TemplateParameter],
                                              bool]] = None,
    ) -> str:
        title = self._format_title()
        if raw_title:
            if self.title is self._source_title:
                title = self.raw_title
            elif self._title_split is not None:
                left, right = self._title_split
                title = left + title + right
        raw_params = None
        param_texts = None
        if sort_key is None and br_predicate_param is None:
            if self._param_state() == self._param_snapshot:
                raw_params = self._raw_params
            else:
                param_texts = self._unchanged_param_texts()
        return self._stringify(
            title,
            prepend,
            append,
            sort_key,
            br_predicate_title,
            br_predicate_param,
            raw_params,
            param_texts,
        )


class RawTemplate(ParsedSourceMixin, TemplateBase):
    """A double-brace construct whose title is neither a valid page title
    nor a function hook, e.g. "{{{{{1}}}|x}}".  ``title`` is a string."""

    title: str
    site: "Site"

    def __init__(
        self,
        source: TemplateSource,
        hierarchies: Optional[dict[str, list[list[str]]]] = None,
        site: Optional["Site"] = None,
    ) -> None:
        site = site or _default_site()
        TemplateBase.__init__(
            self, site, source.title, (),
            _hierarchies_for(hierarchies, source.title),
        )
        self._init_source(source, hierarchies)
        self._load_params(source)
        self.raw_title = source.raw_title
        if source.raw_title == source.title:
            self._title_split: Optional[tuple[str, str]] = None
        else:
            self._title_split = source.title_split
        self._source_title = None if source.title_changed else source.title
        self._raw_params = [slot.text for slot in source.params]
        self._param_snapshot = self._param_state()

    def set_title(self, title: str) -> "RawTemplate":
        if not isinstance(title, str):
            raise TypeError("Expected a string title, got {!r}".format(title))
        self.title = title
        return self

    def to_template(
        self, title: Union[str, Title], verbose: bool = False
    ) -> Optional[ParsedTemplate]:
        return _convert(self, title, ParsedTemplate, verbose)

    def to_parser_function(
        self, title: Union[str, Title], verbose: bool = False
    ) -> Optional["ParsedParserFunction"]:
        return _convert(self, title, ParsedParserFunction, verbose)

    def stringify(
        self,
        raw_title: bool = True,
        prepend: Optional[str] = None,
        append: Optional[str] = None,
        sort_key: Optional[Callable[[TemplateParameter], Any]] = None,
        br_predicate_title: Optional[Callable[[Any], bool]] = None,
        br_predicate_param: Optional[Callable[[TemplateParameter],
                                              bool]] = None,
    ) -> str:
        title = self.title
        if raw_title:
            if self.title == self._source_title:
                title = self.raw_title
            elif self._title_split is not None:
                left, right = self._title_split
                title = left + title + right
        raw_params = None
        param_texts = None
        if sort_key is None and br_predicate_param is None:
            if self._param_state() == self._param_snapshot:
                raw_params = self._raw_params
            else:
                param_texts = self._unchanged_param_texts()
        return self._stringify(
            title,
            prepend,
            append,
            sort_key,
            br_predicate_title,
            br_predicate_param,
            raw_params,
            param_texts,
        )

    def __repr__(self) -> str:
        return "<RawTemplate {!r}>".format(self.title)


class ParamList:
    """Positional parameters kept in a list, as in parser functions and
    file links."""

    params: list[str]

    def add_param(self, param: str) -> "ParamList":
        self.params.append(param)
        return self

    def set_param(
        self,
        param: str,
        index: int,
        overwrite: bool = True,
        ifexist: bool = False,
    ) -> bool:
        """Sets the parameter at ``index``.  With ``ifexist`` nothing is
        set unless a parameter is already there; without ``overwrite`` an
        existing parameter is left alone.  Gaps are filled with empty
        parameters."""
        exists = 0 <= index < len(self.params)
        if (not exists and ifexist) or (exists and not overwrite):
            return False
        if index < 0:
            return False
        while len(self.params) <= index:
            self.params.append("")
        self.params[index] = param
        return True

    def get_param(self, index: int) -> Optional[str]:
        if 0 <= index < len(self.params):
            return self.params[index]
        return None

    def has_param(
        self,
        index: Union[int, Callable[[int, str], bool]],
        value: Union[None, str, re.Pattern[str]] = None,
    ) -> bool:
        if callable(index):
            return any(index(i, v) for i, v in enumerate(self.params))
        if not isinstance(index, int) or not 0 <= index < len(self.params):
            return False
        if value is None:
            return True
        if isinstance(value, str):
            return self.params[index] == value
        return bool(value.search(self.params[index]))

    def delete_param(self, index: int, left_shift: bool = True) -> bool:
        """Deletes a parameter.  Without ``left_shift`` the slot is kept
        as an empty parameter so later positions do not change."""
        if not 0 <= index < len(self.params):
            return False
        if left_shift:
            del self.params[index]
        else:
            self.params[index] = ""
        return True


class ParserFunction(ParamList):
    """A parser function call such as {{#if:a|b|c}}.  The first element
    of ``params`` is the text between the hook and the first pipe."""

    def __init__(
        self,
        hook: str,
        params: Iterable[str] = (),
        site: Optional["Site"] = None,
    ) -> None:
        self.site = site or _default_site()
        verified = self.site.parser_functions.verify(hook)
        if verified is None:
            raise InvalidHookError(
                "hook", "{!r} is not a valid function hook.".format(hook)
            )
        self.hook = verified.match
        self.canonical_hook = verified.canonical
        self.params: list[str] = list(params)

    @classmethod
    def new(
        cls,
        hook: str,
        params: Iterable[str] = (),
        site: Optional["Site"] = None,
    ) -> Optional["ParserFunction"]:
        try:
            return cls(hook, params, site=site)
        except WikitextError as e:
            logger.debug("ParserFunction.new: %s", e)
            return None

    @staticmethod
    def verify(
        hook: str, site: Optional["Site"] = None
    ) -> Optional[VerifiedHook]:
        return (site or _default_site()).parser_functions.verify(hook)

    def set_hook(self, hook: str) -> bool:
        verified = self.site.parser_functions.verify(hook)
        if verified is None:
            return False
        self.hook = verified.match
        self.canonical_hook = verified.canonical
        return True

    def _stringify(
        self,
        hook: str,
        prepend: str = "",
        sort_key: Optional[Callable[[str], Any]] = None,
        br_predicate: Optional[Callable[[str, int], bool]] = None,
    ) -> str:
        params = list(self.params)
        if sort_key is not None:
            params.sort(key=sort_key)
        if br_predicate is not None:
            params = [
                p + "\n" if br_predicate(p, i) else p
                for i, p in enumerate(params)
            ]
        return "{{" + prepend + hook + "|".join(params) + "}}"

    def stringify(
        self,
        use_canonical: bool = False,
        prepend: str = "",
        sort_key: Optional[Callable[[str], Any]] = None,
        br_predicate: Optional[Callable[[str, int], bool]] = None,
    ) -> str:
        hook = self.canonical_hook if use_canonical else self.hook
        return self._stringify(hook, prepend, sort_key, br_predicate)

    def __str__(self) -> str:
        return self.stringify()

    def __repr__(self) -> str:
        return "<{} {!r}>".format(type(self).__name__, self.canonical_hook)


class ParsedParserFunction(ParsedSourceMixin, ParserFunction):
    """A ParserFunction recovered from wikitext.  ``raw_hook`` is the
    title slot as written up to the end of the hook."""

    site: "Site"

    def __init__(
        self,
        source: TemplateSource,
        hierarchies: Optional[dict[str, list[list[str]]]] = None,
        site: Optional["Site"] = None,
    ) -> None:
        site = site or _default_site()
        verified = site.parser_functions.verify(source.title)
        if verified is None:
            raise InvalidHookError(
                "hook",
                "{!r} is not a valid function hook.".format(source.title),
            )
        match = verified.match
        title = source.title
        raw = source.raw_title
        hook_end = -1
        hook_split: Optional[tuple[str, str]] = None
        if source.title_split is not None:
            left, right = source.title_split
            idx = title.find(match)
            first = title[idx + len(match):].strip() + right
            hook_end = len(left) + idx + len(match)
            hook_split = (raw[: hook_end - len(match)], "")
        else:
            # The hook is interrupted by embedded expressions, e.g.
            # "#<!-- -->if:", or preceded by whitespace
            j = 0
            for i, ch in enumerate(raw):
                if ch == match[j]:
                    j += 1
                    if j == len(match):
                        hook_end = i + 1
                        if raw[hook_end - j:hook_end] == match:
                            hook_split = (raw[: hook_end - j], "")
                        break
            if hook_end == -1:
                raise InvalidHookError(
                    "unparsablehook",
                    "Unable to locate the hook {!r} in {!r}.".format(
                        match, raw
                    ),
                    {"title": title, "raw_title": raw, "hook": match},
                )
            first = raw[hook_end:]
        params = [first]
        params.extend(
            (slot.key + "=" if slot.named else "") + slot.value
            for slot in source.params
        )
        ParserFunction.__init__(self, title, params, site=site)
        self._init_source(source, hierarchies)
        self._source_raw_hook = raw[:hook_end]
        self._hook_split = hook_split
        self._source_hook = None if source.title_changed else self.hook
        self._raw_params = [
            first if source.title_changed else raw[hook_end:]
        ]
        self._raw_params.extend(slot.text for slot in source.params)
        self._param_snapshot = list(self.params)

    @property
    def raw_hook(self) -> str:
        if self.hook == self._source_hook:
            return self._source_raw_hook
        prefix = self._hook_split[0] if self._hook_split is not None else ""
        return prefix + self.hook

    def to_template(
        self, title: Union[str, Title], verbose: bool = False
    ) -> Optional[ParsedTemplate]:
        return _convert(self, title, ParsedTemplate, verbose)

    def stringify(
        self,
        raw_hook: bool = True,
        use_canonical: bool = False,
        prepend: str = "",
        sort_key: Optional[Callable[[str], Any]] = None,
        br_predicate: Optional[Callable[[str, int], bool]] = None,
    ) -> str:
        hook = self.canonical_hook if use_canonical else self.hook
        if raw_hook:
            if not use_canonical:
                hook = self.raw_hook
            elif self._hook_split is not None:
                hook = self._hook_split[0] + hook
        if (
            sort_key is None
            and br_predicate is None
            and self.params == self._param_snapshot
        ):
            return "{{" + prepend + hook + "".join(self._raw_params) + "}}"
        return self._stringify(hook, prepend, sort_key, br_predicate)


def _convert(obj: Any, title: Union[str, Title], cls: type,
             verbose: bool) -> Any:
    """Re-creates a parsed double-brace object as another type, keeping
    its position metadata and parameters."""
    if isinstance(title, Title):
        title = title.get_prefixed_db(colon=True, fragment=True)
    try:
        if cls is ParsedParserFunction:
            if obj.site.parser_functions.verify(title) is None:
                raise InvalidHookError(
                    "hook", "{!r} is not a valid function hook.".format(title)
                )
        else:
            validate_template_title(obj.site, title)
        source = copy.deepcopy(obj._source)
        source.title = title
        source.title_changed = True
        if source.title_split is None and source.raw_title == source.title:
            source.title_split = whitespace_split(source.raw_title)
        return cls(source, obj._hierarchy_map, site=obj.site)
    except WikitextError as e:
        if verbose:
            logger.debug("conversion to %s failed: %s", cls.__name__, e)
        return None
