# Parsing and normalization of page titles
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org
#
# The title grammar follows MediaWiki's TitleParser::splitTitleString()
# and the client-side mediawiki.Title module, extended with interwiki
# prefix handling.

import re
from typing import TYPE_CHECKING, Iterable, NamedTuple, Optional, Union

from lru import LRU

from .common import BIDI_RE, byte_length, clean, trim_byte_length
from .errors import InvalidTitleError
from .siteconfig import SiteConfig

if TYPE_CHECKING:
    from .site import Site

TITLE_MAX_BYTES = 255
FILENAME_MAX_BYTES = 240

UNDERSCORE_TRIM_RE = re.compile(r"^_+|_+$")
SPLIT_RE = re.compile(r"^(.+?)_*:_*(.*)$")
PREFIX_SPLIT_RE = re.compile(r"_*:_*")
# Not the same as \s: underscore is included, tab is not
WHITESPACE_RE = re.compile(
    "[ _\u00a0\u1680\u180e\u2000-\u200a\u2028\u2029\u202f\u205f\u3000]+"
)
INVALID_RE = re.compile(
    "[^ %!\"$&'()*,\\-./0-9:;=?@A-Z\\\\^_`a-z~+\u0080-\U0010ffff]"
    # URL percent encoding sequences cannot be linked to consistently
    "|%[0-9A-Fa-f]{2}"
    # and neither can XML/HTML character references
    "|&[0-9A-Za-z\u0080-\U0010ffff]+;"
)

# (pattern, replacement, applies to all titles, applies to file names)
SANITATION_RULES: tuple[tuple[re.Pattern[str], str, bool, bool], ...] = (
    (re.compile(r"~{3}"), "", True, False),
    (re.compile(r"[\x00-\x1f\x7f]"), "", True, False),
    (re.compile(r"%([0-9A-Fa-f]{2})"), r"% \1", True, False),
    (
        re.compile(r"&(([0-9A-Za-z\x80-\xff]+|#\d+|#x[0-9A-Fa-f]+);)"),
        r"& \1",
        True,
        False,
    ),
    (re.compile(r"[:/\\]"), "-", False, True),
    (re.compile(r"[}\]>]"), ")", True, False),
    (re.compile(r"[{\[<]"), "(", True, False),
    (INVALID_RE, "-", True, False),
    (
        re.compile(
            r"^(\.|\.\.|\./.*|\.\./.*|.*/\./.*|.*/\.\./.*|.*/\.|.*/\.\.)$"
        ),
        "",
        True,
        False,
    ),
)

EXTENSION_NORMALIZATIONS = {
    "htm": "html",
    "jpeg": "jpg",
    "mpeg": "mpg",
    "tiff": "tif",
    "ogv": "ogg",
}

# Characters for which PHP's mb_strtoupper() gives a different result
# than str.upper().  A character mapped to itself is left unchanged.
# Characters that str.upper() would expand into several characters are
# left unchanged unless they are listed here.
PHP_UPPER_OVERRIDES: dict[str, str] = {
    "ß": "ß",
    "ǅ": "ǅ",
    "ǆ": "ǅ",
    "ǈ": "ǈ",
    "ǉ": "ǈ",
    "ǋ": "ǋ",
    "ǌ": "ǋ",
    "ǲ": "ǲ",
    "ǳ": "ǲ",
    "ᾳ": "ᾼ",
    "ῃ": "ῌ",
    "ῳ": "ῼ",
}
for _lower, _title in (("ᾀ", "ᾈ"), ("ᾐ", "ᾘ"), ("ᾠ", "ᾨ")):
    for _i in range(8):
        PHP_UPPER_OVERRIDES[chr(ord(_lower) + _i)] = chr(ord(_title) + _i)
        PHP_UPPER_OVERRIDES[chr(ord(_title) + _i)] = chr(ord(_title) + _i)

PHP_LOWER_OVERRIDES: dict[str, str] = {
    "İ": "i",
}


class ParsedTitle(NamedTuple):
    namespace: int
    title: str
    fragment: Optional[str]
    colon: str
    interwiki: str
    local_interwiki: bool


class ExistenceRegistry:
    """Remembers whether pages exist.  One registry belongs to each
    Site; nothing in this package fills it, callers do."""

    __slots__ = ("pages",)

    def __init__(self) -> None:
        self.pages: dict[str, bool] = {}

    def set(
        self, titles: Union[str, "Title", Iterable[Union[str, "Title"]]],
        state: bool = True,
    ) -> None:
        if isinstance(titles, (str, Title)):
            titles = [titles]
        for title in titles:
            self.pages[str(title)] = bool(state)

    def get(self, title: Union[str, "Title"]) -> Optional[bool]:
        if not isinstance(title, (str, Title)):
            raise TypeError(
                "title must be a string or a Title, got {!r}".format(title)
            )
        return self.pages.get(str(title))

    def clear(self) -> None:
        self.pages.clear()


class TitleResolver:
    """Turns title strings into Title objects according to the namespace
    and interwiki tables of one wiki."""

    __slots__ = (
        "config",
        "existence",
        "ns_main",
        "ns_talk",
        "ns_special",
        "ns_media",
        "ns_file",
        "ns_template",
        "local_interwikis",
        "parse_cache",
    )

    def __init__(
        self,
        config: SiteConfig,
        existence: Optional[ExistenceRegistry] = None,
        cache_size: int = 1000,
    ) -> None:
        self.config = config
        self.existence = existence if existence is not None else (
            ExistenceRegistry()
        )
        ids = config.namespace_ids
        self.ns_main: int = ids.get("", 0)
        self.ns_talk: int = ids.get("talk", 1)
        self.ns_special: int = ids.get("special", -1)
        self.ns_media: int = ids.get("media", -2)
        self.ns_file: int = ids.get("file", 6)
        self.ns_template: int = ids.get("template", 10)
        self.local_interwikis: list[str] = config.local_interwikis
        self.parse_cache = LRU(cache_size)

    # Case conversion

    @staticmethod
    def php_char_to_upper(ch: str) -> str:
        mapped = PHP_UPPER_OVERRIDES.get(ch)
        if mapped is not None:
            return mapped
        upper = ch.upper()
        return upper if len(upper) == 1 else ch

    @staticmethod
    def php_char_to_lower(ch: str) -> str:
        mapped = PHP_LOWER_OVERRIDES.get(ch)
        if mapped is not None:
            return mapped
        lower = ch.lower()
        return lower if len(lower) == 1 else ch

    @staticmethod
    def uc(text: str) -> str:
        return "".join(map(TitleResolver.php_char_to_upper, text))

    @staticmethod
    def lc(text: str) -> str:
        return "".join(map(TitleResolver.php_char_to_lower, text))

    @staticmethod
    def clean(text: str, trim: bool = True) -> str:
        return clean(text, trim)

    @staticmethod
    def is_talk_namespace(namespace: int) -> bool:
        return namespace > 0 and namespace % 2 == 1

    @staticmethod
    def normalize_extension(extension: str) -> str:
        lower = extension.lower()
        if lower in EXTENSION_NORMALIZATIONS:
            return EXTENSION_NORMALIZATIONS[lower]
        if re.fullmatch(r"[0-9a-z]+", lower):
            return lower
        return ""

    # Namespace and interwiki tables

    def get_ns_id_by_name(self, name: str) -> Optional[int]:
        return self.config.namespace_ids.get(name.lower())

    def is_known_namespace(self, namespace: int) -> bool:
        return (
            namespace == self.ns_main
            or namespace in self.config.formatted_namespaces
        )

    def get_namespace_prefix(self, namespace: int) -> str:
        if namespace == self.ns_main:
            return ""
        return self.config.formatted_namespaces[namespace].replace(
            " ", "_"
        ) + ":"

    def get_interwiki_prefix(self, prefix: str) -> Optional[str]:
        """Returns the lowercased prefix if it is a known interwiki."""
        prefix = self.lc(prefix)
        if prefix in self.config.interwiki_map:
            return prefix
        return None

    def get_subject(self, namespace: int) -> int:
        if namespace < self.ns_main:
            return namespace
        if self.is_talk_namespace(namespace):
            return namespace - 1
        return namespace

    def is_capitalized(self, namespace: int) -> bool:
        if namespace == self.ns_media:
            namespace = self.ns_file
        namespace = self.get_subject(namespace)
        if namespace in self.config.capitalized_namespaces:
            return True
        if namespace in self.config.case_sensitive_namespaces:
            return False
        return self.config.case == "first-letter"

    # Parsing

    def parse(
        self, text: str, default_namespace: int = 0
    ) -> Optional[ParsedTitle]:
        """Splits a title string into its parts, or returns None if the
        string is not a valid title.  Results are cached."""
        key = (text, default_namespace)
        if key in self.parse_cache:
            return self.parse_cache[key]
        ret = self._parse(text, default_namespace)
        self.parse_cache[key] = ret
        return ret

    def _parse(
        self, title: str, default_namespace: int
    ) -> Optional[ParsedTitle]:
        namespace = default_namespace or self.ns_main
        title = BIDI_RE.sub("", title)
        title = WHITESPACE_RE.sub("_", title)
        title = UNDERSCORE_TRIM_RE.sub("", title)
        if "\ufffd" in title:
            return None

        # Initial colon means main namespace instead of the default
        colon = ""
        if title.startswith(":"):
            namespace = self.ns_main
            title = UNDERSCORE_TRIM_RE.sub("", title[1:])
            colon = ":"
        if title == "":
            return None

        parts = PREFIX_SPLIT_RE.split(title)
        iw: list[str] = []
        local_interwiki = False
        if len(parts) > 1:
            ns: Optional[int] = None
            title = parts[-1]
            for i in range(len(parts) - 2, -1, -1):
                ns_id = self.get_ns_id_by_name(parts[i])
                iw_prefix = self.get_interwiki_prefix(parts[i])
                if ns_id is not None and iw_prefix is not None:
                    if ns is not None or iw:
                        # A prefix was processed already, so this one is
                        # an interwiki
                        if iw_prefix in self.local_interwikis:
                            local_interwiki = True
                        else:
                            ns = self.ns_main
                            title = ":".join(parts[i + len(iw) + 1:])
                            iw.insert(0, iw_prefix)
                    else:
                        ns = ns_id
                elif ns_id is not None:
                    if ns_id == self.ns_main:
                        # "::" in the title
                        title = ":" + title
                    elif ns == self.ns_talk:
                        # Talk:File:x
                        return None
                    else:
                        if iw:
                            # Talk:Interwiki:x
                            if ns_id == self.ns_talk:
                                return None
                            # "Wikipedia:en:Foo" is "en:Foo" in the
                            # Wikipedia namespace
                            iw = []
                            local_interwiki = False
                            title = ":".join(parts[i + 1:])
                        elif ns is not None:
                            # "Category:Template:Foo"
                            title = ":".join(parts[i + 1:])
                        ns = ns_id
                elif iw_prefix is not None:
                    if iw_prefix in self.local_interwikis:
                        local_interwiki = True
                    else:
                        ns = self.ns_main
                        title = ":".join(parts[i + len(iw) + 1:])
                        iw.insert(0, iw_prefix)
                elif ns is None and not iw:
                    title = parts[i] + ":" + title
            namespace = ns if ns is not None else self.ns_main

        interwiki = ":".join(iw)
        if title == "":
            if iw:
                # "mw:" goes to the main page of the other wiki
                return ParsedTitle(
                    self.ns_main, "Main_page", None, colon, interwiki, True
                )
            return None

        fragment: Optional[str] = None
        i = title.find("#")
        if i >= 0:
            # Not trimmed: "Example#_foo" differs from "Example#foo"
            fragment = title[i + 1:].replace("_", " ")
            title = UNDERSCORE_TRIM_RE.sub("", title[:i])

        if INVALID_RE.search(title):
            return None
        if "." in title and (
            title in (".", "..")
            or title.startswith("./")
            or title.startswith("../")
            or "/./" in title
            or "/../" in title
            or title.endswith("/.")
            or title.endswith("/..")
        ):
            return None
        if "~~~" in title:
            return None
        if (
            namespace != self.ns_special
            and byte_length(title) > TITLE_MAX_BYTES
        ):
            return None
        if title.startswith(":"):
            return None
        return ParsedTitle(
            namespace, title, fragment, colon, interwiki, local_interwiki
        )

    # Factories

    def make(self, text: str, namespace: int = 0) -> "Title":
        """Strict constructor: raises InvalidTitleError on failure."""
        parsed = self.parse(text, namespace)
        if parsed is None:
            raise InvalidTitleError(
                "invalidtitle",
                "Unable to parse title {!r}.".format(text),
                {"title": text, "namespace": namespace},
            )
        return Title(self, parsed)

    def new_from_text(
        self, text: str, namespace: int = 0
    ) -> Optional["Title"]:
        parsed = self.parse(text, namespace)
        if parsed is None:
            return None
        return Title(self, parsed)

    def make_title(
        self,
        namespace: int,
        title: str,
        fragment: str = "",
        interwiki: str = "",
    ) -> Optional["Title"]:
        if not self.is_known_namespace(namespace):
            return None
        if fragment and not fragment.startswith("#"):
            fragment = "#" + fragment
        if interwiki and not re.search(r":[^\S\r\n]*$", interwiki):
            interwiki += ":"
        return self.new_from_text(
            interwiki + self.get_namespace_prefix(namespace) + title + fragment
        )

    def sanitize(self, text: str, file_rules: bool = False) -> str:
        for pattern, replacement, general, for_files in SANITATION_RULES:
            if general or (file_rules and for_files):
                text = pattern.sub(replacement, text)
        return text

    def new_from_user_input(
        self,
        title: str,
        default_namespace: int = 0,
        for_uploading: bool = True,
    ) -> Optional["Title"]:
        """Sanitizes free-form input into a usable title.  For media and
        (when ``for_uploading``) file titles the extension is required and
        the name is cut to the file name byte limit."""
        namespace = default_namespace or self.ns_main
        title = re.sub(r"\s", " ", title).strip()
        if title.startswith(":"):
            namespace = self.ns_main
            title = UNDERSCORE_TRIM_RE.sub("", title[1:])
        m = SPLIT_RE.match(title)
        if m:
            ns_id = self.get_ns_id_by_name(m.group(1))
            if ns_id is not None:
                namespace = ns_id
                title = m.group(2)
        if namespace == self.ns_media or (
            for_uploading and namespace == self.ns_file
        ):
            title = self.sanitize(title, file_rules=True)
            last_dot = title.rfind(".")
            if last_dot == -1 or last_dot >= len(title) - 1:
                return None
            ext = title[last_dot + 1:]
            title = title[:last_dot].strip()
            title = trim_byte_length(
                title, FILENAME_MAX_BYTES - len(ext) - 1
            ) + "." + ext
        else:
            title = self.sanitize(title)
            if namespace != self.ns_special:
                title = trim_byte_length(title, TITLE_MAX_BYTES)
        title = title.lstrip(":")
        return self.new_from_text(title, namespace)

    def new_from_file_name(self, name: str) -> Optional["Title"]:
        return self.new_from_user_input("File:" + name)

    def exists(self, title: Union[str, "Title"]) -> Optional[bool]:
        return self.existence.get(title)


class Title:
    """A parsed page title.  Titles are immutable; use the resolver (or
    the class methods below) to make new ones."""

    __slots__ = (
        "_resolver",
        "namespace",
        "title",
        "fragment",
        "colon",
        "interwiki",
        "local_interwiki",
    )

    def __init__(self, resolver: TitleResolver, parsed: ParsedTitle) -> None:
        self._resolver = resolver
        self.namespace = parsed.namespace
        self.title = parsed.title
        self.fragment = parsed.fragment
        self.colon = parsed.colon
        self.interwiki = parsed.interwiki
        self.local_interwiki = parsed.local_interwiki

    @classmethod
    def new_from_text(
        cls, text: str, namespace: int = 0, site: Optional["Site"] = None
    ) -> Optional["Title"]:
        from .site import default_site

        return (site or default_site()).titles.new_from_text(text, namespace)

    @classmethod
    def new_from_user_input(
        cls,
        text: str,
        namespace: int = 0,
        for_uploading: bool = True,
        site: Optional["Site"] = None,
    ) -> Optional["Title"]:
        from .site import default_site

        return (site or default_site()).titles.new_from_user_input(
            text, namespace, for_uploading
        )

    @classmethod
    def new_from_file_name(
        cls, name: str, site: Optional["Site"] = None
    ) -> Optional["Title"]:
        from .site import default_site

        return (site or default_site()).titles.new_from_file_name(name)

    @classmethod
    def make_title(
        cls,
        namespace: int,
        title: str,
        fragment: str = "",
        interwiki: str = "",
        site: Optional["Site"] = None,
    ) -> Optional["Title"]:
        from .site import default_site

        return (site or default_site()).titles.make_title(
            namespace, title, fragment, interwiki
        )

    @property
    def resolver(self) -> TitleResolver:
        return self._resolver

    def __deepcopy__(self, memo) -> "Title":
        return self

    def had_leading_colon(self) -> bool:
        return self.colon != ""

    def is_external(self) -> bool:
        return self.interwiki != ""

    def _interwiki_flags(self, flag: str) -> Optional[bool]:
        # All prefixes must be known for the answer to mean anything
        interwiki_map = self._resolver.config.interwiki_map
        prefixes = self.interwiki.split(":")
        entries = [interwiki_map[p] for p in prefixes if p in interwiki_map]
        if len(entries) != len(prefixes):
            return None
        return all(bool(entry.get(flag)) for entry in entries)

    def is_local(self) -> bool:
        if self.is_external():
            ret = self._interwiki_flags("local")
            if ret is not None:
                return ret
        return True

    def is_trans(self) -> bool:
        if not self.is_external():
            return False
        return bool(self._interwiki_flags("trans"))

    def get_interwiki(self) -> str:
        return self.interwiki + ":" if self.interwiki else ""

    def was_local_interwiki(self) -> bool:
        return self.local_interwiki

    def get_namespace_id(self) -> int:
        return self.namespace

    def get_namespace_prefix(self) -> str:
        return self._resolver.get_namespace_prefix(self.namespace)

    def get_extension(self) -> Optional[str]:
        last_dot = self.title.rfind(".")
        if last_dot == -1:
            return None
        return self.title[last_dot + 1:] or None

    def get_file_name_without_extension(self) -> str:
        ext = self.get_extension()
        if ext is None:
            return self.get_main()
        return self.get_main()[: -len(ext) - 1]

    def get_file_name_text_without_extension(self) -> str:
        return self.get_file_name_without_extension().replace("_", " ")

    def get_main(self) -> str:
        resolver = self._resolver
        if (
            self.namespace in resolver.config.case_sensitive_namespaces
            or not self.title
            # Interwiki targets may be case-sensitive
            or not (
                self.interwiki == ""
                and resolver.is_capitalized(self.namespace)
            )
        ):
            return self.title
        return resolver.php_char_to_upper(self.title[0]) + self.title[1:]

    def get_main_text(self) -> str:
        return self.get_main().replace("_", " ")

    def get_prefixed_db(
        self, colon: bool = False, interwiki: bool = True,
        fragment: bool = False,
    ) -> str:
        frag = (self.fragment or "") if fragment else ""
        return (
            (self.colon if colon else "")
            + (self.get_interwiki() if interwiki else "")
            + self.get_namespace_prefix()
            + self.get_main()
            + ("#" + frag if frag else "")
        )

    def get_prefixed_text(
        self, colon: bool = False, interwiki: bool = True,
        fragment: bool = False,
    ) -> str:
        frag = (self.fragment or "") if fragment else ""
        rest = self.get_namespace_prefix() + self.get_main()
        if frag:
            rest += "#" + frag
        # Interwiki prefixes may contain underscores that must stay
        return (
            (self.colon if colon else "")
            + (self.get_interwiki() if interwiki else "")
            + rest.replace("_", " ")
        )

    def get_relative_text(self, namespace: int) -> str:
        if self.namespace == namespace:
            return self.get_main_text()
        if self.namespace == self._resolver.ns_main:
            return ":" + self.get_prefixed_text(interwiki=False)
        return self.get_prefixed_text(interwiki=False)

    def get_fragment(self) -> Optional[str]:
        return self.fragment

    def is_talk_page(self) -> bool:
        return self._resolver.is_talk_namespace(self.namespace)

    def can_have_talk_page(self) -> bool:
        return self.namespace >= self._resolver.ns_main

    def get_talk_page(self) -> Optional["Title"]:
        if not self.can_have_talk_page() or self.is_external():
            return None
        if self.is_talk_page():
            return self
        return self._resolver.make_title(
            self.namespace + 1, self.get_main_text(), "", self.interwiki
        )

    def get_subject_page(self) -> Optional["Title"]:
        if self.is_external():
            return None
        if not self.is_talk_page():
            return self
        return self._resolver.make_title(
            self.namespace - 1, self.get_main_text(), "", self.interwiki
        )

    def exists(self) -> Optional[bool]:
        return self._resolver.exists(self)

    def equals(
        self, other: Union[str, "Title"], eval_fragment: bool = False
    ) -> Optional[bool]:
        """Compares prefixed db keys.  Returns None if ``other`` is a
        string that is not a valid title."""
        if not isinstance(other, Title):
            t = self._resolver.new_from_text(str(other))
            if t is None:
                return None
            other = t
        return self.get_prefixed_db(
            fragment=eval_fragment
        ) == other.get_prefixed_db(fragment=eval_fragment)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Title):
            return NotImplemented
        return bool(self.equals(other))

    def __hash__(self) -> int:
        return hash(self.get_prefixed_db())

    def to_text(self) -> str:
        return self.get_prefixed_text()

    def __str__(self) -> str:
        return self.get_prefixed_db()

    def __repr__(self) -> str:
        return "<Title {!r}>".format(self.get_prefixed_db(colon=True,
                                                          fragment=True))
