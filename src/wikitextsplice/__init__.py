# Package for parsing and splicing MediaWiki wikitext
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

from .api import get_page_content, get_siteinfo
from .core import Wikitext
from .errors import (
    InternalParseError,
    InvalidHookError,
    InvalidTitleError,
    ModificationError,
    WikitextError,
)
from .parser import Parameter, Section, Tag
from .site import Site, default_site
from .siteconfig import SiteConfig
from .template import (
    ParsedParserFunction,
    ParsedTemplate,
    ParserFunction,
    ParserFunctionTable,
    RawTemplate,
    Template,
    TemplateParameter,
)
from .title import ExistenceRegistry, Title, TitleResolver
from .wikilink import (
    FileWikilink,
    ParsedFileWikilink,
    ParsedRawWikilink,
    ParsedWikilink,
    RawWikilink,
    Wikilink,
)

__all__ = (
    "Wikitext",
    "Site",
    "default_site",
    "SiteConfig",
    "Title",
    "TitleResolver",
    "ExistenceRegistry",
    "Template",
    "ParsedTemplate",
    "RawTemplate",
    "ParserFunction",
    "ParsedParserFunction",
    "TemplateParameter",
    "ParserFunctionTable",
    "Wikilink",
    "ParsedWikilink",
    "FileWikilink",
    "ParsedFileWikilink",
    "RawWikilink",
    "ParsedRawWikilink",
    "Tag",
    "Section",
    "Parameter",
    "WikitextError",
    "InvalidTitleError",
    "InvalidHookError",
    "ModificationError",
    "InternalParseError",
    "get_siteinfo",
    "get_page_content",
)
