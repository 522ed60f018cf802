# A wiki's configuration bound together with its title and hook tables
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import logging
from functools import lru_cache
from typing import Optional

from .api import get_siteinfo
from .logging_utils import logger
from .siteconfig import SiteConfig
from .template import ParserFunctionTable
from .title import ExistenceRegistry, TitleResolver


class Site:
    """Everything that depends on which wiki the text comes from.  Each
    Wikitext and each template or link object is bound to one Site;
    the existence registry belongs to the Site and is shared by its
    titles."""

    __slots__ = ("config", "existence", "titles", "parser_functions")

    def __init__(
        self,
        config: Optional[SiteConfig] = None,
        lang_code: str = "en",
        quiet: bool = False,
        existence: Optional[ExistenceRegistry] = None,
    ) -> None:
        if not quiet:
            logger.setLevel(logging.DEBUG)
        self.config = config or SiteConfig.from_lang(lang_code)
        self.existence = existence if existence is not None else (
            ExistenceRegistry()
        )
        self.titles = TitleResolver(self.config, self.existence)
        self.parser_functions = ParserFunctionTable(
            self.config.magic_words, self.config.function_hooks
        )

    @classmethod
    def from_domain(cls, domain: str, quiet: bool = False) -> "Site":
        """Builds a Site from the live siteinfo of e.g. "fr.wikipedia.org"."""
        config = SiteConfig.from_siteinfo(get_siteinfo(domain))
        return cls(config, quiet=quiet)

    @property
    def lang_code(self) -> str:
        return self.config.lang_code

    def __deepcopy__(self, memo) -> "Site":
        return self

    def __repr__(self) -> str:
        return "<Site {!r}>".format(self.config.lang_code)


@lru_cache(maxsize=None)
def default_site() -> Site:
    """The English Wikipedia site from packaged data, created once."""
    return Site(quiet=True)
