# Site configuration: namespaces, interwikis and magic words
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import json
from dataclasses import dataclass, field
from importlib.resources import files
from typing import Any, TypedDict


class InterwikiEntry(TypedDict, total=False):
    prefix: str
    url: str
    local: bool
    localinterwiki: bool
    trans: bool
    language: str


class MagicWordEntry(TypedDict):
    name: str
    aliases: list[str]
    case_sensitive: bool


@dataclass
class SiteConfig:
    """Everything the title resolver and the parser function table need
    to know about a wiki.  Build it with from_lang() for packaged data or
    from_siteinfo() for a live siteinfo query result."""

    lang_code: str = "en"
    case: str = "first-letter"
    main_page: str = "Main Page"
    namespaces: dict[int, dict[str, Any]] = field(default_factory=dict)
    namespace_ids: dict[str, int] = field(default_factory=dict)
    formatted_namespaces: dict[int, str] = field(default_factory=dict)
    case_sensitive_namespaces: list[int] = field(default_factory=list)
    capitalized_namespaces: list[int] = field(default_factory=list)
    interwiki_map: dict[str, InterwikiEntry] = field(default_factory=dict)
    magic_words: list[MagicWordEntry] = field(default_factory=list)
    function_hooks: list[str] = field(default_factory=list)

    @classmethod
    def from_lang(cls, lang_code: str = "en") -> "SiteConfig":
        data_folder = files("wikitextsplice") / "data" / lang_code
        with data_folder.joinpath("siteinfo.json").open(
            encoding="utf-8"
        ) as f:
            query = json.load(f)
        return cls.from_siteinfo(query, lang_code=lang_code)

    @classmethod
    def from_siteinfo(
        cls, query: dict[str, Any], lang_code: str = ""
    ) -> "SiteConfig":
        """Derives the lookup tables from the ``query`` member of a
        formatversion=2 siteinfo response."""
        general = query.get("general", {})
        config = cls(
            lang_code=lang_code or general.get("lang", "en"),
            case=general.get("case", "first-letter"),
            main_page=general.get("mainpage", "Main Page"),
        )

        for data in query.get("namespaces", {}).values():
            ns_id = int(data["id"])
            config.namespaces[ns_id] = data
            name = data.get("name", "")
            config.formatted_namespaces[ns_id] = name
            config.namespace_ids[name.lower().replace(" ", "_")] = ns_id
            canonical = data.get("canonical")
            if canonical is not None:
                config.namespace_ids[
                    canonical.lower().replace(" ", "_")
                ] = ns_id
            if data.get("case") == "case-sensitive":
                config.case_sensitive_namespaces.append(ns_id)
            else:
                config.capitalized_namespaces.append(ns_id)

        for data in query.get("namespacealiases", []):
            alias = data["alias"].lower().replace(" ", "_")
            config.namespace_ids.setdefault(alias, int(data["id"]))

        for data in query.get("interwikimap", []):
            config.interwiki_map[data["prefix"]] = data

        for data in query.get("magicwords", []):
            config.magic_words.append(
                {
                    "name": data["name"],
                    "aliases": list(data.get("aliases", [])),
                    "case_sensitive": bool(data.get("case-sensitive")),
                }
            )
        config.function_hooks = list(query.get("functionhooks", []))
        return config

    def get_ns_id(self, name: str) -> int:
        """Namespace id for a localized, canonical or alias name; raises
        KeyError when the name is unknown."""
        return self.namespace_ids[name.lower().replace(" ", "_")]

    @property
    def local_interwikis(self) -> list[str]:
        return [
            prefix
            for prefix, entry in self.interwiki_map.items()
            if entry.get("localinterwiki")
        ]
