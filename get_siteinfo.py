import argparse
import json
import sys
from pathlib import Path

from wikitextsplice.api import get_siteinfo

SAVED_GENERAL_KEYS = {"mainpage", "sitename", "server", "articlepath",
                      "script", "wikiid", "lang", "case", "legaltitlechars"}


def main():
    """
    Get the siteinfo of a wiki from the MediaWiki API and save the parts
    the title resolver and the parser function table use as
    src/wikitextsplice/data/<lang_code>/siteinfo.json.
    """
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "domain", help="MediaWiki domain, for example: fr.wikipedia.org"
    )
    parser.add_argument("lang_code", help="MediaWiki language code")
    args = parser.parse_args()

    siteinfo = get_siteinfo(args.domain)
    general = siteinfo.get("general", {})
    for k in list(general):
        if k not in SAVED_GENERAL_KEYS:
            del general[k]

    data_folder = Path(f"src/wikitextsplice/data/{args.lang_code}")
    if not data_folder.exists():
        data_folder.mkdir(parents=True)
    with data_folder.joinpath("siteinfo.json").open(
        "w", encoding="utf-8"
    ) as f:
        json.dump(siteinfo, f, ensure_ascii=False, indent=2)


if __name__ == "__main__":
    sys.exit(main())
