# Read-only helpers for the MediaWiki action API
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

from typing import Any, Optional

import requests

from .errors import WikitextError

USER_AGENT = "wikitextsplice"
SITEINFO_PROPS = (
    "functionhooks|general|magicwords|interwikimap|namespaces|"
    "namespacealiases"
)


def api_url(domain: str) -> str:
    return f"https://{domain}/w/api.php"


def query(domain: str, params: dict[str, Any]) -> dict[str, Any]:
    """Sends a GET query and returns the decoded response.  Raises
    requests.HTTPError on HTTP failures and WikitextError if the API
    reports an error."""
    r = requests.get(
        api_url(domain),
        params={"action": "query", "format": "json", "formatversion": 2,
                **params},
        headers={"user-agent": USER_AGENT},
        timeout=30,
    )
    r.raise_for_status()
    results = r.json()
    if "error" in results:
        error = results["error"]
        raise WikitextError(
            "apierror",
            "{}: {}".format(error.get("code"), error.get("info")),
            {"domain": domain, "error": error},
        )
    return results


def get_siteinfo(domain: str) -> dict[str, Any]:
    """Returns the ``query`` member of a siteinfo response, the input
    of SiteConfig.from_siteinfo()."""
    return query(domain, {"meta": "siteinfo", "siprop": SITEINFO_PROPS})[
        "query"
    ]


def get_page_content(domain: str, title: str) -> Optional[str]:
    """Returns the current wikitext of a page, or None if the page does
    not exist."""
    results = query(
        domain,
        {
            "titles": title,
            "prop": "revisions",
            "rvprop": "content",
            "rvslots": "main",
        },
    )
    pages = results.get("query", {}).get("pages", [])
    if not pages or pages[0].get("missing") or pages[0].get("invalid"):
        return None
    revisions = pages[0].get("revisions", [])
    if not revisions:
        return None
    return revisions[0]["slots"]["main"]["content"]
