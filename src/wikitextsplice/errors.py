# Exceptions raised by the wikitext scanners and object model
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

from typing import Any, Optional


class WikitextError(Exception):
    """Base class for errors raised by this package.  ``code`` is a short
    machine-readable identifier and ``info`` a human-readable message;
    ``data`` optionally carries whatever context was available."""

    def __init__(
        self, code: str, info: str, data: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(info)
        self.code = code
        self.info = info
        self.data = data or {}

    def __str__(self) -> str:
        return "{}: {}".format(self.code, self.info)


class InvalidTitleError(WikitextError, ValueError):
    """A title could not be parsed, or is not acceptable in the context
    where it was given (e.g., a file title for a plain wikilink)."""


class InvalidHookError(WikitextError, ValueError):
    """A parser function hook did not verify against the magic word
    table, or a hook was given where a template title was expected."""


class ModificationError(WikitextError, TypeError):
    """The caller broke the contract of Wikitext.modify().  These are
    programming errors and are never swallowed."""


class InternalParseError(WikitextError, RuntimeError):
    """An internal invariant of the splice/reindex step was violated."""
