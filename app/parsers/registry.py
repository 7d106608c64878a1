"""
app/parsers/registry.py

Source identifier -> parser registry.
"""

from __future__ import annotations

from collections.abc import Iterable

from app.parsers.base import SourceParser
from app.parsers.generic import generic_parser
from app.parsers.instabase import instabase_parser
from app.parsers.spacee import spacee_parser
from app.parsers.spacemarket import spacemarket_parser

BUILTIN_PARSERS: tuple[SourceParser, ...] = (
    generic_parser,
    instabase_parser,
    spacee_parser,
    spacemarket_parser,
)


class UnknownSourceError(LookupError):
    """
    Raised when no parser is registered for a source identifier.
    """

    def __init__(self, source_id: str, *, allowed: Iterable[str] = ()) -> None:
        self.source_id = source_id
        self.allowed = tuple(allowed)
        message = f"Unknown source_id='{source_id}'."
        if self.allowed:
            message += f" Allowed sources: {', '.join(self.allowed)}."
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, object]:
        return {
            "message": self.message,
            "source_id": self.source_id,
            "allowed": list(self.allowed),
        }


class ParserRegistry:
    """
    Parser registry keyed by lower-cased source identifier.
    """

    def __init__(self, parsers: Iterable[SourceParser] | None = None) -> None:
        self._parsers: dict[str, SourceParser] = {}
        for parser in BUILTIN_PARSERS if parsers is None else parsers:
            self.register(parser)

    @staticmethod
    def _key(source_id: str) -> str:
        return source_id.strip().lower()

    def register(self, parser: SourceParser) -> None:
        self._parsers[self._key(parser.source_id)] = parser

    def get(self, source_id: str) -> SourceParser | None:
        return self._parsers.get(self._key(source_id))

    def require(self, source_id: str) -> SourceParser:
        parser = self.get(source_id)
        if parser is None:
            raise UnknownSourceError(source_id, allowed=self.list_sources())
        return parser

    def list_sources(self) -> list[str]:
        return sorted(self._parsers)

    def __contains__(self, source_id: object) -> bool:
        return isinstance(source_id, str) and self._key(source_id) in self._parsers


def get_default_registry() -> ParserRegistry:
    return ParserRegistry()
