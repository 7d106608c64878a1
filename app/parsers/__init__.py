from app.parsers.base import (
    HeaderErrorDetail,
    RawRow,
    SourceParser,
    StructuralParseError,
)
from app.parsers.generic import generic_parser
from app.parsers.instabase import instabase_parser
from app.parsers.registry import ParserRegistry, UnknownSourceError, get_default_registry
from app.parsers.spacee import spacee_parser
from app.parsers.spacemarket import spacemarket_parser

__all__ = [
    "HeaderErrorDetail",
    "ParserRegistry",
    "RawRow",
    "SourceParser",
    "StructuralParseError",
    "UnknownSourceError",
    "generic_parser",
    "get_default_registry",
    "instabase_parser",
    "spacee_parser",
    "spacemarket_parser",
]
