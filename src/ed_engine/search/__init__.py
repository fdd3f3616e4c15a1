"""Regular expression capability and the shared pattern cache."""

from .patterns import Delimited, PatternCache, check_delimiter, read_delimited, search_lines
from .regex import PosixRegexEngine, RegexEngine, translate

__all__ = [
    "Delimited",
    "PatternCache",
    "PosixRegexEngine",
    "RegexEngine",
    "check_delimiter",
    "read_delimited",
    "search_lines",
    "translate",
]
