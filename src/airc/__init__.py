"""airc - compile AIR application descriptions into full-stack web projects."""

from airc.language import AirContextError, AirError, AirParseError, AirStrictModeError, parse, tokenize
from airc.transpiler import TranspileOptions, TranspileResult, TranspileStats, transpile
from airc.version import __version__


__all__ = [
    "AirContextError",
    "AirError",
    "AirParseError",
    "AirStrictModeError",
    "TranspileOptions",
    "TranspileResult",
    "TranspileStats",
    "__version__",
    "parse",
    "tokenize",
    "transpile",
]
