"""nzbparse - NZB reader/writer with subject line metadata extraction."""

__version__ = "0.1.0"

__all__ = [
    "parse_subject",
    "ParsedSubject",
    "SubjectParser",
    "ExtensionRules",
    "NZBParser",
    "NZBWriter",
    "NZBDocument",
    "NZBFile",
    "NZBSegment",
    "NZBParseError",
    "ParseOptions",
]


def __getattr__(name):
    """Lazy re-export of the core API."""
    if name in __all__:
        from . import core
        return getattr(core, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
