"""Core components for nzbparse."""

# Lazy imports so the subject extractor can be used without lxml

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
    """Lazy import modules."""
    if name in ('parse_subject', 'ParsedSubject', 'SubjectParser'):
        from . import subject
        return getattr(subject, name)
    elif name == 'ExtensionRules':
        from .extensions import ExtensionRules
        return ExtensionRules
    elif name in ('NZBParser', 'NZBDocument', 'NZBFile', 'NZBSegment', 'NZBParseError', 'ParseOptions'):
        from . import nzb_parser
        return getattr(nzb_parser, name)
    elif name == 'NZBWriter':
        from .nzb_writer import NZBWriter
        return NZBWriter
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
