"""
Filename Extension Rules
========================

Extension handling shared by the subject extractor:
- Extension shapes used to split a filename into base name and extension
- The known-extension set and the volume-part predicate that decide
  whether an extension looks like a real one
- A strict "real filename" matcher used to re-pick between quoted names

The known set and the predicate live on an ExtensionRules instance so
callers can extend them without touching the extractor.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from functools import cached_property
from typing import Callable, Optional, Tuple

# Archive, media, image, document and checksum formats
DEFAULT_KNOWN_EXTENSIONS = frozenset({
    'rar', 'r00', 'r01', 'r02', 'r03', 'r04', 'r05',
    'par2', 'nfo', 'sfv', 'zip', '7z',
    'mp4', 'mkv', 'avi', 'mov',
    'mp3', 'flac', 'm4a',
    'jpg', 'jpeg', 'png', 'gif',
    'pdf', 'txt',
})

# Suffix after a dot: 7z.vol01+02.par2, part01.rar, name.001, rar
EXTENSION_SHAPE = re.compile(
    r'(?:7z\.)?(?:vol\d+\+\d+\.par2?|part\d+\.[^ ".]*|[^ ".]*\.\d+|[^ ".]*)',
    re.I,
)

# Unquoted names carry no 7z prefix and must end at a space, quote or end of text
UNQUOTED_EXTENSION_SHAPE = re.compile(
    r'(?:vol\d+\+\d+\.par2?|part\d+\.[^ ".]*|[^ ".]*\.\d+|[^ ".]*)(?=[" ]|\Z)',
    re.I,
)

VOLUME_PART_PATTERN = re.compile(r'r\d{2}$', re.I)


def is_volume_part(extension: str) -> bool:
    """Old-style split archive volume (r00, r01, ...)."""
    return VOLUME_PART_PATTERN.search(extension) is not None


def split_extension(name: str) -> Tuple[str, Optional[str]]:
    """
    Split a quoted filename into (base, extension).

    The base is the shortest prefix ending before a dot whose suffix is a
    complete extension shape. Returns (name, None) when no dot qualifies.
    """
    start = name.find('.')
    while start != -1:
        if EXTENSION_SHAPE.fullmatch(name, start + 1):
            return name[:start], name[start + 1:]
        start = name.find('.', start + 1)
    return name, None


def split_unquoted(text: str) -> Optional[Tuple[str, str]]:
    """
    Find an unquoted filename at the start of text.

    Returns (filename, base) or None when no extension-bearing prefix exists.
    """
    start = text.find('.')
    while start != -1:
        match = UNQUOTED_EXTENSION_SHAPE.match(text, start + 1)
        if match:
            return text[:match.end()], text[:start]
        start = text.find('.', start + 1)
    return None


@dataclass(frozen=True)
class ExtensionRules:
    """
    Decides whether an extension is plausible.

    Attributes:
        known: Lower-case extensions without the leading dot
        is_archive_part: Predicate for dynamically numbered archive parts
    """
    known: frozenset = DEFAULT_KNOWN_EXTENSIONS
    is_archive_part: Callable[[str], bool] = field(default=is_volume_part, compare=False)

    def is_plausible(self, extension: str) -> bool:
        """Check an extension (without dot) against the known set and predicate."""
        extension = extension.lower()
        return extension in self.known or self.is_archive_part(extension)

    def with_extensions(self, *extensions: str) -> ExtensionRules:
        """Return a copy whose known set also holds the given extensions."""
        extra = {ext.strip().lstrip('.').lower() for ext in extensions if ext.strip('. ')}
        return replace(self, known=self.known | extra)

    @cached_property
    def real_filename_pattern(self) -> re.Pattern:
        """Strict pattern for a filename ending in a real archive/media extension."""
        alternatives = [r'vol\d+\+\d+\.par2', 'par2', r'part\d+\.rar', r'r\d{2}']
        # Longest first so multi-part extensions win over their tails
        alternatives.extend(
            re.escape(ext) for ext in sorted(self.known, key=lambda ext: (-len(ext), ext))
        )
        return re.compile(
            r'^(?P<base>.+?)\.(?P<ext>' + '|'.join(alternatives) + r')$',
            re.I,
        )

    def match_real_filename(self, name: str) -> Optional[str]:
        """Return the base filename if name ends in a real extension, else None."""
        match = self.real_filename_pattern.match(name)
        if match:
            return match.group('base')
        return None


DEFAULT_RULES = ExtensionRules()
