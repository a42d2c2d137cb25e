"""
Subject Line Extractor
======================

Extracts header, filename and numbering from NZB subject lines.

Subject lines come from many posting tools and follow no common grammar.
The extractor runs an ordered chain of passes over the same text:
- Numbering: [X/Y] file pair, (X/Y) segment pair, "X of Y" fallback
- Splitting: quoted filename, unquoted filename, whole remainder
- Dual quotes: release name first, real filename second
- Extension check: re-pick a quoted name with a real extension
- Backfill: header from base filename, leading-bracket fallback

Every pass is a pure function of its input. parse_subject() never raises
for string input; unparsable subjects get empty names and 1/1 numbering.

Usage:
    subject = parse_subject('[1/2] Test Subject - "test.txt" yEnc (1/2)')
    print(subject.filename)       # test.txt
    print(subject.segment_total)  # 2
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, asdict, replace
from typing import List, Optional

from .extensions import DEFAULT_RULES, ExtensionRules, split_extension, split_unquoted
from .numbering import SEGMENT_PAIR_PATTERN, extract_numbering

logger = logging.getLogger(__name__)

# Subjects are matched up to this many characters
DEFAULT_MAX_SUBJECT_LENGTH = 1024

# A segment pair this close to the end survives truncation
SEGMENT_PAIR_WINDOW = 64

# First quoted span: opening quote run up to the next quote
QUOTED_SPAN = re.compile(r'"+([^"]*)"')

# All non-empty quoted strings
QUOTED_STRING = re.compile(r'"([^"]+)"')

# One or more number pairs at the very start, then the rest
LEADING_PAIRS = re.compile(
    r'^(?: *(?:"?\[|[<\[]?)\d+ */ *\d+ *(?:\]"?|[>\]])?)+ *(?P<tail>.*)$',
    re.S,
)

TRIM_CHARS = ' -'


@dataclass(frozen=True)
class ParsedSubject:
    """
    Structured metadata of one subject line.

    Attributes:
        raw: Trimmed input
        header: Text before the filename (release name), or the base filename
        filename: Filename with extension, if any
        base_filename: Filename without its extension
        file_index: X in [X/Y]
        file_total: Y in [X/Y]
        segment_index: X in (X/Y)
        segment_total: Y in (X/Y)
    """
    raw: str
    header: str = ''
    filename: str = ''
    base_filename: str = ''
    file_index: int = 1
    file_total: int = 1
    segment_index: int = 1
    segment_total: int = 1

    @property
    def display_name(self) -> str:
        """Filename, falling back to header and then the raw subject."""
        return self.filename or self.header or self.raw

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


@dataclass(frozen=True)
class FilenameSplit:
    """Header and filename state handed from pass to pass."""
    header: str = ''
    filename: str = ''
    base_filename: str = ''

    @property
    def has_extension(self) -> bool:
        return self.filename != self.base_filename


def _trim(text: str) -> str:
    return text.strip(TRIM_CHARS)


def limit_length(text: str, max_length: int) -> str:
    """
    Cut text to max_length characters for matching.

    The segment pair conventionally closes the subject, so a (X/Y) pair
    near the end that the cut would lose is appended to the kept head.
    """
    if max_length <= 0 or len(text) <= max_length:
        return text

    last = None
    for last in SEGMENT_PAIR_PATTERN.finditer(text, max(len(text) - SEGMENT_PAIR_WINDOW, 0)):
        pass

    if last is None or last.end() <= max_length:
        return text[:max_length]

    head = text[:min(max_length, last.start())].rstrip()
    return f"{head} {last.group(0)}"


# =============================================================================
# PASSES
# =============================================================================

def split_quoted(text: str) -> Optional[FilenameSplit]:
    """Split text at its first quoted span into header and filename."""
    match = QUOTED_SPAN.search(text)
    if not match:
        return None

    filename = match.group(1)
    base, _ = split_extension(filename)
    return FilenameSplit(
        header=_trim(text[:match.start()]),
        filename=_trim(filename),
        base_filename=_trim(base),
    )


def split_header_filename(remainder: str, single_file: bool) -> FilenameSplit:
    """
    Locate the filename in the remainder.

    Tries a quoted filename first, then an unquoted filename with an
    extension at the start of the text. A single-file post with neither
    uses the whole remainder as its filename.
    """
    split = split_quoted(remainder)
    if split is not None:
        return split

    unquoted = split_unquoted(remainder)
    if unquoted is not None:
        filename, base = unquoted
        return FilenameSplit(filename=_trim(filename), base_filename=_trim(base))

    if single_file:
        name = _trim(remainder)
        return FilenameSplit(filename=name, base_filename=name)

    return FilenameSplit()


def promote_quoted_filename(split: FilenameSplit, quoted: List[str]) -> FilenameSplit:
    """
    Handle "Release.Name" - "release.name.r00" subjects.

    When the chosen filename has no extension, take the first later quoted
    string that has one. The first quoted string becomes the header.
    """
    if not split.filename or split.has_extension or len(quoted) < 2:
        return split

    for candidate in quoted[1:]:
        candidate = candidate.strip()
        base, extension = split_extension(candidate)
        if extension is None:
            continue

        logger.debug(f"Promoting quoted filename {candidate!r}")
        return replace(
            split,
            header=split.header or _trim(quoted[0]),
            filename=candidate,
            base_filename=_trim(base),
        )

    return split


def refine_extension(
    split: FilenameSplit,
    quoted: List[str],
    rules: ExtensionRules,
) -> FilenameSplit:
    """Re-pick the filename when its extension does not look real."""
    if not split.filename or len(quoted) < 2:
        return split

    extension = split.filename.rpartition('.')[2] if '.' in split.filename else ''
    if rules.is_plausible(extension):
        return split

    for candidate in quoted[1:]:
        candidate = candidate.strip()
        base = rules.match_real_filename(candidate)
        if base is None:
            continue

        logger.debug(f"Extension {extension!r} implausible, using {candidate!r}")
        header = split.header
        if (not header
                or header == split.base_filename
                or header.lower() == split.filename.lower()):
            header = _trim(quoted[0])
        return FilenameSplit(header=header, filename=candidate, base_filename=_trim(base))

    return split


def backfill_header(split: FilenameSplit) -> FilenameSplit:
    """Use the base filename as header when no header text was found."""
    if not split.header and split.base_filename:
        return replace(split, header=split.base_filename)
    return split


def leading_bracket_fallback(text: str, split: FilenameSplit) -> FilenameSplit:
    """Find a quoted filename after leading number pairs in the full subject."""
    if split.filename:
        return split

    match = LEADING_PAIRS.match(text)
    if not match:
        return split

    found = split_quoted(match.group('tail').strip())
    if found is None:
        return split

    logger.debug(f"Leading-bracket fallback found {found.filename!r}")
    return replace(
        split,
        filename=found.filename,
        base_filename=found.base_filename,
        header=split.header or found.base_filename,
    )


# =============================================================================
# EXTRACTOR
# =============================================================================

class SubjectParser:
    """
    Subject line extractor bound to one set of extension rules.

    Holds no per-call state and can be shared between threads.
    """

    def __init__(
        self,
        rules: Optional[ExtensionRules] = None,
        max_length: int = DEFAULT_MAX_SUBJECT_LENGTH,
    ):
        self.rules = rules or DEFAULT_RULES
        self.max_length = max_length

    def parse(self, subject: str) -> ParsedSubject:
        """Parse a subject line into a ParsedSubject."""
        raw = subject.strip()
        text = limit_length(raw, self.max_length)
        if text is not raw:
            logger.debug(f"Subject truncated from {len(raw)} to {len(text)} chars for matching")

        numbering = extract_numbering(text)
        remainder = numbering.remainder
        quoted = QUOTED_STRING.findall(remainder)

        split = split_header_filename(remainder, single_file=numbering.file_total == 1)
        split = promote_quoted_filename(split, quoted)
        split = refine_extension(split, quoted, self.rules)
        split = backfill_header(split)
        split = leading_bracket_fallback(raw, split)

        return ParsedSubject(
            raw=raw,
            header=split.header,
            filename=split.filename,
            base_filename=split.base_filename,
            file_index=numbering.file_index,
            file_total=numbering.file_total,
            segment_index=numbering.segment_index,
            segment_total=numbering.segment_total,
        )

    def __repr__(self) -> str:
        return f"SubjectParser(known={len(self.rules.known)}, max_length={self.max_length})"


_default_parser = SubjectParser()


def parse_subject(subject: str, rules: Optional[ExtensionRules] = None) -> ParsedSubject:
    """Parse a subject line with the default or the given extension rules."""
    if rules is None:
        return _default_parser.parse(subject)
    return SubjectParser(rules).parse(subject)
