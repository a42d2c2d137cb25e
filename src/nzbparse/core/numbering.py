"""
Subject Numbering Extractor
===========================

Finds the file pair [X/Y] and segment pair (X/Y) in a subject line and
reduces the rest of the text to a remainder for filename parsing.

Conventions assumed:
- File numbers use square or angle brackets, or no enclosure at all
- Segment numbers use round brackets
- At most two pairs are meaningful: the two rightmost ones. Earlier
  pairs are removed from the remainder but assign no numbers
- When both pairs share a bracket style, the leftmost one is the file pair
- "5 of 12" / "Datei 5 von 12" is accepted when no file pair was found
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

# [1/2], "[1/2]", <1/2>, 1/2
FILE_PAIR_PATTERN = re.compile(
    r'(?:"?\[|[<\[]? *)(?<!\d)(\d+) */ *(\d+) *(?:\]"?|[>\]])?'
)

# (1/2), "(1/2)"
SEGMENT_PAIR_PATTERN = re.compile(r'"?\((\d+) */ *(\d+)\)"?')

# [5 of 12], file 5 of 12, Datei 5 von 12
NATURAL_FILE_PATTERN = re.compile(
    r'(?:\[|[<\[]? *(?:file|datei)?) *(?<!\d)(\d+) *(?:of|von) *(\d+) *(?:\]|[>\]])?',
    re.I,
)


class PairKind(Enum):
    """Bracket shape family of a number pair."""
    FILES = auto()      # [X/Y], <X/Y>, X/Y
    SEGMENTS = auto()   # (X/Y)


# Tried in this order when two shapes start at the same position
PAIR_MATCHERS: Tuple[Tuple[PairKind, re.Pattern], ...] = (
    (PairKind.FILES, FILE_PAIR_PATTERN),
    (PairKind.SEGMENTS, SEGMENT_PAIR_PATTERN),
)


@dataclass(frozen=True)
class PairToken:
    """A number pair found in the subject text."""
    kind: PairKind
    index: int
    total: int
    start: int
    end: int


@dataclass(frozen=True)
class Numbering:
    """Result of the numbering pass."""
    file_index: int
    file_total: int
    segment_index: int
    segment_total: int
    remainder: str


def scan_pairs(text: str) -> List[PairToken]:
    """Return all non-overlapping number pairs, left to right."""
    tokens: List[PairToken] = []
    pos = 0

    while pos < len(text):
        best: Optional[Tuple[PairKind, re.Match]] = None
        for kind, pattern in PAIR_MATCHERS:
            match = pattern.search(text, pos)
            if match and (best is None or match.start() < best[1].start()):
                best = (kind, match)

        if best is None:
            break

        kind, match = best
        tokens.append(PairToken(
            kind=kind,
            index=int(match.group(1)),
            total=int(match.group(2)),
            start=match.start(),
            end=match.end(),
        ))
        pos = match.end()

    return tokens


def _join(*pieces: str) -> str:
    """Join trimmed non-empty pieces with single spaces."""
    return ' '.join(piece.strip() for piece in pieces if piece.strip())


def _assign_pairs(
    tokens: List[PairToken],
) -> Tuple[Optional[Tuple[int, int]], Optional[Tuple[int, int]]]:
    """Assign file and segment roles, scanning from the right."""
    files: Optional[Tuple[int, int]] = None
    segments: Optional[Tuple[int, int]] = None

    for token in reversed(tokens):
        pair = (token.index, token.total)

        if files is None and segments is None:
            if token.kind is PairKind.FILES:
                files = pair
            else:
                segments = pair

        elif token.kind is PairKind.FILES:
            # Both pairs in square brackets: the later one holds the segments
            if files is not None:
                segments = files
            files = pair

        else:
            # Both pairs in round brackets: the earlier one holds the files
            if segments is not None:
                files = pair
            else:
                segments = pair

    return files, segments


def extract_numbering(text: str) -> Numbering:
    """
    Extract file and segment numbers from a trimmed subject.

    Pairs with a total of 0 count as found and are returned unchanged;
    the 1/1 defaults apply only when no pair was found at all.
    """
    tokens = scan_pairs(text)
    ignored = max(len(tokens) - 2, 0)

    # Remainder is the text between and after the pairs, in order
    pieces: List[str] = []
    pos = 0
    for token in tokens:
        pieces.append(text[pos:token.start])
        pos = token.end
    pieces.append(text[pos:])
    remainder = _join(*pieces)

    if ignored:
        logger.debug(f"Ignoring {ignored} extra number pair(s)")

    files, segments = _assign_pairs(tokens[ignored:])

    if segments is None:
        segments = (1, 1)

    if files is None:
        match = NATURAL_FILE_PATTERN.search(remainder)
        if match:
            files = (int(match.group(1)), int(match.group(2)))
            remainder = _join(remainder[:match.start()], remainder[match.end():])
        else:
            files = (1, 1)

    return Numbering(
        file_index=files[0],
        file_total=files[1],
        segment_index=segments[0],
        segment_total=segments[1],
        remainder=remainder,
    )
