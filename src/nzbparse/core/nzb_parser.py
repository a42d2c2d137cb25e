"""
NZB Parser
==========

Streaming NZB reader built on lxml with:
- iterparse with element clearing for large files
- Namespaced or bare NZB tags
- Duplicate file/segment removal
- Subject-based aggregation of file and segment totals
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

from lxml import etree

from .subject import SubjectParser

logger = logging.getLogger(__name__)

NZB_XMLNS = 'http://www.newzbin.com/DTD/2003/nzb'
NZB_NAMESPACE = f'{{{NZB_XMLNS}}}'


class NZBParseError(ValueError):
    """NZB content could not be parsed."""


@dataclass(slots=True)
class NZBSegment:
    """
    Single segment of an NZB file.
    Uses slots for memory efficiency when handling millions of segments.
    """
    message_id: str
    number: int
    bytes: int
    file_index: int = 0

    def __hash__(self) -> int:
        return hash(self.message_id)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, NZBSegment):
            return self.message_id == other.message_id
        return False


@dataclass
class NZBFile:
    """
    Single file within an NZB.

    The subject-derived fields (number, filename, basefilename,
    total_segments, bytes) are filled in by scan_document().
    """
    subject: str
    poster: str = ''
    date: int = 0
    groups: list[str] = field(default_factory=list)
    segments: list[NZBSegment] = field(default_factory=list)
    filehash: str = ''
    number: int = 0
    filename: str = ''
    basefilename: str = ''
    total_segments: int = 0
    bytes: int = 0
    index: int = 0

    @property
    def segment_count(self) -> int:
        """Number of available segments."""
        return len(self.segments)

    @property
    def sorted_segments(self) -> list[NZBSegment]:
        """Segments sorted by number for ordered assembly."""
        return sorted(self.segments, key=lambda s: s.number)

    @property
    def missing_segments(self) -> int:
        """Segments announced by the subject but not listed."""
        return max(self.total_segments - self.segment_count, 0)

    @property
    def is_complete(self) -> bool:
        return self.missing_segments == 0

    @property
    def is_par2(self) -> bool:
        """Check if this is a PAR2 recovery file."""
        return '.par2' in self.filename.lower()

    @property
    def is_rar(self) -> bool:
        """Check if this is a RAR archive."""
        lower = self.filename.lower()
        return '.rar' in lower or '.r00' in lower

    def get_extension(self) -> str:
        """Extract file extension."""
        parts = self.filename.rsplit('.', 1)
        return parts[1].lower() if len(parts) > 1 else ''


@dataclass
class NZBDocument:
    """
    Complete parsed NZB document.

    Totals are filled in by scan_document():
        total_files: Files announced by the subjects (at least the listed ones)
        segments: Segments actually listed
        total_segments: Segments announced by the subjects
        bytes: Size of all listed segments
    """
    files: list[NZBFile] = field(default_factory=list)
    meta: dict[str, str] = field(default_factory=dict)
    comment: str = ''
    total_files: int = 0
    segments: int = 0
    total_segments: int = 0
    bytes: int = 0
    source_path: Optional[Path] = None

    @property
    def file_count(self) -> int:
        """Number of listed files."""
        return len(self.files)

    @property
    def is_complete(self) -> bool:
        """All announced files and segments are listed."""
        return self.file_count >= self.total_files and self.segments >= self.total_segments

    def iter_segments(self) -> Iterator[NZBSegment]:
        """Iterate all segments in download order."""
        for nzb_file in self.files:
            for segment in nzb_file.sorted_segments:
                yield segment

    def get_main_files(self) -> list[NZBFile]:
        """Get non-PAR2 files (main content)."""
        return [f for f in self.files if not f.is_par2]

    def get_par2_files(self) -> list[NZBFile]:
        """Get PAR2 recovery files."""
        return [f for f in self.files if f.is_par2]

    def get_groups(self) -> set[str]:
        """Get all newsgroups referenced."""
        groups: set[str] = set()
        for f in self.files:
            groups.update(f.groups)
        return groups


@dataclass
class ParseOptions:
    """NZB reading options."""
    remove_duplicates: bool = True
    recover: bool = False       # Let lxml recover from malformed XML
    max_workers: int = 1        # Threads for subject parsing (1 = inline)
    subject_parser: Optional[SubjectParser] = None


# =============================================================================
# DEDUPLICATION AND AGGREGATION
# =============================================================================

def make_unique(document: NZBDocument) -> None:
    """
    Merge file entries sharing a subject and drop repeated segments.

    Segments of a repeated file entry are appended to the first entry with
    that subject; within a file, only the first segment per message id is
    kept.
    """
    by_subject: dict[str, NZBFile] = {}
    unique_files: list[NZBFile] = []

    for nzb_file in document.files:
        first = by_subject.get(nzb_file.subject)
        if first is not None:
            first.segments.extend(nzb_file.segments)
            continue
        by_subject[nzb_file.subject] = nzb_file
        unique_files.append(nzb_file)

    dropped_files = len(document.files) - len(unique_files)
    dropped_segments = 0

    for nzb_file in unique_files:
        seen_ids: set[str] = set()
        unique_segments: list[NZBSegment] = []
        for segment in nzb_file.segments:
            if segment.message_id in seen_ids:
                continue
            seen_ids.add(segment.message_id)
            unique_segments.append(segment)
        dropped_segments += len(nzb_file.segments) - len(unique_segments)
        nzb_file.segments = unique_segments

    document.files = unique_files

    if dropped_files or dropped_segments:
        logger.info(f"Merged {dropped_files} duplicate files, removed {dropped_segments} duplicate segments")


def scan_document(
    document: NZBDocument,
    max_workers: int = 1,
    subject_parser: Optional[SubjectParser] = None,
) -> None:
    """
    Fill in subject-derived file fields and document totals.

    Subjects are independent, so they may be parsed on a thread pool.
    """
    subject_parser = subject_parser or SubjectParser()
    subjects = [f.subject for f in document.files]

    if max_workers > 1 and len(subjects) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            parsed_subjects = list(pool.map(subject_parser.parse, subjects))
    else:
        parsed_subjects = [subject_parser.parse(s) for s in subjects]

    total_files = 0
    segments = 0
    total_segments = 0
    total_bytes = 0

    for nzb_file, parsed in zip(document.files, parsed_subjects):
        nzb_file.number = parsed.file_index
        nzb_file.filename = parsed.filename or parsed.header
        nzb_file.basefilename = parsed.base_filename
        total_files = max(total_files, parsed.file_total)

        file_segments = parsed.segment_total
        file_bytes = 0
        for segment in nzb_file.segments:
            file_segments = max(file_segments, segment.number)
            file_bytes += segment.bytes

        nzb_file.total_segments = file_segments
        nzb_file.bytes = file_bytes

        segments += nzb_file.segment_count
        total_segments += file_segments
        total_bytes += file_bytes

    document.total_files = max(total_files, len(document.files))
    document.segments = segments
    document.total_segments = total_segments
    document.bytes = total_bytes


def sort_document(document: NZBDocument) -> None:
    """Order files by subject file number and segments by number."""
    document.files.sort(key=lambda f: f.number)
    for index, nzb_file in enumerate(document.files):
        nzb_file.index = index
        nzb_file.segments.sort(key=lambda s: s.number)
        for segment in nzb_file.segments:
            segment.file_index = index


# =============================================================================
# PARSER
# =============================================================================

class NZBParser:
    """
    NZB parser using lxml.

    Features:
    - Streaming parse for memory efficiency
    - Optional duplicate removal
    - Filename and numbering extraction from subjects
    """

    @staticmethod
    def parse(path: Union[str, Path], options: Optional[ParseOptions] = None) -> NZBDocument:
        """Parse NZB file from path."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"NZB file not found: {path}")

        with open(path, 'rb') as f:
            return NZBParser._parse_source(f, options, source_path=path)

    @staticmethod
    def parse_bytes(data: bytes, options: Optional[ParseOptions] = None) -> NZBDocument:
        """Parse NZB from raw bytes; the XML declaration decides the encoding."""
        return NZBParser._parse_source(BytesIO(data), options)

    @staticmethod
    def parse_string(content: str, options: Optional[ParseOptions] = None) -> NZBDocument:
        """Parse NZB from string content."""
        return NZBParser.parse_bytes(content.encode('utf-8'), options)

    @staticmethod
    def _parse_source(
        source: BinaryIO,
        options: Optional[ParseOptions],
        source_path: Optional[Path] = None,
    ) -> NZBDocument:
        options = options or ParseOptions()
        document = NZBParser._read(source, options)
        document.source_path = source_path

        if options.remove_duplicates:
            make_unique(document)

        scan_document(document, options.max_workers, options.subject_parser)
        sort_document(document)

        logger.info(f"Parsed {document.file_count} files, {document.segments} segments")
        return document

    @staticmethod
    def _read(source: BinaryIO, options: ParseOptions) -> NZBDocument:
        """Stream the XML into an unscanned NZBDocument."""
        document = NZBDocument()
        depth = 0
        seen_root = False

        try:
            context = etree.iterparse(
                source,
                events=('start', 'end', 'comment'),
                recover=options.recover,
            )

            for event, elem in context:
                if event == 'comment':
                    # Only the comment directly inside <nzb> belongs to the document
                    if depth == 1 and not document.comment and elem.text:
                        document.comment = elem.text.strip()
                    continue

                tag = etree.QName(elem).localname

                if event == 'start':
                    if not seen_root:
                        if tag != 'nzb':
                            raise NZBParseError(f"Invalid NZB: root element is <{tag}>, expected <nzb>")
                        seen_root = True
                    depth += 1
                    continue

                depth -= 1

                if tag == 'meta':
                    meta_type = elem.get('type', '')
                    if meta_type:
                        document.meta[meta_type] = (elem.text or '').strip()

                elif tag == 'file' and depth == 1:
                    nzb_file = NZBParser._parse_file_element(elem, len(document.files))
                    if nzb_file:
                        document.files.append(nzb_file)

                else:
                    continue

                # Clear element to save memory
                elem.clear()
                while elem.getprevious() is not None:
                    parent = elem.getparent()
                    if parent is not None:
                        del parent[0]

        except etree.XMLSyntaxError as e:
            raise NZBParseError(f"Invalid NZB XML: {e}") from e

        if not seen_root:
            raise NZBParseError("Invalid NZB: no <nzb> element found")

        return document

    @staticmethod
    def _parse_file_element(elem: etree._Element, file_index: int) -> Optional[NZBFile]:
        """Parse a single file element."""
        subject = elem.get('subject', '')
        poster = elem.get('poster', '')
        date_str = elem.get('date', '0')

        try:
            date = int(date_str)
        except ValueError:
            date = 0

        groups: list[str] = []
        segments: list[NZBSegment] = []

        for child in elem.iter():
            if not isinstance(child.tag, str):
                continue
            tag = etree.QName(child).localname

            if tag == 'group' and child.text:
                groups.append(child.text.strip())

            elif tag == 'segment' and child.text:
                try:
                    number = int(child.get('number', '0'))
                    bytes_size = int(child.get('bytes', '0'))
                except ValueError:
                    logger.warning(f"Invalid segment attributes: number={child.get('number')!r}, bytes={child.get('bytes')!r}")
                    continue
                message_id = child.text.strip()

                # Validate segment data
                if number <= 0 or bytes_size <= 0 or not message_id:
                    logger.warning(f"Invalid segment: num={number}, bytes={bytes_size}, id={message_id[:20] if message_id else 'empty'}")
                    continue

                segments.append(NZBSegment(
                    message_id=message_id,
                    number=number,
                    bytes=bytes_size,
                    file_index=file_index
                ))

        if not segments:
            logger.warning(f"Skipping file without valid segments: {subject[:80]!r}")
            return None

        return NZBFile(
            subject=subject,
            poster=poster,
            date=date,
            groups=groups,
            segments=segments,
            filehash=elem.get('filehash', ''),
            index=file_index
        )
