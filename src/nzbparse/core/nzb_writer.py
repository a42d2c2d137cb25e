"""
NZB Writer
==========

Serializes an NZBDocument back to NZB 1.1 XML using lxml.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Union

from lxml import etree

from .nzb_parser import NZB_NAMESPACE, NZB_XMLNS, NZBDocument, NZBFile

logger = logging.getLogger(__name__)

XML_HEADER = (
    '<?xml version="1.0" encoding="utf-8" ?>\n'
    '<!DOCTYPE nzb PUBLIC "-//newzBin//DTD NZB 1.1//EN" '
    '"http://www.newzbin.com/DTD/nzb/nzb-1.1.dtd">\n'
)


def _tag(name: str) -> str:
    return f'{NZB_NAMESPACE}{name}'


class NZBWriter:
    """Builds NZB XML from an NZBDocument."""

    @staticmethod
    def build_tree(document: NZBDocument) -> etree._Element:
        """Build the <nzb> element tree."""
        root = etree.Element(_tag('nzb'), nsmap={None: NZB_XMLNS})

        if document.comment:
            # XML comments may not contain "--"
            comment = re.sub(r'-{2,}', '-', document.comment)
            root.append(etree.Comment(f' {comment} '))

        if document.meta:
            head = etree.SubElement(root, _tag('head'))
            for meta_type, value in document.meta.items():
                meta = etree.SubElement(head, _tag('meta'), type=meta_type)
                meta.text = value

        for nzb_file in document.files:
            NZBWriter._build_file(root, nzb_file)

        return root

    @staticmethod
    def _build_file(root: etree._Element, nzb_file: NZBFile) -> None:
        file_elem = etree.SubElement(root, _tag('file'))
        file_elem.set('poster', nzb_file.poster)
        file_elem.set('date', str(nzb_file.date))
        file_elem.set('subject', nzb_file.subject)
        if nzb_file.bytes:
            file_elem.set('bytes', str(nzb_file.bytes))
        if nzb_file.filehash:
            file_elem.set('filehash', nzb_file.filehash)

        groups = etree.SubElement(file_elem, _tag('groups'))
        for group in nzb_file.groups:
            etree.SubElement(groups, _tag('group')).text = group

        segments = etree.SubElement(file_elem, _tag('segments'))
        for segment in nzb_file.segments:
            seg_elem = etree.SubElement(segments, _tag('segment'))
            seg_elem.set('bytes', str(segment.bytes))
            seg_elem.set('number', str(segment.number))
            seg_elem.text = segment.message_id

    @staticmethod
    def write(document: NZBDocument) -> bytes:
        """Serialize to NZB XML bytes (UTF-8)."""
        root = NZBWriter.build_tree(document)
        body = etree.tostring(root, encoding='utf-8', xml_declaration=False, pretty_print=True)
        return XML_HEADER.encode('utf-8') + body

    @staticmethod
    def write_string(document: NZBDocument) -> str:
        """Serialize to NZB XML text."""
        return NZBWriter.write(document).decode('utf-8')

    @staticmethod
    def write_file(document: NZBDocument, path: Union[str, Path]) -> Path:
        """Write NZB XML to path, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(NZBWriter.write(document))
        logger.info(f"Wrote {document.file_count} files to {path}")
        return path
