"""Parsers for `svn --xml` output — info, log, list, proplist.

Log and list documents can be arbitrarily large, so those two are parsed
incrementally with ``iterparse`` and yield one record at a time. Each
element is cleared once converted so memory stays flat for long scans.
"""

from __future__ import annotations

import base64
import io
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import IO, Generator, List, Optional

from svnindex.svn.models import (
    ChangedPath,
    InfoEntry,
    ListEntry,
    LogEntry,
    NodeKind,
    PropertyList,
)


class XmlParseError(Exception):
    """Raised when svn produced XML that cannot be understood."""


def parse_date(text: Optional[str]) -> Optional[datetime]:
    """Parse an svn timestamp (``2009-01-01T12:00:00.000000Z``) as UTC."""
    if not text:
        return None
    text = text.strip()
    for fmt in ("%Y-%m-%dT%H:%M:%S.%fZ", "%Y-%m-%dT%H:%M:%SZ"):
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    raise XmlParseError(f"Unrecognised svn date: {text!r}")


def _int(value: Optional[str], default: int = 0) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise XmlParseError(f"Expected an integer, got {value!r}") from exc


def _text(elem: Optional[ET.Element]) -> str:
    if elem is None or elem.text is None:
        return ""
    return elem.text


def _property_value(elem: ET.Element) -> str:
    """Return a property value, decoding base64-encoded (binary) values."""
    raw = elem.text or ""
    if elem.get("encoding") == "base64":
        return base64.b64decode(raw).decode("utf-8", errors="replace")
    return raw


def _fromstring(data: bytes) -> ET.Element:
    try:
        return ET.fromstring(data)
    except ET.ParseError as exc:
        raise XmlParseError(f"Malformed svn XML: {exc}") from exc


# --- info ---


def parse_info(data: bytes) -> List[InfoEntry]:
    """Parse ``svn info --xml`` output."""
    root = _fromstring(data)
    entries: List[InfoEntry] = []
    for entry in root.iter("entry"):
        commit = entry.find("commit")
        size = entry.find("size")
        entries.append(InfoEntry(
            url=_text(entry.find("url")),
            kind=NodeKind.parse(entry.get("kind")),
            revision=_int(entry.get("revision")),
            last_changed_rev=_int(commit.get("revision")) if commit is not None else 0,
            last_changed_author=_text(commit.find("author")) if commit is not None else "",
            last_changed_date=parse_date(_text(commit.find("date"))) if commit is not None else None,
            size=_int(size.text) if size is not None and size.text else None,
        ))
    return entries


# --- proplist ---


def parse_proplist(data: bytes) -> List[PropertyList]:
    """Parse ``svn proplist --xml -v`` output."""
    root = _fromstring(data)
    result: List[PropertyList] = []
    for target in root.iter("target"):
        props = {
            prop.get("name", ""): _property_value(prop)
            for prop in target.iter("property")
        }
        result.append(PropertyList(target=target.get("path", ""), properties=props))
    return result


# --- log ---


def _log_entry(elem: ET.Element) -> LogEntry:
    changed: List[ChangedPath] = []
    paths = elem.find("paths")
    if paths is not None:
        for p in paths.iter("path"):
            copyfrom_rev = p.get("copyfrom-rev")
            changed.append(ChangedPath(
                path=_text(p),
                action=p.get("action", ""),
                kind=NodeKind.parse(p.get("kind")),
                copyfrom_path=p.get("copyfrom-path"),
                copyfrom_rev=_int(copyfrom_rev) if copyfrom_rev else None,
            ))
    return LogEntry(
        revision=_int(elem.get("revision")),
        author=_text(elem.find("author")),
        date=parse_date(_text(elem.find("date"))),
        message=_text(elem.find("msg")),
        changed_paths=tuple(changed),
    )


def iter_log_entries(stream: IO[bytes]) -> Generator[LogEntry, None, None]:
    """Yield LogEntry objects from a ``svn log --xml -v`` stream."""
    try:
        for _event, elem in ET.iterparse(stream, events=("end",)):
            if elem.tag == "logentry":
                yield _log_entry(elem)
                elem.clear()
    except ET.ParseError as exc:
        raise XmlParseError(f"Malformed svn log XML: {exc}") from exc


def parse_log(data: bytes) -> List[LogEntry]:
    return list(iter_log_entries(io.BytesIO(data)))


# --- list ---


def iter_list_entries(stream: IO[bytes]) -> Generator[ListEntry, None, None]:
    """Yield ListEntry objects from a ``svn list --xml`` stream."""
    try:
        for _event, elem in ET.iterparse(stream, events=("end",)):
            if elem.tag != "entry":
                continue
            commit = elem.find("commit")
            size = elem.find("size")
            yield ListEntry(
                name=_text(elem.find("name")),
                kind=NodeKind.parse(elem.get("kind")),
                size=_int(size.text) if size is not None and size.text else None,
                last_changed_rev=_int(commit.get("revision")) if commit is not None else 0,
            )
            elem.clear()
    except ET.ParseError as exc:
        raise XmlParseError(f"Malformed svn list XML: {exc}") from exc


def parse_list(data: bytes) -> List[ListEntry]:
    return list(iter_list_entries(io.BytesIO(data)))
