"""Shared test fixtures — an in-memory svn backend, sample svn XML."""

from __future__ import annotations

import textwrap
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional
from urllib.parse import unquote

import pytest

from svnindex.svn.adapter import SVN_ERR_RA_ILLEGAL_URL, SvnError
from svnindex.svn.api import SvnApi
from svnindex.svn.models import (
    ChangedPath,
    InfoEntry,
    ListEntry,
    LogEntry,
    NodeKind,
    PropertyList,
)

REPO_URL = "https://svn.example.com/repos/demo"

_DATE = datetime(2009, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@dataclass
class FakeNode:
    kind: NodeKind = NodeKind.FILE
    content: bytes = b""
    props: Dict[str, str] = field(default_factory=dict)
    author: str = "alice"
    last_rev: int = 1
    size: Optional[int] = None  # defaults to len(content)


class FakeRepository:
    """Revision log plus per-revision trees keyed by absolute path."""

    def __init__(self) -> None:
        self.log_entries: List[LogEntry] = []
        self.trees: Dict[int, Dict[str, FakeNode]] = {}
        self.errors: Dict[str, SvnError] = {}  # path -> error raised on any access
        self.cat_calls: List[str] = []

    @property
    def head(self) -> int:
        return max(self.trees) if self.trees else 0

    def commit(self, revision: int, *changes: ChangedPath, message: str = "") -> None:
        self.log_entries.append(
            LogEntry(revision=revision, author="alice", date=_DATE, message=message, changed_paths=changes)
        )

    def node(self, path: str, revision: int) -> FakeNode:
        if path in self.errors:
            raise self.errors[path]
        tree = self.trees.get(revision, {})
        if path not in tree:
            raise SvnError(
                f"svn info failed: svn: warning: W170000: URL '{REPO_URL}{path}' "
                f"non-existent in revision {revision}",
                (SVN_ERR_RA_ILLEGAL_URL, 200009),
            )
        return tree[path]


class FakeSvnClient:
    """Test double for SvnClient that asserts one operation per handle at a time."""

    _guard = threading.Lock()

    def __init__(self, repo: FakeRepository, username: str = "", password: str = "", *, binary: str = "svn", timeout=None) -> None:
        self.repo = repo
        self.username = username
        self.password = password
        self.binary = binary
        self.timeout = timeout
        self._busy = False

    @contextmanager
    def _owned(self) -> Iterator[None]:
        with FakeSvnClient._guard:
            assert not self._busy, "handle used by two operations at once"
            self._busy = True
        try:
            yield
        finally:
            self._busy = False

    def _path(self, url: str) -> str:
        assert url.startswith(REPO_URL), url
        return unquote(url[len(REPO_URL):]) or "/"

    def info(self, url: str, revision: Optional[int] = None) -> InfoEntry:
        with self._owned():
            revision = self.repo.head if revision is None else revision
            node = self.repo.node(self._path(url), revision)
            return InfoEntry(
                url=url,
                kind=node.kind,
                revision=revision,
                last_changed_rev=node.last_rev,
                last_changed_author=node.author,
                last_changed_date=_DATE,
                size=None if node.kind == NodeKind.DIR else (
                    node.size if node.size is not None else len(node.content)
                ),
            )

    def log(self, url: str, first: int, last: int) -> Iterator[LogEntry]:
        with self._owned():
            for entry in self.repo.log_entries:
                if first <= entry.revision <= last:
                    yield entry

    def list(self, url: str, revision: int) -> Iterator[ListEntry]:
        with self._owned():
            base = self._path(url).rstrip("/")
            target = self.repo.node(base or "/", revision)
            if target.kind == NodeKind.FILE:
                yield ListEntry(name=base.rsplit("/", 1)[-1], kind=NodeKind.FILE)
                return
            yield ListEntry(name="", kind=NodeKind.DIR)
            for path, node in sorted(self.repo.trees[revision].items()):
                if path.startswith(base + "/") and path != base + "/":
                    yield ListEntry(name=path[len(base) + 1:], kind=node.kind)

    def proplist(self, url: str, revision: int) -> List[PropertyList]:
        with self._owned():
            node = self.repo.node(self._path(url), revision)
            if not node.props:
                return []
            return [PropertyList(target=url, properties=dict(node.props))]

    def cat(self, url: str, revision: int) -> bytes:
        with self._owned():
            path = self._path(url)
            self.repo.cat_calls.append(path)
            return self.repo.node(path, revision).content


@pytest.fixture
def fake_repo() -> FakeRepository:
    """Revisions 10-12 of a small trunk (r10 has no path changes), a copy at 13, a replace at 14."""
    repo = FakeRepository()
    repo.commit(10, message="set svn:ignore on root")
    repo.commit(11, ChangedPath("/trunk/a.txt", "A", NodeKind.FILE), message="add a")
    repo.commit(
        12,
        ChangedPath("/trunk/b.txt", "D", NodeKind.FILE),
        ChangedPath("/trunk/c.txt", "M", NodeKind.FILE),
        message="drop b, edit c",
    )
    repo.commit(
        13,
        ChangedPath("/branches/v1", "A", NodeKind.DIR, copyfrom_path="/trunk", copyfrom_rev=12),
        message="branch v1",
    )
    repo.commit(14, ChangedPath("/trunk/c.txt", "R", NodeKind.FILE), message="")

    trunk = {
        "/": FakeNode(NodeKind.DIR),
        "/trunk": FakeNode(NodeKind.DIR, last_rev=10),
        "/trunk/a.txt": FakeNode(content=b"alpha\n", last_rev=11),
        "/trunk/c.txt": FakeNode(content=b"gamma\n", last_rev=12, props={"svn:eol-style": "native"}),
    }
    repo.trees[12] = dict(trunk)
    repo.trees[14] = dict(trunk)
    return repo


@pytest.fixture
def client_factory(fake_repo: FakeRepository):
    def _factory(*args, **kwargs) -> FakeSvnClient:
        return FakeSvnClient(fake_repo, *args, **kwargs)

    return _factory


@pytest.fixture
def api(client_factory) -> SvnApi:
    return SvnApi(REPO_URL, "alice", "secret", client_factory=client_factory)


# --- sample `svn --xml` documents ---


@pytest.fixture
def sample_info_file_xml() -> bytes:
    return textwrap.dedent("""\
        <?xml version="1.0" encoding="UTF-8"?>
        <info>
        <entry kind="file" path="a.txt" revision="12">
        <url>https://svn.example.com/repos/demo/trunk/a.txt</url>
        <relative-url>^/trunk/a.txt</relative-url>
        <repository>
        <root>https://svn.example.com/repos/demo</root>
        <uuid>13f79535-47bb-0310-9956-ffa450edef68</uuid>
        </repository>
        <commit revision="11">
        <author>alice</author>
        <date>2009-03-01T12:00:00.123456Z</date>
        </commit>
        </entry>
        </info>
    """).encode("utf-8")


@pytest.fixture
def sample_log_xml() -> bytes:
    return textwrap.dedent("""\
        <?xml version="1.0" encoding="UTF-8"?>
        <log>
        <logentry revision="11">
        <author>alice</author>
        <date>2009-03-01T12:00:00.000000Z</date>
        <paths>
        <path action="A" prop-mods="false" text-mods="true" kind="file">/trunk/a.txt</path>
        </paths>
        <msg>add a</msg>
        </logentry>
        <logentry revision="13">
        <author>bob</author>
        <date>2009-03-02T08:30:00.000000Z</date>
        <paths>
        <path action="A" kind="dir" copyfrom-path="/trunk" copyfrom-rev="12">/branches/v1</path>
        <path action="M" kind="file">/trunk/c.txt</path>
        </paths>
        <msg>branch v1</msg>
        </logentry>
        <logentry revision="15">
        </logentry>
        </log>
    """).encode("utf-8")


@pytest.fixture
def sample_list_xml() -> bytes:
    return textwrap.dedent("""\
        <?xml version="1.0" encoding="UTF-8"?>
        <lists>
        <list path="https://svn.example.com/repos/demo/trunk@50">
        <entry kind="dir">
        <name>dir1</name>
        <commit revision="48"><author>alice</author><date>2009-03-01T12:00:00.000000Z</date></commit>
        </entry>
        <entry kind="file">
        <name>dir1/file.txt</name>
        <size>1234</size>
        <commit revision="50"><author>bob</author><date>2009-03-02T12:00:00.000000Z</date></commit>
        </entry>
        </list>
        </lists>
    """).encode("utf-8")


@pytest.fixture
def sample_proplist_xml() -> bytes:
    return textwrap.dedent("""\
        <?xml version="1.0" encoding="UTF-8"?>
        <properties>
        <target path="https://svn.example.com/repos/demo/trunk/logo.png@12">
        <property name="svn:mime-type">image/png</property>
        <property name="custom:blob" encoding="base64">aGVsbG8gd29ybGQ=</property>
        </target>
        </properties>
    """).encode("utf-8")
