"""Repository access facade over pooled svn clients."""

from __future__ import annotations

import logging
from contextlib import closing
from typing import Callable, Dict, Generator, Optional
from urllib.parse import quote

from svnindex.svn.adapter import SvnClient, SvnError
from svnindex.svn.models import (
    MAX_TEXT_SIZE,
    Change,
    NodeKind,
    PathChange,
    PathData,
)
from svnindex.svn.pool import ClientPool

logger = logging.getLogger(__name__)

_ACTIONS: Dict[str, Change] = {
    "A": Change.ADD,
    "M": Change.MODIFY,
    "D": Change.DELETE,
    "R": Change.REPLACE,
}


class UnknownChangeAction(Exception):
    """Raised when svn reports a change action outside add/modify/delete/replace."""

    def __init__(self, path: str, revision: int, action: str) -> None:
        super().__init__(f"Invalid action {action!r} on {path}@{revision}")
        self.path = path
        self.revision = revision
        self.action = action


def classify(action: str, path: str, revision: int) -> Change:
    """Map an svn action letter onto a Change. Raises UnknownChangeAction."""
    try:
        return _ACTIONS[action]
    except KeyError:
        raise UnknownChangeAction(path, revision, action) from None


def is_text_candidate(data: PathData) -> bool:
    """Return True if *data* describes a file whose content should be fetched."""
    mime = data.mime_type
    return (
        not data.is_directory
        and data.size < MAX_TEXT_SIZE
        and (not mime or mime.startswith("text/"))
    )


def decode_text(content: bytes) -> str:
    """Decode file content as UTF-8, dropping a BOM and replacing bad bytes."""
    return content.decode("utf-8-sig", errors="replace")


class SvnApi:
    """Facade over one repository URL and one credential pair.

    Every public operation borrows a single client from the pool for its
    whole duration and returns it on every exit path.
    """

    def __init__(
        self,
        repository_url: str,
        user: str = "",
        password: str = "",
        *,
        timeout: Optional[float] = None,
        svn_binary: str = "svn",
        client_factory: Optional[Callable[..., SvnClient]] = None,
    ) -> None:
        self._url = repository_url.rstrip("/")
        factory = client_factory or SvnClient
        self._pool: ClientPool[SvnClient] = ClientPool(
            lambda: factory(user, password, binary=svn_binary, timeout=timeout)
        )

    @property
    def url(self) -> str:
        return self._url

    @property
    def pool(self) -> ClientPool[SvnClient]:
        return self._pool

    def _url_for(self, path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        return self._url + quote(path, safe="/")

    # --- revisions ---

    def get_youngest_revision(self) -> int:
        with self._pool.borrow() as client:
            return client.info(self._url).revision

    def get_log_message(self, revision: int) -> str:
        """Return the commit message of *revision* ('' when there is none)."""
        with self._pool.borrow() as client:
            with closing(client.log(self._url, revision, revision)) as entries:
                for entry in entries:
                    return entry.message
        return ""

    # --- incremental changes ---

    def iter_changes(self, first_revision: int, last_revision: int) -> Generator[PathChange, None, None]:
        """Yield one PathChange per path touched in *first_revision*..*last_revision*.

        History is followed non-strictly; every revision's changed paths are
        reported independently. The scan stops at the first unknown action.
        """
        with self._pool.borrow() as client:
            with closing(client.log(self._url, first_revision, last_revision)) as entries:
                for entry in entries:
                    for changed in entry.changed_paths:
                        yield PathChange(
                            revision=entry.revision,
                            path=changed.path,
                            change=classify(changed.action, changed.path, entry.revision),
                            is_copy=bool(changed.copyfrom_path),
                        )

    def for_each_change(
        self,
        first_revision: int,
        last_revision: int,
        visit: Callable[[PathChange], None],
    ) -> None:
        with closing(self.iter_changes(first_revision, last_revision)) as changes:
            for change in changes:
                visit(change)

    # --- bootstrap listing ---

    def iter_children(self, path: str, revision: int) -> Generator[PathChange, None, None]:
        """Yield every descendant of *path* at *revision* as a synthetic add.

        A file has no descendants; svn would list it under its own basename.
        """
        base = path.rstrip("/")
        url = self._url_for(path)
        with self._pool.borrow() as client:
            if client.info(url, revision).kind != NodeKind.DIR:
                return
            with closing(client.list(url, revision)) as entries:
                for entry in entries:
                    if not entry.name:
                        continue
                    yield PathChange(
                        revision=revision,
                        path=f"{base}/{entry.name}",
                        change=Change.ADD,
                        is_copy=False,
                    )

    def for_each_child(
        self,
        path: str,
        revision: int,
        visit: Callable[[PathChange], None],
    ) -> None:
        with closing(self.iter_children(path, revision)) as children:
            for child in children:
                visit(child)

    # --- path data ---

    def get_path_data(self, path: str, revision: int) -> Optional[PathData]:
        """Return metadata, properties and (when eligible) text of *path*.

        Returns None when svn reports that the path does not exist at
        *revision*. Any other backend failure propagates.
        """
        url = self._url_for(path)
        with self._pool.borrow() as client:
            try:
                info = client.info(url, revision)
                is_directory = info.kind == NodeKind.DIR
                data = PathData(
                    path=path,
                    size=0 if is_directory else (info.size or 0),
                    author=info.last_changed_author,
                    timestamp=info.last_changed_date,
                    revision_first=info.last_changed_rev,
                    revision_last=revision,
                    is_directory=is_directory,
                )
                for proplist in client.proplist(url, revision):
                    data.properties.update(proplist.properties)

                if is_text_candidate(data):
                    data.text = decode_text(client.cat(url, revision))
                return data
            except SvnError as exc:
                if not exc.is_illegal_url:
                    raise
                logger.debug("%s@%d not found: %s", path, revision, exc)
                return None
