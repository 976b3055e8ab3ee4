"""Subversion access layer: adapter, XML parsing, client pool, facade, models."""

from svnindex.svn.adapter import SVN_ERR_RA_ILLEGAL_URL, SvnClient, SvnError
from svnindex.svn.api import SvnApi, UnknownChangeAction
from svnindex.svn.models import Change, NodeKind, PathChange, PathData
from svnindex.svn.pool import ClientPool

__all__ = [
    "SVN_ERR_RA_ILLEGAL_URL",
    "Change",
    "ClientPool",
    "NodeKind",
    "PathChange",
    "PathData",
    "SvnApi",
    "SvnClient",
    "SvnError",
    "UnknownChangeAction",
]
