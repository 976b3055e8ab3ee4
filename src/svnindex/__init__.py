"""svnindex — Subversion change and content extraction for search indexing."""

__version__ = "0.1.0"
