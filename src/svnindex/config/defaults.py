"""Starter .svnindex.toml template."""

DEFAULT_TOML = """\
# svnindex configuration
version = "1.0"

[repository]
url = ""                  # e.g. "https://svn.example.com/repos/project"
# user = ""
# password = ""           # prefer SVNINDEX_PASSWORD in the environment

[scan]
max_revision = 99999999   # never scan past this revision
max_threads = 16          # parallel fetches for `svnindex show`
# filter = "/tags/|/branches/"   # regex; matching paths are not reported

[svn]
binary = "svn"
timeout = 0               # seconds per svn call, 0 = no timeout
"""
