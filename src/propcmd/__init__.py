"""propcmd: batch editing of Markdown frontmatter properties.

The CLI lives in :mod:`propcmd.cli`; the document store and traversal in
:mod:`propcmd.documents`; aggregation, edit specs, and batch application in
:mod:`propcmd.properties`.
"""

from importlib import metadata as _metadata

__all__ = ["__version__"]


def __getattr__(name: str) -> str:
    # Resolved lazily so importing submodules never touches package metadata.
    if name == "__version__":
        return _metadata.version("propcmd")
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
