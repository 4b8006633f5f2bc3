"""Document storage: frontmatter parsing, transactions, and folder traversal."""

from .errors import DocumentError, FrontmatterError, TransactionError
from .frontmatter import parse_document, render_document, split_frontmatter
from .models import Document, is_markdown
from .store import DocumentStore, MetadataBlock
from .traversal import UNLIMITED_DEPTH, FolderTraversal, list_markdown_documents

__all__ = [
    "Document",
    "DocumentError",
    "DocumentStore",
    "FolderTraversal",
    "FrontmatterError",
    "MetadataBlock",
    "TransactionError",
    "UNLIMITED_DEPTH",
    "is_markdown",
    "list_markdown_documents",
    "parse_document",
    "render_document",
    "split_frontmatter",
]
