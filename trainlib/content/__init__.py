"""
Content fetching: schemas, HTTP client, loaders and page cache.
"""

from .cache import ContentCache, cache_key
from .client import ContentClient, LocalContentTransport
from .loader import CatalogLoader, ManifestLoader
from .models import (
    Catalog,
    Manifest,
    ModuleDescriptor,
    PageContent,
    ProgramDescriptor,
    QuizQuestion,
    resolve_content_path,
)

__all__ = [
    "Catalog",
    "CatalogLoader",
    "ContentCache",
    "ContentClient",
    "LocalContentTransport",
    "Manifest",
    "ManifestLoader",
    "ModuleDescriptor",
    "PageContent",
    "ProgramDescriptor",
    "QuizQuestion",
    "cache_key",
    "resolve_content_path",
]
