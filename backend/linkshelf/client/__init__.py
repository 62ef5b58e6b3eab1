"""
LinkShelf client library: an async HTTP client mirroring the REST API and
observer-style stores built on top of it.
"""

from linkshelf.client.api import ApiError, LinkShelfClient
from linkshelf.client.stores import (
    ActiveLinkStore,
    AuthState,
    AuthStore,
    FilteredLinksStore,
    LabelsStore,
    LinksStore,
    Store,
    Stores,
)

__all__ = [
    "ActiveLinkStore",
    "ApiError",
    "AuthState",
    "AuthStore",
    "FilteredLinksStore",
    "LabelsStore",
    "LinkShelfClient",
    "LinksStore",
    "Store",
    "Stores",
]
