from gallery.client.api import GalleryApiClient
from gallery.client.state import PagedGallery, TokenGallery

__all__ = ["GalleryApiClient", "PagedGallery", "TokenGallery"]
