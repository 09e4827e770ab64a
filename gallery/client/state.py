"""
Client-side gallery state: staging, viewer, error slot and pagination.

Two pagination flavours mirror the two server modes. ``PagedGallery`` walks
database pages by number; ``TokenGallery`` walks bucket listings with
continuation tokens. Every action issues one request and updates state when
it completes. ``loading`` is informational only: nothing stops a second
action from starting while one is in flight.
"""
from pathlib import Path
from typing import Callable, List, Optional

import requests
import structlog

from gallery.client.api import GalleryApiClient

logger = structlog.get_logger()

LOAD_FAILED = "Failed to load images"
UPLOAD_FAILED = "Upload failed"
DELETE_FAILED = "Delete failed"

KEY_PREFIX = "uploads/"


class GalleryState:
    def __init__(
        self,
        api: GalleryApiClient,
        size: int = 3,
        confirm: Optional[Callable[[str], bool]] = None,
    ):
        self.api = api
        self.size = size
        self.confirm = confirm
        self.images: List[dict] = []
        self.loading = False
        self.error: Optional[str] = None
        self.selected_file: Optional[str] = None
        self.preview_url: Optional[str] = None
        self.description = ""
        self.display_url: Optional[str] = None
        self.selected_label: Optional[str] = None

    # staging

    def select_file(self, path: str) -> None:
        self.selected_file = path
        self.preview_url = Path(path).resolve().as_uri()
        self.display_url = self.preview_url

    def set_description(self, text: str) -> None:
        self.description = text

    def reset_staging(self) -> None:
        self.selected_file = None
        self.preview_url = None
        self.description = ""
        self.clear_viewer()

    # viewer

    def view_image(self, image: dict) -> None:
        self.display_url = image["url"]
        key = image.get("key", "")
        self.selected_label = image.get("fileName") or key[len(KEY_PREFIX):]

    def clear_viewer(self) -> None:
        self.display_url = None
        self.selected_label = None

    @property
    def show_preview(self) -> bool:
        return bool(self.images) or self.selected_file is not None

    def _fail(self, message: str, err: Exception) -> None:
        self.error = message
        self.loading = False
        logger.warning("gallery_action_failed", message=message, error=str(err))

    def _confirmed(self) -> bool:
        return self.confirm is None or self.confirm("Delete this image?")


class PagedGallery(GalleryState):
    """Page-number navigation over ``GET /images?page=&size=``."""

    def __init__(self, api: GalleryApiClient, size: int = 3, confirm: Optional[Callable[[str], bool]] = None):
        super().__init__(api, size, confirm)
        self.current_page = 1
        self.next_page: Optional[int] = None

    def load(self, page: Optional[int] = None) -> bool:
        page = page or self.current_page
        self.loading = True
        try:
            res = self.api.list_images(page=page, size=self.size)
        except requests.RequestException as e:
            self._fail(LOAD_FAILED, e)
            return False
        self.images = res.get("images_data") or []
        self.next_page = res.get("nextPage")
        self.current_page = page
        self.clear_viewer()
        self.loading = False
        return True

    def next(self) -> bool:
        if not self.next_page:
            return False
        self.current_page = self.next_page
        return self.load()

    def back(self) -> bool:
        if self.current_page <= 1:
            return False
        self.current_page -= 1
        return self.load()

    def upload(self) -> Optional[dict]:
        if not self.selected_file:
            return None
        self.loading = True
        try:
            res = self.api.upload_image(self.selected_file, self.description or None)
        except requests.RequestException as e:
            self._fail(UPLOAD_FAILED, e)
            return None
        self.reset_staging()
        self.current_page = 1
        self.next_page = None
        self.load()
        return res

    def delete(self, image_id) -> bool:
        if not self._confirmed():
            return False
        self.loading = True
        try:
            self.api.delete_image(image_id)
        except requests.RequestException as e:
            self._fail(DELETE_FAILED, e)
            return False
        self.clear_viewer()
        emptied_last_page = len(self.images) <= 1 and self.next_page is None
        if emptied_last_page and self.current_page > 1:
            self.current_page -= 1
        return self.load()


class TokenGallery(GalleryState):
    """Continuation-token navigation over ``GET /images?size=&token=``."""

    def __init__(self, api: GalleryApiClient, size: int = 3, confirm: Optional[Callable[[str], bool]] = None):
        super().__init__(api, size, confirm)
        self.next_token: Optional[str] = None
        self.current_token: Optional[str] = None
        self.prev_tokens: List[Optional[str]] = []

    def load(self, token: Optional[str] = None, fallback: bool = True) -> bool:
        self.loading = True
        try:
            res = self.api.list_bucket_images(size=self.size, token=token)
        except requests.RequestException as e:
            self._fail(LOAD_FAILED, e)
            return False
        images = res.get("images") or []
        self.next_token = res.get("nextToken")
        self.current_token = token
        self.reset_staging()
        self.loading = False

        # An empty page past the first means the listing moved under us.
        if not images and fallback and self.prev_tokens:
            return self.load(self.prev_tokens.pop(), fallback=False)

        self.images = images
        return True

    def next(self) -> bool:
        if not self.next_token:
            return False
        self.prev_tokens.append(self.current_token)
        return self.load(self.next_token)

    def back(self) -> bool:
        if not self.prev_tokens:
            return False
        return self.load(self.prev_tokens.pop())

    def reset_pagination(self) -> None:
        self.next_token = None
        self.prev_tokens = []
        self.current_token = None

    def upload(self) -> Optional[dict]:
        if not self.selected_file:
            return None
        self.loading = True
        try:
            res = self.api.upload_image(self.selected_file, self.description or None)
        except requests.RequestException as e:
            self._fail(UPLOAD_FAILED, e)
            return None
        self.selected_file = None
        self.reset_pagination()
        self.load()
        return res

    def delete(self, key: str) -> bool:
        if not self._confirmed():
            return False
        self.loading = True
        try:
            self.api.delete_image(key)
        except requests.RequestException as e:
            self._fail(DELETE_FAILED, e)
            return False
        self.clear_viewer()
        return self.load(self.current_token)
