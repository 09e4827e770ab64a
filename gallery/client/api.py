import mimetypes
import os
from typing import Optional
from urllib.parse import quote

import requests


class GalleryApiClient:
    """Thin HTTP client for the gallery REST endpoints."""

    def __init__(self, base_url: str = "http://localhost:3000", session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def upload_image(self, path: str, description: Optional[str] = None) -> dict:
        content_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
        data = {"description": description} if description else None
        with open(path, "rb") as f:
            r = self.session.post(
                f"{self.base_url}/upload",
                files={"image": (os.path.basename(path), f, content_type)},
                data=data,
            )
        r.raise_for_status()
        return r.json()

    def list_images(self, page: int = 1, size: int = 3) -> dict:
        r = self.session.get(f"{self.base_url}/images", params={"page": page, "size": size})
        r.raise_for_status()
        return r.json()

    def list_bucket_images(self, size: int = 3, token: Optional[str] = None) -> dict:
        params = {"size": size}
        if token:
            params["token"] = token
        r = self.session.get(f"{self.base_url}/images", params=params)
        r.raise_for_status()
        return r.json()

    def delete_image(self, id_or_key) -> None:
        r = self.session.delete(f"{self.base_url}/images/{quote(str(id_or_key), safe='')}")
        r.raise_for_status()
