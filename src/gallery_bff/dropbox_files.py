# src/gallery_bff/dropbox_files.py
"""
Image listing against the Dropbox files API.

Getting displayable links is a two step process:
1. List the paths of the image files in a folder (a single page only).
2. Fetch a temporary link for each of those paths, all at once.
"""

import asyncio
import re
import typing

import httpx
from pydantic import BaseModel

from .config import Settings
from .errors import FolderListingError, PartialFailureError

IMAGE_PATH_PATTERN = re.compile(r"\.(gif|jpg|jpeg|tiff|png)$", re.IGNORECASE)


class FolderListing(BaseModel):
    paths: typing.List[str]
    # Only set when Dropbox says there are more entries; not followed yet
    cursor: typing.Optional[str] = None


class TemporaryLink(BaseModel):
    path: str
    link: str


def is_image_path(path: str) -> bool:
    return IMAGE_PATH_PATTERN.search(path) is not None


class DropboxFilesClient:
    def __init__(self, settings: Settings):
        self.settings = settings

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.UPSTREAM_TIMEOUT_SECONDS)

    async def get_links(self, token: str) -> typing.List[str]:
        """Temporary links for every image in the configured folder, URLs only."""
        listing = await self.list_image_paths(token, self.settings.DBX_IMAGE_FOLDER)
        temporary_links = await self.get_temporary_links(token, listing.paths)
        return [entry.link for entry in temporary_links]

    async def list_image_paths(self, token: str, path: str = "") -> FolderListing:
        headers = {"Authorization": f"Bearer {token}"}
        async with self._client() as client:
            try:
                response = await client.post(self.settings.list_folder_url, headers=headers, json={"path": path})
                response.raise_for_status()
                result = response.json()
                entries = result["entries"]
                paths = []
                for entry in entries:
                    path_lower = (entry.get("path_lower") or entry.get("path_display") or "").lower()
                    if is_image_path(path_lower):
                        paths.append(path_lower)
                has_more = result.get("has_more", result.get("hasmore"))
            except httpx.HTTPStatusError as e:
                print(f"DROPBOX_FILES: list_folder returned {e.response.status_code}: {e.response.text}")
                raise FolderListingError(f"error listing folder. HTTP {e.response.status_code}") from e
            except httpx.RequestError as e:
                print(f"DROPBOX_FILES: Request error listing folder: {str(e)}")
                raise FolderListingError(f"error listing folder. {str(e)}") from e
            except (ValueError, KeyError, TypeError, AttributeError) as e:
                print(f"DROPBOX_FILES: Malformed list_folder response: {str(e)}")
                raise FolderListingError("error listing folder. Malformed response from Dropbox.") from e

        listing = FolderListing(paths=paths)
        if has_more:
            listing.cursor = result.get("cursor")
            print("DROPBOX_FILES: Folder has more entries than the first page, only the first page is shown.")
        print(f"DROPBOX_FILES: {len(paths)} image(s) of {len(entries)} entries in '{path}'")
        return listing

    async def get_temporary_links(self, token: str, paths: typing.List[str]) -> typing.List[TemporaryLink]:
        """
        Resolves a temporary link for every path concurrently. Either every link
        resolves or PartialFailureError is raised, never a partial list.
        asyncio.gather keeps results in the order of `paths`.
        """
        if not paths:
            return []

        headers = {"Authorization": f"Bearer {token}"}
        async with self._client() as client:
            results = await asyncio.gather(
                *(self._get_temporary_link(client, headers, path) for path in paths),
                return_exceptions=True,
            )

        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            for failure in failures:
                print(f"DROPBOX_FILES: get_temporary_link failed: {failure!r}")
            raise PartialFailureError(failed=len(failures), total=len(paths))
        return results

    async def _get_temporary_link(self, client: httpx.AsyncClient, headers: dict, path: str) -> TemporaryLink:
        response = await client.post(self.settings.temporary_link_url, headers=headers, json={"path": path})
        response.raise_for_status()
        return TemporaryLink(path=path, link=response.json()["link"])
