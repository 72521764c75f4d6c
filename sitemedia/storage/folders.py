"""Asset directory listing and folder tree construction."""

from __future__ import annotations

import logging
import unicodedata
from typing import Iterable, Sequence
from urllib.parse import quote

import requests

from sitemedia.core.errors import FolderListingError
from sitemedia.core.settings import DEFAULT_FOLDER_PRIORITY, Settings
from sitemedia.media.models import FolderNode

logger = logging.getLogger(__name__)

MAX_RESULTS = 500


def _name_key(name: str) -> tuple[str, str]:
    decomposed = unicodedata.normalize("NFKD", name)
    folded = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()
    return folded, name


def _split(path: str) -> list[str]:
    return [part.strip() for part in path.split("/") if part.strip()]


def _sort_children(node: FolderNode) -> None:
    node.children.sort(key=lambda child: _name_key(child.name))
    for child in node.children:
        _sort_children(child)


def build_tree(
    paths: Iterable[str], priority: Sequence[str] = DEFAULT_FOLDER_PRIORITY
) -> list[FolderNode]:
    """Rebuild the folder hierarchy from a flat list of ``/``-delimited paths.

    Missing ancestors are synthesized and duplicate paths collapse into one
    node. Top-level folders named in ``priority`` come first in that order;
    every other level sorts alphabetically.
    """
    nodes: dict[str, FolderNode] = {}
    roots: list[FolderNode] = []

    for raw in paths:
        parts = _split(raw or "")
        parent: FolderNode | None = None
        for depth in range(len(parts)):
            node_path = "/".join(parts[: depth + 1])
            node = nodes.get(node_path)
            if node is None:
                node = FolderNode(name=parts[depth], path=node_path)
                nodes[node_path] = node
                if parent is None:
                    roots.append(node)
                else:
                    parent.children.append(node)
            parent = node

    rank = {name: index for index, name in enumerate(priority)}
    fallback = len(rank)
    roots.sort(key=lambda node: (rank.get(node.name, fallback), _name_key(node.name)))
    for root in roots:
        _sort_children(root)
    return roots


def count_nodes(nodes: Iterable[FolderNode]) -> int:
    return sum(1 + count_nodes(node.children) for node in nodes)


class CloudinaryFolderClient:
    """Directory listing against the Cloudinary Admin API."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        *,
        host: str = "api.cloudinary.com",
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = f"https://{host}/v1_1/{cloud_name}/folders"
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.auth = (api_key, api_secret)

    @classmethod
    def from_settings(cls, settings: Settings) -> "CloudinaryFolderClient":
        return cls(
            settings.CLOUDINARY_CLOUD_NAME,
            settings.CLOUDINARY_API_KEY or "",
            settings.CLOUDINARY_API_SECRET or "",
            host=settings.CLOUDINARY_ADMIN_HOST,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )

    def _fetch(self, parent: str = "") -> list[str]:
        url = self.base_url
        if parent:
            url = f"{url}/{quote(parent, safe='/')}"
        params: dict[str, object] = {"max_results": MAX_RESULTS}
        paths: list[str] = []
        while True:
            try:
                response = self._session.get(url, params=params, timeout=self.timeout)
                response.raise_for_status()
                payload = response.json()
            except (requests.RequestException, ValueError) as exc:
                raise FolderListingError(f"folder listing failed for {parent or '/'}: {exc}") from exc
            if not isinstance(payload, dict):
                raise FolderListingError(
                    f"folder listing for {parent or '/'} returned {type(payload).__name__}, expected an object"
                )
            folders = payload.get("folders") or []
            if not isinstance(folders, list):
                raise FolderListingError(f"folder listing for {parent or '/'} has no folder list")
            for folder in folders:
                if not isinstance(folder, dict):
                    continue
                path = folder.get("path")
                name = folder.get("name")
                if not isinstance(path, str) or not path:
                    if not isinstance(name, str) or not name:
                        logger.warning("Skipping unnamed folder entry.", extra={"parent": parent or "/"})
                        continue
                    path = f"{parent}/{name}" if parent else name
                paths.append(path)
            cursor = payload.get("next_cursor")
            if not cursor:
                return paths
            params = {"max_results": MAX_RESULTS, "next_cursor": cursor}

    def list_root_folders(self) -> list[str]:
        return self._fetch()

    def list_subfolders(self, path: str) -> list[str]:
        """Every folder below ``path``, depth first.

        A branch that cannot be listed is logged and left empty; the rest of
        the walk carries on.
        """
        try:
            children = self._fetch(path)
        except FolderListingError as exc:
            logger.warning("Subfolder listing failed.", extra={"path": path, "detail": str(exc)})
            return []
        collected: list[str] = []
        for child in children:
            collected.append(child)
            collected.extend(self.list_subfolders(child))
        return collected

    def list_all_paths(self) -> list[str]:
        paths: list[str] = []
        for root in self.list_root_folders():
            paths.append(root)
            paths.extend(self.list_subfolders(root))
        return paths


class MediaDirectory:
    def __init__(self, client, priority: Sequence[str] = DEFAULT_FOLDER_PRIORITY) -> None:
        self.client = client
        self.priority = tuple(priority)

    def folder_tree(self) -> list[FolderNode]:
        if self.client is None:
            raise FolderListingError("Cloudinary admin credentials are not configured")
        paths = self.client.list_all_paths()
        tree = build_tree(sorted(paths), self.priority)
        logger.info(
            "Folder tree built.",
            extra={"total_folders": len(set(paths)), "root_folders": len(tree)},
        )
        return tree
