"""Image reference resolution for one conversion pass.

References are tried in this order:

1. ``work2word-local://<file>``: a file in the local asset store.
2. ``./assets/images/<...>`` or ``assets/images/<...>``: the same store,
   matched by basename.
3. ``http(s)://`` and protocol-relative ``//host/...`` URLs: fetched with
   httpx, one request per reference.
4. Anything else: a filesystem path (a ``file://`` prefix is dropped).

A reference that cannot be resolved yields ``None``. Failures are logged
and never raised; the block builder turns them into placeholders.
"""
import asyncio
import os
from typing import Callable, Dict, Iterable, Optional, Union

import httpx

from work2word.log import get_logger
from work2word.settings import ASSET_SCHEME, DEFAULT_FETCH_TIMEOUT, default_asset_root

LOGGER = get_logger(__name__)

ASSET_PREFIXES = ("./assets/images/", "assets/images/")

AssetRoot = Union[str, os.PathLike, Callable[[], str], None]


class ImageResolver:
    def __init__(
        self,
        asset_root: AssetRoot = None,
        *,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._asset_root = asset_root if asset_root is not None else default_asset_root
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._tasks: Dict[str, asyncio.Task] = {}
        self.cache: Dict[str, Optional[bytes]] = {}
        self.fetch_count = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def asset_root(self) -> str:
        root = self._asset_root
        if callable(root):
            root = root()
        return os.fspath(root)

    async def resolve(self, ref: str) -> Optional[bytes]:
        if ref in self.cache:
            return self.cache[ref]
        task = self._tasks.get(ref)
        if task is None:
            task = asyncio.ensure_future(self._load(ref))
            self._tasks[ref] = task
        data = await task
        self.cache[ref] = data
        return data

    async def resolve_all(self, refs: Iterable[str]) -> Dict[str, Optional[bytes]]:
        unique = list(dict.fromkeys(ref for ref in refs if ref))
        if unique:
            await asyncio.gather(*(self.resolve(ref) for ref in unique))
        return dict(self.cache)

    async def _load(self, ref: str) -> Optional[bytes]:
        self.fetch_count += 1
        try:
            if ref.startswith(ASSET_SCHEME):
                name = ref[len(ASSET_SCHEME):]
                return await self._read_file(os.path.join(self.asset_root(), name), ref)
            if ref.startswith(ASSET_PREFIXES):
                name = ref.rstrip("/").split("/")[-1]
                return await self._read_file(os.path.join(self.asset_root(), name), ref)
            if ref.startswith(("http://", "https://")):
                return await self._fetch(ref)
            if ref.startswith("//"):
                return await self._fetch("https:" + ref)
            path = ref[len("file://"):] if ref.startswith("file://") else ref
            return await self._read_file(path, ref)
        except Exception:
            LOGGER.exception("Unexpected error while loading image %s", ref)
            return None

    async def _read_file(self, path: str, ref: str) -> Optional[bytes]:
        try:
            data = await asyncio.to_thread(_read_bytes, path)
        except OSError as exc:
            LOGGER.warning("Cannot read image %s (%s): %s", ref, path, exc)
            return None
        if not data:
            LOGGER.warning("Image %s is empty", ref)
            return None
        LOGGER.info("Loaded image %s (%d bytes)", ref, len(data))
        return data

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def _fetch(self, url: str) -> Optional[bytes]:
        try:
            # The client timeout applies per read; this caps the whole download.
            response = await asyncio.wait_for(self._get_client().get(url), self.timeout)
            response.raise_for_status()
        except (httpx.TimeoutException, asyncio.TimeoutError):
            LOGGER.warning("Timed out downloading image %s", url)
            return None
        except httpx.HTTPStatusError as exc:
            LOGGER.warning("HTTP error %s downloading image %s", exc.response.status_code, url)
            return None
        except httpx.HTTPError as exc:
            LOGGER.warning("Failed to download image %s: %s", url, exc)
            return None
        content_type = response.headers.get("content-type", "").lower()
        if content_type and "image" not in content_type:
            LOGGER.warning("Unexpected content-type %s for image %s", content_type, url)
        if not response.content:
            return None
        LOGGER.info("Downloaded image %s (%d bytes)", url, len(response.content))
        return response.content


def _read_bytes(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()
