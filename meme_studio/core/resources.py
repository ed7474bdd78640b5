"""临时资源管理模块.

预览缩略图等临时资源通过 URL 句柄引用，由拥有者在移除、替换或会话重置时
经唯一的释放路径释放一次。

Features:
    - 句柄创建与查询
    - 恰好释放一次（重复释放抛出异常）
    - 存活数量统计，便于发现泄漏
"""

from __future__ import annotations

import uuid
from typing import Optional

from PIL import Image

from meme_studio.utils.exceptions import ResourceReleasedError
from meme_studio.utils.logger import setup_logger

logger = setup_logger(__name__)

RESOURCE_URL_SCHEME = "preview://"


class TransientResource:
    """临时资源句柄.

    Attributes:
        url: 资源 URL
        kind: 资源类别（用于日志）
        image: 持有的解码图片，可为空
    """

    def __init__(self, url: str, kind: str, image: Optional[Image.Image] = None) -> None:
        self.url = url
        self.kind = kind
        self._image = image
        self._released = False

    @property
    def image(self) -> Optional[Image.Image]:
        return self._image

    @property
    def released(self) -> bool:
        return self._released

    def _close(self) -> None:
        if self._image is not None:
            self._image.close()
            self._image = None
        self._released = True

    def __repr__(self) -> str:
        state = "released" if self._released else "live"
        return f"TransientResource({self.url!r}, {self.kind}, {state})"


class ResourceTracker:
    """临时资源登记表.

    Example:
        >>> tracker = ResourceTracker()
        >>> handle = tracker.create("preview")
        >>> tracker.live_count
        1
        >>> tracker.release(handle.url)
        >>> tracker.live_count
        0
    """

    def __init__(self) -> None:
        self._live: dict[str, TransientResource] = {}

    @property
    def live_count(self) -> int:
        """未释放的资源数量."""
        return len(self._live)

    def create(self, kind: str, image: Optional[Image.Image] = None) -> TransientResource:
        """创建资源句柄.

        Args:
            kind: 资源类别
            image: 资源持有的图片

        Returns:
            新句柄
        """
        url = f"{RESOURCE_URL_SCHEME}{kind}/{uuid.uuid4().hex}"
        handle = TransientResource(url, kind, image)
        self._live[url] = handle
        logger.debug(f"创建临时资源: {url}")
        return handle

    def get(self, url: str) -> Optional[TransientResource]:
        """按 URL 获取存活资源."""
        return self._live.get(url)

    def is_live(self, url: str) -> bool:
        return url in self._live

    def release(self, url: str) -> None:
        """释放资源.

        Args:
            url: 资源 URL

        Raises:
            ResourceReleasedError: 资源不存在或已释放
        """
        handle = self._live.pop(url, None)
        if handle is None:
            raise ResourceReleasedError(url)
        handle._close()
        logger.debug(f"释放临时资源: {url}")

    def release_all(self) -> int:
        """释放全部资源.

        Returns:
            释放数量
        """
        count = 0
        for url in list(self._live):
            self.release(url)
            count += 1
        return count
