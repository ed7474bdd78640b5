"""作品发布.

把任一编辑器的渲染结果交给外部协作方：上传图床、保存元数据、下载、分享。
协作方以抽象基类定义，具体实现（HTTP 客户端、系统分享面板、剪贴板）由
调用方注入。

Features:
    - 保存：前置检查 -> 导出 PNG -> 上传 -> 写入记录
    - 下载：生成 {标题 或 meme}.png
    - 分享：支持文件分享时直接分享，否则复制临时 URL 到剪贴板
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from meme_studio.core.element_editor import ElementEditor
from meme_studio.core.layout_compositor import LayoutCompositor
from meme_studio.core.resources import ResourceTracker, TransientResource
from meme_studio.utils.constants import DEFAULT_EXPORT_BASENAME, PNG_MIME_TYPE
from meme_studio.utils.exceptions import (
    EmptyCompositionError,
    ExportError,
    MissingTitleError,
)
from meme_studio.utils.image_utils import decode_image
from meme_studio.utils.logger import setup_logger

logger = setup_logger(__name__)

MemeSource = Union[ElementEditor, LayoutCompositor]

SHARE_RESOURCE_KIND = "share"
UNSAFE_FILENAME_CHARS = '<>:"/\\|?*'


# ===================
# 数据模型
# ===================


class UploadResult(BaseModel):
    """上传结果.

    字段别名与服务端 JSON 保持一致。
    """

    model_config = ConfigDict(populate_by_name=True)

    image_url: str = Field(alias="imageUrl", description="图片地址")
    cloudinary_id: str = Field(alias="cloudinaryId", description="图床资源ID")


class MemeRecord(BaseModel):
    """作品元数据记录."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1, description="标题")
    image_url: str = Field(alias="imageUrl", description="图片地址")
    cloudinary_id: str = Field(alias="cloudinaryId", description="图床资源ID")

    def to_payload(self) -> dict:
        """转换为请求体（camelCase）."""
        return self.model_dump(by_alias=True)


class ExportArtifact(BaseModel):
    """导出产物."""

    filename: str
    data: bytes = Field(repr=False)
    mime_type: str = PNG_MIME_TYPE

    @property
    def size_bytes(self) -> int:
        return len(self.data)


# ===================
# 协作方接口
# ===================


class ImageUploader(ABC):
    """图片上传接口."""

    @abstractmethod
    async def upload(self, data: bytes, filename: str) -> UploadResult:
        """上传图片.

        Args:
            data: PNG 字节数据
            filename: 文件名

        Returns:
            上传结果
        """
        pass


class MemeRepository(ABC):
    """作品记录存储接口."""

    @abstractmethod
    async def create(self, record: MemeRecord) -> None:
        """保存作品记录."""
        pass


class ShareTarget(ABC):
    """系统分享接口."""

    @abstractmethod
    def can_share_files(self) -> bool:
        """是否支持分享文件."""
        pass

    @abstractmethod
    async def share(self, title: str, text: str, artifact: ExportArtifact) -> None:
        """分享文件."""
        pass


class Clipboard(ABC):
    """剪贴板接口."""

    @abstractmethod
    def write_text(self, text: str) -> None:
        pass


def suggest_filename(title: Optional[str]) -> str:
    """根据标题生成下载文件名.

    Example:
        >>> suggest_filename("")
        'meme.png'
        >>> suggest_filename("周一早上")
        '周一早上.png'
    """
    base = title or DEFAULT_EXPORT_BASENAME
    for char in UNSAFE_FILENAME_CHARS:
        base = base.replace(char, "_")
    return f"{base}.png"


# ===================
# 发布器
# ===================


class MemePublisher:
    """作品发布器.

    Example:
        >>> publisher = MemePublisher(compositor, uploader=uploader, repository=repo)
        >>> record = await publisher.save("周一早上")
    """

    def __init__(
        self,
        source: MemeSource,
        uploader: Optional[ImageUploader] = None,
        repository: Optional[MemeRepository] = None,
        share_target: Optional[ShareTarget] = None,
        clipboard: Optional[Clipboard] = None,
        resources: Optional[ResourceTracker] = None,
        reset_after_save: bool = True,
    ) -> None:
        """初始化发布器.

        Args:
            source: 元素编辑器或布局合成器
            uploader: 图片上传实现
            repository: 作品记录存储实现
            share_target: 系统分享实现
            clipboard: 剪贴板实现
            resources: 分享临时 URL 使用的资源登记表
            reset_after_save: 保存成功后是否重置编辑会话
        """
        self.source = source
        self.uploader = uploader
        self.repository = repository
        self.share_target = share_target
        self.clipboard = clipboard
        self.resources = resources or getattr(source, "resources", None) or ResourceTracker()
        self.reset_after_save = reset_after_save
        self._shared: Optional[TransientResource] = None

    def _check_content(self) -> None:
        if not self.source.has_content:
            what = "图片" if isinstance(self.source, LayoutCompositor) else "元素"
            raise EmptyCompositionError(what)

    async def save(self, title: str) -> MemeRecord:
        """保存作品：导出、上传并写入记录.

        Args:
            title: 作品标题

        Returns:
            写入的记录

        Raises:
            MissingTitleError: 标题为空
            EmptyCompositionError: 没有内容
            ExportError: 导出失败或未配置上传/存储
        """
        if not title or not title.strip():
            raise MissingTitleError()
        self._check_content()
        if self.uploader is None or self.repository is None:
            raise ExportError("未配置上传或存储服务")

        data = await self.source.export_png()
        uploaded = await self.uploader.upload(data, f"{DEFAULT_EXPORT_BASENAME}.png")
        record = MemeRecord(
            title=title.strip(),
            image_url=uploaded.image_url,
            cloudinary_id=uploaded.cloudinary_id,
        )
        await self.repository.create(record)
        logger.info(f"作品已保存: {record.title} -> {record.image_url}")

        if self.reset_after_save:
            self.source.reset()
        return record

    async def download(self, title: Optional[str] = None) -> ExportArtifact:
        """导出为可下载的 PNG.

        Raises:
            EmptyCompositionError: 没有内容
            ExportError: 编码无输出
        """
        self._check_content()
        data = await self.source.export_png()
        artifact = ExportArtifact(filename=suggest_filename(title), data=data)
        logger.debug(f"导出下载: {artifact.filename} ({artifact.size_bytes} bytes)")
        return artifact

    async def save_to_file(self, title: Optional[str], directory: Union[str, Path]) -> Path:
        """导出并写入目录.

        Returns:
            写入的文件路径
        """
        artifact = await self.download(title)
        target_dir = Path(directory)
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / artifact.filename
        try:
            path.write_bytes(artifact.data)
        except OSError as e:
            raise ExportError(f"写入文件失败: {path} ({e})") from e
        logger.info(f"已保存到文件: {path}")
        return path

    async def share(self, title: Optional[str] = None) -> Optional[str]:
        """分享作品.

        支持文件分享时直接分享 PNG；否则生成临时 URL 写入剪贴板。

        Returns:
            写入剪贴板的 URL，直接分享时为 None

        Raises:
            EmptyCompositionError: 没有内容
            ExportError: 没有可用的分享方式
        """
        artifact = await self.download(title)
        artifact = artifact.model_copy(update={"filename": f"{DEFAULT_EXPORT_BASENAME}.png"})
        label = title or ""

        if self.share_target is not None and self.share_target.can_share_files():
            await self.share_target.share(
                title=f"Meme: {label}",
                text=f"看看我做的表情包：{label}",
                artifact=artifact,
            )
            logger.info("已通过系统分享")
            return None

        if self.clipboard is None:
            raise ExportError("没有可用的分享方式")

        url = self._share_url(artifact)
        self.clipboard.write_text(url)
        logger.info(f"分享链接已复制到剪贴板: {url}")
        return url

    def _share_url(self, artifact: ExportArtifact) -> str:
        self.release_shared()
        self._shared = self.resources.create(
            SHARE_RESOURCE_KIND, decode_image(artifact.data, artifact.filename)
        )
        return self._shared.url

    def release_shared(self) -> None:
        """释放分享时生成的临时 URL."""
        if self._shared is not None:
            self.resources.release(self._shared.url)
            self._shared = None
