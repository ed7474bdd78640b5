"""多图布局合成器.

管理布局模式、源图片、全局字幕与自定义字幕；任何输入变化后经渲染调度器
防抖重新生成预览。

Features:
    - 四种布局模式，切换时截断超出上限的图片
    - 批量添加图片：超出上限整批拒绝，超大图片逐张拒绝
    - 点击位置映射到图片自然像素坐标后放置自定义字幕
    - 每张源图片与生成的预览各持有一个临时资源，移除/替换/重置时释放一次
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from PIL import Image

from meme_studio.core.config_manager import get_settings
from meme_studio.core.render_scheduler import RenderScheduler
from meme_studio.core.resources import ResourceTracker, TransientResource
from meme_studio.models.app_settings import DecodeFailurePolicy, Settings
from meme_studio.models.layout import (
    CaptionStyle,
    CustomCaption,
    LayoutMode,
    LayoutSpec,
    SourceImage,
    get_layout_spec,
)
from meme_studio.services.layout_renderer import LayoutRenderer
from meme_studio.utils.constants import (
    DEFAULT_CUSTOM_CAPTION_TEXT,
    DEFAULT_RENDER_DEBOUNCE_MS,
    MAX_UPLOAD_BYTES,
)
from meme_studio.utils.exceptions import (
    CaptionNotFoundError,
    EmptyCompositionError,
    ImageDecodeError,
    ImageTooLargeError,
    InputRejectedError,
    SourceImageNotFoundError,
    TooManyImagesError,
)
from meme_studio.utils.geometry import Point, Size, display_to_natural
from meme_studio.utils.image_utils import (
    create_thumbnail,
    decode_image,
    image_to_png_bytes,
)
from meme_studio.utils.logger import setup_logger

logger = setup_logger(__name__)

PREVIEW_RESOURCE_KIND = "preview"
THUMBNAIL_RESOURCE_KIND = "thumbnail"


@dataclass
class AddImagesResult:
    """批量添加结果.

    Attributes:
        added: 成功添加的图片
        rejected: 被逐张拒绝的图片及原因
    """

    added: list[SourceImage] = field(default_factory=list)
    rejected: list[InputRejectedError] = field(default_factory=list)

    @property
    def all_added(self) -> bool:
        return not self.rejected


class LayoutCompositor:
    """多图布局合成器.

    Example:
        >>> compositor = LayoutCompositor()
        >>> compositor.add_images([("cat.png", data)])
        >>> compositor.set_top_text("WHEN THE CODE")
        >>> preview = await compositor.wait_idle()
        >>> png = await compositor.export_png()
    """

    def __init__(
        self,
        mode: LayoutMode = LayoutMode.SINGLE,
        resources: Optional[ResourceTracker] = None,
        renderer: Optional[LayoutRenderer] = None,
        debounce_ms: int = DEFAULT_RENDER_DEBOUNCE_MS,
        max_upload_bytes: int = MAX_UPLOAD_BYTES,
        decode_failure_policy: DecodeFailurePolicy = DecodeFailurePolicy.SKIP,
    ) -> None:
        """初始化合成器.

        Args:
            mode: 初始布局模式
            resources: 临时资源登记表，默认新建
            renderer: 布局渲染器，默认按解码失败策略创建
            debounce_ms: 防抖静默期（毫秒）
            max_upload_bytes: 单张图片大小上限
            decode_failure_policy: 未传入 renderer 时使用的解码失败策略
        """
        self._mode = LayoutMode(mode)
        self.resources = resources or ResourceTracker()
        self._renderer = renderer or LayoutRenderer(decode_failure_policy)
        self.max_upload_bytes = max_upload_bytes

        self._images: list[SourceImage] = []
        self._captions: list[CustomCaption] = []
        self._active_index = 0
        self.top_text = ""
        self.bottom_text = ""
        self.caption_style = CaptionStyle()

        self._preview: Optional[TransientResource] = None
        self._scheduler: RenderScheduler[Image.Image] = RenderScheduler(
            self.render,
            delay=debounce_ms / 1000,
            on_rendered=self._on_rendered,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        resources: Optional[ResourceTracker] = None,
    ) -> "LayoutCompositor":
        """按应用设置创建合成器."""
        settings = settings or get_settings()
        renderer = LayoutRenderer(
            settings.decode_failure_policy,
            font_family=settings.caption_font_family,
        )
        return cls(
            resources=resources,
            renderer=renderer,
            debounce_ms=settings.render_debounce_ms,
            max_upload_bytes=settings.max_upload_bytes,
        )

    # ========================
    # 查询
    # ========================

    @property
    def mode(self) -> LayoutMode:
        return self._mode

    @property
    def spec(self) -> LayoutSpec:
        return get_layout_spec(self._mode)

    @property
    def images(self) -> list[SourceImage]:
        return list(self._images)

    @property
    def image_count(self) -> int:
        return len(self._images)

    @property
    def captions(self) -> list[CustomCaption]:
        return list(self._captions)

    @property
    def active_index(self) -> int:
        return self._active_index

    @property
    def has_content(self) -> bool:
        return bool(self._images)

    @property
    def scheduler(self) -> RenderScheduler[Image.Image]:
        return self._scheduler

    @property
    def preview(self) -> Optional[TransientResource]:
        """当前预览资源（最近一次有效渲染结果）."""
        return self._preview

    @property
    def preview_url(self) -> Optional[str]:
        return self._preview.url if self._preview is not None else None

    def get_image(self, image_id: str) -> SourceImage:
        """根据ID获取源图片.

        Raises:
            SourceImageNotFoundError: 图片不存在
        """
        for image in self._images:
            if image.id == image_id:
                return image
        raise SourceImageNotFoundError(image_id)

    def get_caption(self, caption_id: str) -> CustomCaption:
        """根据ID获取自定义字幕.

        Raises:
            CaptionNotFoundError: 字幕不存在
        """
        for caption in self._captions:
            if caption.id == caption_id:
                return caption
        raise CaptionNotFoundError(caption_id)

    # ========================
    # 布局与图片
    # ========================

    def set_mode(self, mode: LayoutMode) -> None:
        """切换布局模式.

        超出新上限的图片被截断并释放其预览资源；引用已截断序号的自定义字幕
        一并丢弃。
        """
        self._mode = LayoutMode(mode)
        max_images = self.spec.max_images

        truncated = self._images[max_images:]
        if truncated:
            for image in truncated:
                self._release_image(image)
            self._images = self._images[:max_images]
            logger.info(f"切换布局截断 {len(truncated)} 张图片")

        self._captions = [c for c in self._captions if c.image_index < max_images]
        self._clamp_active_index()
        self._invalidate()

    def add_images(self, batch: Iterable[tuple[str, bytes]]) -> AddImagesResult:
        """批量添加图片.

        Args:
            batch: (文件名, 字节数据) 序列

        Returns:
            添加结果，超大图片在 rejected 中逐张列出

        Raises:
            TooManyImagesError: 当前数量 + 批量数量超过模式上限，整批未添加
        """
        items = list(batch)
        max_images = self.spec.max_images
        if len(self._images) + len(items) > max_images:
            raise TooManyImagesError(max_images)

        result = AddImagesResult()
        for name, data in items:
            if len(data) > self.max_upload_bytes:
                error = ImageTooLargeError(name, len(data), self.max_upload_bytes)
                logger.warning(str(error))
                result.rejected.append(error)
                continue

            handle = self.resources.create(
                THUMBNAIL_RESOURCE_KIND, self._make_thumbnail(data, name)
            )
            image = SourceImage(
                name=name,
                data=data,
                preview_url=handle.url,
                index=len(self._images),
            )
            self._images.append(image)
            result.added.append(image)

        if result.added:
            logger.info(f"添加 {len(result.added)} 张图片，当前共 {len(self._images)} 张")
            self._invalidate()
        return result

    def remove_image(self, image_id: str) -> None:
        """移除图片.

        释放其预览资源，重新编号剩余图片；锚定在该序号上的字幕被丢弃，
        更高序号的字幕前移一位。

        Raises:
            SourceImageNotFoundError: 图片不存在
        """
        image = self.get_image(image_id)
        removed_index = image.index

        self._release_image(image)
        self._images.remove(image)
        for i, remaining in enumerate(self._images):
            remaining.index = i

        kept: list[CustomCaption] = []
        for caption in self._captions:
            if caption.image_index == removed_index:
                continue
            if caption.image_index > removed_index:
                caption.image_index -= 1
            kept.append(caption)
        self._captions = kept

        self._clamp_active_index()
        logger.debug(f"移除图片: {image.name}")
        self._invalidate()

    def set_active_image(self, index: int) -> None:
        """设置活动图片（新字幕锚定的图片）.

        Raises:
            SourceImageNotFoundError: 序号不存在
        """
        if not 0 <= index < len(self._images):
            raise SourceImageNotFoundError(str(index))
        self._active_index = index

    # ========================
    # 字幕
    # ========================

    def set_top_text(self, text: str) -> None:
        self.top_text = text
        self._invalidate()

    def set_bottom_text(self, text: str) -> None:
        self.bottom_text = text
        self._invalidate()

    def set_caption_style(self, **changes) -> CaptionStyle:
        """修改全局字幕样式（同时作为新自定义字幕的默认样式）.

        Args:
            **changes: text_color / background_color / background_opacity

        Returns:
            更新后的样式
        """
        self.caption_style = CaptionStyle.model_validate(
            {**self.caption_style.model_dump(), **changes}
        )
        self._invalidate()
        return self.caption_style

    def place_caption(
        self,
        display_offset: Point,
        displayed_size: Size,
        natural_size: Size,
        text: str = DEFAULT_CUSTOM_CAPTION_TEXT,
    ) -> CustomCaption:
        """在预览上点击放置自定义字幕.

        Args:
            display_offset: 点击位置相对显示图片左上角的偏移
            displayed_size: 图片显示尺寸
            natural_size: 图片自然尺寸
            text: 初始文字

        Returns:
            处于编辑状态的新字幕

        Raises:
            EmptyCompositionError: 还没有图片
        """
        if not self._images:
            raise EmptyCompositionError("图片")
        x, y = display_to_natural(display_offset, displayed_size, natural_size)
        caption = CustomCaption(
            text=text,
            x=x,
            y=y,
            image_index=self._active_index,
            color=self.caption_style.text_color,
            background_color=self.caption_style.background_color,
            background_opacity=self.caption_style.background_opacity,
        )
        self._captions.append(caption)
        logger.debug(f"放置字幕 {caption.id} 于 ({x:.1f}, {y:.1f})")
        self._invalidate()
        return caption

    def commit_caption(self, caption_id: str, text: str) -> CustomCaption:
        """提交字幕文字并结束编辑."""
        caption = self.get_caption(caption_id)
        caption.text = text
        caption.editing = False
        self._invalidate()
        return caption

    def remove_caption(self, caption_id: str) -> None:
        caption = self.get_caption(caption_id)
        self._captions.remove(caption)
        self._invalidate()

    # ========================
    # 渲染
    # ========================

    async def render(self) -> Image.Image:
        """按当前状态完整渲染一次.

        Raises:
            ImageDecodeError: 策略为 ABORT 且存在解码失败
        """
        return await self._renderer.render(
            self._mode,
            list(self._images),
            self.top_text,
            self.bottom_text,
            self.caption_style.model_copy(),
            [caption.model_copy() for caption in self._captions],
        )

    async def export_png(self) -> bytes:
        """独立渲染一次并编码为 PNG.

        Raises:
            EmptyCompositionError: 没有图片
            ExportError: 编码无输出
        """
        if not self._images:
            raise EmptyCompositionError("图片")
        image = await self.render()
        return image_to_png_bytes(image)

    async def wait_idle(self) -> Optional[Image.Image]:
        """等待已安排的预览渲染完成.

        Returns:
            当前预览图片，没有预览时返回 None
        """
        await self._scheduler.wait_idle()
        return self._preview.image if self._preview is not None else None

    def reset(self) -> None:
        """清空会话并释放全部临时资源."""
        self._scheduler.cancel()
        for image in self._images:
            self._release_image(image)
        self._images.clear()
        self._captions.clear()
        self._clear_preview()
        self._active_index = 0
        self.top_text = ""
        self.bottom_text = ""
        self.caption_style = CaptionStyle()
        logger.info("合成器已重置")

    def _invalidate(self) -> None:
        if not self._images:
            self._scheduler.cancel()
            self._clear_preview()
            return
        self._scheduler.schedule()

    def _on_rendered(self, image: Image.Image) -> None:
        self._clear_preview()
        self._preview = self.resources.create(PREVIEW_RESOURCE_KIND, image)

    def _clear_preview(self) -> None:
        if self._preview is not None:
            self.resources.release(self._preview.url)
            self._preview = None

    def _release_image(self, image: SourceImage) -> None:
        if image.preview_url:
            self.resources.release(image.preview_url)
            image.preview_url = ""

    def _clamp_active_index(self) -> None:
        self._active_index = max(0, min(self._active_index, len(self._images) - 1))

    @staticmethod
    def _make_thumbnail(data: bytes, name: str) -> Optional[Image.Image]:
        try:
            image = decode_image(data, name)
        except ImageDecodeError as e:
            logger.warning(f"无法生成预览缩略图: {e}")
            return None
        try:
            return create_thumbnail(image)
        finally:
            image.close()
