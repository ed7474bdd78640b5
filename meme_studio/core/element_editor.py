"""自由元素编辑器.

维护有序图层列表（列表顺序即 z 序），提供创建、选择、拖拽、缩放、旋转、
复制、删除，并按需栅格化为 PNG。

Features:
    - 文字/图片图层创建（图片异步解码获取原始尺寸）
    - 显式指针交互状态机（拖拽 / 缩放），同一时刻仅一个捕获
    - 拖拽时边界框始终限制在画布内
    - 尺寸下限与旋转角归一化由模型在赋值时保证
"""

from __future__ import annotations

import asyncio
from typing import Optional

from PIL import Image

from meme_studio.core.config_manager import get_settings
from meme_studio.core.interaction import (
    IDLE,
    Dragging,
    Idle,
    InteractionState,
    ResizeHandle,
    Resizing,
    compute_resize,
)
from meme_studio.models.app_settings import DecodeFailurePolicy, Settings
from meme_studio.models.layer import AnyLayer, ImageLayer, TextLayer, TextStyle
from meme_studio.services.layer_renderer import LayerRenderer
from meme_studio.utils.constants import (
    DEFAULT_EDITOR_CANVAS_HEIGHT,
    DEFAULT_EDITOR_CANVAS_WIDTH,
    DUPLICATE_OFFSET,
    IMAGE_LAYER_MAX_SIDE,
    MIN_LAYER_SIZE,
    ROTATION_STEP,
    TEXT_LAYER_HEIGHT,
    TEXT_LAYER_WIDTH,
)
from meme_studio.utils.exceptions import (
    EmptyTextError,
    InteractionError,
    LayerNotFoundError,
)
from meme_studio.utils.geometry import Point, cap_to_max_side, clamp_top_left
from meme_studio.utils.image_utils import decode_image, image_to_png_bytes
from meme_studio.utils.logger import setup_logger

logger = setup_logger(__name__)


class ElementEditor:
    """自由元素编辑器.

    Attributes:
        canvas_width: 画布宽度
        canvas_height: 画布高度
        layers: 图层列表（z 序，越靠后越在上层）
        selected_id: 当前选中的图层
        interaction: 当前指针交互状态
        text_style: 新建文字图层使用的样式

    Example:
        >>> editor = ElementEditor()
        >>> layer = editor.add_text("Hello")
        >>> editor.begin_drag(layer.id, (400, 420))
        >>> editor.update_drag((900, 900))
        >>> editor.end_drag()
        >>> png = await editor.export_png()
    """

    def __init__(
        self,
        canvas_width: int = DEFAULT_EDITOR_CANVAS_WIDTH,
        canvas_height: int = DEFAULT_EDITOR_CANVAS_HEIGHT,
        renderer: Optional[LayerRenderer] = None,
        decode_failure_policy: DecodeFailurePolicy = DecodeFailurePolicy.SKIP,
    ) -> None:
        """初始化编辑器.

        Args:
            canvas_width: 画布宽度
            canvas_height: 画布高度
            renderer: 图层渲染器，默认按解码失败策略创建
            decode_failure_policy: 未传入 renderer 时使用的解码失败策略
        """
        self.canvas_width = canvas_width
        self.canvas_height = canvas_height
        self._renderer = renderer or LayerRenderer(decode_failure_policy)

        self._layers: list[AnyLayer] = []
        self._selected_id: Optional[str] = None
        self._interaction: InteractionState = IDLE
        self.text_style = TextStyle()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ElementEditor":
        """按应用设置创建编辑器."""
        settings = settings or get_settings()
        renderer = LayerRenderer(
            settings.decode_failure_policy,
            default_font_family=settings.layer_font_family,
        )
        return cls(
            canvas_width=settings.editor_canvas_width,
            canvas_height=settings.editor_canvas_height,
            renderer=renderer,
        )

    # ========================
    # 查询
    # ========================

    @property
    def layers(self) -> list[AnyLayer]:
        """图层列表副本（z 序）."""
        return list(self._layers)

    @property
    def layer_count(self) -> int:
        return len(self._layers)

    @property
    def canvas_size(self) -> tuple[int, int]:
        return (self.canvas_width, self.canvas_height)

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    @property
    def selected_layer(self) -> Optional[AnyLayer]:
        if self._selected_id is None:
            return None
        return self._find(self._selected_id)

    @property
    def interaction(self) -> InteractionState:
        return self._interaction

    @property
    def is_dragging(self) -> bool:
        return isinstance(self._interaction, Dragging)

    @property
    def is_resizing(self) -> bool:
        return isinstance(self._interaction, Resizing)

    def get_layer(self, layer_id: str) -> AnyLayer:
        """根据ID获取图层.

        Raises:
            LayerNotFoundError: 图层不存在
        """
        layer = self._find(layer_id)
        if layer is None:
            raise LayerNotFoundError(layer_id)
        return layer

    def _find(self, layer_id: str) -> Optional[AnyLayer]:
        for layer in self._layers:
            if layer.id == layer_id:
                return layer
        return None

    # ========================
    # 创建
    # ========================

    def set_text_style(self, **changes) -> TextStyle:
        """修改新建文字图层使用的样式.

        Args:
            **changes: TextStyle 字段

        Returns:
            更新后的样式
        """
        self.text_style = TextStyle.model_validate({**self.text_style.model_dump(), **changes})
        return self.text_style

    def add_text(self, content: str, style: Optional[TextStyle] = None) -> TextLayer:
        """添加文字图层.

        新图层尺寸 200x50，居中放置，位于最上层。

        Args:
            content: 文字内容
            style: 文字样式，默认使用当前样式

        Returns:
            新建的文字图层

        Raises:
            EmptyTextError: 内容为空或仅含空白
        """
        if not content or not content.strip():
            raise EmptyTextError()

        layer = TextLayer(
            content=content,
            x=(self.canvas_width - TEXT_LAYER_WIDTH) / 2,
            y=(self.canvas_height - TEXT_LAYER_HEIGHT) / 2,
            width=TEXT_LAYER_WIDTH,
            height=TEXT_LAYER_HEIGHT,
            style=(style or self.text_style).model_copy(),
        )
        self._layers.append(layer)
        logger.debug(f"添加文字图层: {layer.id}")
        return layer

    async def add_image(self, data: bytes, name: str = "图片") -> ImageLayer:
        """添加图片图层.

        在线程池中解码以获取原始尺寸；显示尺寸最长边不超过 200，保持比例，
        居中放置。协程完成前图层不存在。

        Args:
            data: 图片字节数据
            name: 图片名称

        Returns:
            新建的图片图层

        Raises:
            ImageDecodeError: 无法解码
        """
        loop = asyncio.get_running_loop()
        image = await loop.run_in_executor(None, decode_image, data, name)
        natural_w, natural_h = image.size
        image.close()

        width, height = cap_to_max_side(natural_w, natural_h, IMAGE_LAYER_MAX_SIDE)
        width = max(MIN_LAYER_SIZE, width)
        height = max(MIN_LAYER_SIZE, height)

        layer = ImageLayer(
            image_data=data,
            name=name[:100],
            natural_width=natural_w,
            natural_height=natural_h,
            x=(self.canvas_width - width) / 2,
            y=(self.canvas_height - height) / 2,
            width=width,
            height=height,
        )
        self._layers.append(layer)
        logger.debug(f"添加图片图层: {layer.id} ({natural_w}x{natural_h} -> {width:.0f}x{height:.0f})")
        return layer

    # ========================
    # 选择与指针交互
    # ========================

    def select(self, layer_id: Optional[str]) -> None:
        """外部修改选中状态，同时释放指针捕获.

        Args:
            layer_id: 要选中的图层，None 表示取消选择

        Raises:
            LayerNotFoundError: 图层不存在
        """
        if layer_id is not None:
            self.get_layer(layer_id)
        self._release_capture()
        self._selected_id = layer_id

    def begin_drag(self, layer_id: str, pointer: Point) -> None:
        """开始拖拽.

        记录指针与图层左上角的偏移，选中图层并进入拖拽状态。

        Raises:
            LayerNotFoundError: 图层不存在
            InteractionError: 已有其他捕获
        """
        layer = self.get_layer(layer_id)
        self._ensure_idle()
        self._selected_id = layer_id
        self._interaction = Dragging(
            layer_id=layer_id,
            offset=(pointer[0] - layer.x, pointer[1] - layer.y),
        )

    def update_drag(self, pointer: Point) -> None:
        """拖拽中移动指针.

        左上角 = 指针 - 偏移，再限制到画布范围内。
        """
        state = self._interaction
        if not isinstance(state, Dragging):
            return
        layer = self._find(state.layer_id)
        if layer is None:
            self._release_capture()
            return

        x, y = clamp_top_left(
            pointer[0] - state.offset[0],
            pointer[1] - state.offset[1],
            layer.width,
            layer.height,
            self.canvas_width,
            self.canvas_height,
        )
        layer.x = x
        layer.y = y

    def end_drag(self) -> None:
        """结束拖拽."""
        if isinstance(self._interaction, Dragging):
            self._interaction = IDLE

    def begin_resize(
        self,
        layer_id: str,
        pointer: Point,
        handle: ResizeHandle = ResizeHandle.BOTTOM_RIGHT,
    ) -> None:
        """开始拖动控制点缩放.

        Raises:
            LayerNotFoundError: 图层不存在
            InteractionError: 已有其他捕获
        """
        layer = self.get_layer(layer_id)
        self._ensure_idle()
        self._selected_id = layer_id
        self._interaction = Resizing(
            layer_id=layer_id,
            handle=handle,
            start_pointer=(pointer[0], pointer[1]),
            start_rect=layer.bounds,
        )

    def update_resize(self, pointer: Point) -> None:
        """缩放中移动指针：尺寸 = 起始尺寸 + 指针位移."""
        state = self._interaction
        if not isinstance(state, Resizing):
            return
        layer = self._find(state.layer_id)
        if layer is None:
            self._release_capture()
            return

        delta = (pointer[0] - state.start_pointer[0], pointer[1] - state.start_pointer[1])
        rect = compute_resize(state.start_rect, state.handle, delta)
        layer.x = rect.x
        layer.y = rect.y
        self._apply_size(layer, rect.width, rect.height)

    def end_resize(self) -> None:
        """结束缩放."""
        if isinstance(self._interaction, Resizing):
            self._interaction = IDLE

    def pointer_move(self, pointer: Point) -> None:
        """将指针移动事件路由到当前捕获."""
        if isinstance(self._interaction, Dragging):
            self.update_drag(pointer)
        elif isinstance(self._interaction, Resizing):
            self.update_resize(pointer)

    def pointer_up(self) -> None:
        """指针抬起，结束任何捕获."""
        self._release_capture()

    def _ensure_idle(self) -> None:
        if not isinstance(self._interaction, Idle):
            raise InteractionError(
                f"图层 {self._interaction.layer_id} 正在交互中，请先释放指针"
            )

    def _release_capture(self) -> None:
        self._interaction = IDLE

    # ========================
    # 编辑操作
    # ========================

    def duplicate_layer(self, layer_id: str) -> AnyLayer:
        """复制图层.

        新图层 ID 不同，位置偏移 (+20, +20)，追加到最上层；原图层不变。

        Returns:
            新图层
        """
        source = self.get_layer(layer_id)
        duplicated = source.clone(DUPLICATE_OFFSET, DUPLICATE_OFFSET)
        self._layers.append(duplicated)
        logger.debug(f"复制图层: {layer_id} -> {duplicated.id}")
        return duplicated

    def delete_layer(self, layer_id: str) -> None:
        """删除图层；如被选中则清除选择."""
        layer = self.get_layer(layer_id)
        self._layers.remove(layer)
        if self._interaction.layer_id == layer_id:
            self._release_capture()
        if self._selected_id == layer_id:
            self._selected_id = None
        logger.debug(f"删除图层: {layer_id}")

    def rotate_layer(self, layer_id: str) -> float:
        """旋转 +15 度（模 360）.

        Returns:
            新角度
        """
        layer = self.get_layer(layer_id)
        layer.rotation = layer.rotation + ROTATION_STEP
        return layer.rotation

    def resize_layer(self, layer_id: str, width: float, height: float) -> None:
        """设置图层尺寸，每个维度不小于 20."""
        self._apply_size(self.get_layer(layer_id), width, height)

    def move_layer(self, layer_id: str, x: float, y: float) -> None:
        """按数值设置位置，与拖拽一样限制在画布内."""
        layer = self.get_layer(layer_id)
        layer.x, layer.y = clamp_top_left(
            x, y, layer.width, layer.height, self.canvas_width, self.canvas_height
        )

    def update_text(
        self,
        layer_id: str,
        content: Optional[str] = None,
        **style_changes,
    ) -> TextLayer:
        """修改文字图层内容或样式.

        Raises:
            LayerNotFoundError: 图层不存在或不是文字图层
            EmptyTextError: 新内容为空
        """
        layer = self.get_layer(layer_id)
        if not isinstance(layer, TextLayer):
            raise LayerNotFoundError(layer_id)

        if content is not None:
            if not content.strip():
                raise EmptyTextError()
            layer.content = content
        if style_changes:
            style = TextStyle.model_validate({**layer.style.model_dump(), **style_changes})
            layer.style = style
        return layer

    @staticmethod
    def _apply_size(layer: AnyLayer, width: float, height: float) -> None:
        layer.width = max(MIN_LAYER_SIZE, width)
        layer.height = max(MIN_LAYER_SIZE, height)

    # ========================
    # 渲染与导出
    # ========================

    async def render(self) -> Image.Image:
        """栅格化当前图层."""
        return await self._renderer.render(self._layers, self.canvas_size)

    async def export_png(self) -> bytes:
        """渲染并编码为 PNG.

        Raises:
            ExportError: 编码无输出
        """
        image = await self.render()
        return image_to_png_bytes(image)

    @property
    def has_content(self) -> bool:
        return bool(self._layers)

    def reset(self) -> None:
        """清空会话."""
        self._layers.clear()
        self._selected_id = None
        self._release_capture()
        self.text_style = TextStyle()
        logger.info("编辑器已重置")
