"""自由元素编辑器单元测试."""

import pytest

from meme_studio.core.element_editor import ElementEditor
from meme_studio.core.interaction import IDLE, Dragging, ResizeHandle, Resizing
from meme_studio.models.app_settings import Settings
from meme_studio.models.layer import FontWeight, ImageLayer, TextLayer, TextStyle
from meme_studio.utils.exceptions import (
    EmptyTextError,
    ImageDecodeError,
    InteractionError,
    LayerNotFoundError,
)


@pytest.fixture
def editor() -> ElementEditor:
    """创建 800x800 编辑器."""
    return ElementEditor()


@pytest.fixture
def text_layer(editor: ElementEditor) -> TextLayer:
    """编辑器中的一个文字图层（位于 300, 375）."""
    return editor.add_text("Hello")


# ===================
# 创建测试
# ===================


class TestCreateLayers:
    """图层创建测试类."""

    def test_add_text_centered(self, editor):
        """测试文字图层 200x50 居中."""
        layer = editor.add_text("Hello")

        assert (layer.x, layer.y) == (300, 375)
        assert (layer.width, layer.height) == (200, 50)
        assert layer.rotation == 0
        assert layer.style.font_size == 32
        assert layer.style.color == "#000000"
        assert layer.style.font_weight == FontWeight.BOLD
        assert editor.layers == [layer]

    @pytest.mark.parametrize("content", ["", "   ", "\n\t"])
    def test_add_text_rejects_empty(self, editor, content):
        """测试空白内容被拒绝."""
        with pytest.raises(EmptyTextError):
            editor.add_text(content)

        assert editor.layer_count == 0

    def test_add_text_appends_on_top(self, editor):
        first = editor.add_text("one")
        second = editor.add_text("two")

        assert [layer.id for layer in editor.layers] == [first.id, second.id]

    def test_text_style_applies_to_new_layers(self, editor):
        """测试当前样式用于后续文字图层."""
        editor.set_text_style(font_size=48, color="#FF0000")

        layer = editor.add_text("Hello")

        assert layer.style.font_size == 48
        assert layer.style.color == "#ff0000"

    def test_text_style_is_copied(self, editor):
        style = TextStyle(font_size=20)

        layer = editor.add_text("Hello", style=style)
        style.font_size = 60

        assert layer.style.font_size == 20

    @pytest.mark.asyncio
    async def test_add_image_scaled_and_centered(self, editor, red_png):
        """测试图片最长边缩放到 200 并居中."""
        layer = await editor.add_image(red_png, "red.png")

        assert isinstance(layer, ImageLayer)
        assert (layer.natural_width, layer.natural_height) == (400, 300)
        assert (layer.width, layer.height) == (200, 150)
        assert (layer.x, layer.y) == (300, 325)
        assert layer.name == "red.png"

    @pytest.mark.asyncio
    async def test_add_image_min_size(self, editor, png_factory):
        """测试极端比例图片每个维度仍不小于 20."""
        layer = await editor.add_image(png_factory((1000, 10)))

        assert layer.width == 200
        assert layer.height == 20

    @pytest.mark.asyncio
    async def test_add_image_decode_failure(self, editor, corrupt_bytes):
        with pytest.raises(ImageDecodeError):
            await editor.add_image(corrupt_bytes, "bad.png")

        assert editor.layer_count == 0


# ===================
# 指针交互测试
# ===================


class TestDrag:
    """拖拽测试类."""

    def test_begin_drag_selects(self, editor, text_layer):
        editor.begin_drag(text_layer.id, (310, 380))

        assert editor.selected_id == text_layer.id
        assert editor.is_dragging
        assert editor.interaction == Dragging(text_layer.id, (10, 5))

    def test_drag_moves_by_offset(self, editor, text_layer):
        """测试左上角 = 指针 - 偏移."""
        editor.begin_drag(text_layer.id, (310, 380))

        editor.update_drag((110, 105))

        assert (text_layer.x, text_layer.y) == (100, 100)

    def test_drag_clamped_bottom_right(self, editor, text_layer):
        """测试拖出右下边界时限制在画布内."""
        editor.begin_drag(text_layer.id, (310, 380))

        editor.update_drag((900, 900))

        assert (text_layer.x, text_layer.y) == (600, 750)

    def test_drag_clamped_top_left(self, editor, text_layer):
        editor.begin_drag(text_layer.id, (310, 380))

        editor.update_drag((-50, -50))

        assert (text_layer.x, text_layer.y) == (0, 0)

    def test_drag_larger_than_canvas(self, editor, text_layer):
        """测试图层比画布宽时 X 固定为 0."""
        editor.resize_layer(text_layer.id, 1000, 50)
        editor.begin_drag(text_layer.id, (0, 0))

        editor.update_drag((200, 100))

        assert text_layer.x == 0

    def test_end_drag(self, editor, text_layer):
        editor.begin_drag(text_layer.id, (310, 380))

        editor.end_drag()
        editor.update_drag((0, 0))

        assert editor.interaction == IDLE
        assert (text_layer.x, text_layer.y) == (300, 375)
        assert editor.selected_id == text_layer.id

    def test_single_capture(self, editor, text_layer):
        """测试同一时刻只能有一个捕获."""
        other = editor.add_text("Other")
        editor.begin_drag(text_layer.id, (310, 380))

        with pytest.raises(InteractionError):
            editor.begin_drag(other.id, (0, 0))
        with pytest.raises(InteractionError):
            editor.begin_resize(other.id, (0, 0))

        assert editor.interaction.layer_id == text_layer.id

    def test_select_releases_capture(self, editor, text_layer):
        editor.begin_drag(text_layer.id, (310, 380))

        editor.select(None)

        assert editor.interaction == IDLE
        assert editor.selected_id is None

    def test_select_unknown(self, editor):
        with pytest.raises(LayerNotFoundError):
            editor.select("missing")

    def test_pointer_routing(self, editor, text_layer):
        """测试指针事件路由到当前捕获."""
        editor.begin_drag(text_layer.id, (300, 375))
        editor.pointer_move((320, 395))
        editor.pointer_up()
        editor.pointer_move((500, 500))

        assert (text_layer.x, text_layer.y) == (20 + 300, 20 + 375)
        assert editor.interaction == IDLE


class TestResize:
    """缩放测试类."""

    def test_resize_handle(self, editor, text_layer):
        """测试尺寸 = 起始尺寸 + 指针位移."""
        editor.begin_resize(text_layer.id, (500, 425))

        editor.update_resize((530, 435))

        assert (text_layer.width, text_layer.height) == (230, 60)
        assert isinstance(editor.interaction, Resizing)
        assert editor.is_resizing

    def test_resize_relative_to_start(self, editor, text_layer):
        editor.begin_resize(text_layer.id, (500, 425))

        editor.update_resize((530, 435))
        editor.update_resize((510, 425))

        assert (text_layer.width, text_layer.height) == (210, 50)

    def test_resize_min_size(self, editor, text_layer):
        editor.begin_resize(text_layer.id, (500, 425))

        editor.update_resize((0, 0))

        assert (text_layer.width, text_layer.height) == (20, 20)

    def test_resize_top_left_handle(self, editor, text_layer):
        editor.begin_resize(text_layer.id, (300, 375), ResizeHandle.TOP_LEFT)

        editor.update_resize((280, 365))
        editor.end_resize()

        assert (text_layer.x, text_layer.y) == (280, 365)
        assert (text_layer.width, text_layer.height) == (220, 60)
        assert editor.interaction == IDLE

    def test_resize_layer_clamps(self, editor, text_layer):
        editor.resize_layer(text_layer.id, 5, 500)

        assert (text_layer.width, text_layer.height) == (20, 500)


# ===================
# 编辑操作测试
# ===================


class TestLayerOperations:
    """图层编辑操作测试类."""

    def test_duplicate(self, editor, text_layer):
        """测试复制: 新ID、偏移 20、追加到最上层."""
        text_layer.rotation = 30

        copy = editor.duplicate_layer(text_layer.id)

        assert copy.id != text_layer.id
        assert (copy.x, copy.y) == (320, 395)
        assert copy.rotation == 30
        assert copy.content == "Hello"
        assert editor.layers[-1] is copy
        assert (text_layer.x, text_layer.y) == (300, 375)

    def test_duplicate_is_independent(self, editor, text_layer):
        copy = editor.duplicate_layer(text_layer.id)

        editor.update_text(copy.id, font_size=60)

        assert text_layer.style.font_size == 32

    def test_delete(self, editor, text_layer):
        editor.select(text_layer.id)

        editor.delete_layer(text_layer.id)

        assert editor.layer_count == 0
        assert editor.selected_id is None

    def test_delete_captured_layer(self, editor, text_layer):
        """测试删除正在拖拽的图层同时释放捕获."""
        editor.begin_drag(text_layer.id, (310, 380))

        editor.delete_layer(text_layer.id)
        editor.pointer_move((0, 0))

        assert editor.interaction == IDLE

    def test_delete_other_keeps_selection(self, editor, text_layer):
        other = editor.add_text("Other")
        editor.select(text_layer.id)

        editor.delete_layer(other.id)

        assert editor.selected_id == text_layer.id

    def test_rotate(self, editor, text_layer):
        """测试每次旋转 15 度，模 360."""
        assert editor.rotate_layer(text_layer.id) == 15

        for _ in range(23):
            editor.rotate_layer(text_layer.id)

        assert text_layer.rotation == 0

    def test_move_layer_clamped(self, editor, text_layer):
        editor.move_layer(text_layer.id, 700, -10)

        assert (text_layer.x, text_layer.y) == (600, 0)

    def test_update_text(self, editor, text_layer):
        editor.update_text(text_layer.id, "Bye", color="#00ff00", font_weight="normal")

        assert text_layer.content == "Bye"
        assert text_layer.style.color == "#00ff00"
        assert not text_layer.style.is_bold

    def test_update_text_empty(self, editor, text_layer):
        with pytest.raises(EmptyTextError):
            editor.update_text(text_layer.id, "  ")

        assert text_layer.content == "Hello"

    @pytest.mark.asyncio
    async def test_update_text_on_image_layer(self, editor, red_png):
        layer = await editor.add_image(red_png)

        with pytest.raises(LayerNotFoundError):
            editor.update_text(layer.id, "text")

    @pytest.mark.parametrize(
        "operation",
        [
            lambda e: e.get_layer("missing"),
            lambda e: e.duplicate_layer("missing"),
            lambda e: e.delete_layer("missing"),
            lambda e: e.rotate_layer("missing"),
            lambda e: e.resize_layer("missing", 50, 50),
            lambda e: e.move_layer("missing", 0, 0),
            lambda e: e.begin_drag("missing", (0, 0)),
            lambda e: e.begin_resize("missing", (0, 0)),
        ],
    )
    def test_unknown_layer(self, editor, operation):
        with pytest.raises(LayerNotFoundError):
            operation(editor)


# ===================
# 渲染与会话测试
# ===================


class TestRenderAndSession:
    """渲染与会话测试类."""

    @pytest.mark.asyncio
    async def test_render_empty_is_white(self, editor):
        """测试空编辑器渲染为 800x800 纯白."""
        image = await editor.render()

        assert image.size == (800, 800)
        assert image.getextrema() == ((255, 255), (255, 255), (255, 255))

    @pytest.mark.asyncio
    async def test_export_png(self, editor, red_png, png_decoder):
        layer = await editor.add_image(red_png)
        editor.move_layer(layer.id, 0, 0)

        data = await editor.export_png()

        image = png_decoder(data).convert("RGB")
        assert image.size == (800, 800)
        assert image.getpixel((100, 75)) == (255, 0, 0)
        assert image.getpixel((700, 700)) == (255, 255, 255)

    def test_reset(self, editor, text_layer):
        editor.begin_drag(text_layer.id, (310, 380))
        editor.set_text_style(font_size=60)

        editor.reset()

        assert not editor.has_content
        assert editor.selected_id is None
        assert editor.interaction == IDLE
        assert editor.text_style.font_size == 32

    def test_from_settings(self):
        settings = Settings(_env_file=None, editor_canvas_width=640, editor_canvas_height=480)

        editor = ElementEditor.from_settings(settings)
        layer = editor.add_text("Hello")

        assert editor.canvas_size == (640, 480)
        assert (layer.x, layer.y) == (220, 215)
