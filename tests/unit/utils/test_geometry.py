"""几何计算单元测试."""

import pytest

from meme_studio.utils.geometry import (
    Rect,
    cap_to_max_side,
    clamp,
    clamp_top_left,
    display_to_natural,
    fit_contain,
)


class TestRect:
    """Rect 测试类."""

    def test_edges_and_center(self):
        """测试边界与中心."""
        rect = Rect(10, 20, 100, 50)

        assert rect.right == 110
        assert rect.bottom == 70
        assert rect.center == (60, 45)

    def test_to_box_rounds(self):
        """测试转为整数框."""
        assert Rect(0.4, 0.6, 10.2, 10.2).to_box() == (0, 1, 11, 11)


class TestClamp:
    """边界限制测试类."""

    def test_clamp(self):
        assert clamp(5, 0, 10) == 5
        assert clamp(-1, 0, 10) == 0
        assert clamp(11, 0, 10) == 10

    def test_clamp_high_below_low(self):
        """测试上限小于下限时返回下限."""
        assert clamp(5, 0, -10) == 0

    def test_clamp_top_left_inside(self):
        """测试画布内的位置不变."""
        assert clamp_top_left(100, 100, 200, 50, 800, 800) == (100, 100)

    def test_clamp_top_left_right_bottom(self):
        """测试超出右下边界."""
        assert clamp_top_left(900, 900, 200, 50, 800, 800) == (600, 750)

    def test_clamp_top_left_negative(self):
        """测试超出左上边界."""
        assert clamp_top_left(-30, -5, 200, 50, 800, 800) == (0, 0)

    def test_clamp_top_left_larger_than_canvas(self):
        """测试图层比画布大时固定为 0."""
        assert clamp_top_left(50, 50, 1000, 50, 800, 800) == (0, 50)


class TestCapToMaxSide:
    """最长边限制测试类."""

    def test_landscape(self):
        assert cap_to_max_side(400, 200, 200) == (200, 100)

    def test_portrait(self):
        assert cap_to_max_side(100, 400, 200) == (50, 200)

    def test_square(self):
        assert cap_to_max_side(300, 300, 200) == (200, 200)


class TestFitContain:
    """contain 适配测试类."""

    def test_wider_image_fills_width(self):
        """测试更宽的图片宽度撑满、上下居中."""
        rect = fit_contain(800, 200, Rect(0, 0, 400, 400))

        assert rect == Rect(0, 150, 400, 100)

    def test_taller_image_fills_height(self):
        """测试更高的图片高度撑满、左右居中."""
        rect = fit_contain(200, 800, Rect(600, 0, 600, 600))

        assert rect == Rect(825, 0, 150, 600)

    def test_same_aspect_fills_cell(self):
        rect = fit_contain(400, 300, Rect(0, 0, 800, 600))

        assert rect == Rect(0, 0, 800, 600)

    def test_never_exceeds_cell(self):
        """测试结果始终在单元格内."""
        cell = Rect(500, 500, 500, 500)
        for size in [(1, 1000), (1000, 1), (333, 777), (5000, 5000)]:
            rect = fit_contain(*size, cell)
            assert rect.x >= cell.x - 1e-9
            assert rect.y >= cell.y - 1e-9
            assert rect.right <= cell.right + 1e-9
            assert rect.bottom <= cell.bottom + 1e-9


class TestDisplayToNatural:
    """点击坐标映射测试类."""

    def test_half_scale_preview(self):
        """测试 400x300 显示 800x600 图片时的映射."""
        assert display_to_natural((100, 75), (400, 300), (800, 600)) == (200, 150)

    def test_axes_independent(self):
        """测试两轴独立缩放."""
        assert display_to_natural((10, 10), (100, 50), (100, 100)) == (10, 20)

    def test_invalid_displayed_size(self):
        with pytest.raises(ValueError):
            display_to_natural((0, 0), (0, 100), (100, 100))
