"""应用设置模型."""

from __future__ import annotations

from enum import Enum

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from meme_studio.utils.constants import (
    DEFAULT_CAPTION_FONT_FAMILY,
    DEFAULT_EDITOR_CANVAS_HEIGHT,
    DEFAULT_EDITOR_CANVAS_WIDTH,
    DEFAULT_LAYER_FONT_FAMILY,
    DEFAULT_RENDER_DEBOUNCE_MS,
    MAX_UPLOAD_BYTES,
)


class DecodeFailurePolicy(str, Enum):
    """渲染时图片解码失败的处理策略."""

    SKIP = "skip"  # 静默跳过，不贡献像素
    PLACEHOLDER = "placeholder"  # 绘制灰色占位块
    ABORT = "abort"  # 中止整次渲染


class Settings(BaseSettings):
    """应用设置.

    支持从环境变量（前缀 MEME_STUDIO_）和 .env 文件加载配置。

    Attributes:
        log_level: 日志级别
        render_debounce_ms: 布局合成器防抖静默期
        max_upload_bytes: 单张图片大小上限
        decode_failure_policy: 解码失败策略
        editor_canvas_width: 自由编辑器画布宽度
        editor_canvas_height: 自由编辑器画布高度
        caption_font_family: 字幕字体
        layer_font_family: 文字图层默认字体
    """

    model_config = SettingsConfigDict(
        env_prefix="MEME_STUDIO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="日志级别")

    render_debounce_ms: int = Field(
        default=DEFAULT_RENDER_DEBOUNCE_MS,
        ge=0,
        le=5000,
        description="防抖静默期（毫秒）",
    )

    max_upload_bytes: int = Field(
        default=MAX_UPLOAD_BYTES,
        ge=1,
        description="单张图片大小上限",
    )

    decode_failure_policy: DecodeFailurePolicy = Field(
        default=DecodeFailurePolicy.SKIP,
        description="解码失败策略",
    )

    editor_canvas_width: int = Field(
        default=DEFAULT_EDITOR_CANVAS_WIDTH, ge=100, le=4096, description="画布宽度"
    )
    editor_canvas_height: int = Field(
        default=DEFAULT_EDITOR_CANVAS_HEIGHT, ge=100, le=4096, description="画布高度"
    )

    caption_font_family: str = Field(
        default=DEFAULT_CAPTION_FONT_FAMILY, description="字幕字体"
    )
    layer_font_family: str = Field(
        default=DEFAULT_LAYER_FONT_FAMILY, description="文字图层默认字体"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """验证日志级别."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"无效的日志级别: {v}，有效值: {valid_levels}")
        return upper_v

    @property
    def render_debounce_seconds(self) -> float:
        """防抖静默期（秒）."""
        return self.render_debounce_ms / 1000
