"""核心业务逻辑模块."""

from meme_studio.core.config_manager import (
    ConfigManager,
    config_manager,
    get_config,
    get_settings,
)
from meme_studio.core.element_editor import ElementEditor
from meme_studio.core.interaction import (
    IDLE,
    Dragging,
    Idle,
    InteractionState,
    ResizeHandle,
    Resizing,
    compute_resize,
)
from meme_studio.core.layout_compositor import AddImagesResult, LayoutCompositor
from meme_studio.core.publisher import (
    Clipboard,
    ExportArtifact,
    ImageUploader,
    MemePublisher,
    MemeRecord,
    MemeRepository,
    ShareTarget,
    UploadResult,
    suggest_filename,
)
from meme_studio.core.render_scheduler import RenderScheduler
from meme_studio.core.resources import ResourceTracker, TransientResource

__all__ = [
    # 配置
    "ConfigManager",
    "config_manager",
    "get_config",
    "get_settings",
    # 自由元素编辑器
    "ElementEditor",
    "IDLE",
    "Idle",
    "Dragging",
    "Resizing",
    "InteractionState",
    "ResizeHandle",
    "compute_resize",
    # 布局合成器
    "AddImagesResult",
    "LayoutCompositor",
    "RenderScheduler",
    # 临时资源
    "ResourceTracker",
    "TransientResource",
    # 发布
    "MemePublisher",
    "ImageUploader",
    "MemeRepository",
    "ShareTarget",
    "Clipboard",
    "UploadResult",
    "MemeRecord",
    "ExportArtifact",
    "suggest_filename",
]
