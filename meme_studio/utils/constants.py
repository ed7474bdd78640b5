"""应用常量定义."""

from pathlib import Path

# ===================
# 应用信息
# ===================
APP_NAME = "表情包合成引擎"
APP_VERSION = "0.3.0"

# ===================
# 路径常量
# ===================
# 应用数据目录
APP_DATA_DIR = Path.home() / ".meme-studio"

# 日志目录
LOG_DIR = APP_DATA_DIR / "logs"

# ===================
# 图片输入限制
# ===================
# 单张上传图片最大字节数 (5MB)
MAX_UPLOAD_BYTES = 5 * 1024 * 1024

# 缩略图预览尺寸
PREVIEW_THUMBNAIL_SIZE = (150, 150)

# ===================
# 自由编辑器
# ===================
DEFAULT_EDITOR_CANVAS_WIDTH = 800
DEFAULT_EDITOR_CANVAS_HEIGHT = 800
EDITOR_BACKGROUND_COLOR = (255, 255, 255)

# 图层最小边长
MIN_LAYER_SIZE = 20

# 新建文字图层尺寸
TEXT_LAYER_WIDTH = 200
TEXT_LAYER_HEIGHT = 50

# 新建图片图层最长边
IMAGE_LAYER_MAX_SIDE = 200

# 复制图层偏移
DUPLICATE_OFFSET = 20

# 每次旋转角度
ROTATION_STEP = 15

# 文字默认样式
DEFAULT_LAYER_FONT_FAMILY = "Arial"
DEFAULT_LAYER_FONT_SIZE = 32
MIN_LAYER_FONT_SIZE = 12
MAX_LAYER_FONT_SIZE = 72
DEFAULT_LAYER_TEXT_COLOR = "#000000"

# ===================
# 布局合成器
# ===================
# 防抖静默期 (毫秒)
DEFAULT_RENDER_DEBOUNCE_MS = 300

# 单元格底色
CELL_BACKGROUND_COLOR = (255, 255, 255, 255)

# 字幕字体
DEFAULT_CAPTION_FONT_FAMILY = "Impact"

# 全局字幕: 字号 = 画布宽度 // 15
GLOBAL_CAPTION_FONT_DIVISOR = 15
TOP_CAPTION_OFFSET = 20
BOTTOM_CAPTION_OFFSET = 60
GLOBAL_CAPTION_STROKE_WIDTH = 3

# 自定义字幕: 字号 = 画布宽度 // 20
CUSTOM_CAPTION_FONT_DIVISOR = 20
CUSTOM_CAPTION_STROKE_WIDTH = 2

# 字幕背景内边距（水平单侧 / 垂直合计）
CAPTION_PADDING = 10

CAPTION_STROKE_COLOR = (0, 0, 0, 255)

DEFAULT_CAPTION_TEXT_COLOR = "#ffffff"
DEFAULT_CAPTION_BACKGROUND_COLOR = "#000000"
DEFAULT_CAPTION_BACKGROUND_OPACITY = 0.7
DEFAULT_CUSTOM_CAPTION_TEXT = "New text"

# ===================
# 导出
# ===================
DEFAULT_EXPORT_BASENAME = "meme"
PNG_MIME_TYPE = "image/png"
