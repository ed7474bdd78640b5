"""自定义异常类."""

from __future__ import annotations


class AppException(Exception):
    """应用基础异常类.

    所有自定义异常都应继承此类。

    Attributes:
        message: 错误消息
        code: 错误代码
    """

    def __init__(self, message: str, code: str = "UNKNOWN") -> None:
        """初始化异常.

        Args:
            message: 错误消息
            code: 错误代码
        """
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        """返回异常字符串表示."""
        return f"[{self.code}] {self.message}"


# ===================
# 配置相关异常
# ===================
class ConfigError(AppException):
    """配置错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "CONFIG_ERROR")


# ===================
# 输入拒绝
# ===================
class InputRejectedError(AppException):
    """输入被拒绝异常.

    按条目报告，不影响同批次其他有效条目。
    """

    def __init__(self, message: str, code: str = "INPUT_REJECTED") -> None:
        super().__init__(message, code)


class TooManyImagesError(InputRejectedError):
    """图片数量超过当前布局上限."""

    def __init__(self, max_images: int) -> None:
        self.max_images = max_images
        super().__init__(
            f"当前布局最多支持 {max_images} 张图片", "TOO_MANY_IMAGES"
        )


class ImageTooLargeError(InputRejectedError):
    """图片文件过大异常."""

    def __init__(self, name: str, size: int, max_size: int) -> None:
        self.name = name
        self.size = size
        size_mb = size / (1024 * 1024)
        max_mb = max_size / (1024 * 1024)
        super().__init__(
            f"{name} 文件过大 ({size_mb:.1f}MB)，最大允许 {max_mb:.1f}MB",
            "IMAGE_TOO_LARGE",
        )


class EmptyTextError(InputRejectedError):
    """文字内容为空."""

    def __init__(self) -> None:
        super().__init__("文字内容不能为空", "EMPTY_TEXT")


# ===================
# 图片处理相关异常
# ===================
class ImageProcessError(AppException):
    """图片处理错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "IMAGE_PROCESS_ERROR")


class ImageDecodeError(ImageProcessError):
    """图片解码失败."""

    def __init__(self, source: str, reason: str = "") -> None:
        self.source = source
        msg = f"图片无法解码: {source}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


# ===================
# 前置条件
# ===================
class PreconditionError(AppException):
    """保存/导出前置条件不满足."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "PRECONDITION_FAILED")


class MissingTitleError(PreconditionError):
    """缺少标题."""

    def __init__(self) -> None:
        super().__init__("请先填写标题")


class EmptyCompositionError(PreconditionError):
    """没有可导出的内容."""

    def __init__(self, what: str = "元素") -> None:
        super().__init__(f"请至少添加一个{what}后再保存")


# ===================
# 导出
# ===================
class ExportError(AppException):
    """栅格编码失败."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "EXPORT_ERROR")


# ===================
# 编辑器
# ===================
class EditorError(AppException):
    """编辑器错误异常."""

    def __init__(self, message: str, code: str = "EDITOR_ERROR") -> None:
        super().__init__(message, code)


class LayerNotFoundError(EditorError):
    """图层未找到异常."""

    def __init__(self, layer_id: str) -> None:
        self.layer_id = layer_id
        super().__init__(f"图层未找到: {layer_id}", "LAYER_NOT_FOUND")


class InteractionError(EditorError):
    """指针交互状态错误."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "INTERACTION_ERROR")


class CaptionNotFoundError(EditorError):
    """字幕未找到异常."""

    def __init__(self, caption_id: str) -> None:
        super().__init__(f"字幕未找到: {caption_id}", "CAPTION_NOT_FOUND")


class SourceImageNotFoundError(EditorError):
    """源图片未找到异常."""

    def __init__(self, image_id: str) -> None:
        super().__init__(f"源图片未找到: {image_id}", "IMAGE_NOT_FOUND")


# ===================
# 临时资源
# ===================
class ResourceError(AppException):
    """临时资源错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "RESOURCE_ERROR")


class ResourceReleasedError(ResourceError):
    """资源重复释放."""

    def __init__(self, url: str) -> None:
        super().__init__(f"资源已释放，不能再次释放: {url}")
