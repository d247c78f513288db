"""内联图片尺寸计算。"""

from statusgate.status.domain.models import PhotoInfo

# 缩略图、小图、中图、大图的边长断点
THUMB = 150
SMALL = 340
MEDIUM = 600
LARGE = 1024


def scale_image_to(width: int, height: int, max_length: int) -> tuple[int, int]:
    """按比例缩放，使长边不超过 max_length，不放大。

    Args:
        width: 原始宽度
        height: 原始高度
        max_length: 长边上限

    Returns:
        tuple[int, int]: 缩放后的 (宽, 高)
    """
    if width <= 0 or height <= 0:
        return width, height
    if width <= max_length and height <= max_length:
        return width, height

    if width >= height:
        return max_length, int(height * max_length / width)
    return int(width * max_length / height), max_length


def _size(width: int, height: int) -> dict:
    return {"w": width, "h": height, "resize": "fit"}


def media_sizes(photo: PhotoInfo, proxy_disabled: bool = False) -> dict:
    """计算媒体实体的尺寸变体。

    缩略图与中图总是给出，原图超过 150 像素给出小图，超过 600 像素给出大图。
    代理关闭时只报告原始尺寸的中图。
    """
    if proxy_disabled:
        return {"medium": _size(photo.width, photo.height)}

    longest = max(photo.width, photo.height)

    sizes = {"thumb": _size(*scale_image_to(photo.width, photo.height, THUMB))}
    if longest > THUMB:
        sizes["small"] = _size(*scale_image_to(photo.width, photo.height, SMALL))
    sizes["medium"] = _size(*scale_image_to(photo.width, photo.height, MEDIUM))
    if longest > MEDIUM:
        sizes["large"] = _size(*scale_image_to(photo.width, photo.height, LARGE))
    return sizes
