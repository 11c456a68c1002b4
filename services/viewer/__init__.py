from .base import BaseViewerLocator, ViewerTarget
from .factory import get_viewer_locator

__all__ = [
    "BaseViewerLocator",
    "ViewerTarget",
    "get_viewer_locator",
]
