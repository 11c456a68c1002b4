from models.announcement import Source
from services.viewer.base import BaseViewerLocator
from services.viewer.frame_scan import FrameScanLocator
from services.viewer.new_target import NewTargetLocator


def get_viewer_locator(source: Source) -> BaseViewerLocator:
    """
    Factory function to get the viewer locator for a source.

    Returns:
        An instance of a class inheriting from BaseViewerLocator.
    """
    if source == Source.KSTARTUP:
        return NewTargetLocator()
    elif source == Source.BIZINFO:
        return FrameScanLocator()

    raise ValueError(f"Unknown source: {source}")
