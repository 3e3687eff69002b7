"""Camera module for view and ray generation.

Components:
    pinhole: Pinhole (perspective) camera model

Ray generation uses normalized device coordinates:
    ndc_x in [-1, 1]: left to right across image
    ndc_y in [-1, 1]: top to bottom across image (inverted by the camera)
"""

from .pinhole import Camera

__all__ = [
    "Camera",
]
