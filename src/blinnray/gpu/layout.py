"""Fixed binary layout shared by the host packer and the device program.

Every buffer handed to the device is a flat array of 32-bit words. The device
program reads fields at the word offsets defined here; the host packs scene
data with numpy structured dtypes whose byte offsets must equal those word
offsets times four. Nothing in the buffers is self-describing, so any drift
between the two silently corrupts the image. validate_layout() compares the
dtypes with the offsets once at renderer start-up.

The layout follows the 16-byte alignment of GPU uniform/storage buffers:
every vec3 starts on a 16-byte boundary and every struct size is a multiple
of 16 bytes, with explicit padding fields filling the gaps.

    Struct        Bytes  Fields (byte offset)
    Material        32   color(0) diffuse(12) specular(16) shininess(20)
                         reflectivity(24) pad(28)
    Sphere          48   center(0) radius(12) material(16)
    Plane           64   point(0) pad(12) normal(16) pad(28) material(32)
    Light           16   position(0) intensity(12)
    Camera          64   position(0) pad(12) look_at(16) pad(28) up(32)
                         fov(44) aspect_ratio(48) pad(52..64)
    RenderParams    48   width(0) height(4) samples(8) max_depth(12)
                         background_color(16) epsilon(28) num_spheres(32)
                         num_planes(36) num_lights(40) pad(44)
    Pixel           16   rgba float32
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

from blinnray.core.config import RenderConfig
from blinnray.gpu.errors import LayoutError

if TYPE_CHECKING:
    from blinnray.camera.pinhole import Camera
    from blinnray.geometry.plane import Plane
    from blinnray.geometry.sphere import Sphere
    from blinnray.materials.material import Material
    from blinnray.scene.scene import Light, Scene

WORD_BYTES = 4
STRUCT_ALIGNMENT = 16

# =============================================================================
# Word Offsets (read by the device program)
# =============================================================================

MATERIAL_WORDS = 8
MAT_COLOR = 0
MAT_DIFFUSE = 3
MAT_SPECULAR = 4
MAT_SHININESS = 5
MAT_REFLECTIVITY = 6

SPHERE_WORDS = 12
SPHERE_CENTER = 0
SPHERE_RADIUS = 3
SPHERE_MATERIAL = 4

PLANE_WORDS = 16
PLANE_POINT = 0
PLANE_NORMAL = 4
PLANE_MATERIAL = 8

LIGHT_WORDS = 4
LIGHT_POSITION = 0
LIGHT_INTENSITY = 3

CAMERA_WORDS = 16
CAMERA_POSITION = 0
CAMERA_LOOK_AT = 4
CAMERA_UP = 8
CAMERA_FOV = 11
CAMERA_ASPECT_RATIO = 12

PARAMS_WORDS = 12
PARAM_WIDTH = 0
PARAM_HEIGHT = 1
PARAM_SAMPLES = 2
PARAM_MAX_DEPTH = 3
PARAM_BACKGROUND = 4
PARAM_EPSILON = 7
PARAM_NUM_SPHERES = 8
PARAM_NUM_PLANES = 9
PARAM_NUM_LIGHTS = 10

PIXEL_WORDS = 4
PIXEL_BYTES = PIXEL_WORDS * WORD_BYTES

# =============================================================================
# Host Structured Dtypes
# =============================================================================

_F32 = "<f4"
_U32 = "<u4"
_VEC3 = (_F32, (3,))

MATERIAL_DTYPE = np.dtype(
    {
        "names": ["color", "diffuse", "specular", "shininess", "reflectivity", "_padding"],
        "formats": [_VEC3, _F32, _F32, _F32, _F32, _F32],
        "offsets": [0, 12, 16, 20, 24, 28],
        "itemsize": 32,
    }
)

SPHERE_DTYPE = np.dtype(
    {
        "names": ["center", "radius", "material"],
        "formats": [_VEC3, _F32, MATERIAL_DTYPE],
        "offsets": [0, 12, 16],
        "itemsize": 48,
    }
)

PLANE_DTYPE = np.dtype(
    {
        "names": ["point", "_padding1", "normal", "_padding2", "material"],
        "formats": [_VEC3, _F32, _VEC3, _F32, MATERIAL_DTYPE],
        "offsets": [0, 12, 16, 28, 32],
        "itemsize": 64,
    }
)

LIGHT_DTYPE = np.dtype(
    {
        "names": ["position", "intensity"],
        "formats": [_VEC3, _F32],
        "offsets": [0, 12],
        "itemsize": 16,
    }
)

CAMERA_DTYPE = np.dtype(
    {
        "names": [
            "position", "_padding1", "look_at", "_padding2", "up", "fov",
            "aspect_ratio", "_padding3", "_padding4", "_padding5",
        ],
        "formats": [_VEC3, _F32, _VEC3, _F32, _VEC3, _F32, _F32, _F32, _F32, _F32],
        "offsets": [0, 12, 16, 28, 32, 44, 48, 52, 56, 60],
        "itemsize": 64,
    }
)

RENDER_PARAMS_DTYPE = np.dtype(
    {
        "names": [
            "width", "height", "samples", "max_depth", "background_color",
            "epsilon", "num_spheres", "num_planes", "num_lights", "_padding",
        ],
        "formats": [_U32, _U32, _U32, _U32, _VEC3, _F32, _U32, _U32, _U32, _U32],
        "offsets": [0, 4, 8, 12, 16, 28, 32, 36, 40, 44],
        "itemsize": 48,
    }
)

# (dtype, expected words, {field: word offset}, vec3 fields)
_LAYOUT_TABLE: dict[str, tuple[np.dtype, int, dict[str, int], tuple[str, ...]]] = {
    "Material": (
        MATERIAL_DTYPE,
        MATERIAL_WORDS,
        {
            "color": MAT_COLOR,
            "diffuse": MAT_DIFFUSE,
            "specular": MAT_SPECULAR,
            "shininess": MAT_SHININESS,
            "reflectivity": MAT_REFLECTIVITY,
        },
        ("color",),
    ),
    "Sphere": (
        SPHERE_DTYPE,
        SPHERE_WORDS,
        {"center": SPHERE_CENTER, "radius": SPHERE_RADIUS, "material": SPHERE_MATERIAL},
        ("center",),
    ),
    "Plane": (
        PLANE_DTYPE,
        PLANE_WORDS,
        {"point": PLANE_POINT, "normal": PLANE_NORMAL, "material": PLANE_MATERIAL},
        ("point", "normal"),
    ),
    "Light": (
        LIGHT_DTYPE,
        LIGHT_WORDS,
        {"position": LIGHT_POSITION, "intensity": LIGHT_INTENSITY},
        ("position",),
    ),
    "Camera": (
        CAMERA_DTYPE,
        CAMERA_WORDS,
        {
            "position": CAMERA_POSITION,
            "look_at": CAMERA_LOOK_AT,
            "up": CAMERA_UP,
            "fov": CAMERA_FOV,
            "aspect_ratio": CAMERA_ASPECT_RATIO,
        },
        ("position", "look_at", "up"),
    ),
    "RenderParams": (
        RENDER_PARAMS_DTYPE,
        PARAMS_WORDS,
        {
            "width": PARAM_WIDTH,
            "height": PARAM_HEIGHT,
            "samples": PARAM_SAMPLES,
            "max_depth": PARAM_MAX_DEPTH,
            "background_color": PARAM_BACKGROUND,
            "epsilon": PARAM_EPSILON,
            "num_spheres": PARAM_NUM_SPHERES,
            "num_planes": PARAM_NUM_PLANES,
            "num_lights": PARAM_NUM_LIGHTS,
        },
        ("background_color",),
    ),
}


def validate_layout() -> None:
    """Check the host dtypes against the word offsets of the device program.

    Raises:
        LayoutError: On any size, offset or alignment mismatch.
    """
    problems: list[str] = []
    for name, (dtype, words, offsets, vec3_fields) in _LAYOUT_TABLE.items():
        if dtype.itemsize != words * WORD_BYTES:
            problems.append(f"{name}: size {dtype.itemsize} != {words * WORD_BYTES}")
        if dtype.itemsize % STRUCT_ALIGNMENT:
            problems.append(f"{name}: size {dtype.itemsize} not a multiple of {STRUCT_ALIGNMENT}")
        for field_name, word in offsets.items():
            if field_name not in dtype.fields:
                problems.append(f"{name}.{field_name}: missing field")
                continue
            byte_offset = dtype.fields[field_name][1]
            if byte_offset != word * WORD_BYTES:
                problems.append(
                    f"{name}.{field_name}: offset {byte_offset} != {word * WORD_BYTES}"
                )
        for field_name in vec3_fields:
            if field_name in dtype.fields and dtype.fields[field_name][1] % STRUCT_ALIGNMENT:
                problems.append(f"{name}.{field_name}: vec3 not 16-byte aligned")
    if problems:
        raise LayoutError("GPU struct layout mismatch: " + "; ".join(problems))


# =============================================================================
# Packing
# =============================================================================


def _material_record(material: Material) -> tuple:
    return (
        material.color.to_tuple(),
        material.diffuse,
        material.specular,
        material.shininess,
        material.reflectivity,
        0.0,
    )


def _zeroed(dtype: np.dtype, count: int) -> npt.NDArray[np.void]:
    # Storage bindings cannot be empty; a zeroed placeholder stands in and the
    # element count in RenderParams keeps the device from reading it.
    return np.zeros(max(count, 1), dtype=dtype)


def pack_spheres(spheres: Sequence[Sphere]) -> npt.NDArray[np.void]:
    packed = _zeroed(SPHERE_DTYPE, len(spheres))
    for i, sphere in enumerate(spheres):
        packed[i] = (sphere.center.to_tuple(), sphere.radius, _material_record(sphere.material))
    return packed


def pack_planes(planes: Sequence[Plane]) -> npt.NDArray[np.void]:
    packed = _zeroed(PLANE_DTYPE, len(planes))
    for i, plane in enumerate(planes):
        packed[i] = (
            plane.point.to_tuple(),
            0.0,
            plane.normal.to_tuple(),
            0.0,
            _material_record(plane.material),
        )
    return packed


def pack_lights(lights: Sequence[Light]) -> npt.NDArray[np.void]:
    packed = _zeroed(LIGHT_DTYPE, len(lights))
    for i, light in enumerate(lights):
        packed[i] = (light.position.to_tuple(), light.intensity)
    return packed


def pack_camera(camera: Camera) -> npt.NDArray[np.void]:
    packed = np.zeros(1, dtype=CAMERA_DTYPE)
    packed["position"][0] = camera.position.to_tuple()
    packed["look_at"][0] = camera.target.to_tuple()
    packed["up"][0] = camera.up.to_tuple()
    packed["fov"][0] = camera.fov
    packed["aspect_ratio"][0] = camera.aspect_ratio
    return packed


def pack_params(
    width: int,
    height: int,
    samples: int,
    config: RenderConfig,
    background: tuple[float, float, float],
    num_spheres: int,
    num_planes: int,
    num_lights: int,
) -> npt.NDArray[np.void]:
    packed = np.zeros(1, dtype=RENDER_PARAMS_DTYPE)
    packed[0] = (
        width,
        height,
        max(samples, 0),
        config.max_depth,
        background,
        config.epsilon,
        num_spheres,
        num_planes,
        num_lights,
        0,
    )
    return packed


def as_words(packed: npt.NDArray[np.void], word_dtype: npt.DTypeLike = np.float32) -> npt.NDArray:
    """Reinterpret packed structs as a flat array of 32-bit words."""
    return np.frombuffer(np.ascontiguousarray(packed).tobytes(), dtype=word_dtype).copy()


@dataclass(frozen=True)
class PackedScene:
    """All host-side buffers for one render call, in device layout.

    Attributes:
        params: One RenderParams record.
        camera: One Camera record.
        spheres: Sphere records (at least one element).
        planes: Plane records (at least one element).
        lights: Light records (at least one element).
    """

    params: npt.NDArray[np.void]
    camera: npt.NDArray[np.void]
    spheres: npt.NDArray[np.void]
    planes: npt.NDArray[np.void]
    lights: npt.NDArray[np.void]

    @property
    def width(self) -> int:
        return int(self.params["width"][0])

    @property
    def height(self) -> int:
        return int(self.params["height"][0])

    def word_buffers(self) -> dict[str, npt.NDArray]:
        """Return every buffer as 32-bit words, keyed by binding name."""
        return {
            "params": as_words(self.params, np.uint32),
            "camera": as_words(self.camera),
            "spheres": as_words(self.spheres),
            "planes": as_words(self.planes),
            "lights": as_words(self.lights),
        }


def pack_scene(
    scene: Scene,
    camera: Camera,
    width: int,
    height: int,
    samples: int,
    config: RenderConfig | None = None,
) -> PackedScene:
    """Flatten a scene into device-layout buffers.

    Spheres and planes keep their relative order from scene.objects.
    """
    config = scene.config if config is None else config
    spheres = scene.spheres
    planes = scene.planes
    return PackedScene(
        params=pack_params(
            width,
            height,
            samples,
            config,
            scene.background_color.to_tuple(),
            len(spheres),
            len(planes),
            len(scene.lights),
        ),
        camera=pack_camera(camera),
        spheres=pack_spheres(spheres),
        planes=pack_planes(planes),
        lights=pack_lights(scene.lights),
    )
