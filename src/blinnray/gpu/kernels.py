"""Device program for the GPU backend.

The Taichi kernel in this module runs one invocation per pixel and performs
the same intersection, Blinn-Phong shading and sampling algorithm as the CPU
path, in single precision. Scene data arrives as flat 32-bit word buffers in
the layout defined by blinnray.gpu.layout; every field is read at a fixed word
offset.

Recursion is not available on the device, so reflections are traced with an
explicit loop carrying an accumulated color and a reflection weight:

    color = 0, weight = 1
    repeat max_depth times:
        miss            -> color += weight * background; stop
        hit             -> color += weight * local_shading
        reflective hit  -> weight *= reflectivity; continue with mirrored ray
        otherwise       -> stop

which equals the recursive definition with cast_ray(depth=0) == black.

Invocations are laid out as work-groups of 8x8 threads over a grid padded
up to a multiple of the work-group size; padded invocations fall outside the
image and return without writing.
"""

import taichi as ti
import taichi.math as tm

from blinnray.core.config import PARALLEL_EPSILON
from blinnray.geometry.kind import PrimitiveKind
from blinnray.gpu.layout import (
    CAMERA_ASPECT_RATIO,
    CAMERA_FOV,
    CAMERA_LOOK_AT,
    CAMERA_POSITION,
    CAMERA_UP,
    LIGHT_INTENSITY,
    LIGHT_POSITION,
    LIGHT_WORDS,
    MAT_COLOR,
    MAT_DIFFUSE,
    MAT_REFLECTIVITY,
    MAT_SHININESS,
    MAT_SPECULAR,
    PARAM_BACKGROUND,
    PARAM_EPSILON,
    PARAM_HEIGHT,
    PARAM_MAX_DEPTH,
    PARAM_NUM_LIGHTS,
    PARAM_NUM_PLANES,
    PARAM_NUM_SPHERES,
    PARAM_SAMPLES,
    PARAM_WIDTH,
    PIXEL_WORDS,
    PLANE_MATERIAL,
    PLANE_NORMAL,
    PLANE_POINT,
    PLANE_WORDS,
    SPHERE_CENTER,
    SPHERE_MATERIAL,
    SPHERE_RADIUS,
    SPHERE_WORDS,
)

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

WORKGROUP_SIZE_X = 8
WORKGROUP_SIZE_Y = 8

# Upper bound for closest-hit searches
T_FAR = 1e30

KIND_NONE = -1
KIND_SPHERE = int(PrimitiveKind.SPHERE)
KIND_PLANE = int(PrimitiveKind.PLANE)


# =============================================================================
# Buffer Access
# =============================================================================


@ti.func
def _vec3_at(buf: ti.template(), base: ti.i32) -> vec3:
    return vec3(buf[base], buf[base + 1], buf[base + 2])


@ti.func
def _param_f32(params: ti.template(), index: ti.i32) -> ti.f32:
    """Read a float field from the u32 RenderParams words."""
    return ti.bit_cast(params[index], ti.f32)


@ti.func
def _param_i32(params: ti.template(), index: ti.i32) -> ti.i32:
    return ti.cast(params[index], ti.i32)


@ti.func
def _material_at(buf: ti.template(), base: ti.i32):
    """Read an embedded Material.

    Returns:
        Tuple of (color, coefficients) where coefficients holds
        (diffuse, specular, shininess, reflectivity).
    """
    color = _vec3_at(buf, base + MAT_COLOR)
    coefficients = tm.vec4(
        buf[base + MAT_DIFFUSE],
        buf[base + MAT_SPECULAR],
        buf[base + MAT_SHININESS],
        buf[base + MAT_REFLECTIVITY],
    )
    return color, coefficients


# =============================================================================
# Intersection
# =============================================================================


@ti.func
def _hit_sphere(spheres: ti.template(), index: ti.i32, origin: vec3, direction: vec3, t_min: ti.f32, t_max: ti.f32):
    """Ray-sphere test within [t_min, t_max], smaller root first.

    Returns:
        Tuple of (did_hit, t).
    """
    base = index * SPHERE_WORDS
    center = _vec3_at(spheres, base + SPHERE_CENTER)
    radius = spheres[base + SPHERE_RADIUS]

    oc = origin - center
    a = tm.dot(direction, direction)
    half_b = tm.dot(oc, direction)
    c = tm.dot(oc, oc) - radius * radius
    discriminant = half_b * half_b - a * c

    did_hit = 0
    hit_t = 0.0

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        root = (-half_b - sqrt_d) / a
        if root < t_min or root > t_max:
            root = (-half_b + sqrt_d) / a
        if root >= t_min and root <= t_max:
            did_hit = 1
            hit_t = root

    return did_hit, hit_t


@ti.func
def _hit_plane(planes: ti.template(), index: ti.i32, origin: vec3, direction: vec3, t_min: ti.f32, t_max: ti.f32):
    """Ray-plane test within [t_min, t_max]; near-parallel rays miss.

    Returns:
        Tuple of (did_hit, t).
    """
    base = index * PLANE_WORDS
    point = _vec3_at(planes, base + PLANE_POINT)
    normal = _vec3_at(planes, base + PLANE_NORMAL)
    denom = tm.dot(normal, direction)

    did_hit = 0
    hit_t = 0.0

    if ti.abs(denom) >= PARALLEL_EPSILON:
        t = tm.dot(point - origin, normal) / denom
        if t >= t_min and t <= t_max:
            did_hit = 1
            hit_t = t

    return did_hit, hit_t


@ti.func
def _closest_hit(
    spheres: ti.template(),
    planes: ti.template(),
    num_spheres: ti.i32,
    num_planes: ti.i32,
    origin: vec3,
    direction: vec3,
    t_min: ti.f32,
):
    """Linear scan for the nearest hit.

    Returns:
        Tuple of (kind, index, t); kind is KIND_NONE on a miss.
    """
    closest_t = T_FAR
    hit_kind = KIND_NONE
    hit_index = -1

    for i in range(num_spheres):
        did_hit, t = _hit_sphere(spheres, i, origin, direction, t_min, closest_t)
        if did_hit == 1:
            closest_t = t
            hit_kind = KIND_SPHERE
            hit_index = i

    for i in range(num_planes):
        did_hit, t = _hit_plane(planes, i, origin, direction, t_min, closest_t)
        if did_hit == 1:
            closest_t = t
            hit_kind = KIND_PLANE
            hit_index = i

    return hit_kind, hit_index, closest_t


@ti.func
def _in_shadow(
    spheres: ti.template(),
    planes: ti.template(),
    num_spheres: ti.i32,
    num_planes: ti.i32,
    point: vec3,
    light_position: vec3,
    epsilon: ti.f32,
) -> ti.i32:
    to_light = light_position - point
    distance = tm.length(to_light)
    direction = to_light / distance
    origin = point + direction * epsilon
    t_max = distance - epsilon

    blocked = 0
    for i in range(num_spheres):
        if blocked == 0:
            did_hit, shadow_t = _hit_sphere(spheres, i, origin, direction, epsilon, t_max)
            if did_hit == 1:
                blocked = 1
    for i in range(num_planes):
        if blocked == 0:
            did_hit, shadow_t = _hit_plane(planes, i, origin, direction, epsilon, t_max)
            if did_hit == 1:
                blocked = 1

    return blocked


# =============================================================================
# Shading
# =============================================================================


@ti.func
def _blinn_phong(
    color: vec3,
    coefficients: tm.vec4,
    point: vec3,
    normal: vec3,
    view_origin: vec3,
    light_position: vec3,
    intensity: ti.f32,
) -> vec3:
    light_dir = tm.normalize(light_position - point)
    view_dir = tm.normalize(view_origin - point)

    diffuse_strength = tm.max(tm.dot(light_dir, normal), 0.0)
    diffuse = color * (coefficients[0] * diffuse_strength * intensity)

    halfway = tm.normalize(light_dir + view_dir)
    spec_strength = tm.max(tm.dot(halfway, normal), 0.0) ** coefficients[2]
    specular = vec3(1.0, 1.0, 1.0) * (coefficients[1] * spec_strength * intensity)

    return diffuse + specular


@ti.func
def _cast_ray(
    params: ti.template(),
    spheres: ti.template(),
    planes: ti.template(),
    lights: ti.template(),
    origin: vec3,
    direction: vec3,
) -> vec3:
    """Trace a camera ray through up to max_depth reflections."""
    max_depth = _param_i32(params, PARAM_MAX_DEPTH)
    num_spheres = _param_i32(params, PARAM_NUM_SPHERES)
    num_planes = _param_i32(params, PARAM_NUM_PLANES)
    num_lights = _param_i32(params, PARAM_NUM_LIGHTS)
    epsilon = _param_f32(params, PARAM_EPSILON)
    background = vec3(
        _param_f32(params, PARAM_BACKGROUND),
        _param_f32(params, PARAM_BACKGROUND + 1),
        _param_f32(params, PARAM_BACKGROUND + 2),
    )

    ray_origin = origin
    ray_direction = direction
    color = vec3(0.0, 0.0, 0.0)
    weight = 1.0

    # Active flag for path continuation (no break inside the depth loop)
    active = 1

    for _depth in range(max_depth):
        if active == 1:
            hit_kind, hit_index, hit_t = _closest_hit(
                spheres, planes, num_spheres, num_planes, ray_origin, ray_direction, epsilon
            )

            if hit_kind == KIND_NONE:
                color += weight * background
                active = 0
            else:
                point = ray_origin + hit_t * ray_direction
                normal = vec3(0.0, 0.0, 0.0)
                mat_color = vec3(0.0, 0.0, 0.0)
                coefficients = tm.vec4(0.0, 0.0, 0.0, 0.0)

                if hit_kind == KIND_SPHERE:
                    base = hit_index * SPHERE_WORDS
                    center = _vec3_at(spheres, base + SPHERE_CENTER)
                    normal = (point - center) / spheres[base + SPHERE_RADIUS]
                    mat_color, coefficients = _material_at(spheres, base + SPHERE_MATERIAL)
                else:
                    base = hit_index * PLANE_WORDS
                    normal = _vec3_at(planes, base + PLANE_NORMAL)
                    mat_color, coefficients = _material_at(planes, base + PLANE_MATERIAL)

                local = vec3(0.0, 0.0, 0.0)
                for light_index in range(num_lights):
                    light_base = light_index * LIGHT_WORDS
                    light_position = _vec3_at(lights, light_base + LIGHT_POSITION)
                    intensity = lights[light_base + LIGHT_INTENSITY]
                    blocked = _in_shadow(
                        spheres, planes, num_spheres, num_planes, point, light_position, epsilon
                    )
                    if blocked == 0:
                        local += _blinn_phong(
                            mat_color, coefficients, point, normal, ray_origin, light_position, intensity
                        )

                color += weight * local

                reflectivity = coefficients[3]
                if reflectivity > 0.0:
                    weight *= reflectivity
                    ray_origin = point + normal * epsilon
                    ray_direction = ray_direction - 2.0 * tm.dot(ray_direction, normal) * normal
                else:
                    active = 0

    return color


# =============================================================================
# Camera
# =============================================================================


@ti.func
def _camera_ray(camera: ti.template(), ndc_x: ti.f32, ndc_y: ti.f32):
    """Generate the primary ray through an NDC position.

    Returns:
        Tuple of (origin, normalized direction).
    """
    position = _vec3_at(camera, CAMERA_POSITION)
    look_at = _vec3_at(camera, CAMERA_LOOK_AT)
    up = _vec3_at(camera, CAMERA_UP)
    fov = camera[CAMERA_FOV]
    aspect_ratio = camera[CAMERA_ASPECT_RATIO]

    forward = tm.normalize(look_at - position)
    right = tm.normalize(tm.cross(forward, up))
    camera_up = tm.cross(right, forward)

    fov_adjustment = ti.tan(fov * (tm.pi / 180.0) / 2.0)
    adjusted_x = ndc_x * aspect_ratio * fov_adjustment
    adjusted_y = -ndc_y * fov_adjustment

    direction = tm.normalize(forward + right * adjusted_x + camera_up * adjusted_y)
    return position, direction


# =============================================================================
# Kernel
# =============================================================================


@ti.func
def _render_pixel(
    params: ti.template(),
    camera: ti.template(),
    spheres: ti.template(),
    planes: ti.template(),
    lights: ti.template(),
    output: ti.template(),
    x: ti.i32,
    y: ti.i32,
    width: ti.i32,
    height: ti.i32,
):
    samples = _param_i32(params, PARAM_SAMPLES)
    fx = ti.cast(x, ti.f32)
    fy = ti.cast(y, ti.f32)
    fw = ti.cast(width, ti.f32)
    fh = ti.cast(height, ti.f32)

    color = vec3(0.0, 0.0, 0.0)

    if samples > 1:
        for _sample in range(samples):
            offset_x = ti.random(ti.f32)
            offset_y = ti.random(ti.f32)
            ndc_x = ((fx + offset_x) / fw) * 2.0 - 1.0
            ndc_y = ((fy + offset_y) / fh) * 2.0 - 1.0
            origin, direction = _camera_ray(camera, ndc_x, ndc_y)
            color += _cast_ray(params, spheres, planes, lights, origin, direction)
        color /= ti.cast(samples, ti.f32)
    else:
        ndc_x = ((fx + 0.5) / fw) * 2.0 - 1.0
        ndc_y = ((fy + 0.5) / fh) * 2.0 - 1.0
        origin, direction = _camera_ray(camera, ndc_x, ndc_y)
        color = _cast_ray(params, spheres, planes, lights, origin, direction)

    color = tm.clamp(color, 0.0, 1.0)

    base = (y * width + x) * PIXEL_WORDS
    output[base] = color.x
    output[base + 1] = color.y
    output[base + 2] = color.z
    output[base + 3] = 1.0


@ti.kernel
def render_kernel(
    params: ti.types.ndarray(dtype=ti.u32, ndim=1),
    camera: ti.types.ndarray(dtype=ti.f32, ndim=1),
    spheres: ti.types.ndarray(dtype=ti.f32, ndim=1),
    planes: ti.types.ndarray(dtype=ti.f32, ndim=1),
    lights: ti.types.ndarray(dtype=ti.f32, ndim=1),
    output: ti.types.ndarray(dtype=ti.f32, ndim=1),
    groups_x: ti.i32,
    groups_y: ti.i32,
):
    """Render every pixel into the RGBA output buffer.

    Args:
        params: RenderParams words (u32, floats bit-cast).
        camera: Camera words.
        spheres: Sphere words, num_spheres records.
        planes: Plane words, num_planes records.
        lights: Light words, num_lights records.
        output: width * height * 4 floats, row-major RGBA.
        groups_x: Work-groups along x (ceil(width / 8)).
        groups_y: Work-groups along y (ceil(height / 8)).
    """
    ti.loop_config(block_dim=WORKGROUP_SIZE_X * WORKGROUP_SIZE_Y)
    for x, y in ti.ndrange(groups_x * WORKGROUP_SIZE_X, groups_y * WORKGROUP_SIZE_Y):
        width = _param_i32(params, PARAM_WIDTH)
        height = _param_i32(params, PARAM_HEIGHT)
        if x < width and y < height:
            _render_pixel(params, camera, spheres, planes, lights, output, x, y, width, height)
