"""Per-pixel shading kernel.

Turns nearest-hit records into mask, camera-space depth and color values.
Every pixel is independent, so the outer loop is parallelised by Taichi.

Shading rules for a pixel with ray direction d:
    1. no hit                                     -> miss
    2. hit, culling on, dot(face_normal, d) > 0   -> miss (back face)
    3. otherwise mask = 255, depth = camera z of the hit point * depth_scale,
       color = interpolated vertex color or the black background

The face normal is ``(v1 - v0) x (v2 - v0)`` (right-hand rule). Outputs are
float buffers; quantization to 8/16 bit happens in ``meshcast.core.renderer``.
"""

import taichi as ti
import taichi.math as tm

MASK_HIT = 255


@ti.func
def _row3(array: ti.template(), i):
    return tm.vec3(array[i, 0], array[i, 1], array[i, 2])


@ti.kernel
def shade_hits(
    face_ids: ti.types.ndarray(dtype=ti.i32, ndim=2),
    bary_u: ti.types.ndarray(dtype=ti.f32, ndim=2),
    bary_v: ti.types.ndarray(dtype=ti.f32, ndim=2),
    distances: ti.types.ndarray(dtype=ti.f32, ndim=2),
    org_c: ti.types.ndarray(dtype=ti.f32, ndim=3),
    dir_c: ti.types.ndarray(dtype=ti.f32, ndim=3),
    dir_w: ti.types.ndarray(dtype=ti.f32, ndim=3),
    vertices: ti.types.ndarray(dtype=ti.f32, ndim=2),
    faces: ti.types.ndarray(dtype=ti.i32, ndim=2),
    vertex_colors: ti.types.ndarray(dtype=ti.f32, ndim=2),
    use_vertex_color: ti.i32,
    interp_bilinear: ti.i32,
    backface_culling: ti.i32,
    depth_scale: ti.f32,
    out_color: ti.types.ndarray(dtype=ti.f32, ndim=3),
    out_depth: ti.types.ndarray(dtype=ti.f32, ndim=2),
    out_mask: ti.types.ndarray(dtype=ti.i32, ndim=2),
):
    """Shade one band of pixels.

    All per-pixel arrays share the leading (rows, width) shape. ``face_ids``
    holds -1 for misses.
    """
    for y, x in ti.ndrange(face_ids.shape[0], face_ids.shape[1]):
        mask = 0
        depth = 0.0
        color = tm.vec3(0.0, 0.0, 0.0)  # background

        fid = face_ids[y, x]
        if fid >= 0:
            i0 = faces[fid, 0]
            i1 = faces[fid, 1]
            i2 = faces[fid, 2]
            p0 = _row3(vertices, i0)
            normal = tm.cross(_row3(vertices, i1) - p0, _row3(vertices, i2) - p0)
            ray_w = tm.vec3(dir_w[y, x, 0], dir_w[y, x, 1], dir_w[y, x, 2])

            if backface_culling == 0 or tm.dot(normal, ray_w) <= 0.0:
                mask = MASK_HIT
                t = distances[y, x]
                depth = (org_c[y, x, 2] + t * dir_c[y, x, 2]) * depth_scale

                if use_vertex_color != 0:
                    u = bary_u[y, x]
                    v = bary_v[y, x]
                    w = 1.0 - u - v
                    c0 = _row3(vertex_colors, i0)
                    c1 = _row3(vertex_colors, i1)
                    c2 = _row3(vertex_colors, i2)
                    if interp_bilinear != 0:
                        color = w * c0 + u * c1 + v * c2
                    else:
                        # Nearest vertex by barycentric weight, first wins ties
                        color = c0
                        if u > w and u >= v:
                            color = c1
                        elif v > w and v > u:
                            color = c2

        out_mask[y, x] = mask
        out_depth[y, x] = depth
        for k in ti.static(range(3)):
            out_color[y, x, k] = color[k]
