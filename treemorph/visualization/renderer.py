"""OpenGL rendering: particle sprites, instanced shapes, photo quads."""

import math
import os

import moderngl
import numpy as np

from treemorph.morph.shapes import ShapeKind
from treemorph.morph.spatial import matrix_from_euler

SHADER_DIR = os.path.join(os.path.dirname(__file__), "shaders")

BACKGROUND = (0x02 / 255.0, 0x02 / 255.0, 0x05 / 255.0)
POINT_SIZE = 0.15

# (base colour, emissive) per shape kind
SHAPE_COLORS = {
    ShapeKind.SPHERE: ((1.0, 0x22 / 255.0, 0x22 / 255.0), (0x88 / 255.0, 0.0, 0.0)),
    ShapeKind.BOX: ((1.0, 0xCC / 255.0, 0.0), (0xAA / 255.0, 0x55 / 255.0, 0.0)),
}
SPHERE_RADIUS = 0.4
BOX_SIZE = 0.5


def _load_shader(name: str) -> str:
    path = os.path.join(SHADER_DIR, name)
    with open(path, "r") as f:
        return f.read()


def _gl_matrix(m: np.ndarray) -> bytes:
    # GLSL mat4 is column-major
    return np.ascontiguousarray(m.T, dtype="f4").tobytes()


def model_matrix(position, rotation, scale) -> np.ndarray:
    """T * R(euler xyz) * S as a row-major 4x4."""
    m = np.eye(4)
    m[:3, :3] = matrix_from_euler(rotation) * np.asarray(scale, dtype=np.float64)
    m[:3, 3] = position
    return m


def yaw_matrix(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    m = np.eye(4)
    m[0, 0], m[0, 2] = c, s
    m[2, 0], m[2, 2] = -s, c
    return m


def box_mesh(size: float) -> np.ndarray:
    """(36, 6) float32 positions + normals."""
    h = size / 2.0
    faces = [
        ((1, 0, 0), [(h, -h, -h), (h, h, -h), (h, h, h), (h, -h, h)]),
        ((-1, 0, 0), [(-h, -h, h), (-h, h, h), (-h, h, -h), (-h, -h, -h)]),
        ((0, 1, 0), [(-h, h, -h), (-h, h, h), (h, h, h), (h, h, -h)]),
        ((0, -1, 0), [(-h, -h, h), (-h, -h, -h), (h, -h, -h), (h, -h, h)]),
        ((0, 0, 1), [(-h, -h, h), (h, -h, h), (h, h, h), (-h, h, h)]),
        ((0, 0, -1), [(h, -h, -h), (-h, -h, -h), (-h, h, -h), (h, h, -h)]),
    ]
    verts = []
    for normal, quad in faces:
        for idx in (0, 1, 2, 0, 2, 3):
            verts.append(quad[idx] + normal)
    return np.array(verts, dtype="f4")


def sphere_mesh(radius: float, segments: int = 16, rings: int = 16) -> np.ndarray:
    """UV sphere as (segments * rings * 6, 6) float32 positions + normals."""
    def point(ring, seg):
        phi = math.pi * ring / rings
        theta = 2.0 * math.pi * seg / segments
        n = (math.sin(phi) * math.cos(theta), math.cos(phi), math.sin(phi) * math.sin(theta))
        return (n[0] * radius, n[1] * radius, n[2] * radius) + n

    verts = []
    for ring in range(rings):
        for seg in range(segments):
            a = point(ring, seg)
            b = point(ring + 1, seg)
            c = point(ring + 1, seg + 1)
            d = point(ring, seg + 1)
            verts.extend([a, b, c, a, c, d])
    return np.array(verts, dtype="f4")


class Renderer:
    """Draws one frame of the scene from a SceneController's outputs."""

    def __init__(self, ctx: moderngl.Context, width: int, height: int,
                 particle_colors: np.ndarray, shape_kinds: np.ndarray,
                 shape_scales: np.ndarray, textures: list[bytes], texture_size: int):
        self.ctx = ctx
        self.width = width
        self.height = height
        self._build_shaders()
        self._build_geometry(particle_colors, shape_kinds, shape_scales)
        self._build_textures(textures, texture_size)

    def _build_shaders(self):
        self.points_prog = self.ctx.program(
            vertex_shader=_load_shader("points.vert"),
            fragment_shader=_load_shader("points.frag"),
        )
        self.shape_prog = self.ctx.program(
            vertex_shader=_load_shader("shape.vert"),
            fragment_shader=_load_shader("shape.frag"),
        )
        self.photo_prog = self.ctx.program(
            vertex_shader=_load_shader("photo.vert"),
            fragment_shader=_load_shader("photo.frag"),
        )

    def _build_geometry(self, particle_colors, shape_kinds, shape_scales):
        n = len(particle_colors)
        self._particle_count = n
        # Positions rewritten every frame; colours are static
        self._particle_pos_vbo = self.ctx.buffer(reserve=max(1, n) * 3 * 4, dynamic=True)
        self._particle_col_vbo = self.ctx.buffer(
            np.ascontiguousarray(particle_colors, dtype="f4").tobytes() or b"\0" * 12)
        self._points_vao = self.ctx.vertex_array(
            self.points_prog,
            [
                (self._particle_pos_vbo, "3f", "in_position"),
                (self._particle_col_vbo, "3f", "in_color"),
            ],
        )

        # Shapes: one instanced VAO per kind
        self._shape_meshes = {
            ShapeKind.SPHERE: self.ctx.buffer(sphere_mesh(SPHERE_RADIUS).tobytes()),
            ShapeKind.BOX: self.ctx.buffer(box_mesh(BOX_SIZE).tobytes()),
        }
        self._shape_kinds = np.asarray(shape_kinds)
        self._shape_scales = np.asarray(shape_scales, dtype="f4")
        self._shape_instances = {}
        self._shape_vaos = {}
        for kind, mesh in self._shape_meshes.items():
            count = int(np.count_nonzero(self._shape_kinds == kind))
            inst = self.ctx.buffer(reserve=max(1, count) * 13 * 4, dynamic=True)
            self._shape_instances[kind] = inst
            self._shape_vaos[kind] = self.ctx.vertex_array(
                self.shape_prog,
                [
                    (mesh, "3f 3f", "in_position", "in_normal"),
                    (inst, "3f 3f 1f 3f 3f/i",
                     "in_offset", "in_rotation", "in_scale", "in_color", "in_emissive"),
                ],
            )

        # Photo quad (unit square facing +z)
        quad = np.array([
            -0.5, -0.5, 0.0, 0.0,
             0.5, -0.5, 1.0, 0.0,
             0.5,  0.5, 1.0, 1.0,
            -0.5, -0.5, 0.0, 0.0,
             0.5,  0.5, 1.0, 1.0,
            -0.5,  0.5, 0.0, 1.0,
        ], dtype="f4")
        self._quad_vbo = self.ctx.buffer(quad.tobytes())
        self._photo_vao = self.ctx.vertex_array(
            self.photo_prog, [(self._quad_vbo, "2f 2f", "in_position", "in_uv")]
        )

    def _build_textures(self, textures: list[bytes], size: int):
        self._textures = []
        for data in textures:
            tex = self.ctx.texture((size, size), 4, data)
            tex.build_mipmaps()
            tex.filter = (moderngl.LINEAR_MIPMAP_LINEAR, moderngl.LINEAR)
            self._textures.append(tex)

    def resize(self, width: int, height: int):
        self.width = width
        self.height = height

    def render(self, scene, camera):
        """Draw particles, shapes and photos for the scene's current tick."""
        fbo = self.ctx.screen
        fbo.use()
        self.ctx.viewport = (0, 0, self.width, self.height)
        self.ctx.clear(*BACKGROUND, 1.0, depth=1.0)

        aspect = self.width / max(1, self.height)
        view = _gl_matrix(camera.view_matrix())
        proj = _gl_matrix(camera.projection_matrix(aspect))

        self.ctx.enable(moderngl.DEPTH_TEST | moderngl.PROGRAM_POINT_SIZE)

        # --- Shapes (opaque) ---
        self.shape_prog["u_view"].write(view)
        self.shape_prog["u_proj"].write(proj)
        self.shape_prog["u_light_pos"].value = (10.0, 20.0, 10.0)
        self.shape_prog["u_light_color"].value = (1.5, 1.3, 1.0)
        self.shape_prog["u_ambient"].value = 0.4
        shapes = scene.shapes
        for kind, vao in self._shape_vaos.items():
            mask = self._shape_kinds == kind
            count = int(np.count_nonzero(mask))
            if count == 0:
                continue
            color, emissive = SHAPE_COLORS[kind]
            inst = np.zeros((count, 13), dtype="f4")
            inst[:, 0:3] = shapes.positions[mask]
            inst[:, 3:6] = shapes.rotations[mask]
            inst[:, 6] = self._shape_scales[mask]
            inst[:, 7:10] = color
            inst[:, 10:13] = emissive
            self._shape_instances[kind].write(inst.tobytes())
            vao.render(moderngl.TRIANGLES, instances=count)

        # --- Photos (alpha-tested, double sided) ---
        self.photo_prog["u_view"].write(view)
        self.photo_prog["u_proj"].write(proj)
        self.photo_prog["u_texture"].value = 0
        for o in scene.ornaments:
            if max(o.transform.scale[0], o.transform.scale[1]) < 1e-3:
                continue
            tex = self._textures[o.image_slot % len(self._textures)]
            tex.use(0)
            m = model_matrix(o.transform.position, o.transform.rotation, o.transform.scale)
            self.photo_prog["u_model"].write(_gl_matrix(m))
            self._photo_vao.render(moderngl.TRIANGLES)

        # --- Particles (additive, no depth writes) ---
        if self._particle_count:
            self._particle_pos_vbo.write(
                np.ascontiguousarray(scene.particles.render_buffer, dtype="f4").tobytes())
            self.points_prog["u_model"].write(_gl_matrix(yaw_matrix(scene.particles.rotation_y)))
            self.points_prog["u_view"].write(view)
            self.points_prog["u_proj"].write(proj)
            self.points_prog["u_point_size"].value = POINT_SIZE
            self.points_prog["u_viewport_height"].value = float(self.height)
            self.ctx.enable(moderngl.BLEND)
            self.ctx.blend_func = moderngl.SRC_ALPHA, moderngl.ONE
            fbo.depth_mask = False
            self._points_vao.render(moderngl.POINTS, vertices=self._particle_count)
            fbo.depth_mask = True
            self.ctx.disable(moderngl.BLEND)

        self.ctx.disable(moderngl.DEPTH_TEST | moderngl.PROGRAM_POINT_SIZE)

    def cleanup(self):
        """Release all GPU resources."""
        objs = [
            self._points_vao, self._particle_pos_vbo, self._particle_col_vbo,
            self._photo_vao, self._quad_vbo,
            self.points_prog, self.shape_prog, self.photo_prog,
        ]
        objs.extend(self._shape_vaos.values())
        objs.extend(self._shape_instances.values())
        objs.extend(self._shape_meshes.values())
        objs.extend(self._textures)
        for obj in objs:
            try:
                obj.release()
            except Exception:
                pass
