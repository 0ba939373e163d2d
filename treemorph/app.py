"""Main application: GLFW window + moderngl + imgui + morph scene."""

import logging
import time

import glfw
import moderngl
from imgui_bundle import imgui
from imgui_bundle.python_backends.glfw_backend import GlfwRenderer as ImGuiGlfwRenderer

from treemorph.assets.images import PHOTOS_DIR, TEXTURE_SIZE, image_bytes, load_sources
from treemorph.config import MorphConfig
from treemorph.morph.scene import SceneController
from treemorph.morph.spatial import ray_hits_cone
from treemorph.ui.overlay import Overlay
from treemorph.visualization.orbit_camera import OrbitCamera
from treemorph.visualization.renderer import Renderer

logger = logging.getLogger(__name__)

# Clicks that move less than this many pixels count as clicks, not drags
_CLICK_SLOP = 4.0


class App:
    """Main application class."""

    def __init__(self, config: MorphConfig = MorphConfig(), width: int = 1280,
                 height: int = 720, photos_dir: str = PHOTOS_DIR):
        self.width = width
        self.height = height
        self.config = config

        images = load_sources(photos_dir)
        self.scene = SceneController(config, image_source_count=len(images))
        self.camera = OrbitCamera(
            distance=config.camera_distance, fov=config.fov,
            min_distance=config.min_distance, max_distance=config.max_distance,
        )

        # Init GLFW
        if not glfw.init():
            raise RuntimeError("Failed to initialize GLFW")

        glfw.window_hint(glfw.CONTEXT_VERSION_MAJOR, 3)
        glfw.window_hint(glfw.CONTEXT_VERSION_MINOR, 3)
        glfw.window_hint(glfw.OPENGL_PROFILE, glfw.OPENGL_CORE_PROFILE)
        glfw.window_hint(glfw.OPENGL_FORWARD_COMPAT, True)
        glfw.window_hint(glfw.SAMPLES, 4)

        self.window = glfw.create_window(width, height, "TreeMorph", None, None)
        if not self.window:
            glfw.terminate()
            raise RuntimeError("Failed to create GLFW window")

        glfw.make_context_current(self.window)
        glfw.swap_interval(1)  # vsync

        # moderngl context
        self.ctx = moderngl.create_context()

        # ImGui
        imgui.create_context()
        self.imgui_impl = ImGuiGlfwRenderer(self.window)
        imgui.style_colors_dark(imgui.get_style())

        fb_w, fb_h = glfw.get_framebuffer_size(self.window)
        self.renderer = Renderer(
            self.ctx, fb_w, fb_h,
            self.scene.particles.pool.colors,
            self.scene.shapes.kinds, self.scene.shapes.scales,
            [image_bytes(img) for img in images], TEXTURE_SIZE,
        )
        self.overlay = Overlay(config.title)

        # Mouse state
        self._dragging = False
        self._press_pos = (0.0, 0.0)
        self._last_cursor = (0.0, 0.0)
        self._hand_cursor = glfw.create_standard_cursor(glfw.HAND_CURSOR)
        self._hovering = False

        # Chain our callbacks in front of ImGui's
        glfw.set_framebuffer_size_callback(self.window, self._on_resize)
        self._imgui_mouse_button_callback = glfw.set_mouse_button_callback(
            self.window, self._on_mouse_button)
        self._imgui_cursor_pos_callback = glfw.set_cursor_pos_callback(
            self.window, self._on_cursor_pos)
        self._imgui_scroll_callback = glfw.set_scroll_callback(self.window, self._on_scroll)
        self._imgui_key_callback = glfw.set_key_callback(self.window, self._on_key)

        # Delta time tracking
        self._last_frame_time = time.time()

    # --- GLFW callbacks ---

    def _on_resize(self, window, width, height):
        if width > 0 and height > 0:
            self.ctx.viewport = (0, 0, width, height)
            self.renderer.resize(width, height)

    def _on_key(self, window, key, scancode, action, mods):
        if self._imgui_key_callback:
            self._imgui_key_callback(window, key, scancode, action, mods)
        if imgui.get_io().want_capture_keyboard or action != glfw.PRESS:
            return
        if key == glfw.KEY_SPACE:
            self.scene.toggle_formation()
        elif key == glfw.KEY_ESCAPE and self.scene.state.active_ornament_id is not None:
            self.scene.select(self.scene.state.active_ornament_id)

    def _on_mouse_button(self, window, button, action, mods):
        if self._imgui_mouse_button_callback:
            self._imgui_mouse_button_callback(window, button, action, mods)
        if button != glfw.MOUSE_BUTTON_LEFT:
            return
        x, y = glfw.get_cursor_pos(window)
        if action == glfw.PRESS:
            if imgui.get_io().want_capture_mouse:
                return
            self._dragging = True
            self._press_pos = (x, y)
            self._last_cursor = (x, y)
        elif action == glfw.RELEASE and self._dragging:
            self._dragging = False
            moved = abs(x - self._press_pos[0]) + abs(y - self._press_pos[1])
            if moved <= _CLICK_SLOP:
                self._on_click(x, y)

    def _on_cursor_pos(self, window, x, y):
        if self._imgui_cursor_pos_callback:
            self._imgui_cursor_pos_callback(window, x, y)
        if self._dragging:
            dx = x - self._last_cursor[0]
            dy = y - self._last_cursor[1]
            _, win_h = glfw.get_window_size(window)
            self.camera.rotate(dx, dy, win_h)
        self._last_cursor = (x, y)
        self._update_hover(x, y)

    def _on_scroll(self, window, x_offset, y_offset):
        if self._imgui_scroll_callback:
            self._imgui_scroll_callback(window, x_offset, y_offset)
        if not imgui.get_io().want_capture_mouse:
            self.camera.zoom(y_offset)

    # --- Picking ---

    def _ray(self, x, y):
        win_w, win_h = glfw.get_window_size(self.window)
        return self.camera.screen_ray(x, y, max(1, win_w), max(1, win_h))

    def _hit_tree(self, origin, direction) -> bool:
        cfg = self.config
        return ray_hits_cone(origin, direction, cfg.height, cfg.radius, cfg.radius_jitter)

    def _on_click(self, x, y):
        origin, direction = self._ray(x, y)
        if self.scene.state.is_dispersed:
            index = self.scene.ornaments.pick(origin, direction)
            if index is not None:
                self.scene.select(index)
        elif self._hit_tree(origin, direction):
            self.scene.click_tree()

    def _update_hover(self, x, y):
        origin, direction = self._ray(x, y)
        hovering = False
        if self.scene.can_hover_ornaments:
            hovering = self.scene.ornaments.pick(origin, direction) is not None
        elif self.scene.can_hover_tree:
            hovering = self._hit_tree(origin, direction)
        if hovering != self._hovering:
            glfw.set_cursor(self.window, self._hand_cursor if hovering else None)
            self._hovering = hovering

    # --- Main loop ---

    def run(self):
        """Main loop."""
        try:
            while not glfw.window_should_close(self.window):
                glfw.poll_events()
                self.imgui_impl.process_inputs()

                imgui.new_frame()

                self._update()
                self.renderer.render(self.scene, self.camera)

                imgui.render()
                self.imgui_impl.render(imgui.get_draw_data())

                glfw.swap_buffers(self.window)
        finally:
            self._cleanup()

    def _update(self):
        """Per-frame logic: overlay input, camera gate, scene tick."""
        actions = self.overlay.draw(self.scene)
        if actions["toggle"]:
            self.scene.toggle_formation()

        now = time.time()
        delta_time = min(now - self._last_frame_time, 0.05)
        self._last_frame_time = now

        self.camera.apply_gate(self.scene.gate)
        self.camera.update(delta_time)
        self.scene.tick(delta_time, self.camera)

    def _cleanup(self):
        self.renderer.cleanup()
        self.imgui_impl.shutdown()
        imgui.destroy_context()
        glfw.destroy_cursor(self._hand_cursor)
        glfw.terminate()
        logger.info("[App] Shut down")
