"""Screen overlay with imgui: formation toggle, hint line, title."""

from imgui_bundle import imgui

HINT_TEXT = "Click a photo to zoom • Drag to rotate"
TITLE_COLOR = (1.0, 0.8, 0.0, 1.0)
CLUSTERED_BUTTON = (10 / 255.0, 150 / 255.0, 50 / 255.0, 0.8)
DISPERSED_BUTTON = (1.0, 50 / 255.0, 50 / 255.0, 0.8)

_FLAGS = (
    imgui.WindowFlags_.no_title_bar
    | imgui.WindowFlags_.no_resize
    | imgui.WindowFlags_.no_move
    | imgui.WindowFlags_.no_scrollbar
    | imgui.WindowFlags_.no_background
)


class Overlay:
    """Stateless UI on top of the 3D view."""

    def __init__(self, title: str = ""):
        self.title = title

    def draw(self, scene) -> dict:
        """Draw the overlay for the scene's current state.

        Returns dict with actions: {toggle: bool}
        """
        actions = {"toggle": False}
        viewport = imgui.get_main_viewport()
        vp_size = viewport.size

        if scene.show_title and self.title:
            self._draw_title(vp_size)

        if scene.show_hint:
            imgui.set_next_window_pos((vp_size.x / 2, 20), imgui.Cond_.always, (0.5, 0.0))
            imgui.begin("##hint", None, _FLAGS | imgui.WindowFlags_.always_auto_resize)
            imgui.text_colored((1.0, 1.0, 1.0, 0.6), HINT_TEXT)
            imgui.end()

        if scene.show_toggle_button:
            btn_w, btn_h = 200, 50
            imgui.set_next_window_pos(
                (vp_size.x - btn_w - 40, vp_size.y - btn_h - 40), imgui.Cond_.always,
            )
            imgui.set_next_window_size((btn_w + 16, btn_h + 16), imgui.Cond_.always)
            imgui.begin("##toggle", None, _FLAGS)
            color = DISPERSED_BUTTON if scene.state.is_dispersed else CLUSTERED_BUTTON
            imgui.push_style_color(imgui.Col_.button, color)
            imgui.push_style_var(imgui.StyleVar_.frame_rounding, 25.0)
            if imgui.button(scene.toggle_label.upper(), (btn_w, btn_h)):
                actions["toggle"] = True
            imgui.pop_style_var()
            imgui.pop_style_color()
            imgui.end()

        return actions

    def _draw_title(self, vp_size):
        imgui.set_next_window_pos((vp_size.x / 2, vp_size.y * 0.08), imgui.Cond_.always, (0.5, 0.0))
        imgui.begin("##title", None, _FLAGS | imgui.WindowFlags_.always_auto_resize)
        imgui.set_window_font_scale(2.2)
        for line in self.title.splitlines():
            width = imgui.calc_text_size(line).x
            avail = imgui.get_content_region_avail().x
            if avail > width:
                imgui.set_cursor_pos_x(imgui.get_cursor_pos_x() + (avail - width) / 2)
            imgui.text_colored(TITLE_COLOR, line)
        imgui.set_window_font_scale(1.0)
        imgui.end()
