"""
App chrome preview renderer.
Draws the layout annotations derived from a NavigationSnapshot: constrained
column or full width, background grid, blur, modal dimming and the bottom
tab bar. Uses Pillow.
"""

from PIL import Image, ImageDraw, ImageFilter, ImageFont
import logging
import os

from nutriflow.ui.navigation import NavigationSnapshot
from nutriflow.ui.screens import Screen
from nutriflow.ui.transitions import TransitionPhase


TAB_ORDER = (Screen.HOME, Screen.CALENDAR, Screen.INSIGHTS, Screen.PROFILE)

BACKGROUND = (246, 246, 242)
GRID = (214, 214, 206)
INK = (24, 24, 24)
MUTED = (120, 120, 120)
ACCENT = (46, 125, 90)
TAB_BAR = (255, 255, 255)


class ChromeRenderer:
    """
    Render a preview frame for the active screen
    """

    def __init__(self, width: int = 390, height: int = 844, constrained_width: int = 384,
                 tab_bar_height: int = 84, font_size: int = 18):
        """
        Initialize renderer

        Args:
            width: Viewport width
            height: Viewport height
            constrained_width: Column width for non full-width screens
            tab_bar_height: Bottom navigation height
            font_size: Base font size
        """
        self.logger = logging.getLogger(__name__)
        self.width = width
        self.height = height
        self.constrained_width = min(constrained_width, width)
        self.tab_bar_height = tab_bar_height

        # Try to load fonts
        try:
            self.font = ImageFont.truetype("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf", font_size)
            self.title_font = ImageFont.truetype("/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf", font_size + 8)
        except Exception:
            self.logger.warning("TrueType fonts not found, using default")
            self.font = ImageFont.load_default()
            self.title_font = ImageFont.load_default()

    def content_box(self, snapshot: NavigationSnapshot):
        """(left, right) x bounds of the content column"""
        if snapshot.is_full_width:
            return 0, self.width
        left = (self.width - self.constrained_width) // 2
        return left, left + self.constrained_width

    def render(self, snapshot: NavigationSnapshot) -> Image.Image:
        """
        Render snapshot to PIL Image

        Returns:
            PIL Image (RGB)
        """
        image = Image.new('RGB', (self.width, self.height), BACKGROUND)
        left, right = self.content_box(snapshot)

        if snapshot.show_grid:
            self._draw_grid(image, left, right, snapshot.grid_size)

        draw = ImageDraw.Draw(image)
        self._draw_header(draw, snapshot, left, right)

        if snapshot.blur_background:
            image = image.filter(ImageFilter.GaussianBlur(8))

        if snapshot.modal_open:
            overlay = Image.new('RGB', image.size, (0, 0, 0))
            image = Image.blend(image, overlay, 0.35)

        if snapshot.show_bottom_nav:
            self._draw_tab_bar(ImageDraw.Draw(image), snapshot.screen)

        return image

    def save(self, snapshot: NavigationSnapshot, path: str):
        """Render and write a PNG preview"""
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self.render(snapshot).save(path)
        self.logger.debug(f"Preview written to {path}")

    def _draw_grid(self, image: Image.Image, left: int, right: int, size: int):
        draw = ImageDraw.Draw(image)
        for x in range(left, right + 1, size):
            draw.line([(x, 0), (x, self.height)], fill=GRID, width=1)
        for y in range(0, self.height + 1, size):
            draw.line([(left, y), (right, y)], fill=GRID, width=1)

    def _draw_header(self, draw: ImageDraw.ImageDraw, snapshot: NavigationSnapshot, left: int, right: int):
        x = left + 24
        draw.text((x, 48), snapshot.screen.value, font=self.title_font, fill=INK)
        draw.text((x, 88), snapshot.active_date.strftime('%A, %B %d, %Y'), font=self.font, fill=MUTED)

        path = " / ".join(screen.value for screen in snapshot.stack)
        draw.text((x, 116), path, font=self.font, fill=MUTED)

        if snapshot.phase is not TransitionPhase.IDLE:
            target = snapshot.transition_target.value if snapshot.transition_target else "?"
            draw.text((x, 144), f"{snapshot.phase.value} -> {target}", font=self.font, fill=ACCENT)

        if snapshot.selection is not None:
            event = snapshot.selection
            draw.line([(x, 180), (right - 24, 180)], fill=INK, width=2)
            draw.text((x, 196), event.title, font=self.title_font, fill=INK)
            draw.text((x, 236), f"{event.time}  {event.subtitle}", font=self.font, fill=MUTED)

    def _draw_tab_bar(self, draw: ImageDraw.ImageDraw, active: Screen):
        top = self.height - self.tab_bar_height
        draw.rectangle([(0, top), (self.width, self.height)], fill=TAB_BAR)
        draw.line([(0, top), (self.width, top)], fill=GRID, width=1)

        slot = self.width // len(TAB_ORDER)
        for i, tab in enumerate(TAB_ORDER):
            label = tab.value.capitalize()
            try:
                bbox = draw.textbbox((0, 0), label, font=self.font)
                label_width = bbox[2] - bbox[0]
            except Exception:
                label_width = len(label) * 8
            x = i * slot + (slot - label_width) // 2
            color = ACCENT if tab is active else MUTED
            draw.text((x, top + 28), label, font=self.font, fill=color)
            if tab is active:
                draw.line([(i * slot + 16, top + 4), ((i + 1) * slot - 16, top + 4)], fill=ACCENT, width=3)
