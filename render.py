from __future__ import annotations
from dataclasses import replace
from typing import List, Optional, Tuple

from PIL import Image, ImageDraw

from worldgen import Color, Tile, World

# ============================================================
# 1. Debug overlay (presentation only, never part of generation)
# ============================================================

RED: Color = (255, 0, 0, 255)
YELLOW: Color = (255, 255, 0, 255)
BLUE: Color = (0, 0, 255, 255)

def debug_overlay_color(x: int, y: int, width: int, height: int) -> Optional[Color]:
    if (x + y) % 10 == 0:
        return RED
    if x == 0 or y == 0 or x == width - 1 or y == height - 1:
        return YELLOW
    if x == width // 2 or y == height // 2:
        return BLUE
    return None

def apply_debug_overlay(world: World) -> World:
    """Return a copy of ``world`` with diagonal, border and midline markers painted in."""
    rows: List[List[Tile]] = []
    for row in world.tiles:
        out_row = []
        for t in row:
            col = debug_overlay_color(t.x, t.y, world.width, world.height)
            out_row.append(t if col is None else replace(t, color=col))
        rows.append(out_row)
    return World(world.width, world.height, rows)


# ============================================================
# 2. Isometric projection + camera
# ============================================================

TILE_WIDTH = 96
TILE_HEIGHT = 48
SCREEN_WIDTH = 1280
SCREEN_HEIGHT = 800

def camera_offset(x: float, y: float, elevation: float,
                  tile_w: int = TILE_WIDTH, tile_h: int = TILE_HEIGHT,
                  screen_w: int = SCREEN_WIDTH, screen_h: int = SCREEN_HEIGHT) -> Tuple[float, float]:
    sx = (x - y) * (tile_w / 2.0)
    sy = (x + y) * (tile_h / 2.0) - elevation
    return sx - screen_w / 2.0, sy - screen_h / 2.0

def world_to_screen(wx: float, wy: float, elevation: float,
                    focus: Tuple[float, float, float] = (0.0, 0.0, 0.0),
                    tile_w: int = TILE_WIDTH, tile_h: int = TILE_HEIGHT,
                    screen_w: int = SCREEN_WIDTH, screen_h: int = SCREEN_HEIGHT) -> Tuple[int, int]:
    # focus point (x, y, elevation) lands on the screen center
    cx, cy = camera_offset(*focus, tile_w=tile_w, tile_h=tile_h, screen_w=screen_w, screen_h=screen_h)
    sx = (wx - wy) * (tile_w / 2.0)
    sy = (wx + wy) * (tile_h / 2.0) - elevation
    return int(sx - cx), int(sy - cy)

def outline_color(col: Color) -> Color:
    r, g, b, _ = col
    return tuple(c - 40 if c > 128 else c + 40 for c in (r, g, b)) + (255,)


# ============================================================
# 3. Isometric renderer with side faces
# ============================================================

class IsoRenderer:
    def __init__(
        self,
        world: World,
        tile_w=32,
        tile_h=16,
        elev_scale=1.0,     # screen pixels per elevation unit
        margin=40,
        base_drop=20,
        background=(35, 36, 55, 255),
    ):
        self.world = world
        self.tile_w = tile_w
        self.tile_h = tile_h
        self.elev_scale = elev_scale
        self.margin = margin
        self.base_drop = base_drop
        self.background = background

    def tile_screen_pos_raw(self, x: int, y: int, elevation: float) -> Tuple[int, int]:
        # unbounded canvas: origin at tile (0, 0), no screen centering
        return world_to_screen(x, y, elevation * self.elev_scale,
                               tile_w=self.tile_w, tile_h=self.tile_h, screen_w=0, screen_h=0)

    def tile_ground_y_raw(self, x: int, y: int) -> int:
        return self.tile_screen_pos_raw(x, y, 0.0)[1]

    def side_color(self, col: Color, factor: float) -> Color:
        return (int(col[0] * factor), int(col[1] * factor), int(col[2] * factor), col[3])

    def render(self) -> Image.Image:
        positions = []
        for t in self.world:
            sx, sy = self.tile_screen_pos_raw(t.x, t.y, t.elevation)
            gy = self.tile_ground_y_raw(t.x, t.y)
            positions.append((sx, sy, gy, t))

        min_x = min(p[0] for p in positions)
        max_x = max(p[0] for p in positions)
        min_y = min(p[1] for p in positions)
        max_y = max(p[1] for p in positions)
        max_gy = max(p[2] for p in positions)

        width = (max_x - min_x) + self.margin * 2 + self.tile_w
        # negative elevations push tops below the ground plane
        height = (max(max_gy, max_y) - min_y) + self.margin * 2 + self.tile_h + self.base_drop

        img = Image.new("RGBA", (width, height), self.background)
        draw = ImageDraw.Draw(img)

        off_x = -min_x + self.margin
        off_y = -min_y + self.margin
        w2 = self.tile_w // 2
        h2 = self.tile_h // 2

        # painter's order: back rows first
        for sx, sy, gy, t in sorted(positions, key=lambda p: (p[3].x + p[3].y, p[3].x, p[3].y)):
            sx += off_x
            sy += off_y
            ground_y = (gy - min_y) + self.margin + self.base_drop

            top_col = t.color
            top_poly = [
                (sx, sy),
                (sx + w2, sy + h2),
                (sx, sy + self.tile_h),
                (sx - w2, sy + h2),
            ]

            side_h = max(0, ground_y - (sy + self.tile_h))
            if side_h > 0:
                right_poly = [
                    (sx + w2, sy + h2),
                    (sx + w2, sy + h2 + side_h),
                    (sx,      sy + self.tile_h + side_h),
                    (sx,      sy + self.tile_h),
                ]
                draw.polygon(right_poly, fill=self.side_color(top_col, 0.8))
                left_poly = [
                    (sx - w2, sy + h2),
                    (sx - w2, sy + h2 + side_h),
                    (sx,      sy + self.tile_h + side_h),
                    (sx,      sy + self.tile_h),
                ]
                draw.polygon(left_poly, fill=self.side_color(top_col, 0.65))

            draw.polygon(top_poly, fill=top_col, outline=outline_color(top_col))

        return img


def map_image(world: World, scale: int = 1) -> Image.Image:
    """Top-down preview: one ``scale`` x ``scale`` block per tile."""
    img = Image.new("RGBA", (world.width, world.height))
    img.putdata([t.color for t in world])
    if scale > 1:
        img = img.resize((world.width * scale, world.height * scale), Image.Resampling.NEAREST)
    return img
