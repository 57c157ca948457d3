from __future__ import annotations
from dataclasses import dataclass

from engine import clamp
from worldgen import World

PLAYER_SPEED = 5.0
JUMP_FORCE = 10.0
GRAVITY = 0.3
FOLLOW_RATE = 0.2   # fraction of the gap to terrain closed per step
EDGE_MARGIN = 1.0


@dataclass
class Avatar:
    x: float
    y: float
    elevation: float = 0.0
    velocity_z: float = 0.0
    jumping: bool = False

    @property
    def tile_pos(self):
        return int(self.x), int(self.y)


def spawn(world: World, elevation: float = 0.0) -> Avatar:
    return Avatar(x=world.width / 2.0, y=world.height / 2.0, elevation=elevation)


def terrain_height(world: World, x: float, y: float, default: float = 0.0) -> float:
    tx, ty = int(x), int(y)
    if world.in_bounds(tx, ty):
        return float(world.tile(tx, ty).elevation)
    return default


def step(avatar: Avatar, world: World, dx: float, dy: float, dt: float,
         jump: bool = False, enforce_walkable: bool = True) -> Avatar:
    """Advance ``avatar`` one frame; ``dx``/``dy`` are input directions in [-1, 1]."""
    move = PLAYER_SPEED * dt * 5.0
    prev_x, prev_y = avatar.x, avatar.y

    avatar.x += dx * move
    avatar.y += dy * move
    avatar.x = clamp(avatar.x, EDGE_MARGIN, world.width - 1 - EDGE_MARGIN)
    avatar.y = clamp(avatar.y, EDGE_MARGIN, world.height - 1 - EDGE_MARGIN)

    tx, ty = avatar.tile_pos
    if world.in_bounds(tx, ty):
        tile = world.tile(tx, ty)
        if enforce_walkable and not tile.walkable:
            avatar.x, avatar.y = prev_x, prev_y
        elif not avatar.jumping:
            avatar.elevation += (tile.elevation - avatar.elevation) * FOLLOW_RATE

    if jump and not avatar.jumping:
        avatar.velocity_z = JUMP_FORCE
        avatar.jumping = True

    if avatar.jumping:
        avatar.velocity_z -= GRAVITY
        avatar.elevation += avatar.velocity_z
        ground = terrain_height(world, avatar.x, avatar.y)
        if avatar.elevation <= ground:
            avatar.elevation = ground
            avatar.velocity_z = 0.0
            avatar.jumping = False

    return avatar
