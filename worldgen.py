"""
Island terrain generation for a fixed-size tile grid.

Pipeline (strictly in this order):
  TerrainFields  -> five layered-noise fields blended into raw elevation
  HydraulicCarve -> river channels, tributaries, lakes (per cell, min-clamps)
  SmoothElevation-> 3x3 convolution on land, water left crisp
  BiomeClassify  -> ordered elevation/moisture thresholds
  finalize_tiles -> integer elevation, walkability, jittered biome color
"""

from __future__ import annotations
import logging
import random
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Iterator, List, Optional, Tuple

from engine import NoiseEngine, clamp, radial_falloff, ridged

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int, int]


class ConfigError(ValueError):
    """Raised for generation parameters that would produce a corrupt grid."""


# ============================================================
# 1. Configuration
# ============================================================

@dataclass(frozen=True)
class NoiseLayer:
    freq: float         # multiplier applied to the normalized (nx, ny) coords
    octaves: int
    persistence: float
    scale: float        # base frequency of the first octave
    seed: int


def _default_noise_layers() -> Dict[str, NoiseLayer]:
    return {
        "continent": NoiseLayer(freq=0.5, octaves=4, persistence=0.6, scale=0.5, seed=1),
        "detail":    NoiseLayer(freq=5.0, octaves=6, persistence=0.5, scale=2.0, seed=2),
        "mountain":  NoiseLayer(freq=3.0, octaves=4, persistence=0.7, scale=1.5, seed=5),
        "moisture":  NoiseLayer(freq=4.0, octaves=4, persistence=0.5, scale=2.0, seed=3),
        "river":     NoiseLayer(freq=8.0, octaves=2, persistence=0.7, scale=3.0, seed=4),
    }


DEFAULT_LEVELS: Dict[str, float] = {
    "water": 20.0,
    "beach": 23.0,
    "plains": 35.0,
    "hills": 50.0,
    "mountain": 70.0,
    "deep_offset": 5.0,   # below water - offset is deep water
}

DEFAULT_MOISTURE: Dict[str, float] = {
    "plains_forest": 0.6,
    "hills_forest": 0.4,
}

DEFAULT_BLEND: Dict[str, float] = {
    "continent": 0.5,
    "detail": 0.2,
    "ridge": 0.3,
    "scale": 100.0,
    "ridge_sharpness": 3.0,
}

DEFAULT_ISLAND: Dict[str, float] = {
    "distance_scale": 2.0,   # far corner ends up at ~1.4
    "exponent": 0.5,
    "floor": 0.3,            # edges keep 30% of their elevation
}

DEFAULT_RIVER: Dict[str, float] = {
    "threshold": 0.82,
    "tributary_threshold": 0.72,
    "channel_depth": 5.0,
    "tributary_depth": 1.0,
    "lake_margin": 5.0,
    "lake_moisture": 0.7,
    "lake_depth": 2.0,
}

_PARAM_GROUPS = (
    ("blend_weights", DEFAULT_BLEND),
    ("island_params", DEFAULT_ISLAND),
    ("levels", DEFAULT_LEVELS),
    ("moisture_params", DEFAULT_MOISTURE),
    ("river_params", DEFAULT_RIVER),
)


@dataclass
class WorldGenParams:
    width: int = 128
    height: int = 128
    seed: int = 0                       # offset added to every layer seed
    noise_layers: Dict[str, NoiseLayer] = field(default_factory=_default_noise_layers)
    blend_weights: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_BLEND))
    island_params: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_ISLAND))
    levels: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_LEVELS))
    moisture_params: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_MOISTURE))
    river_params: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_RIVER))
    smoothing: float = 0.7              # weight of the neighborhood mean on land
    color_jitter: int = 5
    color_seed: Optional[int] = None    # None: fresh entropy every run

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        for name in ("width", "height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} must be an int, got {value!r}")
        if self.width <= 0 or self.height <= 0:
            raise ConfigError(f"world dimensions must be positive, got {self.width}x{self.height}")
        missing = set(_default_noise_layers()) - set(self.noise_layers)
        if missing:
            raise ConfigError(f"missing noise layers: {', '.join(sorted(missing))}")
        for name, layer in self.noise_layers.items():
            if isinstance(layer.octaves, bool) or not isinstance(layer.octaves, int):
                raise ConfigError(f"noise layer '{name}' octave count must be an int, got {layer.octaves!r}")
            if layer.octaves < 0:
                raise ConfigError(f"noise layer '{name}' has negative octave count {layer.octaves}")
            if not 0.0 < layer.persistence <= 1.0:
                raise ConfigError(f"noise layer '{name}' persistence must be in (0, 1], got {layer.persistence}")
        for group, defaults in _PARAM_GROUPS:
            absent = set(defaults) - set(getattr(self, group))
            if absent:
                raise ConfigError(f"{group} is missing: {', '.join(sorted(absent))}")
        lv = self.levels
        order = [lv["water"], lv["beach"], lv["plains"], lv["hills"], lv["mountain"]]
        if any(b <= a for a, b in zip(order, order[1:])):
            raise ConfigError(f"elevation levels must be strictly increasing, got {order}")
        rp = self.river_params
        if not 0.0 < rp["threshold"] < 1.0:
            raise ConfigError(f"river threshold must be in (0, 1), got {rp['threshold']}")
        if rp["tributary_threshold"] > rp["threshold"]:
            raise ConfigError(f"tributary threshold {rp['tributary_threshold']} lies above "
                              f"the channel threshold {rp['threshold']}")
        if not 0.0 <= self.smoothing <= 1.0:
            raise ConfigError(f"smoothing weight must be in [0, 1], got {self.smoothing}")
        if self.color_jitter < 0:
            raise ConfigError(f"color jitter must be non-negative, got {self.color_jitter}")

    @property
    def water_level(self) -> float:
        return self.levels["water"]

    def layer_seed(self, name: str) -> int:
        return self.seed + self.noise_layers[name].seed


# ============================================================
# 2. Biomes
# ============================================================

class Biome(IntEnum):
    DEEP_WATER = 0
    SHALLOW_WATER = 1
    BEACH = 2
    PLAINS = 3
    FOREST = 4
    HILLS = 5
    MOUNTAINS = 6
    SNOW_CAPS = 7


@dataclass(frozen=True)
class BiomeProperties:
    base_color: Color
    height_modifier: float   # kept for parity, not applied to terrain yet
    roughness: float         # kept for parity, not applied to terrain yet
    walkable: bool


BIOME_PROPERTIES: Dict[Biome, BiomeProperties] = {
    Biome.DEEP_WATER:    BiomeProperties((0, 64, 220, 255),    0.3, 0.1, False),
    Biome.SHALLOW_WATER: BiomeProperties((0, 128, 255, 255),   0.5, 0.2, False),
    Biome.BEACH:         BiomeProperties((240, 220, 180, 255), 0.6, 0.2, True),
    Biome.PLAINS:        BiomeProperties((100, 210, 100, 255), 1.0, 0.3, True),
    Biome.FOREST:        BiomeProperties((21, 120, 35, 255),   1.1, 0.4, True),
    Biome.HILLS:         BiomeProperties((90, 160, 90, 255),   1.2, 0.6, True),
    Biome.MOUNTAINS:     BiomeProperties((150, 140, 130, 255), 1.5, 0.8, False),
    Biome.SNOW_CAPS:     BiomeProperties((255, 255, 255, 255), 1.6, 0.9, False),
}

def classify_biome(elevation: float, moisture: float,
                   levels: Optional[Dict[str, float]] = None,
                   moisture_params: Optional[Dict[str, float]] = None) -> Biome:
    lv = levels or DEFAULT_LEVELS
    mp = moisture_params or DEFAULT_MOISTURE
    if elevation < lv["water"] - lv["deep_offset"]:
        return Biome.DEEP_WATER
    if elevation < lv["water"]:
        return Biome.SHALLOW_WATER
    if elevation < lv["beach"]:
        return Biome.BEACH
    if elevation < lv["plains"]:
        return Biome.PLAINS if moisture < mp["plains_forest"] else Biome.FOREST
    if elevation < lv["hills"]:
        return Biome.HILLS if moisture < mp["hills_forest"] else Biome.FOREST
    if elevation < lv["mountain"]:
        return Biome.MOUNTAINS
    # also catches NaN elevations
    return Biome.SNOW_CAPS


# ============================================================
# 3. Data structures
# ============================================================

@dataclass
class TerrainSample:
    elevation: float = 0.0
    moisture: float = 0.0
    river: float = 0.0
    biome: Optional[Biome] = None


@dataclass
class TerrainGrid:
    width: int
    height: int
    samples: List[List[TerrainSample]] = field(init=False)

    def __post_init__(self):
        self.samples = [[TerrainSample() for _ in range(self.width)] for _ in range(self.height)]

    def sample(self, x: int, y: int) -> TerrainSample:
        return self.samples[y][x]

    def cells(self) -> Iterator[Tuple[int, int, TerrainSample]]:
        for y, row in enumerate(self.samples):
            for x, s in enumerate(row):
                yield x, y, s

    def elevations(self) -> List[List[float]]:
        return [[s.elevation for s in row] for row in self.samples]


@dataclass(frozen=True)
class Tile:
    x: int
    y: int
    elevation: int
    color: Color
    walkable: bool


@dataclass
class World:
    width: int
    height: int
    tiles: List[List[Tile]]   # row-major: tiles[y][x]

    def tile(self, x: int, y: int) -> Tile:
        return self.tiles[y][x]

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def __iter__(self) -> Iterator[Tile]:
        for row in self.tiles:
            yield from row

    def stats(self, water_level: float = 20.0, mountain_level: float = 70.0) -> Dict[str, int]:
        water = land = mountain = 0
        for t in self:
            if t.elevation < water_level:
                water += 1
            elif t.elevation > mountain_level:
                mountain += 1
            else:
                land += 1
        return {"water": water, "land": land, "mountain": mountain}


# ============================================================
# 4. Layers
# ============================================================

class Layer:
    def name(self) -> str:
        return self.__class__.__name__
    def dependencies(self) -> List[str]:
        return []
    def compute(self, terrain: TerrainGrid, p: WorldGenParams, noise: NoiseEngine):
        raise NotImplementedError


class TerrainFields(Layer):
    def _sample(self, noise: NoiseEngine, p: WorldGenParams, name: str, nx: float, ny: float) -> float:
        layer = p.noise_layers[name]
        return noise.layered(nx * layer.freq, ny * layer.freq,
                             layer.octaves, layer.persistence, layer.scale,
                             p.layer_seed(name))

    def compute(self, terrain, p, noise):
        bw = p.blend_weights
        isl = p.island_params
        for x, y, s in terrain.cells():
            nx = x / terrain.width
            ny = y / terrain.height

            continent = self._sample(noise, p, "continent", nx, ny)
            detail    = self._sample(noise, p, "detail", nx, ny)
            mountain  = ridged(self._sample(noise, p, "mountain", nx, ny), bw["ridge_sharpness"])
            moisture  = self._sample(noise, p, "moisture", nx, ny)
            river     = self._sample(noise, p, "river", nx, ny)

            island = radial_falloff(nx, ny, isl["distance_scale"], isl["exponent"])
            elevation = (continent*bw["continent"] + detail*bw["detail"] + mountain*bw["ridge"]) * bw["scale"]
            elevation *= island * (1.0 - isl["floor"]) + isl["floor"]

            s.elevation = elevation
            s.moisture = moisture
            s.river = river


class HydraulicCarve(Layer):
    def dependencies(self): return ["TerrainFields"]

    def compute(self, terrain, p, noise):
        rp = p.river_params
        water = p.water_level
        threshold = rp["threshold"]
        carved = 0
        for _, _, s in terrain.cells():
            before = s.elevation
            if s.river > threshold:
                strength = (s.river - threshold) / (1.0 - threshold)
                s.elevation = min(s.elevation, water - strength * rp["channel_depth"])
            elif s.river > rp["tributary_threshold"]:
                s.elevation = min(s.elevation, water - rp["tributary_depth"])
            if s.elevation < water + rp["lake_margin"] and s.moisture > rp["lake_moisture"]:
                s.elevation = min(s.elevation, water - rp["lake_depth"])
            if s.elevation < before:
                carved += 1
        logger.debug("HydraulicCarve lowered %d cells", carved)


class SmoothElevation(Layer):
    def dependencies(self): return ["HydraulicCarve"]

    def compute(self, terrain, p, noise):
        w, h = terrain.width, terrain.height
        src = terrain.elevations()
        water = p.water_level
        k = p.smoothing
        out = [row[:] for row in src]
        for y in range(h):
            for x in range(w):
                own = src[y][x]
                if own <= water:
                    continue
                total = 0.0
                count = 0
                for ny in range(max(0, y-1), min(h-1, y+1) + 1):
                    for nx in range(max(0, x-1), min(w-1, x+1) + 1):
                        total += src[ny][nx]
                        count += 1
                out[y][x] = (total / count) * k + own * (1.0 - k)
        for x, y, s in terrain.cells():
            s.elevation = out[y][x]


class BiomeClassify(Layer):
    def dependencies(self): return ["SmoothElevation"]

    def compute(self, terrain, p, noise):
        for _, _, s in terrain.cells():
            s.biome = classify_biome(s.elevation, s.moisture, p.levels, p.moisture_params)


# ============================================================
# 5. Orchestration
# ============================================================

def topological_sort_layers(layers: List[Layer]) -> List[Layer]:
    name_to_layer = {l.name(): l for l in layers}
    visited = set()
    visiting = set()
    order: List[Layer] = []

    def dfs(layer: Layer):
        if layer.name() in visited:
            return
        if layer.name() in visiting:
            raise ConfigError(f"layer dependency cycle through '{layer.name()}'")
        visiting.add(layer.name())
        for dep in layer.dependencies():
            if dep not in name_to_layer:
                raise ConfigError(f"layer '{layer.name()}' depends on unknown layer '{dep}'")
            dfs(name_to_layer[dep])
        visiting.discard(layer.name())
        visited.add(layer.name())
        order.append(layer)

    for l in layers:
        dfs(l)

    return order


def default_layers() -> List[Layer]:
    return [
        TerrainFields(),
        HydraulicCarve(),
        SmoothElevation(),
        BiomeClassify(),
    ]


def jitter_color(base: Color, rng: random.Random, amount: int) -> Color:
    r, g, b, a = base
    return (
        int(clamp(r + rng.randint(-amount, amount), 0, 255)),
        int(clamp(g + rng.randint(-amount, amount), 0, 255)),
        int(clamp(b + rng.randint(-amount, amount), 0, 255)),
        a,
    )


def finalize_tiles(terrain: TerrainGrid, p: WorldGenParams, rng: random.Random) -> World:
    rows: List[List[Tile]] = []
    for y, row in enumerate(terrain.samples):
        out_row = []
        for x, s in enumerate(row):
            props = BIOME_PROPERTIES[s.biome]
            out_row.append(Tile(
                x=x,
                y=y,
                elevation=int(s.elevation),
                color=jitter_color(props.base_color, rng, p.color_jitter),
                walkable=props.walkable,
            ))
        rows.append(out_row)
    return World(terrain.width, terrain.height, rows)


def build_terrain(p: WorldGenParams, noise: Optional[NoiseEngine] = None,
                  layers: Optional[List[Layer]] = None) -> TerrainGrid:
    noise = noise or NoiseEngine()
    terrain = TerrainGrid(p.width, p.height)
    for L in topological_sort_layers(layers or default_layers()):
        logger.debug("Running layer %s", L.name())
        L.compute(terrain, p, noise)
    return terrain


def generate_world(p: Optional[WorldGenParams] = None,
                   rng: Optional[random.Random] = None,
                   noise: Optional[NoiseEngine] = None) -> World:
    p = p or WorldGenParams()
    if rng is None:
        rng = random.Random(p.color_seed)
    logger.info("Generating %dx%d world (seed offset %d)", p.width, p.height, p.seed)

    terrain = build_terrain(p, noise)
    world = finalize_tiles(terrain, p, rng)

    total = p.width * p.height
    counts = world.stats(p.water_level, p.levels["mountain"])
    logger.info("World generation complete: water %.1f%%, land %.1f%%, mountain %.1f%%",
                100.0 * counts["water"] / total,
                100.0 * counts["land"] / total,
                100.0 * counts["mountain"] / total)
    return world
