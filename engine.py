from __future__ import annotations
import math
from collections import OrderedDict
from typing import List

# Noise engine for the terrain pipeline:
# - SplitMix64 PRNG with named streams
# - seeded permutation tables (cached per engine instance)
# - 2D gradient noise + layered (fractal) combinator

# ------------------------------------------------------------
# Utilities
# ------------------------------------------------------------

def clamp(v: float, lo: float, hi: float) -> float:
    return lo if v < lo else hi if v > hi else v

def lerp(a: float, b: float, t: float) -> float:
    return a + t * (b - a)

def fade(t: float) -> float:
    return t * t * t * (t * (t * 6 - 15) + 10)

# ------------------------------------------------------------
# Deterministic RNG: SplitMix64
# ------------------------------------------------------------

class SplitMix64:
    def __init__(self, seed: int):
        self.state = seed & 0xFFFFFFFFFFFFFFFF

    def next(self) -> int:
        self.state = (self.state + 0x9E3779B97F4A7C15) & 0xFFFFFFFFFFFFFFFF
        z = self.state
        z = (z ^ (z >> 30)) * 0xBF58476D1CE4E5B9 & 0xFFFFFFFFFFFFFFFF
        z = (z ^ (z >> 27)) * 0x94D049BB133111EB & 0xFFFFFFFFFFFFFFFF
        z = z ^ (z >> 31)
        return z & 0xFFFFFFFFFFFFFFFF

    def rand_float(self) -> float:
        return (self.next() >> 11) * (1.0 / (1 << 53))

def stable_hash(s: str) -> int:
    h = 0xcbf29ce484222325
    for c in s.encode("utf-8"):
        h ^= c
        h = (h * 0x100000001b3) & 0xFFFFFFFFFFFFFFFF
    return h

def PRNG(seed: int, stream_id: str) -> SplitMix64:
    return SplitMix64(seed ^ stable_hash(stream_id))

# ------------------------------------------------------------
# Permutation tables
# ------------------------------------------------------------

CANONICAL_PERMUTATION: List[int] = [
    151,160,137,91,90,15,131,13,201,95,96,53,194,233,7,225,
    140,36,103,30,69,142,8,99,37,240,21,10,23,190,6,148,
    247,120,234,75,0,26,197,62,94,252,219,203,117,35,11,32,
    57,177,33,88,237,149,56,87,174,20,125,136,171,168,68,175,
    74,165,71,134,139,48,27,166,77,146,158,231,83,111,229,122,
    60,211,133,230,220,105,92,41,55,46,245,40,244,102,143,54,
    65,25,63,161,1,216,80,73,209,76,132,187,208,89,18,169,
    200,196,135,130,116,188,159,86,164,100,109,198,173,186,3,64,
    52,217,226,250,124,123,5,202,38,147,118,126,255,82,85,212,
    207,206,59,227,47,16,58,17,182,189,28,42,223,183,170,213,
    119,248,152,2,44,154,163,70,221,153,101,155,167,43,172,9,
    129,22,39,253,19,98,108,110,79,113,224,232,178,185,112,104,
    218,246,97,228,251,34,242,193,238,210,144,12,191,179,162,241,
    81,51,145,235,249,14,239,107,49,192,214,31,181,199,106,157,
    184,84,204,176,115,121,50,45,127,4,150,254,138,236,205,93,
    222,114,67,29,24,72,243,141,128,195,78,66,215,61,156,180,
]

def make_perm(seed: int) -> List[int]:
    """Shuffle the canonical table with a seed-derived stream; return it doubled to 512."""
    rng = PRNG(seed, "perm")
    p = list(CANONICAL_PERMUTATION)
    for i in range(255, 0, -1):
        j = int(rng.rand_float() * (i+1))
        p[i], p[j] = p[j], p[i]
    return p * 2

# ------------------------------------------------------------
# Gradient noise
# ------------------------------------------------------------

def grad(hashv: int, x: float, y: float) -> float:
    h = hashv & 15
    u = x if h < 8 else y
    if h < 4:
        v = y
    elif h == 12 or h == 14:
        v = x
    else:
        v = 0.0
    return (u if (h & 1) == 0 else -u) + (v if (h & 2) == 0 else -v)

def gradient_noise(x: float, y: float, perm: List[int]) -> float:
    fx = math.floor(x)
    fy = math.floor(y)
    xi = int(fx) & 255
    yi = int(fy) & 255
    xf = x - fx
    yf = y - fy
    u = fade(xf)
    v = fade(yf)

    a = perm[xi] + yi
    aa = perm[a]
    ab = perm[a + 1]
    b = perm[xi + 1] + yi
    ba = perm[b]
    bb = perm[b + 1]

    x1 = lerp(grad(perm[aa], xf, yf), grad(perm[ba], xf - 1, yf), u)
    x2 = lerp(grad(perm[ab], xf, yf - 1), grad(perm[bb], xf - 1, yf - 1), u)
    return lerp(x1, x2, v)


class NoiseEngine:
    """Seeded gradient noise with a small seed -> permutation table cache.

    Every field of a world samples several octaves, and every octave uses its
    own seed (``seed + i``), so a generation run touches a couple of dozen
    tables. The cache is bounded and evicts the least recently used table.
    Output never depends on cache contents: a miss rebuilds the same table.
    """

    def __init__(self, cache_size: int = 64):
        self.cache_size = max(1, cache_size)
        self._tables: "OrderedDict[int, List[int]]" = OrderedDict()

    def perm(self, seed: int) -> List[int]:
        table = self._tables.get(seed)
        if table is not None:
            self._tables.move_to_end(seed)
            return table
        table = make_perm(seed)
        self._tables[seed] = table
        if len(self._tables) > self.cache_size:
            self._tables.popitem(last=False)
        return table

    def cached_seeds(self) -> List[int]:
        return list(self._tables)

    def noise(self, x: float, y: float, seed: int) -> float:
        return gradient_noise(x, y, self.perm(seed))

    def layered(self, x: float, y: float, octaves: int, persistence: float, scale: float, seed: int) -> float:
        amp = 1.0
        freq = scale
        total = 0.0
        norm = 0.0
        for i in range(octaves):
            total += self.noise(x * freq, y * freq, seed + i) * amp
            norm += amp
            amp *= persistence
            freq *= 2.0
        return total / norm if norm else 0.0


_default_engine = NoiseEngine()

def perlin2d(x: float, y: float, seed: int) -> float:
    return _default_engine.noise(x, y, seed)

def layered_noise(x: float, y: float, octaves: int, persistence: float, scale: float, seed: int) -> float:
    return _default_engine.layered(x, y, octaves, persistence, scale, seed)

def ridged(value: float, sharpness: float = 3.0) -> float:
    # peaks where the fractal value crosses the middle of its range
    return (1.0 - abs(value * 2.0 - 1.0)) ** sharpness

def radial_falloff(nx: float, ny: float, distance_scale: float = 2.0, exponent: float = 0.5) -> float:
    # 1 at center, 0 from the inscribed circle outwards (corners reach d ~ 1.41)
    dx = nx - 0.5
    dy = ny - 0.5
    d = math.sqrt(dx*dx + dy*dy) * distance_scale
    return (1.0 - min(1.0, d)) ** exponent

