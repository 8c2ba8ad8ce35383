# app/domain/services/embedding_svc.py

from __future__ import annotations
from typing import List
import math
import struct

from app.domain.services.constants import EMBEDDING_DIM, EMBEDDING_SEED_STRIDE

# ---------- Text builders -----------------------------------------------------

def product_embedding_text(product) -> str:
    """Text embedded for a catalog product (name + description)."""
    return f"{product.name} {product.description or ''}"

# ---------- Hashing / seeded generator -----------------------------------------

def _utf16_units(text: str) -> List[int]:
    """
    UTF-16 code units of `text`. Characters outside the BMP count as two
    surrogate units, so hashes match vectors already written
    by the Supabase edge-function seeder.
    """
    raw = text.encode("utf-16-le", errors="surrogatepass")
    return list(struct.unpack(f"<{len(raw) // 2}H", raw))

def text_hash(text: str) -> int:
    """
    Polynomial string hash `h = h*31 + c`, truncated to a signed 32-bit int.
    """
    h = 0
    for c in _utf16_units(text):
        h = (h * 31 + c) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h

def seeded_random(seed: int) -> float:
    """Fractional part of sin(seed) * 10000. Cheap, reproducible, not cryptographic."""
    x = math.sin(seed) * 10000
    return x - math.floor(x)

# ---------- Public API --------------------------------------------------------

def embed(text: str) -> List[float]:
    """
    Deterministic pseudo-embedding for `text`.

    Stands in for a real embedding model behind the same signature:
      1) 32-bit hash of the text
      2) EMBEDDING_DIM values from seeded_random(hash + i*73)
      3) L2 normalization (unit vector)

    Pure and total: the same text always yields the same vector, including "".
    """
    h = text_hash(text)
    values = [seeded_random(h + i * EMBEDDING_SEED_STRIDE) for i in range(EMBEDDING_DIM)]

    magnitude = math.sqrt(sum(v * v for v in values))
    if magnitude == 0.0:
        return values
    return [v / magnitude for v in values]
