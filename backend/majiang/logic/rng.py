"""
Random number generation for wall shuffling.

The shuffle is Fisher-Yates driven by a pure Python PCG64DXSM generator:
1. A cryptographic seed (96 bytes) is generated once per room via secrets
2. Each game in the room derives its own generator from
   SHA512(domain prefix + seed + game number)
3. Shuffle indices are drawn with rejection sampling, so every one of the
   136! orderings is equally likely

Keeping the seed lets any wall be rebuilt exactly from (seed, game number).
"""

import hashlib
import secrets

SEED_BYTES = 96  # 768 bits; distinct walls number 136!/(4!)^34 ~ 2^616
_WALL_DOMAIN_PREFIX = b"majiang-wall-v1:"

_PCG_MULTIPLIER = 0x2360ED051FC65DA44385DF649FCCF645
_PCG_DXSM_MUL = 0xDA942042E4DD58B5
_UINT128_MASK = (1 << 128) - 1
_UINT64_MASK = (1 << 64) - 1
_UINT64_RANGE = 1 << 64


def validate_seed_hex(seed_hex: str) -> None:
    """Raise TypeError/ValueError unless seed_hex is exactly SEED_BYTES of hex."""
    if not isinstance(seed_hex, str):
        raise TypeError(f"Seed must be a string, got {type(seed_hex).__name__}")
    expected_length = SEED_BYTES * 2
    if len(seed_hex) != expected_length:
        raise ValueError(f"Seed must be exactly {expected_length} hex characters, got {len(seed_hex)}")
    try:
        bytes.fromhex(seed_hex)
    except ValueError:
        raise ValueError("Seed contains invalid hex characters") from None


def generate_seed() -> str:
    return secrets.token_bytes(SEED_BYTES).hex()


class PCG64DXSM:
    """
    128-bit LCG state with the DXSM output permutation.

    Constants match NumPy's PCG64DXSM bit generator.
    """

    def __init__(self, state: int, increment: int) -> None:
        self._inc = ((increment << 1) | 1) & _UINT128_MASK
        self._state = (state + self._inc) & _UINT128_MASK
        # two warm-up steps so low-entropy seeds don't leak into the first outputs
        self._step()
        self._step()

    def _step(self) -> None:
        self._state = (self._state * _PCG_MULTIPLIER + self._inc) & _UINT128_MASK

    def next_uint64(self) -> int:
        state = self._state
        hi = (state >> 64) & _UINT64_MASK
        lo = (state & _UINT64_MASK) | 1

        hi ^= hi >> 32
        hi = (hi * _PCG_DXSM_MUL) & _UINT64_MASK
        hi ^= hi >> 48
        hi = (hi * lo) & _UINT64_MASK

        self._step()
        return hi

    def below(self, bound: int) -> int:
        """
        Unbiased integer in [0, bound).

        Draws from the partial top bucket are rejected, which removes modulo
        bias entirely.
        """
        if not 0 < bound <= _UINT64_RANGE:
            raise ValueError("bound must be in (0, 2^64]")
        limit = _UINT64_RANGE - (_UINT64_RANGE % bound)
        while True:
            value = self.next_uint64()
            if value < limit:
                return value % bound


def derive_game_rng(seed_hex: str, game_number: int) -> PCG64DXSM:
    """Derive the generator for one game of a room from the room seed."""
    if not 0 <= game_number < 2**32:
        raise ValueError("game_number must be in [0, 2^32)")
    validate_seed_hex(seed_hex)
    digest = hashlib.sha512(
        _WALL_DOMAIN_PREFIX + bytes.fromhex(seed_hex) + game_number.to_bytes(4, byteorder="little")
    ).digest()
    state = int.from_bytes(digest[:16], byteorder="little")
    increment = int.from_bytes(digest[16:32], byteorder="little")
    return PCG64DXSM(state, increment)


def fisher_yates_shuffle(items: list[int], rng: PCG64DXSM) -> list[int]:
    """Return a shuffled copy of items (Knuth shuffle, ascending form)."""
    result = list(items)
    n = len(result)
    for i in range(n - 1):
        j = i + rng.below(n - i)
        result[i], result[j] = result[j], result[i]
    return result
