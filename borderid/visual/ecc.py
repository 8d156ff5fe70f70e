"""Reed-Solomon error correction for the encoded border.

Systematic RS over GF(2^8) (prim 0x11D, generator 2, first consecutive root
alpha^0).  A codeword is the payload followed by ``nsym`` parity bytes and
can correct up to ``nsym // 2`` byte errors.

Byte ``codeword[k]`` is the coefficient of ``x^(n-1-k)``, so its error
locator is ``X_k = alpha^(n-1-k)``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from .gf import FIELD_ORDER, GF256, Poly

logger = logging.getLogger(__name__)

MAX_CODEWORD = FIELD_ORDER  # 255 bytes


class EncodingError(ValueError):
    """Caller error on the encode path (bad lengths, bad configuration)."""


class ReedSolomonError(Exception):
    """The received codeword could not be corrected."""


class TooManyErrors(ReedSolomonError):
    """More errors than the parity can locate."""


class VerificationFailed(ReedSolomonError):
    """Syndromes are still nonzero after correction."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

def calculate_parity_bytes(data_len: int, redundancy_factor: float) -> int:
    """Parity length for *data_len* payload bytes.

    ``ceil(data_len * (redundancy_factor - 1))`` clamped so the codeword
    stays within 255 bytes.
    """
    if redundancy_factor < 1:
        raise EncodingError(
            f"redundancy factor must be >= 1, got {redundancy_factor}")
    if data_len > MAX_CODEWORD:
        raise EncodingError(f"payload of {data_len} bytes exceeds {MAX_CODEWORD}")
    parity = math.ceil(data_len * (redundancy_factor - 1))
    return min(parity, MAX_CODEWORD - data_len)


@dataclass
class ECCConfig:
    """Error correction configuration.

    redundancy_factor: codeword/payload size ratio. 2.0 doubles the payload
                       (16 parity bytes for a UUID, corrects 8 byte errors).
    """
    redundancy_factor: float = 2.0

    def parity_bytes(self, data_len: int) -> int:
        return calculate_parity_bytes(data_len, self.redundancy_factor)


# ---------------------------------------------------------------------------
# Encoder
# ---------------------------------------------------------------------------

def rs_generator_poly(nsym: int) -> Poly:
    """g(x) = (x - a^0)(x - a^1)...(x - a^(nsym-1))."""
    g = Poly((1,))
    for i in range(nsym):
        g = g * Poly((1, GF256.pow(2, i)))
    return g


def rs_encode(payload: bytes, nsym: int) -> bytes:
    """Append *nsym* parity bytes to *payload*."""
    if nsym < 0:
        raise EncodingError("nsym must be >= 0")
    if len(payload) + nsym > MAX_CODEWORD:
        raise EncodingError(
            f"codeword of {len(payload)} + {nsym} bytes exceeds {MAX_CODEWORD}")

    gen = rs_generator_poly(nsym).coeffs
    buf = bytearray(payload) + bytearray(nsym)

    # Long division of payload * x^nsym by g(x); g is monic so only the
    # trailing coefficients are applied.
    for i in range(len(payload)):
        coef = buf[i]
        if coef != 0:
            for j in range(1, len(gen)):
                buf[i + j] ^= GF256.mul(gen[j], coef)

    return bytes(payload) + bytes(buf[len(payload):])


# ---------------------------------------------------------------------------
# Decoder
# ---------------------------------------------------------------------------

def rs_syndromes(codeword: bytes, nsym: int) -> list[int]:
    """S_j = r(alpha^j) for j = 0..nsym-1."""
    poly = Poly.from_bytes(codeword)
    return [poly.eval(GF256.pow(2, j)) for j in range(nsym)]


def _berlekamp_massey(synd: list[int]) -> Poly:
    """Error locator sigma(x) = prod(1 - X_k x), with sigma(0) = 1."""
    sigma = Poly((1,))
    aux = Poly((1,))   # sigma as it was before the last length change
    length = 0         # current number of assumed errors (L)
    gap = 1            # steps since aux was saved
    last_delta = 1

    for n, s in enumerate(synd):
        delta = s
        for i in range(1, length + 1):
            delta ^= GF256.mul(sigma.coef(i), synd[n - i])

        if delta == 0:
            gap += 1
            continue

        correction = aux.scale(GF256.div(delta, last_delta)).shift(gap)
        if 2 * length <= n:
            previous = sigma
            sigma = sigma + correction
            length = n + 1 - length
            aux = previous
            last_delta = delta
            gap = 1
        else:
            sigma = sigma + correction
            gap += 1

    return sigma.trim()


def _chien_search(sigma: Poly, n: int) -> list[int]:
    """Byte positions k where sigma(X_k^-1) == 0."""
    positions = []
    for k in range(n):
        x_inv = GF256.inverse(GF256.pow(2, n - 1 - k))
        if sigma.eval(x_inv) == 0:
            positions.append(k)
    if len(positions) != sigma.degree:
        raise TooManyErrors(
            f"locator of degree {sigma.degree} has {len(positions)} roots")
    return positions


def _forney(buf: bytearray, synd: list[int], sigma: Poly,
            positions: list[int]) -> None:
    """XOR the error magnitudes into *buf* in place."""
    n = len(buf)
    nsym = len(synd)
    synd_poly = Poly.from_ascending(synd)
    omega = (synd_poly * sigma).mod_xn(nsym)
    sigma_deriv = sigma.derivative()

    for k in positions:
        x = GF256.pow(2, n - 1 - k)
        x_inv = GF256.inverse(x)
        denom = sigma_deriv.eval(x_inv)
        if denom == 0:
            raise ReedSolomonError("degenerate error locator")
        buf[k] ^= GF256.mul(x, GF256.div(omega.eval(x_inv), denom))


def rs_correct(codeword: bytes, nsym: int) -> bytes:
    """Return the corrected codeword (payload + parity).

    Raises TooManyErrors / VerificationFailed / ReedSolomonError when the
    codeword cannot be corrected.
    """
    if len(codeword) > MAX_CODEWORD:
        raise ValueError(f"codeword of {len(codeword)} bytes exceeds {MAX_CODEWORD}")
    if len(codeword) < nsym:
        raise ValueError("codeword shorter than its parity")

    synd = rs_syndromes(codeword, nsym)
    if not any(synd):
        return bytes(codeword)

    sigma = _berlekamp_massey(synd)
    if 2 * sigma.degree > nsym:
        raise TooManyErrors(
            f"{sigma.degree} errors exceed capacity of {nsym // 2}")

    positions = _chien_search(sigma, len(codeword))

    buf = bytearray(codeword)
    _forney(buf, synd, sigma, positions)

    if any(rs_syndromes(buf, nsym)):
        raise VerificationFailed("nonzero syndromes after correction")
    return bytes(buf)


def rs_decode(codeword: bytes, nsym: int) -> Optional[bytes]:
    """Return the corrected payload, or None if uncorrectable."""
    try:
        corrected = rs_correct(codeword, nsym)
    except ReedSolomonError as exc:
        logger.debug("RS decode failed: %s", exc)
        return None
    return corrected[:len(corrected) - nsym]


# ---------------------------------------------------------------------------
# Codec wrapper
# ---------------------------------------------------------------------------

class ECCCodec:
    """Reed-Solomon encoder/decoder with a fixed parity length."""

    def __init__(self, nsym: int):
        if nsym < 0 or nsym >= MAX_CODEWORD:
            raise EncodingError(f"invalid parity length {nsym}")
        self.nsym = nsym

    @classmethod
    def for_payload(cls, data_len: int,
                    config: ECCConfig | None = None) -> "ECCCodec":
        config = config or ECCConfig()
        return cls(config.parity_bytes(data_len))

    @property
    def overhead(self) -> int:
        """Number of parity bytes added per encode."""
        return self.nsym

    def encode(self, data: bytes) -> bytes:
        """Returns data + parity bytes."""
        return rs_encode(data, self.nsym)

    def correct(self, codeword: bytes) -> bytes:
        """Corrected codeword; raises ReedSolomonError when uncorrectable."""
        return rs_correct(codeword, self.nsym)

    def decode(self, codeword: bytes) -> bytes | None:
        """Returns the corrected original data, or None if uncorrectable."""
        return rs_decode(codeword, self.nsym)

    def max_payload(self, block_size: int) -> int:
        """Maximum payload bytes that fit in a block of *block_size* bytes."""
        return min(block_size, MAX_CODEWORD) - self.nsym
