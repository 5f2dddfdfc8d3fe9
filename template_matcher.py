#!/usr/bin/env python3
# template_matcher.py
import base64
from enum import Enum
from typing import Optional, Tuple

import numpy as np


class LengthPolicy(str, Enum):
    strict = "strict"
    prefix = "prefix"

    def __str__(self):
        return self.value


def decode_template(encoded: Optional[str]) -> bytes:
    """
    Decode a base64 template string into raw bytes

    Args:
        encoded: Base64 encoded template (standard alphabet, padded)

    Returns:
        Decoded bytes, empty when the input is missing or blank

    Raises:
        binascii.Error: If the input is not valid base64
    """
    if not encoded or not encoded.strip():
        return b""
    return base64.b64decode(encoded.strip(), validate=True)


def encode_template(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _aligned(a: bytes, b: bytes, length_policy: LengthPolicy) -> Tuple[np.ndarray, np.ndarray]:
    if len(a) != len(b) and LengthPolicy(length_policy) == LengthPolicy.strict:
        return np.empty(0, dtype=np.uint8), np.empty(0, dtype=np.uint8)

    size = min(len(a), len(b))
    if size == 0:
        return np.empty(0, dtype=np.uint8), np.empty(0, dtype=np.uint8)
    first = np.frombuffer(a, dtype=np.uint8, count=size)
    second = np.frombuffer(b, dtype=np.uint8, count=size)
    return first, second


def differing_bits(a: bytes, b: bytes, length_policy: LengthPolicy = LengthPolicy.strict) -> Tuple[int, int]:
    """
    Hamming distance over the compared byte range

    Returns:
        Tuple of (differing bit count, total compared bits)
    """
    first, second = _aligned(a, b, length_policy)
    if first.size == 0:
        return 0, 0

    xor = np.bitwise_xor(first, second)
    return int(np.unpackbits(xor).sum()), first.size * 8


def matching_bits(a: bytes, b: bytes, length_policy: LengthPolicy = LengthPolicy.strict) -> Tuple[int, int]:
    """
    Count equal bits directly as the population count of NOT(a XOR b)

    The inversion stays within 8 bits because the arrays are uint8.

    Returns:
        Tuple of (matching bit count, total compared bits)
    """
    first, second = _aligned(a, b, length_policy)
    if first.size == 0:
        return 0, 0

    same = np.invert(np.bitwise_xor(first, second))
    return int(np.unpackbits(same).sum()), first.size * 8


def calculate_similarity(a: bytes, b: bytes, length_policy: LengthPolicy = LengthPolicy.strict) -> float:
    """
    Similarity percentage between two raw templates

    Args:
        a: First template bytes
        b: Second template bytes
        length_policy: strict returns 0 on length mismatch, prefix compares
            the overlapping prefix only

    Returns:
        Percentage in [0, 100]; 0 when nothing is compared
    """
    diff_bits, total_bits = differing_bits(a, b, length_policy)
    if total_bits == 0:
        return 0.0
    return (total_bits - diff_bits) * 100 / total_bits


def confidence_band(similarity: float, high_threshold: float = 90.0) -> str:
    return "High" if similarity >= high_threshold else "Moderate"


def format_similarity(similarity: float) -> str:
    return f"{similarity:.2f}%"


class TemplateMatcher:
    """
    Template similarity scorer configured with a length policy
    """

    def __init__(self, length_policy: LengthPolicy = LengthPolicy.strict):
        self.length_policy = LengthPolicy(length_policy)

    def similarity(self, a: bytes, b: bytes) -> float:
        return calculate_similarity(a, b, self.length_policy)
