"""
Reference hashes for the two fixture photos.

The expected strings were produced with Rec. 709 luma and a Lanczos-3
resampler on the reference decoder. Bit-exact agreement depends on the JPEG
decoder, luma weights and resampler, so these run only when the fixtures are
checked out under tests/data/.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from algorithms import AverageHash, DifferenceHash, PerceptualHash

DATA = Path(__file__).parent / "data"

pytestmark = pytest.mark.skipif(
    not (DATA / "1.jpg").exists() or not (DATA / "2.jpg").exists(),
    reason="reference images not available",
)


@pytest.mark.parametrize(
    "filename, hasher, expected",
    [
        ("1.jpg", AverageHash(), "00007cf0e0eafefe"),
        ("2.jpg", AverageHash(), "fff7e7e3c3000000"),
        ("1.jpg", DifferenceHash(), "e0e0f0c4c6d290c0"),
        ("2.jpg", DifferenceHash(), "ededcc860b0c19b6"),
        ("1.jpg", PerceptualHash(), "2f2fafafafafafaf"),
        ("2.jpg", PerceptualHash(), "3f3f3f4c4c4c4c4c"),
    ],
)
def test_reference_hash(filename: str, hasher: object, expected: str) -> None:
    with Image.open(DATA / filename) as im:
        assert hasher.hash(im).hex() == expected  # type: ignore[attr-defined]
