"""
Perceptual hashing algorithms.

- aHash: 8x8 grayscale, threshold each pixel against the (float) mean -> 64 bits
- dHash: 9x8 grayscale, compare each pixel to its right neighbour -> 64 bits
- pHash: 32x32 grayscale, DCT-II of every row, 8x8 band after the DC column,
  threshold against the band mean -> 64 bits

The pHash variant transforms rows only (no column pass). That is what defines
its hash values, so it must not be "completed" into a 2-D DCT.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Generic, Optional, Type, TypeVar, cast

import numpy as np
from numpy.typing import NDArray

from config import (
    AverageHashConfig,
    DifferenceHashConfig,
    HashConfig,
    HashConfigBuilder,
    PerceptualHashConfig,
)
from dct import dct_rows
from errors import ConfigError
from grayscale import GrayImage
from hash_value import ImageHash
from logs import get_logger
from preprocess import preprocess

C = TypeVar("C", bound=HashConfig)

log = get_logger("imghash.algorithms")


class Hasher(ABC, Generic[C]):
    """Preprocess with `config`, then turn the grayscale buffer into bits."""

    name: ClassVar[str]
    config_cls: ClassVar[Type[HashConfig]]

    def __init__(self, config: Optional[C] = None) -> None:
        if config is None:
            config = cast(C, self.config_cls())
        elif not isinstance(config, self.config_cls):
            raise ConfigError(
                f"{type(self).__name__} needs a {self.config_cls.__name__}, "
                f"got {type(config).__name__}"
            )
        self.config: C = config

    @classmethod
    def builder(cls) -> HashConfigBuilder[Any]:
        return cls.config_cls.builder()

    def hash(self, image: Any) -> ImageHash:
        """Hash a Pillow image or uint8 numpy array."""
        iw, ih = self.config.image_size
        gray = preprocess(image, iw, ih, self.config.resizer)
        bits = self.compute_bits(gray)
        result = ImageHash(bits.ravel().tolist())
        log.debug(f"{self.name} hash: {result.hex()} ({len(result)} bits)")
        return result

    @abstractmethod
    def compute_bits(self, gray: GrayImage) -> NDArray[np.bool_]:
        """(hash_height, hash_width) boolean grid for an already preprocessed buffer."""

    def __repr__(self) -> str:
        (iw, ih), (hw, hh) = self.config.image_size, self.config.hash_size
        return f"{type(self).__name__}(image_size={iw}x{ih}, hash_size={hw}x{hh})"


class AverageHash(Hasher[AverageHashConfig]):
    name = "average"
    config_cls = AverageHashConfig

    def compute_bits(self, gray: GrayImage) -> NDArray[np.bool_]:
        hw, hh = self.config.hash_size
        window = gray.to_array()[:hh, :hw].astype(np.float64)
        # float mean: an integer-truncated mean would shift the threshold down
        mean = float(window.mean())
        return cast(NDArray[np.bool_], window > mean)


class DifferenceHash(Hasher[DifferenceHashConfig]):
    name = "difference"
    config_cls = DifferenceHashConfig

    def compute_bits(self, gray: GrayImage) -> NDArray[np.bool_]:
        hw, hh = self.config.hash_size
        arr = gray.to_array()[:hh, : hw + 1]
        return cast(NDArray[np.bool_], arr[:, 1:] > arr[:, :-1])


class PerceptualHash(Hasher[PerceptualHashConfig]):
    name = "perceptual"
    config_cls = PerceptualHashConfig

    def compute_bits(self, gray: GrayImage) -> NDArray[np.bool_]:
        hw, hh = self.config.hash_size
        coeffs = dct_rows(gray.to_array())
        band = coeffs[:hh, 1 : hw + 1]
        mean = float(band.mean())
        return cast(NDArray[np.bool_], band > mean)


HASHERS: Dict[str, Type[Hasher[Any]]] = {
    AverageHash.name: AverageHash,
    DifferenceHash.name: DifferenceHash,
    PerceptualHash.name: PerceptualHash,
}


def hasher_by_name(name: str, config: Optional[HashConfig] = None) -> Hasher[Any]:
    """
    Raises:
        ConfigError: for unknown algorithm names or mismatched config types.
    """
    key = name.strip().lower()
    try:
        cls = HASHERS[key]
    except KeyError:
        known = ", ".join(sorted(HASHERS))
        raise ConfigError(f"Unknown hash algorithm {name!r} (known: {known})") from None
    return cls(config)


def average_hash(image: Any, config: Optional[AverageHashConfig] = None) -> ImageHash:
    return AverageHash(config).hash(image)


def difference_hash(
    image: Any, config: Optional[DifferenceHashConfig] = None
) -> ImageHash:
    return DifferenceHash(config).hash(image)


def perceptual_hash(
    image: Any, config: Optional[PerceptualHashConfig] = None
) -> ImageHash:
    return PerceptualHash(config).hash(image)
