# src/config.py
"""
Hasher configuration with validation and safe error handling.

- One frozen pydantic model per algorithm, with documented defaults.
- A small builder: start from defaults, override fields, freeze on build().
- Optional imghash.toml loader with an env override for the resizer.

Configs never change after construction, so a single instance can be shared
by any number of threads hashing concurrently.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Generic, Optional, Tuple, Type, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    PositiveInt,
    ValidationError,
    field_validator,
    model_validator,
)

from errors import ConfigError
from preprocess import Resizer, lanczos3, resizer_by_name

if TYPE_CHECKING:
    from algorithms import Hasher

Size = Tuple[PositiveInt, PositiveInt]

C = TypeVar("C", bound="HashConfig")


def _validation_message(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
        for err in exc.errors()
    )


class HashConfig(BaseModel):
    """Fields shared by every algorithm: `(width, height)` pairs plus a resizer."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    image_size: Size = (8, 8)
    hash_size: Size = (8, 8)
    resizer: Resizer = lanczos3

    @field_validator("resizer", mode="before")
    @classmethod
    def _resolve_resizer(cls, v: Any) -> Any:
        """Accept registered resizer names (e.g. "lanczos3", "area")."""
        if isinstance(v, str):
            return resizer_by_name(v)
        return v

    @model_validator(mode="after")
    def _check_geometry(self) -> "HashConfig":
        self.validate_geometry()
        return self

    def validate_geometry(self) -> None:
        """Raise ValueError if `hash_size` can't be produced from `image_size`."""

    @classmethod
    def builder(cls: Type[C]) -> "HashConfigBuilder[C]":
        return HashConfigBuilder(cls)

    def to_builder(self: C) -> "HashConfigBuilder[C]":
        """Builder seeded with this config's values."""
        return HashConfigBuilder(type(self), self)


class AverageHashConfig(HashConfig):
    image_size: Size = (8, 8)
    hash_size: Size = (8, 8)

    def validate_geometry(self) -> None:
        (iw, ih), (hw, hh) = self.image_size, self.hash_size
        if hw > iw or hh > ih:
            raise ValueError(
                f"hash_size {hw}x{hh} exceeds image_size {iw}x{ih}"
            )


class DifferenceHashConfig(HashConfig):
    image_size: Size = (9, 8)
    hash_size: Size = (8, 8)

    def validate_geometry(self) -> None:
        # one extra column: each bit compares two horizontal neighbours
        (iw, ih), (hw, hh) = self.image_size, self.hash_size
        if iw < hw + 1 or ih < hh:
            raise ValueError(
                f"image_size {iw}x{ih} too small for hash_size {hw}x{hh} "
                f"(needs at least {hw + 1}x{hh})"
            )


class PerceptualHashConfig(HashConfig):
    image_size: Size = (32, 32)
    hash_size: Size = (8, 8)

    def validate_geometry(self) -> None:
        # the DC column is skipped, so the band spans columns 1..hash_width
        (iw, ih), (hw, hh) = self.image_size, self.hash_size
        if iw < hw + 1 or ih < hh:
            raise ValueError(
                f"image_size {iw}x{ih} too small for hash_size {hw}x{hh} "
                f"(needs at least {hw + 1}x{hh})"
            )


class HashConfigBuilder(Generic[C]):
    """
    Chainable builder for hash configs.

        cfg = PerceptualHashConfig.builder().hash_size(16, 16).resizer("area").build()
    """

    def __init__(self, config_cls: Type[C], base: Optional[C] = None) -> None:
        self._cls = config_cls
        self._values: Dict[str, Any] = {}
        if base is not None:
            self._values = {name: getattr(base, name) for name in config_cls.model_fields}

    def image_size(self, width: int, height: int) -> "HashConfigBuilder[C]":
        self._values["image_size"] = (width, height)
        return self

    def hash_size(self, width: int, height: int) -> "HashConfigBuilder[C]":
        self._values["hash_size"] = (width, height)
        return self

    def resizer(self, resizer: Resizer | str) -> "HashConfigBuilder[C]":
        self._values["resizer"] = resizer
        return self

    def build(self) -> C:
        """
        Raises:
            ConfigError: if the resulting configuration is invalid.
        """
        try:
            return self._cls(**self._values)
        except ValidationError as exc:
            raise ConfigError(
                f"Invalid {self._cls.__name__}: {_validation_message(exc)}"
            ) from exc


class AppConfig(BaseModel):
    """Per-algorithm configuration, as loaded from imghash.toml."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    average: AverageHashConfig = AverageHashConfig()
    difference: DifferenceHashConfig = DifferenceHashConfig()
    perceptual: PerceptualHashConfig = PerceptualHashConfig()

    @staticmethod
    def load(path: Optional[Path] = None) -> "AppConfig":
        """
        Load config from TOML if present; otherwise return defaults.

        Load order:
          1) Provided path (if any).
          2) ./imghash.toml in the current working directory.
        Env overrides:
          - IMGHASH_RESIZER: resizer name applied to every algorithm

        Raises:
            ConfigError: if a TOML file exists but cannot be read or validated,
                or if IMGHASH_RESIZER names an unknown resizer.
        """
        toml_path = path or (Path.cwd() / "imghash.toml")
        data: Dict[str, Any] = {}

        if toml_path.exists():
            import tomllib

            try:
                raw_text = toml_path.read_text(encoding="utf-8")
            except OSError as exc:
                raise ConfigError(f"Failed to read config file: {toml_path}") from exc

            try:
                data = tomllib.loads(raw_text)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigError(f"Invalid TOML in config file: {toml_path}") from exc

        resizer_env = os.getenv("IMGHASH_RESIZER")
        if resizer_env:
            resizer_by_name(resizer_env)
            for section in ("average", "difference", "perceptual"):
                values = data.get(section, {})
                if not isinstance(values, dict):
                    raise ConfigError(f"Section [{section}] must be a table")
                data[section] = {**values, "resizer": resizer_env}

        try:
            return AppConfig(**data)
        except ValidationError as exc:
            raise ConfigError(
                f"Invalid configuration values in {toml_path}: {_validation_message(exc)}"
            ) from exc

    def hasher(self, name: str) -> "Hasher[Any]":
        """Hasher for `name` ("average", "difference", "perceptual") bound to its section."""
        from algorithms import hasher_by_name

        key = name.strip().lower()
        section = getattr(self, key, None)
        if not isinstance(section, HashConfig):
            raise ConfigError(f"Unknown hash algorithm: {name!r}")
        return hasher_by_name(key, section)
