"""
Centralized, typed exceptions for imghash.

Precondition violations (bad buffers, bad configuration, degenerate images)
are raised eagerly so callers never receive a silently truncated hash.
Value-like errors also subclass the matching builtin, so plain
`except ValueError` keeps working for callers that don't know our types.
"""

from __future__ import annotations


class ImghashError(Exception):
    """Base class for all custom errors in imghash."""


class ConfigError(ImghashError):
    """Raised when a hasher configuration or config file is invalid."""


class BufferShapeError(ImghashError, ValueError):
    """Raised when a grayscale buffer's pixel count doesn't match width * height."""


class InvalidImageError(ImghashError, TypeError):
    """Raised when the input object cannot be interpreted as an image."""


class DegenerateImageError(ImghashError, ValueError):
    """Raised for zero-area source images."""


class ResizerError(ImghashError):
    """Raised when a resizer returns an image of the wrong size."""


class HashFormatError(ImghashError, ValueError):
    """Raised when a hex string or byte sequence cannot be decoded into a hash."""


class HashLengthError(ImghashError, ValueError):
    """Raised when comparing hashes with different bit counts."""
