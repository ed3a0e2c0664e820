from __future__ import annotations


class CutoutInputError(ValueError):
    """Precondition violation at the pipeline boundary. No partial output is produced."""


class InvalidInputDimensions(CutoutInputError):
    def __init__(self, expected: tuple[int, int], actual: tuple[int, int], what: str = "mask"):
        self.expected = expected
        self.actual = actual
        super().__init__(f"{what} size {actual[0]}x{actual[1]} does not match source {expected[0]}x{expected[1]}")


class DecodeFailure(CutoutInputError):
    """Missing or corrupt raster (source photo or external mask)."""
