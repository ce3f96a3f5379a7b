"""Exceptions raised by the fusion pipeline.

Frame-scoped failures (`IntrinsicsUnavailable`, `TransformUnavailable`)
abort a single frame and are logged at the pipeline boundary.
`DetectionIdentifierInvalid` only drops the offending record and
`ImageDecodeFailure` only drops the overlay image.
"""


class FusionError(Exception):
    """Base class for all fusion errors."""


class IntrinsicsUnavailable(FusionError):
    """No camera intrinsics have been received yet."""


class TransformUnavailable(FusionError):
    """The source to target transform could not be resolved."""

    def __init__(self, source_frame: str, target_frame: str, reason: str = ""):
        self.source_frame = source_frame
        self.target_frame = target_frame
        self.reason = reason
        message = f"Could not transform {source_frame} to {target_frame}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class DetectionIdentifierInvalid(FusionError, ValueError):
    """A detection id is not an integer, or repeats in strict mode."""

    def __init__(self, raw_id: object, reason: str = "not an integer"):
        self.raw_id = raw_id
        self.reason = reason
        super().__init__(f"Invalid detection ID {raw_id!r}: {reason}")


class ImageDecodeFailure(FusionError, ValueError):
    """The frame image cannot be converted for overlay rendering."""
