"""Normalisation of 2D detections into pixel-space bounding boxes.

Detectors publish boxes as a centre and a size together with a string
identifier.  The `DetectionRegistry` converts them to axis-aligned
`(x_min, y_min, x_max, y_max)` boxes and parses the identifier as an
integer.  A record whose identifier does not parse is logged and left
out; the rest of the frame is unaffected.

Duplicate identifiers are kept by default and both boxes take part
in the association independently.  With `unique_ids=True` every
repeat after the first occurrence is rejected instead.
"""

import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..errors import DetectionIdentifierInvalid
from ..utils.logging import get_logger

logger = get_logger(__name__)

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class DetectionRecord:
    """A raw detection as published by the 2D detector."""

    center: Tuple[float, float]
    size: Tuple[float, float]
    id: str
    class_name: str = ""
    score: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DetectionRecord":
        """Build a record from a mapping such as a parsed JSON detection.

        Both `{"center": [cx, cy], "size": [sx, sy]}` and the nested
        `{"bbox": {"center": ..., "size": ...}}` layout are accepted.
        """
        box = data.get("bbox", data)
        center = box["center"]
        size = box["size"]
        if isinstance(center, Mapping):
            center = center.get("position", center)
            center = (center["x"], center["y"])
        if isinstance(size, Mapping):
            size = (size["x"], size["y"])
        score = data.get("score")
        return cls(
            center=(float(center[0]), float(center[1])),
            size=(float(size[0]), float(size[1])),
            id=str(data.get("id", "")),
            class_name=str(data.get("class_name", "")),
            score=None if score is None else float(score),
        )


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned pixel box with a validated integer id."""

    x_min: float
    y_min: float
    x_max: float
    y_max: float
    id: int
    class_name: str = ""
    score: Optional[float] = None

    def contains(self, u: float, v: float) -> bool:
        """Inclusive containment test for a single pixel."""
        return self.x_min <= u <= self.x_max and self.y_min <= v <= self.y_max

    def expanded(self, margin: float) -> "BoundingBox":
        """Return a copy grown by `margin` pixels on every side."""
        return BoundingBox(self.x_min - margin, self.y_min - margin,
                           self.x_max + margin, self.y_max + margin,
                           self.id, self.class_name, self.score)


def parse_detection_id(raw_id: Any) -> int:
    """Parse a detection identifier as a base-10 integer.

    Surrounding whitespace and a leading sign are accepted; anything
    else raises `DetectionIdentifierInvalid`.
    """
    text = str(raw_id).strip()
    if not _INT_PATTERN.fullmatch(text):
        raise DetectionIdentifierInvalid(raw_id)
    return int(text)


DetectionLike = Union[DetectionRecord, Mapping[str, Any]]


@dataclass
class DetectionRegistry:
    """Turn raw detection records into validated bounding boxes."""

    unique_ids: bool = False
    """Reject records whose id was already seen in the same frame."""

    def to_box(self, record: DetectionRecord) -> BoundingBox:
        """Convert one record, raising `DetectionIdentifierInvalid` on a bad id."""
        box_id = parse_detection_id(record.id)
        cx, cy = record.center
        sx, sy = record.size
        return BoundingBox(
            x_min=cx - sx / 2.0,
            y_min=cy - sy / 2.0,
            x_max=cx + sx / 2.0,
            y_max=cy + sy / 2.0,
            id=box_id,
            class_name=record.class_name,
            score=record.score,
        )

    def register(self, records: Iterable[DetectionLike]) -> List[BoundingBox]:
        """Convert a frame's detections, skipping invalid ones.

        Parameters
        ----------
        records : iterable of DetectionRecord or mapping
            The detections of one frame.

        Returns
        -------
        list of BoundingBox
            Valid boxes in input order.
        """
        boxes: List[BoundingBox] = []
        seen = set()
        for record in records:
            if not isinstance(record, DetectionRecord):
                record = DetectionRecord.from_dict(record)
            try:
                box = self.to_box(record)
                if self.unique_ids and box.id in seen:
                    raise DetectionIdentifierInvalid(record.id, "duplicate id in frame")
            except DetectionIdentifierInvalid as exc:
                logger.error("%s", exc)
                continue
            seen.add(box.id)
            boxes.append(box)
        return boxes


def register_detections(records: Sequence[DetectionLike], unique_ids: bool = False) -> List[BoundingBox]:
    """Shortcut for `DetectionRegistry(unique_ids).register(records)`."""
    return DetectionRegistry(unique_ids=unique_ids).register(records)
