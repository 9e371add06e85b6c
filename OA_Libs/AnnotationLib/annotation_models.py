"""
Small shared models for the annotation engine.

Classes:
    AnnotationMode: The five mutually exclusive interaction modes
    PolygonState: Sub-state of the polygon tool
    ActionResult: Outcome of a session or interaction operation
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from OA_Libs.constants import MODE_BRUSH, MODE_ERASER, MODE_PAN, MODE_POLYGON, MODE_SELECT


class AnnotationMode(str, Enum):
    SELECT = MODE_SELECT
    PAN = MODE_PAN
    BRUSH = MODE_BRUSH
    POLYGON = MODE_POLYGON
    ERASER = MODE_ERASER

    @property
    def requires_class(self) -> bool:
        return self in (AnnotationMode.BRUSH, AnnotationMode.POLYGON)


class PolygonState(str, Enum):
    IDLE = "idle"
    COLLECTING = "collecting"


@dataclass(frozen=True)
class ActionResult:
    """Outcome of an operation at the core boundary.

    Operations never raise across the boundary; a rejection is reported with
    ``ok=False`` and a user-facing ``message``. ``handled`` is False when the
    event was passed through untouched (select mode).
    """
    ok: bool
    message: str = ""
    value: Any = None
    handled: bool = True

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, message: str = "", value: Any = None) -> "ActionResult":
        return cls(ok=True, message=message, value=value)

    @classmethod
    def rejected(cls, message: str) -> "ActionResult":
        return cls(ok=False, message=message)

    @classmethod
    def passthrough(cls) -> "ActionResult":
        return cls(ok=True, handled=False)
