"""
Segmentation Class Registry.

This module owns the ordered set of user-defined segmentation classes. Every
shape is tagged with the id of the class that was active when it was drawn;
the registry validates new classes, tracks the active class, and resolves
classes by id (or, for legacy snapshots, by color).

Classes:
    SegmentationClass: Immutable class record (id, name, color)
    ClassRegistry: Ordered registry with uniqueness rules and an active class

Exceptions:
    ClassValidationError: Raised when a class cannot be added
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

_HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


class ClassValidationError(ValueError):
    """Raised when a class name or color violates the registry rules."""


def normalize_color(color: str) -> str:
    """
    Normalize a hex RGB color to lowercase ``#rrggbb``.

    Raises:
        ClassValidationError: If ``color`` is not ``#rgb`` or ``#rrggbb``
    """
    value = str(color or "").strip()
    if not _HEX_COLOR_RE.match(value):
        raise ClassValidationError(f"Invalid color: {color!r}. Expected #RRGGBB")

    value = value.lower()
    if len(value) == 4:
        value = "#" + "".join(channel * 2 for channel in value[1:])
    return value


@dataclass(frozen=True)
class SegmentationClass:
    id: int
    name: str
    color: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "color": self.color}


class ClassRegistry:
    """
    Registry of segmentation classes.

    Names are unique case-insensitively, colors are unique, ids are assigned
    sequentially and never reused. Classes are never mutated in place.

    Example:
        >>> registry = ClassRegistry()
        >>> road = registry.add_class("Road", "#FF0000")
        >>> registry.active_class == road
        True
        >>> registry.resolve_by_color("#ff0000").name
        'Road'
    """

    def __init__(self):
        self._classes: List[SegmentationClass] = []
        self._active_id: Optional[int] = None
        self._next_id = 1

    def __len__(self) -> int:
        return len(self._classes)

    def __contains__(self, class_id: object) -> bool:
        return any(cls.id == class_id for cls in self._classes)

    def __iter__(self):
        return iter(list(self._classes))

    @property
    def classes(self) -> List[SegmentationClass]:
        """Classes in creation order."""
        return list(self._classes)

    @property
    def active_class(self) -> Optional[SegmentationClass]:
        if self._active_id is None:
            return None
        return self.get(self._active_id)

    def get(self, class_id: int) -> Optional[SegmentationClass]:
        for cls in self._classes:
            if cls.id == class_id:
                return cls
        return None

    def validate_new_class(self, name: str, color: str) -> SegmentationClass:
        """
        Validate a prospective class without registering it.

        Returns:
            The class that ``add_class`` would create

        Raises:
            ClassValidationError: On empty name, duplicate name or duplicate color
        """
        clean_name = str(name or "").strip()
        if not clean_name:
            raise ClassValidationError("Please enter a class name")

        clean_color = normalize_color(color)

        lowered = clean_name.lower()
        if any(cls.name.lower() == lowered for cls in self._classes):
            raise ClassValidationError("A class with this name already exists")

        if any(cls.color == clean_color for cls in self._classes):
            raise ClassValidationError("This color is already assigned to another class")

        return SegmentationClass(id=self._next_id, name=clean_name, color=clean_color)

    def add_class(self, name: str, color: str) -> SegmentationClass:
        """
        Register a new class and make it the active class.

        Args:
            name: Class name (whitespace is stripped)
            color: Hex RGB color, unique across classes

        Returns:
            The created SegmentationClass

        Raises:
            ClassValidationError: If validation fails; the registry is unchanged
        """
        new_class = self.validate_new_class(name, color)

        self._classes.append(new_class)
        self._next_id += 1
        self._active_id = new_class.id

        logger.debug(f"Registered class {new_class.id}: {new_class.name} ({new_class.color})")
        return new_class

    def delete_class(self, class_id: int) -> bool:
        """
        Remove a class. Shapes drawn with it are left untouched.

        Returns:
            True if removed, False if no class has ``class_id``
        """
        target = self.get(class_id)
        if target is None:
            return False

        self._classes = [cls for cls in self._classes if cls.id != class_id]
        if self._active_id == class_id:
            self._active_id = None

        logger.debug(f"Deleted class {class_id}: {target.name}")
        return True

    def select_class(self, class_id: int) -> bool:
        """Make ``class_id`` active. Unknown ids keep the previous active class."""
        if self.get(class_id) is None:
            return False

        self._active_id = class_id
        return True

    def clear_active(self) -> None:
        self._active_id = None

    def resolve_by_id(self, class_id: Optional[int]) -> Optional[SegmentationClass]:
        if class_id is None:
            return None
        return self.get(class_id)

    def resolve_by_color(self, color: Optional[str]) -> Optional[SegmentationClass]:
        """Case-insensitive exact match against registered class colors."""
        if not color:
            return None

        lowered = str(color).strip().lower()
        for cls in self._classes:
            if cls.color == lowered:
                return cls
        return None
