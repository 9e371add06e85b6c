"""
COCO annotation export.

Walks the authored shapes, resolves each one to its class, flattens its
geometry and assembles a COCO-style document:

    {
        "info": {...},
        "licenses": [...],
        "images": [...],
        "annotations": [...],
        "categories": [...],
    }

Shapes whose class is no longer registered, and shapes with no geometry, are
left out of ``annotations`` without any diagnostic.

Functions:
    export_to_coco: Build the COCO document
    resolve_shape_class: Find the registered class a shape belongs to
    validate_export_preconditions: Check that there is something to export
    write_annotations_json: Write a document to disk
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from OA_Libs.AnnotationLib.class_registry import ClassRegistry, SegmentationClass
from OA_Libs.AnnotationLib.geometry import bounding_box, extract_points, polygon_area
from OA_Libs.AnnotationLib.image_loader import ImageDescriptor
from OA_Libs.AnnotationLib.shapes import Shape
from OA_Libs.ExportLib.metadata import DatasetMetadata
from OA_Libs.constants import COCO_SUPERCATEGORY, EXPORT_FILE_NAME, EXPORT_JSON_INDENT

logger = logging.getLogger(__name__)


def resolve_shape_class(shape: Shape, registry: ClassRegistry) -> Optional[SegmentationClass]:
    """
    Resolve the class a shape was drawn with.

    Shapes carry the owning class id. Only shapes without one (restored from
    older snapshots) fall back to matching their color.
    """
    if shape.class_id is not None:
        return registry.resolve_by_id(shape.class_id)
    return registry.resolve_by_color(shape.color)


def validate_export_preconditions(images: Sequence[ImageDescriptor], registry: ClassRegistry) -> List[str]:
    """Return user-facing errors that block an export (empty when export may proceed)."""
    errors: List[str] = []
    if not images:
        errors.append("Please upload an image first")
    if len(registry) == 0:
        errors.append("Please create at least one class")
    return errors


def build_image_records(images: Sequence[ImageDescriptor], metadata: DatasetMetadata) -> List[Dict[str, Any]]:
    """Image entries with 1-based ids in upload order."""
    records: List[Dict[str, Any]] = []
    for index, image in enumerate(images):
        records.append(
            {
                "id": index + 1,
                "file_name": image.name,
                "height": image.height,
                "width": image.width,
                "license": metadata.default_license_id,
                "coco_url": metadata.image_url(metadata.coco_url, image.name),
                "date_captured": metadata.date_created,
                "flickr_url": metadata.image_url(metadata.flickr_url, image.name),
            }
        )
    return records


def build_categories(registry: ClassRegistry) -> List[Dict[str, Any]]:
    return [
        {"id": cls.id, "name": cls.name, "supercategory": COCO_SUPERCATEGORY}
        for cls in registry.classes
    ]


def _image_id_for(shape: Shape, image_count: int) -> int:
    # Shapes drawn before any image was loaded belong to the first image
    if shape.image_index is None or not (0 <= shape.image_index < image_count):
        return 1
    return shape.image_index + 1


def export_to_coco(
    shapes: Iterable[Shape],
    registry: ClassRegistry,
    images: Sequence[ImageDescriptor],
    metadata: Optional[DatasetMetadata] = None,
) -> Dict[str, Any]:
    """
    Serialize shapes into a COCO document.

    Args:
        shapes: Shapes in scene order (all images)
        registry: Class registry; every registered class becomes a category
        images: Loaded images in upload order
        metadata: Dataset metadata (defaults when omitted)

    Returns:
        COCO document dictionary
    """
    metadata = metadata or DatasetMetadata()

    annotations: List[Dict[str, Any]] = []
    skipped = 0
    annotation_id = 1

    for shape in shapes:
        owner = resolve_shape_class(shape, registry)
        if owner is None:
            skipped += 1
            continue

        segmentation = extract_points(shape)
        if not segmentation:
            skipped += 1
            continue

        annotations.append(
            {
                "id": annotation_id,
                "image_id": _image_id_for(shape, len(images)),
                "category_id": owner.id,
                "segmentation": segmentation,
                "area": polygon_area(segmentation),
                "bbox": list(bounding_box(segmentation)),
                "iscrowd": 0,
            }
        )
        annotation_id += 1

    logger.debug(f"Built {len(annotations)} annotation(s), skipped {skipped} shape(s)")

    return {
        "info": metadata.info_dict(),
        "licenses": [license_info.to_dict() for license_info in metadata.licenses],
        "images": build_image_records(images, metadata),
        "annotations": annotations,
        "categories": build_categories(registry),
    }


def write_annotations_json(document: Dict[str, Any], output_path: Union[str, Path] = EXPORT_FILE_NAME) -> Path:
    """Write a COCO document as indented UTF-8 JSON and return the path."""
    path = Path(output_path)
    path.write_text(json.dumps(document, indent=EXPORT_JSON_INDENT), encoding="utf-8")
    logger.info(f"Wrote {len(document.get('annotations', []))} annotation(s) to {path}")
    return path
