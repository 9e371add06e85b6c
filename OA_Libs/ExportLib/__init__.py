"""
ExportLib - COCO export and dataset metadata

This module serializes authored shapes into COCO-style annotation
documents and provides the static dataset metadata configuration.
"""

from OA_Libs.ExportLib.coco_export import (
    build_categories,
    build_image_records,
    export_to_coco,
    resolve_shape_class,
    validate_export_preconditions,
    write_annotations_json,
)
from OA_Libs.ExportLib.metadata import DatasetMetadata, LicenseInfo, load_dataset_metadata

__all__ = [
    "build_categories",
    "build_image_records",
    "export_to_coco",
    "resolve_shape_class",
    "validate_export_preconditions",
    "write_annotations_json",
    "DatasetMetadata",
    "LicenseInfo",
    "load_dataset_metadata",
]
