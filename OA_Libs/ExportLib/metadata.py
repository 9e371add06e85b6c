"""
Dataset-level metadata for COCO exports.

The metadata is static configuration: it is built from defaults or read from a
JSON file and is not editable from inside the annotation engine. Malformed or
missing fields fall back to the defaults rather than failing the export.

Classes:
    LicenseInfo: One entry of the COCO ``licenses`` list
    DatasetMetadata: The ``info`` block, licenses and URL templates

Functions:
    load_dataset_metadata: Read metadata from a JSON file with defaults
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from OA_Libs.constants import COCO_FILE_NAME_PLACEHOLDER

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "Semantic Segmentation Dataset"
DEFAULT_URL = "http://example.com"
DEFAULT_VERSION = "1.0"
DEFAULT_CONTRIBUTOR = "Your Name/Organization"
DEFAULT_LICENSE_NAME = "Creative Commons Attribution 4.0 License"
DEFAULT_LICENSE_URL = "https://creativecommons.org/licenses/by/4.0/"
DEFAULT_IMAGE_URL_TEMPLATE = f"http://example.com/images/{COCO_FILE_NAME_PLACEHOLDER}"


@dataclass(frozen=True)
class LicenseInfo:
    id: int
    name: str
    url: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "url": self.url}


def _default_licenses() -> List[LicenseInfo]:
    return [LicenseInfo(id=1, name=DEFAULT_LICENSE_NAME, url=DEFAULT_LICENSE_URL)]


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


@dataclass
class DatasetMetadata:
    """
    Static dataset metadata used to fill the COCO ``info`` and ``licenses`` blocks.

    ``coco_url`` and ``flickr_url`` are templates where ``{fileName}`` is
    replaced by each image's file name.
    """
    description: str = DEFAULT_DESCRIPTION
    url: str = DEFAULT_URL
    version: str = DEFAULT_VERSION
    year: int = field(default_factory=lambda: datetime.now().year)
    contributor: str = DEFAULT_CONTRIBUTOR
    date_created: str = field(default_factory=_now_iso)
    licenses: List[LicenseInfo] = field(default_factory=_default_licenses)
    coco_url: str = DEFAULT_IMAGE_URL_TEMPLATE
    flickr_url: str = DEFAULT_IMAGE_URL_TEMPLATE

    @property
    def default_license_id(self) -> Optional[int]:
        return self.licenses[0].id if self.licenses else None

    def image_url(self, template: str, file_name: str) -> str:
        return template.replace(COCO_FILE_NAME_PLACEHOLDER, file_name)

    def info_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "url": self.url,
            "version": self.version,
            "year": self.year,
            "contributor": self.contributor,
            "date_created": self.date_created,
        }

    def to_dict(self) -> Dict[str, Any]:
        payload = self.info_dict()
        payload["licenses"] = [license_info.to_dict() for license_info in self.licenses]
        payload["coco_url"] = self.coco_url
        payload["flickr_url"] = self.flickr_url
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DatasetMetadata":
        """Build metadata from a dictionary, keeping defaults for invalid fields."""
        metadata = cls()
        if not isinstance(data, dict):
            return metadata

        for key in ("description", "url", "version", "contributor", "date_created", "coco_url", "flickr_url"):
            value = data.get(key)
            if isinstance(value, (str, int, float)) and str(value).strip():
                setattr(metadata, key, str(value))

        year_value = data.get("year")
        if year_value is not None:
            try:
                metadata.year = int(year_value)
            except (TypeError, ValueError):
                logger.warning(f"Ignoring invalid dataset year {year_value!r}, keeping {metadata.year}")

        licenses_value = data.get("licenses")
        if isinstance(licenses_value, list):
            licenses: List[LicenseInfo] = []
            for item in licenses_value:
                if not isinstance(item, dict):
                    continue
                try:
                    licenses.append(
                        LicenseInfo(
                            id=int(item.get("id")),
                            name=str(item.get("name") or ""),
                            url=str(item.get("url") or ""),
                        )
                    )
                except (TypeError, ValueError):
                    continue
            if licenses:
                metadata.licenses = licenses

        return metadata


def load_dataset_metadata(config_path: Optional[Path] = None) -> DatasetMetadata:
    """
    Load dataset metadata from a JSON file.

    Args:
        config_path: Path to a JSON object with metadata fields. When None, or
            when the file cannot be read, the defaults are returned.

    Returns:
        DatasetMetadata
    """
    if config_path is None:
        return DatasetMetadata()

    try:
        payload = json.loads(Path(config_path).read_text(encoding="utf-8"))
    except (FileNotFoundError, json.JSONDecodeError, OSError) as e:
        logger.warning(f"Using default dataset metadata, could not read {config_path}: {e}")
        return DatasetMetadata()

    return DatasetMetadata.from_dict(payload)
