"""
Unit tests for dataset metadata configuration.

Tests defaults, dictionary parsing with fallbacks, and loading from JSON files.
"""

import json
import logging

from OA_Libs.ExportLib.metadata import (
    DEFAULT_DESCRIPTION,
    DEFAULT_IMAGE_URL_TEMPLATE,
    DatasetMetadata,
    LicenseInfo,
    load_dataset_metadata,
)


class TestDefaults:
    """Tests for DatasetMetadata defaults."""

    def test_default_values(self):
        metadata = DatasetMetadata()

        assert metadata.description == DEFAULT_DESCRIPTION
        assert metadata.coco_url == DEFAULT_IMAGE_URL_TEMPLATE
        assert metadata.default_license_id == 1
        assert metadata.licenses[0].name == "Creative Commons Attribution 4.0 License"

    def test_no_licenses(self):
        assert DatasetMetadata(licenses=[]).default_license_id is None

    def test_image_url(self):
        metadata = DatasetMetadata()
        assert metadata.image_url("http://host/{fileName}", "cat.png") == "http://host/cat.png"


class TestFromDict:
    """Tests for DatasetMetadata.from_dict."""

    def test_round_trip(self, sample_metadata):
        assert DatasetMetadata.from_dict(sample_metadata.to_dict()) == sample_metadata

    def test_invalid_fields_keep_defaults(self):
        metadata = DatasetMetadata.from_dict(
            {
                "description": "",
                "version": ["1"],
                "year": "soon",
                "licenses": [{"id": "x", "name": "bad"}, "nope"],
            }
        )

        assert metadata.description == DEFAULT_DESCRIPTION
        assert metadata.version == "1.0"
        assert isinstance(metadata.year, int)
        assert metadata.licenses[0].id == 1

    def test_invalid_year_logs_warning(self, caplog):
        default_year = DatasetMetadata().year

        with caplog.at_level(logging.WARNING, logger="OA_Libs.ExportLib.metadata"):
            metadata = DatasetMetadata.from_dict({"year": "soon"})

        assert metadata.year == default_year
        assert "Ignoring invalid dataset year 'soon'" in caplog.text

    def test_partial_licenses(self):
        metadata = DatasetMetadata.from_dict({"licenses": [{"id": 3, "name": "MIT"}]})
        assert metadata.licenses == [LicenseInfo(id=3, name="MIT", url="")]

    def test_non_dict_input(self):
        assert DatasetMetadata.from_dict(["not", "a", "dict"]).description == DEFAULT_DESCRIPTION


class TestLoadDatasetMetadata:
    """Tests for load_dataset_metadata."""

    def test_none_returns_defaults(self):
        assert load_dataset_metadata(None).description == DEFAULT_DESCRIPTION

    def test_load_from_file(self, tmp_path):
        config_path = tmp_path / "metadata.json"
        config_path.write_text(json.dumps({"description": "Streets", "year": 2021}), encoding="utf-8")

        metadata = load_dataset_metadata(config_path)

        assert metadata.description == "Streets"
        assert metadata.year == 2021
        assert metadata.contributor == "Your Name/Organization"

    def test_missing_file_falls_back(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            metadata = load_dataset_metadata(tmp_path / "missing.json")

        assert metadata.description == DEFAULT_DESCRIPTION
        assert "Using default dataset metadata" in caplog.text

    def test_invalid_json_falls_back(self, tmp_path):
        config_path = tmp_path / "metadata.json"
        config_path.write_text("{not json", encoding="utf-8")

        assert load_dataset_metadata(config_path).description == DEFAULT_DESCRIPTION
