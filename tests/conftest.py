"""
Pytest configuration and shared fixtures for Open Annotate tests.

This module provides shared test fixtures and configuration
used across multiple test modules.
"""

import pytest
from PIL import Image

from OA_Libs.AnnotationLib.interaction import InteractionStateMachine
from OA_Libs.AnnotationLib.session import AnnotationSession
from OA_Libs.ExportLib.metadata import DatasetMetadata, LicenseInfo


@pytest.fixture
def session():
    """
    Provide a session with two classes registered.

    "Road" (#ff0000) is created first, "Car" (#00ff00) second, so "Car" is
    the active class.

    Returns:
        AnnotationSession
    """
    annotation_session = AnnotationSession()
    annotation_session.add_class("Road", "#ff0000")
    annotation_session.add_class("Car", "#00ff00")
    yield annotation_session
    annotation_session.shutdown()


@pytest.fixture
def machine(session):
    """Interaction state machine bound to the ``session`` fixture."""
    return InteractionStateMachine(session)


@pytest.fixture
def png_path(tmp_path):
    """
    Write a 64x48 PNG to a temporary directory.

    Args:
        tmp_path: Pytest's built-in temporary directory fixture

    Returns:
        Path to the image file
    """
    path = tmp_path / "street.png"
    Image.new("RGB", (64, 48), color="blue").save(path)
    return path


@pytest.fixture
def sample_metadata():
    """Dataset metadata with fixed, non-default values."""
    return DatasetMetadata(
        description="Test Dataset",
        url="http://test.local",
        version="2.0",
        year=2024,
        contributor="Test Lab",
        date_created="2024-01-01T00:00:00",
        licenses=[LicenseInfo(id=7, name="Test License", url="http://test.local/license")],
        coco_url="http://test.local/coco/{fileName}",
        flickr_url="http://test.local/flickr/{fileName}",
    )
