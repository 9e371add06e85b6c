"""
OA_Libs - Open Annotate Library Modules

This package contains core functionality for the Open Annotate project,
organized into specialized sub-packages:

- AnnotationLib: Annotation authoring engine (shapes, geometry, class registry,
  history, scene, interaction state machine, image ingestion)
- ExportLib: COCO document serialization and dataset metadata configuration
- AnnotatorLib: PyQt5 host window around the authoring engine
"""

__version__ = "0.1.0"
