"""
Stage 5: Output

- annotation_serializer: writes concept annotations beside the source document
- run_catalog: records runs and produced annotation files in the catalog database
"""

from annot_pipeline.stage_05_output.annotation_serializer import (
    AnnotationSerializer,
    read_annotation_file,
    write_annotation_file,
)
from annot_pipeline.stage_05_output.run_catalog import RunCatalog, catalog_document, finish_run, start_run

__all__ = [
    "AnnotationSerializer",
    "read_annotation_file",
    "write_annotation_file",
    "RunCatalog",
    "catalog_document",
    "finish_run",
    "start_run",
]
