"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from knowbase.boundary.db.CRUD import source_crud, pipeline_run_crud

    sources = await source_crud.get_by_knowledge_base(db, knowledge_base_id)
"""

from knowbase.boundary.db.CRUD.base_crud import BaseCRUD
from knowbase.boundary.db.CRUD.pipeline_run_crud import PipelineRunCRUD, pipeline_run_crud
from knowbase.boundary.db.CRUD.source_crud import SourceCRUD, source_crud

__all__ = [
    "BaseCRUD",
    "PipelineRunCRUD",
    "pipeline_run_crud",
    "SourceCRUD",
    "source_crud",
]
