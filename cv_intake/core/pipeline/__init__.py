"""
CV processing pipeline.

Exports: PipelineExecutor, PipelineStage
"""

from .executor import PipelineExecutor, PipelineStage

__all__ = ["PipelineExecutor", "PipelineStage"]
