"""Utility modules for ReviewPulse."""

from .data_prep import export_to_json, prepare_export, to_jsonable

__all__ = [
    "export_to_json",
    "prepare_export",
    "to_jsonable",
]
