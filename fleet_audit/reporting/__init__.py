"""Reporting package — output document generation."""

from .json_export import export_json

__all__ = [
    "export_json",
]
