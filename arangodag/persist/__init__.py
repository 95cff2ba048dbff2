"""Persistence utilities for arangodag."""

from .export import GraphExporter

__all__ = ["GraphExporter"]
