"""Automation importers for various sources."""

from .base import BaseImporter
from .file import FileImporter
from .template import TemplateImporter

__all__ = ["BaseImporter", "FileImporter", "TemplateImporter"]
