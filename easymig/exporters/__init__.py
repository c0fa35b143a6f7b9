"""Database export strategies."""

from .base import BaseExporter, CommandExporter, verify_dump
from .chain import ExportChain, ExportReport, default_exporters
from .generator import GeneratorExporter
from .mysqldump import MysqldumpExporter
from .wpcli import WPCLIExporter

__all__ = [
    "BaseExporter",
    "CommandExporter",
    "verify_dump",
    "ExportChain",
    "ExportReport",
    "default_exporters",
    "GeneratorExporter",
    "MysqldumpExporter",
    "WPCLIExporter",
]
