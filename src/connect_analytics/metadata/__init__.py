"""Table metadata export."""

from .export import CSV_COLUMNS, ExportSummary, TableMetadataExporter

__all__ = ["CSV_COLUMNS", "ExportSummary", "TableMetadataExporter"]
