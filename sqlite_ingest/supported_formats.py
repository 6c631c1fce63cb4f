"""
Registry of supported source file types and the pipeline that reads them.
"""

from enum import Enum
from typing import List, Optional


class FileFormat(Enum):
    """Enumeration of supported file formats."""
    CSV = "csv"
    TXT = "txt"
    XLS = "xls"
    XLSX = "xlsx"
    XAF = "xaf"


class Pipeline(Enum):
    """The three ingestion pipelines a format can be routed to."""
    DELIMITED = "delimited"
    SPREADSHEET = "spreadsheet"
    AUDIT_XML = "audit_xml"


class SupportedFormats:
    """Registry of supported file formats and their properties."""

    # Map of file extensions to FileFormat
    EXTENSION_MAP = {
        '.csv': FileFormat.CSV,
        '.txt': FileFormat.TXT,
        '.xls': FileFormat.XLS,
        '.xlsx': FileFormat.XLSX,
        '.xaf': FileFormat.XAF,
    }

    PIPELINE_MAP = {
        FileFormat.CSV: Pipeline.DELIMITED,
        FileFormat.TXT: Pipeline.DELIMITED,
        FileFormat.XLS: Pipeline.SPREADSHEET,
        FileFormat.XLSX: Pipeline.SPREADSHEET,
        FileFormat.XAF: Pipeline.AUDIT_XML,
    }

    @classmethod
    def _normalize(cls, extension: str) -> str:
        ext = extension.lower()
        if not ext.startswith('.'):
            ext = f'.{ext}'
        return ext

    @classmethod
    def is_supported(cls, extension: str) -> bool:
        """Check if a file extension is supported."""
        return cls._normalize(extension) in cls.EXTENSION_MAP

    @classmethod
    def get_format(cls, extension: str) -> Optional[FileFormat]:
        """Get FileFormat for a given extension (or format override name)."""
        return cls.EXTENSION_MAP.get(cls._normalize(extension))

    @classmethod
    def get_pipeline(cls, file_format: FileFormat) -> Pipeline:
        """Get the pipeline that ingests a format."""
        return cls.PIPELINE_MAP[file_format]

    @classmethod
    def get_supported_extensions(cls) -> List[str]:
        """Get list of all supported file extensions."""
        return list(cls.EXTENSION_MAP.keys())
