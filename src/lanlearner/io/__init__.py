"""Import/export formats for Lanlearner decks."""

from lanlearner.io.spreadsheet import (
    WorkbookContents,
    default_export_name,
    export_workbook,
    import_workbook,
)

__all__ = [
    "WorkbookContents",
    "default_export_name",
    "export_workbook",
    "import_workbook",
]
