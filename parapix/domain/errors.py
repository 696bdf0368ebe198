class ExportError(RuntimeError):
    """
    Raised when an export request cannot be fulfilled (bad target size,
    empty source region, unknown format, encoder failure).
    """
