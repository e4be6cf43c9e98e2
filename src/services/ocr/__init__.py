"""OCR services package."""

from src.services.ocr.bank_formats import (
    BANK_FORMATS,
    BankStatementFormat,
    detect_bank_format,
    get_supported_banks,
    parse_statement_date,
)
from src.services.ocr.statement_service import (
    ExtractionFailedError,
    OCRError,
    StatementOCRService,
    UnsupportedDocumentError,
    extract_pdf_text,
)

__all__ = [
    "BANK_FORMATS",
    "BankStatementFormat",
    "detect_bank_format",
    "get_supported_banks",
    "parse_statement_date",
    "ExtractionFailedError",
    "OCRError",
    "StatementOCRService",
    "UnsupportedDocumentError",
    "extract_pdf_text",
]
