"""
Statement OCR Service

DESIGN DECISION: PDFs and images go to Gemini as inline documents and
the model must answer with exactly this JSON object:

    {"bank_name": "...", "transactions": [{"date", "description", "amount", "type"}]}

Anything else (an API error, prose around the JSON, a missing field)
fails closed to local parsing:
1. PDF text is read with PyMuPDF, text/* files are used as-is
2. The text is matched against known bank formats
3. Images have no local text, so they fail loudly

Every imported transaction is categorized before it is returned.
"""

import asyncio
from typing import Any, Optional
from uuid import UUID

import pymupdf
import structlog
from pydantic import BaseModel, ConfigDict, Field

from src.agents.llm import MalformedOutputError, build_gemini_model, parse_structured_output
from src.audit import AuditLogger
from src.config import GeminiSettings
from src.models import ParsedTransaction, StatementResult, Transaction
from src.services.categorization import CategorizationService
from src.services.ocr.bank_formats import detect_bank_format, parse_statement_date

logger = structlog.get_logger(__name__)

UNKNOWN_BANK = "Unknown Bank"
FOUND_CONFIDENCE = 0.85
EMPTY_CONFIDENCE = 0.3

OCR_SYSTEM_PROMPT = """You are a bank statement OCR expert. Extract all transaction data from this document.

For each transaction, extract:
- date (format: MM/DD/YYYY)
- description (merchant/payee name)
- amount (positive number)
- type ("income" or "expense")

Respond with a single JSON object and nothing else:
{"bank_name": "Chase", "transactions": [{"date": "01/15/2024", "description": "Grocery Store", "amount": 125.50, "type": "expense"}]}

Use null for bank_name if the bank cannot be identified. Only extract data you can clearly read."""


class OCRError(Exception):
    """Base exception for OCR errors."""
    pass


class UnsupportedDocumentError(OCRError):
    """Mime type is not a PDF, image or text file."""

    def __init__(self, mime_type: str):
        self.mime_type = mime_type
        super().__init__(f"Unsupported file type: {mime_type}")


class ExtractionFailedError(OCRError):
    """Failed to extract data from document."""
    pass


class StatementExtraction(BaseModel):
    """Exact shape the model must answer with."""
    model_config = ConfigDict(extra="forbid")

    bank_name: Optional[str] = None
    transactions: list[ParsedTransaction] = Field(default_factory=list)


def normalize_mime_type(mime_type: str) -> str:
    """Lowercase and drop parameters: "text/csv; charset=utf-8" -> "text/csv"."""
    return mime_type.split(";", 1)[0].strip().lower()


def extract_pdf_text(content: bytes) -> str:
    """
    Text of every page, joined by blank lines.

    Raises:
        ExtractionFailedError: If the bytes are not a readable PDF
    """
    try:
        doc = pymupdf.open(stream=content, filetype="pdf")
    except Exception as e:
        raise ExtractionFailedError(f"Could not open PDF: {e}") from e

    try:
        return "\n\n".join(page.get_text() for page in doc)
    finally:
        doc.close()


class StatementOCRService:
    """
    Imports transactions from bank statement files.

    IMPORTANT BOUNDARIES:
    1. This service extracts and categorizes; it does NOT persist
    2. Unsupported files are rejected before any API call
    """

    def __init__(
        self,
        categorizer: CategorizationService,
        settings: Optional[GeminiSettings] = None,
        model: Any = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._categorizer = categorizer
        self._settings = settings or GeminiSettings()
        self._model = model
        self._audit = audit_logger or AuditLogger()

    def _get_model(self):
        if self._model is None:
            self._model = build_gemini_model(
                self._settings,
                temperature=0.1,
                max_output_tokens=8192,
                json_output=True,
                system_instruction=OCR_SYSTEM_PROMPT,
            )
        return self._model

    async def _extract_with_llm(
        self,
        content: bytes,
        mime_type: str,
        correlation_id: Optional[UUID],
    ) -> Optional[StatementExtraction]:
        model = self._get_model()
        if model is None:
            await self._audit.log_fallback_used("ocr", "Gemini not configured", correlation_id)
            return None

        try:
            response = await model.generate_content_async([
                "Extract all transactions from this bank statement.",
                {"mime_type": mime_type, "data": content},
            ])
            return parse_structured_output(response.text, StatementExtraction)
        except MalformedOutputError as e:
            await self._audit.log_fallback_used("ocr", str(e), correlation_id)
            return None
        except Exception as e:
            await self._audit.log_external_service_error("gemini_ocr", str(e), correlation_id)
            return None

    async def _local_text(self, content: bytes, mime_type: str) -> str:
        if mime_type == "application/pdf":
            return await asyncio.to_thread(extract_pdf_text, content)
        if mime_type.startswith("text/"):
            return content.decode("utf-8", errors="replace")
        raise ExtractionFailedError(
            "Could not read transactions from the image. Please try a clearer photo or a PDF."
        )

    async def process_statement(
        self,
        content: bytes,
        mime_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> StatementResult:
        """
        Extract and categorize the transactions in a statement file.

        Raises:
            UnsupportedDocumentError: For anything but PDF, image/* or text/*
            ExtractionFailedError: If the document cannot be read at all
        """
        mime_type = normalize_mime_type(mime_type)
        is_pdf = mime_type == "application/pdf"
        is_image = mime_type.startswith("image/")
        is_text = mime_type.startswith("text/")

        if not (is_pdf or is_image or is_text):
            raise UnsupportedDocumentError(mime_type)

        extraction = None
        if is_pdf or is_image:
            extraction = await self._extract_with_llm(content, mime_type, correlation_id)

        if extraction is not None:
            bank_name = extraction.bank_name or UNKNOWN_BANK
            parsed = extraction.transactions
            format_name = detect_bank_format(bank_name).name
        else:
            text = await self._local_text(content, mime_type)
            statement_format = detect_bank_format(text)
            parsed = statement_format.extract_transactions(text)
            bank_name = statement_format.name
            format_name = statement_format.name

        transactions = []
        for item in parsed:
            category = await self._categorizer.categorize_transaction(
                item.description, item.amount, item.type
            )
            transactions.append(
                Transaction(
                    date=parse_statement_date(item.date),
                    description=item.description,
                    amount=item.amount,
                    type=item.type,
                    category=category.category,
                    category_confidence=category.confidence,
                    subcategory=category.subcategory,
                    bank_name=bank_name,
                )
            )

        confidence = FOUND_CONFIDENCE if transactions else EMPTY_CONFIDENCE
        await self._audit.log_statement_imported(
            bank_name, len(transactions), confidence, correlation_id
        )

        return StatementResult(
            transactions=transactions,
            bank_name=bank_name,
            format=format_name,
            confidence=confidence,
        )
