"""
Transaction Categorization

DESIGN DECISION: One LLM call per transaction, answered in strict JSON.
If the call fails, or the answer is not exactly the expected shape, or
the category is not in our list, we fall back to keyword rules. The
fallback is deterministic and reports confidence 0.4 so the UI can tell
a guess from a model answer.

A transaction always ends up with a non-empty category.
"""

from typing import Any, Optional, Union
from decimal import Decimal

import structlog
from pydantic import BaseModel, ConfigDict, Field

from src.agents.llm import MalformedOutputError, build_gemini_model, parse_structured_output
from src.config import GeminiSettings
from src.models import CategoryResult, Transaction, TransactionType

logger = structlog.get_logger(__name__)

INCOME_CATEGORIES = [
    "Salary",
    "Freelance",
    "Investment Returns",
    "Rental Income",
    "Business Income",
    "Refunds",
    "Gifts",
    "Other Income",
]

EXPENSE_CATEGORIES = [
    "Food & Dining",
    "Groceries",
    "Transportation",
    "Utilities",
    "Housing",
    "Healthcare",
    "Entertainment",
    "Shopping",
    "Education",
    "Insurance",
    "Travel",
    "Personal Care",
    "Subscriptions",
    "Taxes",
    "Other Expenses",
]

FALLBACK_CONFIDENCE = 0.4

# Checked in order; first match wins.
INCOME_KEYWORDS = [
    (("salary", "payroll", "wages"), "Salary"),
    (("freelance", "contract"), "Freelance"),
    (("dividend", "interest", "investment"), "Investment Returns"),
    (("refund",), "Refunds"),
]

EXPENSE_KEYWORDS = [
    (("restaurant", "cafe", "food"), "Food & Dining"),
    (("grocery", "supermarket", "market"), "Groceries"),
    (("uber", "lyft", "gas", "fuel"), "Transportation"),
    (("electric", "water", "internet", "phone"), "Utilities"),
    (("rent", "mortgage"), "Housing"),
    (("netflix", "spotify", "subscription"), "Subscriptions"),
    (("insurance",), "Insurance"),
    (("doctor", "hospital", "pharmacy"), "Healthcare"),
]


def categories_for(transaction_type: TransactionType) -> list[str]:
    if transaction_type == TransactionType.INCOME:
        return INCOME_CATEGORIES
    return EXPENSE_CATEGORIES


def infer_basic_category(description: str, transaction_type: TransactionType) -> str:
    """Keyword rules used when the model is unavailable or unusable."""
    lowered = description.lower()

    if transaction_type == TransactionType.INCOME:
        rules, default = INCOME_KEYWORDS, "Other Income"
    else:
        rules, default = EXPENSE_KEYWORDS, "Other Expenses"

    for keywords, category in rules:
        if any(keyword in lowered for keyword in keywords):
            return category
    return default


class CategoryAnswer(BaseModel):
    """Exact shape the model must answer with."""
    model_config = ConfigDict(extra="forbid")

    category: str = Field(..., min_length=1)
    confidence: float = Field(..., ge=0.0, le=1.0)
    subcategory: Optional[str] = None


def _system_prompt(transaction_type: TransactionType) -> str:
    kind = transaction_type.value
    other = "Other Income" if transaction_type == TransactionType.INCOME else "Other Expenses"
    return f"""You are a financial transaction categorization expert. Analyze transaction descriptions and assign the most appropriate category with a confidence score.

Available {kind} categories:
{", ".join(categories_for(transaction_type))}

Rules:
- Analyze the transaction description carefully
- Consider common merchant names, keywords, and patterns
- Return a confidence score between 0 and 1 (1 = very confident)
- Be specific: "Food & Dining" for restaurants, "Groceries" for supermarkets
- Default to "{other}" if uncertain

Respond with JSON in this exact format and nothing else:
{{"category": "selected category from the list", "confidence": 0.95, "subcategory": "optional specific detail"}}"""


class CategorizationService:
    """
    Assigns categories to transactions.

    Models are built per transaction type because the allowed category
    list is part of the system instruction.
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        models: Optional[dict[TransactionType, Any]] = None,
    ):
        self._settings = settings or GeminiSettings()
        self._models: dict[TransactionType, Any] = dict(models or {})

    def _get_model(self, transaction_type: TransactionType):
        if transaction_type not in self._models:
            self._models[transaction_type] = build_gemini_model(
                self._settings,
                temperature=0.3,
                max_output_tokens=200,
                json_output=True,
                system_instruction=_system_prompt(transaction_type),
            )
        return self._models[transaction_type]

    def _fallback(self, description: str, transaction_type: TransactionType) -> CategoryResult:
        return CategoryResult(
            category=infer_basic_category(description, transaction_type),
            confidence=FALLBACK_CONFIDENCE,
        )

    async def categorize_transaction(
        self,
        description: str,
        amount: Union[Decimal, float],
        transaction_type: TransactionType,
    ) -> CategoryResult:
        """Never raises; falls back to keyword rules on any failure."""
        transaction_type = TransactionType(transaction_type)
        model = self._get_model(transaction_type)
        if model is None:
            return self._fallback(description, transaction_type)

        prompt = (
            f"Categorize this {transaction_type.value} transaction:\n"
            f"Description: {description}\n"
            f"Amount: ${amount}"
        )

        try:
            response = await model.generate_content_async(prompt)
            answer = parse_structured_output(response.text, CategoryAnswer)
        except MalformedOutputError as e:
            logger.warning("categorization_malformed_output", error=str(e))
            return self._fallback(description, transaction_type)
        except Exception as e:
            logger.error("categorization_failed", error=str(e))
            return self._fallback(description, transaction_type)

        if answer.category not in categories_for(transaction_type):
            logger.warning(
                "categorization_unknown_category",
                category=answer.category,
                type=transaction_type.value,
            )
            return self._fallback(description, transaction_type)

        return CategoryResult(
            category=answer.category,
            confidence=answer.confidence,
            subcategory=answer.subcategory,
        )

    async def recategorize_all(self, transactions: list[Transaction]) -> list[Transaction]:
        """Return copies of the transactions with fresh categories."""
        recategorized = []
        for transaction in transactions:
            result = await self.categorize_transaction(
                transaction.description, transaction.amount, transaction.type
            )
            recategorized.append(
                transaction.model_copy(
                    update={
                        "category": result.category,
                        "category_confidence": result.confidence,
                        "subcategory": result.subcategory,
                    }
                )
            )
        return recategorized
