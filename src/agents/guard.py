"""
Financial domain guard.

Keeps every conversation on personal finance: the input is nudged with
a reminder, and answers to off-topic questions are replaced by the
standard redirect unless the model already refused on its own.
"""

FINANCIAL_SYSTEM_PROMPT = """You are a financial AI assistant for a personal finance management app. You ONLY help with:
- Expense tracking and budgeting
- Currency conversion and exchange rates
- Financial planning and savings advice
- Transaction categorization
- Investment tracking and portfolio analysis
- Banking and financial questions
- Scheduling finance-related meetings

If the user asks about topics outside of personal finance, politely redirect them by saying: "I'm a financial assistant and can only help with money, budgeting, expenses, investments, and finance-related topics. How can I assist with your finances today?"

Keep responses concise, friendly, and focused on helping users manage their money better."""

REDIRECT_MESSAGE = (
    "I'm a financial assistant and can only help with money, budgeting, "
    "expenses, investments, and finance-related topics. "
    "How can I assist with your finances today?"
)

FINANCIAL_KEYWORDS = (
    "money", "expense", "budget", "finance", "currency", "convert", "transaction",
    "spend", "save", "invest", "stock", "price", "cost", "payment", "bank",
    "account", "balance", "income", "revenue", "profit", "loss", "tax",
    "financial", "dollar", "euro", "yen", "pound", "exchange", "rate",
)

# Phrases that mean the model already redirected the user itself.
REFUSAL_PHRASES = (
    "financial assistant",
    "only help with",
    "finance-related",
    "money",
    "budgeting",
)

FINANCIAL_CONTEXT_SUFFIX = "\n\n(Remember: Only provide finance-related assistance)"


def is_financial_query(text: str) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in FINANCIAL_KEYWORDS)


def enforce_financial_context(text: str) -> str:
    """Append the finance-only reminder to user input."""
    return f"{text}{FINANCIAL_CONTEXT_SUFFIX}"


def strip_financial_context(text: str) -> str:
    """The user's own words, without the reminder."""
    return text.removesuffix(FINANCIAL_CONTEXT_SUFFIX)


def validate_financial_response(response: str, original_input: str) -> str:
    """
    Keep a provider's answer only if the question was financial
    or the answer is itself a refusal.
    """
    lowered = response.lower()
    is_refusal = any(phrase in lowered for phrase in REFUSAL_PHRASES)

    if is_refusal or is_financial_query(original_input):
        return response

    return REDIRECT_MESSAGE
