"""
Tests for Pocket Assistant models

Test strategy:
1. Unit tests for individual components (models, services)
2. Integration tests for flows (with faked external services)
3. No real API calls in tests (use fakes)
"""

import json

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from src.models import (
    AIIntent,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    BalanceSheet,
    ChatRequest,
    Event,
    IntentType,
    Message,
    ParsedTransaction,
    ReminderFlags,
    ReminderLead,
    Transaction,
    TransactionType,
    UserProfile,
)


def make_transaction(amount: str, type_: TransactionType, category: str = "Other") -> Transaction:
    return Transaction(
        date=datetime(2024, 1, 15),
        description="Test",
        amount=Decimal(amount),
        type=type_,
        category=category,
    )


class TestRecordModels:
    """Tests for persisted record models."""

    def test_message_gets_id_and_timestamp(self):
        message = Message(text="Hello", is_user=True)
        assert message.id
        assert isinstance(message.timestamp, datetime)

    def test_message_ids_are_unique(self):
        assert Message(text="a", is_user=True).id != Message(text="a", is_user=True).id

    def test_event_defaults_all_reminders_on_none_sent(self):
        event = Event(title="Dentist", date_time=datetime(2024, 3, 1, 10))
        assert event.reminders == ReminderFlags.all_on()
        assert event.reminders_sent == ReminderFlags()
        assert event.google_calendar_event_id is None

    def test_event_title_strips_whitespace(self):
        event = Event(title="  Standup  ", date_time=datetime(2024, 3, 1, 9))
        assert event.title == "Standup"

    def test_event_rejects_empty_title(self):
        with pytest.raises(ValidationError):
            Event(title="   ", date_time=datetime(2024, 3, 1, 9))

    def test_event_aware_time_becomes_local_naive(self):
        aware = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
        event = Event(title="Standup", date_time=aware)

        assert event.date_time.tzinfo is None
        assert event.date_time == aware.astimezone().replace(tzinfo=None)

    def test_event_from_json_with_utc_suffix(self):
        event = Event.model_validate_json(
            '{"title": "Standup", "date_time": "2024-03-01T09:00:00Z"}'
        )

        assert event.date_time.tzinfo is None
        assert event.date_time < datetime(2024, 3, 3)

    def test_transaction_rejects_negative_amount(self):
        """Amounts are unsigned; type carries the direction."""
        with pytest.raises(ValidationError):
            make_transaction("-10.00", TransactionType.EXPENSE)

    def test_transaction_rejects_empty_category(self):
        with pytest.raises(ValidationError):
            make_transaction("10.00", TransactionType.EXPENSE, category="")

    def test_transaction_round_trips_through_json(self):
        transaction = make_transaction("12.34", TransactionType.INCOME, "Salary")
        restored = Transaction.model_validate_json(transaction.model_dump_json())
        assert restored == transaction
        assert isinstance(restored.date, datetime)

    def test_user_profile_defaults(self):
        profile = UserProfile()
        assert profile.name == ""
        assert profile.avatar == 1

    @pytest.mark.parametrize("avatar", [0, 5, 10])
    def test_user_profile_rejects_unknown_avatar(self, avatar):
        with pytest.raises(ValidationError):
            UserProfile(avatar=avatar)

    def test_balance_sheet_totals(self):
        sheet = BalanceSheet.from_transactions([
            make_transaction("1000.00", TransactionType.INCOME),
            make_transaction("250.50", TransactionType.EXPENSE),
            make_transaction("49.50", TransactionType.EXPENSE),
        ])
        assert sheet.total_income == Decimal("1000.00")
        assert sheet.total_expenses == Decimal("300.00")
        assert sheet.balance == Decimal("700.00")

    def test_balance_sheet_empty(self):
        sheet = BalanceSheet.from_transactions([])
        assert sheet.balance == Decimal("0")


class TestReminderModels:

    def test_reminder_offsets(self):
        assert ReminderLead.TWO_DAYS.offset == timedelta(days=2)
        assert ReminderLead.ONE_DAY.offset == timedelta(days=1)
        assert ReminderLead.SIX_HOURS.offset == timedelta(hours=6)
        assert ReminderLead.ONE_HOUR.offset == timedelta(hours=1)

    def test_flags_lookup_by_lead(self):
        flags = ReminderFlags(one_hour=True)
        assert flags.is_set(ReminderLead.ONE_HOUR) is True
        assert flags.is_set(ReminderLead.ONE_DAY) is False


class TestChatModels:

    def test_chat_request_accepts_max_length(self):
        assert len(ChatRequest(message="x" * 2000).message) == 2000

    def test_chat_request_rejects_too_long(self):
        with pytest.raises(ValidationError):
            ChatRequest(message="x" * 2001)

    def test_chat_request_rejects_blank(self):
        with pytest.raises(ValidationError):
            ChatRequest(message="   ")

    def test_ai_intent_defaults(self):
        intent = AIIntent(type=IntentType.GENERAL, response="Hi")
        assert intent.entities == {}


class TestParsedTransaction:

    def test_rejects_unknown_fields(self):
        """LLM output with extra keys is a shape mismatch."""
        with pytest.raises(ValidationError):
            ParsedTransaction.model_validate({
                "date": "01/15/2024",
                "description": "Coffee",
                "amount": 4.5,
                "type": "expense",
                "merchant": "Cafe",
            })

    def test_rejects_unknown_type(self):
        with pytest.raises(ValidationError):
            ParsedTransaction(date="01/15/2024", description="Coffee", amount=4.5, type="debit")


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        event = AuditEvent(
            event_type=AuditEventType.PROVIDER_SUCCEEDED,
            description="Gemini answered",
        )
        assert event.event_type == AuditEventType.PROVIDER_SUCCEEDED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        event = AuditEvent(
            event_type=AuditEventType.STATEMENT_IMPORTED,
            description="Imported",
            details={"bank_name": "Chase"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "statement_imported"
        assert log_dict["details"]["bank_name"] == "Chase"

    def test_audit_event_to_json_line(self):
        event = AuditEvent(event_type=AuditEventType.SYSTEM_ERROR, description="Boom")
        line = event.to_json_line()
        assert "\n" not in line
        assert json.loads(line)["event_type"] == "system_error"

    def test_builder_provider_skipped(self):
        correlation_id = uuid4()
        event = AuditEventBuilder.provider_skipped("Gemini", correlation_id)
        assert event.event_type == AuditEventType.PROVIDER_SKIPPED
        assert event.entity_id == "Gemini"
        assert event.correlation_id == correlation_id

    def test_builder_storage_cleared_is_user_action(self):
        event = AuditEventBuilder.storage_cleared(["@ai_assistant_messages"])
        assert event.event_type == AuditEventType.STORAGE_CLEARED
        assert event.is_user_action is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
