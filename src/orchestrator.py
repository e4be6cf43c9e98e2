"""
Main Orchestrator for Pocket Assistant

This module ties together all the components and defines the
end-to-end flows for:
1. Chat (message -> intent -> reply -> optional side action -> persist)
2. Finance (statement import, categorized transactions, balances, FX)
3. Schedule (events, Google Calendar mirror, reminders, suggestions)
4. Profile (name, avatar, clearing all data)

DESIGN DECISION: The orchestrator is the error boundary:
- Invalid input surfaces as a pydantic ValidationError
- Known failures (unsupported file, missing rate) become a FlowError
  carrying their own message
- Anything else is audited and becomes a FlowError with a friendly message
- Side actions of a chat message (creating an event, converting money)
  never fail the chat itself
"""

import functools
from datetime import datetime
from decimal import Decimal
from typing import NamedTuple, Optional, Union
from uuid import UUID

import structlog
from pydantic import ValidationError

from src.agents import AssistantAgent, ProviderFallbackOrchestrator, default_providers
from src.audit import AuditLogger, configure_logging, create_correlation_id
from src.config import Settings, get_settings
from src.models import (
    AIIntent,
    AuditEventType,
    BalanceSheet,
    ChatRequest,
    ConversionResult,
    Event,
    IntentType,
    Message,
    ReminderFlags,
    ReminderLead,
    SchedulingSuggestion,
    StatementResult,
    Transaction,
    TransactionType,
    UserProfile,
)
from src.scheduling import (
    SchedulingAdvisor,
    create_event_from_parsed_data,
    due_reminders,
    has_scheduling_intent,
    mark_reminder_sent,
    parse_event_from_text,
    reschedule,
)
from src.services.calendar import GoogleCalendarService
from src.services.categorization import CategorizationService
from src.services.currency import CurrencyConversionError, CurrencyService
from src.services.investments import InvestmentService
from src.services.ocr import OCRError, StatementOCRService
from src.services.storage import (
    AssistantStorage,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    JsonLinesAuditStorage,
    KeyValueStore,
    NotFoundError,
)
from src.services.voice import VoiceService

logger = structlog.get_logger(__name__)


class FlowError(Exception):
    """A flow operation failed; `user_message` is safe to show."""

    def __init__(self, user_message: str):
        self.user_message = user_message
        super().__init__(user_message)


# Failures whose own message is already meant for the user.
_EXPECTED_ERRORS = (OCRError, CurrencyConversionError, NotFoundError)


def flow_boundary(user_message: str):
    """Convert anything escaping a flow method into a FlowError."""
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            try:
                return await func(self, *args, **kwargs)
            except (ValidationError, FlowError):
                raise
            except _EXPECTED_ERRORS as e:
                logger.warning("flow_rejected", operation=func.__name__, error=str(e))
                raise FlowError(str(e)) from e
            except Exception as e:
                await self._audit.log_error(
                    error_type=type(e).__name__,
                    error_message=str(e),
                    details={"operation": func.__name__},
                )
                raise FlowError(user_message) from e
        return wrapper
    return decorator


class ScheduleFlow:
    """
    Orchestrates calendar events.

    Local storage is the source of truth. Google Calendar is a mirror:
    a failed sync is logged and the local change still stands.
    """

    def __init__(
        self,
        storage: AssistantStorage,
        advisor: Optional[SchedulingAdvisor] = None,
        calendar: Optional[GoogleCalendarService] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._advisor = advisor or SchedulingAdvisor()
        self._calendar = calendar
        self._audit = audit_logger or AuditLogger()

    @property
    def _sync_enabled(self) -> bool:
        return self._calendar is not None and self._calendar.is_configured()

    @staticmethod
    def _find(events: list[Event], event_id: str) -> int:
        for index, event in enumerate(events):
            if event.id == event_id:
                return index
        raise NotFoundError(f"Event not found: {event_id}")

    @flow_boundary("Couldn't save the event. Please try again.")
    async def create_event(self, event: Event) -> Event:
        synced = False
        if self._sync_enabled:
            try:
                google_id = await self._calendar.create_event(event)
                event = event.model_copy(update={"google_calendar_event_id": google_id})
                synced = True
            except Exception as e:
                await self._audit.log_external_service_error("google_calendar", str(e))

        events = await self._storage.get_events()
        events.append(event)
        await self._storage.save_events(events)

        await self._audit.log_event_changed(
            AuditEventType.EVENT_CREATED, event.id, event.title, synced
        )
        return event

    @flow_boundary("Couldn't update the event. Please try again.")
    async def update_event(
        self,
        event_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        date_time: Optional[datetime] = None,
        reminders: Optional[ReminderFlags] = None,
    ) -> Event:
        """Apply the given changes; moving the event resets sent reminders."""
        events = await self._storage.get_events()
        index = self._find(events, event_id)
        current = events[index]

        changes = {}
        if title is not None:
            changes["title"] = title
        if description is not None:
            changes["description"] = description
        if reminders is not None:
            changes["reminders"] = reminders

        # Re-validate so title limits apply to edits too.
        updated = Event.model_validate({**current.model_dump(), **changes})
        if date_time is not None:
            updated = reschedule(updated, date_time)

        synced = False
        if self._sync_enabled and updated.google_calendar_event_id:
            try:
                await self._calendar.update_event(updated.google_calendar_event_id, updated)
                synced = True
            except Exception as e:
                await self._audit.log_external_service_error("google_calendar", str(e))

        events[index] = updated
        await self._storage.save_events(events)

        await self._audit.log_event_changed(
            AuditEventType.EVENT_UPDATED, updated.id, updated.title, synced
        )
        return updated

    @flow_boundary("Couldn't delete the event. Please try again.")
    async def delete_event(self, event_id: str) -> None:
        events = await self._storage.get_events()
        index = self._find(events, event_id)
        event = events.pop(index)

        synced = False
        if self._sync_enabled and event.google_calendar_event_id:
            try:
                await self._calendar.delete_event(event.google_calendar_event_id)
                synced = True
            except Exception as e:
                await self._audit.log_external_service_error("google_calendar", str(e))

        await self._storage.save_events(events)
        await self._audit.log_event_changed(
            AuditEventType.EVENT_DELETED, event.id, event.title, synced
        )

    async def list_events(self) -> list[Event]:
        """All events, earliest first."""
        events = await self._storage.get_events()
        return sorted(events, key=lambda e: e.date_time)

    async def suggestions(
        self,
        user_input: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> list[SchedulingSuggestion]:
        events = await self._storage.get_events()
        return await self._advisor.generate_smart_suggestions(events, user_input, now)

    @flow_boundary("Couldn't update reminders. Please try again.")
    async def collect_due_reminders(
        self,
        now: Optional[datetime] = None,
    ) -> list[tuple[Event, ReminderLead]]:
        """
        Reminders that should fire now, marked as sent.

        The caller delivers them; once returned they will not be
        returned again.
        """
        now = now or datetime.now()
        events = await self._storage.get_events()
        due: list[tuple[Event, ReminderLead]] = []

        for index, event in enumerate(events):
            for lead in due_reminders(event, now):
                due.append((event, lead))
                event = mark_reminder_sent(event, lead)
            events[index] = event

        if due:
            await self._storage.save_events(events)
        return due


class FinanceFlow:
    """Orchestrates transactions, statement imports and conversions."""

    def __init__(
        self,
        storage: AssistantStorage,
        categorizer: CategorizationService,
        ocr_service: StatementOCRService,
        currency_service: CurrencyService,
        audit_logger: Optional[AuditLogger] = None,
        max_upload_size_bytes: int = 10 * 1024 * 1024,
    ):
        self._storage = storage
        self._categorizer = categorizer
        self._ocr = ocr_service
        self._currency = currency_service
        self._audit = audit_logger or AuditLogger()
        self._max_upload_size_bytes = max_upload_size_bytes

    @flow_boundary("Couldn't import the statement. Please try again.")
    async def import_statement(
        self,
        content: bytes,
        mime_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> StatementResult:
        """Extract, categorize and store the transactions in a statement."""
        if len(content) > self._max_upload_size_bytes:
            raise FlowError(
                f"File is too large. Maximum size is "
                f"{self._max_upload_size_bytes // (1024 * 1024)} MB."
            )

        correlation_id = correlation_id or create_correlation_id()
        result = await self._ocr.process_statement(content, mime_type, correlation_id)

        if result.transactions:
            transactions = await self._storage.get_transactions()
            transactions.extend(result.transactions)
            await self._storage.save_transactions(transactions)

        return result

    @flow_boundary("Couldn't save the transaction. Please try again.")
    async def add_transaction(
        self,
        description: str,
        amount: Union[Decimal, float, str],
        transaction_type: TransactionType,
        date: Optional[datetime] = None,
    ) -> Transaction:
        amount = Decimal(str(amount))
        category = await self._categorizer.categorize_transaction(
            description, amount, transaction_type
        )
        transaction = Transaction(
            date=date or datetime.now(),
            description=description,
            amount=amount,
            type=transaction_type,
            category=category.category,
            category_confidence=category.confidence,
            subcategory=category.subcategory,
        )

        transactions = await self._storage.get_transactions()
        transactions.append(transaction)
        await self._storage.save_transactions(transactions)
        return transaction

    @flow_boundary("Couldn't recategorize transactions. Please try again.")
    async def recategorize_all(self) -> list[Transaction]:
        transactions = await self._storage.get_transactions()
        recategorized = await self._categorizer.recategorize_all(transactions)
        await self._storage.save_transactions(recategorized)
        return recategorized

    async def balance_sheet(self) -> BalanceSheet:
        transactions = await self._storage.get_transactions()
        transactions.sort(key=lambda t: t.date, reverse=True)
        return BalanceSheet.from_transactions(transactions)

    @flow_boundary("Couldn't convert currency. Please try again.")
    async def convert_currency(
        self,
        amount: float,
        from_currency: str,
        to_currency: str,
    ) -> ConversionResult:
        return await self._currency.convert_currency(amount, from_currency, to_currency)


class ChatFlow:
    """
    Orchestrates one chat turn.

    Flow:
    1. Validate the request
    2. Append the user's message
    3. Get a reply (never fails, see AssistantAgent)
    4. Run the side action for the intent, if any
    5. Append the reply and persist the conversation
    """

    def __init__(
        self,
        assistant: AssistantAgent,
        storage: AssistantStorage,
        schedule_flow: Optional[ScheduleFlow] = None,
        currency_service: Optional[CurrencyService] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._assistant = assistant
        self._storage = storage
        self._schedule_flow = schedule_flow
        self._currency = currency_service
        self._audit = audit_logger or AuditLogger()

    async def history(self) -> list[Message]:
        return await self._storage.get_messages()

    async def _schedule_from_text(self, text: str, correlation_id: UUID) -> Optional[str]:
        if self._schedule_flow is None:
            return None
        parsed = parse_event_from_text(text)
        if parsed is None:
            return None
        try:
            event = await self._schedule_flow.create_event(
                create_event_from_parsed_data(parsed)
            )
        except Exception as e:
            logger.warning("chat_schedule_failed", error=str(e), correlation_id=str(correlation_id))
            return None
        when = event.date_time.strftime("%A, %B %d at %I:%M %p")
        return f'I\'ve added "{event.title}" to your schedule for {when}.'

    async def _convert_from_entities(self, intent: AIIntent, correlation_id: UUID) -> Optional[str]:
        entities = intent.entities
        if self._currency is None or not {"amount", "from_currency", "to_currency"} <= entities.keys():
            return None
        try:
            result = await self._currency.convert_currency(
                float(entities["amount"]),
                entities["from_currency"],
                entities["to_currency"],
            )
        except CurrencyConversionError as e:
            logger.warning("chat_conversion_failed", error=str(e), correlation_id=str(correlation_id))
            return None
        return (
            f"{result.amount:,.2f} {result.from_currency} = "
            f"{result.converted_amount:,.2f} {result.to_currency} "
            f"(rate {result.rate:.4f})"
        )

    @flow_boundary("Couldn't save the conversation. Please try again.")
    async def send_message(self, request: Union[ChatRequest, str]) -> tuple[Message, AIIntent]:
        """
        Process one user message.

        Returns:
            (assistant_message, intent)
        """
        if isinstance(request, str):
            request = ChatRequest(message=request)

        correlation_id = create_correlation_id()
        messages = await self._storage.get_messages()
        messages.append(Message(text=request.message, is_user=True))

        intent = await self._assistant.process_user_input(request.message, correlation_id)

        extra = None
        if intent.type == IntentType.SCHEDULE_MEETING and has_scheduling_intent(request.message):
            extra = await self._schedule_from_text(request.message, correlation_id)
        elif intent.type == IntentType.CONVERT_CURRENCY:
            extra = await self._convert_from_entities(intent, correlation_id)

        reply_text = f"{intent.response}\n\n{extra}" if extra else intent.response
        reply = Message(text=reply_text, is_user=False)
        messages.append(reply)
        await self._storage.save_messages(messages)

        return reply, intent


class ProfileFlow:
    """The user's profile, and wiping all local data."""

    def __init__(
        self,
        storage: AssistantStorage,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit = audit_logger or AuditLogger()

    async def get_profile(self) -> UserProfile:
        return await self._storage.get_user_profile() or UserProfile()

    @flow_boundary("Couldn't save your name. Please try again.")
    async def update_name(self, name: str) -> UserProfile:
        profile = await self.get_profile()
        updated = UserProfile.model_validate({**profile.model_dump(), "name": name})
        await self._storage.save_user_profile(updated)
        return updated

    @flow_boundary("Couldn't save your avatar. Please try again.")
    async def select_avatar(self, avatar: int) -> UserProfile:
        profile = await self.get_profile()
        updated = UserProfile.model_validate({**profile.model_dump(), "avatar": avatar})
        await self._storage.save_user_profile(updated)
        return updated

    @flow_boundary("Couldn't clear your data. Please try again.")
    async def clear_all_data(self) -> list[str]:
        """Remove messages, events, transactions and the profile."""
        keys = await self._storage.clear_all()
        await self._audit.log_storage_cleared(keys)
        return keys


class AppComponents(NamedTuple):
    chat: ChatFlow
    finance: FinanceFlow
    schedule: ScheduleFlow
    profile: ProfileFlow
    voice: VoiceService
    investments: InvestmentService


def create_app_components(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStore] = None,
    use_storage: bool = True,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Defaults to get_settings().
        store: Key-value backend. Defaults to the JSON file from settings,
               or memory when use_storage is False.
        use_storage: Set to False for testing without files on disk.
    """
    settings = settings or get_settings()
    configure_logging(settings.app.debug_mode)

    if store is None:
        store = (
            JsonFileKeyValueStore(settings.storage.path)
            if use_storage
            else InMemoryKeyValueStore()
        )

    audit_storage = None
    if use_storage and settings.storage.audit_log_path:
        audit_storage = JsonLinesAuditStorage(settings.storage.audit_log_path)
    audit_logger = AuditLogger(audit_storage)

    storage = AssistantStorage(store)

    orchestrator = ProviderFallbackOrchestrator(
        default_providers(settings.gemini, settings.openai),
        retry_settings=settings.retry,
        audit_logger=audit_logger,
    )
    assistant = AssistantAgent(orchestrator)

    categorizer = CategorizationService(settings.gemini)
    currency = CurrencyService(settings.exchange_rate)
    ocr = StatementOCRService(categorizer, settings.gemini, audit_logger=audit_logger)
    calendar = GoogleCalendarService(settings.google_calendar)

    schedule_flow = ScheduleFlow(
        storage,
        advisor=SchedulingAdvisor(settings.gemini),
        calendar=calendar,
        audit_logger=audit_logger,
    )
    finance_flow = FinanceFlow(
        storage,
        categorizer,
        ocr,
        currency,
        audit_logger=audit_logger,
        max_upload_size_bytes=settings.app.max_upload_size_bytes,
    )
    chat_flow = ChatFlow(
        assistant,
        storage,
        schedule_flow=schedule_flow,
        currency_service=currency,
        audit_logger=audit_logger,
    )
    profile_flow = ProfileFlow(storage, audit_logger=audit_logger)

    return AppComponents(
        chat=chat_flow,
        finance=finance_flow,
        schedule=schedule_flow,
        profile=profile_flow,
        voice=VoiceService(settings.voice),
        investments=InvestmentService(settings.market_data),
    )
