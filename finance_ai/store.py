"""
Finance Store

The single gateway between UI collaborators and persisted finance data.

Flow for every mutation:
1. Load the current aggregate from the primary slot
2. Apply the change in memory
3. Copy the old primary bytes into the backup slot
4. Write the new aggregate (stamped with lastUpdated) to the primary slot

DESIGN DECISION: Nothing is cached between calls. Every operation re-reads
the backend, so every reader sees the latest committed write. This is only
safe with a single writer per storage location (one client at a time).

FAILURE POLICY:
- Reads never raise: corrupt primary -> backup (promoted) -> empty aggregate
- Writes never raise: they return a StoreResult describing the outcome
- Unknown IDs on update/delete are silent no-ops
"""

import json
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ValidationError
from pydantic_core import PydanticSerializationError

from finance_ai.audit import AuditLogger
from finance_ai.config import StorageSettings, get_settings
from finance_ai.models.audit import AuditEventBuilder, AuditEventType
from finance_ai.models.finance import (
    MonthlySpending,
    OnboardingData,
    SavingsGoal,
    SavingsGoalDraft,
    Transaction,
    TransactionDraft,
    UserData,
    as_local,
    local_now,
)
from finance_ai.models.results import OperationStatus, StoreResult
from finance_ai.services.storage import (
    GoogleSheetsBackend,
    InMemoryBackend,
    JsonFileBackend,
    KeyValueBackend,
    StorageError,
    StorageFullError,
)
from finance_ai.summaries import aggregation


def generate_id(prefix: str, now: datetime) -> str:
    """``<prefix>_<epoch ms>_<9 random chars>``, e.g. ``txn_1709625600000_k3j9x0a1b``."""
    return f"{prefix}_{int(now.timestamp() * 1000)}_{uuid4().hex[:9]}"


def _merge(
    model: BaseModel,
    updates: Mapping[str, Any],
    rules: type[BaseModel],
) -> BaseModel:
    """
    Shallow-merge ``updates`` into ``model`` and re-validate.

    Keys may be attribute names or stored (camelCase) names. The ``id``
    of a record can not be changed this way. The merged record must also
    pass ``rules`` (the draft model), so an update is held to the same
    value constraints as a new record.
    """
    fields = type(model).model_fields
    by_alias = {(f.alias or name): name for name, f in fields.items()}

    merged = model.model_dump()
    for key, value in updates.items():
        name = key if key in fields else by_alias.get(key)
        if name is None:
            raise ValueError(f"Unknown field: {key}")
        if name == "id":
            continue
        merged[name] = value

    rules.model_validate({k: v for k, v in merged.items() if k in rules.model_fields})
    return type(model).model_validate(merged)


class FinanceStore:
    """
    Read-modify-write store for one user's finance aggregate.

    Construct one per storage location and pass it to whatever needs it.
    Use ``create_finance_store()`` to build one from settings.
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        primary_key: str = "financeAI_data",
        backup_key: str = "financeAI_backup",
        forced_currency: Optional[str] = "INR",
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], datetime] = local_now,
    ):
        """
        Args:
            backend: Key-value storage holding both slots
            primary_key: Slot for the current aggregate
            backup_key: Slot for the previous aggregate
            forced_currency: Currency written over every onboarding record.
                             None keeps the user's choice.
            audit_logger: Where to report mutations and recoveries
            clock: Source of "now", used for IDs, default dates and stamps
        """
        if primary_key == backup_key:
            raise ValueError("Backup slot must differ from the primary slot")
        self._backend = backend
        self._primary_key = primary_key
        self._backup_key = backup_key
        self._forced_currency = forced_currency
        self._audit = audit_logger or AuditLogger()
        self._clock = clock

    @property
    def backend(self) -> KeyValueBackend:
        return self._backend

    @property
    def forced_currency(self) -> Optional[str]:
        return self._forced_currency

    # =========================================================================
    # AGGREGATE I/O
    # =========================================================================

    def _load_slot(self, key: str, is_backup: bool) -> tuple[Optional[bytes], Optional[UserData]]:
        """Raw bytes and parsed aggregate of a slot; (None, None) if empty or unusable."""
        try:
            raw = self._backend.get(key)
        except StorageError as e:
            self._audit.log(AuditEventBuilder.slot_unreadable(key, is_backup, str(e)))
            return None, None

        if raw is None:
            return None, None

        try:
            return raw, UserData.model_validate_json(raw)
        except ValidationError as e:
            self._audit.log(
                AuditEventBuilder.slot_unreadable(key, is_backup, f"{e.error_count()} validation errors")
            )
            return None, None
        except ValueError as e:
            self._audit.log(AuditEventBuilder.slot_unreadable(key, is_backup, str(e)))
            return None, None

    def _normalize_currency(self, onboarding: Optional[OnboardingData]) -> Optional[OnboardingData]:
        if onboarding is None or self._forced_currency is None:
            return onboarding
        if onboarding.currency == self._forced_currency:
            return onboarding
        return onboarding.model_copy(update={"currency": self._forced_currency})

    def get_user_data(self) -> UserData:
        """
        Load the aggregate. Never raises.

        - A stored onboarding currency other than the forced one is fixed
          and written back immediately.
        - A missing or corrupt primary slot falls back to the backup slot,
          which is then copied into the primary slot.
        - If neither slot is usable a fresh, empty aggregate is returned.
        """
        _, data = self._load_slot(self._primary_key, is_backup=False)

        if data is not None:
            normalized = self._normalize_currency(data.onboarding)
            if normalized is not data.onboarding:
                self._audit.log(
                    AuditEventBuilder.currency_normalized(
                        data.onboarding.currency, normalized.currency
                    )
                )
                data = data.model_copy(update={"onboarding": normalized})
                self.save_user_data(data)
            return data

        backup_raw, backup = self._load_slot(self._backup_key, is_backup=True)
        if backup is not None:
            try:
                self._backend.set(self._primary_key, backup_raw)
                self._audit.log(
                    AuditEventBuilder.backup_restored(self._backup_key, self._primary_key)
                )
            except StorageError as e:
                self._audit.log(
                    AuditEventBuilder.save_failed(self._primary_key, "restore", str(e))
                )
            return backup.model_copy(
                update={"onboarding": self._normalize_currency(backup.onboarding)}
            )

        return UserData(last_updated=self._clock())

    def save_user_data(self, data: Union[UserData, Mapping[str, Any]]) -> StoreResult:
        """
        Write the aggregate, keeping the previous one as backup.

        The onboarding currency is forced and ``lastUpdated`` is stamped
        before writing. The persisted aggregate is returned as the result
        value on success.
        """
        try:
            if not isinstance(data, UserData):
                data = UserData.model_validate(data)
        except ValidationError as e:
            return StoreResult.failure(OperationStatus.VALIDATION_ERROR, str(e))

        data = data.model_copy(
            update={
                "onboarding": self._normalize_currency(data.onboarding),
                "last_updated": self._clock(),
            }
        )

        try:
            payload = data.model_dump_json(by_alias=True).encode("utf-8")
        except PydanticSerializationError as e:
            self._audit.log(
                AuditEventBuilder.save_failed(self._primary_key, "serialization", str(e))
            )
            return StoreResult.failure(OperationStatus.SERIALIZATION_ERROR, str(e))

        self._refresh_backup()

        try:
            self._backend.set(self._primary_key, payload)
        except StorageFullError as e:
            self._audit.log(
                AuditEventBuilder.save_failed(self._primary_key, "storage_full", str(e))
            )
            return StoreResult.failure(OperationStatus.STORAGE_FULL, str(e))
        except StorageError as e:
            self._audit.log(
                AuditEventBuilder.save_failed(self._primary_key, "storage_error", str(e))
            )
            return StoreResult.failure(OperationStatus.STORAGE_ERROR, str(e))

        self._audit.log(AuditEventBuilder.data_saved(self._primary_key, len(payload)))
        return StoreResult.success(data)

    def _refresh_backup(self) -> None:
        """Copy the current primary bytes into the backup slot (best effort)."""
        try:
            current = self._backend.get(self._primary_key)
            if current:
                self._backend.set(self._backup_key, current)
        except StorageError as e:
            self._audit.log(AuditEventBuilder.backup_write_failed(self._backup_key, str(e)))

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    def add_transaction(
        self,
        transaction: Union[TransactionDraft, Mapping[str, Any]],
    ) -> StoreResult:
        """
        Record a new transaction at the front of the list (newest first).

        The created Transaction is the result value, even when the write
        itself failed, so the caller can still show or retry it.
        """
        try:
            if not isinstance(transaction, TransactionDraft):
                transaction = TransactionDraft.model_validate(transaction)
        except ValidationError as e:
            return StoreResult.failure(OperationStatus.VALIDATION_ERROR, str(e))

        now = self._clock()
        created = Transaction(
            id=generate_id("txn", now),
            amount=transaction.amount,
            category=transaction.category,
            type=transaction.type,
            description=transaction.description,
            date=transaction.date or now,
            notes=transaction.notes,
        )

        data = self.get_user_data()
        data.transactions.insert(0, created)
        result = self.save_user_data(data)

        if result:
            self._audit.log(
                AuditEventBuilder.transaction_added(created.id, created.amount, created.type.value)
            )
            return StoreResult.success(created)
        return result.model_copy(update={"value": created})

    def get_transactions(self) -> list[Transaction]:
        """All transactions, newest first."""
        return self.get_user_data().transactions

    def get_transactions_by_month(self, year: int, month: int) -> list[Transaction]:
        """Transactions in ``month`` (zero-based: 0 = January) of ``year``."""
        return aggregation.transactions_in_month(self.get_transactions(), year, month)

    def get_current_month_transactions(self) -> list[Transaction]:
        now = as_local(self._clock())
        return self.get_transactions_by_month(now.year, now.month - 1)

    def delete_transaction(self, transaction_id: str) -> StoreResult:
        """Remove a transaction by ID. Unknown IDs are a no-op."""
        data = self.get_user_data()
        remaining = [t for t in data.transactions if t.id != transaction_id]
        if len(remaining) == len(data.transactions):
            return StoreResult.unchanged()

        data.transactions = remaining
        result = self.save_user_data(data)
        if result:
            self._audit.log(
                AuditEventBuilder.entity_changed(
                    AuditEventType.TRANSACTION_DELETED, "transaction", transaction_id
                )
            )
            return StoreResult.success()
        return result

    def update_transaction(
        self,
        transaction_id: str,
        updates: Mapping[str, Any],
    ) -> StoreResult:
        """Shallow-merge ``updates`` into a transaction. Unknown IDs are a no-op."""
        data = self.get_user_data()
        for index, existing in enumerate(data.transactions):
            if existing.id == transaction_id:
                break
        else:
            return StoreResult.unchanged()

        try:
            updated = _merge(existing, updates, TransactionDraft)
        except (ValidationError, ValueError) as e:
            return StoreResult.failure(OperationStatus.VALIDATION_ERROR, str(e))

        data.transactions[index] = updated
        result = self.save_user_data(data)
        if result:
            self._audit.log(
                AuditEventBuilder.entity_changed(
                    AuditEventType.TRANSACTION_UPDATED, "transaction", transaction_id, sorted(updates)
                )
            )
            return StoreResult.success(updated)
        return result

    # =========================================================================
    # MONTHLY AGGREGATION
    # =========================================================================

    def get_monthly_spending(self, year: int, month: int) -> MonthlySpending:
        """Needs / wants / notImportant / total for ``month`` (zero-based) of ``year``."""
        return aggregation.monthly_spending(self.get_transactions(), year, month)

    def get_current_month_spending(self) -> MonthlySpending:
        now = as_local(self._clock())
        return self.get_monthly_spending(now.year, now.month - 1)

    def get_available_months(self) -> list[aggregation.MonthKey]:
        """Months that have transactions, newest first."""
        return aggregation.available_months(self.get_transactions())

    def get_monthly_summary(self, year: int, month: int) -> aggregation.MonthlySummary:
        """Spending, savings rate and goal progress for one month."""
        data = self.get_user_data()
        return aggregation.monthly_summary(
            data.transactions,
            year,
            month,
            onboarding=data.onboarding,
            goals=data.savings_goals,
        )

    # =========================================================================
    # SAVINGS GOALS
    # =========================================================================

    def add_savings_goal(
        self,
        goal: Union[SavingsGoalDraft, Mapping[str, Any]],
    ) -> StoreResult:
        """Append a new savings goal. The created goal is the result value."""
        try:
            if not isinstance(goal, SavingsGoalDraft):
                goal = SavingsGoalDraft.model_validate(goal)
        except ValidationError as e:
            return StoreResult.failure(OperationStatus.VALIDATION_ERROR, str(e))

        now = self._clock()
        created = SavingsGoal(
            id=generate_id("goal", now),
            created_at=now,
            **goal.model_dump(),
        )

        data = self.get_user_data()
        data.savings_goals.append(created)
        result = self.save_user_data(data)

        if result:
            self._audit.log(
                AuditEventBuilder.goal_added(created.id, created.name, created.target_amount)
            )
            return StoreResult.success(created)
        return result.model_copy(update={"value": created})

    def get_savings_goals(self) -> list[SavingsGoal]:
        return self.get_user_data().savings_goals

    def update_savings_goal(
        self,
        goal_id: str,
        updates: Mapping[str, Any],
    ) -> StoreResult:
        """Shallow-merge ``updates`` into a goal. Unknown IDs are a no-op."""
        data = self.get_user_data()
        for index, existing in enumerate(data.savings_goals):
            if existing.id == goal_id:
                break
        else:
            return StoreResult.unchanged()

        try:
            updated = _merge(existing, updates, SavingsGoalDraft)
        except (ValidationError, ValueError) as e:
            return StoreResult.failure(OperationStatus.VALIDATION_ERROR, str(e))

        data.savings_goals[index] = updated
        result = self.save_user_data(data)
        if result:
            self._audit.log(
                AuditEventBuilder.entity_changed(
                    AuditEventType.GOAL_UPDATED, "goal", goal_id, sorted(updates)
                )
            )
            return StoreResult.success(updated)
        return result

    def deposit_to_savings_goal(self, goal_id: str, amount: float) -> StoreResult:
        """
        Add money to a goal, never taking it past its target.

        Returns the updated goal. Unknown IDs are a no-op.
        """
        if amount <= 0:
            return StoreResult.failure(
                OperationStatus.VALIDATION_ERROR, "Deposit amount must be positive"
            )

        data = self.get_user_data()
        for index, existing in enumerate(data.savings_goals):
            if existing.id == goal_id:
                break
        else:
            return StoreResult.unchanged()

        new_amount = min(existing.current_amount + amount, existing.target_amount)
        applied = max(new_amount - existing.current_amount, 0.0)
        updated = existing.model_copy(
            update={"current_amount": max(new_amount, existing.current_amount)}
        )

        data.savings_goals[index] = updated
        result = self.save_user_data(data)
        if result:
            self._audit.log(AuditEventBuilder.goal_deposit(goal_id, amount, applied))
            return StoreResult.success(updated)
        return result

    def delete_savings_goal(self, goal_id: str) -> StoreResult:
        """Remove a goal by ID. Unknown IDs are a no-op."""
        data = self.get_user_data()
        remaining = [g for g in data.savings_goals if g.id != goal_id]
        if len(remaining) == len(data.savings_goals):
            return StoreResult.unchanged()

        data.savings_goals = remaining
        result = self.save_user_data(data)
        if result:
            self._audit.log(
                AuditEventBuilder.entity_changed(AuditEventType.GOAL_DELETED, "goal", goal_id)
            )
            return StoreResult.success()
        return result

    # =========================================================================
    # ONBOARDING
    # =========================================================================

    def save_onboarding_data(
        self,
        onboarding: Union[OnboardingData, Mapping[str, Any]],
    ) -> StoreResult:
        """Replace the onboarding record wholesale (currency forced)."""
        try:
            if not isinstance(onboarding, OnboardingData):
                onboarding = OnboardingData.model_validate(onboarding)
        except ValidationError as e:
            return StoreResult.failure(OperationStatus.VALIDATION_ERROR, str(e))

        onboarding = self._normalize_currency(onboarding)
        data = self.get_user_data()
        data.onboarding = onboarding
        result = self.save_user_data(data)
        if result:
            self._audit.log(AuditEventBuilder.onboarding_saved(onboarding.currency))
            return StoreResult.success(onboarding)
        return result

    def get_onboarding_data(self) -> Optional[OnboardingData]:
        return self._normalize_currency(self.get_user_data().onboarding)

    # =========================================================================
    # IMPORT / EXPORT
    # =========================================================================

    def export_data(self) -> str:
        """The whole aggregate as pretty-printed JSON."""
        return self.get_user_data().model_dump_json(by_alias=True, indent=2)

    def import_data(self, json_text: Union[str, bytes]) -> StoreResult:
        """
        Replace the aggregate with an exported one.

        Input that is not JSON, not a JSON object, or does not match the
        aggregate schema is rejected and nothing is written. The result is
        falsy in every rejected case.
        """
        try:
            parsed = json.loads(json_text)
        except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
            self._audit.log(AuditEventBuilder.import_rejected("invalid_json", str(e)))
            return StoreResult.failure(OperationStatus.VALIDATION_ERROR, f"Invalid JSON: {e}")

        if not isinstance(parsed, dict):
            message = f"Expected a JSON object, got {type(parsed).__name__}"
            self._audit.log(AuditEventBuilder.import_rejected("not_an_object", message))
            return StoreResult.failure(OperationStatus.VALIDATION_ERROR, message)

        try:
            data = UserData.model_validate(parsed)
        except ValidationError as e:
            self._audit.log(AuditEventBuilder.import_rejected("schema", str(e)))
            return StoreResult.failure(OperationStatus.VALIDATION_ERROR, str(e))

        result = self.save_user_data(data)
        if result:
            self._audit.log(
                AuditEventBuilder.data_imported(len(data.transactions), len(data.savings_goals))
            )
        return result

    def clear_all_data(self) -> StoreResult:
        """Remove both the primary and the backup slot."""
        errors = []
        for key in (self._primary_key, self._backup_key):
            try:
                self._backend.delete(key)
            except StorageError as e:
                errors.append(str(e))

        if errors:
            message = "; ".join(errors)
            self._audit.log(AuditEventBuilder.save_failed(self._primary_key, "clear", message))
            return StoreResult.failure(OperationStatus.STORAGE_ERROR, message)

        self._audit.log(AuditEventBuilder.data_cleared([self._primary_key, self._backup_key]))
        return StoreResult.success()


def create_backend(settings: Optional[StorageSettings] = None) -> KeyValueBackend:
    """Build the backend selected in settings."""
    settings = settings or get_settings().storage
    if settings.backend == "memory":
        return InMemoryBackend(quota_bytes=settings.memory_quota_bytes)
    if settings.backend == "google_sheets":
        return GoogleSheetsBackend()
    return JsonFileBackend(settings.data_dir)


def create_finance_store(
    settings: Optional[StorageSettings] = None,
    backend: Optional[KeyValueBackend] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> FinanceStore:
    """
    Create a FinanceStore wired from configuration.

    Pass ``backend`` to override the configured one (tests do this with an
    InMemoryBackend).
    """
    settings = settings or get_settings().storage
    return FinanceStore(
        backend=backend or create_backend(settings),
        primary_key=settings.primary_key,
        backup_key=settings.backup_key,
        forced_currency=settings.forced_currency,
        audit_logger=audit_logger,
    )
