"""
Main Orchestrator for WealthWise

This module ties together all the components and defines the
end-to-end flows for:
1. Portfolio (load ledger -> edit -> validate -> save -> snapshot)
2. Planner (goal inputs -> projection -> advisor or offline analysis)
3. Advisor chat (history + message -> streamed reply)

DESIGN DECISION: The orchestrator enforces the boundaries:
- The engine never touches storage; flows load, compute, then save
- Every save produces exactly one snapshot for its month
- Every advisor call ends in an answer, never an error state
- Every step is audited
"""

import asyncio
from collections.abc import AsyncIterator, Sequence
from datetime import date, datetime
from typing import Optional, Union
from uuid import UUID

import structlog
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from wealthwise.agents import ChatAgent, create_advisory_agent, create_chat_agent
from wealthwise.audit import AuditLogger, create_correlation_id
from wealthwise.config import get_settings
from wealthwise.engine import (
    GoalEvaluator,
    HistorySynthesizer,
    allocation_breakdown,
    category_totals,
    net_worth,
    total_assets,
    total_liabilities,
    wealth_projection,
)
from wealthwise.models.assets import (
    AllocationSlice,
    AssetCategory,
    AssetHistoryItem,
    AssetSnapshot,
    UserAssets,
    UserProfile,
    WealthProjection,
)
from wealthwise.models.goals import (
    AnalysisSource,
    ChatMessage,
    ChatRole,
    GoalAnalysisResult,
    GoalContext,
    GoalInputs,
)
from wealthwise.models.validation import ValidationResult
from wealthwise.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsKeyValueStore,
    InMemoryKeyValueStore,
    KeyValueStoreInterface,
    LedgerRepository,
    LedgerRepositoryInterface,
)
from wealthwise.validation import LedgerValidationError, LedgerValidator


logger = structlog.get_logger(__name__)


class LedgerSaveResult(BaseModel):
    """Outcome of a successful ledger save."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    snapshot: AssetSnapshot
    replaced_existing: bool = Field(
        description="True if a snapshot for the same month was overwritten"
    )
    validation: ValidationResult


class DashboardSummary(BaseModel):
    """Everything the dashboard shows, derived from one ledger read."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    net_worth: float
    total_assets: float
    total_liabilities: float
    annual_income: float
    category_totals: dict[AssetCategory, float]
    allocation: list[AllocationSlice]
    projection: WealthProjection
    history: list[AssetHistoryItem]
    last_updated: Optional[datetime] = None


class PortfolioFlow:
    """
    Orchestrates ledger persistence and the views derived from it.

    Flow for a save:
    1. Validate -> structural errors block the save
    2. Save the ledger
    3. Snapshot -> replaces any snapshot of the same month
    4. Save the snapshot list (stamps last-updated)
    5. Audit

    Saves are serialised; concurrent callers are applied in order and
    the last one wins.
    """

    def __init__(
        self,
        repository: LedgerRepositoryInterface,
        validator: Optional[LedgerValidator] = None,
        synthesizer: Optional[HistorySynthesizer] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repository = repository
        self._validator = validator or LedgerValidator()
        self._synthesizer = synthesizer or HistorySynthesizer()
        self._audit = audit_logger or AuditLogger()
        self._settings = get_settings().engine
        self._save_lock = asyncio.Lock()

    async def load_ledger(self) -> UserAssets:
        return await self._repository.load()

    async def save_ledger(
        self,
        ledger: UserAssets,
        now: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerSaveResult:
        """
        Validate, persist and snapshot a ledger.

        Raises:
            LedgerValidationError: If the ledger fails structural checks
            StorageError: If the backend rejects a write
        """
        correlation_id = correlation_id or create_correlation_id()

        async with self._save_lock:
            validation = self._validator.validate(ledger)
            if not validation.is_valid:
                await self._audit.log_validation_failed(
                    issues=[issue.model_dump() for issue in validation.issues],
                    correlation_id=correlation_id,
                )
                raise LedgerValidationError(validation)

            await self._repository.save(ledger)

            existing = await self._repository.load_snapshots()
            snapshot, updated = self._synthesizer.create_snapshot(existing, ledger, now)
            replaced = any(s.month_key == snapshot.month_key for s in existing)
            await self._repository.save_snapshots(updated)

        await self._audit.log_ledger_saved(
            item_count=len(ledger.all_items()),
            net_worth=snapshot.net_worth,
            correlation_id=correlation_id,
        )
        await self._audit.log_snapshot_created(
            snapshot_id=snapshot.id,
            month_key=snapshot.month_key,
            net_worth=snapshot.net_worth,
            replaced=replaced,
            correlation_id=correlation_id,
        )

        return LedgerSaveResult(
            snapshot=snapshot,
            replaced_existing=replaced,
            validation=validation,
        )

    async def history(
        self,
        now: Optional[Union[date, datetime]] = None,
    ) -> list[AssetHistoryItem]:
        """Net-worth trend ending with the current month."""
        ledger = await self._repository.load()
        snapshots = await self._repository.load_snapshots()
        return self._synthesizer.history(snapshots, net_worth(ledger), now)

    async def dashboard(
        self,
        now: Optional[Union[date, datetime]] = None,
    ) -> DashboardSummary:
        """Totals, allocation, projection and trend for the stored ledger."""
        ledger = await self._repository.load()
        snapshots = await self._repository.load_snapshots()
        totals = category_totals(ledger)

        return DashboardSummary(
            net_worth=net_worth(ledger),
            total_assets=total_assets(ledger),
            total_liabilities=total_liabilities(ledger),
            annual_income=totals[AssetCategory.INCOME],
            category_totals=totals,
            allocation=allocation_breakdown(ledger),
            projection=wealth_projection(ledger, self._settings.projection_horizons_list),
            history=self._synthesizer.history(snapshots, net_worth(ledger), now),
            last_updated=await self._repository.load_last_updated(),
        )

    async def get_user(self) -> Optional[UserProfile]:
        return await self._repository.get_user()

    async def create_user(self, name: str) -> UserProfile:
        """Create the local profile (first-time users get the demo ledger)."""
        profile = await self._repository.create_user(name)
        await self._audit.log_user_created(profile.name)
        return profile

    async def clear_data(self) -> None:
        async with self._save_lock:
            await self._repository.clear_data()
        await self._audit.log_data_cleared()


class PlannerFlow:
    """
    Orchestrates goal planning.

    The numbers always come from GoalEvaluator. The advisor, if any, only
    adds the narrative; when it cannot, the offline rules do.
    """

    def __init__(
        self,
        evaluator: Optional[GoalEvaluator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._evaluator = evaluator or GoalEvaluator()
        self._audit = audit_logger or AuditLogger()

    def evaluate(self, inputs: GoalInputs) -> GoalContext:
        return self._evaluator.evaluate(inputs)

    async def analyze(
        self,
        inputs: GoalInputs,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[GoalContext, GoalAnalysisResult]:
        """
        Evaluate a goal and get its narrative analysis.

        Never raises for advisor problems; a remote advisor that did not
        answer is audited as a fallback.
        """
        correlation_id = correlation_id or create_correlation_id()

        ctx = self._evaluator.evaluate(inputs)
        result = await self._evaluator.request_analysis(ctx)

        advisor = self._evaluator.advisor
        if advisor is not None and advisor.is_remote and result.source is AnalysisSource.OFFLINE:
            await self._audit.log_analysis_fallback(
                reason="advisor returned no usable answer",
                correlation_id=correlation_id,
            )

        await self._audit.log_goal_analyzed(
            goal_type=ctx.type.value,
            evaluation=result.evaluation,
            source=result.source.value,
            is_achievable=ctx.is_achievable,
            correlation_id=correlation_id,
        )
        return ctx, result


class AdvisorChatFlow:
    """Relays a conversation to the chat agent."""

    def __init__(self, chat_agent: Optional[ChatAgent] = None):
        self._agent = chat_agent or create_chat_agent()

    def stream_reply(
        self,
        history: Sequence[ChatMessage],
        message: str,
    ) -> AsyncIterator[str]:
        """Stream reply fragments for a new user message."""
        return self._agent.stream_reply(history, message)

    async def reply(
        self,
        history: Sequence[ChatMessage],
        message: str,
    ) -> list[ChatMessage]:
        """
        Collect a full reply and return the extended conversation.

        The input history is not modified.
        """
        fragments = [
            fragment async for fragment in self._agent.stream_reply(history, message)
        ]
        return [
            *history,
            ChatMessage(role=ChatRole.USER, text=message),
            ChatMessage(role=ChatRole.MODEL, text="".join(fragments)),
        ]


def create_app_components(
    use_storage: bool = True,
) -> tuple[PortfolioFlow, PlannerFlow, AdvisorChatFlow, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use Google Sheets when it is configured.
                    Set to False for in-memory storage.

    Returns:
        (portfolio_flow, planner_flow, chat_flow, sheets_client)
    """
    settings = get_settings()
    sheets_client = None
    store: KeyValueStoreInterface
    audit_logger: AuditLogger

    if use_storage and settings.google_sheets.is_configured:
        try:
            sheets_client = GoogleSheetsClient(settings.google_sheets)
            store = GoogleSheetsKeyValueStore(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            store = InMemoryKeyValueStore()
            audit_logger = AuditLogger()
    else:
        store = InMemoryKeyValueStore()
        audit_logger = AuditLogger()

    repository = LedgerRepository(store, audit_logger=audit_logger)

    portfolio_flow = PortfolioFlow(
        repository=repository,
        audit_logger=audit_logger,
    )

    planner_flow = PlannerFlow(
        evaluator=GoalEvaluator(
            advisor=create_advisory_agent(settings.gemini),
            settings=settings.engine,
            timeout_seconds=settings.gemini.analysis_timeout_seconds,
        ),
        audit_logger=audit_logger,
    )

    chat_flow = AdvisorChatFlow(create_chat_agent(settings.gemini))

    return portfolio_flow, planner_flow, chat_flow, sheets_client
