"""Integration tests for the application flows (in-memory storage)."""

import asyncio
from datetime import datetime

import pytest

from wealthwise.agents import AdvisoryAgent, ChatAgent, OfflineChatAgent, RuleBasedAdvisoryAgent
from wealthwise.engine import GoalEvaluator, add_item, empty_ledger
from wealthwise.models.assets import AssetCategory, AssetItem, UserAssets
from wealthwise.models.audit import AuditEventType
from wealthwise.models.goals import (
    AnalysisSource,
    ChatMessage,
    ChatRole,
    GoalInputs,
    GoalType,
)
from wealthwise.orchestrator import (
    AdvisorChatFlow,
    PlannerFlow,
    PortfolioFlow,
    create_app_components,
)
from wealthwise.services.storage import InMemoryKeyValueStore, LedgerRepository
from wealthwise.validation import LedgerValidationError


class RemoteAdvisorDown(AdvisoryAgent):
    is_remote = True

    async def analyze_goal(self, ctx):
        return None


class EchoChat(ChatAgent):
    async def stream_reply(self, history, message):
        yield "You said: "
        yield message


@pytest.fixture
def portfolio(repository, audit_logger):
    return PortfolioFlow(repository=repository, audit_logger=audit_logger)


class TestPortfolioFlow:
    """Tests for PortfolioFlow."""

    @pytest.mark.asyncio
    async def test_save_creates_snapshot(self, portfolio, ledger, fixed_now, audit_storage):
        """A save stores the ledger and one snapshot, and audits both."""
        result = await portfolio.save_ledger(ledger, now=fixed_now)

        assert result.snapshot.month_key == "2024.06"
        assert result.replaced_existing is False
        assert await portfolio.load_ledger() == ledger

        types = [e.event_type for e in audit_storage.events]
        assert types == [AuditEventType.LEDGER_SAVED, AuditEventType.SNAPSHOT_CREATED]
        assert audit_storage.events[0].correlation_id == audit_storage.events[1].correlation_id

    @pytest.mark.asyncio
    async def test_second_save_same_month_replaces(self, portfolio, repository, ledger, fixed_now):
        """Saving again in the month replaces its snapshot."""
        await portfolio.save_ledger(empty_ledger(), now=datetime(2024, 6, 1))
        result = await portfolio.save_ledger(ledger, now=fixed_now)

        snapshots = await repository.load_snapshots()
        assert result.replaced_existing is True
        assert len(snapshots) == 1
        assert snapshots[0].net_worth == 1803000

    @pytest.mark.asyncio
    async def test_invalid_ledger_is_not_saved(self, portfolio, repository, audit_storage):
        """Structural errors block the save and are audited."""
        bad = UserAssets(
            liquid=[AssetItem(id="x", name="A"), AssetItem(id="x", name="B")],
        )
        with pytest.raises(LedgerValidationError):
            await portfolio.save_ledger(bad)

        assert await repository.load_snapshots() == []
        assert (await repository.load()).is_empty()
        assert audit_storage.events[-1].event_type is AuditEventType.LEDGER_VALIDATION_FAILED

    @pytest.mark.asyncio
    async def test_concurrent_saves_last_writer_wins(self, portfolio, repository, fixed_now):
        """Concurrent saves are serialised."""
        first = add_item(empty_ledger(), AssetCategory.LIQUID, amount=1)
        second = add_item(empty_ledger(), AssetCategory.LIQUID, amount=2)

        await asyncio.gather(
            portfolio.save_ledger(first, now=fixed_now),
            portfolio.save_ledger(second, now=fixed_now),
        )

        snapshots = await repository.load_snapshots()
        assert len(snapshots) == 1
        assert (await repository.load()).liquid[0].amount == snapshots[0].net_worth

    @pytest.mark.asyncio
    async def test_dashboard(self, portfolio, ledger, fixed_now):
        """The dashboard combines totals, allocation, projection and trend."""
        await portfolio.save_ledger(ledger, now=fixed_now)
        summary = await portfolio.dashboard(now=fixed_now)

        assert summary.net_worth == 1803000
        assert summary.total_assets == 2603000
        assert summary.total_liabilities == 800000
        assert summary.annual_income == 180000
        assert len(summary.allocation) == 3
        assert set(summary.projection.horizons) == {5, 10}
        assert len(summary.history) == 7
        assert summary.history[-1].value == 1803000
        assert not summary.history[-1].is_backfilled
        assert summary.last_updated == fixed_now

    @pytest.mark.asyncio
    async def test_dashboard_of_new_store(self, portfolio, fixed_now):
        """Nothing stored: an all-zero dashboard."""
        summary = await portfolio.dashboard(now=fixed_now)
        assert summary.net_worth == 0
        assert summary.allocation == []
        assert [item.value for item in summary.history] == [0] * 7
        assert summary.last_updated is None

    @pytest.mark.asyncio
    async def test_corrupt_store_still_renders(self, audit_logger, fixed_now):
        """Corrupt stored data falls back to an empty ledger."""
        store = InMemoryKeyValueStore({
            "ww_current_assets": "not json",
            "ww_snapshots": "[",
        })
        flow = PortfolioFlow(LedgerRepository(store, audit_logger=audit_logger), audit_logger=audit_logger)
        summary = await flow.dashboard(now=fixed_now)
        assert summary.net_worth == 0

    @pytest.mark.asyncio
    async def test_user_lifecycle(self, portfolio, audit_storage):
        """Creating a user seeds data; clearing removes it."""
        assert await portfolio.get_user() is None
        await portfolio.create_user("Sam")
        assert (await portfolio.load_ledger()).find("inc1") is not None

        await portfolio.clear_data()
        assert await portfolio.get_user() is None
        assert (await portfolio.load_ledger()).is_empty()

        types = [e.event_type for e in audit_storage.events]
        assert AuditEventType.USER_CREATED in types
        assert AuditEventType.DATA_CLEARED in types

    @pytest.mark.asyncio
    async def test_legacy_storage_save_and_dashboard(self, legacy_store, audit_logger, ledger, fixed_now):
        """Data from the earlier browser build keeps working after a save."""
        repository = LedgerRepository(legacy_store, audit_logger=audit_logger, clock=lambda: fixed_now)
        flow = PortfolioFlow(repository, audit_logger=audit_logger)

        before = await flow.dashboard(now=fixed_now)
        assert before.last_updated == datetime(2024, 5, 20, 18, 45)

        await flow.save_ledger(ledger, now=fixed_now)
        summary = await flow.dashboard(now=fixed_now)

        by_month = {item.month_key: item for item in summary.history}
        assert by_month["2024.04"].value == 28000
        assert by_month["2024.05"].value == 30000
        assert by_month["2024.06"].value == 1803000
        assert not by_month["2024.05"].is_backfilled
        assert summary.last_updated == fixed_now


class TestPlannerFlow:
    """Tests for PlannerFlow."""

    @pytest.fixture
    def inputs(self):
        return GoalInputs(
            type=GoalType.RETIREMENT,
            current_principal=0,
            monthly_savings=1000,
            expected_return_rate=0,
            target_monthly_expense=5000,
        )

    @pytest.mark.asyncio
    async def test_offline_analysis(self, inputs, audit_logger, audit_storage):
        """With the rule-based advisor no fallback is recorded."""
        flow = PlannerFlow(GoalEvaluator(advisor=RuleBasedAdvisoryAgent()), audit_logger)
        ctx, result = await flow.analyze(inputs)

        assert ctx.required_amount == 1500000
        assert result.evaluation == "Major Difficulty"
        types = [e.event_type for e in audit_storage.events]
        assert types == [AuditEventType.GOAL_ANALYZED]

    @pytest.mark.asyncio
    async def test_remote_failure_is_audited(self, inputs, audit_logger, audit_storage):
        """A remote advisor that gives up is recorded as a fallback."""
        flow = PlannerFlow(GoalEvaluator(advisor=RemoteAdvisorDown()), audit_logger)
        _, result = await flow.analyze(inputs)

        assert result.source is AnalysisSource.OFFLINE
        types = [e.event_type for e in audit_storage.events]
        assert types == [AuditEventType.ANALYSIS_FALLBACK, AuditEventType.GOAL_ANALYZED]

    def test_evaluate(self, inputs):
        """evaluate is the synchronous math only."""
        ctx = PlannerFlow().evaluate(inputs)
        assert ctx.projected_amount == 240000


class TestAdvisorChatFlow:
    """Tests for AdvisorChatFlow."""

    @pytest.mark.asyncio
    async def test_stream_reply(self):
        """Fragments are relayed unchanged."""
        flow = AdvisorChatFlow(EchoChat())
        fragments = [f async for f in flow.stream_reply([], "hello")]
        assert fragments == ["You said: ", "hello"]

    @pytest.mark.asyncio
    async def test_reply_extends_history(self):
        """reply returns the conversation with both new turns."""
        history = [ChatMessage(role=ChatRole.MODEL, text="Welcome")]
        flow = AdvisorChatFlow(EchoChat())
        conversation = await flow.reply(history, "hi")

        assert len(history) == 1
        assert [m.role for m in conversation] == [ChatRole.MODEL, ChatRole.USER, ChatRole.MODEL]
        assert conversation[-1].text == "You said: hi"


class TestCreateAppComponents:
    """Tests for the component factory."""

    @pytest.mark.asyncio
    async def test_offline_components(self):
        """Without configuration everything runs in memory and offline."""
        portfolio, planner, chat, sheets_client = create_app_components(use_storage=True)

        assert sheets_client is None
        assert isinstance(chat._agent, OfflineChatAgent)
        assert (await portfolio.load_ledger()).is_empty()

        inputs = GoalInputs(
            type=GoalType.PURCHASE,
            monthly_savings=100,
            target_amount=1200,
            years_to_goal=1,
        )
        _, result = await planner.analyze(inputs)
        assert result.evaluation == "Feasible"
