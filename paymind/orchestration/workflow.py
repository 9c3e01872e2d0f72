"""Five-step collection workflow driven on a single asyncio task."""

from __future__ import annotations

import logging
from time import perf_counter

from paymind.core.config import get_config
from paymind.models.base import utcnow
from paymind.models.enums import LogType, RunStatus
from paymind.orchestration.backends import WorkflowBackend
from paymind.orchestration.cancellation import CancellationToken, WorkflowCancelled
from paymind.orchestration.replies import ReplySource, SimulatedReplySource
from paymind.orchestration.state import (
    ANALYZE_STEP,
    GENERATE_STEP,
    LOAD_STEP,
    RESPOND_STEP,
    SYSTEM_AGENT,
    WAIT_STEP,
    WorkflowState,
    build_run_record,
)
from paymind.orchestration.state_machine import AgentStatus, StepStatus
from paymind.schemas.agents import AgentRequest
from paymind.schemas.workflow_runs import WorkflowRunRead
from paymind.services.invoice_stats import compute_stats, is_reminder_candidate

logger = logging.getLogger(__name__)


class WorkflowOrchestrator:
    """Run Load, Analyze, Generate, Wait and Respond strictly in order.

    Every backend call and the wait timer go through the run's
    ``CancellationToken``. Cancelling leaves agents idle and returns the
    interrupted step to pending; any other failure marks the agents and the
    interrupted step as errored. Either way ``run`` returns the state instead
    of raising, and whatever the backend already persisted stays persisted.
    """

    def __init__(
        self,
        backend: WorkflowBackend,
        options: AgentRequest | None = None,
        state: WorkflowState | None = None,
        reply_source: ReplySource | None = None,
        wait_seconds: float | None = None,
        batch_size: int | None = None,
    ) -> None:
        config = get_config()
        self.backend = backend
        self.options = options or AgentRequest(provider=config.DEFAULT_PROVIDER)
        self.state = state or WorkflowState()
        self.reply_source = reply_source or SimulatedReplySource()
        self.wait_seconds = config.WORKFLOW_WAIT_SECONDS if wait_seconds is None else wait_seconds
        self.batch_size = batch_size or config.REMINDER_BATCH_SIZE
        self.token = CancellationToken()
        self._agent_started: dict[str, float] = {}

    def cancel(self) -> None:
        """Stop the current run at its next (or current) suspension point."""
        self.token.cancel()

    async def run(self) -> WorkflowState:
        state = self.state
        if state.is_running:
            raise RuntimeError("Workflow is already running")

        self.token = CancellationToken()
        state.reset()
        state.is_running = True
        state.status = RunStatus.RUNNING
        state.started_at = utcnow()
        state.provider = self.options.provider.value
        state.model = self.options.model
        state.add_log(SYSTEM_AGENT, "Workflow started")
        logger.info(
            "workflow.started",
            extra={"event": "workflow.started", "provider": state.provider, "model": state.model},
        )

        try:
            await self._load()
            await self._analyze()
            await self._generate()
            await self._wait()
            await self._respond()
        except WorkflowCancelled:
            self._stop()
        except Exception as exc:
            self._fail(exc)
        else:
            state.status = RunStatus.COMPLETED
            state.add_log(SYSTEM_AGENT, "Workflow completed", LogType.SUCCESS)
            logger.info("workflow.completed", extra={"event": "workflow.completed"})
        finally:
            state.is_running = False
            state.finished_at = utcnow()
        return state

    def save_run(self, name: str | None = None) -> WorkflowRunRead:
        """Persist the current state as a history record through the backend."""
        return self.backend.save_run(build_run_record(self.state, name=name))

    # Steps

    async def _load(self) -> None:
        state = self.state
        state.current_step = LOAD_STEP
        invoices = await self.token.run(self.backend.list_invoices)
        if not invoices:
            raise ValueError("No invoices loaded; upload a CSV first")
        state.invoices = invoices
        state.set_step_status(LOAD_STEP, StepStatus.COMPLETED)
        state.add_log(SYSTEM_AGENT, f"Loaded {len(invoices)} invoices", LogType.SUCCESS)

    async def _analyze(self) -> None:
        state = self.state
        self._begin(ANALYZE_STEP)
        state.add_log(state.step(ANALYZE_STEP).agent, "Analyzing invoices")
        result = await self.token.run(self.backend.analyze, self.options)
        state.analysis_report = result.analysis
        state.stats = compute_stats(state.invoices)
        state.provider = result.provider
        state.model = result.model
        self._finish(
            ANALYZE_STEP,
            f"Analysis complete: {state.stats.overdue_invoices} overdue, "
            f"{state.stats.disputed_invoices} disputed",
        )

    async def _generate(self) -> None:
        state = self.state
        self._begin(GENERATE_STEP)
        agent = state.step(GENERATE_STEP).agent
        eligible = sorted(
            (invoice for invoice in state.invoices if is_reminder_candidate(invoice)),
            key=lambda invoice: invoice.days_overdue,
            reverse=True,
        )[: self.batch_size]
        if not eligible:
            state.add_log(agent, "No overdue or disputed invoices to remind", LogType.WARNING)

        for invoice in eligible:
            self.token.raise_if_cancelled()
            reminder = await self.token.run(self.backend.generate_reminder, invoice.invoice_id, self.options)
            state.generated_messages.append(reminder)
            state.add_log(agent, f"Reminder drafted for {invoice.customer_name} via {reminder.channel.value}")

        self._finish(GENERATE_STEP, f"Generated {len(state.generated_messages)} reminders")

    async def _wait(self) -> None:
        state = self.state
        state.current_step = WAIT_STEP
        state.set_step_status(WAIT_STEP, StepStatus.RUNNING)
        state.add_log(SYSTEM_AGENT, "Waiting for customer replies")
        await self.token.sleep(self.wait_seconds)
        state.set_step_status(WAIT_STEP, StepStatus.COMPLETED)

    async def _respond(self) -> None:
        state = self.state
        self._begin(RESPOND_STEP)
        agent = state.step(RESPOND_STEP).agent
        reply = self.reply_source(state, self.options.language)
        result = await self.token.run(
            self.backend.handle_response,
            reply.customer_message,
            reply.invoice_id,
            self.options,
        )
        state.response_analysis = result.analysis
        if result.analysis.parse_status == "fallback":
            state.add_log(agent, "Reply could not be parsed; using fallback analysis", LogType.WARNING)
        self._finish(
            RESPOND_STEP,
            f"Reply classified as {result.analysis.intent} ({result.analysis.risk_level.value} risk)",
        )

    # Transitions

    def _begin(self, step_id: int) -> None:
        state = self.state
        step = state.step(step_id)
        state.current_step = step_id
        state.set_step_status(step_id, StepStatus.RUNNING)
        state.set_agent_status(step.agent, AgentStatus.RUNNING)
        self._agent_started[step.agent] = perf_counter()
        logger.info("workflow.step.started", extra={"event": "workflow.step.started", "step": step.name})

    def _finish(self, step_id: int, message: str) -> None:
        state = self.state
        step = state.step(step_id)
        started = self._agent_started.pop(step.agent, perf_counter())
        state.set_step_status(step_id, StepStatus.COMPLETED)
        state.set_agent_status(step.agent, AgentStatus.COMPLETED, duration=round(perf_counter() - started, 2))
        state.add_log(step.agent, message, LogType.SUCCESS)
        logger.info("workflow.step.completed", extra={"event": "workflow.step.completed", "step": step.name})

    def _stop(self) -> None:
        state = self.state
        running = state.running_step()
        if running is not None:
            state.set_step_status(running.id, StepStatus.PENDING)
        for agent in state.agents:
            state.set_agent_status(agent.id, AgentStatus.IDLE)
        self._agent_started.clear()
        state.status = RunStatus.CANCELLED
        state.add_log(SYSTEM_AGENT, "Workflow stopped by user", LogType.WARNING)
        logger.info(
            "workflow.cancelled",
            extra={"event": "workflow.cancelled", "step": running.name if running else None},
        )

    def _fail(self, exc: Exception) -> None:
        state = self.state
        running = state.running_step()
        if running is not None:
            state.set_step_status(running.id, StepStatus.ERROR)
        for agent in state.agents:
            state.set_agent_status(agent.id, AgentStatus.ERROR)
        self._agent_started.clear()
        message = str(exc) or exc.__class__.__name__
        state.status = RunStatus.ERROR
        state.error = message
        state.add_log(SYSTEM_AGENT, f"Workflow failed: {message}", LogType.ERROR)
        logger.error(
            "workflow.failed",
            extra={"event": "workflow.failed", "step": running.name if running else None, "error": message},
        )
