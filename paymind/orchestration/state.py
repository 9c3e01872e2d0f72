"""Explicit workflow view state owned by the orchestrator.

The state is a plain container: rendering code may read it, only the
orchestrator mutates it. Persistence goes through ``to_dict``/``from_dict``
with a schema version so older snapshots are rejected instead of being
half-loaded.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from paymind.models.base import utcnow
from paymind.models.enums import LogType, RunStatus
from paymind.orchestration.state_machine import STEP_STATE_MACHINE, AgentStatus, StepStatus
from paymind.schemas.agents import GeneratedReminder, ResponseAnalysisResult
from paymind.schemas.invoices import AggregateStats, InvoiceRead
from paymind.schemas.workflow_runs import WorkflowLogCreate, WorkflowRunCreate, WorkflowRunRead
from paymind.services.invoice_stats import compute_stats

SCHEMA_VERSION = 1
MAX_LOGS = 100

SYSTEM_AGENT = "system"
PAYMENT_MONITOR = "payment-monitor"
REMINDER_GENERATOR = "reminder-generator"
RESPONSE_HANDLER = "response-handler"

LOAD_STEP, ANALYZE_STEP, GENERATE_STEP, WAIT_STEP, RESPOND_STEP = 1, 2, 3, 4, 5

STEP_DEFINITIONS = (
    (LOAD_STEP, "Load", SYSTEM_AGENT),
    (ANALYZE_STEP, "Analyze", PAYMENT_MONITOR),
    (GENERATE_STEP, "Generate", REMINDER_GENERATOR),
    (WAIT_STEP, "Wait", SYSTEM_AGENT),
    (RESPOND_STEP, "Respond", RESPONSE_HANDLER),
)

AGENT_DEFINITIONS = (
    (PAYMENT_MONITOR, "Payment Monitor", "Analyzes invoices, finds overdue ones and computes priorities"),
    (REMINDER_GENERATOR, "Reminder Generator", "Drafts personalized email, SMS and WhatsApp reminders"),
    (RESPONSE_HANDLER, "Response Handler", "Analyzes customer replies and suggests actions"),
)


class StateVersionError(ValueError):
    """Raised when a persisted state uses an unknown schema version."""


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


@dataclass
class StepState:
    id: int
    name: str
    agent: str
    status: StepStatus = StepStatus.PENDING
    started_at: datetime | None = None
    ended_at: datetime | None = None


@dataclass
class AgentState:
    id: str
    name: str
    description: str = ""
    status: AgentStatus = AgentStatus.IDLE
    duration: float | None = None
    last_run: datetime | None = None


@dataclass
class LogEntry:
    agent: str
    message: str
    type: LogType = LogType.INFO
    timestamp: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


def _default_steps() -> list[StepState]:
    return [StepState(id=step_id, name=name, agent=agent) for step_id, name, agent in STEP_DEFINITIONS]


def _default_agents() -> list[AgentState]:
    return [AgentState(id=agent_id, name=name, description=desc) for agent_id, name, desc in AGENT_DEFINITIONS]


@dataclass
class WorkflowState:
    steps: list[StepState] = field(default_factory=_default_steps)
    agents: list[AgentState] = field(default_factory=_default_agents)
    current_step: int = 0
    is_running: bool = False
    status: RunStatus | None = None
    error: str | None = None
    provider: str | None = None
    model: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    invoices: list[InvoiceRead] = field(default_factory=list)
    analysis_report: str | None = None
    stats: AggregateStats | None = None
    generated_messages: list[GeneratedReminder] = field(default_factory=list)
    response_analysis: ResponseAnalysisResult | None = None
    logs: list[LogEntry] = field(default_factory=list)

    def step(self, step_id: int) -> StepState:
        for step in self.steps:
            if step.id == step_id:
                return step
        raise KeyError(f"Unknown step: {step_id}")

    def agent(self, agent_id: str) -> AgentState:
        for agent in self.agents:
            if agent.id == agent_id:
                return agent
        raise KeyError(f"Unknown agent: {agent_id}")

    def running_step(self) -> StepState | None:
        return next((step for step in self.steps if step.status == StepStatus.RUNNING), None)

    def set_step_status(self, step_id: int, status: StepStatus) -> None:
        step = self.step(step_id)
        STEP_STATE_MACHINE.assert_transition(step.status.value, status.value)
        step.status = status
        if status == StepStatus.RUNNING:
            step.started_at = utcnow()
            step.ended_at = None
        elif status in (StepStatus.COMPLETED, StepStatus.ERROR):
            step.ended_at = utcnow()
        else:
            step.started_at = None
            step.ended_at = None

    def set_agent_status(self, agent_id: str, status: AgentStatus, duration: float | None = None) -> None:
        agent = self.agent(agent_id)
        agent.status = status
        if duration is not None:
            agent.duration = duration
        if status == AgentStatus.COMPLETED:
            agent.last_run = utcnow()

    def add_log(self, agent: str, message: str, type: LogType = LogType.INFO) -> LogEntry:
        """Prepend a log entry, keeping only the newest ``MAX_LOGS``."""
        entry = LogEntry(agent=agent, message=message, type=type)
        self.logs.insert(0, entry)
        del self.logs[MAX_LOGS:]
        return entry

    def reset(self) -> None:
        """Return steps, agents and per-run results to their initial values."""
        fresh = WorkflowState(logs=self.logs)
        self.__dict__.update(fresh.__dict__)

    def to_dict(self) -> dict[str, Any]:
        return {
            "schemaVersion": SCHEMA_VERSION,
            "steps": [
                {
                    "id": step.id,
                    "name": step.name,
                    "agent": step.agent,
                    "status": step.status.value,
                    "startedAt": _iso(step.started_at),
                    "endedAt": _iso(step.ended_at),
                }
                for step in self.steps
            ],
            "agents": [
                {
                    "id": agent.id,
                    "name": agent.name,
                    "description": agent.description,
                    "status": agent.status.value,
                    "duration": agent.duration,
                    "lastRun": _iso(agent.last_run),
                }
                for agent in self.agents
            ],
            "currentStep": self.current_step,
            "isRunning": self.is_running,
            "status": self.status.value if self.status else None,
            "error": self.error,
            "provider": self.provider,
            "model": self.model,
            "startedAt": _iso(self.started_at),
            "finishedAt": _iso(self.finished_at),
            "invoices": [invoice.model_dump(mode="json", by_alias=True) for invoice in self.invoices],
            "analysisReport": self.analysis_report,
            "stats": self.stats.model_dump(mode="json", by_alias=True) if self.stats else None,
            "generatedMessages": [msg.model_dump(mode="json", by_alias=True) for msg in self.generated_messages],
            "responseAnalysis": (
                self.response_analysis.model_dump(mode="json", by_alias=True) if self.response_analysis else None
            ),
            "logs": [
                {
                    "id": entry.id,
                    "agent": entry.agent,
                    "message": entry.message,
                    "type": entry.type.value,
                    "timestamp": entry.timestamp.isoformat(),
                }
                for entry in self.logs
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WorkflowState":
        version = data.get("schemaVersion")
        if version != SCHEMA_VERSION:
            raise StateVersionError(f"Unsupported workflow state schema version: {version!r}")

        stats = data.get("stats")
        response = data.get("responseAnalysis")
        return cls(
            steps=[
                StepState(
                    id=item["id"],
                    name=item["name"],
                    agent=item["agent"],
                    status=StepStatus(item["status"]),
                    started_at=_parse_dt(item.get("startedAt")),
                    ended_at=_parse_dt(item.get("endedAt")),
                )
                for item in data.get("steps", [])
            ]
            or _default_steps(),
            agents=[
                AgentState(
                    id=item["id"],
                    name=item["name"],
                    description=item.get("description", ""),
                    status=AgentStatus(item["status"]),
                    duration=item.get("duration"),
                    last_run=_parse_dt(item.get("lastRun")),
                )
                for item in data.get("agents", [])
            ]
            or _default_agents(),
            current_step=data.get("currentStep", 0),
            # A persisted run is never resumed mid-flight.
            is_running=False,
            status=RunStatus(data["status"]) if data.get("status") else None,
            error=data.get("error"),
            provider=data.get("provider"),
            model=data.get("model"),
            started_at=_parse_dt(data.get("startedAt")),
            finished_at=_parse_dt(data.get("finishedAt")),
            invoices=[InvoiceRead.model_validate(item) for item in data.get("invoices", [])],
            analysis_report=data.get("analysisReport"),
            stats=AggregateStats.model_validate(stats) if stats else None,
            generated_messages=[GeneratedReminder.model_validate(item) for item in data.get("generatedMessages", [])],
            response_analysis=ResponseAnalysisResult.model_validate(response) if response else None,
            logs=[
                LogEntry(
                    id=item["id"],
                    agent=item["agent"],
                    message=item["message"],
                    type=LogType(item["type"]),
                    timestamp=datetime.fromisoformat(item["timestamp"]),
                )
                for item in data.get("logs", [])
            ][:MAX_LOGS],
        )

    def save(self, path: str | Path) -> None:
        Path(path).write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")

    @classmethod
    def load(cls, path: str | Path) -> "WorkflowState":
        return cls.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))


def build_run_record(state: WorkflowState, name: str | None = None) -> WorkflowRunCreate:
    """Turn a finished (or stopped) state into a history record payload."""
    stats = state.stats or compute_stats(state.invoices)
    return WorkflowRunCreate(
        name=name,
        status=state.status or RunStatus.COMPLETED,
        total_invoices=stats.total_invoices,
        overdue_invoices=stats.overdue_invoices,
        total_credits=stats.total_credits,
        overdue_amount=stats.overdue_amount,
        messages_generated=len(state.generated_messages),
        ai_provider=state.provider,
        ai_model=state.model,
        analysis_report=state.analysis_report,
        generated_messages=[msg.model_dump(mode="json", by_alias=True) for msg in state.generated_messages] or None,
        response_analysis=(
            state.response_analysis.model_dump(mode="json", by_alias=True) if state.response_analysis else None
        ),
        invoices_snapshot=[invoice.model_dump(mode="json", by_alias=True) for invoice in state.invoices] or None,
        logs=[
            WorkflowLogCreate(agent=entry.agent, message=entry.message, type=entry.type, timestamp=entry.timestamp)
            for entry in reversed(state.logs)
        ],
    )


def _run_status(value: str | None) -> RunStatus | None:
    try:
        return RunStatus(value)
    except ValueError:
        return None


def restore_from_run(run: WorkflowRunRead) -> WorkflowState:
    """Rebuild a read-only view state from a saved history record."""
    invoices = [InvoiceRead.model_validate(item) for item in run.invoices_snapshot or []]
    state = WorkflowState(
        status=_run_status(run.status),
        provider=run.ai_provider,
        model=run.ai_model,
        started_at=run.started_at,
        finished_at=run.completed_at,
        invoices=invoices,
        analysis_report=run.analysis_report,
        stats=compute_stats(invoices) if invoices else None,
        generated_messages=[GeneratedReminder.model_validate(item) for item in run.generated_messages or []],
        response_analysis=(
            ResponseAnalysisResult.model_validate(run.response_analysis) if run.response_analysis else None
        ),
        logs=[
            LogEntry(agent=log.agent, message=log.message, type=LogType(log.type), timestamp=log.timestamp)
            for log in reversed(run.logs)
        ][:MAX_LOGS],
    )
    if state.status == RunStatus.COMPLETED:
        for step in state.steps:
            step.status = StepStatus.COMPLETED
        for agent in state.agents:
            agent.status = AgentStatus.COMPLETED
        state.current_step = RESPOND_STEP
    return state
