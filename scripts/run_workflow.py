"""Drive one full PayMind workflow, over HTTP or in-process.

Usage: python -m scripts.run_workflow --csv data/sample_invoices.csv [--local] [--save]
Press Ctrl-C while it runs to stop the workflow cleanly.
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from paymind.core.config import get_config
from paymind.core.exceptions import PayMindException
from paymind.core.logging_config import configure_logging
from paymind.core.startup import bootstrap
from paymind.llm.providers import AIProvider
from paymind.models.enums import RunStatus
from paymind.orchestration import HttpBackend, ServiceBackend, WorkflowBackend, WorkflowOrchestrator, WorkflowState
from paymind.orchestration.state import StateVersionError
from paymind.schemas.agents import AgentRequest
from paymind.services.csv_import import parse_invoice_csv
from paymind.services.invoice_service import InvoiceService

EXIT_CODES = {RunStatus.COMPLETED: 0, RunStatus.ERROR: 1, RunStatus.CANCELLED: 130}


def _log(message: str) -> None:
    print(f"[run_workflow] {message}", flush=True)


def _default_api_url() -> str:
    cfg = get_config()
    host = "localhost" if cfg.API_HOST in {"0.0.0.0", ""} else cfg.API_HOST
    return f"http://{host}:{cfg.API_PORT}{cfg.API_PREFIX}"


def _load_state(path: Path | None) -> WorkflowState | None:
    if path is None or not path.exists():
        return None
    try:
        return WorkflowState.load(path)
    except (StateVersionError, ValueError, KeyError) as exc:
        _log(f"Ignoring unreadable state file {path}: {exc}")
        return None


def _upload(rows: list[dict], local: bool, api_url: str | None) -> WorkflowBackend:
    if local:
        bootstrap()
        with InvoiceService() as service:
            invoices = service.bulk_upsert(rows)
        _log(f"Stored {len(invoices)} invoices in the local database")
        return ServiceBackend()

    backend = HttpBackend(api_url or _default_api_url())
    _log(backend.upload_invoices(rows).message)
    return backend


async def _run(orchestrator: WorkflowOrchestrator) -> WorkflowState:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, orchestrator.cancel)
    except NotImplementedError:  # pragma: no cover - Windows event loops.
        signal.signal(signal.SIGINT, lambda *_: orchestrator.cancel())
    try:
        return await orchestrator.run()
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except NotImplementedError:  # pragma: no cover - Windows event loops.
            signal.signal(signal.SIGINT, signal.default_int_handler)


def _print_summary(state: WorkflowState) -> None:
    for step in state.steps:
        _log(f"step {step.id} {step.name:<9} {step.status.value}")
    for agent in state.agents:
        duration = f" ({agent.duration:.2f}s)" if agent.duration is not None else ""
        _log(f"agent {agent.id:<19} {agent.status.value}{duration}")
    if state.stats is not None:
        _log(
            f"invoices={state.stats.total_invoices} overdue={state.stats.overdue_invoices} "
            f"disputed={state.stats.disputed_invoices} overdue_amount={state.stats.overdue_amount:.2f}"
        )
    _log(f"reminders generated: {len(state.generated_messages)}")
    if state.response_analysis is not None:
        analysis = state.response_analysis
        _log(f"reply intent={analysis.intent} sentiment={analysis.sentiment.value} risk={analysis.risk_level.value}")
    for entry in reversed(state.logs[:10]):
        _log(f"log [{entry.type.value}] {entry.agent}: {entry.message}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the PayMind collection workflow.")
    parser.add_argument("--csv", required=True, type=Path, help="Invoice CSV to upload before running.")
    parser.add_argument("--local", action="store_true", help="Call services in-process instead of the HTTP API.")
    parser.add_argument("--api-url", default=None, help="API base URL including prefix (default from config).")
    parser.add_argument(
        "--provider",
        choices=[provider.value for provider in AIProvider],
        default=None,
        help="LLM provider (default: DEFAULT_PROVIDER).",
    )
    parser.add_argument("--model", default=None, help="Model id; provider default when omitted.")
    parser.add_argument("--api-key", default=None, help="Provider API key; server-side key when omitted.")
    parser.add_argument("--language", choices=["en", "it"], default="en", help="Output language.")
    parser.add_argument("--wait-seconds", type=float, default=None, help="Length of the Wait step.")
    parser.add_argument("--save", action="store_true", help="Store the run in workflow history.")
    parser.add_argument("--run-name", default=None, help="History record name when --save is set.")
    parser.add_argument("--state-file", type=Path, default=None, help="JSON file persisting the view state.")
    args = parser.parse_args()

    configure_logging()
    cfg = get_config()

    rows = parse_invoice_csv(args.csv.read_text(encoding="utf-8"))
    _log(f"Parsed {len(rows)} invoice rows from {args.csv}")

    try:
        backend = _upload(rows, args.local, args.api_url)
    except PayMindException as exc:
        _log(f"Upload failed: {exc}")
        return 1

    options = AgentRequest(
        provider=args.provider or cfg.DEFAULT_PROVIDER,
        model=args.model,
        api_key=args.api_key,
        language=args.language,
    )
    orchestrator = WorkflowOrchestrator(
        backend,
        options=options,
        state=_load_state(args.state_file),
        wait_seconds=args.wait_seconds,
    )
    state = asyncio.run(_run(orchestrator))
    _print_summary(state)

    if args.save:
        try:
            run = orchestrator.save_run(name=args.run_name)
        except PayMindException as exc:
            _log(f"Saving run failed: {exc}")
        else:
            _log(f"Saved workflow run {run.id} ({run.name})")
    if args.state_file is not None:
        state.save(args.state_file)
        _log(f"State written to {args.state_file}")

    return EXIT_CODES.get(state.status, 1)


if __name__ == "__main__":
    raise SystemExit(main())
