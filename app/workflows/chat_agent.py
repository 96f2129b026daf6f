"""Chat flow: gate, grounded generation with one paraphrase retry, citations, debit.

validate -> authorize -> build_prompt -> generate -> [retry -> generate] -> cite -> debit

A node that fails stores an AppError in `failure`; the graph then ends and
`ChatOrchestrator.run` raises it. The debit node only runs after text was
resolved, so rejected, blocked and timed-out requests are never charged.
"""

import asyncio
from typing import Any, TypedDict

from langgraph.graph import END, START, StateGraph
from pydantic import BaseModel

from app.core.audit import log_event
from app.core.config import get_settings
from app.core.exceptions import (
    AppError,
    BadRequestError,
    ContentBlockedError,
    NoContentError,
    UpstreamError,
    summarize_exception,
)
from app.core.logging import get_logger, preview
from app.services import gate, ledger
from app.services.citations import render_citations
from app.services.prompts import build_prompt, retry_prompt
from app.services.upstream import (
    Blocked,
    CandidateParts,
    Empty,
    GenerationBackend,
    PrimaryText,
    grounding_metadata,
    normalize_response,
)

log = get_logger(__name__)

MAX_UPSTREAM_CALLS = 2


class ChatState(TypedDict):
    account_id: str
    message: str
    history: list[dict]
    observed_balance: int
    prompt: str
    upstream_calls: int
    response: Any
    outcome: Any
    text: str
    balance: int
    failure: AppError | None


class ChatResult(BaseModel):
    response: str
    balance: int


def _continue_or_end(next_node: str):
    def route(state: ChatState) -> str:
        return END if state["failure"] is not None else next_node
    return route


def _route_after_generate(state: ChatState) -> str:
    if state["failure"] is not None:
        return END
    if isinstance(state["outcome"], Blocked):
        return "retry"
    return "cite"


class ChatOrchestrator:
    """One compiled graph per process; each request runs it with fresh state."""

    def __init__(
        self,
        backend: GenerationBackend,
        search_scope: str | None,
        timeout_seconds: float | None = None,
    ):
        self.backend = backend
        self.search_scope = search_scope
        self.timeout_seconds = timeout_seconds
        self.graph = self._build_graph()

    def _build_graph(self):
        builder = StateGraph(ChatState)
        builder.add_node("validate", self._validate)
        builder.add_node("authorize", self._authorize)
        builder.add_node("build_prompt", self._build_prompt)
        builder.add_node("generate", self._generate)
        builder.add_node("retry", self._retry)
        builder.add_node("cite", self._cite)
        builder.add_node("debit", self._debit)
        builder.add_edge(START, "validate")
        builder.add_conditional_edges("validate", _continue_or_end("authorize"), ["authorize", END])
        builder.add_conditional_edges("authorize", _continue_or_end("build_prompt"), ["build_prompt", END])
        builder.add_edge("build_prompt", "generate")
        builder.add_conditional_edges("generate", _route_after_generate, ["retry", "cite", END])
        builder.add_edge("retry", "generate")
        builder.add_edge("cite", "debit")
        builder.add_edge("debit", END)
        return builder.compile()

    async def _validate(self, state: ChatState) -> dict:
        if not (state["message"] or "").strip():
            return {"failure": BadRequestError("Message is required")}
        return {}

    async def _authorize(self, state: ChatState) -> dict:
        try:
            balance = await gate.authorize(state["account_id"])
        except AppError as e:
            return {"failure": e}
        return {"observed_balance": balance}

    async def _build_prompt(self, state: ChatState) -> dict:
        return {"prompt": build_prompt(state["message"], state["history"])}

    async def _call_upstream(self, prompt: str) -> Any:
        call = self.backend.generate(prompt, self.search_scope)
        if self.timeout_seconds:
            return await asyncio.wait_for(call, timeout=self.timeout_seconds)
        return await call

    async def _generate(self, state: ChatState) -> dict:
        calls = state["upstream_calls"] + 1
        try:
            response = await self._call_upstream(state["prompt"])
        except asyncio.TimeoutError:
            log.error("upstream_timeout", timeout_seconds=self.timeout_seconds, attempt=calls)
            return {
                "upstream_calls": calls,
                "failure": UpstreamError("Failed to call generation service", details="Upstream request timed out"),
            }
        except Exception as e:
            log.error("upstream_failed", error=summarize_exception(e), attempt=calls)
            return {
                "upstream_calls": calls,
                "failure": UpstreamError("Failed to call generation service", details=summarize_exception(e)),
            }

        outcome = normalize_response(response)
        update: dict = {"upstream_calls": calls, "response": response, "outcome": outcome}
        if isinstance(outcome, (PrimaryText, CandidateParts)):
            update["text"] = outcome.text
            return update
        if calls >= MAX_UPSTREAM_CALLS:
            log.warning("upstream_blocked_after_retry", outcome=outcome.kind)
            update["failure"] = ContentBlockedError()
        elif isinstance(outcome, Empty):
            log.warning("upstream_no_content", finish_reason=outcome.finish_reason)
            update["failure"] = NoContentError()
        else:
            log.warning("upstream_blocked", reason=outcome.reason)
        return update

    async def _retry(self, state: ChatState) -> dict:
        return {"prompt": retry_prompt(state["prompt"])}

    async def _cite(self, state: ChatState) -> dict:
        citations = render_citations(grounding_metadata(state["response"]))
        return {"text": state["text"] + citations}

    async def _debit(self, state: ChatState) -> dict:
        cost = get_settings().chat_cost
        try:
            balance = await ledger.adjust(state["account_id"], cost, "debit")
        except Exception as e:
            balance = max(0, state["observed_balance"] - cost)
            await self._report_inconsistency(state["account_id"], cost, balance, e)
        return {"balance": balance}

    async def _report_inconsistency(self, account_id: str, cost: int, estimated: int, exc: Exception) -> None:
        """Answer already delivered but not charged: leave a trail for reconciliation."""
        log.error(
            "ledger_inconsistency",
            account_id=account_id,
            amount=cost,
            estimated_balance=estimated,
            error=summarize_exception(exc),
        )
        try:
            await log_event(
                None,
                "ledger_inconsistency",
                "account",
                account_id,
                {"amount": cost, "estimated_balance": estimated, "error": summarize_exception(exc)},
            )
        except Exception as audit_exc:
            log.error("ledger_inconsistency_unrecorded", account_id=account_id, error=summarize_exception(audit_exc))

    async def run(self, account_id: str, message: str, history: list[dict] | None = None) -> ChatResult:
        """Run one chat turn; raises the AppError of the failing step."""
        log.info("chat_request", message_preview=preview(message), history_length=len(history or []))
        initial: ChatState = {
            "account_id": account_id,
            "message": message,
            "history": history or [],
            "observed_balance": 0,
            "prompt": "",
            "upstream_calls": 0,
            "response": None,
            "outcome": None,
            "text": "",
            "balance": 0,
            "failure": None,
        }
        result = await self.graph.ainvoke(initial)
        if result["failure"] is not None:
            raise result["failure"]
        log.info(
            "chat_delivered",
            upstream_calls=result["upstream_calls"],
            response_length=len(result["text"]),
            balance=result["balance"],
        )
        return ChatResult(response=result["text"], balance=result["balance"])
