"""Approval broker for risky shell commands."""

import asyncio
import itertools
import threading
from datetime import datetime
from typing import Callable

from loguru import logger

from shellgate.exec.types import (
    ApprovalDecision,
    ApprovalRequest,
    ApprovalRequestEvent,
    ApprovalResolvedEvent,
    ApprovalResult,
    PendingApproval,
)

RequestListener = Callable[[ApprovalRequestEvent], None]
ResolvedListener = Callable[[ApprovalResolvedEvent], None]

DEFAULT_CANCEL_REASON = "Cancelled"

# Process-wide so ids never repeat across brokers
_approval_ids = itertools.count(1)


def _next_approval_id() -> str:
    return f"approval-{next(_approval_ids)}"


def _settle(future: asyncio.Future, result: ApprovalResult) -> None:
    if not future.done():
        future.set_result(result)


class ApprovalBroker:
    """
    Brokers approval requests between the shell tool and a human.

    Handles:
    - Session-scoped approvals (in memory only)
    - Pending requests, each awaiting its own future
    - Request/resolved notifications for the approval surface

    ``respond`` and ``cancel`` may be called from any thread; the waiting
    coroutine is always resumed on its own event loop.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._pending: dict[str, PendingApproval] = {}
        self._session_approved: set[str] = set()
        self._request_listeners: list[RequestListener] = []
        self._resolved_listeners: list[ResolvedListener] = []

    # ── Subscriptions ───────────────────────────────────────────────

    def on_request(self, listener: RequestListener) -> Callable[[], None]:
        """Subscribe to new pending requests. Returns an unsubscribe callable."""
        self._request_listeners.append(listener)
        return lambda: self._remove_listener(self._request_listeners, listener)

    def on_resolved(self, listener: ResolvedListener) -> Callable[[], None]:
        """Subscribe to resolved requests. Returns an unsubscribe callable."""
        self._resolved_listeners.append(listener)
        return lambda: self._remove_listener(self._resolved_listeners, listener)

    @staticmethod
    def _remove_listener(listeners: list, listener: Callable) -> None:
        if listener in listeners:
            listeners.remove(listener)

    def _emit(self, listeners: list, event) -> None:
        for listener in list(listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Approval listener failed for {event.id}")

    # ── Requests ────────────────────────────────────────────────────

    @staticmethod
    def cache_key(request: ApprovalRequest) -> str:
        """Session cache key: the sanitized command."""
        return request.analysis.sanitized_command

    async def request_approval(self, request: ApprovalRequest) -> ApprovalResult:
        """
        Wait for a decision on a request.

        Session-approved commands resolve immediately without emitting a
        request event. Otherwise this suspends until ``respond`` or
        ``cancel`` is called for the returned id.
        """
        cache_key = self.cache_key(request)
        loop = asyncio.get_running_loop()

        with self._lock:
            if cache_key in self._session_approved:
                logger.debug(f"Session approval hit: {cache_key[:80]}")
                return ApprovalResult(decision="allow", scope="session")

            pending = PendingApproval(
                id=_next_approval_id(),
                request=request,
                future=loop.create_future(),
                cache_key=cache_key,
            )
            self._pending[pending.id] = pending

        logger.info(f"Approval {pending.id} pending: {cache_key[:80]}")
        self._emit(
            self._request_listeners,
            ApprovalRequestEvent(id=pending.id, request=request, created_at=pending.created_at),
        )

        try:
            return await pending.future
        except asyncio.CancelledError:
            with self._lock:
                self._pending.pop(pending.id, None)
            logger.debug(f"Approval {pending.id} abandoned by its caller")
            raise

    def respond(self, approval_id: str, decision: ApprovalDecision) -> bool:
        """
        Resolve a pending request.

        Returns False when the id is unknown or already resolved.
        """
        with self._lock:
            pending = self._pending.pop(approval_id, None)
            if not pending:
                return False

            result = self._map_decision(pending, decision)
            if result.allowed and result.scope == "session":
                self._session_approved.add(pending.cache_key)

        if result.allowed:
            logger.info(f"Approval {approval_id} allowed ({result.scope})")
        else:
            logger.warning(f"Approval {approval_id} denied: {result.reason}")

        future = pending.future
        future.get_loop().call_soon_threadsafe(_settle, future, result)

        self._emit(
            self._resolved_listeners,
            ApprovalResolvedEvent(
                id=approval_id,
                decision=decision,
                result=result,
                resolved_at=datetime.now(),
            ),
        )
        return True

    def cancel(self, approval_id: str, reason: str | None = None) -> bool:
        """Deny a pending request, e.g. when the conversation is reset."""
        return self.respond(
            approval_id,
            ApprovalDecision(allow=False, reason=reason or DEFAULT_CANCEL_REASON),
        )

    def cancel_all(self, reason: str | None = None) -> int:
        """Cancel every pending request. Returns how many were cancelled."""
        with self._lock:
            ids = list(self._pending)
        return sum(1 for approval_id in ids if self.cancel(approval_id, reason))

    def reset_session(self) -> None:
        """Forget all session-scoped approvals."""
        with self._lock:
            self._session_approved.clear()

    def reset(self, reason: str | None = None) -> int:
        """Conversation reset: cancel pending requests and clear the session cache."""
        cancelled = self.cancel_all(reason)
        self.reset_session()
        if cancelled:
            logger.info(f"Reset cancelled {cancelled} pending approval(s)")
        return cancelled

    # ── Introspection ───────────────────────────────────────────────

    @property
    def pending_ids(self) -> list[str]:
        with self._lock:
            return list(self._pending)

    def get_pending(self, approval_id: str) -> PendingApproval | None:
        with self._lock:
            return self._pending.get(approval_id)

    def is_session_approved(self, sanitized_command: str) -> bool:
        with self._lock:
            return sanitized_command in self._session_approved

    @staticmethod
    def _map_decision(pending: PendingApproval, decision: ApprovalDecision) -> ApprovalResult:
        if decision.allow:
            return ApprovalResult(decision="allow", scope=decision.scope or "once")

        return ApprovalResult(
            decision="deny",
            reason=decision.reason
            or f'Command "{pending.request.command}" was denied by the user.',
        )
