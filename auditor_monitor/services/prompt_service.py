"""
Prompt Broker — request/response stand-in for modal dialogs.

A flow that needs user input opens a prompt and either waits on it
(``broker.wait(prompt)``) or registers a handler that runs when the answer
arrives. The browser lists pending prompts and answers through the API.

Contract: a prompt resolves to the entered string (possibly empty) or to
the ``CANCELLED`` sentinel — never to None.

Usage:
    prompt = broker.open("Edit roles", initial_value="auditor:Auditor",
                         on_result=apply_roles)
    ...
    broker.respond(prompt.id, "auditor:Auditor, observador:Observer")
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from typing import Any, Callable

from auditor_monitor.core.exceptions import NotFoundError
from auditor_monitor.utils.helpers import new_id

logger = logging.getLogger(__name__)


class _Cancelled:
    """Sentinel for a dismissed prompt."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "CANCELLED"


CANCELLED = _Cancelled()


@dataclass
class Prompt:
    title: str
    message: str = ""
    placeholder: str = ""
    initial_value: str = ""
    kind: str = "text"
    on_result: Callable[[Any], Any] | None = None
    id: str = field(default_factory=new_id)
    future: Future = field(default_factory=Future)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind,
            "title": self.title,
            "message": self.message,
            "placeholder": self.placeholder,
            "initialValue": self.initial_value,
        }


class PromptBroker:
    """Keeps pending prompts and resolves them exactly once."""

    def __init__(self, default_timeout: float | None = None) -> None:
        self.default_timeout = default_timeout
        self._pending: dict[str, Prompt] = {}
        self._lock = threading.Lock()

    def open(
        self,
        title: str,
        message: str = "",
        *,
        placeholder: str = "",
        initial_value: str = "",
        kind: str = "text",
        on_result: Callable[[Any], Any] | None = None,
    ) -> Prompt:
        prompt = Prompt(
            title=title,
            message=message,
            placeholder=placeholder,
            initial_value=initial_value,
            kind=kind,
            on_result=on_result,
        )
        with self._lock:
            self._pending[prompt.id] = prompt
        logger.debug("Prompt %s opened: %s", prompt.id, title)
        return prompt

    def pending(self) -> list[Prompt]:
        with self._lock:
            return list(self._pending.values())

    def get(self, prompt_id: str) -> Prompt:
        with self._lock:
            prompt = self._pending.get(prompt_id)
        if prompt is None:
            raise NotFoundError(resource="Prompt", resource_id=prompt_id)
        return prompt

    def respond(self, prompt_id: str, value: str) -> Any:
        """Resolve with the entered value and run the handler, if any.

        A handler error leaves the prompt pending so the user can retry.
        Returns the handler's return value.
        """
        prompt = self.get(prompt_id)
        value = "" if value is None else str(value)
        result = prompt.on_result(value) if prompt.on_result else None
        self._resolve(prompt, value)
        return result

    def cancel(self, prompt_id: str) -> None:
        prompt = self.get(prompt_id)
        if prompt.on_result:
            prompt.on_result(CANCELLED)
        self._resolve(prompt, CANCELLED)

    def wait(self, prompt: Prompt, timeout: float | None = None):
        """Block until the prompt resolves; a timeout counts as cancellation."""
        if timeout is None:
            timeout = self.default_timeout
        try:
            return prompt.future.result(timeout=timeout)
        except FutureTimeout:
            logger.info("Prompt %s timed out after %ss", prompt.id, timeout)
            with self._lock:
                still_pending = self._pending.pop(prompt.id, None) is not None
            if still_pending and not prompt.future.done():
                prompt.future.set_result(CANCELLED)
            return prompt.future.result()

    def _resolve(self, prompt: Prompt, value) -> None:
        with self._lock:
            self._pending.pop(prompt.id, None)
        if not prompt.future.done():
            prompt.future.set_result(value)
