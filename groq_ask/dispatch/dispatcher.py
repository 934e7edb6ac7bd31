from __future__ import annotations

import asyncio
import contextlib
from typing import AsyncContextManager

from groq_ask.config.model import DEFAULT_PROMPT_TEMPLATE, DispatchConfig
from groq_ask.core.clock import elapsed_ms, monotonic_ms
from groq_ask.core.errors import BatchCancelled
from groq_ask.core.types import Answer, Failure, Outcome, QuestionBatch, ResultBatch, describe_error
from groq_ask.llm.client import Completer
from groq_ask.observability import bind_batch, bind_question, get_logger
from groq_ask.observability.ids import new_batch_id

from .cancel import CancelToken


class Dispatcher:
    """Fan a batch of questions out to the completion client and collect outcomes.

    Every question gets its own asyncio task; the batch returns once all of
    them resolved. Slot ``i`` of the result always belongs to question ``i``
    and a failing question only ever produces a :class:`Failure` in its own
    slot.
    """

    def __init__(
        self,
        client: Completer,
        *,
        prompt_template: str = DEFAULT_PROMPT_TEMPLATE,
        max_concurrency: int | None = None,
        batch_timeout_s: float | None = None,
    ) -> None:
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1 or None")
        if batch_timeout_s is not None and batch_timeout_s <= 0:
            raise ValueError("batch_timeout_s must be > 0 or None")

        self._client = client
        self._template = prompt_template
        self._max_concurrency = max_concurrency
        self._batch_timeout_s = batch_timeout_s
        self._log = get_logger("groq_ask.dispatch")

    @classmethod
    def from_config(cls, client: Completer, cfg: DispatchConfig) -> "Dispatcher":
        return cls(
            client,
            prompt_template=cfg.prompt_template,
            max_concurrency=cfg.max_concurrency,
            batch_timeout_s=cfg.batch_timeout_s,
        )

    def render_prompt(self, question: str) -> str:
        return self._template.format(question=question)

    async def dispatch(self, questions: QuestionBatch, *, cancel: CancelToken | None = None) -> ResultBatch:
        """Answer every question concurrently.

        Args:
            questions: Ordered questions. Duplicates and blanks are sent as-is.
            cancel: Optional token; cancelling it makes every unanswered
                question resolve to a ``Failure("cancelled: ...")``.

        Returns:
            One outcome per question, in input order.

        If the awaiting task is cancelled, the token is cancelled, every
        question is still allowed to resolve, and ``CancelledError`` is re-raised.
        """

        batch = list(questions)
        if not batch:
            return []

        token = cancel or CancelToken()
        bind_batch(new_batch_id())

        t0 = monotonic_ms()
        self._log.info(
            "dispatch_start",
            questions=len(batch),
            max_concurrency=self._max_concurrency,
            already_cancelled=token.cancelled,
        )

        deadline: asyncio.TimerHandle | None = None
        if self._batch_timeout_s is not None:
            deadline = asyncio.get_running_loop().call_later(
                self._batch_timeout_s,
                token.cancel,
                f"batch deadline of {self._batch_timeout_s:g}s exceeded",
            )

        gate: AsyncContextManager[object] = (
            asyncio.Semaphore(self._max_concurrency) if self._max_concurrency else contextlib.nullcontext()
        )

        results: list[Outcome | None] = [None] * len(batch)
        units = [
            asyncio.create_task(self._run_unit(i, q, token, gate, results), name=f"question-{i}")
            for i, q in enumerate(batch)
        ]

        try:
            await asyncio.wait(units)
        except asyncio.CancelledError:
            token.cancel("dispatch cancelled by caller")
            # Repeated cancellation must not cut the join short.
            pending: set[asyncio.Task[None]] = set(units)
            while pending:
                try:
                    _, pending = await asyncio.wait(pending)
                except asyncio.CancelledError:
                    continue
            raise
        finally:
            if deadline is not None:
                deadline.cancel()

        outcomes: ResultBatch = []
        for i, outcome in enumerate(results):
            # A unit that died outside its own error handling still owns its slot.
            if outcome is None:
                unit = units[i]
                if unit.cancelled():
                    outcome = Failure(str(BatchCancelled(token.reason or "request cancelled")))
                else:
                    exc = unit.exception()
                    outcome = Failure(describe_error(exc) if exc else "question was not processed")
            outcomes.append(outcome)

        failed = sum(1 for o in outcomes if isinstance(o, Failure))
        self._log.info(
            "dispatch_done",
            questions=len(outcomes),
            answered=len(outcomes) - failed,
            failed=failed,
            latency_ms=elapsed_ms(t0),
        )
        return outcomes

    def dispatch_sync(self, questions: QuestionBatch) -> ResultBatch:
        return asyncio.run(self.dispatch(questions))

    async def _run_unit(
        self,
        index: int,
        question: str,
        token: CancelToken,
        gate: AsyncContextManager[object],
        results: list[Outcome | None],
    ) -> None:
        bind_question(index)
        t0 = monotonic_ms()

        try:
            async with gate:
                self._log.info("question_start", question=question[:120])
                text = await self._complete_unless_cancelled(self.render_prompt(question), token)
        except BatchCancelled as e:
            results[index] = Failure(str(e))
            self._log.info("question_cancelled", reason=e.reason, latency_ms=elapsed_ms(t0))
        except Exception as e:  # noqa: BLE001
            results[index] = Failure(describe_error(e))
            self._log.warning(
                "question_failed",
                error_type=type(e).__name__,
                error=describe_error(e),
                latency_ms=elapsed_ms(t0),
            )
        else:
            results[index] = Answer(text)
            self._log.info("question_done", answer_len=len(text), latency_ms=elapsed_ms(t0))

    async def _complete_unless_cancelled(self, prompt: str, token: CancelToken) -> str:
        if token.cancelled:
            raise BatchCancelled(token.reason or "request cancelled")

        call = asyncio.ensure_future(self._client.complete(prompt))
        stop = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait({call, stop}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop.cancel()
            if not call.done():
                call.cancel()
            # Let the aborted request unwind before reporting the slot.
            await asyncio.gather(call, stop, return_exceptions=True)

        if call.cancelled():
            raise BatchCancelled(token.reason or "request cancelled")
        return call.result()
