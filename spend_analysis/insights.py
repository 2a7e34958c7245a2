"""AI insight generation over a normalized transaction list.

The model receives ``{"transactions": [...], "date_range": {...}}`` and must
answer with ``{"insights": [{title, category, description, recommendation}]}``.
Only the response *shape* is validated (pydantic); the text is passed through
untouched.

No side effects at import time (no client creation, no environment reads).
"""

from __future__ import annotations

import json
import os
import random
import time
from collections.abc import Mapping, Sequence
from typing import Any

from openai import OpenAI
from pydantic import ValidationError

from .aggregate import date_range
from .errors import InsightsError
from .logging_setup import get_logger
from .models import FinancialInsight, InsightsResponse, Transaction

# ---- Tunables (private) ------------------------------------------------------

_DEFAULT_MODEL: str = "gpt-4o-mini"
_MODEL_ENV: str = "SPEND_ANALYSIS_OPENAI_MODEL"
_TEMPERATURE: float = 0.5
_MAX_ATTEMPTS: int = 3
_BACKOFF_SCHEDULE_SEC: tuple[float, ...] = (0.5, 2.0)
_JITTER_PCT: float = 0.20

_logger = get_logger("spend_analysis.insights")

SYSTEM_PROMPT = """
You are a financial analyst AI. Analyze the transaction data and provide actionable insights.

Focus on:
- Spending patterns and trends
- Opportunities to save money
- Financial habits and behaviors
- Unusual or concerning transactions
- Recommendations for financial improvement

Provide 3-5 meaningful insights that can help the user improve their financial situation.

Your response must follow this JSON structure exactly:
{
  "insights": [
    {
      "title": "Clear, concise title of the insight",
      "category": "one of: spending_pattern, savings_opportunity, risk_alert, behavioral_pattern, optimization",
      "description": "Detailed explanation of the insight",
      "recommendation": "Specific action the user can take"
    }
  ]
}
""".strip()


def build_insights_payload(transactions: Sequence[Transaction]) -> dict[str, Any]:
    """Return the JSON-ready request body for the insights model.

    Raises ``ValueError`` when ``transactions`` is empty.
    """

    rng = date_range(transactions)
    if rng is None:
        raise ValueError("No transaction data provided")
    return {
        "transactions": [t.to_dict() for t in transactions],
        "date_range": rng.to_dict(),
    }


def parse_insights(content: str | Mapping[str, Any]) -> list[FinancialInsight]:
    """Validate a model reply (JSON text or decoded mapping) into insights."""

    try:
        decoded = json.loads(content) if isinstance(content, str) else content
    except json.JSONDecodeError as e:
        raise InsightsError("Model output was not valid JSON") from e
    try:
        return InsightsResponse.model_validate(decoded).insights
    except ValidationError as e:
        raise InsightsError(f"Model output did not match the insights schema: {e}") from e


def _create_client() -> OpenAI:
    return OpenAI()


def _is_retryable(exc: BaseException) -> bool:
    """Return True only for HTTP 429 and 5xx errors."""

    sc = getattr(exc, "status_code", None)
    return isinstance(sc, int) and (sc == 429 or 500 <= sc < 600)


def _sleep_backoff(attempt_no: int) -> None:
    if attempt_no - 1 < len(_BACKOFF_SCHEDULE_SEC):
        base = _BACKOFF_SCHEDULE_SEC[attempt_no - 1]
    else:
        base = _BACKOFF_SCHEDULE_SEC[-1]
    jitter = base * _JITTER_PCT
    time.sleep(max(0.0, base + random.uniform(-jitter, jitter)))


def _reply_text(resp: Any) -> str:
    try:
        content = resp.choices[0].message.content
    except (AttributeError, IndexError, TypeError) as e:
        raise InsightsError("Unexpected Chat Completions response shape") from e
    if not content or not isinstance(content, str):
        raise InsightsError("No response content from OpenAI")
    return content


def generate_insights(
    transactions: Sequence[Transaction],
    *,
    client: Any | None = None,
    model: str | None = None,
) -> list[FinancialInsight]:
    """Ask the model for 3-5 insights about ``transactions``.

    Parameters
    ----------
    transactions:
        Normalized transactions; must be non-empty.
    client:
        Optional OpenAI-compatible client (``chat.completions.create``). A
        default ``OpenAI()`` client is created when omitted, which requires
        ``OPENAI_API_KEY``.
    model:
        Model name; defaults to ``SPEND_ANALYSIS_OPENAI_MODEL`` or
        ``gpt-4o-mini``.

    Raises
    ------
    ValueError
        ``transactions`` is empty.
    InsightsError
        Missing API key, non-retryable API error, exhausted retries, or a
        reply that does not match the expected shape.
    """

    payload = build_insights_payload(transactions)
    model_name = model or os.getenv(_MODEL_ENV) or _DEFAULT_MODEL

    if client is None:
        if not os.getenv("OPENAI_API_KEY"):
            raise InsightsError("OPENAI_API_KEY environment variable is required for insights")
        client = _create_client()

    messages = [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": json.dumps(payload)},
    ]
    _logger.info(
        "insights:request model=%s num_transactions=%d", model_name, len(payload["transactions"])
    )

    attempt = 1
    while True:
        t0 = time.perf_counter()
        try:
            resp = client.chat.completions.create(
                model=model_name,
                messages=messages,
                response_format={"type": "json_object"},
                temperature=_TEMPERATURE,
            )
        except Exception as e:  # noqa: BLE001
            dt_ms = (time.perf_counter() - t0) * 1000.0
            if attempt >= _MAX_ATTEMPTS or not _is_retryable(e):
                _logger.error(
                    "insights:failed_terminal latency_ms=%.2f error=%s attempt=%d",
                    dt_ms,
                    e.__class__.__name__,
                    attempt,
                )
                raise InsightsError(f"OpenAI API error: {e}") from e
            _logger.warning(
                "insights:retry latency_ms=%.2f error=%s attempt=%d",
                dt_ms,
                e.__class__.__name__,
                attempt,
            )
            _sleep_backoff(attempt)
            attempt += 1
            continue

        insights = parse_insights(_reply_text(resp))
        _logger.info(
            "insights:done num_insights=%d latency_ms=%.2f",
            len(insights),
            (time.perf_counter() - t0) * 1000.0,
        )
        return insights


__all__ = ["SYSTEM_PROMPT", "build_insights_payload", "generate_insights", "parse_insights"]
