"""
Purpose: Non-binding narrative commentary on a finished scheduling pass.
What it does:
- build_context: top-N planned orders (by score) + summary + product instructions
- render_messages: turns that context into a short chat prompt
- ChatAdvisoryProvider: AdvisoryProvider backed by a chat-completions client
- generate_advisory: calls the provider under a timeout and degrades to ""

Rule: Advisory output never feeds back into allocation. The SchedulingResult
passed in is read-only here, and any provider failure ends as an empty string.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from orders.models import Product
from orders.scheduling.planner import ScheduleSummary, SchedulingResult
from orders.scheduling.scoring import ScoreResult

from .client import ChatCompletionsProvider, Message, ProviderError, provider_for_product

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 15
DEFAULT_TIMEOUT_SEC = 5.0

SYSTEM_PROMPT = "You provide brief, professional production scheduling advice."


@dataclass(frozen=True)
class AdvisoryContext:
    product_id: str
    summary: ScheduleSummary
    top_orders: List[ScoreResult] = field(default_factory=list)
    instructions: str = "Standard production line"


class AdvisoryProvider(Protocol):
    def generate(self, context: AdvisoryContext) -> str:
        """Return commentary text; raise ProviderError on failure."""
        ...


def build_context(result: SchedulingResult, product: Product, top_n: int = DEFAULT_TOP_N) -> AdvisoryContext:
    """
    Planned orders are already ranked by score; keep the first top_n.
    """
    return AdvisoryContext(
        product_id=result.product_id,
        summary=result.summary,
        top_orders=list(result.scores[: max(0, top_n)]),
        instructions=product.custom_instructions or "Standard production line",
    )


def render_messages(context: AdvisoryContext) -> List[Message]:
    s = context.summary
    lines = [
        "You are an expert Production Scheduler assistant.",
        f"Specific Product Context: {context.instructions}",
        "",
        "Current Scheduling Results:",
        f"- Total Planned: {s.total_planned}",
        f"- High Priority Planned: {s.high_priority_planned}",
        f"- Skipped due to Capacity: {s.skipped_due_to_capacity}",
        f"- Skipped due to Material/Block: {s.skipped_due_to_material}",
        f"- Planned with unknown material status: {s.unknown_material_planned}",
        "",
        "Top priority orders analyzed by algorithm:",
    ]
    for scored in context.top_orders:
        lines.append(
            f"- WO {scored.wo_id}: Score {scored.combined_score:.2f}, "
            f"Next Step: {scored.next_step}, Material: {scored.material_status.value}"
        )
    lines += [
        "",
        "Based on the results and product context, provide a very concise (max 3 sentences) auxiliary advice.",
        "Identify if any critical order seems missing or if capacity should be shifted.",
        "If everything looks optimal, just confirm.",
    ]
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": "\n".join(lines)},
    ]


class ChatAdvisoryProvider:
    """
    AdvisoryProvider over a chat-completions client.
    """
    def __init__(self, client: ChatCompletionsProvider):
        self.client = client

    def generate(self, context: AdvisoryContext) -> str:
        return self.client.chat(render_messages(context))


def has_advisory_config(product: Product) -> bool:
    return bool(product.custom_instructions or product.ai_model)


def generate_advisory(
    result: SchedulingResult,
    product: Product,
    provider: Optional[AdvisoryProvider],
    *,
    top_n: int = DEFAULT_TOP_N,
    timeout_sec: float = DEFAULT_TIMEOUT_SEC,
) -> str:
    """
    Produce commentary for a finished pass. Never raises for provider problems.

    Returns "" when:
      - the product has no advisory settings (custom_instructions / ai_model)
      - no provider is available
      - the provider fails or does not answer within timeout_sec
    """
    if provider is None or not has_advisory_config(product):
        return ""

    context = build_context(result, product, top_n=top_n)

    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(provider.generate, context)
    try:
        text = future.result(timeout=timeout_sec)
        if text is None:
            return ""
        if not isinstance(text, str):
            logger.error("Advisory provider for product %s returned %s, not text", product.id, type(text).__name__)
            return ""
        return text.strip()
    except FutureTimeout:
        logger.error("Advisory for product %s timed out after %.1fs", product.id, timeout_sec)
        return ""
    except ProviderError as exc:
        logger.error("Advisory provider failed for product %s: %s", product.id, exc)
        return ""
    except Exception:
        logger.exception("Unexpected advisory failure for product %s", product.id)
        return ""
    finally:
        # Do not wait on a provider call that overran the timeout
        executor.shutdown(wait=False)


def advise(
    result: SchedulingResult,
    product: Product,
    *,
    top_n: int = DEFAULT_TOP_N,
    timeout_sec: float = DEFAULT_TIMEOUT_SEC,
) -> str:
    """
    One-call advisory using the product's own ai_provider / ai_model settings.
    """
    if not has_advisory_config(product):
        return ""

    try:
        client = provider_for_product(product, timeout=timeout_sec)
    except (ProviderError, ValueError) as exc:
        logger.error("Advisory provider unavailable for product %s: %s", product.id, exc)
        return ""

    return generate_advisory(
        result,
        product,
        ChatAdvisoryProvider(client),
        top_n=top_n,
        timeout_sec=timeout_sec,
    )
