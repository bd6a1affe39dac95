"""
Extraction waterfall: try strategies from cheapest and most structured to the AI
fallback, and stop at the first one that yields cards with a title and a date.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from extract.ai_fallback import AIFallbackStrategy, CompletionClient
from extract.base import BaseStrategy, ExtractionContext, is_extractable
from extract.dom import DomStrategy
from extract.feed import FeedStrategy
from extract.hydration import HydrationStrategy
from extract.jsonld import JsonLdStrategy
from models import ExtractionMethod, RawEventCard

logger = logging.getLogger(__name__)


@dataclass
class WaterfallResult:
    cards: List[RawEventCard] = field(default_factory=list)
    strategy: Optional[str] = None
    confidence: float = 0.0
    trace: Dict[str, int] = field(default_factory=dict)  # strategy -> valid cards found


def default_strategies(
    completion_client: Optional[CompletionClient] = None,
    ai_max_chars: int = 25_000,
) -> List[BaseStrategy]:
    return [
        HydrationStrategy(),
        JsonLdStrategy(),
        FeedStrategy(),
        DomStrategy(),
        AIFallbackStrategy(completion_client, max_chars=ai_max_chars),
    ]


def order_strategies(
    strategies: Sequence[BaseStrategy], preferred: Optional[str]
) -> List[BaseStrategy]:
    """Move the preferred strategy to the front; the AI fallback always stays last."""
    ordered = list(strategies)
    if not preferred or preferred == ExtractionMethod.AI.value:
        return ordered
    for i, strategy in enumerate(ordered):
        if strategy.name == preferred:
            ordered.insert(0, ordered.pop(i))
            break
    return ordered


async def run_waterfall(
    context: ExtractionContext,
    strategies: Sequence[BaseStrategy],
) -> WaterfallResult:
    preferred = context.source.preferred_method if context.source else None
    result = WaterfallResult()
    for strategy in order_strategies(strategies, preferred):
        try:
            extracted = await strategy.extract(context)
            cards = [c for c in extracted.cards if is_extractable(c)]
        except Exception as e:
            logger.warning("Strategy %s raised for %s: %s", strategy.name, context.url, e)
            cards = []
        result.trace[strategy.name] = len(cards)
        if cards:
            result.cards = cards
            result.strategy = strategy.name
            result.confidence = extracted.confidence
            logger.info(
                "Waterfall %s: %s won with %d cards", context.url, strategy.name, len(cards)
            )
            return result
    logger.info("Waterfall %s: no strategy found events (%s)", context.url, result.trace)
    return result
