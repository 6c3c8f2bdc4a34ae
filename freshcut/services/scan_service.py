"""Label scanning: read item attributes from a photo of packaged meat.

The agent runs once per scan with no retries; a failed scan is reported to
the user, who may try again. Scanning never touches the inventory; the
result only pre-fills the add-item form.
"""

import logging
from datetime import date, datetime, time

from pydantic_ai import Agent, BinaryContent
from pydantic_ai.models.openrouter import OpenRouterModel
from pydantic_ai.providers.openrouter import OpenRouterProvider

from freshcut.core.config import Constants, settings
from freshcut.core.errors import ErrorCategory, ScanFailedError, classify_transient
from freshcut.core.logging import span
from freshcut.domain.scan import InventoryDraft, ScannedItem
from freshcut.services.status_classifier import to_local


logger = logging.getLogger(__name__)

SCAN_INSTRUCTIONS = """You are an assistant for a butcher or chef, skilled at analyzing images of packaged meat.

Analyze the provided image of a meat product and extract the following details from its label:
1. item_name: The full name of the cut of meat. Be specific (e.g., "USDA Prime Ribeye", "Organic Chicken Thighs").
2. category: A relevant category for the item (e.g., "Beef", "Pork", "Poultry", "Lamb", "Seafood").
3. expiry_date: If a "Best Before", "Use-By", "Sell-By", or "Packaged On" date is visible, format it as YYYY-MM-DD.
   If no date is visible, return null for this field.
"""

_SCAN_PROMPT = "Extract the item details from this label."


class _AgentState:
    """Singleton state for the scan agent."""

    instance: Agent[None, ScannedItem] | None = None


def _create_agent() -> Agent[None, ScannedItem]:
    """Create the scan agent (called once, on first scan)."""
    api_key = settings.require_credential("openrouter_api_key", "OpenRouter API key")
    provider = OpenRouterProvider(api_key=api_key)
    model = OpenRouterModel(model_name=settings.model_id, provider=provider)

    return Agent(
        model=model,
        output_type=ScannedItem,
        instructions=SCAN_INSTRUCTIONS,
        retries=0,
    )


def get_agent() -> Agent[None, ScannedItem]:
    """Get or create the scan agent."""
    if _AgentState.instance is None:
        _AgentState.instance = _create_agent()
    return _AgentState.instance


def _failure_message(exc: BaseException) -> str:
    category = classify_transient(exc)
    if category is ErrorCategory.RATE_LIMIT_EXCEEDED:
        return "The scanner is busy right now. Please wait a moment and try again."
    if category is ErrorCategory.NETWORK_ERROR:
        return "Could not reach the scanner. Check your connection and try again."
    return "Could not analyze the image. Please try again."


async def scan_item(
    image_bytes: bytes,
    media_type: str,
    *,
    agent: Agent[None, ScannedItem] | None = None,
) -> ScannedItem:
    """Extract item name, category and (if visible) a date from a label photo.

    Args:
        image_bytes: Raw image data
        media_type: MIME type of the image (e.g. "image/jpeg")
        agent: Agent to run instead of the configured OpenRouter one

    Returns:
        ScannedItem with best-effort attributes

    Raises:
        ScanFailedError: If the image is unusable or the model call fails
    """
    if not media_type.startswith("image/"):
        raise ScanFailedError(f"Unsupported file type: {media_type}. Please upload a photo.", retryable=False)
    if not image_bytes:
        raise ScanFailedError("The photo is empty. Please take another one.")

    try:
        scan_agent = agent or get_agent()
    except ValueError as e:
        logger.error("Scanner not configured", extra={"error": str(e)})
        raise ScanFailedError("Scanning is not available right now.", retryable=False) from e

    with span("scan_service.scan_item"):
        try:
            result = await scan_agent.run([_SCAN_PROMPT, BinaryContent(data=image_bytes, media_type=media_type)])
        except Exception as e:
            logger.warning(
                "Scan failed",
                extra={"error": str(e), "error_type": type(e).__name__, "image_size": len(image_bytes)},
            )
            raise ScanFailedError(_failure_message(e)) from e

    scanned = result.output
    logger.info(
        "Label scanned",
        extra={"item_name": scanned.item_name, "category": scanned.category, "has_date": scanned.expiry_date is not None},
    )
    return scanned


def _local_midnight(day: date) -> datetime:
    return to_local(datetime.combine(day, time.min))


def draft_from_scan(scanned: ScannedItem) -> InventoryDraft:
    """Pre-filled add-item form values for a scanned label."""
    expiry = _local_midnight(date.fromisoformat(scanned.expiry_date)) if scanned.expiry_date else None
    return InventoryDraft(
        item_name=scanned.item_name,
        category=scanned.category,
        quantity=Constants.SCANNED_DEFAULT_QUANTITY,
        expiry_date=expiry,
        notes=Constants.SCANNED_NOTES,
    )
