"""
Invoice extraction flow.

Takes an invoice image as a base64 data URI, sends it to a vision model with
the extraction prompt and returns the parsed, schema-shaped result.
"""

import logging
from typing import Optional

from invoiceai.config import AppConfig, LLMProvider, get_config
from invoiceai.llm.client import LLMClient
from invoiceai.llm.images import parse_data_uri
from invoiceai.llm.parser import InvoiceParser
from invoiceai.models.invoice import ExtractionResult

logger = logging.getLogger(__name__)


def extract_invoice_data(
    data_uri: str,
    provider: Optional[LLMProvider] = None,
    config: Optional[AppConfig] = None,
    client: Optional[LLMClient] = None,
) -> ExtractionResult:
    """
    Run the extraction flow on one invoice image.

    Args:
        data_uri: Image as 'data:<mimetype>;base64,<encoded_data>'
        provider: Use only this provider instead of the fallback order
        config: Application configuration
        client: Preconfigured LLM client

    Returns:
        ExtractionResult; success is False when the model output has no usable JSON

    Raises:
        InvalidImageError: If the data URI is malformed or not an image
        LLMClientError: If no provider could produce a response
    """
    parse_data_uri(data_uri)

    config = config or get_config()
    client = client or LLMClient(config=config, preferred_provider=provider)

    response, used_provider = client.extract_from_image(data_uri, provider=provider)

    result = InvoiceParser().parse_response(response)
    result.provider_used = used_provider.value

    if result.success:
        logger.info(f"Extraction completed using {used_provider.value} with {len(result.warnings)} warning(s)")
    else:
        logger.error(f"Extraction with {used_provider.value} returned unusable output: {'; '.join(result.errors)}")

    return result
