"""Display helpers shared by the Streamlit pages."""

from typing import Optional

from invoiceai.config import AppConfig, get_config


def format_currency(amount: Optional[float], symbol: Optional[str] = None) -> str:
    """Format an amount as e.g. '$1,234.50'. Missing amounts show as 'N/A'."""
    if amount is None:
        return "N/A"
    symbol = symbol if symbol is not None else get_config().currency_symbol
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def check_image_upload(size_bytes: int, mime_type: Optional[str], config: Optional[AppConfig] = None) -> Optional[str]:
    """Return an error message when an upload cannot be sent for extraction, else None."""
    config = config or get_config()
    if not size_bytes:
        return "The selected file is empty."
    if mime_type not in config.accepted_image_types:
        accepted = ", ".join(t.split("/")[1].upper() for t in config.accepted_image_types)
        return f"Unsupported file type {mime_type or 'unknown'}. Accepted: {accepted}."
    if size_bytes > config.max_file_size_mb * 1024 * 1024:
        return f"File is larger than {config.max_file_size_mb} MB."
    return None


def items_from_text(text: str) -> list[str]:
    """One item per non-blank line."""
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def category_details_for(should_add_category: bool, text: Optional[str]) -> Optional[str]:
    """Category text to save. Dropped unless the invoice is flagged for a category."""
    if not should_add_category:
        return None
    return (text or "").strip() or None
