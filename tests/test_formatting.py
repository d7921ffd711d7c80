"""Tests for display formatting and upload checks."""

import pytest

from invoiceai.ui.formatting import category_details_for, check_image_upload, format_currency, items_from_text


@pytest.mark.parametrize("amount, expected", [
    (1234.5, "$1,234.50"),
    (0, "$0.00"),
    (-5, "-$5.00"),
    (None, "N/A"),
])
def test_format_currency(amount, expected):
    assert format_currency(amount, "$") == expected


def test_format_currency_custom_symbol():
    assert format_currency(10, "€") == "€10.00"


def test_check_image_upload_accepts_images(app_config):
    assert check_image_upload(1024, "image/jpeg", app_config) is None
    assert check_image_upload(1024, "image/webp", app_config) is None


def test_check_image_upload_rejects_empty(app_config):
    assert check_image_upload(0, "image/png", app_config) == "The selected file is empty."


def test_check_image_upload_rejects_other_types(app_config):
    message = check_image_upload(1024, "application/pdf", app_config)
    assert message.startswith("Unsupported file type application/pdf")


def test_check_image_upload_rejects_large_files(app_config):
    too_big = app_config.max_file_size_mb * 1024 * 1024 + 1
    assert check_image_upload(too_big, "image/png", app_config) == "File is larger than 5 MB."


def test_items_from_text():
    assert items_from_text("  one \n\n two\n") == ["one", "two"]
    assert items_from_text("") == []


def test_category_details_dropped_when_not_flagged():
    assert category_details_for(False, "Office supplies") is None


def test_category_details_kept_when_flagged():
    assert category_details_for(True, "  Office supplies ") == "Office supplies"
    assert category_details_for(True, "   ") is None
    assert category_details_for(True, None) is None
