"""
LLM prompt templates for invoice data extraction.

One vision prompt asks for the fixed extraction schema: invoice number, date,
client and company details as free text, items as strings, a numeric total
and an optional product category.
"""

import json

EXTRACTION_SCHEMA = {
    "type": "object",
    "properties": {
        "invoiceNumber": {"type": "string", "description": "The invoice number."},
        "invoiceDate": {"type": "string", "description": "The invoice date."},
        "clientDetails": {"type": "string", "description": "Details of the client."},
        "companyDetails": {"type": "string", "description": "Details of the company issuing the invoice."},
        "items": {
            "type": "array",
            "items": {"type": "string"},
            "description": "List of items in the invoice.",
        },
        "totalAmount": {"type": "number", "description": "The total amount of the invoice."},
        "shouldAddCategory": {
            "type": "boolean",
            "description": "Whether or not to add a product category to the information presented to the user.",
        },
        "categoryDetails": {"type": "string", "description": "Details of product category, if applicable."},
    },
    "required": [
        "invoiceNumber",
        "invoiceDate",
        "clientDetails",
        "companyDetails",
        "items",
        "totalAmount",
        "shouldAddCategory",
    ],
}


EXAMPLE_OUTPUT = '''{
  "invoiceNumber": "F-2024-0113",
  "invoiceDate": "15/01/2024",
  "clientDetails": "Juan Pérez, C/ Mayor 3, 28013 Madrid, DNI 12345678Z",
  "companyDetails": "Suministros Norte S.L., CIF B12345678, Av. Industria 45, Bilbao",
  "items": ["2 x Tóner HP 305A - 120.00", "1 x Papel A4 caja 5 paquetes - 25.50"],
  "totalAmount": 176.06,
  "shouldAddCategory": true,
  "categoryDetails": "Office supplies"
}'''


VISION_EXTRACTION_PROMPT = '''You are an expert AI assistant specialized in extracting information from invoices.

Extract the following information from the invoice image:
- Invoice Number
- Invoice Date (exactly as printed on the invoice)
- Client Details (name, address, tax id of the customer, as one text)
- Company Details (name, address, tax id of the issuer, as one text)
- Items (as a list of strings, one per line item, including quantity and price when shown)
- Total Amount (as a number, without currency symbols or thousands separators)
- Determine if you should add category details to the information presented to the user. If so, set "shouldAddCategory" to true, and provide relevant details in "categoryDetails".

If a value cannot be determined use an empty string, an empty list, or 0 for the total.

REQUIRED JSON STRUCTURE:
{schema}

Example output:
{example}

Return ONLY the JSON object, no additional text or markdown formatting.
'''


def get_vision_prompt(include_example: bool = True) -> str:
    """
    Get the vision extraction prompt.

    Args:
        include_example: Whether to include the example output

    Returns:
        Prompt string
    """
    return VISION_EXTRACTION_PROMPT.format(
        schema=json.dumps(EXTRACTION_SCHEMA["properties"], indent=2, ensure_ascii=False),
        example=EXAMPLE_OUTPUT if include_example else "(none)",
    )
