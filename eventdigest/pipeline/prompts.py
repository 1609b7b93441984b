"""Prompt templates for LLM event extraction."""

EXTRACTION_PROMPT = """\
Extract event information from this HTML content. Return a JSON object with the following structure:
{{
  "eventName": "string",
  "date": "string (format: 'Day, Month Date • Time' or 'Day, Month Date +more dates • Time - Time')",
  "location": "string (include full address if available)",
  "generalArea": "string",
  "detailedPageLink": "string (full URL if available)",
  "imageUrl": "string (primary event image URL if available)",
  "zipCode": "string (if mentioned)",
  "{zip_flag}": boolean
}}

Look for:
- Event name/title
- Date and time information (preserve the exact format as shown on the website, do not normalize or guess)
- Specific location/venue (include full address if available)
- General area/neighborhood
- Any links to detailed event pages
- Primary event image URL (look for both img src attributes AND CSS background-image properties in style attributes)
- Zip code {zip_code} specifically or any zip codes
- Set {zip_flag} to true if zip code {zip_code} is found anywhere in the content

HTML Content:
{html}

Return only valid JSON, no additional text or markdown formatting.
"""


def zip_flag_key(zip_code: str) -> str:
    """JSON key the model uses for the target zip flag, e.g. ``hasZipCode14075``."""
    return f"hasZipCode{zip_code}"


def format_extraction_prompt(html: str, zip_code: str) -> str:
    return EXTRACTION_PROMPT.format(
        html=html,
        zip_code=zip_code,
        zip_flag=zip_flag_key(zip_code),
    )
