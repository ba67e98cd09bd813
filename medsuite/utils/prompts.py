"""
Prompt compilation for registry templates.

Templates recognize exactly two placeholders:
- {DATE}: replaced with the request date as DD/MM/YYYY
- {INPUT_DATA}: replaced with the caller's input serialized as indented JSON

Substitution is plain text replacement. Nothing in the caller's input is
formatted, evaluated or scanned for further placeholders.
"""

import json
from datetime import datetime
from typing import Any, Optional

from medsuite.errors import InvalidTemplateError

DATE_TOKEN = "{DATE}"
INPUT_DATA_TOKEN = "{INPUT_DATA}"


def format_prompt_date(now: datetime) -> str:
    """
    Format a date the way Australian clinical documents print it.

    Example:
        >>> format_prompt_date(datetime(2025, 7, 1))
        '01/07/2025'
    """
    return now.strftime("%d/%m/%Y")


def serialize_input(input_data: Any) -> str:
    """
    Serialize caller input into the text inserted at {INPUT_DATA}.

    Keys are sorted and the output is indented, so the same input always
    produces the same text. json.loads reverses it.

    Example:
        >>> print(serialize_input({"condition": "anxiety", "age": 34}))
        {
          "age": 34,
          "condition": "anxiety"
        }
    """
    return json.dumps(input_data, indent=2, sort_keys=True, ensure_ascii=False)


def compile_prompt(template: Optional[str], input_data: Any, now: datetime) -> str:
    """
    Build the final prompt for a tool.

    Args:
        template: Prompt template from the tool definition
        input_data: Caller-supplied input (any JSON value)
        now: Date to substitute for {DATE}

    Returns:
        Template with every {DATE} and {INPUT_DATA} occurrence replaced

    Raises:
        InvalidTemplateError: If the template is missing or blank
    """
    if template is None or not template.strip():
        raise InvalidTemplateError("Prompt template is missing or empty")

    # Date first: placeholder-like text inside the input must survive untouched
    prompt = template.replace(DATE_TOKEN, format_prompt_date(now))
    prompt = prompt.replace(INPUT_DATA_TOKEN, serialize_input(input_data))

    return prompt
