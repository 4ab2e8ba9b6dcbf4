"""Fill and enumerate `{name}` placeholders in serialized documents."""
from typing import List, Mapping

import structlog

from clause_weaver.codec import parse, serialize
from clause_weaver.document import TEXT_KEY, Run
from clause_weaver.locator import find_placeholders
from clause_weaver.paths import resolve

logger = structlog.get_logger(__name__)


def process_templates(content: str, values: Mapping[str, str]) -> str:
    """Replace placeholders with caller-supplied values.

    For every placeholder whose name has a non-empty value in `values`, the
    first `{name}` occurrence in that node's text is replaced and the rest of
    the text is left intact. Placeholders without a value keep their raw
    text, braces included.

    Args:
        content: Serialized document.
        values: Mapping of placeholder name to replacement text.

    Returns:
        The updated serialized document, or `content` unchanged on failure.

    Example:
        ```python
        process_templates(content, {"client_name": "Ann Lee"})
        # "Dear {client_name}," -> "Dear Ann Lee,"
        ```
    """
    try:
        document = parse(content)
        if document is None:
            return content

        updated = document.clone()
        # Paths stay valid: text replacement never changes the tree shape.
        for placeholder in find_placeholders(updated):
            name = placeholder.name
            if not name or not values.get(name):
                continue
            target = resolve(updated, placeholder.path)
            marker = "{" + name + "}"
            if isinstance(target, Run):
                target.text = target.text.replace(marker, values[name], 1)
            else:
                target[TEXT_KEY] = target[TEXT_KEY].replace(marker, values[name], 1)

        result = serialize(updated)
        if not result:
            return content
        return result
    except Exception as e:
        logger.error("Error processing templates", error=str(e), exc_info=True)
        return content


def identify_placeholders(content: str) -> List[str]:
    """Return the distinct placeholder names of a document in first-seen order.

    Returns an empty list if the content cannot be parsed.
    """
    try:
        document = parse(content)
        if document is None:
            return []

        names = []
        for placeholder in find_placeholders(document):
            if placeholder.name is not None and placeholder.name not in names:
                names.append(placeholder.name)
        return names
    except Exception as e:
        logger.error("Error identifying placeholders", error=str(e), exc_info=True)
        return []
