"""Parse serialized document content into Document objects and back.

Content is the compact JSON produced by the editing surface. The parser
enforces the structural shape the rest of the package relies on:

```
{
  "sec": [                      # optional, list of sections
    {"b": [                     # optional, list of blocks
      {"i": [                   # optional, list of inline runs
        {"tlp": "text"}         # optional, must be a string
      ]}
    ]}
  ]
}
```

A key that is present with the wrong type is a parse failure, never a
partial success. Unknown keys are kept as opaque node properties.

`load_document` raises `ValidationError`; `parse` and `serialize` are the
non-raising variants used by the clause operations, which log the failure and
return a sentinel instead.

See Also:
    `clause_weaver.document.Document`: The tree model produced by parsing.
"""
import json
from typing import Optional

import structlog

from clause_weaver.document import (
    BLOCKS_KEY,
    RUNS_KEY,
    SECTIONS_KEY,
    TEXT_KEY,
    Document,
)

logger = structlog.get_logger(__name__)


class ValidationError(Exception):
    """Raised when content doesn't conform to the expected document structure"""
    pass


def _check_list(node: dict, key: str, where: str) -> list:
    value = node.get(key, [])
    if not isinstance(value, list):
        raise ValidationError(f"{where}.{key} must be a list, got {type(value).__name__}")
    return value


def _check_object(value, where: str) -> dict:
    if not isinstance(value, dict):
        raise ValidationError(f"{where} must be an object, got {type(value).__name__}")
    return value


def load_document(content: str) -> Document:
    """Parse serialized content into a Document, validating its shape.

    Args:
        content: A JSON string holding a document object.

    Returns:
        A `Document` with typed sections, blocks and runs.

    Raises:
        ValidationError: If the content is not valid JSON.
        ValidationError: If the root, a section, a block or a run is not an
            object.
        ValidationError: If `sec`, `b` or `i` is present but not a list.
        ValidationError: If a run's `tlp` is present but not a string.

    Example:
        ```python
        doc = load_document('{"sec": [{"b": [{"i": [{"tlp": "Hello"}]}]}]}')
        print(doc.sections[0].blocks[0].runs[0].text)  # "Hello"
        ```
    """
    if not isinstance(content, str):
        raise ValidationError(f"Content must be a string, got {type(content).__name__}")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Content is not valid JSON: {e}") from e

    _check_object(data, "document")
    for s, section in enumerate(_check_list(data, SECTIONS_KEY, "document")):
        where = f"sec[{s}]"
        _check_object(section, where)
        for b, block in enumerate(_check_list(section, BLOCKS_KEY, where)):
            block_where = f"{where}.b[{b}]"
            _check_object(block, block_where)
            for i, run in enumerate(_check_list(block, RUNS_KEY, block_where)):
                run_where = f"{block_where}.i[{i}]"
                _check_object(run, run_where)
                if TEXT_KEY in run and not isinstance(run[TEXT_KEY], str):
                    raise ValidationError(f"{run_where}.{TEXT_KEY} must be a string")

    return Document.from_dict(data)


def parse(content: str) -> Optional[Document]:
    """Parse content, returning None and logging an error on failure."""
    try:
        return load_document(content)
    except ValidationError as e:
        logger.error("Error parsing document content", error=str(e))
        return None


def serialize(document: Document) -> str:
    """Serialize a Document, returning an empty string and logging on failure.

    Serialization fails when an opaque property holds something JSON cannot
    represent, such as a cyclic reference.
    """
    try:
        return json.dumps(document.to_dict(), ensure_ascii=False)
    except (TypeError, ValueError, RecursionError) as e:
        logger.error("Error serializing document content", error=str(e))
        return ""
