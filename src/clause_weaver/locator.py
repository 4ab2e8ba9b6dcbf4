"""Locate placeholder markers and free text inside a document tree.

Two searches are provided:

- `find_placeholders` walks the whole tree, including nested objects kept in
  opaque node properties (headers, footers, table cells), and reports every
  node whose text contains a `{name}`-shaped marker.
- `find_text_in_document` walks only the body runs and reports every run
  whose text contains a literal substring.

Both return results in document (pre-order) order together with the `Path`
of each hit. Paths are valid only until the tree is next mutated.

See Also:
    `clause_weaver.paths`: Path steps, resolution and block locations.
"""
import re
from typing import Any, Iterator, List, Optional, Tuple

from clause_weaver.document import (
    BLOCKS_KEY,
    RUNS_KEY,
    SECTIONS_KEY,
    TEXT_KEY,
    Block,
    Document,
    Run,
    Section,
)
from clause_weaver.paths import FieldStep, IndexStep, Path, block_location

PLACEHOLDER_NAME_PATTERN = re.compile(r'\{([^}]+)\}')


class Placeholder:
    """A node whose text contains a `{...}` marker, with its address."""

    def __init__(self, raw: str, path: Path):
        """Initialize a placeholder hit.

        Args:
            raw: The full text of the node containing the marker,
                e.g. `"Dear {client_name},"`.
            path: Address of the node holding the text.
        """
        self.raw = raw
        self.path = path
        self.name = extract_name(raw)

    def block_location(self) -> Optional[Tuple[int, int]]:
        """(section, block) indices of the body block holding this marker."""
        return block_location(self.path)

    def __repr__(self) -> str:
        return f"Placeholder(name={self.name!r}, raw={self.raw!r})"


class TextMatch:
    """A body run whose text contains a searched substring."""

    def __init__(self, text: str, path: Path):
        self.text = text
        self.path = path

    def block_location(self) -> Optional[Tuple[int, int]]:
        return block_location(self.path)

    def __repr__(self) -> str:
        return f"TextMatch(text={self.text!r})"


def extract_name(marker_text: str) -> Optional[str]:
    """Return the first `{...}` capture of a marker text, or None.

    Example:
        ```python
        extract_name("Signed on {date} by {party}")  # "date"
        extract_name("no marker")                    # None
        ```
    """
    match = PLACEHOLDER_NAME_PATTERN.search(marker_text)
    return match.group(1) if match else None


def _is_marker(text: Any) -> bool:
    return isinstance(text, str) and '{' in text and '}' in text


def _walk_opaque(value: Any, path: Path) -> Iterator[Placeholder]:
    """Pre-order walk over raw JSON values stored in node properties."""
    if not isinstance(value, dict):
        return
    if _is_marker(value.get(TEXT_KEY)):
        yield Placeholder(value[TEXT_KEY], path)
    yield from _walk_properties(value, path)


def _walk_properties(properties: dict, path: Path) -> Iterator[Placeholder]:
    for key, child in properties.items():
        child_path = path + (FieldStep(key),)
        if isinstance(child, list):
            for index, item in enumerate(child):
                yield from _walk_opaque(item, child_path + (IndexStep(index),))
        elif isinstance(child, dict):
            yield from _walk_opaque(child, child_path)


def _walk(node: Any, path: Path) -> Iterator[Placeholder]:
    if isinstance(node, Document):
        for index, section in enumerate(node.sections):
            yield from _walk(section, path + (FieldStep(SECTIONS_KEY), IndexStep(index)))
    elif isinstance(node, Section):
        for index, block in enumerate(node.blocks):
            yield from _walk(block, path + (FieldStep(BLOCKS_KEY), IndexStep(index)))
    elif isinstance(node, Block):
        for index, run in enumerate(node.runs):
            yield from _walk(run, path + (FieldStep(RUNS_KEY), IndexStep(index)))
    elif isinstance(node, Run):
        if _is_marker(node.text):
            yield Placeholder(node.text, path)
    else:
        raise TypeError(f"Unexpected node type {type(node).__name__}")
    yield from _walk_properties(node.properties, path)


def find_placeholders(document: Document) -> List[Placeholder]:
    """Return every node whose text contains both `{` and `}`.

    The traversal is pre-order over sections, blocks and runs; within a node
    its children are visited before the nested objects in its opaque
    properties. Placeholders sharing a name are reported separately.

    Args:
        document: The tree to search.

    Returns:
        A list of `Placeholder` instances in document order. A placeholder's
        `name` is None when its text has braces but no valid `{name}` capture.
    """
    return list(_walk(document, ()))


def find_placeholder_by_name(document: Document, name: str) -> Optional[Placeholder]:
    """Return the first placeholder whose extracted name equals `name`."""
    for placeholder in find_placeholders(document):
        if placeholder.name == name:
            return placeholder
    return None


def find_sections(document: Document) -> List[Section]:
    return list(document.sections)


def find_paragraphs(document: Document) -> List[Tuple[Path, Block]]:
    """Return `(path, block)` for every body block in document order."""
    paragraphs = []
    for s, section in enumerate(document.sections):
        for b, block in enumerate(section.blocks):
            path = (FieldStep(SECTIONS_KEY), IndexStep(s), FieldStep(BLOCKS_KEY), IndexStep(b))
            paragraphs.append((path, block))
    return paragraphs


def find_text_in_document(document: Document, needle: str) -> List[TextMatch]:
    """Return every body run whose text contains `needle` (case-sensitive).

    Runs without text are skipped, and so is text kept in opaque properties.
    """
    matches = []
    for block_path, block in find_paragraphs(document):
        for index, run in enumerate(block.runs):
            if run.text is not None and needle in run.text:
                matches.append(TextMatch(run.text, block_path + (FieldStep(RUNS_KEY), IndexStep(index))))
    return matches
