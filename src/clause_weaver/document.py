"""Define the typed document tree that clause operations work on.

This module provides a hierarchical document model with four node classes:
`Run`, `Block`, `Section`, and `Document`. Each level mirrors one level of the
compact JSON format produced by the editing surface:

```
{"sec": [{"b": [{"i": [{"tlp": "text"}]}]}]}
```

Every node keeps the keys it does not interpret in an opaque `properties`
mapping so that paragraph formats, headers, table rows and styles survive a
parse/serialize cycle untouched.

Nodes are mutable, but no operation in this package edits a tree it was
handed: structural edits are always applied to `Document.clone()`.

See Also:
    `clause_weaver.codec`: Builds Document instances from serialized content.
    `clause_weaver.paths`: Addresses individual nodes inside a Document.
"""

import copy
from typing import *

SECTIONS_KEY = "sec"
BLOCKS_KEY = "b"
RUNS_KEY = "i"
TEXT_KEY = "tlp"


class Run():
    """A single inline item of a block.

    A run either holds literal text (which may contain `{name}` markers) or,
    for inline items such as images and field marks, no text at all.

    Attributes:
        text: The run text, or None when the inline item has no `tlp` key.
        properties: Opaque keys of the inline item (character format, ...).

    Example:
        ```python
        run = Run("Dear {client_name},")
        print(run.to_dict())  # {"tlp": "Dear {client_name},"}
        ```
    """
    text: Optional[str]
    properties: Dict[str, Any]

    def __init__(self, text: Optional[str] = None, properties: Dict[str, Any] = None) -> None:
        """Initialize a new Run.

        Args:
            text: The run text. None for inline items without text.
            properties: Optional opaque keys. Defaults to an empty dict.
        """
        self.text = text
        self.properties = properties if properties is not None else {}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Run":
        text = data.get(TEXT_KEY)
        properties = {k: v for k, v in data.items() if k != TEXT_KEY}
        return cls(text=text, properties=properties)

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.properties)
        if self.text is not None:
            data[TEXT_KEY] = self.text
        return data

    def clone(self) -> "Run":
        """Return a structural copy sharing no mutable state with this run."""
        return Run(text=self.text, properties=copy.deepcopy(self.properties))

    def __eq__(self, other) -> bool:
        if not isinstance(other, Run):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"Run({self.text!r})"


class Block():
    """A paragraph-level block holding an ordered list of runs.

    Block-level properties (paragraph format, table rows, ...) are preserved
    but never interpreted. Blocks that carry no `i` key in their serialized
    form, such as tables, have an empty run list and are written back without
    the key.

    Attributes:
        runs: The ordered list of `Run` instances in this block.
        properties: Opaque block keys.
    """
    runs: List[Run]
    properties: Dict[str, Any]

    def __init__(self, runs: List[Run] = None, properties: Dict[str, Any] = None, has_runs_key: bool = True) -> None:
        """Initialize a new Block.

        Args:
            runs: Optional initial list of `Run` instances. Defaults to an
                empty list.
            properties: Optional opaque keys. Defaults to an empty dict.
            has_runs_key: Whether the serialized block carried an `i` key.
                Only consulted when `runs` is empty.
        """
        self.runs = runs if runs is not None else []
        self.properties = properties if properties is not None else {}
        self._has_runs_key = has_runs_key

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Block":
        runs = [Run.from_dict(item) for item in data.get(RUNS_KEY, [])]
        properties = {k: v for k, v in data.items() if k != RUNS_KEY}
        return cls(runs=runs, properties=properties, has_runs_key=RUNS_KEY in data)

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.properties)
        if self.runs or self._has_runs_key:
            data[RUNS_KEY] = [run.to_dict() for run in self.runs]
        return data

    @property
    def text(self) -> str:
        """The concatenated text of all runs that carry text."""
        return "".join(run.text for run in self.runs if run.text is not None)

    def clone(self) -> "Block":
        return Block(
            runs=[run.clone() for run in self.runs],
            properties=copy.deepcopy(self.properties),
            has_runs_key=self._has_runs_key,
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Block):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"Block({self.text!r})"


class Section():
    """A document section holding an ordered list of blocks.

    Attributes:
        blocks: The ordered list of `Block` instances in this section.
        properties: Opaque section keys (page setup, headers and footers).
    """
    blocks: List[Block]
    properties: Dict[str, Any]

    def __init__(self, blocks: List[Block] = None, properties: Dict[str, Any] = None) -> None:
        self.blocks = blocks if blocks is not None else []
        self.properties = properties if properties is not None else {}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Section":
        blocks = [Block.from_dict(item) for item in data.get(BLOCKS_KEY, [])]
        properties = {k: v for k, v in data.items() if k != BLOCKS_KEY}
        return cls(blocks=blocks, properties=properties)

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.properties)
        data[BLOCKS_KEY] = [block.to_dict() for block in self.blocks]
        return data

    def add_block(self, block: Block, index=None) -> None:
        """Add a block to this section.

        Args:
            block: The `Block` instance to add.
            index: Optional position to insert the block. If not provided,
                the block is appended to the end of the list.
        """
        if index is not None:
            self.blocks.insert(index, block)
        else:
            self.blocks.append(block)

    def clone(self) -> "Section":
        return Section(
            blocks=[block.clone() for block in self.blocks],
            properties=copy.deepcopy(self.properties),
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Section):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"Section(blocks={len(self.blocks)})"


class Document():
    """A top-level document holding an ordered list of sections.

    Document is the root of every tree operation. Keys other than `sec`
    (styles, list definitions, editor flags) are kept in `properties`.

    Attributes:
        sections: The ordered list of `Section` instances.
        properties: Opaque top-level keys.

    Example:
        ```python
        doc = Document([Section([Block([Run("This Agreement is made on {effective_date}.")])])])

        print(doc.preview())
        # This Agreement is made on {effective_date}.
        ```
    """
    sections: List[Section]
    properties: Dict[str, Any]

    def __init__(self, sections: List[Section] = None, properties: Dict[str, Any] = None) -> None:
        """Initialize a new Document.

        Args:
            sections: Optional initial list of `Section` instances. Defaults
                to an empty list.
            properties: Optional opaque top-level keys. Defaults to an empty
                dict.
        """
        self.sections = sections if sections is not None else []
        self.properties = properties if properties is not None else {}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        """Build a Document from an already-decoded JSON object.

        The shape is not checked here; use `clause_weaver.codec.load_document`
        for untrusted input.
        """
        sections = [Section.from_dict(item) for item in data.get(SECTIONS_KEY, [])]
        properties = {k: v for k, v in data.items() if k != SECTIONS_KEY}
        return cls(sections=sections, properties=properties)

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.properties)
        data[SECTIONS_KEY] = [section.to_dict() for section in self.sections]
        return data

    def clone(self) -> "Document":
        """Return a structural copy of the whole tree.

        The copy shares no mutable state with this document.
        """
        return Document(
            sections=[section.clone() for section in self.sections],
            properties=copy.deepcopy(self.properties),
        )

    def preview(self) -> str:
        """Render the document body as plain text, one line per block."""
        lines = []
        for section in self.sections:
            for block in section.blocks:
                lines.append(block.text)
        return "\n".join(lines)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Document):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"Document(sections={len(self.sections)})"
