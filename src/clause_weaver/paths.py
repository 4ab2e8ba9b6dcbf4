"""Address nodes inside a document tree.

A path is a tuple of steps, each either a `FieldStep` (a key into a node or
an opaque mapping) or an `IndexStep` (a position in a list). The path of the
second run of the first block of the first section is:

```
(FieldStep("sec"), IndexStep(0), FieldStep("b"), IndexStep(0), FieldStep("i"), IndexStep(1))
```

Paths are only valid for the tree they were computed on. Any structural edit
invalidates the paths of nodes after the edit point, so callers resolve or
consume a path before the next mutation.
"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from clause_weaver.document import (
    BLOCKS_KEY,
    RUNS_KEY,
    SECTIONS_KEY,
    Block,
    Document,
    Run,
    Section,
)


@dataclass(frozen=True)
class FieldStep:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class IndexStep:
    index: int

    def __str__(self) -> str:
        return str(self.index)


Step = Union[FieldStep, IndexStep]
Path = Tuple[Step, ...]


class PathError(LookupError):
    """Raised when a path does not lead to a node of the given tree"""
    pass


def format_path(path: Path) -> str:
    """Render a path as a dotted string, e.g. `sec.0.b.1.i.0`."""
    return ".".join(str(step) for step in path)


def _child(node: Any, name: str) -> Any:
    if isinstance(node, Document):
        return node.sections if name == SECTIONS_KEY else node.properties[name]
    if isinstance(node, Section):
        return node.blocks if name == BLOCKS_KEY else node.properties[name]
    if isinstance(node, Block):
        return node.runs if name == RUNS_KEY else node.properties[name]
    if isinstance(node, Run):
        return node.properties[name]
    if isinstance(node, dict):
        return node[name]
    raise PathError(f"Cannot take field '{name}' of {type(node).__name__}")


def resolve(document: Document, path: Path) -> Any:
    """Follow a path from the document root and return the node it names.

    Typed nodes are returned for steps through `sec`, `b` and `i`; steps into
    opaque properties return the raw mapping or list found there.

    Raises:
        PathError: If a step does not exist in the tree.
    """
    current: Any = document
    for position, step in enumerate(path):
        try:
            if isinstance(step, FieldStep):
                current = _child(current, step.name)
            elif isinstance(current, list):
                current = current[step.index]
            else:
                raise PathError(f"Cannot index into {type(current).__name__}")
        except (KeyError, IndexError) as e:
            raise PathError(
                f"Path {format_path(path)} is invalid at step {position} ({step})"
            ) from e
    return current


def block_location(path: Path) -> Optional[Tuple[int, int]]:
    """Return the (section, block) indices of the body block a path runs through.

    The path must start with `sec.<n>.b.<m>`; anything nested below that block
    (runs, table cells) belongs to the same body block. Paths into opaque
    section properties such as headers yield None.
    """
    if len(path) < 4:
        return None
    sec_field, sec_index, blocks_field, block_index = path[:4]
    if sec_field != FieldStep(SECTIONS_KEY) or blocks_field != FieldStep(BLOCKS_KEY):
        return None
    if not isinstance(sec_index, IndexStep) or not isinstance(block_index, IndexStep):
        return None
    return sec_index.index, block_index.index
