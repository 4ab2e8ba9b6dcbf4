"""Directory-backed store of clause definitions.

Each clause lives in its own `<id>.json` file using the field names of the
editor's clause records:

```
{"id": "nda-1", "name": "Confidentiality", "initial": "The Receiving Party", "content": "{...}"}
```
"""
import json
import re
from pathlib import Path
from typing import Dict, Iterator, List, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from clause_weaver.models import CLAUSE_ID_PATTERN, Clause

logger = structlog.get_logger(__name__)


class CatalogError(Exception):
    """Raised when a clause file cannot be read or validated"""
    pass


def load_clause_file(path: Path) -> Clause:
    """Read and validate a single clause file.

    Raises:
        CatalogError: If the file is not valid JSON or not a valid clause.
    """
    try:
        data = json.loads(Path(path).read_text())
        return Clause.model_validate(data)
    except json.JSONDecodeError as e:
        raise CatalogError(f"{path}: not valid JSON ({e})") from e
    except PydanticValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise CatalogError(f"{path}: invalid clause ({errors})") from e


class ClauseCatalog:
    """Clause definitions stored as JSON files in one directory."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self._clauses: Dict[str, Clause] = {}

    def _path(self, clause_id: str) -> Path:
        if not re.fullmatch(CLAUSE_ID_PATTERN, clause_id):
            raise CatalogError(f"Invalid clause id '{clause_id}': use letters, digits, '-' and '_' only.")
        return self.directory / f"{clause_id}.json"

    def load(self) -> "ClauseCatalog":
        """(Re)read every clause file in the directory.

        A missing directory is an empty catalog.

        Raises:
            CatalogError: If any file is invalid.
        """
        self._clauses = {}
        if self.directory.exists():
            for path in sorted(self.directory.glob("*.json")):
                clause = load_clause_file(path)
                self._clauses[clause.id] = clause
        logger.debug("Loaded clause catalog", directory=str(self.directory), count=len(self._clauses))
        return self

    def get(self, clause_id: str) -> Optional[Clause]:
        return self._clauses.get(clause_id)

    def add(self, clause: Clause) -> bool:
        """Write a clause to the catalog.

        Returns:
            True if a clause with the same id was overwritten.
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(clause.id)
        existed = path.exists()
        path.write_text(json.dumps(clause.model_dump(by_alias=True), indent=2))
        self._clauses[clause.id] = clause
        return existed

    def remove(self, clause_id: str) -> bool:
        """Delete a clause. Returns False if it did not exist.

        Raises:
            CatalogError: If `clause_id` is not a valid clause id.
        """
        path = self._path(clause_id)
        self._clauses.pop(clause_id, None)
        if not path.exists():
            return False
        path.unlink()
        return True

    def search(self, term: str) -> List[Clause]:
        """Clauses whose display name contains `term`, ignoring case."""
        term = term.lower()
        return [clause for clause in self if term in clause.display_name.lower()]

    def __iter__(self) -> Iterator[Clause]:
        return iter(self._clauses[key] for key in sorted(self._clauses))

    def __len__(self) -> int:
        return len(self._clauses)

    def __contains__(self, clause_id) -> bool:
        return clause_id in self._clauses
