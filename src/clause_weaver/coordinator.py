"""Track the clauses of one open document and drive their insertion and removal.

A clause moves through three states:

```
SELECTED --inject--> INJECTED --remove--> REMOVED --select--> SELECTED
```

Every transition is triggered once. `add_clause` itself happily inserts the
same clause twice; the coordinator refuses to inject a clause that is
already INJECTED.

Removal tries the live editing session first and only falls back to tree
surgery on serialized content when the session could not do it. Both
strategies are constructor arguments.

Not thread-safe: one coordinator serves one document, one operation at a
time.
"""
from enum import Enum
from typing import Callable, Dict, List, NamedTuple, Optional

import structlog

from clause_weaver.catalog import ClauseCatalog
from clause_weaver.injector import add_clause
from clause_weaver.models import Clause
from clause_weaver.remover import DocumentHost, EditingSession, remove_clause, remove_via_editing_session

logger = structlog.get_logger(__name__)


class ClauseState(str, Enum):
    SELECTED = "selected"
    INJECTED = "injected"
    REMOVED = "removed"


class ClauseStateError(ValueError):
    """Raised on a clause transition the lifecycle does not allow"""
    pass


class RemovalOutcome(NamedTuple):
    success: bool
    content: str
    strategy: Optional[str]  # "session", "structural" or None when nothing was removed


class ClauseCoordinator:
    """Lifecycle and removal policy for the clauses of one document."""

    def __init__(
        self,
        session: Optional[DocumentHost] = None,
        live_remover: Callable[[Optional[EditingSession], Clause], bool] = remove_via_editing_session,
        structural_remover: Callable[[str, Clause], str] = remove_clause,
        injector: Callable[[str, Clause], str] = add_clause,
    ):
        """Initialize the coordinator.

        Args:
            session: Optional live editing session. When present, injected
                content is opened in it and removal goes through it first.
            live_remover: Strategy deleting a clause through the session.
            structural_remover: Fallback strategy editing serialized content.
            injector: Strategy inserting a clause into serialized content.
        """
        self.session = session
        self.live_remover = live_remover
        self.structural_remover = structural_remover
        self.injector = injector
        self._clauses: Dict[str, Clause] = {}
        self._states: Dict[str, ClauseState] = {}
        self._injected_order: List[str] = []

    def _clause(self, clause_id: str) -> Clause:
        if clause_id not in self._clauses:
            raise ClauseStateError(f"Clause '{clause_id}' has not been selected.")
        return self._clauses[clause_id]

    def _expect(self, clause_id: str, state: ClauseState) -> Clause:
        clause = self._clause(clause_id)
        current = self._states[clause_id]
        if current != state:
            raise ClauseStateError(
                f"Clause '{clause_id}' is {current.value}, expected {state.value}."
            )
        return clause

    def state_of(self, clause_id: str) -> Optional[ClauseState]:
        return self._states.get(clause_id)

    @property
    def clause_ids(self) -> List[str]:
        """Ids of the currently injected clauses, in injection order."""
        return list(self._injected_order)

    @property
    def clause_ids_field(self) -> str:
        """Injected clause ids as the comma-separated field persisted with a document."""
        return ",".join(self._injected_order)

    def select(self, clause: Clause) -> None:
        """Start tracking a clause, or re-select one that was removed.

        Raises:
            ClauseStateError: If the clause is already selected or injected.
        """
        current = self._states.get(clause.id)
        if current is not None and current != ClauseState.REMOVED:
            raise ClauseStateError(f"Clause '{clause.id}' is already {current.value}.")
        self._clauses[clause.id] = clause
        self._states[clause.id] = ClauseState.SELECTED

    def _open_in_session(self, content: str, clause_id: str) -> None:
        """Load `content` into the attached session, logging instead of raising."""
        if self.session is None:
            return
        try:
            self.session.open(content)
        except Exception as e:
            logger.error("Could not open document in editing session", clause_id=clause_id, error=str(e), exc_info=True)

    def _serialize_session(self, clause_id: str) -> Optional[str]:
        try:
            return self.session.serialize()
        except Exception as e:
            logger.error("Could not read document from editing session", clause_id=clause_id, error=str(e), exc_info=True)
            return None

    def inject(self, content: str, clause_id: str) -> str:
        """Insert a selected clause into `content`.

        The clause only becomes INJECTED if the content actually changed;
        otherwise it stays SELECTED and the unchanged content is returned.
        A session that fails to load the result is logged; the returned
        content and the clause state still reflect the insertion.

        Raises:
            ClauseStateError: If the clause is not SELECTED.
        """
        clause = self._expect(clause_id, ClauseState.SELECTED)
        updated = self.injector(content, clause)
        if updated == content:
            logger.warning("Clause was not inserted", clause_id=clause_id)
            return content

        self._states[clause_id] = ClauseState.INJECTED
        self._injected_order.append(clause_id)
        self._open_in_session(updated, clause_id)
        return updated

    def remove(self, content: str, clause_id: str) -> RemovalOutcome:
        """Remove an injected clause, live session first, tree surgery second.

        If the session deleted the clause but its content cannot be read
        back, the structural strategy is applied to `content` and the result
        is loaded into the session. Session errors never escape.

        Args:
            content: Serialized document the structural fallback works on.
                With a session attached this should be the session's current
                content.
            clause_id: Id of an INJECTED clause.

        Returns:
            A `RemovalOutcome`. On success the clause is REMOVED and
            `content` holds the updated document.

        Raises:
            ClauseStateError: If the clause is not INJECTED.
        """
        clause = self._expect(clause_id, ClauseState.INJECTED)

        outcome = None
        if self.session is not None and self.live_remover(self.session, clause):
            live_content = self._serialize_session(clause_id)
            if live_content is not None:
                outcome = RemovalOutcome(True, live_content, "session")

        if outcome is None:
            updated = self.structural_remover(content, clause)
            if updated == content:
                logger.warning("Clause removal had no effect", clause_id=clause_id)
                return RemovalOutcome(False, content, None)
            self._open_in_session(updated, clause_id)
            outcome = RemovalOutcome(True, updated, "structural")

        self._states[clause_id] = ClauseState.REMOVED
        self._injected_order.remove(clause_id)
        logger.info("Removed clause", clause_id=clause_id, strategy=outcome.strategy)
        return outcome

    def restore(self, clause_ids_field: str, catalog: ClauseCatalog) -> List[str]:
        """Mark the clauses listed in a persisted id field as already injected.

        Ids missing from the catalog are skipped with a warning.

        Returns:
            The ids that were restored, in field order.
        """
        restored = []
        for clause_id in (part.strip() for part in clause_ids_field.split(",")):
            if not clause_id or clause_id in restored:
                continue
            clause = catalog.get(clause_id)
            if clause is None:
                logger.warning("Unknown clause id in document", clause_id=clause_id)
                continue
            self._clauses[clause_id] = clause
            self._states[clause_id] = ClauseState.INJECTED
            if clause_id not in self._injected_order:
                self._injected_order.append(clause_id)
            restored.append(clause_id)
        return restored
