"""Remove previously inserted clauses from a document.

Two interchangeable strategies are provided:

- `remove_via_editing_session` drives a live editing session: it searches for
  the clause's identifying text, selects the paragraph of the first hit and
  deletes it with the session's own commands.
- `remove_clause` works on serialized content alone: it finds the first body
  run containing the identifying text and excises the enclosing block.

`clause_weaver.coordinator.ClauseCoordinator` tries the first and falls back
to the second. Neither strategy raises; failures are logged and reported as
`False` or as unchanged content.
"""
from typing import Optional, Protocol, Sized

import structlog

from clause_weaver.codec import parse, serialize
from clause_weaver.locator import find_text_in_document
from clause_weaver.models import Clause

logger = structlog.get_logger(__name__)


class SearchCapability(Protocol):
    search_results: Sized
    current_search_result_index: int

    def clear_highlight(self) -> None: ...

    def find_all(self, text: str, match_case: bool = False, whole_word: bool = False) -> None: ...


class SelectionCapability(Protocol):
    start_paragraph_index: int

    def select_paragraph_by_index(self, index: int) -> None: ...


class EditCapability(Protocol):
    def delete(self) -> None: ...


class EditingSession(Protocol):
    """The minimal surface a live editing session must expose for removal."""
    search: SearchCapability
    selection: SelectionCapability
    edit_commands: EditCapability


class DocumentHost(EditingSession, Protocol):
    """An editing session that can also hand over and load whole documents."""

    def serialize(self) -> str: ...

    def open(self, content: str) -> None: ...


def remove_via_editing_session(session: Optional[EditingSession], clause: Clause) -> bool:
    """Delete a clause through the editing session's search and edit commands.

    Clears any previous search highlight, runs a case-insensitive search for
    the clause's identifying text and, if anything was found, makes the first
    result current, selects its paragraph and deletes it.

    Args:
        session: The live editing session, or None when no editor is attached.
        clause: The clause to remove.

    Returns:
        True if a deletion was issued. False if the session is missing, the
        text was not found, or the session raised at any step.
    """
    if session is None:
        logger.error("Editing session is missing", clause_id=clause.id)
        return False

    try:
        search = session.search
        search.clear_highlight()
        search.find_all(clause.identifying_text, match_case=False, whole_word=False)

        results = search.search_results
        if results is None or len(results) == 0:
            logger.warning("Could not find clause text in editing session", clause_id=clause.id)
            return False

        search.current_search_result_index = 0
        selection = session.selection
        selection.select_paragraph_by_index(selection.start_paragraph_index)
        session.edit_commands.delete()
        return True
    except Exception as e:
        logger.error("Error removing clause using editing session", clause_id=clause.id, error=str(e), exc_info=True)
        return False


def remove_clause(content: str, clause: Clause) -> str:
    """Excise the block holding a clause's identifying text from serialized content.

    Only the block containing the first match is removed. A clause that is not
    present is an expected outcome and is logged as a warning.

    Args:
        content: Serialized document.
        clause: The clause to remove.

    Returns:
        The updated serialized document, or `content` unchanged if the clause
        was not found or any step failed.
    """
    try:
        document = parse(content)
        if document is None:
            return content

        matches = find_text_in_document(document, clause.identifying_text)
        if not matches:
            logger.warning("Clause not found in document", clause_id=clause.id)
            return content

        location = matches[0].block_location()
        if location is None:
            logger.error("Could not locate paragraph containing clause", clause_id=clause.id)
            return content
        section_index, block_index = location

        updated = document.clone()
        if section_index >= len(updated.sections) or block_index >= len(updated.sections[section_index].blocks):
            logger.error(
                "Invalid section or paragraph index",
                clause_id=clause.id,
                section=section_index,
                block=block_index,
            )
            return content

        del updated.sections[section_index].blocks[block_index]
        logger.debug("Removed clause block", clause_id=clause.id, section=section_index, block=block_index)

        result = serialize(updated)
        if not result:
            return content
        return result
    except Exception as e:
        logger.error("Error removing clause from document", clause_id=clause.id, error=str(e), exc_info=True)
        return content
