"""Providing a clause insertion and template filling toolkit for editor documents.

Utilities for parsing the editor's serialized document tree, locating `{name}`
placeholders and free text inside it, inserting and removing reusable clauses,
and filling templates with caller-supplied values.
"""

from clause_weaver.document import Document, Section, Block, Run
from clause_weaver.codec import load_document, parse, serialize, ValidationError
from clause_weaver.models import Clause
from clause_weaver.injector import add_clause
from clause_weaver.remover import remove_clause, remove_via_editing_session
from clause_weaver.templates import process_templates, identify_placeholders
from clause_weaver.coordinator import ClauseCoordinator, ClauseState

__all__ = [
    "Document",
    "Section",
    "Block",
    "Run",
    "load_document",
    "parse",
    "serialize",
    "ValidationError",
    "Clause",
    "add_clause",
    "remove_clause",
    "remove_via_editing_session",
    "process_templates",
    "identify_placeholders",
    "ClauseCoordinator",
    "ClauseState",
]
