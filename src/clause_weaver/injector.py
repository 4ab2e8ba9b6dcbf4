"""Insert clause fragments into serialized documents.

The insertion point is chosen heuristically. A clause is placed right after
the block holding the first placeholder whose name loosely matches the
clause's display name, so `{confidentiality}` in a template picks up a clause
called "Confidentiality Clause" and vice versa. Without a matching
placeholder the clause is appended at the end of the document.

Injection is all-or-nothing: on any failure the original content string is
returned unchanged and the reason is logged.
"""
import re
from typing import List, Optional

import structlog

from clause_weaver.codec import parse, serialize
from clause_weaver.document import Block, Document
from clause_weaver.locator import Placeholder, find_placeholders
from clause_weaver.models import Clause

logger = structlog.get_logger(__name__)

_WHITESPACE = re.compile(r'\s+')


def normalize_clause_key(display_name: str) -> str:
    """Lowercase a clause name and strip all whitespace from it."""
    return _WHITESPACE.sub('', display_name.lower())


def match_clause_placeholder(document: Document, clause_key: str) -> Optional[Placeholder]:
    """Return the first placeholder whose name contains, or is contained by, the clause key.

    Matching ignores case on the placeholder side. An empty key matches nothing.
    """
    if not clause_key:
        return None
    for placeholder in find_placeholders(document):
        if placeholder.name is None:
            continue
        name = placeholder.name.lower()
        if clause_key in name or name in clause_key:
            return placeholder
    return None


def fragment_paragraphs(fragment: Optional[Document]) -> List[Block]:
    """Return the blocks of every section of a fragment, in order."""
    if fragment is None:
        return []
    return [block.clone() for section in fragment.sections for block in section.blocks]


def add_clause(content: str, clause: Clause) -> str:
    """Insert a clause's paragraphs into serialized document content.

    Steps:

    1. Parse `content`.
    2. Look for the first placeholder matching the normalized clause name.
    3. Parse the clause fragment; it must hold at least one section with at
       least one block.
    4. With a matching placeholder, splice the fragment paragraphs into that
       placeholder's section right after the block containing it.
    5. Otherwise append them to the last section, or, for a document without
       sections, append the fragment's sections wholesale.

    The core does not check whether the clause is already present, so calling
    this twice inserts the clause twice. `ClauseCoordinator` guards against
    that at the host level.

    Args:
        content: Serialized document.
        clause: The clause to insert.

    Returns:
        The updated serialized document, or `content` unchanged if any step
        fails.
    """
    try:
        document = parse(content)
        if document is None:
            return content

        placeholder = match_clause_placeholder(document, normalize_clause_key(clause.display_name))

        fragment = parse(clause.content_fragment)
        paragraphs = fragment_paragraphs(fragment)
        if not paragraphs:
            logger.error("Clause content has no paragraphs to insert", clause_id=clause.id)
            return content

        updated = document.clone()
        if placeholder is not None:
            location = placeholder.block_location()
            if location is None:
                logger.error(
                    "Could not locate paragraph containing placeholder",
                    clause_id=clause.id,
                    placeholder=placeholder.raw,
                )
                return content
            section_index, block_index = location
            section = updated.sections[section_index]
            for index, paragraph in enumerate(paragraphs, start=block_index + 1):
                section.add_block(paragraph, index)
            logger.debug(
                "Inserted clause at placeholder",
                clause_id=clause.id,
                placeholder=placeholder.name,
                section=section_index,
                block=block_index + 1,
            )
        elif updated.sections:
            for paragraph in paragraphs:
                updated.sections[-1].add_block(paragraph)
            logger.debug("Appended clause to last section", clause_id=clause.id)
        else:
            updated.sections.extend(section.clone() for section in fragment.sections)
            logger.debug("Appended clause sections to empty document", clause_id=clause.id)

        result = serialize(updated)
        if not result:
            return content
        return result
    except Exception as e:
        logger.error("Error adding clause to document", clause_id=clause.id, error=str(e), exc_info=True)
        return content
