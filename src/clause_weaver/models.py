"""Value objects exchanged with the host application.

The host owns clause definitions; the package only reads them. Field aliases
match the clause records the editor front end stores (`name`, `initial`,
`content`), so catalog files can be validated directly.
"""
from pydantic import BaseModel, ConfigDict, Field

# Clause ids double as catalog file names.
CLAUSE_ID_PATTERN = r"^[A-Za-z0-9_-]+$"


class Clause(BaseModel):
    """A reusable content fragment insertable into a document.

    Attributes:
        id: Stable identifier of the clause in the catalog.
        display_name: Human-readable name. Its normalized form is matched
            against placeholder names to choose the insertion point.
        identifying_text: Short text that appears in the clause body and is
            searched for when the clause is removed again.
        content_fragment: Serialized document holding the clause paragraphs.

    Example:
        ```python
        clause = Clause.model_validate({
            "id": "nda-1",
            "name": "Confidentiality",
            "initial": "The Receiving Party shall",
            "content": '{"sec": [{"b": [{"i": [{"tlp": "The Receiving Party shall..."}]}]}]}',
        })
        ```
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., pattern=CLAUSE_ID_PATTERN, description="Catalog identifier of the clause.")
    display_name: str = Field(..., alias="name", min_length=1, description="Name shown to the user.")
    identifying_text: str = Field(
        ...,
        alias="initial",
        min_length=1,
        description="Text that marks the clause in a document and is searched for on removal.",
    )
    content_fragment: str = Field(..., alias="content", description="Serialized document fragment.")
