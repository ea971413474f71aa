# models/base.py

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DocumentModel(BaseModel):
    """
    Base for every shape persisted in the document store.
    Python attributes are snake_case, stored/JSON keys are camelCase.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_document(self) -> dict:
        """Serialize to the at-rest (camelCase, JSON-safe) shape."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)
