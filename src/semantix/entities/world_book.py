"""WorldBook entity - the structured knowledge document being vectorized."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class InvalidDocumentError(Exception):
    """Raised when a world book document cannot be accepted."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)


class WorldBookEntry(BaseModel):
    """An atomic knowledge unit of a world book.

    Only ``comment`` and ``content`` are interpreted. Every other field
    (``constant``, ``order``, ``position``, ``probability`` and so on) is an
    activation flag: kept as an extra, never coerced, and copied onto each
    chunk the entry produces.
    """

    model_config = ConfigDict(extra="allow")

    uid: int | str
    key: list[str] = Field(default_factory=list)
    keysecondary: list[str] = Field(default_factory=list)
    comment: str = ""
    content: str = ""

    @field_validator("comment", "content", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("key", "keysecondary", mode="before")
    @classmethod
    def none_as_empty_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def is_empty(self) -> bool:
        return not self.comment and not self.content

    def flags(self) -> dict[str, Any]:
        """Return the activation flags present on the entry, values unchanged."""
        return dict(self.model_extra or {})


class WorldBook(BaseModel):
    """A world book: a keyed mapping of entries plus descriptive fields."""

    model_config = ConfigDict(extra="allow")

    entries: dict[str, WorldBookEntry]

    @classmethod
    def from_dict(cls, data: Any) -> "WorldBook":
        """Validate a raw decoded document.

        Raises:
            InvalidDocumentError: If the document is not a mapping, lacks an
                ``entries`` mapping, or an entry fails validation
        """
        if not isinstance(data, dict) or not isinstance(data.get("entries"), dict):
            raise InvalidDocumentError("Invalid world book data. Missing entries.")

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise InvalidDocumentError(f"Invalid world book entry: {e}", original_error=e) from e
