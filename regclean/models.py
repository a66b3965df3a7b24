from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class ValidationMode(str, Enum):
    """How strictly text warnings grade questionable structure."""

    STRICT = "strict"
    RELAXED = "relaxed"


class MarkerType(str, Enum):
    """Inferred enumeration style of a list item marker."""

    BULLET = "bullet"
    DECIMAL = "decimal"
    LOWER_ALPHA = "lower-alpha"
    UPPER_ALPHA = "upper-alpha"
    LOWER_ROMAN = "lower-roman"
    UPPER_ROMAN = "upper-roman"
    COMPLEX = "complex"
    NONE = "none"

    @property
    def type_attr(self) -> str:
        """Value for the `type` attribute of an <ol>, or "" when none is needed."""
        return _TYPE_ATTRS.get(self, "")


_TYPE_ATTRS = {
    MarkerType.LOWER_ALPHA: "a",
    MarkerType.UPPER_ALPHA: "A",
    MarkerType.LOWER_ROMAN: "i",
    MarkerType.UPPER_ROMAN: "I",
}


class TableKind(str, Enum):
    DATA = "data"
    LAYOUT = "layout"
    LAYOUT_LIST = "layout--list"


class Angst(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"


class TextWarning(BaseModel):
    """A single class of problem found in a cleaned regulation text."""

    code: str = Field(..., description="Stable identifier of the warning type, e.g. 'localUrls'.")
    message: str = Field(..., description="Human readable description.")
    angst: Angst = Field(..., description="How worried an editor should be.")
    count: int = Field(..., description="Number of offending elements.")
    samples: List[str] = Field(default_factory=list, description="Serialized start tags of the first offenders.")


class DiffResult(BaseModel):
    diff: str = Field(..., description="Newer HTML with <del>/<ins> change markers.")
    elapsed_ms: float = Field(..., description="Wall-clock duration of the diff.")
    slow: bool = Field(..., description="True when elapsed_ms exceeded the configured threshold.")


class Appendix(BaseModel):
    title: str
    text: str


class RegulationTextParts(BaseModel):
    """A regulation body split from its appendixes and editorial comments."""

    text: str
    appendixes: List[Appendix] = Field(default_factory=list)
    comments: str = ""
