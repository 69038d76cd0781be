# Pydantic data models for rule findings: Finding, Location.

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

SEVERITIES = ("error", "warning")


class Location(BaseModel):
    """Where in the source a finding was reported (file, line, column)."""

    path: Path
    line: int = Field(..., ge=1, description="1-based line number")
    column: int = Field(..., ge=1, description="1-based column number")
    end_line: Optional[int] = Field(None, ge=1)
    end_column: Optional[int] = Field(None, ge=1)
    snippet: Optional[str] = None

    model_config = {"arbitrary_types_allowed": True}


class Finding(BaseModel):
    """A single standards violation (e.g. missing strict_types declaration at line 1)."""

    rule_id: str
    code: str = Field(..., description="Violation code within the rule, e.g. MissingDeclaration")
    message: str
    location: Location
    severity: str = Field(default="error", description="error or warning")

    model_config = {"arbitrary_types_allowed": True}

    @property
    def qualified_code(self) -> str:
        """Rule id and code joined, e.g. strict-declaration.MissingDeclaration."""
        return f"{self.rule_id}.{self.code}"
