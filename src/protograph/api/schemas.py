"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, Field


class RenderRequest(BaseModel):
    """Schema files to load and what to draw from them."""

    root: str = Field(..., min_length=1, description="Name of the root file in `files`, or schema text")
    files: dict[str, str] = Field(default_factory=dict, description="File name -> schema text")
    selection: str = Field("", description="'', 'imports', '*' or ';'-separated fragments")
    allow_missing_imports: bool | None = None
    show_missing_types: bool | None = None


class EntitySummary(BaseModel):
    """One entity of the rendered graph."""

    alias: str
    name: str
    qualified_name: str
    kind: str
    source: str
    parent: str | None = None


class EdgeSummary(BaseModel):
    """One (owner, field) -> target inclusion edge."""

    owner: str
    field: str
    target: str
    count: int = 1


class RenderResponse(BaseModel):
    """Rendered diagram plus the graph behind it."""

    root: str
    selection: str
    dot: str
    entities: list[EntitySummary] = Field(default_factory=list)
    edges: list[EdgeSummary] = Field(default_factory=list)
    dependencies: dict[str, list[str]] = Field(default_factory=dict)
    missing_imports: list[str] = Field(default_factory=list)
