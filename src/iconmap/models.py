"""
Data models for icon placeholder resolution.
"""

from pydantic import BaseModel, ConfigDict, Field, computed_field


class RawGlyph(BaseModel):
    """A glyph entry as yielded by a font source, before cataloguing."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Glyph name from the font's glyph order")
    codepoint: int = Field(description="Unicode codepoint mapped to the glyph")


class GlyphRecord(BaseModel):
    """A catalogued glyph, tagged with the font source that supplied it.

    Attributes:
        name: Glyph name, the identity key within a catalog
        codepoint: Unicode codepoint the font maps to this glyph
        source_id: Identifier of the originating font source
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Glyph name (catalog identity key)")
    codepoint: int = Field(description="Unicode codepoint")
    source_id: str = Field(description="Font source that supplied the glyph")

    @property
    def char(self) -> str:
        """The glyph's codepoint as a one-character string."""
        return chr(self.codepoint)


class DefinitionEntry(BaseModel):
    """One content item of a locale definition document."""

    model_config = ConfigDict(frozen=True)

    hash: int = Field(description="Identifier shared across locales")
    text: str = Field(default="", description="Progress description text")


class PlaceholderMatch(BaseModel):
    """A placeholder token found in a primary-locale entry."""

    model_config = ConfigDict(frozen=True)

    substring: str = Field(description="The matched placeholder token")
    objective_hash: int = Field(description="Hash of the entry the token came from")
    source_text: str = Field(description="Full text the token was extracted from")


class ResolvedIcon(BaseModel):
    """A placeholder paired with the codepoint it renders as.

    The effective codepoint prefers the operator override over the
    codepoint recovered from the secondary locale. An icon with neither
    is unresolved.
    """

    model_config = ConfigDict(frozen=True)

    substring: str = Field(description="Placeholder token, unique in a resolved set")
    objective_hash: int = Field(description="Hash of the first entry carrying the token")
    resolved_codepoint: int | None = Field(
        default=None, description="Codepoint recovered from the secondary locale"
    )
    override_codepoint: int | None = Field(
        default=None, description="Operator supplied codepoint"
    )
    source_text: str = Field(default="", description="Primary-locale text")

    @computed_field
    @property
    def effective_codepoint(self) -> int | None:
        """Override if present, else the resolved codepoint, else None."""
        if self.override_codepoint is not None:
            return self.override_codepoint
        return self.resolved_codepoint

    @property
    def is_resolved(self) -> bool:
        return self.effective_codepoint is not None


class PlaceholderCollision(BaseModel):
    """A placeholder match discarded because an earlier entry claimed its token."""

    model_config = ConfigDict(frozen=True)

    substring: str = Field(description="The shared placeholder token")
    kept_hash: int = Field(description="Hash of the entry that owns the token")
    dropped_hash: int = Field(description="Hash of the entry that was discarded")


class ExportRow(BaseModel):
    """One row of the exported mapping table."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    substring: str
    unicode: int
    objective_hash: int = Field(alias="objectiveHash")

    @property
    def char(self) -> str:
        return chr(self.unicode)
