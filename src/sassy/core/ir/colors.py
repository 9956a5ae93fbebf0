"""
Canonical color value for Sassy IR.

Every expression in a theme resolves to a ColorValue: 8-bit RGBA channels
with a single deterministic hex serialization.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ColorValue(BaseModel):
    """
    Canonical RGBA color, 8 bits per channel.

    Serialized as ``#rrggbb`` when fully opaque, ``#rrggbbaa`` otherwise.
    """

    r: int = Field(ge=0, le=255, description="Red channel")
    g: int = Field(ge=0, le=255, description="Green channel")
    b: int = Field(ge=0, le=255, description="Blue channel")
    a: int = Field(default=255, ge=0, le=255, description="Alpha channel")

    model_config = ConfigDict(frozen=True)

    @property
    def hex(self) -> str:
        """Lower-case hex form, alpha appended only when not opaque."""
        base = f"#{self.r:02x}{self.g:02x}{self.b:02x}"
        if self.a == 0xFF:
            return base
        return f"{base}{self.a:02x}"

    @property
    def is_opaque(self) -> bool:
        return self.a == 0xFF

    def with_alpha(self, a: int) -> ColorValue:
        """Return a copy with a different alpha channel."""
        return ColorValue(r=self.r, g=self.g, b=self.b, a=a)

    def __str__(self) -> str:
        return self.hex
