from __future__ import annotations

from pydantic import BaseModel, Field


class PackageRecord(BaseModel):
    """A successfully pinned package, as listed by /recent."""

    Url: str = Field(..., description="Normalized source path, e.g. 'acme/widget'.")
    Hash: str = Field(..., description="Content identifier that was pinned.")
    Version: str = Field(..., description="Version string from lastpubver.")

    def log_line(self) -> str:
        return f"{self.Url} {self.Hash} {self.Version}\n"
