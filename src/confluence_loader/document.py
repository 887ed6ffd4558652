"""Normalized document produced from a Confluence page."""

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping


@dataclass(frozen=True)
class Document:
    """A page converted to plain text plus metadata, ready for an LLM."""
    id: str
    text: str  # may be empty when the page had no usable body
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Read-only copy of the caller's mapping
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dict suitable for JSON serialization."""
        return {
            "id": self.id,
            "text": self.text,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Document":
        """
        Create a Document from a mapping.

        Args:
            data: Mapping with "id", "text" and optionally "metadata"

        Returns:
            New Document

        Raises:
            ValueError: If "id" or "text" is missing
        """
        if data.get("id") is None or data.get("text") is None:
            raise ValueError(
                "Invalid document format: missing required fields 'id' and 'text'"
            )
        return cls(
            id=data["id"],
            text=data["text"],
            metadata=dict(data.get("metadata") or {}),
        )

    def format_for_llm(self) -> str:
        """Render the document as a plain-text block for LLM prompts."""
        metadata_str = "\n".join(
            f"{key}: {_format_value(value)}" for key, value in self.metadata.items()
        )
        return (
            f"Document ID: {self.id}\n"
            f"\n"
            f"Metadata:\n"
            f"{metadata_str}\n"
            f"\n"
            f"Content:\n"
            f"{self.text}\n"
        )


def _format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, indent=2, ensure_ascii=False, default=str)
    return repr(value)
