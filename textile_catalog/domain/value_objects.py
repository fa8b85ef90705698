"""Value Objects for the domain layer.

Value objects are immutable objects that are defined by their attributes
rather than identity. They are interchangeable when their values are equal.
"""

import base64
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from textile_catalog.domain.base import ValueObject


# ============================================================================
# Images
# ============================================================================


@dataclass(frozen=True)
class ProductImage(ValueObject):
    """Image bytes together with their declared MIME type.

    Used both for inline storage on a product and for raw image
    retrieval in any storage mode.

    Attributes:
        data: Raw image bytes.
        content_type: MIME type (e.g., "image/png").
    """

    data: bytes = field(repr=False)
    content_type: str

    @property
    def size(self) -> int:
        """Payload size in bytes."""
        return len(self.data)

    def to_data_uri(self) -> str:
        """Materialize as a self-contained display reference.

        Returns:
            ``data:<type>;base64,<payload>`` string.
        """
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"


@dataclass(frozen=True)
class ImageUpload(ValueObject):
    """An image file received with a create or update submission.

    Attributes:
        data: Uploaded bytes.
        content_type: MIME type declared by the client.
        filename: Original client-side file name, if sent.
    """

    data: bytes = field(repr=False)
    content_type: str
    filename: str | None = None

    @property
    def size(self) -> int:
        """Payload size in bytes."""
        return len(self.data)


# ============================================================================
# Specifications Input
# ============================================================================


@dataclass(frozen=True)
class RawStructured(ValueObject):
    """Specifications received as an already structured mapping."""

    data: Mapping[str, Any]


@dataclass(frozen=True)
class RawSerializedText(ValueObject):
    """Specifications received as JSON text that still needs decoding."""

    text: str


RawSpecifications: TypeAlias = RawStructured | RawSerializedText
