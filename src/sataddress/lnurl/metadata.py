"""LNURL-pay metadata document.

The metadata is a fixed, ordered list of three entries describing the
recipient. Its compact JSON string is returned verbatim as the ``metadata``
field of the pay request and is the preimage of the invoice description hash.
"""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from importlib import resources

from sataddress.utils.crypto import sha256

# Banner image shipped with the package, embedded once at import
BANNER_PNG_BASE64 = base64.b64encode(
    resources.files("sataddress").joinpath("assets/inv_banner.png").read_bytes()
).decode("ascii")

MIME_IDENTIFIER = "text/identifier"
MIME_TEXT = "text/plain"
MIME_IMAGE = "image/png;base64"


@dataclass(frozen=True, slots=True)
class Metadata:
    """Metadata for one ``name@domain`` address."""

    name: str
    domain: str

    @property
    def for_whom(self) -> str:
        return f"{self.name}@{self.domain}"

    @property
    def text(self) -> str:
        return f"Satoshis for {self.for_whom}."

    def entries(self) -> list[list[str]]:
        return [
            [MIME_IDENTIFIER, self.for_whom],
            [MIME_TEXT, self.text],
            [MIME_IMAGE, BANNER_PNG_BASE64],
        ]

    def to_json(self) -> str:
        """Compact JSON form, byte-for-byte what gets hashed."""
        return json.dumps(self.entries(), separators=(",", ":"), ensure_ascii=False)

    def sha256(self) -> bytes:
        return sha256(self.to_json().encode("utf-8"))

    def __str__(self) -> str:
        return self.to_json()
