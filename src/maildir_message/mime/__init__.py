"""MIME decoding and draft assembly."""

from .assembler import AttachmentAssembler
from .decoder import MimeDecoder, decode_header_value, decode_payload, part_to_text

__all__ = [
    "AttachmentAssembler",
    "MimeDecoder",
    "decode_header_value",
    "decode_payload",
    "part_to_text",
]
