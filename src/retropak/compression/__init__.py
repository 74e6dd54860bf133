"""Payload decompression dispatch."""

from .lzss import MODE_PARAMS, decompress, split_compressed_payload

__all__ = ["MODE_PARAMS", "decompress", "split_compressed_payload"]
