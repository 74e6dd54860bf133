"""Package assembly: model, reader/writer, extracted asset files, inspection."""

from .package import Asset, Package, Payload, metadata_spans, payload_order
from .asset_file import asset_file_name, read_asset_file, write_asset_file

__all__ = [
    "Asset",
    "Package",
    "Payload",
    "metadata_spans",
    "payload_order",
    "asset_file_name",
    "read_asset_file",
    "write_asset_file",
]
