"""pricelist-convert — Turn "name price unit" spreadsheet rows into labelled lines."""

__version__ = "0.2.0"

OUTPUT_SUFFIX = ".xlsx"
OUTPUT_SHEET_NAME = "finalized"
