"""Allow ``python -m pricelist_convert``."""

from pricelist_convert.cli import app

if __name__ == "__main__":
    app()
