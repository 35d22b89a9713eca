"""splitcheck - certify that a test suite tells a correct bill splitter from broken ones."""

__version__ = "1.0.0"
