"""Bilingual (Arabic/English) HR document extraction and chunking."""

__version__ = "0.1.0"
