"""Parsing module for the record declaration DSL."""

from typed_records.parsing.type_parser import TypeParser

__all__ = [
    "TypeParser",
]
