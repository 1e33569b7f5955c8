"""Parsing module for textual type expressions."""

from typed_models.parsing.descriptor_lexer import DescriptorLexer
from typed_models.parsing.descriptor_parser import DescriptorParser

__all__ = [
    "DescriptorLexer",
    "DescriptorParser",
]
