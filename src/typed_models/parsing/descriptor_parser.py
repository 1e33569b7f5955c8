"""Parser for textual type expressions.

Grammar::

    descriptor : type_ref
    type_ref   : IDENTIFIER
               | type_ref '[' ']'
               | '[' type_ref ']'
               | '[' ']'
               | '{' type_ref ':' type_ref '}'
               | '{' '}'

The result is a plain descriptor accepted by ``TypeRegistry.resolve``.
Identifiers name registered models; unknown identifiers are kept as strings
so they become forward references.
"""

from __future__ import annotations

from typing import Any

import ply.yacc as yacc

from typed_models.parsing.descriptor_lexer import DescriptorLexer
from typed_models.types import TypeRegistry, default_registry

# Spellings accepted in addition to registered model names
BUILTIN_ALIASES: dict[str, type] = {
    "string": str,
    "integer": int,
    "boolean": bool,
    "array": list,
    "map": dict,
}


def _hashable(descriptor: Any) -> Any:
    """Turn container literals into ``list[...]`` / ``dict[...]`` so they can be map keys."""
    if isinstance(descriptor, list):
        return list[_hashable(descriptor[0])] if descriptor else list
    if isinstance(descriptor, dict):
        if not descriptor:
            return dict
        ((k, v),) = descriptor.items()
        return dict[_hashable(k), _hashable(v)]
    return descriptor


class DescriptorParser:
    """Parser turning type expressions into descriptors."""

    tokens = DescriptorLexer.tokens

    def __init__(self, registry: TypeRegistry | None = None) -> None:
        self.lexer = DescriptorLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore
        self.registry = registry if registry is not None else default_registry

    def p_descriptor(self, p: yacc.YaccProduction) -> None:
        """descriptor : type_ref"""
        p[0] = p[1]

    def p_type_ref_name(self, p: yacc.YaccProduction) -> None:
        """type_ref : IDENTIFIER"""
        p[0] = self._lookup(p[1])

    def p_type_ref_suffix_array(self, p: yacc.YaccProduction) -> None:
        """type_ref : type_ref LBRACKET RBRACKET"""
        p[0] = [p[1]]

    def p_type_ref_array(self, p: yacc.YaccProduction) -> None:
        """type_ref : LBRACKET type_ref RBRACKET"""
        p[0] = [p[2]]

    def p_type_ref_untyped_array(self, p: yacc.YaccProduction) -> None:
        """type_ref : LBRACKET RBRACKET"""
        p[0] = list

    def p_type_ref_map(self, p: yacc.YaccProduction) -> None:
        """type_ref : LBRACE type_ref COLON type_ref RBRACE"""
        p[0] = {_hashable(p[2]): p[4]}

    def p_type_ref_untyped_map(self, p: yacc.YaccProduction) -> None:
        """type_ref : LBRACE RBRACE"""
        p[0] = dict

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (position {p.lexpos})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def _lookup(self, name: str) -> Any:
        model = self.registry.get_model(name)
        if model is not None:
            return model
        return BUILTIN_ALIASES.get(name, name)

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, **kwargs)

    def parse(self, data: str) -> Any:
        """Parse a type expression and return its descriptor."""
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        if not data.strip():
            raise SyntaxError("Empty type expression")
        return self.parser.parse(data, lexer=self.lexer.lexer)
