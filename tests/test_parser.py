"""Tests for the type expression parser."""

import pytest

from typed_models.parsing import DescriptorParser
from typed_models.parsing.descriptor_lexer import DescriptorLexer
from typed_models.types import TypeRegistry


class Post:
    pass


@pytest.fixture
def registry():
    """Create an isolated type registry with a Post model."""
    registry = TypeRegistry()
    registry.register_model(Post)
    return registry


@pytest.fixture
def parser(registry):
    return DescriptorParser(registry)


class TestDescriptorLexer:
    """Tests for the descriptor lexer."""

    def test_tokenize_map(self):
        """Test tokenizing a map expression."""
        lexer = DescriptorLexer()
        lexer.build()

        tokens = lexer.tokenize("{str: Post[]}")
        token_types = [t.type for t in tokens]

        assert token_types == [
            "LBRACE",
            "IDENTIFIER",
            "COLON",
            "IDENTIFIER",
            "LBRACKET",
            "RBRACKET",
            "RBRACE",
        ]

    def test_dotted_identifier(self):
        """Test that dotted names are one identifier."""
        lexer = DescriptorLexer()
        lexer.build()

        tokens = lexer.tokenize("blog.models.Post")
        assert [(t.type, t.value) for t in tokens] == [("IDENTIFIER", "blog.models.Post")]

    def test_whitespace_ignored(self):
        """Test that spaces and newlines are skipped."""
        lexer = DescriptorLexer()
        lexer.build()

        tokens = lexer.tokenize(" [ \n str ] ")
        assert [t.type for t in tokens] == ["LBRACKET", "IDENTIFIER", "RBRACKET"]

    def test_illegal_character(self):
        """Test error on illegal character."""
        lexer = DescriptorLexer()
        lexer.build()

        with pytest.raises(SyntaxError):
            lexer.tokenize("str => int")


class TestDescriptorParser:
    """Tests for the descriptor parser."""

    def test_scalar(self, parser):
        """Test parsing registered and builtin names."""
        assert parser.parse("str") is str
        assert parser.parse("Post") is Post
        assert parser.parse("string") is str
        assert parser.parse("integer") is int

    def test_forward_reference(self, parser):
        """Test that unknown names stay as strings."""
        assert parser.parse("Comment") == "Comment"

    def test_suffix_array(self, parser):
        """Test the T[] array spelling."""
        assert parser.parse("Post[]") == [Post]
        assert parser.parse("int[][]") == [[int]]

    def test_bracket_array(self, parser):
        """Test the [T] array spelling."""
        assert parser.parse("[str]") == [str]

    def test_map(self, parser):
        """Test the {K: V} map spelling."""
        assert parser.parse("{str: Post[]}") == {str: [Post]}
        assert parser.parse("{str: {str: int}}") == {str: {str: int}}

    def test_untyped(self, parser):
        """Test untyped containers."""
        assert parser.parse("[]") is list
        assert parser.parse("{}") is dict
        assert parser.parse("array") is list
        assert parser.parse("map") is dict

    def test_container_key(self, parser):
        """Test that container keys become hashable annotations."""
        assert parser.parse("{int[]: str}") == {list[int]: str}

    @pytest.mark.parametrize("text", ["[str", "{str}", "{str: }", "str]", "", "   "])
    def test_syntax_errors(self, parser, text):
        """Test malformed expressions."""
        with pytest.raises(SyntaxError):
            parser.parse(text)


class TestRegistryParse:
    """Tests for TypeRegistry.parse."""

    def test_parser_built_once(self, registry):
        """Test that the registry reuses one parser across calls."""
        parser = registry.parser
        registry.parse("str")
        registry.parse("{str: Post[]}")
        assert registry.parser is parser
        assert parser.registry is registry

    def test_registries_have_own_parsers(self, registry):
        """Test that parsers are bound to their registry."""
        other = TypeRegistry()
        assert other.parser is not registry.parser
        assert other.parse("Post").is_incomplete is True
        assert registry.parse("Post") is registry.resolve(Post)

    def test_parse_resolves(self, registry):
        """Test that parsed expressions resolve to cached Types."""
        assert registry.parse("{str: Post[]}") is registry.resolve({str: [Post]})
        assert registry.parse("str") is registry.resolve(str)

    def test_parse_forward_reference(self, registry):
        """Test that unknown names produce incomplete Types."""
        t = registry.parse("Comment")
        assert t.is_incomplete is True
        assert t.model == "Comment"

    def test_parse_nested_forward_reference(self, registry):
        """Test finalizing a parsed container with a pending name."""

        class Comment:
            pass

        t = registry.parse("Comment[]")
        assert t.pending_names == frozenset({"Comment"})
        registry.register_model(Comment)
        assert t.finalize() is registry.resolve([Comment])

    def test_container_key_resolves(self, registry):
        """Test that a container key resolves like the literal."""
        t = registry.parse("{int[]: str}")
        assert t.key_type is registry.resolve([int])
