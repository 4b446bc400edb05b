"""Tests for the tree-sitter PHP tokenizer.

Covers token kinds, exact source round-tripping, line/column tracking,
bracket pairing, owner metadata and the scope tree.
"""

import pytest
from pathlib import Path
from snakesniff.analyzer.parser import PhpTokenizer
from snakesniff.analyzer.tokens import ScopeKind, TokenKind


FIXTURES_DIR = Path(__file__).parent / 'fixtures' / 'php'


@pytest.fixture(scope='module')
def tokenizer():
    """Shared tokenizer instance."""
    return PhpTokenizer()


def first(stream, text):
    """Index of the first token with the given text."""
    for token in stream:
        if token.text == text:
            return token.index
    raise AssertionError(f"no token {text!r}")


class TestRoundTrip:
    """Tokens must concatenate back to the original source."""

    @pytest.mark.parametrize('fixture', [
        'variable_naming.php', 'inherited_parameters.php', 'properties.php', 'valid.php', 'captures.php',
    ])
    def test_fixture_round_trip(self, tokenizer, fixture):
        source = (FIXTURES_DIR / fixture).read_text(encoding='utf-8')
        assert tokenizer.tokenize(source).render() == source

    def test_inline_html_round_trip(self, tokenizer):
        source = "<h1>Title</h1>\n<?php echo $pageTitle; ?>\n<p>done</p>\n"
        stream = tokenizer.tokenize(source)
        assert stream.render() == source
        assert stream[0].kind is TokenKind.INLINE_HTML

    def test_indices_are_sequential(self, tokenizer):
        stream = tokenizer.tokenize("<?php\n$a = [1, 2];\n")
        assert [t.index for t in stream] == list(range(len(stream)))


class TestTokenKinds:
    """Test leaf-to-kind mapping."""

    def test_variable_position(self, tokenizer):
        stream = tokenizer.tokenize("<?php\n\n  $fooBar = 1;\n")
        [pos] = stream.variables()
        token = stream[pos]
        assert token.text == '$fooBar'
        assert token.kind is TokenKind.VARIABLE
        assert (token.line, token.column) == (3, 3)

    def test_open_tag_and_whitespace(self, tokenizer):
        stream = tokenizer.tokenize("<?php\n$a;")
        assert stream[0].kind is TokenKind.OPEN_TAG
        assert stream[1].kind is TokenKind.WHITESPACE

    def test_keywords_are_case_insensitive(self, tokenizer):
        stream = tokenizer.tokenize("<?php\nFUNCTION doIt($Bar) {}\n")
        assert stream[first(stream, 'FUNCTION')].kind is TokenKind.FUNCTION

    def test_doc_comment_and_comment(self, tokenizer):
        stream = tokenizer.tokenize("<?php\n/** doc */\n// line\n$a = 1;\n")
        assert stream[first(stream, '/** doc */')].kind is TokenKind.DOC_COMMENT
        assert stream[first(stream, '// line')].kind is TokenKind.COMMENT

    def test_interpolated_variables_are_not_tokens(self, tokenizer):
        """Double-quoted strings and heredocs are single tokens."""
        source = '<?php\n$out = "Hi $firstName";\n$doc = <<<EOT\n$lastName\nEOT;\n'
        stream = tokenizer.tokenize(source)
        names = [stream[i].text for i in stream.variables()]
        assert names == ['$out', '$doc']
        assert stream[first(stream, '"Hi $firstName"')].kind is TokenKind.DOUBLE_QUOTED_STRING

    def test_type_hint_markers(self, tokenizer):
        stream = tokenizer.tokenize("<?php\nfunction f(?Foo $a, int|string $b) {}\n")
        assert stream[first(stream, '?')].kind is TokenKind.NULLABLE
        assert stream[first(stream, '|')].kind is TokenKind.TYPE_UNION
        assert stream[first(stream, 'Foo')].kind is TokenKind.STRING
        assert stream[first(stream, 'int')].kind is TokenKind.STRING

    @pytest.mark.parametrize('type_name', ['string', 'float', 'int', 'bool', 'array'])
    def test_scalar_type_keywords_are_strings(self, tokenizer, type_name):
        stream = tokenizer.tokenize(f"<?php\nfunction f({type_name} $a): {type_name} {{}}\n")
        positions = [token.index for token in stream if token.text == type_name]
        assert len(positions) == 2
        assert all(stream[pos].kind is TokenKind.STRING for pos in positions)

    def test_literals_next_to_scalar_types(self, tokenizer):
        stream = tokenizer.tokenize("<?php\nfunction f(string $a = 'x', float $b = 1.5) {}\n")
        assert stream[first(stream, "'x'")].kind is TokenKind.CONSTANT_ENCAPSED_STRING
        assert stream[first(stream, '1.5')].kind is TokenKind.NUMBER
        assert stream[first(stream, 'float')].kind is TokenKind.STRING

    def test_visibility_and_static_modifiers(self, tokenizer):
        stream = tokenizer.tokenize("<?php\nclass A { private static $b; var $c; }\n")
        assert stream[first(stream, 'private')].kind is TokenKind.PRIVATE
        assert stream[first(stream, 'static')].kind is TokenKind.STATIC
        assert stream[first(stream, 'var')].kind is TokenKind.VAR

    def test_closure_keyword(self, tokenizer):
        stream = tokenizer.tokenize("<?php\n$f = function ($x) { return $x; };\n")
        assert stream[first(stream, 'function')].kind is TokenKind.CLOSURE

    def test_double_colon(self, tokenizer):
        stream = tokenizer.tokenize("<?php\nself::$cache;\n")
        assert stream[first(stream, '::')].kind is TokenKind.DOUBLE_COLON
        assert stream[first(stream, 'self')].kind is TokenKind.SELF

    def test_attribute_brackets_pair(self, tokenizer):
        stream = tokenizer.tokenize("<?php\n#[Pure]\nfunction f() {}\n")
        opener = first(stream, '#[')
        assert stream[opener].kind is TokenKind.ATTRIBUTE
        closer = stream[opener].pair
        assert stream[closer].kind is TokenKind.ATTRIBUTE_END
        assert stream[closer].pair == opener


class TestScopes:
    """Test owner metadata, scope context and the scope tree."""

    @pytest.fixture
    def function_stream(self, tokenizer):
        return tokenizer.tokenize_file(FIXTURES_DIR / 'variable_naming.php')

    def test_function_owner_metadata(self, function_stream):
        stream = function_stream
        owner = stream[first(stream, 'function')]
        assert owner.kind is TokenKind.FUNCTION
        assert stream[owner.parenthesis_opener].text == '('
        assert stream[owner.parenthesis_closer].text == ')'
        assert stream[owner.scope_opener].text == '{'
        assert stream[owner.scope_closer].text == '}'
        assert stream[owner.scope_opener].pair == owner.scope_closer

    def test_scope_tree_shape(self, function_stream):
        root = function_stream.root
        [function] = root.children
        assert function.kind is ScopeKind.FUNCTION
        [closure] = function.children
        assert closure.kind is ScopeKind.CLOSURE
        assert closure.parent is function
        assert function_stream[closure.owner].kind is TokenKind.CLOSURE

    def test_scope_context_of_body_tokens(self, function_stream):
        stream = function_stream
        function_owner = first(stream, 'function')
        sub_total = first(stream, '$subTotal')
        assert stream[sub_total].scope_context == ((function_owner, ScopeKind.FUNCTION),)

        inner = first(stream, '$innerResult')
        kinds = [kind for _, kind in stream[inner].scope_context]
        assert kinds == [ScopeKind.FUNCTION, ScopeKind.CLOSURE]

    def test_parameters_are_outside_body_context(self, function_stream):
        stream = function_stream
        item_price = first(stream, '$itemPrice')
        assert stream[item_price].scope_context == ()
        assert stream.scope_at(item_price).kind is ScopeKind.FUNCTION

    def test_arrow_function_scope(self, tokenizer):
        stream = tokenizer.tokenize("<?php\n$double = fn($n) => $n * 2;\n")
        [closure] = stream.root.children
        assert closure.kind is ScopeKind.CLOSURE
        owner = stream[closure.owner]
        assert owner.kind is TokenKind.FN
        assert stream[owner.scope_opener].text == '=>'
        body_usage = stream.variables()[-1]
        assert stream[body_usage].scope_context == ((closure.owner, ScopeKind.CLOSURE),)

    def test_use_clause_is_outside_closure_body(self, tokenizer):
        stream = tokenizer.tokenize("<?php\nfunction outer($a) {\n    return function () use ($a) { return $a; };\n}\n")
        [function] = stream.root.children
        [closure] = function.children
        _, captured, body_usage = stream.variables()
        assert stream[closure.owner].kind is TokenKind.CLOSURE
        assert stream[captured].scope_context == ((function.owner, ScopeKind.FUNCTION),)
        assert stream[body_usage].scope_context == (
            (function.owner, ScopeKind.FUNCTION), (closure.owner, ScopeKind.CLOSURE),
        )

    def test_type_scopes(self, tokenizer):
        stream = tokenizer.tokenize_file(FIXTURES_DIR / 'inherited_parameters.php')
        kinds = [scope.kind for scope in stream.root.children]
        assert kinds == [ScopeKind.INTERFACE, ScopeKind.CLASS, ScopeKind.CLASS]
        interface = stream.root.children[0]
        [method] = interface.children
        assert method.kind is ScopeKind.FUNCTION
        # Interface methods have no body.
        assert method.opener is None and method.closer is None

    def test_anonymous_class_is_class_scope(self, tokenizer):
        stream = tokenizer.tokenize("<?php\n$o = new class { public $fieldName; };\n")
        [scope] = stream.root.children
        assert scope.kind is ScopeKind.CLASS
        assert stream[scope.owner].text == 'class'


class TestFileHandling:
    """Test file-level entry points."""

    def test_missing_file(self, tokenizer, tmp_path):
        assert tokenizer.tokenize_file(tmp_path / 'nope.php') is None

    def test_invalid_utf8(self, tokenizer, tmp_path):
        bad = tmp_path / 'bad.php'
        bad.write_bytes(b"<?php\n$caf\xe9 = 1;\n")
        assert tokenizer.tokenize_file(bad) is None

    def test_path_recorded(self, tokenizer):
        path = FIXTURES_DIR / 'valid.php'
        assert tokenizer.tokenize_file(path).path == str(path)

    @pytest.mark.parametrize('name,expected', [
        ('index.php', True), ('legacy.inc', True), ('hooks.module', True),
        ('Upper.PHP', True), ('script.py', False), ('notes.md', False),
    ])
    def test_supports(self, name, expected):
        assert PhpTokenizer.supports(name) is expected
