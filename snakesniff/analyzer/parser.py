"""Tree-sitter based PHP tokenizer.

Turns the leaves of a tree-sitter-php syntax tree into a flat TokenStream
with PHP_CodeSniffer-style metadata: token kinds, scope context (the
"conditions" of each token), bracket pairs, parenthesis/scope openers on
owner tokens, and an explicit scope tree.
"""
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from tree_sitter import Language, Node, Parser
import tree_sitter_php as tsphp

from .tokens import Scope, ScopeKind, Token, TokenKind, TokenStream

PHP_LANGUAGE = Language(tsphp.language_php())

# Nodes that open a scope. Method and function declarations share a kind,
# as do anonymous and arrow functions.
SCOPE_NODES = {
    'class_declaration': ScopeKind.CLASS,
    'anonymous_class': ScopeKind.CLASS,
    'interface_declaration': ScopeKind.INTERFACE,
    'trait_declaration': ScopeKind.TRAIT,
    'enum_declaration': ScopeKind.ENUM,
    'function_definition': ScopeKind.FUNCTION,
    'method_declaration': ScopeKind.FUNCTION,
    'anonymous_function': ScopeKind.CLOSURE,
    'anonymous_function_creation_expression': ScopeKind.CLOSURE,
    'arrow_function': ScopeKind.CLOSURE,
}

OWNER_KEYWORDS = {
    ScopeKind.CLASS: {'class'},
    ScopeKind.INTERFACE: {'interface'},
    ScopeKind.TRAIT: {'trait'},
    ScopeKind.ENUM: {'enum'},
    ScopeKind.FUNCTION: {'function'},
    ScopeKind.CLOSURE: {'function', 'fn'},
}

CLOSURE_NODES = {'anonymous_function', 'anonymous_function_creation_expression'}

BODY_NODES = {'compound_statement', 'declaration_list', 'enum_declaration_list'}

# Emitted as a single token even though tree-sitter gives them children.
# Variables interpolated into strings are therefore never classified.
ATOMIC_NODES = {
    'variable_name', 'comment', 'string', 'encapsed_string', 'heredoc', 'nowdoc',
    'shell_command_expression', 'php_tag', 'text', 'integer', 'float', 'name',
    'boolean', 'null',
}

TYPE_NODES = {
    'type', 'named_type', 'primitive_type', 'optional_type', 'union_type',
    'intersection_type', 'disjunctive_normal_form_type', 'bottom_type', 'type_list',
}

LITERAL_KINDS = {
    'string': TokenKind.CONSTANT_ENCAPSED_STRING,
    'nowdoc': TokenKind.CONSTANT_ENCAPSED_STRING,
    'encapsed_string': TokenKind.DOUBLE_QUOTED_STRING,
    'shell_command_expression': TokenKind.DOUBLE_QUOTED_STRING,
    'heredoc': TokenKind.HEREDOC,
    'integer': TokenKind.NUMBER,
    'float': TokenKind.NUMBER,
    'php_tag': TokenKind.OPEN_TAG,
    'text': TokenKind.INLINE_HTML,
}

KEYWORDS = {
    'function': TokenKind.FUNCTION,
    'fn': TokenKind.FN,
    'class': TokenKind.CLASS,
    'interface': TokenKind.INTERFACE,
    'trait': TokenKind.TRAIT,
    'enum': TokenKind.ENUM,
    'extends': TokenKind.EXTENDS,
    'implements': TokenKind.IMPLEMENTS,
    'abstract': TokenKind.ABSTRACT,
    'final': TokenKind.FINAL,
    'public': TokenKind.PUBLIC,
    'protected': TokenKind.PROTECTED,
    'private': TokenKind.PRIVATE,
    'var': TokenKind.VAR,
    'static': TokenKind.STATIC,
    'readonly': TokenKind.READONLY,
    'self': TokenKind.SELF,
    'parent': TokenKind.PARENT,
}

PUNCTUATION = {
    '::': TokenKind.DOUBLE_COLON,
    '(': TokenKind.OPEN_PARENTHESIS,
    ')': TokenKind.CLOSE_PARENTHESIS,
    '{': TokenKind.OPEN_CURLY_BRACKET,
    '}': TokenKind.CLOSE_CURLY_BRACKET,
    '[': TokenKind.OPEN_SQUARE_BRACKET,
    ']': TokenKind.CLOSE_SQUARE_BRACKET,
    ',': TokenKind.COMMA,
    ';': TokenKind.SEMICOLON,
    '=>': TokenKind.DOUBLE_ARROW,
    '#[': TokenKind.ATTRIBUTE,
    '\\': TokenKind.NS_SEPARATOR,
    '?>': TokenKind.CLOSE_TAG,
}

TYPE_MARKERS = {
    '?': TokenKind.NULLABLE,
    '|': TokenKind.TYPE_UNION,
    '&': TokenKind.TYPE_INTERSECTION,
    '\\': TokenKind.NS_SEPARATOR,
    '(': TokenKind.OPEN_PARENTHESIS,
    ')': TokenKind.CLOSE_PARENTHESIS,
}

BRACKET_PAIRS = {
    TokenKind.OPEN_PARENTHESIS: TokenKind.CLOSE_PARENTHESIS,
    TokenKind.OPEN_CURLY_BRACKET: TokenKind.CLOSE_CURLY_BRACKET,
    TokenKind.OPEN_SQUARE_BRACKET: TokenKind.CLOSE_SQUARE_BRACKET,
    TokenKind.ATTRIBUTE: TokenKind.ATTRIBUTE_END,
}
BRACKET_CLOSERS = {closer: opener for opener, closer in BRACKET_PAIRS.items()}


def leaf_kind(node: Node, text: str, parent_type: Optional[str], in_type: bool) -> TokenKind:
    """Map a tree-sitter leaf to a token kind.

    Args:
        node: Leaf (or atomic) node
        text: Source text of the node
        parent_type: Type of the node's parent, if any
        in_type: Whether the node sits inside a type declaration

    Returns:
        TokenKind for the leaf
    """
    node_type = node.type
    if node_type == 'variable_name':
        return TokenKind.VARIABLE
    if node_type == 'comment':
        return TokenKind.DOC_COMMENT if text.startswith('/**') else TokenKind.COMMENT
    if in_type:
        return TYPE_MARKERS.get(text, TokenKind.STRING)
    # Keyword leaves such as `string` and `float` share node types with
    # literals, so only named nodes are literals.
    if node.is_named and node_type in LITERAL_KINDS:
        return LITERAL_KINDS[node_type]
    if text == ']' and parent_type == 'attribute_group':
        return TokenKind.ATTRIBUTE_END

    # Named leaves are identifiers unless they are modifier/scope wrappers
    # whose whole text is the keyword.
    if node.is_named and not (node_type.endswith('_modifier') or node_type == 'relative_scope'):
        return TokenKind.STRING

    lowered = text.lower()
    if lowered in KEYWORDS:
        kind = KEYWORDS[lowered]
        if kind is TokenKind.FUNCTION and parent_type in CLOSURE_NODES:
            return TokenKind.CLOSURE
        return kind
    if text in PUNCTUATION:
        return PUNCTUATION[text]
    if text.isidentifier():
        return TokenKind.KEYWORD
    return TokenKind.OPERATOR


class _StreamBuilder:
    """Walks one syntax tree and accumulates token records and scopes."""

    def __init__(self, source: bytes):
        self.source = source
        self.records: List[dict] = []
        self.offset = 0
        self.line = 1
        self.column = 1
        self.context: List[Tuple[int, ScopeKind]] = []
        self.root = Scope(None, 0)
        self.current = self.root
        self.scopes: List[Scope] = []

    # --- Emission ---

    def _emit(self, text: str, kind: TokenKind):
        self.records.append({
            'kind': kind,
            'text': text,
            'line': self.line,
            'column': self.column,
            'scope_context': tuple(self.context),
        })
        newlines = text.count('\n')
        if newlines:
            self.line += newlines
            self.column = len(text) - text.rfind('\n')
        else:
            self.column += len(text)

    def emit_gap(self, until: int):
        """Emit the source between the last token and byte offset until."""
        if until <= self.offset:
            return
        gap = self.source[self.offset:until].decode('utf-8', errors='replace')
        self.offset = until
        self._emit(gap, TokenKind.WHITESPACE if gap.isspace() else TokenKind.UNKNOWN)

    def _emit_leaf(self, node: Node, parent_type: Optional[str], in_type: bool):
        start = max(node.start_byte, self.offset)
        if node.end_byte <= start:
            return
        self.emit_gap(start)
        text = self.source[start:node.end_byte].decode('utf-8', errors='replace')
        self.offset = node.end_byte
        self._emit(text, leaf_kind(node, text, parent_type, in_type))

    def _last_significant(self, first: int) -> Tuple[Optional[int], Optional[int]]:
        """First and last non-whitespace record emitted since index first."""
        indices = [i for i in range(first, len(self.records))
                   if self.records[i]['kind'] is not TokenKind.WHITESPACE]
        if not indices:
            return None, None
        return indices[0], indices[-1]

    # --- Traversal ---

    def walk(self, node: Node, parent_type: Optional[str] = None, in_type: bool = False):
        if node.is_missing:
            return
        node_type = node.type
        scope_kind = self._scope_kind(node)
        if scope_kind is not None:
            self._walk_scope(node, scope_kind)
            return

        in_type = in_type or node_type in TYPE_NODES
        if node.child_count == 0 or node_type in ATOMIC_NODES:
            self._emit_leaf(node, parent_type, in_type)
            return

        for child in node.children:
            self.walk(child, node_type, in_type)

    @staticmethod
    def _scope_kind(node: Node) -> Optional[ScopeKind]:
        if node.type in SCOPE_NODES:
            return SCOPE_NODES[node.type]
        # Older grammars inline anonymous classes into the `new` expression.
        if node.type == 'object_creation_expression':
            if any(child.type == 'declaration_list' for child in node.children):
                return ScopeKind.CLASS
        return None

    def _walk_scope(self, node: Node, kind: ScopeKind):
        self.emit_gap(node.start_byte)
        outer = self.current
        scope = Scope(kind, len(self.records), parent=outer)
        self.current = scope
        self.scopes.append(scope)

        body = node.child_by_field_name('body')
        if body is None:
            body = next((c for c in node.children if c.type in BODY_NODES), None)
        params = node.child_by_field_name('parameters')
        if params is None:
            params = next((c for c in node.children if c.type == 'formal_parameters'), None)

        for child in node.children:
            if body is not None and child.id == body.id:
                self._walk_body(scope, child, node.type)
                continue

            first = len(self.records)
            self.walk(child, node.type)
            opener, closer = self._last_significant(first)
            if opener is None:
                continue
            if (scope.owner is None and not child.is_named
                    and child.type.lower() in OWNER_KEYWORDS[kind]):
                scope.owner = closer
            if params is not None and child.id == params.id:
                scope.parenthesis_opener = opener
                scope.parenthesis_closer = closer

        scope.end = max(len(self.records) - 1, scope.start)
        self.current = outer

    def _walk_body(self, scope: Scope, body: Node, parent_type: str):
        owner = scope.owner if scope.owner is not None else scope.start
        children = body.children

        if body.type not in BODY_NODES:
            # Arrow function: the body is a bare expression after `=>`.
            self.emit_gap(body.start_byte)
            scope.opener = self._last_significant_before(len(self.records))
            first = len(self.records)
            self.context.append((owner, scope.kind))
            self.walk(body, parent_type)
            self.context.pop()
            _, scope.closer = self._last_significant(first)
            return

        if len(children) >= 2 and children[0].type == '{' and children[-1].type == '}':
            first = len(self.records)
            self.walk(children[0], body.type)
            scope.opener, _ = self._last_significant(first)
            self.context.append((owner, scope.kind))
            for child in children[1:-1]:
                self.walk(child, body.type)
            self.context.pop()
            first = len(self.records)
            self.walk(children[-1], body.type)
            _, scope.closer = self._last_significant(first)
            return

        # Malformed body: keep everything inside the scope.
        self.context.append((owner, scope.kind))
        self.walk(body, parent_type)
        self.context.pop()

    def _last_significant_before(self, index: int) -> Optional[int]:
        for i in range(index - 1, -1, -1):
            if self.records[i]['kind'] is not TokenKind.WHITESPACE:
                return i
        return None

    # --- Finalization ---

    def build(self, path: Optional[str]) -> TokenStream:
        self.emit_gap(len(self.source))

        pairs: Dict[int, int] = {}
        stack: List[int] = []
        for i, record in enumerate(self.records):
            kind = record['kind']
            if kind in BRACKET_PAIRS:
                stack.append(i)
            elif kind in BRACKET_CLOSERS and stack:
                if self.records[stack[-1]]['kind'] is BRACKET_CLOSERS[kind]:
                    opener = stack.pop()
                    pairs[opener] = i
                    pairs[i] = opener

        owners: Dict[int, Scope] = {s.owner: s for s in self.scopes if s.owner is not None}
        tokens = []
        for i, record in enumerate(self.records):
            scope = owners.get(i)
            tokens.append(Token(
                index=i,
                pair=pairs.get(i),
                parenthesis_opener=scope.parenthesis_opener if scope else None,
                parenthesis_closer=scope.parenthesis_closer if scope else None,
                scope_opener=scope.opener if scope else None,
                scope_closer=scope.closer if scope else None,
                **record,
            ))

        self.root.end = max(len(tokens) - 1, 0)
        return TokenStream(tokens, root=self.root, path=path)


class PhpTokenizer:
    """PHP tokenizer using the tree-sitter v0.22+ API."""

    SUPPORTED_EXTENSIONS = ('.php', '.inc', '.module', '.install', '.theme')

    def __init__(self):
        """Initialize the tree-sitter parser for PHP."""
        self.language = 'php'
        self.parser = self._create_parser()

    def _create_parser(self) -> Parser:
        # v0.22+ API: pass the language to the Parser constructor
        return Parser(PHP_LANGUAGE)

    def tokenize(self, source: bytes | str, path: Optional[str] = None) -> TokenStream:
        """Tokenize PHP source into a TokenStream.

        Args:
            source: PHP source code
            path: Optional file path recorded on the stream

        Returns:
            TokenStream whose tokens concatenate back to the source
        """
        if isinstance(source, str):
            source = source.encode('utf-8')
        tree = self.parser.parse(source)
        builder = _StreamBuilder(source)
        builder.walk(tree.root_node)
        return builder.build(path)

    def tokenize_file(self, file_path: str | Path) -> Optional[TokenStream]:
        """Tokenize a file.

        Args:
            file_path: Path to a PHP file

        Returns:
            TokenStream, or None if the file is missing, unreadable or not UTF-8
        """
        file_path = Path(file_path)
        if not file_path.exists():
            return None

        try:
            with open(file_path, 'rb') as f:
                source = f.read()
            source.decode('utf-8')
        except (UnicodeDecodeError, IOError):
            return None

        return self.tokenize(source, path=str(file_path))

    @classmethod
    def supports(cls, file_path: str | Path, extensions: Optional[Tuple[str, ...]] = None) -> bool:
        """Check whether a file has a PHP extension."""
        extensions = extensions or cls.SUPPORTED_EXTENSIONS
        return Path(file_path).suffix.lower() in extensions
