"""Token stream model shared by the tokenizer, the resolver and the rules.

A TokenStream is a flat, index-addressable list of immutable tokens plus an
explicit scope tree. Each scope node owns its children and keeps a weak
reference to its parent, so lookups ascend the tree instead of scanning the
token array backwards.
"""
import weakref
from bisect import bisect_right
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union


class TokenKind(Enum):
    """Lexical token categories (named after their PHP_CodeSniffer codes)."""
    VARIABLE = 'T_VARIABLE'
    WHITESPACE = 'T_WHITESPACE'
    COMMENT = 'T_COMMENT'
    DOC_COMMENT = 'T_DOC_COMMENT'
    STRING = 'T_STRING'
    FUNCTION = 'T_FUNCTION'
    CLOSURE = 'T_CLOSURE'
    FN = 'T_FN'
    CLASS = 'T_CLASS'
    INTERFACE = 'T_INTERFACE'
    TRAIT = 'T_TRAIT'
    ENUM = 'T_ENUM'
    EXTENDS = 'T_EXTENDS'
    IMPLEMENTS = 'T_IMPLEMENTS'
    ABSTRACT = 'T_ABSTRACT'
    FINAL = 'T_FINAL'
    PUBLIC = 'T_PUBLIC'
    PROTECTED = 'T_PROTECTED'
    PRIVATE = 'T_PRIVATE'
    VAR = 'T_VAR'
    STATIC = 'T_STATIC'
    READONLY = 'T_READONLY'
    SELF = 'T_SELF'
    PARENT = 'T_PARENT'
    NS_SEPARATOR = 'T_NS_SEPARATOR'
    NULLABLE = 'T_NULLABLE'
    TYPE_UNION = 'T_TYPE_UNION'
    TYPE_INTERSECTION = 'T_TYPE_INTERSECTION'
    ATTRIBUTE = 'T_ATTRIBUTE'
    ATTRIBUTE_END = 'T_ATTRIBUTE_END'
    DOUBLE_COLON = 'T_DOUBLE_COLON'
    OPEN_PARENTHESIS = 'T_OPEN_PARENTHESIS'
    CLOSE_PARENTHESIS = 'T_CLOSE_PARENTHESIS'
    OPEN_CURLY_BRACKET = 'T_OPEN_CURLY_BRACKET'
    CLOSE_CURLY_BRACKET = 'T_CLOSE_CURLY_BRACKET'
    OPEN_SQUARE_BRACKET = 'T_OPEN_SQUARE_BRACKET'
    CLOSE_SQUARE_BRACKET = 'T_CLOSE_SQUARE_BRACKET'
    COMMA = 'T_COMMA'
    SEMICOLON = 'T_SEMICOLON'
    DOUBLE_ARROW = 'T_DOUBLE_ARROW'
    OPEN_TAG = 'T_OPEN_TAG'
    CLOSE_TAG = 'T_CLOSE_TAG'
    INLINE_HTML = 'T_INLINE_HTML'
    CONSTANT_ENCAPSED_STRING = 'T_CONSTANT_ENCAPSED_STRING'
    DOUBLE_QUOTED_STRING = 'T_DOUBLE_QUOTED_STRING'
    HEREDOC = 'T_HEREDOC'
    NUMBER = 'T_LNUMBER'
    OPERATOR = 'T_OPERATOR'
    KEYWORD = 'T_KEYWORD'
    UNKNOWN = 'T_UNKNOWN'


class ScopeKind(Enum):
    """Constructs that open a scope."""
    FUNCTION = 'function'
    CLOSURE = 'closure'
    CLASS = 'class'
    INTERFACE = 'interface'
    TRAIT = 'trait'
    ENUM = 'enum'


CALLABLE_SCOPES = frozenset({ScopeKind.FUNCTION, ScopeKind.CLOSURE})
TYPE_SCOPES = frozenset({ScopeKind.CLASS, ScopeKind.INTERFACE, ScopeKind.TRAIT, ScopeKind.ENUM})
# Types that can declare member fields.
PROPERTY_SCOPES = frozenset({ScopeKind.CLASS, ScopeKind.TRAIT, ScopeKind.ENUM})
# Types whose methods may have their parameter names mandated elsewhere.
INHERITANCE_SCOPES = frozenset({ScopeKind.CLASS, ScopeKind.INTERFACE, ScopeKind.TRAIT})

KindSpec = Union[TokenKind, Iterable[TokenKind]]


@dataclass(frozen=True)
class Token:
    """A single lexical token.

    scope_context lists (owner_index, ScopeKind) pairs for every scope whose
    body encloses the token, outermost first. The opener/closer fields are
    only set on scope owner tokens (function/class keywords); pair is only
    set on brackets.
    """
    index: int
    kind: TokenKind
    text: str
    line: int
    column: int
    scope_context: Tuple[Tuple[int, ScopeKind], ...] = ()
    pair: Optional[int] = None
    parenthesis_opener: Optional[int] = None
    parenthesis_closer: Optional[int] = None
    scope_opener: Optional[int] = None
    scope_closer: Optional[int] = None


class Scope:
    """Node of the scope tree.

    start/end cover the whole construct (attributes, modifiers, header and
    body). opener/closer delimit the body only.
    """

    def __init__(self, kind: Optional[ScopeKind], start: int, parent: Optional['Scope'] = None):
        self.kind = kind
        self.start = start
        self.end = start
        self.owner: Optional[int] = None
        self.opener: Optional[int] = None
        self.closer: Optional[int] = None
        self.parenthesis_opener: Optional[int] = None
        self.parenthesis_closer: Optional[int] = None
        self.children: List['Scope'] = []
        self._parent = weakref.ref(parent) if parent is not None else None
        if parent is not None:
            parent.children.append(self)

    @property
    def parent(self) -> Optional['Scope']:
        return self._parent() if self._parent is not None else None

    @property
    def is_root(self) -> bool:
        return self.kind is None

    def contains(self, pos: int) -> bool:
        return self.start <= pos <= self.end

    def in_body(self, pos: int) -> bool:
        """Check whether pos lies strictly inside the body delimiters."""
        if self.opener is None or self.closer is None:
            return False
        return self.opener < pos < self.closer

    def lineage(self) -> Iterator['Scope']:
        """Yield this scope and then every ancestor up to the root."""
        scope = self
        while scope is not None:
            yield scope
            scope = scope.parent

    def __repr__(self) -> str:
        kind = self.kind.value if self.kind else 'file'
        return f"Scope({kind}, owner={self.owner}, span={self.start}..{self.end})"


def _as_kinds(kinds: KindSpec) -> frozenset:
    if isinstance(kinds, TokenKind):
        return frozenset({kinds})
    return frozenset(kinds)


class TokenStream:
    """Ordered token sequence for one source unit."""

    def __init__(self, tokens: Sequence[Token], root: Optional[Scope] = None, path: Optional[str] = None):
        self._tokens: List[Token] = list(tokens)
        self.path = path
        if root is None:
            root = Scope(None, 0)
            root.end = max(len(self._tokens) - 1, 0)
        self.root = root

    def __len__(self) -> int:
        return len(self._tokens)

    def __getitem__(self, index: int) -> Token:
        return self._tokens[index]

    def __iter__(self) -> Iterator[Token]:
        return iter(self._tokens)

    def in_range(self, pos: int) -> bool:
        return 0 <= pos < len(self._tokens)

    def find_previous(self, kinds: KindSpec, start: int, end: Optional[int] = None,
                      exclude: bool = False) -> Optional[int]:
        """Search backwards from start (inclusive) down to end (inclusive).

        Args:
            kinds: Kind or kinds to look for
            start: Index to start from
            end: Lowest index to inspect (defaults to 0)
            exclude: If True, find the first token NOT of the given kinds

        Returns:
            Index of the matching token, or None
        """
        wanted = _as_kinds(kinds)
        low = max(end if end is not None else 0, 0)
        for i in range(min(start, len(self._tokens) - 1), low - 1, -1):
            if (self._tokens[i].kind in wanted) != exclude:
                return i
        return None

    def find_next(self, kinds: KindSpec, start: int, end: Optional[int] = None,
                  exclude: bool = False) -> Optional[int]:
        """Search forwards from start (inclusive) up to end (exclusive).

        Args:
            kinds: Kind or kinds to look for
            start: Index to start from
            end: Index to stop before (defaults to the stream length)
            exclude: If True, find the first token NOT of the given kinds

        Returns:
            Index of the matching token, or None
        """
        wanted = _as_kinds(kinds)
        high = min(end if end is not None else len(self._tokens), len(self._tokens))
        for i in range(max(start, 0), high):
            if (self._tokens[i].kind in wanted) != exclude:
                return i
        return None

    def scope_at(self, pos: int) -> Scope:
        """Return the innermost scope whose span contains pos."""
        scope = self.root
        while True:
            children = scope.children
            starts = [child.start for child in children]
            i = bisect_right(starts, pos) - 1
            if i < 0 or not children[i].contains(pos):
                return scope
            scope = children[i]

    def variables(self) -> List[int]:
        """Indices of all variable tokens, in stream order."""
        return [t.index for t in self._tokens if t.kind is TokenKind.VARIABLE]

    def render(self) -> str:
        return ''.join(t.text for t in self._tokens)
