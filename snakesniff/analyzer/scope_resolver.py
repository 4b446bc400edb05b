"""Scope lookups over a TokenStream.

Every lookup degrades to None/False on incomplete structure; none of them
raise for a malformed stream.
"""
from typing import FrozenSet, List, Optional, Tuple

from .tokens import (
    CALLABLE_SCOPES,
    TYPE_SCOPES,
    ScopeKind,
    TokenKind,
    TokenStream,
)

# Tokens allowed between a callable's modifiers and its keyword.
MODIFIER_KINDS = frozenset({
    TokenKind.WHITESPACE,
    TokenKind.COMMENT,
    TokenKind.DOC_COMMENT,
    TokenKind.PUBLIC,
    TokenKind.PROTECTED,
    TokenKind.PRIVATE,
    TokenKind.STATIC,
    TokenKind.FINAL,
    TokenKind.ABSTRACT,
    TokenKind.READONLY,
})

INHERITANCE_KEYWORDS = frozenset({TokenKind.EXTENDS, TokenKind.IMPLEMENTS})


def find_enclosing_callable(stream: TokenStream, pos: int) -> Optional[int]:
    """Find the innermost function or closure that binds a position.

    Ascends the scope tree from the innermost scope containing pos. A
    callable binds pos only when pos is in its parameter list or its body;
    anything else in its header, such as a closure's `use (...)` clause,
    belongs to the next callable out.

    Args:
        stream: Token stream
        pos: Token index

    Returns:
        Index of the callable's keyword token, or None at file/type level
    """
    if not stream.in_range(pos):
        return None
    context = stream[pos].scope_context
    for scope in stream.scope_at(pos).lineage():
        if scope.kind not in CALLABLE_SCOPES or scope.owner is None:
            continue
        if (scope.owner, scope.kind) in context:
            return scope.owner
        if is_within_parameter_list(stream, scope.owner, pos):
            return scope.owner
    return None


def find_parameter_owner(stream: TokenStream, function_pos: int, name: str) -> Optional[int]:
    """Find the callable that declares the parameter a body variable refers to.

    Starts at function_pos and follows captures outward: an arrow function
    sees every variable of its enclosing callable, a closure only the ones
    listed in its `use (...)` clause.

    Returns:
        Index of the declaring callable's keyword token, or None when name is
        not a parameter of any callable it is captured from
    """
    while function_pos is not None and stream.in_range(function_pos):
        if name in parameter_names(stream, function_pos):
            return function_pos
        if not captures(stream, function_pos, name):
            return None
        function_pos = find_enclosing_callable(stream, function_pos)
    return None


def captures(stream: TokenStream, function_pos: int, name: str) -> bool:
    """Check whether a callable's body sees name from the enclosing scope."""
    kind = stream[function_pos].kind
    if kind is TokenKind.FN:
        return True
    if kind is TokenKind.CLOSURE:
        return name in use_clause_names(stream, function_pos)
    return False


def use_clause_names(stream: TokenStream, function_pos: int) -> List[str]:
    """List the variables a closure imports with `use (...)`, sigil included."""
    if not stream.in_range(function_pos):
        return []
    owner = stream[function_pos]
    if owner.parenthesis_closer is None or owner.scope_opener is None:
        return []

    names = []
    pos = owner.parenthesis_closer
    while True:
        pos = stream.find_next(TokenKind.VARIABLE, pos + 1, owner.scope_opener)
        if pos is None:
            return names
        names.append(stream[pos].text)


def is_within_parameter_list(stream: TokenStream, function_pos: int, pos: int) -> bool:
    """Check whether pos lies strictly inside the callable's parentheses."""
    if not stream.in_range(function_pos):
        return False
    owner = stream[function_pos]
    if owner.parenthesis_opener is None or owner.parenthesis_closer is None:
        return False
    return owner.parenthesis_opener < pos < owner.parenthesis_closer


def parameter_names(stream: TokenStream, function_pos: int) -> List[str]:
    """List the declared parameter names of a callable, sigil included.

    Args:
        stream: Token stream
        function_pos: Index of the callable's keyword token

    Returns:
        Variable texts between the parentheses in declaration order, or []
        when the parameter list is missing
    """
    if not stream.in_range(function_pos):
        return []
    owner = stream[function_pos]
    if owner.parenthesis_opener is None or owner.parenthesis_closer is None:
        return []

    names = []
    pos = owner.parenthesis_opener
    while True:
        pos = stream.find_next(TokenKind.VARIABLE, pos + 1, owner.parenthesis_closer)
        if pos is None:
            return names
        names.append(stream[pos].text)


def innermost_type_scope(stream: TokenStream, pos: int,
                         kinds: FrozenSet[ScopeKind] = TYPE_SCOPES) -> Optional[Tuple[int, ScopeKind]]:
    """Return the innermost (owner_index, kind) of pos's scope context with a kind in kinds."""
    if not stream.in_range(pos):
        return None
    for owner, kind in reversed(stream[pos].scope_context):
        if kind in kinds:
            return owner, kind
    return None


def callable_is_abstract(stream: TokenStream, function_pos: int) -> bool:
    """Check whether an `abstract` modifier directly precedes the callable keyword."""
    if not stream.in_range(function_pos):
        return False
    pos = function_pos - 1
    while pos >= 0 and stream[pos].kind in MODIFIER_KINDS:
        if stream[pos].kind is TokenKind.ABSTRACT:
            return True
        pos -= 1
    return False


def type_has_inheritance_clause(stream: TokenStream, type_pos: int) -> bool:
    """Check for `extends` or `implements` between a type keyword and its body."""
    if not stream.in_range(type_pos):
        return False
    opener = stream[type_pos].scope_opener
    if opener is None:
        return False
    return stream.find_next(INHERITANCE_KEYWORDS, type_pos + 1, opener) is not None
