"""Role classification for variable tokens.

Each variable token is classified independently and without side effects.
Checks run in a fixed order and the first match wins:

1. reserved names (superglobals, $this, $argv/$argc)
2. declarations preceded by a visibility modifier inside a type body
   (plain and promoted constructor properties)
3. anything else sitting directly in a class/trait/enum body
4. static property access (`Foo::$bar`)
5. parameters of the enclosing callable, or of an outer callable a closure
   captures them from, otherwise local variables
6. parameters whose names may be fixed by a parent type or interface
"""
from enum import Enum
from typing import Optional

from .scope_resolver import (
    callable_is_abstract,
    find_enclosing_callable,
    find_parameter_owner,
    innermost_type_scope,
    is_within_parameter_list,
    type_has_inheritance_clause,
)
from .tokens import (
    INHERITANCE_SCOPES,
    PROPERTY_SCOPES,
    ScopeKind,
    TokenKind,
    TokenStream,
)


class Role(Enum):
    """Semantic role of a variable reference."""
    PROPERTY = 'Property'
    STATIC_PROPERTY_ACCESS = 'StaticPropertyAccess'
    PARAMETER = 'Parameter'
    INHERITED_PARAMETER = 'InheritedParameter'
    LOCAL_VARIABLE = 'LocalVariable'
    RESERVED = 'Reserved'


class Mode(Enum):
    """Whether body usages of a parameter name count as the parameter."""
    DECLARATION_ONLY = 'declaration'
    INCLUDE_BODY_USAGE = 'body'


RESERVED_NAMES = frozenset({
    'this',
    'GLOBALS',
    '_SERVER',
    '_GET',
    '_POST',
    '_FILES',
    '_COOKIE',
    '_SESSION',
    '_REQUEST',
    '_ENV',
    'argv',
    'argc',
})

# Tokens that may sit between a visibility modifier and the declared name.
PROPERTY_PREFIX_SKIP = frozenset({
    TokenKind.WHITESPACE,
    TokenKind.COMMENT,
    TokenKind.DOC_COMMENT,
    TokenKind.STATIC,
    TokenKind.READONLY,
    TokenKind.STRING,
    TokenKind.NS_SEPARATOR,
    TokenKind.NULLABLE,
    TokenKind.TYPE_UNION,
    TokenKind.TYPE_INTERSECTION,
    TokenKind.OPEN_PARENTHESIS,
    TokenKind.CLOSE_PARENTHESIS,
    TokenKind.ATTRIBUTE,
    TokenKind.ATTRIBUTE_END,
})

VISIBILITY_KINDS = frozenset({
    TokenKind.PUBLIC,
    TokenKind.PROTECTED,
    TokenKind.PRIVATE,
    TokenKind.VAR,
})


def bare_name(text: str) -> str:
    """Strip the `$` sigil from a variable token's text."""
    return text[1:] if text.startswith('$') else text


def _has_visibility_prefix(stream: TokenStream, pos: int) -> bool:
    prev = stream.find_previous(PROPERTY_PREFIX_SKIP, pos - 1, exclude=True)
    if prev is None:
        return False
    token = stream[prev]
    # Skip a whole attribute group, e.g. `public #[Sensitive] $password`.
    while token.kind is TokenKind.ATTRIBUTE_END and token.pair is not None:
        prev = stream.find_previous(PROPERTY_PREFIX_SKIP, token.pair - 1, exclude=True)
        if prev is None:
            return False
        token = stream[prev]
    return token.kind in VISIBILITY_KINDS


def _is_in_type_body(stream: TokenStream, pos: int) -> bool:
    scope = stream.scope_at(pos)
    return scope.kind in PROPERTY_SCOPES and scope.in_body(pos)


def _is_inherited(stream: TokenStream, function_pos: int) -> bool:
    type_scope = innermost_type_scope(stream, function_pos, INHERITANCE_SCOPES)
    if type_scope is not None and type_scope[1] is ScopeKind.INTERFACE:
        return True
    if callable_is_abstract(stream, function_pos):
        return True
    return type_scope is not None and type_has_inheritance_clause(stream, type_scope[0])


def classify(stream: TokenStream, pos: int, mode: Mode = Mode.INCLUDE_BODY_USAGE) -> Optional[Role]:
    """Classify the variable token at pos.

    Args:
        stream: Fully built token stream
        pos: Index of the token to classify
        mode: Whether body usages of parameter names count as parameters

    Returns:
        The token's Role, or None for out-of-range or non-variable tokens
    """
    if not stream.in_range(pos):
        return None
    token = stream[pos]
    if token.kind is not TokenKind.VARIABLE:
        return None

    if bare_name(token.text) in RESERVED_NAMES:
        return Role.RESERVED

    in_property_scope = innermost_type_scope(stream, pos, PROPERTY_SCOPES) is not None
    if in_property_scope and _has_visibility_prefix(stream, pos):
        return Role.PROPERTY

    if _is_in_type_body(stream, pos):
        return Role.PROPERTY

    prev = stream.find_previous(TokenKind.WHITESPACE, pos - 1, exclude=True)
    if prev is not None and stream[prev].kind is TokenKind.DOUBLE_COLON:
        return Role.STATIC_PROPERTY_ACCESS

    function_pos = find_enclosing_callable(stream, pos)
    if function_pos is None:
        return Role.LOCAL_VARIABLE

    if is_within_parameter_list(stream, function_pos, pos):
        role = Role.PARAMETER
    elif mode is Mode.INCLUDE_BODY_USAGE:
        function_pos = find_parameter_owner(stream, function_pos, token.text)
        if function_pos is None:
            return Role.LOCAL_VARIABLE
        role = Role.PARAMETER
    else:
        return Role.LOCAL_VARIABLE

    if _is_inherited(stream, function_pos):
        return Role.INHERITED_PARAMETER
    return role


class RoleClassifier:
    """Classifier bound to one mode, for callers that classify many tokens."""

    def __init__(self, mode: Mode = Mode.INCLUDE_BODY_USAGE):
        self.mode = mode

    def classify(self, stream: TokenStream, pos: int) -> Optional[Role]:
        return classify(stream, pos, self.mode)

    def classify_all(self, stream: TokenStream):
        """Yield (index, role) for every variable token in forward order."""
        for pos in stream.variables():
            yield pos, classify(stream, pos, self.mode)
