"""snake_case validation and conversion for bare variable names."""
import re

SNAKE_CASE_PATTERN = re.compile(r'^[a-z][a-z0-9]*(_[a-z0-9]+)*$')

# Every uppercase letter except one at the very start gets its own underscore,
# so runs of capitals are split letter by letter (HTML -> h_t_m_l).
_CASE_BOUNDARY = re.compile(r'(?<=.)([A-Z])', re.DOTALL)
_UNDERSCORE_RUN = re.compile(r'_{2,}')


def is_snake_case(name: str) -> bool:
    """Check if a bare name (no sigil) is valid snake_case.

    Args:
        name: Variable name without the leading $

    Returns:
        True for names like 'foo', 'foo_bar', 'foo2_bar3'
    """
    return SNAKE_CASE_PATTERN.fullmatch(name) is not None


def to_snake_case(name: str) -> str:
    """Convert a bare name to snake_case.

    Examples:
        testVariable   -> test_variable
        TestVariable   -> test_variable
        testHTMLParser -> test_h_t_m_l_parser
        _testVariable  -> test_variable
        test__variable -> test_variable

    Args:
        name: Variable name without the leading $

    Returns:
        Converted name (never raises; worst case is the lowercased input)
    """
    name = name.lstrip('_')
    name = _CASE_BOUNDARY.sub(r'_\1', name)
    name = name.lower()
    return _UNDERSCORE_RUN.sub('_', name)
