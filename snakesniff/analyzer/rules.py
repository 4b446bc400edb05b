"""snake_case naming rules built on the role classifier.

One RuleEngine drives every rule; a RulePolicy only says which roles it
checks and in which classification mode.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional

from .casing import is_snake_case, to_snake_case
from .classifier import Mode, Role, bare_name, classify
from .tokens import TokenStream

DEFAULT_STANDARD = 'SnakeSniff'
CATEGORY = 'NamingConventions'


class ErrorCode(Enum):
    """Violation taxonomy."""
    NOT_SNAKE_CASE = 'not_snake_case'


@dataclass(frozen=True)
class Finding:
    """A single naming violation."""
    position: int
    line: int
    column: int
    name: str
    suggested_name: str
    code: ErrorCode
    rule: str
    code_string: str
    fixable: bool = True
    standard: str = DEFAULT_STANDARD

    @property
    def source(self) -> str:
        return f"{self.standard}.{CATEGORY}.{self.rule}.{self.code_string}"

    @property
    def message(self) -> str:
        return (f'Variable "${self.name}" is not in snake_case format; '
                f'try "${self.suggested_name}"')


class RulePolicy:
    """Which roles a rule checks, and how parameters are classified."""

    name = ''
    code = ''
    mode = Mode.INCLUDE_BODY_USAGE
    checkable: FrozenSet[Role] = frozenset()

    def is_checkable(self, role: Optional[Role]) -> bool:
        return role in self.checkable

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name})"


class LocalOnlyPolicy(RulePolicy):
    """Local variables only; parameters and their body usages are skipped."""
    name = 'LocalVariableSnakeCase'
    code = 'NotSnakeCase'
    mode = Mode.INCLUDE_BODY_USAGE
    checkable = frozenset({Role.LOCAL_VARIABLE})


class CombinedPolicy(RulePolicy):
    """Local variables and non-inherited parameters, declarations and usages."""
    name = 'VariableSnakeCase'
    code = 'VariableNotSnakeCase'
    mode = Mode.INCLUDE_BODY_USAGE
    checkable = frozenset({Role.LOCAL_VARIABLE, Role.PARAMETER})


class ParameterOnlyPolicy(RulePolicy):
    """Parameter declarations whose names are not mandated by a parent type."""
    name = 'ParameterSnakeCase'
    code = 'NotSnakeCase'
    mode = Mode.DECLARATION_ONLY
    checkable = frozenset({Role.PARAMETER})


class RuleEngine:
    """Applies one policy to a token stream."""

    def __init__(self, policy: RulePolicy, standard: str = DEFAULT_STANDARD):
        self.policy = policy
        self.standard = standard

    @property
    def name(self) -> str:
        return self.policy.name

    def classify(self, stream: TokenStream, pos: int) -> Optional[Role]:
        return classify(stream, pos, self.policy.mode)

    def check(self, stream: TokenStream, pos: int) -> Optional[Finding]:
        """Check one token.

        Args:
            stream: Token stream
            pos: Token index

        Returns:
            A Finding when the token has a checkable role and a non
            snake_case name, otherwise None
        """
        if not self.policy.is_checkable(self.classify(stream, pos)):
            return None

        token = stream[pos]
        name = bare_name(token.text)
        if is_snake_case(name):
            return None

        return Finding(
            position=pos,
            line=token.line,
            column=token.column,
            name=name,
            suggested_name=to_snake_case(name),
            code=ErrorCode.NOT_SNAKE_CASE,
            rule=self.policy.name,
            code_string=self.policy.code,
            standard=self.standard,
        )

    def process(self, stream: TokenStream) -> List[Finding]:
        """Check every variable token in forward order."""
        findings = []
        for pos in stream.variables():
            finding = self.check(stream, pos)
            if finding is not None:
                findings.append(finding)
        return findings

    @staticmethod
    def fix_text(finding: Finding) -> str:
        return '$' + finding.suggested_name


RULES: Dict[str, type] = {
    LocalOnlyPolicy.name: LocalOnlyPolicy,
    CombinedPolicy.name: CombinedPolicy,
    ParameterOnlyPolicy.name: ParameterOnlyPolicy,
    'local': LocalOnlyPolicy,
    'variable': CombinedPolicy,
    'parameter': ParameterOnlyPolicy,
}

DEFAULT_RULES = (LocalOnlyPolicy.name, CombinedPolicy.name, ParameterOnlyPolicy.name)


def resolve_rules(names: Iterable[str]) -> List[RulePolicy]:
    """Turn rule names or aliases into policy instances.

    Duplicates (including an alias next to its full name) collapse to one
    policy, keeping first-seen order.

    Raises:
        ValueError: If a name is not a known rule
    """
    policies = []
    seen = set()
    for raw in names:
        key = raw.strip()
        if not key:
            continue
        policy_cls = RULES.get(key) or RULES.get(key.lower())
        if policy_cls is None:
            known = ', '.join(sorted(RULES))
            raise ValueError(f"Unknown rule '{raw}'. Known rules: {known}")
        if policy_cls not in seen:
            seen.add(policy_cls)
            policies.append(policy_cls())
    return policies
