"""
LP-format export of a synthesized constraint set.

Layout:
    Subject To
        c0: 1.0 x0 + 2.0 x1 <= 5.0
    Bounds
        -3.0 <= x0 <= 3.0
    Generals
        x0 x1
    End

Floats are written with repr() so parse_lp_format() reconstructs the exact
coefficient values.
"""

import re
from typing import List, Sequence, Tuple

from .geometry import Constraint, Domain, LinearConstraint


SECTION_HEADERS = ('Subject To', 'Bounds', 'Generals', 'End')

_TERM_RE = re.compile(r'([+-])?\s*(\S+)\s+x(\d+)')
_BOUND_RE = re.compile(r'^(\S+)\s*<=\s*x(\d+)\s*<=\s*(\S+)$')


def _format_number(value: float) -> str:
    return repr(float(value))


def _format_constraint(index: int, constraint: Constraint) -> str:
    terms = []
    for j, coeff in enumerate(constraint.terms_coefficients):
        coeff = float(coeff)
        if j == 0:
            terms.append(f"{_format_number(coeff)} x{j}")
        elif coeff < 0 or (coeff == 0 and str(coeff).startswith('-')):
            terms.append(f"- {_format_number(-coeff)} x{j}")
        else:
            terms.append(f"+ {_format_number(coeff)} x{j}")
    return f"\tc{index}: {' '.join(terms)} <= {_format_number(constraint.limiting_value)}"


def to_lp_format(constraints: Sequence[Constraint], domains: Sequence[Domain]) -> str:
    """
    Render constraints and domain bounds as an LP-format block.

    Raises:
        TypeError: If a constraint is not linear
    """
    lines = ['Subject To']
    for i, constraint in enumerate(constraints):
        if not isinstance(constraint, LinearConstraint):
            raise TypeError(
                f"Only linear constraints can be exported, got {type(constraint).__name__}"
            )
        lines.append(_format_constraint(i, constraint))

    lines.append('Bounds')
    for i, domain in enumerate(domains):
        lines.append(
            f"\t{_format_number(domain.lower_limit)} <= x{i} <= {_format_number(domain.upper_limit)}"
        )

    lines.append('Generals')
    lines.append('\t' + ' '.join(f"x{i}" for i in range(len(domains))))
    lines.append('End')
    return '\n'.join(lines)


def _parse_constraint(line: str) -> Tuple[List[float], float]:
    if ':' in line:
        line = line.split(':', 1)[1]
    if '<=' not in line:
        raise ValueError(f"Constraint line has no '<=': {line!r}")
    lhs, rhs = line.rsplit('<=', 1)

    indexed = {}
    for sign, value, index in _TERM_RE.findall(lhs):
        coeff = float(value)
        if sign == '-':
            coeff = -coeff
        indexed[int(index)] = coeff

    if not indexed:
        raise ValueError(f"Constraint line has no terms: {line!r}")

    size = max(indexed) + 1
    coefficients = [indexed.get(j, 0.0) for j in range(size)]
    return coefficients, float(rhs.strip())


def parse_lp_format(text: str) -> Tuple[List[LinearConstraint], List[Domain]]:
    """Parse a block produced by to_lp_format() back into constraints and domains."""
    section = None
    raw_constraints: List[Tuple[List[float], float]] = []
    bounds = {}

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if line in SECTION_HEADERS:
            section = line
            if section == 'End':
                break
            continue

        if section == 'Subject To':
            raw_constraints.append(_parse_constraint(line))
        elif section == 'Bounds':
            match = _BOUND_RE.match(line)
            if not match:
                raise ValueError(f"Malformed bound line: {line!r}")
            lower, index, upper = match.groups()
            bounds[int(index)] = Domain(float(lower), float(upper))
        elif section == 'Generals':
            continue
        else:
            raise ValueError(f"Content outside of a section: {line!r}")

    domains = [bounds[i] for i in sorted(bounds)]
    n = len(domains) or max((len(c) for c, _ in raw_constraints), default=0)

    constraints = []
    for coefficients, limit in raw_constraints:
        if len(coefficients) < n:
            coefficients = coefficients + [0.0] * (n - len(coefficients))
        constraints.append(LinearConstraint(coefficients, limit))

    return constraints, domains
