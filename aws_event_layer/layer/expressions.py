"""
Helpers for composing DynamoDB condition and update expressions.
"""

UPDATE_SECTIONS = ("SET", "ADD", "DELETE", "REMOVE")
CONDITION_JOINERS = ("AND", "OR")


def concat_condition_expression(left: str, right: str) -> str:
    """
    Join two condition expressions.

    The right side is appended with AND unless it already starts with a
    joiner (AND/OR). Empty sides are ignored.

    Args:
        left: First condition expression
        right: Second condition expression

    Returns:
        Combined condition expression
    """
    left = left.strip()
    right = right.strip()

    if not left:
        return right
    if not right:
        return left

    if right.split(" ", 1)[0] in CONDITION_JOINERS:
        return f"{left} {right}"
    return f"{left} AND {right}"


def _split_clauses(tokens: list[str]) -> list[str]:
    """Split section tokens on top-level commas (commas inside function calls are kept)."""
    clauses: list[str] = []
    current: list[str] = []
    depth = 0

    for char in " ".join(tokens):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        if char == "," and depth == 0:
            clauses.append("".join(current))
            current = []
        else:
            current.append(char)
    clauses.append("".join(current))

    return [clause.strip(", ") for clause in clauses if clause.strip(", ")]


def _parse_update_expression(expression: str) -> dict[str, list[str]]:
    sections: dict[str, list[str]] = {}
    section = "SET"

    for token in expression.strip(", ").split(" "):
        if token in UPDATE_SECTIONS:
            section = token
            sections.setdefault(section, [])
        elif token.strip():
            sections.setdefault(section, []).append(token)

    return {name: _split_clauses(tokens) for name, tokens in sections.items()}


def concat_update_expression(left: str, right: str) -> str:
    """
    Merge two update expressions section by section.

    Clauses without a leading section keyword belong to SET. Duplicate
    clauses are dropped, sections are emitted as SET, ADD, DELETE, REMOVE.

    Args:
        left: First update expression
        right: Second update expression

    Returns:
        Combined update expression
    """
    parsed_left = _parse_update_expression(left)
    parsed_right = _parse_update_expression(right)
    parts = []

    for section in UPDATE_SECTIONS:
        clauses = parsed_left.get(section, []) + parsed_right.get(section, [])
        unique = list(dict.fromkeys(clauses))
        if unique:
            parts.append(f"{section} {', '.join(unique)}")

    return " ".join(parts)
