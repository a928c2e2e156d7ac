"""Escape Liquid output delimiters inside fenced code blocks"""

from liquidscrub.core.models import EscapeRule, Line, ScanState


OPEN_ESCAPED = "&#123;&#123;"
CLOSE_ESCAPED = "&#125;&#125;"

# Neither replacement contains a raw {{ or }}, so applying a rule twice is a no-op.
ESCAPE_RULES: tuple[EscapeRule, ...] = (
    EscapeRule(pattern="{{", replacement=OPEN_ESCAPED),
    EscapeRule(pattern="}}", replacement=CLOSE_ESCAPED),
)


def escape_text(text: str, rules: tuple[EscapeRule, ...] = ESCAPE_RULES) -> str:
    for rule in rules:
        text = rule.apply(text)
    return text


def escape_line(line: Line, rules: tuple[EscapeRule, ...] = ESCAPE_RULES) -> Line:
    """Return line with every rule applicable to its state applied; other lines pass through."""
    applicable = tuple(r for r in rules if r.applies_in == line.state)
    if not applicable:
        return line
    escaped = escape_text(line.text, applicable)
    if escaped == line.text:
        return line
    return Line(text=escaped, eol=line.eol, state=line.state)
