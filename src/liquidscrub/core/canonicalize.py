"""Repair escape artifacts left by earlier fix passes so every {{ / }} is raw again"""

import re

from liquidscrub.core.models import MalformedArtifact


# Body of a Liquid raw/endraw tag, including {%- -%} whitespace control and the
# backslash-escaped `{\% raw \%}` form produced by a bad sed substitution.
_BODY = r"\\?%-?\s*(?:end)?raw\s*-?\\?%"
_MARKER = r"\{" + _BODY + r"\}"

STRAY_LINE_RE = re.compile(rf"^(?:{_MARKER}\s*)+$")

# Applied in order to code lines.
ARTIFACTS: tuple[MalformedArtifact, ...] = (
    MalformedArtifact(
        name="marker-joined-to-open",      # {{% raw %}  ->  {{
        pattern=re.compile(r"(^|[^{])\{\{" + _BODY + r"\}"),
        replacement=r"\1{{",
    ),
    MalformedArtifact(
        name="marker-joined-to-close",     # {% endraw %}}  ->  }}
        pattern=re.compile(r"\{" + _BODY + r"(?=\}\}(?!\}))"),
        replacement="",
    ),
    MalformedArtifact(
        name="inline-marker",
        pattern=re.compile(_MARKER),
        replacement="",
    ),
    MalformedArtifact(
        name="sed-open-run",               # {{#123;{{#123;...  ->  {{
        pattern=re.compile(r"\{\{#123;(?:\{\{|#123;)*"),
        replacement="{{",
    ),
    MalformedArtifact(
        name="sed-close-run",              # }}#125;}}#125;...  ->  }}
        pattern=re.compile(r"\}\}#125;(?:\}\}|#125;)*"),
        replacement="}}",
    ),
    MalformedArtifact(
        name="entity-open",                # same amp; depth on both halves
        pattern=re.compile(r"&((?:amp;)*)#123;&\1#123;"),
        replacement="{{",
    ),
    MalformedArtifact(
        name="entity-close",
        pattern=re.compile(r"&((?:amp;)*)#125;&\1#125;"),
        replacement="}}",
    ),
)


def is_stray_marker(text: str) -> bool:
    """True for a line holding nothing but raw/endraw wrapper tags."""
    return bool(STRAY_LINE_RE.match(text.strip()))


def strip_stray_markers(pairs: list[tuple[str, str]]) -> tuple[list[tuple[str, str]], int]:
    """Drop standalone wrapper lines. Returns (kept lines, number removed)."""
    kept = [p for p in pairs if not is_stray_marker(p[0])]
    return kept, len(pairs) - len(kept)


def canonicalize_line(text: str) -> str:
    """Return text with marker fragments removed and encoded braces decoded to raw {{ / }}.

    Repeats until nothing changes: decoding can expose a marker such as
    `{&#123;&#123;% raw %}` -> `{{{% raw %}` that the earlier rules must see again.
    """
    while True:
        repaired = text
        for artifact in ARTIFACTS:
            repaired = artifact.repair(repaired)
        if repaired == text:
            return text
        text = repaired
