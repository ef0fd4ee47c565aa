"""SCSS Variable Patch — pure line rewrite of `$name: value;` declarations.

Invariants:
    - A line matches only if it starts with the exact token `$<name>:`
      (so `color` never matches `$color2:`)
    - A matched line is replaced wholesale by `$<name>: <value>;`
    - Unmatched lines are copied unchanged
    - Every output line ends with "\\n", including the last one; a source
      without a trailing newline gains one, and CRLF / CR become LF
    - Every matching line is replaced; uniqueness is not enforced
    - Pure: no IO, no logging
"""

import re
from dataclasses import dataclass

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class PatchOutcome:
    """Rewritten content plus line counters for logging."""
    content: str
    lines_processed: int
    lines_replaced: int


def split_lines(content: str) -> list[str]:
    """Split on \\r\\n, \\r or \\n. A trailing terminator does not yield an empty line."""
    if not content:
        return []
    lines = _LINE_BREAK.split(content)
    if lines[-1] == "":
        lines.pop()
    return lines


def declaration_prefix(variable_name: str) -> str:
    return f"${variable_name}:"


def format_declaration(variable_name: str, new_value: str) -> str:
    return f"${variable_name}: {new_value};"


def set_scss_variable(
    content: str, variable_name: str, new_value: str,
) -> PatchOutcome:
    """Replace every `$<variable_name>:` line with the new declaration."""
    prefix = declaration_prefix(variable_name)
    replacement = format_declaration(variable_name, new_value)
    out: list[str] = []
    replaced = 0
    lines = split_lines(content)
    for line in lines:
        if line.startswith(prefix):
            out.append(replacement)
            replaced += 1
        else:
            out.append(line)
    return PatchOutcome(
        content="".join(f"{line}\n" for line in out),
        lines_processed=len(lines),
        lines_replaced=replaced,
    )
