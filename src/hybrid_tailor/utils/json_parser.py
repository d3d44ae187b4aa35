"""Utility to extract and repair JSON from LLM responses."""

from __future__ import annotations

import json
import re

from hybrid_tailor.errors import ParseError

_FENCE = re.compile(r"```[A-Za-z]*[ \t]*\r?\n?(.*?)```", re.DOTALL)

_IDENT_START = re.compile(r"[A-Za-z_$]")
_IDENT = re.compile(r"[A-Za-z0-9_$]*")

_PY_LITERALS = {"True": "true", "False": "false", "None": "null"}
_STRING_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}
_CLOSERS = {"{": "}", "[": "]"}


def extract_json(text: str) -> str:
    """Extract the JSON object span from free-form LLM text.

    Tries in order:
    1. A fenced code block anchored at the end of the text
    2. Any fenced code block
    3. A balanced-brace scan from the first '{' (braces inside strings ignored)
    4. First '{' to last '}' when the text ends on that brace

    Output truncated mid-object is returned from the first '{' onward so
    that ``repair_json`` can close it. Text without any '{' is returned
    stripped.
    """
    text = text.lstrip("\ufeff").strip()

    fenced = _fenced_block(text)
    if fenced:
        text = fenced

    start = text.find("{")
    if start == -1:
        return text

    end = _matching_brace(text, start)
    if end is not None:
        return text[start : end + 1]

    last = text.rfind("}")
    if last > start and not text[last + 1 :].strip():
        return text[start : last + 1]

    return text[start:]


def _fenced_block(text: str) -> str | None:
    """Content of the fenced block ending the text, else of the first fenced block."""
    blocks = [m for m in _FENCE.finditer(text) if "{" in m.group(1)]
    if not blocks:
        return None
    last = blocks[-1]
    if not text[last.end() :].strip():
        return last.group(1).strip()
    return blocks[0].group(1).strip()


def _matching_brace(text: str, start: int) -> int | None:
    """Index of the '}' closing the '{' at ``start``, tracking string state."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    return None


def repair_json(text: str) -> str:
    """Repair common LLM JSON malformations in a single tokenizing pass.

    Handles single-quoted strings, bare identifier keys, Python literals,
    comments, trailing commas, raw control characters inside strings,
    unterminated strings and missing closing brackets/braces. Valid JSON
    passes through unchanged apart from whitespace-insensitive details.
    """
    out: list[str] = []
    stack: list[str] = []
    quote: str | None = None
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]

        if quote is not None:
            if ch == "\\":
                if i + 1 == n:
                    break
                nxt = text[i + 1]
                if nxt == "'":
                    out.append("'")
                else:
                    out.append(ch + nxt)
                i += 2
                continue
            if ch == quote:
                out.append('"')
                quote = None
            elif ch == '"':
                out.append('\\"')
            elif ch in _STRING_ESCAPES:
                out.append(_STRING_ESCAPES[ch])
            else:
                out.append(ch)
            i += 1
            continue

        if ch in "\"'":
            quote = ch
            out.append('"')
            i += 1
        elif ch == "/" and text.startswith("//", i):
            newline = text.find("\n", i)
            i = n if newline == -1 else newline
        elif ch == "/" and text.startswith("/*", i):
            close = text.find("*/", i + 2)
            i = n if close == -1 else close + 2
        elif ch == ",":
            if _next_significant(text, i + 1) not in ("]", "}", ""):
                out.append(ch)
            i += 1
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
            out.append(ch)
            i += 1
        elif ch in "]}":
            if stack and stack[-1] == ch:
                stack.pop()
            out.append(ch)
            i += 1
        elif _IDENT_START.match(ch):
            word = _IDENT.match(text, i).group(0)
            i += len(word)
            if _next_significant(text, i) == ":":
                out.append(json.dumps(word))
            else:
                out.append(_PY_LITERALS.get(word, word))
        else:
            out.append(ch)
            i += 1

    if quote is not None:
        out.append('"')

    repaired = "".join(out).rstrip()
    if stack:
        # Truncated output: drop a dangling separator before closing.
        if repaired.endswith(","):
            repaired = repaired[:-1]
        elif repaired.endswith(":"):
            repaired += " null"
        repaired += "".join(reversed(stack))
    return repaired


def _next_significant(text: str, pos: int) -> str:
    """Next character after ``pos`` that is neither whitespace nor a comment."""
    n = len(text)
    while pos < n:
        ch = text[pos]
        if ch.isspace():
            pos += 1
        elif text.startswith("//", pos):
            newline = text.find("\n", pos)
            pos = n if newline == -1 else newline
        elif text.startswith("/*", pos):
            close = text.find("*/", pos + 2)
            pos = n if close == -1 else close + 2
        else:
            return ch
    return ""


def parse_json_response(text: str, label: str = "response") -> dict:
    """Extract, repair and parse a JSON object from model output.

    Raises:
        ParseError: if the repaired text is still not a JSON object. The
            error carries the first 500 characters of the raw and repaired
            text for diagnosis.
    """
    repaired = repair_json(extract_json(text))
    try:
        data = json.loads(repaired)
    except json.JSONDecodeError as exc:
        raise ParseError(
            f"Failed to parse {label} JSON: {exc.msg}",
            label=label,
            raw=text,
            repaired=repaired,
            cause=exc,
        ) from exc
    if not isinstance(data, dict):
        raise ParseError(
            f"Expected a JSON object for {label}, got {type(data).__name__}",
            label=label,
            raw=text,
            repaired=repaired,
        )
    return data
