"""
Structured Extractor - Raw model text to a JSON value.

Strategies, in order, stopping at the first success:
1. direct parse
2. strip markdown code fences
3. first balanced {...} / [...] span (string- and escape-aware)
4. textual repairs (comments, trailing commas, bare keys, single quotes,
   Python literals, control characters), then steps 1-3 again
5. truncation repair: close an unterminated string and open brackets

Only objects and arrays count as a successful extraction. Malformed input
never raises; failure comes back as ExtractionResult(ok=False).
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

_FENCE_BLOCK_RE = re.compile(r"```[a-zA-Z0-9_-]*[ \t]*\n?(.*?)```", re.DOTALL)
_LEADING_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_-]*[ \t]*\n?")
_TRAILING_FENCE_RE = re.compile(r"\n?```\s*$")
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")
_BARE_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_\-]*)(\s*:)")
_LINE_COMMENT_RE = re.compile(r"(^|\s)//[^\n]*")
_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_PY_LITERAL_RE = re.compile(r"\b(True|False|None)\b")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")
_DANGLING_KEY_RE = re.compile(r'([{,])\s*"(?:[^"\\]|\\.)*"\s*:?\s*$')

_PY_LITERALS = {"True": "true", "False": "false", "None": "null"}
_CLOSERS = {"{": "}", "[": "]"}

# Only scan this many candidate opening brackets for a balanced span
MAX_SPAN_STARTS = 25


@dataclass
class ExtractionResult:
    """Outcome of extract(); value is set only when ok."""
    ok: bool
    value: Any = None
    strategy: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "ExtractionResult":
        return cls(ok=False, error=error)


def _loads(text: Optional[str], strict: bool = True) -> Tuple[bool, Any]:
    if not text:
        return False, None
    try:
        value = json.loads(text, strict=strict)
    except (ValueError, RecursionError):
        return False, None
    if isinstance(value, (dict, list)):
        return True, value
    return False, None


# =============================================================================
# TEXT HELPERS
# =============================================================================

def strip_code_fences(text: str) -> str:
    """Return the first fenced block's body, or the text with edge fences removed."""
    m = _FENCE_BLOCK_RE.search(text)
    if m and m.group(1).strip():
        return m.group(1).strip()
    cleaned = _LEADING_FENCE_RE.sub("", text.strip())
    cleaned = _TRAILING_FENCE_RE.sub("", cleaned)
    return cleaned.strip()


def find_balanced_span(text: str) -> Optional[str]:
    """
    Locate the first balanced {...} or [...] substring.

    Brackets inside string literals are ignored. A start position whose
    brackets close with the wrong type is skipped and the next one tried;
    one that is still open at the end of the text means the payload was
    truncated, and None is returned so a nested fragment is never taken
    for the whole.
    """
    starts = [i for i, ch in enumerate(text) if ch in _CLOSERS][:MAX_SPAN_STARTS]
    for start in starts:
        stack: List[str] = []
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
            elif ch in _CLOSERS:
                stack.append(_CLOSERS[ch])
            elif ch in ("}", "]"):
                if not stack or stack.pop() != ch:
                    break
                if not stack:
                    return text[start:i + 1]
        else:
            return None
    return None


def _split_strings(text: str) -> List[Tuple[bool, str]]:
    """Split text into (is_string_literal, segment) pieces on double quotes."""
    segments: List[Tuple[bool, str]] = []
    buf: List[str] = []
    in_string = False
    escaped = False
    for ch in text:
        if in_string:
            buf.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                segments.append((True, "".join(buf)))
                buf = []
                in_string = False
        elif ch == '"':
            if buf:
                segments.append((False, "".join(buf)))
            buf = [ch]
            in_string = True
        else:
            buf.append(ch)
    if buf:
        segments.append((in_string, "".join(buf)))
    return segments


def _map_code(text: str, fn: Callable[[str], str]) -> str:
    """Apply fn to the parts of text that are outside string literals."""
    return "".join(seg if is_str else fn(seg) for is_str, seg in _split_strings(text))


def _convert_single_quotes(text: str) -> str:
    """Rewrite 'single quoted' strings as JSON strings, leaving "..." alone."""
    out: List[str] = []
    i = 0
    n = len(text)
    in_double = False
    while i < n:
        ch = text[i]
        if in_double:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_double = False
            i += 1
            continue
        if ch == '"':
            in_double = True
            out.append(ch)
            i += 1
            continue
        if ch == "'":
            j = i + 1
            chars: List[str] = []
            while j < n and text[j] != "'":
                if text[j] == "\\" and j + 1 < n:
                    chars.append(text[j + 1])
                    j += 2
                    continue
                chars.append(text[j])
                j += 1
            if j >= n:
                out.append(text[i:])
                break
            out.append(json.dumps("".join(chars)))
            i = j + 1
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def _repair_code(segment: str) -> str:
    segment = _BLOCK_COMMENT_RE.sub("", segment)
    segment = _LINE_COMMENT_RE.sub(r"\1", segment)
    segment = _PY_LITERAL_RE.sub(lambda m: _PY_LITERALS[m.group(1)], segment)
    segment = _BARE_KEY_RE.sub(r'\1"\2"\3', segment)
    return segment


def apply_repairs(text: str) -> str:
    """Apply the textual repairs for common LLM JSON mistakes."""
    text = _CONTROL_RE.sub("", text)
    text = _convert_single_quotes(text)
    text = _map_code(text, _repair_code)
    # Trailing commas can straddle a comment that was just removed
    text = _map_code(text, lambda seg: _TRAILING_COMMA_RE.sub(r"\1", seg))
    return text


def close_truncated(text: str) -> Optional[str]:
    """
    Close a payload that was cut off mid-stream.

    Returns None when there is no opening bracket to recover from.
    """
    start = min((i for i in (text.find("{"), text.find("[")) if i >= 0), default=-1)
    if start < 0:
        return None
    body = text[start:]

    stack: List[str] = []
    in_string = False
    escaped = False
    for ch in body:
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
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in ("}", "]") and stack and stack[-1] == ch:
            stack.pop()

    if not stack and not in_string:
        return None
    if in_string:
        body += '"'

    body = body.rstrip()
    # A dangling key (with or without its colon) cannot be completed
    if stack and stack[-1] == "}":
        body = _DANGLING_KEY_RE.sub(r"\1", body).rstrip()
    body = body.rstrip(",").rstrip()
    if body.endswith(":"):
        body += " null"
    return body + "".join(reversed(stack))


# =============================================================================
# EXTRACT
# =============================================================================

def extract(raw_text: Any) -> ExtractionResult:
    """
    Turn raw model text into a JSON object or array.

    Args:
        raw_text: Completion text

    Returns:
        ExtractionResult with the parsed value and the strategy that worked
    """
    if not isinstance(raw_text, str) or not raw_text.strip():
        return ExtractionResult.failure("empty completion text")

    text = raw_text.strip()

    ok, value = _loads(text)
    if ok:
        return ExtractionResult(ok=True, value=value, strategy="direct")

    unfenced = strip_code_fences(text)
    ok, value = _loads(unfenced)
    if ok:
        return ExtractionResult(ok=True, value=value, strategy="fenced")

    span = find_balanced_span(unfenced)
    ok, value = _loads(span)
    if ok:
        return ExtractionResult(ok=True, value=value, strategy="balanced")

    for candidate in (text, unfenced, span):
        if not candidate:
            continue
        repaired = apply_repairs(candidate)
        ok, value = _loads(repaired, strict=False)
        if ok:
            return ExtractionResult(ok=True, value=value, strategy="repaired")
        ok, value = _loads(find_balanced_span(repaired), strict=False)
        if ok:
            return ExtractionResult(ok=True, value=value, strategy="repaired")

    closed = close_truncated(apply_repairs(unfenced))
    if closed:
        ok, value = _loads(apply_repairs(closed), strict=False)
        if ok:
            logger.debug("Recovered truncated JSON (%d chars)", len(text))
            return ExtractionResult(ok=True, value=value, strategy="truncation_repair")

    logger.debug("Extraction failed for text starting %r", text[:80])
    return ExtractionResult.failure("no JSON object or array could be recovered")


__all__ = [
    "ExtractionResult",
    "extract",
    "strip_code_fences",
    "find_balanced_span",
    "apply_repairs",
    "close_truncated",
]
