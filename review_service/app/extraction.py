"""
extraction.py — pull the essay text (and prompt feedback) out of a Gemini response.

The response shape is not stable across SDK versions: the current SDK returns an
object with a .text property, older wrappers nest it under .response, and plain
JSON payloads only carry candidates[0].content.parts. Each known layout is one
variant below; UnknownShape is what's left when nothing matches.
"""
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterator, Union

import proto

logger = logging.getLogger("ResponseExtractor")

_MISSING = object()


def _field(obj: Any, *names: str) -> Any:
    """Read the first present name, as a mapping key or an attribute."""
    if obj is None:
        return None
    for name in names:
        if isinstance(obj, Mapping):
            if name in obj:
                return obj[name]
        else:
            value = getattr(obj, name, _MISSING)
            if value is not _MISSING:
                return value
    return None


def _has_field(obj: Any, name: str) -> bool:
    # Must not trigger properties: the SDK's .text raises when there are no parts
    if obj is None:
        return False
    if isinstance(obj, Mapping):
        return name in obj
    return name in getattr(obj, "__dict__", {}) or hasattr(type(obj), name)


def _first_candidate_parts(container: Any):
    candidates = _field(container, "candidates")
    if not candidates:
        return None
    content = _field(candidates[0], "content")
    return _field(content, "parts")


def _join_parts(parts) -> str:
    # Plain concatenation; the SDK .text accessor puts "\n" between parts instead
    return "".join((_field(part, "text") or "") for part in parts)


# --- Response shapes ---

@dataclass(frozen=True)
class TextAccessorShape:
    """Response (or its .response wrapper) exposes a text accessor."""
    source: Any

    def read(self) -> str:
        try:
            accessor = _field(self.source, "text")
            value = accessor() if callable(accessor) else accessor
        except Exception as e:
            # SDK raises ValueError when the candidate has no parts (e.g. safety stop)
            logger.warning(f"Text accessor failed, trying candidate parts: {e}")
            return ""
        return value if isinstance(value, str) else ""


@dataclass(frozen=True)
class WrappedCandidatesShape:
    """response.candidates[0].content.parts"""
    parts: Any

    def read(self) -> str:
        return _join_parts(self.parts)


@dataclass(frozen=True)
class BareCandidatesShape:
    """candidates[0].content.parts at the top level, no wrapper."""
    parts: Any

    def read(self) -> str:
        return _join_parts(self.parts)


@dataclass(frozen=True)
class UnknownShape:
    raw: Any

    def read(self) -> str:
        return ""


ResponseShape = Union[TextAccessorShape, WrappedCandidatesShape, BareCandidatesShape, UnknownShape]


def response_shapes(raw: Any) -> Iterator[ResponseShape]:
    """Yield every layout the response matches, in extraction priority order."""
    wrapper = _field(raw, "response")
    matched = False

    accessor_source = wrapper if wrapper is not None else raw
    if _has_field(accessor_source, "text"):
        matched = True
        yield TextAccessorShape(accessor_source)

    wrapped_parts = _first_candidate_parts(wrapper)
    if wrapped_parts is not None:
        matched = True
        yield WrappedCandidatesShape(wrapped_parts)

    bare_parts = _first_candidate_parts(raw)
    if bare_parts is not None:
        matched = True
        yield BareCandidatesShape(bare_parts)

    if not matched:
        yield UnknownShape(raw)


def describe_response(raw: Any) -> ResponseShape:
    """The highest-priority shape the response matches."""
    return next(response_shapes(raw))


def _lenient_join(raw: Any) -> str:
    for container in (_field(raw, "response"), raw):
        try:
            parts = _first_candidate_parts(container)
        except Exception:
            continue
        if parts is None:
            continue
        texts = []
        for part in parts:
            try:
                value = _field(part, "text")
            except Exception:
                value = None
            texts.append(value if isinstance(value, str) else "")
        return "".join(texts)
    return ""


def extract_text(raw: Any) -> str:
    """
    Returns the generated text, or "" when no known layout yields any.
    An empty result is for the caller to treat as a failure.
    """
    try:
        for shape in response_shapes(raw):
            text = shape.read()
            if text:
                return text
    except Exception as e:
        logger.error(f"Error extracting text, concatenating candidate parts instead: {e}")
        return _lenient_join(raw)
    return ""


# --- Prompt feedback ---

def _feedback_is_populated(feedback: Any) -> bool:
    if feedback is None:
        return False
    if isinstance(feedback, Mapping):
        return bool(feedback)
    # SDK message: always present, only meaningful once block_reason is set
    return bool(getattr(feedback, "block_reason", None))


def to_plain(obj: Any) -> Any:
    """Best-effort conversion of SDK objects into JSON-safe data."""
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    if isinstance(obj, Mapping):
        return {str(k): to_plain(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_plain(v) for v in obj]
    if isinstance(obj, proto.Message):
        # enum names ("SAFETY"), not their wire integers
        return to_plain(type(obj).to_dict(obj, use_integers_for_enums=False))
    if callable(getattr(obj, "to_dict", None)):
        # SDK response wrappers
        return to_plain(obj.to_dict())
    if hasattr(obj, "__dict__"):
        return {k: to_plain(v) for k, v in vars(obj).items() if not k.startswith("_")}
    return str(obj)


def get_prompt_feedback(raw: Any) -> dict | None:
    """Prompt-level safety feedback as a plain dict, or None if the prompt wasn't flagged."""
    for container in (_field(raw, "response"), raw):
        feedback = _field(container, "promptFeedback", "prompt_feedback")
        if _feedback_is_populated(feedback):
            payload = to_plain(feedback)
            return payload if isinstance(payload, dict) else {"value": payload}
    return None


def dump_response(raw: Any) -> str:
    """Pretty JSON of the raw response for debug logs."""
    try:
        return json.dumps(to_plain(raw), ensure_ascii=False, indent=2, default=str)
    except Exception:
        return repr(raw)
