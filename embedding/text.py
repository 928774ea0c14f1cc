"""Text normalization shared by embedding sources."""

import re

_PUNCT_RE = re.compile(r"[^\w\s]")


def normalize_text(text: str) -> str:
    """Lowercase, strip and collapse whitespace.
    
    Args:
        text: Raw event text (may be None or empty).
        
    Returns:
        Normalized text, "" for empty input.
    """
    if not text:
        return ""
    return " ".join(text.lower().strip().split())


def tokenize(text: str) -> list[str]:
    """Split normalized text into punctuation-free tokens.
    
    Args:
        text: Input text.
        
    Returns:
        List of non-empty tokens.
    """
    no_punct = _PUNCT_RE.sub("", normalize_text(text))
    return [token for token in no_punct.split() if token]
