"""
Shared string normalization utilities used by variation matching.
"""
import re
import unicodedata

# Typography normalization for titles and lyrics
_TYPOGRAPHY_TRANSLATION = {
    ord("‘"): "'",  # left single quotation mark
    ord("’"): "'",  # right single quotation mark
    ord("‚"): "'",  # single low-9 quotation mark
    ord("′"): "'",  # prime
    ord("“"): '"',  # left double quotation mark
    ord("”"): '"',  # right double quotation mark
    ord("„"): '"',  # double low-9 quotation mark
    ord("‐"): "-",  # hyphen
    ord("‑"): "-",  # non-breaking hyphen
    ord("‒"): "-",  # figure dash
    ord("–"): "-",  # en dash
    ord("—"): "-",  # em dash
    ord("―"): "-",  # horizontal bar
    ord("−"): "-",  # minus sign
}

_WORD_PATTERN = re.compile(r"\w+", re.UNICODE)


def normalize_text(text: str, lowercase: bool = True, strip: bool = True) -> str:
    """
    Normalize text for consistent comparisons.

    Handles Unicode normalization (NFC), typography variants, optional case
    folding, and whitespace collapsing.

    Args:
        text: Text to normalize
        lowercase: Apply case folding (uses casefold() for better Unicode support)
        strip: Remove leading/trailing whitespace

    Returns:
        Normalized text string
    """
    if text is None:
        return ""

    text = unicodedata.normalize('NFC', text)
    text = text.translate(_TYPOGRAPHY_TRANSLATION)

    if lowercase:
        text = text.casefold()

    text = " ".join(text.split())
    if strip:
        text = text.strip()

    return text


def word_tokens(text: str) -> list:
    """Casefolded word tokens, punctuation dropped."""
    return _WORD_PATTERN.findall(normalize_text(text))
