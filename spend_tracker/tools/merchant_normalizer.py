"""
Merchant Normalization

Canonicalizes merchant and vendor names so that processor noise (case,
punctuation, corporate suffixes) does not split one counterparty into many.
"""
import re

CORPORATE_SUFFIXES = ('inc', 'llc', 'corp', 'corporation', 'ltd', 'limited', 'co')

_NON_ALNUM = re.compile(r'[^a-z0-9\s]')
_WHITESPACE = re.compile(r'\s+')
_TRAILING_SUFFIX = re.compile(r'\s(?:' + '|'.join(CORPORATE_SUFFIXES) + r')$')


def normalize_merchant_name(name: str) -> str:
    """
    Normalize a merchant or vendor name for comparison.

    "GitHub, Inc." -> "github", "Acme Holdings Co. Ltd" -> "acme holdings".
    A suffix is only stripped as a whole trailing word, so "Zinc" keeps its
    "inc". Suffixes are stripped repeatedly, which keeps the function
    idempotent.

    Args:
        name: Raw name

    Returns:
        Normalized name (may be empty)
    """
    if not name:
        return ""

    text = _NON_ALNUM.sub('', name.lower())
    text = _WHITESPACE.sub(' ', text).strip()

    while True:
        stripped = _TRAILING_SUFFIX.sub('', text)
        if stripped == text:
            break
        text = stripped

    return text.strip()


def are_similar_merchants(name_a: str, name_b: str) -> bool:
    """
    True if two names normalize to the same string, or one normalized name
    is a non-empty substring of the other.

    Containment is permissive on very short names ("a" vs "amazon"); vendor
    names are assumed to be meaningfully long.
    """
    normalized_a = normalize_merchant_name(name_a)
    normalized_b = normalize_merchant_name(name_b)

    if normalized_a == normalized_b:
        return True

    if not normalized_a or not normalized_b:
        return False

    return normalized_a in normalized_b or normalized_b in normalized_a
