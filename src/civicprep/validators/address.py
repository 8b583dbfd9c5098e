"""Free-form US street address normalization and comparison."""

import re

from pydantic import BaseModel

from civicprep.models.validation import ValidationResult
from civicprep.validators.matching import shared_words

# An address matches when at least this many elements agree, or when the
# share of agreeing elements reaches MIN_MATCH_RATIO.
MIN_ELEMENT_MATCHES = 1
MIN_MATCH_RATIO = 0.3

# Whole-string fallback when no element could be compared.
OVERLAP_MIN_SHARED = 2
OVERLAP_MIN_WORD_LENGTH = 3
OVERLAP_CONFIDENCE_CAP = 0.8

STATE_ABBREVIATIONS: dict[str, str] = {
    "al": "alabama",
    "ak": "alaska",
    "az": "arizona",
    "ar": "arkansas",
    "ca": "california",
    "co": "colorado",
    "ct": "connecticut",
    "de": "delaware",
    "fl": "florida",
    "ga": "georgia",
    "hi": "hawaii",
    "id": "idaho",
    "il": "illinois",
    "in": "indiana",
    "ia": "iowa",
    "ks": "kansas",
    "ky": "kentucky",
    "la": "louisiana",
    "me": "maine",
    "md": "maryland",
    "ma": "massachusetts",
    "mi": "michigan",
    "mn": "minnesota",
    "ms": "mississippi",
    "mo": "missouri",
    "mt": "montana",
    "ne": "nebraska",
    "nv": "nevada",
    "nh": "new hampshire",
    "nj": "new jersey",
    "nm": "new mexico",
    "ny": "new york",
    "nc": "north carolina",
    "nd": "north dakota",
    "oh": "ohio",
    "ok": "oklahoma",
    "or": "oregon",
    "pa": "pennsylvania",
    "ri": "rhode island",
    "sc": "south carolina",
    "sd": "south dakota",
    "tn": "tennessee",
    "tx": "texas",
    "ut": "utah",
    "vt": "vermont",
    "va": "virginia",
    "wa": "washington",
    "wv": "west virginia",
    "wi": "wisconsin",
    "wy": "wyoming",
}

# Abbreviations that are also common English words. Expanded only at the end of
# the address (optionally followed by a ZIP code).
AMBIGUOUS_STATES: frozenset[str] = frozenset({"in", "or", "me", "oh", "hi", "ok", "id", "de"})

DIRECTIONALS: dict[str, str] = {
    "n": "north",
    "s": "south",
    "e": "east",
    "w": "west",
    "ne": "northeast",
    "nw": "northwest",
    "se": "southeast",
    "sw": "southwest",
}

STREET_TYPES: dict[str, str] = {
    "st": "street",
    "str": "street",
    "ave": "avenue",
    "av": "avenue",
    "rd": "road",
    "dr": "drive",
    "ln": "lane",
    "blvd": "boulevard",
    "ct": "court",
    "pl": "place",
    "hwy": "highway",
    "pkwy": "parkway",
    "cir": "circle",
    "ter": "terrace",
    "apt": "apartment",
    "ste": "suite",
}

STREET_KEYWORDS: frozenset[str] = frozenset(
    {
        "street",
        "avenue",
        "road",
        "drive",
        "lane",
        "boulevard",
        "court",
        "place",
        "way",
        "highway",
        "parkway",
        "circle",
        "terrace",
    }
)

UNIT_KEYWORDS: frozenset[str] = frozenset({"apartment", "suite", "unit"})

# Matched after periods and apostrophes are dropped.
LEAD_PHRASES: tuple[str, ...] = (
    "my current address is",
    "my address is",
    "the address is",
    "i currently live at",
    "i live at",
    "i live in",
    "it is",
    "its",
)

_FULL_STATE_NAMES: tuple[tuple[str, ...], ...] = tuple(
    sorted({tuple(name.split()) for name in STATE_ABBREVIATIONS.values()}, key=len, reverse=True)
)

_UNIT_MARK = re.compile(r"#\s*(\w+)")
_DROP = re.compile(r"[.'’]")
_SEPARATORS = re.compile(r"[,;:!?()\[\]{}\"/\\-]")
_ORDINAL = re.compile(r"^(\d+)(st|nd|rd|th)$")
_SPACES = re.compile(r"\s+")


class AddressElements(BaseModel):
    street_number: str | None = None
    street_name: str | None = None
    city: str | None = None
    state: str | None = None


def _expand_token(token: str, position: int, tokens: list[str]) -> str:
    ordinal = _ORDINAL.match(token)
    if ordinal:
        return ordinal.group(1)
    if token in DIRECTIONALS:
        return DIRECTIONALS[token]
    if token in STREET_TYPES:
        return STREET_TYPES[token]
    if token in STATE_ABBREVIATIONS:
        if token not in AMBIGUOUS_STATES:
            return STATE_ABBREVIATIONS[token]
        if all(t.isdigit() for t in tokens[position + 1 :]):
            return STATE_ABBREVIATIONS[token]
    return token


def normalize_address(text: str) -> str:
    """Canonical lowercase form of a spoken or written address."""
    text = text.lower().strip()
    text = _UNIT_MARK.sub(r" apartment \1 ", text)
    text = _DROP.sub("", text)
    text = _SEPARATORS.sub(" ", text)
    text = _SPACES.sub(" ", text).strip()
    for phrase in LEAD_PHRASES:
        if text.startswith(phrase + " "):
            text = text[len(phrase) + 1 :]
            break
    tokens = text.split(" ") if text else []
    expanded = [_expand_token(token, i, tokens) for i, token in enumerate(tokens)]
    return " ".join(expanded)


def _find_state(tokens: list[str]) -> tuple[int, int] | None:
    """Start and end index of the last full state name in ``tokens``."""
    found: tuple[int, int] | None = None
    covered = 0
    for start in range(len(tokens)):
        if start < covered:
            continue
        for name in _FULL_STATE_NAMES:
            end = start + len(name)
            if tuple(tokens[start:end]) == name:
                found = (start, end)
                covered = end
                break
    return found


def extract_address_elements(normalized: str) -> AddressElements:
    """Pull street number, street name, city and state out of a normalized address."""
    tokens = normalized.split(" ") if normalized else []
    elements = AddressElements()

    number_index: int | None = None
    for i, token in enumerate(tokens):
        if token.isdigit():
            elements.street_number = token
            number_index = i
            break

    keyword_index: int | None = None
    for i, token in enumerate(tokens):
        if token in STREET_KEYWORDS:
            keyword_index = i
            break
    if keyword_index is not None:
        start = number_index + 1 if number_index is not None and number_index < keyword_index else 0
        name_tokens = [t for t in tokens[start : keyword_index + 1] if not t.isdigit()]
        if name_tokens:
            elements.street_name = " ".join(name_tokens)

    state_span = _find_state(tokens)
    if state_span is not None:
        elements.state = " ".join(tokens[state_span[0] : state_span[1]])
        if keyword_index is not None and keyword_index < state_span[0]:
            between = tokens[keyword_index + 1 : state_span[0]]
        elif state_span[0] > 0:
            between = tokens[state_span[0] - 1 : state_span[0]]
        else:
            between = []
        city_tokens: list[str] = []
        skip_next = False
        for token in between:
            if skip_next:
                skip_next = False
                continue
            if token in UNIT_KEYWORDS:
                skip_next = True
                continue
            if token.isdigit():
                continue
            city_tokens.append(token)
        if city_tokens:
            elements.city = " ".join(city_tokens)

    return elements


def elements_match(a: str, b: str) -> bool:
    return a == b or a in b or b in a


def compare_addresses(reference: str, candidate: str) -> ValidationResult:
    """Score a candidate address against the address on file."""
    ref_norm = normalize_address(reference)
    cand_norm = normalize_address(candidate)
    ref_elements = extract_address_elements(ref_norm)
    cand_elements = extract_address_elements(cand_norm)

    matches = 0
    total = 0
    for field in ("street_number", "street_name", "city", "state"):
        ref_value = getattr(ref_elements, field)
        cand_value = getattr(cand_elements, field)
        if ref_value and cand_value:
            total += 1
            if elements_match(ref_value, cand_value):
                matches += 1

    if total == 0:
        return _compare_by_overlap(ref_norm, cand_norm)

    ratio = matches / total
    if matches >= MIN_ELEMENT_MATCHES or ratio >= MIN_MATCH_RATIO:
        return ValidationResult.accept(ratio, f"address matches ({matches}/{total} elements)")
    return ValidationResult.reject(ratio, f"address does not match ({matches}/{total} elements)")


def _compare_by_overlap(ref_norm: str, cand_norm: str) -> ValidationResult:
    ref_words = {w for w in ref_norm.split() if len(w) >= OVERLAP_MIN_WORD_LENGTH}
    shared = shared_words(ref_norm, cand_norm, OVERLAP_MIN_WORD_LENGTH)
    ratio = len(shared) / len(ref_words) if ref_words else 0.0
    confidence = min(OVERLAP_CONFIDENCE_CAP, OVERLAP_CONFIDENCE_CAP * ratio)
    if len(shared) >= OVERLAP_MIN_SHARED:
        return ValidationResult.accept(confidence, f"address words overlap ({len(shared)} shared)")
    return ValidationResult.reject(confidence, "address words do not overlap")
