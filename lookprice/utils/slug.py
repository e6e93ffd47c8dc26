import re
import unicodedata

SLUG_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9-]*[a-z0-9])?$")
SLUG_MIN_LENGTH = 3
SLUG_MAX_LENGTH = 80

# Turkish letters that NFKD does not fold to ASCII.
_TRANSLITERATIONS = str.maketrans({"ı": "i", "İ": "i", "ş": "s", "Ş": "s", "ğ": "g", "Ğ": "g"})


def normalize_slug(value: str) -> str:
    if not value:
        return ""

    value = value.translate(_TRANSLITERATIONS)
    value = unicodedata.normalize("NFKD", value)
    value = value.encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    value = re.sub(r"-{2,}", "-", value)

    return value[:SLUG_MAX_LENGTH].strip("-")


def is_valid_slug(value: str) -> bool:
    return SLUG_MIN_LENGTH <= len(value) <= SLUG_MAX_LENGTH and bool(SLUG_PATTERN.match(value))
