import logging
import re

import phonenumbers

from contact_finder.schemas.contacts import SocialPlatform

logger = logging.getLogger(__name__)

# Accepted top-level domains for the primary email
VALID_TLDS = frozenset({
    "com", "net", "org", "io", "ai", "co", "edu", "gov",
    "de", "uk", "ca", "in", "au", "jp", "us", "fr", "it", "es", "nl",
    "ru", "ch", "se", "no", "fi", "br", "cn", "za", "kr",
})

# Local parts preferred as primary email, best first
EMAIL_PRIORITY_PREFIXES = ("info", "contact", "support")

_IMAGE_SUFFIXES = (".png", ".jpg")

_EMAIL_SHAPE_RE = re.compile(r"[a-z0-9._%+\-]+@[a-z0-9.\-]+\.[a-z]{2,}", re.ASCII)

_LINKEDIN_COMPANY_RE = re.compile(
    r"https?://www\.linkedin\.com/company/[a-zA-Z0-9_-]+",
    re.IGNORECASE,
)


def _clean_email(candidate: str) -> str:
    return candidate.lower().split("?", 1)[0].strip()


def _is_acceptable_email(email: str) -> bool:
    if "@" not in email or email.endswith(_IMAGE_SUFFIXES):
        return False
    if not _EMAIL_SHAPE_RE.fullmatch(email):
        return False
    return email.rsplit(".", 1)[-1] in VALID_TLDS


def select_primary_email(candidates: list[str]) -> str | None:
    """Pick one email: info@ > contact@ > support@ > first acceptable one."""
    emails = [
        email
        for email in dict.fromkeys(_clean_email(c) for c in candidates)
        if _is_acceptable_email(email)
    ]

    for prefix in EMAIL_PRIORITY_PREFIXES:
        for email in emails:
            if email.startswith(f"{prefix}@"):
                return email
    return emails[0] if emails else None


def filter_valid_phones(candidates: list[str]) -> list[str]:
    """Validate candidates without an assumed region.

    Returns deduplicated international-format numbers in candidate order.
    Numbers without a country calling code cannot be resolved and are dropped.
    """
    valid: list[str] = []
    for candidate in candidates:
        try:
            parsed = phonenumbers.parse(candidate, None)
        except phonenumbers.NumberParseException:
            logger.debug("Discarding unparseable phone candidate %r", candidate)
            continue
        if not phonenumbers.is_valid_number(parsed):
            continue
        valid.append(
            phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.INTERNATIONAL)
        )
    return list(dict.fromkeys(valid))


def canonicalize_social(social: dict[SocialPlatform, str]) -> dict[SocialPlatform, str]:
    """Rewrite LinkedIn links to https://www.linkedin.com/company/<slug> when possible."""
    canonical = dict(social)
    linkedin = canonical.get(SocialPlatform.linkedin)
    if linkedin:
        match = _LINKEDIN_COMPANY_RE.search(linkedin)
        if match:
            canonical[SocialPlatform.linkedin] = match.group(0)
    return canonical
