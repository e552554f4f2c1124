import re

from bs4 import BeautifulSoup

from contact_finder.schemas.contacts import RawExtraction, SocialPlatform

_EMAIL_RE = re.compile(
    r"\b[A-Z0-9._%+\-]+@[A-Z0-9.\-]+\.[A-Z]{2,}\b", re.IGNORECASE | re.ASCII,
)

# Optional "+", a digit, then 6+ ASCII digits/spaces (or nbsp)/hyphens/parentheses
_PHONE_RE = re.compile(r"\+?\d[\d\s\u00a0\-()]{6,}", re.ASCII)

_FACEBOOK_RE = re.compile(r"facebook\.com", re.IGNORECASE)
_FACEBOOK_SHARE_RE = re.compile(r"sharer\.php", re.IGNORECASE)
_INSTAGRAM_RE = re.compile(r"instagram\.com", re.IGNORECASE)
_LINKEDIN_RE = re.compile(r"linkedin\.com", re.IGNORECASE)
_LINKEDIN_SHARE_RE = re.compile(r"shareArticle", re.IGNORECASE)
_LINKEDIN_PROFILE_RE = re.compile(r"linkedin\.com/(?:company|in)/", re.IGNORECASE)

_MAILTO = "mailto:"
_TEL = "tel:"


def classify_social_link(href: str) -> list[SocialPlatform]:
    """Return the platforms a link is a profile link for (share/tracking links excluded)."""
    if not href:
        return []
    platforms: list[SocialPlatform] = []
    if _FACEBOOK_RE.search(href) and not _FACEBOOK_SHARE_RE.search(href) and "?" not in href:
        platforms.append(SocialPlatform.facebook)
    if _INSTAGRAM_RE.search(href) and "?" not in href:
        platforms.append(SocialPlatform.instagram)
    if (
        _LINKEDIN_RE.search(href)
        and not _LINKEDIN_SHARE_RE.search(href)
        and _LINKEDIN_PROFILE_RE.search(href)
    ):
        platforms.append(SocialPlatform.linkedin)
    return platforms


def extract_contacts(html: str) -> RawExtraction:
    """Collect raw email, phone and social candidates from one HTML page.

    Every element under <body> is visited in document order. Its href is
    checked for mailto:/tel:/social targets and its text (which includes the
    text of its descendants) is scanned for email and phone shapes, so the
    same candidate usually shows up several times. Nothing is validated here.
    """
    soup = BeautifulSoup(html, "html.parser")
    root = soup.body or soup

    emails: list[str] = []
    phones: list[str] = []
    social: dict[SocialPlatform, str] = {}

    for element in root.find_all(True):
        text = element.get_text() or ""
        href = element.get("href") or ""

        if href.startswith(_MAILTO):
            emails.append(href[len(_MAILTO):].strip())
        emails.extend(_EMAIL_RE.findall(text))

        if href.startswith(_TEL):
            phones.append(href[len(_TEL):].strip())
        else:
            phones.extend(match.strip() for match in _PHONE_RE.findall(text))

        for platform in classify_social_link(href):
            social[platform] = href

    return RawExtraction(emails=emails, phones=phones, social=social)
