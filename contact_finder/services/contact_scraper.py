import asyncio
import logging

import httpx

from contact_finder.mappers.company_name import company_name_from_url
from contact_finder.mappers.contact_extractor import extract_contacts
from contact_finder.mappers.contact_normalizer import (
    canonicalize_social,
    filter_valid_phones,
    select_primary_email,
)
from contact_finder.schemas.contacts import ContactData, RawExtraction, SiteResult

logger = logging.getLogger(__name__)

FETCH_TIMEOUT = 15.0
_MAX_BODY = 2 * 1024 * 1024  # 2 MB
_DEFAULT_USER_AGENT = "ContactFinder/1.0"
_CONTACT_PATH = "contact/"


def contact_page_url(url: str) -> str:
    """https://acme.com -> https://acme.com/contact/"""
    return url + _CONTACT_PATH if url.endswith("/") else f"{url}/{_CONTACT_PATH}"


def _is_textual(content_type: str) -> bool:
    if not content_type:
        return True
    content_type = content_type.lower()
    return content_type.startswith("text/") or "html" in content_type or "xml" in content_type


class ContactScraperService:
    def __init__(
        self,
        client: httpx.AsyncClient,
        user_agent: str = _DEFAULT_USER_AGENT,
        timeout: float = FETCH_TIMEOUT,
    ):
        self._client = client
        self._user_agent = user_agent
        self._timeout = timeout

    async def scrape(self, url: str) -> SiteResult | None:
        """Scrape homepage and contact page of one site.

        Returns None when neither page yields an email, phone or social link.
        Page failures only remove that page's contribution, they never raise.
        """
        homepage = await self._scrape_page(url)
        contact = await self._scrape_page(contact_page_url(url))
        merged = homepage.merge(contact)

        primary_email = select_primary_email(merged.emails)
        data = ContactData(
            emails=[primary_email] if primary_email else [],
            phones=filter_valid_phones(merged.phones)[:1],
            social=canonicalize_social(merged.social),
        )

        if data.is_empty():
            logger.info("No contact data found for %s", url)
            return None

        logger.info(
            "Found contacts for %s (emails=%d, phones=%d, social=%s)",
            url, len(data.emails), len(data.phones), sorted(data.social),
        )
        return SiteResult(url=url, company_name=company_name_from_url(url), data=data)

    async def _scrape_page(self, url: str) -> RawExtraction:
        """Fetch and extract one page; degraded to an empty extraction on any failure."""
        try:
            html = await self._fetch_page(url)
            if html is None:
                return RawExtraction()
            return extract_contacts(html)
        except Exception:
            logger.exception("Unexpected failure scraping page %s", url)
            return RawExtraction()

    async def _fetch_page(self, url: str) -> str | None:
        """Fetch a page, return its text or None.

        The timeout bounds the whole request, body included, and the body is
        streamed so oversized pages are abandoned once they pass the cap.
        """
        try:
            async with asyncio.timeout(self._timeout):
                async with self._client.stream(
                    "GET",
                    url,
                    follow_redirects=True,
                    timeout=self._timeout,
                    headers={"User-Agent": self._user_agent},
                ) as resp:
                    content_type = resp.headers.get("content-type", "")
                    if not _is_textual(content_type):
                        logger.debug("Skipping non-text %s (content-type: %s)", url, content_type)
                        return None

                    body = bytearray()
                    async for chunk in resp.aiter_bytes():
                        body.extend(chunk)
                        if len(body) > _MAX_BODY:
                            logger.debug("Skipping oversized page %s (> %d bytes)", url, _MAX_BODY)
                            return None
                    encoding = resp.encoding or "utf-8"
        except TimeoutError:
            logger.debug("Fetch of %s exceeded %.1fs", url, self._timeout)
            return None
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.debug("Failed to fetch %s: %r", url, exc)
            return None

        return bytes(body).decode(encoding, errors="replace")
