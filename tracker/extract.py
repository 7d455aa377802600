import ipaddress
import logging
import re
import socket
from datetime import datetime
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup
from django.conf import settings

from .errors import ExtractionError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

COMMON_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/123.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "DNT": "1",
    "Connection": "keep-alive",
}

_MONTHS = (
    "January|February|March|April|May|June|July|August|September|October|November|December"
    "|Jan|Feb|Mar|Apr|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec"
)

# Only dates that appear near a deadline-ish word count.
_DEADLINE_RE = re.compile(
    r"(?:deadline|due|apply by|closes|closing date)[^.\n]{0,40}?"
    r"(?P<date>(?:" + _MONTHS + r")\.?\s+\d{1,2}(?:st|nd|rd|th)?,?\s+\d{4}"
    r"|\d{4}-\d{2}-\d{2}"
    r"|\d{1,2}/\d{1,2}/\d{4})",
    re.IGNORECASE,
)


def _meta(soup, *keys):
    for key in keys:
        tag = soup.find("meta", attrs={"property": key}) or soup.find("meta", attrs={"name": key})
        if tag and tag.get("content", "").strip():
            return tag["content"].strip()
    return ""


def _parse_date(raw):
    raw = re.sub(r"(\d)(st|nd|rd|th)", r"\1", raw.strip(), flags=re.IGNORECASE)
    raw = raw.replace(",", "").replace(".", "").replace("Sept ", "Sep ")
    for fmt in ("%B %d %Y", "%b %d %Y", "%Y-%m-%d", "%m/%d/%Y"):
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
    return None


def find_deadline(text):
    """Return the first deadline-looking date in ``text`` as an ISO string."""
    for match in _DEADLINE_RE.finditer(text):
        day = _parse_date(match.group("date"))
        if day:
            return f"{day.isoformat()}T00:00:00Z"
    return None


# ---------------------------------------------------------------------------
# Page parsing
# ---------------------------------------------------------------------------

def parse_opportunity_page(html, url):
    soup = BeautifulSoup(html, "html.parser")

    title = _meta(soup, "og:title", "twitter:title")
    if not title and soup.title:
        title = soup.title.get_text(strip=True)
    if not title:
        h1 = soup.find("h1")
        title = h1.get_text(strip=True) if h1 else ""

    organization = _meta(soup, "og:site_name", "application-name")
    if not organization:
        host = urlparse(url).hostname or ""
        organization = host[4:] if host.startswith("www.") else host

    description = _meta(soup, "og:description", "description", "twitter:description")

    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    deadline = find_deadline(soup.get_text(" ", strip=True))

    return {
        "title": title[:500] or None,
        "organization": organization or None,
        "description": description[:1000] or None,
        "deadline": deadline,
    }


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------

MAX_REDIRECTS = 5


def resolve_host(host):
    """All addresses ``host`` resolves to."""
    try:
        infos = socket.getaddrinfo(host, None, proto=socket.IPPROTO_TCP)
    except socket.gaierror:
        raise ExtractionError("Source host could not be resolved")
    return {info[4][0].split("%")[0] for info in infos}


def ensure_public_url(url):
    """Refuse URLs that point at loopback, private, link-local or reserved hosts."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ExtractionError("A http(s) URL is required")
    for raw in resolve_host(parsed.hostname):
        ip = ipaddress.ip_address(raw)
        if ip.version == 6 and ip.ipv4_mapped:
            ip = ip.ipv4_mapped
        if not ip.is_global or ip.is_multicast:
            logger.warning("Refusing to fetch %s: %s is not a public address", url, ip)
            raise ExtractionError("Source address is not allowed")


def extract_opportunity(url, session=None):
    """Fetch ``url`` and suggest opportunity fields from its markup.

    Redirects are followed by hand so every hop is checked against
    ``ensure_public_url`` before it is requested.
    """
    if not isinstance(url, str) or not url.startswith(("http://", "https://")):
        raise ExtractionError("A http(s) URL is required")
    session = session or requests.Session()
    session.headers.update(COMMON_HEADERS)
    try:
        for _ in range(MAX_REDIRECTS + 1):
            ensure_public_url(url)
            resp = session.get(url, timeout=settings.EXTRACT_TIMEOUT, allow_redirects=False)
            if not resp.is_redirect:
                break
            url = urljoin(url, resp.headers["Location"])
        else:
            raise ExtractionError("Source redirected too many times")
        resp.raise_for_status()
    except requests.HTTPError as e:
        logger.error("%s: HTTP %s", url, e.response.status_code)
        raise ExtractionError(f"Source returned HTTP {e.response.status_code}")
    except requests.Timeout:
        logger.error("%s: request timed out", url)
        raise ExtractionError("Source timed out")
    except requests.RequestException as exc:
        logger.error("%s: request failed: %s", url, exc)
        raise ExtractionError("Source could not be fetched")
    return parse_opportunity_page(resp.text, url)
