from __future__ import annotations

import pytest
import requests

from tracker import extract
from tracker.errors import ExtractionError
from tracker.extract import ensure_public_url, extract_opportunity, find_deadline, parse_opportunity_page

PAGE = """
<html>
  <head>
    <title>Fallback title</title>
    <meta property="og:title" content="Knight-Hennessy Scholars 2025">
    <meta property="og:site_name" content="Stanford University">
    <meta name="description" content="Full funding for graduate study at Stanford.">
    <script>var deadline = "January 1, 1999";</script>
  </head>
  <body>
    <h1>Knight-Hennessy</h1>
    <p>Applications open now. The application deadline is October 9th, 2024 at 1pm PT.</p>
  </body>
</html>
"""


class FakeResponse:
    def __init__(self, text, status=200, location=None):
        self.text = text
        self.status_code = status
        self.headers = {"Location": location} if location else {}

    @property
    def is_redirect(self):
        return "Location" in self.headers and self.status_code in (301, 302, 303, 307, 308)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(response=self)


class FakeSession:
    def __init__(self, *responses, exc=None):
        self.headers = {}
        self.responses = list(responses)
        self.exc = exc
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.exc:
            raise self.exc
        return self.responses.pop(0)


PUBLIC_HOSTS = {
    "knight-hennessy.stanford.edu": {"171.67.215.200"},
    "example.org": {"93.184.215.14"},
}


@pytest.fixture(autouse=True)
def fake_dns(monkeypatch):
    hosts = dict(PUBLIC_HOSTS)
    monkeypatch.setattr(extract, "resolve_host", lambda host: hosts[host])
    return hosts


def test_parse_prefers_open_graph():
    data = parse_opportunity_page(PAGE, "https://knight-hennessy.stanford.edu/apply")
    assert data == {
        "title": "Knight-Hennessy Scholars 2025",
        "organization": "Stanford University",
        "description": "Full funding for graduate study at Stanford.",
        "deadline": "2024-10-09T00:00:00Z",
    }


def test_parse_falls_back_to_title_and_host():
    html = "<html><head><title> Summer Internship </title></head><body>Apply by 2025-03-15.</body></html>"
    data = parse_opportunity_page(html, "https://www.acme.com/jobs/1")
    assert data["title"] == "Summer Internship"
    assert data["organization"] == "acme.com"
    assert data["description"] is None
    assert data["deadline"] == "2025-03-15T00:00:00Z"


@pytest.mark.parametrize("text,expected", [
    ("Deadline: Mar. 1, 2025", "2025-03-01T00:00:00Z"),
    ("Applications due 12/31/2024", "2024-12-31T00:00:00Z"),
    ("Closing date Sept 5 2025", "2025-09-05T00:00:00Z"),
    ("Posted June 1, 2024. Rolling admissions.", None),
])
def test_find_deadline(text, expected):
    assert find_deadline(text) == expected


def test_extract_sends_browser_headers(settings):
    settings.EXTRACT_TIMEOUT = 5
    session = FakeSession(FakeResponse(PAGE))
    data = extract_opportunity("https://knight-hennessy.stanford.edu/apply", session=session)
    assert data["title"] == "Knight-Hennessy Scholars 2025"
    assert "Mozilla" in session.headers["User-Agent"]
    assert session.calls[0][1]["timeout"] == 5


def test_extract_http_error():
    session = FakeSession(FakeResponse("", status=404))
    with pytest.raises(ExtractionError, match="404"):
        extract_opportunity("https://example.org/missing", session=session)


def test_extract_timeout():
    session = FakeSession(exc=requests.Timeout())
    with pytest.raises(ExtractionError, match="timed out"):
        extract_opportunity("https://example.org/slow", session=session)


def test_extract_requires_http_url():
    with pytest.raises(ExtractionError):
        extract_opportunity("mailto:someone@example.org")


def test_extract_rejects_non_string_url():
    with pytest.raises(ExtractionError):
        extract_opportunity(123)


@pytest.mark.parametrize("address", [
    "127.0.0.1",
    "10.0.0.8",
    "192.168.1.20",
    "169.254.169.254",
    "::1",
    "::ffff:127.0.0.1",
    "fd00::1",
])
def test_internal_addresses_refused(fake_dns, address):
    fake_dns["intranet.example"] = {address}
    session = FakeSession(FakeResponse(PAGE))
    with pytest.raises(ExtractionError, match="not allowed"):
        extract_opportunity("http://intranet.example/admin", session=session)
    assert session.calls == []


def test_host_with_any_private_address_refused(fake_dns):
    fake_dns["mixed.example"] = {"93.184.215.14", "10.1.2.3"}
    with pytest.raises(ExtractionError):
        ensure_public_url("https://mixed.example/")


def test_redirect_to_internal_address_refused(fake_dns):
    fake_dns["metadata.internal"] = {"169.254.169.254"}
    session = FakeSession(FakeResponse("", status=302, location="http://metadata.internal/latest/meta-data/"))
    with pytest.raises(ExtractionError, match="not allowed"):
        extract_opportunity("https://example.org/apply", session=session)
    assert [c[0] for c in session.calls] == ["https://example.org/apply"]
    assert session.calls[0][1]["allow_redirects"] is False


def test_public_redirect_followed():
    session = FakeSession(
        FakeResponse("", status=301, location="/scholars"),
        FakeResponse(PAGE),
    )
    data = extract_opportunity("https://example.org/apply", session=session)
    assert data["title"] == "Knight-Hennessy Scholars 2025"
    assert [c[0] for c in session.calls] == ["https://example.org/apply", "https://example.org/scholars"]


def test_redirect_loop_stops():
    session = FakeSession(*[FakeResponse("", status=302, location="/again") for _ in range(10)])
    with pytest.raises(ExtractionError, match="redirected"):
        extract_opportunity("https://example.org/start", session=session)
    assert len(session.calls) == extract.MAX_REDIRECTS + 1
