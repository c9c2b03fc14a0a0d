"""Tests for redirect following and the cross-origin credential guard.

Tests cover:
- Redirect limit boundaries
- Site changes per hop and scoped leases
- Authorization/Cookie suppression across hosts
- location_trusted override
- Body, method and path handling on rewritten requests
- Terminal handling of unsupported or malformed redirects
"""

import httpx
import pytest

from FleetHTTP.errors import RedirectionLimitExceeded
from FleetHTTP.network.connection import Connection
from FleetHTTP.network.redirect import rewrite_for_redirect
from FleetHTTP.network.request import Request
from FleetHTTP.network.site import Site
from FleetHTTP.settings import ClientSettings
from tests.fixtures.http_mocking import FakeVerifier, redirect, response

SITE_A = Site("https", "a.example", 443)
SITE_B = Site("https", "b.example", 443)


def _connection(pool, sleep, options=None, **settings):
    opts = {"verify": FakeVerifier()}
    opts.update(options or {})
    return Connection(
        "a.example",
        443,
        opts,
        pool=pool,
        settings=ClientSettings(**settings),
        retry_sleep=sleep,
    )


class TestRedirectLimit:
    """redirect_limit counts redirects; redirect_limit + 1 hops are allowed."""

    def test_ten_redirects_then_success(self, scripted_pool, sleep_recorder):
        scripted_pool.queue(SITE_A, *[redirect(f"/hop{i}", 301) for i in range(10)], response(200))
        conn = _connection(scripted_pool, sleep_recorder)

        result = conn.get("/start")

        assert result.status_code == 200
        assert len(scripted_pool.sent) == 11

    def test_eleven_redirects_exceed_limit(self, scripted_pool, sleep_recorder):
        scripted_pool.queue(SITE_A, *[redirect(f"/hop{i}", 301) for i in range(11)])
        conn = _connection(scripted_pool, sleep_recorder)

        with pytest.raises(RedirectionLimitExceeded) as excinfo:
            conn.get("/start")

        assert str(excinfo.value) == "Too many HTTP redirections for a.example:443"
        assert len(scripted_pool.sent) == 11

    def test_zero_limit_rejects_first_redirect(self, scripted_pool, sleep_recorder):
        scripted_pool.queue(SITE_A, redirect("/elsewhere"))
        conn = _connection(scripted_pool, sleep_recorder, {"redirect_limit": 0})

        with pytest.raises(RedirectionLimitExceeded):
            conn.get("/start")

    def test_limit_names_original_endpoint_after_site_change(self, scripted_pool, sleep_recorder):
        scripted_pool.queue(SITE_A, redirect("https://b.example/next"))
        scripted_pool.queue(SITE_B, redirect("https://b.example/again"))
        conn = _connection(scripted_pool, sleep_recorder, {"redirect_limit": 1})

        with pytest.raises(RedirectionLimitExceeded, match="a.example:443"):
            conn.get("/start")


class TestSiteHopping:
    """Each hop leases a transport for the site the previous hop pointed at."""

    def test_cross_site_redirect_leases_each_site(self, scripted_pool, sleep_recorder):
        scripted_pool.queue(SITE_A, redirect("https://b.example/y"))
        scripted_pool.queue(SITE_B, response(200, b"there"))
        conn = _connection(scripted_pool, sleep_recorder)

        result = conn.get("/x")

        assert result.content == b"there"
        assert scripted_pool.leases == [SITE_A, SITE_B]
        assert scripted_pool.released == [SITE_A, SITE_B]
        assert scripted_pool.sent[1][1].path == "/y"

    @pytest.mark.parametrize("status", [301, 302, 307])
    def test_each_redirect_status_is_followed(self, scripted_pool, sleep_recorder, status):
        scripted_pool.queue(SITE_A, redirect("/next", status), response(200))
        conn = _connection(scripted_pool, sleep_recorder)

        assert conn.get("/x").status_code == 200

    @pytest.mark.parametrize("status", [303, 308, 304])
    def test_other_3xx_statuses_are_terminal(self, scripted_pool, sleep_recorder, status):
        scripted_pool.queue(SITE_A, redirect("/next", status))
        conn = _connection(scripted_pool, sleep_recorder)

        assert conn.get("/x").status_code == status
        assert len(scripted_pool.sent) == 1

    def test_relative_location_stays_on_site(self, scripted_pool, sleep_recorder):
        scripted_pool.queue(SITE_A, redirect("/next?page=2"), response(200))
        conn = _connection(scripted_pool, sleep_recorder)

        conn.get("/x")

        site, request = scripted_pool.sent[1]
        assert site == SITE_A
        assert request.path == "/next?page=2"

    def test_redirect_without_location_is_returned(self, scripted_pool, sleep_recorder):
        scripted_pool.queue(SITE_A, response(302))
        conn = _connection(scripted_pool, sleep_recorder)

        assert conn.get("/x").status_code == 302

    @pytest.mark.parametrize(
        "location",
        ["ftp://files.example/x", "ftp://files.example:2121/x", "mailto:ops@a.example"],
    )
    def test_unsupported_scheme_is_returned(self, scripted_pool, sleep_recorder, caplog, location):
        scripted_pool.queue(SITE_A, redirect(location))
        conn = _connection(scripted_pool, sleep_recorder)

        result = conn.get("/x")

        assert result.status_code == 302
        assert len(scripted_pool.sent) == 1
        assert "unsupported scheme" in caplog.text

    def test_unparseable_location_is_returned(self, scripted_pool, sleep_recorder, caplog):
        scripted_pool.queue(SITE_A, redirect("https://b.example:notaport/y"))
        conn = _connection(scripted_pool, sleep_recorder)

        result = conn.get("/x")

        assert result.status_code == 302
        assert scripted_pool.leases == [SITE_A]
        assert "not a valid URL" in caplog.text

    def test_scheme_change_moves_to_new_port(self, scripted_pool, sleep_recorder):
        plain = Site("http", "a.example", 80)
        scripted_pool.queue(SITE_A, redirect("http://a.example/insecure"))
        scripted_pool.queue(plain, response(200))
        conn = _connection(scripted_pool, sleep_recorder)

        conn.get("/x")

        assert scripted_pool.leases == [SITE_A, plain]

    def test_retries_apply_per_hop(self, scripted_pool, sleep_recorder):
        scripted_pool.queue(SITE_A, redirect("https://b.example/y"))
        scripted_pool.queue(SITE_B, response(503), response(200))
        conn = _connection(scripted_pool, sleep_recorder)

        assert conn.get("/x").status_code == 200
        assert sleep_recorder.calls == [3.0]


class TestLeakGuard:
    """Credentials do not follow redirects to other hosts by default."""

    def test_authorization_dropped_for_other_host(self, scripted_pool, sleep_recorder):
        scripted_pool.queue(SITE_A, redirect("https://b.example/y"))
        scripted_pool.queue(SITE_B, response(200))
        conn = _connection(scripted_pool, sleep_recorder)

        conn.get("/x", {"Authorization": "Bearer secret", "Accept": "text/plain"})

        hop2 = scripted_pool.sent[1][1]
        assert "authorization" not in hop2.headers
        assert hop2.headers["accept"] == "text/plain"

    def test_cookie_dropped_for_other_host(self, scripted_pool, sleep_recorder):
        scripted_pool.queue(SITE_A, redirect("https://b.example/y"))
        scripted_pool.queue(SITE_B, response(200))
        conn = _connection(scripted_pool, sleep_recorder)

        conn.get("/x", {"cookie": "session=1"})

        assert "Cookie" not in scripted_pool.sent[1][1].headers

    def test_credentials_kept_for_same_host(self, scripted_pool, sleep_recorder):
        scripted_pool.queue(SITE_A, redirect("https://A.EXAMPLE/y"), response(200))
        conn = _connection(scripted_pool, sleep_recorder)

        conn.get("/x", {"Authorization": "Bearer secret", "Cookie": "session=1"})

        hop2 = scripted_pool.sent[1][1]
        assert hop2.headers["authorization"] == "Bearer secret"
        assert hop2.headers["cookie"] == "session=1"

    def test_credentials_kept_for_same_host_on_other_port(self, scripted_pool, sleep_recorder):
        other_port = Site("https", "a.example", 8443)
        scripted_pool.queue(SITE_A, redirect("https://a.example:8443/y"))
        scripted_pool.queue(other_port, response(200))
        conn = _connection(scripted_pool, sleep_recorder)

        conn.get("/x", {"Authorization": "Bearer secret"})

        assert scripted_pool.sent[1][1].headers["authorization"] == "Bearer secret"

    def test_location_trusted_keeps_credentials(self, scripted_pool, sleep_recorder):
        scripted_pool.queue(SITE_A, redirect("https://b.example/y"))
        scripted_pool.queue(SITE_B, response(200))
        conn = _connection(scripted_pool, sleep_recorder, location_trusted=True)

        conn.get("/x", {"Authorization": "Bearer secret"})

        assert scripted_pool.sent[1][1].headers["authorization"] == "Bearer secret"

    def test_headers_come_from_original_request(self, scripted_pool, sleep_recorder):
        scripted_pool.queue(SITE_A, redirect("https://b.example/y"), response(200))
        scripted_pool.queue(SITE_B, redirect("https://a.example/z"))
        conn = _connection(scripted_pool, sleep_recorder)

        conn.get("/x", {"Authorization": "Bearer secret"})

        hops = [request for _, request in scripted_pool.sent]
        assert "authorization" not in hops[1].headers
        assert hops[2].headers["authorization"] == "Bearer secret"

    def test_basic_auth_applied_once_and_guarded(self, scripted_pool, sleep_recorder):
        scripted_pool.queue(SITE_A, redirect("/same"), redirect("https://b.example/y"))
        scripted_pool.queue(SITE_B, response(200))
        conn = _connection(scripted_pool, sleep_recorder)

        conn.get("/x", options={"basic_auth": {"user": "user", "password": "pass"}})

        hops = [request for _, request in scripted_pool.sent]
        assert hops[0].headers["authorization"] == "Basic dXNlcjpwYXNz"
        assert hops[1].headers["authorization"] == "Basic dXNlcjpwYXNz"
        assert "authorization" not in hops[2].headers


class TestRewrittenRequest:
    """Rewritten requests carry the original method, body and headers."""

    def test_post_body_and_method_survive_redirect(self, scripted_pool, sleep_recorder):
        scripted_pool.queue(SITE_A, redirect("/moved", 307), response(201))
        conn = _connection(scripted_pool, sleep_recorder)

        result = conn.post("/submit", b"payload", {"Content-Type": "application/json"})

        assert result.status_code == 201
        hop2 = scripted_pool.sent[1][1]
        assert hop2.method == "POST"
        assert hop2.body == b"payload"
        assert hop2.headers["content-type"] == "application/json"

    def test_rewrite_preserves_repeated_headers(self):
        original = Request("GET", "/x", [("Accept", "text/html"), ("Accept", "text/plain")])

        rewritten, dropped = rewrite_for_redirect(
            original, httpx.URL("https://a.example/y"), original_host="a.example"
        )

        assert rewritten.headers.get_list("accept") == ["text/html", "text/plain"]
        assert dropped == []

    def test_rewrite_reports_dropped_headers(self):
        original = Request("GET", "/x", {"Authorization": "t", "Cookie": "c", "X-Trace": "1"})

        rewritten, dropped = rewrite_for_redirect(
            original, httpx.URL("https://b.example/y?q=1"), original_host="a.example"
        )

        assert sorted(name.lower() for name in dropped) == ["authorization", "cookie"]
        assert rewritten.path == "/y?q=1"
        assert rewritten.headers["x-trace"] == "1"
        assert original.headers["authorization"] == "t"

    def test_redirect_headers_from_builder(self, scripted_pool, sleep_recorder, http_mock):
        moved = http_mock(301, "moved").with_header("Location", "/new-home").build()
        scripted_pool.queue(SITE_A, moved, http_mock(200, "home").build())
        conn = _connection(scripted_pool, sleep_recorder)

        result = conn.get("/old-home")

        assert result.text == "home"
        assert scripted_pool.sent[1][1].path == "/new-home"
