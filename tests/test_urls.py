import pytest
from matrix_client.context import SessionContext
from matrix_client.errors import InvalidStateError, MissingAccessTokenError
from matrix_client.urls import build_url, redact_url, with_access_token

HS = "https://hs.example.org"


def test_build_url_layout():
    url = build_url(HS, "client", "r0", "/joined_rooms", SessionContext())
    assert str(url) == "https://hs.example.org/_matrix/client/r0/joined_rooms"


def test_build_url_skips_empty_version_segment():
    url = build_url(HS, "client", "", "versions", SessionContext())
    assert str(url) == "https://hs.example.org/_matrix/client/versions"


def test_build_url_keeps_base_path_prefix_and_port():
    url = build_url("https://example.org:8448/matrix/", "media", "v1", "config", SessionContext())
    assert str(url) == "https://example.org:8448/matrix/_matrix/media/v1/config"


def test_build_url_encodes_alias_sigil():
    url = build_url(HS, "client", "r0", "directory/room/#room:example.org", SessionContext())
    assert url.path == "/_matrix/client/r0/directory/room/#room:example.org"
    assert "%23room:example.org" in str(url)


def test_build_url_keeps_params():
    url = build_url(HS, "client", "r0", "sync", SessionContext(), {"since": "s1", "filter": None})
    assert url.params["since"] == "s1"
    assert "filter" not in url.params


def test_virtual_mode_adds_acting_user():
    ctx = SessionContext(home_server_url=HS, acting_user="@bot:example.org", is_virtual=True)
    url = build_url(HS, "client", "r0", "joined_rooms", ctx)
    assert url.params["user_id"] == "@bot:example.org"


def test_non_virtual_mode_never_adds_acting_user():
    ctx = SessionContext(home_server_url=HS, acting_user="@bot:example.org", is_virtual=False)
    url = build_url(HS, "client", "r0", "joined_rooms", ctx)
    assert "user_id" not in url.params


def test_virtual_mode_without_acting_user_is_caller_error():
    ctx = SessionContext(home_server_url=HS, is_virtual=True)
    with pytest.raises(InvalidStateError):
        build_url(HS, "client", "r0", "joined_rooms", ctx)


def test_missing_base_url_is_caller_error():
    with pytest.raises(InvalidStateError):
        build_url("", "client", "r0", "joined_rooms", SessionContext())


def test_with_access_token_appends_token():
    ctx = SessionContext(home_server_url=HS, access_token="abc")
    url = with_access_token(build_url(HS, "client", "r0", "sync", ctx), ctx)
    assert url.params["access_token"] == "abc"


def test_with_access_token_without_token_fails_fast():
    ctx = SessionContext(home_server_url=HS)
    with pytest.raises(MissingAccessTokenError):
        with_access_token(build_url(HS, "client", "r0", "sync", ctx), ctx)


def test_virtual_and_token_params_combine():
    ctx = SessionContext(
        home_server_url=HS,
        access_token="as-token",
        acting_user="@bot:example.org",
        is_virtual=True,
    )
    url = with_access_token(build_url(HS, "client", "r0", "sync", ctx), ctx)
    assert url.params["user_id"] == "@bot:example.org"
    assert url.params["access_token"] == "as-token"


@pytest.mark.parametrize(
    "raw, expected",
    [
        (
            "https://hs/_matrix/client/r0/sync?access_token=SECRET&other=1",
            "https://hs/_matrix/client/r0/sync?access_token=<redacted>&other=1",
        ),
        (
            "https://hs/_matrix/client/r0/sync?since=s1&access_token=SECRET",
            "https://hs/_matrix/client/r0/sync?since=s1&access_token=<redacted>",
        ),
        (
            "https://hs/_matrix/client/versions",
            "https://hs/_matrix/client/versions",
        ),
    ],
)
def test_redact_url(raw, expected):
    assert redact_url(raw) == expected
