from pathlib import Path

import pytest

from spa_server.domain.paths import (
    MalformedPathError,
    PathEscapeError,
    decode_request_path,
    has_extension,
    request_target,
    resolve_within_root,
)


def test_decode_percent_escapes_and_drops_query():
    assert decode_request_path(b"/a%20b/%C3%A9t%C3%A9.js?v=1") == "/a b/été.js"


def test_decode_keeps_encoded_separators_as_separators():
    assert decode_request_path(b"/..%2f..%2fetc%2fpasswd") == "/../../etc/passwd"


@pytest.mark.parametrize("raw", [b"/%", b"/%4", b"/bad%zz.js", b"/%g0"])
def test_decode_rejects_broken_escapes(raw):
    with pytest.raises(MalformedPathError):
        decode_request_path(raw)


def test_decode_rejects_invalid_utf8():
    with pytest.raises(MalformedPathError):
        decode_request_path(b"/%ff%fe.js")


def test_decode_rejects_nul_and_relative_targets():
    with pytest.raises(MalformedPathError):
        decode_request_path(b"/index%00.html")
    with pytest.raises(MalformedPathError):
        decode_request_path(b"*")


def test_request_target_rewrites_root_only():
    assert request_target("/", "index.html") == "/index.html"
    assert request_target("/app/", "index.html") == "/app/"


@pytest.mark.parametrize(
    "path",
    ["/../../etc/passwd", "/a/../../x.js", "/..", "/./../site-evil/x.txt"],
)
def test_resolve_rejects_escapes(tmp_path: Path, path):
    root = tmp_path / "site"
    with pytest.raises(PathEscapeError):
        resolve_within_root(root, path)


def test_resolve_does_not_accept_sibling_prefix(tmp_path: Path):
    root = tmp_path / "site"
    with pytest.raises(PathEscapeError):
        resolve_within_root(root, "/../site-evil/secret.txt")


def test_resolve_normalizes_inside_root(tmp_path: Path):
    root = tmp_path / "site"
    assert resolve_within_root(root, "/a/../b.js") == root / "b.js"
    assert resolve_within_root(root, "/") == root


def test_resolve_strips_absolute_override(tmp_path: Path):
    root = tmp_path / "site"
    assert resolve_within_root(root, "//etc/passwd") == root / "etc" / "passwd"


@pytest.mark.parametrize(
    "path,expected",
    [
        ("/main.js", True),
        ("/assets/app.v2/route", False),
        ("/dashboard", False),
        ("/dashboard/", False),
        ("/.well-known", True),
    ],
)
def test_has_extension_checks_final_segment(path, expected):
    assert has_extension(path) is expected
