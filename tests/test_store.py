"""Tests for the release store bindings."""

from __future__ import annotations

import http.client
import io
from pathlib import Path
from urllib.error import HTTPError, URLError

import pytest

from conftest import FakeProcessRunner
from crateship.config import PrecompiledBinariesConfig
from crateship.errors import (
    AssetNotFoundError,
    AuthenticationError,
    ConfigError,
    ReleaseNotFoundError,
    RepositoryNotFoundError,
    SetupError,
    StoreError,
    TransientStoreError,
)
from crateship.retry import DOWNLOAD_RETRY
from crateship.store import GhCliReleaseStore, HttpReleaseStore, LocalDirectoryStore, store_for_config
from crateship.store import http as http_module
from crateship.store.gh_cli import classify_error


# -----------------------------------------------------------------------------
# gh CLI
# -----------------------------------------------------------------------------


@pytest.mark.parametrize(
    "stderr, error_type",
    [
        ("no assets match: could not find any assets matching the pattern", AssetNotFoundError),
        ("release not found", ReleaseNotFoundError),
        ("HTTP 404: Not Found (https://api.github.com/repos/o/r)", RepositoryNotFoundError),
        ("HTTP 401: Bad credentials", AuthenticationError),
        ("authentication required", AuthenticationError),
        ("something else entirely", StoreError),
    ],
)
def test_classify_error(stderr: str, error_type: type) -> None:
    error = classify_error(stderr, repository="o/r", tag="v1.2.0", what="asset")
    assert type(error) is error_type


def test_setup_requires_gh_binary() -> None:
    store = GhCliReleaseStore("o/r", FakeProcessRunner(tools=()))
    with pytest.raises(SetupError, match="cli.github.com"):
        store.exists("v1.2.0")


def test_setup_requires_authentication(runner: FakeProcessRunner) -> None:
    runner.on("gh", "auth", "status", exit_code=1, stderr="You are not logged into any GitHub hosts")
    with pytest.raises(SetupError, match="gh auth login"):
        GhCliReleaseStore("o/r", runner).validate_setup()


def test_setup_requires_repository_access(runner: FakeProcessRunner) -> None:
    runner.on("gh", "api", "repos/o/r", exit_code=1, stderr="gh: Not Found (HTTP 404)")
    with pytest.raises(SetupError, match="o/r not found"):
        GhCliReleaseStore("o/r", runner).validate_setup()


def test_setup_runs_once(runner: FakeProcessRunner) -> None:
    store = GhCliReleaseStore("o/r", runner)
    store.exists("v1.0.0")
    store.exists("v1.0.1")
    assert [c[:3] for c in runner.commands()].count(["gh", "auth", "status"]) == 1


def test_exists_and_list_assets(runner: FakeProcessRunner) -> None:
    runner.on("gh", "release", "view", "v1.2.0", stdout="a_libfoo.so\na_libfoo.so.sig\n\n")
    runner.on("gh", "release", "view", "v9.9.9", exit_code=1, stderr="release not found")
    store = GhCliReleaseStore("o/r", runner)
    assert store.exists("v1.2.0")
    assert not store.exists("v9.9.9")
    assert store.list_assets("v1.2.0") == ["a_libfoo.so", "a_libfoo.so.sig"]
    with pytest.raises(ReleaseNotFoundError):
        store.list_assets("v9.9.9")


def _write_download(args: list[str]) -> None:
    directory = Path(args[args.index("--dir") + 1])
    name = args[args.index("--pattern") + 1]
    (directory / name).write_bytes(b"payload for " + name.encode())


def test_get_asset_downloads_into_temp_dir(runner: FakeProcessRunner) -> None:
    runner.on("gh", "release", "download", effect=_write_download)
    data = GhCliReleaseStore("o/r", runner).get_asset("v1.2.0", "x_libfoo.so")
    assert data == b"payload for x_libfoo.so"
    download = [c for c in runner.commands() if c[1:3] == ["release", "download"]][0]
    assert download[3] == "v1.2.0"
    assert "--repo" in download and "o/r" in download


@pytest.mark.parametrize("stderr", ["could not find any assets matching x", "release not found"])
def test_get_asset_not_published_is_none(runner: FakeProcessRunner, stderr: str) -> None:
    runner.on("gh", "release", "download", exit_code=1, stderr=stderr)
    assert GhCliReleaseStore("o/r", runner).get_asset("v1.2.0", "x_libfoo.so") is None


def test_get_asset_auth_failure_raises(runner: FakeProcessRunner) -> None:
    runner.on("gh", "release", "download", exit_code=1, stderr="HTTP 401: Bad credentials")
    with pytest.raises(AuthenticationError):
        GhCliReleaseStore("o/r", runner).get_asset("v1.2.0", "x_libfoo.so")


def test_upload_asset_uses_asset_name_and_clobber(runner: FakeProcessRunner) -> None:
    seen: dict[str, bytes] = {}

    def capture(args: list[str]) -> None:
        path = Path(args[3])
        seen[path.name] = path.read_bytes()

    runner.on("gh", "release", "upload", effect=capture)
    GhCliReleaseStore("o/r", runner).upload_asset("v1.2.0", "x_libfoo.so.sig", b"sig")
    assert seen == {"x_libfoo.so.sig": b"sig"}
    upload = [c for c in runner.commands() if c[1:3] == ["release", "upload"]][0]
    assert upload[-1] == "--clobber"


def test_upload_failure_raises(runner: FakeProcessRunner) -> None:
    runner.on("gh", "release", "upload", exit_code=1, stderr="HTTP 502: Bad Gateway")
    with pytest.raises(StoreError):
        GhCliReleaseStore("o/r", runner).upload_asset("v1.2.0", "x", b"")


# -----------------------------------------------------------------------------
# HTTP
# -----------------------------------------------------------------------------


class _Response(io.BytesIO):
    def __enter__(self) -> "_Response":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def _http_store(sleeps: list[float]) -> HttpReleaseStore:
    return HttpReleaseStore(
        "https://example.com/o/r/releases/download/",
        retry=DOWNLOAD_RETRY.with_sleep(sleeps.append),
    )


def test_http_url_pattern() -> None:
    store = HttpReleaseStore("https://example.com/dl/")
    assert store.url_for("v1.2.0", "x86_64-unknown-linux-gnu_libfoo.so") == (
        "https://example.com/dl/v1.2.0/x86_64-unknown-linux-gnu_libfoo.so"
    )


def test_http_get_asset(monkeypatch: pytest.MonkeyPatch, sleeps: list[float]) -> None:
    requested: list[str] = []

    def fake_urlopen(req, timeout):
        requested.append(req.full_url)
        return _Response(b"bytes")

    monkeypatch.setattr(http_module, "urlopen", fake_urlopen)
    assert _http_store(sleeps).get_asset("v1.2.0", "a_libfoo.so") == b"bytes"
    assert requested == ["https://example.com/o/r/releases/download/v1.2.0/a_libfoo.so"]


def test_http_404_is_not_found_without_retry(monkeypatch: pytest.MonkeyPatch, sleeps: list[float]) -> None:
    calls: list[int] = []

    def fake_urlopen(req, timeout):
        calls.append(1)
        raise HTTPError(req.full_url, 404, "Not Found", None, None)

    monkeypatch.setattr(http_module, "urlopen", fake_urlopen)
    assert _http_store(sleeps).get_asset("v1.2.0", "missing") is None
    assert len(calls) == 1
    assert sleeps == []


def test_http_server_error_is_store_error(monkeypatch: pytest.MonkeyPatch, sleeps: list[float]) -> None:
    def fake_urlopen(req, timeout):
        raise HTTPError(req.full_url, 500, "Server Error", None, None)

    monkeypatch.setattr(http_module, "urlopen", fake_urlopen)
    with pytest.raises(StoreError, match="status 500"):
        _http_store(sleeps).get_asset("v1.2.0", "x")
    assert sleeps == []


def test_http_connection_reset_is_retried(monkeypatch: pytest.MonkeyPatch, sleeps: list[float]) -> None:
    outcomes: list[object] = [URLError(ConnectionResetError()), ConnectionResetError(), b"ok"]

    def fake_urlopen(req, timeout):
        outcome = outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return _Response(outcome)

    monkeypatch.setattr(http_module, "urlopen", fake_urlopen)
    assert _http_store(sleeps).get_asset("v1.2.0", "x") == b"ok"
    assert sleeps == [1.0, 1.0]


def test_http_connection_reset_budget(monkeypatch: pytest.MonkeyPatch, sleeps: list[float]) -> None:
    def fake_urlopen(req, timeout):
        raise ConnectionResetError()

    monkeypatch.setattr(http_module, "urlopen", fake_urlopen)
    with pytest.raises(TransientStoreError):
        _http_store(sleeps).get_asset("v1.2.0", "x")
    assert len(sleeps) == 10


def test_http_timeout_is_store_error_without_retry(monkeypatch: pytest.MonkeyPatch, sleeps: list[float]) -> None:
    calls: list[int] = []

    def fake_urlopen(req, timeout):
        calls.append(1)
        raise TimeoutError("timed out")

    monkeypatch.setattr(http_module, "urlopen", fake_urlopen)
    with pytest.raises(StoreError, match="timed out"):
        _http_store(sleeps).get_asset("v1.2.0", "x")
    assert len(calls) == 1
    assert sleeps == []


class _TruncatedResponse(_Response):
    def read(self, *args: object) -> bytes:
        raise http.client.IncompleteRead(b"par", 10)


def test_http_truncated_body_is_store_error(monkeypatch: pytest.MonkeyPatch, sleeps: list[float]) -> None:
    monkeypatch.setattr(http_module, "urlopen", lambda req, timeout: _TruncatedResponse(b""))
    with pytest.raises(StoreError, match="IncompleteRead"):
        _http_store(sleeps).get_asset("v1.2.0", "x")


def test_http_store_is_read_only() -> None:
    store = HttpReleaseStore("https://example.com/")
    assert not store.writable
    with pytest.raises(StoreError):
        store.upload_asset("v1", "x", b"")
    with pytest.raises(StoreError):
        store.list_assets("v1")


# -----------------------------------------------------------------------------
# Local directory and selection
# -----------------------------------------------------------------------------


def test_local_store_round_trip(tmp_path: Path) -> None:
    store = LocalDirectoryStore(tmp_path / "out")
    assert store.get_asset("v1", "a") is None
    store.upload_asset("v1", "b_libfoo.so", b"1")
    store.upload_asset("v2", "a_libfoo.so", b"2")
    (tmp_path / "out" / ".hidden").write_bytes(b"")
    assert store.exists("anything")
    assert store.list_assets("v1") == ["a_libfoo.so", "b_libfoo.so"]
    assert store.get_asset("v1", "a_libfoo.so") == b"2"
    assert not list((tmp_path / "out").glob("*.tmp"))


def test_store_for_config(public_key, runner: FakeProcessRunner) -> None:
    public = PrecompiledBinariesConfig(public_key=public_key, url_prefix="https://example.com/")
    private = PrecompiledBinariesConfig(public_key=public_key, private=True, repository="o/r")
    assert isinstance(store_for_config(public, runner), HttpReleaseStore)
    gh = store_for_config(private, runner)
    assert isinstance(gh, GhCliReleaseStore)
    assert gh.repository == "o/r"


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"private": True}, "requires a repository"),
        ({}, "url_prefix is required"),
    ],
)
def test_store_for_incomplete_config(public_key, runner: FakeProcessRunner, kwargs: dict, message: str) -> None:
    config = PrecompiledBinariesConfig(public_key=public_key, **kwargs)
    with pytest.raises(ConfigError, match=message):
        store_for_config(config, runner)
