"""Tests for msgstream.keys: API key loading."""

import os

import pytest

from msgstream import keys
from msgstream.errors import MissingApiKey


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """No real key files and no key in the environment."""
    monkeypatch.setattr(keys, "KEYS_FILE", tmp_path / "home" / "keys.env")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(keys.API_KEY_ENV, raising=False)
    return tmp_path


class TestGetApiKey:
    def test_from_environment(self, isolated, monkeypatch):
        monkeypatch.setenv(keys.API_KEY_ENV, "sk-env")
        assert keys.get_api_key() == "sk-env"

    def test_missing_raises(self, isolated):
        with pytest.raises(MissingApiKey, match="ANTHROPIC_API_KEY"):
            keys.get_api_key()

    def test_blank_counts_as_missing(self, isolated, monkeypatch):
        monkeypatch.setenv(keys.API_KEY_ENV, "   ")
        with pytest.raises(MissingApiKey):
            keys.get_api_key()

    def test_from_dotenv(self, isolated, monkeypatch):
        (isolated / ".env").write_text('# comment\nANTHROPIC_API_KEY="sk-dotenv"\n')
        try:
            assert keys.get_api_key() == "sk-dotenv"
        finally:
            monkeypatch.delenv(keys.API_KEY_ENV, raising=False)

    def test_keys_file_wins_over_dotenv(self, isolated, monkeypatch):
        keys.save_key("sk-saved", keys.KEYS_FILE)
        (isolated / ".env").write_text("ANTHROPIC_API_KEY=sk-dotenv\n")
        try:
            assert keys.get_api_key() == "sk-saved"
        finally:
            monkeypatch.delenv(keys.API_KEY_ENV, raising=False)


class TestLoadKeysEnv:
    def test_does_not_overwrite_existing(self, isolated, monkeypatch):
        monkeypatch.setenv(keys.API_KEY_ENV, "sk-shell")
        env_file = isolated / "custom.env"
        env_file.write_text("ANTHROPIC_API_KEY=sk-file\n")
        keys.load_keys_env([env_file])
        assert os.environ[keys.API_KEY_ENV] == "sk-shell"

    def test_skips_malformed_lines(self, isolated, monkeypatch):
        env_file = isolated / "custom.env"
        env_file.write_text("garbage line\n\nMSGSTREAM_TEST_VAR=ok\n")
        monkeypatch.delenv("MSGSTREAM_TEST_VAR", raising=False)
        keys.load_keys_env([env_file])
        assert os.environ["MSGSTREAM_TEST_VAR"] == "ok"
        monkeypatch.delenv("MSGSTREAM_TEST_VAR")


class TestSaveKey:
    def test_writes_file(self, isolated):
        path = keys.save_key("sk-new", isolated / "dir" / "keys.env")
        assert path.read_text() == "ANTHROPIC_API_KEY=sk-new\n"
