"""
Tests for source definitions, the YAML loader and mirror profiles.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from webmirror.errors import ConfigError
from webmirror.sources.loader import get_source, load_profiles, load_sources
from webmirror.sources.models import RemoteSource

VALID = {
    "name": "custom",
    "file_pattern": r'href="(?P<url>[^"]+\.el)"',
    "dir_pattern": r'href="(?P<url>[^"]+/)"',
    "name_pattern": r"/(?P<name>[^/]+)$",
}


def write_yaml(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


class TestRemoteSource:

    def test_valid(self):
        source = RemoteSource(**VALID)
        assert source.revision_re is None
        assert source.file_re.search('href="a.el"').group("url") == "a.el"

    def test_invalid_regex(self):
        with pytest.raises(ValidationError):
            RemoteSource(**{**VALID, "file_pattern": "(unclosed"})

    def test_missing_url_group(self):
        with pytest.raises(ValidationError):
            RemoteSource(**{**VALID, "dir_pattern": r'href="([^"]+/)"'})

    def test_missing_revision_group(self):
        with pytest.raises(ValidationError):
            RemoteSource(**{**VALID, "revision_pattern": r"Revision (\d+)"})

    def test_frozen(self):
        source = RemoteSource(**VALID)
        with pytest.raises(ValidationError):
            source.name = "other"


class TestLoadSources:

    def test_builtin_sources(self):
        sources = load_sources()
        assert {"viewvc", "cvsweb", "trac", "autoindex"} <= set(sources)
        assert sources["cvsweb"].time_format == "%Y/%m/%d %H:%M:%S"

    def test_user_file_adds_and_overrides(self, tmp_path):
        path = write_yaml(tmp_path / "sources.yaml", (
            "sources:\n"
            "  - name: custom\n"
            "    file_pattern: 'href=\"(?P<url>[^\"]+\\.el)\"'\n"
            "    dir_pattern: 'href=\"(?P<url>[^\"]+/)\"'\n"
            "    name_pattern: '/(?P<name>[^/]+)$'\n"
            "  - name: trac\n"
            "    description: patched trac\n"
            "    file_pattern: 'href=\"(?P<url>/raw/[^\"]+)\"'\n"
            "    dir_pattern: 'href=\"(?P<url>[^\"]+/)\"'\n"
            "    name_pattern: '/(?P<name>[^/]+)$'\n"
        ))

        sources = load_sources(path)

        assert "custom" in sources
        assert "viewvc" in sources
        assert sources["trac"].description == "patched trac"

    def test_invalid_user_source(self, tmp_path):
        path = write_yaml(tmp_path / "sources.yaml", (
            "sources:\n"
            "  - name: broken\n"
            "    file_pattern: '(no-groups)'\n"
            "    dir_pattern: '(?P<url>x)'\n"
            "    name_pattern: '(?P<name>x)'\n"
        ))
        with pytest.raises(ConfigError, match="broken|file_pattern"):
            load_sources(path)

    def test_missing_user_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_sources(tmp_path / "absent.yaml")

    def test_malformed_yaml(self, tmp_path):
        path = write_yaml(tmp_path / "sources.yaml", "sources: [unclosed\n")
        with pytest.raises(ConfigError):
            load_sources(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = write_yaml(tmp_path / "sources.yaml", "- just\n- a list\n")
        with pytest.raises(ConfigError):
            load_sources(path)


class TestGetSource:

    def test_known(self):
        sources = load_sources()
        assert get_source("viewvc", sources).name == "viewvc"

    def test_unknown_lists_known_names(self):
        with pytest.raises(ConfigError, match="viewvc"):
            get_source("gitweb", load_sources())


class TestProfiles:

    def test_load_profiles(self, tmp_path):
        path = write_yaml(tmp_path / "mirrors.yaml", (
            "mirrors:\n"
            "  - name: emacs-lisp\n"
            "    url: http://cvs.test/viewvc/emacs/lisp/\n"
            "    local_root: ~/mirror/lisp\n"
            "    source: viewvc\n"
            "    file_mask: 'progmodes/*.el'\n"
            "  - name: docs\n"
            "    url: http://ftp.test/pub/docs/\n"
            "    local_root: /srv/docs\n"
            "    source: autoindex\n"
            "    recursive: false\n"
        ))

        profiles = load_profiles(path)

        lisp = profiles.get("emacs-lisp")
        assert lisp.file_mask == "progmodes/*.el"
        assert lisp.recursive is True
        assert profiles.get("docs").recursive is False
        assert profiles.get("absent") is None

    def test_profile_missing_field(self, tmp_path):
        path = write_yaml(tmp_path / "mirrors.yaml", "mirrors:\n  - name: x\n    url: http://a/\n")
        with pytest.raises(ConfigError):
            load_profiles(path)

    def test_empty_file(self, tmp_path):
        path = write_yaml(tmp_path / "mirrors.yaml", "")
        assert load_profiles(path).mirrors == []
