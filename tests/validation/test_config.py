"""
Tests for IntegrityConfig, parse_installer_config and load_installer_config.
"""

import logging

import pytest
from pydantic import ValidationError

from conftest import INSTALLER_CONFIG_XML
from validation.config import (
    IntegrityConfig,
    load_installer_config,
    parse_installer_config,
    validate_config,
)
from validation.errors import ConfigurationError


class TestIntegrityConfig:
    """Tests for the IntegrityConfig model."""

    def test_defaults_are_empty(self):
        config = IntegrityConfig()
        assert config.non_versioned_dist_files == []
        assert config.version_zero_files == []
        assert config.file_omissions == []
        assert config.emailing_machines == []
        assert config.email_recipients == []

    def test_blank_patterns_dropped(self):
        """A blank pattern would match every path."""
        config = IntegrityConfig(version_zero_files=["", "  ", " Stub "])
        assert config.version_zero_files == ["Stub"]

    def test_recipient_must_look_like_email(self):
        config, error = validate_config({"email_recipients": ["not-an-address"]})
        assert config is None
        assert "email_recipients" in error

    def test_config_is_frozen(self):
        config = IntegrityConfig()
        with pytest.raises(ValidationError):
            config.file_omissions = ["x"]

    @pytest.mark.parametrize("machine,expected", [
        ("BUILDSERVER", True),
        ("buildserver", True),
        ("buildserver.corp.example.org", True),
        ("laptop", False),
        ("", False),
    ])
    def test_is_emailing_machine(self, integrity_config, machine, expected):
        assert integrity_config.is_emailing_machine(machine) is expected

    def test_log_config_warns_without_recipients(self, caplog):
        config = IntegrityConfig(emailing_machines=["BUILDSERVER"])
        with caplog.at_level(logging.INFO, logger="InstallerIntegrity.config"):
            config.log_config()
        assert "emailing_machines=['BUILDSERVER']" in caplog.text
        assert "no recipients" in caplog.text


class TestParseInstallerConfig:
    """Tests for reading InstallerConfig.xml content."""

    def test_all_sections(self):
        data = parse_installer_config(INSTALLER_CONFIG_XML)
        assert data == {
            "non_versioned_dist_files": ["Scratch"],
            "version_zero_files": ["\\${config}\\Stub"],
            "file_omissions": ["Omitted"],
            "emailing_machines": ["BUILDSERVER"],
            "email_recipients": ["builds@example.org"],
        }

    def test_sections_optional(self):
        data = parse_installer_config("<InstallerConfig/>")
        assert all(values == [] for values in data.values())

    def test_nested_sections_found(self):
        xml = """<Root><Installer><Omissions><File PathPattern="a"/><File PathPattern="b"/></Omissions></Installer></Root>"""
        assert parse_installer_config(xml)["file_omissions"] == ["a", "b"]

    def test_malformed_xml(self):
        with pytest.raises(ConfigurationError, match="not well-formed"):
            parse_installer_config("<InstallerConfig>")


class TestLoadInstallerConfig:
    """Tests for load_installer_config()."""

    def test_load(self, installer_tree):
        config = load_installer_config(str(installer_tree / "InstallerConfig.xml"))
        assert config.file_omissions == ["Omitted"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_installer_config(str(tmp_path / "InstallerConfig.xml"))

    def test_invalid_content(self, tmp_path):
        path = tmp_path / "InstallerConfig.xml"
        path.write_text(
            "<InstallerConfig><FailureNotification><Recipient Email='nobody'/></FailureNotification></InstallerConfig>",
            encoding="utf-8",
        )
        with pytest.raises(ConfigurationError, match="email_recipients"):
            load_installer_config(str(path))

    def test_utf8_bom_accepted(self, tmp_path):
        path = tmp_path / "InstallerConfig.xml"
        path.write_bytes(b"\xef\xbb\xbf<InstallerConfig><Omissions><File PathPattern='x'/></Omissions></InstallerConfig>")
        assert load_installer_config(str(path)).file_omissions == ["x"]
