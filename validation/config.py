"""
Configuration validation for InstallerIntegrity.

InstallerConfig.xml supplies the exemption lists and the failure-notification
settings. This module parses it into a plain dict and validates that dict
with a pydantic v2 model, failing fast with readable messages.

Relevant InstallerConfig.xml elements:

    <IntegrityChecks>
        <IgnoreNonVersionedDistFiles PathPattern="..."/>
        <IgnoreVersionZeroFiles PathPattern="..."/>
    </IntegrityChecks>
    <Omissions>
        <File PathPattern="..."/>
    </Omissions>
    <FailureNotification>
        <EmailingMachine Name="..."/>
        <Recipient Email="..."/>
    </FailureNotification>
"""

import logging
import os
import xml.etree.ElementTree as ET
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from validation.errors import ConfigurationError

log = logging.getLogger('InstallerIntegrity.config')


class IntegrityConfig(BaseModel):
    """
    Integrity-check configuration from InstallerConfig.xml.

    Pattern lists are case-insensitive path substrings and may contain the
    ${config} build-flavor placeholder.

    Fields:
        non_versioned_dist_files: Files allowed in DistFiles without being in source control
        version_zero_files: Files allowed to have version 0.0.0.0
        file_omissions: Files left out of the installer entirely
        emailing_machines: Machine names that email the report instead of showing it
        email_recipients: Addresses the report is mailed to
    """

    model_config = ConfigDict(frozen=True)

    non_versioned_dist_files: list[str] = Field(default_factory=list)
    version_zero_files: list[str] = Field(default_factory=list)
    file_omissions: list[str] = Field(default_factory=list)
    emailing_machines: list[str] = Field(default_factory=list)
    email_recipients: list[str] = Field(default_factory=list)

    @field_validator(
        'non_versioned_dist_files', 'version_zero_files', 'file_omissions', 'emailing_machines',
        mode='after'
    )
    @classmethod
    def drop_blank_entries(cls, v: list[str]) -> list[str]:
        """Blank patterns would match every path; drop them."""
        return [item.strip() for item in v if item and item.strip()]

    @field_validator('email_recipients', mode='after')
    @classmethod
    def validate_recipients(cls, v: list[str]) -> list[str]:
        recipients = [item.strip() for item in v if item and item.strip()]
        for recipient in recipients:
            if '@' not in recipient:
                raise ValueError(f"'{recipient}' is not an email address")
        return recipients

    def is_emailing_machine(self, machine_name: str) -> bool:
        """
        Check whether this machine should email the report.

        Comparison is case-insensitive and also accepts the short host name
        when machine_name is fully qualified.
        """
        if not machine_name:
            return False
        candidates = {machine_name.lower(), machine_name.split('.')[0].lower()}
        return any(name.lower() in candidates for name in self.emailing_machines)

    def log_config(self) -> None:
        """Log a one-line configuration summary."""
        log.info(
            f"Integrity config: non_versioned_patterns={len(self.non_versioned_dist_files)}, "
            f"version_zero_patterns={len(self.version_zero_files)}, "
            f"omissions={len(self.file_omissions)}, "
            f"emailing_machines={self.emailing_machines}, "
            f"recipients={len(self.email_recipients)}"
        )
        if self.emailing_machines and not self.email_recipients:
            log.warning("Emailing machines are configured but there are no recipients")


def _collect(root: ET.Element, parent_tag: str, child_tag: str, attribute: str) -> list[str]:
    """Collect an attribute from every parent_tag/child_tag element anywhere in the document."""
    values = []
    for parent in root.iter(parent_tag):
        for child in parent.findall(child_tag):
            values.append(child.get(attribute, ''))
    return values


def parse_installer_config(xml_text: str) -> dict:
    """
    Parse InstallerConfig.xml content into a config dict.

    Args:
        xml_text: Document content

    Returns:
        Dict suitable for validate_config()

    Raises:
        ConfigurationError: If the document is not well-formed XML
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise ConfigurationError(f"InstallerConfig.xml is not well-formed: {e}") from e

    return {
        'non_versioned_dist_files': _collect(root, 'IntegrityChecks', 'IgnoreNonVersionedDistFiles', 'PathPattern'),
        'version_zero_files': _collect(root, 'IntegrityChecks', 'IgnoreVersionZeroFiles', 'PathPattern'),
        'file_omissions': _collect(root, 'Omissions', 'File', 'PathPattern'),
        'emailing_machines': _collect(root, 'FailureNotification', 'EmailingMachine', 'Name'),
        'email_recipients': _collect(root, 'FailureNotification', 'Recipient', 'Email'),
    }


def validate_config(config_dict: dict) -> tuple[Optional[IntegrityConfig], Optional[str]]:
    """
    Validate configuration dictionary and return IntegrityConfig or error message.

    Args:
        config_dict: Dictionary containing configuration values

    Returns:
        Tuple of (IntegrityConfig, None) on success,
        or (None, error_message) on validation failure
    """
    try:
        config = IntegrityConfig(**config_dict)
        return (config, None)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            field = '.'.join(str(loc) for loc in error['loc'])
            msg = error['msg']
            errors.append(f"{field}: {msg}")
        error_message = '; '.join(errors)
        return (None, error_message)


def load_installer_config(path: str) -> IntegrityConfig:
    """
    Load and validate InstallerConfig.xml.

    Args:
        path: Path to InstallerConfig.xml

    Returns:
        Validated IntegrityConfig

    Raises:
        ConfigurationError: If the file is missing, malformed or invalid
    """
    if not os.path.isfile(path):
        raise ConfigurationError(f"Configuration file not found: {path}")

    with open(path, encoding='utf-8-sig') as f:
        config_dict = parse_installer_config(f.read())

    config, error = validate_config(config_dict)
    if error:
        raise ConfigurationError(f"Configuration error in {path}: {error}")
    return config


__all__ = [
    'IntegrityConfig',
    'parse_installer_config',
    'validate_config',
    'load_installer_config',
    'ValidationError',
]
