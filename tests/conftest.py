"""
Shared pytest fixtures for InstallerIntegrity tests.

Provides reusable fixtures for:
- WiX manifest sources (as text and as a ManifestIndex)
- Library entries and snapshots
- Configuration objects
- Source control and probe mocks
- An on-disk installer tree (project root, Installer folder, built files)

Source control, SMTP and PE version reading are mocked with unittest.mock so
the tests need neither git nor real Windows binaries.
"""

from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from library.models import FileLibraryEntry, RegistryLibraryEntry
from library.snapshot import LibrarySnapshot
from manifest.index import ManifestIndex
from manifest.wix_source import WixSource
from probe.file_probe import FileFacts
from reconciliation.snippets import SnippetSynthesizer
from shared_lib.path_mapper import BuildPathMapper
from validation.config import IntegrityConfig


WIX_NS = "http://schemas.microsoft.com/wix/2006/wi"

CORE_GUID = "11111111-2222-3333-4444-555555555555"
HELP_GUID = "AAAAAAAA-BBBB-CCCC-DDDD-EEEEEEEEEEEE"
REG_GUID = "99999999-8888-7777-6666-555555555555"
FIXED_GUID = "0F0F0F0F-0000-4000-8000-000000000001"

FILES_WXS = f"""<?xml version="1.0" encoding="utf-8"?>
<Wix xmlns="{WIX_NS}">
  <Fragment>
    <DirectoryRef Id="INSTALLDIR">
      <Component Id="ToolsDll" Guid="{{{CORE_GUID}}}">
        <File Id="ToolsDll" Name="Tools.dll" Source="..\\Output\\Release\\Tools.dll"/>
      </Component>
      <Component Id="HelpChm" Guid="{HELP_GUID.lower()}">
        <File Id="HelpChm" Name="Help.chm" Source="..\\DistFiles\\Help.chm"/>
      </Component>
    </DirectoryRef>
    <FeatureRef Id="Core">
      <ComponentRef Id="ToolsDll"/>
    </FeatureRef>
    <FeatureRef Id="Help">
      <ComponentRef Id="HelpChm"/>
    </FeatureRef>
  </Fragment>
</Wix>
"""

AUTOFILES_WXS = f"""<?xml version="1.0" encoding="utf-8"?>
<Wix xmlns="{WIX_NS}">
  <Fragment>
    <DirectoryRef Id="FONTSDIR">
      <Component Id="FontTtf" Guid="22222222-3333-4444-5555-666666666666">
        <File Id="FontTtf" Name="Font.ttf" Source="..\\DistFiles\\Fonts\\Font.ttf"/>
      </Component>
    </DirectoryRef>
    <FeatureRef Id="Core">
      <ComponentRef Id="FontTtf"/>
    </FeatureRef>
  </Fragment>
</Wix>
"""

INSTALLER_CONFIG_XML = """<?xml version="1.0" encoding="utf-8"?>
<InstallerConfig>
  <IntegrityChecks>
    <IgnoreNonVersionedDistFiles PathPattern="Scratch"/>
    <IgnoreVersionZeroFiles PathPattern="\\${config}\\Stub"/>
  </IntegrityChecks>
  <Omissions>
    <File PathPattern="Omitted"/>
  </Omissions>
  <FailureNotification>
    <EmailingMachine Name="BUILDSERVER"/>
    <Recipient Email="builds@example.org"/>
  </FailureNotification>
</InstallerConfig>
"""


def make_file_entry(**overrides) -> FileLibraryEntry:
    """FileLibraryEntry for Output\\${config}\\Tools.dll, with attribute-name overrides."""
    attributes = {
        "Path": "Output\\${config}\\Tools.dll",
        "Date": "2024-03-01T10:00:00",
        "Version": "1.2.3.4",
        "MD5": "0123456789ABCDEF0123456789ABCDEF",
        "FeatureList": "Core",
        "ComponentGuid": CORE_GUID,
        "ComponentId": "ToolsDll",
        "DirectoryId": "INSTALLDIR",
        "LongName": "Tools.dll",
        "ShortName": "Tools.dll",
    }
    attributes.update(overrides)
    return FileLibraryEntry.model_validate(attributes)


def make_registry_entry(**overrides) -> RegistryLibraryEntry:
    attributes = {
        "ComponentGuid": REG_GUID,
        "Root": "HKLM",
        "KeyHeader": "Software\\Example\\Tools",
        "DirectoryId": "INSTALLDIR",
        "Id": "ToolsRegistry",
        "FeatureList": "Core",
    }
    attributes.update(overrides)
    return RegistryLibraryEntry.model_validate(attributes)


def make_facts(md5="0123456789ABCDEF0123456789ABCDEF", version="1.2.3.4", modified=None) -> FileFacts:
    return FileFacts(md5=md5, version=version, modified=modified or datetime(2024, 3, 1, 10, 0))


# =============================================================================
# Manifest fixtures
# =============================================================================

@pytest.fixture
def manifest_index():
    """
    ManifestIndex over FILES_WXS and AUTOFILES_WXS.

    Components: ToolsDll (Core), HelpChm (Help), FontTtf (Core).
    """
    return ManifestIndex([
        WixSource.from_string(FILES_WXS, "Files.wxs"),
        WixSource.from_string(AUTOFILES_WXS, "AutoFiles.wxs"),
    ])


# =============================================================================
# Configuration fixtures
# =============================================================================

@pytest.fixture
def integrity_config():
    """IntegrityConfig matching INSTALLER_CONFIG_XML."""
    return IntegrityConfig(
        non_versioned_dist_files=["Scratch"],
        version_zero_files=["\\${config}\\Stub"],
        file_omissions=["Omitted"],
        emailing_machines=["BUILDSERVER"],
        email_recipients=["builds@example.org"],
    )


@pytest.fixture
def path_mapper(tmp_path):
    """BuildPathMapper rooted at tmp_path/project for the Release flavor."""
    return BuildPathMapper(tmp_path / "project", "Release")


# =============================================================================
# Collaborator mocks
# =============================================================================

@pytest.fixture
def mock_git_client():
    """
    Mock GitClient.

    Provides:
        - list_untracked(): Returns [] by default
        - current_branch(): Returns "develop"
    """
    client = MagicMock()
    client.list_untracked.return_value = []
    client.current_branch.return_value = "develop"
    return client


@pytest.fixture
def mock_probe():
    """Mock FileProbe returning facts identical to make_file_entry()'s release."""
    probe = MagicMock()
    probe.probe.return_value = make_facts()
    return probe


@pytest.fixture
def synthesizer():
    """SnippetSynthesizer that always mints FIXED_GUID."""
    return SnippetSynthesizer(guid_factory=lambda: FIXED_GUID)


@pytest.fixture
def empty_snapshot():
    return LibrarySnapshot()


# =============================================================================
# On-disk installer tree
# =============================================================================

@pytest.fixture
def installer_tree(tmp_path):
    """
    A project with an Installer folder ready for a full run.

    Layout:
        project/
            Installer/   Files.wxs, AutoFiles.wxs, InstallerConfig.xml
            Output/Release/Tools.dll
            DistFiles/

    Returns:
        Path of the Installer folder
    """
    project = tmp_path / "project"
    installer = project / "Installer"
    installer.mkdir(parents=True)
    (installer / "Files.wxs").write_text(FILES_WXS, encoding="utf-8")
    (installer / "AutoFiles.wxs").write_text(AUTOFILES_WXS, encoding="utf-8")
    (installer / "InstallerConfig.xml").write_text(INSTALLER_CONFIG_XML, encoding="utf-8")

    output = project / "Output" / "Release"
    output.mkdir(parents=True)
    (output / "Tools.dll").write_bytes(b"not really a dll")
    (project / "DistFiles").mkdir()
    return installer


def write_file_library(installer: Path, *records: dict) -> Path:
    """Write FileLibrary.xml with one File element per attribute dict."""
    from xml.etree import ElementTree as ET
    root = ET.Element("FileLibrary")
    for attributes in records:
        ET.SubElement(root, "File", attributes)
    path = installer / "FileLibrary.xml"
    ET.ElementTree(root).write(path, encoding="utf-8", xml_declaration=True)
    return path


def write_reg_library(installer: Path, *records: dict) -> Path:
    from xml.etree import ElementTree as ET
    root = ET.Element("RegLibrary")
    for attributes in records:
        ET.SubElement(root, "Component", attributes)
    path = installer / "RegLibrary.xml"
    ET.ElementTree(root).write(path, encoding="utf-8", xml_declaration=True)
    return path
