"""
Tests for WixSource and ManifestIndex.
"""

import pytest

from conftest import AUTOFILES_WXS, CORE_GUID, FILES_WXS, HELP_GUID
from manifest.index import ManifestIndex
from manifest.models import normalize_guid
from manifest.wix_source import WixSource, local_name
from validation.errors import ManifestLoadError

WIX4_NS = "http://wixtoolset.org/schemas/v4/wxs"

CORRECTIONS_WXS = """<?xml version="1.0" encoding="utf-8"?>
<Wix xmlns="http://schemas.microsoft.com/wix/2006/wi">
  <Fragment>
    <DirectoryRef Id="INSTALLDIR">
      <Component Id="ToolsOverride" Guid="11111111-2222-3333-4444-555555555555">
        <File Id="ToolsOverride" Name="Tools.dll" Source="Elsewhere\\Tools.dll"/>
      </Component>
    </DirectoryRef>
    <FeatureRef Id="Extras">
      <ComponentRef Id="ToolsDll"/>
    </FeatureRef>
  </Fragment>
</Wix>
"""

WIX4_SOURCE = f"""<Wix xmlns="{WIX4_NS}">
  <Package Name="Example" Version="1.0" Manufacturer="Example">
    <StandardDirectory Id="ProgramFiles6432Folder">
      <Directory Id="APPDIR" Name="Example">
        <Component Id="Main" Guid="{{ABCDEFAB-0000-0000-0000-000000000001}}">
          <File Name="Main.exe" Source="bin\\Main.exe"/>
        </Component>
      </Directory>
    </StandardDirectory>
    <ComponentGroup Id="Docs" Directory="DOCSDIR">
      <Component Id="Readme" Guid="ABCDEFAB-0000-0000-0000-000000000002">
        <File Name="Readme.txt" Source="docs\\Readme.txt"/>
      </Component>
    </ComponentGroup>
    <Component Id="Own" Directory="OWNDIR" Guid="ABCDEFAB-0000-0000-0000-000000000003"/>
    <Component Id="Generated" Guid="*"/>
    <Feature Id="Main">
      <ComponentRef Id="Main"/>
      <ComponentRef Id="Readme"/>
    </Feature>
  </Package>
</Wix>
"""


class TestHelpers:
    """Tests for GUID normalisation and tag handling."""

    @pytest.mark.parametrize("raw", [
        "{11111111-2222-3333-4444-555555555555}",
        "11111111-2222-3333-4444-555555555555",
        " {11111111-2222-3333-4444-555555555555} ",
    ])
    def test_normalize_guid(self, raw):
        assert normalize_guid(raw) == CORE_GUID

    def test_normalize_guid_upper_cases(self):
        assert normalize_guid(HELP_GUID.lower()) == HELP_GUID

    def test_local_name(self):
        assert local_name("{http://example}Component") == "Component"
        assert local_name("Component") == "Component"


class TestWixSource:
    """Tests for per-source indexing."""

    def test_components_indexed_by_normalized_guid(self):
        source = WixSource.from_string(FILES_WXS, "Files.wxs")
        record = source.components[CORE_GUID]
        assert record.id == "ToolsDll"
        assert record.directory_id == "INSTALLDIR"
        assert record.source == "Files.wxs"

    def test_wix4_directory_resolution(self):
        source = WixSource.from_string(WIX4_SOURCE, "v4.wxs")
        by_id = {r.id: r for r in source.components.values()}
        assert by_id["Main"].directory_id == "APPDIR"
        assert by_id["Readme"].directory_id == "DOCSDIR"
        assert by_id["Own"].directory_id == "OWNDIR"
        assert "Generated" not in by_id

    def test_feature_elements_count_as_references(self):
        source = WixSource.from_string(WIX4_SOURCE, "v4.wxs")
        assert source.features["Main"] == {"Main"}
        assert source.features["Readme"] == {"Main"}

    def test_file_declarations(self):
        source = WixSource.from_string(WIX4_SOURCE, "v4.wxs")
        declaration = source.files[("Readme.txt", "DOCSDIR")]
        assert declaration.source_path == "docs\\Readme.txt"
        assert declaration.component_id == "Readme"

    def test_malformed_xml(self):
        with pytest.raises(ManifestLoadError, match="not well-formed"):
            WixSource.from_string("<Wix><Fragment></Wix>", "Broken.wxs")

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(ManifestLoadError, match="not found"):
            WixSource.load(tmp_path / "Files.wxs")


class TestManifestIndex:
    """Tests for merged lookups across sources."""

    def test_find_component(self, manifest_index):
        assert manifest_index.find_component(CORE_GUID)
        assert manifest_index.find_component("{" + HELP_GUID.lower() + "}")
        assert not manifest_index.find_component("00000000-0000-0000-0000-000000000000")

    def test_empty_guid_never_found(self, manifest_index):
        assert not manifest_index.find_component("")
        assert manifest_index.component("") is None

    def test_component_carries_features(self, manifest_index):
        record = manifest_index.component(CORE_GUID)
        assert record.feature_ids == frozenset({"Core"})

    def test_features_referencing_unions_sources(self):
        index = ManifestIndex([
            WixSource.from_string(FILES_WXS, "Files.wxs"),
            WixSource.from_string(CORRECTIONS_WXS, "PatchCorrections.wxs"),
        ])
        assert index.features_referencing("ToolsDll") == {"Core", "Extras"}
        assert index.features_referencing("Unknown") == set()

    def test_first_source_wins(self):
        index = ManifestIndex([
            WixSource.from_string(FILES_WXS, "Files.wxs"),
            WixSource.from_string(CORRECTIONS_WXS, "PatchCorrections.wxs"),
        ])
        assert index.component(CORE_GUID).id == "ToolsDll"
        assert index.find_file_elsewhere("Tools.dll", "INSTALLDIR") == "..\\Output\\Release\\Tools.dll"

    def test_overlay_order_reversed(self):
        index = ManifestIndex([
            WixSource.from_string(CORRECTIONS_WXS, "PatchCorrections.wxs"),
            WixSource.from_string(FILES_WXS, "Files.wxs"),
        ])
        assert index.component(CORE_GUID).id == "ToolsOverride"
        assert index.find_file_elsewhere("Tools.dll", "INSTALLDIR") == "Elsewhere\\Tools.dll"

    def test_find_file_elsewhere_needs_same_directory(self, manifest_index):
        assert manifest_index.find_file_elsewhere("Font.ttf", "FONTSDIR") == "..\\DistFiles\\Fonts\\Font.ttf"
        assert manifest_index.find_file_elsewhere("Font.ttf", "INSTALLDIR") is None
        assert manifest_index.find_file_elsewhere("", "FONTSDIR") is None

    def test_load_from_directory(self, installer_tree):
        (installer_tree / "PatchCorrections.wxs").write_text(CORRECTIONS_WXS, encoding="utf-8")
        index = ManifestIndex.load(installer_tree, ["Files.wxs", "AutoFiles.wxs"], ["PatchCorrections.wxs"])
        assert index.source_names == ["Files.wxs", "AutoFiles.wxs", "PatchCorrections.wxs"]

    def test_load_without_optional_overlay(self, installer_tree):
        index = ManifestIndex.load(installer_tree, ["Files.wxs", "AutoFiles.wxs"], ["PatchCorrections.wxs"])
        assert index.source_names == ["Files.wxs", "AutoFiles.wxs"]

    def test_load_missing_mandatory_source(self, installer_tree):
        (installer_tree / "AutoFiles.wxs").unlink()
        with pytest.raises(ManifestLoadError):
            ManifestIndex.load(installer_tree, ["Files.wxs", "AutoFiles.wxs"])

    def test_autofiles_content_indexed(self):
        index = ManifestIndex([WixSource.from_string(AUTOFILES_WXS, "AutoFiles.wxs")])
        assert index.features_referencing("FontTtf") == {"Core"}
