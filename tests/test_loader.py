"""
Workspace loading from EPJSON data and view factor table import.
"""
import json

import pandas as pd
import pytest

from data.loader import DataLoadError, WorkspaceLoader, apply_view_factor_table, read_view_factor_table
from models.entities import EntityKind


class TestWorkspaceLoader:

    def test_builds_geometry(self, epjson_data):
        workspace = WorkspaceLoader("Test").load(epjson_data)

        zone = workspace.get_by_name(EntityKind.ZONE, "Zone 1")
        assert zone is not None
        for name in ("Wall 1", "Floor 1", "Window 1", "Mass 1"):
            participant = workspace.find_participant(name)
            assert workspace.resolve_enclosing_zone(participant) == zone

    def test_implicit_space_per_zone(self, epjson_data):
        workspace = WorkspaceLoader().load(epjson_data)
        spaces = [ref.name for ref in workspace.objects_of_kind(EntityKind.SPACE)]
        assert spaces == ["Zone 1 Space", "Zone 2 Space"]

    def test_orphans_are_skipped(self, epjson_data):
        workspace = WorkspaceLoader().load(epjson_data)
        assert workspace.find_participant("Orphan Wall") is None

    def test_view_factors_rebuilt_in_order(self, epjson_data):
        loader = WorkspaceLoader()
        workspace = loader.load(epjson_data)

        zone = workspace.get_by_name(EntityKind.ZONE, "Zone 1")
        relation = workspace.relation_for(zone)
        assert relation.name == "Zone 1 View Factors"
        assert [(vf.from_surface.name, vf.to_surface.name, vf.view_factor) for vf in relation.view_factors()] == [
            ("Wall 1", "Floor 1", 0.4),
            ("Window 1", "Mass 1", 0.2),
        ]

    def test_invalid_view_factors_are_reported(self, epjson_data):
        loader = WorkspaceLoader()
        loader.load(epjson_data)

        assert len(loader.errors) == 3
        assert any("surface 'Ghost' not found" in error for error in loader.errors)
        assert any("not within [0, 1]" in error for error in loader.errors)
        assert any("not part of zone 'Zone 1'" in error for error in loader.errors)

    def test_explicit_spaces(self):
        data = {
            "Zone": {"Core": {}},
            "Space": {"Core Office": {"zone_name": "Core"}, "Lost": {"zone_name": "Nowhere"}},
            "BuildingSurface:Detailed": {"Core Floor": {"zone_name": "Core", "space_name": "Core Office"}},
            "InternalMass": {"Desk": {"space_name": "Core Office"}},
        }
        workspace = WorkspaceLoader().load(data)

        office = workspace.get_by_name(EntityKind.SPACE, "Core Office")
        assert office is not None
        assert workspace.get_by_name(EntityKind.SPACE, "Lost") is None
        assert workspace.resolve_enclosing_zone(workspace.find_participant("Desk")) == \
            workspace.get_by_name(EntityKind.ZONE, "Core")

    def test_newer_zone_field_name(self):
        data = {
            "Zone": {"Core": {}},
            "BuildingSurface:Detailed": {"A": {"zone_name": "Core"}, "B": {"zone_name": "Core"}},
            "ZoneProperty:UserViewFactors:BySurfaceName": {
                "Core VF": {
                    "zone_or_zonelist_or_space_or_spacelist_name": "Core",
                    "view_factors": [{"from_surface": "A", "to_surface": "B", "view_factor": 0.5}],
                },
            },
        }
        loader = WorkspaceLoader()
        workspace = loader.load(data)
        relation = workspace.relation_for(workspace.get_by_name(EntityKind.ZONE, "Core"))
        assert relation.number_of_view_factors() == 1
        assert loader.errors == []

    def test_second_object_for_same_zone_is_rejected(self, epjson_data):
        epjson_data["ZoneProperty:UserViewFactors:BySurfaceName"]["Duplicate"] = {
            "zone_or_zonelist_name": "Zone 1",
            "view_factors": [],
        }
        loader = WorkspaceLoader()
        loader.load(epjson_data)
        assert any("already has" in error for error in loader.errors)

    def test_unknown_zone(self):
        loader = WorkspaceLoader()
        loader.load({"ZoneProperty:UserViewFactors:BySurfaceName": {"VF": {"zone_or_zonelist_name": "X"}}})
        assert loader.errors == ["ZoneProperty:UserViewFactors:BySurfaceName 'VF': zone 'X' not found"]

    def test_load_file(self, tmp_path, epjson_data):
        path = tmp_path / "building.epJSON"
        path.write_text(json.dumps(epjson_data), encoding="utf-8")

        workspace, data = WorkspaceLoader().load_file(str(path))

        assert workspace.name == "building"
        assert data == epjson_data
        assert len(workspace.relations()) == 1

    def test_load_file_rejects_unknown_extension(self, tmp_path):
        path = tmp_path / "building.txt"
        path.write_text("{}", encoding="utf-8")
        with pytest.raises(DataLoadError):
            WorkspaceLoader().load_file(str(path))

    def test_load_file_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            WorkspaceLoader().load_file(str(tmp_path / "missing.epJSON"))


class TestViewFactorTable:

    def write_csv(self, tmp_path, text):
        path = tmp_path / "view_factors.csv"
        path.write_text(text, encoding="utf-8")
        return str(path)

    def test_read_normalizes_columns(self, tmp_path):
        path = self.write_csv(tmp_path, "Zone,From Surface,To Surface,View Factor\n Zone 1 ,Wall 1,Floor 1,0.3\n")
        frame = read_view_factor_table(path)
        assert list(frame.columns) == ["zone", "from_surface", "to_surface", "view_factor"]
        assert frame.loc[0, "zone"] == "Zone 1"

    def test_read_missing_columns(self, tmp_path):
        path = self.write_csv(tmp_path, "zone,from_surface,view_factor\nZone 1,Wall 1,0.3\n")
        with pytest.raises(DataLoadError, match="to_surface"):
            read_view_factor_table(path)

    def test_read_empty_file(self, tmp_path):
        with pytest.raises(DataLoadError):
            read_view_factor_table(self.write_csv(tmp_path, ""))

    def test_read_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_view_factor_table(str(tmp_path / "nope.csv"))

    def test_apply_groups_by_zone(self, model):
        frame = pd.DataFrame([
            {"zone": "Zone 1", "from_surface": "Wall 1", "to_surface": "Floor 1", "view_factor": 0.3},
            {"zone": "Zone 1", "from_surface": "Wall 1", "to_surface": "Unknown", "view_factor": 0.3},
            {"zone": "Zone 1", "from_surface": "Window 1", "to_surface": "Mass 1", "view_factor": 0.2},
            {"zone": "Zone 1", "from_surface": "Floor 1", "to_surface": "Wall 1", "view_factor": 3.0},
            {"zone": "Zone 1", "from_surface": "Floor 1", "to_surface": "Wall 2", "view_factor": 0.1},
            {"zone": "Zone 2", "from_surface": "Wall 2", "to_surface": "Wall 2", "view_factor": 0.0},
            {"zone": "Ghost Zone", "from_surface": "Wall 1", "to_surface": "Floor 1", "view_factor": 0.1},
        ])

        results = apply_view_factor_table(model.workspace, frame)

        assert results == {"Zone 1": False, "Zone 2": True, "Ghost Zone": False}
        zone_view_factors = model.workspace.relation_for(model.zone).view_factors()
        assert [(vf.from_surface.name, vf.to_surface.name) for vf in zone_view_factors] == [
            ("Wall 1", "Floor 1"),
            ("Window 1", "Mass 1"),
        ]
        assert model.workspace.relation_for(model.other_zone).number_of_view_factors() == 1

    def test_apply_extends_existing_relation(self, model, tmp_path):
        path = self.write_csv(tmp_path, "zone,from_surface,to_surface,view_factor\nZone 1,Wall 1,Floor 1,0.3\n")
        frame = read_view_factor_table(path)

        assert apply_view_factor_table(model.workspace, frame) == {"Zone 1": True}
        assert apply_view_factor_table(model.workspace, frame) == {"Zone 1": True}
        assert model.workspace.relation_for(model.zone).number_of_view_factors() == 2
