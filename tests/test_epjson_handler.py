import json

import pytest

from models.view_factors import ZonePropertyUserViewFactorsBySurfaceName
from utils.epjson_handler import EPJSONHandler, VIEW_FACTORS_OBJECT_TYPE


@pytest.fixture
def handler():
    return EPJSONHandler()


class TestFiles:

    def test_save_and_load(self, handler, tmp_path, epjson_data):
        path = tmp_path / "nested" / "model.epJSON"
        handler.save_epjson(epjson_data, str(path))
        assert handler.load_epjson(str(path)) == epjson_data

    def test_missing_file(self, handler, tmp_path):
        with pytest.raises(FileNotFoundError):
            handler.load_epjson(str(tmp_path / "missing.epJSON"))

    def test_invalid_json(self, handler, tmp_path):
        path = tmp_path / "broken.epJSON"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(json.JSONDecodeError):
            handler.load_epjson(str(path))

    def test_get_objects_by_type(self, handler, epjson_data):
        assert set(handler.get_objects_by_type(epjson_data, "Zone")) == {"Zone 1", "Zone 2"}
        assert handler.get_objects_by_type(epjson_data, "Schedule:Compact") == {}


class TestExportViewFactors:

    def test_writes_one_object_per_relation(self, handler, model):
        relation = ZonePropertyUserViewFactorsBySurfaceName(model.workspace, model.zone)
        relation.add_view_factor_between(model.wall, model.window, 0.25)
        relation.add_view_factor_between(model.mass, model.floor, 0.5)

        data = handler.export_view_factors(model.workspace, {"Zone": {}})

        assert data[VIEW_FACTORS_OBJECT_TYPE] == {
            "Zone 1 User View Factors": {
                "zone_or_zonelist_name": "Zone 1",
                "view_factors": [
                    {"from_surface": "Wall 1", "to_surface": "Window 1", "view_factor": 0.25},
                    {"from_surface": "Mass 1", "to_surface": "Floor 1", "view_factor": 0.5},
                ],
            },
        }
        assert "Zone" in data

    def test_stale_relation_is_exported_empty(self, handler, model):
        relation = ZonePropertyUserViewFactorsBySurfaceName(model.workspace, model.zone)
        relation.add_view_factor_between(model.wall, model.floor, 0.25)
        model.workspace.remove(model.floor)

        data = handler.export_view_factors(model.workspace, {})

        assert data[VIEW_FACTORS_OBJECT_TYPE]["Zone 1 User View Factors"]["view_factors"] == []

    def test_replaces_previous_section(self, handler, model, epjson_data):
        data = handler.export_view_factors(model.workspace, epjson_data)
        assert VIEW_FACTORS_OBJECT_TYPE not in data


class TestValidate:

    def test_valid_data(self, handler, epjson_data):
        assert handler.validate_epjson(epjson_data) == []

    def test_structure_errors(self, handler):
        errors = handler.validate_epjson({
            "Zone": ["Zone 1"],
            "BuildingSurface:Detailed": {"Wall": "Zone 1"},
            VIEW_FACTORS_OBJECT_TYPE: {"VF": {"view_factors": {}}},
        })
        assert errors == [
            "Object type 'Zone' should contain a dictionary of objects",
            "Object 'Wall' in 'BuildingSurface:Detailed' should be a dictionary",
            f"{VIEW_FACTORS_OBJECT_TYPE} 'VF' has no zone name",
            f"{VIEW_FACTORS_OBJECT_TYPE} 'VF' view_factors should be a list",
        ]

    def test_not_a_dictionary(self, handler):
        assert handler.validate_epjson([]) == ["EPJSON data must be a dictionary"]
