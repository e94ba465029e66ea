"""
Shared fixtures: a two-zone workspace and matching EPJSON data.
"""
from types import SimpleNamespace

import pytest

from config.settings import AppSettings
from models.workspace import Workspace


@pytest.fixture
def workspace():
    return Workspace("Test Building")


@pytest.fixture
def model(workspace):
    """
    Zone 1 holds Wall 1, Floor 1 (surfaces), Window 1 (sub-surface of Wall 1)
    and Mass 1. Zone 2 holds Wall 2.
    """
    zone = workspace.add_zone("Zone 1")
    space = workspace.add_space("Space 1", zone)
    wall = workspace.add_surface("Wall 1", space)
    floor = workspace.add_surface("Floor 1", space)
    window = workspace.add_sub_surface("Window 1", wall)
    mass = workspace.add_internal_mass("Mass 1", space)

    other_zone = workspace.add_zone("Zone 2")
    other_space = workspace.add_space("Space 2", other_zone)
    other_wall = workspace.add_surface("Wall 2", other_space)

    return SimpleNamespace(
        workspace=workspace,
        zone=zone,
        space=space,
        wall=wall,
        floor=floor,
        window=window,
        mass=mass,
        other_zone=other_zone,
        other_space=other_space,
        other_wall=other_wall,
    )


@pytest.fixture
def epjson_data():
    return {
        "Version": {"Version 1": {"version_identifier": "23.2"}},
        "Zone": {"Zone 1": {}, "Zone 2": {}},
        "BuildingSurface:Detailed": {
            "Wall 1": {"zone_name": "Zone 1", "surface_type": "Wall"},
            "Floor 1": {"zone_name": "Zone 1", "surface_type": "Floor"},
            "Wall 2": {"zone_name": "Zone 2", "surface_type": "Wall"},
            "Orphan Wall": {"zone_name": "Missing Zone", "surface_type": "Wall"},
        },
        "FenestrationSurface:Detailed": {
            "Window 1": {"building_surface_name": "Wall 1", "surface_type": "Window"},
        },
        "InternalMass": {
            "Mass 1": {"zone_or_zonelist_name": "Zone 1", "construction_name": "Furniture"},
        },
        "ZoneProperty:UserViewFactors:BySurfaceName": {
            "Zone 1 View Factors": {
                "zone_or_zonelist_name": "Zone 1",
                "view_factors": [
                    {"from_surface": "Wall 1", "to_surface": "Floor 1", "view_factor": 0.4},
                    {"from_surface": "Window 1", "to_surface": "Mass 1", "view_factor": 0.2},
                    {"from_surface": "Wall 1", "to_surface": "Wall 2", "view_factor": 0.3},
                    {"from_surface": "Floor 1", "to_surface": "Ghost", "view_factor": 0.1},
                    {"from_surface": "Wall 1", "to_surface": "Floor 1", "view_factor": 1.4},
                ],
            },
        },
    }


@pytest.fixture
def settings(tmp_path):
    app_settings = AppSettings(str(tmp_path / "settings.json"))
    app_settings.update({
        "log_dir": str(tmp_path / "logs"),
        "last_output_directory": str(tmp_path / "output"),
    }, auto_save=False)
    return app_settings
