"""
EPJSON Handler for EnergyPlus files
Handles EPJSON file loading, saving and validation using native Python JSON,
and writes zone view factors back as ZoneProperty:UserViewFactors:BySurfaceName
objects.
"""
import json
import os
from typing import Dict, List, Any

from models.entities import EntityKind
from models.workspace import Workspace
from utils.logging_config import get_logger

logger = get_logger(__name__)

VIEW_FACTORS_OBJECT_TYPE = EntityKind.VIEW_FACTORS.value

# Zone field name of ZoneProperty:UserViewFactors:BySurfaceName across EnergyPlus versions
VIEW_FACTORS_ZONE_FIELDS = ("zone_or_zonelist_name", "zone_or_zonelist_or_space_or_spacelist_name")


class EPJSONHandler:
    """Handles EPJSON files using native Python JSON operations."""

    def load_epjson(self, file_path: str) -> Dict[str, Any]:
        """
        Load EPJSON file into Python dictionary.

        Args:
            file_path: Path to the EPJSON file

        Returns:
            Dictionary containing the EPJSON data

        Raises:
            FileNotFoundError: If file not found
            json.JSONDecodeError: If file is not valid JSON
        """
        if not os.path.exists(file_path):
            raise FileNotFoundError(f"EPJSON file not found at '{file_path}'")

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in file '{file_path}': {e}")
            raise

        logger.info(f"Successfully loaded EPJSON file: {file_path}")
        logger.info(f"EPJSON data contains {len(data)} object types")
        return data

    def save_epjson(self, data: Dict[str, Any], file_path: str) -> None:
        """
        Save Python dictionary as EPJSON file.

        Args:
            data: Dictionary containing EPJSON data
            file_path: Path where to save the EPJSON file
        """
        directory = os.path.dirname(file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error(f"Error saving EPJSON file '{file_path}': {e}")
            raise

        logger.info(f"Successfully saved EPJSON file: {file_path}")

    def get_objects_by_type(self, epjson_data: Dict[str, Any], object_type: str) -> Dict[str, Dict[str, Any]]:
        """
        Get all objects of a specific type from EPJSON data.

        Args:
            epjson_data: The EPJSON data dictionary
            object_type: The type of objects to retrieve (e.g., 'Zone', 'BuildingSurface:Detailed')

        Returns:
            Dictionary of objects with their names as keys
        """
        objects = epjson_data.get(object_type, {})
        logger.debug(f"Retrieved {len(objects)} objects of type '{object_type}'")
        return objects

    def export_view_factors(self, workspace: Workspace, epjson_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Replace the ZoneProperty:UserViewFactors:BySurfaceName section of
        epjson_data with the view factors held by the workspace.

        Relations with unresolvable entries are written with an empty list.

        Args:
            workspace: Workspace holding the view factor objects
            epjson_data: The EPJSON data dictionary to modify

        Returns:
            The modified epjson_data
        """
        section = {}
        for relation in workspace.relations():
            view_factors = relation.view_factors()
            if relation.has_stale_references():
                logger.warning(f"{relation.brief_description()} has unresolvable entries, exporting no view factors")

            section[relation.name] = {
                VIEW_FACTORS_ZONE_FIELDS[0]: relation.thermal_zone.name,
                "view_factors": [
                    {
                        "from_surface": view_factor.from_surface.name,
                        "to_surface": view_factor.to_surface.name,
                        "view_factor": view_factor.view_factor,
                    }
                    for view_factor in view_factors
                ],
            }

        if section:
            epjson_data[VIEW_FACTORS_OBJECT_TYPE] = section
        else:
            epjson_data.pop(VIEW_FACTORS_OBJECT_TYPE, None)

        logger.info(f"Exported {len(section)} {VIEW_FACTORS_OBJECT_TYPE} objects")
        return epjson_data

    def validate_epjson(self, epjson_data: Dict[str, Any]) -> List[str]:
        """
        Perform basic structural validation of EPJSON data.

        Args:
            epjson_data: The EPJSON data to validate

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not isinstance(epjson_data, dict):
            errors.append("EPJSON data must be a dictionary")
            return errors

        for obj_type, objects in epjson_data.items():
            if not isinstance(objects, dict):
                errors.append(f"Object type '{obj_type}' should contain a dictionary of objects")
                continue

            for obj_name, obj_data in objects.items():
                if not isinstance(obj_data, dict):
                    errors.append(f"Object '{obj_name}' in '{obj_type}' should be a dictionary")

        for obj_name, obj_data in epjson_data.get(VIEW_FACTORS_OBJECT_TYPE, {}).items():
            if not isinstance(obj_data, dict):
                continue
            if not any(obj_data.get(field) for field in VIEW_FACTORS_ZONE_FIELDS):
                errors.append(f"{VIEW_FACTORS_OBJECT_TYPE} '{obj_name}' has no zone name")
            if not isinstance(obj_data.get("view_factors", []), list):
                errors.append(f"{VIEW_FACTORS_OBJECT_TYPE} '{obj_name}' view_factors should be a list")

        return errors
