"""
Handles eppy IDF model loading and reshapes the objects relevant to zone view
factors into EPJSON-style dictionaries.
"""
from typing import Any, Dict, List
import os

from eppy.modeleditor import IDF

from utils.logging_config import get_logger

logger = get_logger(__name__)

# IDF object type -> (EPJSON object type, {EPJSON field: eppy field candidates})
IDF_OBJECT_FIELDS = {
    "ZONE": ("Zone", {}),
    "SPACE": ("Space", {"zone_name": ("Zone_Name",)}),
    "BUILDINGSURFACE:DETAILED": ("BuildingSurface:Detailed", {
        "zone_name": ("Zone_Name",),
        "space_name": ("Space_Name",),
    }),
    "FENESTRATIONSURFACE:DETAILED": ("FenestrationSurface:Detailed", {
        "building_surface_name": ("Building_Surface_Name",),
    }),
    "INTERNALMASS": ("InternalMass", {
        "zone_or_zonelist_name": ("Zone_or_ZoneList_Name", "Zone_Name"),
        "space_name": ("Space_Name",),
    }),
}

VIEW_FACTORS_IDF_TYPE = "ZONEPROPERTY:USERVIEWFACTORS:BYSURFACENAME"


def _field(obj, candidates) -> str:
    for name in candidates:
        try:
            value = getattr(obj, name)
        except (AttributeError, KeyError, ValueError):
            continue
        if value not in (None, ""):
            return str(value)
    return ""


class EppyHandler:
    """Handles eppy IDF model loading and provides conversion helpers."""

    def __init__(self, idd_path: str):
        """
        Initialize the EppyHandler.

        Args:
            idd_path: Path to the Energy+.idd file.
        """
        if not idd_path or not os.path.isfile(idd_path):
            raise FileNotFoundError(
                f"Energy+.idd file not found at the specified path: {idd_path}"
            )
        self.idd_path = idd_path
        self._initialize_eppy()

    def _initialize_eppy(self) -> None:
        """Initialize eppy with the IDD file."""
        if IDF.getiddname() is None:
            IDF.setiddname(self.idd_path)
        elif IDF.getiddname() != self.idd_path:
            logger.warning(f"eppy already initialized with {IDF.getiddname()}, ignoring {self.idd_path}")

    def load_idf(self, idf_path: str) -> IDF:
        """
        Load and return an IDF model.

        Args:
            idf_path: Path to the IDF file to load.

        Returns:
            IDF: The loaded IDF model.

        Raises:
            FileNotFoundError: If IDF file not found.
        """
        if not os.path.isfile(idf_path):
            raise FileNotFoundError(f"IDF file not found at '{idf_path}'")

        idf = IDF(idf_path)
        logger.info(f"Loaded IDF file: {idf_path}")
        return idf

    def load_as_epjson(self, idf_path: str) -> Dict[str, Any]:
        """Load an IDF file and return the EPJSON-style data for its zone geometry."""
        return self.to_epjson_data(self.load_idf(idf_path))

    @staticmethod
    def get_objects_by_type(idf, object_type: str) -> list:
        """
        Get all objects of a specific type from the IDF model.

        Args:
            idf: The IDF model to query.
            object_type: Upper-case IDF object type (e.g., 'ZONE').

        Returns:
            list: Matching objects, empty if the type is unknown.
        """
        try:
            return list(idf.idfobjects[object_type])
        except KeyError:
            return []

    @staticmethod
    def to_epjson_data(idf) -> Dict[str, Any]:
        """
        Reshape zones, spaces, surfaces, sub-surfaces, internal masses and user
        view factors of an eppy IDF into EPJSON-style dictionaries.

        Args:
            idf: eppy IDF model (or any object exposing idfobjects)

        Returns:
            Dictionary keyed by EPJSON object type
        """
        data: Dict[str, Any] = {}
        for idf_type, (epjson_type, field_map) in IDF_OBJECT_FIELDS.items():
            objects = {}
            for obj in EppyHandler.get_objects_by_type(idf, idf_type):
                name = _field(obj, ("Name",))
                if not name:
                    logger.warning(f"Skipping unnamed {idf_type} object")
                    continue
                fields = {}
                for epjson_field, candidates in field_map.items():
                    value = _field(obj, candidates)
                    if value:
                        fields[epjson_field] = value
                objects[name] = fields
            if objects:
                data[epjson_type] = objects

        view_factor_objects = {}
        for obj in EppyHandler.get_objects_by_type(idf, VIEW_FACTORS_IDF_TYPE):
            zone_name = _field(obj, ("Zone_or_ZoneList_Name", "Zone_or_ZoneList_or_Space_or_SpaceList_Name"))
            name = f"{zone_name} User View Factors"
            view_factor_objects[name] = {
                "zone_or_zonelist_name": zone_name,
                "view_factors": EppyHandler._view_factor_groups(obj),
            }
        if view_factor_objects:
            data["ZoneProperty:UserViewFactors:BySurfaceName"] = view_factor_objects

        logger.info(f"Converted {sum(len(objects) for objects in data.values())} IDF objects")
        return data

    @staticmethod
    def _view_factor_groups(obj) -> List[Dict[str, Any]]:
        # fieldvalues is [type, zone, from, to, value, from, to, value, ...]
        values = list(getattr(obj, "fieldvalues", []))[2:]
        groups = []
        for start in range(0, len(values) - 2, 3):
            from_surface, to_surface, view_factor = values[start:start + 3]
            if from_surface in (None, "") and to_surface in (None, ""):
                continue
            groups.append({
                "from_surface": str(from_surface),
                "to_surface": str(to_surface),
                "view_factor": view_factor,
            })
        return groups
