"""
Data loader module building workspaces from EPJSON data.
Rebuilds zones, spaces, surfaces, sub-surfaces, internal masses and user view
factors, and imports view factor tables from CSV files.
"""
import os
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from models.entities import EntityKind, EntityRef
from models.errors import (
    DuplicateRelationError,
    InvalidEndpointTypeError,
    InvalidWeightError,
    NameConflictError,
)
from models.view_factors import (
    ViewFactor,
    ZonePropertyUserViewFactorsBySurfaceName,
    get_zone_view_factors,
)
from models.workspace import Workspace
from utils.epjson_handler import EPJSONHandler, VIEW_FACTORS_OBJECT_TYPE, VIEW_FACTORS_ZONE_FIELDS
from utils.eppy_handler import EppyHandler
from utils.logging_config import get_logger

logger = get_logger(__name__)

VIEW_FACTOR_TABLE_COLUMNS = ("zone", "from_surface", "to_surface", "view_factor")


class DataLoadError(Exception):
    """Custom exception for data loading errors."""
    pass


class WorkspaceLoader:
    """
    Builds a Workspace from EPJSON-style data.

    Objects whose parents cannot be found are skipped with a warning; view
    factor entries that fail validation are skipped and described in
    self.errors.
    """

    def __init__(self, workspace_name: str = "Workspace"):
        self.workspace_name = workspace_name
        self.errors: List[str] = []
        self._implicit_spaces: Dict[str, EntityRef] = {}

    def load_file(self, file_path: str, idd_path: Optional[str] = None) -> Tuple[Workspace, Dict[str, Any]]:
        """
        Load an .epJSON/.json or .idf file.

        Args:
            file_path: Input file
            idd_path: Energy+.idd path, required for IDF files

        Returns:
            Tuple of (workspace, epjson_data)

        Raises:
            FileNotFoundError: If the input or IDD file is missing
            DataLoadError: For unsupported file types
        """
        file_ext = os.path.splitext(file_path)[1].lower()
        if file_ext in (".epjson", ".json"):
            epjson_data = EPJSONHandler().load_epjson(file_path)
        elif file_ext == ".idf":
            epjson_data = EppyHandler(idd_path).load_as_epjson(file_path)
        else:
            raise DataLoadError(f"Unsupported file format: {file_ext}. Expected .idf or .epJSON")

        self.workspace_name = os.path.splitext(os.path.basename(file_path))[0]
        return self.load(epjson_data), epjson_data

    def load(self, epjson_data: Dict[str, Any]) -> Workspace:
        """
        Build a workspace from EPJSON data.

        Args:
            epjson_data: Dictionary keyed by EPJSON object type

        Returns:
            The populated Workspace
        """
        self.errors = []
        self._implicit_spaces = {}
        workspace = Workspace(self.workspace_name)

        for name in epjson_data.get("Zone", {}):
            self._add(workspace, "Zone", name, lambda: workspace.add_zone(name))

        for name, fields in epjson_data.get("Space", {}).items():
            zone = workspace.get_by_name(EntityKind.ZONE, fields.get("zone_name", ""))
            if zone is None:
                self._skip("Space", name, f"zone '{fields.get('zone_name')}' not found")
                continue
            self._add(workspace, "Space", name, lambda: workspace.add_space(name, zone))

        for name, fields in epjson_data.get("BuildingSurface:Detailed", {}).items():
            space = self._parent_space(workspace, fields, "zone_name")
            if space is None:
                self._skip("BuildingSurface:Detailed", name, "no space or zone found")
                continue
            self._add(workspace, "BuildingSurface:Detailed", name, lambda: workspace.add_surface(name, space))

        for name, fields in epjson_data.get("FenestrationSurface:Detailed", {}).items():
            surface = workspace.get_by_name(EntityKind.SURFACE, fields.get("building_surface_name", ""))
            if surface is None:
                self._skip("FenestrationSurface:Detailed", name,
                           f"base surface '{fields.get('building_surface_name')}' not found")
                continue
            self._add(workspace, "FenestrationSurface:Detailed", name,
                      lambda: workspace.add_sub_surface(name, surface))

        for name, fields in epjson_data.get("InternalMass", {}).items():
            space = self._parent_space(workspace, fields, "zone_or_zonelist_name", "zone_name")
            if space is None:
                self._skip("InternalMass", name, "no space or zone found")
                continue
            self._add(workspace, "InternalMass", name, lambda: workspace.add_internal_mass(name, space))

        for name, fields in epjson_data.get(VIEW_FACTORS_OBJECT_TYPE, {}).items():
            self._load_view_factors(workspace, name, fields)

        logger.info(f"Loaded {len(workspace)} objects into {workspace.name} "
                    f"({len(self.errors)} problems)")
        return workspace

    def _load_view_factors(self, workspace: Workspace, name: str, fields: Dict[str, Any]) -> None:
        zone_name = next((fields[f] for f in VIEW_FACTORS_ZONE_FIELDS if fields.get(f)), "")
        zone = workspace.get_by_name(EntityKind.ZONE, zone_name)
        if zone is None:
            self._error(f"{VIEW_FACTORS_OBJECT_TYPE} '{name}': zone '{zone_name}' not found")
            return

        try:
            relation = ZonePropertyUserViewFactorsBySurfaceName(workspace, zone, name=name)
        except (DuplicateRelationError, NameConflictError) as e:
            self._error(f"{VIEW_FACTORS_OBJECT_TYPE} '{name}': {e}")
            return

        view_factors = []
        for index, row in enumerate(fields.get("view_factors", [])):
            view_factor = self._build_view_factor(workspace, row, f"'{name}' entry {index}")
            if view_factor is not None:
                view_factors.append(view_factor)

        if not relation.add_view_factors(view_factors):
            self._error(f"{VIEW_FACTORS_OBJECT_TYPE} '{name}': some view factors are not part of zone '{zone.name}'")

    def _build_view_factor(self, workspace: Workspace, row: Dict[str, Any], label: str) -> Optional[ViewFactor]:
        from_surface = workspace.find_participant(row.get("from_surface", ""))
        to_surface = workspace.find_participant(row.get("to_surface", ""))
        if from_surface is None or to_surface is None:
            missing = row.get("from_surface") if from_surface is None else row.get("to_surface")
            self._error(f"{label}: surface '{missing}' not found")
            return None
        try:
            return ViewFactor(from_surface, to_surface, row.get("view_factor"))
        except (InvalidWeightError, InvalidEndpointTypeError) as e:
            self._error(f"{label}: {e}")
            return None

    def _parent_space(self, workspace: Workspace, fields: Dict[str, Any], *zone_fields: str) -> Optional[EntityRef]:
        space_name = fields.get("space_name")
        if space_name:
            return workspace.get_by_name(EntityKind.SPACE, space_name)

        zone_name = next((fields[f] for f in zone_fields if fields.get(f)), "")
        zone = workspace.get_by_name(EntityKind.ZONE, zone_name)
        if zone is None:
            return None

        space = self._implicit_spaces.get(zone.handle)
        if space is None:
            space = workspace.add_space(self._implicit_space_name(workspace, zone), zone)
            self._implicit_spaces[zone.handle] = space
        return space

    @staticmethod
    def _implicit_space_name(workspace: Workspace, zone: EntityRef) -> str:
        name = f"{zone.name} Space"
        suffix = 1
        while workspace.get_by_name(EntityKind.SPACE, name) is not None:
            suffix += 1
            name = f"{zone.name} Space {suffix}"
        return name

    def _add(self, workspace: Workspace, object_type: str, name: str, factory) -> Optional[EntityRef]:
        try:
            return factory()
        except (NameConflictError, ValueError) as e:
            self._skip(object_type, name, str(e))
            return None

    def _skip(self, object_type: str, name: str, reason: str) -> None:
        logger.warning(f"Skipping {object_type} '{name}': {reason}")

    def _error(self, message: str) -> None:
        logger.error(message)
        self.errors.append(message)


def read_view_factor_table(file_path: str) -> pd.DataFrame:
    """
    Read a view factor table from CSV.

    Args:
        file_path: CSV with zone, from_surface, to_surface and view_factor columns

    Returns:
        DataFrame with normalized column names and stripped names

    Raises:
        FileNotFoundError: If the file does not exist
        DataLoadError: If the file is empty or columns are missing
    """
    if not os.path.isfile(file_path):
        raise FileNotFoundError(f"View factor table not found at '{file_path}'")

    try:
        frame = pd.read_csv(file_path)
    except pd.errors.EmptyDataError:
        raise DataLoadError(f"CSV file {file_path} is empty or not valid CSV.")

    frame.columns = [str(column).strip().lower().replace(" ", "_") for column in frame.columns]
    missing = [column for column in VIEW_FACTOR_TABLE_COLUMNS if column not in frame.columns]
    if missing:
        raise DataLoadError(f"CSV file {file_path} is missing columns: {', '.join(missing)}")

    for column in ("zone", "from_surface", "to_surface"):
        frame[column] = frame[column].astype("string").str.strip()

    logger.info(f"Read {len(frame)} view factor rows from {file_path}")
    return frame


def apply_view_factor_table(workspace: Workspace, frame: pd.DataFrame) -> Dict[str, bool]:
    """
    Add the rows of a view factor table to the zones they name.

    Each zone's view factors object is created if needed. Rows with unknown
    surfaces or invalid values are logged and skipped.

    Args:
        workspace: Workspace holding the zones and surfaces
        frame: Table as returned by read_view_factor_table

    Returns:
        Dictionary of zone name -> True if every row for the zone was added
    """
    missing_zone = int(frame["zone"].isna().sum())
    if missing_zone:
        logger.warning(f"Ignoring {missing_zone} view factor rows without a zone")

    results: Dict[str, bool] = {}
    for zone_name, rows in frame.groupby("zone", sort=False):
        zone_name = str(zone_name)
        zone = workspace.get_by_name(EntityKind.ZONE, zone_name)
        if zone is None:
            logger.error(f"Zone '{zone_name}' not found, skipping {len(rows)} view factor rows")
            results[zone_name] = False
            continue

        relation = get_zone_view_factors(workspace, zone)
        view_factors = []
        all_built = True
        for row in rows.itertuples(index=False):
            from_surface = workspace.find_participant(row.from_surface) if pd.notna(row.from_surface) else None
            to_surface = workspace.find_participant(row.to_surface) if pd.notna(row.to_surface) else None
            if from_surface is None or to_surface is None:
                logger.error(f"Zone '{zone_name}': unknown surface in row "
                             f"({row.from_surface}, {row.to_surface}, {row.view_factor})")
                all_built = False
                continue
            try:
                view_factors.append(ViewFactor(from_surface, to_surface, row.view_factor))
            except (InvalidWeightError, InvalidEndpointTypeError) as e:
                logger.error(f"Zone '{zone_name}': {e}")
                all_built = False

        added = relation.add_view_factors(view_factors)
        results[zone_name] = all_built and added
    return results
