"""
In-memory workspace of named, typed records.
Provides the entity lookups used by zone view factors: kind tagging,
enclosing-zone resolution, the per-zone relation registry and extensible
field groups on host records.
"""
import math
import uuid
from typing import Any, Dict, Iterable, List, Optional, Tuple

from models.entities import EntityKind, EntityRef, PARENT_FIELDS, PARTICIPANT_KINDS
from models.errors import DuplicateRelationError, NameConflictError, StaleReferenceError
from utils.logging_config import get_logger

logger = get_logger(__name__)

# Allowed target kinds for pointer fields inside extensible groups, per host record kind
EXTENSIBLE_POINTER_FIELDS = {
    EntityKind.VIEW_FACTORS: {
        "from_surface": PARTICIPANT_KINDS,
        "to_surface": PARTICIPANT_KINDS,
    },
}

EXTENSIBLE_DOUBLE_FIELDS = {
    EntityKind.VIEW_FACTORS: {"view_factor"},
}


class WorkspaceRecord:
    """A single typed record with scalar fields and optional extensible groups."""

    def __init__(self, workspace: 'Workspace', kind: EntityKind, name: str,
                 fields: Optional[Dict[str, Any]] = None, handle: Optional[str] = None):
        self.workspace = workspace
        self.handle = handle or str(uuid.uuid4())
        self.kind = kind
        self.name = name
        self.fields: Dict[str, Any] = dict(fields or {})
        self._groups: List[Dict[str, Any]] = []

    def ref(self) -> EntityRef:
        return EntityRef(self.handle, self.kind, self.name)

    def brief_description(self) -> str:
        return f"{self.kind.value} '{self.name}'"

    @property
    def num_extensible_groups(self) -> int:
        return len(self._groups)

    def extensible_groups(self) -> List[Dict[str, Any]]:
        """Return copies of the extensible groups in positional order."""
        return [dict(group) for group in self._groups]

    def push_extensible_group(self) -> int:
        """
        Append an empty extensible group.

        Returns:
            Index of the new group
        """
        self._groups.append({})
        return len(self._groups) - 1

    def erase_extensible_group(self, group_index: int) -> bool:
        """
        Remove the group at group_index, shifting later groups down by one.

        Args:
            group_index: Positional index of the group

        Returns:
            True if a group was removed
        """
        if not 0 <= group_index < len(self._groups):
            return False
        del self._groups[group_index]
        return True

    def clear_extensible_groups(self) -> None:
        self._groups.clear()

    def set_pointer(self, group_index: int, field_name: str, target: EntityRef) -> bool:
        """
        Point a group field at another workspace object.

        The target must exist in the same workspace and be of a kind the field
        accepts for this record type.

        Returns:
            True if the pointer was stored
        """
        allowed = EXTENSIBLE_POINTER_FIELDS.get(self.kind, {}).get(field_name)
        if allowed is None or not 0 <= group_index < len(self._groups):
            return False
        target_record = self.workspace.record(target.handle)
        if target_record is None or target_record.kind not in allowed:
            return False
        self._groups[group_index][field_name] = target_record.handle
        return True

    def set_double(self, group_index: int, field_name: str, value: float) -> bool:
        if field_name not in EXTENSIBLE_DOUBLE_FIELDS.get(self.kind, set()):
            return False
        if not 0 <= group_index < len(self._groups):
            return False
        try:
            number = float(value)
        except (TypeError, ValueError):
            return False
        if not math.isfinite(number):
            return False
        self._groups[group_index][field_name] = number
        return True

    def get_pointer_target(self, group_index: int, field_name: str) -> Optional[EntityRef]:
        """Resolve a group pointer field, or None if unset or the target is gone."""
        if not 0 <= group_index < len(self._groups):
            return None
        handle = self._groups[group_index].get(field_name)
        if handle is None:
            return None
        return self.workspace.get(handle)

    def get_double(self, group_index: int, field_name: str) -> Optional[float]:
        if not 0 <= group_index < len(self._groups):
            return None
        return self._groups[group_index].get(field_name)

    def __repr__(self) -> str:
        return f"<WorkspaceRecord {self.kind.value} '{self.name}' {self.handle}>"


class Workspace:
    """
    Store of named objects keyed by handle.

    Names are unique per object kind (case-insensitive, as in EnergyPlus).
    Zones own at most one view factor relation, tracked in a registry keyed by
    zone handle.
    """

    def __init__(self, name: str = "Workspace"):
        self.name = name
        self._records: Dict[str, WorkspaceRecord] = {}
        self._names: Dict[Tuple[EntityKind, str], str] = {}
        self._relations: Dict[str, Any] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, ref: EntityRef) -> bool:
        return isinstance(ref, EntityRef) and ref.handle in self._records

    # ------------------------------------------------------------------
    # Object creation
    # ------------------------------------------------------------------

    def new_record(self, kind: EntityKind, name: str, **fields) -> WorkspaceRecord:
        """
        Create and store a record.

        Args:
            kind: Object kind
            name: Object name, unique within its kind
            **fields: Scalar field values

        Returns:
            The stored record

        Raises:
            NameConflictError: If an object of the same kind already uses the name
        """
        name = str(name).strip()
        if not name:
            raise ValueError(f"{kind.value} objects require a name")
        key = (kind, name.lower())
        if key in self._names:
            raise NameConflictError(f"{kind.value} named '{name}' already exists in {self.name}")

        record = WorkspaceRecord(self, kind, name, fields)
        self._records[record.handle] = record
        self._names[key] = record.handle
        logger.debug(f"Added {record.brief_description()} to {self.name}")
        return record

    def add_zone(self, name: str) -> EntityRef:
        return self.new_record(EntityKind.ZONE, name).ref()

    def add_space(self, name: str, zone: Optional[EntityRef] = None) -> EntityRef:
        zone_handle = self._require(zone, {EntityKind.ZONE}).handle if zone is not None else None
        return self.new_record(EntityKind.SPACE, name, zone_name=zone_handle).ref()

    def add_surface(self, name: str, space: Optional[EntityRef] = None) -> EntityRef:
        space_handle = self._require(space, {EntityKind.SPACE}).handle if space is not None else None
        return self.new_record(EntityKind.SURFACE, name, space_name=space_handle).ref()

    def add_sub_surface(self, name: str, surface: Optional[EntityRef] = None) -> EntityRef:
        surface_handle = self._require(surface, {EntityKind.SURFACE}).handle if surface is not None else None
        return self.new_record(EntityKind.SUB_SURFACE, name, building_surface_name=surface_handle).ref()

    def add_internal_mass(self, name: str, space: Optional[EntityRef] = None) -> EntityRef:
        space_handle = self._require(space, {EntityKind.SPACE}).handle if space is not None else None
        return self.new_record(EntityKind.INTERNAL_MASS, name, space_name=space_handle).ref()

    def add_object(self, name: str, **fields) -> EntityRef:
        """Add an object of an untracked kind (e.g. a shading surface)."""
        return self.new_record(EntityKind.OTHER, name, **fields).ref()

    def set_space_zone(self, space: EntityRef, zone: Optional[EntityRef]) -> None:
        """Move a space to another zone, or detach it when zone is None."""
        space_record = self._require(space, {EntityKind.SPACE})
        zone_handle = self._require(zone, {EntityKind.ZONE}).handle if zone is not None else None
        space_record.fields["zone_name"] = zone_handle

    def remove(self, ref: EntityRef) -> bool:
        """
        Delete an object.

        Removing a zone also removes its view factor relation. Other objects
        pointing at the removed one are left as they are and stop resolving.

        Returns:
            True if the object existed
        """
        record = self._records.get(ref.handle)
        if record is None:
            return False

        if record.kind is EntityKind.ZONE:
            relation = self._relations.get(record.handle)
            if relation is not None:
                self.remove(relation.ref)
        elif record.kind is EntityKind.VIEW_FACTORS:
            self._relations.pop(record.fields.get("zone_name"), None)

        del self._records[record.handle]
        self._names.pop((record.kind, record.name.lower()), None)
        logger.debug(f"Removed {record.brief_description()} from {self.name}")
        return True

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def record(self, handle: str) -> Optional[WorkspaceRecord]:
        return self._records.get(handle)

    def get(self, handle: str) -> Optional[EntityRef]:
        record = self._records.get(handle)
        return record.ref() if record is not None else None

    def get_by_name(self, kind: EntityKind, name: str) -> Optional[EntityRef]:
        handle = self._names.get((kind, str(name).strip().lower()))
        return self.get(handle) if handle is not None else None

    def find_participant(self, name: str) -> Optional[EntityRef]:
        """Look a name up across Surface, SubSurface and InternalMass objects."""
        for kind in (EntityKind.SURFACE, EntityKind.SUB_SURFACE, EntityKind.INTERNAL_MASS):
            ref = self.get_by_name(kind, name)
            if ref is not None:
                return ref
        return None

    def objects_of_kind(self, kind: EntityKind) -> List[EntityRef]:
        return [record.ref() for record in self._records.values() if record.kind is kind]

    def participants_in_zone(self, zone: EntityRef) -> List[EntityRef]:
        return [
            record.ref() for record in self._records.values()
            if record.kind in PARTICIPANT_KINDS
            and self._enclosing_zone_handle(record) == zone.handle
        ]

    def tag_of(self, ref: EntityRef) -> EntityKind:
        """Classify a reference as a view factor participant kind, or OTHER."""
        record = self._records.get(ref.handle)
        kind = record.kind if record is not None else ref.kind
        return kind if kind in PARTICIPANT_KINDS else EntityKind.OTHER

    def resolve_enclosing_zone(self, ref: EntityRef) -> Optional[EntityRef]:
        """
        Find the zone enclosing an object by walking its parent fields.

        Args:
            ref: Surface, sub-surface, internal mass or space reference

        Returns:
            Zone reference, or None when the object is stale or unattached
        """
        record = self._records.get(ref.handle)
        if record is None:
            return None
        zone_handle = self._enclosing_zone_handle(record)
        return self.get(zone_handle) if zone_handle is not None else None

    def _enclosing_zone_handle(self, record: WorkspaceRecord) -> Optional[str]:
        visited = set()
        while record.kind is not EntityKind.ZONE:
            parent_field = PARENT_FIELDS.get(record.kind)
            if parent_field is None or record.handle in visited:
                return None
            visited.add(record.handle)
            parent = self._records.get(record.fields.get(parent_field))
            if parent is None:
                return None
            record = parent
        return record.handle

    def _require(self, ref: EntityRef, kinds: Iterable[EntityKind]) -> WorkspaceRecord:
        record = self._records.get(ref.handle)
        if record is None:
            raise StaleReferenceError(ref)
        allowed = set(kinds)
        if record.kind not in allowed:
            expected = ", ".join(sorted(kind.value for kind in allowed))
            raise TypeError(f"Expected {expected}, got {record.brief_description()}")
        return record

    # ------------------------------------------------------------------
    # View factor relation registry
    # ------------------------------------------------------------------

    def has_relation(self, zone: EntityRef) -> bool:
        return zone.handle in self._relations

    def relation_for(self, zone: EntityRef):
        return self._relations.get(zone.handle)

    def relations(self) -> List[Any]:
        return list(self._relations.values())

    def register_relation(self, zone: EntityRef, relation) -> None:
        """
        Attach a view factor relation to a zone.

        Raises:
            DuplicateRelationError: If the zone already owns one
        """
        zone_record = self._require(zone, {EntityKind.ZONE})
        if zone_record.handle in self._relations:
            raise DuplicateRelationError(zone_record.ref())
        self._relations[zone_record.handle] = relation

    def unregister_relation(self, zone: EntityRef) -> bool:
        return self._relations.pop(zone.handle, None) is not None

    def __repr__(self) -> str:
        return f"<Workspace '{self.name}' objects={len(self._records)} relations={len(self._relations)}>"
