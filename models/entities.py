"""
Entity kinds and references for workspace objects.
"""
from dataclasses import dataclass, field
from enum import Enum


class EntityKind(Enum):
    """Object types known to the workspace, valued by their EnergyPlus names."""
    ZONE = "Zone"
    SPACE = "Space"
    SURFACE = "BuildingSurface:Detailed"
    SUB_SURFACE = "FenestrationSurface:Detailed"
    INTERNAL_MASS = "InternalMass"
    VIEW_FACTORS = "ZoneProperty:UserViewFactors:BySurfaceName"
    OTHER = "Other"

    @property
    def is_participant(self) -> bool:
        return self in PARTICIPANT_KINDS


PARTICIPANT_KINDS = frozenset({
    EntityKind.SURFACE,
    EntityKind.SUB_SURFACE,
    EntityKind.INTERNAL_MASS,
})

# Field holding the parent handle, walked until a zone is reached
PARENT_FIELDS = {
    EntityKind.SUB_SURFACE: "building_surface_name",
    EntityKind.SURFACE: "space_name",
    EntityKind.INTERNAL_MASS: "space_name",
    EntityKind.SPACE: "zone_name",
}


@dataclass(frozen=True)
class EntityRef:
    """
    Opaque handle to an object stored in a Workspace.

    The name is carried for display only and does not take part in equality.
    """
    handle: str
    kind: EntityKind
    name: str = field(default="", compare=False)

    @property
    def is_participant(self) -> bool:
        return self.kind.is_participant

    def brief_description(self) -> str:
        return f"{self.kind.value} '{self.name}'"

    def __str__(self) -> str:
        return f"{self.kind.value}='{self.name}'"
