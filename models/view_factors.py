"""
User-defined view factors for a thermal zone.

ZonePropertyUserViewFactorsBySurfaceName keeps an ordered list of
(from surface, to surface, view factor) entries for one zone, stored as
extensible groups on a host record in the workspace. Every surface, sub-surface
or internal mass referenced by an entry must belong to that zone at the time
the entry is added.
"""
import operator
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from models.entities import EntityKind, EntityRef
from models.errors import (
    CloneNotAllowedError,
    DuplicateRelationError,
    EndpointNotInZoneError,
    InvalidEndpointTypeError,
    InvalidWeightError,
    ModelInvariantError,
    StaleReferenceError,
)
from models.workspace import Workspace
from utils.logging_config import get_logger
from utils.sentry_config import capture_exception_with_context

logger = get_logger(__name__)

FROM_SURFACE_FIELD = "from_surface"
TO_SURFACE_FIELD = "to_surface"
VIEW_FACTOR_FIELD = "view_factor"


def _as_fraction(value) -> float:
    if isinstance(value, bool):
        raise InvalidWeightError(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidWeightError(value)
    # NaN fails both comparisons
    if not 0.0 <= number <= 1.0:
        raise InvalidWeightError(value)
    return number


@dataclass(frozen=True)
class ViewFactor:
    """
    A directed view factor between two participants of the same zone.

    Args:
        from_surface: Surface, SubSurface or InternalMass reference
        to_surface: Surface, SubSurface or InternalMass reference
        view_factor: Fraction in [0, 1]

    Raises:
        InvalidWeightError: If view_factor is outside [0, 1]
        InvalidEndpointTypeError: If an endpoint is not a participant kind
    """
    from_surface: EntityRef
    to_surface: EntityRef
    view_factor: float

    def __post_init__(self):
        object.__setattr__(self, "view_factor", _as_fraction(self.view_factor))
        for endpoint, surface in (("from", self.from_surface), ("to", self.to_surface)):
            if not isinstance(surface, EntityRef):
                raise InvalidEndpointTypeError(endpoint, type(surface).__name__)
            if not surface.is_participant:
                raise InvalidEndpointTypeError(endpoint, surface.kind)

    def __str__(self) -> str:
        return f"(from {self.from_surface}, to {self.to_surface}, view factor={self.view_factor})"


class ZonePropertyUserViewFactorsBySurfaceName:
    """
    Ordered view factors owned by exactly one thermal zone.

    Instances cannot be cloned: create a new one for the target zone and add
    the view factors again.
    """

    object_type = EntityKind.VIEW_FACTORS

    def __init__(self, workspace: Workspace, thermal_zone: EntityRef, name: Optional[str] = None):
        """
        Create the view factor object for a zone and register it with the workspace.

        Args:
            workspace: Workspace holding the zone
            thermal_zone: Zone reference
            name: Optional object name, defaults to "<zone> User View Factors"

        Raises:
            StaleReferenceError: If the zone is not in the workspace
            InvalidEndpointTypeError: If thermal_zone is not a Zone
            DuplicateRelationError: If the zone already has view factors
        """
        zone_record = workspace.record(thermal_zone.handle)
        if zone_record is None:
            raise StaleReferenceError(thermal_zone, "thermal zone is not in the workspace")
        if zone_record.kind is not EntityKind.ZONE:
            raise InvalidEndpointTypeError(
                "thermal_zone", zone_record.kind,
                f"View factors can only be attached to a Zone, not {zone_record.brief_description()}",
            )

        zone = zone_record.ref()
        if workspace.has_relation(zone):
            raise DuplicateRelationError(zone)

        self._workspace = workspace
        self._record = workspace.new_record(
            self.object_type,
            name or f"{zone.name} User View Factors",
            zone_name=zone.handle,
        )
        workspace.register_relation(zone, self)
        logger.debug(f"Created {self.brief_description()} for {zone.brief_description()}")

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def workspace(self) -> Workspace:
        return self._workspace

    @property
    def handle(self) -> str:
        return self._record.handle

    @property
    def name(self) -> str:
        return self._record.name

    @property
    def ref(self) -> EntityRef:
        return self._record.ref()

    @property
    def is_removed(self) -> bool:
        return self._workspace.record(self._record.handle) is None

    @property
    def thermal_zone(self) -> EntityRef:
        zone = self._workspace.get(self._record.fields.get("zone_name"))
        if zone is None or zone.kind is not EntityKind.ZONE:
            self._invariant_violation(f"{self.brief_description()} is not attached to a thermal zone")
        return zone

    def brief_description(self) -> str:
        return self._record.brief_description()

    # ------------------------------------------------------------------
    # View factors
    # ------------------------------------------------------------------

    def number_of_view_factors(self) -> int:
        return self._record.num_extensible_groups

    def __len__(self) -> int:
        return self.number_of_view_factors()

    def validate_view_factor(self, view_factor: ViewFactor) -> None:
        """
        Check that both endpoints are stored participants of this zone, from
        endpoint first.

        Raises:
            InvalidEndpointTypeError: If the workspace object an endpoint points
                at is not a Surface, SubSurface or InternalMass
            EndpointNotInZoneError: For the first endpoint outside the zone
        """
        if not isinstance(view_factor, ViewFactor):
            raise TypeError(f"Expected a ViewFactor, got {type(view_factor).__name__}")

        zone = self.thermal_zone
        for endpoint, participant in (("from", view_factor.from_surface), ("to", view_factor.to_surface)):
            record = self._workspace.record(participant.handle)
            if record is not None and self._workspace.tag_of(participant) is EntityKind.OTHER:
                raise InvalidEndpointTypeError(endpoint, record.kind)
            actual_zone = self._workspace.resolve_enclosing_zone(participant)
            if actual_zone is None or actual_zone.handle != zone.handle:
                raise EndpointNotInZoneError(endpoint, participant, zone, actual_zone)

    def add_view_factor(self, view_factor: ViewFactor) -> bool:
        """
        Append a view factor if both endpoints belong to this zone.

        Args:
            view_factor: Validated ViewFactor

        Returns:
            True if added; False if an endpoint is outside the zone, in which
            case nothing was changed
        """
        self._require_alive()
        try:
            self.validate_view_factor(view_factor)
        except (EndpointNotInZoneError, InvalidEndpointTypeError) as e:
            logger.error(f"Cannot add view factor to {self.brief_description()} because {e}")
            return False

        record = self._record
        group_index = record.push_extensible_group()
        stored_from = record.set_pointer(group_index, FROM_SURFACE_FIELD, view_factor.from_surface)
        stored_to = record.set_pointer(group_index, TO_SURFACE_FIELD, view_factor.to_surface)
        stored_value = record.set_double(group_index, VIEW_FACTOR_FIELD, view_factor.view_factor)
        if not (stored_from and stored_to and stored_value):
            record.erase_extensible_group(group_index)
            self._invariant_violation(
                f"Unable to store validated view factor {view_factor} on {self.brief_description()}",
                from_stored=stored_from,
                to_stored=stored_to,
                value_stored=stored_value,
            )

        logger.debug(f"Added view factor {view_factor} to {self.brief_description()}")
        return True

    def add_view_factor_between(self, from_surface: EntityRef, to_surface: EntityRef,
                                view_factor: float) -> bool:
        """
        Build a ViewFactor and add it.

        InvalidWeightError and InvalidEndpointTypeError propagate before the
        object is touched.
        """
        return self.add_view_factor(ViewFactor(from_surface, to_surface, view_factor))

    def add_view_factors(self, view_factors: Iterable[ViewFactor]) -> bool:
        """
        Add view factors in order, skipping the ones that fail.

        Returns:
            True only if every view factor was added
        """
        result = True
        for view_factor in view_factors:
            if not self.add_view_factor(view_factor):
                logger.error(
                    f"Could not add view factor {view_factor} to {self.brief_description()}. Continuing with others."
                )
                result = False
        return result

    def remove_view_factor(self, group_index: int) -> bool:
        """
        Remove the view factor at group_index; later entries shift down by one.

        Returns:
            False if the index is not an integer or is out of range
        """
        self._require_alive()
        if isinstance(group_index, bool):
            return False
        try:
            group_index = operator.index(group_index)
        except TypeError:
            return False
        if not 0 <= group_index < self.number_of_view_factors():
            return False
        return self._record.erase_extensible_group(group_index)

    def remove_all_view_factors(self) -> None:
        self._require_alive()
        self._record.clear_extensible_groups()

    def view_factors(self) -> List[ViewFactor]:
        """
        Return the view factors in insertion order.

        If any stored entry no longer resolves (for example a surface was
        deleted from the workspace), an empty list is returned instead of a
        partial one.
        """
        record = self._record
        result = []
        for group_index in range(record.num_extensible_groups):
            from_surface = record.get_pointer_target(group_index, FROM_SURFACE_FIELD)
            to_surface = record.get_pointer_target(group_index, TO_SURFACE_FIELD)
            value = record.get_double(group_index, VIEW_FACTOR_FIELD)

            if from_surface is None:
                logger.error(f"Could not retrieve from_surface for extensible group {group_index} "
                             f"of {self.brief_description()}.")
                return []
            if to_surface is None:
                logger.error(f"Could not retrieve to_surface for extensible group {group_index} "
                             f"of {self.brief_description()}.")
                return []
            if value is None:
                logger.error(f"Could not retrieve view_factor for extensible group {group_index} "
                             f"of {self.brief_description()}.")
                return []

            result.append(ViewFactor(from_surface, to_surface, value))
        return result

    def has_stale_references(self) -> bool:
        """True when view_factors() cannot resolve every stored entry."""
        return self.number_of_view_factors() > 0 and not self.view_factors()

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def outgoing_view_factor_sums(self) -> Dict[str, float]:
        """Sum of view factors per from surface name, in first-seen order."""
        sums: Dict[str, float] = OrderedDict()
        for view_factor in self.view_factors():
            key = view_factor.from_surface.name
            sums[key] = sums.get(key, 0.0) + view_factor.view_factor
        return dict(sums)

    def view_factor_sum_warnings(self, tolerance: float = 1e-3) -> List[str]:
        """
        Describe from surfaces whose outgoing view factors add up to more than 1.

        Nothing is enforced; EnergyPlus reports and normalizes these sums itself.
        """
        warnings = []
        for surface_name, total in self.outgoing_view_factor_sums().items():
            if total > 1.0 + tolerance:
                warnings.append(
                    f"{self.brief_description()}: view factors from '{surface_name}' sum to {total:.4f}"
                )
        return warnings

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def remove(self) -> bool:
        """Delete this object; the zone may then get a new one."""
        removed = self._workspace.remove(self.ref)
        if removed:
            logger.debug(f"Removed {self.brief_description()}")
        return removed

    def clone(self, workspace: Optional[Workspace] = None):
        raise CloneNotAllowedError()

    def __copy__(self):
        raise CloneNotAllowedError()

    def __deepcopy__(self, memo):
        raise CloneNotAllowedError()

    def _require_alive(self) -> None:
        if self.is_removed:
            raise StaleReferenceError(self.ref, "view factors object was removed")

    def _invariant_violation(self, message: str, **context) -> None:
        error = ModelInvariantError(message)
        logger.error(message)
        capture_exception_with_context(error, object_type=self.object_type.value, object_name=self.name, **context)
        raise error

    def __repr__(self) -> str:
        return (f"<ZonePropertyUserViewFactorsBySurfaceName '{self.name}' "
                f"view_factors={self.number_of_view_factors()}>")


def get_zone_view_factors(workspace: Workspace, thermal_zone: EntityRef) -> ZonePropertyUserViewFactorsBySurfaceName:
    """
    Return the zone's view factors object, creating it on first use.

    Args:
        workspace: Workspace holding the zone
        thermal_zone: Zone reference

    Returns:
        The existing or newly created ZonePropertyUserViewFactorsBySurfaceName
    """
    relation = workspace.relation_for(thermal_zone)
    if relation is None:
        relation = ZonePropertyUserViewFactorsBySurfaceName(workspace, thermal_zone)
    return relation
