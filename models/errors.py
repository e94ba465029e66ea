"""
Exceptions raised by the zone view factor domain model.
Recoverable validation errors derive from ModelError; ModelInvariantError marks
states that the preceding checks should have made unreachable.
"""
from typing import Optional


class ModelError(Exception):
    """Base class for recoverable model validation errors."""
    pass


class InvalidWeightError(ModelError, ValueError):
    """View factor value outside [0, 1]."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Unable to create view factor, factor of {value!r} is not within [0, 1]")


class InvalidEndpointTypeError(ModelError, TypeError):
    """Endpoint is not a Surface, SubSurface or InternalMass."""

    def __init__(self, endpoint: str, kind, message: Optional[str] = None):
        self.endpoint = endpoint
        self.kind = kind
        kind_name = getattr(kind, "value", kind)
        super().__init__(
            message or f"{endpoint}Surface can be only of type Surface, SubSurface or InternalMass, not {kind_name}"
        )


class EndpointNotInZoneError(ModelError):
    """Endpoint does not belong to the zone owning the view factors."""

    def __init__(self, endpoint: str, participant, zone, actual_zone=None):
        self.endpoint = endpoint
        self.participant = participant
        self.zone = zone
        self.actual_zone = actual_zone
        where = f"zone '{actual_zone.name}'" if actual_zone is not None else "no zone"
        super().__init__(
            f"{endpoint}Surface={participant.brief_description()} is not part of "
            f"zone '{zone.name}' (resolves to {where})"
        )


class DuplicateRelationError(ModelError):
    """Zone already owns a ZoneProperty:UserViewFactors:BySurfaceName."""

    def __init__(self, zone):
        self.zone = zone
        super().__init__(
            f"{zone.brief_description()} already has a ZoneProperty:UserViewFactors:BySurfaceName, "
            f"cannot create a new one. Use get_zone_view_factors() instead."
        )


class StaleReferenceError(ModelError):
    """Reference no longer resolves in the workspace."""

    def __init__(self, reference, detail: Optional[str] = None):
        self.reference = reference
        message = f"Reference {reference!r} does not resolve in the workspace"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class NameConflictError(ModelError, ValueError):
    """An object of the same kind and name already exists."""
    pass


class CloneNotAllowedError(ModelError):
    """Raised for every attempt to clone zone view factors."""

    def __init__(self):
        super().__init__(
            "Cloning isn't allowed for ZoneProperty:UserViewFactors:BySurfaceName in order to guarantee "
            "that every one has a thermal zone, and that a thermal zone has only one."
        )


class ModelInvariantError(AssertionError):
    """Internal consistency failure that validation should have prevented."""
    pass
