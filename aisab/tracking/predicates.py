"""
AisAB - Track Predicates

Vessel classes excluded from the statistical analyses. Ship type codes
follow ITU-R M.1371 (ship and cargo type).
"""

from aisab.tracking.track import TrackSnapshot

SMALL_VESSEL_LENGTH = 10


def is_class_b(track: TrackSnapshot) -> bool:
    return track.is_class_b


def is_unknown_type_or_size(track: TrackSnapshot) -> bool:
    """Type 0 / length 0 mean "not available" in AIS."""
    return (
        track.ship_type is None or track.ship_type == 0
        or track.ship_length is None or track.ship_length == 0
    )


def is_fishing_vessel(track: TrackSnapshot) -> bool:
    return track.ship_type == 30


def is_engaged_in_towing(track: TrackSnapshot) -> bool:
    return track.ship_type in (31, 32)


def is_special_craft(track: TrackSnapshot) -> bool:
    """Pilot, SAR, tug, port tender, law enforcement, medical and similar."""
    return track.ship_type is not None and 50 <= track.ship_type <= 59


def is_small_vessel(track: TrackSnapshot) -> bool:
    return track.ship_length is not None and 0 < track.ship_length < SMALL_VESSEL_LENGTH


DEFAULT_EXCLUSIONS = (
    ("Class B", is_class_b),
    ("Unknown type or size", is_unknown_type_or_size),
    ("Fishing vessel", is_fishing_vessel),
    ("Small vessel", is_small_vessel),
    ("Special craft", is_special_craft),
    ("Engaged in towing", is_engaged_in_towing),
)


def is_position_interpolated(track: TrackSnapshot) -> bool:
    return track.position_interpolated
