"""Element paths that are repeatable in the NDW schemas.

XML cannot tell a one-item list from a scalar, so every path that may repeat is declared
here, by dotted path from the document root (namespace prefixes removed).
"""

from __future__ import annotations

from typing import Iterable, Iterator


class ArrayPaths:
    """An explicit set of dotted element paths that always decode to lists.

    A path matches when it is equal to a declared path, or ends with one on a segment
    boundary (so SOAP envelopes or extra wrappers above the declared root still match).
    Plain substring containment is never used: `a.b.c` must not match a declared `b`
    unless it ends in `.b`.
    """

    def __init__(self, paths: Iterable[str]) -> None:
        self._paths = frozenset(p.strip(".") for p in paths if p)
        self._suffixes = tuple("." + p for p in self._paths)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self.matches(path)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._paths))

    def __len__(self) -> int:
        return len(self._paths)

    def matches(self, path: str) -> bool:
        if path in self._paths:
            return True
        return bool(self._suffixes) and path.endswith(self._suffixes)


SITUATION_V3 = "messageContainer.payload.situation"
SITUATION_RECORD_V3 = "messageContainer.payload.situation.situationRecord"
ACCESS_REGULATION_V3 = "messageContainer.payload.controlledZoneTable.urbanVehicleAccessRegulation"

SOAP_PUBLICATION = "Envelope.Body.d2LogicalModel.payloadPublication"
SITUATION_V2 = f"{SOAP_PUBLICATION}.situation"
SITUATION_RECORD_V2 = f"{SOAP_PUBLICATION}.situation.situationRecord"
VMS_UNIT_RECORD = f"{SOAP_PUBLICATION}.vmsUnitTable.vmsUnitRecord"
SITE_MEASUREMENTS = f"{SOAP_PUBLICATION}.siteMeasurements"
MEASUREMENT_SITE_RECORD = f"{SOAP_PUBLICATION}.measurementSiteTable.measurementSiteRecord"

PARKING_RECORD = (
    "d2LogicalModel.payloadPublication.genericPublicationExtension"
    ".parkingTablePublication.parkingTable.parkingRecord"
)
PARKING_RECORD_STATUS = "payload.parkingRecordStatus"


DATEX_ARRAY_PATHS = ArrayPaths(
    [
        SITUATION_V3,
        ACCESS_REGULATION_V3,
        SITUATION_V2,
        VMS_UNIT_RECORD,
        SITE_MEASUREMENTS,
        MEASUREMENT_SITE_RECORD,
        PARKING_RECORD,
        PARKING_RECORD_STATUS,
        SITUATION_RECORD_V3,
        SITUATION_RECORD_V2,
    ]
)
