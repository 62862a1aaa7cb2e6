"""Record contracts for the SNCF open-data datasets.

Each contract lists the upstream fields the map reads from a dataset. The
fetch coordinator derives its ``select`` clause from the contract; the
transform layer reads records through the same field names. Optional
fields absent from a record are treated as null.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True, slots=True)
class FieldContract:
    """Expectation for a single field of an upstream record.

    Attributes:
        name: Field name as exposed by the Explore API.
        required: Whether records missing the field are dropped.
        selected: Whether the field is requested in the ``select`` clause.
            Fields that only some dataset versions expose are read when
            present but not requested, so the API never rejects the query.
    """

    name: str
    required: bool
    selected: bool = True


@dataclass(frozen=True, slots=True)
class RecordContract:
    """Full field contract for an upstream dataset.

    Attributes:
        dataset_name: Machine-readable identifier matching config.py names.
        fields: Ordered tuple of field definitions.
    """

    dataset_name: str
    fields: tuple[FieldContract, ...]

    @property
    def select_clause(self) -> str:
        """Comma-separated list of fields to request."""
        return ",".join(f.name for f in self.fields if f.selected)

    @property
    def required_fields(self) -> frozenset[str]:
        """Return set of field names a record must carry."""
        return frozenset(f.name for f in self.fields if f.required)

    def missing_fields(self, record: dict[str, object]) -> list[str]:
        """Required fields that are absent, null or blank in a record."""
        missing: list[str] = []
        for name in sorted(self.required_fields):
            value = record.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)
        return missing


# ---------------------------------------------------------------------------
# Gares de voyageurs
# position_geographique is a {"lat": .., "lon": ..} object. codes_uic may
# list several codes separated by ";".
# ---------------------------------------------------------------------------
STATION_CONTRACT: Final[RecordContract] = RecordContract(
    dataset_name="stations",
    fields=(
        FieldContract(name="nom", required=True),
        FieldContract(name="libellecourt", required=False),
        FieldContract(name="position_geographique", required=True),
        FieldContract(name="codeinsee", required=False),
        FieldContract(name="codes_uic", required=False),
        FieldContract(name="segment_drg", required=False),
    ),
)

# ---------------------------------------------------------------------------
# TGV Max
# origine_iata / destination_iata hold short SNCF codes (e.g. FRPLY).
# ---------------------------------------------------------------------------
CONNECTION_CONTRACT: Final[RecordContract] = RecordContract(
    dataset_name="connections",
    fields=(
        FieldContract(name="origine", required=True),
        FieldContract(name="destination", required=True),
        FieldContract(name="origine_iata", required=False),
        FieldContract(name="destination_iata", required=False),
        FieldContract(name="origine_uic", required=False, selected=False),
        FieldContract(name="destination_uic", required=False, selected=False),
        FieldContract(name="date", required=True),
        FieldContract(name="heure_depart", required=False),
        FieldContract(name="heure_arrivee", required=False),
        FieldContract(name="train_no", required=False),
    ),
)
