"""Row validation and projection of source rows into import records"""
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from src.contact_tool.services.column_mapper import FieldMapping
from src.contact_tool.services.contact_schema import TargetSchema
from src.contact_tool.services.csv_parser import Column, SourceRow, column_lookup
from src.contact_tool.services.value_normalizer import ValueNormalizer

logger = logging.getLogger(__name__)


class FieldState(str, enum.Enum):
    UNMAPPED = "unmapped"
    EMPTY = "empty"
    # cell has text that normalizes to nothing, e.g. an unknown enum spelling
    UNRECOGNIZED = "unrecognized"
    VALUE = "value"


class RowStatus(str, enum.Enum):
    USABLE = "usable"
    INVALID = "invalid"
    EMPTY = "empty"


@dataclass(frozen=True)
class PreparedRecord:
    row_number: int
    data: Dict[str, Any]


@dataclass(frozen=True)
class RowRejection:
    row_number: int
    status: RowStatus
    reason: str
    missing_fields: Tuple[str, ...] = ()


@dataclass
class PayloadResult:
    records: List[PreparedRecord] = field(default_factory=list)
    invalid_row_numbers: List[int] = field(default_factory=list)
    empty_row_numbers: List[int] = field(default_factory=list)
    rejections: List[RowRejection] = field(default_factory=list)

    @property
    def skipped_row_numbers(self) -> List[int]:
        return sorted(self.invalid_row_numbers + self.empty_row_numbers)

    @property
    def total_rows(self) -> int:
        return len(self.records) + len(self.invalid_row_numbers) + len(self.empty_row_numbers)


def resolve_field(
    row: SourceRow,
    column: Optional[Column],
    field_key: str,
    normalizer: ValueNormalizer,
) -> Tuple[FieldState, Any]:
    if column is None:
        return FieldState.UNMAPPED, None
    raw = row[column.index] if column.index < len(row) else ""
    if not raw.strip():
        return FieldState.EMPTY, None
    value = normalizer.normalize(field_key, raw)
    if value is None:
        return FieldState.UNRECOGNIZED, None
    return FieldState.VALUE, value


def has_value(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    return bool(str(value).strip())


def missing_required_fields(record: Dict[str, Any], schema: TargetSchema) -> List[str]:
    return [key for key in schema.required_keys if not has_value(record.get(key))]


def project_row(
    row: SourceRow,
    mapping: FieldMapping,
    columns_by_id: Dict[str, Column],
    schema: TargetSchema,
    normalizer: ValueNormalizer,
    clear_empty: bool = False,
) -> Dict[str, Any]:
    """Build the record for one row.

    Fields that resolve to nothing are omitted, except that with
    ``clear_empty`` a mapped optional field whose cell is empty is emitted as
    ``None`` to request clearing the stored value. Unrecognized cells are
    always omitted so they never clear anything.
    """
    record: Dict[str, Any] = {}
    for spec in schema.fields:
        column = columns_by_id.get(mapping.get(spec.key, ""))
        state, value = resolve_field(row, column, spec.key, normalizer)
        if state == FieldState.VALUE:
            record[spec.key] = value
        elif state == FieldState.EMPTY and clear_empty and not spec.required:
            record[spec.key] = None
    return record


def classify_record(record: Dict[str, Any], schema: TargetSchema) -> Tuple[RowStatus, List[str]]:
    missing = missing_required_fields(record, schema)
    if not any(has_value(v) for v in record.values()):
        if schema.required_keys:
            return RowStatus.INVALID, missing
        return RowStatus.EMPTY, []
    if missing:
        return RowStatus.INVALID, missing
    return RowStatus.USABLE, []


def build_payload(
    rows: Sequence[SourceRow],
    mapping: FieldMapping,
    columns: Sequence[Column],
    schema: TargetSchema,
    normalizer: Optional[ValueNormalizer] = None,
    clear_empty: bool = False,
) -> PayloadResult:
    """Project rows into records; row numbers are 1-based over data rows.

    A record is emitted only when every required field resolved. Other rows
    are reported in ``invalid_row_numbers`` (or ``empty_row_numbers`` when the
    schema has no required fields and the row resolved to nothing).
    """
    normalizer = normalizer or ValueNormalizer(schema)
    columns_by_id = column_lookup(columns)
    result = PayloadResult()

    for idx, row in enumerate(rows):
        row_number = idx + 1
        record = project_row(row, mapping, columns_by_id, schema, normalizer, clear_empty)
        status, missing = classify_record(record, schema)

        if status == RowStatus.USABLE:
            result.records.append(PreparedRecord(row_number=row_number, data=record))
            continue

        if status == RowStatus.INVALID:
            labels = ", ".join(schema.get(key).label for key in missing)
            result.invalid_row_numbers.append(row_number)
            result.rejections.append(RowRejection(
                row_number=row_number,
                status=status,
                reason=f"必須項目が未入力です: {labels}",
                missing_fields=tuple(missing),
            ))
        else:
            result.empty_row_numbers.append(row_number)
            result.rejections.append(RowRejection(
                row_number=row_number,
                status=status,
                reason="取り込み対象の値がありません",
            ))

    logger.info(
        f"Built payload: {len(result.records)} usable, "
        f"{len(result.invalid_row_numbers)} invalid, {len(result.empty_row_numbers)} empty"
    )
    return result
