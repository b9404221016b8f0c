"""Operator-side state of one CSV import: loaded file, column mapping, run"""
import logging
import threading
from typing import Any, Dict, List, Optional

from src.contact_tool.services.batch_importer import BatchImporter, ImportOutcome
from src.contact_tool.services.column_mapper import (
    FieldMapping,
    missing_required_mappings,
    propose_mapping,
    validate_mapping,
)
from src.contact_tool.services.contact_schema import CONTACT_SCHEMA, TargetSchema
from src.contact_tool.services.csv_parser import Column, ParsedTable, build_columns, column_lookup, parse_table
from src.contact_tool.services.dedup import find_duplicate_rows
from src.contact_tool.services.errors import NoMappingError, NoDataRowsError
from src.contact_tool.services.payload_builder import (
    PayloadResult,
    RowStatus,
    build_payload,
    classify_record,
    project_row,
)
from src.contact_tool.services.value_normalizer import ValueNormalizer

logger = logging.getLogger(__name__)


class ImportSession:
    """Owns the parsed rows and mapping for a single import.

    State is discarded when a new file is loaded and after a run that
    completes without failed rows. Auto-detection only fills the mapping
    until the operator changes it for the first time.
    """

    def __init__(
        self,
        schema: TargetSchema = CONTACT_SCHEMA,
        normalizer: Optional[ValueNormalizer] = None,
        clear_empty: bool = False,
    ):
        self.schema = schema
        self.normalizer = normalizer or ValueNormalizer(schema)
        self.clear_empty = clear_empty
        self.reset()

    def reset(self) -> None:
        self.table: Optional[ParsedTable] = None
        self.columns: List[Column] = []
        self.mapping: FieldMapping = {}
        self.mapping_touched = False

    @property
    def is_loaded(self) -> bool:
        return self.table is not None

    def load_file(self, content: bytes, max_bytes: Optional[int] = None) -> ParsedTable:
        self.reset()
        table = parse_table(content, max_bytes=max_bytes)
        self.table = table
        self.columns = build_columns(table.header_row, table.width)
        self.auto_map()
        logger.info(f"Loaded import file: {len(table.data_rows)} rows, auto-mapped {len(self.mapping)} fields")
        return table

    def auto_map(self) -> FieldMapping:
        if self.mapping_touched:
            return dict(self.mapping)
        self.mapping = propose_mapping(self.columns, self.schema)
        return dict(self.mapping)

    def set_mapping(self, field_key: str, column_id: Optional[str]) -> None:
        if not column_id:
            self.clear_mapping(field_key)
            return
        updated = {**self.mapping, field_key: column_id}
        validate_mapping(updated, self.columns, self.schema)
        self.mapping = updated
        self.mapping_touched = True

    def clear_mapping(self, field_key: str) -> None:
        self.mapping = {k: v for k, v in self.mapping.items() if k != field_key}
        self.mapping_touched = True

    def missing_required(self) -> List[str]:
        return missing_required_mappings(self.mapping, self.schema)

    def build_payload(self) -> PayloadResult:
        if self.table is None:
            raise NoDataRowsError()
        if not self.mapping:
            raise NoMappingError()
        return build_payload(
            self.table.data_rows,
            self.mapping,
            self.columns,
            self.schema,
            self.normalizer,
            clear_empty=self.clear_empty,
        )

    def preview(self, limit: int = 5) -> List[Dict[str, Any]]:
        """Mapped values of the first rows with their usable/invalid status."""
        if self.table is None:
            raise NoDataRowsError()
        columns_by_id = column_lookup(self.columns)
        rows = []
        for idx, row in enumerate(self.table.data_rows[:limit]):
            values = project_row(row, self.mapping, columns_by_id, self.schema, self.normalizer, self.clear_empty)
            status, missing = classify_record(values, self.schema)
            reason = None
            if status == RowStatus.INVALID:
                reason = "必須項目が未入力です: " + ", ".join(self.schema.get(k).label for k in missing)
            rows.append({"row_number": idx + 1, "values": values, "status": status.value, "reason": reason})
        return rows

    def duplicate_rows(self, payload: Optional[PayloadResult] = None) -> Dict[int, int]:
        payload = payload or self.build_payload()
        return find_duplicate_rows([(r.row_number, r.data) for r in payload.records])

    def run(self, importer: BatchImporter, cancel_event: Optional[threading.Event] = None) -> ImportOutcome:
        payload = self.build_payload()
        outcome = importer.run_import(
            payload.records,
            skipped_row_numbers=payload.skipped_row_numbers,
            total_rows=payload.total_rows,
            cancel_event=cancel_event,
        )
        if outcome.completed and not outcome.failed_row_numbers:
            self.reset()
        return outcome

