"""Sequential batch submission of prepared records to the upsert endpoint"""
import enum
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence

import httpx

from src.contact_tool.config import get_settings
from src.contact_tool.services.errors import NoUsableRowsError
from src.contact_tool.services.payload_builder import PreparedRecord, has_value

logger = logging.getLogger(__name__)

DEFAULT_IMPORT_ENDPOINT = "/api/contacts/import"


class BatchState(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    SUCCEEDED = "succeeded"
    AUTH_REJECTED = "auth_rejected"
    FAILED = "failed"


class AbortReason(str, enum.Enum):
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    CANCELLED = "cancelled"


ABORT_MESSAGES = {
    AbortReason.UNAUTHORIZED: "セッションの有効期限が切れています。再度ログインしてください。",
    AbortReason.FORBIDDEN: "CSVインポートは管理者またはCS権限のみ利用できます。",
    AbortReason.CANCELLED: "インポートは中断されました。残りのバッチは送信されていません。",
}


@dataclass
class BatchResult:
    batch_index: int
    row_numbers: List[int]
    state: BatchState = BatchState.PENDING
    succeeded_count: int = 0
    created_count: int = 0
    updated_count: int = 0
    # sent but refused row by row by the endpoint (its "skipped" and "failed" entries)
    rejected_row_numbers: List[int] = field(default_factory=list)
    failed_row_numbers: List[int] = field(default_factory=list)
    error: Optional[str] = None
    abort_reason: Optional[AbortReason] = None


@dataclass
class ImportOutcome:
    total_rows: int
    imported_count: int = 0
    skipped_row_numbers: List[int] = field(default_factory=list)
    failed_row_numbers: List[int] = field(default_factory=list)
    unsent_row_numbers: List[int] = field(default_factory=list)
    aborted: Optional[AbortReason] = None
    message: str = ""
    batches: List[BatchResult] = field(default_factory=list)

    @property
    def auth_aborted(self) -> bool:
        return self.aborted in (AbortReason.UNAUTHORIZED, AbortReason.FORBIDDEN)

    @property
    def completed(self) -> bool:
        return self.aborted is None


def chunk_records(records: Sequence[PreparedRecord], batch_size: int) -> Iterator[List[PreparedRecord]]:
    for start in range(0, len(records), batch_size):
        yield list(records[start:start + batch_size])


def _error_text(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.text or response.reason_phrase


def _row_numbers_for(entries: Any, batch: List[PreparedRecord]) -> List[int]:
    numbers = []
    if not isinstance(entries, list):
        return numbers
    for entry in entries:
        index = entry.get("index") if isinstance(entry, dict) else entry
        if isinstance(index, int) and 0 <= index < len(batch):
            numbers.append(batch[index].row_number)
    return numbers


class BatchImporter:
    """Posts records to the upsert endpoint one batch at a time.

    Each request is awaited before the next one is sent. A 401/403 aborts
    the run; any other failure is recorded against its batch and the run
    continues with the next batch. Nothing is retried.
    """

    def __init__(
        self,
        client: httpx.Client,
        endpoint: str = DEFAULT_IMPORT_ENDPOINT,
        batch_size: Optional[int] = None,
    ):
        self.client = client
        self.endpoint = endpoint
        self.batch_size = batch_size or get_settings().IMPORT_BATCH_SIZE

    def send_batch(self, batch_index: int, batch: List[PreparedRecord]) -> BatchResult:
        result = BatchResult(batch_index=batch_index, row_numbers=[r.row_number for r in batch])
        body = [record.data for record in batch]

        result.state = BatchState.SENT
        try:
            response = self.client.post(self.endpoint, json=body)
        except httpx.HTTPError as e:
            result.state = BatchState.FAILED
            result.error = f"バッチ {batch_index} で失敗: {e}"
            result.failed_row_numbers = list(result.row_numbers)
            return result

        if response.status_code in (401, 403):
            result.state = BatchState.AUTH_REJECTED
            result.abort_reason = AbortReason.UNAUTHORIZED if response.status_code == 401 else AbortReason.FORBIDDEN
            result.error = ABORT_MESSAGES[result.abort_reason]
            return result

        if not response.is_success:
            result.state = BatchState.FAILED
            result.error = f"バッチ {batch_index} で失敗 (HTTP {response.status_code}): {_error_text(response)}"
            result.failed_row_numbers = list(result.row_numbers)
            return result

        try:
            data: Dict[str, Any] = response.json()
        except ValueError:
            data = {}
        count = data.get("count") if isinstance(data, dict) else None
        if not isinstance(data, dict) or data.get("ok") is not True or not isinstance(count, int):
            result.state = BatchState.FAILED
            result.error = f"バッチ {batch_index} で失敗: サーバーの応答を解釈できません"
            result.failed_row_numbers = list(result.row_numbers)
            return result

        result.state = BatchState.SUCCEEDED
        result.succeeded_count = count
        result.created_count = int(data.get("created") or 0)
        result.updated_count = int(data.get("updated") or 0)
        result.rejected_row_numbers = _row_numbers_for(data.get("skipped"), batch)
        result.failed_row_numbers = _row_numbers_for(data.get("failed"), batch)
        return result

    def run_import(
        self,
        records: Sequence[PreparedRecord],
        batch_size: Optional[int] = None,
        skipped_row_numbers: Sequence[int] = (),
        total_rows: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ImportOutcome:
        size = batch_size or self.batch_size
        usable: List[PreparedRecord] = []
        skipped = list(skipped_row_numbers)
        for record in records:
            if any(has_value(v) for v in record.data.values()):
                usable.append(record)
            else:
                skipped.append(record.row_number)
        if not usable:
            raise NoUsableRowsError()

        outcome = ImportOutcome(
            total_rows=total_rows if total_rows is not None else len(records) + len(skipped_row_numbers),
            skipped_row_numbers=skipped,
        )
        batches = list(chunk_records(usable, size))
        logger.info(f"Starting import: {len(usable)} records in {len(batches)} batches of up to {size}")

        for position, batch in enumerate(batches):
            batch_index = position + 1
            if cancel_event is not None and cancel_event.is_set():
                outcome.aborted = AbortReason.CANCELLED
                outcome.unsent_row_numbers = [r.row_number for b in batches[position:] for r in b]
                logger.info(f"Import cancelled before batch {batch_index}/{len(batches)}")
                break

            result = self.send_batch(batch_index, batch)
            outcome.batches.append(result)

            if result.state == BatchState.AUTH_REJECTED:
                outcome.aborted = result.abort_reason
                outcome.unsent_row_numbers = (
                    result.row_numbers + [r.row_number for b in batches[position + 1:] for r in b]
                )
                logger.warning(f"Import aborted at batch {batch_index}/{len(batches)}: {result.abort_reason.value}")
                break

            if result.state == BatchState.FAILED:
                logger.warning(f"Batch {batch_index}/{len(batches)} failed: {result.error}")
            else:
                logger.info(
                    f"Batch {batch_index}/{len(batches)} done: {result.succeeded_count} imported, "
                    f"{len(result.rejected_row_numbers)} rejected, {len(result.failed_row_numbers)} failed"
                )
            outcome.imported_count += result.succeeded_count
            outcome.failed_row_numbers.extend(result.rejected_row_numbers)
            outcome.failed_row_numbers.extend(result.failed_row_numbers)

        outcome.skipped_row_numbers.sort()
        outcome.failed_row_numbers.sort()
        if outcome.aborted is not None:
            outcome.message = ABORT_MESSAGES[outcome.aborted]
        elif outcome.failed_row_numbers:
            outcome.message = f"{outcome.imported_count} 件を登録 / 更新しました。一部の行でエラーが発生しました。"
        else:
            outcome.message = f"{outcome.imported_count} 件のインポートが完了しました"
        return outcome


def format_row_numbers(numbers: Sequence[int]) -> str:
    """Collapse row numbers into ranges, e.g. ``1-3, 7``."""
    ordered = sorted(set(numbers))
    if not ordered:
        return "なし"
    parts = []
    start = prev = ordered[0]
    for n in ordered[1:]:
        if n == prev + 1:
            prev = n
            continue
        parts.append(f"{start}-{prev}" if start != prev else str(start))
        start = prev = n
    parts.append(f"{start}-{prev}" if start != prev else str(start))
    return ", ".join(parts)


def format_outcome(outcome: ImportOutcome) -> str:
    lines = [
        outcome.message,
        f"対象行数: {outcome.total_rows}",
        f"登録 / 更新: {outcome.imported_count} 件",
        f"スキップ行: {format_row_numbers(outcome.skipped_row_numbers)}",
        f"失敗行: {format_row_numbers(outcome.failed_row_numbers)}",
    ]
    if outcome.unsent_row_numbers:
        lines.append(f"未送信行: {format_row_numbers(outcome.unsent_row_numbers)}")
    for batch in outcome.batches:
        if batch.state == BatchState.FAILED and batch.error:
            lines.append(batch.error)
    return "\n".join(lines)
