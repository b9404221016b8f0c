import json

import httpx
import pytest

from src.contact_tool.services.batch_importer import BatchImporter
from src.contact_tool.services.errors import NoDataRowsError, NoMappingError, UnknownColumnError
from src.contact_tool.services.import_session import ImportSession

CSV = (
    "姓,名,Email,強み\n"
    "山田,太郎,taro@acme.co.jp,アイティー\n"
    ",花子,hanako@acme.co.jp,\n"
    "鈴木,一郎,taro@acme.co.jp,経理\n"
).encode("utf-8")


def _importer(status=200):
    def handler(request):
        if status != 200:
            return httpx.Response(status, json={"error": "boom"})
        return httpx.Response(200, json={"ok": True, "count": len(json.loads(request.content))})

    client = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://testserver")
    return BatchImporter(client, batch_size=500)


def test_load_file_auto_maps_columns():
    session = ImportSession()
    table = session.load_file(CSV)
    assert len(table.data_rows) == 3
    assert session.mapping == {"last_name": "col_0", "first_name": "col_1", "email": "col_2", "strength": "col_3"}
    assert session.missing_required() == []


def test_operator_changes_survive_auto_detection():
    session = ImportSession()
    session.load_file(CSV)
    session.clear_mapping("strength")
    session.set_mapping("notes", "col_3")
    assert session.auto_map() == {
        "last_name": "col_0", "first_name": "col_1", "email": "col_2", "notes": "col_3",
    }


def test_set_mapping_rejects_unknown_columns():
    session = ImportSession()
    session.load_file(CSV)
    with pytest.raises(UnknownColumnError):
        session.set_mapping("notes", "col_12")
    assert "notes" not in session.mapping


def test_loading_a_new_file_resets_state():
    session = ImportSession()
    session.load_file(CSV)
    session.clear_mapping("email")
    session.load_file("メモ\nこんにちは\n".encode("utf-8"))
    assert session.mapping == {"notes": "col_0"}
    assert not session.mapping_touched
    assert [c.label for c in session.columns] == ["メモ"]


def test_build_payload_requires_file_and_mapping():
    session = ImportSession()
    with pytest.raises(NoDataRowsError):
        session.build_payload()
    session.load_file("foo,bar\n1,2\n".encode("utf-8"))
    with pytest.raises(NoMappingError):
        session.build_payload()


def test_preview_shows_status_per_row():
    session = ImportSession()
    session.load_file(CSV)
    rows = session.preview(limit=2)
    assert rows[0]["values"]["strength"] == "IT"
    assert rows[0]["status"] == "usable"
    assert rows[1]["status"] == "invalid"
    assert rows[1]["reason"] == "必須項目が未入力です: 姓"


def test_duplicate_rows_within_file():
    session = ImportSession()
    session.load_file(CSV)
    assert session.duplicate_rows() == {3: 1}


def test_successful_run_resets_the_session():
    session = ImportSession()
    session.load_file(CSV)
    outcome = session.run(_importer())
    assert outcome.imported_count == 2
    assert outcome.skipped_row_numbers == [2]
    assert outcome.total_rows == 3
    assert not session.is_loaded
    assert session.mapping == {}


def test_failed_run_keeps_the_session_for_retry():
    session = ImportSession()
    session.load_file(CSV)
    outcome = session.run(_importer(status=500))
    assert outcome.failed_row_numbers == [1, 3]
    assert session.is_loaded
    assert session.mapping["last_name"] == "col_0"
