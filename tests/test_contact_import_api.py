from sqlalchemy import select

from src.contact_tool.database import SessionLocal
from src.contact_tool.models.audit_log import AuditLog
from src.contact_tool.models.contact import Contact, Tier
from src.contact_tool.services.batch_importer import BatchImporter
from src.contact_tool.services.import_session import ImportSession

ROWS = [
    {"last_name": "山田", "first_name": "太郎", "email": "taro@acme.co.jp", "strength": "IT"},
    {"last_name": "佐藤", "first_name": "花子", "record_id": "R-100", "tier": "TIER1"},
]


def _contacts():
    with SessionLocal() as s:
        return s.execute(select(Contact).order_by(Contact.id)).scalars().all()


def _audit_logs():
    with SessionLocal() as s:
        return s.execute(select(AuditLog).order_by(AuditLog.id)).scalars().all()


def test_import_requires_login(client):
    response = client.post("/api/contacts/import", json=ROWS)
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    assert _contacts() == []


def test_viewer_cannot_import(login_as, viewer_user):
    client = login_as(viewer_user)
    response = client.post("/api/contacts/import", json=ROWS)
    assert response.status_code == 403
    assert response.json() == {"error": "Forbidden"}


def test_body_must_be_a_json_array(admin_client):
    response = admin_client.post("/api/contacts/import", json={"rows": ROWS})
    assert response.status_code == 400
    assert response.json() == {"error": "invalid"}

    response = admin_client.post(
        "/api/contacts/import", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400


def test_rows_are_created(admin_client):
    response = admin_client.post("/api/contacts/import", json=ROWS)
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["count"] == 2
    assert body["created"] == 2
    assert body["updated"] == 0

    taro, hanako = _contacts()
    assert taro.email == "taro@acme.co.jp"
    assert taro.strength == "IT"
    assert taro.tier == Tier.TIER2
    assert hanako.record_id == "R-100"
    assert hanako.tier == Tier.TIER1


def test_rerunning_a_batch_updates_instead_of_duplicating(admin_client):
    first = admin_client.post("/api/contacts/import", json=ROWS).json()
    second = admin_client.post("/api/contacts/import", json=ROWS).json()

    assert first["created"] == 2
    assert second["created"] == 0
    assert second["updated"] == 2
    assert second["count"] == 2
    assert len(_contacts()) == 2


def test_update_touches_only_supplied_fields(admin_client):
    admin_client.post("/api/contacts/import", json=ROWS)
    rows = [{"last_name": "山田", "first_name": "太郎", "email": "TARO@acme.co.jp", "notes": "再連絡"}]
    body = admin_client.post("/api/contacts/import", json=rows).json()

    assert body["updated"] == 1
    taro = _contacts()[0]
    assert taro.notes == "再連絡"
    assert taro.strength == "IT"


def test_record_id_wins_over_email(admin_client):
    admin_client.post("/api/contacts/import", json=ROWS)
    rows = [{"last_name": "佐藤", "first_name": "花子", "record_id": "R-100", "email": "hanako@acme.co.jp"}]
    body = admin_client.post("/api/contacts/import", json=rows).json()

    assert body["updated"] == 1
    contacts = _contacts()
    assert len(contacts) == 2
    assert contacts[1].email == "hanako@acme.co.jp"


def test_key_conflict_is_skipped_and_batch_continues(admin_client):
    admin_client.post("/api/contacts/import", json=ROWS)
    rows = [
        {"last_name": "別人", "first_name": "太郎", "record_id": "R-200", "email": "taro@acme.co.jp"},
        {"last_name": "鈴木", "first_name": "一郎", "email": "ichiro@acme.co.jp"},
    ]
    body = admin_client.post("/api/contacts/import", json=rows).json()

    assert body["created"] == 1
    assert body["skipped"] == [{"index": 0, "reason": "duplicate key conflict"}]
    assert len(_contacts()) == 3


def test_invalid_rows_fail_individually(admin_client):
    rows = [
        {"last_name": "山田", "first_name": "太郎", "email": "not-an-email"},
        "not an object",
        {"last_name": "佐藤"},
        {"last_name": "鈴木", "first_name": "一郎"},
    ]
    body = admin_client.post("/api/contacts/import", json=rows).json()

    assert body["ok"] is True
    assert body["count"] == 1
    assert [f["index"] for f in body["failed"]] == [0, 1]
    assert "email" in body["failed"][0]["error"]
    assert body["skipped"] == [{"index": 2, "reason": "missing required fields: first_name"}]
    assert [c.last_name for c in _contacts()] == ["鈴木"]


def test_enum_values_are_canonicalized_on_the_server(admin_client):
    rows = [{
        "last_name": "山田",
        "first_name": "太郎",
        "strength": "アイティー",
        "contact_method": "ライン",
        "tags": "VIP、紹介",
        "source_created_at": "2025/10/06 12:34",
    }]
    admin_client.post("/api/contacts/import", json=rows)
    taro = _contacts()[0]
    assert taro.strength == "IT"
    assert taro.contact_method == "LINE"
    assert taro.tags == ["VIP", "紹介"]
    assert taro.source_created_at.year == 2025


def test_cs_imports_are_assigned_to_the_operator(login_as, cs_user, admin_user):
    client = login_as(cs_user)
    client.post("/api/contacts/import", json=ROWS)
    assert {c.assigned_user_id for c in _contacts()} == {cs_user.id}

    client.post("/api/auth/logout")
    login_as(admin_user)
    body = client.post("/api/contacts/import", json=ROWS).json()
    assert body["updated"] == 2
    assert {c.assigned_user_id for c in _contacts()} == {cs_user.id}


def test_each_batch_is_audited(admin_client, admin_user):
    admin_client.post("/api/contacts/import", json=ROWS)
    logs = _audit_logs()
    assert len(logs) == 1
    assert logs[0].action == "CONTACTS_IMPORTED"
    assert logs[0].actor_user_id == admin_user.id
    assert logs[0].meta["created"] == 2


def test_preview_reports_mapping_and_rows(admin_client):
    content = (
        "姓,名,Email,強み,\n"
        "山田,太郎,taro@acme.co.jp,アイティー,x\n"
        ",花子,hanako@acme.co.jp,,\n"
        "鈴木,一郎,taro@acme.co.jp,,\n"
    ).encode("utf-8")
    response = admin_client.post(
        "/api/contacts/import/preview",
        files={"file": ("contacts.csv", content, "text/csv")},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["total_rows"] == 3
    assert [c["label"] for c in body["columns"]] == ["姓", "名", "Email", "強み", "Column 5"]
    assert body["mapping"] == {"last_name": "col_0", "first_name": "col_1", "email": "col_2", "strength": "col_3"}
    assert body["missing_required"] == []
    assert body["preview_rows"][0]["values"]["strength"] == "IT"
    assert body["usable_count"] == 2
    assert body["invalid_row_numbers"] == [2]
    assert body["duplicate_row_numbers"] == {"3": 1}
    assert _contacts() == []


def test_preview_rejects_header_only_file(admin_client):
    response = admin_client.post(
        "/api/contacts/import/preview",
        files={"file": ("contacts.csv", "姓,名\n".encode("utf-8"), "text/csv")},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "CSV にデータ行がありません"}


def test_preview_without_recognized_headers(admin_client):
    response = admin_client.post(
        "/api/contacts/import/preview",
        files={"file": ("contacts.csv", "foo,bar\n1,2\n".encode("utf-8"), "text/csv")},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["mapping"] == {}
    assert body["missing_required"] == ["last_name", "first_name"]
    assert body["usable_count"] == 0


def test_session_import_through_the_api(cs_client):
    content = (
        "レコードID,姓,名,メールアドレス,強み,Tier\n"
        "R-1,山田,太郎,taro@acme.co.jp,アイティー,1\n"
        "R-2,,花子,hanako@acme.co.jp,,\n"
        "R-3,鈴木,一郎,,経理,\n"
    ).encode("utf-8")
    session = ImportSession()
    session.load_file(content)
    outcome = session.run(BatchImporter(cs_client, batch_size=1))

    assert outcome.completed
    assert outcome.imported_count == 2
    assert outcome.skipped_row_numbers == [2]
    assert len(outcome.batches) == 2
    assert [(c.record_id, c.strength, c.tier) for c in _contacts()] == [
        ("R-1", "IT", Tier.TIER1),
        ("R-3", "ACCOUNTING", Tier.TIER2),
    ]


def test_session_import_stops_when_logged_out(client):
    session = ImportSession()
    session.load_file("姓,名\n山田,太郎\n佐藤,花子\n".encode("utf-8"))
    outcome = session.run(BatchImporter(client, batch_size=1))

    assert outcome.auth_aborted
    assert len(outcome.batches) == 1
    assert outcome.unsent_row_numbers == [1, 2]
    assert session.is_loaded
