from sqlalchemy import func, select

from src.contact_tool.models.contact import Contact
from src.contact_tool.services.column_mapper import propose_mapping
from src.contact_tool.services.contact_schema import CONTACT_SCHEMA
from src.contact_tool.services.csv_parser import build_columns
from src.contact_tool.services.contact_upsert import upsert_contacts
from src.contact_tool.services.payload_builder import build_payload

BASE_ROW = {
    "record_id": "R-1",
    "last_name": "山田",
    "first_name": "太郎",
    "email": "taro@acme.co.jp",
    "notes": "初回面談済み",
    "strength": "SALES",
}


def _count(db) -> int:
    return db.execute(select(func.count(Contact.id))).scalar_one()


def test_explicit_null_clears_optional_field_when_enabled(db, admin_user):
    upsert_contacts(db, [BASE_ROW], admin_user)
    result = upsert_contacts(
        db,
        [{"record_id": "R-1", "last_name": "山田", "first_name": "太郎", "notes": None, "email": None}],
        admin_user,
        allow_clear=True,
    )
    assert result.updated == 1
    contact = db.execute(select(Contact)).scalar_one()
    assert contact.notes is None
    assert contact.email == "taro@acme.co.jp"
    assert contact.strength == "SALES"


def test_explicit_null_is_ignored_by_default(db, admin_user):
    upsert_contacts(db, [BASE_ROW], admin_user)
    upsert_contacts(db, [{**BASE_ROW, "notes": None}], admin_user, allow_clear=False)
    contact = db.execute(select(Contact)).scalar_one()
    assert contact.notes == "初回面談済み"


def test_precedence_can_put_email_first(db, admin_user):
    upsert_contacts(db, [BASE_ROW], admin_user)
    result = upsert_contacts(
        db,
        [{**BASE_ROW, "record_id": "R-9", "notes": "別IDで再登録"}],
        admin_user,
        precedence=["email", "record_id"],
    )
    assert result.updated == 1
    assert _count(db) == 1
    assert db.execute(select(Contact)).scalar_one().record_id == "R-9"


def test_rows_without_keys_are_always_created(db, admin_user):
    row = {"last_name": "山田", "first_name": "太郎"}
    upsert_contacts(db, [row, row], admin_user)
    assert _count(db) == 2


def test_same_key_twice_in_one_batch_merges(db, admin_user):
    result = upsert_contacts(db, [BASE_ROW, {**BASE_ROW, "notes": "後の行"}], admin_user)
    assert result.created == 1
    assert result.updated == 1
    assert db.execute(select(Contact)).scalar_one().notes == "後の行"


def test_unknown_enum_value_is_stored_as_unset(db, admin_user):
    upsert_contacts(db, [{**BASE_ROW, "strength": "宇宙開発"}], admin_user)
    assert db.execute(select(Contact)).scalar_one().strength is None


def test_response_shape(db, admin_user):
    result = upsert_contacts(db, [BASE_ROW, {"last_name": "佐藤"}], admin_user)
    response = result.to_response()
    assert response.ok is True
    assert response.count == 1
    assert response.skipped[0].index == 1


def test_unrecognized_cell_with_clear_empty_keeps_stored_value(db, admin_user):
    upsert_contacts(db, [BASE_ROW], admin_user)

    columns = build_columns(["レコードID", "姓", "名", "強み", "メモ"])
    payload = build_payload(
        [("R-1", "山田", "太郎", "よくわからない", "")],
        propose_mapping(columns, CONTACT_SCHEMA),
        columns,
        CONTACT_SCHEMA,
        clear_empty=True,
    )
    result = upsert_contacts(db, [r.data for r in payload.records], admin_user, allow_clear=True)

    assert result.updated == 1
    contact = db.execute(select(Contact)).scalar_one()
    assert contact.strength == "SALES"
    assert contact.notes is None


def test_unparseable_date_leaves_field_unset(db, admin_user):
    result = upsert_contacts(
        db, [{"last_name": "山田", "first_name": "太郎", "source_created_at": "不明"}], admin_user
    )
    assert result.created == 1
    assert result.failed == []
    assert db.execute(select(Contact)).scalar_one().source_created_at is None
