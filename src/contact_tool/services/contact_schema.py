"""Target schema for contact imports: fields, auto-mapping keywords and enum alias tables"""
import enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


class FieldKind(str, enum.Enum):
    TEXT = "text"
    EMAIL = "email"
    ENUM = "enum"
    DATE = "date"
    TAGS = "tags"


@dataclass(frozen=True)
class EnumSpec:
    """Closed code list. ``labels`` keeps code order; ``aliases`` lists extra spellings per code."""
    labels: Dict[str, str]
    aliases: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def codes(self) -> List[str]:
        return list(self.labels.keys())


@dataclass(frozen=True)
class FieldSpec:
    key: str
    label: str
    kind: FieldKind = FieldKind.TEXT
    required: bool = False
    keywords: Tuple[str, ...] = ()
    enum: Optional[EnumSpec] = None


@dataclass(frozen=True)
class TargetSchema:
    """Ordered field list. Order is the auto-mapping priority."""
    fields: Tuple[FieldSpec, ...]

    def __post_init__(self):
        keys = [f.key for f in self.fields]
        if len(set(keys)) != len(keys):
            raise ValueError("field keys must be unique")
        for f in self.fields:
            if f.kind == FieldKind.ENUM and f.enum is None:
                raise ValueError(f"enum field '{f.key}' has no code list")

    def get(self, key: str) -> FieldSpec:
        for f in self.fields:
            if f.key == key:
                return f
        raise KeyError(key)

    @property
    def keys(self) -> List[str]:
        return [f.key for f in self.fields]

    @property
    def required_keys(self) -> List[str]:
        return [f.key for f in self.fields if f.required]


STRENGTH_ENUM = EnumSpec(
    labels={
        "HR": "人事",
        "IT": "IT",
        "ACCOUNTING": "会計",
        "ADVERTISING": "広告",
        "MANAGEMENT": "経営",
        "SALES": "営業",
        "MANUFACTURING": "製造",
        "MEDICAL": "医療",
        "FINANCE": "金融",
    },
    aliases={
        "HR": ["人材", "human resources"],
        "IT": ["アイティー", "情報システム"],
        "ACCOUNTING": ["経理"],
        "ADVERTISING": ["マーケ", "マーケティング", "marketing"],
        "MANAGEMENT": ["経営企画"],
        "MANUFACTURING": ["ものづくり"],
        "MEDICAL": ["ヘルスケア", "healthcare"],
    },
)

CONTACT_METHOD_ENUM = EnumSpec(
    labels={
        "FACEBOOK": "Facebook",
        "LINE": "LINE",
        "EMAIL": "メール",
        "PHONE": "電話",
        "SLACK": "Slack",
    },
    aliases={
        "FACEBOOK": ["fb", "フェイスブック", "messenger"],
        "LINE": ["ライン"],
        "EMAIL": ["mail", "e-mail", "メールアドレス", "eメール"],
        "PHONE": ["tel", "telephone", "携帯", "電話番号"],
        "SLACK": ["スラック"],
    },
)

TIER_ENUM = EnumSpec(
    labels={
        "TIER1": "Tier 1",
        "TIER2": "Tier 2",
    },
    aliases={
        "TIER1": ["1", "t1", "tier-1", "ティア1"],
        "TIER2": ["2", "t2", "tier-2", "ティア2"],
    },
)


CONTACT_SCHEMA = TargetSchema(fields=(
    FieldSpec("record_id", "レコードID", keywords=("record_id", "recordid", "record id", "レコードid", "id")),
    FieldSpec("last_name", "姓", required=True, keywords=("last_name", "lastname", "last name", "姓", "苗字", "名字", "family name")),
    FieldSpec("first_name", "名", required=True, keywords=("first_name", "firstname", "first name", "名", "名前", "given name")),
    FieldSpec("email", "メールアドレス", kind=FieldKind.EMAIL, keywords=("email", "e-mail", "mail", "メール", "メールアドレス", "eメール")),
    FieldSpec("support_priority", "サポート優先度", keywords=("support_priority", "サポート優先度", "優先度")),
    FieldSpec("pattern", "パターン", keywords=("pattern", "パターン")),
    FieldSpec("contact_method", "連絡手段", kind=FieldKind.ENUM, enum=CONTACT_METHOD_ENUM,
              keywords=("contact_method", "contact method", "contactpref", "連絡手段", "連絡方法")),
    FieldSpec("meeting_status", "面談状況", keywords=("meeting_status", "面談状況", "面談ステータス")),
    FieldSpec("registration_status", "登録状況", keywords=("registration_status", "登録状況", "登録ステータス")),
    FieldSpec("line_registered", "LINE登録", keywords=("line_registered", "line登録")),
    FieldSpec("phone_number", "電話番号", keywords=("phone_number", "phone", "tel", "電話番号", "電話")),
    FieldSpec("acquisition_source", "流入経路", keywords=("acquisition_source", "流入経路", "流入元")),
    FieldSpec("facebook_url", "Facebook URL", keywords=("facebook_url", "facebook url", "facebook", "fb")),
    FieldSpec("list_acquired", "リスト取得", keywords=("list_acquired", "リスト取得")),
    FieldSpec("matching_list_url", "マッチングリストURL", keywords=("matching_list_url", "マッチングリストurl")),
    FieldSpec("contact_owner", "コンタクト担当者", keywords=("contact_owner", "コンタクト担当者", "担当者")),
    FieldSpec("source_created_at", "作成日", kind=FieldKind.DATE, keywords=("source_created_at", "作成日", "作成日時", "created at")),
    FieldSpec("marketing_contact_status", "マーケティングコンタクトステータス",
              keywords=("marketing_contact_status", "マーケティングコンタクトステータス")),
    FieldSpec("strength", "強み", kind=FieldKind.ENUM, enum=STRENGTH_ENUM,
              keywords=("strength", "strengths", "強み", "得意分野", "業界")),
    FieldSpec("notes", "メモ", keywords=("notes", "note", "メモ", "備考")),
    FieldSpec("tier", "Tier", kind=FieldKind.ENUM, enum=TIER_ENUM, keywords=("tier", "ティア")),
    FieldSpec("tags", "タグ", kind=FieldKind.TAGS, keywords=("tags", "tag", "タグ")),
))
