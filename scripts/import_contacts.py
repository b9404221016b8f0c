#!/usr/bin/env python3
"""
CSV/TSV ファイルからコンタクトを一括インポートします。
列は見出しから自動で割り当て、--map で個別に上書きできます。

使用例（プロジェクトルートで）:
  .venv/bin/python scripts/import_contacts.py contacts.csv --email cs@example.com
  .venv/bin/python scripts/import_contacts.py contacts.csv --email cs@example.com --map last_name=苗字 --map tier=
  .venv/bin/python scripts/import_contacts.py contacts.csv --dry-run   # 割り当てとプレビューのみ表示

環境変数 DATABASE_URL は設定の読み込みに必要です（サーバーには HTTP で接続します）。
"""
import argparse
import getpass
import logging
import sys
from pathlib import Path

# プロジェクトルートを path に追加
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

import httpx

from src.contact_tool.config import settings
from src.contact_tool.services.batch_importer import BatchImporter, format_outcome, format_row_numbers
from src.contact_tool.services.column_mapper import find_column_by_label
from src.contact_tool.services.errors import ImportPipelineError
from src.contact_tool.services.import_session import ImportSession


def apply_overrides(session: ImportSession, overrides: list[str]) -> None:
    for item in overrides:
        field_key, sep, label = item.partition("=")
        if not sep:
            raise ImportPipelineError(f"--map は field=列名 の形式で指定してください: {item}")
        if not label:
            session.clear_mapping(field_key)
            continue
        column = find_column_by_label(session.columns, label)
        if column is None:
            raise ImportPipelineError(f"列が見つかりません: {label}")
        session.set_mapping(field_key, column.id)


def print_mapping(session: ImportSession) -> None:
    labels = {c.id: c.label for c in session.columns}
    print("列の割り当て:")
    for spec in session.schema.fields:
        column_id = session.mapping.get(spec.key)
        print(f"  {spec.label} ({spec.key}): {labels[column_id] if column_id else '未選択'}")
    missing = session.missing_required()
    if missing:
        print(f"警告: 必須項目が未割り当てです: {', '.join(missing)}")


def main():
    parser = argparse.ArgumentParser(description="CSVからコンタクトを一括インポート")
    parser.add_argument("file", help="インポートする CSV / TSV ファイル")
    parser.add_argument("--base-url", default="http://localhost:5000", help="API サーバーの URL")
    parser.add_argument("--email", help="ログインに使うメールアドレス")
    parser.add_argument("--password", default=None, help="パスワード（未指定の場合は対話入力）")
    parser.add_argument("--map", action="append", default=[], help="field=列名 で割り当てを上書き（空で解除）")
    parser.add_argument("--batch-size", type=int, default=settings.IMPORT_BATCH_SIZE)
    parser.add_argument("--dry-run", action="store_true", help="送信せずに割り当てとプレビューを表示")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    session = ImportSession(clear_empty=settings.IMPORT_CLEAR_EMPTY_FIELDS)
    try:
        table = session.load_file(Path(args.file).read_bytes(), max_bytes=settings.CSV_MAX_UPLOAD_MB * 1024 * 1024)
        print(f"CSVファイルを読み込みました（{len(table.data_rows)}行）")
        apply_overrides(session, args.map)
        print_mapping(session)

        payload = session.build_payload()
        print(f"取り込み可能: {len(payload.records)} 行 / スキップ: {format_row_numbers(payload.skipped_row_numbers)}")
        duplicates = session.duplicate_rows(payload)
        if duplicates:
            print(f"同じキーの行（後の行で上書き）: {format_row_numbers(list(duplicates))}")
        if args.dry_run:
            for row in session.preview(limit=settings.IMPORT_PREVIEW_ROWS):
                print(f"  行{row['row_number']} [{row['status']}] {row['values']}")
            return
    except OSError as e:
        print(f"エラー: ファイルを読み込めません: {e}", file=sys.stderr)
        sys.exit(1)
    except ImportPipelineError as e:
        print(f"エラー: {e.message}", file=sys.stderr)
        sys.exit(1)

    if not args.email:
        print("エラー: --email を指定してください", file=sys.stderr)
        sys.exit(1)
    password = args.password or getpass.getpass("パスワードを入力: ")

    with httpx.Client(base_url=args.base_url, timeout=60.0) as client:
        login = client.post("/api/auth/login", json={"email": args.email, "password": password})
        if login.status_code != 200:
            print("エラー: ログインに失敗しました", file=sys.stderr)
            sys.exit(1)

        importer = BatchImporter(client, batch_size=args.batch_size)
        try:
            outcome = session.run(importer)
        except ImportPipelineError as e:
            print(f"エラー: {e.message}", file=sys.stderr)
            sys.exit(1)

    print(format_outcome(outcome))
    if not outcome.completed or outcome.failed_row_numbers:
        sys.exit(2)


if __name__ == "__main__":
    main()
