"""Import pipeline exceptions carrying operator-facing messages"""


class ImportPipelineError(Exception):
    """Base class. ``message`` is shown to the operator as is."""

    default_message = "インポート処理に失敗しました"

    def __init__(self, message: str = ""):
        self.message = message or self.default_message
        super().__init__(self.message)


class CsvFileError(ImportPipelineError):
    """The loaded file cannot be used. No partial state is kept."""


class EmptyFileError(CsvFileError):
    default_message = "CSV にヘッダ行が見つかりません"


class NoDataRowsError(CsvFileError):
    default_message = "CSV にデータ行がありません"


class FileTooLargeError(CsvFileError):
    default_message = "ファイルが大きすぎます。分割するか、件数を減らして再度アップロードしてください。"


class CsvDecodeError(CsvFileError):
    default_message = "ファイルの文字コードを認識できませんでした（UTF-8またはShift_JIS/cp932をサポートしています）"


class NoMappingError(ImportPipelineError):
    default_message = "取り込み先の列が選択されていません"


class UnknownColumnError(ImportPipelineError):
    default_message = "指定された列が存在しません"


class NoUsableRowsError(ImportPipelineError):
    default_message = "選択した列に値が見つかりませんでした"


class UnknownFieldError(ImportPipelineError):
    default_message = "指定されたフィールドは取り込み対象ではありません"
