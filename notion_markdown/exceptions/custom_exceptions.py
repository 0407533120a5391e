class NotionMarkdownError(Exception):
    """基底カスタム例外クラス"""
    pass

class ConverterRegistrationError(NotionMarkdownError):
    """ブロックコンバーター登録時のエラー"""
    def __init__(self, message: str, block_type: object = None):
        super().__init__(message)
        self.block_type = block_type

class ConfigurationError(NotionMarkdownError):
    """設定関連のエラー"""
    pass

class ExportError(NotionMarkdownError):
    """エクスポート処理関連のエラー"""
    def __init__(self, message: str, path: str = None):
        super().__init__(message)
        self.path = path
