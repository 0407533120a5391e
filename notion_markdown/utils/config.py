import os
from typing import Optional
from dotenv import load_dotenv
from notion_markdown.exceptions.custom_exceptions import ConfigurationError

# .env ファイルがあれば読み込む（ローカル開発用）
load_dotenv()

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}
_FALSE_VALUES = {'0', 'false', 'no', 'off'}

def _env_int(name: str, default: int) -> Optional[int]:
    """整数の環境変数を読む。不正な値は None（validate で検出）"""
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        return None

def _env_bool(name: str, default: bool) -> Optional[bool]:
    """真偽値の環境変数を読む。不正な値は None（validate で検出）"""
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return None

class Config:
    """アプリケーション設定クラス"""
    
    # ログ設定
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')
    
    # Markdown 変換設定
    MARKDOWN_INDENT_SPACES: Optional[int] = _env_int('MARKDOWN_INDENT_SPACES', 2)
    MARKDOWN_INCLUDE_UNSUPPORTED_COMMENTS: Optional[bool] = _env_bool('MARKDOWN_INCLUDE_UNSUPPORTED_COMMENTS', True)
    
    # エクスポート設定
    EXPORT_OUTPUT_DIR: str = os.getenv('EXPORT_OUTPUT_DIR', './export')
    EXPORT_GENERATE_INDEX: Optional[bool] = _env_bool('EXPORT_GENERATE_INDEX', True)
    
    @classmethod
    def validate(cls) -> None:
        """設定値の検証"""
        errors = []
        
        if cls.LOG_LEVEL.upper() not in {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}:
            errors.append(f"LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL (got '{cls.LOG_LEVEL}')")
        
        if cls.MARKDOWN_INDENT_SPACES is None or cls.MARKDOWN_INDENT_SPACES < 0:
            errors.append("MARKDOWN_INDENT_SPACES must be a non-negative integer")
        
        if cls.MARKDOWN_INCLUDE_UNSUPPORTED_COMMENTS is None:
            errors.append("MARKDOWN_INCLUDE_UNSUPPORTED_COMMENTS must be a boolean")
        
        if cls.EXPORT_GENERATE_INDEX is None:
            errors.append("EXPORT_GENERATE_INDEX must be a boolean")
        
        if errors:
            raise ConfigurationError(f"Invalid configuration: {'; '.join(errors)}")

# 設定インスタンス
config = Config()

# 初期化時に設定を検証
try:
    config.validate()
except ConfigurationError as e:
    print(f"Configuration warning: {e}")
