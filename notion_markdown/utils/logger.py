import logging
import os
import sys
from typing import Optional

def setup_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    ログ設定を行う
    
    Args:
        name: ロガー名
        level: ログレベル (DEBUG, INFO, WARNING, ERROR, CRITICAL)。
               未指定の場合は環境変数 LOG_LEVEL を使う
        
    Returns:
        設定されたロガーインスタンス
    """
    logger = logging.getLogger(name)
    
    # 既に設定済みの場合は返す
    if logger.handlers:
        return logger
    
    # ログレベルの設定（不正な値は INFO 扱い）
    level_name = (level or os.getenv('LOG_LEVEL') or 'INFO').upper()
    log_level = getattr(logging, level_name, None)
    if not isinstance(log_level, int):
        log_level = logging.INFO
    logger.setLevel(log_level)
    
    # ハンドラーの設定
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    
    # フォーマッターの設定
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    handler.setFormatter(formatter)
    
    logger.addHandler(handler)
    
    return logger

def set_log_level(prefix: str, level: str) -> None:
    """
    prefix で始まる設定済みロガーのログレベルをまとめて変更する
    
    Args:
        prefix: ロガー名のプレフィックス（例: "notion_markdown"）
        level: 新しいログレベル
    """
    log_level = getattr(logging, level.upper())
    for name in list(logging.Logger.manager.loggerDict):
        if name != prefix and not name.startswith(prefix + '.'):
            continue
        logger = logging.getLogger(name)
        logger.setLevel(log_level)
        for handler in logger.handlers:
            handler.setLevel(log_level)
