from collections.abc import Mapping
from typing import Any

def extract_plain_text(rich_text: Any) -> str:
    """
    リッチテキスト配列をプレーンテキストに変換する
    
    各要素は {"plain_text": ...} を優先し、なければ {"text": {"content": ...}} を使う。
    どちらの形でもない要素は空文字として扱う。区切り文字は挿入せず、トリムもしない。
    
    Args:
        rich_text: リッチテキスト要素のリスト（リスト以外は空文字を返す）
        
    Returns:
        連結されたプレーンテキスト
    """
    if not isinstance(rich_text, (list, tuple)):
        return ""
    
    parts = []
    for item in rich_text:
        if not isinstance(item, Mapping):
            continue
        
        plain_text = item.get("plain_text")
        if isinstance(plain_text, str):
            parts.append(plain_text)
            continue
        
        text = item.get("text")
        if isinstance(text, Mapping) and isinstance(text.get("content"), str):
            parts.append(text["content"])
    
    return "".join(parts)
