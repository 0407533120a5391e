import re

MAX_SLUG_LENGTH = 50

_DISALLOWED_CHARS = re.compile(r'[^a-z0-9\s-]')
_WHITESPACE_RUN = re.compile(r'\s+')

def slugify(title: str) -> str:
    """
    ページタイトルからファイル名用のスラッグを作る（拡張子なし）
    
    アクセント付き文字や記号は変換せずに削除する。
    空白のみのタイトルは "-" になる。
    """
    slug = _DISALLOWED_CHARS.sub('', title.lower())
    slug = _WHITESPACE_RUN.sub('-', slug)
    return slug[:MAX_SLUG_LENGTH]
