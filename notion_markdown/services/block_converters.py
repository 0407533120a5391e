from typing import Any, Callable, Dict, List, Optional
from collections.abc import Mapping
from notion_markdown.models.notion_models import ConversionOptions
from notion_markdown.utils.rich_text import extract_plain_text
from notion_markdown.utils.logger import setup_logger
from notion_markdown.exceptions.custom_exceptions import ConverterRegistrationError

logger = setup_logger(__name__)

# converter(block, indent_level, options) -> markdown
BlockConverter = Callable[[Any, int, ConversionOptions], str]

HEADING_LEVELS = {
    'heading_1': 1,
    'heading_2': 2,
    'heading_3': 3,
}

def _payload(block: Any) -> Dict[str, Any]:
    """ブロック固有のペイロード data[type] を取得（欠けていれば例外）"""
    payload = block.data[block.type]
    if payload is None:
        raise ValueError(f"Block {block.id} has no '{block.type}' payload")
    return payload

def _block_text(block: Any) -> str:
    return extract_plain_text(_payload(block).get('rich_text'))

def is_toggleable_heading(block: Any) -> bool:
    """折りたたみ可能な見出しブロックかどうか"""
    if block.type not in HEADING_LEVELS:
        return False
    payload = (block.data or {}).get(block.type)
    return isinstance(payload, Mapping) and payload.get('is_toggleable') is True

def convert_paragraph(block: Any, indent_level: int, options: ConversionOptions) -> str:
    text = _block_text(block)
    if not text.strip():
        return ""
    return f"{options.indent(indent_level)}{text}\n\n"

def convert_heading(block: Any, indent_level: int, options: ConversionOptions) -> str:
    """
    見出しブロックを変換

    is_toggleable の見出しは <details> の開始部分だけを出力する。
    閉じタグは BlockTreeRenderer が子ブロックの後に付ける。
    """
    text = _block_text(block)
    if not text.strip():
        return ""

    marker = '#' * HEADING_LEVELS[block.type]
    if _payload(block).get('is_toggleable') is True:
        return f"<details>\n<summary><strong>{marker} {text}</strong></summary>\n\n"
    return f"{marker} {text}\n\n"

def convert_bulleted_list_item(block: Any, indent_level: int, options: ConversionOptions) -> str:
    text = _block_text(block)
    if not text.strip():
        return ""
    return f"{options.indent(indent_level)}- {text}\n"

def convert_numbered_list_item(block: Any, indent_level: int, options: ConversionOptions) -> str:
    # 番号は常に "1."（Markdownレンダラー側で採番される）
    text = _block_text(block)
    if not text.strip():
        return ""
    return f"{options.indent(indent_level)}1. {text}\n"

def convert_to_do(block: Any, indent_level: int, options: ConversionOptions) -> str:
    payload = _payload(block)
    text = extract_plain_text(payload.get('rich_text'))
    checkbox = "[x]" if payload.get('checked') is True else "[ ]"
    return f"{options.indent(indent_level)}- {checkbox} {text}\n"

def convert_quote(block: Any, indent_level: int, options: ConversionOptions) -> str:
    return f"{options.indent(indent_level)}> {_block_text(block)}\n\n"

def convert_divider(block: Any, indent_level: int, options: ConversionOptions) -> str:
    return "---\n\n"

def convert_code(block: Any, indent_level: int, options: ConversionOptions) -> str:
    payload = _payload(block)
    text = extract_plain_text(payload.get('rich_text'))
    language = payload.get('language') or ""
    return f"{options.indent(indent_level)}```{language}\n{text}\n```\n\n"

def convert_toggle(block: Any, indent_level: int, options: ConversionOptions) -> str:
    # 閉じタグ </details> は BlockTreeRenderer が付ける
    return f"<details>\n<summary>{_block_text(block)}</summary>\n\n"

def convert_image(block: Any, indent_level: int, options: ConversionOptions) -> str:
    """
    画像ブロックを変換

    解決順:
        1. type == "external" -> external.url
        2. type == "file" -> file.url
        3. file_upload.id -> ダウンロードが必要な旨のコメント
        4. URLなし / データなし -> コメント
    """
    image = block.data.get('image')
    if image is None:
        return "<!-- Imagen sin datos -->\n\n"

    alt_text = extract_plain_text(image.get('caption')) or "Imagen"
    image_type = image.get('type')

    if image_type in ('external', 'file'):
        url = (image.get(image_type) or {}).get('url')
        if url:
            return f"![{alt_text}]({url})\n\n"

    file_upload_id = (image.get('file_upload') or {}).get('id')
    if file_upload_id:
        return f"<!-- Imagen subida (requiere descarga): {file_upload_id} -->\n\n"

    return "<!-- Imagen sin URL válida -->\n\n"

def convert_unsupported(block: Any, indent_level: int, options: ConversionOptions) -> str:
    """未登録タイプ用のフォールバック。rich_text があればテキストだけ出力する"""
    payload = block.data.get(block.type)
    text = extract_plain_text(payload.get('rich_text')) if isinstance(payload, Mapping) else ""
    if not text.strip():
        return ""

    annotation = f" *({block.type})*" if options.include_unsupported_comments else ""
    return f"{options.indent(indent_level)}{text}{annotation}\n\n"

BUILTIN_CONVERTERS: Dict[str, BlockConverter] = {
    'paragraph': convert_paragraph,
    'heading_1': convert_heading,
    'heading_2': convert_heading,
    'heading_3': convert_heading,
    'bulleted_list_item': convert_bulleted_list_item,
    'numbered_list_item': convert_numbered_list_item,
    'to_do': convert_to_do,
    'quote': convert_quote,
    'divider': convert_divider,
    'code': convert_code,
    'toggle': convert_toggle,
    'image': convert_image,
}

class BlockConverterRegistry:
    """ブロックタイプ名 -> コンバーター関数のレジストリ"""

    def __init__(self, converters: Optional[Dict[str, BlockConverter]] = None):
        self._converters: Dict[str, BlockConverter] = dict(BUILTIN_CONVERTERS)
        for block_type, converter in (converters or {}).items():
            self.register(block_type, converter)

    def register(self, block_type: str, converter: BlockConverter) -> None:
        """
        コンバーターを登録する（同じタイプは後から登録したものが優先）

        Args:
            block_type: ブロックタイプ名
            converter: (block, indent_level, options) -> str の関数

        Raises:
            ConverterRegistrationError: タイプ名またはコンバーターが不正な場合
        """
        if not isinstance(block_type, str) or not block_type:
            raise ConverterRegistrationError(f"Invalid block type: {block_type!r}", block_type)
        if not callable(converter):
            raise ConverterRegistrationError(f"Converter for '{block_type}' is not callable", block_type)

        if block_type in self._converters:
            logger.info(f"Overriding block converter: {block_type}")
        else:
            logger.info(f"Registered block converter: {block_type}")
        self._converters[block_type] = converter

    def resolve(self, block_type: str) -> BlockConverter:
        """タイプに対応するコンバーターを取得（未登録なら未対応ブロック用）"""
        return self._converters.get(block_type, convert_unsupported)

    def supported_types(self) -> List[str]:
        """登録済みのブロックタイプ一覧"""
        return list(self._converters)

    def __contains__(self, block_type: object) -> bool:
        return block_type in self._converters
