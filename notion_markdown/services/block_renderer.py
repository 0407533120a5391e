from typing import Any, Iterable, Optional
from notion_markdown.models.notion_models import ConversionOptions
from notion_markdown.services.block_converters import BlockConverterRegistry, is_toggleable_heading
from notion_markdown.utils.logger import setup_logger

logger = setup_logger(__name__)

CLOSING_DETAILS = "</details>\n\n"

class BlockTreeRenderer:
    """ブロックツリーを再帰的にMarkdownへ変換するレンダラー"""

    def __init__(self, registry: Optional[BlockConverterRegistry] = None):
        self.registry = registry or BlockConverterRegistry()

    def render_block(self, block: Any, indent_level: int = 0, options: Optional[ConversionOptions] = None) -> str:
        """
        1つのブロック（と子ブロック）をMarkdownに変換する

        変換中の例外はすべてここで捕捉し、エラーコメントに置き換える。
        1つのブロックの失敗が兄弟・親ブロックの変換を止めることはない。

        Args:
            block: 変換するブロック
            indent_level: ネストの深さ
            options: 変換オプション

        Returns:
            Markdown文字列
        """
        options = options or ConversionOptions()

        try:
            converter = self.registry.resolve(block.type)
            markdown = converter(block, indent_level, options)
            children = getattr(block, 'children', None) or []

            if self._is_collapsible(block):
                # 見出しが空なら <details> で囲まず、子ブロックだけを出力する
                if not markdown:
                    return self.render_blocks(children, indent_level + 1, options)
                return markdown + self.render_blocks(children, indent_level + 1, options) + CLOSING_DETAILS

            if children:
                markdown += self.render_blocks(children, indent_level + 1, options)

            return markdown

        except Exception as e:
            block_type = self._safe_attribute(block, 'type')
            block_id = self._safe_attribute(block, 'id')
            logger.error(f"Failed to convert block {block_type} ({block_id}): {str(e)}")
            return f"<!-- Error al convertir bloque {block_type}: {block_id} -->\n\n"

    def render_blocks(self, blocks: Optional[Iterable[Any]], indent_level: int = 0,
                      options: Optional[ConversionOptions] = None) -> str:
        """ブロックのリストを順番に変換して連結する"""
        if not blocks:
            return ""
        options = options or ConversionOptions()
        return "".join(self.render_block(block, indent_level, options) for block in blocks)

    @staticmethod
    def _is_collapsible(block: Any) -> bool:
        return block.type == 'toggle' or is_toggleable_heading(block)

    @staticmethod
    def _safe_attribute(block: Any, name: str) -> str:
        try:
            return str(getattr(block, name))
        except Exception:
            return "unknown"
