from collections.abc import Mapping
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union
from notion_markdown.models.notion_models import (
    ConversionOptions,
    ConvertedDocument,
    DocumentMetadata,
    PageWithBlocks
)
from notion_markdown.services.block_converters import BlockConverter, BlockConverterRegistry
from notion_markdown.services.block_renderer import BlockTreeRenderer
from notion_markdown.services.property_serializer import PropertySerializer, TITLE_PROPERTY_NAMES
from notion_markdown.utils.rich_text import extract_plain_text
from notion_markdown.utils.slug import slugify
from notion_markdown.utils.logger import setup_logger

logger = setup_logger(__name__)

INDEX_FILENAME = "index.md"
INDEX_TITLE = "Índice de Páginas Exportadas"
NO_BLOCKS_MESSAGE = "*Esta página no tiene contenido de bloques.*"

PagePair = Union[PageWithBlocks, Tuple[Any, Optional[Sequence[Any]]]]

class MarkdownConverterService:
    """ページ（プロパティ + ブロックツリー）をMarkdownドキュメントに変換するサービス"""

    def __init__(self, registry: Optional[BlockConverterRegistry] = None,
                 options: Optional[ConversionOptions] = None):
        self.registry = registry or BlockConverterRegistry()
        self.renderer = BlockTreeRenderer(self.registry)
        self.property_serializer = PropertySerializer()
        self.options = options or ConversionOptions()

    def register_block_converter(self, block_type: str, converter: BlockConverter) -> None:
        """独自ブロックタイプのコンバーターを登録する"""
        self.registry.register(block_type, converter)

    def get_supported_block_types(self) -> List[str]:
        """対応しているブロックタイプの一覧"""
        return self.registry.supported_types()

    def convert_page(self, page: Any, options: Optional[ConversionOptions] = None) -> ConvertedDocument:
        """
        ページのプロパティのみをMarkdownに変換する

        Args:
            page: 変換するページ
            options: 変換オプション（省略時はサービスのデフォルト）

        Returns:
            ConvertedDocumentオブジェクト
        """
        return self._build_document(page, None, include_blocks=False, options=options)

    def convert_page_with_blocks(self, page: Any, blocks: Optional[Sequence[Any]],
                                 options: Optional[ConversionOptions] = None) -> ConvertedDocument:
        """
        ページのプロパティとブロックツリーをMarkdownに変換する

        Args:
            page: 変換するページ
            blocks: ページ直下のブロック（None または空なら「内容なし」の行を出力）
            options: 変換オプション

        Returns:
            ConvertedDocumentオブジェクト
        """
        return self._build_document(page, blocks, include_blocks=True, options=options)

    def convert_pages(self, pages: Iterable[Any], options: Optional[ConversionOptions] = None) -> List[ConvertedDocument]:
        """複数ページを入力順に変換する"""
        return [self.convert_page(page, options) for page in pages]

    def convert_pages_with_blocks(self, pairs: Iterable[PagePair],
                                  options: Optional[ConversionOptions] = None) -> List[ConvertedDocument]:
        """(ページ, ブロック) の組を入力順に変換する"""
        documents = []
        for pair in pairs:
            if isinstance(pair, PageWithBlocks):
                page, blocks = pair.page, pair.blocks
            else:
                page, blocks = pair
            documents.append(self.convert_page_with_blocks(page, blocks, options))
        return documents

    def generate_index(self, pages: Sequence[Any], filenames: Optional[Sequence[str]] = None) -> ConvertedDocument:
        """
        エクスポートしたページの一覧（index.md）を作成する

        Args:
            pages: 一覧に含めるページ
            filenames: 各ページのリンク先ファイル名（pages と同じ順序）。
                       省略時はタイトルのスラッグ + ".md"

        Returns:
            index.md の ConvertedDocument
        """
        if filenames is not None and len(filenames) != len(pages):
            raise ValueError(f"Expected {len(pages)} filenames, got {len(filenames)}")

        lines = [f"# {INDEX_TITLE}\n\n", f"**Total de páginas:** {len(pages)}\n\n"]

        for position, page in enumerate(pages):
            title = self.resolve_title(page)
            filename = filenames[position] if filenames is not None else f"{slugify(title)}.md"
            lines.append(f"**[{title}](./{filename})**\n")

            created_time = getattr(page, 'created_time', None)
            last_edited_time = getattr(page, 'last_edited_time', None)
            if created_time:
                lines.append(f"- Creado: {created_time}\n")
            if last_edited_time:
                lines.append(f"- Modificado: {last_edited_time}\n")
            lines.append(f"- ID: `{page.id}`\n\n")

        logger.info(f"Generated index for {len(pages)} pages")

        return ConvertedDocument(
            filename=INDEX_FILENAME,
            content="".join(lines),
            metadata=DocumentMetadata(id="index", title=INDEX_TITLE)
        )

    def resolve_title(self, page: Any) -> str:
        """
        ページタイトルを取得する

        "title" または "Name" プロパティの title / rich_text を順に見て、
        最初に空でないテキストを返す。見つからなければ "Página {idの先頭8文字}"。
        例外は外に出さない。
        """
        title, _ = self._resolve_title_source(page)
        return title

    def _resolve_title_source(self, page: Any) -> Tuple[str, Optional[str]]:
        """タイトルと、その取得元のプロパティ名（フォールバック時は None）を返す"""
        try:
            properties = page.properties
            if isinstance(properties, Mapping):
                for name in TITLE_PROPERTY_NAMES:
                    title = self._title_from_property(properties.get(name))
                    if title:
                        return title, name
        except Exception as e:
            logger.warning(f"Failed to resolve title for page {page.id}: {str(e)}")

        return f"Página {page.id[:8]}", None

    @staticmethod
    def _title_from_property(prop: Any) -> str:
        if not isinstance(prop, Mapping):
            return ""
        for key in ("title", "rich_text"):
            if isinstance(prop.get(key), list):
                return extract_plain_text(prop[key])
        return ""

    def _build_document(self, page: Any, blocks: Optional[Sequence[Any]], include_blocks: bool,
                        options: Optional[ConversionOptions]) -> ConvertedDocument:
        options = options or self.options
        title, title_property = self._resolve_title_source(page)

        content = f"# {title}\n\n**ID de la página:** `{page.id}`\n\n"

        url = getattr(page, 'url', None)
        if url:
            content += f"[Ver en Notion]({url})\n\n"

        # タイトルとして使ったプロパティだけを一覧から除外する
        content += self.property_serializer.serialize_properties(
            self._read_properties(page),
            exclude=(title_property,) if title_property else ()
        )

        if include_blocks:
            content += "## Contenido\n\n"
            if blocks:
                content += self.renderer.render_blocks(blocks, 0, options)
            else:
                content += f"{NO_BLOCKS_MESSAGE}\n"

        logger.debug(f"Converted page {page.id} ({title})")

        return ConvertedDocument(
            filename=f"{slugify(title)}.md",
            content=content,
            metadata=DocumentMetadata(
                id=page.id,
                title=title,
                created_time=getattr(page, 'created_time', None),
                last_edited_time=getattr(page, 'last_edited_time', None)
            )
        )

    @staticmethod
    def _read_properties(page: Any) -> Any:
        # 読み取りに失敗した場合は None を渡し、シリアライザーにエラー行を出させる
        try:
            return page.properties
        except Exception as e:
            logger.error(f"Failed to access properties of page {page.id}: {str(e)}")
            return None
