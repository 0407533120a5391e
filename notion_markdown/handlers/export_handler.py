from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from pydantic import ValidationError
from notion_markdown.models.notion_models import Block, Page, PageWithBlocks, ConversionOptions, ConvertedDocument
from notion_markdown.services.markdown_converter import MarkdownConverterService, INDEX_FILENAME
from notion_markdown.utils.config import config
from notion_markdown.utils.logger import setup_logger
from notion_markdown.exceptions.custom_exceptions import (
    NotionMarkdownError,
    ConfigurationError,
    ExportError
)

logger = setup_logger(__name__)

class ExportHandler:
    """Notionエクスポート（JSON）をMarkdownドキュメント群に変換するハンドラー"""

    def __init__(self, converter: Optional[MarkdownConverterService] = None,
                 options: Optional[ConversionOptions] = None,
                 generate_index: Optional[bool] = None):
        try:
            self.options = options or ConversionOptions.from_config(config)
        except ValidationError as e:
            logger.error(f"Invalid conversion options in configuration: {str(e)}")
            raise ConfigurationError(f"Invalid conversion options: {str(e)}")

        self.converter = converter or MarkdownConverterService(options=self.options)
        self.generate_index = config.EXPORT_GENERATE_INDEX if generate_index is None else generate_index
        logger.info("Export handler initialized successfully")

    def process_export(self, payload: Union[Dict[str, Any], List[Any]]) -> Dict[str, Any]:
        """
        エクスポート処理のメイン関数

        Args:
            payload: {"pages": [{"page": <ページ>, "blocks": [<ブロック>...]}, ...]}
                     またはページエントリのリスト

        Returns:
            処理結果の辞書（documents に ConvertedDocument のリスト）
        """
        try:
            logger.info("Starting markdown export")

            # 1. ペイロードからモデルを作成
            entries = self._parse_payload(payload)
            logger.info(f"Parsed {len(entries)} pages from export payload")

            # 2. 各ページを変換
            documents = self._assign_unique_filenames(
                self.converter.convert_pages_with_blocks(entries, self.options)
            )

            # 3. インデックスの作成（リンク先は重複解消後のファイル名）
            if self.generate_index:
                documents.append(self.converter.generate_index(
                    [entry.page for entry in entries],
                    [document.filename for document in documents]
                ))

            result = {
                'success': True,
                'message': f'Converted {len(entries)} pages to markdown',
                'details': {
                    'page_count': len(entries),
                    'document_count': len(documents),
                    'index_generated': bool(self.generate_index),
                    'filenames': [document.filename for document in documents]
                },
                'documents': documents
            }

            logger.info(f"Markdown export completed successfully: {result['message']}")
            return result

        except NotionMarkdownError:
            # カスタム例外はそのまま再発生
            raise
        except Exception as e:
            logger.error(f"Unexpected error in markdown export: {str(e)}")
            raise ExportError(f"Markdown export failed: {str(e)}")

    def write_documents(self, documents: List[ConvertedDocument], output_dir: Union[str, Path]) -> List[Path]:
        """
        ドキュメントをファイルに書き出す

        Args:
            documents: 書き出すドキュメント
            output_dir: 出力ディレクトリ（なければ作成）

        Returns:
            書き出したファイルのパス

        Raises:
            ExportError: ファイル名が重複している場合（何も書き出さない）、または書き込みに失敗した場合
        """
        directory = Path(output_dir)

        duplicates = sorted(name for name, count in Counter(d.filename for d in documents).items() if count > 1)
        if duplicates:
            logger.error(f"Refusing to write documents with duplicate filenames: {', '.join(duplicates)}")
            raise ExportError(f"Duplicate document filenames: {', '.join(duplicates)}", str(directory))

        try:
            directory.mkdir(parents=True, exist_ok=True)
            written = []
            for document in documents:
                path = directory / document.filename
                path.write_text(document.content, encoding='utf-8')
                written.append(path)
        except OSError as e:
            logger.error(f"Failed to write documents to {directory}: {str(e)}")
            raise ExportError(f"Failed to write documents: {str(e)}", str(directory))

        logger.info(f"Wrote {len(written)} documents to {directory}")
        return written

    def _assign_unique_filenames(self, documents: List[ConvertedDocument]) -> List[ConvertedDocument]:
        """
        ファイル名の重複を解消する

        他のページと同じ名前、またはインデックス作成時の index.md と同じ名前の
        ドキュメントは "{スラッグ}-{ページIDの先頭8文字}.md" に改名する。
        スラッグが空（".md"）のドキュメントは "{ページIDの先頭8文字}.md" にする。
        """
        counts = Counter(document.filename for document in documents)
        reserved = {INDEX_FILENAME} if self.generate_index else set()
        taken = {name for name, count in counts.items() if count == 1} | reserved

        unique = []
        for document in documents:
            filename = document.filename
            stem = filename[:-len('.md')] if filename.endswith('.md') else filename
            if counts[filename] > 1 or filename in reserved or not stem:
                short_id = document.metadata.id[:8]
                base = f"{stem}-{short_id}" if stem else short_id

                filename = f"{base}.md"
                suffix = 2
                while filename in taken:
                    filename = f"{base}-{suffix}.md"
                    suffix += 1

                logger.warning(f"Filename '{document.filename}' of page {document.metadata.id} "
                               f"is already in use, writing it as '{filename}'")
                document = document.model_copy(update={'filename': filename})

            taken.add(filename)
            unique.append(document)

        return unique

    def _parse_payload(self, payload: Union[Dict[str, Any], List[Any]]) -> List[PageWithBlocks]:
        """エクスポートJSONを PageWithBlocks のリストに変換"""
        if isinstance(payload, dict):
            if 'pages' not in payload:
                raise ExportError("Export payload has no 'pages' key")
            raw_entries = payload['pages']
        else:
            raw_entries = payload

        if not isinstance(raw_entries, list):
            raise ExportError("Export 'pages' must be a list")

        entries = []
        for position, raw_entry in enumerate(raw_entries):
            try:
                raw_page = raw_entry['page']
                raw_blocks = raw_entry.get('blocks')
                entries.append(PageWithBlocks(
                    page=Page.from_notion(raw_page),
                    blocks=[Block.from_notion(raw_block) for raw_block in raw_blocks] if raw_blocks is not None else None
                ))
            except (KeyError, TypeError, AttributeError, ValidationError) as e:
                raise ExportError(f"Invalid page entry at position {position}: {str(e)}")

        return entries
