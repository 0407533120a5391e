import argparse
import json
import sys
from typing import List, Optional

from notion_markdown.handlers.export_handler import ExportHandler
from notion_markdown.models.notion_models import ConversionOptions
from notion_markdown.utils.logger import setup_logger, set_log_level
from notion_markdown.utils.config import config
from notion_markdown.exceptions.custom_exceptions import (
    NotionMarkdownError,
    ConfigurationError,
    ExportError
)

# ロガーの設定
logger = setup_logger(__name__)

def build_parser() -> argparse.ArgumentParser:
    """コマンドライン引数のパーサーを作成"""
    parser = argparse.ArgumentParser(
        description="Convert a Notion export (pages + block trees as JSON) into markdown files"
    )
    parser.add_argument('input', help="Path to the export JSON file")
    parser.add_argument('--output-dir', default=config.EXPORT_OUTPUT_DIR,
                        help="Directory for the generated markdown files")
    parser.add_argument('--indent-spaces', type=int, default=None,
                        help="Spaces per nesting level (default: MARKDOWN_INDENT_SPACES)")
    parser.add_argument('--no-unsupported-comments', action='store_true',
                        help="Do not annotate unsupported block types")
    parser.add_argument('--no-index', action='store_true',
                        help="Do not generate index.md")
    parser.add_argument('--log-level', default=None,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help="Override LOG_LEVEL")
    return parser

def build_options(args: argparse.Namespace) -> ConversionOptions:
    """引数と設定から変換オプションを作成"""
    indent_spaces = args.indent_spaces if args.indent_spaces is not None else config.MARKDOWN_INDENT_SPACES
    include_comments = config.MARKDOWN_INCLUDE_UNSUPPORTED_COMMENTS and not args.no_unsupported_comments

    if indent_spaces is None or indent_spaces < 0:
        raise ConfigurationError("Indent spaces must be a non-negative integer")
    if include_comments is None:
        raise ConfigurationError("MARKDOWN_INCLUDE_UNSUPPORTED_COMMENTS must be a boolean")

    return ConversionOptions(indent_spaces=indent_spaces, include_unsupported_comments=include_comments)

def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI のメインエントリーポイント

    Args:
        argv: コマンドライン引数（省略時は sys.argv）

    Returns:
        終了コード
    """
    args = build_parser().parse_args(argv)

    if args.log_level:
        set_log_level('notion_markdown', args.log_level)
        set_log_level(__name__, args.log_level)

    try:
        logger.info(f"Reading export file: {args.input}")

        try:
            with open(args.input, encoding='utf-8') as f:
                payload = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ExportError(f"Failed to read export file: {str(e)}", args.input)

        handler = ExportHandler(
            options=build_options(args),
            generate_index=False if args.no_index else None
        )
        result = handler.process_export(payload)
        paths = handler.write_documents(result['documents'], args.output_dir)

        logger.info(f"{result['message']} ({len(paths)} files in {args.output_dir})")
        return 0

    except NotionMarkdownError as e:
        logger.error(f"Export failed: {str(e)}")
        return 1

if __name__ == "__main__":
    sys.exit(main())
