from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field

class Block(BaseModel):
    """Notionブロックオブジェクト（変換処理からは読み取り専用）"""
    model_config = ConfigDict(frozen=True)

    id: str
    type: str
    data: Optional[Dict[str, Any]] = None
    children: Optional[List['Block']] = None

    @classmethod
    def from_notion(cls, raw: Dict[str, Any]) -> 'Block':
        """
        Notion APIのブロックレスポンスからBlockを作成

        ブロック固有のペイロードは raw[type] にあるので data = {type: raw[type]} にまとめる。
        子ブロックが "children" に含まれていれば再帰的に変換する。

        Args:
            raw: Notion APIのブロックオブジェクト

        Returns:
            Blockオブジェクト
        """
        block_type = raw["type"]
        children = raw.get("children")

        return cls(
            id=raw["id"],
            type=block_type,
            data={block_type: raw.get(block_type)},
            children=[cls.from_notion(child) for child in children] if children else None
        )

class Page(BaseModel):
    """Notionページオブジェクト"""
    id: str
    properties: Optional[Dict[str, Any]] = None
    created_time: Optional[str] = None
    last_edited_time: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def from_notion(cls, raw: Dict[str, Any]) -> 'Page':
        """Notion APIのページレスポンスからPageを作成"""
        return cls(
            id=raw["id"],
            properties=raw.get("properties"),
            created_time=raw.get("created_time"),
            last_edited_time=raw.get("last_edited_time"),
            url=raw.get("url")
        )

class PageWithBlocks(BaseModel):
    """ページとそのブロックツリーの組"""
    page: Page
    blocks: Optional[List[Block]] = None

class ConversionOptions(BaseModel):
    """Markdown変換オプション"""
    indent_spaces: int = Field(default=2, ge=0, description="ネスト1段あたりのスペース数")
    include_unsupported_comments: bool = Field(
        default=True,
        description="未対応ブロックの末尾に *(type)* を付けるかどうか"
    )

    @classmethod
    def from_config(cls, config) -> 'ConversionOptions':
        """アプリケーション設定から変換オプションを作成"""
        return cls(
            indent_spaces=config.MARKDOWN_INDENT_SPACES,
            include_unsupported_comments=config.MARKDOWN_INCLUDE_UNSUPPORTED_COMMENTS
        )

    def indent(self, indent_level: int) -> str:
        """インデント文字列を取得"""
        return " " * (self.indent_spaces * indent_level)

class DocumentMetadata(BaseModel):
    """変換済みドキュメントのメタデータ"""
    id: str
    title: str
    created_time: Optional[str] = None
    last_edited_time: Optional[str] = None

class ConvertedDocument(BaseModel):
    """変換済みMarkdownドキュメント"""
    filename: str
    content: str
    metadata: DocumentMetadata
