from collections.abc import Mapping
from typing import Any, Iterable
from notion_markdown.utils.rich_text import extract_plain_text
from notion_markdown.utils.logger import setup_logger

logger = setup_logger(__name__)

TITLE_PROPERTY_NAMES = ("title", "Name")

VALUE_NOT_AVAILABLE = "*Valor no disponible*"
NO_SELECTION = "*Sin selección*"
NO_SELECTIONS = "*Sin selecciones*"
DATE_NOT_AVAILABLE = "*Fecha no disponible*"
UNSUPPORTED_PROPERTY = "*Tipo de propiedad no soportado*"
VALUE_ERROR = "*Error al procesar el valor*"
PROPERTIES_ERROR = "*Error al procesar las propiedades de la página*"

class PropertySerializer:
    """ページプロパティをMarkdownに変換するサービス"""

    def serialize_properties(self, properties: Any, exclude: Iterable[str] = TITLE_PROPERTY_NAMES) -> str:
        """
        全プロパティを宣言順にMarkdownへ変換する

        Args:
            properties: プロパティ名 -> プロパティ値 のマッピング
            exclude: 出力しないプロパティ名（タイトルとして使うもの）

        Returns:
            Markdown文字列。マッピング自体が読めない場合はエラー行のみ
        """
        excluded = set(exclude)

        try:
            if not isinstance(properties, Mapping):
                raise TypeError(f"properties must be a mapping, got {type(properties).__name__}")
            items = list(properties.items())
        except Exception as e:
            logger.error(f"Failed to read page properties: {str(e)}")
            return f"{PROPERTIES_ERROR}\n\n"

        return "".join(
            self.serialize_property(name, value)
            for name, value in items
            if name not in excluded
        )

    def serialize_property(self, name: str, value: Any) -> str:
        """1つのプロパティを "### 名前" 見出し付きで変換する"""
        try:
            rendered = self.extract_value(value)
        except Exception as e:
            logger.error(f"Failed to extract value of property '{name}': {str(e)}")
            rendered = VALUE_ERROR

        return f"### {name}\n{rendered}\n\n"

    def extract_value(self, value: Any) -> str:
        """
        プロパティ値をタイプに応じて文字列に変換する

        判定はキーの存在で行い、最初に一致したものを使う。
        どれにも当てはまらない値は未対応として扱う。
        """
        if value is None or (isinstance(value, str) and value == ""):
            return VALUE_NOT_AVAILABLE

        if not isinstance(value, Mapping):
            return UNSUPPORTED_PROPERTY

        for key in ("title", "rich_text"):
            if isinstance(value.get(key), list):
                return extract_plain_text(value[key])

        select = value.get("select")
        if isinstance(select, Mapping):
            return select.get("name") or NO_SELECTION

        multi_select = value.get("multi_select")
        if isinstance(multi_select, list):
            names = [option.get("name", "") for option in multi_select if isinstance(option, Mapping)]
            return ", ".join(names) if names else NO_SELECTIONS

        number = value.get("number")
        if number is not None and not isinstance(number, bool):
            return self._format_number(number)

        checkbox = value.get("checkbox")
        if isinstance(checkbox, bool):
            return "✅ Sí" if checkbox else "❌ No"

        date = value.get("date")
        if isinstance(date, Mapping):
            return date.get("start") or DATE_NOT_AVAILABLE

        if value.get("url"):
            return f"[{value['url']}]({value['url']})"

        if value.get("email"):
            return f"[{value['email']}](mailto:{value['email']})"

        if value.get("phone_number"):
            return str(value["phone_number"])

        return UNSUPPORTED_PROPERTY

    @staticmethod
    def _format_number(number: Any) -> str:
        # 5.0 は "5" と出力する
        if isinstance(number, float) and number.is_integer():
            return str(int(number))
        return str(number)
