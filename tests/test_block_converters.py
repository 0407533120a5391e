from types import MappingProxyType, SimpleNamespace
import pytest

from notion_markdown.models.notion_models import Block, ConversionOptions
from notion_markdown.services.block_converters import (
    BlockConverterRegistry,
    convert_unsupported,
    is_toggleable_heading
)
from notion_markdown.services.block_renderer import BlockTreeRenderer
from notion_markdown.exceptions.custom_exceptions import ConverterRegistrationError

def make_block(block_type, text=None, block_id="block-1", children=None, **payload):
    """テスト用ブロックを作成"""
    if text is not None:
        payload["rich_text"] = [{"plain_text": text}]
    return Block(id=block_id, type=block_type, data={block_type: payload}, children=children)

class TestBuiltinConverters:
    """組み込みコンバーターのテストクラス"""
    
    @pytest.fixture
    def renderer(self):
        return BlockTreeRenderer()
    
    def test_paragraph(self, renderer):
        block = make_block("paragraph", "This is a paragraph.")
        
        assert renderer.render_block(block) == "This is a paragraph.\n\n"
    
    def test_paragraph_indentation(self, renderer):
        block = make_block("paragraph", "Indented paragraph.")
        
        assert renderer.render_block(block, 1, ConversionOptions(indent_spaces=2)) == "  Indented paragraph.\n\n"
        assert renderer.render_block(block, 1, ConversionOptions(indent_spaces=4)) == "    Indented paragraph.\n\n"
    
    @pytest.mark.parametrize("text", ["", "   \n\t   "])
    @pytest.mark.parametrize("block_type", [
        "paragraph", "heading_1", "heading_2", "heading_3", "bulleted_list_item", "numbered_list_item"
    ])
    def test_blank_text_renders_nothing(self, renderer, block_type, text):
        assert renderer.render_block(make_block(block_type, text)) == ""
    
    def test_text_is_not_trimmed_in_output(self, renderer):
        block = make_block("paragraph", " spaced ")
        
        assert renderer.render_block(block) == " spaced \n\n"
    
    @pytest.mark.parametrize("block_type, expected", [
        ("heading_1", "# Main Title\n\n"),
        ("heading_2", "## Main Title\n\n"),
        ("heading_3", "### Main Title\n\n"),
    ])
    def test_headings(self, renderer, block_type, expected):
        assert renderer.render_block(make_block(block_type, "Main Title")) == expected
    
    def test_heading_ignores_indentation(self, renderer):
        assert renderer.render_block(make_block("heading_1", "Title"), 2) == "# Title\n\n"
    
    def test_heading_without_rich_text(self, renderer):
        assert renderer.render_block(make_block("heading_1")) == ""
    
    def test_list_items(self, renderer):
        assert renderer.render_block(make_block("bulleted_list_item", "Bullet point")) == "- Bullet point\n"
        assert renderer.render_block(make_block("numbered_list_item", "Numbered item")) == "1. Numbered item\n"
    
    def test_numbered_items_always_use_one(self, renderer):
        blocks = [make_block("numbered_list_item", f"Item {i}", block_id=f"b{i}") for i in range(3)]
        
        assert renderer.render_blocks(blocks) == "1. Item 0\n1. Item 1\n1. Item 2\n"
    
    def test_empty_list_item_payload(self, renderer):
        assert renderer.render_block(make_block("bulleted_list_item")) == ""
    
    def test_to_do(self, renderer):
        assert renderer.render_block(make_block("to_do", "Completed task", checked=True)) == "- [x] Completed task\n"
        assert renderer.render_block(make_block("to_do", "Pending task", checked=False)) == "- [ ] Pending task\n"
        assert renderer.render_block(make_block("to_do", "Task without status")) == "- [ ] Task without status\n"
    
    def test_quote(self, renderer):
        assert renderer.render_block(make_block("quote", "This is a quote")) == "> This is a quote\n\n"
    
    def test_divider(self, renderer):
        block = Block(id="block-1", type="divider", data={})
        
        assert renderer.render_block(block) == "---\n\n"
        assert renderer.render_block(block, 3) == "---\n\n"
    
    def test_code_with_language(self, renderer):
        block = make_block("code", 'console.log("Hello");', language="javascript")
        
        assert renderer.render_block(block) == '```javascript\nconsole.log("Hello");\n```\n\n'
    
    def test_code_without_language(self, renderer):
        assert renderer.render_block(make_block("code", "some code")) == "```\nsome code\n```\n\n"
    
    def test_empty_code(self, renderer):
        assert renderer.render_block(make_block("code")) == "```\n\n```\n\n"
    
    def test_code_indents_first_line_only(self, renderer):
        block = make_block("code", "a = 1\nb = 2", language="python")
        
        assert renderer.render_block(block, 1) == "  ```python\na = 1\nb = 2\n```\n\n"
    
    def test_toggle_heading_opening(self):
        block = make_block("heading_2", "Toggle Heading", is_toggleable=True)
        converter = BlockConverterRegistry().resolve("heading_2")
        
        assert converter(block, 0, ConversionOptions()) == \
            "<details>\n<summary><strong>## Toggle Heading</strong></summary>\n\n"
    
    def test_toggle_opening(self):
        block = make_block("toggle", "Click to expand")
        converter = BlockConverterRegistry().resolve("toggle")
        
        assert converter(block, 0, ConversionOptions()) == "<details>\n<summary>Click to expand</summary>\n\n"
    
    def test_is_toggleable_heading(self):
        assert is_toggleable_heading(make_block("heading_1", "x", is_toggleable=True))
        assert not is_toggleable_heading(make_block("heading_1", "x"))
        assert not is_toggleable_heading(make_block("toggle", "x", is_toggleable=True))
        assert is_toggleable_heading(SimpleNamespace(
            type="heading_1", data={"heading_1": MappingProxyType({"is_toggleable": True})}
        ))


class TestImageConverter:
    """画像ブロックのテストクラス"""
    
    @pytest.fixture
    def renderer(self):
        return BlockTreeRenderer()
    
    def render_image(self, renderer, image):
        return renderer.render_block(Block(id="block-1", type="image", data={"image": image}))
    
    def test_external_image(self, renderer):
        image = {"type": "external", "external": {"url": "https://example.com/image.jpg"}}
        
        assert self.render_image(renderer, image) == "![Imagen](https://example.com/image.jpg)\n\n"
    
    def test_file_image(self, renderer):
        image = {"type": "file", "file": {"url": "https://notion.so/image.jpg"}}
        
        assert self.render_image(renderer, image) == "![Imagen](https://notion.so/image.jpg)\n\n"
    
    def test_image_caption(self, renderer):
        image = {
            "type": "external",
            "external": {"url": "https://example.com/image.jpg"},
            "caption": [{"plain_text": "Image caption"}]
        }
        
        assert self.render_image(renderer, image) == "![Image caption](https://example.com/image.jpg)\n\n"
    
    def test_file_upload(self, renderer):
        image = {"file_upload": {"id": "file-123"}}
        
        assert self.render_image(renderer, image) == "<!-- Imagen subida (requiere descarga): file-123 -->\n\n"
    
    def test_image_without_valid_url(self, renderer):
        assert self.render_image(renderer, {"type": "unknown"}) == "<!-- Imagen sin URL válida -->\n\n"
        assert self.render_image(renderer, {"type": "external", "external": {}}) == "<!-- Imagen sin URL válida -->\n\n"
    
    def test_image_without_data(self, renderer):
        assert self.render_image(renderer, None) == "<!-- Imagen sin datos -->\n\n"
        assert renderer.render_block(Block(id="block-1", type="image", data={})) == "<!-- Imagen sin datos -->\n\n"


class TestBlockConverterRegistry:
    """BlockConverterRegistryのテストクラス"""
    
    def test_supported_types_include_builtins(self):
        supported = BlockConverterRegistry().supported_types()
        
        for block_type in ("paragraph", "heading_1", "bulleted_list_item", "image", "toggle", "code"):
            assert block_type in supported
        assert isinstance(supported, list)
    
    def test_register_custom_converter(self):
        registry = BlockConverterRegistry()
        registry.register("custom_type", lambda block, level, options: f"{options.indent(level)}Custom: {block.id}\n\n")
        renderer = BlockTreeRenderer(registry)
        
        block = Block(id="block-1", type="custom_type", data={})
        
        assert renderer.render_block(block) == "Custom: block-1\n\n"
        assert "custom_type" in registry.supported_types()
        assert "custom_type" in registry
    
    def test_last_registration_wins(self):
        registry = BlockConverterRegistry()
        registry.register("paragraph", lambda block, level, options: "first\n")
        registry.register("paragraph", lambda block, level, options: "second\n")
        
        assert BlockTreeRenderer(registry).render_block(make_block("paragraph", "ignored")) == "second\n"
    
    def test_registries_are_independent(self):
        registry = BlockConverterRegistry()
        registry.register("custom_type", lambda block, level, options: "custom\n")
        
        assert "custom_type" not in BlockConverterRegistry().supported_types()
    
    def test_initial_converters(self):
        registry = BlockConverterRegistry({"callout": lambda block, level, options: "callout\n"})
        
        assert "callout" in registry
        assert "paragraph" in registry
    
    @pytest.mark.parametrize("block_type", ["", None, 3])
    def test_register_invalid_type(self, block_type):
        with pytest.raises(ConverterRegistrationError):
            BlockConverterRegistry().register(block_type, lambda block, level, options: "")
    
    def test_register_non_callable(self):
        with pytest.raises(ConverterRegistrationError, match="not callable"):
            BlockConverterRegistry().register("custom_type", "not a function")
    
    def test_unregistered_type_resolves_to_fallback(self):
        assert BlockConverterRegistry().resolve("unsupported_type") is convert_unsupported


class TestUnsupportedBlocks:
    """未対応ブロックのテストクラス"""
    
    @pytest.fixture
    def renderer(self):
        return BlockTreeRenderer()
    
    def test_with_comments(self, renderer):
        block = make_block("unsupported_type", "Some content")
        
        result = renderer.render_block(block, 0, ConversionOptions(include_unsupported_comments=True))
        
        assert result == "Some content *(unsupported_type)*\n\n"
    
    def test_without_comments(self, renderer):
        block = make_block("unsupported_type", "Some content")
        
        result = renderer.render_block(block, 0, ConversionOptions(include_unsupported_comments=False))
        
        assert result == "Some content\n\n"
    
    def test_without_text(self, renderer):
        assert renderer.render_block(make_block("unsupported_type")) == ""
        assert renderer.render_block(Block(id="block-1", type="callout", data={})) == ""
    
    def test_non_dict_mapping_payload(self):
        block = SimpleNamespace(
            id="block-1",
            type="callout",
            data={"callout": MappingProxyType({"rich_text": [{"plain_text": "Note"}]})},
            children=None
        )
        
        assert convert_unsupported(block, 0, ConversionOptions()) == "Note *(callout)*\n\n"
