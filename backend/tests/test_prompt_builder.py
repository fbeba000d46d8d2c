import json
import re

from app.core.translation import PromptBuilder
from app.core.translation.models import GlossaryEntry, PromptTemplateData, TranslationRow

ROWS = [
    TranslationRow(id="r1", source_text="Get Unlimited Data", context="banner headline"),
    TranslationRow(id="r2", source_text="Hello {name}, your {{plan}} is ready"),
]

GLOSSARY = [
    GlossaryEntry(source_term="Unlimited Data", translations={"my": "Data Tanpa Had", "zh": "无限数据"}),
    GlossaryEntry(source_term="Roaming", translations={"my": "Perayauan", "zh": "漫游"}),
    GlossaryEntry(source_term="Yes", do_not_translate=True),
]


def build(rows=ROWS, template=None, glossary=GLOSSARY, languages=("my", "zh")):
    return PromptBuilder.build(rows, template, glossary, list(languages))


def test_only_terms_in_batch_are_listed():
    bundle = build()

    assert "## MANDATORY GLOSSARY" in bundle.system_prompt
    assert '- "Unlimited Data" → my: "Data Tanpa Had", zh: "无限数据"' in bundle.system_prompt
    assert "Roaming" not in bundle.system_prompt
    assert bundle.template_variables["glossary_terms"] == ["Unlimited Data"]


def test_no_glossary_section_without_terms():
    bundle = build(rows=[TranslationRow(id="r9", source_text="Sign Up")])

    assert "MANDATORY GLOSSARY" not in bundle.system_prompt


def test_do_not_translate_terms_are_flagged():
    bundle = build(rows=[TranslationRow(id="r3", source_text="Say Yes to 5G")])

    assert '"Yes" → "Yes" (DO NOT TRANSLATE - keep as-is)' in bundle.system_prompt


def test_single_language_rendering():
    bundle = build(languages=("zh",))

    assert '- "Unlimited Data" → "无限数据"' in bundle.system_prompt


def test_default_guidelines_without_template():
    bundle = build()

    assert PromptBuilder.DEFAULT_GUIDELINES in bundle.system_prompt
    assert bundle.template_name is None


def test_template_text_replaces_default_guidelines():
    template = PromptTemplateData(name="Banner", prompt_text="Short, impactful, action-oriented.")

    bundle = build(template=template)

    assert "Short, impactful, action-oriented." in bundle.system_prompt
    assert PromptBuilder.DEFAULT_GUIDELINES not in bundle.system_prompt
    assert bundle.template_name == "Banner"


def test_target_languages_are_named():
    bundle = build()

    assert "Bahasa Malaysia (Malay) (my)" in bundle.system_prompt
    assert "Simplified Chinese (中文) (zh)" in bundle.system_prompt
    assert "from English" in bundle.system_prompt


def test_user_prompt_carries_rows_as_json():
    bundle = build()
    block = re.search(r"```json\n(.*?)\n```", bundle.user_prompt, re.DOTALL).group(1)

    items = json.loads(block)

    assert [item["id"] for item in items] == ["r1", "r2"]
    assert items[0]["context"] == "banner headline"
    assert items[1]["text"] == "Hello {name}, your {{plan}} is ready"
    assert bundle.row_ids == ["r1", "r2"]


def test_output_rules():
    prompt = build().user_prompt

    assert "Return ONLY the JSON array" in prompt
    assert "{name} and {{variable}}" in prompt
    assert '"my": "<Bahasa Malaysia (Malay) translation>"' in prompt


def test_preview_dict():
    preview = PromptBuilder.preview(ROWS, None, GLOSSARY, ["my", "zh"])

    assert preview["row_count"] == 2
    assert preview["system_prompt"].startswith("You are a professional marketing translator.")
    assert preview["estimated_tokens"] > 0
