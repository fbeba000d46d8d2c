import pytest

from app.core.storage import TemplateNotFoundError


async def test_no_default_until_one_is_created(template_source):
    assert await template_source.get_default() is None


async def test_new_default_replaces_previous(template_source):
    first = await template_source.create("Banner", "Short and punchy", is_default=True)
    await template_source.create("Legal", "Precise, formal wording", is_default=True)

    default = await template_source.get_default()
    banner = await template_source.get(first.id)

    assert default.name == "Legal"
    assert banner.is_default is False


async def test_lookup_by_name(template_source):
    await template_source.create("Social Media", "Casual and engaging")

    found = await template_source.get_by_name("Social Media")

    assert found.prompt_text == "Casual and engaging"
    assert await template_source.get_by_name("Email") is None


async def test_duplicate_name_is_rejected(template_source):
    await template_source.create("Banner", "Short")

    with pytest.raises(ValueError):
        await template_source.create("Banner", "Different")


async def test_unknown_id(template_source):
    with pytest.raises(TemplateNotFoundError):
        await template_source.get("missing")


async def test_list_is_sorted_by_name(template_source):
    await template_source.create("Social Media", "Casual")
    await template_source.create("Banner", "Short")

    assert [t.name for t in await template_source.list()] == ["Banner", "Social Media"]
