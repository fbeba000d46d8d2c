import pytest

from app.config import settings
from app.core.storage import DuplicateTermError, GlossaryTermNotFoundError


async def test_new_term_uses_default_version(glossary_source):
    term = await glossary_source.create_term({"source_term": "Unlimited Data"})

    assert term.version == settings.default_glossary_version


async def test_deactivated_term_leaves_active_glossary(glossary_source):
    term = await glossary_source.create_term(
        {"source_term": "Old Plan", "translations": {"my": "Pelan Lama"}}
    )

    updated = await glossary_source.update_term(term.id, {"is_active": False})
    active = await glossary_source.get_active_glossary(settings.default_glossary_version)

    assert updated.is_active is False
    assert active == []


async def test_update_only_touches_given_fields(glossary_source):
    term = await glossary_source.create_term(
        {"source_term": "Roaming", "translations": {"my": "Perayauan"}, "notes": "Plan page"}
    )

    updated = await glossary_source.update_term(
        term.id, {"translations": {"my": "Perayauan", "zh": " 漫游 "}, "category": "product"}
    )

    assert updated.translations == {"my": "Perayauan", "zh": "漫游"}
    assert updated.category == "product"
    assert updated.notes == "Plan page"
    assert updated.source_term == "Roaming"


async def test_update_to_existing_term_is_rejected(glossary_source):
    await glossary_source.create_term({"source_term": "Yes"})
    term = await glossary_source.create_term({"source_term": "No"})

    with pytest.raises(DuplicateTermError):
        await glossary_source.update_term(term.id, {"source_term": "Yes"})


async def test_moving_term_to_another_version(glossary_source):
    await glossary_source.create_term({"source_term": "Yes"})
    term = await glossary_source.create_term({"source_term": "Yes", "version": "v2.0"})

    with pytest.raises(DuplicateTermError):
        await glossary_source.update_term(term.id, {"version": settings.default_glossary_version})
    moved = await glossary_source.update_term(term.id, {"version": "v3.0", "notes": None})

    assert moved.version == "v3.0"


@pytest.mark.parametrize(
    "changes", [{"source_term": "  "}, {"category": "slogan"}, {"id": "other"}]
)
async def test_invalid_update_is_rejected(glossary_source, changes):
    term = await glossary_source.create_term({"source_term": "Sign Up"})

    with pytest.raises(ValueError):
        await glossary_source.update_term(term.id, changes)


async def test_delete_term(glossary_source):
    keep = await glossary_source.create_term({"source_term": "Sign Up"})
    gone = await glossary_source.create_term({"source_term": "Learn More"})

    await glossary_source.delete_term(gone.id)

    assert [t.id for t in await glossary_source.list_terms()] == [keep.id]


async def test_unknown_term_id(glossary_source):
    with pytest.raises(GlossaryTermNotFoundError):
        await glossary_source.update_term("missing", {"notes": "x"})
    with pytest.raises(GlossaryTermNotFoundError):
        await glossary_source.delete_term("missing")
