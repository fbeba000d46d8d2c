from app.core.translation import check_glossary_usage, find_terms_in_batch, find_terms_in_text
from app.core.translation.models import GlossaryEntry

UNLIMITED = GlossaryEntry(
    source_term="Unlimited Data", translations={"my": "Data Tanpa Had", "zh": "无限数据"}
)
PRO = GlossaryEntry(source_term="Pro", translations={"my": "Pro", "zh": "专业版"})
BRAND = GlossaryEntry(source_term="Yes", do_not_translate=True, category="brand")
DATA = GlossaryEntry(source_term="Data", translations={"my": "Data", "zh": "数据"})


class TestFindTerms:
    def test_matches_whole_words_only(self):
        assert find_terms_in_text("Our new Product line", [PRO]) == []
        assert find_terms_in_text("Upgrade to Pro today", [PRO]) == [PRO]

    def test_case_insensitive(self):
        assert find_terms_in_text("get UNLIMITED data", [UNLIMITED]) == [UNLIMITED]

    def test_longer_terms_first(self):
        found = find_terms_in_text("Unlimited Data for everyone", [DATA, UNLIMITED])

        assert found == [UNLIMITED, DATA]

    def test_cjk_terms_match_as_substrings(self):
        term = GlossaryEntry(source_term="无限", translations={"en": "Unlimited"})

        assert find_terms_in_text("立即获取无限数据", [term]) == [term]

    def test_empty_text(self):
        assert find_terms_in_text("", [UNLIMITED]) == []

    def test_batch_union_keeps_glossary_order(self):
        found = find_terms_in_batch(
            ["Say Yes to more", "Unlimited Data", "Nothing here"], [UNLIMITED, PRO, BRAND]
        )

        assert found == [UNLIMITED, BRAND]


class TestCheckUsage:
    def test_correct_renderings_are_matches(self):
        matches, warnings = check_glossary_usage(
            "Get Unlimited Data",
            {"my": "Dapatkan Data Tanpa Had", "zh": "获取无限数据"},
            [UNLIMITED],
        )

        assert matches == ["Unlimited Data"]
        assert warnings == []

    def test_one_warning_per_language_missing_the_rendering(self):
        matches, warnings = check_glossary_usage(
            "Get Unlimited Data",
            {"my": "Dapatkan Data Unlimited", "zh": "获取数据"},
            [UNLIMITED],
        )

        assert matches == []
        assert warnings == [
            '[my] "Unlimited Data" should be translated as "Data Tanpa Had"',
            '[zh] "Unlimited Data" should be translated as "无限数据"',
        ]

    def test_do_not_translate_terms_must_appear_verbatim(self):
        _, warnings = check_glossary_usage(
            "Say Yes", {"my": "Katakan Ya", "zh": "说 Yes"}, [BRAND]
        )

        assert warnings == ['[my] "Yes" should be translated as "Yes"']

    def test_languages_without_a_rendering_are_not_checked(self):
        term = GlossaryEntry(source_term="Roaming", translations={"zh": "漫游"})

        matches, warnings = check_glossary_usage(
            "Roaming pass", {"my": "Pas perayauan", "zh": "漫游通行证"}, [term]
        )

        assert matches == ["Roaming"]
        assert warnings == []

    def test_terms_absent_from_source_are_ignored(self):
        matches, warnings = check_glossary_usage("Sign Up", {"my": "Daftar"}, [UNLIMITED])

        assert matches == [] and warnings == []
