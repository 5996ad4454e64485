"""Plural rules for numerus messages.

A numerus message (``<message numerus="yes">``) carries one translation
form per plural category of the target language, in a fixed order. This
module maps a count to the CLDR cardinal category for a language and from
there to the index of the form to display.

Usage:
    from tscatalog.plural import numerus_index, numerus_form_count

    numerus_index(1, "de")      # 0
    numerus_index(5, "de")      # 1
    numerus_index(3, "ru_RU")   # 1 (few)
    numerus_form_count("ja")    # 1
"""

from __future__ import annotations

from enum import Enum
from typing import Callable


class PluralCategory(str, Enum):
    """CLDR plural categories."""

    ZERO = "zero"
    ONE = "one"
    TWO = "two"
    FEW = "few"
    MANY = "many"
    OTHER = "other"


PluralRuleFunc = Callable[[int], PluralCategory]


# =============================================================================
# Cardinal rules (integer operands only)
# =============================================================================


def english_cardinal(n: int) -> PluralCategory:
    # One: i = 1
    if abs(n) == 1:
        return PluralCategory.ONE
    return PluralCategory.OTHER


def french_cardinal(n: int) -> PluralCategory:
    # One: i = 0,1
    if abs(n) in (0, 1):
        return PluralCategory.ONE
    return PluralCategory.OTHER


def slavic_cardinal(n: int) -> PluralCategory:
    # One: i % 10 = 1 and i % 100 != 11
    # Few: i % 10 = 2..4 and i % 100 != 12..14
    i = abs(n)
    i10 = i % 10
    i100 = i % 100
    if i10 == 1 and i100 != 11:
        return PluralCategory.ONE
    if 2 <= i10 <= 4 and not (12 <= i100 <= 14):
        return PluralCategory.FEW
    return PluralCategory.MANY


def polish_cardinal(n: int) -> PluralCategory:
    # One: i = 1
    # Few: i % 10 = 2..4 and i % 100 != 12..14
    i = abs(n)
    i10 = i % 10
    i100 = i % 100
    if i == 1:
        return PluralCategory.ONE
    if 2 <= i10 <= 4 and not (12 <= i100 <= 14):
        return PluralCategory.FEW
    return PluralCategory.MANY


def czech_cardinal(n: int) -> PluralCategory:
    # One: i = 1
    # Few: i = 2..4
    i = abs(n)
    if i == 1:
        return PluralCategory.ONE
    if 2 <= i <= 4:
        return PluralCategory.FEW
    return PluralCategory.OTHER


def romanian_cardinal(n: int) -> PluralCategory:
    # One: i = 1
    # Few: n = 0 or n % 100 = 2..19
    i = abs(n)
    if i == 1:
        return PluralCategory.ONE
    if i == 0 or 2 <= i % 100 <= 19:
        return PluralCategory.FEW
    return PluralCategory.OTHER


def slovenian_cardinal(n: int) -> PluralCategory:
    # One: i % 100 = 1
    # Two: i % 100 = 2
    # Few: i % 100 = 3..4
    i100 = abs(n) % 100
    if i100 == 1:
        return PluralCategory.ONE
    if i100 == 2:
        return PluralCategory.TWO
    if 3 <= i100 <= 4:
        return PluralCategory.FEW
    return PluralCategory.OTHER


def arabic_cardinal(n: int) -> PluralCategory:
    # Zero: n = 0, One: n = 1, Two: n = 2
    # Few: n % 100 = 3..10, Many: n % 100 = 11..99
    i = abs(n)
    n100 = i % 100
    if i == 0:
        return PluralCategory.ZERO
    if i == 1:
        return PluralCategory.ONE
    if i == 2:
        return PluralCategory.TWO
    if 3 <= n100 <= 10:
        return PluralCategory.FEW
    if 11 <= n100 <= 99:
        return PluralCategory.MANY
    return PluralCategory.OTHER


def no_plural(n: int) -> PluralCategory:
    return PluralCategory.OTHER


_TWO_FORMS = (PluralCategory.ONE, PluralCategory.OTHER)

# language -> (rule, ordered categories of the translation forms)
_DEFAULT_RULES: dict[str, tuple[PluralRuleFunc, tuple[PluralCategory, ...]]] = {}

for _lang in (
    "en", "de", "nl", "it", "pt", "es", "ca", "gl", "da", "no", "nb", "nn",
    "sv", "fi", "et", "el", "bg", "eo",
):
    _DEFAULT_RULES[_lang] = (english_cardinal, _TWO_FORMS)

_DEFAULT_RULES["fr"] = (french_cardinal, _TWO_FORMS)
_DEFAULT_RULES["pt_BR"] = (french_cardinal, _TWO_FORMS)

for _lang in ("ru", "uk", "be", "sr", "hr", "bs"):
    _DEFAULT_RULES[_lang] = (
        slavic_cardinal,
        (PluralCategory.ONE, PluralCategory.FEW, PluralCategory.MANY),
    )

_DEFAULT_RULES["pl"] = (
    polish_cardinal,
    (PluralCategory.ONE, PluralCategory.FEW, PluralCategory.MANY),
)

for _lang in ("cs", "sk"):
    _DEFAULT_RULES[_lang] = (
        czech_cardinal,
        (PluralCategory.ONE, PluralCategory.FEW, PluralCategory.OTHER),
    )

_DEFAULT_RULES["ro"] = (
    romanian_cardinal,
    (PluralCategory.ONE, PluralCategory.FEW, PluralCategory.OTHER),
)
_DEFAULT_RULES["sl"] = (
    slovenian_cardinal,
    (PluralCategory.ONE, PluralCategory.TWO, PluralCategory.FEW, PluralCategory.OTHER),
)
_DEFAULT_RULES["ar"] = (
    arabic_cardinal,
    (
        PluralCategory.ZERO,
        PluralCategory.ONE,
        PluralCategory.TWO,
        PluralCategory.FEW,
        PluralCategory.MANY,
        PluralCategory.OTHER,
    ),
)

for _lang in ("ja", "ko", "zh", "vi", "th", "id", "ms", "tr", "hu", "fa"):
    _DEFAULT_RULES[_lang] = (no_plural, (PluralCategory.OTHER,))


def split_language(code: str) -> tuple[str, str]:
    """Split a locale identifier into (language, region).

    ``"de-DE"``, ``"de_DE"`` and ``"de_DE.UTF-8"`` all give ``("de", "DE")``.
    """
    code = code.split(".")[0].split("@")[0]
    parts = code.replace("-", "_").split("_")
    language = parts[0].lower()
    region = parts[1].upper() if len(parts) > 1 else ""
    return language, region


class NumerusRules:
    """Plural rule table keyed by language.

    Region-specific entries (``pt_BR``) take precedence over the bare
    language. Unknown languages use the English rule, which matches the
    two-form layout lupdate writes for source-language catalogs.
    """

    def __init__(self) -> None:
        self._rules = dict(_DEFAULT_RULES)

    def register(
        self,
        language: str,
        rule: PluralRuleFunc,
        forms: tuple[PluralCategory, ...],
    ) -> None:
        """Register a rule and its form order for a language."""
        if not forms:
            raise ValueError("At least one numerus form is required")
        self._rules[language] = (rule, tuple(forms))

    def _resolve(self, language: str) -> tuple[PluralRuleFunc, tuple[PluralCategory, ...]]:
        lang, region = split_language(language)
        if region and f"{lang}_{region}" in self._rules:
            return self._rules[f"{lang}_{region}"]
        return self._rules.get(lang, (english_cardinal, _TWO_FORMS))

    def category(self, n: int, language: str) -> PluralCategory:
        """Return the plural category of ``n`` in ``language``."""
        rule, _ = self._resolve(language)
        return rule(n)

    def forms(self, language: str) -> tuple[PluralCategory, ...]:
        """Return the ordered categories of the numerus forms."""
        return self._resolve(language)[1]

    def index(self, n: int, language: str) -> int:
        """Return the index of the numerus form to use for ``n``."""
        rule, forms = self._resolve(language)
        category = rule(n)
        if category in forms:
            return forms.index(category)
        return len(forms) - 1

    def supported_languages(self) -> list[str]:
        return sorted(self._rules)


_numerus_rules = NumerusRules()


def get_numerus_rules() -> NumerusRules:
    """Get the process-wide rule table."""
    return _numerus_rules


def numerus_index(n: int, language: str) -> int:
    """Index of the numerus form for ``n`` in ``language``."""
    return _numerus_rules.index(n, language)


def numerus_form_count(language: str) -> int:
    """Number of numerus forms a translation into ``language`` carries."""
    return len(_numerus_rules.forms(language))
