"""Enclitic pronouns on affirmative imperatives and the accent they require.

Voseo rule (2s_vos): the bare form is stressed on the final vowel (hablá);
one enclitic syllable drops the written accent (hablame), two or more bring
it back (hablámelo). Other persons just concatenate.
"""

import random
import re
from dataclasses import replace

from conjuga.services.conjugation_rules import strip_accents
from conjuga.services.grammar import Form

CLITIC_TOKENS = ("nos", "les", "las", "los", "me", "te", "se", "lo", "la", "le")

_FIRST_SECOND_SINGULAR = {"1s", "2s_tu", "2s_vos"}
_ACCENTED = {"a": "á", "e": "é", "i": "í"}


def estimate_clitic_syllables(clitics: str) -> int:
    """Count enclitic pronoun syllables; every clitic is one syllable."""
    text = strip_accents(clitics.lower()).replace(" ", "")
    count = 0
    while text:
        for token in CLITIC_TOKENS:
            if text.startswith(token):
                count += 1
                text = text[len(token):]
                break
        else:
            text = text[1:]
    return max(1, count)


def _accent_last(text: str, vowel: str) -> str:
    idx = text.rfind(vowel)
    if idx < 0:
        return text
    return text[:idx] + _ACCENTED[vowel] + text[idx + 1:]


def clitics_for_person(person: str) -> str:
    return "me" if person in _FIRST_SECOND_SINGULAR else "se lo"


def adjust_accent_for_clitics(lemma: str, person: str, base: str, clitics: str) -> str:
    joined = re.sub(r"\s+", "", f"{base}{clitics}")
    if person != "2s_vos":
        return joined

    syllables = estimate_clitic_syllables(clitics)
    verb = strip_accents(base)
    attached = re.sub(r"\s+", "", clitics)
    if syllables == 1:
        return verb + attached

    infinitive = lemma[:-2] if lemma.endswith("se") else lemma
    for ending, vowel in (("ar", "a"), ("er", "e"), ("ir", "i")):
        if strip_accents(infinitive).endswith(ending):
            return _accent_last(verb, vowel) + attached
    return verb + attached


def attach_clitics(form: Form, clitics: str | None = None) -> Form:
    """Return a copy of an affirmative imperative with enclitics attached."""
    clitics = clitics or clitics_for_person(form.person)
    value = adjust_accent_for_clitics(form.lemma, form.person, form.value, clitics)
    return replace(form, value=value)


def maybe_attach_clitics(form: Form, clitics_percent: int, rng: random.Random) -> Form:
    if form.mood != "imperative" or form.tense != "impAff" or clitics_percent <= 0:
        return form
    if rng.random() * 100 >= clitics_percent:
        return form
    return attach_clitics(form)
