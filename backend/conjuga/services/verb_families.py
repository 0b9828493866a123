"""Irregular verb families and the simplified groups shown to learners.

Technical families describe one irregularity pattern each (e→ie
diphthong, -zco first person, strong preterite stem...). Learners pick
from a handful of simplified groups, which expand to technical families.
"""

import re

from conjuga.services.grammar import VerbInfo

FAMILY_NAMES = {
    "DIPHT_E_IE": "e→ie diphthong",
    "DIPHT_O_UE": "o→ue diphthong",
    "DIPHT_U_UE": "u→ue diphthong (jugar)",
    "E_I_IR": "e→i stem change (-ir)",
    "O_U_GER_IR": "o→u in gerund and 3rd-person preterite",
    "G_VERBS": "-go first person",
    "ZCO_VERBS": "-zco first person",
    "ZO_VERBS": "-zo first person",
    "JO_VERBS": "g→j first person",
    "GU_DROP": "gu→g first person",
    "YO_OY": "-oy first person",
    "UIR_Y": "-uir inserts y",
    "HIATUS_Y": "hiatus y in 3rd-person preterite",
    "PRET_UV": "preterite -uv-",
    "PRET_U": "preterite stem with u",
    "PRET_I": "preterite stem with i",
    "PRET_J": "preterite stem with j",
    "PRET_SUPPL": "suppletive preterite",
    "ORTH_CAR": "c→qu spelling change",
    "ORTH_GAR": "g→gu spelling change",
    "ORTH_ZAR": "z→c spelling change",
    "ORTH_GUAR": "gu→gü spelling change",
    "IAR_VERBS": "-iar stress shift",
    "UAR_VERBS": "-uar stress shift",
    "DEFECTIVE": "defective",
    "UNIPERSONAL": "unipersonal (weather)",
}

SIMPLIFIED_GROUPS = {
    "STEM_CHANGES": ("DIPHT_E_IE", "DIPHT_O_UE", "DIPHT_U_UE", "E_I_IR"),
    "FIRST_PERSON_IRREGULAR": ("G_VERBS", "ZCO_VERBS", "ZO_VERBS", "JO_VERBS", "GU_DROP", "YO_OY"),
    "PRETERITE_THIRD_PERSON": ("E_I_IR", "O_U_GER_IR", "HIATUS_Y"),
    "PRETERITE_STRONG_STEM": ("PRET_UV", "PRET_U", "PRET_I", "PRET_J", "PRET_SUPPL"),
}

# 3rd-person preterite drill: only verbs whose irregularity lives in 3s/3p
PRETERITE_THIRD_PERSON_INCLUDE = {"E_I_IR", "O_U_GER_IR", "HIATUS_Y"}
PRETERITE_THIRD_PERSON_EXCLUDE = {"PRET_UV", "PRET_U", "PRET_I", "PRET_J", "PRET_SUPPL"}

KNOWN_FAMILIES = {
    "ser": ("PRET_SUPPL", "YO_OY"),
    "ir": ("PRET_SUPPL", "YO_OY"),
    "estar": ("PRET_UV", "YO_OY"),
    "dar": ("YO_OY",),
    "haber": ("PRET_U",),
    "tener": ("G_VERBS", "DIPHT_E_IE", "PRET_UV"),
    "mantener": ("G_VERBS", "DIPHT_E_IE", "PRET_UV"),
    "obtener": ("G_VERBS", "DIPHT_E_IE", "PRET_UV"),
    "venir": ("G_VERBS", "DIPHT_E_IE", "PRET_I"),
    "poner": ("G_VERBS", "PRET_U"),
    "salir": ("G_VERBS",),
    "valer": ("G_VERBS",),
    "hacer": ("G_VERBS", "PRET_I"),
    "decir": ("G_VERBS", "E_I_IR", "PRET_J"),
    "traer": ("G_VERBS", "PRET_J"),
    "caer": ("G_VERBS", "HIATUS_Y"),
    "oír": ("G_VERBS", "HIATUS_Y"),
    "andar": ("PRET_UV",),
    "poder": ("DIPHT_O_UE", "PRET_U"),
    "saber": ("PRET_U",),
    "caber": ("PRET_U",),
    "querer": ("DIPHT_E_IE", "PRET_I"),
    "conducir": ("ZCO_VERBS", "PRET_J"),
    "traducir": ("ZCO_VERBS", "PRET_J"),
    "producir": ("ZCO_VERBS", "PRET_J"),
    "pedir": ("E_I_IR",),
    "servir": ("E_I_IR",),
    "repetir": ("E_I_IR",),
    "seguir": ("E_I_IR", "GU_DROP"),
    "conseguir": ("E_I_IR", "GU_DROP"),
    "vestir": ("E_I_IR",),
    "medir": ("E_I_IR",),
    "elegir": ("E_I_IR", "JO_VERBS"),
    "sentir": ("DIPHT_E_IE", "E_I_IR"),
    "preferir": ("DIPHT_E_IE", "E_I_IR"),
    "mentir": ("DIPHT_E_IE", "E_I_IR"),
    "dormir": ("DIPHT_O_UE", "O_U_GER_IR"),
    "morir": ("DIPHT_O_UE", "O_U_GER_IR"),
    "jugar": ("DIPHT_U_UE", "ORTH_GAR"),
    "pensar": ("DIPHT_E_IE",),
    "empezar": ("DIPHT_E_IE", "ORTH_ZAR"),
    "cerrar": ("DIPHT_E_IE",),
    "entender": ("DIPHT_E_IE",),
    "volver": ("DIPHT_O_UE",),
    "contar": ("DIPHT_O_UE",),
    "encontrar": ("DIPHT_O_UE",),
    "recordar": ("DIPHT_O_UE",),
    "leer": ("HIATUS_Y",),
    "creer": ("HIATUS_Y",),
    "poseer": ("HIATUS_Y",),
    "proveer": ("HIATUS_Y",),
    "conocer": ("ZCO_VERBS",),
    "abolir": ("DEFECTIVE",),
    "soler": ("DEFECTIVE", "DIPHT_O_UE"),
    "llover": ("UNIPERSONAL", "DIPHT_O_UE"),
    "nevar": ("UNIPERSONAL", "DIPHT_E_IE"),
    "granizar": ("UNIPERSONAL", "ORTH_ZAR"),
    "amanecer": ("UNIPERSONAL", "ZCO_VERBS"),
}

_LEMMA_RE = re.compile(r"^[a-záéíóúüñ]+$")
_VOWELS = "aeiouáéíóú"


def expand_family(family_id: str) -> set[str]:
    """Simplified group -> its technical families; a technical id maps to itself."""
    if family_id in SIMPLIFIED_GROUPS:
        return set(SIMPLIFIED_GROUPS[family_id])
    return {family_id}


def categorize_verb(lemma: str, verb: VerbInfo | None = None) -> list[str]:
    """Irregularity families for a verb.

    Families stored on the verb win; otherwise the known-verb table, then
    suffix heuristics. Raises ValueError for a lemma that is not a Spanish
    infinitive.
    """
    if verb is not None and verb.families:
        return list(verb.families)

    base = lemma[:-2] if lemma.endswith("se") else lemma
    if not base or not _LEMMA_RE.match(base) or base[-1] != "r":
        raise ValueError(f"Not an infinitive: {lemma!r}")

    if base in KNOWN_FAMILIES:
        return list(KNOWN_FAMILIES[base])

    families = []
    if base.endswith("car"):
        families.append("ORTH_CAR")
    elif base.endswith("guar"):
        families.append("ORTH_GUAR")
    elif base.endswith("gar"):
        families.append("ORTH_GAR")
    elif base.endswith("zar"):
        families.append("ORTH_ZAR")
    elif base.endswith("guir"):
        families.append("GU_DROP")
    elif base.endswith("uir"):
        families.extend(["UIR_Y", "HIATUS_Y"])
    elif base.endswith(("cer", "cir")):
        before_c = base[-4] if len(base) >= 4 else ""
        if base.endswith("ducir"):
            families.extend(["ZCO_VERBS", "PRET_J"])
        elif before_c and before_c in _VOWELS:
            families.append("ZCO_VERBS")
        else:
            families.append("ZO_VERBS")
    elif base.endswith(("ger", "gir")):
        families.append("JO_VERBS")
    elif base.endswith("iar"):
        families.append("IAR_VERBS")
    elif base.endswith("uar"):
        families.append("UAR_VERBS")
    elif base.endswith("eer"):
        families.append("HIATUS_Y")
    return families


def family_label(family_id: str) -> str:
    if family_id in SIMPLIFIED_GROUPS:
        return family_id.replace("_", " ").lower()
    return FAMILY_NAMES.get(family_id, family_id)
