import pytest

from conjuga.services.grammar import VerbInfo
from conjuga.services.verb_families import categorize_verb, expand_family, family_label


class TestExpandFamily:
    def test_simplified_group(self):
        assert expand_family("STEM_CHANGES") == {"DIPHT_E_IE", "DIPHT_O_UE", "DIPHT_U_UE", "E_I_IR"}

    def test_technical_family_maps_to_itself(self):
        assert expand_family("ZCO_VERBS") == {"ZCO_VERBS"}


class TestCategorize:
    def test_known_verbs(self):
        assert "E_I_IR" in categorize_verb("pedir")
        assert "O_U_GER_IR" in categorize_verb("dormir")
        assert "HIATUS_Y" in categorize_verb("leer")

    def test_stored_families_win(self):
        verb = VerbInfo(lemma="pedir", families=("CUSTOM",))
        assert categorize_verb("pedir", verb) == ["CUSTOM"]

    def test_suffix_heuristics(self):
        assert categorize_verb("buscar") == ["ORTH_CAR"]
        assert categorize_verb("parecer") == ["ZCO_VERBS"]
        assert categorize_verb("construir") == ["UIR_Y", "HIATUS_Y"]
        assert categorize_verb("traducir") == ["ZCO_VERBS", "PRET_J"]

    def test_regular_verb_has_no_family(self):
        assert categorize_verb("hablar") == []

    def test_reflexive(self):
        assert categorize_verb("vestirse") == categorize_verb("vestir")

    def test_not_an_infinitive(self):
        with pytest.raises(ValueError):
            categorize_verb("hablo")


class TestLabels:
    def test_labels(self):
        assert family_label("DIPHT_E_IE") == "e→ie diphthong"
        assert family_label("STEM_CHANGES") == "stem changes"
        assert family_label("UNKNOWN") == "UNKNOWN"
