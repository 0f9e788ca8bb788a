"""
End-to-end tests for MRZAnalyzer and process_mrz.

Every test pins "now" so that dates, days remaining and age are stable.

Chinese fixtures: 张三 is packed as "NFMFMIPN" (GBK D5C5 C8FD). Check
digits of the synthetic line 2 were computed by hand with the 7-3-1 rule.
"""

import json

import pytest
from datetime import datetime
from mrzlens.analyzer import MRZAnalyzer, UNRECOGNIZED_FORMAT, process_mrz


NOW = datetime(2024, 1, 1)

TD3_LINE1 = "P<UTOERIKSSON<<ANNA<MARIA<<<<<<<<<<<<<<<<<<<"
TD3_LINE2 = "L898902C36UTO7408122F1204159ZE184226B<<<<<10"

CHN_LINE1 = "POCHNZHANG<<SAN" + "<" * 29
CHN_LINE2 = "E123456782CHN9001011M3001019NFMFMIPN<<<<A<14"


def analyze(text, **kwargs):
    return process_mrz(text, now=NOW, **kwargs)


# =============================================================================
# TEST passports
# =============================================================================

class TestPassport:

    def test_specimen(self):
        result = analyze(f"{TD3_LINE1}\n{TD3_LINE2}")
        assert result.valid is True
        assert result.format == "TD3"
        assert result.type == "PASSPORT"
        assert result.fields.surname == "ERIKSSON"
        assert result.fields.given_names == "ANNA MARIA"
        assert result.fields.nationality == "UTO"
        assert result.fields.sex == "F"
        assert result.fields.detailed_type == "type_uto_p"

    def test_name_line_with_one_filler_too_many(self):
        result = analyze(f"{TD3_LINE1}<\n{TD3_LINE2}")
        assert result.valid is True
        assert result.raw_lines[0] == TD3_LINE1
        assert "Trimmed 1 trailing filler(s)" in result.logs

    def test_wrong_document_number_check(self):
        line2 = TD3_LINE2[:9] + "5" + TD3_LINE2[10:]
        result = analyze(f"{TD3_LINE1}\n{line2}")
        assert result.valid is False
        assert result.validations.document_number is False
        assert result.validations.birth_date is True
        assert result.validations.expiry_date is True
        assert result.validations.optional_data is True
        assert "[DOC_NUM] Check Digit: 5 | Calculated: 6 | Result: FAIL" in result.calc_logs

    def test_dates(self):
        parsed = analyze(f"{TD3_LINE1}\n{TD3_LINE2}").parsed
        assert parsed.birth_date == datetime(1974, 8, 12)
        assert parsed.expiry_date == datetime(2012, 4, 15)
        assert parsed.days_remaining < 0
        assert parsed.age == 49

    def test_extended_data(self):
        extended = analyze(f"{TD3_LINE1}\n{TD3_LINE2}").parsed.extended_data
        assert extended.title_key == "lbl_personal_no"
        assert extended.text == "ZE184226B"

    def test_auto_fix(self):
        line2 = TD3_LINE2[:13] + "74O8I22" + TD3_LINE2[20:]
        assert analyze(f"{TD3_LINE1}\n{line2}").valid is False

        result = analyze(f"{TD3_LINE1}\n{line2}", auto_fix=True)
        assert result.valid is True
        assert "L2[15] O -> 0" in result.logs
        assert "L2[17] I -> 1" in result.logs

    def test_lowercase_and_spaces(self):
        text = f"  {TD3_LINE1.lower()}  \n\n {TD3_LINE2[:20]} {TD3_LINE2[20:]}\n"
        assert analyze(text).valid is True


# =============================================================================
# TEST Chinese passports
# =============================================================================

class TestChinesePassport:

    def test_embedded_name_matches(self):
        result = analyze(f"{CHN_LINE1}\n{CHN_LINE2}")
        assert result.valid is True
        assert result.fields.detailed_type == "type_chn_po"
        assert result.parsed.extended_data.title_key == "lbl_chn_id"
        assert result.parsed.extended_data.text == "张三"
        assert result.risks == []

    def test_declared_truncation_without_vowels(self):
        line1 = "POCHNZHANG<<SANXX" + "<" * 27
        line2 = CHN_LINE2[:40] + "C" + CHN_LINE2[41:]
        result = analyze(f"{line1}\n{line2}")
        vowel = [r for r in result.risks if r.code == "risk_truncation_vowel"]
        assert len(vowel) == 1
        assert vowel[0].level == "critical"
        assert vowel[0].details == "Tag=2, SuffixVowels=0"

    def test_latin_name_mismatch(self):
        line1 = "POCHNLI<<SI" + "<" * 33
        result = analyze(f"{line1}\n{CHN_LINE2}")
        assert [(r.level, r.code) for r in result.risks] == [("critical", "risk_name_mismatch")]

    def test_transliterator_failure(self):
        def broken(text):
            raise RuntimeError("dictionary missing")

        result = analyze(f"{CHN_LINE1}\n{CHN_LINE2}", transliterate=broken)
        assert result.parsed.extended_data.text == "张三"
        assert result.risks == []
        assert "Pinyin cross-check skipped" in result.logs

    def test_p_zero_type_code_is_fixed(self):
        line1 = "P0" + CHN_LINE1[2:]
        result = analyze(f"{line1}\n{CHN_LINE2}", auto_fix=True)
        assert result.fields.document_type_raw == "PO"
        assert result.fields.detailed_type == "type_chn_po"

    def test_decoder_failure(self):
        def broken(data):
            raise RuntimeError("codec backend unavailable")

        result = analyze(f"{CHN_LINE1}\n{CHN_LINE2}", decode=broken)
        assert result.valid is True
        assert result.parsed.extended_data.title_key == "lbl_personal_no"
        assert result.parsed.extended_data.text == "NFMFMIPNA"
        assert result.risks == []


# =============================================================================
# TEST cards
# =============================================================================

class TestCards:

    def test_td1(self):
        text = "\n".join([
            "I<UTOD231458907<<<<<<<<<<<<<<<",
            "7408122F1204159UTO<<<<<<<<<<<0",
            "ERIKSSON<<ANNA<MARIA<<<<<<<<<<",
        ])
        result = analyze(text)
        assert result.valid is True
        assert result.format == "TD1"
        assert result.fields.detailed_type == "type_uto_id"
        assert result.parsed.extended_data.text == "ICAO COMPLIANT"

    def test_td2(self):
        text = "I<UTOERIKSSON<<ANNA<MARIA<<<<<<<<<<<\nD231458907UTO7408122F1204159<<<<<<<6"
        result = analyze(text)
        assert result.valid is True
        assert result.format == "TD2"

    def test_exit_entry_permit(self):
        result = analyze("CSC123456788<3001019<9001011<4")
        assert result.valid is True
        assert result.format == "CN_CARD"
        assert result.fields.issuing_state == "CHN"
        assert result.fields.detailed_type == "type_eep_hk"
        assert result.parsed.birth_date == datetime(1990, 1, 1)

    def test_type_code_repair_is_passport_only(self):
        result = analyze("P0C123456788<3001019<9001011<4", auto_fix=True)
        assert result.format == "CN_CARD"
        assert result.fields.document_type_raw == "P0"
        assert "L1 Type [P0 -> PO]" not in result.logs

    def test_legacy_country_code(self):
        text = "I<D<<MUSTERMANN<<ERIKA<<<<<<<<<<<<<\nT220001293D<<6408125F2010315<<<<<<<4"
        result = analyze(text)
        assert result.fields.issuing_state == "DEU"
        assert result.fields.nationality == "DEU"


# =============================================================================
# TEST unreadable input
# =============================================================================

class TestUnrecognized:

    @pytest.mark.parametrize("raw_input", [
        "",
        "\n",
        "   \n   ",
        None,
        "hello world, this is not an MRZ",
        b"\x00\x01\x02\xff" * 20,
        "P<UTO\n" * 10,
        TD3_LINE1,
    ])
    def test_never_raises(self, raw_input):
        result = analyze(raw_input)
        assert result.format == "UNKNOWN"
        assert result.type == "UNKNOWN"
        assert result.valid is False
        assert result.logs == [UNRECOGNIZED_FORMAT]
        assert result.fields.document_number is None
        assert result.risks == []

    def test_blank_line(self):
        result = analyze("\n")
        assert result.raw_lines == []
        assert result.parsed.extended_data is None


# =============================================================================
# TEST serialization and summary
# =============================================================================

class TestOutput:

    def test_to_dict_uses_camel_case(self):
        data = analyze(f"{TD3_LINE1}\n{TD3_LINE2}").to_dict()
        assert data["valid"] is True
        assert data["rawLines"] == [TD3_LINE1, TD3_LINE2]
        assert data["fields"]["documentNumber"] == "L898902C3"
        assert data["validations"]["documentNumber"] is True
        assert data["parsed"]["birthDate"] == "1974-08-12T00:00:00"
        assert data["parsed"]["extendedData"]["titleKey"] == "lbl_personal_no"
        assert data["calcLogs"]

    def test_to_dict_is_json_ready(self):
        data = analyze(f"{CHN_LINE1}\n{CHN_LINE2}").to_dict()
        assert json.loads(json.dumps(data, ensure_ascii=False)) == data

    def test_analyze_with_summary(self):
        analyzer = MRZAnalyzer(clock=lambda: NOW)
        result, summary = analyzer.analyze_with_summary(f"{TD3_LINE1}\n{TD3_LINE2}")
        assert result.valid is True
        assert summary.risk_level == "LOW"

    def test_analyzer_is_reusable(self):
        analyzer = MRZAnalyzer(clock=lambda: NOW)
        first = analyzer.analyze(f"{TD3_LINE1}\n{TD3_LINE2}")
        analyzer.analyze("garbage")
        second = analyzer.analyze(f"{TD3_LINE1}\n{TD3_LINE2}")
        assert first == second
