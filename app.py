"""
MRZ Lens - Machine Readable Zone inspector

A Streamlit web application to decode passport, visa and ID card MRZ
text, validate its check digits and look for signs of tampering.

Run with: streamlit run app.py
"""

import streamlit as st

from mrzlens.analyzer import MRZAnalyzer
from mrzlens.scoring import collect_risks


# =============================================================================
# DISPLAY HELPERS
# =============================================================================

RISK_COLORS = {
    "LOW": "#16a34a",
    "MEDIUM": "#d97706",
    "HIGH": "#dc2626",
    "CRITICAL": "#7f1d1d",
}

SAMPLE_MRZ = (
    "P<UTOERIKSSON<<ANNA<MARIA<<<<<<<<<<<<<<<<<<<\n"
    "L898902C36UTO7408122F1204159ZE184226B<<<<<10"
)


def format_date(dt) -> str:
    """Format a parsed date, or a dash when the field could not be read."""
    return dt.strftime("%Y-%m-%d") if dt else "-"


def field_rows(result) -> list[tuple[str, str]]:
    """Label/value pairs for the decoded fields table."""
    f = result.fields
    p = result.parsed
    return [
        ("Document type", f"{f.document_type_raw} ({f.detailed_type})"),
        ("Issuing state", f.issuing_state or "-"),
        ("Document number", f.document_number or "-"),
        ("Surname", f.surname or "-"),
        ("Given names", f.given_names or "-"),
        ("Nationality", f.nationality or "-"),
        ("Sex", f.sex or "-"),
        ("Date of birth", f"{format_date(p.birth_date)} (age {p.age})" if p.age is not None else format_date(p.birth_date)),
        ("Expiry date", format_date(p.expiry_date)),
        ("Days remaining", str(p.days_remaining) if p.days_remaining is not None else "-"),
    ]


# =============================================================================
# PAGE CONFIG
# =============================================================================

st.set_page_config(
    page_title="MRZ Lens",
    page_icon="🛂",
    layout="wide",
)

st.markdown("# MRZ Lens")
st.caption("Decode ICAO 9303 machine readable zones and check them for tampering.")

col_input, col_options = st.columns([3, 1])

with col_input:
    raw_text = st.text_area(
        "MRZ lines",
        value=SAMPLE_MRZ,
        height=120,
        help="Paste 1 to 3 MRZ lines. Spaces are ignored.",
    )

with col_options:
    auto_fix = st.checkbox(
        "OCR auto-fix",
        value=False,
        help="Replace letters read in digit positions (O->0, I->1...) and vice versa.",
    )
    run = st.button("Analyze", type="primary")

if run or raw_text:
    analyzer = MRZAnalyzer(auto_fix=auto_fix)
    result, summary = analyzer.analyze_with_summary(raw_text)

    color = RISK_COLORS.get(summary.risk_level, "#6b7280")
    st.markdown(
        f'<div style="border-left:6px solid {color}; padding:0.5rem 1rem;">'
        f'<strong>{summary.verdict}</strong><br>'
        f'<span style="color:{color}">Risk level: {summary.risk_level}</span>'
        f' · Format: {result.format} · Type: {result.type}</div>',
        unsafe_allow_html=True,
    )
    for bullet in summary.bullets:
        st.markdown(f"- {bullet}")

    if result.format != "UNKNOWN":
        st.markdown("---")
        fields_col, checks_col = st.columns(2)

        with fields_col:
            st.markdown("## Decoded Fields")
            st.table({"Field": [r[0] for r in field_rows(result)], "Value": [r[1] for r in field_rows(result)]})

            extended = result.parsed.extended_data
            if extended:
                st.markdown("### Optional Data")
                st.write(extended.text)
                if extended.truncated:
                    st.caption(f"Declared truncation: {extended.truncated} character(s)")

        with checks_col:
            st.markdown("## Check Digits")
            st.code("\n".join(result.calc_logs), language=None)

            risks = collect_risks(result)
            if risks:
                st.markdown("## Detected Issues")
                for risk in risks:
                    icon = "🔴" if risk.level == "critical" else "🟠"
                    st.markdown(f"{icon} **{risk.code}** - {risk.details}")

            if result.logs:
                with st.expander("Input notes"):
                    st.code("\n".join(result.logs), language=None)

        with st.expander("Raw result (JSON)"):
            st.json(result.to_dict())
