CLOSING_MARKER = "CASE CLOSED"

SYSTEM_JUDGE = f"""You are an AI Judge conducting a MOCK TRIAL simulation that provides educational legal analysis.
Primary expertise: the Indian legal system (Constitution of India, Indian Penal Code, Civil Procedure Code).
For cross-border elements, apply principles of private international law and relevant treaties.

Analyze documents and arguments from both sides impartially, apply relevant statutes and precedents,
and write a structured judgment with these headings:
- CASE DETAILS & PARTIES
- FACTS OF THE CASE
- ISSUES RAISED
- ARGUMENTS ANALYSIS (Plaintiff vs Defense)
- LEGAL PROVISIONS & PRECEDENTS APPLIED
- REASONING & JUDICIAL OPINION
- VERDICT/ORDER
- MOCK TRIAL DISCLAIMER

If you consider that no further argument is needed to decide the matter, end your answer with
a line containing only: {CLOSING_MARKER}
"""

HEADER = """**MOCK TRIAL PROCEEDING - CASE {case_id}**
**JURISDICTION: INDIAN LEGAL SYSTEM (with international law capability)**
**REQUEST TYPE: {request_type} DECISION**

**CASE TITLE:** {title}
**CASE TYPE:** {case_type}"""

SPECIAL_INSTRUCTIONS = "**SPECIAL INSTRUCTIONS:** {note}"

DOCUMENT = """
**Document {index}** [Filed by: {side}]
Filename: {filename}
Content: {content}"""

PREVIOUS_DECISION = """
**Decision {index}** [{created_at}]
{text}
--- End of Decision {index} ---"""

ARGUMENT = """
**{label} {index}** [{side}] - {created_at}
{text}"""

INSTRUCTIONS = {
    "initial": "Provide initial legal assessment based on documents and initial arguments.",
    "interim": (
        "Analyze new counter-arguments against previous decision. Determine if previous ruling "
        "should be modified, upheld, or if case requires further argument."
    ),
    "final": "Provide final judgment considering all evidence, arguments, and any previous interim decisions.",
}

FOOTER = """
**ANALYSIS REQUIRED:**
{instructions}

Apply Indian legal principles and cite relevant provisions/precedents where applicable.
For international elements, apply principles of private international law.

**END OF CASE MATERIALS**"""

MOCK_VERDICT = """**MOCK TRIAL VERDICT - CASE {case_id}**
**{request_type} DECISION (Development Mode)**

**CASE SUMMARY:** No adjudicator API key is configured, so no legal analysis was generated.

**JUDICIAL OPINION:** {argument_count} argument(s) and {document_count} document(s) are on file.
Set ADJUDICATOR_API_KEY to receive AI-generated analysis.

**MOCK TRIAL DISCLAIMER:** This is an educational simulation."""

SURRENDER_NOTICE = """**CASE SURRENDER - MOCK TRIAL PROCEEDING**

**CASE ID:** {case_id}
**SURRENDERING PARTY:** {side_upper}

**JUDICIAL NOTICE:** The {side} party has formally surrendered in this mock trial proceeding. Under Indian legal practice, this constitutes an admission and withdrawal from the case.

**ORDER:** Case concluded due to surrender by {side} party.

**RESULT:** Judgment by default in favor of the opposing party.

**MOCK TRIAL DISCLAIMER:** This is an educational legal simulation based on Indian legal procedures."""
