"""Prompt templates for claim synthesis decisions.

The oracle sees one evidence item and up to five candidate claims and must
answer with a single JSON object: either a match against a candidate label,
a new claim proposal, or neither.

The evidence type carries an expected claim type so that, for example, a
listed skill does not become an achievement.
"""

SYNTHESIS_SYSTEM_PROMPT = """You are an identity synthesizer. Given evidence and candidate claims, determine if the evidence supports an existing claim or requires a new one. Return ONLY valid JSON."""

EVIDENCE_TO_CLAIM_TYPE = {
    "skill_listed": "skill",
    "accomplishment": "achievement",
    "trait_indicator": "attribute",
    "education": "education",
    "certification": "certification",
}

NO_CANDIDATES_TEXT = "No existing claims yet."

SYNTHESIS_USER_PROMPT = """Given this evidence, determine if it supports an existing claim or requires a new one.

EVIDENCE: "{evidence_text}"
EVIDENCE TYPE: {evidence_type} -> This should become a "{expected_claim_type}" claim unless it clearly matches an existing claim of a different type.

CANDIDATE CLAIMS:
{candidate_list}

Rules:
1. If evidence clearly supports an existing claim, return match with the claim's exact label
2. If evidence is a new capability/achievement/trait, create a new claim
3. New claim labels should be concise (2-4 words), semantic, and reusable
4. Strength: "strong" = direct evidence, "medium" = related, "weak" = tangential
5. Respect the evidence type when creating new claims:
   - skill_listed -> skill (e.g., "Python", "Leadership", "Project Management")
   - accomplishment -> achievement (e.g., "Performance Engineering", "Team Scaling")
   - trait_indicator -> attribute (e.g., "Thrives in Ambiguity", "Growth Mindset")

Examples of good claim labels:
- "Performance Engineering" (not "Reduced API latency")
- "Distributed Team Leadership" (not "Led teams across continents")
- "Python" (skill names stay as-is)
- "Leadership" is a SKILL, not an achievement

Return JSON:
{{
  "match": "Exact label of matched claim" or null,
  "strength": "weak" | "medium" | "strong",
  "new_claim": null or {{"type": "skill|achievement|attribute", "label": "...", "description": "..."}}
}}"""
