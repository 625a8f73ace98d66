"""Prompt template for the AI grounding and quality review of sampled claims."""

CLAIM_GROUNDING_PROMPT = """You are evaluating identity claims for grounding AND semantic quality.

Claims to evaluate:
{claims_json}

Each claim includes:
- label: the claim name (e.g., "React Development")
- description: what the user claims
- evidence: array of supporting evidence texts with their strength ratings

For each claim, check TWO things:

1. GROUNDING: Is the claim supported by evidence?
   - grounded = true if evidence reasonably supports the claim
   - grounded = false if claim overstates, misrepresents, or lacks evidence

2. QUALITY: Is this a meaningful professional identity claim?
   - quality_issue = null if the claim represents a real skill, achievement, or attribute
   - quality_issue = explanation if the claim is problematic

LOW QUALITY claims to flag:
- Raw metrics restated as claims: "Delivered Commits", "Made Pull Requests"
- Generic activity verbs: "Worked on Projects", "Used Tools"
- Non-transferable specifics: "411 Commits in 13 Days" (this is evidence, not a claim)

GOOD claims (don't flag):
- Skills: "React Development", "AWS Infrastructure", "PostgreSQL"
- Achievements: "Shipped Production Platform", "Led Team of 5"
- Attributes: "High Development Velocity", "Quality-Focused Engineering"

Respond with JSON only:
{{
  "evaluations": [
    {{ "claim_id": "uuid", "grounded": true, "quality_issue": null }},
    {{ "claim_id": "uuid", "grounded": false, "quality_issue": null }}
  ]
}}"""
