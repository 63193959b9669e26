# backend/app/core/prompts.py

SUMMARIZE_PROMPT = """You are a knowledge summarizer. Summarize only the information in the following documents that is directly relevant to the query below.
Do not include unrelated details. Preserve factual accuracy, key terminology, weights and scoring scales exactly as written.

Query: "{query}"

Documents:
{documents}

Focus on documents that match the query and return a concise factual summary:"""


EXTRACT_PROMPT = """You are a precise document parser. Extract the {kind} below into the requested structure.

Rules:
- Use ONLY information present in the document text.
- Never fabricate. If a field is missing, leave it null (or an empty list); do not guess.
- Keep quoted responses verbatim.

DOCUMENT ({kind}):
{document}
"""


CV_SCORING_PROMPT = """You are an impartial HR evaluator scoring a candidate's CV for the role "{job_title}".

Scoring Rubric (CV):
{rubric}

Job Description:
{context}

Candidate CV (structured):
{document}

Evaluation rules:
- Score every criterion named in the rubric, using the rubric's own weights and scale.
- Base each score on explicit evidence from the CV; cite it briefly in "reason".
- Penalize claims that the CV does not support with concrete experience or results.
- Do NOT invent criteria that the rubric does not mention.
- weighted_score must equal weight * score.
"""


PROJECT_SCORING_PROMPT = """You are an impartial evaluator scoring a candidate's project report for the role "{job_title}".

Scoring Rubric (Project):
{rubric}

Case Study Brief:
{context}

Project Report (structured):
{document}

Evaluation rules:
- Score every criterion named in the rubric, using the rubric's own weights and scale.
- Base each score on explicit evidence from the report; cite it briefly in "reason".
- Penalize requirements of the brief that the report claims but does not demonstrate.
- Do NOT invent criteria that the rubric does not mention.
- weighted_score must equal weight * score.
"""


OVERALL_PROMPT = """You are consolidating a candidate evaluation for the role "{job_title}".

Overall Scoring Rubric:
{rubric}

CV evaluation (per criterion):
{cv_result}

Project evaluation (per criterion):
{project_result}

Rules:
- Use ONLY the weights and scales defined in the overall rubric; do not invent criteria.
- cv_match_rate and project_score are plain numbers on the rubric's scale.
- Explain each calculation step in cv_calculation_detail and project_calculation_detail.
- overall_summary: 3-5 sentences covering strengths, gaps and a recommendation.
"""
