"""
Quality Explanation Generator: turns dimension scores and a DQS into a
business-friendly summary with three prioritised recommendations.

Only scores and dataset metadata (counts, column names) are sent to the LLM,
never row values. Without an API key, or when the call fails, a deterministic
explanation is returned instead.
"""

import json
import logging
import re
from typing import Any, Dict, List, Mapping, Optional

from openai import OpenAI, OpenAIError

from app.config import settings

logger = logging.getLogger(__name__)

_client = OpenAI(api_key=settings.OPENAI_API_KEY) if settings.OPENAI_API_KEY else None

SEVERITIES = ("High", "Medium", "Low")
IMPACTS = ("Compliance", "Operations", "Analytics")
RECOMMENDATION_COUNT = 3

SYSTEM_PROMPT = (
    "You are a data quality analyst. Provide clear, business-friendly explanations "
    "in JSON format only. Focus on compliance, risk, and actionable insights."
)

EXPLANATION_PROMPT_TEMPLATE = """Analyze the following data quality metrics and provide an explanation.

DATA QUALITY METRICS:
- Overall Data Quality Score (DQS): {dqs}/100
- Completeness: {completeness}/100
- Uniqueness: {uniqueness}/100
- Consistency: {consistency}/100
- Validity: {validity}/100
{timeliness_section}
DATASET INFORMATION:
{dataset_info}

INSTRUCTIONS:
1. Provide an overall data quality summary (2-3 sentences) in business terms
2. Identify key problem areas (1-2 sentences per issue, focus on business impact)
3. Provide exactly 3 prioritized improvement actions with:
   - severity: High, Medium, or Low
   - a clear, actionable recommendation
   - impact category: Compliance, Operations, or Analytics

Keep the tone professional and non-technical. Mention audit or regulatory
implications where relevant.

Return ONLY valid JSON:
{{
  "summary": "Overall data quality summary in 2-3 sentences...",
  "problem_areas": ["Key problem area 1 with business impact"],
  "recommendations": [
    {{"severity": "High", "text": "Clear, actionable recommendation", "impact": "Compliance"}}
  ]
}}"""


def _parse_json(text: str):
    clean = re.sub(r"```[a-z]*\n?", "", text).strip()
    return json.loads(clean)


def build_dataset_info(metadata: Optional[Mapping[str, Any]] = None) -> str:
    if not metadata:
        return "Dataset metadata not available."

    parts = []
    if metadata.get("row_count") is not None:
        parts.append(f"- Record count: {metadata['row_count']:,}")
    if metadata.get("column_count") is not None:
        parts.append(f"- Field count: {metadata['column_count']}")

    columns = metadata.get("columns") or []
    if columns:
        column_list = ", ".join(str(c) for c in columns[:10])
        more = f" (and {len(columns) - 10} more)" if len(columns) > 10 else ""
        parts.append(f"- Fields: {column_list}{more}")

    return "\n".join(parts) if parts else "Dataset metadata not available."


def build_prompt(
    dimensions: Mapping[str, Any],
    dqs: int,
    metadata: Optional[Mapping[str, Any]] = None,
) -> str:
    timeliness = dimensions.get("timeliness")
    timeliness_section = f"- Timeliness: {timeliness}/100\n" if timeliness is not None else ""

    return EXPLANATION_PROMPT_TEMPLATE.format(
        dqs=dqs,
        completeness=dimensions.get("completeness", 0),
        uniqueness=dimensions.get("uniqueness", 0),
        consistency=dimensions.get("consistency", 0),
        validity=dimensions.get("validity", 0),
        timeliness_section=timeliness_section,
        dataset_info=build_dataset_info(metadata),
    )


def parse_llm_response(content: str) -> Dict[str, Any]:
    """
    Validate the model's JSON reply.

    Raises ValueError when the summary, problem areas or exactly three
    recommendations are missing. Unknown severities become "Medium" and
    unknown impacts become "Operations".
    """
    parsed = _parse_json(content)
    if not isinstance(parsed, dict):
        raise ValueError("Invalid response: expected a JSON object")

    summary = parsed.get("summary")
    if not summary or not isinstance(summary, str):
        raise ValueError("Invalid response: missing or invalid summary")

    problem_areas = parsed.get("problem_areas")
    if not isinstance(problem_areas, list):
        raise ValueError("Invalid response: missing or invalid problem_areas")

    raw_recommendations = parsed.get("recommendations")
    if not isinstance(raw_recommendations, list):
        raise ValueError("Invalid response: missing or invalid recommendations")

    recommendations = []
    for rec in raw_recommendations[:RECOMMENDATION_COUNT]:
        if not isinstance(rec, dict) or not isinstance(rec.get("text"), str) or not rec["text"]:
            raise ValueError("Invalid recommendation: missing text")
        recommendations.append({
            "severity": rec.get("severity") if rec.get("severity") in SEVERITIES else "Medium",
            "text": rec["text"],
            "impact": rec.get("impact") if rec.get("impact") in IMPACTS else "Operations",
        })

    if len(recommendations) != RECOMMENDATION_COUNT:
        raise ValueError(
            f"Expected exactly {RECOMMENDATION_COUNT} recommendations, got {len(recommendations)}"
        )

    return {
        "explanation": summary,
        "problem_areas": [str(p) for p in problem_areas],
        "recommendations": recommendations,
    }


# (dimension, problem text, recommendation text, impact)
_FALLBACK_RULES = (
    (
        "completeness",
        "missing data may impact regulatory reporting and transaction processing.",
        "Implement mandatory field validation and data enrichment processes to improve "
        "completeness and ensure regulatory compliance.",
        "Compliance",
    ),
    (
        "validity",
        "invalid data entries violate business rules and may cause transaction failures.",
        "Enforce schema validation and business rule checks at data ingestion to prevent "
        "invalid entries.",
        "Compliance",
    ),
    (
        "uniqueness",
        "duplicate records can cause reconciliation issues and analytics inaccuracies.",
        "Run deduplication processes and enforce unique constraints on key fields to improve "
        "data integrity and analytics accuracy.",
        "Analytics",
    ),
    (
        "consistency",
        "format inconsistencies require manual cleanup and affect data integration.",
        "Standardize data formats and implement format validation in data pipelines to reduce "
        "manual cleanup efforts.",
        "Operations",
    ),
)

_PROBLEM_THRESHOLD = 70
_HIGH_SEVERITY_THRESHOLD = 50


def generate_fallback_explanation(dimensions: Mapping[str, Any], dqs: int) -> Dict[str, Any]:
    """Deterministic explanation used when the LLM is unavailable or fails."""
    summary = f"Overall Data Quality Score: {dqs}/100. "
    if dqs >= 80:
        summary += "Data quality is strong and meets enterprise standards. "
    elif dqs >= 60:
        summary += "Data quality is acceptable but requires improvement to meet compliance and operational standards. "
    else:
        summary += "Data quality is below acceptable thresholds and poses compliance and operational risks. "
    summary += "Review key problem areas and implement recommended improvements."

    problem_areas: List[str] = []
    recommendations: List[Dict[str, str]] = []
    for dimension, problem, action, impact in _FALLBACK_RULES:
        score = dimensions.get(dimension, 0)
        if score >= _PROBLEM_THRESHOLD:
            continue
        problem_areas.append(f"{dimension.capitalize()} is {score}% - {problem}")

        if dimension == "consistency":
            # Consistency is the least severe and only fills a free slot
            if len(recommendations) < RECOMMENDATION_COUNT:
                recommendations.append({"severity": "Medium", "text": action, "impact": impact})
            continue
        severity = "High" if score < _HIGH_SEVERITY_THRESHOLD else "Medium"
        recommendations.append({"severity": severity, "text": action, "impact": impact})

    while len(recommendations) < RECOMMENDATION_COUNT:
        recommendations.append({
            "severity": "Low",
            "text": "Continue monitoring data quality metrics and maintain current data governance processes.",
            "impact": "Operations",
        })

    return {
        "explanation": summary,
        "problem_areas": problem_areas,
        "recommendations": recommendations[:RECOMMENDATION_COUNT],
    }


def generate_explanation(
    dimensions: Mapping[str, Any],
    dqs: int,
    metadata: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Explain a scoring result.

    Returns:
    {
        "explanation": str,
        "problem_areas": [str],
        "recommendations": [{"severity": str, "text": str, "impact": str}]  # exactly 3
    }
    """
    if _client is None:
        return generate_fallback_explanation(dimensions, dqs)

    prompt = build_prompt(dimensions, dqs, metadata)
    try:
        response = _client.chat.completions.create(
            model=settings.OPENAI_MODEL,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=settings.EXPLANATION_TEMPERATURE,
            max_tokens=800,
        )
        content = response.choices[0].message.content or ""
        return parse_llm_response(content)
    except (OpenAIError, ValueError) as e:
        logger.warning("LLM explanation failed, using fallback: %s", e)
        return generate_fallback_explanation(dimensions, dqs)
