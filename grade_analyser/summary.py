"""
Optional narrative report for a finished analysis.

The numbers never depend on this module: every failure here ends up as a
plain message for the results screen.
"""

import json
from typing import Dict, Optional, Protocol

from grade_analyser.analysis import round_half_up
from grade_analyser.config import Settings
from grade_analyser.logger import get_logger
from grade_analyser.models import AnalysisData

logger = get_logger("summary")

MISSING_KEY_MESSAGE = "API Key is missing. Please check your configuration."
EMPTY_RESPONSE_MESSAGE = "No analysis could be generated."
FAILURE_MESSAGE = "An error occurred while generating the report. Please try again."

PROMPT_TEMPLATE = """
You are an expert academic analyst. Analyze the following student grade data for a class.

Data Summary:
{context}

Please provide a concise but insightful report including:
1. Overall Class Performance Summary.
2. Identification of the strongest and weakest subjects based on averages.
3. Recommendations for the teacher on where to focus remedial attention.
4. A brief encouraging remark for the class.

Keep the tone professional yet encouraging. Format with Markdown.
"""


class ReportGenerator(Protocol):
    def summarize(self, prompt: str) -> str:
        ...


class GeminiReportGenerator:
    """Single-shot Gemini call; retries are left to the user."""

    def __init__(self, api_key: str, model_name: str = "gemini-2.5-flash"):
        self.api_key = api_key
        self.model_name = model_name

    def summarize(self, prompt: str) -> str:
        import google.generativeai as genai

        genai.configure(api_key=self.api_key)
        model = genai.GenerativeModel(self.model_name)
        response = model.generate_content(prompt)
        return response.text


def build_report_generator(settings: Settings) -> Optional[ReportGenerator]:
    if not settings.GEMINI_API_KEY:
        logger.warning("Gemini API key not found; narrative report disabled.")
        return None
    return GeminiReportGenerator(settings.GEMINI_API_KEY, settings.GEMINI_MODEL)


def summary_context(analysis: AnalysisData) -> Dict[str, str]:
    """Reduced-precision view of the analysis, enough to spot trends."""
    top = ", ".join(
        f"{r.student.name} ({round_half_up(r.percentage, 1):.1f}%)"
        for r in analysis.top_performers
    )
    subjects = ", ".join(
        f"{s.subject}: Avg {round_half_up(s.average, 1):.1f}"
        for s in analysis.subject_stats
    )
    return {
        "classAverage": f"{round_half_up(analysis.class_average, 2):.2f}",
        "passPercentage": f"{round_half_up(analysis.pass_percentage, 2):.2f}%",
        "topStudents": top,
        "subjectPerformance": subjects,
    }


def build_prompt(analysis: AnalysisData) -> str:
    context = json.dumps(summary_context(analysis), indent=2)
    return PROMPT_TEMPLATE.format(context=context)


def generate_class_report(analysis: AnalysisData, generator: Optional[ReportGenerator]) -> str:
    if generator is None:
        return MISSING_KEY_MESSAGE

    prompt = build_prompt(analysis)
    try:
        text = generator.summarize(prompt)
    except Exception:
        logger.exception("Narrative report generation failed")
        return FAILURE_MESSAGE

    return text or EMPTY_RESPONSE_MESSAGE
