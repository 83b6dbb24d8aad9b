"""Single-call code reviewer backed by the Anthropic Messages API.

Prompt layout: the system prompt fixes the JSON output schema and the
severity rules; the user message carries the language, the fenced code
and, last, the optional project context and standards hints. Hints go at
the end so that direct evidence in the code outweighs them.
"""

import json
import logging

from anthropic import AsyncAnthropic
from anthropic.types import TextBlock

from lintelligent.config import AnthropicConfig
from lintelligent.models.review import ReviewFeedback, ReviewSuggestion

logger = logging.getLogger(__name__)

PARSE_FAILURE_SUMMARY = "Failed to parse AI response. Please try again."


def get_system_prompt(model: str) -> str:
    """Build the system prompt for a review call."""
    return (
        "You are a code reviewer. Return ONLY valid JSON in this format: "
        '{"suggestions":[{"severity":"low|medium|high","line":number,"message":string,'
        '"reason":string,"fixedCode":string}], "summary":"plain text summary", '
        f'"aiModel":"{model}"}}. '
        "Return ONLY raw JSON, no markdown, no prose, no code fences. "
        "PRIORITY: Code evidence FIRST. Examine actual code behavior before external hints. "
        "SEVERITY GUIDE: Type mismatches (API/method returns different type than "
        "declared/expected) = medium+. Runtime errors (ReferenceError, undefined access, "
        "out-of-scope variables) = medium+. Logic errors = medium+. Security risks = high. "
        "Style-only = low. "
        "CRITICAL: When a method/API returns a different type than the function declares or "
        "expects, that's a TYPE MISMATCH bug (medium+), not a style suggestion. "
        "When a variable is accessed outside its scope, that's a RUNTIME ERROR (medium+), "
        "not a style issue. "
        "Look for: type mismatches, logic errors, scope issues, API misuse, security risks. "
        "Each suggestion MUST cite exact line number and quote the exact offending code. "
        "Only flag issues actually present in the code. "
        "Review TARGET FILE line by line. When needed, look at related files from PROJECT "
        "CONTEXT to confirm how shared state or helpers behave."
    )


def build_user_prompt(
    code: str,
    language: str,
    repo_context: str = "",
    standards_hint: str = "",
) -> str:
    """Build the user message for a review call."""
    lines = [
        "Review this code:",
        f"Language: {language}",
        "",
        "CODE:",
        "```",
        code,
        "```",
        "",
        "Requirements:",
        "- Cite exact line number and quote exact code for each issue.",
        "- Show suggested fixes in fixedCode when relevant.",
    ]
    if repo_context:
        lines.append(
            f"\nPROJECT CONTEXT: {repo_context}. Use this to understand the codebase "
            "structure, dependencies, and how this file fits into the project."
        )
    if standards_hint:
        lines.append(
            "\nOPTIONAL HINTS (use only if code evidence supports them, ignore if they "
            f"conflict with actual code behavior): {standards_hint}"
        )
    return "\n".join(lines)


def _extract_json_object(content: str) -> str:
    first = content.find("{")
    last = content.rfind("}")
    if first >= 0 and last > first:
        return content[first : last + 1]
    return content


def parse_review_response(content: str, response_model: str | None) -> ReviewFeedback:
    """Parse the model's text into ReviewFeedback.

    Never raises: unparseable output yields an empty result whose summary
    says parsing failed. Malformed individual suggestions are dropped.

    Args:
        content: Raw text returned by the model
        response_model: Model id from the API response metadata
    """
    fallback_model = response_model or "unknown"
    try:
        data = json.loads(_extract_json_object(content))
    except json.JSONDecodeError:
        logger.warning(f"Failed to parse AI response as JSON: {content[:200]}")
        return ReviewFeedback(suggestions=[], summary=PARSE_FAILURE_SUMMARY, ai_model=fallback_model)

    if not isinstance(data, dict):
        logger.warning(f"AI response is not a JSON object: {content[:200]}")
        return ReviewFeedback(suggestions=[], summary=PARSE_FAILURE_SUMMARY, ai_model=fallback_model)

    suggestions = []
    raw_suggestions = data.get("suggestions") or []
    if not isinstance(raw_suggestions, list):
        raw_suggestions = []
    for raw in raw_suggestions:
        try:
            suggestions.append(ReviewSuggestion.from_dict(raw))
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Failed to parse suggestion: {e}, raw: {raw}")
            continue

    return ReviewFeedback(
        suggestions=suggestions,
        summary=str(data.get("summary") or ""),
        ai_model=str(data.get("aiModel") or fallback_model),
    )


class CodeReviewer:
    """Sends one snippet to the model and parses the reply."""

    def __init__(self, config: AnthropicConfig, client: AsyncAnthropic | None = None) -> None:
        """Initialize the reviewer.

        Args:
            config: Anthropic settings (key, model, limits)
            client: Optional preconfigured client (default: built from config)
        """
        self.config = config
        self._client = client or AsyncAnthropic(api_key=config.api_key)

    async def review(
        self,
        code: str,
        language: str,
        repo_context: str = "",
        standards_hint: str = "",
    ) -> ReviewFeedback:
        """Review a snippet.

        Raises:
            anthropic.APIError: If the API call fails
        """
        response = await self._client.messages.create(
            model=self.config.model,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            system=get_system_prompt(self.config.model),
            messages=[
                {
                    "role": "user",
                    "content": build_user_prompt(code, language, repo_context, standards_hint),
                }
            ],
        )
        content = "".join(block.text for block in response.content if isinstance(block, TextBlock))
        feedback = parse_review_response(content, response.model)
        logger.info(
            f"Model {response.model} returned {len(feedback.suggestions)} suggestions"
        )
        return feedback

    async def close(self) -> None:
        await self._client.close()
