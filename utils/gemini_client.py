import json
import logging
import re
import requests

from classes.exceptions import ExtractionError, InvalidInput, RateLimited
from utils.helpers import clean_question_text

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = """You are a quiz extraction AI. Analyze this document and extract ALL MCQ (Multiple Choice Questions) from it.

Rules:
- Extract EVERY question found in the document
- Each question must have exactly 4 options (A, B, C, D)
- If correct answers are marked/indicated anywhere in the document, identify them
- If correct answers are NOT found, set correct_option to null
- Read the document carefully including any answer keys, solutions, or marked answers
- Support both typed text and scanned/image-based PDFs

Return a JSON object with this exact structure (no markdown, no code blocks, just pure JSON):
{
  "title": "Quiz title extracted or generated from content",
  "questions": [
    {
      "question_text": "The question text",
      "option_a": "Option A text",
      "option_b": "Option B text",
      "option_c": "Option C text",
      "option_d": "Option D text",
      "correct_option": "A" or "B" or "C" or "D" or null
    }
  ],
  "has_answers": true or false
}"""

JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class GeminiClient:
    """Gemini generateContent client for pulling MCQs out of documents."""

    def __init__(
        self,
        api_key,
        model="gemini-2.5-flash",
        base_url="https://generativelanguage.googleapis.com/v1beta",
        timeout=120,
    ):
        if not api_key:
            raise ExtractionError("GEMINI_API_KEY not configured", status_code=500)
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @classmethod
    def from_config(cls, config):
        return cls(
            api_key=config.get("GEMINI_API_KEY"),
            model=config.get("GEMINI_MODEL", "gemini-2.5-flash"),
            base_url=config.get("GEMINI_API_URL", "https://generativelanguage.googleapis.com/v1beta"),
            timeout=config.get("GEMINI_TIMEOUT", 120),
        )

    @staticmethod
    def mime_type_for(file_name):
        if file_name and file_name.lower().endswith(".txt"):
            return "text/plain"
        return "application/pdf"

    def _generate(self, document_base64, mime_type):
        body = {
            "contents": [
                {
                    "parts": [
                        {"inline_data": {"mime_type": mime_type, "data": document_base64}},
                        {"text": EXTRACTION_PROMPT},
                    ]
                }
            ],
            "generationConfig": {
                "temperature": 0.1,
                "responseMimeType": "application/json",
            },
        }

        try:
            response = requests.post(
                f"{self.base_url}/models/{self.model}:generateContent",
                params={"key": self.api_key},
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.exception("Gemini request failed")
            raise ExtractionError("Extraction service unavailable") from e

        if response.status_code == 429:
            logger.warning("Gemini rate limit hit")
            raise RateLimited("Rate limit exceeded. Please try again later.")
        if not response.ok:
            logger.error("Gemini API error %s: %s", response.status_code, response.text[:500])
            raise ExtractionError(f"Gemini API failed: {response.status_code}")

        try:
            data = response.json()
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError):
            text = None
        if not text:
            raise ExtractionError("Gemini did not return any content")
        return text

    @staticmethod
    def parse_response(text):
        """Load the model's JSON, recovering it from markdown fences if needed."""
        try:
            return json.loads(text)
        except ValueError:
            match = JSON_OBJECT.search(text)
            if match:
                try:
                    return json.loads(match.group(0))
                except ValueError:
                    pass
        raise ExtractionError("Could not parse AI response as JSON")

    @staticmethod
    def normalize(extracted):
        if not isinstance(extracted, dict):
            raise ExtractionError("AI response is not a JSON object")

        questions = []
        for item in extracted.get("questions") or []:
            if not isinstance(item, dict):
                continue
            correct = item.get("correct_option")
            correct = correct.strip().upper() if isinstance(correct, str) else None
            questions.append({
                "question_text": clean_question_text(str(item.get("question_text") or "")),
                "option_a": str(item.get("option_a") or "").strip(),
                "option_b": str(item.get("option_b") or "").strip(),
                "option_c": str(item.get("option_c") or "").strip(),
                "option_d": str(item.get("option_d") or "").strip(),
                "correct_option": correct if correct in ("A", "B", "C", "D") else None,
            })

        title = extracted.get("title")
        return {
            "title": title.strip() if isinstance(title, str) and title.strip() else None,
            "questions": questions,
            "has_answers": any(q["correct_option"] for q in questions),
        }

    def extract_quiz(self, document_base64, file_name=None):
        if not document_base64:
            raise InvalidInput("No PDF data provided")

        text = self._generate(document_base64, self.mime_type_for(file_name))
        result = self.normalize(self.parse_response(text))
        logger.info("Extracted %s questions from %s", len(result["questions"]), file_name or "upload")
        return result
