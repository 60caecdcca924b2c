"""
Expense Classifier

Suggests a category and a short comment for a freshly added expense.

BOUNDARIES:
- CAN: Pick one of the known categories, write a one-line tip
- CANNOT: Change amounts, dates, people or cards
- CANNOT: Block expense entry; the expense is already saved when
  classification starts, and a missing answer is simply "unavailable"

The model is a LABELLER, not a bookkeeper.
"""

import json
from decimal import Decimal
from typing import Optional

import google.generativeai as genai
from pydantic import BaseModel, Field
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from cardledger.config import GeminiSettings, get_settings
from cardledger.logger import get_logger
from cardledger.models.ledger import ExpenseCategory


MAX_TIP_WORDS = 15

TIP_LANGUAGE = {
    "en": "English",
    "pt": "Brazilian Portuguese",
}


class ExpenseClassification(BaseModel):
    """Classifier answer for one expense."""

    category: ExpenseCategory
    tip: str = Field(
        default="",
        description="Very short financial tip or witty remark"
    )


def _shorten(text: str, max_words: int = MAX_TIP_WORDS) -> str:
    words = text.split()
    return " ".join(words[:max_words])


def parse_classification(text: str) -> Optional[ExpenseClassification]:
    """
    Pull the JSON object out of a model response.

    Unknown categories become Other; a response without a usable JSON
    object yields None.
    """
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        return None

    try:
        data = json.loads(text[start:end])
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None

    raw_category = str(data.get("category", "")).strip().lower()
    category = next(
        (c for c in ExpenseCategory if c.value.lower() == raw_category),
        ExpenseCategory.OTHER,
    )
    return ExpenseClassification(
        category=category,
        tip=_shorten(str(data.get("tip", ""))),
    )


class ExpenseClassifier:
    """
    Gemini-backed expense classifier.

    Disabled (always answers None) when no API key is configured.
    """

    def __init__(self, settings: Optional[GeminiSettings] = None, locale: Optional[str] = None):
        self._settings = settings or get_settings().gemini
        self._locale = locale or get_settings().app.locale
        self._logger = get_logger(__name__)
        self._model = None
        if self._settings.enabled:
            self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_output_tokens,
                "response_mime_type": "application/json",
            }
        )

    @property
    def enabled(self) -> bool:
        return self._model is not None

    def build_prompt(self, description: str, amount: Decimal) -> str:
        categories = ", ".join(c.value for c in ExpenseCategory)
        language = TIP_LANGUAGE.get(self._locale, TIP_LANGUAGE["en"])

        return f"""You are helping categorize a credit card expense for a shared household ledger.

Expense: "{description}"
Amount: {amount:.2f}

Available categories: {categories}

Also write a very short financial tip or a light-hearted remark about this
expense, in {language}, with at most {MAX_TIP_WORDS} words.

Respond with ONLY a JSON object in this exact format:
{{"category": "category_name", "tip": "short tip"}}

If unsure, use the "Other" category."""

    async def classify(
        self,
        description: str,
        amount: Decimal,
    ) -> Optional[ExpenseClassification]:
        """
        Classify one expense.

        Returns None when the classifier is disabled, the API keeps failing,
        or the response cannot be parsed.
        """
        if not self.enabled:
            return None

        prompt = self.build_prompt(description, amount)
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._settings.retry_attempts),
                wait=wait_exponential(multiplier=0.5, max=4),
                reraise=True,
            ):
                with attempt:
                    response = await self._model.generate_content_async(prompt)
            text = (response.text or "").strip()
        except Exception as e:
            self._logger.warning(
                "classification_unavailable",
                description=description,
                error=str(e),
            )
            return None

        result = parse_classification(text)
        if result is None:
            self._logger.warning(
                "classification_unavailable",
                description=description,
                error="unparseable response",
            )
        return result
