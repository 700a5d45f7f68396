"""Gemini AI provider implementation."""

import json
import logging
import time
import typing

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from core.interfaces import AIProvider, RateLimitError

logger = logging.getLogger(__name__)

WORDS_SYSTEM_INSTRUCTION = (
    "You are a Japanese language expert. Provide concise, accurate JSON responses "
    "containing Japanese words, their romaji, and English meanings based on specific "
    "constraints. Do not include any explanation."
)
SENSEI_SYSTEM_INSTRUCTION = "You are a helpful Japanese sensei giving very brief encouragement."

COMPLEXITY = {
    'Easy': "extremely simple words, mostly 2-3 characters long",
    'Medium': "common everyday words",
    'Hard': "complex and longer words, at least 4 characters long",
}


class GeneratedWord(typing.TypedDict):
    japanese: str
    romaji: str
    meaning: str


# Quota and throttling failures; everything else is not worth retrying
RATE_LIMIT_ERRORS = (google_exceptions.ResourceExhausted, google_exceptions.TooManyRequests)


class GeminiProvider(AIProvider):
    """Gemini AI provider implementation."""

    def __init__(self, api_key: str, model_name: str = 'gemini-2.0-flash'):
        genai.configure(api_key=api_key)
        self.model_name = model_name
        self.words_model = genai.GenerativeModel(model_name, system_instruction=WORDS_SYSTEM_INSTRUCTION)
        self.sensei_model = genai.GenerativeModel(model_name, system_instruction=SENSEI_SYSTEM_INSTRUCTION)

    def _execute(self, model, prompt: str, generation_config: dict = None) -> tuple[str, int]:
        start_time = time.time()
        try:
            response = model.generate_content(prompt, generation_config=generation_config)
        except RATE_LIMIT_ERRORS as e:
            raise RateLimitError(str(e)) from e
        ms = int((time.time() - start_time) * 1000)
        return (response.text, ms)

    def build_words_prompt(self, request) -> str:
        complexity = COMPLEXITY.get(request.difficulty, COMPLEXITY['Medium'])
        if request.allowed_characters is not None:
            chars = ', '.join(sorted(request.allowed_characters))
            constraint = f"using ONLY characters from: [{chars}]"
        else:
            constraint = f"about: {request.topic}" if request.topic else ""

        prompt = (
            f"Generate exactly {request.count} real Japanese words in {request.category} {constraint}. "
            f"Words must be {complexity}."
        )
        if request.category == 'Kanji':
            prompt += " Use JLPT N5 words."
        if request.priority_characters:
            prompt += (
                " The student struggles with these characters, so prefer words that contain them: "
                f"[{', '.join(request.priority_characters)}]."
            )
        return prompt

    def generate_words(self, request) -> list[dict]:
        prompt = self.build_words_prompt(request)
        text, ms = self._execute(self.words_model, prompt, generation_config={
            'response_mime_type': 'application/json',
            'response_schema': list[GeneratedWord],
        })
        logger.info(f"Generated words for {request.category} in {ms}ms")
        try:
            words = json.loads(text or '[]')
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse word list: {e}")
            logger.error(f"Raw response:\n{text}")
            return []
        if not isinstance(words, list):
            logger.error(f"Word list is not a list: {type(words).__name__}")
            return []
        return words

    def get_encouragement(self, is_correct: bool, name: str, score: int | None = None) -> str:
        who = name or 'Student'
        if is_correct:
            prompt = f"{who} answered correctly! Score: {score}. Short enthusiastic Japanese-themed compliment (English, <8 words)."
        else:
            prompt = f"{who} answered wrong. Short kind encouraging message (<8 words)."
        text, _ = self._execute(self.sensei_model, prompt)
        return text.strip()
