# services/embed_client.py - reads quiz data from the public embed endpoint
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

import requests

from services.quiz_format import MalformedQuiz, Question, normalize_questions

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = (
    "Unable to load this quiz. It may have been removed or is not available for embedding."
)


class QuizUnavailable(Exception):
    """Any failure to obtain playable quiz data; the message is user facing."""

    def __init__(self, detail: str = ""):
        super().__init__(UNAVAILABLE_MESSAGE)
        self.detail = detail


@dataclass
class EmbeddedQuiz:
    id: str
    name: str
    questions: List[Question]
    total_questions: int
    allowed_embed_domains: List[str] = field(default_factory=list)


class EmbedClient:
    def __init__(self, base_url: Optional[str] = None, timeout: Optional[int] = None, origin: Optional[str] = None):
        if base_url is None:
            base_url = os.getenv("EMBED_API_BASE_URL", "http://localhost:5000")
        if timeout is None:
            try:
                timeout = int(os.getenv("EMBED_FETCH_TIMEOUT_SECONDS", "5"))
            except ValueError:
                timeout = 5
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.origin = origin

    def quiz_url(self, quiz_id: str) -> str:
        return f"{self.base_url}/api/public/embed/{quiz_id}"

    def fetch_quiz(self, quiz_id: str) -> EmbeddedQuiz:
        """Single attempt; every failure surfaces as QuizUnavailable."""
        headers = {"Origin": self.origin} if self.origin else {}
        try:
            resp = requests.get(self.quiz_url(quiz_id), headers=headers, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("embed fetch failed id=%s: %s", quiz_id, e)
            raise QuizUnavailable(str(e))

        quiz = data.get("quiz") if isinstance(data, dict) else None
        if not isinstance(quiz, dict):
            logger.warning("embed fetch returned no quiz id=%s", quiz_id)
            raise QuizUnavailable("response has no quiz object")

        try:
            questions = normalize_questions(quiz.get("questions"))
        except MalformedQuiz as e:
            logger.warning("embed quiz malformed id=%s: %s", quiz_id, e)
            raise QuizUnavailable(str(e))

        return EmbeddedQuiz(
            id=str(quiz.get("id", quiz_id)),
            name=quiz.get("name") or "",
            questions=questions,
            total_questions=quiz.get("totalQuestions") or len(questions),
            allowed_embed_domains=list(quiz.get("allowedEmbedDomains") or []),
        )
