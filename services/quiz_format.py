"""Question wire format shared by the store, the data endpoint and the players.

Questions travel as JSON objects::

    {"question": "...", "options": [...], "correctAnswer": "...",
     "hint": "...", "explanation": "..."}

Older rows may carry the whole list serialized as a string, and older
questions may name their options ``answers``. ``normalize_questions``
accepts both.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


class MalformedQuiz(ValueError):
    """Raised when question data cannot be turned into playable questions."""


@dataclass(frozen=True)
class Question:
    prompt: str
    options: List[str]
    correct_answer: str
    hint: Optional[str] = None
    explanation: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Question":
        if not isinstance(raw, dict):
            raise MalformedQuiz("Question must be an object")

        options = raw.get("options")
        # legacy field name
        if not options and raw.get("answers"):
            options = raw["answers"]

        prompt = raw.get("question")
        correct = raw.get("correctAnswer")
        if not isinstance(prompt, str) or not prompt:
            raise MalformedQuiz("Question text is missing")
        if not isinstance(options, list) or not options or not all(isinstance(o, str) for o in options):
            raise MalformedQuiz(f"Question {prompt!r} has no options")
        if not isinstance(correct, str) or correct not in options:
            raise MalformedQuiz(f"Correct answer for {prompt!r} is not among its options")

        return cls(
            prompt=prompt,
            options=list(options),
            correct_answer=correct,
            hint=raw.get("hint") or None,
            explanation=raw.get("explanation") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "question": self.prompt,
            "options": list(self.options),
            "correctAnswer": self.correct_answer,
        }
        if self.hint:
            data["hint"] = self.hint
        if self.explanation:
            data["explanation"] = self.explanation
        return data


def normalize_questions(raw: Any) -> List[Question]:
    """Parse serialized text if needed and build the ordered question list."""
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise MalformedQuiz(f"Questions are not valid JSON: {e}")
    if not isinstance(raw, list):
        raise MalformedQuiz("Questions must be a list")
    return [Question.from_dict(q) for q in raw]
