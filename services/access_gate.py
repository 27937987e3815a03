# services/access_gate.py - decides whether an embedding origin may read a quiz
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from models import Quiz, db
from services.errors import Forbidden, Internal, InvalidInput, NotFound

logger = logging.getLogger(__name__)

CORS_MODES = ("joined", "echo")


@dataclass(frozen=True)
class Decision:
    """Outcome of an allowed embed request."""

    quiz: Dict[str, Any]
    allow_origin: str
    # True when the quiz has no domain restriction
    unrestricted: bool


def origin_matches(origin: str, allowed_domains: List[str]) -> bool:
    """Empty origin (direct access) always passes; otherwise any substring hit does."""
    if not origin:
        return True
    return any(domain in origin for domain in allowed_domains)


class AccessGate:
    def __init__(self, session=None, cors_mode: str = "joined"):
        if cors_mode not in CORS_MODES:
            raise ValueError(f"Unknown CORS mode: {cors_mode!r}")
        self.session = session if session is not None else db.session
        self.cors_mode = cors_mode

    def _get_quiz(self, quiz_id: str, for_update: bool = False) -> Optional[Quiz]:
        stmt = db.select(Quiz).filter_by(id=quiz_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.execute(stmt).scalar_one_or_none()

    def _allow_origin_header(self, origin: str, allowed_domains: List[str]) -> str:
        if self.cors_mode == "echo" and origin:
            return origin
        return " ".join(allowed_domains)

    def authorize(self, quiz_id: str, request_origin: Optional[str]) -> Decision:
        """Return the public quiz projection if ``request_origin`` may embed it.

        Raises NotFound for unknown quizzes and Forbidden for origins outside
        a non-empty allowed-domain list.
        """
        origin = request_origin or ""
        try:
            quiz = self._get_quiz(quiz_id)
        except SQLAlchemyError:
            logger.exception("quiz lookup failed id=%s", quiz_id)
            raise Internal("Failed to load quiz")
        if quiz is None:
            raise NotFound("Quiz not found")

        allowed_domains = list(quiz.allowed_embed_domains or [])
        if not allowed_domains:
            return Decision(quiz=quiz.public_projection(), allow_origin="*", unrestricted=True)

        if not origin_matches(origin, allowed_domains):
            logger.info("embed denied id=%s origin=%s", quiz_id, origin)
            raise Forbidden("This quiz cannot be embedded on this domain")

        return Decision(
            quiz=quiz.public_projection(),
            allow_origin=self._allow_origin_header(origin, allowed_domains),
            unrestricted=False,
        )

    def register_allowed_domain(self, quiz_id: str, domain: Any) -> bool:
        """Append ``domain`` to the quiz's allowed list unless already present.

        Returns True when the list changed. The row is re-read under a write
        lock so concurrent registrations append to the committed state.
        """
        if not isinstance(domain, str) or not domain.strip():
            raise InvalidInput("Domain is required")
        domain = domain.strip()

        try:
            quiz = self._get_quiz(quiz_id, for_update=True)
            if quiz is None:
                self.session.rollback()
                raise NotFound("Quiz not found")

            current = list(quiz.allowed_embed_domains or [])
            if domain in current:
                self.session.rollback()
                logger.info("embed domain already allowed id=%s domain=%s", quiz_id, domain)
                return False

            # assign a new list so the JSON column is flagged dirty
            quiz.allowed_embed_domains = current + [domain]
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("failed to add embed domain id=%s", quiz_id)
            raise Internal("Failed to add domain")

        logger.info("embed domain added id=%s domain=%s", quiz_id, domain)
        return True
