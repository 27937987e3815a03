from datetime import datetime, timezone
from uuid import uuid4

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


class Quiz(db.Model):
    __tablename__ = "quiz"

    id = db.Column(db.String(64), primary_key=True, default=lambda: uuid4().hex)
    name = db.Column(db.String(200), nullable=False)
    # Source text the questions were generated from (optional)
    text = db.Column(db.Text, nullable=True)
    # List of question objects; older rows hold the list serialized as a string
    questions = db.Column(db.JSON, nullable=False, default=list)
    total_questions = db.Column(db.Integer, nullable=False, default=0)
    # Origin substrings allowed to embed this quiz; empty means unrestricted
    allowed_embed_domains = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    def public_projection(self):
        """Fields served to embedding pages."""
        return {
            "id": self.id,
            "name": self.name,
            "questions": self.questions,
            "totalQuestions": self.total_questions,
            "allowedEmbedDomains": list(self.allowed_embed_domains or []),
        }
