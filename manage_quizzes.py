"""
Seed quizzes from a JSON file, or clear every quiz from the database.

Usage:
  python manage_quizzes.py seed quizzes.json
  python manage_quizzes.py clear

The seed file is a list of objects:
  [{"id": "optional-id", "name": "...", "questions": [...], "allowedEmbedDomains": []}]
"""
import argparse
import json
import logging

from models import Quiz, db
from services.quiz_format import MalformedQuiz, normalize_questions

logger = logging.getLogger(__name__)


def seed_quizzes(entries):
    """Insert or replace quizzes; returns the number written. Must run inside an app context."""
    written = 0
    try:
        for entry in entries:
            if not isinstance(entry, dict):
                logger.warning("skipping non-object quiz entry: %r", entry)
                continue
            try:
                questions = normalize_questions(entry.get("questions"))
            except MalformedQuiz as e:
                logger.warning("skipping quiz %r: %s", entry.get("name"), e)
                continue
            quiz = Quiz(
                name=entry.get("name") or "Untitled quiz",
                text=entry.get("text"),
                questions=[q.to_dict() for q in questions],
                total_questions=len(questions),
                allowed_embed_domains=list(entry.get("allowedEmbedDomains") or []),
            )
            if entry.get("id"):
                quiz.id = entry["id"]
            db.session.merge(quiz)
            written += 1
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return written


def clear_all_quizzes():
    """Delete all quizzes; returns the number removed."""
    try:
        num_quizzes = Quiz.query.delete()
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return num_quizzes


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    sub = parser.add_subparsers(dest="command", required=True)
    seed = sub.add_parser("seed", help="load quizzes from a JSON file")
    seed.add_argument("path")
    clear = sub.add_parser("clear", help="delete every quiz")
    clear.add_argument("--yes", action="store_true", help="skip the confirmation prompt")
    args = parser.parse_args(argv)

    from app import create_app

    app = create_app()
    with app.app_context():
        if args.command == "seed":
            with open(args.path, encoding="utf-8") as fh:
                entries = json.load(fh)
            print(f"Seeded {seed_quizzes(entries)} quiz(zes)")
        else:
            if not args.yes:
                response = input("This will delete ALL quizzes. Are you sure? (yes/no): ")
                if response.lower() != "yes":
                    print("Operation cancelled.")
                    return
            print(f"Deleted {clear_all_quizzes()} quiz(zes)")


if __name__ == "__main__":
    main()
