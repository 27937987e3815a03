"""Play an embedded quiz in the terminal against a running server.

  python play_embed.py QUIZ_ID --base-url http://localhost:5000 [--origin https://blog.example.com]
"""
import argparse
import time

from services.embed_client import EmbedClient
from services.quiz_player import PlayerState, QuizPlayer


def _prompt(player):
    q = player.current_question
    print(f"\nQuestion {player.current_index + 1} of {len(player.questions)}  (score {player.score})")
    print(q.prompt)
    for i, option in enumerate(q.options):
        print(f"  {chr(65 + i)}. {option}")
    if q.hint:
        print(f"  hint: {q.hint}")
    return input("Answer letter, 's' to skip, 'q' to quit: ").strip().lower()


def play(player):
    while True:
        if player.state is PlayerState.COMPLETE:
            stats = player.completion_stats()
            print("\nQuiz Complete!")
            print(f"Correct answers: {stats.score}/{stats.total_questions} ({stats.percentage}%)")
            print(f"Skipped: {stats.skipped}  Time spent: {stats.formatted_time}")
            print(stats.tier.label)
            if input("Restart? (y/n): ").strip().lower() != "y":
                return
            player.restart()
            continue

        choice = _prompt(player)
        if choice == "q":
            return
        if choice == "s":
            player.skip_question()
            continue
        index = ord(choice[0]) - ord("a") if choice else -1
        options = player.current_question.options
        if not 0 <= index < len(options):
            print("Pick one of the listed letters.")
            continue

        player.select_answer(options[index])
        correct = player.check_answer()
        if correct:
            print("Correct!")
        else:
            print(f"Incorrect. The answer was: {player.current_question.correct_answer}")
        while player.advance_pending:
            time.sleep(0.05)


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("quiz_id")
    parser.add_argument("--base-url", default=None)
    parser.add_argument("--origin", default=None, help="Origin header to present to the server")
    args = parser.parse_args(argv)

    player = QuizPlayer(args.quiz_id, EmbedClient(base_url=args.base_url, origin=args.origin))
    try:
        if player.load() is PlayerState.ERROR:
            print(player.error)
            return 1
        print(player.quiz.name)
        play(player)
    finally:
        player.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
